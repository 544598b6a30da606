"""
Shared fixtures: settings on a temporary data dir, an in-memory database and
a scripted transport standing in for the router and sequencer nodes.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import pytest

from comfyui_client.core import Address, Settings, build_client_process
from comfyui_client.errors import TransportError
from comfyui_client.models import MessageEnvelope

OUR_NODE = "client.os"
OUR_PROCESS = "client:comfyui_client:local"
ROUTER_NODE = "router.os"
ROUTER_PROCESS = "router:provider_dao_router:publisher.os"
SEQUENCER_ADDRESS = "sequencer.os@sequencer:provider-dao-rollup:publisher.os"

CHAIN_STATE: Dict[str, Any] = {
    "routers": [ROUTER_NODE],
    "members": {ROUTER_NODE: "0x" + "ab" * 20},
    "proposals": {
        "3": {
            "proposal": {"Kick": "bad.os"},
            "votes": {
                ROUTER_NODE: {"vote": {"proposal_hash": 3, "is_yea": True}, "signature": 99}
            },
        }
    },
    "queue_response_timeout_seconds": 10,
    "serve_timeout_seconds": 60,
    "max_outstanding_payments": 3,
    "payment_period_hours": 24,
}


@dataclass
class SentMessage:
    target: Address
    body: Any
    blob: Optional[bytes]
    timeout: float


class FakeTransport:
    """Records outgoing messages and answers them with per-node handlers"""

    def __init__(self, our: Address):
        self.our = our
        self.sent: List[SentMessage] = []
        self.handlers: Dict[str, Callable[[Any, Optional[bytes]], MessageEnvelope]] = {}
        self.closed = False

    def send_and_await_response(self, target, body, blob=None, timeout=5):
        self.sent.append(SentMessage(target, body, blob, timeout))
        handler = self.handlers.get(target.node)
        if handler is None:
            raise TransportError(f"no route to node {target.node!r}; add it to the node directory")
        return handler(body, blob)

    def close(self):
        self.closed = True

    def reply(self, source: str, body: Any = None, blob: Optional[bytes] = None) -> MessageEnvelope:
        return MessageEnvelope.build(source=source, body=body, blob=blob, is_request=False)

    def serve_chain_state(self, state: Optional[Dict[str, Any]] = None):
        """Answer sequencer reads with a full DAO state"""
        state = CHAIN_STATE if state is None else state
        payload = json.dumps({"Read": {"All": state}}).encode()
        self.handlers["sequencer.os"] = lambda body, blob: self.reply(SEQUENCER_ADDRESS, blob=payload)

    def serve_router(self, response_body: Any):
        """Answer RunJob requests with a fixed PublicResponse body"""
        source = f"{ROUTER_NODE}@{ROUTER_PROCESS}"
        self.handlers[ROUTER_NODE] = lambda body, blob: self.reply(source, body=response_body)

    def sent_to(self, node: str) -> List[SentMessage]:
        return [m for m in self.sent if m.target.node == node]


@pytest.fixture
def settings(tmp_path):
    return Settings(
        node=OUR_NODE,
        process=OUR_PROCESS,
        data_dir=tmp_path / "data",
        database_url="sqlite://",
    )


@pytest.fixture
def transport(settings):
    return FakeTransport(settings.our_address)


@pytest.fixture
def process(settings, transport):
    return build_client_process(settings, transport=transport)


@pytest.fixture
def configured_process(process, transport):
    """A process with router process and sequencer set and chain state loaded"""
    from comfyui_client.models import SetRollupSequencer, SetRouterProcess

    transport.serve_chain_state()
    process.handle_admin_request(process.our, SetRouterProcess(process_id=ROUTER_PROCESS))
    response = process.handle_admin_request(process.our, SetRollupSequencer(address=SEQUENCER_ADDRESS))
    assert response.err is None
    return process


def run_job_body(workflow: str = "basic", parameters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    parameters = parameters if parameters is not None else {"positive_prompt": "a cat", "workflow": workflow}
    return {"RunJob": {"workflow": workflow, "parameters": json.dumps(parameters)}}


def job_update_body(job_id: int, is_final: bool = False, signature: Any = None) -> Dict[str, Any]:
    return {
        "JobUpdate": {
            "job_id": job_id,
            "is_final": is_final,
            "signature": signature if signature is not None else {"Ok": 1234},
        }
    }
