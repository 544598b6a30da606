"""
Tests for the HTTP node transport against a mock node server
"""

import base64
import json
import threading
from http.server import HTTPServer, BaseHTTPRequestHandler

import pytest

from comfyui_client.core import Address, MessageTransport
from comfyui_client.errors import TransportError

from conftest import OUR_NODE, OUR_PROCESS, ROUTER_PROCESS


class MockNodeHandler(BaseHTTPRequestHandler):
    """Mock node: answers RunJob with JobQueued, fails on demand"""

    received = []

    def log_message(self, format, *args):
        """Suppress default logging"""
        pass

    def _reply(self, status, payload):
        self.send_response(status)
        self.send_header('Content-type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(payload).encode())

    def do_POST(self):
        """Handle POST requests"""
        if self.path != '/message':
            self.send_response(404)
            self.end_headers()
            return

        length = int(self.headers.get('Content-Length', 0))
        envelope = json.loads(self.rfile.read(length))
        MockNodeHandler.received.append(envelope)

        body = envelope.get("body")
        if body == "Fail":
            self._reply(500, {"detail": "router exploded"})
        elif body == "Garbage":
            self._reply(200, ["not", "an", "envelope"])
        else:
            self._reply(200, {
                "source": envelope["target"],
                "is_request": False,
                "body": {"RunJob": {"JobQueued": {"job_id": 5}}},
                "blob": envelope.get("blob"),
            })


@pytest.fixture
def mock_node():
    MockNodeHandler.received = []
    server = HTTPServer(('127.0.0.1', 0), MockNodeHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()


@pytest.fixture
def node_transport(mock_node):
    our = Address.parse(f"{OUR_NODE}@{OUR_PROCESS}")
    transport = MessageTransport(our, {"router.os": mock_node + "/", "down.os": "http://127.0.0.1:9"})
    yield transport
    transport.close()


ROUTER = Address.parse(f"router.os@{ROUTER_PROCESS}")


def test_send_and_await_response(node_transport):
    reply = node_transport.send_and_await_response(
        ROUTER,
        body={"RunJob": {"workflow": "basic", "parameters": "{}"}},
        blob=b"\x00\x01binary",
        timeout=5
    )

    assert reply.is_request is False
    assert reply.body == {"RunJob": {"JobQueued": {"job_id": 5}}}
    assert reply.blob_bytes() == b"\x00\x01binary"

    sent = MockNodeHandler.received[0]
    assert sent["source"] == f"{OUR_NODE}@{OUR_PROCESS}"
    assert sent["target"] == str(ROUTER)
    assert sent["is_request"] is True
    assert base64.b64decode(sent["blob"]) == b"\x00\x01binary"


def test_trailing_slash_is_stripped(node_transport, mock_node):
    assert node_transport.resolve("router.os") == mock_node


def test_error_status(node_transport):
    with pytest.raises(TransportError) as exc_info:
        node_transport.send_and_await_response(ROUTER, body="Fail")

    assert exc_info.value.remote_status_code == 500
    assert "router exploded" in str(exc_info.value)


def test_malformed_reply(node_transport):
    with pytest.raises(TransportError, match="malformed reply"):
        node_transport.send_and_await_response(ROUTER, body="Garbage")


def test_unknown_node(node_transport):
    target = Address.parse(f"nowhere.os@{ROUTER_PROCESS}")
    with pytest.raises(TransportError, match="no route"):
        node_transport.send_and_await_response(target, body=None)


def test_unreachable_node(node_transport):
    target = Address.parse(f"down.os@{ROUTER_PROCESS}")
    with pytest.raises(TransportError, match="failed to reach"):
        node_transport.send_and_await_response(target, body=None, timeout=2)
