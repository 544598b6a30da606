"""
Node Transport

Delivers message envelopes to processes on other nodes over HTTP.
"""

import logging
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from ..errors import TransportError
from ..models.requests import MessageEnvelope
from .addressing import Address

logger = logging.getLogger(__name__)


class MessageTransport:
    """HTTP transport for node-to-node messages"""

    def __init__(self, our: Address, nodes: Dict[str, str], session: Optional[requests.Session] = None):
        """
        Initialize the transport

        Args:
            our: Address messages are sent from
            nodes: Node directory mapping node name to base URL
            session: Optional requests session (a new one is created if omitted)
        """
        self.our = our
        self.nodes = {name: url.rstrip('/') for name, url in nodes.items()}
        self.session = session or requests.Session()

    def resolve(self, node: str) -> str:
        """
        Get the base URL of a node

        Raises:
            TransportError: If the node is not in the directory
        """
        try:
            return self.nodes[node]
        except KeyError:
            raise TransportError(f"no route to node {node!r}; add it to the node directory")

    def send_and_await_response(
        self,
        target: Address,
        body: Any,
        blob: Optional[bytes] = None,
        timeout: float = 5
    ) -> MessageEnvelope:
        """
        Send a request and wait for the reply

        Args:
            target: Recipient process
            body: JSON body
            blob: Optional binary payload
            timeout: Seconds to wait for the reply

        Returns:
            The reply envelope

        Raises:
            TransportError: On unknown node, connection failure, timeout,
                non-2xx status or a malformed reply
        """
        url = f"{self.resolve(target.node)}/message"
        envelope = MessageEnvelope.build(
            source=str(self.our),
            target=str(target),
            body=body,
            blob=blob
        )

        logger.debug(f"POST {url} -> {target}")
        try:
            response = self.session.post(url, json=envelope.model_dump(), timeout=timeout)
        except requests.Timeout as e:
            raise TransportError(f"timed out after {timeout}s waiting for {target}") from e
        except requests.RequestException as e:
            raise TransportError(f"failed to reach {target}: {e}") from e

        if not response.ok:
            try:
                error_data = response.json()
                detail = error_data.get('detail', error_data) if isinstance(error_data, dict) else error_data
            except ValueError:
                detail = response.text
            raise TransportError(
                f"{target} replied with error ({response.status_code}): {detail}",
                status_code=response.status_code
            )

        try:
            return MessageEnvelope.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise TransportError(f"malformed reply from {target}: {e}") from e

    def close(self):
        self.session.close()
