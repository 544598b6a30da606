"""
Request Models

Pydantic models for API requests and the node-to-node message envelope.
"""

import base64
import binascii
from typing import Any, Optional

from pydantic import BaseModel, Field

from ..errors import MessageDecodeError


class MessageEnvelope(BaseModel):
    """A message between nodes: JSON body plus optional binary blob"""
    source: str = Field(..., description="Sender address (node@process:package:publisher)")
    target: Optional[str] = Field(None, description="Recipient address")
    is_request: bool = Field(True, description="False when delivering a late response")
    body: Any = Field(None, description="Message body (JSON)")
    blob: Optional[str] = Field(None, description="Base64-encoded binary payload")

    @classmethod
    def build(
        cls,
        source: str,
        body: Any,
        blob: Optional[bytes] = None,
        target: Optional[str] = None,
        is_request: bool = True
    ) -> "MessageEnvelope":
        """Create an envelope, base64-encoding the blob"""
        return cls(
            source=source,
            target=target,
            is_request=is_request,
            body=body,
            blob=base64.b64encode(blob).decode("ascii") if blob is not None else None
        )

    def blob_bytes(self) -> Optional[bytes]:
        """
        Decode the blob

        Raises:
            MessageDecodeError: If the blob is not valid base64
        """
        if self.blob is None:
            return None
        try:
            return base64.b64decode(self.blob, validate=True)
        except (binascii.Error, ValueError) as e:
            raise MessageDecodeError(f"blob is not valid base64: {e}") from e


class SetRouterProcessRequest(BaseModel):
    """Request to set the router process id"""
    process_id: str = Field(..., description="Router process (process:package:publisher)")


class SetRollupSequencerRequest(BaseModel):
    """Request to set the rollup sequencer address"""
    address: str = Field(..., description="Sequencer address (node@process:package:publisher)")
