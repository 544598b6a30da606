"""
Node Messaging API Routes

Endpoint other nodes post message envelopes to.
"""

from fastapi import APIRouter, Depends

from ..core import ClientProcess
from ..models import MessageEnvelope
from .deps import get_process

router = APIRouter(tags=["messages"])


@router.post("/message", response_model=MessageEnvelope)
def receive_message(envelope: MessageEnvelope, process: ClientProcess = Depends(get_process)):
    """
    Receive a message from another node

    Admin requests (SetRouterProcess, SetRollupSequencer, GetRollupState) are
    answered with an AdminResponse body; RunJob is forwarded to the router and
    answered with the router's response; JobUpdate is answered with "JobUpdate".
    Messages with is_request=false are late router responses.

    Args:
        envelope: Message envelope

    Returns:
        Reply envelope
    """
    return process.handle_message(envelope)
