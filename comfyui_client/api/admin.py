"""
Admin API Routes

Local endpoints for configuring the router process and rollup sequencer.
They act with this node's own address, like a message sent from our node.
"""

from fastapi import APIRouter, Depends, HTTPException

from ..core import ClientProcess
from ..models import (
    AdminResponse,
    AdminResultResponse,
    GetRollupState,
    SetRollupSequencer,
    SetRouterProcess,
    SetRouterProcessRequest,
    SetRollupSequencerRequest
)
from .deps import get_process

router = APIRouter(prefix="/admin", tags=["admin"])


def _result(process: ClientProcess, response: AdminResponse) -> AdminResultResponse:
    if response.err:
        raise HTTPException(status_code=502, detail=f"{response.kind} failed: {response.err}")
    return AdminResultResponse(request=response.kind, err=None, state=process.snapshot())


@router.post("/router-process", response_model=AdminResultResponse)
def set_router_process(request: SetRouterProcessRequest, process: ClientProcess = Depends(get_process)):
    """Set the process id of the DAO router (process:package:publisher)"""
    response = process.handle_admin_request(
        process.our,
        SetRouterProcess(process_id=request.process_id)
    )
    return _result(process, response)


@router.post("/rollup-sequencer", response_model=AdminResultResponse)
def set_rollup_sequencer(request: SetRollupSequencerRequest, process: ClientProcess = Depends(get_process)):
    """
    Set the rollup sequencer address and fetch the DAO state from it

    The address is kept even when the fetch fails; the error is reported
    with status 502.
    """
    response = process.handle_admin_request(
        process.our,
        SetRollupSequencer(address=request.address)
    )
    return _result(process, response)


@router.post("/rollup-state", response_model=AdminResultResponse)
def refresh_rollup_state(process: ClientProcess = Depends(get_process)):
    """Re-read the DAO state from the rollup sequencer"""
    response = process.handle_admin_request(process.our, GetRollupState())
    if response.err and process.snapshot()["rollup_sequencer"] is None:
        raise HTTPException(status_code=409, detail=response.err)
    return _result(process, response)


@router.get("/state")
def get_state(process: ClientProcess = Depends(get_process)):
    """Get the client state: current job, router process, sequencer and DAO state"""
    return process.snapshot()
