"""
Client State

In-memory client state and its persistence through the database.
"""

import logging
from typing import Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field

from ..database import get_session, get_client_state_record, save_client_state_record
from ..models.dao import OnChainDaoState
from .addressing import Address, ProcessId

logger = logging.getLogger(__name__)


class CurrentJob(BaseModel):
    """The job whose images are currently arriving"""
    job_id: int = Field(..., ge=0)
    next_image_number: int = Field(0, ge=0)


class ClientState(BaseModel):
    """Everything the client remembers between restarts"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    current_job: Optional[CurrentJob] = None
    router_process: Optional[ProcessId] = None
    rollup_sequencer: Optional[Address] = None
    on_chain_state: OnChainDaoState = Field(default_factory=OnChainDaoState)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary"""
        return {
            "current_job": self.current_job.model_dump() if self.current_job else None,
            "router_process": str(self.router_process) if self.router_process else None,
            "rollup_sequencer": str(self.rollup_sequencer) if self.rollup_sequencer else None,
            "on_chain_state": self.on_chain_state.to_wire(),
        }


class StateStore:
    """Loads and saves ClientState"""

    def load(self) -> ClientState:
        """Load the persisted state, falling back to the default state"""
        with get_session() as session:
            record = get_client_state_record(session)

        if record is None:
            logger.info("No persisted client state; starting fresh")
            return ClientState()

        current_job = None
        if record.current_job_id is not None:
            current_job = CurrentJob(
                job_id=record.current_job_id,
                next_image_number=record.next_image_number or 0
            )

        return ClientState(
            current_job=current_job,
            router_process=ProcessId.parse(record.router_process) if record.router_process else None,
            rollup_sequencer=Address.parse(record.rollup_sequencer) if record.rollup_sequencer else None,
            on_chain_state=OnChainDaoState.model_validate(record.on_chain_state or {}),
        )

    def save(self, state: ClientState):
        """Persist the full state"""
        data = state.to_dict()
        with get_session() as session:
            save_client_state_record(
                session,
                router_process=data["router_process"],
                rollup_sequencer=data["rollup_sequencer"],
                current_job_id=state.current_job.job_id if state.current_job else None,
                next_image_number=state.current_job.next_image_number if state.current_job else None,
                on_chain_state=data["on_chain_state"],
            )
