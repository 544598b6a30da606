"""
CRUD operations for the client state singleton
"""

from typing import Optional, Dict, Any
from sqlalchemy.orm import Session

from ..models import ClientStateRecord, CLIENT_STATE_ID


def get_client_state_record(session: Session) -> Optional[ClientStateRecord]:
    """Get the persisted client state, or None on first start"""
    return session.get(ClientStateRecord, CLIENT_STATE_ID)


def save_client_state_record(
    session: Session,
    router_process: Optional[str],
    rollup_sequencer: Optional[str],
    current_job_id: Optional[int],
    next_image_number: Optional[int],
    on_chain_state: Dict[str, Any],
) -> ClientStateRecord:
    """Insert or overwrite the client state singleton"""
    record = get_client_state_record(session)
    if record is None:
        record = ClientStateRecord(id=CLIENT_STATE_ID)
        session.add(record)

    record.router_process = router_process
    record.rollup_sequencer = rollup_sequencer
    record.current_job_id = current_job_id
    record.next_image_number = next_image_number
    record.on_chain_state = on_chain_state

    session.commit()
    session.refresh(record)
    return record
