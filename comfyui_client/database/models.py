"""
SQLAlchemy models for client state, job submissions and received images
"""

from sqlalchemy import (
    Column,
    String,
    Integer,
    BigInteger,
    Boolean,
    DateTime,
    Text,
    Index,
    JSON,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()

CLIENT_STATE_ID = 1


class ClientStateRecord(Base):
    """Singleton row holding the persisted client state"""

    __tablename__ = "client_state"

    id = Column(Integer, primary_key=True, default=CLIENT_STATE_ID)

    router_process = Column(String)  # process:package:publisher
    rollup_sequencer = Column(String)  # node@process:package:publisher

    # Current job (both NULL when idle)
    current_job_id = Column(BigInteger)
    next_image_number = Column(Integer)

    on_chain_state = Column(JSON, nullable=False, default=dict)

    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<ClientStateRecord(router_process={self.router_process}, current_job_id={self.current_job_id})>"


class JobSubmission(Base):
    """A RunJob request forwarded to a router"""

    __tablename__ = "job_submissions"

    id = Column(String, primary_key=True)  # UUID

    workflow = Column(String, nullable=False)
    parameters = Column(Text, nullable=False)
    source = Column(String, nullable=False)
    router_address = Column(String, nullable=False)

    # 'submitted', 'queued', 'payment_required', 'error', 'send_failed'
    status = Column(String, nullable=False)
    job_id = Column(BigInteger)
    error_message = Column(Text)

    submitted_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_submissions_job", "job_id"),
        Index("idx_submissions_status", "status"),
        Index("idx_submissions_submitted", "submitted_at"),
    )

    def __repr__(self):
        return f"<JobSubmission(id={self.id}, workflow={self.workflow}, status={self.status})>"


class JobImage(Base):
    """An image received in a JobUpdate"""

    __tablename__ = "job_images"

    id = Column(String, primary_key=True)  # UUID
    job_id = Column(BigInteger, nullable=False)

    image_number = Column(Integer)  # NULL for the final image
    is_final = Column(Boolean, nullable=False, default=False)

    filename = Column(String, nullable=False)
    local_path = Column(String, nullable=False)
    file_size = Column(Integer)

    # Provider signature: exactly one of these is set
    signature = Column(BigInteger)
    signature_error = Column(Text)

    received_at = Column(DateTime, nullable=False, default=func.now())

    __table_args__ = (
        Index("idx_images_job", "job_id"),
        Index("idx_images_filename", "filename"),
    )

    def __repr__(self):
        return f"<JobImage(job_id={self.job_id}, filename={self.filename})>"
