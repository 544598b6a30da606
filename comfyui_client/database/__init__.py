"""
Database module for the ComfyUI client node

Provides SQLAlchemy models and CRUD operations for client state, job
submissions and received images.
"""

from .models import ClientStateRecord, JobSubmission, JobImage, Base
from .session import get_session, init_engine, init_db
from .crud import (
    # State
    get_client_state_record,
    save_client_state_record,
    # Submission
    create_submission,
    get_submission,
    get_submission_by_job,
    get_latest_pending_submission,
    update_submission_status,
    list_submissions,
    # Image
    create_job_image,
    get_job_image_by_filename,
    list_job_images,
)

__all__ = [
    # Models
    "ClientStateRecord",
    "JobSubmission",
    "JobImage",
    "Base",
    # Session
    "get_session",
    "init_engine",
    "init_db",
    # State CRUD
    "get_client_state_record",
    "save_client_state_record",
    # Submission CRUD
    "create_submission",
    "get_submission",
    "get_submission_by_job",
    "get_latest_pending_submission",
    "update_submission_status",
    "list_submissions",
    # Image CRUD
    "create_job_image",
    "get_job_image_by_filename",
    "list_job_images",
]
