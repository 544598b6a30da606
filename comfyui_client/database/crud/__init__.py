"""
CRUD operations module

Imports all CRUD functions from individual entity files
"""

from .state import (
    get_client_state_record,
    save_client_state_record,
)

from .submission import (
    create_submission,
    get_submission,
    get_submission_by_job,
    get_latest_pending_submission,
    update_submission_status,
    list_submissions,
)

from .image import (
    create_job_image,
    get_job_image_by_filename,
    list_job_images,
)

__all__ = [
    # State
    "get_client_state_record",
    "save_client_state_record",
    # Submission
    "create_submission",
    "get_submission",
    "get_submission_by_job",
    "get_latest_pending_submission",
    "update_submission_status",
    "list_submissions",
    # Image
    "create_job_image",
    "get_job_image_by_filename",
    "list_job_images",
]
