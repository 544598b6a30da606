"""
Response Models

Pydantic models for API responses.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel


class RunJobResponse(BaseModel):
    """Outcome of forwarding a RunJob request"""
    submission_id: str
    status: str
    router_address: str
    job_id: Optional[int] = None
    error: Optional[str] = None


class CurrentJobResponse(BaseModel):
    """Job whose images are currently arriving"""
    job_id: Optional[int] = None
    next_image_number: Optional[int] = None
    active: bool = False


class JobSubmissionResponse(BaseModel):
    """A recorded RunJob submission"""
    submission_id: str
    workflow: str
    parameters: str
    router_address: str
    status: str
    job_id: Optional[int] = None
    error: Optional[str] = None
    submitted_at: Optional[datetime] = None


class JobImageResponse(BaseModel):
    """A received image"""
    job_id: int
    filename: str
    image_number: Optional[int] = None
    is_final: bool
    file_size: Optional[int] = None
    signature: Optional[int] = None
    signature_error: Optional[str] = None
    received_at: Optional[datetime] = None
    url: str


class AdminResultResponse(BaseModel):
    """Result of an admin operation"""
    request: str
    err: Optional[str] = None
    state: Dict[str, Any]
