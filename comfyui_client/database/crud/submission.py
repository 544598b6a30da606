"""
CRUD operations for JobSubmission model
"""

import uuid
from datetime import datetime
from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import desc

from ..models import JobSubmission


def create_submission(
    session: Session,
    workflow: str,
    parameters: str,
    source: str,
    router_address: str,
    status: str = "submitted",
) -> JobSubmission:
    """Record a RunJob request about to be forwarded"""
    submission = JobSubmission(
        id=str(uuid.uuid4()),
        workflow=workflow,
        parameters=parameters,
        source=source,
        router_address=router_address,
        status=status,
        submitted_at=datetime.utcnow(),
    )
    session.add(submission)
    session.commit()
    session.refresh(submission)
    return submission


def get_submission(session: Session, submission_id: str) -> Optional[JobSubmission]:
    """Get submission by ID"""
    return session.query(JobSubmission).filter(JobSubmission.id == submission_id).first()


def get_submission_by_job(session: Session, job_id: int) -> Optional[JobSubmission]:
    """Get the submission that was assigned a provider job ID"""
    return session.query(JobSubmission).filter(JobSubmission.job_id == job_id).first()


def get_latest_pending_submission(session: Session) -> Optional[JobSubmission]:
    """Get the most recent submission still waiting for a router response"""
    return (
        session.query(JobSubmission)
        .filter(JobSubmission.status == "submitted")
        .order_by(desc(JobSubmission.submitted_at))
        .first()
    )


def update_submission_status(
    session: Session,
    submission_id: str,
    status: str,
    job_id: Optional[int] = None,
    error_message: Optional[str] = None,
) -> Optional[JobSubmission]:
    """Update submission status"""
    submission = get_submission(session, submission_id)
    if not submission:
        return None

    submission.status = status
    if job_id is not None:
        submission.job_id = job_id
    if error_message:
        submission.error_message = error_message

    session.commit()
    session.refresh(submission)
    return submission


def list_submissions(
    session: Session,
    limit: int = 100,
    offset: int = 0,
    status: Optional[str] = None,
) -> List[JobSubmission]:
    """List submissions, newest first"""
    query = session.query(JobSubmission)
    if status:
        query = query.filter(JobSubmission.status == status)
    return query.order_by(desc(JobSubmission.submitted_at)).offset(offset).limit(limit).all()
