"""
CRUD operations for JobImage model
"""

import uuid
from datetime import datetime
from typing import Optional, List
from sqlalchemy.orm import Session

from ..models import JobImage


def create_job_image(
    session: Session,
    job_id: int,
    filename: str,
    local_path: str,
    is_final: bool,
    image_number: Optional[int] = None,
    file_size: Optional[int] = None,
    signature: Optional[int] = None,
    signature_error: Optional[str] = None,
) -> JobImage:
    """Record an image received for a job"""
    image = JobImage(
        id=str(uuid.uuid4()),
        job_id=job_id,
        image_number=image_number,
        is_final=is_final,
        filename=filename,
        local_path=local_path,
        file_size=file_size,
        signature=signature,
        signature_error=signature_error,
        received_at=datetime.utcnow(),
    )
    session.add(image)
    session.commit()
    session.refresh(image)
    return image


def get_job_image_by_filename(session: Session, filename: str) -> Optional[JobImage]:
    """Get the latest record for a stored filename"""
    return (
        session.query(JobImage)
        .filter(JobImage.filename == filename)
        .order_by(JobImage.received_at.desc())
        .first()
    )


def list_job_images(
    session: Session,
    job_id: Optional[int] = None,
    limit: int = 100,
    offset: int = 0,
) -> List[JobImage]:
    """List received images in arrival order"""
    query = session.query(JobImage)
    if job_id is not None:
        query = query.filter(JobImage.job_id == job_id)
    return query.order_by(JobImage.received_at).offset(offset).limit(limit).all()
