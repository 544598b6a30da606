"""
Job API Routes

Endpoints for submitting jobs, inspecting results and streaming job events.
"""

import asyncio
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse

from ..core import ClientProcess, JobEventHub
from ..database import get_session, list_submissions, list_job_images
from ..models import (
    JobParameters,
    RunJobResponse,
    CurrentJobResponse,
    JobSubmissionResponse,
    JobImageResponse
)
from ..observability import find_job_events
from .deps import get_events, get_process

router = APIRouter(tags=["jobs"])


@router.post("/jobs", response_model=RunJobResponse)
def submit_job(params: JobParameters, process: ClientProcess = Depends(get_process)):
    """
    Submit a RunJob request from this node

    Args:
        params: Workflow name and serialized parameters

    Returns:
        Submission id, router answer and provider job id when queued
    """
    outcome = process.run_job(params)
    return RunJobResponse(
        submission_id=outcome.submission_id,
        status=outcome.status,
        router_address=outcome.router_address,
        job_id=outcome.job_id,
        error=outcome.error
    )


@router.get("/jobs", response_model=List[JobSubmissionResponse])
def get_jobs(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    status: Optional[str] = Query(None, description="Filter by submission status")
):
    """List RunJob submissions, newest first"""
    with get_session() as session:
        submissions = list_submissions(session, limit=limit, offset=offset, status=status)

    return [
        JobSubmissionResponse(
            submission_id=s.id,
            workflow=s.workflow,
            parameters=s.parameters,
            router_address=s.router_address,
            status=s.status,
            job_id=s.job_id,
            error=s.error_message,
            submitted_at=s.submitted_at
        )
        for s in submissions
    ]


@router.get("/jobs/current", response_model=CurrentJobResponse)
def get_current_job(process: ClientProcess = Depends(get_process)):
    """Get the job whose images are currently arriving"""
    current_job = process.snapshot()["current_job"]
    if current_job is None:
        return CurrentJobResponse()
    return CurrentJobResponse(active=True, **current_job)


@router.get("/jobs/{job_id}/images", response_model=List[JobImageResponse])
def get_job_images(job_id: int, request: Request):
    """List images received for a job, in arrival order"""
    with get_session() as session:
        images = list_job_images(session, job_id=job_id, limit=1000)

    return [
        JobImageResponse(
            job_id=image.job_id,
            filename=image.filename,
            image_number=image.image_number,
            is_final=image.is_final,
            file_size=image.file_size,
            signature=image.signature,
            signature_error=image.signature_error,
            received_at=image.received_at,
            url=str(request.url_for("serve_image", filename=image.filename))
        )
        for image in images
    ]


@router.get("/jobs/{job_id}/logs")
def get_job_logs(job_id: int, process: ClientProcess = Depends(get_process)):
    """
    Get the event log entries of a job

    Args:
        job_id: Provider job ID

    Returns:
        Log entries of the job and the submission that produced it
    """
    entries = find_job_events(process.event_logger.log_file, job_id)
    if not entries:
        raise HTTPException(status_code=404, detail="No events for job")

    return {
        "job_id": job_id,
        "log_file_path": str(process.event_logger.log_file),
        "log_entries": entries,
        "entry_count": len(entries)
    }


@router.get("/images/{filename}", name="serve_image")
def serve_image(filename: str, process: ClientProcess = Depends(get_process)):
    """
    Serve a stored image

    Args:
        filename: Image filename

    Returns:
        Image file
    """
    image_path = process.storage.get_image_path(filename)

    if not image_path:
        raise HTTPException(status_code=404, detail="Image not found")

    return FileResponse(
        image_path,
        media_type="image/jpeg",
        headers={"Content-Disposition": f"inline; filename={filename}"}
    )


@router.websocket("/ws/jobs")
async def job_events(websocket: WebSocket, events: JobEventHub = Depends(get_events)):
    """
    Stream job events (job.submitted, job.queued, job.image, job.completed, ...)

    The client can send "close" to end the stream.
    """
    # Subscribe before accepting so no event is missed once the client is connected
    queue = events.subscribe()
    await websocket.accept()

    async def receive_until_close():
        while await websocket.receive_text() != "close":
            pass

    receiver = asyncio.create_task(receive_until_close())
    try:
        while not receiver.done():
            try:
                message = await asyncio.wait_for(queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            await websocket.send_json(message)
    except WebSocketDisconnect:
        pass
    finally:
        events.unsubscribe(queue)
        if receiver.done() and not receiver.cancelled():
            # Disconnects surface here as WebSocketDisconnect
            receiver.exception()
        else:
            receiver.cancel()
