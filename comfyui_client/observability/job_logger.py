"""
Job Event Logger using structlog

Appends one JSON line per job event to a single JSONL file so that the
history of a submission or provider job can be reconstructed later.
"""

import threading
from pathlib import Path
from typing import Any, Optional

import structlog

LOG_FILENAME = "jobs.jsonl"


class JobEventLogger:
    """Writes job events as JSON lines"""

    def __init__(self, log_dir: Path):
        """
        Initialize the event logger

        Args:
            log_dir: Directory the JSONL file lives in
        """
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.log_file = self.log_dir / LOG_FILENAME
        self._lock = threading.Lock()
        self._processors = [
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(default=str),
        ]

    def log(self, event: str, level: str = "info", **fields: Any):
        """
        Append an event

        Args:
            event: Event name (e.g. 'job.submitted', 'job.image')
            level: Log level method to call
            **fields: Event fields (job_id, submission_id, ...)
        """
        with self._lock, open(self.log_file, 'a') as f:
            logger = structlog.wrap_logger(
                structlog.PrintLogger(file=f),
                processors=self._processors
            )
            getattr(logger, level)(event, **fields)

    def log_submitted(self, submission_id: str, workflow: str, router_address: str):
        self.log("job.submitted", submission_id=submission_id, workflow=workflow, router=router_address)

    def log_queued(self, job_id: int, submission_id: Optional[str] = None):
        self.log("job.queued", job_id=job_id, submission_id=submission_id)

    def log_payment_required(self, submission_id: Optional[str] = None):
        self.log("job.payment_required", level="warning", submission_id=submission_id)

    def log_run_error(self, message: str, submission_id: Optional[str] = None):
        self.log("job.error", level="error", submission_id=submission_id, error=message)

    def log_send_failed(self, submission_id: str, error: str):
        self.log("job.send_failed", level="error", submission_id=submission_id, error=error)

    def log_image(self, job_id: int, filename: str, is_final: bool, signature_ok: bool):
        self.log(
            "job.image",
            job_id=job_id,
            filename=filename,
            is_final=is_final,
            signature_ok=signature_ok
        )

    def log_completed(self, job_id: int, image_count: int):
        self.log("job.completed", job_id=job_id, image_count=image_count)
