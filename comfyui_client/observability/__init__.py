"""
Observability - Job Event Logging

JSONL event log of job submissions, router responses and received images.
"""

from .job_logger import JobEventLogger
from .log_reader import JobLogReader, find_job_events

__all__ = [
    'JobEventLogger',
    'JobLogReader',
    'find_job_events'
]
