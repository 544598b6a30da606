"""
Log Reader

Utilities for reading job events back from the JSONL event log.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Any, List, Optional

logger = logging.getLogger(__name__)


class JobLogReader:
    """Reader for the job event log"""

    def __init__(self, log_file: Path):
        """
        Initialize log reader

        Args:
            log_file: Path to the .jsonl log file
        """
        self.log_file = Path(log_file)
        self.entries: List[Dict[str, Any]] = []
        self.load()

    def load(self):
        """Load all log entries from file; a missing file means no events yet"""
        self.entries = []
        if not self.log_file.exists():
            return

        with open(self.log_file, 'r') as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entry = json.loads(line)
                    entry['_line_number'] = line_num
                    self.entries.append(entry)
                except json.JSONDecodeError as e:
                    logger.warning(f"Failed to parse line {line_num} of {self.log_file}: {e}")

    def get_events_by_type(self, event_type: str) -> List[Dict[str, Any]]:
        """
        Get all events of a specific type

        Args:
            event_type: Event type (e.g., 'job.queued', 'job.image')

        Returns:
            List of matching events
        """
        return [e for e in self.entries if e.get('event') == event_type]

    def get_submission_ids(self, job_id: int) -> List[str]:
        """Get the submission ids that were assigned job_id"""
        return [
            e['submission_id'] for e in self.get_events_by_type('job.queued')
            if e.get('job_id') == job_id and e.get('submission_id')
        ]

    def get_job_events(self, job_id: int) -> List[Dict[str, Any]]:
        """
        Get every event of a provider job, including the events of the
        submission that produced it

        Args:
            job_id: Provider job ID

        Returns:
            Events in the order they were written
        """
        submission_ids = set(self.get_submission_ids(job_id))
        return [
            e for e in self.entries
            if e.get('job_id') == job_id or e.get('submission_id') in submission_ids
        ]

    def get_submission_events(self, submission_id: str) -> List[Dict[str, Any]]:
        """Get every event logged for a submission"""
        return [e for e in self.entries if e.get('submission_id') == submission_id]

    def get_last_error(self, job_id: int) -> Optional[Dict[str, Any]]:
        """Get the latest error event of a job, if any"""
        errors = [
            e for e in self.get_job_events(job_id)
            if e.get('event') in ('job.error', 'job.send_failed')
        ]
        return errors[-1] if errors else None


def find_job_events(log_file: Path, job_id: int) -> List[Dict[str, Any]]:
    """
    Read the events of one job

    Args:
        log_file: Path to the JSONL event log
        job_id: Provider job ID

    Returns:
        Matching events
    """
    return JobLogReader(log_file).get_job_events(job_id)
