"""
Tests for image storage and the job event log
"""

import json
import os
import time

from comfyui_client.core import ImageStorage
from comfyui_client.observability import JobEventLogger, JobLogReader, find_job_events


class TestImageStorage:

    def test_write_and_find(self, tmp_path):
        storage = ImageStorage(tmp_path / "images")
        path = storage.write_image(12, "0", b"abc")

        assert path.name == "12-0.jpg"
        assert storage.get_image_path("12-0.jpg") == path
        assert storage.get_image_path("12-1.jpg") is None

    def test_rewrite_replaces_file(self, tmp_path):
        storage = ImageStorage(tmp_path)
        storage.write_image(1, "final", b"old")
        storage.write_image(1, "final", b"new")
        assert storage.get_image_path("1-final.jpg").read_bytes() == b"new"

    def test_rejects_path_traversal(self, tmp_path):
        storage = ImageStorage(tmp_path / "images")
        (tmp_path / "secret.jpg").write_bytes(b"x")
        assert storage.get_image_path("../secret.jpg") is None
        assert storage.get_image_path("") is None

    def test_list_images_by_job(self, tmp_path):
        storage = ImageStorage(tmp_path)
        storage.write_image(1, "0", b"a")
        storage.write_image(1, "final", b"b")
        storage.write_image(10, "0", b"c")

        names = [image["filename"] for image in storage.list_images(job_id=1)]
        assert names == ["1-0.jpg", "1-final.jpg"]
        assert len(storage.list_images()) == 3

    def test_cleanup_old_images(self, tmp_path):
        storage = ImageStorage(tmp_path)
        old = storage.write_image(1, "0", b"a")
        storage.write_image(2, "0", b"b")
        week_ago = time.time() - 7 * 86400
        os.utime(old, (week_ago, week_ago))

        assert storage.cleanup_old_images(days=3) == 1
        assert storage.get_image_path("1-0.jpg") is None
        assert storage.get_image_path("2-0.jpg") is not None

    def test_delete_image(self, tmp_path):
        storage = ImageStorage(tmp_path)
        storage.write_image(3, "final", b"x")
        assert storage.delete_image("3-final.jpg")
        assert not storage.delete_image("3-final.jpg")


class TestJobEventLog:

    def test_events_are_json_lines(self, tmp_path):
        logger = JobEventLogger(tmp_path)
        logger.log_submitted("sub-1", "basic", "router.os@r:p:pub")
        logger.log_queued(42, "sub-1")

        lines = logger.log_file.read_text().splitlines()
        assert len(lines) == 2
        first = json.loads(lines[0])
        assert first["event"] == "job.submitted"
        assert first["level"] == "info"
        assert first["submission_id"] == "sub-1"
        assert "timestamp" in first

    def test_job_events_include_submission(self, tmp_path):
        logger = JobEventLogger(tmp_path)
        logger.log_submitted("sub-1", "basic", "router.os@r:p:pub")
        logger.log_submitted("sub-2", "basic", "router.os@r:p:pub")
        logger.log_queued(42, "sub-1")
        logger.log_image(42, "42-final.jpg", is_final=True, signature_ok=True)
        logger.log_run_error("no providers", "sub-2")

        events = [e["event"] for e in find_job_events(logger.log_file, 42)]
        assert events == ["job.submitted", "job.queued", "job.image"]

        reader = JobLogReader(logger.log_file)
        assert reader.get_submission_ids(42) == ["sub-1"]
        assert reader.get_last_error(42) is None
        assert reader.get_submission_events("sub-2")[-1]["level"] == "error"

    def test_missing_log_file(self, tmp_path):
        assert find_job_events(tmp_path / "jobs.jsonl", 1) == []

    def test_skips_corrupt_lines(self, tmp_path):
        log_file = tmp_path / "jobs.jsonl"
        log_file.write_text('{"event": "job.queued", "job_id": 1}\nnot json\n')
        assert len(JobLogReader(log_file).entries) == 1
