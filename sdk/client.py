"""
ComfyUI Client SDK

Simple Python SDK for submitting jobs through a ComfyUI client node.
Handles submission, progress tracking and image retrieval.
"""

import json
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import requests
import websocket

from comfyui_client.models import ImageJobParameters, JobParameters


def _raise_for_status(response: requests.Response):
    """Raise requests.HTTPError carrying the client node's error detail"""
    if response.ok:
        return
    try:
        error_data = response.json()
        error_detail = error_data.get('detail', error_data)
        error_msg = f"Client Error ({response.status_code}): {error_detail}"
    except ValueError:
        error_msg = f"Client Error ({response.status_code}): {response.text}"

    error = requests.HTTPError(error_msg, response=response)
    error.args = (error_msg,)  # Ensure str(error) returns our message
    raise error


class JobEventTracker:
    """
    Follows the job event stream of a client node over WebSocket

    Events look like {"type": "job.image", "data": {...}, "timestamp": "..."}.
    """

    def __init__(self, ws_url: str, job_id: Optional[int] = None):
        """
        Initialize the tracker

        Args:
            ws_url: WebSocket URL of the /ws/jobs endpoint
            job_id: Stop once this job completes (None tracks until stopped)
        """
        self.ws_url = ws_url
        self.job_id = job_id
        self.completed = threading.Event()
        self._ws_app = None
        self._ws_thread = None

    def start(
        self,
        message_handler: Callable[[Dict[str, Any]], None],
        error_handler: Optional[Callable[[Exception], None]] = None
    ) -> threading.Thread:
        """Start tracking in a background thread"""

        def on_message(ws, message):
            try:
                data = json.loads(message)
                message_handler(data)
                if (
                    self.job_id is not None
                    and data.get('type') == 'job.completed'
                    and data.get('data', {}).get('job_id') == self.job_id
                ):
                    self.completed.set()
            except Exception as e:
                if error_handler:
                    error_handler(e)

        def on_error(ws, error):
            if error_handler:
                error_handler(error)

        def on_close(ws, close_status_code, close_msg):
            self.completed.set()

        self._ws_app = websocket.WebSocketApp(
            self.ws_url,
            on_message=on_message,
            on_error=on_error,
            on_close=on_close
        )
        self._ws_thread = threading.Thread(target=self._ws_app.run_forever, daemon=True)
        self._ws_thread.start()
        return self._ws_thread

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for the tracked job to complete; returns False on timeout"""
        return self.completed.wait(timeout)

    def stop(self):
        """Stop WebSocket tracking"""
        if self._ws_app:
            self._ws_app.close()


def print_job_event(message: Dict[str, Any]):
    """Generic handler that prints job events to the console"""
    msg_type = message.get('type')
    data = message.get('data', {})
    timestamp = datetime.utcnow().strftime('%H:%M:%S.%f')[:-3]

    if msg_type == 'job.queued':
        print(f"[{timestamp}] Job {data.get('job_id')} queued")
    elif msg_type == 'job.image':
        kind = "final image" if data.get('is_final') else "image"
        print(f"[{timestamp}] Job {data.get('job_id')}: received {kind} {data.get('filename')}")
    elif msg_type == 'job.completed':
        print(f"[{timestamp}] Job {data.get('job_id')} completed ({data.get('image_count')} images)")
    elif msg_type in ('job.error', 'job.send_failed'):
        print(f"[{timestamp}] ERROR: {data.get('error')}")
    elif msg_type == 'job.payment_required':
        print(f"[{timestamp}] Payment required")
    else:
        print(f"[{timestamp}] {msg_type}: {data}")


class ComfyUIClientSDK:
    """
    SDK for a ComfyUI client node

    Example:
        >>> sdk = ComfyUIClientSDK(client_url="http://localhost:8000")
        >>> sdk.set_router_process("router:provider_dao_router:publisher.os")
        >>> sdk.set_rollup_sequencer("sequencer.os@sequencer:provider-dao-rollup:publisher.os")
        >>> result = sdk.run_job("basic", parameters={"positive_prompt": "a cat"})
        >>> print(result["job_id"])
    """

    def __init__(self, client_url: str = "http://localhost:8000"):
        """
        Initialize the SDK

        Args:
            client_url: URL of the client node API
        """
        self.client_url = client_url.rstrip('/')
        self.session = requests.Session()

    @property
    def ws_url(self) -> str:
        if self.client_url.startswith("https://"):
            return "wss://" + self.client_url[len("https://"):] + "/ws/jobs"
        return "ws://" + self.client_url.split("://", 1)[-1] + "/ws/jobs"

    def _get(self, path: str, **kwargs) -> Any:
        response = self.session.get(f"{self.client_url}{path}", **kwargs)
        _raise_for_status(response)
        return response.json()

    def _post(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        response = self.session.post(f"{self.client_url}{path}", json=payload)
        _raise_for_status(response)
        return response.json()

    def health_check(self) -> Dict[str, Any]:
        """Check the client node is up"""
        return self._get("/health")

    def run_job(self, workflow: str, parameters: Union[str, Dict[str, Any]]) -> Dict[str, Any]:
        """
        Submit a RunJob request

        Args:
            workflow: Workflow template name
            parameters: Serialized parameters, or a dict that is serialized to JSON

        Returns:
            Submission result: submission_id, status ('queued',
            'payment_required', 'error' or 'submitted'), router_address,
            job_id, error

        Raises:
            requests.HTTPError: If the node is not configured (409) or the
                router cannot be reached (502)
        """
        if not isinstance(parameters, str):
            parameters = json.dumps(parameters)
        params = JobParameters(workflow=workflow, parameters=parameters)
        return self._post("/jobs", params.model_dump())

    def run_image_job(self, params: ImageJobParameters) -> Dict[str, Any]:
        """
        Submit an image-generation job from typed parameters

        Example:
            >>> params = ImageJobParameters(
            ...     workflow="basic",
            ...     positive_prompt="a lighthouse at dusk",
            ...     cfg_scale={"min": 0, "max": 100}
            ... )
            >>> sdk.run_image_job(params)
        """
        job = JobParameters.from_image_parameters(params)
        return self.run_job(job.workflow, job.parameters)

    def run_job_and_wait(
        self,
        workflow: str,
        parameters: Union[str, Dict[str, Any]],
        timeout: Optional[float] = 600,
        poll_interval: float = 2.0
    ) -> List[Dict[str, Any]]:
        """
        Submit a job and wait until its final image arrives

        Returns:
            Images of the job

        Raises:
            RuntimeError: If the router did not queue the job
            TimeoutError: If the final image does not arrive in time
        """
        result = self.run_job(workflow, parameters)
        if result['status'] != 'queued':
            raise RuntimeError(f"Job not queued ({result['status']}): {result.get('error')}")
        return self.wait_for_job(result['job_id'], poll_interval=poll_interval, timeout=timeout)

    def wait_for_job(
        self,
        job_id: int,
        poll_interval: float = 2.0,
        timeout: Optional[float] = None
    ) -> List[Dict[str, Any]]:
        """
        Poll until the final image of a job has been received

        Args:
            job_id: Provider job ID
            poll_interval: How often to check (seconds)
            timeout: Maximum time to wait (seconds), None for no timeout

        Returns:
            Images of the job

        Raises:
            TimeoutError: If timeout is exceeded
        """
        start_time = time.time()

        while True:
            images = self.list_images(job_id)
            if any(image['is_final'] for image in images):
                return images

            if timeout and (time.time() - start_time) > timeout:
                raise TimeoutError(f"Job {job_id} did not complete within {timeout} seconds")

            time.sleep(poll_interval)

    def list_jobs(self, limit: int = 100, status: Optional[str] = None) -> List[Dict[str, Any]]:
        """List RunJob submissions, newest first"""
        params: Dict[str, Any] = {"limit": limit}
        if status:
            params["status"] = status
        return self._get("/jobs", params=params)

    def current_job(self) -> Dict[str, Any]:
        """Get the job whose images are currently arriving"""
        return self._get("/jobs/current")

    def list_images(self, job_id: int) -> List[Dict[str, Any]]:
        """List images received for a job"""
        return self._get(f"/jobs/{job_id}/images")

    def get_job_logs(self, job_id: int) -> Dict[str, Any]:
        """Get the event log entries of a job"""
        return self._get(f"/jobs/{job_id}/logs")

    def download_image(self, filename: str, save_path: Optional[Path] = None) -> bytes:
        """
        Download a received image

        Args:
            filename: Image filename (e.g. '42-final.jpg')
            save_path: Optional path to save the image

        Returns:
            Image bytes
        """
        response = self.session.get(f"{self.client_url}/images/{filename}")
        _raise_for_status(response)

        image_data = response.content

        if save_path:
            save_path = Path(save_path)
            save_path.parent.mkdir(parents=True, exist_ok=True)
            save_path.write_bytes(image_data)

        return image_data

    def set_router_process(self, process_id: str) -> Dict[str, Any]:
        """Set the router process id (process:package:publisher)"""
        return self._post("/admin/router-process", {"process_id": process_id})

    def set_rollup_sequencer(self, address: str) -> Dict[str, Any]:
        """Set the rollup sequencer address and fetch the DAO state from it"""
        return self._post("/admin/rollup-sequencer", {"address": address})

    def refresh_rollup_state(self) -> Dict[str, Any]:
        """Re-read the DAO state from the rollup sequencer"""
        return self._post("/admin/rollup-state")

    def get_state(self) -> Dict[str, Any]:
        """Get the client state"""
        return self._get("/admin/state")

    def track_jobs(
        self,
        message_handler: Optional[Callable[[Dict[str, Any]], None]] = None,
        error_handler: Optional[Callable[[Exception], None]] = None,
        job_id: Optional[int] = None,
        block: bool = False,
        timeout: Optional[float] = None
    ) -> JobEventTracker:
        """
        Track job events in real time

        Args:
            message_handler: Called with every event (defaults to printing)
            error_handler: Called with WebSocket errors
            job_id: When blocking, return once this job completes
            block: Wait for job_id to complete before returning
            timeout: Maximum time to block (seconds)

        Returns:
            The running JobEventTracker (stopped already when block=True)
        """
        tracker = JobEventTracker(self.ws_url, job_id=job_id)
        tracker.start(message_handler or print_job_event, error_handler)

        if block:
            tracker.wait(timeout)
            tracker.stop()

        return tracker
