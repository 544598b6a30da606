"""
Client Process

The client node's state machine: admin configuration, forwarding RunJob
requests to the DAO router, handling router responses and storing the images
providers send back in JobUpdate messages.
"""

import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, Optional

from ..database import (
    get_session,
    init_engine,
    init_db,
    create_submission,
    update_submission_status,
    get_latest_pending_submission,
    create_job_image
)
from ..errors import (
    ChainStateError,
    MessageDecodeError,
    NotConfiguredError,
    PermissionDeniedError,
    TransportError
)
from ..models.dao import OnChainDaoState
from ..models.messages import (
    AdminRequest,
    AdminResponse,
    GetRollupState,
    JobParameters,
    JobQueued,
    JobUpdate,
    JobUpdateAck,
    PaymentRequired,
    PublicResponse,
    RunError,
    SetRollupSequencer,
    SetRouterProcess,
    decode_admin_request,
    decode_public_request,
    decode_public_response,
    decode_sequencer_response,
    encode_public_request,
    encode_public_response,
    encode_sequencer_read,
    is_admin_request
)
from ..models.requests import MessageEnvelope
from ..observability import JobEventLogger
from .addressing import Address, ProcessId
from .config import Settings
from .events import JobEventHub
from .state import ClientState, CurrentJob, StateStore
from .storage import ImageStorage
from .transport import MessageTransport

logger = logging.getLogger(__name__)

ROUTER_TIMEOUT_SECONDS = 20
SEQUENCER_TIMEOUT_SECONDS = 5


@dataclass
class RunOutcome:
    """Result of forwarding a RunJob request"""
    submission_id: str
    status: str
    router_address: str
    job_id: Optional[int] = None
    error: Optional[str] = None
    response_body: Any = None


class ClientProcess:
    """
    State machine of the client node

    All state mutations happen under one lock. Network calls are made outside
    it so JobUpdates can arrive while a RunJob is still awaiting its response.
    """

    def __init__(
        self,
        our: Address,
        transport: MessageTransport,
        store: StateStore,
        storage: ImageStorage,
        event_logger: JobEventLogger,
        events: Optional[JobEventHub] = None
    ):
        self.our = our
        self.transport = transport
        self.store = store
        self.storage = storage
        self.event_logger = event_logger
        self.events = events or JobEventHub()
        self._lock = threading.RLock()
        self.state: ClientState = store.load()
        logger.info(f"{self.our.process}: begin")

    def _save(self):
        self.store.save(self.state)

    def snapshot(self) -> dict:
        """Get a copy of the current state as a dictionary"""
        with self._lock:
            return self.state.to_dict()

    def close(self):
        self.transport.close()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def handle_message(self, envelope: MessageEnvelope) -> MessageEnvelope:
        """
        Handle an incoming message and build the reply envelope

        Requests tagged as admin requests go to the admin handler; every other
        request is decoded as a public request. Non-request messages are late
        responses to a RunJob we forwarded earlier.
        """
        if envelope.is_request:
            body = self.handle_request(envelope)
        else:
            self.handle_response(envelope)
            body = None
        return MessageEnvelope.build(source=str(self.our), body=body, is_request=False)

    def handle_request(self, envelope: MessageEnvelope) -> Any:
        """Handle a request envelope and return the reply body"""
        source = Address.parse(envelope.source)

        if is_admin_request(envelope.body):
            request = decode_admin_request(envelope.body)
            return self.handle_admin_request(source, request).to_wire()

        request = decode_public_request(envelope.body)
        if isinstance(request, JobParameters):
            outcome = self.run_job(request, source=source, body=envelope.body)
            return outcome.response_body

        self.handle_job_update(request, envelope.blob_bytes())
        return encode_public_response(JobUpdateAck())

    def handle_response(self, envelope: MessageEnvelope):
        """
        Handle a late response envelope from a router

        Only the router the latest pending RunJob was sent to may answer it.

        Raises:
            PermissionDeniedError: If nothing is pending or the sender is not that router
        """
        source = Address.parse(envelope.source)
        with get_session() as session:
            pending = get_latest_pending_submission(session)

        if pending is None:
            raise PermissionDeniedError(f"unsolicited response from {source}; no RunJob is pending")
        if str(source) != pending.router_address:
            raise PermissionDeniedError(
                f"response from {source} does not come from {pending.router_address}"
            )

        response = decode_public_response(envelope.body)
        self.handle_public_response(response, pending.id)

    # ------------------------------------------------------------------
    # Admin requests
    # ------------------------------------------------------------------

    def handle_admin_request(self, source: Address, request: AdminRequest) -> AdminResponse:
        """
        Apply an admin request

        Raises:
            PermissionDeniedError: If the request comes from another node
            AddressParseError: If the process id or address is malformed
        """
        if source.node != self.our.node:
            raise PermissionDeniedError(f"only our can make AdminRequests; rejecting from {source}")

        if isinstance(request, SetRouterProcess):
            process_id = ProcessId.parse(request.process_id)
            with self._lock:
                self.state.router_process = process_id
                self._save()
            logger.info(f"Router process set to {process_id}")
            return AdminResponse(kind="SetRouterProcess")

        if isinstance(request, SetRollupSequencer):
            address = Address.parse(request.address)
            with self._lock:
                self.state.rollup_sequencer = address
                self._save()
            logger.info(f"Rollup sequencer set to {address}")
            return AdminResponse(kind="SetRollupSequencer", err=self._refresh_chain_state())

        if isinstance(request, GetRollupState):
            with self._lock:
                configured = self.state.rollup_sequencer is not None
            if not configured:
                err = "no rollup sequencer set"
                logger.error(err)
                return AdminResponse(kind="GetRollupState", err=err)
            return AdminResponse(kind="GetRollupState", err=self._refresh_chain_state())

        raise MessageDecodeError(f"unsupported admin request {request!r}")

    def _refresh_chain_state(self) -> Optional[str]:
        try:
            self.fetch_chain_state()
        except (TransportError, ChainStateError) as e:
            logger.error(f"Failed to fetch chain state: {e}")
            return str(e)
        return None

    def fetch_chain_state(self) -> OnChainDaoState:
        """
        Read the full DAO state from the rollup sequencer and store it

        The read request travels in the blob with an empty body, and the
        sequencer answers in the reply blob.

        Raises:
            NotConfiguredError: If no sequencer is set
            TransportError: If the sequencer cannot be reached
            ChainStateError: If the reply is not a full state read
        """
        with self._lock:
            sequencer = self.state.rollup_sequencer
        if sequencer is None:
            raise NotConfiguredError(
                "fetch_chain_state rollup_sequencer must be set before chain state can be fetched"
            )

        read_request = json.dumps(encode_sequencer_read("All")).encode()
        reply = self.transport.send_and_await_response(
            sequencer,
            body=None,
            blob=read_request,
            timeout=SEQUENCER_TIMEOUT_SECONDS
        )

        try:
            blob = reply.blob_bytes()
        except MessageDecodeError as e:
            raise ChainStateError(f"fetch_chain_state got unreadable blob: {e}") from e
        if blob is None:
            raise ChainStateError("fetch_chain_state didn't get back blob")

        try:
            kind, payload = decode_sequencer_response(json.loads(blob))
        except (ValueError, MessageDecodeError) as e:
            logger.error(f"Unexpected sequencer reply: {blob[:200]!r}")
            raise ChainStateError("fetch_chain_state got wrong Response back") from e
        if kind != "All":
            raise ChainStateError(f"fetch_chain_state got wrong Response back: Read({kind})")

        with self._lock:
            self.state.on_chain_state = payload
            self._save()
        logger.info(f"Chain state updated: routers={payload.routers}, members={len(payload.members)}")
        return payload

    # ------------------------------------------------------------------
    # Public requests
    # ------------------------------------------------------------------

    def _router_address(self) -> Address:
        if self.state.router_process is None:
            raise NotConfiguredError("cannot send job until AdminRequest::SetRouterProcess")
        if self.state.rollup_sequencer is None:
            raise NotConfiguredError("cannot send job until AdminRequest::SetRollupSequencer")
        routers = self.state.on_chain_state.routers
        if not routers:
            raise NotConfiguredError("no routers in on-chain state; fetch rollup state first")
        return Address(node=routers[0], process=self.state.router_process)

    def run_job(
        self,
        params: JobParameters,
        source: Optional[Address] = None,
        body: Any = None
    ) -> RunOutcome:
        """
        Forward a RunJob request to the DAO router

        Args:
            params: Job parameters
            source: Requesting address (defaults to our own)
            body: Original request body, forwarded unchanged when given

        Returns:
            RunOutcome describing the router's answer

        Raises:
            NotConfiguredError: If router process, sequencer or routers are missing
            TransportError: If the router cannot be reached (current job is cleared)
                or its reply is unreadable
        """
        with self._lock:
            target = self._router_address()

        wire_body = body if body is not None else encode_public_request(params)
        with get_session() as session:
            submission = create_submission(
                session,
                workflow=params.workflow,
                parameters=params.parameters,
                source=str(source or self.our),
                router_address=str(target),
            )
        submission_id = submission.id
        self.event_logger.log_submitted(submission_id, params.workflow, str(target))
        self.events.publish("job.submitted", submission_id=submission_id, workflow=params.workflow)
        logger.info(f"Forwarding RunJob {params.workflow!r} to {target}")

        try:
            reply = self.transport.send_and_await_response(
                target,
                body=wire_body,
                timeout=ROUTER_TIMEOUT_SECONDS
            )
        except TransportError as e:
            logger.error(f"SendError: {e}")
            with self._lock:
                self.state.current_job = None
                self._save()
            with get_session() as session:
                update_submission_status(session, submission_id, "send_failed", error_message=str(e))
            self.event_logger.log_send_failed(submission_id, str(e))
            self.events.publish("job.send_failed", submission_id=submission_id, error=str(e))
            raise

        if reply.body is None:
            logger.info(f"Router accepted RunJob {submission_id}; response will arrive later")
            return RunOutcome(submission_id=submission_id, status="submitted", router_address=str(target))

        try:
            response = decode_public_response(reply.body)
        except MessageDecodeError as e:
            error = f"router {target} sent an unreadable response: {e}"
            logger.error(error)
            with get_session() as session:
                update_submission_status(session, submission_id, "error", error_message=error)
            self.event_logger.log_run_error(error, submission_id)
            self.events.publish("job.error", submission_id=submission_id, error=error)
            raise TransportError(error) from e

        outcome = self.handle_public_response(response, submission_id)
        outcome.router_address = str(target)
        outcome.response_body = reply.body
        return outcome

    def handle_public_response(self, response: PublicResponse, submission_id: Optional[str] = None) -> RunOutcome:
        """Apply a router response to the state and the submission record"""
        outcome = RunOutcome(submission_id=submission_id or "", status="submitted", router_address="")

        if isinstance(response, JobQueued):
            with self._lock:
                self.state.current_job = CurrentJob(job_id=response.job_id)
                self._save()
            logger.info(f"got RunResponse::JobQueued for {response.job_id}")
            outcome.status = "queued"
            outcome.job_id = response.job_id
            self.event_logger.log_queued(response.job_id, submission_id)
            self.events.publish("job.queued", job_id=response.job_id, submission_id=submission_id)
        elif isinstance(response, PaymentRequired):
            logger.info("got RunResponse::PaymentRequired")
            outcome.status = "payment_required"
            self.event_logger.log_payment_required(submission_id)
            self.events.publish("job.payment_required", submission_id=submission_id)
        elif isinstance(response, RunError):
            logger.info(f"got RunResponse::Error: {response.message}")
            outcome.status = "error"
            outcome.error = response.message
            self.event_logger.log_run_error(response.message, submission_id)
            self.events.publish("job.error", submission_id=submission_id, error=response.message)
        else:
            return outcome

        if submission_id:
            with get_session() as session:
                update_submission_status(
                    session,
                    submission_id,
                    outcome.status,
                    job_id=outcome.job_id,
                    error_message=outcome.error
                )
        return outcome

    def handle_job_update(self, update: JobUpdate, blob: Optional[bytes]):
        """
        Store an image sent by a provider

        Images are named `<job_id>-<n>.jpg`, or `<job_id>-final.jpg` for the
        final one. An update for an unknown job makes that job current.

        Raises:
            MessageDecodeError: If the update carries no image blob
        """
        with self._lock:
            if self.state.current_job is None:
                logger.warning("unexpectedly got JobUpdate with no current_job set")
                self.state.current_job = CurrentJob(job_id=update.job_id)
                self._save()

            if blob is None:
                raise MessageDecodeError("got PublicRequest::JobUpdate with no blob")

            current_job = self.state.current_job
            image_number = current_job.next_image_number
            label = "final" if update.is_final else str(image_number)
            current_job.next_image_number += 1
            if update.is_final:
                self.state.current_job = None
            self._save()

            path = self.storage.write_image(update.job_id, label, blob)

        with get_session() as session:
            create_job_image(
                session,
                job_id=update.job_id,
                filename=path.name,
                local_path=str(path),
                is_final=update.is_final,
                image_number=None if update.is_final else image_number,
                file_size=len(blob),
                signature=update.signature.ok,
                signature_error=update.signature.err
            )

        if not update.signature.is_ok:
            logger.warning(f"Job {update.job_id} image {label} has signature error: {update.signature.err}")
        self.event_logger.log_image(update.job_id, path.name, update.is_final, update.signature.is_ok)
        self.events.publish(
            "job.image",
            job_id=update.job_id,
            filename=path.name,
            is_final=update.is_final
        )
        if update.is_final:
            logger.info(f"Job {update.job_id} complete after {image_number + 1} image(s)")
            self.event_logger.log_completed(update.job_id, image_number + 1)
            self.events.publish("job.completed", job_id=update.job_id, image_count=image_number + 1)


def build_client_process(
    settings: Settings,
    transport: Optional[MessageTransport] = None,
    events: Optional[JobEventHub] = None
) -> ClientProcess:
    """
    Wire up a ClientProcess from settings

    Args:
        settings: Client settings
        transport: Optional transport (defaults to HTTP over the node directory)
        events: Optional event hub shared with the API

    Returns:
        Ready ClientProcess with state loaded from the database
    """
    our = settings.our_address
    settings.ensure_directories()
    init_engine(settings.resolved_database_url)
    init_db()

    return ClientProcess(
        our=our,
        transport=transport or MessageTransport(our, settings.nodes),
        store=StateStore(),
        storage=ImageStorage(settings.images_dir),
        event_logger=JobEventLogger(settings.logs_dir),
        events=events
    )
