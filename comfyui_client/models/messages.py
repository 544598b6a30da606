"""
Wire Messages

Message bodies exchanged with routers, providers and the rollup sequencer.

Enums are encoded externally tagged: a unit variant is a bare string
("GetRollupState") and a data variant is a single-key object
({"RunJob": {...}}).
"""

from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

from ..errors import MessageDecodeError
from .dao import OnChainDaoState
from .parameters import ImageJobParameters

UNIT = object()


def split_variant(data: Any) -> Tuple[str, Any]:
    """
    Split an externally tagged enum value into (tag, payload)

    Unit variants return the UNIT sentinel as payload.

    Raises:
        MessageDecodeError: If data is neither a string nor a single-key object
    """
    if isinstance(data, str):
        return data, UNIT
    if isinstance(data, dict) and len(data) == 1:
        (tag, payload), = data.items()
        return tag, payload
    raise MessageDecodeError(f"expected a tagged variant, got {data!r}")


def _validate(model, payload: Any, tag: str):
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise MessageDecodeError(f"invalid {tag} payload: {e}") from e


# ---------------------------------------------------------------------------
# Public requests and responses
# ---------------------------------------------------------------------------


class JobParameters(BaseModel):
    """Parameters of a RunJob request"""
    workflow: str = Field(..., description="Name of the workflow template")
    parameters: str = Field(..., description="Serialized workflow parameters (JSON text)")

    @classmethod
    def from_image_parameters(cls, params: ImageJobParameters) -> "JobParameters":
        return cls(workflow=params.workflow, parameters=params.to_parameters_string())


class SignatureResult(BaseModel):
    """Provider signature over a job update: either Ok(u64) or Err(str)"""
    ok: Optional[int] = Field(None, ge=0)
    err: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _from_wire(cls, data: Any) -> Any:
        if isinstance(data, dict) and len(data) == 1:
            if "Ok" in data:
                return {"ok": data["Ok"]}
            if "Err" in data:
                return {"err": data["Err"]}
        return data

    @model_validator(mode="after")
    def _exactly_one(self) -> "SignatureResult":
        if (self.ok is None) == (self.err is None):
            raise ValueError("signature must be exactly one of Ok or Err")
        return self

    @property
    def is_ok(self) -> bool:
        return self.ok is not None

    def to_wire(self) -> Dict[str, Any]:
        return {"Ok": self.ok} if self.is_ok else {"Err": self.err}


class JobUpdate(BaseModel):
    """An image produced for a job; the image bytes travel in the blob"""
    job_id: int = Field(..., ge=0)
    is_final: bool
    signature: SignatureResult


class JobQueued(BaseModel):
    job_id: int = Field(..., ge=0)


class PaymentRequired(BaseModel):
    pass


class RunError(BaseModel):
    message: str


class JobUpdateAck(BaseModel):
    pass


PublicRequest = Union[JobParameters, JobUpdate]
RunResponse = Union[JobQueued, PaymentRequired, RunError]
PublicResponse = Union[JobQueued, PaymentRequired, RunError, JobUpdateAck]


def encode_public_request(request: PublicRequest) -> Dict[str, Any]:
    if isinstance(request, JobParameters):
        return {"RunJob": request.model_dump()}
    return {
        "JobUpdate": {
            "job_id": request.job_id,
            "is_final": request.is_final,
            "signature": request.signature.to_wire(),
        }
    }


def decode_public_request(body: Any) -> PublicRequest:
    tag, payload = split_variant(body)
    if tag == "RunJob" and payload is not UNIT:
        return _validate(JobParameters, payload, tag)
    if tag == "JobUpdate" and payload is not UNIT:
        return _validate(JobUpdate, payload, tag)
    raise MessageDecodeError(f"unknown PublicRequest variant {tag!r}")


def encode_public_response(response: PublicResponse) -> Any:
    if isinstance(response, JobUpdateAck):
        return "JobUpdate"
    if isinstance(response, JobQueued):
        inner: Any = {"JobQueued": {"job_id": response.job_id}}
    elif isinstance(response, PaymentRequired):
        inner = "PaymentRequired"
    else:
        inner = {"Error": response.message}
    return {"RunJob": inner}


def decode_public_response(body: Any) -> PublicResponse:
    tag, payload = split_variant(body)
    if tag == "JobUpdate" and payload is UNIT:
        return JobUpdateAck()
    if tag != "RunJob" or payload is UNIT:
        raise MessageDecodeError(f"unknown PublicResponse variant {tag!r}")

    run_tag, run_payload = split_variant(payload)
    if run_tag == "JobQueued" and run_payload is not UNIT:
        return _validate(JobQueued, run_payload, run_tag)
    if run_tag == "PaymentRequired" and run_payload is UNIT:
        return PaymentRequired()
    if run_tag == "Error" and isinstance(run_payload, str):
        return RunError(message=run_payload)
    raise MessageDecodeError(f"unknown RunResponse variant {run_tag!r}")


# ---------------------------------------------------------------------------
# Admin requests and responses
# ---------------------------------------------------------------------------

ADMIN_REQUESTS = ("SetRouterProcess", "SetRollupSequencer", "GetRollupState")


class SetRouterProcess(BaseModel):
    process_id: str


class SetRollupSequencer(BaseModel):
    address: str


class GetRollupState(BaseModel):
    pass


AdminRequest = Union[SetRouterProcess, SetRollupSequencer, GetRollupState]


class AdminResponse(BaseModel):
    """Reply to an admin request; `kind` names the request it answers"""
    kind: str
    err: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        return {self.kind: {"err": self.err}}


def is_admin_request(body: Any) -> bool:
    """Check whether a request body is tagged as an admin request"""
    try:
        tag, _ = split_variant(body)
    except MessageDecodeError:
        return False
    return tag in ADMIN_REQUESTS


def encode_admin_request(request: AdminRequest) -> Any:
    if isinstance(request, GetRollupState):
        return "GetRollupState"
    return {type(request).__name__: request.model_dump()}


def decode_admin_request(body: Any) -> AdminRequest:
    tag, payload = split_variant(body)
    if tag == "GetRollupState" and payload is UNIT:
        return GetRollupState()
    if tag == "SetRouterProcess" and payload is not UNIT:
        return _validate(SetRouterProcess, payload, tag)
    if tag == "SetRollupSequencer" and payload is not UNIT:
        return _validate(SetRollupSequencer, payload, tag)
    raise MessageDecodeError(f"unknown AdminRequest variant {tag!r}")


def decode_admin_response(body: Any) -> AdminResponse:
    tag, payload = split_variant(body)
    if tag not in ADMIN_REQUESTS or not isinstance(payload, dict):
        raise MessageDecodeError(f"unknown AdminResponse variant {tag!r}")
    return AdminResponse(kind=tag, err=payload.get("err"))


# ---------------------------------------------------------------------------
# Rollup sequencer
# ---------------------------------------------------------------------------

READ_REQUESTS = ("All", "Dao", "Routers", "Members", "Proposals", "Parameters")


def encode_sequencer_read(read: str = "All") -> Dict[str, Any]:
    if read not in READ_REQUESTS:
        raise ValueError(f"unknown ReadRequest {read!r}")
    return {"Read": read}


def decode_sequencer_response(data: Any) -> Tuple[str, Any]:
    """
    Decode a sequencer reply

    Returns:
        ("Write", None) for write acknowledgements, otherwise the read kind and
        its payload: an OnChainDaoState for "All", a list of node names for
        "Routers" and "Members", None for the unit reads.

    Raises:
        MessageDecodeError: If the reply matches no SequencerResponse variant
    """
    tag, payload = split_variant(data)
    if tag == "Write" and payload is UNIT:
        return "Write", None
    if tag != "Read" or payload is UNIT:
        raise MessageDecodeError(f"unknown SequencerResponse variant {tag!r}")

    read_tag, read_payload = split_variant(payload)
    if read_tag == "All" and read_payload is not UNIT:
        return read_tag, _validate(OnChainDaoState, read_payload, read_tag)
    if read_tag in ("Routers", "Members") and isinstance(read_payload, list):
        names: List[str] = [str(name) for name in read_payload]
        return read_tag, names
    if read_tag in ("Dao", "Proposals", "Parameters") and read_payload is UNIT:
        return read_tag, None
    raise MessageDecodeError(f"unknown ReadResponse variant {read_tag!r}")
