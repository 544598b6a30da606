"""
DAO State Models

Read-only mirror of the provider DAO state kept by the rollup sequencer.
"""

import re
from typing import Dict, Any, List, Union

from pydantic import BaseModel, Field, field_validator, model_serializer, model_validator

U8_MAX = 255
U16_MAX = 65535

ETH_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")

# Proposal variants and the payload each one carries
STRING_PROPOSALS = ("ChangeRootNode", "Kick")
U8_PROPOSALS = (
    "ChangeQueueResponseTimeoutSeconds",
    "ChangeMaxOutstandingPayments",
    "ChangePaymentPeriodHours",
)


class Proposal(BaseModel):
    """
    A governance proposal

    On the wire a proposal is a single-key object, e.g. {"Kick": "node.os"}.
    """
    kind: str
    value: Union[int, str]

    @model_validator(mode="before")
    @classmethod
    def _from_wire(cls, data: Any) -> Any:
        if isinstance(data, dict) and len(data) == 1 and "kind" not in data:
            (kind, value), = data.items()
            return {"kind": kind, "value": value}
        return data

    @model_validator(mode="after")
    def _check_payload(self) -> "Proposal":
        if self.kind in STRING_PROPOSALS:
            if not isinstance(self.value, str):
                raise ValueError(f"{self.kind} takes a node name")
        elif self.kind in U8_PROPOSALS:
            if not isinstance(self.value, int) or not 0 <= self.value <= U8_MAX:
                raise ValueError(f"{self.kind} takes an integer in 0..{U8_MAX}")
        else:
            raise ValueError(f"unknown proposal {self.kind!r}")
        return self

    @model_serializer
    def _to_wire(self) -> Dict[str, Any]:
        return {self.kind: self.value}


class Vote(BaseModel):
    """A vote on a proposal"""
    proposal_hash: int = Field(..., ge=0)
    is_yea: bool


class SignedVote(BaseModel):
    """A signed vote on a proposal"""
    vote: Vote
    signature: int = Field(..., ge=0)


class ProposalInProgress(BaseModel):
    """A proposal together with the votes cast so far"""
    proposal: Proposal
    votes: Dict[str, SignedVote] = Field(default_factory=dict)


class OnChainDaoState(BaseModel):
    """Provider DAO state as stored on the rollup"""
    routers: List[str] = Field(default_factory=list, description="Router nodes; length 1 for now")
    members: Dict[str, str] = Field(default_factory=dict, description="Node name to eth address")
    proposals: Dict[int, ProposalInProgress] = Field(default_factory=dict)
    queue_response_timeout_seconds: int = Field(0, ge=0, le=U8_MAX)
    serve_timeout_seconds: int = Field(0, ge=0, le=U16_MAX)
    max_outstanding_payments: int = Field(0, ge=0, le=U8_MAX)
    payment_period_hours: int = Field(0, ge=0, le=U8_MAX)

    @field_validator("members")
    @classmethod
    def _check_member_addresses(cls, members: Dict[str, str]) -> Dict[str, str]:
        for node, address in members.items():
            if not ETH_ADDRESS_PATTERN.match(address):
                raise ValueError(f"member {node} has invalid address {address!r}")
        return members

    @field_validator("proposals")
    @classmethod
    def _check_proposal_ids(cls, proposals: Dict[int, ProposalInProgress]) -> Dict[int, ProposalInProgress]:
        for proposal_id in proposals:
            if proposal_id < 0:
                raise ValueError(f"proposal id must be unsigned, got {proposal_id}")
        return proposals

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
