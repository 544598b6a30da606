"""
Data Models

Pydantic models for wire messages, DAO state, API requests and responses.
"""

from .dao import (
    OnChainDaoState,
    Proposal,
    ProposalInProgress,
    SignedVote,
    Vote
)
from .parameters import ImageJobParameters, CfgScale, NamedRef
from .messages import (
    JobParameters,
    JobUpdate,
    SignatureResult,
    JobQueued,
    PaymentRequired,
    RunError,
    JobUpdateAck,
    SetRouterProcess,
    SetRollupSequencer,
    GetRollupState,
    AdminResponse
)
from .requests import (
    MessageEnvelope,
    SetRouterProcessRequest,
    SetRollupSequencerRequest
)
from .responses import (
    RunJobResponse,
    CurrentJobResponse,
    JobSubmissionResponse,
    JobImageResponse,
    AdminResultResponse
)

__all__ = [
    'OnChainDaoState',
    'Proposal',
    'ProposalInProgress',
    'SignedVote',
    'Vote',
    'ImageJobParameters',
    'CfgScale',
    'NamedRef',
    'JobParameters',
    'JobUpdate',
    'SignatureResult',
    'JobQueued',
    'PaymentRequired',
    'RunError',
    'JobUpdateAck',
    'SetRouterProcess',
    'SetRollupSequencer',
    'GetRollupState',
    'AdminResponse',
    'MessageEnvelope',
    'SetRouterProcessRequest',
    'SetRollupSequencerRequest',
    'RunJobResponse',
    'CurrentJobResponse',
    'JobSubmissionResponse',
    'JobImageResponse',
    'AdminResultResponse'
]
