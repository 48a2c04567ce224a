"""
Notice Relayer package.

Reconciles pending gateway notices with the Starport counter-chain: waits on
chain events, rebuilds notice chains and collects quorum signatures.
"""

from .config import RelayerConfig
from .errors import (
    EventStreamEnded,
    EventTimeout,
    ExplicitFailure,
    NoticeNotFound,
    QuorumTimeout,
    RelayError,
    SessionTimeout,
    SubmissionFailed,
    UnexpectedState,
    WaitTimeout,
)
from .event_tracker import EventTracker
from .models import Notice, NoticeId, NoticeState, RetryPolicy
from .notice_chain import NoticeChainWalker
from .relayer import NoticeRelayer
from .session_poller import SessionPoller
from .signature_collector import QuorumSignatureCollector

__all__ = [
    "RelayerConfig",
    "NoticeRelayer",
    "EventTracker",
    "NoticeChainWalker",
    "QuorumSignatureCollector",
    "SessionPoller",
    "Notice",
    "NoticeId",
    "NoticeState",
    "RetryPolicy",
    "RelayError",
    "ExplicitFailure",
    "WaitTimeout",
    "EventTimeout",
    "EventStreamEnded",
    "QuorumTimeout",
    "SessionTimeout",
    "NoticeNotFound",
    "UnexpectedState",
    "SubmissionFailed",
]
__version__ = "0.1.0"
