"""Exceptions raised by the notice relayer.

Every error carries a machine-readable ``code`` next to its message so that
callers can branch on the kind of failure without matching on text.
Timeouts share the ``WaitTimeout`` base: they mean a bounded wait ran out,
and the caller may choose to retry with a larger budget.
"""

from typing import Any

from .models import ChainEvent, EventKey, NoticeId


class RelayError(Exception):
    """Base exception for all relayer errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
    """

    def __init__(self, message: str, code: str) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class ExplicitFailure(RelayError):
    """Raised when the chain emits the failure event before the expected one."""

    def __init__(self, event: ChainEvent) -> None:
        super().__init__(
            message=f"Chain reported failure: {event.key} in block {event.block_number}",
            code="explicit_failure",
        )
        self.event = event

    @property
    def event_data(self) -> Any:
        return self.event.data


class WaitTimeout(RelayError):
    """Base for waits that ran out of time or retries."""


class EventTimeout(WaitTimeout):
    """Raised when neither the expected nor the failure event fired in time.

    ``expected`` is None when the wait was for a whole submission rather than
    one event.
    """

    def __init__(self, expected: EventKey | None, timeout: float) -> None:
        super().__init__(
            message=f"Timed out after {timeout}s waiting for {expected or 'the submission to finish'}",
            code="event_timeout",
        )
        self.expected = expected
        self.timeout = timeout


class EventStreamEnded(WaitTimeout):
    """Raised when a submission's event stream ended without the expected event."""

    def __init__(self, expected: EventKey) -> None:
        super().__init__(
            message=f"Event stream ended without {expected}",
            code="event_stream_ended",
        )
        self.expected = expected


class QuorumTimeout(WaitTimeout):
    """Raised when a notice did not gather enough signatures within the retry budget."""

    def __init__(self, notice_id: NoticeId, quorum: int, collected: int) -> None:
        super().__init__(
            message=(
                f"Unable to get signed notice {notice_id} in sufficient retries "
                f"({collected}/{quorum} signatures)"
            ),
            code="quorum_timeout",
        )
        self.notice_id = notice_id
        self.quorum = quorum
        self.collected = collected


class SessionTimeout(WaitTimeout):
    """Raised when the session index did not reach its target within the retry budget."""

    def __init__(self, target: int, current: int, retries: int) -> None:
        super().__init__(
            message=f"Unable to get session {target} after {retries} retries (current {current})",
            code="session_timeout",
        )
        self.target = target
        self.current = current
        self.retries = retries


class NoticeNotFound(RelayError):
    """Raised when the target notice cannot be reached through parent links."""

    def __init__(self, chain_id: str, notice_id: NoticeId, reason: str = "not found in notice chain") -> None:
        super().__init__(
            message=f"Notice {notice_id} on {chain_id} {reason}",
            code="notice_not_found",
        )
        self.chain_id = chain_id
        self.notice_id = notice_id


class UnexpectedState(RelayError):
    """Raised when a notice is not in the state or signature scheme the relayer expects."""

    def __init__(self, message: str, state: Any = None) -> None:
        super().__init__(message=message, code="unexpected_state")
        self.state = state


class SubmissionFailed(RelayError):
    """Raised when a counter-chain transaction cannot be sent or reverts."""

    def __init__(self, message: str, tx_hash: str | None = None) -> None:
        super().__init__(message=message, code="submission_failed")
        self.tx_hash = tx_hash
