"""Capabilities the relayer requires from its chain collaborators.

The gateway chain client and the counter-chain acceptance oracle are supplied
by the host process; the relayer only ever reads through them or appends
submissions, so one instance can be shared by any number of workflows.
"""

from collections.abc import AsyncIterator, Sequence
from typing import Any, Protocol

from .models import ChainEvent, EventKey, FinalityMode, Notice, NoticeCursor, NoticeId, NoticeState


class ChainClient(Protocol):
    """Read and submit access to the gateway chain."""

    async def query_signature_state(self, chain_id: str, notice_id: NoticeId) -> NoticeState:
        """Return the notice's ``Pending``, ``Executed`` or ``Missing`` state."""
        ...

    async def query_notice_at(self, chain_id: str, notice_id: NoticeId) -> Notice | None:
        """Return the stored notice, or None when it is missing."""
        ...

    async def query_latest_notice_cursor(self, chain_id: str) -> NoticeCursor | None:
        """Return the id and hash of the most recent notice for the chain id."""
        ...

    async def query_notice_id_by_hash(self, chain_id: str, notice_hash: bytes) -> NoticeId | None:
        """Look up the registered hash to id mapping."""
        ...

    async def query_current_quorum(self) -> int:
        """Return the validator-set quorum threshold."""
        ...

    async def query_session_index(self) -> int:
        """Return the current session index."""
        ...

    def submit_call(self, call: Any, finality: FinalityMode) -> AsyncIterator[ChainEvent]:
        """Submit a signed call and yield, in order, the events it produced.

        The stream is finite: it ends once the call is included or finalized,
        as selected by ``finality``.
        """
        ...

    def subscribe_events(self, keys: Sequence[EventKey]) -> AsyncIterator[ChainEvent]:
        """Yield, in chain order, every future event matching one of ``keys``."""
        ...


class AcceptanceOracle(Protocol):
    """Counter-chain view of which notices have been executed."""

    async def is_accepted(self, notice_hash: bytes) -> bool:
        """Return whether the counter-chain recorded execution of the notice."""
        ...
