"""Shared fixtures: an in-memory gateway chain and Starport acceptance oracle."""

import asyncio
from collections.abc import Callable, Sequence
from typing import Any

import pytest

from notice_relayer.models import (
    ChainEvent,
    EventKey,
    FinalityMode,
    Notice,
    NoticeCursor,
    NoticeId,
    NoticeState,
)
from notice_relayer.utils.notice_encoder import NoticeEncoder

SENTINEL_HASH = b"\x00" * 32


class StubChainClient:
    """Scriptable gateway chain client.

    Sequences (signature states, session indexes) are consumed one value per
    read; the last value repeats once the sequence is exhausted.
    """

    def __init__(self) -> None:
        self.notices: dict[tuple[str, NoticeId], Notice] = {}
        self.hash_index: dict[tuple[str, bytes], NoticeId] = {}
        self.cursors: dict[str, NoticeCursor] = {}
        self.signature_states: dict[NoticeId, list[NoticeState]] = {}
        self.session_indexes: list[int] = [0]
        self.quorum = 0

        self.submission_events: list[ChainEvent] = []
        self.submission_stays_open = False
        self.subscription_events: list[ChainEvent] = []
        self.submitted: list[tuple[Any, FinalityMode]] = []
        self.subscriptions: list[tuple[EventKey, ...]] = []

        self.signature_reads = 0
        self.session_reads = 0
        self.closed_streams = 0

    def add_notice(self, notice: Notice) -> None:
        self.notices[(notice.chain_id, notice.notice_id)] = notice
        self.hash_index[(notice.chain_id, notice.hash)] = notice.notice_id
        self.cursors[notice.chain_id] = NoticeCursor(notice.notice_id, notice.hash)

    async def query_signature_state(self, chain_id: str, notice_id: NoticeId) -> NoticeState:
        self.signature_reads += 1
        states = self.signature_states[notice_id]
        return states.pop(0) if len(states) > 1 else states[0]

    async def query_notice_at(self, chain_id: str, notice_id: NoticeId) -> Notice | None:
        return self.notices.get((chain_id, notice_id))

    async def query_latest_notice_cursor(self, chain_id: str) -> NoticeCursor | None:
        return self.cursors.get(chain_id)

    async def query_notice_id_by_hash(self, chain_id: str, notice_hash: bytes) -> NoticeId | None:
        return self.hash_index.get((chain_id, notice_hash))

    async def query_current_quorum(self) -> int:
        return self.quorum

    async def query_session_index(self) -> int:
        self.session_reads += 1
        indexes = self.session_indexes
        return indexes.pop(0) if len(indexes) > 1 else indexes[0]

    async def submit_call(self, call: Any, finality: FinalityMode):
        self.submitted.append((call, finality))
        try:
            for event in self.submission_events:
                await asyncio.sleep(0)
                yield event
            if self.submission_stays_open:
                await asyncio.Event().wait()
        finally:
            self.closed_streams += 1

    async def subscribe_events(self, keys: Sequence[EventKey]):
        self.subscriptions.append(tuple(keys))
        try:
            for event in self.subscription_events:
                if any(event.matches(key) for key in keys):
                    await asyncio.sleep(0)
                    yield event
            # Subscriptions never end on their own
            await asyncio.Event().wait()
        finally:
            self.closed_streams += 1


class StubAcceptanceOracle:
    """Starport acceptance lookups backed by a set of accepted hashes."""

    def __init__(self) -> None:
        self.accepted: set[bytes] = set()
        self.queries: list[bytes] = []
        self.on_query: Callable[[bytes], None] | None = None

    async def is_accepted(self, notice_hash: bytes) -> bool:
        self.queries.append(notice_hash)
        if self.on_query:
            self.on_query(notice_hash)
        return notice_hash in self.accepted


def build_notice_chain(chain_id: str, count: int, era_id: int = 1) -> list[Notice]:
    """Build ``count`` hash-linked notices, oldest first, starting at the sentinel."""
    notices: list[Notice] = []
    parent_hash = SENTINEL_HASH
    for index in range(count):
        notice = NoticeEncoder.build_notice(
            chain_id=chain_id,
            era_id=era_id,
            era_index=index,
            parent_hash=parent_hash,
            call_data=f"unlock-{index}".encode(),
        )
        notices.append(notice)
        parent_hash = notice.hash
    return notices


@pytest.fixture
def stub_client():
    """Create an empty stub gateway chain client."""
    return StubChainClient()


@pytest.fixture
def acceptance():
    """Create a Starport acceptance oracle with nothing accepted."""
    return StubAcceptanceOracle()


@pytest.fixture
def notices(stub_client):
    """Register five linked Eth notices on the stub chain, oldest first."""
    chain = build_notice_chain("Eth", 5)
    for notice in chain:
        stub_client.add_notice(notice)
    return chain
