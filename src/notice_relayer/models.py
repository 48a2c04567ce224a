#!/usr/bin/env python3
"""Data models for the notice relayer.

This module provides immutable data classes for notices, their derived
signature state, chain events and the policies that govern the waits
performed against the gateway chain.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeAlias

from web3 import Web3


@dataclass(frozen=True, slots=True, order=True)
class NoticeId:
    """Chain-assigned identifier that orders notices within a chain id.

    Attributes:
        era_id: Era in which the notice was created
        era_index: Position of the notice within its era
    """

    era_id: int
    era_index: int

    @classmethod
    def parse(cls, raw: Any) -> "NoticeId":
        """Build a NoticeId from the ``[era_id, era_index]`` form the chain returns."""
        match raw:
            case NoticeId():
                return raw
            case [era_id, era_index]:
                return cls(int(era_id), int(era_index))
            case _:
                raise ValueError(f"Invalid notice id: {raw!r}")

    def __str__(self) -> str:
        return f"{self.era_id}.{self.era_index}"


@dataclass(frozen=True, slots=True)
class Notice:
    """An attestation to be relayed to a counter-chain.

    The hash of ``encoded_payload`` is what the next notice on the same
    chain id records as its ``parent_hash``.

    Attributes:
        chain_id: Identifier of the counter-chain this notice targets
        notice_id: Era/index pair of the notice
        encoded_payload: Opaque encoded notice, hashed and submitted as-is
        parent_hash: Hash of the notice immediately preceding this one
    """

    chain_id: str
    notice_id: NoticeId
    encoded_payload: bytes
    parent_hash: bytes

    @property
    def hash(self) -> bytes:
        """Keccak-256 of the encoded payload."""
        return bytes(Web3.keccak(self.encoded_payload))

    def __str__(self) -> str:
        return (
            f"Notice(chain={self.chain_id}, "
            f"id={self.notice_id}, "
            f"hash=0x{self.hash.hex()[:10]}...)"
        )


@dataclass(frozen=True, slots=True)
class NoticeCursor:
    """Most recent notice known to the gateway for a chain id."""

    notice_id: NoticeId
    notice_hash: bytes


SignaturePair: TypeAlias = tuple[str, bytes]


@dataclass(frozen=True, slots=True)
class EthSignaturePairs:
    """ECDSA signatures keyed by each validator's Ethereum address."""

    pairs: tuple[SignaturePair, ...] = ()

    def distinct(self) -> list[SignaturePair]:
        """Return one pair per validator, keeping the first signature seen."""
        seen: dict[str, SignaturePair] = {}
        for pair in self.pairs:
            seen.setdefault(pair[0].lower(), pair)
        return list(seen.values())


@dataclass(frozen=True, slots=True)
class UnsupportedSignaturePairs:
    """Signature set for a scheme the relayer cannot submit."""

    scheme: str
    raw: Any = None


SignaturePairs: TypeAlias = EthSignaturePairs | UnsupportedSignaturePairs


@dataclass(frozen=True, slots=True)
class Pending:
    """Notice is waiting for validator signatures."""

    signature_pairs: SignaturePairs


@dataclass(frozen=True, slots=True)
class Executed:
    """Notice has been executed on the counter-chain."""


@dataclass(frozen=True, slots=True)
class Missing:
    """The gateway has no state for the notice."""


NoticeState: TypeAlias = Pending | Executed | Missing


class FinalityMode(Enum):
    """Point at which a submitted call's events are considered observable."""
    INCLUSION = "inclusion"
    FINALIZED = "finalized"


@dataclass(frozen=True, slots=True)
class EventKey:
    """A ``pallet.EventName`` pair."""

    pallet: str
    name: str

    @classmethod
    def of(cls, value: "EventKey | tuple[str, str]") -> "EventKey":
        match value:
            case EventKey():
                return value
            case (pallet, name):
                return cls(pallet, name)
            case _:
                raise ValueError(f"Invalid event key: {value!r}")

    def __str__(self) -> str:
        return f"{self.pallet}.{self.name}"


@dataclass(frozen=True, slots=True)
class ChainEvent:
    """An event emitted by the gateway chain.

    Attributes:
        pallet: Pallet (module) that emitted the event
        name: Event name
        data: Decoded event payload
        block_number: Block the event was produced in
        index: Position of the event within its block
    """

    pallet: str
    name: str
    data: Any = None
    block_number: int = 0
    index: int = 0

    @property
    def key(self) -> EventKey:
        return EventKey(self.pallet, self.name)

    def matches(self, key: EventKey) -> bool:
        return self.pallet == key.pallet and self.name == key.name


@dataclass(frozen=True, slots=True)
class EventWaitSpec:
    """What the event tracker watches for during one wait."""

    expected: EventKey
    failure: EventKey | None = None

    @classmethod
    def build(
        cls,
        pallet: str,
        event_name: str,
        failure_event: EventKey | tuple[str, str] | None = None
    ) -> "EventWaitSpec":
        failure = EventKey.of(failure_event) if failure_event is not None else None
        return cls(expected=EventKey(pallet, event_name), failure=failure)

    @property
    def keys(self) -> tuple[EventKey, ...]:
        if self.failure is None:
            return (self.expected,)
        return (self.expected, self.failure)


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Bounded polling policy.

    Attributes:
        max_retries: Re-reads allowed after the first read
        interval: Seconds to sleep between reads
        deadline: Optional wall-clock bound in seconds for the whole loop
    """

    max_retries: int
    interval: float
    deadline: float | None = None

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"Retry count must be non-negative, got {self.max_retries}")
        if self.interval < 0:
            raise ValueError(f"Retry interval must be non-negative, got {self.interval}")
        if self.deadline is not None and self.deadline <= 0:
            raise ValueError(f"Deadline must be positive, got {self.deadline}")


@dataclass(frozen=True, slots=True)
class RelayBundle:
    """Everything needed to submit a notice to the counter-chain."""

    notice: Notice
    chain: list[Notice] = field(default_factory=list)
    signatures: list[SignaturePair] = field(default_factory=list)


# Gateway events the relayer waits on
NOTICE_EVENT = EventKey("cash", "Notice")
CHAIN_PROCESSED_EVENT = EventKey("cash", "ProcessedChainEvent")
ETH_PROCESS_FAILURE_EVENT = EventKey("cash", "FailedProcessingEthEvent")
