"""
Quorum signature collection.

Validators sign pending notices on their own schedule, so the collector can
only re-read the notice state at a fixed interval until enough distinct
signatures are present.
"""

import logging

from .chain_client import ChainClient
from .errors import QuorumTimeout, UnexpectedState
from .models import (
    EthSignaturePairs,
    Executed,
    Missing,
    Notice,
    NoticeState,
    Pending,
    RetryPolicy,
    SignaturePair,
    UnsupportedSignaturePairs,
)
from .utils.polling import poll_until

logger = logging.getLogger(__name__)


class QuorumSignatureCollector:
    """Polls a pending notice until a quorum of validators signed it."""

    DEFAULT_POLICY = RetryPolicy(max_retries=10, interval=3.0)

    def __init__(self, client: ChainClient, policy: RetryPolicy = DEFAULT_POLICY) -> None:
        self.client = client
        self.policy = policy

    async def notice_state(self, notice: Notice) -> NoticeState:
        return await self.client.query_signature_state(notice.chain_id, notice.notice_id)

    async def get_signatures(
        self,
        notice: Notice,
        quorum: int | None = None,
        retries: int | None = None,
        interval: float | None = None
    ) -> list[SignaturePair]:
        """
        Return at least ``quorum`` distinct validator signatures for ``notice``.

        Args:
            notice: Pending notice to collect signatures for
            quorum: Required signature count, read from the chain when omitted
            retries: Re-reads allowed, defaults to the collector's policy
            interval: Seconds between reads, defaults to the collector's policy

        Returns:
            ``(validator, signature)`` pairs, one per validator

        Raises:
            UnexpectedState: If the notice is not pending or not Eth-signed
            QuorumTimeout: If the quorum was not reached within the retries
        """
        if quorum is None:
            quorum = await self.client.query_current_quorum()

        policy = RetryPolicy(
            max_retries=self.policy.max_retries if retries is None else retries,
            interval=self.policy.interval if interval is None else interval,
            deadline=self.policy.deadline,
        )

        async def read_pairs() -> list[SignaturePair]:
            return self._eth_pairs(notice, await self.notice_state(notice))

        def waiting(pairs: list[SignaturePair], remaining: int) -> None:
            logger.info(
                f"Notice {notice.notice_id} has {len(pairs)}/{quorum} signatures, "
                f"{remaining} retries left"
            )

        pairs = await poll_until(
            read=read_pairs,
            satisfied=lambda pairs: len(pairs) >= quorum,
            policy=policy,
            on_exhausted=lambda pairs: QuorumTimeout(notice.notice_id, quorum, len(pairs)),
            on_wait=waiting,
        )

        logger.info(f"Collected {len(pairs)} signatures for notice {notice.notice_id}")
        return pairs

    @staticmethod
    def _eth_pairs(notice: Notice, state: NoticeState) -> list[SignaturePair]:
        match state:
            case Pending(signature_pairs=EthSignaturePairs() as pairs):
                return pairs.distinct()
            case Pending(signature_pairs=UnsupportedSignaturePairs(scheme=scheme)):
                raise UnexpectedState(
                    f"Unexpected signature pairs for notice {notice.notice_id} (not eth: {scheme})",
                    state,
                )
            case Executed() | Missing():
                raise UnexpectedState(
                    f"Unexpected notice status for {notice.notice_id} (not pending: {type(state).__name__})",
                    state,
                )
            case _:
                raise UnexpectedState(f"Unknown notice state {state!r}", state)
