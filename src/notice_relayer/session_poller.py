"""Session index polling used while validator rotations take effect."""

import logging

from .chain_client import ChainClient
from .errors import SessionTimeout
from .models import RetryPolicy
from .utils.polling import poll_until

logger = logging.getLogger(__name__)


class SessionPoller:
    """Blocks a workflow until the gateway reaches a target session index."""

    DEFAULT_POLICY = RetryPolicy(max_retries=60, interval=1.0)

    def __init__(self, client: ChainClient, policy: RetryPolicy = DEFAULT_POLICY) -> None:
        self.client = client
        self.policy = policy

    async def current_session(self) -> int:
        return await self.client.query_session_index()

    async def wait_until_session(self, target: int, retries: int | None = None) -> int:
        """
        Wait until the session index is at least ``target``.

        Args:
            target: Session index to wait for
            retries: Re-reads allowed, defaults to the poller's policy

        Returns:
            The observed session index

        Raises:
            SessionTimeout: If the target was not reached within the retries
        """
        budget = self.policy.max_retries if retries is None else retries
        policy = RetryPolicy(max_retries=budget, interval=self.policy.interval, deadline=self.policy.deadline)

        def waiting(index: int, remaining: int) -> None:
            logger.info(f"Waiting for session={target}, curr={index} ({remaining} retries left)")

        return await poll_until(
            read=self.current_session,
            satisfied=lambda index: index >= target,
            policy=policy,
            on_exhausted=lambda index: SessionTimeout(target, index, budget),
            on_wait=waiting,
        )
