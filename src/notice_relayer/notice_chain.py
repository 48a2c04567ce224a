"""
Notice chain reconstruction.

Only the latest notice of each chain id is cheaply queryable on the gateway,
so the walker starts there and follows parent hashes backwards until it meets
the target notice. At every step it asks the counter-chain whether the notice
under the cursor has already been accepted; an accepted notice cuts the chain,
so the result always starts right after the acceptance frontier the walk
observed.
"""

import logging

from .chain_client import AcceptanceOracle, ChainClient
from .errors import NoticeNotFound
from .models import Notice

logger = logging.getLogger(__name__)


class NoticeChainWalker:
    """Rebuilds the unaccepted notices linking a target notice to the chain head."""

    def __init__(self, client: ChainClient, acceptance: AcceptanceOracle) -> None:
        """
        Initialize the walker.

        Args:
            client: Gateway chain client for notice reads
            acceptance: Counter-chain oracle answering whether a hash was accepted
        """
        self.client = client
        self.acceptance = acceptance

    async def reconstruct(self, target: Notice, include_anchor: bool = False) -> list[Notice]:
        """
        Walk back from the latest notice to ``target``.

        Args:
            target: Notice whose chain should be rebuilt
            include_anchor: Keep the most recent accepted notice seen during
                the walk as the last element instead of dropping it

        Returns:
            Notices oldest first, excluding the target itself

        Raises:
            NoticeNotFound: If the parent links never reach the target
        """
        chain_id = target.chain_id
        cursor = await self.client.query_latest_notice_cursor(chain_id)
        if cursor is None:
            raise NoticeNotFound(chain_id, target.notice_id, "has no notice chain")

        current_id = cursor.notice_id
        current_hash = cursor.notice_hash
        chain: list[Notice] = []
        visited: set[bytes] = set()

        while current_id is not None:
            if current_hash in visited:
                raise NoticeNotFound(chain_id, target.notice_id, "unreachable: notice chain has a cycle")
            visited.add(current_hash)

            current = await self.client.query_notice_at(chain_id, current_id)
            if current is None:
                raise NoticeNotFound(chain_id, target.notice_id, f"unreachable: notice {current_id} missing")

            if current.notice_id == target.notice_id:
                logger.info(f"Notice chain for {target.notice_id} on {chain_id}: {len(chain)} notices")
                return chain

            if await self.acceptance.is_accepted(current_hash):
                logger.debug(f"Notice {current_id} already accepted, restarting chain")
                chain = [current] if include_anchor else []
            else:
                chain.insert(0, current)

            current_hash = current.parent_hash
            current_id = await self.client.query_notice_id_by_hash(chain_id, current_hash)

        raise NoticeNotFound(chain_id, target.notice_id)
