"""
Notice relayer implementation.

This module contains the orchestrator that wires the event tracker, notice
chain walker, signature collector and session poller together and submits
ready notices to the Starport.
"""

import logging

from .chain_client import AcceptanceOracle, ChainClient
from .config import PollingConfig, RelayerConfig, setup_logging
from .event_tracker import EventTracker
from .models import Notice, RelayBundle
from .notice_chain import NoticeChainWalker
from .session_poller import SessionPoller
from .signature_collector import QuorumSignatureCollector
from .starport import StarportClient
from .utils.contract_utility import ContractUtility

logger = logging.getLogger(__name__)


class NoticeRelayer:
    """
    Relays gateway notices to the counter-chain.

    This class focuses on coordination, delegating waits and chain reads to
    the components it owns. All of them share the same read-only clients.
    """

    def __init__(
        self,
        client: ChainClient,
        starport: AcceptanceOracle,
        config: RelayerConfig | None = None
    ) -> None:
        """
        Initialize the notice relayer.

        Args:
            client: Gateway chain client
            starport: Counter-chain client; ``relay`` and ``relay_by_chain``
                need it to be a StarportClient able to submit
            config: Relayer configuration, defaults apply when omitted
        """
        self.config = config
        self.client = client
        self.starport = starport

        polling = config.polling if config else PollingConfig()
        self.tracker = EventTracker(client, timeout=polling.event_timeout, finality=polling.finality)
        self.walker = NoticeChainWalker(client, starport)
        self.collector = QuorumSignatureCollector(client, polling.signature_policy)
        self.session_poller = SessionPoller(client, polling.session_policy)

    @classmethod
    def from_env(cls, client: ChainClient, local_mode: bool = False) -> "NoticeRelayer":
        """
        Create a NoticeRelayer from environment variables.

        Args:
            client: Gateway chain client
            local_mode: Sign Starport transactions with LOCAL_PRIVATE_KEY

        Returns:
            Configured NoticeRelayer instance

        Raises:
            ValueError: If required environment variables are missing
        """
        config = RelayerConfig.from_env(local_mode=local_mode)
        setup_logging(config.log_level)
        config.log_config()

        contract_util = ContractUtility(
            rpc_url=config.starport.rpc_url,
            secret=config.local_private_key or "",
            request_timeout=config.starport.request_timeout,
        )
        starport = StarportClient(
            contract_util=contract_util,
            contract_address=config.starport.contract_address,
            receipt_timeout=config.starport.receipt_timeout,
        )
        return cls(client, starport, config)

    async def prepare(self, notice: Notice) -> RelayBundle:
        """
        Gather the notice chain and quorum signatures for ``notice``.

        Returns:
            RelayBundle with the chain (oldest first) and the signatures
        """
        chain = await self.walker.reconstruct(notice)
        signatures = await self.collector.get_signatures(notice)
        logger.info(
            f"Prepared {notice}: {len(chain)} chained notices, {len(signatures)} signatures"
        )
        return RelayBundle(notice=notice, chain=chain, signatures=signatures)

    async def relay(self, notice: Notice) -> str | None:
        """
        Submit a notice with quorum signatures.

        Returns:
            Transaction hash, or None when the Starport already accepted the notice
        """
        if await self.starport.is_accepted(notice.hash):
            logger.info(f"{notice} already accepted, nothing to relay")
            return None

        signatures = await self.collector.get_signatures(notice)
        return await self._submitter().invoke(notice.encoded_payload, signatures)

    async def relay_by_chain(self, notice: Notice) -> str | None:
        """
        Submit a notice proven by the chain of notices up to an accepted one.

        Returns:
            Transaction hash, or None when the Starport already accepted the notice
        """
        if await self.starport.is_accepted(notice.hash):
            logger.info(f"{notice} already accepted, nothing to relay")
            return None

        chain = await self.walker.reconstruct(notice, include_anchor=True)
        return await self._submitter().invoke_chain(
            notice.encoded_payload, [link.encoded_payload for link in chain]
        )

    async def wait_until_session(self, target: int, retries: int | None = None) -> int:
        return await self.session_poller.wait_until_session(target, retries)

    def _submitter(self) -> StarportClient:
        if not isinstance(self.starport, StarportClient):
            raise TypeError("Relaying requires a StarportClient")
        return self.starport
