#!/usr/bin/env python3
"""Configuration management for the notice relayer.

This module provides type-safe configuration dataclasses with validation
for the relayer. Configuration is loaded from environment variables
with sensible defaults where appropriate.
"""

import logging
import os
from dataclasses import dataclass, field
from urllib.parse import urlparse

from web3 import Web3

from .models import FinalityMode, RetryPolicy

# Get logger for this module
logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the application.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_level: int = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=log_level, format=LOG_FORMAT)


@dataclass(frozen=True, slots=True)
class StarportConfig:
    """Configuration for the counter-chain Starport contract.

    Attributes:
        rpc_url: HTTP(S) RPC endpoint for the counter-chain
        contract_address: Checksummed address of the Starport contract
        request_timeout: HTTP request timeout in seconds
        receipt_timeout: Seconds to wait for a transaction receipt
    """

    rpc_url: str
    contract_address: str
    request_timeout: int = 30
    receipt_timeout: int = 120

    def __post_init__(self) -> None:
        """Validate Starport configuration."""
        if not self.rpc_url:
            raise ValueError("Starport RPC URL is required (STARPORT_RPC_URL)")

        parsed = urlparse(self.rpc_url)
        if parsed.scheme not in ('http', 'https'):
            raise ValueError(
                f"Invalid RPC URL scheme: {parsed.scheme}. "
                "Expected http or https"
            )

        if not self.contract_address:
            raise ValueError(
                "Starport contract address is required (STARPORT_ADDRESS)"
            )

        if not Web3.is_address(self.contract_address):
            raise ValueError(
                f"Invalid Starport contract address: {self.contract_address}"
            )

        checksummed = Web3.to_checksum_address(self.contract_address)
        if checksummed != self.contract_address:
            # Use object.__setattr__ since dataclass is frozen
            object.__setattr__(self, 'contract_address', checksummed)

        if self.request_timeout <= 0:
            raise ValueError(f"Request timeout must be positive, got {self.request_timeout}")
        if self.receipt_timeout <= 0:
            raise ValueError(f"Receipt timeout must be positive, got {self.receipt_timeout}")


@dataclass(frozen=True, slots=True)
class PollingConfig:
    """Configuration for event waits and polling loops."""
    signature_retries: int = 10  # re-reads while waiting for quorum
    signature_interval: float = 3.0  # seconds between signature reads
    session_retries: int = 60  # re-reads while waiting for a session
    session_interval: float = 1.0  # seconds between session reads
    event_timeout: float = 300.0  # seconds before an event wait gives up
    wait_deadline: float = 0.0  # wall-clock bound on polling loops, 0 disables
    finality: FinalityMode = FinalityMode.FINALIZED

    def __post_init__(self) -> None:
        """Validate polling configuration."""
        for name in ("signature_retries", "session_retries"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
            if value > 1000:
                raise ValueError(f"{name} too high (max 1000), got {value}")

        for name in ("signature_interval", "session_interval"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
            if value > 300:
                raise ValueError(f"{name} too long (max 300s), got {value}")

        if self.event_timeout <= 0:
            raise ValueError(f"Event timeout must be positive, got {self.event_timeout}")
        if self.wait_deadline < 0:
            raise ValueError(f"Wait deadline must be non-negative, got {self.wait_deadline}")

    @property
    def deadline(self) -> float | None:
        return self.wait_deadline or None

    @property
    def signature_policy(self) -> RetryPolicy:
        return RetryPolicy(self.signature_retries, self.signature_interval, self.deadline)

    @property
    def session_policy(self) -> RetryPolicy:
        return RetryPolicy(self.session_retries, self.session_interval, self.deadline)


@dataclass(frozen=True, slots=True)
class RelayerConfig:
    """Main configuration for the notice relayer.

    Attributes:
        starport: Configuration for the counter-chain Starport
        polling: Configuration for event waits and polling
        local_mode: Whether Starport transactions are signed with a local key
        local_private_key: Private key for local mode (optional)
        log_level: Logging level name
    """

    starport: StarportConfig
    polling: PollingConfig = field(default_factory=PollingConfig)
    local_mode: bool = False
    local_private_key: str | None = None
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        """Validate relayer configuration."""
        if self.local_mode and not self.local_private_key:
            raise ValueError(
                "Local mode requires LOCAL_PRIVATE_KEY environment variable"
            )

        if self.local_private_key:
            # Basic private key validation (should be 64 hex chars, optionally with 0x prefix)
            key = self.local_private_key.removeprefix('0x')

            if len(key) != 64:
                raise ValueError(
                    f"Invalid private key length. Expected 64 hex characters, got {len(key)}"
                )

            try:
                int(key, 16)
            except ValueError:
                raise ValueError(
                    "Invalid private key format. Must be hexadecimal"
                ) from None

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {self.log_level}")

    @classmethod
    def from_env(cls, local_mode: bool = False) -> "RelayerConfig":
        """Load configuration from environment variables.

        Args:
            local_mode: Whether to sign Starport transactions with LOCAL_PRIVATE_KEY

        Returns:
            RelayerConfig instance with loaded values

        Raises:
            ValueError: If required environment variables are missing or invalid
        """
        starport_config = StarportConfig(
            rpc_url=os.environ.get("STARPORT_RPC_URL", ""),
            contract_address=os.environ.get("STARPORT_ADDRESS", ""),
            request_timeout=int(os.environ.get("REQUEST_TIMEOUT", "30")),
            receipt_timeout=int(os.environ.get("RECEIPT_TIMEOUT", "120")),
        )

        finality_name = os.environ.get("FINALITY", FinalityMode.FINALIZED.value).lower()
        try:
            finality = FinalityMode(finality_name)
        except ValueError:
            raise ValueError(
                f"Invalid FINALITY: {finality_name}. Expected 'finalized' or 'inclusion'"
            ) from None

        polling_config = PollingConfig(
            signature_retries=int(os.environ.get("SIGNATURE_RETRIES", "10")),
            signature_interval=float(os.environ.get("SIGNATURE_INTERVAL", "3.0")),
            session_retries=int(os.environ.get("SESSION_RETRIES", "60")),
            session_interval=float(os.environ.get("SESSION_INTERVAL", "1.0")),
            event_timeout=float(os.environ.get("EVENT_TIMEOUT", "300")),
            wait_deadline=float(os.environ.get("WAIT_DEADLINE", "0")),
            finality=finality,
        )

        local_private_key = os.environ.get("LOCAL_PRIVATE_KEY") if local_mode else None

        return cls(
            starport=starport_config,
            polling=polling_config,
            local_mode=local_mode,
            local_private_key=local_private_key,
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
        )

    def log_config(self) -> None:
        """Log the configuration in a readable format for debugging."""
        logger.info("=" * 60)
        logger.info("Notice Relayer Configuration")
        logger.info("=" * 60)

        logger.info("Starport:")
        logger.info(f"  RPC URL: {self.starport.rpc_url}")
        logger.info(f"  Contract: {self.starport.contract_address}")

        logger.info("Polling Settings:")
        logger.info(
            f"  Signatures: {self.polling.signature_retries} retries "
            f"every {self.polling.signature_interval}s"
        )
        logger.info(
            f"  Sessions: {self.polling.session_retries} retries "
            f"every {self.polling.session_interval}s"
        )
        logger.info(f"  Event Timeout: {self.polling.event_timeout}s")
        logger.info(f"  Wait Deadline: {self.polling.deadline or 'none'}")
        logger.info(f"  Finality: {self.polling.finality.value}")

        logger.info("Relayer Settings:")
        logger.info(f"  Mode: {'LOCAL' if self.local_mode else 'READ-ONLY'}")

        if self.local_mode:
            logger.info("  Local Key: [CONFIGURED]")

        logger.info("=" * 60)
