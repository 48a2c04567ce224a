#!/usr/bin/env python3
"""Counter-chain access for the notice relayer.

This module talks to the Starport contract on Ethereum: it answers whether a
notice hash has been invoked and submits signed notices or notice chains.
Web3 calls are blocking, so they run in worker threads to keep concurrent
workflows responsive.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from hexbytes import HexBytes
from web3 import Web3
from web3.contract import Contract
from web3.contract.contract import ContractFunction
from web3.types import TxReceipt

from .errors import SubmissionFailed
from .models import SignaturePair

if TYPE_CHECKING:
    from .utils.contract_utility import ContractUtility

logger = logging.getLogger(__name__)


class StarportClient:
    """Handles acceptance lookups and notice submission on the Starport contract."""

    def __init__(
        self,
        contract_util: "ContractUtility",
        contract_address: str,
        receipt_timeout: int = 120
    ) -> None:
        """
        Initialize the StarportClient.

        Args:
            contract_util: Utility for contract interactions
            contract_address: Address of the Starport contract
            receipt_timeout: Seconds to wait for a transaction receipt
        """
        self.contract_util: ContractUtility = contract_util
        self.contract_address: str = Web3.to_checksum_address(contract_address)
        self.receipt_timeout = receipt_timeout

        self.contract: Contract = self.contract_util.w3.eth.contract(
            address=self.contract_address,
            abi=self.contract_util.get_contract_abi("Starport")
        )

        mode = "signing" if contract_util.can_sign else "read-only"
        logger.info(f"StarportClient initialized in {mode} mode")
        logger.info(f"  Starport Address: {self.contract_address}")

    async def is_accepted(self, notice_hash: bytes) -> bool:
        """
        Check whether the Starport has invoked the notice with this hash.

        Args:
            notice_hash: Keccak-256 hash of the encoded notice

        Returns:
            True if the notice was already invoked
        """
        call = self.contract.functions.isNoticeInvoked(notice_hash).call
        invoked = bool(await asyncio.to_thread(call))
        logger.debug(f"Notice 0x{notice_hash.hex()[:10]}... invoked={invoked}")
        return invoked

    async def invoke(self, encoded_notice: bytes, signatures: Sequence[SignaturePair]) -> str:
        """
        Submit a notice together with its validator signatures.

        Args:
            encoded_notice: Encoded notice payload
            signatures: ``(validator, signature)`` pairs reaching quorum

        Returns:
            Transaction hash as a hex string

        Raises:
            SubmissionFailed: If the transaction cannot be sent or reverts
        """
        logger.info(f"Invoking notice with {len(signatures)} signatures")
        function = self.contract.functions.invoke(
            encoded_notice, [signature for _, signature in signatures]
        )
        return await self._transact(function)

    async def invoke_chain(self, encoded_notice: bytes, chain: Sequence[bytes]) -> str:
        """
        Submit a notice proven by a chain of notices ending at an accepted one.

        Args:
            encoded_notice: Encoded target notice
            chain: Encoded notices following the target, oldest first

        Returns:
            Transaction hash as a hex string

        Raises:
            SubmissionFailed: If the transaction cannot be sent or reverts
        """
        logger.info(f"Invoking notice through a chain of {len(chain)} notices")
        function = self.contract.functions.invokeChain(encoded_notice, list(chain))
        return await self._transact(function)

    async def _transact(self, function: ContractFunction) -> str:
        if not self.contract_util.can_sign:
            raise SubmissionFailed("Starport submissions require a signing key (LOCAL_PRIVATE_KEY)")

        w3 = self.contract_util.w3

        def send() -> tuple[HexBytes, TxReceipt]:
            tx_hash: HexBytes = function.transact({"gasPrice": w3.eth.gas_price})
            receipt: TxReceipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
            return tx_hash, receipt

        try:
            tx_hash, receipt = await asyncio.to_thread(send)
        except Exception as e:
            logger.error(f"Starport transaction failed: {e}", exc_info=True)
            raise SubmissionFailed(f"Starport transaction failed: {e}") from e

        tx_hex = Web3.to_hex(tx_hash)
        if (status := receipt.get("status", 0)) != 1:
            logger.error(f"✗ Transaction {tx_hex} failed with status={status}")
            raise SubmissionFailed(f"Transaction reverted with status={status}", tx_hash=tx_hex)

        logger.info(f"✓ Transaction {tx_hex} confirmed in block {receipt['blockNumber']}")
        return tx_hex
