"""
Notice encoding utilities for the notice relayer.

This module provides ABI encoding, decoding and hashing for Ethereum-bound
notices. The hash of an encoded notice is what the following notice records
as its parent hash, so encoding must be byte-for-byte stable.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

from eth_abi import decode, encode
from hexbytes import HexBytes
from web3 import Web3

from ..models import Notice, NoticeId

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DecodedNotice:
    """Fields carried inside an encoded Ethereum notice."""
    era_id: int
    era_index: int
    parent_hash: bytes
    call_data: bytes


class NoticeEncoder:
    """Utilities for encoding notices bound for an Ethereum Starport."""

    ETH_MAGIC: bytes = b"ETH:"
    NOTICE_ABI_TYPES: tuple[str, ...] = ("uint256", "uint256", "bytes32", "bytes")
    HASH_LENGTH: int = 32

    @staticmethod
    def to_bytes_safe(value: Union[HexBytes, bytes, str]) -> bytes:
        """
        Safely convert value to bytes, handling HexBytes, bytes, and hex strings.

        Args:
            value: Value to convert (HexBytes, bytes, or hex string)

        Returns:
            Bytes representation
        """
        if isinstance(value, HexBytes):
            return bytes(value)
        elif isinstance(value, bytes):
            return value
        else:
            return Web3.to_bytes(hexstr=value)

    @classmethod
    def encode(cls, era_id: int, era_index: int, parent_hash: bytes, call_data: bytes) -> bytes:
        """
        Encode notice fields into the payload submitted to the Starport.

        Args:
            era_id: Era of the notice
            era_index: Index of the notice within its era
            parent_hash: 32-byte hash of the preceding notice
            call_data: ABI-encoded call the Starport will execute

        Returns:
            Magic-prefixed ABI encoding of the notice
        """
        if len(parent_hash) != cls.HASH_LENGTH:
            raise ValueError(f"Parent hash must be {cls.HASH_LENGTH} bytes, got {len(parent_hash)}")

        body = encode(list(cls.NOTICE_ABI_TYPES), [era_id, era_index, parent_hash, call_data])
        return cls.ETH_MAGIC + body

    @classmethod
    def decode(cls, encoded: bytes) -> DecodedNotice:
        """
        Decode an encoded notice back into its fields.

        Raises:
            ValueError: If the payload is not an Ethereum notice
        """
        if not encoded.startswith(cls.ETH_MAGIC):
            raise ValueError(f"Not an Ethereum notice: {encoded[:8].hex()}...")

        era_id, era_index, parent_hash, call_data = decode(
            list(cls.NOTICE_ABI_TYPES), encoded[len(cls.ETH_MAGIC):]
        )
        return DecodedNotice(
            era_id=era_id,
            era_index=era_index,
            parent_hash=bytes(parent_hash),
            call_data=bytes(call_data),
        )

    @classmethod
    def build_notice(
        cls,
        chain_id: str,
        era_id: int,
        era_index: int,
        parent_hash: bytes,
        call_data: bytes = b""
    ) -> Notice:
        """Create a Notice whose payload encodes the given fields."""
        return Notice(
            chain_id=chain_id,
            notice_id=NoticeId(era_id, era_index),
            encoded_payload=cls.encode(era_id, era_index, parent_hash, call_data),
            parent_hash=parent_hash,
        )

    @classmethod
    def from_encoded(cls, chain_id: str, encoded: Union[HexBytes, bytes, str]) -> Notice:
        """Rebuild a Notice from its encoded payload."""
        payload = cls.to_bytes_safe(encoded)
        fields = cls.decode(payload)
        return Notice(
            chain_id=chain_id,
            notice_id=NoticeId(fields.era_id, fields.era_index),
            encoded_payload=payload,
            parent_hash=fields.parent_hash,
        )

    @classmethod
    def from_event_data(cls, data: Mapping[str, Any]) -> Notice:
        """
        Build a Notice from a ``cash.Notice`` event payload.

        Args:
            data: Event data with ``ChainId``, ``NoticeId`` and ``EncodedNotice``

        Returns:
            The notice announced by the event
        """
        notice = cls.from_encoded(str(data["ChainId"]), data["EncodedNotice"])

        if "NoticeId" in data and (event_id := NoticeId.parse(data["NoticeId"])) != notice.notice_id:
            raise ValueError(
                f"Notice event id {event_id} does not match encoded id {notice.notice_id}"
            )

        logger.debug(f"Decoded {notice}")
        return notice


def notice_hash(encoded: Union[HexBytes, bytes, str]) -> bytes:
    """Keccak-256 hash used for parent links and Starport lookups."""
    return bytes(Web3.keccak(NoticeEncoder.to_bytes_safe(encoded)))
