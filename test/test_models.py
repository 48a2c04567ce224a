#!/usr/bin/env python3
"""Tests for data models and the notice encoder."""

import pytest
from web3 import Web3

from notice_relayer.models import (
    EthSignaturePairs,
    EventKey,
    EventWaitSpec,
    Notice,
    NoticeId,
    RetryPolicy,
)
from notice_relayer.utils.notice_encoder import NoticeEncoder, notice_hash

from conftest import SENTINEL_HASH, build_notice_chain


class TestNoticeId:
    """Tests for NoticeId."""

    def test_parse_chain_representation(self):
        """Test parsing the [era_id, era_index] form returned by the chain."""
        assert NoticeId.parse([3, 7]) == NoticeId(3, 7)
        assert NoticeId.parse(("3", "7")) == NoticeId(3, 7)

    def test_parse_passes_through_instances(self):
        notice_id = NoticeId(1, 2)
        assert NoticeId.parse(notice_id) is notice_id

    def test_parse_rejects_invalid(self):
        with pytest.raises(ValueError, match="Invalid notice id"):
            NoticeId.parse("1.2")

    def test_ordering(self):
        """Test that ids order by era first, then index."""
        assert NoticeId(1, 9) < NoticeId(2, 0) < NoticeId(2, 1)


class TestEthSignaturePairs:
    """Tests for signature pair handling."""

    def test_distinct_keeps_one_signature_per_validator(self):
        pairs = EthSignaturePairs((
            ("0xAbC0000000000000000000000000000000000001", b"sig-a"),
            ("0xabc0000000000000000000000000000000000001", b"sig-a-again"),
            ("0x0000000000000000000000000000000000000002", b"sig-b"),
        ))

        distinct = pairs.distinct()

        assert len(distinct) == 2
        assert distinct[0] == ("0xAbC0000000000000000000000000000000000001", b"sig-a")

    def test_distinct_keeps_checksummed_address(self):
        """Test that the returned validator keeps the casing it was reported with."""
        checksummed = "0x85BfE05492aFC3D04Ff3B2ca6771ACF6f853d90d"
        pairs = EthSignaturePairs(((checksummed, b"sig"), (checksummed.lower(), b"other")))

        assert pairs.distinct() == [(checksummed, b"sig")]


class TestNoticeEncoder:
    """Tests for encoding and hashing notices."""

    def test_encode_decode_preserves_hash(self):
        """Re-encoding a decoded notice must reproduce the same bytes and hash."""
        notice = NoticeEncoder.build_notice("Eth", 4, 2, b"\x11" * 32, b"\xde\xad\xbe\xef")

        fields = NoticeEncoder.decode(notice.encoded_payload)
        reencoded = NoticeEncoder.encode(
            fields.era_id, fields.era_index, fields.parent_hash, fields.call_data
        )

        assert reencoded == notice.encoded_payload
        assert notice_hash(reencoded) == notice.hash
        assert fields.parent_hash == b"\x11" * 32
        assert fields.call_data == b"\xde\xad\xbe\xef"

    def test_hash_is_keccak_of_payload(self):
        notice = NoticeEncoder.build_notice("Eth", 1, 0, SENTINEL_HASH)
        assert notice.hash == bytes(Web3.keccak(notice.encoded_payload))

    def test_parent_links(self):
        """Each notice's parent hash is the hash of the notice before it."""
        chain = build_notice_chain("Eth", 4)

        assert chain[0].parent_hash == SENTINEL_HASH
        for previous, current in zip(chain, chain[1:]):
            assert current.parent_hash == previous.hash

    def test_payload_starts_with_magic(self):
        notice = NoticeEncoder.build_notice("Eth", 1, 0, SENTINEL_HASH)
        assert notice.encoded_payload.startswith(b"ETH:")

    def test_from_encoded_hex_string(self):
        """Test rebuilding a notice from the hex form returned by RPC."""
        notice = NoticeEncoder.build_notice("Eth", 2, 5, b"\x22" * 32, b"call")

        rebuilt = NoticeEncoder.from_encoded("Eth", "0x" + notice.encoded_payload.hex())

        assert rebuilt == notice

    def test_from_event_data(self):
        notice = NoticeEncoder.build_notice("Eth", 2, 5, b"\x22" * 32)

        decoded = NoticeEncoder.from_event_data({
            "ChainId": "Eth",
            "NoticeId": [2, 5],
            "EncodedNotice": notice.encoded_payload.hex(),
        })

        assert decoded == notice

    def test_from_event_data_rejects_mismatched_id(self):
        notice = NoticeEncoder.build_notice("Eth", 2, 5, b"\x22" * 32)

        with pytest.raises(ValueError, match="does not match"):
            NoticeEncoder.from_event_data({
                "ChainId": "Eth",
                "NoticeId": [2, 6],
                "EncodedNotice": notice.encoded_payload,
            })

    def test_decode_rejects_foreign_payload(self):
        with pytest.raises(ValueError, match="Not an Ethereum notice"):
            NoticeEncoder.decode(b"MATC" + b"\x00" * 64)

    def test_encode_rejects_short_parent_hash(self):
        with pytest.raises(ValueError, match="Parent hash must be 32 bytes"):
            NoticeEncoder.encode(1, 0, b"\x01" * 20, b"")

    def test_notice_str_abbreviates_hash(self):
        notice = NoticeEncoder.build_notice("Eth", 1, 3, SENTINEL_HASH)
        assert str(notice).startswith("Notice(chain=Eth, id=1.3, hash=0x")


class TestNotice:
    """Tests for the Notice model."""

    def test_notice_is_immutable(self):
        notice = NoticeEncoder.build_notice("Eth", 1, 0, SENTINEL_HASH)
        with pytest.raises(AttributeError):
            notice.chain_id = "Matic"  # type: ignore[misc]
        assert isinstance(notice, Notice)


class TestEventWaitSpec:
    """Tests for EventWaitSpec."""

    def test_build_without_failure(self):
        spec = EventWaitSpec.build("cash", "Notice")
        assert spec.keys == (EventKey("cash", "Notice"),)

    def test_build_with_tuple_failure(self):
        spec = EventWaitSpec.build("cash", "ProcessedChainEvent", ("cash", "FailedProcessingEthEvent"))
        assert spec.failure == EventKey("cash", "FailedProcessingEthEvent")
        assert len(spec.keys) == 2


class TestRetryPolicy:
    """Tests for RetryPolicy validation."""

    def test_negative_retries_rejected(self):
        with pytest.raises(ValueError, match="Retry count must be non-negative"):
            RetryPolicy(max_retries=-1, interval=1.0)

    def test_negative_interval_rejected(self):
        with pytest.raises(ValueError, match="Retry interval must be non-negative"):
            RetryPolicy(max_retries=1, interval=-0.5)

    def test_non_positive_deadline_rejected(self):
        with pytest.raises(ValueError, match="Deadline must be positive"):
            RetryPolicy(max_retries=1, interval=1.0, deadline=0)
