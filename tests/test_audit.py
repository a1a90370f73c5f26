"""
Tests for the hash-chained audit trail.

Test plan:
- Genesis: index 0, previous_hash "0", system event, valid hash
- Append: indices increase, links to previous hash, document filtering
- Event metadata is copied on entry; later caller mutation leaves the chain
  valid
- Chain verification: valid after appends, edited event and broken link
  detected, export/import roundtrip keeps validity
- Merkle root: empty, single, odd count, order sensitivity
- Audit certificate: hashes, block count, registration id (dated in UTC)
"""

import dataclasses
from datetime import UTC, datetime, timedelta, timezone
from typing import Any

import pytest

from lexattest.audit import (
    GENESIS_PREVIOUS_HASH,
    AuditEventType,
    AuditTrail,
    Block,
    compute_block_hash,
    merkle_root,
)
from lexattest.fingerprint import digest

FIXED_NOW = datetime(2025, 4, 15, 9, 30, tzinfo=UTC)
BRIEF_ID = "SMITH2025-BRIEF-01"
BRIEF_NAME = "Smith v. Jones - Case Brief"


def _make_trail() -> AuditTrail:
    """Trail seeded with the sample history of a case brief."""
    trail = AuditTrail(clock=lambda: FIXED_NOW)
    trail.record_document_event(
        AuditEventType.DOCUMENT_CREATED, BRIEF_ID, BRIEF_NAME,
        "sarah-johnson", "sarah.johnson@lawfirm.com", "Initial draft created",
    )
    trail.record_document_event(
        AuditEventType.DOCUMENT_EDITED, BRIEF_ID, BRIEF_NAME,
        "michael-wilson", "michael.wilson@lawfirm.com", "Added case citations and legal analysis",
    )
    trail.record_system_event(
        AuditEventType.USER_LOGIN, "sarah-johnson", "sarah.johnson@lawfirm.com",
        "Login from IP 192.168.1.105",
    )
    trail.record_document_event(
        AuditEventType.DOCUMENT_CREATED, "SMITH2025-MOTION-03", "Smith v. Jones - Motion to Dismiss",
        "sarah-johnson", "sarah.johnson@lawfirm.com", "Created motion document",
    )
    return trail


class TestGenesis:
    def test_genesis_block(self) -> None:
        trail = AuditTrail(clock=lambda: FIXED_NOW)
        genesis = trail.latest_block()
        assert len(trail) == 1
        assert genesis.index == 0
        assert genesis.previous_hash == GENESIS_PREVIOUS_HASH
        assert genesis.event.type == AuditEventType.SYSTEM_BACKUP
        assert genesis.event.user_id == "system"
        assert genesis.hash == compute_block_hash(
            0, genesis.timestamp, genesis.event, GENESIS_PREVIOUS_HASH
        )


class TestAppend:
    def test_indices_and_links(self) -> None:
        blocks = _make_trail().blocks()
        assert [b.index for b in blocks] == [0, 1, 2, 3, 4]
        for prev, block in zip(blocks, blocks[1:]):
            assert block.previous_hash == prev.hash

    def test_document_blocks(self) -> None:
        trail = _make_trail()
        assert [b.event.type for b in trail.document_blocks(BRIEF_ID)] == [
            AuditEventType.DOCUMENT_CREATED,
            AuditEventType.DOCUMENT_EDITED,
        ]
        assert trail.document_blocks("missing") == []

    def test_system_event_has_no_document(self) -> None:
        block = _make_trail().blocks()[3]
        assert block.event.type == AuditEventType.USER_LOGIN
        assert block.event.document_id is None
        assert "document_id" not in block.event.to_dict()

    def test_metadata_is_hashed(self) -> None:
        trail = AuditTrail(clock=lambda: FIXED_NOW)
        a = trail.record_system_event(
            AuditEventType.SEARCH_PERFORMED, "u", "u@x", metadata={"query": "negligence"}
        )
        b = AuditTrail(clock=lambda: FIXED_NOW).record_system_event(
            AuditEventType.SEARCH_PERFORMED, "u", "u@x", metadata={"query": "precedent"}
        )
        assert a.hash != b.hash

    def test_caller_mutation_does_not_alter_block(self) -> None:
        trail = _make_trail()
        meta: dict[str, Any] = {"reviewer": "sarah-johnson", "notes": ["citations checked"]}
        block = trail.record_document_event(
            AuditEventType.DOCUMENT_REVIEWED, BRIEF_ID, BRIEF_NAME,
            "sarah-johnson", "sarah.johnson@lawfirm.com", metadata=meta,
        )
        meta["reviewer"] = "michael-wilson"
        meta["notes"].append("approved")

        assert block.event.metadata == {
            "reviewer": "sarah-johnson",
            "notes": ["citations checked"],
        }
        assert block.hash == compute_block_hash(
            block.index, block.timestamp, block.event, block.previous_hash
        )
        assert trail.verify_chain().valid

    def test_system_event_metadata_copied(self) -> None:
        trail = AuditTrail(clock=lambda: FIXED_NOW)
        meta = {"query": "negligence"}
        trail.record_system_event(AuditEventType.SEARCH_PERFORMED, "u", "u@x", metadata=meta)
        meta["query"] = "precedent"
        assert trail.verify_chain().valid


class TestChainVerification:
    def test_valid_chain(self) -> None:
        result = _make_trail().verify_chain()
        assert result.valid
        assert result.invalid_blocks == ()

    def test_edited_event_detected(self) -> None:
        blocks = _make_trail().blocks()
        edited = dataclasses.replace(
            blocks[2].event, details="Removed case citations"
        )
        blocks[2] = dataclasses.replace(blocks[2], event=edited)
        result = AuditTrail.from_blocks(blocks).verify_chain()
        assert not result.valid
        assert result.invalid_blocks == (2,)

    def test_rehashed_block_breaks_next_link(self) -> None:
        blocks = _make_trail().blocks()
        edited = dataclasses.replace(blocks[2].event, details="Rewritten")
        new_hash = compute_block_hash(2, blocks[2].timestamp, edited, blocks[2].previous_hash)
        blocks[2] = dataclasses.replace(blocks[2], event=edited, hash=new_hash)
        result = AuditTrail.from_blocks(blocks).verify_chain()
        assert result.invalid_blocks == (3,)

    def test_export_import_roundtrip(self) -> None:
        exported = [b.to_dict() for b in _make_trail().blocks()]
        restored = AuditTrail.from_blocks(Block.from_dict(d) for d in exported)
        assert restored.verify_chain().valid
        assert len(restored) == 5

    def test_from_blocks_requires_genesis(self) -> None:
        with pytest.raises(ValueError):
            AuditTrail.from_blocks([])


class TestMerkleRoot:
    def test_empty(self) -> None:
        assert merkle_root([]) == digest("")

    def test_single(self) -> None:
        h = digest("a")
        assert merkle_root([h]) == h

    def test_pair(self) -> None:
        a, b = digest("a"), digest("b")
        assert merkle_root([a, b]) == digest(a + b)

    def test_odd_count_duplicates_tail(self) -> None:
        a, b, c = digest("a"), digest("b"), digest("c")
        assert merkle_root([a, b, c]) == digest(digest(a + b) + digest(c + c))

    def test_order_matters(self) -> None:
        a, b = digest("a"), digest("b")
        assert merkle_root([a, b]) != merkle_root([b, a])


class TestAuditCertificate:
    def test_certificate_fields(self) -> None:
        trail = _make_trail()
        content = "The defendant breached the duty of care."
        cert = trail.generate_audit_certificate(BRIEF_ID, content)
        hashes = [b.hash for b in trail.document_blocks(BRIEF_ID)]
        assert cert.document_hash == digest(content)
        assert cert.block_count == 2
        assert cert.merkle_root == merkle_root(hashes)
        assert cert.certificate_hash == digest(cert.document_hash + cert.merkle_root)
        assert cert.registration_id == "LRAC-2025-04-15-2"
        assert cert.timestamp == "2025-04-15T09:30:00+00:00"

    def test_unknown_document(self) -> None:
        cert = _make_trail().generate_audit_certificate("nope", "")
        assert cert.block_count == 0
        assert cert.merkle_root == digest("")
        assert cert.registration_id.endswith("-0")

    def test_registration_date_is_utc(self) -> None:
        # 22:30 in UTC-5 is already the next day in UTC
        eastern = timezone(timedelta(hours=-5))
        local_now = datetime(2025, 4, 15, 22, 30, tzinfo=eastern)
        trail = AuditTrail(clock=lambda: local_now)
        trail.record_document_event(
            AuditEventType.DOCUMENT_CREATED, BRIEF_ID, BRIEF_NAME,
            "sarah-johnson", "sarah.johnson@lawfirm.com",
        )
        cert = trail.generate_audit_certificate(BRIEF_ID, "text")
        assert cert.timestamp == "2025-04-16T03:30:00+00:00"
        assert cert.registration_id == "LRAC-2025-04-16-1"
