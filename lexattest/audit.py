"""
Hash-chained audit trail for document events.

Every event is wrapped in a Block whose hash covers its index, timestamp,
event and the previous block's hash. Editing any block breaks either its
own hash or the link from its successor, and verify_chain() reports it.

This is an append-only log, not a consensus system: there is no mining,
no difficulty target and no forks.

Block hash:
    sha256(canonical_json({index, timestamp, event, previous_hash}))

Audit certificate:
    document_hash    = sha256(content)
    merkle_root      = pairwise root over the document's block hashes
    certificate_hash = sha256(document_hash + merkle_root)
    registration_id  = "LRAC-YYYY-MM-DD-<block_count>"
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from lexattest.clock import Clock, as_utc, iso_utc, system_clock
from lexattest.fingerprint import digest, object_digest

logger = logging.getLogger(__name__)

GENESIS_PREVIOUS_HASH = "0"
REGISTRATION_PREFIX = "LRAC"
SYSTEM_USER_ID = "system"
SYSTEM_USER_EMAIL = "system@legalresearch.app"


class AuditEventType(StrEnum):
    """Everything the trail can record."""

    # Document lifecycle
    DOCUMENT_CREATED = "DOCUMENT_CREATED"
    DOCUMENT_EDITED = "DOCUMENT_EDITED"
    DOCUMENT_REVIEWED = "DOCUMENT_REVIEWED"
    DOCUMENT_SIGNED = "DOCUMENT_SIGNED"
    DOCUMENT_FINALIZED = "DOCUMENT_FINALIZED"
    DOCUMENT_EXPORTED = "DOCUMENT_EXPORTED"

    # Integrity checks
    DOCUMENT_VERIFIED = "DOCUMENT_VERIFIED"
    DOCUMENT_MODIFIED = "DOCUMENT_MODIFIED"

    # System
    USER_LOGIN = "USER_LOGIN"
    SEARCH_PERFORMED = "SEARCH_PERFORMED"
    SYSTEM_BACKUP = "SYSTEM_BACKUP"


@dataclass(frozen=True)
class AuditEvent:
    """What happened, to which document, and who did it."""

    type: AuditEventType
    user_id: str
    user_email: str
    document_id: str | None = None
    document_name: str | None = None
    details: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Hashed into the block; must not alias the caller's dict
        object.__setattr__(self, "metadata", copy.deepcopy(dict(self.metadata)))

    def to_dict(self) -> dict[str, object]:
        result: dict[str, object] = {
            "type": self.type.value,
            "user_id": self.user_id,
            "user_email": self.user_email,
        }
        if self.document_id is not None:
            result["document_id"] = self.document_id
        if self.document_name is not None:
            result["document_name"] = self.document_name
        if self.details is not None:
            result["details"] = self.details
        if self.metadata:
            result["metadata"] = dict(self.metadata)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuditEvent:
        return cls(
            type=AuditEventType(data["type"]),
            user_id=data["user_id"],
            user_email=data["user_email"],
            document_id=data.get("document_id"),
            document_name=data.get("document_name"),
            details=data.get("details"),
            metadata=data.get("metadata", {}),
        )


@dataclass(frozen=True)
class Block:
    """One link in the audit chain."""

    index: int
    timestamp: str
    event: AuditEvent
    previous_hash: str
    hash: str

    def to_dict(self) -> dict[str, object]:
        return {
            "index": self.index,
            "timestamp": self.timestamp,
            "event": self.event.to_dict(),
            "previous_hash": self.previous_hash,
            "hash": self.hash,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Block:
        return cls(
            index=int(data["index"]),
            timestamp=data["timestamp"],
            event=AuditEvent.from_dict(data["event"]),
            previous_hash=data["previous_hash"],
            hash=data["hash"],
        )


def compute_block_hash(index: int, timestamp: str, event: AuditEvent, previous_hash: str) -> str:
    return object_digest(
        {
            "index": index,
            "timestamp": timestamp,
            "event": event.to_dict(),
            "previous_hash": previous_hash,
        }
    )


@dataclass(frozen=True)
class ChainVerification:
    """Result of walking the chain. invalid_blocks holds block indices."""

    valid: bool
    invalid_blocks: tuple[int, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {"valid": self.valid, "invalid_blocks": list(self.invalid_blocks)}


def verify_blocks(blocks: Sequence[Block]) -> ChainVerification:
    """Check every block's hash and its link to the previous block.

    A block with a broken link is reported without also checking its hash.
    """
    invalid: list[int] = []
    for i, block in enumerate(blocks):
        if i > 0 and block.previous_hash != blocks[i - 1].hash:
            invalid.append(block.index)
            continue
        expected = compute_block_hash(block.index, block.timestamp, block.event, block.previous_hash)
        if expected != block.hash:
            invalid.append(block.index)
    return ChainVerification(valid=not invalid, invalid_blocks=tuple(invalid))


def merkle_root(hashes: Sequence[str]) -> str:
    """Pairwise hash tree root. An odd node at any level is paired with itself."""
    if not hashes:
        return digest("")
    level = list(hashes)
    while len(level) > 1:
        if len(level) % 2 == 1:
            level.append(level[-1])
        level = [digest(level[i] + level[i + 1]) for i in range(0, len(level), 2)]
    return level[0]


@dataclass(frozen=True)
class AuditCertificate:
    """Proof that a document's content and history were checked at a point in time."""

    document_id: str
    document_hash: str
    block_count: int
    merkle_root: str
    certificate_hash: str
    timestamp: str
    registration_id: str

    def to_dict(self) -> dict[str, object]:
        return {
            "document_id": self.document_id,
            "document_hash": self.document_hash,
            "block_count": self.block_count,
            "merkle_root": self.merkle_root,
            "certificate_hash": self.certificate_hash,
            "timestamp": self.timestamp,
            "registration_id": self.registration_id,
        }


class AuditTrail:
    """In-memory hash-chained event log, starting from a genesis block.

    Args:
        clock: Time source for block timestamps.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or system_clock
        self._lock = threading.Lock()
        self._blocks: tuple[Block, ...] = (self._genesis_block(),)

    @classmethod
    def from_blocks(cls, blocks: Iterable[Block], clock: Clock | None = None) -> AuditTrail:
        """Rebuild a trail from previously exported blocks (not re-verified)."""
        trail = cls(clock=clock)
        loaded = tuple(blocks)
        if not loaded:
            raise ValueError("an audit trail needs at least a genesis block")
        trail._blocks = loaded
        return trail

    def _genesis_block(self) -> Block:
        event = AuditEvent(
            type=AuditEventType.SYSTEM_BACKUP,
            user_id=SYSTEM_USER_ID,
            user_email=SYSTEM_USER_EMAIL,
            details="Audit trail initialized",
        )
        timestamp = iso_utc(self._clock())
        return Block(
            index=0,
            timestamp=timestamp,
            event=event,
            previous_hash=GENESIS_PREVIOUS_HASH,
            hash=compute_block_hash(0, timestamp, event, GENESIS_PREVIOUS_HASH),
        )

    def append(self, event: AuditEvent) -> Block:
        with self._lock:
            latest = self._blocks[-1]
            index = latest.index + 1
            timestamp = iso_utc(self._clock())
            block = Block(
                index=index,
                timestamp=timestamp,
                event=event,
                previous_hash=latest.hash,
                hash=compute_block_hash(index, timestamp, event, latest.hash),
            )
            self._blocks = (*self._blocks, block)
        logger.debug("Audit block %d: %s", block.index, event.type.value)
        return block

    def record_document_event(
        self,
        event_type: AuditEventType,
        document_id: str,
        document_name: str,
        user_id: str,
        user_email: str,
        details: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Block:
        return self.append(
            AuditEvent(
                type=event_type,
                user_id=user_id,
                user_email=user_email,
                document_id=document_id,
                document_name=document_name,
                details=details,
                metadata=metadata or {},
            )
        )

    def record_system_event(
        self,
        event_type: AuditEventType,
        user_id: str,
        user_email: str,
        details: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Block:
        return self.append(
            AuditEvent(
                type=event_type,
                user_id=user_id,
                user_email=user_email,
                details=details,
                metadata=metadata or {},
            )
        )

    def blocks(self) -> list[Block]:
        return list(self._blocks)

    def latest_block(self) -> Block:
        return self._blocks[-1]

    def document_blocks(self, document_id: str) -> list[Block]:
        return [b for b in self._blocks if b.event.document_id == document_id]

    def verify_chain(self) -> ChainVerification:
        result = verify_blocks(self._blocks)
        if not result.valid:
            logger.warning("Audit chain broken at blocks %s", list(result.invalid_blocks))
        return result

    def generate_audit_certificate(self, document_id: str, content: str | bytes) -> AuditCertificate:
        """Bind a document's current content to its recorded history."""
        blocks = self.document_blocks(document_id)
        document_hash = digest(content)
        root = merkle_root([b.hash for b in blocks])
        now = as_utc(self._clock())
        return AuditCertificate(
            document_id=document_id,
            document_hash=document_hash,
            block_count=len(blocks),
            merkle_root=root,
            certificate_hash=digest(document_hash + root),
            timestamp=iso_utc(now),
            registration_id=f"{REGISTRATION_PREFIX}-{now:%Y-%m-%d}-{len(blocks)}",
        )

    def __len__(self) -> int:
        return len(self._blocks)
