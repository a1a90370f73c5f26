"""
Signature records and verification outcomes.

A SignatureRecord is the auditable trace of one signing event. It binds a
document's content digest, as it was at signing time, to a certificate.

Invariants:
    - document_hash: 64 lowercase hex (SHA-256 of the content).
    - timestamp: ISO-8601 UTC (ending "Z" or "+00:00").
    - Frozen. document_hash is never recomputed after creation; verification
      compares a fresh digest against it.

A VerificationOutcome is derived on demand and never stored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from lexattest.fingerprint import is_digest

# Bump when the serialized record shape changes.
RECORD_VERSION = "0.1"

_UTC_TIMESTAMP_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|\+00:00)$"
)


def _validate_document_hash(value: str) -> None:
    if not is_digest(value):
        raise ValueError(f"document_hash must be 64 lowercase hex chars, got: {value!r}")


def _validate_timestamp(value: str) -> None:
    if not _UTC_TIMESTAMP_RE.match(value):
        raise ValueError(f"timestamp must be ISO-8601 UTC (ending Z or +00:00), got: {value!r}")


@dataclass(frozen=True)
class SignatureRecord:
    """One signing event.

    Attributes:
        id: Unique record id ("sig-" + hex).
        document_id: Identifier of the signed document.
        document_hash: Content digest at signing time.
        certificate_id: Certificate used to sign.
        signatory_name: Display name copied from the certificate.
        signatory_role: Role copied from the certificate.
        timestamp: When the document was signed.
        signature_value: Output of the Signer for (document_hash, certificate).
        algorithm: Which Signer produced signature_value.
    """

    id: str
    document_id: str
    document_hash: str
    certificate_id: str
    signatory_name: str
    signatory_role: str
    timestamp: str
    signature_value: str
    algorithm: str

    def __post_init__(self) -> None:
        _validate_document_hash(self.document_hash)
        _validate_timestamp(self.timestamp)

    def to_dict(self) -> dict[str, object]:
        return {
            "record_version": RECORD_VERSION,
            "id": self.id,
            "document_id": self.document_id,
            "document_hash": self.document_hash,
            "certificate_id": self.certificate_id,
            "signatory_name": self.signatory_name,
            "signatory_role": self.signatory_role,
            "timestamp": self.timestamp,
            "signature_value": self.signature_value,
            "algorithm": self.algorithm,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SignatureRecord:
        return cls(
            id=data["id"],
            document_id=data["document_id"],
            document_hash=data["document_hash"],
            certificate_id=data["certificate_id"],
            signatory_name=data["signatory_name"],
            signatory_role=data["signatory_role"],
            timestamp=data["timestamp"],
            signature_value=data["signature_value"],
            algorithm=data["algorithm"],
        )


@dataclass(frozen=True)
class SignatureCheck:
    """Verification result for a single signature."""

    signatory_name: str
    signatory_role: str
    timestamp: str
    verified: bool

    def to_dict(self) -> dict[str, object]:
        return {
            "signatory_name": self.signatory_name,
            "signatory_role": self.signatory_role,
            "timestamp": self.timestamp,
            "verified": self.verified,
        }


@dataclass(frozen=True)
class VerificationOutcome:
    """Result of verifying a document's current content against its signatures.

    An unsigned document yields ``verified=False`` with no signatures; a
    signed but altered one yields ``verified=False`` with at least one
    signature whose ``verified`` is False.
    """

    document_id: str
    current_hash: str
    verified: bool
    signatures: tuple[SignatureCheck, ...] = ()

    @property
    def signed(self) -> bool:
        return len(self.signatures) > 0

    def to_dict(self) -> dict[str, object]:
        return {
            "document_id": self.document_id,
            "current_hash": self.current_hash,
            "verified": self.verified,
            "signatures": [s.to_dict() for s in self.signatures],
        }
