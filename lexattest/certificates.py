"""
Certificate directory — who may sign, and whether their credential is good.

The directory is a read-only capability injected into the ledger. Issuance
and revocation live elsewhere; this module only answers ``lookup`` and
``list``.

Backings:
    - StaticCertificateDirectory: in-process mapping, seeded at start.
    - load_certificate_file(): JSON file validated against CERTIFICATE_FILE_SCHEMA.
    - RemoteCertificateDirectory (lexattest.directory_http): HTTP directory.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any, Protocol

import jsonschema  # type: ignore[import-untyped]

from lexattest.errors import DirectoryError

logger = logging.getLogger(__name__)


class CertificateStatus(StrEnum):
    """Lifecycle status of a signer certificate."""

    VALID = "valid"
    EXPIRED = "expired"
    REVOKED = "revoked"


@dataclass(frozen=True)
class Certificate:
    """A signer's identity and credential validity.

    ``public_key`` is a placeholder for the simulated signer, or the hex
    encoded raw Ed25519 public key when used with Ed25519Signer.
    """

    id: str
    name: str
    role: str
    issued: str
    expires: str
    status: CertificateStatus
    public_key: str
    bar_number: str | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("certificate id must be non-empty")
        if not isinstance(self.status, CertificateStatus):
            object.__setattr__(self, "status", CertificateStatus(self.status))

    @property
    def is_valid(self) -> bool:
        return self.status == CertificateStatus.VALID

    def to_dict(self) -> dict[str, object]:
        result: dict[str, object] = {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "issued": self.issued,
            "expires": self.expires,
            "status": self.status.value,
            "public_key": self.public_key,
        }
        if self.bar_number is not None:
            result["bar_number"] = self.bar_number
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Certificate:
        return cls(
            id=data["id"],
            name=data["name"],
            role=data["role"],
            issued=data["issued"],
            expires=data["expires"],
            status=CertificateStatus(data["status"]),
            public_key=data["public_key"],
            bar_number=data.get("bar_number"),
        )


class CertificateDirectory(Protocol):
    """Read-only lookup of signer certificates."""

    def lookup(self, certificate_id: str) -> Certificate | None:
        """Return the certificate, or None if the id is unknown."""
        ...

    def list(self) -> list[Certificate]:
        """Return all certificates in directory order."""
        ...


DEFAULT_CERTIFICATES: tuple[Certificate, ...] = (
    Certificate(
        id="cert-1",
        name="Sarah Johnson",
        role="Attorney",
        bar_number="12345",
        issued="2023-10-15",
        expires="2025-10-15",
        status=CertificateStatus.VALID,
        public_key="3081890281810...",
    ),
    Certificate(
        id="cert-2",
        name="Michael Wilson",
        role="Partner",
        bar_number="67890",
        issued="2024-02-28",
        expires="2026-02-28",
        status=CertificateStatus.VALID,
        public_key="3081890281811...",
    ),
)


class StaticCertificateDirectory:
    """In-memory certificate directory.

    Args:
        certificates: Certificates to serve. Defaults to DEFAULT_CERTIFICATES.
            Later entries with a duplicate id replace earlier ones.
    """

    def __init__(self, certificates: Iterable[Certificate] | None = None) -> None:
        if certificates is None:
            certificates = DEFAULT_CERTIFICATES
        self._certificates: dict[str, Certificate] = {}
        for cert in certificates:
            self._certificates[cert.id] = cert

    def lookup(self, certificate_id: str) -> Certificate | None:
        cert = self._certificates.get(certificate_id)
        logger.debug("Certificate lookup %s: %s", certificate_id, "hit" if cert else "miss")
        return cert

    def list(self) -> list[Certificate]:
        return list(self._certificates.values())

    def __len__(self) -> int:
        return len(self._certificates)

    def __contains__(self, certificate_id: object) -> bool:
        return certificate_id in self._certificates


# =========================================================================
# File backing
# =========================================================================

CERTIFICATE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["id", "name", "role", "issued", "expires", "status", "public_key"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "name": {"type": "string"},
        "role": {"type": "string"},
        "bar_number": {"type": ["string", "null"]},
        "issued": {"type": "string"},
        "expires": {"type": "string"},
        "status": {"enum": [s.value for s in CertificateStatus]},
        "public_key": {"type": "string"},
    },
}

CERTIFICATE_FILE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["certificates"],
    "properties": {
        "certificates": {"type": "array", "items": CERTIFICATE_SCHEMA},
    },
}


def validate_certificates(document: Any, schema: dict[str, Any] = CERTIFICATE_FILE_SCHEMA) -> None:
    """Validate a parsed certificate document, raising DirectoryError on failure."""
    try:
        jsonschema.validate(instance=document, schema=schema)
    except jsonschema.ValidationError as e:
        path = "/".join(str(p) for p in e.absolute_path)
        raise DirectoryError(
            f"Invalid certificate directory: {e.message}",
            details={"path": path},
        ) from e


def load_certificate_file(path: str | Path) -> StaticCertificateDirectory:
    """Load a JSON certificate file into a static directory.

    Expected shape: ``{"certificates": [{...}, ...]}``.

    Raises:
        DirectoryError: File cannot be read, is not JSON, or fails schema
            validation.
    """
    p = Path(path)
    try:
        document = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise DirectoryError(
            f"Certificate file could not be read: {p}",
            details={"path": str(p), "error": str(e)},
        ) from e
    except json.JSONDecodeError as e:
        raise DirectoryError(
            f"Certificate file is not valid JSON: {p}",
            details={"path": str(p)},
        ) from e

    validate_certificates(document)
    certificates = [Certificate.from_dict(item) for item in document["certificates"]]
    logger.info("Loaded %d certificates from %s", len(certificates), p)
    return StaticCertificateDirectory(certificates)
