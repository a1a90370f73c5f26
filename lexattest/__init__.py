"""
lexattest: Document integrity for legal research.

- Content fingerprints (SHA-256)
- Signing and verification against a certificate directory
- Original-vs-current tamper comparison with sectional diffs
- A hash-chained audit trail with audit certificates

Signatures are simulated by hashing unless an Ed25519Signer is supplied.
"""

__version__ = "0.1.0"

from lexattest.audit import (
    AuditCertificate,
    AuditEvent,
    AuditEventType,
    AuditTrail,
    Block,
    ChainVerification,
    merkle_root,
)
from lexattest.certificates import (
    DEFAULT_CERTIFICATES,
    Certificate,
    CertificateDirectory,
    CertificateStatus,
    StaticCertificateDirectory,
    load_certificate_file,
)
from lexattest.comparator import (
    AccessRecord,
    ChangedSection,
    ComparisonResult,
    compare,
    render_line_diff,
)
from lexattest.directory_http import RemoteCertificateDirectory
from lexattest.errors import (
    CertificateInvalid,
    CertificateNotFound,
    DirectoryError,
    IntegrityError,
    SigningKeyMissing,
    StoreError,
)
from lexattest.fingerprint import digest, verify_digest
from lexattest.ledger import IntegrityLedger
from lexattest.records import SignatureCheck, SignatureRecord, VerificationOutcome
from lexattest.signing import Ed25519Signer, Signer, SimulatedSigner
from lexattest.store import InMemorySignatureStore, SignatureStore, SqliteSignatureStore
from lexattest.tool import IntegrityTools, ToolResult

__all__ = [
    "DEFAULT_CERTIFICATES",
    "AccessRecord",
    "AuditCertificate",
    "AuditEvent",
    "AuditEventType",
    "AuditTrail",
    "Block",
    "Certificate",
    "CertificateDirectory",
    "CertificateInvalid",
    "CertificateNotFound",
    "CertificateStatus",
    "ChainVerification",
    "ChangedSection",
    "ComparisonResult",
    "DirectoryError",
    "Ed25519Signer",
    "InMemorySignatureStore",
    "IntegrityError",
    "IntegrityLedger",
    "IntegrityTools",
    "RemoteCertificateDirectory",
    "SignatureCheck",
    "SignatureRecord",
    "SignatureStore",
    "Signer",
    "SigningKeyMissing",
    "SimulatedSigner",
    "SqliteSignatureStore",
    "StaticCertificateDirectory",
    "StoreError",
    "ToolResult",
    "VerificationOutcome",
    "compare",
    "digest",
    "load_certificate_file",
    "merkle_root",
    "render_line_diff",
    "verify_digest",
]
