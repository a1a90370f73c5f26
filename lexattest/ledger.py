"""
Integrity ledger — sign documents against certificates, verify them later.

Signing:
    1. Look up the certificate (CertificateNotFound if absent).
    2. Require status == valid (CertificateInvalid otherwise).
    3. document_hash = digest(content).
    4. signature_value = signer.sign(document_hash, certificate).
    5. Append an immutable SignatureRecord to the store.

Verification:
    current_hash = digest(content), compared against every stored
    document_hash for the document, oldest first. The stored hash is
    historical and never recomputed; the comparison is what detects
    tampering. Raw content is never stored.

    No records -> verified=False with an empty signature list. Otherwise
    verified is True only if every signature checks out.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable

from lexattest.audit import SYSTEM_USER_EMAIL, SYSTEM_USER_ID, AuditEventType, AuditTrail
from lexattest.certificates import Certificate, CertificateDirectory, StaticCertificateDirectory
from lexattest.clock import Clock, iso_utc, system_clock
from lexattest.errors import CertificateInvalid, CertificateNotFound
from lexattest.fingerprint import digest
from lexattest.records import SignatureCheck, SignatureRecord, VerificationOutcome
from lexattest.signing import Signer, SimulatedSigner
from lexattest.store import InMemorySignatureStore, SignatureStore

logger = logging.getLogger(__name__)


def _new_signature_id() -> str:
    return f"sig-{uuid.uuid4().hex}"


class IntegrityLedger:
    """
    Signing and verification over an injectable signature store.

    Usage:
        ledger = IntegrityLedger()
        ledger.sign("SMITH2025-BRIEF-01", brief_text, "cert-1")

        outcome = ledger.verify("SMITH2025-BRIEF-01", brief_text)
        assert outcome.verified
    """

    def __init__(
        self,
        directory: CertificateDirectory | None = None,
        store: SignatureStore | None = None,
        signer: Signer | None = None,
        audit_trail: AuditTrail | None = None,
        clock: Clock | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        """
        Args:
            directory: Certificate lookup. Defaults to the seeded static directory.
            store: Where records live. Defaults to a fresh in-memory store.
            signer: Signature-value derivation. Defaults to SimulatedSigner.
            audit_trail: If given, sign/verify events are appended to it.
            clock: Time source for record timestamps.
            id_factory: Record id generator.
        """
        self.directory = directory if directory is not None else StaticCertificateDirectory()
        self.store = store if store is not None else InMemorySignatureStore()
        self.signer = signer if signer is not None else SimulatedSigner()
        self.audit_trail = audit_trail
        self._clock = clock or system_clock
        self._id_factory = id_factory or _new_signature_id

    def _require_valid_certificate(self, certificate_id: str) -> Certificate:
        certificate = self.directory.lookup(certificate_id)
        if certificate is None:
            logger.warning("Signing rejected: unknown certificate %s", certificate_id)
            raise CertificateNotFound(certificate_id)
        if not certificate.is_valid:
            logger.warning(
                "Signing rejected: certificate %s is %s", certificate_id, certificate.status.value
            )
            raise CertificateInvalid(certificate_id, certificate.status.value)
        return certificate

    def sign(
        self,
        document_id: str,
        content: str | bytes,
        certificate_id: str,
        *,
        document_name: str | None = None,
    ) -> SignatureRecord:
        """Sign a document's current content.

        Raises:
            CertificateNotFound: certificate_id is not in the directory.
            CertificateInvalid: the certificate is expired or revoked.
            SigningKeyMissing: the signer holds no key for the certificate.
        """
        certificate = self._require_valid_certificate(certificate_id)

        document_hash = digest(content)
        record = SignatureRecord(
            id=self._id_factory(),
            document_id=document_id,
            document_hash=document_hash,
            certificate_id=certificate.id,
            signatory_name=certificate.name,
            signatory_role=certificate.role,
            timestamp=iso_utc(self._clock()),
            signature_value=self.signer.sign(document_hash, certificate),
            algorithm=self.signer.algorithm,
        )
        self.store.append(record)
        logger.info(
            "Signed %s by %s (%s) hash=%s",
            document_id, certificate.id, record.id, document_hash[:12],
        )

        if self.audit_trail is not None:
            self.audit_trail.record_document_event(
                AuditEventType.DOCUMENT_SIGNED,
                document_id,
                document_name or document_id,
                certificate.id,
                SYSTEM_USER_EMAIL,
                details=f"Signed by {certificate.name} ({certificate.role})",
                metadata={"signature_id": record.id, "document_hash": document_hash},
            )
        return record

    def _check(self, record: SignatureRecord, current_hash: str) -> bool:
        if record.document_hash != current_hash:
            return False
        certificate = self.directory.lookup(record.certificate_id)
        if certificate is None:
            return False
        return self.signer.verify(record.document_hash, record.signature_value, certificate)

    def verify(
        self,
        document_id: str,
        content: str | bytes,
        *,
        document_name: str | None = None,
    ) -> VerificationOutcome:
        """Verify current content against every signature on the document."""
        current_hash = digest(content)
        records = self.store.query_by_document_id(document_id)

        if not records:
            logger.info("Verification of %s: no signatures", document_id)
            return VerificationOutcome(
                document_id=document_id,
                current_hash=current_hash,
                verified=False,
                signatures=(),
            )

        checks = tuple(
            SignatureCheck(
                signatory_name=r.signatory_name,
                signatory_role=r.signatory_role,
                timestamp=r.timestamp,
                verified=self._check(r, current_hash),
            )
            for r in records
        )
        verified = all(c.verified for c in checks)
        if not verified:
            logger.warning(
                "Verification of %s failed: %d of %d signatures do not match",
                document_id, sum(1 for c in checks if not c.verified), len(checks),
            )

        if self.audit_trail is not None:
            self.audit_trail.record_document_event(
                AuditEventType.DOCUMENT_VERIFIED if verified else AuditEventType.DOCUMENT_MODIFIED,
                document_id,
                document_name or document_id,
                SYSTEM_USER_ID,
                SYSTEM_USER_EMAIL,
                details="Signatures verified" if verified else "Content does not match signatures",
                metadata={"current_hash": current_hash},
            )

        return VerificationOutcome(
            document_id=document_id,
            current_hash=current_hash,
            verified=verified,
            signatures=checks,
        )

    def get_signatures(self, document_id: str) -> list[SignatureRecord]:
        """All signature records for a document, oldest first."""
        return self.store.query_by_document_id(document_id)
