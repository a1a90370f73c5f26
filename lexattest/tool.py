"""
Tool entrypoints for UI event handlers.

Eight tools:
- digest: Fingerprint a piece of content
- certificates: List signer certificates
- sign: Sign a document with a certificate
- verify: Verify current content against a document's signatures
- signatures: List signature records for a document
- compare: Original-vs-current tamper comparison
- audit_certificate: Issue an audit certificate from the audit trail
- audit_chain: Verify the audit trail's hash chain

Every tool returns a ToolResult and never raises for bad input or
rejected certificates. Input that is not text is rejected here, before
it reaches the core.
"""

from dataclasses import dataclass, field
from typing import Any

from lexattest.audit import AuditTrail
from lexattest.clock import Clock
from lexattest.comparator import AccessRecord, compare
from lexattest.errors import IntegrityError
from lexattest.fingerprint import DIGEST_ALGORITHM, digest
from lexattest.ledger import IntegrityLedger

ERROR_INVALID_INPUT = "INVALID_INPUT"
ERROR_NO_AUDIT_TRAIL = "NO_AUDIT_TRAIL"


@dataclass
class ToolResult:
    """Result from a tool invocation."""

    success: bool
    data: dict[str, Any] = field(default_factory=lambda: {})
    error: str | None = None
    error_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success}
        if self.success:
            result.update(self.data)
        else:
            result["error"] = self.error
            if self.error_code is not None:
                result["error_code"] = self.error_code
        return result


def _invalid(message: str) -> ToolResult:
    return ToolResult(success=False, error=message, error_code=ERROR_INVALID_INPUT)


def _failed(exc: IntegrityError) -> ToolResult:
    return ToolResult(
        success=False,
        data={"details": exc.details} if exc.details else {},
        error=str(exc),
        error_code=exc.error_code,
    )


def _check_id(name: str, value: Any) -> ToolResult | None:
    if not isinstance(value, str) or not value.strip():
        return _invalid(f"{name} must be a non-empty string")
    return None


def _check_text(name: str, value: Any) -> ToolResult | None:
    if not isinstance(value, str):
        return _invalid(f"{name} must be text, got {type(value).__name__}")
    return None


class IntegrityTools:
    """
    Tool implementations over a ledger and an optional audit trail.

    Usage:
        tools = IntegrityTools(audit_trail=AuditTrail())

        tools.sign("SMITH2025-BRIEF-01", text, "cert-1").to_dict()
        tools.verify("SMITH2025-BRIEF-01", text).to_dict()
        tools.compare("Settlement.pdf", original, current).to_dict()
    """

    def __init__(
        self,
        ledger: IntegrityLedger | None = None,
        audit_trail: AuditTrail | None = None,
        clock: Clock | None = None,
    ):
        """
        Initialize tools.

        Args:
            ledger: Existing ledger, or None to create one.
            audit_trail: Trail for audit tools. Defaults to the ledger's trail.
            clock: Time source for new ledgers and comparisons.
        """
        if ledger is None:
            ledger = IntegrityLedger(audit_trail=audit_trail, clock=clock)
        self.ledger = ledger
        self.audit_trail = audit_trail if audit_trail is not None else ledger.audit_trail
        self._clock = clock

    def digest(self, content: Any) -> ToolResult:
        if (err := _check_text("content", content)) is not None:
            return err
        return ToolResult(
            success=True,
            data={"digest": digest(content), "algorithm": DIGEST_ALGORITHM},
        )

    def certificates(self) -> ToolResult:
        try:
            certs = self.ledger.directory.list()
        except IntegrityError as e:
            return _failed(e)
        return ToolResult(success=True, data={"certificates": [c.to_dict() for c in certs]})

    def sign(
        self,
        document_id: Any,
        content: Any,
        certificate_id: Any,
        document_name: str | None = None,
    ) -> ToolResult:
        for err in (
            _check_id("document_id", document_id),
            _check_text("content", content),
            _check_id("certificate_id", certificate_id),
        ):
            if err is not None:
                return err
        try:
            record = self.ledger.sign(
                document_id, content, certificate_id, document_name=document_name
            )
        except IntegrityError as e:
            return _failed(e)
        return ToolResult(success=True, data={"signature": record.to_dict()})

    def verify(self, document_id: Any, content: Any, document_name: str | None = None) -> ToolResult:
        for err in (_check_id("document_id", document_id), _check_text("content", content)):
            if err is not None:
                return err
        try:
            outcome = self.ledger.verify(document_id, content, document_name=document_name)
        except IntegrityError as e:
            return _failed(e)
        return ToolResult(success=True, data=outcome.to_dict())

    def signatures(self, document_id: Any) -> ToolResult:
        if (err := _check_id("document_id", document_id)) is not None:
            return err
        records = self.ledger.get_signatures(document_id)
        return ToolResult(
            success=True,
            data={
                "document_id": document_id,
                "signatures": [r.to_dict() for r in records],
            },
        )

    def compare(
        self,
        document_name: Any,
        original_content: Any,
        current_content: Any,
        last_access: dict[str, Any] | None = None,
    ) -> ToolResult:
        for err in (
            _check_text("document_name", document_name),
            _check_text("original_content", original_content),
            _check_text("current_content", current_content),
        ):
            if err is not None:
                return err
        access = None
        if last_access is not None:
            try:
                access = AccessRecord.from_dict(last_access)
            except KeyError as e:
                return _invalid(f"last_access is missing {e.args[0]!r}")
        result = compare(
            document_name,
            original_content,
            current_content,
            last_access=access,
            clock=self._clock,
        )
        return ToolResult(success=True, data=result.to_dict())

    def audit_certificate(self, document_id: Any, content: Any) -> ToolResult:
        for err in (_check_id("document_id", document_id), _check_text("content", content)):
            if err is not None:
                return err
        if self.audit_trail is None:
            return ToolResult(
                success=False,
                error="No audit trail is attached",
                error_code=ERROR_NO_AUDIT_TRAIL,
            )
        cert = self.audit_trail.generate_audit_certificate(document_id, content)
        return ToolResult(success=True, data=cert.to_dict())

    def audit_chain(self) -> ToolResult:
        if self.audit_trail is None:
            return ToolResult(
                success=False,
                error="No audit trail is attached",
                error_code=ERROR_NO_AUDIT_TRAIL,
            )
        verification = self.audit_trail.verify_chain()
        return ToolResult(
            success=True,
            data={**verification.to_dict(), "block_count": len(self.audit_trail)},
        )
