"""
Error taxonomy for the integrity core.

Every error carries a stable ``error_code`` and a ``details`` dict so that
the tool facade can hand it to a UI without parsing messages.

Codes:
    CERTIFICATE_NOT_FOUND: sign referenced an id the directory doesn't know.
    CERTIFICATE_INVALID: certificate exists but is expired or revoked.
    INVALID_DIRECTORY: certificate file failed schema validation.
    TIMEOUT / CONNECTION_FAILED / HTTP_ERROR / INVALID_JSON: remote directory.
    DUPLICATE_RECORD: a store already holds a record with the same id.
    SIGNING_KEY_MISSING: the signer holds no private key for the certificate.
"""

from __future__ import annotations

from typing import Any

ERROR_CERTIFICATE_NOT_FOUND = "CERTIFICATE_NOT_FOUND"
ERROR_CERTIFICATE_INVALID = "CERTIFICATE_INVALID"
ERROR_INVALID_DIRECTORY = "INVALID_DIRECTORY"
ERROR_TIMEOUT = "TIMEOUT"
ERROR_CONNECTION_FAILED = "CONNECTION_FAILED"
ERROR_HTTP = "HTTP_ERROR"
ERROR_INVALID_JSON = "INVALID_JSON"
ERROR_DUPLICATE_RECORD = "DUPLICATE_RECORD"
ERROR_SIGNING_KEY_MISSING = "SIGNING_KEY_MISSING"


class IntegrityError(Exception):
    """Base class for all lexattest errors."""

    default_code = "INTEGRITY_ERROR"

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code or self.default_code
        self.details: dict[str, Any] = details or {}

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "error_code": self.error_code,
            "message": str(self),
        }
        if self.details:
            result["details"] = dict(self.details)
        return result


class CertificateNotFound(IntegrityError):
    """The referenced certificate id is absent from the directory."""

    default_code = ERROR_CERTIFICATE_NOT_FOUND

    def __init__(self, certificate_id: str) -> None:
        super().__init__(
            f"Certificate not found: {certificate_id!r}",
            details={"certificate_id": certificate_id},
        )
        self.certificate_id = certificate_id


class CertificateInvalid(IntegrityError):
    """The certificate exists but its status is not ``valid``."""

    default_code = ERROR_CERTIFICATE_INVALID

    def __init__(self, certificate_id: str, status: str) -> None:
        super().__init__(
            f"Certificate {certificate_id!r} is not valid (status: {status})",
            details={"certificate_id": certificate_id, "status": status},
        )
        self.certificate_id = certificate_id
        self.status = status


class DirectoryError(IntegrityError):
    """A certificate directory backing could not be read."""

    default_code = ERROR_INVALID_DIRECTORY


class StoreError(IntegrityError):
    """A signature store rejected an operation."""

    default_code = ERROR_DUPLICATE_RECORD


class SigningKeyMissing(IntegrityError):
    """The signer has no private key registered for the certificate."""

    default_code = ERROR_SIGNING_KEY_MISSING

    def __init__(self, certificate_id: str) -> None:
        super().__init__(
            f"No signing key registered for certificate {certificate_id!r}",
            details={"certificate_id": certificate_id},
        )
        self.certificate_id = certificate_id
