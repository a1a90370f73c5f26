"""
Signature-value derivation for the integrity ledger.

The ledger never computes signature values itself; it delegates to a
Signer. Two are provided:

SimulatedSigner (default):
    signature_value = sha256(document_hash + certificate.public_key)
    Not a real signature: anyone who knows the public key placeholder can
    produce it. It binds a document hash to a certificate for display.

Ed25519Signer:
    signature_value = hex(Ed25519.sign(document_hash as UTF-8))
    Signs with a private key registered for the certificate id and verifies
    with the certificate's hex-encoded raw public key.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Protocol

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    PublicFormat,
)

from lexattest.certificates import Certificate
from lexattest.errors import SigningKeyMissing
from lexattest.fingerprint import digest

logger = logging.getLogger(__name__)

ALGORITHM_SIMULATED = "sha256-simulated"
ALGORITHM_ED25519 = "ed25519"


class Signer(Protocol):
    """Derives and checks signature values for document hashes."""

    @property
    def algorithm(self) -> str:
        ...

    def sign(self, document_hash: str, certificate: Certificate) -> str:
        """Return the signature value binding document_hash to certificate."""
        ...

    def verify(self, document_hash: str, signature_value: str, certificate: Certificate) -> bool:
        """Return True if signature_value is what certificate would produce."""
        ...


class SimulatedSigner:
    """Hash-of-hash-plus-public-key stand-in for a real signature."""

    @property
    def algorithm(self) -> str:
        return ALGORITHM_SIMULATED

    def sign(self, document_hash: str, certificate: Certificate) -> str:
        return digest(document_hash + certificate.public_key)

    def verify(self, document_hash: str, signature_value: str, certificate: Certificate) -> bool:
        return self.sign(document_hash, certificate) == signature_value


class Ed25519Signer:
    """Real Ed25519 signatures.

    Args:
        private_keys: Signing key per certificate id. Only certificates with a
            registered key can sign; any certificate with a hex public key can
            be verified.
    """

    def __init__(self, private_keys: Mapping[str, Ed25519PrivateKey]) -> None:
        self._private_keys = dict(private_keys)

    @property
    def algorithm(self) -> str:
        return ALGORITHM_ED25519

    def sign(self, document_hash: str, certificate: Certificate) -> str:
        key = self._private_keys.get(certificate.id)
        if key is None:
            raise SigningKeyMissing(certificate.id)
        return key.sign(document_hash.encode("utf-8")).hex()

    def verify(self, document_hash: str, signature_value: str, certificate: Certificate) -> bool:
        try:
            public_key = public_key_from_hex(certificate.public_key)
            public_key.verify(bytes.fromhex(signature_value), document_hash.encode("utf-8"))
        except (InvalidSignature, ValueError) as e:
            logger.debug("Ed25519 verification failed for %s: %s", certificate.id, e)
            return False
        return True


# =========================================================================
# Key helpers
# =========================================================================


def generate_signing_key() -> Ed25519PrivateKey:
    """Generate a new Ed25519 signing key pair."""
    return Ed25519PrivateKey.generate()


def get_public_key_hex(private_key: Ed25519PrivateKey) -> str:
    """Extract the public key as a hex-encoded string (64 chars / 32 bytes)."""
    raw_bytes = private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    return raw_bytes.hex()


def public_key_from_hex(hex_string: str) -> Ed25519PublicKey:
    """Reconstruct an Ed25519 public key from hex-encoded raw bytes.

    Raises:
        ValueError: Not hex, or not 32 bytes.
    """
    return Ed25519PublicKey.from_public_bytes(bytes.fromhex(hex_string))
