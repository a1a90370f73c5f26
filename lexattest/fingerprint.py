"""
Content fingerprinting.

A content digest is the lowercase hex SHA-256 of the content's bytes.
Text is encoded as UTF-8 first, so ``digest("abc") == digest(b"abc")``.

Structured values (audit blocks, stored records) are serialized as
canonical JSON before hashing: sorted keys, no whitespace, UTF-8, no
NaN. Equal values always produce equal bytes and therefore equal digests.
"""

import hashlib
import json
import re
from typing import Any

DIGEST_ALGORITHM = "sha256"
DIGEST_HEX_LENGTH = 64

_DIGEST_RE = re.compile(r"^[0-9a-f]{64}$")


def _to_bytes(content: str | bytes) -> bytes:
    if isinstance(content, bytes):
        return content
    return content.encode("utf-8")


def digest(content: str | bytes) -> str:
    """Compute the SHA-256 hex digest of text or bytes.

    Empty content is valid and yields the digest of the empty string.
    """
    return hashlib.sha256(_to_bytes(content)).hexdigest()


def canonical_json(obj: Any) -> str:
    """Deterministic JSON text for hashing and storage."""
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def object_digest(obj: Any) -> str:
    """Digest of an object's canonical JSON representation."""
    return digest(canonical_json(obj))


def verify_digest(content: str | bytes, expected_digest: str) -> bool:
    """Check that content still matches a previously recorded digest."""
    return digest(content) == expected_digest


def is_digest(value: str) -> bool:
    """True if value looks like a content digest (64 lowercase hex chars)."""
    return bool(_DIGEST_RE.match(value))
