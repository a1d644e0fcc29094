"""
Content hashing — SHA-256 digest and byte length of rendered output.

Text is always encoded as strict UTF-8, the same bytes the transactional
writer puts on disk, so a digest computed before writing is directly
comparable with one computed from the bytes read back. Malformed text
(e.g. lone surrogates) raises ``UnicodeEncodeError`` instead of being
silently replaced.
"""

from __future__ import annotations

import hashlib

ENCODING = "utf-8"


def encode(content: str | bytes) -> bytes:
    """Return the on-disk bytes for ``content``."""
    if isinstance(content, bytes):
        return content
    return content.encode(ENCODING, errors="strict")


def digest(content: str | bytes) -> str:
    """Lowercase hex SHA-256 of the encoded content."""
    return hashlib.sha256(encode(content)).hexdigest()


def byte_length(content: str | bytes) -> int:
    """Length in bytes of the encoded content."""
    return len(encode(content))
