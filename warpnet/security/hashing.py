"""SHA-256 helper."""

import hashlib


def convert_to_sha256(data: bytes) -> bytes:
    """Return the SHA-256 digest of ``data``; empty input is returned as is."""
    if not data:
        return data
    return hashlib.sha256(data).digest()