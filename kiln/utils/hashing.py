"""Kiln Ledger - Hashing utilities.

Hash functions return the hex digest only (no prefix).
"""

import hashlib


def sha256_bytes(data: bytes) -> str:
    """Compute SHA256 hash of bytes.

    Used to fingerprint stored image blobs for display.

    Args:
        data: Bytes to hash.

    Returns:
        SHA256 hex digest (64 lowercase hex characters, no prefix).
    """
    return hashlib.sha256(data).hexdigest()
