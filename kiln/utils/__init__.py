"""Kiln Ledger - Utility modules."""

from kiln.utils.failpoints import get_active_failpoint, is_failpoint_enabled, maybe_fail
from kiln.utils.hashing import sha256_bytes

__all__ = [
    # failpoints
    "maybe_fail",
    "is_failpoint_enabled",
    "get_active_failpoint",
    # hashing
    "sha256_bytes",
]
