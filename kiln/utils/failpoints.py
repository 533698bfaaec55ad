"""Kiln Ledger - Failpoint injection for crash testing.

Lets tests kill the process at a named point inside the step-replacement
transaction and then verify that the store still holds the previous steps.

Safety gate: failpoints are only active when KILN_ENABLE_FAILPOINTS=1.
The default is a complete no-op.

Environment variables:
- KILN_ENABLE_FAILPOINTS: Set to "1" to enable the failpoint system
- KILN_FAILPOINT: Name of the failpoint to trigger (e.g. "REPLACE_STEPS_AFTER_DELETE")
- KILN_FAILPOINT_EXIT_CODE: Exit code used when crashing (default: 42)

Usage:
    from kiln.utils.failpoints import maybe_fail

    maybe_fail("REPLACE_STEPS_AFTER_DELETE")
"""

from __future__ import annotations

import os

DEFAULT_EXIT_CODE = 42


def _normalize(name: str) -> str:
    name = name.upper()
    if name.startswith("FAILPOINT_"):
        name = name[len("FAILPOINT_") :]
    return name


def is_failpoint_enabled() -> bool:
    """True if KILN_ENABLE_FAILPOINTS=1."""
    return os.environ.get("KILN_ENABLE_FAILPOINTS") == "1"


def get_active_failpoint() -> str | None:
    """The armed failpoint name (without FAILPOINT_ prefix), or None."""
    if not is_failpoint_enabled():
        return None
    target = os.environ.get("KILN_FAILPOINT", "")
    if not target:
        return None
    return _normalize(target)


def maybe_fail(point: str) -> None:
    """Hard-exit the process if point is the armed failpoint.

    os._exit skips finally blocks and context-manager exits, so an open
    transaction is never committed or explicitly rolled back: SQLite discards
    it when the connection dies, which is exactly what tests want to observe.

    Args:
        point: The failpoint name. A FAILPOINT_ prefix is optional.
    """
    active = get_active_failpoint()
    if active is None or active != _normalize(point):
        return

    try:
        exit_code = int(os.environ.get("KILN_FAILPOINT_EXIT_CODE", str(DEFAULT_EXIT_CODE)))
    except ValueError:
        exit_code = DEFAULT_EXIT_CODE

    os._exit(exit_code)
