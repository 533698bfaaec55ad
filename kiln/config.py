"""Kiln Ledger - Configuration constants.

No external config libraries. Environment variables override defaults.
All paths are relative to the repository root by default.
"""

import logging
import os
from pathlib import Path

# Repository root (parent of kiln/)
REPO_ROOT = Path(__file__).parent.parent.resolve()

# Data directory and default database file
DATA_DIR = REPO_ROOT / "data"
DEFAULT_DB_PATH = DATA_DIR / "kiln.db"


def _get_db_path() -> Path:
    """Get the database path from environment or use default.

    Environment variable KILN_DB_PATH overrides the default location.

    Returns:
        Path to the database file.
    """
    env_val = os.environ.get("KILN_DB_PATH")
    if env_val:
        return Path(env_val)
    return DEFAULT_DB_PATH


def _get_echo_sql() -> bool:
    """KILN_ECHO_SQL=1 logs every SQL statement through the engine."""
    return os.environ.get("KILN_ECHO_SQL") == "1"


def _get_log_level() -> int:
    """Get the CLI log level from environment or use default.

    Environment variable KILN_LOG_LEVEL takes a level name (DEBUG, INFO, ...).
    Unknown names fall back to WARNING.

    Returns:
        Numeric logging level.
    """
    env_val = os.environ.get("KILN_LOG_LEVEL", "")
    level = logging.getLevelName(env_val.upper()) if env_val else None
    if isinstance(level, int):
        return level
    return logging.WARNING


# Database path (override with KILN_DB_PATH)
DB_PATH = _get_db_path()

# SQL echo for debugging (override with KILN_ECHO_SQL=1)
ECHO_SQL = _get_echo_sql()

# Log level used by the command-line front end
LOG_LEVEL = _get_log_level()

# Stored ramp_rate value meaning "as fast as possible"
AFAP_RAMP_VALUE = -1
