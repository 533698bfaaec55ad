"""Shared pytest fixtures for Kiln Ledger tests.

Every fixture works against an isolated SQLite file in a temporary directory,
cleaned up after the test completes.
"""

import tempfile
from pathlib import Path

import pytest

from kiln.database import KilnDatabase


@pytest.fixture
def temp_db():
    """Open a KilnDatabase on a temporary file.

    Yields:
        tuple: (db_path, KilnDatabase)
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        db = KilnDatabase.open(db_path)
        yield db_path, db
        db.close()


@pytest.fixture
def test_program(temp_db):
    """A kiln named "Test Kiln" with an empty program named "Test".

    Yields:
        tuple: (KilnDatabase, KilnProgram)
    """
    _, db = temp_db
    db.add_kiln("Test Kiln", "My test kiln")
    program = db.add_kiln_program("Test Kiln", "Test", "A test program")
    yield db, program
