"""Kiln Ledger - Database handle.

KilnDatabase is the call contract the command-line front end (and tests)
use: open-or-create a database file, then create/list/fetch kilns, programs
and projects.

Every call runs as one unit of work on a fresh Session from the handle's
engine; the Session is closed (and anything uncommitted rolled back) when the
call returns. Calls are serialized by a lock, so one handle may be shared
between threads, but separate handles on the same file are separate writers.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from kiln import mutations, queries
from kiln.db import init_db
from kiln.entities import Kiln, KilnProgram, KilnProject, ProjectFiringLink

logger = logging.getLogger(__name__)


class KilnDatabase:
    """An open kiln database."""

    def __init__(self, engine: Engine, session_factory: sessionmaker):
        self.engine = engine
        self._session_factory = session_factory
        self._lock = threading.RLock()

    @classmethod
    def open(cls, path: str | Path, echo: bool | None = None) -> KilnDatabase:
        """Open a database file, creating it and its schema if needed.

        Args:
            path: Database file path, or ":memory:" for a private database.
            echo: Optional override of config.ECHO_SQL.

        Raises:
            StoreError: If the file cannot be opened or the schema created.
        """
        if echo is None:
            engine, session_factory = init_db(path)
        else:
            engine, session_factory = init_db(path, echo=echo)
        logger.info("Opened kiln database %s", path)
        return cls(engine, session_factory)

    def close(self) -> None:
        self.engine.dispose()

    def __enter__(self) -> KilnDatabase:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextmanager
    def _unit_of_work(self) -> Iterator[Session]:
        with self._lock, self._session_factory() as session:
            yield session

    # --- Kilns ---

    def add_kiln(self, name: str, description: str = "") -> None:
        with self._unit_of_work() as session:
            mutations.create_kiln(session, name, description)

    def get_kiln(self, name: str) -> Kiln | None:
        with self._unit_of_work() as session:
            return queries.get_kiln(session, name)

    def list_kilns(self) -> list[str]:
        with self._unit_of_work() as session:
            return queries.list_kiln_names(session)

    # --- Kiln programs ---

    def add_kiln_program(
        self, kiln_name: str, program_name: str, description: str = ""
    ) -> KilnProgram:
        with self._unit_of_work() as session:
            return mutations.create_program(session, kiln_name, program_name, description)

    def list_kiln_programs(self, kiln_name: str) -> list[str]:
        with self._unit_of_work() as session:
            return queries.list_program_names(session, kiln_name)

    def get_kiln_program(self, kiln_name: str, program_name: str) -> KilnProgram | None:
        with self._unit_of_work() as session:
            return queries.get_kiln_program(session, kiln_name, program_name)

    def update_kiln_program(self, program: KilnProgram) -> KilnProgram:
        """Replace a program's stored steps; see mutations.replace_program_steps."""
        with self._unit_of_work() as session:
            return mutations.replace_program_steps(session, program)

    # --- Projects ---

    def add_project(self, name: str, description: str = "") -> KilnProject:
        with self._unit_of_work() as session:
            return mutations.create_project(session, name, description)

    def list_projects(self) -> list[str]:
        with self._unit_of_work() as session:
            return queries.list_project_names(session)

    def get_project(self, name: str) -> KilnProject | None:
        with self._unit_of_work() as session:
            return queries.get_project(session, name)

    def get_project_firing_links(self, project_name: str) -> list[ProjectFiringLink]:
        with self._unit_of_work() as session:
            return queries.get_project_firing_links(session, project_name)

    def add_project_firing(
        self, project: KilnProject, kiln_name: str, program_name: str, comment: str = ""
    ) -> KilnProject:
        with self._unit_of_work() as session:
            return mutations.add_project_firing(
                session, project, kiln_name, program_name, comment
            )

    def add_project_image(
        self, project: KilnProject, image_name: str, description: str, contents: bytes
    ) -> KilnProject:
        with self._unit_of_work() as session:
            return mutations.add_project_image(
                session, project, image_name, description, contents
            )
