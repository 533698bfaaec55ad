"""Kiln Ledger - Reconstitution queries.

Joins normalized rows back into entities and aggregates. Every function takes
an active Session and selects plain columns (never ORM identities), so the
result always reflects what is stored.

None of the multi-query paths run in a snapshot: a writer committing between
two reads can produce an internally inconsistent aggregate.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Row, func, select
from sqlalchemy.orm import Session

from kiln.db import store_errors
from kiln.entities import (
    FiringSequence,
    FiringStep,
    Kiln,
    KilnProgram,
    KilnProject,
    Project,
    ProjectFiringLink,
    ProjectImage,
    RampRate,
)
from kiln.errors import FailedDeserialization
from kiln.models import (
    FiringSequenceRecord,
    FiringStepRecord,
    KilnRecord,
    ProjectFiringRecord,
    ProjectImageRecord,
    ProjectRecord,
)

logger = logging.getLogger(__name__)


# --- Row deserialization ---


def _column(row: Row, key: str, expected: type, entity_name: str) -> Any:
    """Fetch one column from a result row, checking its Python type.

    SQLite columns are loosely typed, so a row written outside this layer can
    hold anything. bool is rejected where int is expected.

    Raises:
        FailedDeserialization: If the value is missing or of the wrong type.
    """
    value = row._mapping[key]
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        raise FailedDeserialization(entity_name, f"column {key} holds {value!r}")
    return value


def kiln_from_row(row: Row) -> Kiln:
    return Kiln(
        id=_column(row, "kiln_id", int, "Kiln"),
        name=_column(row, "kiln_name", str, "Kiln"),
        description=_column(row, "kiln_description", str, "Kiln"),
    )


def sequence_from_row(row: Row) -> FiringSequence:
    return FiringSequence(
        id=_column(row, "sequence_id", int, "FiringSequence"),
        name=_column(row, "sequence_name", str, "FiringSequence"),
        description=_column(row, "sequence_description", str, "FiringSequence"),
        kiln_id=_column(row, "sequence_kiln_id", int, "FiringSequence"),
    )


def step_from_row(row: Row) -> FiringStep:
    """Map a FiringSteps row, decoding the signed ramp_rate column."""
    raw_rate = _column(row, "ramp_rate", int, "FiringStep")
    try:
        ramp_rate = RampRate.from_db(raw_rate)
    except ValueError as e:
        raise FailedDeserialization("FiringStep", str(e)) from e
    return FiringStep(
        id=_column(row, "id", int, "FiringStep"),
        sequence_id=_column(row, "sequence_id", int, "FiringStep"),
        ramp_rate=ramp_rate,
        target_temp=_column(row, "target_temp", int, "FiringStep"),
        dwell_time=_column(row, "dwell_time", int, "FiringStep"),
    )


def project_from_row(row: Row) -> Project:
    return Project(
        id=_column(row, "id", int, "Project"),
        name=_column(row, "name", str, "Project"),
        description=_column(row, "description", str, "Project"),
    )


def image_from_row(row: Row) -> ProjectImage:
    return ProjectImage(
        id=_column(row, "id", int, "ProjectImage"),
        project_id=_column(row, "project_id", int, "ProjectImage"),
        name=_column(row, "name", str, "ProjectImage"),
        description=_column(row, "caption", str, "ProjectImage"),
        contents=bytes(_column(row, "contents", (bytes, memoryview), "ProjectImage")),
    )


def link_from_row(row: Row) -> ProjectFiringLink:
    return ProjectFiringLink(
        id=_column(row, "id", int, "ProjectFiringLink"),
        project_id=_column(row, "project_id", int, "ProjectFiringLink"),
        firing_sequence_id=_column(row, "firing_sequence_id", int, "ProjectFiringLink"),
        comment=_column(row, "comment", str, "ProjectFiringLink"),
    )


# --- Uniqueness counts (used by kiln.mutations) ---


def count_kilns_named(session: Session, name: str) -> int:
    stmt = select(func.count()).select_from(KilnRecord).where(KilnRecord.name == name)
    with store_errors():
        return session.execute(stmt).scalar_one()


def count_programs_named(session: Session, kiln_id: int, name: str) -> int:
    stmt = (
        select(func.count())
        .select_from(FiringSequenceRecord)
        .where(FiringSequenceRecord.name == name, FiringSequenceRecord.kiln_id == kiln_id)
    )
    with store_errors():
        return session.execute(stmt).scalar_one()


def count_projects_named(session: Session, name: str) -> int:
    stmt = select(func.count()).select_from(ProjectRecord).where(ProjectRecord.name == name)
    with store_errors():
        return session.execute(stmt).scalar_one()


# --- Kilns ---


def get_kiln(session: Session, name: str) -> Kiln | None:
    """Fetch a kiln by exact (case-sensitive) name.

    Only the kiln row is read, not its firing sequences.

    Returns:
        The Kiln, or None when no kiln has that name.
    """
    stmt = (
        select(
            KilnRecord.id.label("kiln_id"),
            KilnRecord.name.label("kiln_name"),
            KilnRecord.description.label("kiln_description"),
        )
        .where(KilnRecord.name == name)
        .order_by(KilnRecord.id.asc())
    )
    with store_errors():
        row = session.execute(stmt).first()
    if row is None:
        return None
    return kiln_from_row(row)


def list_kiln_names(session: Session) -> list[str]:
    """All kiln names in ascending lexical order (empty list if none)."""
    stmt = select(KilnRecord.name).order_by(KilnRecord.name.asc())
    with store_errors():
        return list(session.execute(stmt).scalars().all())


# --- Kiln programs ---


def list_program_names(session: Session, kiln_name: str) -> list[str]:
    """Names of the programs defined on a kiln, ascending.

    A kiln that does not exist is not an error: the result is just empty.
    """
    stmt = (
        select(FiringSequenceRecord.name)
        .join(KilnRecord, KilnRecord.id == FiringSequenceRecord.kiln_id)
        .where(KilnRecord.name == kiln_name)
        .order_by(FiringSequenceRecord.name.asc())
    )
    with store_errors():
        return list(session.execute(stmt).scalars().all())


def get_kiln_program(session: Session, kiln_name: str, program_name: str) -> KilnProgram | None:
    """Fetch a full kiln program: header join, then steps by ascending id.

    Returns:
        The KilnProgram, or None if the (kiln, program) pair does not resolve.
    """
    header_stmt = (
        select(
            KilnRecord.id.label("kiln_id"),
            KilnRecord.name.label("kiln_name"),
            KilnRecord.description.label("kiln_description"),
            FiringSequenceRecord.id.label("sequence_id"),
            FiringSequenceRecord.name.label("sequence_name"),
            FiringSequenceRecord.description.label("sequence_description"),
            FiringSequenceRecord.kiln_id.label("sequence_kiln_id"),
        )
        .join(FiringSequenceRecord, FiringSequenceRecord.kiln_id == KilnRecord.id)
        .where(KilnRecord.name == kiln_name, FiringSequenceRecord.name == program_name)
        .order_by(FiringSequenceRecord.id.asc())
    )
    with store_errors():
        header = session.execute(header_stmt).first()
    if header is None:
        return None

    program = KilnProgram(kiln_from_row(header), sequence_from_row(header))

    steps_stmt = (
        select(
            FiringStepRecord.id,
            FiringStepRecord.sequence_id,
            FiringStepRecord.ramp_rate,
            FiringStepRecord.target_temp,
            FiringStepRecord.dwell_time,
        )
        .where(FiringStepRecord.sequence_id == program.sequence.id)
        .order_by(FiringStepRecord.id.asc())
    )
    with store_errors():
        rows = session.execute(steps_stmt).all()
    program.add_steps([step_from_row(row) for row in rows])
    return program


# --- Projects ---


def list_project_names(session: Session) -> list[str]:
    """All project names in ascending lexical order (empty list if none)."""
    stmt = select(ProjectRecord.name).order_by(ProjectRecord.name.asc())
    with store_errors():
        return list(session.execute(stmt).scalars().all())


def _get_project_row(session: Session, name: str) -> Project | None:
    stmt = (
        select(ProjectRecord.id, ProjectRecord.name, ProjectRecord.description)
        .where(ProjectRecord.name == name)
        .order_by(ProjectRecord.id.asc())
    )
    with store_errors():
        row = session.execute(stmt).first()
    if row is None:
        return None
    return project_from_row(row)


def _get_project_firings(session: Session, project: Project) -> list[tuple[str, KilnProgram]]:
    """Resolve a project's firings to (comment, program) pairs.

    One join yields (kiln name, program name, comment) ordered by firing
    sequence id, then each program is fetched with get_kiln_program.
    """
    stmt = (
        select(
            KilnRecord.name.label("kiln_name"),
            FiringSequenceRecord.name.label("sequence_name"),
            ProjectFiringRecord.comment,
        )
        .select_from(ProjectFiringRecord)
        .join(
            FiringSequenceRecord,
            FiringSequenceRecord.id == ProjectFiringRecord.firing_sequence_id,
        )
        .join(KilnRecord, KilnRecord.id == FiringSequenceRecord.kiln_id)
        .where(ProjectFiringRecord.project_id == project.id)
        .order_by(FiringSequenceRecord.id.asc(), ProjectFiringRecord.id.asc())
    )
    with store_errors():
        rows = session.execute(stmt).all()

    firings = []
    for row in rows:
        kiln_name = _column(row, "kiln_name", str, "ProjectFiring")
        program_name = _column(row, "sequence_name", str, "ProjectFiring")
        comment = _column(row, "comment", str, "ProjectFiring")
        program = get_kiln_program(session, kiln_name, program_name)
        if program is None:
            # Only reachable through a concurrent writer between the two reads.
            raise FailedDeserialization(
                "ProjectFiring", f"program {program_name} on kiln {kiln_name} vanished"
            )
        firings.append((comment, program))
    return firings


def _get_project_images(session: Session, project: Project) -> list[ProjectImage]:
    stmt = (
        select(
            ProjectImageRecord.id,
            ProjectImageRecord.project_id,
            ProjectImageRecord.name,
            ProjectImageRecord.caption,
            ProjectImageRecord.contents,
        )
        .where(ProjectImageRecord.project_id == project.id)
        .order_by(ProjectImageRecord.id.asc())
    )
    with store_errors():
        rows = session.execute(stmt).all()
    return [image_from_row(row) for row in rows]


def get_project(session: Session, name: str) -> KilnProject | None:
    """Fetch the full project: the row, its firings, then its images.

    Returns:
        The KilnProject, or None if no project has that name.
    """
    project = _get_project_row(session, name)
    if project is None:
        return None

    kiln_project = KilnProject(project)
    for comment, program in _get_project_firings(session, project):
        kiln_project.add_firing(program, comment)
    for image in _get_project_images(session, project):
        kiln_project.add_picture(image)

    logger.debug(
        "Fetched project %s: %d firing(s), %d image(s)",
        name,
        kiln_project.num_firings,
        kiln_project.num_images,
    )
    return kiln_project


def get_project_firing_links(session: Session, project_name: str) -> list[ProjectFiringLink]:
    """The raw firing link rows of a project, by ascending link id.

    A project that does not exist yields an empty list.
    """
    stmt = (
        select(
            ProjectFiringRecord.id,
            ProjectFiringRecord.project_id,
            ProjectFiringRecord.firing_sequence_id,
            ProjectFiringRecord.comment,
        )
        .join(ProjectRecord, ProjectRecord.id == ProjectFiringRecord.project_id)
        .where(ProjectRecord.name == project_name)
        .order_by(ProjectFiringRecord.id.asc())
    )
    with store_errors():
        rows = session.execute(stmt).all()
    return [link_from_row(row) for row in rows]
