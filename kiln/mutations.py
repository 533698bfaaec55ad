"""Kiln Ledger - Mutation engine.

Create/insert operations and the step-replacement transaction.

Write discipline:
- Referenced entities are resolved and validated before anything is written;
  the store enforces no foreign keys, so these checks are the only guard.
- Name uniqueness is count-then-insert. Two writers on separate connections
  can both pass the count and both insert; nothing here prevents that.
- Every mutation that returns an aggregate re-reads it from the store after
  commit. Callers should replace their working copy with the result.

Each function commits its own writes via kiln.db.transaction.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete
from sqlalchemy.orm import Session

from kiln.db import transaction
from kiln.entities import FiringSequence, FiringStep, KilnProgram, KilnProject, Project
from kiln.errors import (
    DuplicateName,
    InconsistentProgram,
    InconsistentProject,
    NoSuchName,
    NoSuchProgram,
)
from kiln.models import (
    FiringSequenceRecord,
    FiringStepRecord,
    KilnRecord,
    ProjectFiringRecord,
    ProjectImageRecord,
    ProjectRecord,
)
from kiln.queries import (
    count_kilns_named,
    count_programs_named,
    count_projects_named,
    get_kiln,
    get_kiln_program,
    get_project,
)
from kiln.utils.failpoints import maybe_fail

logger = logging.getLogger(__name__)


# --- Kilns ---


def create_kiln(session: Session, name: str, description: str = "") -> None:
    """Add a new kiln. Kiln names are globally unique.

    Raises:
        DuplicateName: If a kiln with this name already exists.
        StoreError: On any store failure.
    """
    if count_kilns_named(session, name) != 0:
        logger.warning("Refusing to create kiln %s: name already in use", name)
        raise DuplicateName(name)

    with transaction(session):
        session.add(KilnRecord(name=name, description=description))

    logger.info("Created kiln %s", name)


# --- Kiln programs ---


def create_program(
    session: Session, kiln_name: str, program_name: str, description: str = ""
) -> KilnProgram:
    """Add an empty program (firing sequence) to an existing kiln.

    The returned program has real ids bound and no steps. Callers normally
    edit it and then hand it to replace_program_steps.

    Raises:
        NoSuchName: If the kiln does not exist.
        DuplicateName: If the kiln already has a program with this name.
        StoreError: On any store failure.
    """
    kiln = get_kiln(session, kiln_name)
    if kiln is None:
        logger.warning("Cannot create program %s: no kiln named %s", program_name, kiln_name)
        raise NoSuchName(kiln_name)

    if count_programs_named(session, kiln.id, program_name) != 0:
        logger.warning(
            "Refusing to create program %s on kiln %s: name already in use",
            program_name,
            kiln_name,
        )
        raise DuplicateName(program_name)

    with transaction(session):
        record = FiringSequenceRecord(
            name=program_name, description=description, kiln_id=kiln.id
        )
        session.add(record)
        session.flush()
        sequence = FiringSequence(
            id=record.id, name=program_name, description=description, kiln_id=kiln.id
        )

    logger.info("Created program %s on kiln %s (id=%d)", program_name, kiln_name, sequence.id)
    return KilnProgram(kiln, sequence)


def replace_program_steps(session: Session, program: KilnProgram) -> KilnProgram:
    """Replace the stored steps of a program with the program's step list.

    The embedded kiln and sequence must match the stored header field for
    field; only the steps change. Step ids and sequence ids supplied by the
    caller are ignored: the store assigns fresh ids, in the caller's order.

    States: validated -> steps deleted -> steps inserted -> committed. A
    failure at any point before commit rolls back to the previous step set.

    Args:
        session: Active database session.
        program: The edited program.

    Returns:
        The program as committed, with step ids rebound.

    Raises:
        NoSuchProgram: If (kiln name, program name) does not resolve.
        InconsistentProgram: If the embedded kiln or sequence differs from the
            stored one. Carries the stored names.
        StoreError: On any store failure; nothing is changed.
    """
    kiln = program.kiln
    sequence = program.sequence

    current = get_kiln_program(session, kiln.name, sequence.name)
    if current is None:
        logger.warning("Cannot replace steps: kiln %s has no program %s", kiln.name, sequence.name)
        raise NoSuchProgram(kiln.name, sequence.name)

    if kiln != current.kiln or sequence != current.sequence:
        logger.warning(
            "Refusing step replacement for %s/%s: header differs from stored record",
            current.kiln.name,
            current.sequence.name,
        )
        raise InconsistentProgram(current.kiln.name, current.sequence.name)

    stored = current.sequence
    result = KilnProgram(current.kiln, stored)

    with transaction(session):
        session.execute(delete(FiringStepRecord).where(FiringStepRecord.sequence_id == stored.id))
        maybe_fail("REPLACE_STEPS_AFTER_DELETE")

        for step in program.steps:
            record = FiringStepRecord(
                sequence_id=stored.id,
                ramp_rate=step.ramp_rate.to_db(),
                target_temp=step.target_temp,
                dwell_time=step.dwell_time,
            )
            session.add(record)
            session.flush()
            result.add_step(
                FiringStep(
                    id=record.id,
                    sequence_id=stored.id,
                    ramp_rate=step.ramp_rate,
                    target_temp=step.target_temp,
                    dwell_time=step.dwell_time,
                )
            )

        maybe_fail("REPLACE_STEPS_BEFORE_COMMIT")

    logger.info(
        "Replaced steps of %s/%s: %d step(s)", kiln.name, sequence.name, len(result)
    )
    return result


# --- Projects ---


def create_project(session: Session, name: str, description: str = "") -> KilnProject:
    """Add an empty project. Project names are globally unique.

    Raises:
        DuplicateName: If a project with this name already exists.
        StoreError: On any store failure.
    """
    if count_projects_named(session, name) > 0:
        logger.warning("Refusing to create project %s: name already in use", name)
        raise DuplicateName(name)

    with transaction(session):
        record = ProjectRecord(name=name, description=description)
        session.add(record)
        session.flush()
        project = Project(id=record.id, name=name, description=description)

    logger.info("Created project %s (id=%d)", name, project.id)
    return KilnProject(project)


def add_project_firing(
    session: Session,
    project: KilnProject,
    kiln_name: str,
    program_name: str,
    comment: str = "",
) -> KilnProject:
    """Record that a project was fired with a kiln's program.

    A project may use the same program several times, each with its own
    comment.

    Returns:
        The project freshly re-read from the store.

    Raises:
        NoSuchProgram: If (kiln_name, program_name) does not resolve.
        NoSuchName: If the project no longer exists.
        InconsistentProject: If the stored project's id differs from the
            caller's.
        StoreError: On any store failure.
    """
    program = get_kiln_program(session, kiln_name, program_name)
    if program is None:
        logger.warning("Cannot add firing: kiln %s has no program %s", kiln_name, program_name)
        raise NoSuchProgram(kiln_name, program_name)

    project_name = project.project.name
    stored = get_project(session, project_name)
    if stored is None:
        logger.warning("Cannot add firing: no project named %s", project_name)
        raise NoSuchName(project_name)
    if stored.project.id != project.project.id:
        logger.warning(
            "Refusing firing for project %s: id %d does not match stored id %d",
            project_name,
            project.project.id,
            stored.project.id,
        )
        raise InconsistentProject(project_name)

    with transaction(session):
        session.add(
            ProjectFiringRecord(
                project_id=project.project.id,
                firing_sequence_id=program.sequence.id,
                comment=comment,
            )
        )

    logger.info(
        "Added firing %s/%s to project %s", kiln_name, program_name, project_name
    )
    return _refetch_project(session, project_name)


def add_project_image(
    session: Session,
    project: KilnProject,
    image_name: str,
    description: str,
    contents: bytes,
) -> KilnProject:
    """Attach an image to a project.

    Unlike add_project_firing, the project is not re-validated first: the
    row is written against the caller's project id as given.

    Args:
        session: Active database session.
        project: The project as the caller holds it.
        image_name: Usually the name of the file the bytes came from.
        description: Caption for the image.
        contents: Raw image bytes, stored verbatim.

    Returns:
        The project freshly re-read from the store.

    Raises:
        NoSuchName: If no project with the caller's name exists on re-read.
        StoreError: On any store failure.
    """
    with transaction(session):
        session.add(
            ProjectImageRecord(
                project_id=project.project.id,
                name=image_name,
                caption=description,
                contents=bytes(contents),
            )
        )

    logger.info(
        "Added image %s (%d bytes) to project %s",
        image_name,
        len(contents),
        project.project.name,
    )
    return _refetch_project(session, project.project.name)


def _refetch_project(session: Session, name: str) -> KilnProject:
    refreshed = get_project(session, name)
    if refreshed is None:
        raise NoSuchName(name)
    return refreshed
