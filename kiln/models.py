"""Kiln Ledger - SQLAlchemy ORM models.

Database tables:
1. Kilns
2. FiringSequences
3. FiringSteps
4. Projects
5. ProjectFirings
6. ProjectImages

Foreign keys are declared for documentation; SQLite leaves them unenforced
(PRAGMA foreign_keys is never turned on). Referential consistency is checked
by the mutation engine. Every table is AUTOINCREMENT: ids only ever grow
and a deleted id is never handed out again. Names carry no UNIQUE
constraint: uniqueness is a count-then-insert check in kiln.mutations.
"""

from sqlalchemy import ForeignKey, Index, Integer, LargeBinary, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class KilnRecord(Base):
    """A physical kiln. Name is intended to be unique."""

    __tablename__ = "Kilns"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    __table_args__ = (Index("ix_kilns_name", "name"), {"sqlite_autoincrement": True})


class FiringSequenceRecord(Base):
    """Program header. Name is unique within its kiln, not globally."""

    __tablename__ = "FiringSequences"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    kiln_id: Mapped[int] = mapped_column(Integer, ForeignKey("Kilns.id"), nullable=False)

    __table_args__ = (
        Index("ix_sequences_kiln_name", "kiln_id", "name"),
        {"sqlite_autoincrement": True},
    )


class FiringStepRecord(Base):
    """One ramp/hold step of a firing sequence.

    ramp_rate: -1 means AFAP, any value >= 0 is degrees/second.
    """

    __tablename__ = "FiringSteps"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sequence_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("FiringSequences.id"), nullable=False, index=True
    )
    ramp_rate: Mapped[int] = mapped_column(Integer, nullable=False)
    target_temp: Mapped[int] = mapped_column(Integer, nullable=False)
    # Minutes to hold at target_temp
    dwell_time: Mapped[int] = mapped_column(Integer, nullable=False)


class ProjectRecord(Base):
    """A tracked glass piece. Name is intended to be unique."""

    __tablename__ = "Projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    __table_args__ = (Index("ix_projects_name", "name"), {"sqlite_autoincrement": True})


class ProjectFiringRecord(Base):
    """Link between a project and one execution of a firing sequence."""

    __tablename__ = "ProjectFirings"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("Projects.id"), nullable=False, index=True
    )
    firing_sequence_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("FiringSequences.id"), nullable=False
    )
    # Why this firing was performed
    comment: Mapped[str] = mapped_column(Text, nullable=False, default="")


class ProjectImageRecord(Base):
    """An image attached to a project, stored as an opaque blob."""

    __tablename__ = "ProjectImages"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("Projects.id"), nullable=False, index=True
    )
    # Original filename, display only
    name: Mapped[str] = mapped_column(Text, nullable=False)
    caption: Mapped[str] = mapped_column(Text, nullable=False, default="")
    contents: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
