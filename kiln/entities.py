"""Kiln Ledger - Entity value objects and aggregates.

Value objects mirror single table rows. Constructors take already-validated
data; validation belongs to kiln.mutations.

Aggregates (never stored as such):
- KilnProgram: Kiln + FiringSequence + ordered FiringSteps
- KilnProject: Project + ordered (comment, KilnProgram) firings + ordered images

Editing methods on the aggregates are bounds-checked and raise InvalidIndex;
direct positional getters raise IndexError.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

from kiln.config import AFAP_RAMP_VALUE
from kiln.errors import InvalidIndex

# --- Ramp rates ---


@dataclass(frozen=True)
class RampRate:
    """Either a rate in degrees/second or AFAP ("as fast as possible").

    AFAP is represented by ``degrees_per_second is None``. Zero is a legal
    rate distinct from AFAP.
    """

    degrees_per_second: int | None = None

    @classmethod
    def afap(cls) -> RampRate:
        return cls(None)

    @classmethod
    def deg_per_sec(cls, rate: int) -> RampRate:
        if rate < 0:
            raise ValueError(f"Ramp rate must be >= 0 deg/sec, got {rate}")
        return cls(rate)

    @property
    def is_afap(self) -> bool:
        return self.degrees_per_second is None

    def to_db(self) -> int:
        """Encode as the single signed integer stored in FiringSteps.ramp_rate."""
        if self.degrees_per_second is None:
            return AFAP_RAMP_VALUE
        return self.degrees_per_second

    @classmethod
    def from_db(cls, value: int) -> RampRate:
        """Decode a stored ramp_rate value.

        Raises:
            ValueError: If value is below the AFAP sentinel.
        """
        if value == AFAP_RAMP_VALUE:
            return cls.afap()
        return cls.deg_per_sec(value)

    @classmethod
    def parse(cls, text: str) -> RampRate:
        """Parse user input: "AFAP" (any case) or a non-negative integer."""
        text = text.strip()
        if text.upper() == "AFAP":
            return cls.afap()
        return cls.deg_per_sec(int(text))

    def __str__(self) -> str:
        if self.degrees_per_second is None:
            return "AFAP"
        return str(self.degrees_per_second)


AFAP = RampRate.afap()


# --- Row value objects ---


@dataclass
class Kiln:
    """A kiln row. The id is immutable once assigned by the store."""

    id: int
    name: str
    description: str


@dataclass
class FiringSequence:
    """A program header row; kiln_id is a back-reference to its Kiln."""

    id: int
    name: str
    description: str
    kiln_id: int


@dataclass
class FiringStep:
    id: int
    sequence_id: int
    ramp_rate: RampRate
    target_temp: int
    # Minutes to hold at target_temp
    dwell_time: int


@dataclass
class Project:
    id: int
    name: str
    description: str


@dataclass
class ProjectFiringLink:
    """A ProjectFirings row: one use of a firing sequence by a project."""

    id: int
    project_id: int
    firing_sequence_id: int
    comment: str


@dataclass
class ProjectImage:
    """A ProjectImages row. ``name`` is the original filename (display only)."""

    id: int
    project_id: int
    name: str
    description: str
    contents: bytes = field(repr=False)


# --- Aggregates ---


class KilnProgram:
    """A kiln, one of its firing sequences and that sequence's ordered steps.

    Step order is ascending step id as stored, i.e. insertion order at the
    time of the last step replacement.
    """

    def __init__(
        self,
        kiln: Kiln,
        sequence: FiringSequence,
        steps: list[FiringStep] | None = None,
    ):
        self.kiln = kiln
        self.sequence = sequence
        self._steps: list[FiringStep] = list(steps) if steps else []

    @property
    def steps(self) -> list[FiringStep]:
        """A copy of the step list; edit through the methods below."""
        return list(self._steps)

    def step(self, index: int) -> FiringStep:
        """Direct getter. Raises IndexError when out of range."""
        return self._steps[index]

    def __len__(self) -> int:
        return len(self._steps)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KilnProgram):
            return NotImplemented
        return (
            self.kiln == other.kiln
            and self.sequence == other.sequence
            and self._steps == other._steps
        )

    def __repr__(self) -> str:
        return (
            f"KilnProgram(kiln={self.kiln.name!r}, sequence={self.sequence.name!r}, "
            f"steps={len(self._steps)})"
        )

    # Editors

    def add_step(self, step: FiringStep) -> KilnProgram:
        self._steps.append(step)
        return self

    def add_steps(self, steps: list[FiringStep]) -> KilnProgram:
        self._steps.extend(steps)
        return self

    def remove_step(self, index: int) -> None:
        """Remove the step at index.

        Raises:
            InvalidIndex: If index >= number of steps.
        """
        if index < 0 or index >= len(self._steps):
            raise InvalidIndex(index)
        del self._steps[index]

    def insert_step(self, step: FiringStep, index: int) -> None:
        """Insert step before position index; index == len appends.

        Raises:
            InvalidIndex: If index > number of steps.
        """
        if index < 0 or index > len(self._steps):
            raise InvalidIndex(index)
        self._steps.insert(index, step)


@dataclass(frozen=True)
class ProjectFiring:
    """One project firing: the comment and the program it refers to.

    Unhashable: KilnProgram is mutable and defines no hash.
    """

    comment: str
    program: KilnProgram

    __hash__ = None


class KilnProject:
    """A project with its ordered firings and ordered images.

    Firings are held as one list of ProjectFiring records so a comment can
    never drift from its program. ``firing_comments`` and ``firing_programs``
    are derived views and always have equal length.

    Projects are built up incrementally. Editing the firings should be limited
    to recording firings as the project progresses and correcting mistakes.
    """

    def __init__(self, project: Project):
        self.project = project
        self._firings: list[ProjectFiring] = []
        self._pictures: list[ProjectImage] = []

    @property
    def firings(self) -> list[ProjectFiring]:
        """Copies of the firings; editing a returned program leaves the project as is."""
        return [ProjectFiring(f.comment, copy.deepcopy(f.program)) for f in self._firings]

    @property
    def firing_comments(self) -> list[str]:
        return [f.comment for f in self._firings]

    @property
    def firing_programs(self) -> list[KilnProgram]:
        return [copy.deepcopy(f.program) for f in self._firings]

    @property
    def pictures(self) -> list[ProjectImage]:
        return list(self._pictures)

    @property
    def num_firings(self) -> int:
        return len(self._firings)

    @property
    def num_images(self) -> int:
        return len(self._pictures)

    def firing(self, index: int) -> tuple[str, KilnProgram]:
        """Return (comment, program) for a firing. Raises IndexError when out of range."""
        entry = self._firings[index]
        return entry.comment, copy.deepcopy(entry.program)

    def picture(self, index: int) -> ProjectImage:
        """Raises IndexError when out of range."""
        return self._pictures[index]

    def __repr__(self) -> str:
        return (
            f"KilnProject(project={self.project.name!r}, firings={len(self._firings)}, "
            f"pictures={len(self._pictures)})"
        )

    # Mutators

    def add_firing(self, program: KilnProgram, comment: str) -> KilnProject:
        self._firings.append(ProjectFiring(comment, program))
        return self

    def add_picture(self, picture: ProjectImage) -> KilnProject:
        self._pictures.append(picture)
        return self

    # Editors

    def delete_firing(self, index: int) -> None:
        """Delete a firing together with its comment.

        Raises:
            InvalidIndex: If index >= number of firings.
        """
        if index < 0 or index >= len(self._firings):
            raise InvalidIndex(index)
        del self._firings[index]

    def insert_firing(self, program: KilnProgram, comment: str, index: int) -> None:
        """Insert a firing before position index; index == num_firings appends.

        Raises:
            InvalidIndex: If index > number of firings.
        """
        if index < 0 or index > len(self._firings):
            raise InvalidIndex(index)
        self._firings.insert(index, ProjectFiring(comment, program))

    def delete_picture(self, index: int) -> None:
        if index < 0 or index >= len(self._pictures):
            raise InvalidIndex(index)
        del self._pictures[index]

    def insert_picture(self, image: ProjectImage, index: int) -> None:
        if index < 0 or index > len(self._pictures):
            raise InvalidIndex(index)
        self._pictures.insert(index, image)
