"""Kiln Ledger - Error taxonomy.

Every fallible operation in the persistence layer either returns its value
or raises exactly one of the exceptions below. Pure lookups model "not found"
as None / an empty list instead of raising.
"""

from __future__ import annotations

from enum import StrEnum


class KilnErrorCode(StrEnum):
    """Closed set of failure kinds."""

    SQL_ERROR = "SQL_ERROR"
    DUPLICATE_NAME = "DUPLICATE_NAME"
    NO_SUCH_NAME = "NO_SUCH_NAME"
    NO_SUCH_PROGRAM = "NO_SUCH_PROGRAM"
    INCONSISTENT_PROGRAM = "INCONSISTENT_PROGRAM"
    INCONSISTENT_PROJECT = "INCONSISTENT_PROJECT"
    INVALID_INDEX = "INVALID_INDEX"
    FAILED_DESERIALIZATION = "FAILED_DESERIALIZATION"


class KilnDatabaseError(Exception):
    """Base exception for kiln database errors."""

    def __init__(self, error_code: str, message: str):
        self.error_code = error_code
        self.message = message
        super().__init__(f"{error_code}: {message}")


class StoreError(KilnDatabaseError):
    """The underlying SQLite/SQLAlchemy layer failed.

    The driver exception is kept verbatim on ``cause`` (and chained as
    ``__cause__`` by the raiser).
    """

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(KilnErrorCode.SQL_ERROR, str(cause))


class DuplicateName(KilnDatabaseError):
    """A create found an existing row with the same name in its scope."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(KilnErrorCode.DUPLICATE_NAME, f"Duplicate name: {name}")


class NoSuchName(KilnDatabaseError):
    """A referenced kiln or project does not exist."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(KilnErrorCode.NO_SUCH_NAME, f"No such name: {name}")


class NoSuchProgram(KilnDatabaseError):
    """A (kiln name, program name) pair does not resolve."""

    def __init__(self, kiln_name: str, program_name: str):
        self.kiln_name = kiln_name
        self.program_name = program_name
        super().__init__(
            KilnErrorCode.NO_SUCH_PROGRAM,
            f"Kiln {kiln_name} has no program named {program_name}",
        )

    @property
    def names(self) -> tuple[str, str]:
        return (self.kiln_name, self.program_name)


class InconsistentProgram(KilnDatabaseError):
    """The caller's program header disagrees with the stored one.

    The names carried are always the stored kiln/program names.
    """

    def __init__(self, kiln_name: str, program_name: str):
        self.kiln_name = kiln_name
        self.program_name = program_name
        super().__init__(
            KilnErrorCode.INCONSISTENT_PROGRAM,
            f"Input kiln ({kiln_name}) program ({program_name}) is inconsistent with database",
        )

    @property
    def names(self) -> tuple[str, str]:
        return (self.kiln_name, self.program_name)


class InconsistentProject(KilnDatabaseError):
    """The caller's project id disagrees with the stored one."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            KilnErrorCode.INCONSISTENT_PROJECT, f"Input project {name} is inconsistent"
        )


class InvalidIndex(KilnDatabaseError):
    """A bounds-checked list edit was given an out-of-range position.

    Not an IndexError subclass: the direct getters raise IndexError, the
    editors raise this.
    """

    def __init__(self, index: int):
        self.index = index
        super().__init__(KilnErrorCode.INVALID_INDEX, f"Invalid index {index}")


class FailedDeserialization(KilnDatabaseError):
    """A stored row could not be mapped back to its entity."""

    def __init__(self, entity_name: str, detail: str | None = None):
        self.entity_name = entity_name
        message = f"Failed to deserialize a {entity_name}"
        if detail:
            message = f"{message} : {detail}"
        super().__init__(KilnErrorCode.FAILED_DESERIALIZATION, message)
