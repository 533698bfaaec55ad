"""Kiln Ledger - Database engine and session management.

SQLAlchemy sync engine/session factory for SQLite, the idempotent schema
initializer, and the helpers that translate driver failures into StoreError.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from kiln.config import DB_PATH, ECHO_SQL
from kiln.errors import StoreError
from kiln.models import Base

logger = logging.getLogger(__name__)


def get_database_url(db_path: str | Path | None = None) -> str:
    """Get SQLite database URL.

    Args:
        db_path: Optional path override. Defaults to config.DB_PATH.
            ":memory:" gives a private in-memory database.

    Returns:
        SQLite connection URL string.
    """
    path = db_path if db_path is not None else DB_PATH
    if str(path) == ":memory:":
        return "sqlite://"
    return f"sqlite:///{path}"


def create_db_engine(db_path: str | Path | None = None, echo: bool = ECHO_SQL) -> Engine:
    """Create SQLAlchemy engine.

    Args:
        db_path: Optional path override for the database file.
        echo: If True, log all SQL statements.

    Returns:
        SQLAlchemy Engine instance.
    """
    url = get_database_url(db_path)
    kwargs = {}
    if url == "sqlite://":
        # One shared connection, otherwise every pooled connection would get
        # its own empty in-memory database.
        kwargs["poolclass"] = StaticPool
    return create_engine(
        url,
        echo=echo,
        # check_same_thread=False lets the connection move between threads.
        # KilnDatabase serializes all access behind its own lock.
        connect_args={"check_same_thread": False},
        **kwargs,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """Create a session factory bound to the given engine.

    Args:
        engine: SQLAlchemy Engine instance.

    Returns:
        Configured sessionmaker.
    """
    # - autoflush=False: ids are assigned only at explicit flush points
    # - expire_on_commit=False: inserted records stay readable after commit
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def create_schema(engine: Engine) -> None:
    """Create the six tables if absent; a no-op when they already exist.

    Raises:
        StoreError: If the store rejects the DDL.
    """
    with store_errors():
        Base.metadata.create_all(engine)


def init_db(
    db_path: str | Path | None = None, echo: bool = ECHO_SQL
) -> tuple[Engine, sessionmaker]:
    """Initialize the database: create engine, session factory, and all tables.

    This is idempotent - safe to call on every open.

    Args:
        db_path: Optional path override for the database file.
        echo: If True, log all SQL statements.

    Returns:
        Tuple of (engine, SessionFactory).

    Raises:
        StoreError: If the database cannot be opened or the schema created.
    """
    if db_path is not None and str(db_path) != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(db_path, echo=echo)
    SessionFactory = create_session_factory(engine)

    # checkfirst=True (the default) makes this idempotent
    create_schema(engine)
    logger.debug("Schema ready at %s", engine.url)

    return engine, SessionFactory


# --- Store error translation ---


@contextmanager
def store_errors() -> Iterator[None]:
    """Re-raise any SQLAlchemy failure inside the block as StoreError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("Store operation failed: %s", e)
        raise StoreError(e) from e


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """Run the block as one transaction on session.

    Commits when the block completes. Any exception rolls back every
    statement issued in the block before propagating; SQLAlchemy failures
    propagate as StoreError. A failing rollback is logged and never replaces
    the exception that triggered it.
    """
    try:
        with store_errors():
            yield session
            session.commit()
    except BaseException:
        try:
            session.rollback()
        except SQLAlchemyError as rollback_error:
            # The block's own exception is re-raised below.
            logger.error("Rollback failed: %s", rollback_error)
        raise
