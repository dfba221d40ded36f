"""Database configuration and session management.

This module initializes the SQLAlchemy engine, session factory,
and declarative base, and provides a database session dependency
for FastAPI routes.

SQLite has no row-level locks, so every SQLite connection opens its
transactions with ``BEGIN IMMEDIATE``. That takes the database write lock
up front and serializes writers; the connection busy timeout then plays
the part of the lock-wait timeout. Foreign keys are switched on per
connection because SQLite leaves them off by default.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .core import get_settings


settings = get_settings()


def connect_args_for(url: str, lock_timeout: float) -> dict:
    """
    Build DBAPI connect arguments that bound lock waits for ``url``.

    Args:
        url (str): Database URL.
        lock_timeout (float): Lock-wait timeout in seconds.

    Returns:
        dict: Keyword arguments for ``create_engine(connect_args=...)``.
    """
    if url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": lock_timeout}
    if url.startswith("postgresql"):
        return {"options": f"-c lock_timeout={int(lock_timeout * 1000)}"}
    return {}


def install_sqlite_hooks(target: Engine) -> Engine:
    """
    Enable foreign keys and writer serialization on a SQLite engine.

    Engines for other backends are returned untouched.

    Args:
        target (Engine): Engine to configure.

    Returns:
        Engine: The same engine.
    """
    if target.dialect.name != "sqlite":
        return target

    @event.listens_for(target, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # hand transaction control to the "begin" hook below
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(target, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return target


engine = install_sqlite_hooks(
    create_engine(
        settings.DATABASE_URL,
        connect_args=connect_args_for(
            settings.DATABASE_URL, settings.LOCK_TIMEOUT_SECONDS
        ),
        future=True,
    )
)
"""SQLAlchemy engine bound to the configured database URL."""


def session_factory(bind: Engine) -> sessionmaker:
    """
    Build a session factory for ``bind``.

    Objects keep their loaded state after commit. Reading an attribute of a
    returned row must not start a new transaction, because on SQLite every
    transaction holds the database write lock until it ends.

    Args:
        bind (Engine): Engine the sessions connect through.

    Returns:
        sessionmaker: Factory for database sessions.
    """
    return sessionmaker(
        bind=bind,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        future=True,
    )


SessionLocal = session_factory(engine)
"""Factory for database sessions."""


Base = declarative_base()
"""Declarative base class for SQLAlchemy models."""


def get_db():
    """
    Provide a SQLAlchemy database session.

    This function is used as a FastAPI dependency.
    It yields a database session and ensures it is
    properly closed after the request is completed.
    """

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
