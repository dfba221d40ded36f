"""Transactional storage primitives used by the domain operations.

The helpers here are the only place that talks to SQLAlchemy about
transactions, locks and constraint failures. Domain code composes them
inside a single :func:`transaction` block per operation.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Type, TypeVar

from sqlalchemy import delete, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session

from .errors import (
    ConstraintViolation,
    Contention,
    DuplicateKey,
    NotFound,
    ServiceError,
)
from .models import ID_SEQUENCES, IdSequence

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")

_UNIQUE_SQLSTATES = {"23505"}
# serialization failure, deadlock, lock not available
_CONTENTION_SQLSTATES = {"40001", "40P01", "55P03"}
_SQLITE_CONTENTION = ("database is locked", "database table is locked")


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = getattr(exc, "orig", None)
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_unique_violation(exc: IntegrityError) -> bool:
    """Tell unique/primary-key violations apart from other integrity errors."""
    sqlstate = _sqlstate(exc)
    if sqlstate is not None:
        return sqlstate in _UNIQUE_SQLSTATES
    # drivers without SQLSTATE (sqlite3) only say it in the message
    message = str(exc.orig).upper()
    return "UNIQUE" in message or "DUPLICATE" in message


def is_contention(exc: DBAPIError) -> bool:
    """Tell lock timeouts and deadlocks apart from other database errors."""
    if _sqlstate(exc) in _CONTENTION_SQLSTATES:
        return True
    message = str(getattr(exc, "orig", exc)).lower()
    return any(marker in message for marker in _SQLITE_CONTENTION) or (
        "deadlock" in message or "lock timeout" in message
    )


def translate_error(exc: DBAPIError) -> ServiceError | None:
    """
    Map a SQLAlchemy error onto the domain failure taxonomy.

    Args:
        exc (DBAPIError): Error raised by the driver.

    Returns:
        ServiceError | None: The domain failure, or ``None`` when the error
        is not one the service layer knows how to classify.
    """
    if isinstance(exc, IntegrityError):
        if is_unique_violation(exc):
            return DuplicateKey(f"Duplicate key: {exc.orig}")
        return ConstraintViolation(f"Constraint violated: {exc.orig}")
    if is_contention(exc):
        return Contention("Could not acquire a lock in time, retry the operation.")
    return None


@contextmanager
def transaction(
    db: Session, on_duplicate: ServiceError | None = None
) -> Iterator[Session]:
    """
    Run a block of work as one all-or-nothing transaction.

    The session is committed when the block finishes and rolled back on
    any error. Driver errors are re-raised as domain failures.

    Args:
        db (Session): Database session.
        on_duplicate (ServiceError | None): Failure to raise instead of the
            generic ``DuplicateKey`` when a unique constraint is violated.

    Raises:
        DuplicateKey: A unique constraint was violated.
        ConstraintViolation: A check or foreign-key constraint was violated.
        Contention: A lock wait timed out or a deadlock was detected.
    """
    try:
        yield db
        db.commit()
    except ServiceError:
        db.rollback()
        raise
    except (IntegrityError, OperationalError) as exc:
        db.rollback()
        failure = translate_error(exc)
        if failure is None:
            raise
        if isinstance(failure, DuplicateKey) and on_duplicate is not None:
            failure = on_duplicate
        if isinstance(failure, Contention):
            logger.warning("Lock contention: %s", exc.orig)
        raise failure from exc
    except Exception:
        db.rollback()
        raise


def lock_row_exclusive(db: Session, model: Type[ModelT], **key) -> ModelT | None:
    """
    Lock the row of ``model`` identified by ``key`` for the rest of the
    transaction.

    Blocks until the lock is granted. The row is re-read from the store so
    the returned instance reflects committed state.

    Returns:
        The locked row, or ``None`` when no row exists at ``key``.
    """
    stmt = (
        select(model)
        .filter_by(**key)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return db.execute(stmt).scalar_one_or_none()


def generate_id(db: Session, sequence_name: str) -> int:
    """
    Draw the next value of a named id sequence.

    The value is allocated and committed in a short transaction of its
    own, so a later rollback of the operation that uses it leaves a gap
    instead of handing the value out again. Call it before the operation's
    :func:`transaction` block, never inside it, since it commits whatever
    the session has pending.

    Backends with native sequences serve the value from the sequence;
    elsewhere the ``id_sequences`` counter row is locked and incremented.

    Args:
        db (Session): Database session.
        sequence_name (str): Name of the sequence, e.g. ``"seq_users"``.

    Raises:
        NotFound: If the sequence does not exist.

    Returns:
        int: A value greater than any this sequence has handed out before.
    """
    sequence = ID_SEQUENCES.get(sequence_name)
    if sequence is None:
        raise NotFound(f"Sequence {sequence_name} does not exist.")
    with transaction(db):
        if db.get_bind().dialect.supports_sequences:
            value = db.scalar(select(sequence.next_value()))
        else:
            counter = lock_row_exclusive(db, IdSequence, name=sequence_name)
            if counter is None:
                raise NotFound(f"Sequence {sequence_name} does not exist.")
            counter.last_value += 1
            db.flush()
            value = counter.last_value
    return value


def insert(db: Session, obj: ModelT) -> ModelT:
    """Add ``obj`` and flush so constraint violations surface immediately."""
    db.add(obj)
    db.flush()
    return obj


def execute_update(db: Session, model: type, values: dict, **key) -> int:
    """Update the rows matching ``key`` and return how many changed."""
    result = db.execute(
        update(model)
        .filter_by(**key)
        .values(**values)
        .execution_options(synchronize_session="evaluate")
    )
    return result.rowcount


def execute_delete(db: Session, model: type, **key) -> int:
    """Delete the rows matching ``key`` and return how many were removed."""
    result = db.execute(
        delete(model)
        .filter_by(**key)
        .execution_options(synchronize_session="evaluate")
    )
    return result.rowcount
