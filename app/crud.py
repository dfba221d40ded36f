"""Domain operations for birdwatchers, events, participation and sightings.

This module contains the business rules of the application, isolated
from FastAPI route handlers. Every public function runs as exactly one
transaction: parent rows are locked before they are checked, checks run
before mutations, and any failure rolls the whole operation back.

When an operation locks several parents it always does so in the order
user, event, bird species. New surrogate keys are drawn before that
transaction starts, in a short transaction of their own, so a failed
operation leaves a gap in the numbering instead of a reusable id.
"""

import logging
from datetime import date, datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from . import models
from .core import get_settings
from .errors import AlreadyExists, DuplicateKey, NotFound, PreconditionFailed
from .storage import (
    execute_delete,
    execute_update,
    generate_id,
    insert,
    lock_row_exclusive,
    transaction,
)

logger = logging.getLogger(__name__)

NO_SIGHTINGS = "No sightings recorded"
"""Result of :func:`most_common_bird` when nothing has been sighted yet."""


def _exists(db: Session, model: type, **key) -> bool:
    return db.scalars(select(model).filter_by(**key).limit(1)).first() is not None


def _lock_user(db: Session, user_id: int) -> models.User:
    user = lock_row_exclusive(db, models.User, id=user_id)
    if user is None:
        raise NotFound("User does not exist.")
    return user


def _lock_event(db: Session, event_id: int) -> models.Event:
    event = lock_row_exclusive(db, models.Event, id=event_id)
    if event is None:
        raise NotFound("Event does not exist.")
    return event


# Users


def add_user(db: Session, full_name: str, email: str) -> models.User:
    """
    Register a new birdwatcher.

    Args:
        db (Session): SQLAlchemy database session.
        full_name (str): Display name.
        email (str): Email address, unique across users.

    Raises:
        DuplicateKey: If a user with the same email already exists.

    Returns:
        User: Newly created user; ``user.id`` is the generated identifier.
    """
    user_id = generate_id(db, "seq_users")
    with transaction(
        db, on_duplicate=DuplicateKey("A user with this email already exists.")
    ):
        user = insert(
            db,
            models.User(
                id=user_id,
                full_name=full_name,
                email=email,
                registration_date=datetime.now(),
            ),
        )
        logger.info("Created user %s <%s>", user.id, email)
    return user


def get_user(db: Session, user_id: int) -> models.User:
    """
    Retrieve a user by primary key.

    Raises:
        NotFound: If the user does not exist.
    """
    with transaction(db):
        user = db.execute(
            select(models.User)
            .where(models.User.id == user_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if user is None:
            raise NotFound("User not found.")
    return user


def delete_user(db: Session, user_id: int) -> None:
    """
    Delete a user that no longer takes part in anything.

    The user row is locked first, so a concurrent registration or sighting
    for the same user either completes before the checks run or waits
    until the user is gone.

    Args:
        db (Session): Database session.
        user_id (int): User identifier.

    Raises:
        NotFound: If the user does not exist.
        PreconditionFailed: If the user is registered for an event or has
            logged sightings.
        ConstraintViolation: If other records (e.g. notes) still refer to
            the user.
    """
    with transaction(db):
        _lock_user(db, user_id)
        if _exists(db, models.Participation, user_id=user_id):
            raise PreconditionFailed("Cannot delete user: has event participations.")
        if _exists(db, models.Sighting, user_id=user_id):
            raise PreconditionFailed("Cannot delete user with sightings.")
        execute_delete(db, models.User, id=user_id)
        logger.info("Deleted user %s", user_id)


def change_email(db: Session, user_id: int, new_email: str) -> models.User:
    """
    Change the email address of a user.

    Args:
        db (Session): Database session.
        user_id (int): User identifier.
        new_email (str): New address, unique across users.

    Raises:
        NotFound: If no user was updated.
        DuplicateKey: If another user already uses ``new_email``.

    Returns:
        User: Updated user instance.
    """
    with transaction(
        db,
        on_duplicate=DuplicateKey("This email is already in use by another user."),
    ):
        if execute_update(db, models.User, {"email": new_email}, id=user_id) == 0:
            raise NotFound("User not found.")
        logger.info("Changed email of user %s", user_id)
    return get_user(db, user_id)


# Locations and species


def create_location(
    db: Session,
    name: str,
    region: str | None = None,
    latitude: float | None = None,
    longitude: float | None = None,
) -> models.Location:
    """
    Create a location events can be held at.

    Raises:
        DuplicateKey: If the region already has a location with this name.
    """
    location_id = generate_id(db, "seq_locations")
    with transaction(
        db,
        on_duplicate=DuplicateKey(
            "A location with this name already exists in the region."
        ),
    ):
        location = insert(
            db,
            models.Location(
                id=location_id,
                name=name,
                region=region,
                latitude=latitude,
                longitude=longitude,
            ),
        )
    return location


def add_species(
    db: Session, common_name: str, scientific_name: str | None = None
) -> models.BirdSpecies:
    """
    Add a bird species to the catalog.

    Raises:
        DuplicateKey: If the common name is already taken.
    """
    bird_id = generate_id(db, "seq_bird_species")
    with transaction(
        db, on_duplicate=DuplicateKey("A species with this common name already exists.")
    ):
        species = insert(
            db,
            models.BirdSpecies(
                id=bird_id,
                common_name=common_name,
                scientific_name=scientific_name,
            ),
        )
    return species


def delete_species(db: Session, bird_id: int, deleted_by: str | None = None) -> None:
    """
    Remove a species from the catalog and record the deletion.

    The audit entry is written in the same transaction as the delete, so
    either both happen or neither does.

    Args:
        db (Session): Database session.
        bird_id (int): Species identifier.
        deleted_by (str | None): Actor recorded in the audit log; defaults
            to the configured ``AUDIT_ACTOR``.

    Raises:
        NotFound: If the species does not exist.
        ConstraintViolation: If sightings still refer to the species.
    """
    actor = deleted_by or get_settings().AUDIT_ACTOR
    with transaction(db):
        if lock_row_exclusive(db, models.BirdSpecies, id=bird_id) is None:
            raise NotFound("Bird species does not exist.")
        execute_delete(db, models.BirdSpecies, id=bird_id)
        insert(
            db,
            models.BirdSpeciesLog(
                bird_id=bird_id, deleted_by=actor, deleted_at=datetime.now()
            ),
        )
        logger.info("Deleted species %s (by %s)", bird_id, actor)


# Events


def create_event(
    db: Session, name: str, location_id: int, start: date, end: date
) -> models.Event:
    """
    Create an event at an existing location.

    Args:
        db (Session): Database session.
        name (str): Event name.
        location_id (int): Location the event is held at.
        start (date): First day of the event.
        end (date): Last day of the event.

    Raises:
        NotFound: If the location does not exist.
        ConstraintViolation: If ``end`` is before ``start``.
        DuplicateKey: If an event with this name already starts on ``start``.

    Returns:
        Event: Newly created event.
    """
    event_id = generate_id(db, "seq_events")
    with transaction(
        db,
        on_duplicate=DuplicateKey("An event with this name already starts on that date."),
    ):
        if not _exists(db, models.Location, id=location_id):
            raise NotFound("Specified location does not exist.")
        event = insert(
            db,
            models.Event(
                id=event_id,
                name=name,
                location_id=location_id,
                start_date=start,
                end_date=end,
            ),
        )
        logger.info("Created event %s %r", event.id, name)
    return event


def cancel_event(db: Session, event_id: int) -> None:
    """
    Delete an event.

    Raises:
        NotFound: If the event does not exist.
        ConstraintViolation: If participations, sightings, weather or notes
            still refer to the event.
    """
    with transaction(db):
        if lock_row_exclusive(db, models.Event, id=event_id) is None:
            raise NotFound("Event not found.")
        execute_delete(db, models.Event, id=event_id)
        logger.info("Cancelled event %s", event_id)


def event_duration(db: Session, event_id: int) -> int:
    """
    Return the length of an event in whole days (``end - start``).

    Raises:
        NotFound: If the event does not exist.
    """
    with transaction(db):
        row = db.execute(
            select(models.Event.start_date, models.Event.end_date).where(
                models.Event.id == event_id
            )
        ).one_or_none()
    if row is None:
        raise NotFound("Event not found.")
    return (row.end_date - row.start_date).days


# Participation


def register_user(db: Session, user_id: int, event_id: int) -> models.Participation:
    """
    Register a user for an event.

    Both parents are locked before the duplicate check, and the
    participation slot itself is locked before it is read, so two
    simultaneous registrations for the same pair cannot both succeed.

    Args:
        db (Session): Database session.
        user_id (int): User identifier.
        event_id (int): Event identifier.

    Raises:
        NotFound: If the user or the event does not exist.
        AlreadyExists: If the user is already registered for the event.

    Returns:
        Participation: The new registration.
    """
    duplicate = AlreadyExists("User already registered for the event.")
    with transaction(db, on_duplicate=duplicate):
        _lock_user(db, user_id)
        _lock_event(db, event_id)
        if (
            lock_row_exclusive(
                db, models.Participation, user_id=user_id, event_id=event_id
            )
            is not None
        ):
            raise duplicate
        participation = insert(
            db, models.Participation(user_id=user_id, event_id=event_id)
        )
        logger.info("Registered user %s for event %s", user_id, event_id)
    return participation


def unregister_user(db: Session, user_id: int, event_id: int) -> None:
    """
    Remove a user's registration for an event.

    Raises:
        NotFound: If the user was not registered for the event.
    """
    with transaction(db):
        removed = execute_delete(
            db, models.Participation, user_id=user_id, event_id=event_id
        )
        if removed == 0:
            raise NotFound("No participation found to remove.")
        logger.info("Unregistered user %s from event %s", user_id, event_id)


# Sightings


def log_sighting(
    db: Session,
    user_id: int,
    event_id: int,
    bird_id: int,
    timestamp: datetime,
    note: str | None = None,
) -> models.Sighting:
    """
    Record that a user saw a species during an event.

    Args:
        db (Session): Database session.
        user_id (int): Observer.
        event_id (int): Event the sighting belongs to.
        bird_id (int): Species seen.
        timestamp (datetime): Moment of the sighting.
        note (str | None): Optional location note.

    Raises:
        NotFound: Naming whichever of user, event or species is missing.
        DuplicateKey: If the same user already logged this species at this
            event and timestamp.

    Returns:
        Sighting: The stored sighting.
    """
    sighting_id = generate_id(db, "seq_sightings")
    with transaction(db, on_duplicate=DuplicateKey("This sighting already exists.")):
        _lock_user(db, user_id)
        _lock_event(db, event_id)
        if lock_row_exclusive(db, models.BirdSpecies, id=bird_id) is None:
            raise NotFound("Bird species does not exist.")
        sighting = insert(
            db,
            models.Sighting(
                id=sighting_id,
                user_id=user_id,
                event_id=event_id,
                bird_id=bird_id,
                timestamp=timestamp,
                location_note=note,
            ),
        )
        logger.info(
            "Logged sighting %s: user %s, event %s, species %s",
            sighting.id,
            user_id,
            event_id,
            bird_id,
        )
    return sighting


def most_common_bird(db: Session) -> str:
    """
    Return the common name of the most frequently sighted species.

    Ties are broken alphabetically by common name. When no sightings
    exist the result is :data:`NO_SIGHTINGS`.
    """
    sightings = func.count(models.Sighting.id)
    stmt = (
        select(models.BirdSpecies.common_name)
        .select_from(models.Sighting)
        .join(models.BirdSpecies, models.Sighting.bird_id == models.BirdSpecies.id)
        .group_by(models.BirdSpecies.common_name)
        .order_by(sightings.desc(), models.BirdSpecies.common_name.asc())
        .limit(1)
    )
    with transaction(db):
        common_name = db.execute(stmt).scalar_one_or_none()
    return common_name if common_name is not None else NO_SIGHTINGS


# Field records


def record_weather(
    db: Session,
    event_id: int,
    temperature: float | None = None,
    conditions: str | None = None,
    wind_speed: float | None = None,
) -> models.WeatherCondition:
    """
    Store the weather of an event, replacing any earlier record.

    Raises:
        NotFound: If the event does not exist.
    """
    with transaction(db):
        _lock_event(db, event_id)
        weather = lock_row_exclusive(db, models.WeatherCondition, event_id=event_id)
        if weather is None:
            weather = models.WeatherCondition(event_id=event_id)
            db.add(weather)
        weather.temperature = temperature
        weather.conditions = conditions
        weather.wind_speed = wind_speed
        db.flush()
    return weather


def add_note(
    db: Session,
    note_text: str,
    user_id: int | None = None,
    event_id: int | None = None,
) -> models.Note:
    """
    Attach a free-text note to a user, an event, both, or neither.

    Raises:
        NotFound: If a given user or event does not exist.
    """
    note_id = generate_id(db, "seq_notes")
    with transaction(db):
        if user_id is not None:
            _lock_user(db, user_id)
        if event_id is not None:
            _lock_event(db, event_id)
        note = insert(
            db,
            models.Note(
                id=note_id,
                user_id=user_id,
                event_id=event_id,
                note_text=note_text,
                created_at=datetime.now(),
            ),
        )
    return note
