"""Read-only reporting projections and their routes.

The queries join the core tables into flat rows for display. They take no
locks and change nothing.
"""

from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from . import models, schemas
from .database import get_db
from .storage import transaction

router = APIRouter(prefix="/reports", tags=["reports"])


def whole_years_between(since: datetime, until: datetime) -> int:
    """Number of full years elapsed from ``since`` to ``until``."""
    years = until.year - since.year
    if (until.month, until.day) < (since.month, since.day):
        years -= 1
    return max(years, 0)


def birdwatchers(db: Session, now: datetime | None = None) -> list[schemas.BirdwatcherRow]:
    """
    List all users with their membership age and number of registrations.

    Args:
        db (Session): Database session.
        now (datetime | None): Reference time; defaults to the current time.

    Returns:
        list[BirdwatcherRow]: One row per user, ordered by id.
    """
    now = now or datetime.now()
    num_events = (
        select(func.count())
        .select_from(models.Participation)
        .where(models.Participation.user_id == models.User.id)
        .correlate(models.User)
        .scalar_subquery()
    )
    stmt = select(
        models.User.id,
        models.User.full_name,
        models.User.email,
        models.User.registration_date,
        num_events.label("num_events"),
    ).order_by(models.User.id)
    with transaction(db):
        rows = db.execute(stmt).all()
    return [
        schemas.BirdwatcherRow(
            user_id=row.id,
            full_name=row.full_name,
            email=row.email,
            years_since_registration=whole_years_between(row.registration_date, now),
            num_events=row.num_events,
        )
        for row in rows
    ]


def all_events(db: Session) -> list[schemas.EventRow]:
    """List events together with where they take place."""
    stmt = (
        select(
            models.Event.id.label("event_id"),
            models.Event.name.label("event_name"),
            models.Event.start_date,
            models.Event.end_date,
            models.Location.name.label("location_name"),
            models.Location.region,
            models.Location.latitude,
            models.Location.longitude,
        )
        .join(models.Location, models.Event.location_id == models.Location.id)
        .order_by(models.Event.start_date, models.Event.id)
    )
    with transaction(db):
        rows = db.execute(stmt).mappings().all()
    return [schemas.EventRow(**row) for row in rows]


def event_participants(db: Session) -> list[schemas.ParticipantRow]:
    """List which birdwatchers are registered for which events."""
    stmt = (
        select(
            models.Participation.user_id,
            models.User.full_name.label("participant_name"),
            models.User.email,
            models.Event.name.label("event_name"),
            models.Event.start_date,
        )
        .join(models.User, models.Participation.user_id == models.User.id)
        .join(models.Event, models.Participation.event_id == models.Event.id)
        .order_by(models.Event.start_date, models.Participation.user_id)
    )
    with transaction(db):
        rows = db.execute(stmt).mappings().all()
    return [schemas.ParticipantRow(**row) for row in rows]


def registered_birds(db: Session) -> list[schemas.RegisteredBirdRow]:
    """List the species that have been sighted at least once."""
    stmt = (
        select(
            models.BirdSpecies.id.label("bird_id"),
            models.BirdSpecies.common_name,
            models.BirdSpecies.scientific_name,
        )
        .join(models.Sighting, models.Sighting.bird_id == models.BirdSpecies.id)
        .distinct()
        .order_by(models.BirdSpecies.id)
    )
    with transaction(db):
        rows = db.execute(stmt).mappings().all()
    return [schemas.RegisteredBirdRow(**row) for row in rows]


def observation_records(db: Session) -> list[schemas.ObservationRow]:
    """List sightings with observer, species and event details."""
    stmt = (
        select(
            models.Sighting.id.label("sighting_id"),
            models.User.full_name.label("observer_name"),
            models.BirdSpecies.common_name.label("bird_common_name"),
            models.BirdSpecies.scientific_name,
            models.Event.name.label("event_name"),
            models.Sighting.timestamp,
            models.Sighting.location_note,
        )
        .join(models.User, models.Sighting.user_id == models.User.id)
        .join(models.Event, models.Sighting.event_id == models.Event.id)
        .join(models.BirdSpecies, models.Sighting.bird_id == models.BirdSpecies.id)
        .order_by(models.Sighting.timestamp, models.Sighting.id)
    )
    with transaction(db):
        rows = db.execute(stmt).mappings().all()
    return [schemas.ObservationRow(**row) for row in rows]


@router.get("/birdwatchers", response_model=List[schemas.BirdwatcherRow])
def list_birdwatchers(db: Session = Depends(get_db)):
    """Birdwatchers with years since registration and event count."""
    return birdwatchers(db)


@router.get("/events", response_model=List[schemas.EventRow])
def list_events(db: Session = Depends(get_db)):
    """Events with location details."""
    return all_events(db)


@router.get("/participants", response_model=List[schemas.ParticipantRow])
def list_participants(db: Session = Depends(get_db)):
    """Registrations of birdwatchers to events."""
    return event_participants(db)


@router.get("/birds", response_model=List[schemas.RegisteredBirdRow])
def list_registered_birds(db: Session = Depends(get_db)):
    """Species with at least one sighting."""
    return registered_birds(db)


@router.get("/observations", response_model=List[schemas.ObservationRow])
def list_observations(db: Session = Depends(get_db)):
    """Sightings with observer, species and event."""
    return observation_records(db)
