"""Event, participation and weather routes for the Birdwatching Events API."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from . import schemas, crud
from .database import get_db

router = APIRouter(prefix="/events", tags=["events"])


@router.post("/", response_model=schemas.EventOut, status_code=status.HTTP_201_CREATED)
def create_event(event_in: schemas.EventCreate, db: Session = Depends(get_db)):
    """
    Create a new event at an existing location.

    Args:
        event_in (EventCreate): Event data.
        db (Session): Database session.

    Returns:
        EventOut: Created event.
    """
    return crud.create_event(
        db,
        event_in.name,
        event_in.location_id,
        event_in.start_date,
        event_in.end_date,
    )


@router.delete("/{event_id}")
def cancel_event(event_id: int, db: Session = Depends(get_db)):
    """Cancel (delete) an event."""
    crud.cancel_event(db, event_id)
    return {"ok": True}


@router.get("/{event_id}/duration", response_model=schemas.EventDuration)
def read_duration(event_id: int, db: Session = Depends(get_db)):
    """
    Return how many days an event lasts.

    Args:
        event_id (int): Event identifier.
        db (Session): Database session.

    Returns:
        EventDuration: Event id and duration in whole days.
    """
    return schemas.EventDuration(
        event_id=event_id, days=crud.event_duration(db, event_id)
    )


@router.post(
    "/{event_id}/participants",
    response_model=schemas.ParticipationOut,
    status_code=status.HTTP_201_CREATED,
)
def register_participant(
    event_id: int,
    participation_in: schemas.ParticipationCreate,
    db: Session = Depends(get_db),
):
    """
    Register a user for an event.

    Args:
        event_id (int): Event identifier.
        participation_in (ParticipationCreate): User to register.
        db (Session): Database session.

    Returns:
        ParticipationOut: The registration.
    """
    return crud.register_user(db, participation_in.user_id, event_id)


@router.delete("/{event_id}/participants/{user_id}")
def unregister_participant(event_id: int, user_id: int, db: Session = Depends(get_db)):
    """Remove a user's registration for an event."""
    crud.unregister_user(db, user_id, event_id)
    return {"ok": True}


@router.put("/{event_id}/weather", response_model=schemas.WeatherOut)
def put_weather(
    event_id: int,
    weather_in: schemas.WeatherIn,
    db: Session = Depends(get_db),
):
    """Record (or replace) the weather observed during an event."""
    return crud.record_weather(
        db,
        event_id,
        temperature=weather_in.temperature,
        conditions=weather_in.conditions,
        wind_speed=weather_in.wind_speed,
    )
