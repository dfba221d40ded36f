"""Sighting routes for the Birdwatching Events API."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from . import schemas, crud
from .database import get_db

router = APIRouter(prefix="/sightings", tags=["sightings"])


@router.post("/", response_model=schemas.SightingOut, status_code=status.HTTP_201_CREATED)
def log_sighting(sighting_in: schemas.SightingCreate, db: Session = Depends(get_db)):
    """
    Log a sighting of a species by a user during an event.

    Args:
        sighting_in (SightingCreate): Sighting data.
        db (Session): Database session.

    Returns:
        SightingOut: Stored sighting.
    """
    return crud.log_sighting(
        db,
        sighting_in.user_id,
        sighting_in.event_id,
        sighting_in.bird_id,
        sighting_in.timestamp,
        sighting_in.location_note,
    )


@router.get("/most-common", response_model=schemas.MostCommonBird)
def most_common(db: Session = Depends(get_db)):
    """Return the most frequently sighted species."""
    return schemas.MostCommonBird(common_name=crud.most_common_bird(db))
