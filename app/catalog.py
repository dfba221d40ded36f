"""Location, species and note routes for the Birdwatching Events API."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from . import schemas, crud
from .database import get_db

router = APIRouter(tags=["catalog"])


@router.post(
    "/locations/",
    response_model=schemas.LocationOut,
    status_code=status.HTTP_201_CREATED,
)
def create_location(location_in: schemas.LocationCreate, db: Session = Depends(get_db)):
    """
    Create a location events can be held at.

    Args:
        location_in (LocationCreate): Location data.
        db (Session): Database session.

    Returns:
        LocationOut: Created location.
    """
    return crud.create_location(db, **location_in.model_dump())


@router.post(
    "/species/",
    response_model=schemas.SpeciesOut,
    status_code=status.HTTP_201_CREATED,
)
def create_species(species_in: schemas.SpeciesCreate, db: Session = Depends(get_db)):
    """Add a bird species to the catalog."""
    return crud.add_species(db, species_in.common_name, species_in.scientific_name)


@router.delete("/species/{bird_id}")
def remove_species(
    bird_id: int,
    deleted_by: str | None = None,
    db: Session = Depends(get_db),
):
    """
    Delete a bird species and record who removed it.

    Args:
        bird_id (int): Species identifier.
        deleted_by (str | None): Actor written to the audit log.
        db (Session): Database session.

    Returns:
        dict: Deletion status.
    """
    crud.delete_species(db, bird_id, deleted_by=deleted_by)
    return {"ok": True}


@router.post("/notes/", response_model=schemas.NoteOut, status_code=status.HTTP_201_CREATED)
def create_note(note_in: schemas.NoteCreate, db: Session = Depends(get_db)):
    """Attach a note to a user and/or an event."""
    return crud.add_note(
        db, note_in.note_text, user_id=note_in.user_id, event_id=note_in.event_id
    )
