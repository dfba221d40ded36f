"""Birdwatcher routes for the Birdwatching Events API."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .database import get_db
from . import schemas, crud

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=schemas.UserOut, status_code=status.HTTP_201_CREATED)
def create_user(user_in: schemas.UserCreate, db: Session = Depends(get_db)):
    """
    Register a new birdwatcher.

    Args:
        user_in (UserCreate): Name and email of the new user.
        db (Session): Database session.

    Returns:
        UserOut: Created user.
    """
    return crud.add_user(db, user_in.full_name, user_in.email)


@router.get("/{user_id}", response_model=schemas.UserOut)
def read_user(user_id: int, db: Session = Depends(get_db)):
    """Retrieve a single user by ID."""
    return crud.get_user(db, user_id)


@router.patch("/{user_id}/email", response_model=schemas.UserOut)
def update_email(
    user_id: int,
    change: schemas.EmailChange,
    db: Session = Depends(get_db),
):
    """
    Change the email address of a user.

    Args:
        user_id (int): User identifier.
        change (EmailChange): New email address.
        db (Session): Database session.

    Returns:
        UserOut: Updated user.
    """
    return crud.change_email(db, user_id, change.email)


@router.delete("/{user_id}")
def remove_user(user_id: int, db: Session = Depends(get_db)):
    """
    Delete a user that has no registrations or sightings left.

    Args:
        user_id (int): User identifier.
        db (Session): Database session.

    Returns:
        dict: Deletion status.
    """
    crud.delete_user(db, user_id)
    return {"ok": True}
