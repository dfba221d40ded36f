from datetime import date, datetime

import pytest
from sqlalchemy import select

from app import crud, models
from app.errors import DuplicateKey, NotFound, PreconditionFailed


def create_event(db_session, name="Spring Birdwatch"):
    location = crud.create_location(db_session, "Green Park", "North", 50.087, 14.421)
    return crud.create_event(
        db_session, name, location.id, date(2025, 4, 1), date(2025, 4, 3)
    )


def test_add_user_assigns_id_and_registration_date(db_session):
    user = crud.add_user(db_session, "Alice Johnson", "alice@example.com")
    assert user.id > 0
    assert user.full_name == "Alice Johnson"
    assert isinstance(user.registration_date, datetime)


def test_add_user_ids_increase(db_session):
    first = crud.add_user(db_session, "Alice", "alice@example.com")
    second = crud.add_user(db_session, "Bob", "bob@example.com")
    assert second.id > first.id


def test_add_user_rejects_duplicate_email(db_session):
    crud.add_user(db_session, "Alice", "alice@example.com")
    with pytest.raises(DuplicateKey, match="already exists"):
        crud.add_user(db_session, "Other Alice", "alice@example.com")

    users = db_session.scalars(select(models.User)).all()
    assert len(users) == 1


def test_delete_user_removes_row(db_session):
    user = crud.add_user(db_session, "Bob", "bob@example.com")
    crud.delete_user(db_session, user.id)
    assert db_session.get(models.User, user.id) is None


def test_delete_missing_user(db_session):
    with pytest.raises(NotFound, match="User does not exist"):
        crud.delete_user(db_session, 999)


def test_delete_user_blocked_by_participation(db_session):
    user = crud.add_user(db_session, "Alice", "alice@example.com")
    event = create_event(db_session)
    crud.register_user(db_session, user.id, event.id)

    with pytest.raises(PreconditionFailed, match="participations"):
        crud.delete_user(db_session, user.id)
    assert crud.get_user(db_session, user.id).email == "alice@example.com"

    crud.unregister_user(db_session, user.id, event.id)
    crud.delete_user(db_session, user.id)
    with pytest.raises(NotFound):
        crud.get_user(db_session, user.id)


def test_change_email(db_session):
    user = crud.add_user(db_session, "Alice", "alice@example.com")
    updated = crud.change_email(db_session, user.id, "alice2@example.com")
    assert updated.email == "alice2@example.com"


def test_change_email_missing_user(db_session):
    with pytest.raises(NotFound, match="User not found"):
        crud.change_email(db_session, 12345, "ghost@example.com")


def test_change_email_collision(db_session):
    crud.add_user(db_session, "Alice", "alice@example.com")
    bob = crud.add_user(db_session, "Bob", "bob@example.com")
    with pytest.raises(DuplicateKey, match="already in use"):
        crud.change_email(db_session, bob.id, "alice@example.com")
    assert crud.get_user(db_session, bob.id).email == "bob@example.com"
