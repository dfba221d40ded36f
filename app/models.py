"""Database models for the Birdwatching Events API.

This module defines SQLAlchemy ORM models used by the application.

Surrogate keys come from named sequences. Backends with native sequences
use them directly; elsewhere each sequence is a row of ``id_sequences``.
None of the models declare delete cascades: a parent with dependent rows
is protected by its foreign keys.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Sequence,
    String,
    Text,
    UniqueConstraint,
    event,
    func,
)

from .database import Base


SEQUENCES = (
    "seq_users",
    "seq_locations",
    "seq_events",
    "seq_bird_species",
    "seq_sightings",
    "seq_notes",
)
"""Names of the id sequences created together with the schema."""


ID_SEQUENCES = {name: Sequence(name, metadata=Base.metadata) for name in SEQUENCES}
"""Native sequences, created by ``create_all`` only where the backend has them."""


class IdSequence(Base):
    """Named counter handing out surrogate keys."""

    __tablename__ = "id_sequences"

    name = Column(String(50), primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)


@event.listens_for(IdSequence.__table__, "after_create")
def _seed_sequences(target, connection, **kw):
    connection.execute(
        target.insert(), [{"name": name, "last_value": 0} for name in SEQUENCES]
    )


class User(Base):
    """
    SQLAlchemy model representing a birdwatcher.

    A user may register for events and log sightings. The email address
    is unique across all users.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=False)
    full_name = Column(String(100), nullable=False)
    email = Column(String(100), nullable=False, unique=True)
    registration_date = Column(DateTime, nullable=False, server_default=func.now())


class Location(Base):
    """A place where events take place; ``(name, region)`` is its real key."""

    __tablename__ = "locations"
    __table_args__ = (
        UniqueConstraint("name", "region", name="uq_locations_name_region"),
    )

    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(100), nullable=False)
    region = Column(String(100), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)


class Event(Base):
    """
    SQLAlchemy model representing a birdwatching event.

    Every event is held at an existing location and never ends before it
    starts. ``(name, start_date)`` identifies an event in business terms.
    """

    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="chk_events_date"),
        UniqueConstraint("name", "start_date", name="uq_events_name_start"),
    )

    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(100), nullable=False)
    location_id = Column(
        Integer,
        ForeignKey("locations.id", name="fk_events_location"),
        nullable=False,
        index=True,
    )
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)


class Participation(Base):
    """Registration of one user for one event."""

    __tablename__ = "participation"

    user_id = Column(
        Integer,
        ForeignKey("users.id", name="fk_participation_user"),
        primary_key=True,
        index=True,
    )
    event_id = Column(
        Integer,
        ForeignKey("events.id", name="fk_participation_event"),
        primary_key=True,
        index=True,
    )


class BirdSpecies(Base):
    """A species that can be sighted; ``common_name`` is unique."""

    __tablename__ = "bird_species"

    id = Column(Integer, primary_key=True, autoincrement=False)
    common_name = Column(String(100), nullable=False, unique=True)
    scientific_name = Column(String(150), nullable=True)


class BirdSpeciesLog(Base):
    """Audit entry written whenever a species is deleted."""

    __tablename__ = "bird_species_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    bird_id = Column(Integer, nullable=False)
    deleted_at = Column(DateTime, nullable=False, server_default=func.now())
    deleted_by = Column(String(100), nullable=True)


class Sighting(Base):
    """
    SQLAlchemy model representing one observation of a species.

    A sighting ties a user, an event and a species together at a point in
    time. The same user cannot log the same species at the same event and
    timestamp twice.
    """

    __tablename__ = "sightings"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "event_id", "bird_id", "timestamp", name="uq_sightings"
        ),
        Index("idx_sightings_event_timestamp", "event_id", "timestamp"),
    )

    id = Column(Integer, primary_key=True, autoincrement=False)
    user_id = Column(
        Integer, ForeignKey("users.id", name="fk_sightings_user"), nullable=False, index=True
    )
    event_id = Column(
        Integer, ForeignKey("events.id", name="fk_sightings_event"), nullable=False
    )
    bird_id = Column(
        Integer,
        ForeignKey("bird_species.id", name="fk_sightings_bird"),
        nullable=False,
        index=True,
    )
    timestamp = Column(DateTime, nullable=False)
    location_note = Column(String(200), nullable=True)


class WeatherCondition(Base):
    """Weather recorded for an event; at most one record per event."""

    __tablename__ = "weather_conditions"

    event_id = Column(
        Integer,
        ForeignKey("events.id", name="fk_weather_event"),
        primary_key=True,
    )
    temperature = Column(Float, nullable=True)
    conditions = Column(String(100), nullable=True)
    wind_speed = Column(Float, nullable=True)


class Note(Base):
    """Free-text note, optionally attached to a user and/or an event."""

    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, autoincrement=False)
    user_id = Column(
        Integer, ForeignKey("users.id", name="fk_notes_user"), nullable=True
    )
    event_id = Column(
        Integer, ForeignKey("events.id", name="fk_notes_event"), nullable=True
    )
    note_text = Column(Text, nullable=True)
    created_at = Column(
        DateTime, nullable=False, server_default=func.now(), index=True
    )
