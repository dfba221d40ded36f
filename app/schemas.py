from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional


class UserCreate(BaseModel):
    """Payload for registering a new birdwatcher."""

    full_name: str = Field(min_length=1, max_length=100)
    email: EmailStr


class EmailChange(BaseModel):
    """Payload for changing a user's email address."""

    email: EmailStr


class UserOut(BaseModel):
    """Response schema for user data."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    email: EmailStr
    registration_date: datetime


class LocationCreate(BaseModel):
    """Payload for creating a location."""

    name: str = Field(min_length=1, max_length=100)
    region: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class LocationOut(LocationCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int


class EventCreate(BaseModel):
    """Payload for creating an event.

    The end date is not cross-checked here; the store's check constraint
    rejects events that end before they start.
    """

    name: str = Field(min_length=1, max_length=100)
    location_id: int
    start_date: date
    end_date: date


class EventOut(EventCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int


class EventDuration(BaseModel):
    event_id: int
    days: int


class ParticipationCreate(BaseModel):
    """Payload for registering a user for an event."""

    user_id: int


class ParticipationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    event_id: int


class SpeciesCreate(BaseModel):
    """Payload for adding a bird species to the catalog."""

    common_name: str = Field(min_length=1, max_length=100)
    scientific_name: Optional[str] = Field(default=None, max_length=150)


class SpeciesOut(SpeciesCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int


class SightingCreate(BaseModel):
    """Payload for logging a sighting."""

    user_id: int
    event_id: int
    bird_id: int
    timestamp: datetime
    location_note: Optional[str] = Field(default=None, max_length=200)


class SightingOut(SightingCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int


class MostCommonBird(BaseModel):
    common_name: str


class WeatherIn(BaseModel):
    """Weather observed during an event."""

    temperature: Optional[float] = None
    conditions: Optional[str] = Field(default=None, max_length=100)
    wind_speed: Optional[float] = None


class WeatherOut(WeatherIn):
    model_config = ConfigDict(from_attributes=True)

    event_id: int


class NoteCreate(BaseModel):
    """Free-text note optionally attached to a user and/or an event."""

    note_text: str
    user_id: Optional[int] = None
    event_id: Optional[int] = None


class NoteOut(NoteCreate):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime


class BirdwatcherRow(BaseModel):
    user_id: int
    full_name: str
    email: str
    years_since_registration: int
    num_events: int


class EventRow(BaseModel):
    event_id: int
    event_name: str
    start_date: date
    end_date: date
    location_name: str
    region: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class ParticipantRow(BaseModel):
    user_id: int
    participant_name: str
    email: str
    event_name: str
    start_date: date


class RegisteredBirdRow(BaseModel):
    bird_id: int
    common_name: str
    scientific_name: Optional[str] = None


class ObservationRow(BaseModel):
    sighting_id: int
    observer_name: str
    bird_common_name: str
    scientific_name: Optional[str] = None
    event_name: str
    timestamp: datetime
    location_note: Optional[str] = None
