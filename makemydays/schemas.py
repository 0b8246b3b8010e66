"""Data schemas for the MakeMyDays application.

Documents are persisted with camelCase keys (``model_dump(by_alias=True)``)
while Python code works with the snake_case attribute names.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeInt,
    field_validator,
    model_validator,
)


class Category(str, Enum):
    """Fixed set of experience categories."""

    MOVIE = "Movie"
    ACTIVITY = "Activity"
    THERAPY = "Therapy"
    WORKSHOP = "Workshop"
    WELLNESS = "Wellness"


class Slot(BaseModel):
    """A bookable time-of-day option.

    ``available_seats`` is advisory only: no code path decrements it.
    """

    time: str
    available_seats: NonNegativeInt = Field(default=0, alias="availableSeats")

    model_config = ConfigDict(populate_by_name=True)


class Event(BaseModel):
    """A bookable experience listing."""

    id: str
    title: str
    category: Category
    image: str = ""
    description: str = ""
    price: NonNegativeInt = 0
    original_price: Optional[NonNegativeInt] = Field(default=None, alias="originalPrice")
    slots: List[Slot] = Field(default_factory=list)
    dates: List[str] = Field(default_factory=list)
    host_phone: str = Field(default="", alias="hostPhone")
    average_rating: Optional[float] = Field(default=None, alias="averageRating")
    total_ratings: NonNegativeInt = Field(default=0, alias="totalRatings")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    owner_uid: Optional[str] = Field(default=None, alias="ownerUid")

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _accept_single_date(cls, data: object) -> object:
        """Older documents carry a single ``date`` string instead of ``dates``."""

        if not isinstance(data, dict):
            return data
        payload = dict(data)
        legacy = payload.pop("date", None)
        if legacy and not payload.get("dates"):
            payload["dates"] = [legacy]
        return payload

    @property
    def is_bookable(self) -> bool:
        return bool(self.slots)

    def rating_summary(self) -> Optional[float]:
        """Return the average rating, or ``None`` when nobody has rated yet."""

        if self.total_ratings <= 0 or self.average_rating is None:
            return None
        return self.average_rating

    def find_slot(self, time: str) -> Optional[Slot]:
        for slot in self.slots:
            if slot.time == time:
                return slot
        return None

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Booking(BaseModel):
    """A confirmed reservation.

    Event fields are a denormalised snapshot taken at booking time.
    """

    id: str
    event_id: str = Field(alias="eventId")
    event_title: str = Field(alias="eventTitle")
    category: Category
    time: str
    event_date: str = Field(alias="eventDate")
    price: NonNegativeInt
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        validation_alias=AliasChoices("createdAt", "bookedAt", "created_at"),
        serialization_alias="createdAt",
    )
    user_name: str = Field(alias="userName")
    user_phone: str = Field(alias="userPhone")
    host_phone: str = Field(default="", alias="hostPhone")
    user_id: str = Field(alias="userId")
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    reminder_sent: Optional[bool] = Field(default=None, alias="reminderSent")

    model_config = ConfigDict(populate_by_name=True)

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class NotificationPreferences(BaseModel):
    email: bool = True
    sms: bool = False


class User(BaseModel):
    """Registered user profile."""

    id: str
    name: str
    email: str
    role: Literal["user", "admin"] = "user"
    preferences: NotificationPreferences = Field(default_factory=NotificationPreferences)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("email")
    @classmethod
    def _normalise_email(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class AIRecommendation(BaseModel):
    """Model-ranked event suggestions; ``suggested_event_ids`` order is significant."""

    reasoning: str
    suggested_event_ids: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("suggestedEventIds", "suggested_event_ids", "eventIds"),
        serialization_alias="suggestedEventIds",
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("suggested_event_ids", mode="before")
    @classmethod
    def _coerce_ids(cls, value: object) -> object:
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        if isinstance(value, list):
            return [str(item) for item in value if item is not None and str(item).strip()]
        return value


__all__ = [
    "AIRecommendation",
    "Booking",
    "Category",
    "Event",
    "NotificationPreferences",
    "Slot",
    "User",
]
