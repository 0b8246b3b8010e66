"""Booking pipeline: validate, snapshot, persist, then hand off to the host."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Callable, List, Optional

from pydantic import ValidationError

from makemydays.core.local_cache import ContactPrefill, LocalCache
from makemydays.core.messaging import (
    DEFAULT_COUNTRY_CODE,
    DEFAULT_MESSAGING_HOST,
    build_messaging_url,
)
from makemydays.core.stores import BOOKINGS, DocumentStore
from makemydays.schemas import Booking, Event, Slot

CONFIRMATION_TEMPLATE = (
    "Hi! I'm {name}. I just booked \"{title}\" on {date} at {time} via MakeMyDays "
    "(booking {booking_id}). Looking forward to it!"
)
DATE_LABEL_FORMAT = "%d %b %Y"

_LOGGER = logging.getLogger(__name__)


class BookingValidationError(ValueError):
    """Raised before any network call when the booking form is incomplete."""


@dataclass(frozen=True)
class BookingReceipt:
    """A persisted booking plus the messaging link the caller should open."""

    booking: Booking
    messaging_url: str


def bookable_dates(event: Event, *, today: Optional[date] = None, days: int = 7) -> List[str]:
    """Return the date labels a guest may pick for ``event``.

    Events without explicit dates are open for the next ``days`` days.
    """

    if event.dates:
        return list(event.dates)
    start = today or date.today()
    return [(start + timedelta(days=offset)).strftime(DATE_LABEL_FORMAT) for offset in range(days)]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookingPipeline:
    """Turns an event/slot/date/contact selection into a persisted booking."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        cache: Optional[LocalCache] = None,
        messaging_host: str = DEFAULT_MESSAGING_HOST,
        default_country: str = DEFAULT_COUNTRY_CODE,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._cache = cache
        self._messaging_host = messaging_host
        self._default_country = default_country
        self._clock = clock

    def prefill_contact(self) -> Optional[ContactPrefill]:
        return self._cache.contact() if self._cache else None

    @staticmethod
    def validate(event: Event, slot: Slot, event_date: str, guest_name: str, guest_phone: str) -> None:
        if not guest_name.strip():
            raise BookingValidationError("Enter your name to book.")
        if not guest_phone.strip():
            raise BookingValidationError("Enter a phone number so the host can reach you.")
        if not event.is_bookable:
            raise BookingValidationError(f"{event.title} has no open slots.")
        if event.find_slot(slot.time) is None:
            raise BookingValidationError(f"{slot.time} is not a slot for {event.title}.")
        if not event_date.strip():
            raise BookingValidationError("Pick a date for your session.")
        if event.dates and event_date not in event.dates:
            raise BookingValidationError(f"{event.title} does not run on {event_date}.")

    def build_booking(
        self,
        event: Event,
        slot: Slot,
        event_date: str,
        guest_name: str,
        guest_phone: str,
        booker_id: str,
    ) -> Booking:
        return Booking(
            id=uuid.uuid4().hex,
            event_id=event.id,
            event_title=event.title,
            category=event.category,
            time=slot.time,
            event_date=event_date,
            price=event.price,
            created_at=self._clock(),
            user_name=guest_name.strip(),
            user_phone=guest_phone.strip(),
            host_phone=event.host_phone,
            user_id=booker_id,
        )

    @staticmethod
    def confirmation_message(booking: Booking) -> str:
        return CONFIRMATION_TEMPLATE.format(
            name=booking.user_name,
            title=booking.event_title,
            date=booking.event_date,
            time=booking.time,
            booking_id=booking.id[:8],
        )

    def messaging_url(self, booking: Booking) -> str:
        return build_messaging_url(
            booking.host_phone,
            self.confirmation_message(booking),
            host=self._messaging_host,
            default_country=self._default_country,
        )

    def book(
        self,
        event: Event,
        slot: Slot,
        event_date: str,
        guest_name: str,
        guest_phone: str,
        booker_id: str,
    ) -> BookingReceipt:
        """Persist a booking and return it with the host hand-off link.

        Raises:
            BookingValidationError: If the selection or contact details are invalid.
            PermissionDeniedError: If the store rejects the write.
        """

        self.validate(event, slot, event_date, guest_name, guest_phone)
        booking = self.build_booking(event, slot, event_date, guest_name, guest_phone, booker_id)
        self._store.add(BOOKINGS, booking.to_document())
        _LOGGER.info("Booked %s at %s on %s for user %s", event.id, slot.time, event_date, booker_id)

        if self._cache is not None:
            self._cache.remember_contact(booking.user_name, booking.user_phone)

        return BookingReceipt(booking=booking, messaging_url=self.messaging_url(booking))

    def _load(self, filters: Optional[dict] = None) -> List[Booking]:
        fetched = self._store.query(BOOKINGS, filters=filters)
        if not fetched.ok:
            _LOGGER.info("Bookings unavailable; showing none")
            return []
        bookings: List[Booking] = []
        for document in fetched.value:
            try:
                bookings.append(Booking.model_validate(document))
            except ValidationError as exc:
                _LOGGER.warning("Skipping malformed booking %s: %s", document.get("id"), exc)
        return bookings

    def list_bookings(self, user_id: str) -> List[Booking]:
        """Return the user's bookings, newest first."""

        return self._load({"userId": user_id})

    def list_all_bookings(self) -> List[Booking]:
        return self._load()


__all__ = [
    "BookingPipeline",
    "BookingReceipt",
    "BookingValidationError",
    "CONFIRMATION_TEMPLATE",
    "bookable_dates",
]
