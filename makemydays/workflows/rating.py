"""Transactional rating aggregation for events."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from makemydays.core.seed import seed_index
from makemydays.core.stores import (
    BOOKINGS,
    DEFAULT_TRANSACTION_ATTEMPTS,
    EVENTS,
    DocumentStore,
    Transaction,
)
from makemydays.schemas import Event

MIN_RATING = 1
MAX_RATING = 5

_LOGGER = logging.getLogger(__name__)


class BookingNotFoundError(LookupError):
    """Raised when the booking being rated does not exist."""


class AlreadyRatedError(ValueError):
    """Raised when a booking already carries a rating."""


@dataclass(frozen=True)
class RatingSummary:
    event_id: str
    average_rating: float
    total_ratings: int


def running_mean(average: float, count: int, rating: int) -> float:
    """Fold ``rating`` into a mean of ``count`` previous ratings."""

    return (average * count + rating) / (count + 1)


class RatingAggregator:
    """Attaches a rating to a booking and updates the event's running mean atomically."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        seed: Optional[Mapping[str, Event]] = None,
        max_attempts: int = DEFAULT_TRANSACTION_ATTEMPTS,
    ) -> None:
        self._store = store
        self._seed = dict(seed) if seed is not None else seed_index()
        self._max_attempts = max_attempts

    def _base_event_document(self, transaction: Transaction, event_id: str) -> dict:
        document = transaction.get(EVENTS, event_id)
        if document is not None:
            return document
        seeded = self._seed.get(event_id)
        return seeded.to_document() if seeded else {}

    def rate(self, booking_id: str, event_id: str, rating: int) -> RatingSummary:
        """Record ``rating`` for ``booking_id`` and fold it into ``event_id``'s average.

        Raises:
            ValueError: If ``rating`` is outside 1..5.
            BookingNotFoundError: If the booking does not exist.
            AlreadyRatedError: If the booking was rated before.
            TransactionConflict: If concurrent writers keep winning past the retry budget.
        """

        if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
            raise ValueError(f"Rating must be an integer between {MIN_RATING} and {MAX_RATING}")

        def _apply(transaction: Transaction) -> RatingSummary:
            booking = transaction.get(BOOKINGS, booking_id)
            if booking is None:
                raise BookingNotFoundError(f"Booking {booking_id} not found")
            if booking.get("rating") is not None:
                raise AlreadyRatedError(f"Booking {booking_id} has already been rated")
            if booking.get("eventId") not in (None, event_id):
                raise ValueError(f"Booking {booking_id} is not for event {event_id}")

            event_document = self._base_event_document(transaction, event_id)
            average = float(event_document.get("averageRating") or 0.0)
            count = int(event_document.get("totalRatings") or 0)
            new_average = running_mean(average, count, rating)

            transaction.set(
                EVENTS,
                event_id,
                {**event_document, "averageRating": new_average, "totalRatings": count + 1},
                merge=True,
            )
            transaction.update(BOOKINGS, booking_id, {"rating": rating})
            return RatingSummary(event_id=event_id, average_rating=new_average, total_ratings=count + 1)

        summary = self._store.run_transaction(_apply, max_attempts=self._max_attempts)
        _LOGGER.info(
            "Rated booking %s with %d; %s now %.2f over %d ratings",
            booking_id,
            rating,
            event_id,
            summary.average_rating,
            summary.total_ratings,
        )
        return summary


__all__ = [
    "AlreadyRatedError",
    "BookingNotFoundError",
    "RatingAggregator",
    "RatingSummary",
    "running_mean",
]
