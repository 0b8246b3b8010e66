"""Booking reminders delivered through a pluggable notifier.

Delivery receipts belong to the reminder service; bookings themselves are
never modified when a reminder goes out.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Protocol

from makemydays.core.exporters import parse_event_date
from makemydays.schemas import Booking, NotificationPreferences

_LOGGER = logging.getLogger(__name__)


class Notifier(Protocol):
    def deliver(self, booking: Booking, channel: str) -> bool:
        """Send a reminder over ``channel`` and report whether it was accepted."""


class LoggingNotifier:
    """Notifier that only writes the reminder to the application log."""

    def deliver(self, booking: Booking, channel: str) -> bool:
        _LOGGER.info(
            "Reminder via %s to %s for %s on %s at %s",
            channel,
            booking.user_name,
            booking.event_title,
            booking.event_date,
            booking.time,
        )
        return True


@dataclass(frozen=True)
class DeliveryReceipt:
    booking_id: str
    channel: str
    delivered: bool
    attempted_at: datetime


def channels_for(preferences: NotificationPreferences) -> List[str]:
    channels: List[str] = []
    if preferences.email:
        channels.append("email")
    if preferences.sms:
        channels.append("sms")
    return channels


class ReminderService:
    """Sends reminders for bookings happening soon."""

    def __init__(
        self,
        notifier: Optional[Notifier] = None,
        *,
        lead_days: int = 1,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._notifier: Notifier = notifier or LoggingNotifier()
        self._lead_days = lead_days
        self._clock = clock
        self._receipts: Dict[str, List[DeliveryReceipt]] = {}

    def is_due(self, booking: Booking, today: Optional[date] = None) -> bool:
        event_day = parse_event_date(booking.event_date)
        if event_day is None:
            return False
        delta = (event_day - (today or self._clock().date())).days
        return 0 <= delta <= self._lead_days

    def has_delivered(self, booking_id: str) -> bool:
        return any(receipt.delivered for receipt in self._receipts.get(booking_id, ()))

    def receipts(self, booking_id: str) -> List[DeliveryReceipt]:
        return list(self._receipts.get(booking_id, ()))

    def send_due_reminders(
        self,
        bookings: Iterable[Booking],
        preferences: Optional[NotificationPreferences] = None,
    ) -> List[DeliveryReceipt]:
        """Deliver reminders for due bookings that have no successful receipt yet."""

        channels = channels_for(preferences or NotificationPreferences())
        sent: List[DeliveryReceipt] = []
        today = self._clock().date()
        for booking in bookings:
            if self.has_delivered(booking.id) or not self.is_due(booking, today):
                continue
            for channel in channels:
                try:
                    delivered = bool(self._notifier.deliver(booking, channel))
                except Exception as exc:  # noqa: BLE001 - a failed channel is recorded, not fatal
                    _LOGGER.warning("Reminder for %s via %s failed: %s", booking.id, channel, exc)
                    delivered = False
                receipt = DeliveryReceipt(
                    booking_id=booking.id,
                    channel=channel,
                    delivered=delivered,
                    attempted_at=self._clock(),
                )
                self._receipts.setdefault(booking.id, []).append(receipt)
                sent.append(receipt)
        return sent


__all__ = [
    "DeliveryReceipt",
    "LoggingNotifier",
    "Notifier",
    "ReminderService",
    "channels_for",
]
