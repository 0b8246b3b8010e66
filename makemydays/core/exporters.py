"""Utilities for exporting bookings to calendars and scannable tickets."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional
from urllib.parse import urlencode

from makemydays.schemas import Booking

_QR_ENDPOINT = "https://api.qrserver.com/v1/create-qr-code/"
_DATE_FORMATS = ("%d %b %Y", "%d %B %Y", "%Y-%m-%d", "%d/%m/%Y")
_TIME_FORMATS = ("%I:%M %p", "%H:%M", "%I %p")
_DEFAULT_DURATION = timedelta(hours=2)


def _format_dt(dt: datetime) -> str:
    return dt.strftime("%Y%m%dT%H%M%S")


def _escape_ics_text(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace(";", "\\;").replace(",", "\\,")
    escaped = escaped.replace("\n", "\\n")
    return escaped


def parse_event_date(value: str) -> Optional[date]:
    cleaned = value.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    return None


def parse_slot_time(value: str) -> Optional[time]:
    cleaned = value.strip().upper()
    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).time()
        except ValueError:
            continue
    return None


def booking_to_ics(booking: Booking, *, calendar_name: Optional[str] = None) -> str:
    """Serialise a booking to an iCalendar invite.

    Slot labels and dates are free text; when they cannot be parsed the event
    is emitted without a start so the calendar still imports.
    """

    lines: List[str] = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//MakeMyDays//Bookings//EN",
    ]
    if calendar_name:
        lines.append(f"X-WR-CALNAME:{_escape_ics_text(calendar_name)}")

    lines.append("BEGIN:VEVENT")
    lines.append(f"UID:{booking.id}@makemydays.in")
    lines.append(f"DTSTAMP:{datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%SZ')}")

    event_day = parse_event_date(booking.event_date)
    slot_time = parse_slot_time(booking.time)
    if event_day and slot_time:
        start = datetime.combine(event_day, slot_time)
        lines.append(f"DTSTART:{_format_dt(start)}")
        lines.append(f"DTEND:{_format_dt(start + _DEFAULT_DURATION)}")
    elif event_day:
        lines.append(f"DTSTART;VALUE=DATE:{event_day.strftime('%Y%m%d')}")

    lines.append(f"SUMMARY:{_escape_ics_text(booking.event_title)}")
    description = f"{booking.category.value} session at {booking.time}. Booked for {booking.user_name}."
    lines.append(f"DESCRIPTION:{_escape_ics_text(description)}")
    lines.append("END:VEVENT")
    lines.append("END:VCALENDAR")
    return "\r\n".join(lines) + "\r\n"


def ticket_qr_url(booking: Booking, *, size: int = 200) -> str:
    """Return a QR code image URL encoding the booking id."""

    params = {
        "size": f"{size}x{size}",
        "data": booking.id,
        "bgcolor": "FFFFFF",
        "color": "0A0C10",
        "margin": "10",
    }
    return f"{_QR_ENDPOINT}?{urlencode(params)}"


__all__ = ["booking_to_ics", "parse_event_date", "parse_slot_time", "ticket_qr_url"]
