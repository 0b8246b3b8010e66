from __future__ import annotations

from makemydays.core.seed import seed_event
from makemydays.schemas import Booking, Slot
from makemydays.ui import admin


def _booking(price: int) -> Booking:
    return Booking(
        id=f"b{price}",
        event_id="m1",
        event_title="Show",
        category="Movie",
        time="08:00 PM",
        event_date="25 Dec 2024",
        price=price,
        user_name="Asha",
        user_phone="1",
        user_id="u1",
    )


def test_total_revenue_sums_snapshot_prices() -> None:
    assert admin.total_revenue([_booking(499), _booking(1200)]) == 1699
    assert admin.total_revenue([]) == 0


def test_parse_slots() -> None:
    slots = admin._parse_slots("07:00 PM | 20\n09:00 PM\n\n10:00 PM | lots", [])
    assert slots == [
        Slot(time="07:00 PM", available_seats=20),
        Slot(time="09:00 PM", available_seats=10),
        Slot(time="10:00 PM", available_seats=10),
    ]


def test_parse_slots_keeps_existing_when_blank() -> None:
    existing = seed_event("a1").slots
    assert admin._parse_slots("   ", existing) == existing
