from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from urllib.parse import unquote

import pytest

from makemydays.core.errors import PermissionDeniedError
from makemydays.core.local_cache import ContactPrefill, LocalCache
from makemydays.core.seed import seed_event
from makemydays.core.stores import BOOKINGS, InMemoryDocumentStore
from makemydays.schemas import Slot
from makemydays.workflows.booking import (
    BookingPipeline,
    BookingValidationError,
    bookable_dates,
)


class StepClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 12, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def cache(tmp_path) -> LocalCache:
    return LocalCache(tmp_path / "cache.json")


def test_book_persists_snapshot_and_builds_host_link(store, cache):
    pipeline = BookingPipeline(store, cache=cache)
    event = seed_event("m1")

    receipt = pipeline.book(event, event.slots[0], "25 Dec 2024", "Asha", "98765 43210", "u1")

    booking = receipt.booking
    assert booking.price == 499
    assert booking.event_title == event.title
    assert booking.host_phone == "917686924919"
    assert booking.user_id == "u1"
    stored = store.get(BOOKINGS, booking.id)
    assert stored["eventId"] == "m1"
    assert stored["price"] == 499
    assert stored["time"] == "08:00 PM"

    assert receipt.messaging_url.startswith("https://wa.me/917686924919?text=")
    message = unquote(receipt.messaging_url.split("?text=", 1)[1])
    assert "Asha" in message
    assert event.title in message
    assert booking.id[:8] in message


def test_booking_snapshot_ignores_later_event_edits(store):
    pipeline = BookingPipeline(store)
    event = seed_event("w1")
    receipt = pipeline.book(event, event.slots[1], "02 Jan 2025", "Ravi", "9876543210", "u2")

    repriced = event.model_copy(update={"price": 9999, "title": "Renamed"})
    assert repriced.price == 9999

    stored = pipeline.list_bookings("u2")[0]
    assert stored.price == 1200
    assert stored.event_title == "Clay & Consciousness Workshop"
    assert receipt.booking.price == 1200


@pytest.mark.parametrize(
    "slot_time, event_date, name, phone",
    [
        ("08:00 PM", "25 Dec 2024", "", "9876543210"),
        ("08:00 PM", "25 Dec 2024", "Asha", "  "),
        ("09:00 PM", "25 Dec 2024", "Asha", "9876543210"),
        ("08:00 PM", "26 Dec 2024", "Asha", "9876543210"),
        ("08:00 PM", "", "Asha", "9876543210"),
    ],
)
def test_invalid_bookings_are_rejected_before_writing(store, slot_time, event_date, name, phone):
    pipeline = BookingPipeline(store)
    event = seed_event("m1")

    with pytest.raises(BookingValidationError):
        pipeline.book(event, Slot(time=slot_time), event_date, name, phone, "u1")
    assert store.query(BOOKINGS).value == []


def test_event_without_slots_is_not_bookable(store):
    event = seed_event("t1").model_copy(update={"slots": []})
    with pytest.raises(BookingValidationError):
        BookingPipeline(store).book(event, Slot(time="02:00 PM"), "01 Jan 2025", "Asha", "1", "u1")


def test_event_without_dates_accepts_any_date(store):
    event = seed_event("a1")
    receipt = BookingPipeline(store).book(event, event.slots[0], "14 Feb 2025", "Asha", "9876543210", "u1")
    assert receipt.booking.event_date == "14 Feb 2025"


def test_permission_denied_propagates_and_skips_cache(cache):
    pipeline = BookingPipeline(InMemoryDocumentStore(denied_collections={BOOKINGS}), cache=cache)
    event = seed_event("m1")

    with pytest.raises(PermissionDeniedError):
        pipeline.book(event, event.slots[0], "25 Dec 2024", "Asha", "9876543210", "u1")
    assert cache.contact() is None


def test_contact_is_remembered_for_prefill(store, cache):
    pipeline = BookingPipeline(store, cache=cache)
    assert pipeline.prefill_contact() is None
    event = seed_event("wel1")

    pipeline.book(event, event.slots[0], "01 Jan 2025", " Asha ", "9876543210", "u1")

    assert pipeline.prefill_contact() == ContactPrefill(name="Asha", phone="9876543210")


def test_list_bookings_filters_by_user_newest_first(store):
    pipeline = BookingPipeline(store, clock=StepClock())
    event = seed_event("a1")
    first = pipeline.book(event, event.slots[0], "01 Jan 2025", "Asha", "1", "u1").booking
    pipeline.book(event, event.slots[0], "01 Jan 2025", "Ravi", "2", "u2")
    second = pipeline.book(event, event.slots[1], "02 Jan 2025", "Asha", "1", "u1").booking

    assert [booking.id for booking in pipeline.list_bookings("u1")] == [second.id, first.id]
    assert len(pipeline.list_all_bookings()) == 3


def test_custom_messaging_host_and_country(store):
    pipeline = BookingPipeline(store, messaging_host="chat.example.com", default_country="1")
    event = seed_event("a1").model_copy(update={"host_phone": "2025550123"})
    receipt = pipeline.book(event, event.slots[0], "01 Jan 2025", "Asha", "1", "u1")
    assert receipt.messaging_url.startswith("https://chat.example.com/12025550123?text=")


def test_bookable_dates():
    assert bookable_dates(seed_event("m1")) == ["25 Dec 2024"]
    dates = bookable_dates(seed_event("a1"), today=date(2024, 12, 30))
    assert dates[0] == "30 Dec 2024"
    assert dates[-1] == "05 Jan 2025"
    assert len(dates) == 7
