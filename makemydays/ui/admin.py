"""Admin console: catalog editing and a bookings overview."""

from __future__ import annotations

import logging
from typing import Sequence

import streamlit as st

from makemydays.schemas import Booking, Category, Event, Slot
from makemydays.ui.state import current_user, format_store_error, get_services

_LOGGER = logging.getLogger(__name__)


def total_revenue(bookings: Sequence[Booking]) -> int:
    return sum(booking.price for booking in bookings)


def _parse_slots(raw: str, fallback: Sequence[Slot]) -> list[Slot]:
    slots: list[Slot] = []
    for line in raw.splitlines():
        label, _, seats = line.partition("|")
        if not label.strip():
            continue
        try:
            capacity = int(seats.strip()) if seats.strip() else 10
        except ValueError:
            capacity = 10
        slots.append(Slot(time=label.strip(), available_seats=max(capacity, 0)))
    return slots or list(fallback)


def _render_event_editor(event: Event, admin_id: str) -> None:
    services = get_services()
    with st.form(f"admin_edit_{event.id}"):
        title = st.text_input("Title", value=event.title)
        category = st.selectbox(
            "Category",
            [category.value for category in Category],
            index=list(Category).index(event.category),
        )
        description = st.text_area("Description", value=event.description)
        price = st.number_input("Price", min_value=0, value=event.price, step=50)
        slots_raw = st.text_area(
            "Slots (time | seats per line)",
            value="\n".join(f"{slot.time} | {slot.available_seats}" for slot in event.slots),
        )
        dates_raw = st.text_input("Dates (comma separated)", value=", ".join(event.dates))
        host_phone = st.text_input("Host phone", value=event.host_phone)
        submitted = st.form_submit_button("Save")
    if not submitted:
        return
    updated = event.model_copy(
        update={
            "title": title.strip() or event.title,
            "category": Category(category),
            "description": description.strip(),
            "price": int(price),
            "slots": _parse_slots(slots_raw, event.slots),
            "dates": [item.strip() for item in dates_raw.split(",") if item.strip()],
            "host_phone": host_phone.strip(),
        }
    )
    try:
        services.catalog.save_event(updated, admin_id)
    except Exception as exc:  # noqa: BLE001 - surfaced to the user
        _LOGGER.exception("Admin save failed for %s", event.id)
        st.error(format_store_error(exc, "save the event"))
    else:
        st.success(f"Saved {updated.title}.")


def render_admin_tab(container) -> None:
    """Render the admin console for admin users only."""

    services = get_services()
    with container:
        user = current_user(services)
        if user is None or not user.is_admin:
            st.info("The admin console is only available to administrators.")
            return

        bookings = services.bookings.list_all_bookings()
        overview, catalog_col = st.columns([1, 2])
        overview.metric("Bookings", len(bookings))
        overview.metric("Revenue", f"₹{total_revenue(bookings)}")

        with catalog_col:
            for event in services.catalog.list_events():
                with st.expander(f"{event.title} · {event.category.value}"):
                    _render_event_editor(event, user.id)

        st.markdown("#### Recent bookings")
        st.dataframe(
            [
                {
                    "Event": booking.event_title,
                    "Guest": booking.user_name,
                    "Date": booking.event_date,
                    "Time": booking.time,
                    "Price": booking.price,
                    "Rating": booking.rating,
                }
                for booking in bookings
            ],
            use_container_width=True,
        )


__all__ = ["render_admin_tab", "total_revenue"]
