"""Dashboard tab: a user's bookings, ratings, hosted listings and preferences."""

from __future__ import annotations

import logging
import uuid

import streamlit as st

from makemydays.core.exporters import booking_to_ics, ticket_qr_url
from makemydays.core.messaging import DEFAULT_COUNTRY_CODE
from makemydays.schemas import Booking, Category, Event, Slot, User
from makemydays.services import Services
from makemydays.ui.state import (
    current_user,
    format_store_error,
    get_services,
    render_auth_controls,
    sign_out,
)

_LOGGER = logging.getLogger(__name__)


def _render_booking(services: Services, booking: Booking) -> None:
    with st.container(border=True):
        st.markdown(f"**{booking.event_title}** · {booking.category.value}")
        st.caption(f"{booking.event_date} at {booking.time} · ₹{booking.price}")
        st.image(ticket_qr_url(booking), width=120)
        st.download_button(
            "Add to calendar",
            booking_to_ics(booking, calendar_name="MakeMyDays"),
            file_name=f"makemydays-{booking.id[:8]}.ics",
            mime="text/calendar",
            key=f"ics_{booking.id}",
        )
        if booking.rating is not None:
            st.write("★" * booking.rating)
            return
        rating = st.slider("Rate this session", 1, 5, 5, key=f"rate_value_{booking.id}")
        if st.button("Submit rating", key=f"rate_{booking.id}"):
            try:
                services.ratings.rate(booking.id, booking.event_id, int(rating))
            except Exception as exc:  # noqa: BLE001 - surfaced to the user
                _LOGGER.exception("Rating failed for %s", booking.id)
                st.error(format_store_error(exc, "save your rating"))
            else:
                st.success("Thanks for rating!")
                st.rerun()


def _render_host_form(services: Services, user: User) -> None:
    st.markdown("#### Host an experience")
    with st.form("host_form", clear_on_submit=True):
        title = st.text_input("Title")
        category = st.selectbox("Category", [category.value for category in Category])
        description = st.text_area("Description")
        price = st.number_input("Price", min_value=0, step=50)
        slot_time = st.text_input("Slot time", value="10:00 AM")
        seats = st.number_input("Seats", min_value=1, value=10)
        host_phone = st.text_input("Your WhatsApp number", value=DEFAULT_COUNTRY_CODE)
        submitted = st.form_submit_button("Publish")
    if not submitted:
        return
    if not title.strip():
        st.warning("Give your experience a title.")
        return
    event = Event(
        id=f"host-{uuid.uuid4().hex[:9]}",
        title=title.strip(),
        category=Category(category),
        description=description.strip(),
        price=int(price),
        slots=[Slot(time=slot_time.strip() or "10:00 AM", available_seats=int(seats))],
        host_phone=host_phone.strip(),
    )
    try:
        services.catalog.save_event(event, user.id)
    except Exception as exc:  # noqa: BLE001 - surfaced to the user
        _LOGGER.exception("Publishing event failed")
        st.error(format_store_error(exc, "publish your experience"))
    else:
        st.success(f"{event.title} is live.")


def _render_hosted(services: Services, user: User) -> None:
    hosted = [event for event in services.catalog.list_events() if event.owner_uid == user.id]
    if not hosted:
        return
    st.markdown("#### Your listings")
    for event in hosted:
        cols = st.columns([4, 1])
        cols[0].write(f"{event.title} · ₹{event.price}")
        if cols[1].button("Delete", key=f"delete_{event.id}"):
            try:
                services.catalog.delete_event(event.id, user.id)
            except Exception as exc:  # noqa: BLE001 - surfaced to the user
                st.error(format_store_error(exc, "delete the listing"))
            else:
                st.rerun()


def _render_preferences(services: Services, user: User) -> None:
    st.markdown("#### Notifications")
    email = st.checkbox("Email reminders", value=user.preferences.email, key="pref_email")
    sms = st.checkbox("SMS reminders", value=user.preferences.sms, key="pref_sms")
    if (email, sms) != (user.preferences.email, user.preferences.sms):
        try:
            services.users.update_preferences(user.id, email=email, sms=sms)
        except Exception as exc:  # noqa: BLE001 - surfaced to the user
            st.error(format_store_error(exc, "update your preferences"))


def render_dashboard_tab(container) -> None:
    """Render the signed-in user's dashboard."""

    services = get_services()
    with container:
        user = current_user(services)
        if user is None:
            if services.supabase is not None:
                render_auth_controls(services.supabase)
            return

        st.subheader(f"Hi, {user.name}")
        if services.using_supabase and st.button("Sign out"):
            sign_out()
            st.rerun()

        bookings = services.bookings.list_bookings(user.id)
        services.reminders.send_due_reminders(bookings, user.preferences)
        if not bookings:
            st.write("No sessions booked yet.")
        for booking in bookings:
            _render_booking(services, booking)

        _render_host_form(services, user)
        _render_hosted(services, user)
        _render_preferences(services, user)


__all__ = ["render_dashboard_tab"]
