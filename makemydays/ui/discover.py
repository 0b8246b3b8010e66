"""Discover tab: mood search, catalog browsing and the booking form."""

from __future__ import annotations

import logging
from typing import List, Optional

import streamlit as st

from makemydays.schemas import AIRecommendation, Category, Event
from makemydays.services import Services
from makemydays.ui.state import RECOMMENDATION_KEY, current_user_id, format_store_error, get_services
from makemydays.workflows import bookable_dates, filter_catalog

_LOGGER = logging.getLogger(__name__)

_ALL_CATEGORIES = "All"
ONBOARDING_FLAG = "onboarding_done"


def _render_onboarding(services: Services) -> None:
    if services.cache.flag(ONBOARDING_FLAG):
        return
    st.info(
        "Tell us how you feel and we'll match you with something to do tonight. "
        "Save favourites with the heart and book a slot straight from the card."
    )
    if st.button("Got it", key="discover_onboarding_done"):
        services.cache.set_flag(ONBOARDING_FLAG, True)
        st.rerun()


def _render_recommendation(recommendation: Optional[AIRecommendation]) -> None:
    if recommendation is None:
        return
    st.info(f'"{recommendation.reasoning}"')
    if st.button("Clear mood filter", key="discover_clear_mood"):
        st.session_state[RECOMMENDATION_KEY] = None
        st.rerun()


def _render_mood_search(services: Services, events: List[Event]) -> None:
    with st.form("mood_form", clear_on_submit=False):
        mood = st.text_input("How are you feeling today?", key="discover_mood")
        submitted = st.form_submit_button("Calibrate")
    if submitted:
        if not mood.strip():
            st.session_state[RECOMMENDATION_KEY] = None
            return
        with st.spinner("Reading your frequency…"):
            st.session_state[RECOMMENDATION_KEY] = services.recommender.recommend(mood, events)


def _render_booking_form(services: Services, event: Event) -> None:
    if not event.is_bookable:
        st.caption("No open slots right now.")
        return

    prefill = services.bookings.prefill_contact()
    with st.form(f"book_{event.id}", clear_on_submit=False):
        slot_label = st.radio("Slot", [slot.time for slot in event.slots], key=f"slot_{event.id}")
        event_date = st.selectbox("Date", bookable_dates(event), key=f"date_{event.id}")
        name = st.text_input("Name", value=prefill.name if prefill else "", key=f"name_{event.id}")
        phone = st.text_input("Phone", value=prefill.phone if prefill else "", key=f"phone_{event.id}")
        submitted = st.form_submit_button("Confirm session", type="primary")

    if not submitted:
        return
    booker_id = current_user_id()
    if booker_id is None:
        st.warning("Sign in from the Dashboard tab to book.")
        return
    slot = event.find_slot(str(slot_label))
    if slot is None:
        st.warning("Pick a slot first.")
        return
    try:
        receipt = services.bookings.book(event, slot, str(event_date), name, phone, booker_id)
    except Exception as exc:  # noqa: BLE001 - form stays editable for a retry
        _LOGGER.exception("Booking failed for %s", event.id)
        st.error(format_store_error(exc, "complete the booking"))
        return
    st.success("You're in! Confirm the details with your host.")
    st.link_button("Message the host", receipt.messaging_url)


def _render_event_card(services: Services, event: Event, favourites: set[str]) -> None:
    with st.container(border=True):
        if event.image:
            st.image(event.image, use_container_width=True)
        st.caption(event.category.value.upper())
        st.subheader(event.title)
        st.write(event.description)
        price_line = f"₹{event.price}"
        if event.original_price and event.original_price > event.price:
            price_line += f"  ~~₹{event.original_price}~~"
        rating = event.rating_summary()
        if rating is not None:
            price_line += f"  ·  ★ {rating:.1f} ({event.total_ratings})"
        st.markdown(price_line)

        if st.button("Why go?", key=f"pitch_{event.id}"):
            with st.spinner("Writing the pitch…"):
                st.session_state[f"_pitch_{event.id}"] = services.pitch.run(event)
        pitch = st.session_state.get(f"_pitch_{event.id}")
        if pitch:
            st.caption(pitch)

        label = "♥ Saved" if event.id in favourites else "♡ Save"
        if st.button(label, key=f"fav_{event.id}"):
            services.cache.toggle_favourite(event.id)
            st.rerun()
        with st.expander("Book this experience"):
            _render_booking_form(services, event)


def render_discover_tab(container) -> None:
    """Render the catalog with mood and category filters."""

    services = get_services()
    events = services.catalog.list_events()

    with container:
        _render_onboarding(services)
        _render_mood_search(services, events)
        recommendation = st.session_state.get(RECOMMENDATION_KEY)
        _render_recommendation(recommendation)

        choice = st.radio(
            "Category",
            [_ALL_CATEGORIES, *[category.value for category in Category]],
            horizontal=True,
            key="discover_category",
        )
        query = st.text_input("Search", key="discover_query")
        category = None if choice == _ALL_CATEGORIES else Category(choice)
        visible = filter_catalog(events, recommendation, category=category, query=query)

        if not visible:
            st.write("Nothing matches yet. Try another mood or category.")
            return

        favourites = services.cache.favourites()
        columns = st.columns(2)
        for index, event in enumerate(visible):
            with columns[index % 2]:
                _render_event_card(services, event, favourites)


__all__ = ["ONBOARDING_FLAG", "render_discover_tab"]
