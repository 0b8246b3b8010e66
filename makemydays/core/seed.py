"""Canonical seed catalog shipped with the application."""

from __future__ import annotations

from typing import Dict, List, Optional

from makemydays.schemas import Category, Event, Slot

DEFAULT_HOST = "917686924919"

_SEED: tuple[Event, ...] = (
    Event(
        id="m1",
        title="Interstellar: Open Air Screening",
        category=Category.MOVIE,
        image="https://images.unsplash.com/photo-1446776811953-b23d57bd21aa?auto=format&fit=crop&q=80&w=1200",
        description=(
            "A cinematic journey through the stars under the real night sky. "
            "Spatial audio and premium seating provided."
        ),
        price=499,
        dates=["25 Dec 2024"],
        host_phone=DEFAULT_HOST,
        slots=[Slot(time="08:00 PM", available_seats=150)],
    ),
    Event(
        id="w1",
        title="Clay & Consciousness Workshop",
        category=Category.WORKSHOP,
        image="https://images.unsplash.com/photo-1565191999001-551c187427bb?auto=format&fit=crop&q=80&w=1200",
        description=(
            "A sensory pottery workshop focusing on mindfulness and tactile creation. "
            "Perfect for grounding your energy."
        ),
        price=1200,
        host_phone=DEFAULT_HOST,
        slots=[
            Slot(time="11:00 AM", available_seats=10),
            Slot(time="03:00 PM", available_seats=10),
        ],
    ),
    Event(
        id="t1",
        title="Deep Tissue Somatic Therapy",
        category=Category.THERAPY,
        image="https://images.unsplash.com/photo-1544367567-0f2fcb009e0b?auto=format&fit=crop&q=80&w=1200",
        description=(
            "Targeted physical release to unlock trapped emotional frequencies "
            "and restore muscular harmony."
        ),
        price=3500,
        host_phone=DEFAULT_HOST,
        slots=[Slot(time="02:00 PM", available_seats=1)],
    ),
    Event(
        id="a1",
        title="Neon Night Paintball",
        category=Category.ACTIVITY,
        image="https://images.unsplash.com/photo-1599940824399-b87987ceb72a?auto=format&fit=crop&q=80&w=1200",
        description=(
            "High-intensity tactical movement in a neon-glow arena. "
            "The ultimate primal release."
        ),
        price=1499,
        host_phone=DEFAULT_HOST,
        slots=[
            Slot(time="07:00 PM", available_seats=20),
            Slot(time="09:00 PM", available_seats=20),
        ],
    ),
    Event(
        id="wel1",
        title="Infinity Pool Sound Bath",
        category=Category.WELLNESS,
        image="https://images.unsplash.com/photo-1576013551627-0cc20b96c2a7?auto=format&fit=crop&q=80&w=1200",
        description=(
            "Floating meditation accompanied by Tibetan singing bowls "
            "at the edge of the city horizon."
        ),
        price=1800,
        host_phone=DEFAULT_HOST,
        slots=[Slot(time="06:00 AM", available_seats=12)],
    ),
)


def seed_events() -> List[Event]:
    """Return deep copies of the seed catalog so callers cannot mutate it."""

    return [event.model_copy(deep=True) for event in _SEED]


def seed_event(event_id: str) -> Optional[Event]:
    for event in _SEED:
        if event.id == event_id:
            return event.model_copy(deep=True)
    return None


def seed_index() -> Dict[str, Event]:
    return {event.id: event for event in seed_events()}


__all__ = ["DEFAULT_HOST", "seed_event", "seed_events", "seed_index"]
