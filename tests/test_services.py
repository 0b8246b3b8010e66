from __future__ import annotations

import pytest

from makemydays.core.llm import LLMClient
from makemydays.core.local_cache import LocalCache
from makemydays.core.stores import InMemoryDocumentStore, SupabaseDocumentStore
from makemydays.core.supabase_api import SupabaseClient
from makemydays.services import build_services


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("OPENAI_API_KEY", "SUPABASE_URL", "SUPABASE_ANON_KEY"):
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_configuration(tmp_path):
    services = build_services(cache=LocalCache(tmp_path / "cache.json"))

    assert isinstance(services.store, InMemoryDocumentStore)
    assert not services.using_supabase
    assert services.supabase is None
    assert services.recommender.degraded


def test_offline_scenario_recommends_first_three_catalog_entries(tmp_path):
    services = build_services(cache=LocalCache(tmp_path / "cache.json"))
    events = services.catalog.list_events()

    recommendation = services.recommender.recommend("I need a primal release", events)

    assert recommendation.suggested_event_ids == [event.id for event in events[:3]]
    assert services.recommender.recommend("", events) is None


def test_supabase_client_selects_remote_store(tmp_path):
    client = SupabaseClient("https://demo.supabase.co", "anon")
    services = build_services(
        llm=LLMClient(api_key="secret"),
        supabase=client,
        cache=LocalCache(tmp_path / "cache.json"),
    )

    assert isinstance(services.store, SupabaseDocumentStore)
    assert services.using_supabase
    assert not services.recommender.degraded


def test_book_and_rate_through_services(tmp_path):
    services = build_services(cache=LocalCache(tmp_path / "cache.json"))
    event = services.catalog.list_events()[3]

    receipt = services.bookings.book(event, event.slots[0], "01 Jan 2025", "Asha", "9876543210", "u1")
    summary = services.ratings.rate(receipt.booking.id, event.id, 5)

    assert summary.total_ratings == 1
    rated = [e for e in services.catalog.list_events() if e.id == event.id][0]
    assert rated.rating_summary() == 5.0
    assert services.bookings.list_bookings("u1")[0].rating == 5
