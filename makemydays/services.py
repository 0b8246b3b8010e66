"""Explicit construction of the clients and workflows used by the app."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from makemydays.agents import ConciergeAgent, MoodRecommender, PitchAgent
from makemydays.core.llm import LLMClient
from makemydays.core.local_cache import LocalCache
from makemydays.core.stores import DocumentStore, InMemoryDocumentStore, SupabaseDocumentStore
from makemydays.core.supabase_api import SupabaseClient, SupabaseSession
from makemydays.workflows import (
    BookingPipeline,
    CatalogStore,
    RatingAggregator,
    ReminderService,
    UserDirectory,
)

_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class Services:
    llm: LLMClient
    store: DocumentStore
    supabase: Optional[SupabaseClient]
    cache: LocalCache
    catalog: CatalogStore
    recommender: MoodRecommender
    pitch: PitchAgent
    bookings: BookingPipeline
    ratings: RatingAggregator
    users: UserDirectory
    reminders: ReminderService

    @property
    def using_supabase(self) -> bool:
        return isinstance(self.store, SupabaseDocumentStore)

    def concierge(self) -> ConciergeAgent:
        return ConciergeAgent(self.llm, self.catalog.list_events())


def build_services(
    *,
    llm: Optional[LLMClient] = None,
    supabase: Optional[SupabaseClient] = None,
    session: Optional[SupabaseSession] = None,
    store: Optional[DocumentStore] = None,
    cache: Optional[LocalCache] = None,
    include_descriptions: bool = True,
) -> Services:
    """Wire every workflow to explicitly constructed clients.

    Without Supabase configuration the in-memory store is used; without a
    model credential the recommender runs in degraded mode.
    """

    llm_client = llm or LLMClient()
    supabase_client = supabase if supabase is not None else SupabaseClient.from_env()
    if store is None:
        if supabase_client is not None:
            store = SupabaseDocumentStore(supabase_client, session)
        else:
            store = InMemoryDocumentStore()
    local_cache = cache or LocalCache()
    catalog = CatalogStore(store)

    if not llm_client.configured:
        _LOGGER.info("OPENAI_API_KEY not set; recommendations run in degraded mode")

    return Services(
        llm=llm_client,
        store=store,
        supabase=supabase_client,
        cache=local_cache,
        catalog=catalog,
        recommender=MoodRecommender(llm_client, include_descriptions=include_descriptions),
        pitch=PitchAgent(llm_client),
        bookings=BookingPipeline(store, cache=local_cache),
        ratings=RatingAggregator(store, seed=catalog.seed_lookup()),
        users=UserDirectory(store),
        reminders=ReminderService(),
    )


__all__ = ["Services", "build_services"]
