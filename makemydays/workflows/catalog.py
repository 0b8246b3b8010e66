"""Catalog access: remote events merged over the canonical seed list."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from pydantic import ValidationError

from makemydays.core.seed import seed_events
from makemydays.core.stores import EVENTS, DocumentStore, Fetched, Transaction
from makemydays.schemas import AIRecommendation, Category, Event

_LOGGER = logging.getLogger(__name__)

_AGGREGATE_FIELDS = ("averageRating", "totalRatings")


def merge_catalog(remote: Sequence[Event], seed: Sequence[Event]) -> List[Event]:
    """Return remote events followed by seed events the remote set does not override.

    Remote order is preserved and wins on overlapping identifiers; appended
    seed events keep their original order.
    """

    merged: List[Event] = []
    seen: set[str] = set()
    for event in list(remote) + list(seed):
        if event.id in seen:
            continue
        seen.add(event.id)
        merged.append(event)
    return merged


def filter_catalog(
    events: Sequence[Event],
    recommendation: Optional[AIRecommendation] = None,
    *,
    category: Optional[Category] = None,
    query: str = "",
) -> List[Event]:
    """Apply the category, text and AI suggestion filters.

    Suggested ids missing from ``events`` simply match nothing; an empty
    suggestion list disables the AI filter.
    """

    needle = query.strip().lower()
    suggested = set(recommendation.suggested_event_ids) if recommendation else set()
    results: List[Event] = []
    for event in events:
        if category is not None and event.category != category:
            continue
        if needle and needle not in event.title.lower() and needle not in event.description.lower():
            continue
        if suggested and event.id not in suggested:
            continue
        results.append(event)
    return results


class CatalogStore:
    """Reads and writes the ``events`` collection."""

    def __init__(self, store: DocumentStore, *, seed: Optional[Sequence[Event]] = None) -> None:
        self._store = store
        self._seed = [event.model_copy(deep=True) for event in seed] if seed is not None else seed_events()

    @property
    def seed(self) -> List[Event]:
        return [event.model_copy(deep=True) for event in self._seed]

    def seed_lookup(self) -> Dict[str, Event]:
        return {event.id: event for event in self.seed}

    def fetch_remote(self) -> Fetched[List[Event]]:
        fetched = self._store.query(EVENTS)
        events: List[Event] = []
        for document in fetched.value:
            try:
                events.append(Event.model_validate(document))
            except ValidationError as exc:
                _LOGGER.warning("Skipping malformed event document %s: %s", document.get("id"), exc)
        return Fetched(events, fetched.fault)

    def list_events(self) -> List[Event]:
        """Return the merged catalog; never raises for read faults."""

        remote = self.fetch_remote()
        if not remote.ok:
            _LOGGER.info("Remote catalog unavailable; serving seed catalog")
            return self.seed
        if not remote.value:
            return self.seed
        return merge_catalog(remote.value, self.seed)

    def save_event(self, event: Event, owner_id: str) -> Event:
        """Upsert ``event``, stamping owner and creation time when absent.

        Rating aggregates already stored for the event are kept, since only
        rating aggregation may change them.

        Raises:
            PermissionDeniedError: If the store rejects the write.
        """

        def _write(transaction: Transaction) -> Event:
            current = transaction.get(EVENTS, event.id) or {}
            document = event.to_document()
            for field in _AGGREGATE_FIELDS:
                if field in current:
                    document[field] = current[field]
            document["ownerUid"] = event.owner_uid or current.get("ownerUid") or owner_id
            document["createdAt"] = (
                document.get("createdAt")
                or current.get("createdAt")
                or datetime.now(timezone.utc).isoformat()
            )
            transaction.set(EVENTS, event.id, document)
            return Event.model_validate(document)

        saved = self._store.run_transaction(_write)
        _LOGGER.info("Saved event %s for owner %s", saved.id, saved.owner_uid)
        return saved

    def delete_event(self, event_id: str, owner_id: str) -> None:
        """Delete the event if ``owner_id`` owns it; otherwise do nothing."""

        document = self._store.get(EVENTS, event_id)
        if document is None or document.get("ownerUid") != owner_id:
            _LOGGER.debug("Ignoring delete of %s requested by %s", event_id, owner_id)
            return
        self._store.delete(EVENTS, event_id)
        _LOGGER.info("Deleted event %s", event_id)


__all__ = ["CatalogStore", "filter_catalog", "merge_catalog"]
