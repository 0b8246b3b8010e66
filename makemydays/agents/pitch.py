"""Agent that writes a short marketing pitch for an event."""

from __future__ import annotations

import logging
from typing import Optional

from makemydays.core.llm import LLMClient
from makemydays.schemas import Event

_LOGGER = logging.getLogger(__name__)


class PitchAgent:
    """Produces a two-sentence summary, falling back to the event description."""

    system_prompt = "You are a copywriter for a premium experiences marketplace."
    prompt_version = "pitch.v1"

    def __init__(self, client: LLMClient, *, model: Optional[str] = None) -> None:
        self._client = client
        self.model = model

    def run(self, event: Event) -> str:
        if not self._client.configured:
            return event.description
        prompt = (
            f"Write a compelling 2-sentence marketing summary for this event: {event.title}. "
            f"Category: {event.category.value}. Description: {event.description}. "
            "Focus on why someone should attend."
        )
        try:
            pitch = self._client.complete_text(
                prompt=prompt,
                system=self.system_prompt,
                prompt_version=self.prompt_version,
                model=self.model,
            )
        except Exception as exc:  # noqa: BLE001 - description is a safe stand-in
            _LOGGER.warning("Pitch generation failed for %s: %s", event.id, exc)
            return event.description
        return pitch or event.description


__all__ = ["PitchAgent"]
