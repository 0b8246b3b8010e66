"""Agent that turns a free-text mood into a ranked subset of the catalog."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from makemydays.agents import (
    AgentExecutionError,
    call_llm_and_validate,
    format_prompt_data,
)
from makemydays.core.llm import LLMClient
from makemydays.schemas import AIRecommendation, Event

MAX_SUGGESTIONS = 3

OFFLINE_REASONING = (
    "✨ Our curators picked these crowd favourites to lift your day while the AI concierge rests."
)
FALLBACK_REASONING = "✨ Here are a few of our most loved experiences to reset your frequency."

RECOMMENDATION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "reasoning": {
            "type": "string",
            "description": (
                "A short, engaging explanation of why these experiences were chosen "
                "for this specific mood."
            ),
        },
        "suggestedEventIds": {
            "type": "array",
            "items": {"type": "string"},
            "description": "The list of IDs for the suggested events. Must be from the provided context.",
        },
    },
    "required": ["reasoning", "suggestedEventIds"],
    "additionalProperties": False,
}

_LOGGER = logging.getLogger(__name__)


class MoodRecommender:
    """Asks the model for one to three experiences that match or counter a mood.

    ``recommend`` never raises: a missing credential, transport error or
    unparseable answer all degrade to the first three catalog entries.
    """

    system_prompt = (
        "You are an expert mood-based experience curator. You read how a person feels "
        "and pick the experiences that best match or gently counter that state. "
        "Respond only with JSON that matches the requested schema."
    )
    prompt_version = "recommend.v1"

    def __init__(
        self,
        client: LLMClient,
        *,
        include_descriptions: bool = False,
        model: Optional[str] = None,
    ) -> None:
        self._client = client
        self.include_descriptions = include_descriptions
        self.model = model

    @property
    def degraded(self) -> bool:
        return not self._client.configured

    @staticmethod
    def fallback(events: Sequence[Event], reasoning: str = FALLBACK_REASONING) -> AIRecommendation:
        return AIRecommendation(
            reasoning=reasoning,
            suggested_event_ids=[event.id for event in events[:MAX_SUGGESTIONS]],
        )

    def _event_context(self, events: Sequence[Event]) -> List[Dict[str, str]]:
        context: List[Dict[str, str]] = []
        for event in events:
            entry = {"id": event.id, "title": event.title, "category": event.category.value}
            if self.include_descriptions:
                entry["description"] = event.description
            context.append(entry)
        return context

    def _build_prompt(self, mood: str, events: Sequence[Event]) -> str:
        return (
            f'USER CURRENT STATE: "{mood.strip()}"\n'
            "\n"
            "# Available experiences\n"
            f"{format_prompt_data(self._event_context(events))}\n"
            "\n"
            "Instructions:\n"
            "1. Analyse the psychological and physical needs implied by the mood.\n"
            f"2. Select 1 to {MAX_SUGGESTIONS} event ids from the list that best match or remedy it, "
            "most fitting first.\n"
            "3. Give a high-impact, empathetic one-sentence reasoning starting with a relevant emoji.\n"
            '4. Every entry in "suggestedEventIds" must exactly match an id from the list.'
        )

    def recommend(self, mood: str, events: Sequence[Event]) -> Optional[AIRecommendation]:
        """Return ranked suggestions for ``mood``, or ``None`` for an empty mood."""

        if not mood or not mood.strip():
            return None

        catalog = list(events)
        if self.degraded:
            _LOGGER.info("No model credential configured; serving canned recommendation")
            return self.fallback(catalog, OFFLINE_REASONING)

        try:
            recommendation = call_llm_and_validate(
                client=self._client,
                schema=AIRecommendation,
                prompt=self._build_prompt(mood, catalog),
                system_prompt=self.system_prompt,
                prompt_version=self.prompt_version,
                response_schema=RECOMMENDATION_SCHEMA,
                model=self.model,
            )
            if not recommendation.suggested_event_ids:
                raise AgentExecutionError("Model suggested no events")
        except Exception as exc:  # noqa: BLE001 - recommendation must always render
            _LOGGER.warning(
                "Recommendation failed, using fallback [prompt_version=%s]: %s",
                self.prompt_version,
                exc,
            )
            return self.fallback(catalog)

        ranked = recommendation.suggested_event_ids[:MAX_SUGGESTIONS]
        return AIRecommendation(reasoning=recommendation.reasoning, suggested_event_ids=ranked)


__all__ = [
    "FALLBACK_REASONING",
    "MAX_SUGGESTIONS",
    "MoodRecommender",
    "OFFLINE_REASONING",
    "RECOMMENDATION_SCHEMA",
]
