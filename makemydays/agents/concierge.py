"""Conversational concierge that chats about the experience catalog."""

from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Sequence

from makemydays.core.llm import LLMClient
from makemydays.schemas import Event

DISRUPTED_REPLY = "My frequency is currently disrupted. Let's try recalibrating in a moment."

_LOGGER = logging.getLogger(__name__)


class ConciergeAgent:
    """Keeps a running chat grounded in the current catalog."""

    prompt_version = "concierge.v1"

    def __init__(self, client: LLMClient, events: Sequence[Event], *, model: Optional[str] = None) -> None:
        self._client = client
        self._events = list(events)
        self.model = model
        self.history: List[Mapping[str, str]] = []

    @property
    def system_prompt(self) -> str:
        catalog = "\n".join(
            f"{event.title} ({event.category.value}): {event.description}" for event in self._events
        )
        return (
            "You are the MAKEMYDAYS AI Concierge. You help users find unconventional wellness, "
            "entertainment shows, high-energy activities, mindfulness sessions and creative workshops.\n"
            "\n"
            "Available experiences:\n"
            f"{catalog}\n"
            "\n"
            "Guidelines:\n"
            "- Be high-energy, empathetic and grounded.\n"
            "- If asked about events, recommend specific ones from the list above.\n"
            "- Keep responses concise and punchy. Use emojis sparingly."
        )

    def reply(self, message: str) -> str:
        """Return the concierge's answer; failures produce a fixed apology."""

        if not message.strip():
            return ""
        if not self._client.configured:
            return DISRUPTED_REPLY
        try:
            answer = self._client.complete_text(
                prompt=message,
                system=self.system_prompt,
                prompt_version=self.prompt_version,
                history=self.history,
                model=self.model,
            )
        except Exception as exc:  # noqa: BLE001 - chat must stay responsive
            _LOGGER.warning("Concierge chat failed: %s", exc)
            return DISRUPTED_REPLY
        if not answer:
            return DISRUPTED_REPLY
        self.history.append({"role": "user", "content": message})
        self.history.append({"role": "assistant", "content": answer})
        return answer


__all__ = ["ConciergeAgent", "DISRUPTED_REPLY"]
