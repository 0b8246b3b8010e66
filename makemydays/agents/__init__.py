"""Shared utilities for MakeMyDays' LLM-backed agents."""

from __future__ import annotations

import json
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from makemydays.core.llm import DEFAULT_MODEL, LLMClient

T = TypeVar("T", bound=BaseModel)


DEFAULT_AGENT_MODEL = DEFAULT_MODEL


class AgentExecutionError(RuntimeError):
    """Raised when an agent cannot return a valid payload."""


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, set):
        return sorted(value)
    return value


def format_prompt_data(data: Any) -> str:
    """Render arbitrary python data for inclusion in an LLM prompt."""

    return json.dumps(data, indent=2, default=_json_default, ensure_ascii=False)


def call_llm_and_validate(
    *,
    client: LLMClient,
    schema: Type[T],
    prompt: str,
    system_prompt: str,
    prompt_version: str,
    response_schema: Mapping[str, Any],
    model: Optional[str] = None,
) -> T:
    """Request a schema-constrained completion and validate the JSON payload."""

    data = client.complete_json(
        prompt=prompt,
        system=system_prompt,
        prompt_version=prompt_version,
        response_schema=response_schema,
        schema_name=schema.__name__,
        model=model,
    )
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        raise AgentExecutionError(
            f"LLM response could not be validated as {schema.__name__}: {exc}"
        ) from exc


from .concierge import ConciergeAgent
from .pitch import PitchAgent
from .recommender import MoodRecommender

__all__ = [
    "AgentExecutionError",
    "ConciergeAgent",
    "DEFAULT_AGENT_MODEL",
    "MoodRecommender",
    "PitchAgent",
    "call_llm_and_validate",
    "format_prompt_data",
]
