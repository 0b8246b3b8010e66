"""Centralised LLM client utilities."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, MutableMapping, Optional, Sequence

import httpx


DEFAULT_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
DEFAULT_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.7"))
DEFAULT_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "60"))
_MAX_TOKENS_ENV = os.getenv("LLM_MAX_TOKENS")
DEFAULT_MAX_TOKENS: Optional[int] = int(_MAX_TOKENS_ENV) if _MAX_TOKENS_ENV else None


_LOGGER = logging.getLogger(__name__)


def _clean_dict(payload: MutableMapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


def _env_api_key() -> Optional[str]:
    return os.getenv("OPENAI_API_KEY") or None


@dataclass
class LLMClient:
    """A small convenience wrapper for calling chat based LLM APIs."""

    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    timeout: Optional[float] = DEFAULT_TIMEOUT
    max_tokens: Optional[int] = DEFAULT_MAX_TOKENS
    api_key: Optional[str] = field(default_factory=_env_api_key)
    base_url: str = field(default_factory=lambda: os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"))

    @property
    def configured(self) -> bool:
        """Return ``True`` when a credential is available for live calls."""

        return bool(self.api_key)

    def chat(
        self,
        *,
        prompt: str,
        system: str,
        prompt_version: str,
        history: Optional[Sequence[Mapping[str, str]]] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
        max_tokens: Optional[int] = None,
        response_schema: Optional[Mapping[str, Any]] = None,
        schema_name: str = "response",
    ) -> Dict[str, Any]:
        """Call the backing LLM API and return its raw response.

        When ``response_schema`` is supplied the request uses the provider's
        strict structured-output mode so the content must match the schema.
        """

        messages: List[Dict[str, str]] = [{"role": "system", "content": system}]
        for turn in history or ():
            messages.append({"role": str(turn["role"]), "content": str(turn["content"])})
        messages.append({"role": "user", "content": prompt})

        response_format: Optional[Dict[str, Any]] = None
        if response_schema is not None:
            response_format = {
                "type": "json_schema",
                "json_schema": {
                    "name": schema_name,
                    "strict": True,
                    "schema": dict(response_schema),
                },
            }

        payload: Dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
            "temperature": temperature if temperature is not None else self.temperature,
            "max_tokens": max_tokens if max_tokens is not None else self.max_tokens,
            "user": prompt_version,
            "response_format": response_format,
        }

        payload = _clean_dict(payload)

        _LOGGER.debug(
            "Calling chat completion model %s [prompt_version=%s]",
            payload["model"],
            prompt_version,
        )

        request_timeout = timeout if timeout is not None else self.timeout
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        request_kwargs: Dict[str, Any] = {}
        if request_timeout is not None:
            request_kwargs["timeout"] = request_timeout

        response = httpx.post(
            f"{self.base_url.rstrip('/')}/chat/completions",
            json=payload,
            headers=headers,
            **request_kwargs,
        )
        response.raise_for_status()
        return response.json()

    @staticmethod
    def extract_content(response: Mapping[str, Any]) -> str:
        """Extract the assistant message content from a chat completion response."""

        choices = response.get("choices")
        if not choices:
            raise ValueError("LLM response did not contain any choices")
        message = choices[0].get("message") or {}
        content = message.get("content")
        if content is None:
            raise ValueError("LLM response did not contain content")
        return content

    def complete_json(
        self,
        *,
        prompt: str,
        system: str,
        prompt_version: str,
        response_schema: Mapping[str, Any],
        schema_name: str = "response",
        model: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Request a schema-constrained completion and decode it as JSON."""

        response = self.chat(
            prompt=prompt,
            system=system,
            prompt_version=prompt_version,
            model=model,
            response_schema=response_schema,
            schema_name=schema_name,
        )
        content = self.extract_content(response).strip()
        if not content:
            raise ValueError("LLM returned empty content")
        data = json.loads(content)
        if not isinstance(data, dict):
            raise ValueError("LLM returned JSON that is not an object")
        return data

    def complete_text(
        self,
        *,
        prompt: str,
        system: str,
        prompt_version: str,
        history: Optional[Sequence[Mapping[str, str]]] = None,
        model: Optional[str] = None,
    ) -> str:
        """Request a free-text completion."""

        response = self.chat(
            prompt=prompt,
            system=system,
            prompt_version=prompt_version,
            history=history,
            model=model,
        )
        return self.extract_content(response).strip()


__all__ = ["DEFAULT_MODEL", "LLMClient"]
