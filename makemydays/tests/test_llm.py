from __future__ import annotations

import json

import httpx
import pytest

from makemydays.core import llm


class _Response:
    def __init__(self, payload):
        self._payload = payload

    def raise_for_status(self) -> None:
        return None

    def json(self):
        return self._payload


def _completion(content: str) -> dict:
    return {"choices": [{"message": {"content": content}}]}


def test_client_without_key_is_not_configured(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    client = llm.LLMClient()
    assert client.configured is False


def test_complete_json_requests_strict_schema(monkeypatch):
    calls: list[dict] = []

    def fake_post(url, *, json, headers, **kwargs):
        calls.append({"url": url, "json": json, "headers": headers, **kwargs})
        return _Response(_completion('{"reasoning": "ok", "suggestedEventIds": ["m1"]}'))

    monkeypatch.setattr(llm.httpx, "post", fake_post)
    client = llm.LLMClient(api_key="secret", base_url="https://llm.test/v1/", model="test-model")
    schema = {"type": "object", "properties": {}, "required": []}

    result = client.complete_json(
        prompt="Pick events",
        system="You curate",
        prompt_version="recommend.v1",
        response_schema=schema,
        schema_name="AIRecommendation",
    )

    assert result == {"reasoning": "ok", "suggestedEventIds": ["m1"]}
    call = calls[0]
    assert call["url"] == "https://llm.test/v1/chat/completions"
    assert call["headers"]["Authorization"] == "Bearer secret"
    response_format = call["json"]["response_format"]
    assert response_format["type"] == "json_schema"
    assert response_format["json_schema"]["strict"] is True
    assert response_format["json_schema"]["name"] == "AIRecommendation"
    assert response_format["json_schema"]["schema"] == schema
    assert call["json"]["user"] == "recommend.v1"
    assert call["json"]["messages"][0] == {"role": "system", "content": "You curate"}


def test_complete_json_rejects_empty_content(monkeypatch):
    monkeypatch.setattr(llm.httpx, "post", lambda *args, **kwargs: _Response(_completion("   ")))
    client = llm.LLMClient(api_key="secret")
    with pytest.raises(ValueError):
        client.complete_json(prompt="p", system="s", prompt_version="v1", response_schema={})


def test_complete_json_rejects_non_object(monkeypatch):
    monkeypatch.setattr(llm.httpx, "post", lambda *args, **kwargs: _Response(_completion(json.dumps(["m1"]))))
    client = llm.LLMClient(api_key="secret")
    with pytest.raises(ValueError):
        client.complete_json(prompt="p", system="s", prompt_version="v1", response_schema={})


def test_complete_text_includes_history(monkeypatch):
    captured: dict = {}

    def fake_post(url, *, json, headers, **kwargs):
        captured.update(json)
        return _Response(_completion(" Try the sound bath. "))

    monkeypatch.setattr(llm.httpx, "post", fake_post)
    client = llm.LLMClient(api_key="secret")
    answer = client.complete_text(
        prompt="And tonight?",
        system="Concierge",
        prompt_version="concierge.v1",
        history=[{"role": "user", "content": "Hi"}, {"role": "assistant", "content": "Hello!"}],
    )

    assert answer == "Try the sound bath."
    assert [message["role"] for message in captured["messages"]] == ["system", "user", "assistant", "user"]
    assert "response_format" not in captured


def test_extract_content_requires_choices():
    with pytest.raises(ValueError):
        llm.LLMClient.extract_content({"choices": []})


def test_transport_errors_propagate(monkeypatch):
    def fake_post(*args, **kwargs):
        raise httpx.ConnectError("offline")

    monkeypatch.setattr(llm.httpx, "post", fake_post)
    client = llm.LLMClient(api_key="secret")
    with pytest.raises(httpx.HTTPError):
        client.complete_text(prompt="p", system="s", prompt_version="v1")
