from __future__ import annotations

import json
from typing import Any, Dict, List

import pytest

from makemydays.core.errors import PermissionDeniedError
from makemydays.core.supabase_api import SupabaseClient, SupabaseError, SupabasePermissionError


class FakeResponse:
    def __init__(self, status_code: int, payload: Any = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = json.dumps(payload) if payload is not None else ""

    def json(self):
        if self._payload is None:
            raise ValueError("no body")
        return self._payload


class FakeHTTPSession:
    def __init__(self, response: FakeResponse) -> None:
        self.headers: Dict[str, str] = {}
        self.response = response
        self.requests: List[Dict[str, Any]] = []

    def request(self, method, url, **kwargs):
        self.requests.append({"method": method, "url": url, **kwargs})
        return self.response


def _client(response: FakeResponse) -> tuple[SupabaseClient, FakeHTTPSession]:
    session = FakeHTTPSession(response)
    return SupabaseClient("https://demo.supabase.co/", "anon", http_session=session), session


@pytest.mark.parametrize(
    "status, payload",
    [
        (401, {"message": "JWT expired"}),
        (403, {"message": "forbidden"}),
        (400, {"code": "42501", "message": "new row violates row-level security policy"}),
    ],
)
def test_permission_failures_map_to_permission_error(status, payload):
    client, _ = _client(FakeResponse(status, payload))
    with pytest.raises(SupabasePermissionError) as excinfo:
        client.select("events", access_token="token")
    assert isinstance(excinfo.value, PermissionDeniedError)


def test_other_failures_raise_plain_supabase_error():
    client, _ = _client(FakeResponse(500, {"code": "XX000", "message": "internal"}))
    with pytest.raises(SupabaseError) as excinfo:
        client.select("events", access_token="token")
    assert not isinstance(excinfo.value, PermissionDeniedError)
    assert excinfo.value.status_code == 500
    assert excinfo.value.code == "XX000"


def test_select_builds_rest_request():
    client, session = _client(FakeResponse(200, [{"id": "e1"}]))
    rows = client.select("events", access_token="token", filters={"id": "eq.e1"}, order="created_at.desc", limit=1)

    assert rows == [{"id": "e1"}]
    request = session.requests[0]
    assert request["url"] == "https://demo.supabase.co/rest/v1/events"
    assert request["params"] == {"id": "eq.e1", "order": "created_at.desc", "limit": 1}
    assert request["headers"]["Authorization"] == "Bearer token"


def test_delete_requires_filters():
    client, _ = _client(FakeResponse(204))
    with pytest.raises(SupabaseError):
        client.delete("events", access_token="token", filters={})


def test_sign_up_parses_session_and_display_name():
    payload = {
        "access_token": "a",
        "refresh_token": "r",
        "user": {"id": "u1", "email": "asha@example.com", "user_metadata": {"full_name": "Asha"}},
    }
    client, session = _client(FakeResponse(200, payload))

    result = client.sign_up_with_password("asha@example.com", "pw", name="Asha")

    assert result.user.id == "u1"
    assert result.user.display_name == "Asha"
    assert session.requests[0]["json"]["data"] == {"full_name": "Asha"}


def test_from_env_requires_both_settings(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://demo.supabase.co")
    monkeypatch.delenv("SUPABASE_ANON_KEY", raising=False)
    assert SupabaseClient.from_env() is None


def test_rpc_posts_to_function_endpoint():
    client, session = _client(FakeResponse(204))

    assert client.rpc("commit_documents", {"writes": []}, access_token="token") is None

    request = session.requests[0]
    assert request["method"] == "POST"
    assert request["url"] == "https://demo.supabase.co/rest/v1/rpc/commit_documents"
    assert request["json"] == {"writes": []}


def test_rpc_reports_sqlstate_code():
    client, _ = _client(FakeResponse(400, {"code": "40001", "message": "e1 changed during transaction"}))
    with pytest.raises(SupabaseError) as excinfo:
        client.rpc("commit_documents", {"writes": []}, access_token="token")
    assert excinfo.value.code == "40001"
