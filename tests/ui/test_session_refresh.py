"""Tests for keeping Supabase sessions alive across token expiry."""

from __future__ import annotations

import time
from typing import List

from makemydays.core.supabase_api import SupabaseError, SupabaseSession, SupabaseUser
from makemydays.ui import state


def _session(token: str, *, expires_in: int) -> SupabaseSession:
    return SupabaseSession(
        access_token=token,
        refresh_token=f"refresh-{token}",
        token_type="bearer",
        expires_at=int(time.time()) + expires_in,
        user=SupabaseUser(id="u1", email="asha@example.com", raw={}),
    )


class DummySupabase:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.refreshed_with: List[str] = []

    def refresh_session(self, refresh_token: str) -> SupabaseSession:
        self.refreshed_with.append(refresh_token)
        if self.fail:
            raise SupabaseError("Supabase auth request failed (400): invalid refresh token")
        return _session("fresh", expires_in=3600)


def test_valid_session_is_returned_unchanged() -> None:
    client = DummySupabase()
    session = _session("live", expires_in=3600)

    assert state.refresh_expired_session(client, session) is session
    assert client.refreshed_with == []


def test_expired_session_is_refreshed() -> None:
    client = DummySupabase()

    refreshed = state.refresh_expired_session(client, _session("old", expires_in=-10))

    assert refreshed is not None
    assert refreshed.access_token == "fresh"
    assert client.refreshed_with == ["refresh-old"]


def test_failed_refresh_signs_out() -> None:
    client = DummySupabase(fail=True)
    assert state.refresh_expired_session(client, _session("old", expires_in=-10)) is None


def test_expired_session_without_client_is_dropped() -> None:
    assert state.refresh_expired_session(None, _session("old", expires_in=-10)) is None
