from __future__ import annotations

import pytest

from makemydays.core.stores import USERS, InMemoryDocumentStore
from makemydays.workflows.users import DEFAULT_ADMIN_EMAIL, UserDirectory, resolve_role


@pytest.mark.parametrize(
    "email, expected",
    [
        ("admin@makemydays.in", "admin"),
        ("  Admin@MakeMyDays.in ", "admin"),
        ("guest@makemydays.in", "user"),
        ("", "user"),
        (None, "user"),
    ],
)
def test_resolve_role_default_admin(monkeypatch, email, expected):
    monkeypatch.delenv("ADMIN_EMAIL", raising=False)
    assert resolve_role(email) == expected


def test_resolve_role_uses_configured_admin(monkeypatch):
    monkeypatch.setenv("ADMIN_EMAIL", "ops@example.com")
    assert resolve_role("ops@example.com") == "admin"
    assert resolve_role(DEFAULT_ADMIN_EMAIL) == "user"


def test_upsert_profile_keeps_preferences():
    store = InMemoryDocumentStore()
    directory = UserDirectory(store, admin_email=DEFAULT_ADMIN_EMAIL)
    directory.upsert_profile("u1", "Asha", "Asha@Example.com")
    directory.update_preferences("u1", sms=True)

    user = directory.upsert_profile("u1", "Asha K", "asha@example.com")

    assert user.name == "Asha K"
    assert user.email == "asha@example.com"
    assert user.preferences.sms is True
    assert user.preferences.email is True
    assert user.role == "user"


def test_stored_role_is_not_trusted():
    store = InMemoryDocumentStore()
    store.set(USERS, "u1", {"name": "Mallory", "email": "mallory@example.com", "role": "admin"})

    user = UserDirectory(store, admin_email=DEFAULT_ADMIN_EMAIL).get_user("u1")

    assert user.role == "user"
    assert not user.is_admin


def test_admin_profile():
    directory = UserDirectory(InMemoryDocumentStore(), admin_email=DEFAULT_ADMIN_EMAIL)
    assert directory.upsert_profile("a", "Admin", DEFAULT_ADMIN_EMAIL).is_admin


def test_update_preferences_for_missing_user():
    directory = UserDirectory(InMemoryDocumentStore())
    with pytest.raises(LookupError):
        directory.update_preferences("ghost", email=False)


def test_get_missing_user():
    assert UserDirectory(InMemoryDocumentStore()).get_user("ghost") is None
