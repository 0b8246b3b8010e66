"""User profiles, admin role resolution and notification preferences."""

from __future__ import annotations

import logging
import os
from typing import Literal, Optional

from pydantic import ValidationError

from makemydays.core.stores import USERS, DocumentStore, Transaction
from makemydays.schemas import NotificationPreferences, User

DEFAULT_ADMIN_EMAIL = "admin@makemydays.in"

_LOGGER = logging.getLogger(__name__)


def configured_admin_email() -> str:
    return os.getenv("ADMIN_EMAIL", DEFAULT_ADMIN_EMAIL).strip().lower()


def resolve_role(email: Optional[str], *, admin_email: Optional[str] = None) -> Literal["user", "admin"]:
    """Return ``admin`` only for the configured admin address."""

    target = (admin_email or configured_admin_email()).strip().lower()
    if email and email.strip().lower() == target:
        return "admin"
    return "user"


class UserDirectory:
    """Reads and writes the ``users`` collection."""

    def __init__(self, store: DocumentStore, *, admin_email: Optional[str] = None) -> None:
        self._store = store
        self._admin_email = admin_email

    def _hydrate(self, document: dict) -> User:
        user = User.model_validate(document)
        role = resolve_role(user.email, admin_email=self._admin_email)
        return user.model_copy(update={"role": role})

    def get_user(self, user_id: str) -> Optional[User]:
        document = self._store.get(USERS, user_id)
        if document is None:
            return None
        try:
            return self._hydrate(document)
        except ValidationError as exc:
            _LOGGER.warning("Stored profile for %s is malformed: %s", user_id, exc)
            return None

    def upsert_profile(self, user_id: str, name: str, email: str) -> User:
        """Create or refresh a profile, keeping stored preferences."""

        role = resolve_role(email, admin_email=self._admin_email)
        document = self._store.set(
            USERS,
            user_id,
            {"name": name.strip() or email, "email": email.strip().lower(), "role": role},
            merge=True,
        )
        return self._hydrate(document)

    def update_preferences(
        self,
        user_id: str,
        *,
        email: Optional[bool] = None,
        sms: Optional[bool] = None,
    ) -> NotificationPreferences:
        def _apply(transaction: Transaction) -> NotificationPreferences:
            document = transaction.get(USERS, user_id)
            if document is None:
                raise LookupError(f"User {user_id} not found")
            current = NotificationPreferences.model_validate(document.get("preferences") or {})
            updated = current.model_copy(
                update={
                    "email": current.email if email is None else email,
                    "sms": current.sms if sms is None else sms,
                }
            )
            transaction.update(USERS, user_id, {"preferences": updated.model_dump()})
            return updated

        return self._store.run_transaction(_apply)


__all__ = [
    "DEFAULT_ADMIN_EMAIL",
    "UserDirectory",
    "configured_admin_email",
    "resolve_role",
]
