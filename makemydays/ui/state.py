"""Session wiring shared by the Streamlit tabs."""

from __future__ import annotations

import logging
import os
from typing import Optional

import streamlit as st

from makemydays.core.db import connection_ctx, ensure_application_tables
from makemydays.core.errors import PermissionDeniedError
from makemydays.core.stores import InMemoryDocumentStore
from makemydays.core.supabase_api import SupabaseClient, SupabaseError, SupabaseSession
from makemydays.schemas import User
from makemydays.services import Services, build_services
from makemydays.workflows.booking import BookingValidationError

SERVICES_KEY = "_services"
SERVICES_TOKEN_KEY = "_services_token"
SUPABASE_SESSION_KEY = "_supabase_session"
LOCAL_STORE_KEY = "_local_store"
RECOMMENDATION_KEY = "_recommendation"
LOCAL_USER_ID = "local-user"
SCHEMA_READY_KEY = "_schema_ready"

_LOGGER = logging.getLogger(__name__)


def refresh_expired_session(
    client: Optional[SupabaseClient], session: SupabaseSession
) -> Optional[SupabaseSession]:
    """Return ``session`` if still valid, a refreshed session, or ``None``."""

    if not session.is_expired():
        return session
    if client is None:
        return None
    try:
        return client.refresh_session(session.refresh_token)
    except SupabaseError as exc:
        _LOGGER.warning("Supabase session refresh failed: %s", exc)
        return None


def current_session() -> Optional[SupabaseSession]:
    session = st.session_state.get(SUPABASE_SESSION_KEY)
    if not isinstance(session, SupabaseSession):
        return None
    refreshed = refresh_expired_session(SupabaseClient.from_env(), session)
    if refreshed is None:
        st.session_state.pop(SUPABASE_SESSION_KEY, None)
    elif refreshed is not session:
        st.session_state[SUPABASE_SESSION_KEY] = refreshed
    return refreshed


def _local_store() -> InMemoryDocumentStore:
    store = st.session_state.get(LOCAL_STORE_KEY)
    if not isinstance(store, InMemoryDocumentStore):
        store = InMemoryDocumentStore()
        st.session_state[LOCAL_STORE_KEY] = store
    return store


def _ensure_schema() -> None:
    if SCHEMA_READY_KEY in st.session_state:
        return
    if not (os.getenv("SUPABASE_DB_URL") or os.getenv("DATABASE_URL")):
        return
    try:
        with connection_ctx() as connection:
            ensure_application_tables(connection)
    except Exception as exc:  # noqa: BLE001 - surfaced to user
        st.warning(f"Unable to validate Supabase tables: {exc}")
        st.session_state[SCHEMA_READY_KEY] = False
    else:
        st.session_state[SCHEMA_READY_KEY] = True


def get_services() -> Services:
    """Return services bound to the current auth session, rebuilding on sign-in/out."""

    session = current_session()
    token = session.access_token if session else None
    services = st.session_state.get(SERVICES_KEY)
    if isinstance(services, Services) and st.session_state.get(SERVICES_TOKEN_KEY) == token:
        return services

    client = SupabaseClient.from_env()
    if client is None:
        services = build_services(store=_local_store())
    else:
        _ensure_schema()
        services = build_services(supabase=client, session=session)
    st.session_state[SERVICES_KEY] = services
    st.session_state[SERVICES_TOKEN_KEY] = token
    return services


def current_user_id() -> Optional[str]:
    session = current_session()
    if session is not None:
        return session.user.id
    if SupabaseClient.from_env() is None:
        return LOCAL_USER_ID
    return None


def current_user(services: Services) -> Optional[User]:
    session = current_session()
    if session is None:
        if services.supabase is not None:
            return None
        email = os.getenv("LOCAL_USER_EMAIL", "explorer@localhost")
        return services.users.get_user(LOCAL_USER_ID) or services.users.upsert_profile(
            LOCAL_USER_ID, "Explorer", email
        )
    return services.users.get_user(session.user.id) or services.users.upsert_profile(
        session.user.id,
        session.user.display_name or session.user.email or "Explorer",
        session.user.email or "",
    )


def format_store_error(exc: Exception, action: str) -> str:
    """Map persistence failures to a message the user can act on."""

    base_message = f"Unable to {action}."
    if isinstance(exc, BookingValidationError):
        return str(exc)
    if isinstance(exc, PermissionDeniedError):
        return f"{base_message} Sign in to continue."
    details = str(exc).strip()
    if details:
        lowered = details.lower()
        if any(token in lowered for token in ("timed out", "timeout", "connection")):
            return f"{base_message} You appear to be offline. Try again in a moment."
        return f"{base_message} {details}"
    return f"{base_message} Check your connection and try again."


def render_auth_controls(client: SupabaseClient) -> None:
    st.markdown("#### Sign in")
    with st.form("auth_form", clear_on_submit=False):
        name = st.text_input("Name (for new accounts)", key="auth_name")
        email = st.text_input("Email", key="auth_email")
        password = st.text_input("Password", type="password", key="auth_password")
        sign_in_col, register_col = st.columns(2)
        sign_in_clicked = sign_in_col.form_submit_button("Sign in", use_container_width=True)
        register_clicked = register_col.form_submit_button("Register", use_container_width=True)
        if sign_in_clicked or register_clicked:
            if not email or not password:
                st.warning("Enter both email and password.")
                return
            try:
                if register_clicked:
                    session = client.sign_up_with_password(email, password, name=name or None)
                else:
                    session = client.sign_in_with_password(email, password)
            except SupabaseError as exc:
                st.error(f"Authentication failed: {exc}")
            else:
                st.session_state[SUPABASE_SESSION_KEY] = session
                st.rerun()


def sign_out() -> None:
    st.session_state.pop(SUPABASE_SESSION_KEY, None)
    st.session_state.pop(SERVICES_KEY, None)
    st.session_state.pop(SERVICES_TOKEN_KEY, None)


__all__ = [
    "LOCAL_USER_ID",
    "RECOMMENDATION_KEY",
    "SUPABASE_SESSION_KEY",
    "current_session",
    "current_user",
    "current_user_id",
    "format_store_error",
    "get_services",
    "refresh_expired_session",
    "render_auth_controls",
    "sign_out",
]
