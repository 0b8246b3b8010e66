"""Messaging app deep links used to hand a booking over to the host."""

from __future__ import annotations

import os
import re
from urllib.parse import quote

DEFAULT_COUNTRY_CODE = os.getenv("DEFAULT_COUNTRY_CODE", "91")
DEFAULT_MESSAGING_HOST = os.getenv("MESSAGING_HOST", "wa.me")

_NON_DIGITS = re.compile(r"\D")


def normalise_phone(phone: str | None, default_country: str = DEFAULT_COUNTRY_CODE) -> str:
    """Normalise a phone number for a messaging deep link.

    Non-digits and trunk zeros are stripped; a remaining national number of
    exactly ten digits gets the default country calling code.
    """

    if not phone:
        return ""
    cleaned = _NON_DIGITS.sub("", str(phone)).lstrip("0")
    if len(cleaned) == 10:
        cleaned = f"{default_country}{cleaned}"
    return cleaned


def build_messaging_url(
    phone: str | None,
    message: str,
    *,
    host: str = DEFAULT_MESSAGING_HOST,
    default_country: str = DEFAULT_COUNTRY_CODE,
) -> str:
    """Return ``https://<host>/<phone>?text=<message>``."""

    number = normalise_phone(phone, default_country)
    return f"https://{host}/{number}?text={quote(message, safe='')}"


__all__ = [
    "DEFAULT_COUNTRY_CODE",
    "DEFAULT_MESSAGING_HOST",
    "build_messaging_url",
    "normalise_phone",
]
