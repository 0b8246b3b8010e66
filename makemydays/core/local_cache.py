"""Non-authoritative device cache for prefill data, favourites and flags.

Nothing stored here is a source of truth; a missing or corrupt cache file is
treated as empty.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Set

_LOGGER = logging.getLogger(__name__)

_CONTACT_KEY = "contact"
_FAVOURITES_KEY = "favourites"
_FLAGS_KEY = "flags"


def default_cache_path() -> Path:
    configured = os.getenv("MAKEMYDAYS_CACHE_PATH")
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".makemydays" / "cache.json"


@dataclass(frozen=True)
class ContactPrefill:
    name: str
    phone: str


class LocalCache:
    """JSON file backed key/value cache."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = Path(path) if path is not None else default_cache_path()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Dict[str, Any]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            _LOGGER.warning("Unable to read local cache %s: %s", self._path, exc)
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            _LOGGER.warning("Discarding corrupt local cache at %s", self._path)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, Any]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        except OSError as exc:
            _LOGGER.warning("Unable to write local cache %s: %s", self._path, exc)

    def remember_contact(self, name: str, phone: str) -> None:
        data = self._load()
        data[_CONTACT_KEY] = {"name": name, "phone": phone}
        self._save(data)

    def contact(self) -> Optional[ContactPrefill]:
        entry = self._load().get(_CONTACT_KEY)
        if not isinstance(entry, dict):
            return None
        name = str(entry.get("name") or "").strip()
        phone = str(entry.get("phone") or "").strip()
        if not name and not phone:
            return None
        return ContactPrefill(name=name, phone=phone)

    def favourites(self) -> Set[str]:
        entries = self._load().get(_FAVOURITES_KEY) or []
        return {str(entry) for entry in entries if entry}

    def toggle_favourite(self, event_id: str) -> bool:
        """Flip the favourite flag for ``event_id`` and return the new state."""

        data = self._load()
        favourites = {str(entry) for entry in data.get(_FAVOURITES_KEY) or []}
        if event_id in favourites:
            favourites.discard(event_id)
            active = False
        else:
            favourites.add(event_id)
            active = True
        data[_FAVOURITES_KEY] = sorted(favourites)
        self._save(data)
        return active

    def flag(self, name: str, default: bool = False) -> bool:
        flags = self._load().get(_FLAGS_KEY) or {}
        return bool(flags.get(name, default)) if isinstance(flags, dict) else default

    def set_flag(self, name: str, value: bool) -> None:
        data = self._load()
        flags = data.get(_FLAGS_KEY)
        if not isinstance(flags, dict):
            flags = {}
        flags[name] = bool(value)
        data[_FLAGS_KEY] = flags
        self._save(data)


__all__ = ["ContactPrefill", "LocalCache", "default_cache_path"]
