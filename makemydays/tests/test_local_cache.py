from __future__ import annotations

from makemydays.core.local_cache import ContactPrefill, LocalCache


def test_contact_round_trip(tmp_path):
    cache = LocalCache(tmp_path / "cache.json")
    assert cache.contact() is None

    cache.remember_contact("Asha", "9876543210")

    assert LocalCache(tmp_path / "cache.json").contact() == ContactPrefill(name="Asha", phone="9876543210")


def test_corrupt_cache_is_treated_as_empty(tmp_path):
    path = tmp_path / "cache.json"
    path.write_text("{not json", encoding="utf-8")
    cache = LocalCache(path)

    assert cache.contact() is None
    assert cache.favourites() == set()
    cache.set_flag("seen_intro", True)
    assert cache.flag("seen_intro") is True


def test_toggle_favourite(tmp_path):
    cache = LocalCache(tmp_path / "nested" / "cache.json")
    assert cache.toggle_favourite("m1") is True
    assert cache.favourites() == {"m1"}
    assert cache.toggle_favourite("m1") is False
    assert cache.favourites() == set()


def test_default_path_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("MAKEMYDAYS_CACHE_PATH", str(tmp_path / "custom.json"))
    assert LocalCache().path == tmp_path / "custom.json"


def test_onboarding_flag_persists_across_sessions(tmp_path):
    from makemydays.ui.discover import ONBOARDING_FLAG

    cache = LocalCache(tmp_path / "cache.json")
    assert cache.flag(ONBOARDING_FLAG) is False

    cache.set_flag(ONBOARDING_FLAG, True)
    cache.remember_contact("Asha", "9876543210")

    reopened = LocalCache(tmp_path / "cache.json")
    assert reopened.flag(ONBOARDING_FLAG) is True
    assert reopened.contact() == ContactPrefill(name="Asha", phone="9876543210")
