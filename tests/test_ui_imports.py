"""Sanity checks for the makemydays.ui package exports."""

from __future__ import annotations

def _is_callable(value: object) -> bool:
    return callable(value)


def test_tab_renderers_are_exposed() -> None:
    from makemydays import ui

    assert _is_callable(ui.render_discover_tab)
    assert _is_callable(ui.render_dashboard_tab)
    assert _is_callable(ui.render_admin_tab)
    assert _is_callable(ui.render_concierge)


def test_service_helpers_are_available() -> None:
    from makemydays import ui

    assert _is_callable(ui.get_services)
    assert _is_callable(ui.format_store_error)
