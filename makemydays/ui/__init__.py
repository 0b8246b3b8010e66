"""MakeMyDays Streamlit UI helpers."""

from __future__ import annotations

from .admin import render_admin_tab
from .concierge import render_concierge
from .dashboard import render_dashboard_tab
from .discover import render_discover_tab
from .state import format_store_error, get_services

__all__ = [
    "format_store_error",
    "get_services",
    "render_admin_tab",
    "render_concierge",
    "render_dashboard_tab",
    "render_discover_tab",
]
