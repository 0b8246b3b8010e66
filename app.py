"""Streamlit entry point for the MakeMyDays application."""
from __future__ import annotations

import logging
from typing import Sequence

import streamlit as st
from dotenv import load_dotenv

from makemydays.ui import (
    render_admin_tab,
    render_concierge,
    render_dashboard_tab,
    render_discover_tab,
)


_TAB_ORDER: Sequence[str] = ("Discover", "Dashboard", "Concierge", "Admin")


def configure() -> None:
    """Configure global Streamlit settings, logging and environment variables."""

    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    st.set_page_config(page_title="MakeMyDays", layout="wide")


def render() -> None:
    """Render the MakeMyDays multi-tab shell."""

    st.title("MakeMyDays")
    st.caption("Curated experiences for whatever you're feeling.")

    tab_containers = st.tabs(list(_TAB_ORDER))
    tab_lookup = {label: container for label, container in zip(_TAB_ORDER, tab_containers)}

    render_discover_tab(tab_lookup["Discover"])
    render_dashboard_tab(tab_lookup["Dashboard"])
    render_concierge(tab_lookup["Concierge"])
    render_admin_tab(tab_lookup["Admin"])


if __name__ == "__main__":
    configure()
    render()
