"""Chat panel for the AI concierge."""

from __future__ import annotations

import streamlit as st

from makemydays.agents import ConciergeAgent
from makemydays.ui.state import get_services

CONCIERGE_KEY = "_concierge"
CONCIERGE_LOG_KEY = "_concierge_log"


def _agent() -> ConciergeAgent:
    agent = st.session_state.get(CONCIERGE_KEY)
    if not isinstance(agent, ConciergeAgent):
        agent = get_services().concierge()
        st.session_state[CONCIERGE_KEY] = agent
    return agent


def render_concierge(container) -> None:
    """Render the concierge conversation."""

    log = st.session_state.setdefault(CONCIERGE_LOG_KEY, [])
    with container:
        st.caption("Ask the concierge what fits your vibe.")
        for entry in log:
            with st.chat_message(entry["role"]):
                st.write(entry["content"])
        message = st.chat_input("Message the concierge")
        if message:
            reply = _agent().reply(message)
            log.append({"role": "user", "content": message})
            log.append({"role": "assistant", "content": reply})
            st.rerun()


__all__ = ["render_concierge"]
