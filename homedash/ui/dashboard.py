"""
dashboard.py - Streamlit UI entrypoint and orchestration

This module wires the UI components (homedash.ui.components) with the
session that owns the state (homedash.session). The main() function builds
the sidebar menu and routes to the page components.

Design notes:
 - Keep the dashboard responsible only for UI orchestration and presentation.
 - All state and persistence rules live in homedash.session and the stores.
 - One DashboardSession per browser session, kept in st.session_state.
"""

import streamlit as st

from homedash.session import DashboardSession, open_session
from homedash.ui import components

SESSION_KEY = "homedash_session"

PAGES = ["Bookmarks", "Expenses", "Charts", "Settings", "Data"]


def get_session() -> DashboardSession:
    """Return the session for this browser tab, creating (and restoring) it once."""
    if SESSION_KEY not in st.session_state:
        session, error = open_session()
        if error is not None:
            st.error(f"❌ {error} The unreadable file was set aside and an empty dashboard started.")
        st.session_state[SESSION_KEY] = session
    return st.session_state[SESSION_KEY]


def main():
    """
    Streamlit page: sidebar menu controls which view is shown.
    Pages:
      - Bookmarks: tile grid, add/delete/reorder
      - Expenses: summary cards, filters, editable table with running balance
      - Charts: monthly trend, category share, income vs expense, balance trend
      - Settings: name, wallpaper, theme, base bank balance
      - Data: JSON save/load, bookmark import, XLSX export
    """
    st.set_page_config(page_title="Home Dashboard", layout="wide")
    session = get_session()
    components.apply_wallpaper(session.snapshot)
    st.title("Home Dashboard")

    backend_name, backend_msg = session.storage_status()
    if backend_name == "google_sheets":
        st.sidebar.success(backend_msg)
    else:
        st.sidebar.warning(backend_msg)
        st.sidebar.caption(
            "For cloud persistence, set GOOGLE_SHEET_ID and "
            "GOOGLE_SERVICE_ACCOUNT_JSON in Streamlit app Secrets."
        )

    choice = st.sidebar.radio("Page", PAGES)

    if choice == "Bookmarks":
        components.display_bookmark_grid(session)
    elif choice == "Expenses":
        components.display_expense_table(session)
    elif choice == "Charts":
        components.display_charts(session.ledger, session.snapshot.theme)
    elif choice == "Settings":
        components.display_settings(session)
    elif choice == "Data":
        components.display_data_page(session)


if __name__ == "__main__":
    main()
