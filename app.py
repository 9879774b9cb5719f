"""
Main Application File for the Competency Question Scoping Dashboard.
Lays competency questions out on a Domain Coverage × Terminology Granularity
grid and lets the user refine axes, questions and terminology from the map.
"""
import streamlit as st

from ontoscope.logging_config import setup_logging
from ontoscope.state import SessionStore
from ontoscope.suggestions import SampleSuggestionProvider
from ontoscope.views.manager import ViewManager
from ontoscope.views.map_view import render_map_view
from ontoscope.views.detail_view import render_detail_panel

# ==============================================================================
# --- STREAMLIT APP MAIN LOGIC ---
# ==============================================================================

def main() -> None:
    """
    Main function to configure and run the Streamlit application.
    """
    st.set_page_config(layout="wide", page_title="Competency Question Scoping")
    setup_logging()

    store = SessionStore()
    provider = SampleSuggestionProvider()
    manager = ViewManager(store, provider)

    manager.render_sidebar()

    if not store.session_id:
        st.info("To get started, enter a domain in the sidebar and click 'Start Session'.")
        return

    session = store.cq_store.get_session(store.session_id)
    st.header(f"🗺️ {session.domain}")

    map_col, detail_col = st.columns([3, 1])
    with map_col:
        render_map_view(store)
    with detail_col:
        render_detail_panel(store, provider)


if __name__ == "__main__":
    main()
