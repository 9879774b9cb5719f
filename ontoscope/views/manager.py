import streamlit as st
from typing import Optional

from ontoscope.config import PAN_STEP
from ontoscope.enums import Dimension
from ontoscope.errors import OntoScopeError
from ontoscope.interaction import pan, zoom_in, zoom_out, reset_zoom
from ontoscope.layout import PlotFrame, Viewport, ZoomTransform
from ontoscope.reporting import generate_json_export, generate_excel_report, export_filename
from ontoscope.state import SessionStore
from ontoscope.suggestions import SuggestionProvider
from ontoscope.views.map_view import build_render_model


class ViewManager:
    """
    Manages the sidebar controls and the session-level actions.
    Decouples UI layout from the store and the suggestion provider.
    """
    def __init__(self, store: SessionStore, provider: SuggestionProvider):
        self.store = store
        self.provider = provider

    def start_session(self, domain: str) -> Optional[str]:
        """Creates a session and seeds its axes from the provider's initial space."""
        try:
            session = self.store.cq_store.create_session(domain)
            space = self.provider.initial_space(session.domain)
            self.store.cq_store.load_initial_space(session.id, space)
        except OntoScopeError as e:
            st.error(str(e))
            return None
        self.store.start_session(session.id)
        return session.id

    def render_sidebar(self):
        with st.sidebar:
            st.title("🧭 Scoping Controls")
            with st.form(key="session_form"):
                domain = st.text_input("Domain", placeholder="e.g. Healthcare informatics")
                submitted = st.form_submit_button("🚀 Start Session")
            if submitted:
                self.start_session(domain)

            if not self.store.session_id:
                return

            st.divider()
            self._render_zoom_controls()
            st.divider()
            for dimension in Dimension:
                self._render_axis_editor(dimension)
            st.divider()
            self._render_exports()

    def _render_zoom_controls(self):
        st.markdown("### Zoom")
        cols = st.columns(3, gap="small")

        def apply(step):
            def cb(): self.store.zoom = step(self.store.zoom, PlotFrame(self.store.viewport))
            return cb

        def fit():
            # Fits the whole grid, including rows an expanded axis pushed above the plot.
            self.store.zoom = reset_zoom(build_render_model(self.store, ZoomTransform()))

        cols[0].button("➕", key="zoom_in", use_container_width=True, on_click=apply(zoom_in))
        cols[1].button("➖", key="zoom_out", use_container_width=True, on_click=apply(zoom_out))
        cols[2].button("⟲", key="zoom_reset", use_container_width=True, help="Fit grid", on_click=fit)
        st.caption(f"Scale {self.store.zoom.scale:.2f} · {self.store.zoom.render_mode.value.replace('_', ' ')}")

        def move(dx, dy):
            def cb(): self.store.zoom = pan(self.store.zoom, dx, dy)
            return cb
        # Arrows move the view; the grid moves the other way.
        pan_cols = st.columns(4, gap="small")
        pan_cols[0].button("◀", key="pan_left", use_container_width=True, on_click=move(PAN_STEP, 0))
        pan_cols[1].button("▲", key="pan_up", use_container_width=True, on_click=move(0, PAN_STEP))
        pan_cols[2].button("▼", key="pan_down", use_container_width=True, on_click=move(0, -PAN_STEP))
        pan_cols[3].button("▶", key="pan_right", use_container_width=True, on_click=move(-PAN_STEP, 0))

        width = st.number_input("Canvas width", min_value=400, max_value=2400, value=int(self.store.viewport.width), step=50)
        height = st.number_input("Canvas height", min_value=300, max_value=1800, value=int(self.store.viewport.height), step=50)
        self.store.viewport = Viewport(width, height)

    def _render_axis_editor(self, dimension: Dimension):
        cq_store = self.store.cq_store
        session_id = self.store.session_id
        title = "Domain Coverage" if dimension == Dimension.DOMAIN_COVERAGE else "Terminology Granularity"

        with st.expander(f"{title} ({dimension.axis_label})", expanded=False):
            for axis_value in cq_store.axis_values(session_id, dimension, include_irrelevant=True):
                c1, c2 = st.columns([3, 1])
                relevant = c1.checkbox(axis_value.value, value=axis_value.is_relevant, key=f"rel_{axis_value.id}")
                if relevant != axis_value.is_relevant:
                    cq_store.set_axis_value_relevance(axis_value.id, relevant)
                    st.rerun()
                if c2.button("🗑️", key=f"del_{axis_value.id}"):
                    removed = cq_store.delete_axis_value(axis_value.id)
                    self.store.clear_selection()
                    st.toast(f"Deleted '{axis_value.value}' and {removed} question(s).")
                    st.rerun()

            with st.form(key=f"add_{dimension.value}", clear_on_submit=True):
                new_value = st.text_input("New value")
                if st.form_submit_button("Add"):
                    try:
                        cq_store.add_axis_value(session_id, dimension, new_value)
                        st.rerun()
                    except OntoScopeError as e:
                        st.error(str(e))

            if st.button("✨ Suggest values", key=f"suggest_{dimension.value}"):
                try:
                    request = cq_store.axis_value_request(session_id, dimension)
                    for value in self.provider.suggest_axis_values(request):
                        cq_store.add_axis_value(session_id, dimension, value)
                    st.rerun()
                except OntoScopeError as e:
                    st.error(str(e))

    def _render_exports(self):
        st.markdown("### Export")
        cq_store = self.store.cq_store
        session = cq_store.get_session(self.store.session_id)
        st.download_button(
            "Download JSON",
            data=generate_json_export(cq_store, session.id),
            file_name=export_filename(session.domain, "json"),
            mime="application/json",
            use_container_width=True
        )
        st.download_button(
            "Download Excel Report",
            data=generate_excel_report(cq_store, session.id),
            file_name=export_filename(session.domain, "xlsx"),
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            use_container_width=True
        )
