import streamlit as st
from typing import Optional

from ontoscope.engine import compute_layout, RenderModel
from ontoscope.enums import Dimension
from ontoscope.interaction import LayoutCallbacks, dispatch_selection, notify_render_complete
from ontoscope.layout import ZoomTransform
from ontoscope.plotting import create_layout_figure
from ontoscope.state import SessionStore


def build_callbacks(store: SessionStore) -> LayoutCallbacks:
    """Map clicks only change what the detail panel shows."""
    def on_cell_click(domain, granularity, cx, cy):
        store.clear_selection()
        store.selected_cell = (domain, granularity)

    def on_axis_value_click(value, axis):
        store.clear_selection()
        store.selected_axis_value = (value, axis)

    def on_cq_click(cq):
        store.clear_selection()
        store.selected_cq_id = cq.id

    return LayoutCallbacks(
        on_cell_click=on_cell_click,
        on_axis_value_click=on_axis_value_click,
        on_point_click=on_cq_click,
        on_label_click=on_cq_click,
        on_render_complete=store.mark_rendered,
    )


def build_render_model(store: SessionStore, transform: Optional[ZoomTransform] = None) -> RenderModel:
    """Lays out the active session; `transform` defaults to the stored zoom."""
    cq_store = store.cq_store
    session_id = store.session_id
    return compute_layout(
        cq_store.cqs(session_id),
        cq_store.axis_values(session_id, Dimension.DOMAIN_COVERAGE),
        cq_store.axis_values(session_id, Dimension.TERMINOLOGY_GRANULARITY),
        store.viewport,
        transform or store.zoom,
    )


def render_map_view(store: SessionStore) -> RenderModel:
    """Renders the competency question map and routes chart clicks."""
    cqs = store.cq_store.cqs(store.session_id)
    model = build_render_model(store)
    fig = create_layout_figure(model)
    callbacks = build_callbacks(store)

    event = st.plotly_chart(
        fig, key="cq_map", on_select="rerun", selection_mode="points",
        config={'displayModeBar': False}
    )
    selection = event.get("selection") if event else None
    # A selection survives reruns; route it once.
    signature = repr([p.get("customdata") for p in (selection or {}).get("points", [])]) if selection else None
    if selection and signature != store.last_selection:
        dispatch_selection(model, selection, callbacks, cqs)
    store.last_selection = signature
    notify_render_complete(callbacks)
    return model
