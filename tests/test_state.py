import pytest
import streamlit as st

from ontoscope.layout import Viewport, ZoomTransform
from ontoscope.models import CompetencyQuestion
from ontoscope.state import SessionStore
from ontoscope.store import CQStore
from ontoscope.views.map_view import build_callbacks


@pytest.fixture
def store(monkeypatch) -> SessionStore:
    """A SessionStore backed by a plain dict instead of a live Streamlit session."""
    monkeypatch.setattr(st, "session_state", {})
    return SessionStore()


def test_defaults(store):
    assert isinstance(store.cq_store, CQStore)
    assert store.session_id is None
    assert store.zoom == ZoomTransform()
    assert store.viewport == Viewport(1200, 800)
    assert store.selected_cell is None


def test_zoom_round_trips_through_session_state(store):
    store.zoom = ZoomTransform(scale=2.5, translate_x=12, translate_y=-4)
    assert st.session_state['zoom'] == {'scale': 2.5, 'translate_x': 12, 'translate_y': -4}
    assert store.zoom.scale == 2.5


def test_existing_state_is_kept(monkeypatch):
    monkeypatch.setattr(st, "session_state", {'session_id': 'abc'})
    assert SessionStore().session_id == 'abc'


def test_start_session_resets_view(store):
    store.zoom = ZoomTransform(scale=4)
    store.selected_cq_id = "cq1"
    store.start_session("s1")
    assert store.session_id == "s1"
    assert store.zoom.scale == 1.0
    assert store.selected_cq_id is None


def test_map_callbacks_update_selection(store):
    callbacks = build_callbacks(store)

    callbacks.on_cell_click("Clinical", "First-level", 10.0, 20.0)
    assert store.selected_cell == ("Clinical", "First-level")

    cq = CompetencyQuestion("Which patients are admitted?", "Clinical", "First-level")
    callbacks.on_label_click(cq)
    assert store.selected_cq_id == cq.id
    assert store.selected_cell is None

    callbacks.on_axis_value_click("Devices", "domain")
    assert store.selected_axis_value == ("Devices", "domain")
    assert store.selected_cq_id is None

    callbacks.on_render_complete()
    assert store.render_count == 1
