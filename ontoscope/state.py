"""
State Management Module.
Implements the 'Store' pattern to unify access to Streamlit's session state.
"""
import streamlit as st
from dataclasses import dataclass
from typing import Optional, Tuple, TypedDict

from ontoscope.layout import Viewport, ZoomTransform
from ontoscope.store import CQStore

# --- TypedDict Definitions ---

class ZoomState(TypedDict):
    scale: float
    translate_x: float
    translate_y: float

class AppState(TypedDict, total=False):
    """
    Type definition for the entire application session state.
    """
    cq_store: CQStore
    session_id: Optional[str]
    zoom: ZoomState
    viewport_width: int
    viewport_height: int
    selected_cell: Optional[Tuple[str, str]]
    selected_cq_id: Optional[str]
    selected_axis_value: Optional[Tuple[str, str]]
    render_count: int
    last_selection: Optional[str]

@dataclass
class SessionStore:
    """
    Centralized store for application state.
    Wraps st.session_state to provide typed access and centralized modification logic.
    """

    def __post_init__(self):
        """Initialize default state values if they don't exist."""
        defaults: AppState = {
            'cq_store': CQStore(),
            'session_id': None,
            'zoom': {'scale': 1.0, 'translate_x': 0.0, 'translate_y': 0.0},
            'viewport_width': 1200,
            'viewport_height': 800,
            'selected_cell': None,
            'selected_cq_id': None,
            'selected_axis_value': None,
            'render_count': 0,
            'last_selection': None,
        }

        for key, value in defaults.items():
            if key not in st.session_state:
                st.session_state[key] = value

    # --- Properties for Typed Access ---

    @property
    def cq_store(self) -> CQStore:
        return st.session_state['cq_store']

    @property
    def session_id(self) -> Optional[str]:
        return st.session_state.get('session_id')

    @session_id.setter
    def session_id(self, val: Optional[str]):
        st.session_state['session_id'] = val

    @property
    def zoom(self) -> ZoomTransform:
        return ZoomTransform(**st.session_state.get('zoom', {}))

    @zoom.setter
    def zoom(self, transform: ZoomTransform):
        st.session_state['zoom'] = {
            'scale': transform.scale,
            'translate_x': transform.translate_x,
            'translate_y': transform.translate_y,
        }

    @property
    def viewport(self) -> Viewport:
        return Viewport(st.session_state.get('viewport_width', 1200), st.session_state.get('viewport_height', 800))

    @viewport.setter
    def viewport(self, val: Viewport):
        st.session_state['viewport_width'] = val.width
        st.session_state['viewport_height'] = val.height

    @property
    def selected_cell(self) -> Optional[Tuple[str, str]]:
        return st.session_state.get('selected_cell')

    @selected_cell.setter
    def selected_cell(self, val: Optional[Tuple[str, str]]):
        st.session_state['selected_cell'] = val

    @property
    def selected_cq_id(self) -> Optional[str]:
        return st.session_state.get('selected_cq_id')

    @selected_cq_id.setter
    def selected_cq_id(self, val: Optional[str]):
        st.session_state['selected_cq_id'] = val

    @property
    def selected_axis_value(self) -> Optional[Tuple[str, str]]:
        """(value, axis) of the last clicked axis label."""
        return st.session_state.get('selected_axis_value')

    @selected_axis_value.setter
    def selected_axis_value(self, val: Optional[Tuple[str, str]]):
        st.session_state['selected_axis_value'] = val

    @property
    def render_count(self) -> int:
        return st.session_state.get('render_count', 0)

    @property
    def last_selection(self) -> Optional[str]:
        """Signature of the chart selection that was last routed to a callback."""
        return st.session_state.get('last_selection')

    @last_selection.setter
    def last_selection(self, val: Optional[str]):
        st.session_state['last_selection'] = val

    # --- Actions ---

    def mark_rendered(self):
        st.session_state['render_count'] = self.render_count + 1

    def clear_selection(self):
        self.selected_cell = None
        self.selected_cq_id = None
        self.selected_axis_value = None

    def start_session(self, session_id: str):
        """Switches to a new scoping session with a fresh view."""
        self.session_id = session_id
        self.zoom = ZoomTransform()
        self.clear_selection()

    def clear_all(self):
        """Resets the entire session state."""
        st.session_state.clear()
