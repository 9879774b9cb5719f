"""
Interaction Module.

Hit-testing and callback routing for the render model, plus the zoom/pan
helpers. Clicks arrive either as screen coordinates (`dispatch_click`) or as
the `customdata` row of a Plotly selection (`dispatch_selection`); both end in
the same `LayoutCallbacks`.
"""
from dataclasses import dataclass, replace
import math
from typing import Any, Callable, Dict, Iterable, Optional, Sequence

from ontoscope.config import CELL_CLICK_PADDING, FIT_PADDING, ZOOM_IN_FACTOR, ZOOM_OUT_FACTOR
from ontoscope.engine import RenderModel
from ontoscope.enums import Axis
from ontoscope.layout import PlotFrame, ZoomTransform
from ontoscope.models import CompetencyQuestion


@dataclass
class LayoutCallbacks:
    on_cell_click: Optional[Callable[[str, str, float, float], Any]] = None
    on_axis_value_click: Optional[Callable[[str, str], Any]] = None
    on_point_click: Optional[Callable[[CompetencyQuestion], Any]] = None
    on_label_click: Optional[Callable[[CompetencyQuestion], Any]] = None
    on_render_complete: Optional[Callable[[], Any]] = None


@dataclass(frozen=True)
class HitResult:
    kind: str  # 'label', 'point', 'axis_value' or 'cell'
    cq_id: Optional[str] = None
    value: Optional[str] = None
    axis: Optional[Axis] = None
    domain: Optional[str] = None
    granularity: Optional[str] = None
    center_x: Optional[float] = None
    center_y: Optional[float] = None


# ==============================================================================
# --- Hit Testing ---
# ==============================================================================

def _tick_contains(tick, x: float, y: float) -> bool:
    left, top, right, bottom = tick.bounds()
    return left <= x <= right and top <= y <= bottom


def hit_test_local(model: RenderModel, x: float, y: float) -> Optional[HitResult]:
    """Topmost element under a plot-local point: labels, points, axis ticks, then cells."""
    for label in reversed(model.labels):
        left, top, right, bottom = label.bounds()
        if left <= x <= right and top <= y <= bottom:
            return HitResult('label', cq_id=label.cq_id)

    for point in reversed(model.points):
        if math.hypot(x - point.x, y - point.y) <= point.radius + 1:
            return HitResult('point', cq_id=point.cq_id)

    for tick in model.axis_ticks:
        if _tick_contains(tick, x, y):
            return HitResult('axis_value', value=tick.value, axis=tick.axis)

    for shape in model.cells:
        cell = shape.cell
        if cell.contains(x, y, CELL_CLICK_PADDING):
            return HitResult(
                'cell', domain=cell.domain, granularity=cell.granularity,
                center_x=cell.center_x, center_y=cell.center_y
            )
    return None


def hit_test(model: RenderModel, screen_x: float, screen_y: float) -> Optional[HitResult]:
    x, y = model.to_local(screen_x, screen_y)
    return hit_test_local(model, x, y)


# ==============================================================================
# --- Callback Routing ---
# ==============================================================================

def route_hit(hit: Optional[HitResult], callbacks: LayoutCallbacks, cqs: Iterable[CompetencyQuestion]) -> Optional[HitResult]:
    """Invokes the callback matching `hit`. Clicks on CQs that no longer exist are ignored."""
    if hit is None:
        return None

    if hit.kind in ('label', 'point'):
        cq = next((c for c in cqs if c.id == hit.cq_id), None)
        handler = callbacks.on_label_click if hit.kind == 'label' else callbacks.on_point_click
        if cq is not None and handler:
            handler(cq)
    elif hit.kind == 'axis_value':
        if callbacks.on_axis_value_click:
            callbacks.on_axis_value_click(hit.value, hit.axis.value)
    elif hit.kind == 'cell':
        if callbacks.on_cell_click:
            callbacks.on_cell_click(hit.domain, hit.granularity, hit.center_x, hit.center_y)
    return hit


def dispatch_click(
    model: RenderModel,
    screen_x: float,
    screen_y: float,
    callbacks: LayoutCallbacks,
    cqs: Sequence[CompetencyQuestion],
) -> Optional[HitResult]:
    return route_hit(hit_test(model, screen_x, screen_y), callbacks, cqs)


def hit_from_customdata(model: RenderModel, customdata: Sequence[Any]) -> Optional[HitResult]:
    """
    Decodes the `customdata` row attached by the Plotly figure builder:
    ["label"|"point", cq_id], ["axis_value", value, axis] or ["cell", domain, granularity].
    """
    if not customdata:
        return None
    kind = customdata[0]

    if kind in ('label', 'point') and len(customdata) >= 2:
        return HitResult(kind, cq_id=customdata[1])
    if kind == 'axis_value' and len(customdata) >= 3:
        return HitResult(kind, value=customdata[1], axis=Axis(customdata[2]))
    if kind == 'cell' and len(customdata) >= 3:
        cell = model.grid.cell(customdata[1], customdata[2])
        if cell is None:
            return None
        return HitResult(
            kind, domain=cell.domain, granularity=cell.granularity,
            center_x=cell.center_x, center_y=cell.center_y
        )
    return None


def dispatch_selection(
    model: RenderModel,
    selection: Dict[str, Any],
    callbacks: LayoutCallbacks,
    cqs: Sequence[CompetencyQuestion],
) -> Optional[HitResult]:
    """Routes the first selected point of a Streamlit/Plotly selection event."""
    points = (selection or {}).get("points") or []
    if not points:
        return None
    return route_hit(hit_from_customdata(model, points[0].get("customdata")), callbacks, cqs)


def notify_render_complete(callbacks: LayoutCallbacks) -> None:
    if callbacks.on_render_complete:
        callbacks.on_render_complete()


# ==============================================================================
# --- Zoom / Pan ---
# ==============================================================================

def zoom_by(transform: ZoomTransform, factor: float, frame: Optional[PlotFrame] = None) -> ZoomTransform:
    """
    Scales the transform by `factor`. With a frame, the plot point under the
    viewport centre stays where it is; without one, zoom is about the plot origin.
    """
    # ZoomTransform clamps the scale on construction.
    scaled = replace(transform, scale=transform.scale * factor)
    if frame is None:
        return scaled

    cx, cy = frame.viewport.width / 2, frame.viewport.height / 2
    local_x, local_y = transform.to_local(frame, cx, cy)
    return replace(
        scaled,
        translate_x=cx - frame.origin_x - scaled.scale * local_x,
        translate_y=cy - frame.origin_y - scaled.scale * local_y,
    )


def zoom_in(transform: ZoomTransform, frame: Optional[PlotFrame] = None) -> ZoomTransform:
    return zoom_by(transform, ZOOM_IN_FACTOR, frame)


def zoom_out(transform: ZoomTransform, frame: Optional[PlotFrame] = None) -> ZoomTransform:
    return zoom_by(transform, ZOOM_OUT_FACTOR, frame)


def fit_view(model: RenderModel) -> ZoomTransform:
    """
    Smallest change from the identity that puts every cell and axis tick on
    the canvas: the identity when it already does, otherwise a scale no
    larger than 1 with the grid centred in the viewport.
    """
    identity = ZoomTransform()
    bounds = model.content_bounds()
    if bounds is None:
        return identity

    left, top, right, bottom = bounds
    frame, viewport = model.frame, model.viewport
    screen_left, screen_top = identity.to_screen(frame, left, top)
    screen_right, screen_bottom = identity.to_screen(frame, right, bottom)
    if (screen_left >= FIT_PADDING and screen_top >= FIT_PADDING and
            screen_right <= viewport.width - FIT_PADDING and screen_bottom <= viewport.height - FIT_PADDING):
        return identity

    available_w = max(1.0, viewport.width - 2 * FIT_PADDING)
    available_h = max(1.0, viewport.height - 2 * FIT_PADDING)
    scale = ZoomTransform(scale=min(1.0, available_w / (right - left), available_h / (bottom - top))).scale
    return ZoomTransform(
        scale=scale,
        translate_x=viewport.width / 2 - frame.origin_x - scale * (left + right) / 2,
        translate_y=viewport.height / 2 - frame.origin_y - scale * (top + bottom) / 2,
    )


def reset_zoom(model: Optional[RenderModel] = None) -> ZoomTransform:
    """Back to the identity, or to the fitted view of `model` when given."""
    if model is None:
        return ZoomTransform()
    return fit_view(model)


def pan(transform: ZoomTransform, dx: float, dy: float) -> ZoomTransform:
    return replace(transform, translate_x=transform.translate_x + dx, translate_y=transform.translate_y + dy)
