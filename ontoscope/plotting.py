"""
Plotting and Visualization Module.
Turns a render model into a Plotly figure. Everything is drawn in screen
pixels (the zoom transform already applied) on a y-down axis, and every
clickable trace carries `customdata` naming the element it belongs to.
"""
import plotly.graph_objects as go
from typing import List, Dict, Any

from ontoscope.config import (
    BACKGROUND_COLOR, AXIS_LINE_COLOR, AXIS_TEXT_COLOR, AXIS_TITLE_COLOR,
    AXIS_TICK_FONT_SIZE, POINT_STROKE_COLOR, MARGIN_BOTTOM, MARGIN_LEFT
)
from ontoscope.engine import RenderModel
from ontoscope.enums import Axis

# ==============================================================================
# --- Private Helper Functions for Shapes ---
# ==============================================================================

def _draw_cells(model: RenderModel) -> List[Dict[str, Any]]:
    """One rectangle per intersection, stroked by how many CQs it holds."""
    shapes = []
    for shape in model.cells:
        cell = shape.cell
        x0, y0 = model.to_screen(cell.x, cell.y)
        x1, y1 = model.to_screen(cell.x + cell.width, cell.y + cell.height)
        shapes.append(dict(
            type="rect", x0=x0, y0=y0, x1=x1, y1=y1,
            line=dict(color=shape.stroke, width=shape.stroke_width),
            fillcolor='rgba(255, 255, 255, 0)', layer='below'
        ))
    return shapes

def _draw_axis_lines(model: RenderModel) -> List[Dict[str, Any]]:
    """Bottom (domain) and left (granularity) axis lines along the grid edges."""
    grid = model.grid
    bottom = model.frame.plot_height
    top = bottom - grid.expanded_height
    left, right = model.to_screen(0, bottom)[0], model.to_screen(grid.expanded_width, bottom)[0]
    y_bottom, y_top = model.to_screen(0, bottom)[1], model.to_screen(0, top)[1]
    line = dict(color=AXIS_LINE_COLOR, width=1)
    return [
        dict(type="line", x0=left, y0=y_bottom, x1=right, y1=y_bottom, line=line, layer='below'),
        dict(type="line", x0=left, y0=y_bottom, x1=left, y1=y_top, line=line, layer='below'),
    ]

# ==============================================================================
# --- Trace Builders ---
# ==============================================================================

def create_cell_trace(model: RenderModel) -> go.Scatter:
    """
    Invisible markers at cell centres. Shapes are not selectable in Plotly, so
    these carry the cell clicks.
    """
    xs, ys, customdata, counts = [], [], [], []
    for shape in model.cells:
        x, y = model.to_screen(shape.cell.center_x, shape.cell.center_y)
        xs.append(x)
        ys.append(y)
        customdata.append(["cell", shape.cell.domain, shape.cell.granularity])
        counts.append(shape.cq_count)
    return go.Scatter(
        x=xs, y=ys, mode='markers', name='Cells',
        marker=dict(size=24, color='rgba(0, 0, 0, 0)'),
        customdata=customdata, text=counts, showlegend=False,
        hovertemplate="<b>%{customdata[1]} × %{customdata[2]}</b><br>CQs: %{text}<extra></extra>"
    )

def create_point_trace(model: RenderModel) -> go.Scatter:
    xs, ys, colors, customdata = [], [], [], []
    for point in model.points:
        x, y = model.to_screen(point.x, point.y)
        xs.append(x)
        ys.append(y)
        colors.append(point.color)
        customdata.append(["point", point.cq_id])
    size = 2 * model.points[0].radius if model.points else 10
    return go.Scatter(
        x=xs, y=ys, mode='markers', name='Questions',
        marker=dict(color=colors, size=size, line=dict(width=1, color=POINT_STROKE_COLOR)),
        customdata=customdata, showlegend=False,
        hovertemplate="CQ %{customdata[1]}<extra></extra>"
    )

def create_label_trace(model: RenderModel) -> go.Scatter:
    """Terminology labels; font grows with the zoom scale like the rest of the plot."""
    scale = model.transform.scale
    xs, ys, texts, colors, sizes, customdata = [], [], [], [], [], []
    for label in model.labels:
        x, y = model.to_screen(label.x, label.y)
        xs.append(x)
        ys.append(y)
        texts.append(label.text)
        colors.append(label.color)
        sizes.append(label.font_size * scale)
        customdata.append(["label", label.cq_id])
    return go.Scatter(
        x=xs, y=ys, mode='markers+text', name='Terminology',
        text=texts, textposition='middle center',
        textfont=dict(color=colors, size=sizes),
        marker=dict(size=[max(6.0, s) for s in sizes], color='rgba(0, 0, 0, 0)'),
        customdata=customdata, showlegend=False,
        hovertemplate="%{text}<extra></extra>"
    )

def create_axis_tick_traces(model: RenderModel) -> List[go.Scatter]:
    """Clickable axis value labels: centred under domain bands, right-aligned left of granularity bands."""
    traces = []
    for axis, position in ((Axis.DOMAIN, 'bottom center'), (Axis.GRANULARITY, 'middle left')):
        ticks = [t for t in model.axis_ticks if t.axis == axis]
        if not ticks:
            continue
        points = [model.to_screen(t.x, t.y) for t in ticks]
        traces.append(go.Scatter(
            x=[p[0] for p in points], y=[p[1] for p in points],
            mode='markers+text', name=axis.value,
            text=[t.value for t in ticks], textposition=position,
            textfont=dict(color=AXIS_TEXT_COLOR, size=AXIS_TICK_FONT_SIZE),
            marker=dict(size=AXIS_TICK_FONT_SIZE, color='rgba(0, 0, 0, 0)'),
            customdata=[["axis_value", t.value, t.axis.value] for t in ticks],
            showlegend=False,
            hovertemplate="%{text}<extra></extra>"
        ))
    return traces

# ==============================================================================
# --- Public API Functions ---
# ==============================================================================

def create_layout_figure(model: RenderModel) -> go.Figure:
    """Builds the whole competency question map for one render model."""
    viewport = model.viewport
    fig = go.Figure()
    if model.is_empty:
        fig.add_annotation(
            text="Add values to both axes to start scoping.", showarrow=False,
            x=viewport.width / 2, y=viewport.height / 2, font=dict(color=AXIS_TEXT_COLOR)
        )
    else:
        fig.add_trace(create_cell_trace(model))
        for trace in create_axis_tick_traces(model):
            fig.add_trace(trace)
        if model.points:
            fig.add_trace(create_point_trace(model))
        if model.labels:
            fig.add_trace(create_label_trace(model))

    frame = model.frame
    title_font = dict(color=AXIS_TITLE_COLOR, size=14)
    fig.add_annotation(
        text="<b>Domain Coverage</b>", showarrow=False, font=title_font,
        x=frame.origin_x + frame.plot_width / 2, y=viewport.height - MARGIN_BOTTOM / 3
    )
    fig.add_annotation(
        text="<b>Terminology Granularity</b>", showarrow=False, font=title_font, textangle=-90,
        x=MARGIN_LEFT / 4, y=frame.origin_y + frame.plot_height / 2
    )

    fig.update_layout(
        shapes=_draw_cells(model) + (_draw_axis_lines(model) if not model.is_empty else []),
        width=viewport.width, height=viewport.height,
        plot_bgcolor=BACKGROUND_COLOR, paper_bgcolor=BACKGROUND_COLOR,
        margin=dict(l=0, r=0, t=0, b=0),
        xaxis=dict(range=[0, viewport.width], visible=False, fixedrange=True),
        yaxis=dict(range=[viewport.height, 0], visible=False, fixedrange=True),
        clickmode='event+select', dragmode=False, showlegend=False
    )
    return fig
