"""
Layout Engine Module.

`compute_layout` is the single entry point the UI shell calls whenever the CQ
list, the axis values, the viewport or the zoom transform change. It is a pure
function: the same inputs always give the same render model, and nothing is
kept between calls.

All geometry in the render model is in plot-local pixels (y grows downward);
`RenderModel.to_screen` applies the plot frame offset and the zoom transform.
"""
from dataclasses import dataclass, field
import logging
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from ontoscope.config import (
    CELL_DENSITY_STYLES, AXIS_TICK_PADDING, AXIS_TICK_FONT_SIZE, POINT_RADIUS, BASELINE_AXIS_COUNT
)
from ontoscope.enums import Axis, RenderMode
from ontoscope.labels import PlacedLabel, estimate_text_width, label_terms, pack_labels, type_color
from ontoscope.layout import Cell, GridLayout, PlotFrame, Viewport, ZoomTransform
from ontoscope.models import AxisValue, CompetencyQuestion, group_by_intersection
from ontoscope.placement import place_points, to_cell_pixels

logger = logging.getLogger(__name__)

AxisInput = Union[AxisValue, str]


@dataclass(frozen=True)
class CellShape:
    cell: Cell
    cq_count: int
    stroke: str
    hover_stroke: str
    stroke_width: float

    @property
    def element_id(self) -> str:
        return f"cell:{self.cell.domain}|{self.cell.granularity}"


@dataclass(frozen=True)
class AxisTick:
    value: str
    axis: Axis
    x: float
    y: float

    @property
    def element_id(self) -> str:
        return f"axis:{self.axis.value}:{self.value}"

    def bounds(self) -> Tuple[float, float, float, float]:
        """(left, top, right, bottom) of the tick text in plot-local pixels."""
        width = estimate_text_width(self.value, AXIS_TICK_FONT_SIZE)
        half_h = AXIS_TICK_FONT_SIZE / 2
        if self.axis == Axis.DOMAIN:
            # Centred under the band.
            return self.x - width / 2, self.y - half_h, self.x + width / 2, self.y + 2 * half_h
        # Right-aligned left of the plot.
        return self.x - width, self.y - half_h, self.x, self.y + half_h


@dataclass(frozen=True)
class PointMark:
    cq_id: str
    x: float
    y: float
    color: str
    grid_x: int
    grid_y: int
    radius: float = POINT_RADIUS

    @property
    def element_id(self) -> str:
        return f"point:{self.cq_id}"


@dataclass
class RenderModel:
    viewport: Viewport
    transform: ZoomTransform
    grid: GridLayout
    mode: RenderMode
    cells: List[CellShape] = field(default_factory=list)
    axis_ticks: List[AxisTick] = field(default_factory=list)
    points: List[PointMark] = field(default_factory=list)
    labels: List[PlacedLabel] = field(default_factory=list)
    # Font size each intersection settled on, keyed by (domain, granularity).
    label_font_sizes: Dict[Tuple[str, str], int] = field(default_factory=dict)

    @property
    def frame(self) -> PlotFrame:
        return self.grid.frame

    @property
    def is_empty(self) -> bool:
        return not self.cells

    def to_screen(self, x: float, y: float) -> Tuple[float, float]:
        return self.transform.to_screen(self.frame, x, y)

    def to_local(self, screen_x: float, screen_y: float) -> Tuple[float, float]:
        return self.transform.to_local(self.frame, screen_x, screen_y)

    def content_bounds(self) -> Optional[Tuple[float, float, float, float]]:
        """
        (left, top, right, bottom) in plot-local pixels covering every cell and
        axis tick. An expanded Y axis grows upward, so `top` can be negative.
        """
        if self.is_empty:
            return None
        boxes = [
            (s.cell.x, s.cell.y, s.cell.x + s.cell.width, s.cell.y + s.cell.height)
            for s in self.cells
        ]
        boxes.extend(tick.bounds() for tick in self.axis_ticks)
        return (
            min(b[0] for b in boxes), min(b[1] for b in boxes),
            max(b[2] for b in boxes), max(b[3] for b in boxes),
        )

    def elements(self) -> Iterator[Tuple[str, str, object]]:
        """Yields (element_id, role, element) for every drawable element."""
        for shape in self.cells:
            yield shape.element_id, "cell", shape
        for tick in self.axis_ticks:
            yield tick.element_id, "axis_value", tick
        for point in self.points:
            yield point.element_id, "point", point
        for index, label in enumerate(self.labels):
            yield f"label:{label.cq_id}:{index}", "label", label

    def find_element(self, element_id: str) -> Optional[object]:
        for candidate_id, _, element in self.elements():
            if candidate_id == element_id:
                return element
        return None


def density_style(cq_count: int) -> Tuple[str, str, float]:
    """(stroke, hover stroke, stroke width) for a cell holding `cq_count` relevant CQs."""
    for upper, stroke, hover, width in CELL_DENSITY_STYLES:
        if upper is None or cq_count <= upper:
            return stroke, hover, width
    # Unreachable while the last style has no upper bound.
    _, stroke, hover, width = CELL_DENSITY_STYLES[-1]
    return stroke, hover, width


def axis_labels(values: Sequence[AxisInput]) -> List[str]:
    """Relevant axis value strings in order; plain strings pass through."""
    labels = []
    for item in values:
        if isinstance(item, AxisValue):
            if item.is_relevant:
                labels.append(item.value)
        else:
            labels.append(str(item))
    return labels


def _axis_ticks(grid: GridLayout) -> List[AxisTick]:
    ticks = []
    below_plot = grid.frame.plot_height + AXIS_TICK_PADDING
    for value in grid.domain_values:
        ticks.append(AxisTick(value, Axis.DOMAIN, grid.x_scale.band_center(value), below_plot))
    for value in grid.granularity_values:
        ticks.append(AxisTick(value, Axis.GRANULARITY, -AXIS_TICK_PADDING, grid.y_scale.band_center(value)))
    return ticks


def _point_marks(grid: GridLayout, cqs: Sequence[CompetencyQuestion]) -> List[PointMark]:
    by_id = {cq.id: cq for cq in cqs}
    marks = []
    for cq_id, placement in place_points(list(cqs)).items():
        cq = by_id[cq_id]
        cell = grid.cell(cq.domain_coverage, cq.terminology_granularity)
        if cell is None:
            continue
        x, y = to_cell_pixels(placement, cell)
        marks.append(PointMark(cq_id, x, y, type_color(cq.type), placement.grid_x, placement.grid_y))
    return marks


def compute_layout(
    cqs: Sequence[CompetencyQuestion],
    domain_values: Sequence[AxisInput],
    granularity_values: Sequence[AxisInput],
    viewport: Viewport,
    transform: Optional[ZoomTransform] = None,
    baseline_domain: int = BASELINE_AXIS_COUNT,
    baseline_granularity: int = BASELINE_AXIS_COUNT,
) -> RenderModel:
    """
    Builds the render model for the current data and viewport.

    Cells, axis ticks and whichever content layer the zoom scale selects
    (markers at scale <= 0.5, labels above) are produced. CQs that are not
    relevant, or whose axis values are not on the grid, are left out.
    """
    transform = transform or ZoomTransform()
    grid = GridLayout(
        axis_labels(domain_values), axis_labels(granularity_values), viewport,
        baseline_domain, baseline_granularity
    )
    model = RenderModel(viewport=viewport, transform=transform, grid=grid, mode=transform.render_mode)
    if grid.is_empty:
        return model

    on_grid = [
        cq for cq in cqs
        if cq.is_relevant and cq.domain_coverage in grid.x_scale and cq.terminology_granularity in grid.y_scale
    ]
    groups = group_by_intersection(on_grid)

    for cell in grid.cells():
        count = len(groups.get(cell.key, []))
        stroke, hover, width = density_style(count)
        model.cells.append(CellShape(cell, count, stroke, hover, width))
    model.axis_ticks = _axis_ticks(grid)

    if model.mode == RenderMode.POINTS:
        model.points = _point_marks(grid, on_grid)
    else:
        for key, group in groups.items():
            terms = label_terms(group, model.mode)
            if not terms:
                continue
            result = pack_labels(terms, grid.cell(*key), model.mode)
            model.labels.extend(result.labels)
            model.label_font_sizes[key] = result.font_size

    logger.debug(
        "Layout: %d cells, %d points, %d labels (mode=%s, scale=%.2f)",
        len(model.cells), len(model.points), len(model.labels), model.mode.value, transform.scale
    )
    return model
