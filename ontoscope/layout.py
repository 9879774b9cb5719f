"""
Layout Logic Module.
Handles the band grid behind the competency question map: the plot frame
inside the viewport, the band scales on both axes, the cell rectangles and the
zoom/pan transform from plot-local to screen coordinates.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from ontoscope.config import (
    MARGIN_TOP, MARGIN_RIGHT, MARGIN_BOTTOM, MARGIN_LEFT,
    MAX_PLOT_WIDTH, MAX_PLOT_HEIGHT, MIN_PLOT_EXTENT,
    BAND_PADDING, BASELINE_AXIS_COUNT, MAX_EXPANSION_FACTOR, MIN_BAND_SIZE,
    MIN_ZOOM_SCALE, MAX_ZOOM_SCALE, POINT_ZOOM_THRESHOLD, FULL_TERMS_ZOOM_THRESHOLD
)
from ontoscope.enums import RenderMode


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float


@dataclass(frozen=True)
class PlotFrame:
    """The inner plot area, centred in the viewport between the margins."""
    viewport: Viewport

    @property
    def plot_width(self) -> float:
        available = self.viewport.width - MARGIN_LEFT - MARGIN_RIGHT
        return max(MIN_PLOT_EXTENT, min(MAX_PLOT_WIDTH, available))

    @property
    def plot_height(self) -> float:
        available = self.viewport.height - MARGIN_TOP - MARGIN_BOTTOM
        return max(MIN_PLOT_EXTENT, min(MAX_PLOT_HEIGHT, available))

    @property
    def origin_x(self) -> float:
        """Screen x of the plot's local origin (before zoom/pan)."""
        center_offset = (self.viewport.width - self.plot_width - MARGIN_LEFT - MARGIN_RIGHT) / 2
        return MARGIN_LEFT + center_offset

    @property
    def origin_y(self) -> float:
        center_offset = (self.viewport.height - self.plot_height - MARGIN_TOP - MARGIN_BOTTOM) / 2
        return MARGIN_TOP + center_offset


@dataclass(frozen=True)
class ZoomTransform:
    """Affine zoom/pan applied on top of the plot frame."""
    scale: float = 1.0
    translate_x: float = 0.0
    translate_y: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, 'scale', clamp_scale(self.scale))

    @property
    def render_mode(self) -> RenderMode:
        return render_mode_for_scale(self.scale)

    def to_screen(self, frame: PlotFrame, x: float, y: float) -> Tuple[float, float]:
        return (
            frame.origin_x + self.translate_x + self.scale * x,
            frame.origin_y + self.translate_y + self.scale * y,
        )

    def to_local(self, frame: PlotFrame, screen_x: float, screen_y: float) -> Tuple[float, float]:
        return (
            (screen_x - frame.origin_x - self.translate_x) / self.scale,
            (screen_y - frame.origin_y - self.translate_y) / self.scale,
        )


def clamp_scale(scale: float) -> float:
    return max(MIN_ZOOM_SCALE, min(MAX_ZOOM_SCALE, float(scale)))


def render_mode_for_scale(scale: float) -> RenderMode:
    if scale <= POINT_ZOOM_THRESHOLD:
        return RenderMode.POINTS
    if scale > FULL_TERMS_ZOOM_THRESHOLD:
        return RenderMode.FULL_LABELS
    return RenderMode.COMPACT_LABELS


def expansion_factor(count: int, baseline: int = BASELINE_AXIS_COUNT) -> float:
    """
    Growth of the plot extent relative to the session's starting cardinality.
    Capped at MAX_EXPANSION_FACTOR so very long axes do not produce runaway plots.
    """
    if count <= 0:
        return 0.0
    baseline = baseline if baseline > 0 else 1
    return min(MAX_EXPANSION_FACTOR, count / baseline)


@dataclass
class BandScale:
    """
    Maps an ordered list of category values to contiguous bands along one axis.
    Inner and outer padding are both `padding` (a fraction of the band step) and
    bands are centred in the range. A range that runs backwards (start > stop)
    lays the first value at `start`, i.e. bottom-up for the y axis.
    """
    values: Sequence[str]
    range_start: float
    range_stop: float
    padding: float = BAND_PADDING
    _starts: Dict[str, float] = field(init=False, repr=False)

    def __post_init__(self):
        self.values = list(dict.fromkeys(self.values))
        n = len(self.values)
        lo, hi = sorted((self.range_start, self.range_stop))
        positions = [lo + self._offset(hi - lo, n) + self.step * i for i in range(n)]
        if self.range_start > self.range_stop:
            positions.reverse()
        self._starts = dict(zip(self.values, positions))

    def _offset(self, extent: float, n: int) -> float:
        return (extent - self.step * (n - self.padding)) * 0.5

    @property
    def step(self) -> float:
        extent = abs(self.range_stop - self.range_start)
        return extent / max(1.0, len(self.values) - self.padding + self.padding * 2)

    @property
    def bandwidth(self) -> float:
        return max(MIN_BAND_SIZE, self.step * (1 - self.padding))

    def __len__(self) -> int:
        return len(self.values)

    def __contains__(self, value: str) -> bool:
        return value in self._starts

    def band_start(self, value: str) -> Optional[float]:
        return self._starts.get(value)

    def band_center(self, value: str) -> Optional[float]:
        start = self._starts.get(value)
        if start is None:
            return None
        return start + self.bandwidth / 2


@dataclass(frozen=True)
class Cell:
    """Rectangle in plot-local coordinates for one (domain, granularity) pair."""
    domain: str
    granularity: str
    x: float
    y: float
    width: float
    height: float

    @property
    def key(self) -> Tuple[str, str]:
        return (self.domain, self.granularity)

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    def contains(self, x: float, y: float, padding: float = 0.0) -> bool:
        return (self.x - padding <= x <= self.x + self.width + padding and
                self.y - padding <= y <= self.y + self.height + padding)


class GridLayout:
    """
    Band grid over the current axis values.

    The plot extent on each axis is scaled by count/baseline, so adding a
    subdomain stretches the whole plot horizontally while cell size stays
    roughly constant. Granularity bands start at the bottom edge of the plot
    and extend upward (into negative y once the axis outgrows its baseline).
    """

    def __init__(
        self,
        domain_values: Sequence[str],
        granularity_values: Sequence[str],
        viewport: Viewport,
        baseline_domain: int = BASELINE_AXIS_COUNT,
        baseline_granularity: int = BASELINE_AXIS_COUNT,
    ):
        self.frame = PlotFrame(viewport)
        self.baseline_domain = baseline_domain
        self.baseline_granularity = baseline_granularity

        domain_values = list(dict.fromkeys(domain_values))
        granularity_values = list(dict.fromkeys(granularity_values))

        self.expanded_width = self.frame.plot_width * expansion_factor(len(domain_values), baseline_domain)
        self.expanded_height = self.frame.plot_height * expansion_factor(len(granularity_values), baseline_granularity)

        self.x_scale = BandScale(domain_values, 0.0, self.expanded_width)
        plot_bottom = self.frame.plot_height
        self.y_scale = BandScale(granularity_values, plot_bottom, plot_bottom - self.expanded_height)

    @property
    def domain_values(self) -> List[str]:
        return list(self.x_scale.values)

    @property
    def granularity_values(self) -> List[str]:
        return list(self.y_scale.values)

    @property
    def band_width(self) -> float:
        return self.x_scale.bandwidth

    @property
    def band_height(self) -> float:
        return self.y_scale.bandwidth

    @property
    def is_empty(self) -> bool:
        return not self.x_scale.values or not self.y_scale.values

    def cell(self, domain: str, granularity: str) -> Optional[Cell]:
        x = self.x_scale.band_start(domain)
        y = self.y_scale.band_start(granularity)
        if x is None or y is None:
            return None
        return Cell(domain, granularity, x, y, self.band_width, self.band_height)

    def cells(self) -> Iterator[Cell]:
        """Every cell, domain-major, in axis order."""
        for domain in self.x_scale.values:
            for granularity in self.y_scale.values:
                yield self.cell(domain, granularity)
