"""
Label Packing Module.

Packs the terminology of one intersection as readable text labels inside its
cell. A single pass walks every term along a golden-angle spiral from the cell
centre and accepts the first candidate whose estimated text box stays inside
the padded cell without touching an already placed label; a term that runs
out of attempts is forced to a small ring around the centre and clamped into
the cell. The controller repeats the pass with a smaller font until every
label lands on the primary path or the pass budget is spent.

Text boxes use a monospace-style width estimate.
"""
from dataclasses import dataclass
import logging
import math
from typing import List, Optional, Sequence

from ontoscope.config import (
    CHAR_WIDTH_FACTOR, CHAR_SPACING_FACTOR,
    LABEL_CELL_PADDING, LABEL_COLLISION_PADDING, LABEL_RADIUS_MARGIN, LABEL_SPIRAL_SPREAD,
    GOLDEN_ANGLE_DEG, ATTEMPT_ANGLE_STEP_DEG, FALLBACK_RADIUS_FACTOR, FALLBACK_RADIUS_CAP,
    MIN_FONT_SIZE, MAX_FONT_PASSES,
    FULL_MODE_FONT, COMPACT_MODE_FONT, FULL_MODE_ATTEMPTS, COMPACT_MODE_ATTEMPTS,
    CQ_TYPE_COLORS, UNSPECIFIED_TYPE_COLOR
)
from ontoscope.enums import CQType, RenderMode
from ontoscope.layout import Cell
from ontoscope.models import CompetencyQuestion

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LabelTerm:
    """One label to place: its text and the CQ it opens when clicked."""
    text: str
    cq_id: str
    cq_type: Optional[CQType] = None


@dataclass(frozen=True)
class PlacedLabel:
    x: float
    y: float
    text: str
    font_size: int
    color: str
    cq_id: str
    forced: bool = False

    @property
    def width(self) -> float:
        return estimate_text_width(self.text, self.font_size)

    @property
    def height(self) -> float:
        return float(self.font_size)

    def bounds(self):
        """(left, top, right, bottom) of the estimated text box."""
        half_w, half_h = self.width / 2, self.height / 2
        return (self.x - half_w, self.y - half_h, self.x + half_w, self.y + half_h)


@dataclass
class PackingPass:
    """Outcome of placing every term once at a fixed font size."""
    labels: List[PlacedLabel]
    font_size: int
    placed_count: int

    @property
    def all_placed(self) -> bool:
        return self.placed_count == len(self.labels)

    @property
    def forced_count(self) -> int:
        return len(self.labels) - self.placed_count


@dataclass
class PackingResult:
    labels: List[PlacedLabel]
    font_size: int
    passes: int

    @property
    def forced_count(self) -> int:
        return sum(1 for label in self.labels if label.forced)


def type_color(cq_type: Optional[CQType]) -> str:
    if cq_type is None:
        return UNSPECIFIED_TYPE_COLOR
    return CQ_TYPE_COLORS.get(cq_type.value, UNSPECIFIED_TYPE_COLOR)


def estimate_text_width(text: str, font_size: float) -> float:
    n = len(text)
    spacing = (n - 1) * font_size * CHAR_SPACING_FACTOR if n > 1 else 0.0
    return n * font_size * CHAR_WIDTH_FACTOR + spacing


def label_terms(cqs: Sequence[CompetencyQuestion], mode: RenderMode) -> List[LabelTerm]:
    """
    Flattens the terminology of an intersection's CQs into labels.

    FULL_LABELS yields one label per raw term. COMPACT_LABELS yields one label
    per CQ: its first term, suffixed with "(+N)" when the CQ has N more.
    CQs without terms contribute nothing.
    """
    if mode == RenderMode.POINTS:
        raise ValueError("Labels are not rendered in point mode.")

    terms: List[LabelTerm] = []
    for cq in cqs:
        if not cq.suggested_terms:
            continue
        if mode == RenderMode.FULL_LABELS:
            terms.extend(LabelTerm(term, cq.id, cq.type) for term in cq.suggested_terms)
        else:
            text = cq.suggested_terms[0]
            if len(cq.suggested_terms) > 1:
                text = f"{text} (+{len(cq.suggested_terms) - 1})"
            terms.append(LabelTerm(text, cq.id, cq.type))
    return terms


def initial_font_size(term_count: int, mode: RenderMode) -> int:
    """More terms start smaller; bounds differ between the full and compact views."""
    bounds = FULL_MODE_FONT if mode == RenderMode.FULL_LABELS else COMPACT_MODE_FONT
    size = bounds['base'] - term_count // bounds['divisor']
    return max(bounds['floor'], min(bounds['cap'], size))


def attempts_for(mode: RenderMode) -> int:
    return FULL_MODE_ATTEMPTS if mode == RenderMode.FULL_LABELS else COMPACT_MODE_ATTEMPTS


def max_radius(cell: Cell) -> float:
    return max(0.0, min(cell.width, cell.height) / 2 - LABEL_RADIUS_MARGIN)


def _fits_cell(cell: Cell, x: float, y: float, width: float, height: float) -> bool:
    pad = LABEL_CELL_PADDING
    return (x - width / 2 >= cell.x + pad and
            x + width / 2 <= cell.x + cell.width - pad and
            y - height / 2 >= cell.y + pad and
            y + height / 2 <= cell.y + cell.height - pad)


def _collides(x: float, y: float, width: float, height: float, placed: Sequence[PlacedLabel]) -> bool:
    pad = LABEL_COLLISION_PADDING
    left, right = x - width / 2 - pad, x + width / 2 + pad
    top, bottom = y - height / 2 - pad, y + height / 2 + pad
    for other in placed:
        o_left, o_top, o_right, o_bottom = other.bounds()
        if not (right < o_left - pad or left > o_right + pad or
                bottom < o_top - pad or top > o_bottom + pad):
            return True
    return False


def _clamp(value: float, low: float, high: float) -> float:
    # When the text is wider than the cell, low > high and the label pins to the low edge.
    return max(low, min(high, value))


def attempt_placement(terms: Sequence[LabelTerm], cell: Cell, font_size: int, max_attempts: int) -> PackingPass:
    """Places every term once at `font_size`. Pure: no state survives the call."""
    total = len(terms)
    cx, cy = cell.center_x, cell.center_y
    radius_limit = max_radius(cell)
    height = float(font_size)
    labels: List[PlacedLabel] = []
    placed_count = 0

    for index, term in enumerate(terms):
        width = estimate_text_width(term.text, font_size)
        color = type_color(term.cq_type)
        spot = None

        for attempt in range(max_attempts):
            angle = math.radians(index * GOLDEN_ANGLE_DEG + attempt * ATTEMPT_ANGLE_STEP_DEG)
            radius = math.sqrt((index + attempt + 1) / (total + 1)) * radius_limit * LABEL_SPIRAL_SPREAD
            x = cx + math.cos(angle) * radius
            y = cy + math.sin(angle) * radius
            if _fits_cell(cell, x, y, width, height) and not _collides(x, y, width, height, labels):
                spot = (x, y)
                break

        if spot is not None:
            labels.append(PlacedLabel(spot[0], spot[1], term.text, font_size, color, term.cq_id))
            placed_count += 1
            continue

        angle = math.radians(index * (360.0 / total))
        radius = min(radius_limit * FALLBACK_RADIUS_FACTOR, FALLBACK_RADIUS_CAP)
        pad = LABEL_CELL_PADDING
        x = _clamp(cx + math.cos(angle) * radius,
                   cell.x + pad + width / 2, cell.x + cell.width - pad - width / 2)
        y = _clamp(cy + math.sin(angle) * radius,
                   cell.y + pad + height / 2, cell.y + cell.height - pad - height / 2)
        labels.append(PlacedLabel(x, y, term.text, font_size, color, term.cq_id, forced=True))

    return PackingPass(labels, font_size, placed_count)


def pack_labels(terms: Sequence[LabelTerm], cell: Cell, mode: RenderMode) -> PackingResult:
    """
    Packs `terms` into `cell`, shrinking the font by one point per pass while any
    label needed the forced fallback. Every term always comes back with a position.
    """
    if not terms:
        return PackingResult([], initial_font_size(0, mode), 0)

    font_size = initial_font_size(len(terms), mode)
    budget = attempts_for(mode)
    result = None
    passes = 0

    while passes < MAX_FONT_PASSES:
        result = attempt_placement(terms, cell, font_size, budget)
        passes += 1
        if result.all_placed:
            break
        logger.debug(
            "Cell %s: %d of %d labels forced at %dpt, shrinking font.",
            cell.key, result.forced_count, len(terms), font_size
        )
        font_size = max(MIN_FONT_SIZE, font_size - 1)

    if not result.all_placed:
        logger.debug("Cell %s: %d labels kept on forced positions.", cell.key, result.forced_count)
    return PackingResult(result.labels, result.font_size, passes)
