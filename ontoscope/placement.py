"""
Point Placement Module.

Assigns every relevant competency question a normalized position inside its
intersection's cell for the low-zoom marker view. Positions come from a fixed
sub-grid (4x4 by default) filled in row-major order; once the sub-grid is
exhausted, overflow CQs are jittered inside [0.1, 0.9]^2 with a generator
seeded from the intersection key, so the result is reproducible.
"""
from dataclasses import dataclass
import zlib
from typing import Dict, List, Optional, Tuple

import numpy as np

from ontoscope.config import SUB_GRID_SIZE, FALLBACK_MIN, FALLBACK_MAX, POINT_CELL_MARGIN
from ontoscope.layout import Cell
from ontoscope.models import CompetencyQuestion, IntersectionKey, group_by_intersection


@dataclass(frozen=True)
class PointPlacement:
    cq_id: str
    x: float
    y: float
    grid_x: int
    grid_y: int

    @property
    def is_fallback(self) -> bool:
        return self.grid_x < 0


def _intersection_seed(key: IntersectionKey) -> int:
    return zlib.crc32("\x1f".join(key).encode("utf-8"))


def place_group(cqs: List[CompetencyQuestion], key: IntersectionKey, grid_size: int = SUB_GRID_SIZE) -> List[PointPlacement]:
    """Places the CQs of a single intersection, in the given order."""
    occupied = set()
    placements = []
    rng: Optional[np.random.Generator] = None

    for cq in cqs:
        slot = _first_free_slot(occupied, grid_size)
        if slot is not None:
            i, j = slot
            occupied.add(slot)
            placements.append(PointPlacement(cq.id, (i + 0.5) / grid_size, (j + 0.5) / grid_size, i, j))
            continue

        if rng is None:
            rng = np.random.default_rng(_intersection_seed(key))
        span = FALLBACK_MAX - FALLBACK_MIN
        x, y = rng.random(2) * span + FALLBACK_MIN
        placements.append(PointPlacement(cq.id, float(x), float(y), -1, -1))

    return placements


def _first_free_slot(occupied: set, grid_size: int) -> Optional[Tuple[int, int]]:
    for i in range(grid_size):
        for j in range(grid_size):
            if (i, j) not in occupied:
                return (i, j)
    return None


def place_points(cqs: List[CompetencyQuestion], grid_size: int = SUB_GRID_SIZE) -> Dict[str, PointPlacement]:
    """
    Returns a map of CQ id -> normalized placement for every relevant CQ.
    Irrelevant CQs get no entry.
    """
    positions: Dict[str, PointPlacement] = {}
    for key, group in group_by_intersection(cqs).items():
        for placement in place_group(group, key, grid_size):
            positions[placement.cq_id] = placement
    return positions


def to_cell_pixels(placement: PointPlacement, cell: Cell, margin: float = POINT_CELL_MARGIN) -> Tuple[float, float]:
    """Maps a normalized placement into the cell, keeping `margin` px off its edges."""
    margin_x = min(margin, cell.width / 2)
    margin_y = min(margin, cell.height / 2)
    return (
        cell.x + margin_x + placement.x * (cell.width - 2 * margin_x),
        cell.y + margin_y + placement.y * (cell.height - 2 * margin_y),
    )
