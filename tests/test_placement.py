import pytest

from ontoscope.layout import Cell
from ontoscope.models import CompetencyQuestion
from ontoscope.placement import place_group, place_points, to_cell_pixels


def _cqs(count, domain="Clinical", granularity="First-level"):
    return [
        CompetencyQuestion(f"Question {i}?", domain, granularity, suggested_terms=[f"Term{i}"])
        for i in range(count)
    ]


def test_sixteen_cqs_get_distinct_slots():
    placements = place_points(_cqs(16))
    slots = {(p.grid_x, p.grid_y) for p in placements.values()}
    coords = {(p.x, p.y) for p in placements.values()}
    assert len(slots) == 16
    assert len(coords) == 16
    assert not any(p.is_fallback for p in placements.values())


def test_slots_fill_row_major():
    placements = place_group(_cqs(5), ("Clinical", "First-level"))
    assert [(p.grid_x, p.grid_y) for p in placements] == [(0, 0), (0, 1), (0, 2), (0, 3), (1, 0)]
    assert (placements[0].x, placements[0].y) == (0.125, 0.125)


def test_overflow_stays_in_unit_square():
    placements = place_group(_cqs(25), ("Clinical", "First-level"))
    assert len(placements) == 25
    overflow = placements[16:]
    assert all(p.is_fallback for p in overflow)
    for p in overflow:
        assert 0.1 <= p.x <= 0.9
        assert 0.1 <= p.y <= 0.9


def test_overflow_is_reproducible():
    cqs = _cqs(20)
    first = place_points(cqs)
    second = place_points(cqs)
    assert first == second


def test_intersections_are_placed_independently():
    cqs = _cqs(2) + _cqs(2, domain="Devices")
    placements = place_points(cqs)
    assert placements[cqs[0].id].grid_y == placements[cqs[2].id].grid_y == 0


def test_irrelevant_cqs_get_no_position():
    cqs = _cqs(3)
    cqs[1].is_relevant = False
    placements = place_points(cqs)
    assert cqs[1].id not in placements
    # The next relevant CQ takes the freed slot.
    assert placements[cqs[2].id].grid_y == 1


def test_to_cell_pixels_respects_margin():
    cell = Cell("Clinical", "First-level", 10, 20, 100, 80)
    placements = place_group(_cqs(16), cell.key)
    for p in placements:
        x, y = to_cell_pixels(p, cell)
        assert 18 <= x <= 102
        assert 28 <= y <= 92


def test_to_cell_pixels_tiny_cell():
    cell = Cell("A", "B", 0, 0, 6, 6)
    x, y = to_cell_pixels(place_group(_cqs(1), cell.key)[0], cell)
    assert x == pytest.approx(3)
    assert y == pytest.approx(3)
