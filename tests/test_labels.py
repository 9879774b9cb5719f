import math

import pytest

from ontoscope.config import MAX_FONT_PASSES, MIN_FONT_SIZE
from ontoscope.enums import CQType, RenderMode
from ontoscope.labels import (
    LabelTerm, attempt_placement, estimate_text_width, initial_font_size,
    label_terms, max_radius, pack_labels, type_color
)
from ontoscope.layout import Cell
from ontoscope.models import CompetencyQuestion


@pytest.fixture
def square_cell() -> Cell:
    return Cell("Clinical", "First-level", 0, 0, 150, 150)


def _five_cqs_two_terms():
    return [
        CompetencyQuestion(f"Question {i}?", "Clinical", "First-level",
                           suggested_terms=[f"Term {i}a", f"Term {i}b"], type="subject")
        for i in range(5)
    ]


def _inside(label, cell: Cell) -> bool:
    left, top, right, bottom = label.bounds()
    return left >= cell.x and right <= cell.x + cell.width and top >= cell.y and bottom <= cell.y + cell.height


def test_estimate_text_width():
    assert estimate_text_width("", 10) == 0
    assert estimate_text_width("A", 10) == pytest.approx(5.5)
    assert estimate_text_width("Patient", 10) == pytest.approx(7 * 5.5 + 6 * 0.5)


def test_type_colors():
    assert type_color(CQType.SUBJECT) == '#3b82f6'
    assert type_color(CQType.PROPERTY) == '#10b981'
    assert type_color(CQType.OBJECT) == '#8b5cf6'
    assert type_color(None) == '#6b7280'


def test_initial_font_size_bounds():
    assert initial_font_size(1, RenderMode.FULL_LABELS) == 10
    assert initial_font_size(30, RenderMode.FULL_LABELS) == 5
    assert initial_font_size(1, RenderMode.COMPACT_LABELS) == 12
    assert initial_font_size(30, RenderMode.COMPACT_LABELS) == 7


def test_label_terms_full_and_compact():
    cqs = _five_cqs_two_terms()
    cqs.append(CompetencyQuestion("No terms yet?", "Clinical", "First-level"))

    full = label_terms(cqs, RenderMode.FULL_LABELS)
    assert len(full) == 10
    assert full[0] == LabelTerm("Term 0a", cqs[0].id, CQType.SUBJECT)

    compact = label_terms(cqs, RenderMode.COMPACT_LABELS)
    assert [t.text for t in compact] == [f"Term {i}a (+1)" for i in range(5)]

    single = CompetencyQuestion("Single?", "Clinical", "First-level", suggested_terms=["Patient"])
    assert label_terms([single], RenderMode.COMPACT_LABELS)[0].text == "Patient"


def test_label_terms_rejects_point_mode():
    with pytest.raises(ValueError):
        label_terms(_five_cqs_two_terms(), RenderMode.POINTS)


@pytest.mark.parametrize("mode", [RenderMode.FULL_LABELS, RenderMode.COMPACT_LABELS])
def test_every_term_gets_a_label(mode, square_cell):
    terms = label_terms(_five_cqs_two_terms(), mode)
    result = pack_labels(terms, square_cell, mode)
    assert len(result.labels) == len(terms)
    assert [label.text for label in result.labels] == [t.text for t in terms]


@pytest.mark.parametrize("mode", [RenderMode.FULL_LABELS, RenderMode.COMPACT_LABELS])
def test_few_short_terms_never_forced(mode, square_cell):
    terms = [LabelTerm(text, f"cq{i}") for i, text in enumerate(["Patient", "Drug", "Dose"])]
    result = pack_labels(terms, square_cell, mode)
    assert result.forced_count == 0
    assert result.passes == 1
    assert result.font_size == initial_font_size(3, mode)
    assert all(_inside(label, square_cell) for label in result.labels)


def test_ten_terms_in_small_cell_all_placed():
    cell = Cell("Clinical", "First-level", 0, 0, 100, 100)
    terms = label_terms(_five_cqs_two_terms(), RenderMode.FULL_LABELS)
    result = pack_labels(terms, cell, RenderMode.FULL_LABELS)

    assert len(result.labels) == 10
    for label in result.labels:
        assert math.isfinite(label.x) and math.isfinite(label.y)
        assert _inside(label, cell)


def test_font_shrinks_until_pass_budget_spent():
    cell = Cell("A", "B", 0, 0, 60, 60)
    terms = [LabelTerm("Terminology", f"cq{i}") for i in range(6)]
    result = pack_labels(terms, cell, RenderMode.FULL_LABELS)

    assert initial_font_size(6, RenderMode.FULL_LABELS) == 9
    assert result.passes == MAX_FONT_PASSES
    assert result.font_size == MIN_FONT_SIZE
    assert result.forced_count > 0
    assert len(result.labels) == 6


def test_forced_labels_stay_in_padded_cell():
    cell = Cell("A", "B", 200, 300, 60, 60)
    terms = [LabelTerm("Terminology", f"cq{i}") for i in range(6)]
    attempt = attempt_placement(terms, cell, 5, 150)
    forced = [label for label in attempt.labels if label.forced]
    assert forced
    for label in forced:
        left, top, right, bottom = label.bounds()
        assert left >= cell.x + 8 and right <= cell.x + cell.width - 8
        assert top >= cell.y + 8 and bottom <= cell.y + cell.height - 8


def test_attempt_placement_is_pure(square_cell):
    terms = label_terms(_five_cqs_two_terms(), RenderMode.FULL_LABELS)
    assert attempt_placement(terms, square_cell, 8, 150) == attempt_placement(terms, square_cell, 8, 150)


def test_empty_terms():
    result = pack_labels([], Cell("A", "B", 0, 0, 100, 100), RenderMode.FULL_LABELS)
    assert result.labels == []
    assert result.passes == 0


def test_max_radius_never_negative():
    assert max_radius(Cell("A", "B", 0, 0, 20, 20)) == 0.0
