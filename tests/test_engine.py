import math

import pytest

from ontoscope.engine import compute_layout, density_style, axis_labels
from ontoscope.enums import Axis, Dimension, RenderMode
from ontoscope.layout import Viewport, ZoomTransform
from ontoscope.models import AxisValue, CompetencyQuestion

DOMAINS = ["Clinical", "Devices", "Records"]
LEVELS = ["First-level", "Second-level", "Third-level"]


def _five_cqs_two_terms():
    return [
        CompetencyQuestion(f"Question {i}?", "Clinical", "First-level",
                           suggested_terms=[f"Term {i}a", f"Term {i}b"])
        for i in range(5)
    ]


def test_low_zoom_renders_one_point(patient_cq, viewport):
    model = compute_layout([patient_cq], DOMAINS, LEVELS, viewport, ZoomTransform(scale=0.3))
    cell = model.grid.cell("Clinical", "First-level")

    assert model.mode == RenderMode.POINTS
    assert model.labels == []
    assert len(model.points) == 1
    point = model.points[0]
    assert point.cq_id == patient_cq.id
    assert cell.contains(point.x, point.y)


def test_high_zoom_renders_one_label(patient_cq, viewport):
    model = compute_layout([patient_cq], DOMAINS, LEVELS, viewport, ZoomTransform(scale=2.0))
    cell = model.grid.cell("Clinical", "First-level")

    assert model.mode == RenderMode.FULL_LABELS
    assert model.points == []
    assert len(model.labels) == 1
    label = model.labels[0]
    assert label.text == "Patient"
    assert not label.forced
    left, top, right, bottom = label.bounds()
    assert cell.x < left < right < cell.x + cell.width
    assert cell.y < top < bottom < cell.y + cell.height
    assert model.label_font_sizes[cell.key] == 10


def test_crowded_cell_labels_are_finite_and_on_canvas():
    # A 330x260 viewport leaves a 100x100 plot holding a single cell.
    viewport = Viewport(330, 260)
    model = compute_layout(_five_cqs_two_terms(), ["Clinical"], ["First-level"], viewport,
                           ZoomTransform(scale=2.0), baseline_domain=1, baseline_granularity=1)
    cell = model.grid.cell("Clinical", "First-level")
    assert model.frame.plot_width == 100 and model.frame.plot_height == 100

    assert len(model.labels) == 10
    for label in model.labels:
        assert math.isfinite(label.x) and math.isfinite(label.y)
        left, top, right, bottom = label.bounds()
        assert cell.x <= left and right <= cell.x + cell.width
        assert cell.y <= top and bottom <= cell.y + cell.height
        assert 0 <= left and right <= model.frame.plot_width
        sx, sy = model.to_screen(label.x, label.y)
        assert sx >= 0 and sy >= 0


def test_layout_is_idempotent(viewport):
    cqs = _five_cqs_two_terms() + [
        CompetencyQuestion(f"Overflow {i}?", "Devices", "Second-level", suggested_terms=["Sensor"])
        for i in range(20)
    ]
    for scale in (0.5, 1.0, 3.0):
        transform = ZoomTransform(scale=scale)
        first = compute_layout(cqs, DOMAINS, LEVELS, viewport, transform)
        second = compute_layout(cqs, DOMAINS, LEVELS, viewport, transform)
        assert first.cells == second.cells
        assert first.points == second.points
        assert first.labels == second.labels
        assert first.label_font_sizes == second.label_font_sizes


def test_zoom_never_moves_points(viewport):
    cqs = _five_cqs_two_terms()
    a = compute_layout(cqs, DOMAINS, LEVELS, viewport, ZoomTransform(scale=0.5))
    b = compute_layout(cqs, DOMAINS, LEVELS, viewport, ZoomTransform(scale=0.5, translate_x=40, translate_y=-25))
    assert a.points == b.points


def test_irrelevant_and_off_grid_cqs_skipped(patient_cq, viewport):
    hidden = CompetencyQuestion("Hidden?", "Clinical", "First-level", suggested_terms=["Ghost"], is_relevant=False)
    orphan = CompetencyQuestion("Orphan?", "Billing", "First-level", suggested_terms=["Invoice"])
    model = compute_layout([patient_cq, hidden, orphan], DOMAINS, LEVELS, viewport, ZoomTransform(scale=0.3))
    assert [p.cq_id for p in model.points] == [patient_cq.id]


def test_irrelevant_axis_values_leave_the_grid(viewport):
    domains = [AxisValue(Dimension.DOMAIN_COVERAGE, v) for v in DOMAINS]
    domains[1].is_relevant = False
    assert axis_labels(domains) == ["Clinical", "Records"]

    model = compute_layout([], domains, LEVELS, viewport)
    assert model.grid.domain_values == ["Clinical", "Records"]
    assert len(model.cells) == 6


def test_empty_inputs_give_empty_model(patient_cq, viewport):
    model = compute_layout([patient_cq], [], LEVELS, viewport)
    assert model.is_empty
    assert model.points == [] and model.labels == [] and model.axis_ticks == []


def test_cells_styled_by_density(viewport):
    cqs = [CompetencyQuestion(f"Q{i}?", "Clinical", "First-level") for i in range(4)]
    model = compute_layout(cqs, DOMAINS, LEVELS, viewport)
    by_key = {shape.cell.key: shape for shape in model.cells}

    assert by_key[("Clinical", "First-level")].cq_count == 4
    assert by_key[("Clinical", "First-level")].stroke_width == density_style(4)[2]
    assert by_key[("Devices", "First-level")].cq_count == 0
    assert density_style(0)[2] < density_style(3)[2] < density_style(6)[2] < density_style(7)[2]


def test_axis_ticks(viewport):
    model = compute_layout([], DOMAINS, LEVELS, viewport)
    domain_ticks = [t for t in model.axis_ticks if t.axis == Axis.DOMAIN]
    level_ticks = [t for t in model.axis_ticks if t.axis == Axis.GRANULARITY]

    assert [t.value for t in domain_ticks] == DOMAINS
    assert all(t.y == pytest.approx(model.frame.plot_height + 15) for t in domain_ticks)
    assert all(t.x == -15 for t in level_ticks)
    assert domain_ticks[0].x == pytest.approx(model.grid.x_scale.band_center("Clinical"))


def test_elements_expose_ids_and_roles(patient_cq, viewport):
    model = compute_layout([patient_cq], DOMAINS, LEVELS, viewport, ZoomTransform(scale=0.3))
    roles = {role for _, role, _ in model.elements()}
    assert roles == {"cell", "axis_value", "point"}
    assert model.find_element(f"point:{patient_cq.id}") is model.points[0]
    assert model.find_element("axis:domain:Devices").value == "Devices"
    assert model.find_element("cell:Clinical|First-level").cq_count == 1
    assert model.find_element("missing") is None
