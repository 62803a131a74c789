from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from force_labels import (
    Label,
    LabelStyle,
    PositionedLabel,
    estimate_label_size,
    export_layout,
    label_at,
    overlap_matrix,
    render_labels,
    run_layout,
    total_overlap_area,
    with_estimated_sizes,
)
from force_labels.anchors import Anchor


def _positioned(label_id: str, x: float, y: float, *, width: float = 100.0, height: float = 30.0) -> PositionedLabel:
    return PositionedLabel(
        id=label_id,
        anchor=Anchor(x, y + 50.0),
        content=label_id,
        priority=1.0,
        width=width,
        height=height,
        x=x,
        y=y,
    )


def test_run_layout_reports_each_step() -> None:
    frames: list[tuple[int, int]] = []

    result = run_layout(
        [Label(id="price", anchor=(300.0, 200.0), content="59.99", priority=2.0)],
        seed=0,
        on_step=lambda index, labels: frames.append((index, len(labels))),
    )

    assert result.converged
    assert result.steps == len(result.force_history) == len(frames)
    assert frames[-1] == (result.steps, 1)
    assert result.force_history[-1] < result.config.threshold
    assert result.positions_array().shape == (1, 2)


def test_run_layout_empty_input() -> None:
    result = run_layout([])
    assert result.converged
    assert result.steps == 0
    assert result.positions_array().shape == (0, 2)


def test_run_layout_stops_at_step_budget() -> None:
    result = run_layout(
        [Label(id="a", anchor=(0.0, 0.0)), Label(id="b", anchor=(40.0, 0.0))],
        {"threshold": 0.0},
        max_steps=5,
        seed=1,
    )
    assert not result.converged
    assert result.steps == 5


def test_overlap_matrix_is_symmetric() -> None:
    labels = [_positioned("a", 0.0, 0.0), _positioned("b", 50.0, 0.0), _positioned("c", 500.0, 0.0)]

    areas = overlap_matrix(labels)

    assert areas.shape == (3, 3)
    assert np.allclose(areas, areas.T)
    assert np.all(np.diag(areas) == 0.0)
    assert areas[0, 1] == pytest.approx(50.0 * 30.0)
    assert areas[0, 2] == 0.0
    assert total_overlap_area(labels) == pytest.approx(1500.0)
    assert total_overlap_area(labels, padding=5.0) == pytest.approx(60.0 * 40.0)


def test_estimate_label_size() -> None:
    style = LabelStyle()
    width, height = estimate_label_size("abc", style)
    assert width == pytest.approx(3 * 14 * 0.6 + 16 + 20)
    assert height == pytest.approx(14 * 1.5 + 16)
    assert estimate_label_size(object(), style)[0] == 120.0


def test_with_estimated_sizes_keeps_supplied_dimensions() -> None:
    labels = [
        Label(id="sized", anchor=(0.0, 0.0), content="Quick Dry", width=80.0),
        Label(id="bare", anchor=(10.0, 0.0), content="4 Colors Avail."),
    ]

    sized = with_estimated_sizes(labels)

    assert sized[0].width == 80.0
    assert sized[0].height == pytest.approx(37.0)
    assert sized[1].width == pytest.approx(estimate_label_size("4 Colors Avail.")[0])
    assert labels[1].width is None


def test_label_at_prefers_top_most() -> None:
    labels = [_positioned("under", 0.0, 0.0), _positioned("over", 30.0, 0.0)]
    assert label_at(labels, 20.0, 0.0) == "over"
    assert label_at(labels, -40.0, 5.0) == "under"
    assert label_at(labels, 0.0, 100.0) is None


def test_render_labels_draws_anchor_and_box() -> None:
    style = LabelStyle()
    label = _positioned("name", 200.0, 100.0)

    image = render_labels([label], (400, 300), style)

    assert image.size == (400, 300)
    pixels = np.array(image)
    assert tuple(pixels[150, 200]) == style.border_color
    assert tuple(pixels[0, 0]) == style.canvas_background
    # box border on the left edge of the label
    assert tuple(pixels[100, 150]) == style.border_color


def test_render_labels_rejects_empty_canvas() -> None:
    with pytest.raises(ValueError):
        render_labels([], (0, 10))


def test_export_layout_writes_artifacts(tmp_path: Path) -> None:
    labels = [
        Label(id="price", anchor=(300.0, 200.0), content="59.99", priority=2.0),
        Label(id="name", anchor=(150.0, 220.0), content="Flow Jersey", priority=3.0),
        Label(id="feature1", anchor=(300.0, 300.0), content="Quick Dry"),
        Label(id="feature2", anchor=(350.0, 340.0), content="4 Colors Avail."),
    ]

    summary = export_layout(
        "product",
        labels,
        canvas_size=(600, 500),
        output_root=tmp_path,
        seed=0,
        max_steps=200,
    )

    layout_path = Path(summary["layout_json_path"])
    assert layout_path.exists()
    saved = json.loads(layout_path.read_text(encoding="utf-8"))
    assert [item["id"] for item in saved["labels"]] == ["price", "name", "feature1", "feature2"]
    for key in ("anchor", "position", "velocity", "width", "height", "priority", "content"):
        assert key in saved["labels"][0]
    assert saved["config"]["min_distance"] == 40.0

    preview = Path(summary["preview_path"])
    with Image.open(preview) as img:
        assert img.size == (600, 500)


def test_export_layout_requires_project_id(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        export_layout("", [], output_root=tmp_path)
