"""High-level APIs for running label layouts and exporting the results."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping, Sequence

import numpy as np

from .config import ForceConfig, coerce_config
from .core import ForceSimulation, Label, PositionedLabel
from .rendering import LabelStyle, render_labels, with_estimated_sizes

logger = logging.getLogger(__name__)

StepCallback = Callable[[int, list[PositionedLabel]], None]


@dataclass(slots=True)
class LayoutResult:
    """Outcome of driving a simulation until it settles or runs out of steps."""

    labels: list[PositionedLabel]
    steps: int
    converged: bool
    config: ForceConfig
    force_history: list[float] = field(default_factory=list)

    def positions_array(self) -> np.ndarray:
        """``(N, 2)`` array of label centres in input order."""

        if not self.labels:
            return np.zeros((0, 2), dtype=float)
        return np.array([label.position for label in self.labels], dtype=float)

    def to_dict(self) -> dict[str, Any]:
        return {
            "steps": self.steps,
            "converged": self.converged,
            "config": self.config.to_dict(),
            "labels": [_label_record(label) for label in self.labels],
        }


def run_layout(
    labels: Sequence[Label],
    config: ForceConfig | Mapping[str, Any] | None = None,
    *,
    max_steps: int = 500,
    seed: int | None = None,
    on_step: StepCallback | None = None,
) -> LayoutResult:
    """Initialize a fresh simulation and step it until convergence.

    Parameters
    ----------
    labels:
        Labels to place. Missing box sizes fall back to the engine defaults.
    config:
        Sparse mapping or :class:`ForceConfig` merged over the defaults.
    max_steps:
        Upper bound on ``step()`` calls, standing in for a renderer that stops
        animating after a while.
    seed:
        Seed for the random angle given to anchors on the centroid.
    on_step:
        Called after every step with the step index (1-based) and a snapshot
        of the label positions, the way a renderer would redraw each frame.
    """

    if max_steps < 0:
        raise ValueError("max_steps must be non-negative")

    simulation = ForceSimulation(config, seed=seed)
    simulation.initialize(labels)

    history: list[float] = []
    converged = not simulation.labels
    steps = 0
    while not converged and steps < max_steps:
        converged = simulation.step()
        steps += 1
        history.append(simulation.last_max_force)
        if on_step is not None:
            on_step(steps, simulation.positions())

    if converged:
        logger.debug("Layout of %d labels converged after %d steps", len(simulation), steps)
    else:
        logger.warning(
            "Layout of %d labels did not converge within %d steps (residual force %.4f)",
            len(simulation),
            max_steps,
            simulation.last_max_force,
        )

    return LayoutResult(
        labels=simulation.positions(),
        steps=steps,
        converged=converged,
        config=simulation.config,
        force_history=history,
    )


def overlap_matrix(labels: Sequence[PositionedLabel], padding: float = 0.0) -> np.ndarray:
    """Pairwise overlap areas of the label boxes grown by ``padding``.

    The diagonal is zero and the matrix is symmetric.
    """

    n = len(labels)
    if n == 0:
        return np.zeros((0, 0), dtype=float)
    boxes = np.array([label.bbox(padding) for label in labels], dtype=float)
    left, top, right, bottom = boxes.T
    span_x = np.minimum(right[:, None], right[None, :]) - np.maximum(left[:, None], left[None, :])
    span_y = np.minimum(bottom[:, None], bottom[None, :]) - np.maximum(top[:, None], top[None, :])
    areas = np.clip(span_x, 0.0, None) * np.clip(span_y, 0.0, None)
    np.fill_diagonal(areas, 0.0)
    return areas


def total_overlap_area(labels: Sequence[PositionedLabel], padding: float = 0.0) -> float:
    """Sum of overlap areas over unordered label pairs."""

    areas = overlap_matrix(labels, padding)
    return float(np.triu(areas, k=1).sum())


def export_layout(
    prj_id: str,
    labels: Sequence[Label],
    *,
    canvas_size: tuple[int, int] = (800, 600),
    output_root: Path | str = "output",
    config: ForceConfig | Mapping[str, Any] | None = None,
    style: LabelStyle | None = None,
    max_steps: int = 500,
    seed: int | None = None,
    render_preview: bool = True,
) -> dict[str, Any]:
    """Lay out ``labels`` and write a JSON summary plus an optional PNG preview.

    Labels without a box size are sized with
    :func:`~force_labels.rendering.estimate_label_size` first. Artifacts are
    written under ``output_root / prj_id``.
    """

    if not prj_id:
        raise ValueError("prj_id must be non-empty")

    style = style or LabelStyle()
    project_dir = Path(output_root) / prj_id
    project_dir.mkdir(parents=True, exist_ok=True)

    result = run_layout(
        with_estimated_sizes(labels, style),
        coerce_config(config),
        max_steps=max_steps,
        seed=seed,
    )

    summary: dict[str, Any] = {
        "project_id": prj_id,
        "canvas_size": list(canvas_size),
        "output_dir": str(project_dir),
        "overlap_area": total_overlap_area(result.labels),
        **result.to_dict(),
    }

    if render_preview:
        preview_path = project_dir / "preview.png"
        render_labels(result.labels, canvas_size, style).save(preview_path)
        summary["preview_path"] = str(preview_path)
        logger.info("Wrote layout preview to %s", preview_path)

    layout_json_path = project_dir / "layout.json"
    summary["layout_json_path"] = str(layout_json_path)
    layout_json_path.write_text(json.dumps(summary, ensure_ascii=False, indent=2), encoding="utf-8")
    logger.info("Wrote layout summary for %d labels to %s", len(result.labels), layout_json_path)
    return summary


def _label_record(label: PositionedLabel) -> dict[str, Any]:
    content = label.content
    if not isinstance(content, (str, int, float, bool)) and content is not None:
        content = repr(content)
    return {
        "id": label.id,
        "anchor": {"x": label.anchor.x, "y": label.anchor.y},
        "position": {"x": label.x, "y": label.y},
        "velocity": {"x": label.vx, "y": label.vy},
        "width": label.width,
        "height": label.height,
        "priority": label.priority,
        "content": content,
    }


__all__ = ["LayoutResult", "run_layout", "overlap_matrix", "total_overlap_area", "export_layout"]
