"""Anchor points and anchor generators for label layout experiments."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Tuple

Point = Tuple[float, float]


@dataclass(frozen=True)
class Anchor:
    """Fixed 2D point a label is attached to."""

    x: float
    y: float

    @property
    def point(self) -> Point:
        return (self.x, self.y)

    def distance_to(self, x: float, y: float) -> float:
        return math.hypot(x - self.x, y - self.y)


def _linspace(start: float, end: float, count: int) -> List[float]:
    if count <= 0:
        return []
    if count == 1:
        return [start + (end - start) / 2.0]
    step = (end - start) / (count - 1)
    return [start + i * step for i in range(count)]


def generate_anchor_grid(
    *,
    canvas_size: Tuple[float, float] = (1024.0, 1024.0),
    grid_dims: Tuple[int, int] = (7, 7),
    margin: Tuple[float, float] = (100.0, 100.0),
) -> List[Anchor]:
    """Return evenly spaced anchors inside the canvas margins, row by row."""

    width, height = canvas_size
    cols, rows = grid_dims
    margin_x, margin_y = margin

    if width <= 0 or height <= 0:
        raise ValueError("canvas_size must be positive in both dimensions")
    if cols <= 0 or rows <= 0:
        raise ValueError("grid_dims must be positive")

    usable_w = max(width - 2 * margin_x, 0.0)
    usable_h = max(height - 2 * margin_y, 0.0)

    xs = _linspace(margin_x, margin_x + usable_w, cols)
    ys = _linspace(margin_y, margin_y + usable_h, rows)
    return [Anchor(x=x, y=y) for y in ys for x in xs]


def generate_anchor_ring(
    center: Point,
    radius: float,
    count: int,
    *,
    start_angle: float = 0.0,
) -> List[Anchor]:
    """Return ``count`` anchors spaced evenly on a circle around ``center``."""

    if count < 0:
        raise ValueError("count must be non-negative")
    cx, cy = center
    anchors: List[Anchor] = []
    for index in range(count):
        angle = start_angle + index * 2.0 * math.pi / count
        anchors.append(Anchor(x=cx + math.cos(angle) * radius, y=cy + math.sin(angle) * radius))
    return anchors


def anchor_centroid(anchors: Iterable[Anchor]) -> Point:
    """Mean of the anchor coordinates; ``(0, 0)`` for an empty input."""

    total_x = 0.0
    total_y = 0.0
    count = 0
    for anchor in anchors:
        total_x += anchor.x
        total_y += anchor.y
        count += 1
    if count == 0:
        return (0.0, 0.0)
    return (total_x / count, total_y / count)
