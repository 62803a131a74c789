from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, replace
from typing import Any, Iterable, List, Mapping, Tuple

from .anchors import Anchor, anchor_centroid
from .config import ForceConfig, coerce_config

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 100.0
DEFAULT_HEIGHT = 30.0
INITIAL_OFFSET = 20.0
_EPS = 1e-9

Vector = Tuple[float, float]


def _as_anchor(value: Any) -> Anchor:
    """Accept an Anchor, an ``{"x", "y"}`` mapping, an object with ``.x``/``.y`` or an ``(x, y)`` pair."""

    if isinstance(value, Anchor):
        return value
    if isinstance(value, Mapping):
        return Anchor(float(value["x"]), float(value["y"]))
    if hasattr(value, "x") and hasattr(value, "y"):
        return Anchor(float(value.x), float(value.y))
    x, y = value
    return Anchor(float(x), float(y))


@dataclass
class Label:
    """Input description of a label attached to an anchor."""

    id: str
    anchor: Anchor
    content: Any = None
    priority: float = 1.0
    width: float | None = None
    height: float | None = None

    def __post_init__(self) -> None:
        self.anchor = _as_anchor(self.anchor)


@dataclass
class PositionedLabel:
    """Simulation state of one label: position, velocity and force accumulator."""

    id: str
    anchor: Anchor
    content: Any
    priority: float
    width: float
    height: float
    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0
    fx: float = 0.0
    fy: float = 0.0

    @classmethod
    def from_label(cls, label: Label, x: float, y: float, vx: float = 0.0, vy: float = 0.0) -> "PositionedLabel":
        return cls(
            id=label.id,
            anchor=label.anchor,
            content=label.content,
            priority=1.0 if label.priority is None else label.priority,
            width=DEFAULT_WIDTH if label.width is None else float(label.width),
            height=DEFAULT_HEIGHT if label.height is None else float(label.height),
            x=x,
            y=y,
            vx=vx,
            vy=vy,
        )

    @property
    def position(self) -> Vector:
        return (self.x, self.y)

    @property
    def velocity(self) -> Vector:
        return (self.vx, self.vy)

    @property
    def force(self) -> Vector:
        return (self.fx, self.fy)

    def anchor_distance(self) -> float:
        return self.anchor.distance_to(self.x, self.y)

    def bbox(self, padding: float = 0.0) -> Tuple[float, float, float, float]:
        """Return ``(left, top, right, bottom)`` of the box centred on the position."""

        half_w = self.width / 2.0 + padding
        half_h = self.height / 2.0 + padding
        return (self.x - half_w, self.y - half_h, self.x + half_w, self.y + half_h)


def _inverse_square(dx: float, dy: float, strength: float, radius: float) -> Vector:
    """Repulsive force along ``(dx, dy)``; zero when coincident or out of range."""

    distance = math.hypot(dx, dy)
    if distance <= 0.0 or distance >= radius:
        return 0.0, 0.0
    magnitude = strength / (distance * distance)
    return magnitude * dx / distance, magnitude * dy / distance


class ForceSimulation:
    """Force-directed label placement around fixed anchors.

    Each call to :meth:`step` runs ``config.iterations`` passes of force
    accumulation, integration, collision separation and distance clamping.
    A driver keeps calling it until it returns ``True``.
    """

    def __init__(
        self,
        config: ForceConfig | Mapping[str, Any] | None = None,
        *,
        seed: int | None = None,
    ) -> None:
        self.config = coerce_config(config)
        self.labels: List[PositionedLabel] = []
        self.last_max_force = 0.0
        self._rng = random.Random(seed)
        # Per-label constraint normals hit during the current iteration.
        self._contacts: List[List[Vector]] = []

    def __len__(self) -> int:
        return len(self.labels)

    def initialize(
        self,
        labels: Iterable[Label],
        config: ForceConfig | Mapping[str, Any] | None = None,
        *,
        keep_positions: bool = False,
    ) -> None:
        """Replace the simulated label set.

        Labels start ``min_distance + 20`` away from their anchor, pointing away
        from the centroid of all anchors. An anchor sitting on the centroid has
        no direction and gets a random angle from the engine's seeded RNG.
        With ``keep_positions`` labels whose id was already simulated keep
        their position and velocity.
        """

        if config is not None:
            self.config = coerce_config(config, self.config)
        labels = list(labels)

        seen: set[str] = set()
        for label in labels:
            if label.id in seen:
                raise ValueError(f"Duplicate label id '{label.id}'")
            seen.add(label.id)

        previous = {item.id: item for item in self.labels} if keep_positions else {}
        cx, cy = anchor_centroid(label.anchor for label in labels)
        radius = self.config.min_distance + INITIAL_OFFSET

        positioned: List[PositionedLabel] = []
        for label in labels:
            prior = previous.get(label.id)
            if prior is not None:
                positioned.append(PositionedLabel.from_label(label, prior.x, prior.y, prior.vx, prior.vy))
                continue
            dx = label.anchor.x - cx
            dy = label.anchor.y - cy
            if math.hypot(dx, dy) > _EPS:
                angle = math.atan2(dy, dx)
            else:
                angle = self._rng.uniform(0.0, 2.0 * math.pi)
            x = label.anchor.x + math.cos(angle) * radius
            y = label.anchor.y + math.sin(angle) * radius
            positioned.append(PositionedLabel.from_label(label, x, y))

        self.labels = positioned
        self._contacts = [[] for _ in positioned]
        self.last_max_force = 0.0
        logger.debug("Initialized %d labels (kept %d positions)", len(positioned), len(previous.keys() & seen))

    set_labels = initialize

    def update_config(self, partial: Mapping[str, Any] | None = None, **overrides: Any) -> None:
        """Merge new values into the live config; applies from the next step."""

        self.config = self.config.merged(partial, **overrides)

    def step(self) -> bool:
        """Advance the simulation and report whether it has converged."""

        if not self.labels:
            return True

        cfg = self.config
        max_force = 0.0
        for _ in range(int(cfg.iterations)):
            for label, contacts in zip(self.labels, self._contacts):
                label.fx = 0.0
                label.fy = 0.0
                contacts.clear()

            self._apply_anchor_forces()
            self._apply_repulsion_forces()
            self._apply_anchor_repulsion()
            if cfg.enable_collision:
                self._apply_collision_forces()

            self._integrate()
            if cfg.enable_collision:
                self._resolve_collisions()
            self._apply_bounds()
            max_force = self._max_residual_force()

        self.last_max_force = max_force
        return max_force < cfg.threshold

    def positions(self) -> List[PositionedLabel]:
        """Return value copies of the current label states."""

        return [replace(label) for label in self.labels]

    get_positions = positions

    def get(self, label_id: str) -> PositionedLabel | None:
        for label in self.labels:
            if label.id == label_id:
                return replace(label)
        return None

    # Force kernels -----------------------------------------------------

    def _apply_anchor_forces(self) -> None:
        # Linear spring: unit direction times distance is the raw offset.
        strength = self.config.anchor_strength
        for label in self.labels:
            dx = label.anchor.x - label.x
            dy = label.anchor.y - label.y
            if dx == 0.0 and dy == 0.0:
                continue
            k = strength * label.priority
            label.fx += dx * k
            label.fy += dy * k

    def _apply_repulsion_forces(self) -> None:
        strength = self.config.repulsion_strength
        radius = self.config.repulsion_radius
        n = len(self.labels)
        for i in range(n):
            a = self.labels[i]
            for j in range(i + 1, n):
                b = self.labels[j]
                fx, fy = _inverse_square(a.x - b.x, a.y - b.y, strength, radius)
                a.fx += fx
                a.fy += fy
                b.fx -= fx
                b.fy -= fy

    def _apply_anchor_repulsion(self) -> None:
        cfg = self.config
        strength = cfg.repulsion_strength * cfg.anchor_repulsion_strength_scale
        radius = cfg.repulsion_radius * cfg.anchor_repulsion_radius_scale
        for i, label in enumerate(self.labels):
            for j, other in enumerate(self.labels):
                if i == j:
                    continue
                fx, fy = _inverse_square(label.x - other.anchor.x, label.y - other.anchor.y, strength, radius)
                label.fx += fx
                label.fy += fy

    def _box_overlap(self, a: PositionedLabel, b: PositionedLabel) -> Tuple[float, float, float, float]:
        padding = self.config.collision_padding
        dx = b.x - a.x
        dy = b.y - a.y
        overlap_x = (a.width + b.width) / 2.0 + padding - abs(dx)
        overlap_y = (a.height + b.height) / 2.0 + padding - abs(dy)
        return dx, dy, overlap_x, overlap_y

    def _apply_collision_forces(self) -> None:
        damping = self.config.collision_damping
        n = len(self.labels)
        for i in range(n):
            a = self.labels[i]
            for j in range(i + 1, n):
                b = self.labels[j]
                dx, dy, overlap_x, overlap_y = self._box_overlap(a, b)
                if overlap_x <= 0.0 or overlap_y <= 0.0:
                    continue
                if overlap_x < overlap_y:
                    push = (overlap_x if dx > 0 else -overlap_x) * damping
                    a.fx -= push
                    b.fx += push
                else:
                    push = (overlap_y if dy > 0 else -overlap_y) * damping
                    a.fy -= push
                    b.fy += push

    # Integration and constraints --------------------------------------

    def _integrate(self) -> None:
        friction = self.config.friction
        max_velocity = self.config.max_velocity
        for label in self.labels:
            label.vx = (label.vx + label.fx) * friction
            label.vy = (label.vy + label.fy) * friction
            speed = math.hypot(label.vx, label.vy)
            if speed > max_velocity and speed > 0.0:
                scale = max_velocity / speed
                label.vx *= scale
                label.vy *= scale
            label.x += label.vx
            label.y += label.vy

    def _resolve_collisions(self) -> int:
        """Separate overlapping padded boxes along their minimum-translation axis.

        Runs at most ``config.collision_sweeps`` passes over all pairs and
        returns how many were made.
        """

        n = len(self.labels)
        sweeps = 0
        for _ in range(max(int(self.config.collision_sweeps), 0)):
            sweeps += 1
            moved = False
            for i in range(n):
                a = self.labels[i]
                for j in range(i + 1, n):
                    b = self.labels[j]
                    dx, dy, overlap_x, overlap_y = self._box_overlap(a, b)
                    if overlap_x <= _EPS or overlap_y <= _EPS:
                        continue
                    moved = True
                    if overlap_x < overlap_y:
                        direction = 1.0 if dx > 0 else -1.0
                        shift = direction * overlap_x / 2.0
                        a.x -= shift
                        b.x += shift
                        self._contacts[i].append((direction, 0.0))
                        self._contacts[j].append((-direction, 0.0))
                    else:
                        direction = 1.0 if dy > 0 else -1.0
                        shift = direction * overlap_y / 2.0
                        a.y -= shift
                        b.y += shift
                        self._contacts[i].append((0.0, direction))
                        self._contacts[j].append((0.0, -direction))
            if not moved:
                break
        return sweeps

    def _apply_bounds(self) -> None:
        cfg = self.config
        for label, contacts in zip(self.labels, self._contacts):
            dx = label.x - label.anchor.x
            dy = label.y - label.anchor.y
            distance = math.hypot(dx, dy)
            if distance <= 0.0:
                continue
            ux = dx / distance
            uy = dy / distance
            if distance < cfg.min_distance:
                target = cfg.min_distance
                contacts.append((-ux, -uy))
            elif distance > cfg.max_distance:
                target = cfg.max_distance
                contacts.append((ux, uy))
            else:
                continue
            label.x = label.anchor.x + ux * target
            label.y = label.anchor.y + uy * target

    def _max_residual_force(self) -> float:
        """Largest force left after removing what resting constraints absorb."""

        peak = 0.0
        for label, contacts in zip(self.labels, self._contacts):
            fx = label.fx
            fy = label.fy
            for nx, ny in contacts:
                push = fx * nx + fy * ny
                if push > 0.0:
                    fx -= push * nx
                    fy -= push * ny
            peak = max(peak, math.hypot(fx, fy))
        return peak


__all__ = ["Label", "PositionedLabel", "ForceSimulation", "DEFAULT_WIDTH", "DEFAULT_HEIGHT"]
