"""Tunables for the label force simulation."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

# camelCase names used by label payloads produced for browser front-ends.
_CAMEL_ALIASES = {
    "anchorStrength": "anchor_strength",
    "repulsionStrength": "repulsion_strength",
    "repulsionRadius": "repulsion_radius",
    "enableCollision": "enable_collision",
    "collisionPadding": "collision_padding",
    "minDistance": "min_distance",
    "maxDistance": "max_distance",
    "friction": "friction",
    "iterations": "iterations",
    "maxVelocity": "max_velocity",
    "threshold": "threshold",
    "anchorRepulsionRadiusScale": "anchor_repulsion_radius_scale",
    "anchorRepulsionStrengthScale": "anchor_repulsion_strength_scale",
    "collisionDamping": "collision_damping",
    "collisionSweeps": "collision_sweeps",
}


@dataclass(slots=True)
class ForceConfig:
    """Fully populated simulation configuration.

    Values are not range-checked. Out-of-range settings such as
    ``max_distance < min_distance`` or negative strengths produce oscillating
    but finite layouts.
    """

    anchor_strength: float = 0.1
    repulsion_strength: float = 50.0
    repulsion_radius: float = 100.0
    enable_collision: bool = True
    collision_padding: float = 10.0
    min_distance: float = 40.0
    max_distance: float = 200.0
    friction: float = 0.9
    iterations: int = 3
    max_velocity: float = 5.0
    threshold: float = 0.1

    # Tuned constants; anchors repel other labels over half the label radius
    # at twice the strength, and collisions push with half the overlap.
    anchor_repulsion_radius_scale: float = 0.5
    anchor_repulsion_strength_scale: float = 2.0
    collision_damping: float = 0.5
    # Upper bound on positional overlap-separation passes per iteration.
    collision_sweeps: int = 4

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "ForceConfig":
        """Build a config from a sparse mapping, applying defaults."""

        return cls().merged(data)

    def merged(self, partial: Mapping[str, Any] | None = None, **overrides: Any) -> "ForceConfig":
        """Return a copy with ``partial`` and ``overrides`` applied on top."""

        updates = _normalize_keys(partial or {})
        updates.update(overrides)
        return replace(self, **updates)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _normalize_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    known = {f.name for f in fields(ForceConfig)}
    normalized: dict[str, Any] = {}
    unknown: list[str] = []
    for key, value in data.items():
        name = _CAMEL_ALIASES.get(key, key)
        if name not in known:
            unknown.append(key)
            continue
        normalized[name] = value
    if unknown:
        raise ValueError(f"Unknown force config field(s): {', '.join(sorted(unknown))}")
    return normalized


def coerce_config(config: ForceConfig | Mapping[str, Any] | None, base: ForceConfig | None = None) -> ForceConfig:
    """Merge ``config`` over ``base`` (defaults when omitted)."""

    base = base or ForceConfig()
    if config is None:
        return base
    if isinstance(config, ForceConfig):
        return replace(config)
    return base.merged(config)


def load_config(path: Path | str) -> ForceConfig:
    """Read a JSON object of (possibly camelCase) fields into a ForceConfig."""

    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {path}")
    return ForceConfig.from_mapping(data)


__all__ = ["ForceConfig", "coerce_config", "load_config"]
