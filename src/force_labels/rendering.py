"""Raster previews and hit testing for positioned labels.

Drawing relies on Pillow. Only the default bitmap font is used unless a
TrueType ``font_path`` is configured on the style, so box sizes stay rough
estimates rather than measured text extents.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Iterable, Sequence

from PIL import Image, ImageDraw, ImageFont

from .core import Label, PositionedLabel

Color = tuple[int, int, int, int]

NON_TEXT_WIDTH = 120.0
CHAR_WIDTH_FACTOR = 0.6
LINE_HEIGHT_FACTOR = 1.5


@dataclass(slots=True)
class LabelStyle:
    """Visual settings shared by every label in a preview."""

    font_size: int = 14
    padding: int = 8
    background: Color = (255, 255, 255, 242)
    text_color: Color = (0, 0, 0, 255)
    border_color: Color = (204, 204, 204, 255)
    border_width: int = 1
    border_radius: int = 4
    canvas_background: Color = (255, 255, 255, 255)
    anchor_radius: int = 3
    show_connectors: bool = True
    connector_dash: tuple[int, int] = (2, 2)
    font_path: Path | str | None = None


def estimate_label_size(content: Any, style: LabelStyle | None = None) -> tuple[float, float]:
    """Rough ``(width, height)`` of a label box from its character count."""

    style = style or LabelStyle()
    height = style.font_size * LINE_HEIGHT_FACTOR + style.padding * 2
    if not isinstance(content, str):
        return NON_TEXT_WIDTH, height
    width = len(content) * style.font_size * CHAR_WIDTH_FACTOR + style.padding * 2 + 20
    return width, height


def with_estimated_sizes(labels: Iterable[Label], style: LabelStyle | None = None) -> list[Label]:
    """Copy ``labels`` filling in any missing width or height."""

    sized: list[Label] = []
    for label in labels:
        if label.width is not None and label.height is not None:
            sized.append(label)
            continue
        width, height = estimate_label_size(label.content, style)
        sized.append(
            replace(
                label,
                width=label.width if label.width is not None else width,
                height=label.height if label.height is not None else height,
            )
        )
    return sized


def label_at(labels: Sequence[PositionedLabel], x: float, y: float) -> str | None:
    """Return the id of the top-most label whose box contains ``(x, y)``."""

    # Later labels are drawn over earlier ones.
    for label in reversed(labels):
        left, top, right, bottom = label.bbox()
        if left <= x <= right and top <= y <= bottom:
            return label.id
    return None


def _load_font(style: LabelStyle) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    if style.font_path is not None:
        return ImageFont.truetype(str(style.font_path), style.font_size)
    return ImageFont.load_default()


def _dashed_line(
    draw: ImageDraw.ImageDraw,
    start: tuple[float, float],
    end: tuple[float, float],
    *,
    dash: tuple[int, int],
    fill: Color,
) -> None:
    x0, y0 = start
    x1, y1 = end
    length = math.hypot(x1 - x0, y1 - y0)
    on, off = dash
    period = on + off
    if length <= 0.0 or on <= 0 or period <= 0:
        return
    ux = (x1 - x0) / length
    uy = (y1 - y0) / length
    offset = 0.0
    while offset < length:
        seg_end = min(offset + on, length)
        draw.line(
            [(x0 + ux * offset, y0 + uy * offset), (x0 + ux * seg_end, y0 + uy * seg_end)],
            fill=fill,
            width=1,
        )
        offset += period


def render_labels(
    labels: Sequence[PositionedLabel],
    canvas_size: tuple[int, int],
    style: LabelStyle | None = None,
) -> Image.Image:
    """Draw connectors, anchors and label boxes onto a new RGBA image."""

    style = style or LabelStyle()
    width, height = canvas_size
    if width <= 0 or height <= 0:
        raise ValueError("canvas_size must be positive in both dimensions")

    image = Image.new("RGBA", (int(width), int(height)), color=style.canvas_background)
    draw = ImageDraw.Draw(image)
    font = _load_font(style)

    if style.show_connectors:
        for label in labels:
            _dashed_line(
                draw,
                label.anchor.point,
                label.position,
                dash=style.connector_dash,
                fill=style.border_color,
            )

    for label in labels:
        left, top, right, bottom = label.bbox()
        draw.rounded_rectangle(
            (left, top, right, bottom),
            radius=style.border_radius,
            fill=style.background,
            outline=style.border_color,
            width=style.border_width,
        )
        text = str(label.content) if label.content is not None else label.id
        t_left, t_top, t_right, t_bottom = draw.textbbox((0, 0), text, font=font)
        draw.text(
            (label.x - (t_right - t_left) / 2.0 - t_left, label.y - (t_bottom - t_top) / 2.0 - t_top),
            text,
            font=font,
            fill=style.text_color,
        )
        r = style.anchor_radius
        ax, ay = label.anchor.point
        draw.ellipse((ax - r, ay - r, ax + r, ay + r), fill=style.border_color)

    return image


__all__ = [
    "LabelStyle",
    "estimate_label_size",
    "with_estimated_sizes",
    "label_at",
    "render_labels",
]
