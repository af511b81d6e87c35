"""Edit-mode chrome: profile overlay, safe-zone guides, center guides, selection.

None of this is ever painted in export mode.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import cv2
import numpy as np
from PIL import Image, ImageChops, ImageDraw

from ..assets.fonts import FontRegistry
from ..config import Config
from ..enums import Axis, HandleType
from ..geometry import box_corners, distance, rotate_point
from ..interaction.handles import handle_positions
from ..models import BoundingBox, ProfileTransform
from .resize import cover_fit

logger = logging.getLogger("bannercanvas.rendering.overlays")


@dataclass(frozen=True)
class GuideLabel:
    text: str
    x: float
    y: float
    anchor: str


@dataclass(frozen=True)
class SafeZoneGuides:
    """Static guide geometry derived from the canvas size."""
    lines: tuple[tuple[tuple[float, float], tuple[float, float]], ...]
    obstruction: BoundingBox
    avatar: tuple[float, float, float]
    labels: tuple[GuideLabel, ...]


def profile_circle(
    width: int, height: int, transform: ProfileTransform
) -> tuple[float, float, float]:
    """(center_x, center_y, radius) of the profile overlay.

    The default placement straddles the bottom edge in the left safe region;
    the transform offsets it in logical units and scales its diameter.
    """
    rx, ry = Config.PROFILE_CENTER_RATIO
    diameter = width * Config.PROFILE_DIAMETER_RATIO * transform.scale
    return (width * rx + transform.x, height * ry + transform.y, diameter / 2)


def safe_zone_guides(width: int, height: int) -> SafeZoneGuides:
    """Guide geometry for a ``width x height`` canvas."""
    ref_w, ref_h = Config.SAFE_ZONE_REFERENCE_SIZE
    sx = width / ref_w
    sy = height / ref_h

    left = Config.SAFE_ZONE_LEFT_MARGIN * sx
    block_w = Config.SAFE_ZONE_BLOCK_WIDTH * sx
    top = Config.SAFE_ZONE_TOP_MARGIN * sy
    right = left + block_w
    block_h = height - top

    lines = (
        ((0.0, top), (float(width), top)),
        ((left, 0.0), (left, float(height))),
        ((right, 0.0), (right, float(height))),
    )
    labels = (
        GuideLabel(f"{round(left)}", left / 2, top / 2, "mm"),
        GuideLabel(f"{round(block_w)}", left + block_w / 2, top / 2, "mm"),
        GuideLabel(f"{round(top)}", right + 15 * sx, top / 2, "lm"),
        GuideLabel(f"{round(block_h)}", right + 15 * sx, top + block_h / 2, "lm"),
    )
    return SafeZoneGuides(
        lines=lines,
        obstruction=BoundingBox(0.0, top, right, block_h),
        avatar=profile_circle(width, height, ProfileTransform()),
        labels=labels,
    )


def composite_at(canvas: Image.Image, tile: Image.Image, left: int, top: int) -> None:
    """Alpha-composite ``tile`` onto ``canvas`` in place, clipped to the canvas."""
    x0 = max(left, 0)
    y0 = max(top, 0)
    x1 = min(left + tile.width, canvas.width)
    y1 = min(top + tile.height, canvas.height)
    if x1 <= x0 or y1 <= y0:
        return
    canvas.alpha_composite(tile, dest=(x0, y0), source=(x0 - left, y0 - top, x1 - left, y1 - top))


def draw_dashed_line(
    draw: ImageDraw.ImageDraw,
    start: tuple[float, float],
    end: tuple[float, float],
    fill: tuple,
    width: int,
    dash: tuple[float, float],
) -> None:
    length = distance(*start, *end)
    if length <= 0:
        return
    on, off = dash
    ux = (end[0] - start[0]) / length
    uy = (end[1] - start[1]) / length
    pos = 0.0
    while pos < length:
        stop = min(pos + on, length)
        draw.line(
            [(start[0] + ux * pos, start[1] + uy * pos), (start[0] + ux * stop, start[1] + uy * stop)],
            fill=fill,
            width=width,
        )
        pos += on + off


def draw_dashed_polygon(
    draw: ImageDraw.ImageDraw,
    points: list[tuple[float, float]],
    fill: tuple,
    width: int,
    dash: tuple[float, float],
) -> None:
    for index, start in enumerate(points):
        draw_dashed_line(draw, start, points[(index + 1) % len(points)], fill, width, dash)


def _stroke(chrome_scale: float, base: float) -> int:
    return max(1, round(base * chrome_scale))


def draw_profile_overlay(
    canvas: Image.Image,
    bitmap: Image.Image,
    transform: ProfileTransform,
    chrome_scale: float = 1.0,
) -> None:
    """Circular avatar preview at its default placement plus ``transform``."""
    cx, cy, radius = profile_circle(canvas.width, canvas.height, transform)
    diameter = max(1, round(radius * 2))

    face = cover_fit(bitmap, (diameter, diameter))
    mask = np.zeros((diameter, diameter), dtype=np.uint8)
    cv2.circle(mask, (diameter // 2, diameter // 2), diameter // 2, 255, thickness=-1, lineType=cv2.LINE_AA)
    face.putalpha(ImageChops.multiply(face.getchannel("A"), Image.fromarray(mask, mode="L")))

    left = round(cx - diameter / 2)
    top = round(cy - diameter / 2)
    composite_at(canvas, face, left, top)

    draw = ImageDraw.Draw(canvas)
    draw.ellipse(
        (left, top, left + diameter, top + diameter),
        outline=(255, 255, 255, 255),
        width=_stroke(chrome_scale, Config.PROFILE_BORDER_WIDTH),
    )


def draw_safe_zones(
    canvas: Image.Image, fonts: FontRegistry, chrome_scale: float = 1.0
) -> None:
    """Dashed guide strokes and dimension labels; no fills."""
    guides = safe_zone_guides(canvas.width, canvas.height)
    draw = ImageDraw.Draw(canvas)
    width = _stroke(chrome_scale, Config.SAFE_ZONE_LINE_WIDTH)
    dash = tuple(d * chrome_scale for d in Config.SAFE_ZONE_DASH)
    white = (255, 255, 255, 255)

    for start, end in guides.lines:
        draw_dashed_line(draw, start, end, white, width, dash)

    ax, ay, ar = guides.avatar
    corners = 48
    ring = [rotate_point(ax + ar, ay, ax, ay, 360 * i / corners) for i in range(corners)]
    draw_dashed_polygon(draw, ring, white, width, dash)

    font = fonts.get_font(Config.DEFAULT_FONT_FAMILY, "700", Config.SAFE_ZONE_LABEL_SIZE * chrome_scale)
    for label in guides.labels:
        draw.text(
            (label.x, label.y),
            label.text,
            font=font,
            fill=white,
            anchor=label.anchor,
            stroke_width=_stroke(chrome_scale, 2),
            stroke_fill=(0, 0, 0, 200),
        )


def draw_center_guides(
    canvas: Image.Image, axes: frozenset, chrome_scale: float = 1.0
) -> None:
    draw = ImageDraw.Draw(canvas)
    width = _stroke(chrome_scale, 1)
    dash = tuple(d * chrome_scale for d in Config.SAFE_ZONE_DASH)
    if Axis.HORIZONTAL in axes:
        x = canvas.width / 2
        draw_dashed_line(draw, (x, 0), (x, canvas.height), Config.CENTER_GUIDE_COLOR, width, dash)
    if Axis.VERTICAL in axes:
        y = canvas.height / 2
        draw_dashed_line(draw, (0, y), (canvas.width, y), Config.CENTER_GUIDE_COLOR, width, dash)


def draw_selection(
    canvas: Image.Image, box: BoundingBox, rotation: float, chrome_scale: float = 1.0
) -> None:
    """Dashed outline, corner handle squares, and the rotation knob."""
    draw = ImageDraw.Draw(canvas)
    color = Config.SELECTION_COLOR
    white = (255, 255, 255, 255)
    margin = 2 * chrome_scale
    outline = BoundingBox(box.x - margin, box.y - margin, box.width + 2 * margin, box.height + 2 * margin)
    dash = tuple(d * chrome_scale for d in Config.SELECTION_DASH)
    draw_dashed_polygon(draw, box_corners(outline, rotation), color, _stroke(chrome_scale, 2), dash)

    rotation_distance = Config.ROTATION_HANDLE_DISTANCE * chrome_scale
    positions = handle_positions(box, rotation, rotation_distance)
    half = Config.HANDLE_SIZE * chrome_scale / 2

    for handle in (HandleType.NW, HandleType.NE, HandleType.SW, HandleType.SE):
        hx, hy = positions[handle]
        square = [
            rotate_point(px, py, hx, hy, rotation)
            for px, py in ((hx - half, hy - half), (hx + half, hy - half), (hx + half, hy + half), (hx - half, hy + half))
        ]
        draw.polygon(square, fill=white, outline=color)

    top_mid = positions[HandleType.N]
    knob = positions[HandleType.ROTATE]
    draw.line([top_mid, knob], fill=color, width=_stroke(chrome_scale, 1.5))
    r = Config.ROTATION_HANDLE_RADIUS * chrome_scale
    draw.ellipse(
        (knob[0] - r, knob[1] - r, knob[0] + r, knob[1] + r),
        fill=color,
        outline=white,
        width=_stroke(chrome_scale, 2),
    )


def rotated_tile_origin(center: tuple[float, float], tile: Image.Image) -> tuple[int, int]:
    """Top-left that centers ``tile`` on ``center``."""
    return (int(math.floor(center[0] - tile.width / 2 + 0.5)), int(math.floor(center[1] - tile.height / 2 + 0.5)))
