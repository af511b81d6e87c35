"""Rotation and hit-test math in logical canvas space.

Angles are in degrees. Positive rotation is clockwise on screen, because
the canvas y axis points down.
"""

from __future__ import annotations

import math

from .models import BoundingBox


def rotate_point(
    x: float, y: float, cx: float, cy: float, degrees: float
) -> tuple[float, float]:
    """Rotate (x, y) about (cx, cy)."""
    rad = math.radians(degrees)
    cos = math.cos(rad)
    sin = math.sin(rad)
    dx = x - cx
    dy = y - cy
    return (cx + dx * cos - dy * sin, cy + dx * sin + dy * cos)


def to_local(x: float, y: float, box: BoundingBox, rotation: float) -> tuple[float, float]:
    """Map a canvas point into the box's unrotated frame."""
    cx, cy = box.center
    return rotate_point(x, y, cx, cy, -rotation)


def to_canvas(x: float, y: float, box: BoundingBox, rotation: float) -> tuple[float, float]:
    """Map a point from the box's unrotated frame back onto the canvas."""
    cx, cy = box.center
    return rotate_point(x, y, cx, cy, rotation)


def box_corners(box: BoundingBox, rotation: float) -> list[tuple[float, float]]:
    """Corners in drawing order nw, ne, se, sw, rotated about the box center."""
    corners = [(box.x, box.y), (box.x2, box.y), (box.x2, box.y2), (box.x, box.y2)]
    return [to_canvas(x, y, box, rotation) for x, y in corners]


def contains_point(box: BoundingBox, rotation: float, x: float, y: float) -> bool:
    """True if the rotated box covers the canvas point."""
    if box.width <= 0 or box.height <= 0:
        return False
    lx, ly = to_local(x, y, box, rotation)
    return box.contains(lx, ly)


def angle_to(cx: float, cy: float, x: float, y: float) -> float:
    """Direction of (x, y) seen from (cx, cy), in degrees."""
    return math.degrees(math.atan2(y - cy, x - cx))


def distance(ax: float, ay: float, bx: float, by: float) -> float:
    return math.hypot(bx - ax, by - ay)
