"""Coordinate mapping between logical canvas space and the on-screen viewport.

The logical ``W x H`` canvas is letterboxed into the viewport with one
uniform scale, never stretched. Viewport and pointer coordinates are CSS
(layout) pixels; the backing store of the draw surface is
``device_pixel_ratio`` times larger.
"""

from __future__ import annotations

from dataclasses import dataclass

from .exceptions import ValidationError
from .models import Point


@dataclass(frozen=True)
class ViewportRect:
    """On-screen rectangle hosting the canvas, in CSS pixels."""
    width: float
    height: float
    left: float = 0.0
    top: float = 0.0
    device_pixel_ratio: float = 1.0


class CoordinateMapper:
    """Convert points between logical canvas space and viewport space."""

    def __init__(self, canvas_width: int, canvas_height: int) -> None:
        self.canvas_width = canvas_width
        self.canvas_height = canvas_height

    def scale(self, viewport: ViewportRect) -> float:
        """CSS pixels per logical unit."""
        if viewport.width <= 0 or viewport.height <= 0:
            raise ValidationError(
                f"Viewport must have a positive size, got {viewport.width}x{viewport.height}"
            )
        return min(viewport.width / self.canvas_width, viewport.height / self.canvas_height)

    def device_scale(self, viewport: ViewportRect) -> float:
        """Backing-store pixels per logical unit."""
        return self.scale(viewport) * viewport.device_pixel_ratio

    def offset(self, viewport: ViewportRect) -> tuple[float, float]:
        """Top-left of the letterboxed canvas, in CSS pixels."""
        s = self.scale(viewport)
        return (
            viewport.left + (viewport.width - self.canvas_width * s) / 2,
            viewport.top + (viewport.height - self.canvas_height * s) / 2,
        )

    def to_logical(self, point: Point, viewport: ViewportRect) -> Point:
        s = self.scale(viewport)
        ox, oy = self.offset(viewport)
        return Point((point.x - ox) / s, (point.y - oy) / s)

    def to_viewport(self, point: Point, viewport: ViewportRect) -> Point:
        s = self.scale(viewport)
        ox, oy = self.offset(viewport)
        return Point(ox + point.x * s, oy + point.y * s)

    def from_device(self, point: Point, viewport: ViewportRect) -> Point:
        """Backing-store pixel (relative to the viewport) -> CSS pointer position."""
        dpr = viewport.device_pixel_ratio
        return Point(viewport.left + point.x / dpr, viewport.top + point.y / dpr)

    def to_device(self, point: Point, viewport: ViewportRect) -> Point:
        """Logical point -> backing-store pixel relative to the viewport."""
        css = self.to_viewport(point, viewport)
        dpr = viewport.device_pixel_ratio
        return Point((css.x - viewport.left) * dpr, (css.y - viewport.top) * dpr)

    def backing_store_size(self, viewport: ViewportRect) -> tuple[int, int]:
        dpr = viewport.device_pixel_ratio
        return (round(viewport.width * dpr), round(viewport.height * dpr))

    def canvas_device_size(self, viewport: ViewportRect) -> tuple[int, int]:
        """Size of the letterboxed canvas in backing-store pixels."""
        ds = self.device_scale(viewport)
        return (max(1, round(self.canvas_width * ds)), max(1, round(self.canvas_height * ds)))

    def logical_length(self, css_pixels: float, viewport: ViewportRect) -> float:
        """Logical units covered by a fixed on-screen length (handles, hit radii)."""
        return css_pixels / self.scale(viewport)

    def contains(self, point: Point, viewport: ViewportRect) -> bool:
        logical = self.to_logical(point, viewport)
        return 0 <= logical.x <= self.canvas_width and 0 <= logical.y <= self.canvas_height
