"""Selection handle geometry and hit-testing.

Handles live on the layer's unrotated box (corners, edge midpoints, and a
rotation knob above the top edge) and are rotated with the layer about its
center, so hit-testing works in canvas space for any rotation.
"""

from __future__ import annotations

from ..constants import HANDLE_POSITIONS, HANDLE_PRIORITY
from ..enums import HandleType
from ..geometry import distance, to_canvas
from ..models import BoundingBox


def handle_positions(
    box: BoundingBox, rotation: float, rotation_distance: float
) -> dict[HandleType, tuple[float, float]]:
    """Canvas-space center of every handle of ``box``."""
    cx, cy = box.center
    half_w = box.width / 2
    half_h = box.height / 2

    positions = {
        handle: to_canvas(cx + nx * half_w, cy + ny * half_h, box, rotation)
        for handle, (nx, ny) in HANDLE_POSITIONS.items()
    }
    positions[HandleType.ROTATE] = to_canvas(cx, box.y - rotation_distance, box, rotation)
    return positions


def hit_handle(
    box: BoundingBox,
    rotation: float,
    x: float,
    y: float,
    hit_radius: float,
    rotation_distance: float,
) -> HandleType | None:
    """Handle under the canvas point (x, y), checked in priority order."""
    positions = handle_positions(box, rotation, rotation_distance)
    for handle in HANDLE_PRIORITY:
        hx, hy = positions[handle]
        if distance(x, y, hx, hy) <= hit_radius:
            return handle
    return None
