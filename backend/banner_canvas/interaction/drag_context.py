"""Gesture state for the interaction controller.

One object per in-flight gesture instead of a set of boolean flags.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..enums import HandleType, InteractionState
from ..models import BoundingBox, Layer, Point, ProfileTransform


@dataclass
class DragContext:
    """Everything captured at pointer-down, plus the uncommitted draft."""
    state: InteractionState
    pointer_id: int
    start_screen: Point
    start: Point  # logical
    last: Point  # logical, updated on every move
    layer_id: str | None = None
    initial_layer: Layer | None = None
    initial_box: BoundingBox | None = None
    handle: HandleType | None = None
    start_angle: float = 0.0
    initial_profile: ProfileTransform | None = None
    moved: bool = False
    # Field -> value to commit on pointer-up
    draft: dict[str, Any] = field(default_factory=dict)
