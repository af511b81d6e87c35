"""Enumerations shared across the canvas engine."""

from __future__ import annotations

from enum import Enum


class LayerKind(Enum):
    """Layer variants."""
    TEXT = "text"
    IMAGE = "image"


class TextAlign(Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class TextTransform(Enum):
    NONE = "none"
    UPPERCASE = "uppercase"
    LOWERCASE = "lowercase"
    CAPITALIZE = "capitalize"


class RenderMode(Enum):
    """Interactive view with chrome, or the clean deliverable."""
    EDIT = "edit"
    EXPORT = "export"


class InteractionState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING = "resizing"
    ROTATING = "rotating"
    DRAGGING_PROFILE = "dragging_profile"


class HandleType(Enum):
    """Selection handles, named by compass direction."""
    NW = "nw"
    NE = "ne"
    SW = "sw"
    SE = "se"
    N = "n"
    S = "s"
    E = "e"
    W = "w"
    ROTATE = "rot"


class Axis(Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class AssetStatus(Enum):
    PENDING = "pending"
    READY = "ready"
    BROKEN = "broken"
