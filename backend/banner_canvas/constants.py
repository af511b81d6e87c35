"""Shared constants for BannerCanvas."""

from __future__ import annotations

from dataclasses import fields

from .enums import HandleType
from .models import ImageLayer, TextLayer

# Fields an update command may change, per layer variant
TEXT_LAYER_FIELDS = frozenset(f.name for f in fields(TextLayer)) - {"id"}
IMAGE_LAYER_FIELDS = frozenset(f.name for f in fields(ImageLayer)) - {"id"}

CORNER_HANDLES = (HandleType.NW, HandleType.NE, HandleType.SW, HandleType.SE)
EDGE_HANDLES = (HandleType.N, HandleType.S, HandleType.E, HandleType.W)

# Hit-test priority: rotation first, then corners, then edges
HANDLE_PRIORITY = (HandleType.ROTATE, *CORNER_HANDLES, *EDGE_HANDLES)

# Normalized position of each handle on the unrotated box, (-1, -1) = top-left
HANDLE_POSITIONS = {
    HandleType.NW: (-1, -1),
    HandleType.NE: (1, -1),
    HandleType.SW: (-1, 1),
    HandleType.SE: (1, 1),
    HandleType.N: (0, -1),
    HandleType.S: (0, 1),
    HandleType.E: (1, 0),
    HandleType.W: (-1, 0),
}

HANDLE_CURSORS = {
    HandleType.NW: "nwse-resize",
    HandleType.SE: "nwse-resize",
    HandleType.NE: "nesw-resize",
    HandleType.SW: "nesw-resize",
    HandleType.N: "ns-resize",
    HandleType.S: "ns-resize",
    HandleType.E: "ew-resize",
    HandleType.W: "ew-resize",
    HandleType.ROTATE: "grab",
}

# Supported remote source schemes
REMOTE_SCHEMES = ("http://", "https://")
DATA_URI_PREFIX = "data:"

EXPORT_FORMATS = frozenset({"PNG", "JPEG", "WEBP"})
