"""Global configuration for BannerCanvas."""

from __future__ import annotations

from PIL import Image


class Config:
    """Global configuration."""

    # Canvas (logical units, 4:1)
    CANVAS_WIDTH = 1584
    CANVAS_HEIGHT = 396
    ASPECT_RATIO = 4.0
    MAX_CANVAS_SIZE = 8192

    # Fills
    DEFAULT_BACKGROUND_COLOR = (0, 115, 177)
    PENDING_BACKGROUND_COLOR = (243, 244, 246)

    # Handles and hit-testing (CSS pixels, converted through the viewport scale)
    HANDLE_SIZE = 20
    HANDLE_HIT_RADIUS = 20
    ROTATION_HANDLE_DISTANCE = 30
    ROTATION_HANDLE_RADIUS = 6
    CLICK_THRESHOLD = 3

    # Layer limits
    MIN_LAYER_SIZE = 20
    MIN_FONT_SIZE = 12
    MAX_FONT_SIZE = 1000
    DEFAULT_IMAGE_SIZE = 100

    # Typography
    DEFAULT_FONT_SIZE = 48
    DEFAULT_FONT_FAMILY = "Inter"
    DEFAULT_FONT_WEIGHT = "bold"
    DEFAULT_TEXT_COLOR = "#ffffff"
    DEFAULT_SHADOW_COLOR = "#00000080"
    DEFAULT_SHADOW_BLUR = 4
    LINE_HEIGHT = 1.2

    # Center guides while dragging
    CENTER_GUIDE_TOLERANCE = 8
    CENTER_GUIDE_COLOR = (236, 72, 153, 255)

    # Profile overlay (relative to canvas width / height)
    PROFILE_CENTER_RATIO = (0.1931, 1.0)
    PROFILE_DIAMETER_RATIO = 0.2083
    PROFILE_BORDER_WIDTH = 4
    PROFILE_MIN_SCALE = 0.5
    PROFILE_MAX_SCALE = 5.0

    # Safe-zone guides, measured on the 1584x396 reference banner
    SAFE_ZONE_REFERENCE_SIZE = (1584, 396)
    SAFE_ZONE_LEFT_MARGIN = 44
    SAFE_ZONE_BLOCK_WIDTH = 524
    SAFE_ZONE_TOP_MARGIN = 132
    SAFE_ZONE_LINE_WIDTH = 2
    SAFE_ZONE_DASH = (10, 6)
    SAFE_ZONE_LABEL_SIZE = 18

    # Selection chrome
    SELECTION_COLOR = (59, 130, 246, 255)
    SELECTION_DASH = (4, 4)

    # Wheel sensitivity
    LAYER_WHEEL_SENSITIVITY = 0.001
    PROFILE_WHEEL_SENSITIVITY = 0.002

    # Quality
    RESIZE_QUALITY = Image.Resampling.LANCZOS
    ROTATE_QUALITY = Image.Resampling.BICUBIC
    GAMMA = 2.2

    # Remote sources
    FETCH_TIMEOUT = 30
