"""Input validation and transform clamping for BannerCanvas."""

from __future__ import annotations

import logging
import math
from typing import Any

from PIL import ImageColor

from .config import Config
from .constants import IMAGE_LAYER_FIELDS, TEXT_LAYER_FIELDS
from .enums import TextAlign, TextTransform
from .exceptions import InvalidTransformError, ValidationError
from .models import ImageLayer, Layer, ProfileTransform, TextLayer

logger = logging.getLogger("bannercanvas.validators")

# field -> (minimum, maximum); None means unbounded
_NUMERIC_BOUNDS: dict[str, tuple[float | None, float | None]] = {
    "x": (None, None),
    "y": (None, None),
    "rotation": (None, None),
    "shadow_offset_x": (None, None),
    "shadow_offset_y": (None, None),
    "width": (Config.MIN_LAYER_SIZE, None),
    "height": (Config.MIN_LAYER_SIZE, None),
    "font_size": (Config.MIN_FONT_SIZE, Config.MAX_FONT_SIZE),
    "opacity": (0.0, 100.0),
    "line_height": (0.5, 5.0),
    "stroke_width": (0, 50),
    "shadow_blur": (0.0, 50.0),
}

_COLOR_FIELDS = frozenset({"color", "stroke_color", "shadow_color"})
_NULLABLE_COLORS = frozenset({"stroke_color", "shadow_color"})


def validate_canvas_size(width: int, height: int) -> None:
    """Validate logical canvas dimensions.

    Args:
        width: Canvas width in logical units.
        height: Canvas height in logical units.

    Raises:
        ValidationError: If dimensions are invalid or not 4:1.
    """
    if not isinstance(width, int | float) or not isinstance(height, int | float):
        raise ValidationError(
            f"Dimensions must be numbers, got {type(width).__name__} and {type(height).__name__}"
        )

    if width <= 0 or height <= 0:
        raise ValidationError(f"Dimensions must be positive, got {width}x{height}")
    if width > Config.MAX_CANVAS_SIZE or height > Config.MAX_CANVAS_SIZE:
        raise ValidationError(
            f"Dimensions exceed maximum {Config.MAX_CANVAS_SIZE}, got {width}x{height}"
        )
    if not math.isclose(width / height, Config.ASPECT_RATIO, rel_tol=1e-3):
        raise ValidationError(
            f"Canvas must keep a {Config.ASPECT_RATIO:g}:1 aspect, got {width}x{height}"
        )


def validate_color(value: str, field_name: str = "color") -> str:
    """Return the color unchanged if Pillow can parse it.

    Raises:
        ValidationError: If the color string is not understood.
    """
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a color string, got {type(value).__name__}")
    try:
        ImageColor.getrgb(value)
    except ValueError as e:
        raise ValidationError(f"Invalid {field_name} '{value}': {e}") from e
    return value


def clamp_number(
    name: str,
    value: Any,
    fallback: float,
    minimum: float | None = None,
    maximum: float | None = None,
    strict: bool = False,
) -> float:
    """Clamp a numeric field into its valid range.

    Non-numeric or non-finite values fall back to ``fallback`` (the last
    valid value); out-of-range values snap to the nearest bound.

    Raises:
        InvalidTransformError: In strict mode, instead of clamping.
    """
    if isinstance(value, bool) or not isinstance(value, int | float) or not math.isfinite(value):
        if strict:
            raise InvalidTransformError(f"{name} must be a finite number, got {value!r}")
        logger.warning("Invalid %s=%r, keeping %s", name, value, fallback)
        return fallback

    clamped = value
    if minimum is not None and clamped < minimum:
        clamped = minimum
    if maximum is not None and clamped > maximum:
        clamped = maximum
    if clamped != value:
        if strict:
            raise InvalidTransformError(f"{name}={value} outside [{minimum}, {maximum}]")
        logger.warning("Clamped %s from %s to %s", name, value, clamped)
    return clamped


def sanitize_layer_changes(
    layer: Layer,
    changes: dict[str, Any],
    strict: bool = False,
) -> dict[str, Any]:
    """Validate and clamp a partial update for ``layer``.

    Args:
        layer: Current state of the layer (source of fallback values).
        changes: Field name -> new value.
        strict: Raise InvalidTransformError instead of clamping.

    Returns:
        Clean changes ready for ``dataclasses.replace``.

    Raises:
        ValidationError: On unknown fields, bad colors, or bad enum values.
    """
    allowed = TEXT_LAYER_FIELDS if isinstance(layer, TextLayer) else IMAGE_LAYER_FIELDS
    unknown = set(changes) - allowed
    if unknown:
        raise ValidationError(
            f"Cannot update {', '.join(sorted(unknown))} on a {layer.kind.value} layer"
        )

    clean: dict[str, Any] = {}
    for name, value in changes.items():
        if name in _NUMERIC_BOUNDS:
            low, high = _NUMERIC_BOUNDS[name]
            number = clamp_number(name, value, getattr(layer, name), low, high, strict)
            clean[name] = int(round(number)) if name == "stroke_width" else float(number)
        elif name in _COLOR_FIELDS:
            if value is None and name in _NULLABLE_COLORS:
                clean[name] = None
            else:
                clean[name] = validate_color(value, name)
        elif name == "text_align":
            clean[name] = _coerce_enum(TextAlign, value, name)
        elif name == "text_transform":
            clean[name] = _coerce_enum(TextTransform, value, name)
        elif name in ("content", "font_family", "font_weight"):
            if not isinstance(value, str):
                raise ValidationError(f"{name} must be a string, got {type(value).__name__}")
            clean[name] = value
        else:
            clean[name] = value
    return clean


def sanitize_new_layer(layer: Layer) -> dict[str, Any]:
    """Clamp every field of a layer about to be added, against the defaults."""
    defaults = TextLayer() if isinstance(layer, TextLayer) else ImageLayer()
    allowed = TEXT_LAYER_FIELDS if isinstance(layer, TextLayer) else IMAGE_LAYER_FIELDS
    return sanitize_layer_changes(defaults, {name: getattr(layer, name) for name in allowed})


def sanitize_profile_transform(
    transform: ProfileTransform,
    current: ProfileTransform | None = None,
    strict: bool = False,
) -> ProfileTransform:
    """Clamp a profile transform; scale stays inside the configured range."""
    current = current or ProfileTransform()
    return ProfileTransform(
        x=float(clamp_number("profile.x", transform.x, current.x, strict=strict)),
        y=float(clamp_number("profile.y", transform.y, current.y, strict=strict)),
        scale=float(
            clamp_number(
                "profile.scale",
                transform.scale,
                current.scale,
                Config.PROFILE_MIN_SCALE,
                Config.PROFILE_MAX_SCALE,
                strict,
            )
        ),
    )


def _coerce_enum(enum_cls: type, value: Any, name: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as e:
        choices = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {name} '{value}'. Allowed: {choices}") from e
