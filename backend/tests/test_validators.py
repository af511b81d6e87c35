"""Tests for input validation and transform clamping."""

import math

import pytest

from backend.banner_canvas.enums import TextAlign
from backend.banner_canvas.exceptions import InvalidTransformError, ValidationError
from backend.banner_canvas.models import ImageLayer, ProfileTransform, TextLayer
from backend.banner_canvas.validators import (
    clamp_number,
    sanitize_layer_changes,
    sanitize_new_layer,
    sanitize_profile_transform,
    validate_canvas_size,
    validate_color,
)


class TestValidateCanvasSize:
    def test_default_banner(self):
        validate_canvas_size(1584, 396)  # No exception

    def test_other_four_to_one_size(self):
        validate_canvas_size(800, 200)

    def test_wrong_aspect_rejected(self):
        with pytest.raises(ValidationError, match="aspect"):
            validate_canvas_size(1080, 1080)

    def test_zero_rejected(self):
        with pytest.raises(ValidationError, match="positive"):
            validate_canvas_size(0, 396)

    def test_oversized_rejected(self):
        with pytest.raises(ValidationError, match="exceed maximum"):
            validate_canvas_size(40000, 10000)


class TestValidateColor:
    def test_hex_and_names(self):
        assert validate_color("#ff0000") == "#ff0000"
        assert validate_color("white") == "white"
        assert validate_color("#00000080") == "#00000080"

    def test_garbage_rejected(self):
        with pytest.raises(ValidationError, match="Invalid color"):
            validate_color("not-a-color")


class TestClampNumber:
    def test_in_range_unchanged(self):
        assert clamp_number("width", 50, 100, 20) == 50

    def test_below_minimum_clamped(self):
        assert clamp_number("width", 5, 100, 20) == 20

    def test_nan_keeps_fallback(self):
        assert clamp_number("width", math.nan, 100, 20) == 100

    def test_infinity_keeps_fallback(self):
        assert clamp_number("x", math.inf, 7) == 7

    def test_non_number_keeps_fallback(self):
        assert clamp_number("x", "12", 7) == 7
        assert clamp_number("x", True, 7) == 7

    def test_strict_raises(self):
        with pytest.raises(InvalidTransformError):
            clamp_number("width", -1, 100, 20, strict=True)
        with pytest.raises(InvalidTransformError):
            clamp_number("width", math.nan, 100, 20, strict=True)


class TestSanitizeLayerChanges:
    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError, match="font_size"):
            sanitize_layer_changes(ImageLayer(), {"font_size": 40})

    def test_negative_size_clamped_to_minimum(self):
        clean = sanitize_layer_changes(ImageLayer(), {"width": -30, "height": 10})
        assert clean == {"width": 20.0, "height": 20.0}

    def test_nan_dimension_keeps_previous(self):
        clean = sanitize_layer_changes(ImageLayer(width=250), {"width": math.nan})
        assert clean == {"width": 250.0}

    def test_font_size_bounds(self):
        assert sanitize_layer_changes(TextLayer(), {"font_size": 2})["font_size"] == 12
        assert sanitize_layer_changes(TextLayer(), {"font_size": 5000})["font_size"] == 1000

    def test_opacity_bounds(self):
        assert sanitize_layer_changes(TextLayer(), {"opacity": 140})["opacity"] == 100

    def test_stroke_width_is_integer(self):
        assert sanitize_layer_changes(TextLayer(), {"stroke_width": 2.6})["stroke_width"] == 3

    def test_enum_strings_coerced(self):
        clean = sanitize_layer_changes(TextLayer(), {"text_align": "center"})
        assert clean["text_align"] is TextAlign.CENTER

    def test_bad_enum_rejected(self):
        with pytest.raises(ValidationError, match="Allowed"):
            sanitize_layer_changes(TextLayer(), {"text_align": "justify"})

    def test_nullable_colors(self):
        assert sanitize_layer_changes(TextLayer(), {"shadow_color": None}) == {"shadow_color": None}
        with pytest.raises(ValidationError):
            sanitize_layer_changes(TextLayer(), {"color": None})

    def test_content_must_be_string(self):
        with pytest.raises(ValidationError, match="string"):
            sanitize_layer_changes(TextLayer(), {"content": 42})

    def test_new_layer_is_clamped(self):
        clean = sanitize_new_layer(ImageLayer(width=5, height=math.nan))
        assert clean["width"] == 20
        assert clean["height"] == ImageLayer().height


class TestSanitizeProfileTransform:
    def test_scale_clamped(self):
        assert sanitize_profile_transform(ProfileTransform(scale=0.1)).scale == 0.5
        assert sanitize_profile_transform(ProfileTransform(scale=12)).scale == 5.0

    def test_nan_offset_keeps_current(self):
        current = ProfileTransform(x=10, y=5, scale=1.2)
        clean = sanitize_profile_transform(ProfileTransform(x=math.nan, y=8, scale=1.2), current)
        assert clean == ProfileTransform(x=10, y=8, scale=1.2)
