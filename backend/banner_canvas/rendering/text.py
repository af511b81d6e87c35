"""Text measurement and rasterization for text layers.

A text layer's box is measured from glyph metrics: the widest line's
advance width by ``font_size * line_height`` per line. ``x, y`` is the
box's top-left; each line hangs from its ascender, so the baseline of
line ``i`` sits at ``y + i * font_size * line_height + ascent``.
"""

from __future__ import annotations

import math

from PIL import Image, ImageColor, ImageDraw, ImageFilter, ImageFont

from ..assets.fonts import FontRegistry
from ..enums import TextAlign
from ..models import BoundingBox, ImageLayer, Layer, TextLayer
from .resize import apply_opacity

_ANCHORS = {TextAlign.LEFT: "la", TextAlign.CENTER: "ma", TextAlign.RIGHT: "ra"}


class TextMeasurer:
    """Measures and rasterizes text layers against a font registry."""

    def __init__(self, fonts: FontRegistry) -> None:
        self.fonts = fonts

    def font_for(self, layer: TextLayer) -> ImageFont.FreeTypeFont:
        return self.fonts.get_font(layer.font_family, layer.font_weight, layer.font_size)

    @staticmethod
    def lines(layer: TextLayer) -> list[str]:
        return layer.display_text.split("\n")

    def line_advance(self, layer: TextLayer) -> float:
        return layer.font_size * layer.line_height

    def measure(self, layer: TextLayer) -> tuple[float, float]:
        """(width, height) of the layer's box in logical units."""
        font = self.font_for(layer)
        lines = self.lines(layer)
        width = max((font.getlength(line) for line in lines), default=0.0)
        return (float(width), self.line_advance(layer) * len(lines))

    def box(self, layer: Layer) -> BoundingBox:
        """Unrotated bounding box of any layer."""
        if isinstance(layer, ImageLayer):
            return BoundingBox(layer.x, layer.y, layer.width, layer.height)
        width, height = self.measure(layer)
        if not layer.display_text.strip():
            # Blank text keeps a one-line square so it can still be grabbed
            width = max(width, self.line_advance(layer))
        return BoundingBox(layer.x, layer.y, width, height)

    def size_of(self, layer: Layer) -> tuple[float, float]:
        box = self.box(layer)
        return (box.width, box.height)

    def render_tile(self, layer: TextLayer) -> tuple[Image.Image, int]:
        """Rasterize the layer unrotated.

        Returns:
            (tile, pad): the tile is the box grown by ``pad`` on every side so
            strokes and shadows are not clipped.
        """
        width, height = self.measure(layer)
        shadow_reach = 0.0
        if layer.shadow_color:
            shadow_reach = layer.shadow_blur * 2 + max(abs(layer.shadow_offset_x), abs(layer.shadow_offset_y))
        pad = int(math.ceil(layer.stroke_width + shadow_reach)) + 2

        size = (int(math.ceil(width)) + 2 * pad, int(math.ceil(height)) + 2 * pad)
        tile = Image.new("RGBA", size, (0, 0, 0, 0))
        if not layer.display_text.strip():
            return tile, pad

        font = self.font_for(layer)
        anchor = _ANCHORS[layer.text_align]
        if layer.text_align is TextAlign.LEFT:
            anchor_x = pad
        elif layer.text_align is TextAlign.CENTER:
            anchor_x = pad + width / 2
        else:
            anchor_x = pad + width

        stroke_fill = ImageColor.getcolor(layer.stroke_color, "RGBA") if layer.stroke_color else None
        stroke_width = layer.stroke_width if stroke_fill else 0

        if layer.shadow_color:
            shadow = Image.new("RGBA", size, (0, 0, 0, 0))
            self._draw_lines(
                shadow,
                layer,
                font,
                anchor,
                anchor_x + layer.shadow_offset_x,
                pad + layer.shadow_offset_y,
                ImageColor.getcolor(layer.shadow_color, "RGBA"),
                stroke_width,
                ImageColor.getcolor(layer.shadow_color, "RGBA") if stroke_width else None,
            )
            if layer.shadow_blur > 0:
                shadow = shadow.filter(ImageFilter.GaussianBlur(layer.shadow_blur / 2))
            tile = Image.alpha_composite(tile, shadow)

        self._draw_lines(
            tile,
            layer,
            font,
            anchor,
            anchor_x,
            pad,
            ImageColor.getcolor(layer.color, "RGBA"),
            stroke_width,
            stroke_fill,
        )
        return apply_opacity(tile, layer.opacity), pad

    def _draw_lines(
        self,
        target: Image.Image,
        layer: TextLayer,
        font: ImageFont.FreeTypeFont,
        anchor: str,
        x: float,
        top: float,
        fill: tuple,
        stroke_width: int,
        stroke_fill: tuple | None,
    ) -> None:
        draw = ImageDraw.Draw(target)
        advance = self.line_advance(layer)
        for index, line in enumerate(self.lines(layer)):
            if not line:
                continue
            draw.text(
                (x, top + index * advance),
                line,
                font=font,
                fill=fill,
                anchor=anchor,
                stroke_width=stroke_width,
                stroke_fill=stroke_fill,
            )
