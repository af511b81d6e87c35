"""Renderer: scene snapshot + decoded bitmaps -> pixels, in edit or export mode."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from PIL import Image

from ..config import Config
from ..enums import RenderMode
from ..models import ImageLayer, Layer, RenderOptions, RenderResult, SceneSnapshot, TextLayer
from .overlays import (
    composite_at,
    draw_center_guides,
    draw_profile_overlay,
    draw_safe_zones,
    draw_selection,
    rotated_tile_origin,
)
from .resize import apply_opacity, cover_fit, high_quality_resize
from .text import TextMeasurer

logger = logging.getLogger("bannercanvas.rendering")


class Renderer:
    """Paint a scene snapshot.

    Draw order, bottom to top: background (cover-fit or a neutral fill),
    layers in array order, then in edit mode only the profile overlay,
    safe-zone guides, center guides and selection chrome. Output depends
    only on the arguments, so identical inputs give identical pixels.
    """

    def __init__(self, measurer: TextMeasurer) -> None:
        self.measurer = measurer

    def render(
        self,
        snapshot: SceneSnapshot,
        assets: Mapping[str, Image.Image],
        mode: RenderMode = RenderMode.EDIT,
        options: RenderOptions | None = None,
    ) -> RenderResult:
        """Render ``snapshot`` at its logical size.

        Args:
            snapshot: Scene to paint.
            assets: Decoded bitmaps keyed by source string.
            mode: EDIT for the interactive view, EXPORT for the clean artifact.
            options: Edit-mode presentation; ignored in export mode.

        Returns:
            RenderResult with an RGBA image of exactly ``width x height``.
        """
        options = options or RenderOptions()
        size = (snapshot.width, snapshot.height)
        result = RenderResult(image=Image.new("RGBA", size, (0, 0, 0, 0)), mode=mode)

        self._paint_background(result, snapshot, assets)

        for layer in snapshot.layers:
            self._paint_layer(result, layer, assets)

        if mode is RenderMode.EDIT:
            self._paint_chrome(result, snapshot, assets, options)

        for message in result.warnings:
            logger.debug(message)
        return result

    def _paint_background(
        self,
        result: RenderResult,
        snapshot: SceneSnapshot,
        assets: Mapping[str, Image.Image],
    ) -> None:
        canvas = result.image
        if not snapshot.background:
            canvas.paste((*Config.DEFAULT_BACKGROUND_COLOR, 255), (0, 0, *canvas.size))
            return

        bitmap = assets.get(snapshot.background)
        canvas.paste((*Config.PENDING_BACKGROUND_COLOR, 255), (0, 0, *canvas.size))
        if bitmap is None:
            result.skipped.append("background")
            result.warnings.append("Background not decoded; painted neutral fill")
            return
        composite_at(canvas, cover_fit(bitmap, canvas.size), 0, 0)

    def _paint_layer(
        self,
        result: RenderResult,
        layer: Layer,
        assets: Mapping[str, Image.Image],
    ) -> None:
        box = self.measurer.box(layer)
        if isinstance(layer, TextLayer):
            tile, pad = self.measurer.render_tile(layer)
        else:
            tile = self._image_tile(layer, assets)
            pad = 0
            if tile is None:
                result.skipped.append(layer.id)
                result.warnings.append(f"Layer '{layer.id}' skipped: image not decoded")
                return

        if layer.rotation % 360:
            # Rotate about the tile center, which is the box center
            tile = tile.rotate(-layer.rotation, resample=Config.ROTATE_QUALITY, expand=True)
            left, top = rotated_tile_origin(box.center, tile)
        else:
            left, top = round(box.x) - pad, round(box.y) - pad
        composite_at(result.image, tile, left, top)

    @staticmethod
    def _image_tile(layer: ImageLayer, assets: Mapping[str, Image.Image]) -> Image.Image | None:
        bitmap = assets.get(layer.content)
        if bitmap is None:
            return None
        size = (max(1, round(layer.width)), max(1, round(layer.height)))
        return apply_opacity(high_quality_resize(bitmap, size), layer.opacity)

    def _paint_chrome(
        self,
        result: RenderResult,
        snapshot: SceneSnapshot,
        assets: Mapping[str, Image.Image],
        options: RenderOptions,
    ) -> None:
        canvas = result.image
        scale = options.chrome_scale

        if options.show_profile and snapshot.profile_source:
            bitmap = assets.get(snapshot.profile_source)
            if bitmap is not None:
                draw_profile_overlay(canvas, bitmap, snapshot.profile_transform, scale)
            else:
                result.warnings.append("Profile overlay not decoded")

        if options.show_safe_zones:
            draw_safe_zones(canvas, self.measurer.fonts, scale)

        if options.center_guides:
            draw_center_guides(canvas, options.center_guides, scale)

        selected = snapshot.get(options.selected_id)
        if selected is not None:
            draw_selection(canvas, self.measurer.box(selected), selected.rotation, scale)
