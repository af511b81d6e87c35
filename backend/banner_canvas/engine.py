"""BannerCanvas engine: wires the loader, store, renderer, controller and exporter.

The engine owns one editing session. Hosts drive it through mutation
commands, pointer events and ``render``/``export_image``, and re-render when
a subscriber is told the scene changed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractContextManager
from typing import Any, NamedTuple

from .assets.decode import decode_source
from .assets.fonts import FontRegistry
from .assets.loader import AssetLoader, Decoder
from .config import Config
from .enums import Axis, InteractionState, RenderMode
from .exceptions import LayerNotFoundError
from .export import ExportSerializer
from .interaction.controller import InteractionController, PointerEvent
from .models import (
    ExportedImage,
    ImageLayer,
    Layer,
    ProfileTransform,
    ReadinessReport,
    RenderOptions,
    RenderResult,
    SceneSnapshot,
)
from .rendering.renderer import Renderer
from .rendering.resize import high_quality_resize
from .rendering.text import TextMeasurer
from .scene.store import Listener, SceneStore
from .validators import validate_canvas_size
from .viewport import CoordinateMapper, ViewportRect

logger = logging.getLogger("bannercanvas.engine")

BACKGROUND_SLOT = "background"
PROFILE_SLOT = "profile"


def layer_slot(layer_id: str) -> str:
    return f"layer:{layer_id}"


class CanvasHandle(NamedTuple):
    """Narrow capability handed to a host: paint, export and observe."""
    render: Callable[..., RenderResult]
    export_image: Callable[..., ExportedImage]
    subscribe: Callable[[Listener], Callable[[], None]]


class BannerCanvasEngine:
    """One banner editing session."""

    def __init__(
        self,
        width: int = Config.CANVAS_WIDTH,
        height: int = Config.CANVAS_HEIGHT,
        decoder: Decoder | None = None,
        fonts: FontRegistry | None = None,
    ) -> None:
        validate_canvas_size(width, height)
        self.width = width
        self.height = height
        self.fonts = fonts or FontRegistry()
        self.loader = AssetLoader(decoder or decode_source, self.fonts)
        self.measurer = TextMeasurer(self.fonts)
        self.store = SceneStore(width, height, measure=self.measurer.size_of)
        self.renderer = Renderer(self.measurer)
        self.mapper = CoordinateMapper(width, height)
        self.controller = InteractionController(self.store, self.measurer, self.mapper)
        self.serializer = ExportSerializer(self.store, self.loader, self.renderer)
        self.show_safe_zones = False
        logger.info("Created %dx%d banner canvas", width, height)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def snapshot(self) -> SceneSnapshot:
        return self.store.snapshot()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.store.subscribe(listener)

    def batch(self) -> AbstractContextManager[None]:
        return self.store.batch()

    # ------------------------------------------------------------------
    # Mutation commands
    # ------------------------------------------------------------------

    def add_layer(self, layer: Layer, select: bool = True) -> Layer:
        layer = self.store.add_layer(layer, select=select)
        if isinstance(layer, ImageLayer):
            self.loader.claim(layer_slot(layer.id), layer.content or None)
        return layer

    def update_layer(self, layer_id: str, changes: dict[str, Any] | None = None, **fields: Any) -> Layer:
        previous = self.store.get_layer(layer_id)
        layer = self.store.update_layer(layer_id, changes, **fields)
        if isinstance(layer, ImageLayer) and layer.content != previous.content:
            self.loader.claim(layer_slot(layer_id), layer.content or None)
        return layer

    def delete_layer(self, layer_id: str) -> None:
        self.store.delete_layer(layer_id)
        self.loader.release(layer_slot(layer_id))

    def center_layer(self, layer_id: str, axis: Axis | str) -> Layer:
        return self.store.center_layer(layer_id, axis)

    def move_layer(self, layer_id: str, index: int) -> None:
        self.store.move_layer(layer_id, index)

    def bring_forward(self, layer_id: str) -> None:
        self.store.bring_forward(layer_id)

    def send_backward(self, layer_id: str) -> None:
        self.store.send_backward(layer_id)

    def bring_to_front(self, layer_id: str) -> None:
        self.store.bring_to_front(layer_id)

    def send_to_back(self, layer_id: str) -> None:
        self.store.send_to_back(layer_id)

    def set_background(self, source: str | None) -> None:
        self.loader.claim(BACKGROUND_SLOT, source or None)
        self.store.set_background(source)

    def set_profile_overlay(self, source: str | None) -> None:
        self.loader.claim(PROFILE_SLOT, source or None)
        self.store.set_profile_overlay(source)

    def set_profile_transform(self, transform: ProfileTransform | dict[str, float]) -> ProfileTransform:
        return self.store.set_profile_transform(transform)

    def set_selection(self, layer_id: str | None) -> None:
        self.store.set_selection(layer_id)

    # ------------------------------------------------------------------
    # Asset readiness
    # ------------------------------------------------------------------

    async def prepare(self) -> ReadinessReport:
        """Decode everything the scene references and load its fonts."""
        snapshot = self.store.snapshot()
        sources = snapshot.sources()
        report = await self.loader.ensure_ready(sources, snapshot.font_families())
        self.loader.retain(self.store.snapshot().sources())
        for warning in report.warnings:
            logger.warning(warning)
        return report

    async def replace_background(self, source: str | None) -> bool:
        """Decode ``source`` and then make it the background.

        A later replacement supersedes this one: if another call claimed
        the background slot while this decode was in flight, nothing is
        committed and False is returned.
        """
        generation = self.loader.claim(BACKGROUND_SLOT, source or None)
        if source:
            await self.loader.load(source)
        if not self.loader.is_current(BACKGROUND_SLOT, generation):
            logger.debug("Background replacement %d superseded", generation)
            return False
        self.store.set_background(source)
        return True

    async def replace_layer_content(self, layer_id: str, source: str) -> bool:
        """Decode ``source`` and then swap it into an image layer."""
        self.store.get_layer(layer_id)
        slot = layer_slot(layer_id)
        generation = self.loader.claim(slot, source)
        await self.loader.load(source)
        if not self.loader.is_current(slot, generation):
            logger.debug("Content replacement for %s superseded", layer_id)
            return False
        try:
            self.store.update_layer(layer_id, content=source)
        except LayerNotFoundError:
            self.loader.release(slot)
            return False
        return True

    # ------------------------------------------------------------------
    # Rendering and export
    # ------------------------------------------------------------------

    def render(
        self,
        mode: RenderMode | str = RenderMode.EDIT,
        options: RenderOptions | None = None,
        viewport: ViewportRect | None = None,
    ) -> RenderResult:
        """Paint the current scene, including any in-flight gesture.

        Without a viewport the frame is ``width x height``; with one it is
        resampled to the canvas's backing-store size on that viewport.
        """
        mode = RenderMode(mode)
        snapshot = self.controller.preview(self.store.snapshot())
        if options is None:
            chrome_scale = 1.0
            if viewport is not None:
                chrome_scale = 1 / self.mapper.scale(viewport)
            options = RenderOptions(
                show_safe_zones=self.show_safe_zones,
                selected_id=snapshot.selected_id,
                show_profile=self.controller.profile_enabled,
                center_guides=self.controller.center_guides,
                chrome_scale=chrome_scale,
            )

        result = self.renderer.render(snapshot, self.loader.bitmaps(), mode=mode, options=options)
        if viewport is not None:
            size = self.mapper.canvas_device_size(viewport)
            result.image = high_quality_resize(result.image, size)
        return result

    def export_image(self, fmt: str = "PNG") -> ExportedImage:
        return self.serializer.export_image(fmt)

    # ------------------------------------------------------------------
    # Pointer input
    # ------------------------------------------------------------------

    @property
    def interaction_state(self) -> InteractionState:
        return self.controller.state

    def set_viewport(self, viewport: ViewportRect) -> None:
        self.controller.set_viewport(viewport)

    def pointer_down(self, event: PointerEvent) -> InteractionState:
        return self.controller.pointer_down(event)

    def pointer_move(self, event: PointerEvent) -> InteractionState:
        return self.controller.pointer_move(event)

    def pointer_up(self, event: PointerEvent | None = None) -> InteractionState:
        return self.controller.pointer_up(event)

    def pointer_cancel(self, event: PointerEvent | None = None) -> InteractionState:
        return self.controller.pointer_cancel(event)

    def wheel(self, event: PointerEvent, delta_y: float) -> bool:
        return self.controller.wheel(event, delta_y)

    def cursor_at(self, event: PointerEvent) -> str:
        return self.controller.cursor_at(event)

    def handle(self) -> CanvasHandle:
        return CanvasHandle(render=self.render, export_image=self.export_image, subscribe=self.subscribe)


def create_engine(
    width: int = Config.CANVAS_WIDTH,
    height: int = Config.CANVAS_HEIGHT,
    *,
    decoder: Decoder | None = None,
    fonts: FontRegistry | None = None,
) -> BannerCanvasEngine:
    """Create an engine for one editing session."""
    return BannerCanvasEngine(width, height, decoder=decoder, fonts=fonts)
