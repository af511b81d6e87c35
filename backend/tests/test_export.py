"""Tests for the Export Serializer and the engine capability object."""

import io

import numpy as np
import pytest
from PIL import Image

from backend.banner_canvas.config import Config
from backend.banner_canvas.engine import CanvasHandle, create_engine
from backend.banner_canvas.enums import InteractionState, RenderMode
from backend.banner_canvas.exceptions import ExportBlockedError, ValidationError
from backend.banner_canvas.interaction.controller import PointerEvent
from backend.banner_canvas.models import ImageLayer, TextLayer
from backend.banner_canvas.viewport import ViewportRect


def decode(exported) -> np.ndarray:
    return np.asarray(Image.open(io.BytesIO(exported.data)).convert("RGB"))


class TestExportImage:
    def test_empty_scene_exports_default_fill(self, engine):
        exported = engine.export_image()
        assert (exported.width, exported.height) == (1584, 396)
        arr = decode(exported)
        assert arr.shape == (396, 1584, 3)
        assert (arr == np.array(Config.DEFAULT_BACKGROUND_COLOR, dtype=np.uint8)).all()

    def test_data_url(self, engine):
        exported = engine.export_image()
        assert exported.mime_type == "image/png"
        assert exported.to_data_url().startswith("data:image/png;base64,")

    @pytest.mark.asyncio
    async def test_profile_overlay_never_exported(self, engine):
        engine.add_layer(ImageLayer(x=200, y=50, width=150, height=150, content="blue"))
        engine.add_layer(TextLayer(x=400, y=120, content="Launch day"))
        await engine.prepare()
        without = engine.export_image().data

        engine.set_profile_overlay("yellow")
        engine.set_profile_transform({"x": 10, "y": 5, "scale": 1.2})
        await engine.prepare()
        with_profile = engine.export_image().data

        assert with_profile == without

    @pytest.mark.asyncio
    async def test_export_ignores_selection_and_safe_zones(self, engine):
        layer = engine.add_layer(ImageLayer(x=200, y=50, width=150, height=150, content="red"))
        await engine.prepare()
        engine.set_selection(None)
        plain = engine.export_image().data

        engine.set_selection(layer.id)
        engine.show_safe_zones = True
        assert engine.export_image().data == plain

    def test_blocked_while_background_pending(self, engine):
        engine.set_background("red")
        with pytest.raises(ExportBlockedError, match="still loading") as info:
            engine.export_image()
        assert info.value.pending == ["red"]
        assert info.value.broken == []

    @pytest.mark.asyncio
    async def test_blocked_by_broken_layer_then_recovers(self, engine):
        layer = engine.add_layer(ImageLayer(content="broken:logo"))
        report = await engine.prepare()
        assert set(report.broken) == {"broken:logo"}

        with pytest.raises(ExportBlockedError, match="failed to decode") as info:
            engine.export_image()
        assert info.value.broken == ["broken:logo"]

        engine.delete_layer(layer.id)
        assert engine.export_image().width == 1584

    @pytest.mark.asyncio
    async def test_blocked_by_image_layer_without_source(self, engine):
        layer = engine.add_layer(ImageLayer(x=10, y=10, width=100, height=100))
        await engine.prepare()

        with pytest.raises(ExportBlockedError, match="failed to decode") as info:
            engine.export_image()
        assert info.value.broken == [f"{layer.id} (no image source)"]
        assert info.value.pending == []

        assert await engine.replace_layer_content(layer.id, "red")
        assert engine.export_image().width == 1584

    @pytest.mark.asyncio
    async def test_ready_background_exports(self, engine):
        engine.set_background("green")
        await engine.prepare()
        arr = decode(engine.export_image())
        assert (arr == np.array([0, 255, 0], dtype=np.uint8)).all()

    def test_size_independent_of_viewport(self, engine):
        engine.set_viewport(ViewportRect(396, 99))
        assert engine.render(viewport=ViewportRect(396, 99)).image.size == (396, 99)
        exported = engine.export_image()
        assert (exported.width, exported.height) == (1584, 396)

    def test_jpeg_export(self, engine):
        exported = engine.export_image("jpg")
        assert exported.fmt == "JPEG"
        assert Image.open(io.BytesIO(exported.data)).format == "JPEG"

    def test_unsupported_format(self, engine):
        with pytest.raises(ValidationError, match="Unsupported"):
            engine.export_image("gif")


class TestEngine:
    def test_wrong_aspect_rejected(self, fonts):
        with pytest.raises(ValidationError):
            create_engine(1000, 1000, fonts=fonts)

    def test_handle_capability(self, engine):
        handle = engine.handle()
        assert isinstance(handle, CanvasHandle)
        received = []
        unsubscribe = handle.subscribe(received.append)
        engine.add_layer(ImageLayer(content="red"))
        unsubscribe()
        engine.add_layer(ImageLayer(content="blue"))
        assert len(received) == 1
        assert handle.render(RenderMode.EXPORT).image.size == (1584, 396)

    def test_render_at_device_resolution(self, engine):
        viewport = ViewportRect(792, 198, device_pixel_ratio=2)
        assert engine.render(viewport=viewport).image.size == (1584, 396)
        assert engine.render("export", viewport=ViewportRect(800, 800)).image.size == (800, 200)

    @pytest.mark.asyncio
    async def test_render_shows_gesture_in_flight(self, engine):
        engine.add_layer(ImageLayer(id="a", x=100, y=100, width=100, height=100, content="red"))
        await engine.prepare()
        engine.pointer_down(PointerEvent(150, 150))
        assert engine.interaction_state is InteractionState.DRAGGING
        engine.pointer_move(PointerEvent(450, 150))

        frame = np.asarray(engine.render(RenderMode.EXPORT).image)
        assert tuple(frame[150, 450]) == (255, 0, 0, 255)
        assert engine.snapshot().get("a").x == 100

        engine.pointer_up(PointerEvent(450, 150))
        assert engine.snapshot().get("a").x == 400

    @pytest.mark.asyncio
    async def test_replace_layer_content(self, engine):
        layer = engine.add_layer(ImageLayer(content="red"))
        assert await engine.replace_layer_content(layer.id, "blue")
        assert engine.snapshot().get(layer.id).content == "blue"
        assert engine.loader.get("blue") is not None

    @pytest.mark.asyncio
    async def test_prepare_drops_replaced_sources(self, engine):
        engine.set_background("red")
        await engine.prepare()
        engine.set_background("blue")
        await engine.prepare()
        assert engine.loader.get("red") is None
        assert engine.loader.get("blue") is not None

    def test_commands_delegate_to_store(self, engine):
        a = engine.add_layer(ImageLayer(width=200, height=100))
        b = engine.add_layer(TextLayer(content="Top"))
        engine.send_to_back(b.id)
        engine.center_layer(a.id, "horizontal")
        snapshot = engine.snapshot()
        assert [layer.id for layer in snapshot.layers] == [b.id, a.id]
        assert snapshot.get(a.id).x == 692
