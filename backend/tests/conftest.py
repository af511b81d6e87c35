"""Shared pytest fixtures for BannerCanvas tests."""

from __future__ import annotations

import pytest
from PIL import Image

from backend.banner_canvas.assets.fonts import FontRegistry
from backend.banner_canvas.engine import BannerCanvasEngine, create_engine
from backend.banner_canvas.exceptions import AssetDecodeError
from backend.banner_canvas.rendering.renderer import Renderer
from backend.banner_canvas.rendering.text import TextMeasurer
from backend.banner_canvas.scene.store import SceneStore
from backend.banner_canvas.viewport import CoordinateMapper, ViewportRect

WIDTH = 1584
HEIGHT = 396

# Source name -> solid color; anything starting with "broken:" fails to decode
SOLID_SOURCES = {
    "red": (255, 0, 0, 255),
    "green": (0, 255, 0, 255),
    "blue": (0, 0, 255, 255),
    "yellow": (255, 255, 0, 255),
}


def solid_decoder(source: str) -> Image.Image:
    """Synchronous decoder turning a color name into a 64x64 bitmap."""
    if source.startswith("broken:") or source not in SOLID_SOURCES:
        raise AssetDecodeError(f"cannot decode {source}")
    return Image.new("RGBA", (64, 64), SOLID_SOURCES[source])


@pytest.fixture
def fonts() -> FontRegistry:
    """Font registry that never touches system fonts (deterministic metrics)."""
    return FontRegistry(search_system=False)


@pytest.fixture
def measurer(fonts: FontRegistry) -> TextMeasurer:
    return TextMeasurer(fonts)


@pytest.fixture
def renderer(measurer: TextMeasurer) -> Renderer:
    return Renderer(measurer)


@pytest.fixture
def store(measurer: TextMeasurer) -> SceneStore:
    return SceneStore(WIDTH, HEIGHT, measure=measurer.size_of)


@pytest.fixture
def mapper() -> CoordinateMapper:
    return CoordinateMapper(WIDTH, HEIGHT)


@pytest.fixture
def identity_viewport() -> ViewportRect:
    """Viewport exactly the logical size: CSS pixels equal logical units."""
    return ViewportRect(WIDTH, HEIGHT)


@pytest.fixture
def engine(fonts: FontRegistry) -> BannerCanvasEngine:
    return create_engine(decoder=solid_decoder, fonts=fonts)


@pytest.fixture
def solid_assets() -> dict[str, Image.Image]:
    """Decoded bitmaps keyed by source, for driving the Renderer directly."""
    return {name: Image.new("RGBA", (64, 64), color) for name, color in SOLID_SOURCES.items()}


@pytest.fixture
def decoder():
    return solid_decoder
