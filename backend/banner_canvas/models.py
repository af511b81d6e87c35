"""Data structures for BannerCanvas."""

from __future__ import annotations

import base64
import uuid
from dataclasses import dataclass, field
from typing import ClassVar, Union

from PIL import Image as PILImage

from .config import Config
from .enums import LayerKind, RenderMode, TextAlign, TextTransform


def new_layer_id() -> str:
    """Return a fresh, session-unique layer id."""
    return f"layer_{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in logical canvas space (before rotation)."""
    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.x2 and self.y <= py <= self.y2


@dataclass(frozen=True)
class TextLayer:
    """A text element. Its box is measured from glyph metrics at draw time."""
    id: str = field(default_factory=new_layer_id)
    x: float = 0.0
    y: float = 0.0
    content: str = ""
    font_size: float = Config.DEFAULT_FONT_SIZE
    font_family: str = Config.DEFAULT_FONT_FAMILY
    font_weight: str = Config.DEFAULT_FONT_WEIGHT
    color: str = Config.DEFAULT_TEXT_COLOR
    text_align: TextAlign = TextAlign.LEFT
    rotation: float = 0.0
    opacity: float = 100.0
    line_height: float = Config.LINE_HEIGHT
    text_transform: TextTransform = TextTransform.NONE
    stroke_color: str | None = None
    stroke_width: int = 0
    shadow_color: str | None = Config.DEFAULT_SHADOW_COLOR
    shadow_blur: float = Config.DEFAULT_SHADOW_BLUR
    shadow_offset_x: float = 0.0
    shadow_offset_y: float = 0.0

    kind: ClassVar[LayerKind] = LayerKind.TEXT

    @property
    def display_text(self) -> str:
        """Content with the text transform applied."""
        if self.text_transform is TextTransform.UPPERCASE:
            return self.content.upper()
        if self.text_transform is TextTransform.LOWERCASE:
            return self.content.lower()
        if self.text_transform is TextTransform.CAPITALIZE:
            return " ".join(word[:1].upper() + word[1:] for word in self.content.split(" "))
        return self.content


@dataclass(frozen=True)
class ImageLayer:
    """A bitmap element with an explicit box."""
    id: str = field(default_factory=new_layer_id)
    x: float = 0.0
    y: float = 0.0
    width: float = Config.DEFAULT_IMAGE_SIZE
    height: float = Config.DEFAULT_IMAGE_SIZE
    content: str = ""
    rotation: float = 0.0
    opacity: float = 100.0

    kind: ClassVar[LayerKind] = LayerKind.IMAGE


Layer = Union[TextLayer, ImageLayer]


@dataclass(frozen=True)
class ProfileTransform:
    """Offset (logical units) and scale applied to the default avatar placement."""
    x: float = 0.0
    y: float = 0.0
    scale: float = 1.0


@dataclass(frozen=True)
class SceneSnapshot:
    """Immutable view of the Scene Store at one version."""
    width: int
    height: int
    layers: tuple[Layer, ...] = ()
    background: str | None = None
    profile_source: str | None = None
    profile_transform: ProfileTransform = ProfileTransform()
    selected_id: str | None = None
    version: int = 0

    def get(self, layer_id: str | None) -> Layer | None:
        if layer_id is None:
            return None
        for layer in self.layers:
            if layer.id == layer_id:
                return layer
        return None

    def required_sources(self) -> set[str]:
        """Sources that must be decoded for a complete export."""
        sources = {layer.content for layer in self.layers if isinstance(layer, ImageLayer) and layer.content}
        if self.background:
            sources.add(self.background)
        return sources

    def sources(self) -> set[str]:
        """Every bitmap source referenced, including the profile guide."""
        sources = self.required_sources()
        if self.profile_source:
            sources.add(self.profile_source)
        return sources

    def font_families(self) -> set[str]:
        return {layer.font_family for layer in self.layers if isinstance(layer, TextLayer)}


@dataclass(frozen=True)
class RenderOptions:
    """Edit-mode presentation options. Ignored entirely in export mode."""
    show_safe_zones: bool = False
    selected_id: str | None = None
    show_profile: bool = True
    center_guides: frozenset = frozenset()
    chrome_scale: float = 1.0


@dataclass
class RenderResult:
    """Rendered frame plus the layers that could not be painted."""
    image: PILImage.Image
    mode: RenderMode
    skipped: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ExportedImage:
    """Encoded export artifact."""
    data: bytes
    width: int
    height: int
    fmt: str = "PNG"

    @property
    def mime_type(self) -> str:
        return f"image/{self.fmt.lower()}"

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.to_base64()}"


@dataclass
class ReadinessReport:
    """Outcome of an Asset Loader readiness pass."""
    ready: set[str] = field(default_factory=set)
    pending: set[str] = field(default_factory=set)
    broken: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.pending and not self.broken

    @property
    def warnings(self) -> list[str]:
        return [f"Could not decode '{_short(src)}': {err}" for src, err in sorted(self.broken.items())]


def _short(source: str, limit: int = 60) -> str:
    return source if len(source) <= limit else source[:limit] + "..."
