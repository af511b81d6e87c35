"""Export Serializer: render the clean artifact and encode it."""

from __future__ import annotations

import io
import logging

from .assets.loader import AssetLoader
from .constants import EXPORT_FORMATS
from .enums import AssetStatus, RenderMode
from .exceptions import ExportBlockedError, ValidationError
from .models import ExportedImage, ImageLayer, SceneSnapshot
from .rendering.renderer import Renderer
from .scene.store import SceneStore

logger = logging.getLogger("bannercanvas.export")

_SAVE_OPTIONS = {
    "PNG": {"optimize": False},
    "JPEG": {"quality": 95, "subsampling": 0},
    "WEBP": {"quality": 95, "method": 4},
}


class ExportSerializer:
    """Produce the downloadable banner at exactly the logical canvas size."""

    def __init__(self, store: SceneStore, loader: AssetLoader, renderer: Renderer) -> None:
        self.store = store
        self.loader = loader
        self.renderer = renderer

    def check_ready(self, snapshot: SceneSnapshot) -> None:
        """Raise if any background or image-layer source is not decoded.

        Image layers without a source count as broken.

        Raises:
            ExportBlockedError: With the pending (or never requested) and
                broken sources.
        """
        pending: list[str] = []
        broken: list[str] = [
            f"{layer.id} (no image source)"
            for layer in snapshot.layers
            if isinstance(layer, ImageLayer) and not layer.content
        ]
        for source in sorted(snapshot.required_sources()):
            status = self.loader.status(source)
            if status is AssetStatus.BROKEN:
                broken.append(source)
            elif status is not AssetStatus.READY:
                pending.append(source)
        if pending or broken:
            error = ExportBlockedError(pending, broken)
            logger.warning(str(error))
            raise error

    def export_image(self, fmt: str = "PNG") -> ExportedImage:
        """Render the current scene in export mode and encode it.

        Args:
            fmt: PNG, JPEG or WEBP.

        Returns:
            ExportedImage of ``width x height`` pixels, independent of any
            viewport, selection or guide settings.

        Raises:
            ValidationError: If the format is not supported.
            ExportBlockedError: If a required asset is loading or broken.
        """
        fmt = fmt.upper()
        if fmt == "JPG":
            fmt = "JPEG"
        if fmt not in EXPORT_FORMATS:
            raise ValidationError(
                f"Unsupported export format '{fmt}'. Allowed: {', '.join(sorted(EXPORT_FORMATS))}"
            )

        snapshot = self.store.snapshot()
        self.check_ready(snapshot)

        result = self.renderer.render(snapshot, self.loader.bitmaps(), mode=RenderMode.EXPORT)
        image = result.image.convert("RGB")

        buffer = io.BytesIO()
        image.save(buffer, format=fmt, **_SAVE_OPTIONS[fmt])
        logger.info("Exported %dx%d %s (%d bytes)", image.width, image.height, fmt, buffer.tell())
        return ExportedImage(data=buffer.getvalue(), width=image.width, height=image.height, fmt=fmt)
