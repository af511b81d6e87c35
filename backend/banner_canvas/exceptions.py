"""Custom exception hierarchy for BannerCanvas."""

from __future__ import annotations


class BannerCanvasError(Exception):
    """Base exception for all BannerCanvas errors."""


class ValidationError(BannerCanvasError):
    """Raised when a command or its input is malformed."""


class LayerNotFoundError(ValidationError, KeyError):
    """Raised when a command names a layer id that is not in the scene."""

    def __init__(self, layer_id: str) -> None:
        super().__init__(f"No layer with id '{layer_id}'")
        self.layer_id = layer_id

    def __str__(self) -> str:
        return self.args[0]


class AssetDecodeError(BannerCanvasError):
    """Raised when an image source cannot be decoded."""


class InvalidTransformError(BannerCanvasError):
    """Raised by strict sanitizers for NaN or non-positive geometry."""


class ExportBlockedError(BannerCanvasError):
    """Raised when export is attempted while assets are pending or broken."""

    def __init__(self, pending: list[str], broken: list[str]) -> None:
        parts = []
        if pending:
            parts.append(f"{len(pending)} asset(s) still loading")
        if broken:
            parts.append(f"{len(broken)} asset(s) failed to decode")
        super().__init__("Export blocked: " + ", ".join(parts))
        self.pending = pending
        self.broken = broken
