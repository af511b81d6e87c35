"""Scene model for BannerCanvas."""

from .store import SceneStore

__all__ = ["SceneStore"]
