"""Rendering for BannerCanvas."""

from .renderer import Renderer
from .text import TextMeasurer

__all__ = ["Renderer", "TextMeasurer"]
