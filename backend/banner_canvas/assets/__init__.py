"""Bitmap and font loading for BannerCanvas."""

from .decode import decode_source, image_to_data_uri
from .fonts import FontRegistry
from .loader import AssetEntry, AssetLoader

__all__ = ["AssetEntry", "AssetLoader", "FontRegistry", "decode_source", "image_to_data_uri"]
