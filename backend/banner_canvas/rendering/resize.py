"""High-quality image resize with gamma correction, and cover-fit cropping."""

from __future__ import annotations

import logging
import math

import numpy as np
from PIL import Image

from ..config import Config

logger = logging.getLogger("bannercanvas.rendering.resize")


def high_quality_resize(
    image: Image.Image, target_size: tuple[int, int]
) -> Image.Image:
    """High-quality resize with gamma correction.

    Performs resize in linear color space for more accurate results.

    Args:
        image: Source PIL image.
        target_size: Target (width, height).

    Returns:
        Resized RGBA image (the source unchanged for a non-positive target).
    """
    if target_size[0] <= 0 or target_size[1] <= 0:
        return image

    if image.mode != "RGBA":
        image = image.convert("RGBA")

    if image.size == tuple(target_size):
        return image.copy()

    arr = np.asarray(image).astype(np.float32) / 255.0
    linear = np.power(np.clip(arr[:, :, :3], 0, 1), Config.GAMMA)
    linear = np.concatenate([linear, arr[:, :, 3:4]], axis=2)

    pil_linear = Image.fromarray((linear * 255).astype(np.uint8), mode="RGBA")
    resized = pil_linear.resize(target_size, Config.RESIZE_QUALITY)

    arr_resized = np.asarray(resized).astype(np.float32) / 255.0
    encoded = np.power(np.clip(arr_resized[:, :, :3], 0, 1), 1.0 / Config.GAMMA)
    encoded = np.concatenate([encoded, arr_resized[:, :, 3:4]], axis=2)

    return Image.fromarray((encoded * 255).astype(np.uint8), mode="RGBA")


def cover_fit(image: Image.Image, target_size: tuple[int, int]) -> Image.Image:
    """Scale to cover ``target_size`` exactly, center-cropping the overflow.

    Args:
        image: Source image of any size.
        target_size: (width, height) to fill.

    Returns:
        RGBA image of exactly ``target_size``.
    """
    target_w, target_h = target_size
    src_w, src_h = image.size
    if src_w <= 0 or src_h <= 0:
        return Image.new("RGBA", target_size, (0, 0, 0, 0))

    scale = max(target_w / src_w, target_h / src_h)
    new_w = max(target_w, math.ceil(src_w * scale))
    new_h = max(target_h, math.ceil(src_h * scale))
    scaled = high_quality_resize(image, (new_w, new_h))

    x = (new_w - target_w) // 2
    y = (new_h - target_h) // 2
    return scaled.crop((x, y, x + target_w, y + target_h))


def apply_opacity(image: Image.Image, opacity: float) -> Image.Image:
    """Scale the alpha channel by ``opacity`` in percent (0-100)."""
    if opacity >= 100:
        return image
    factor = max(0.0, opacity) / 100.0
    alpha = image.getchannel("A").point(lambda p: int(p * factor))
    image = image.copy()
    image.putalpha(alpha)
    return image
