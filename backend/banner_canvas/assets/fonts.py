"""
Font registry for text layers.

Families are registered to font files per weight. A family that was never
registered is looked up among the system fonts by file name, and finally
falls back to Pillow's built-in scalable font. Loading a family reads its
files once; the Asset Loader awaits that before the first paint so text
metrics are never computed against a font that is still loading.
"""

from __future__ import annotations

import asyncio
import io
import logging
from collections.abc import Iterable
from pathlib import Path

from PIL import ImageFont

logger = logging.getLogger("bannercanvas.assets.fonts")

WEIGHT_ALIASES = {
    "thin": 100,
    "light": 300,
    "normal": 400,
    "regular": 400,
    "medium": 500,
    "semibold": 600,
    "bold": 700,
    "extrabold": 800,
    "black": 900,
}

# File name suffixes tried for system lookups, by weight class
_SYSTEM_SUFFIXES = {
    400: ("", "-Regular"),
    700: ("-Bold", "bd", " Bold"),
}


def weight_class(weight: str | int | None) -> int:
    """Numeric CSS weight class for '700', 'bold', 700 ... (400 when unknown)."""
    if weight is None:
        return 400
    if isinstance(weight, int):
        return weight
    text = str(weight).strip().lower()
    if text.isdigit():
        return int(text)
    return WEIGHT_ALIASES.get(text, 400)


class RegisteredFont:
    """A font family with one file per weight class."""

    def __init__(self, family: str) -> None:
        self.family = family
        self.files: dict[int, str] = {}
        self.data: dict[int, bytes] = {}

    def nearest_weight(self, weight: int) -> int | None:
        available = self.data or self.files
        if not available:
            return None
        return min(available, key=lambda w: (abs(w - weight), -w))


class FontRegistry:
    """Resolves (family, weight, size) to Pillow fonts, with caching."""

    def __init__(self, search_system: bool = True) -> None:
        self.search_system = search_system
        self._fonts: dict[str, RegisteredFont] = {}
        self._loaded: set[str] = set()
        self._cache: dict[tuple[str, int, int], ImageFont.FreeTypeFont] = {}

    def register_font(self, family: str, path: str | Path, weight: str | int = "normal") -> None:
        """Register a font file for a family and weight."""
        key = family.lower()
        registered = self._fonts.setdefault(key, RegisteredFont(family))
        registered.files[weight_class(weight)] = str(path)
        self._loaded.discard(key)
        self._cache = {k: v for k, v in self._cache.items() if k[0] != key}

    def is_loaded(self, family: str) -> bool:
        return family.lower() in self._loaded

    async def ensure_loaded(self, families: Iterable[str]) -> None:
        """Read the files of every family not loaded yet, off the event loop."""
        missing = sorted({f for f in families if not self.is_loaded(f)})
        if not missing:
            return
        loop = asyncio.get_running_loop()
        await asyncio.gather(*(loop.run_in_executor(None, self._load_family, f) for f in missing))

    def _load_family(self, family: str) -> None:
        key = family.lower()
        registered = self._fonts.get(key)
        if registered is not None:
            for weight, path in registered.files.items():
                try:
                    registered.data[weight] = Path(path).read_bytes()
                except OSError as e:
                    logger.warning("Could not read font %s (%s): %s", family, path, e)
        self._loaded.add(key)
        logger.debug("Font family '%s' ready", family)

    def get_font(self, family: str, weight: str | int, size: float) -> ImageFont.FreeTypeFont:
        """Font handle for the given family, weight and pixel size."""
        key = family.lower()
        if key not in self._loaded:
            self._load_family(family)

        wc = weight_class(weight)
        px = max(1, int(round(size)))
        cache_key = (key, wc, px)
        font = self._cache.get(cache_key)
        if font is None:
            font = self._resolve(family, wc, px)
            self._cache[cache_key] = font
        return font

    def _resolve(self, family: str, weight: int, size: int) -> ImageFont.FreeTypeFont:
        registered = self._fonts.get(family.lower())
        if registered is not None:
            nearest = registered.nearest_weight(weight)
            if nearest is not None and nearest in registered.data:
                return ImageFont.truetype(io.BytesIO(registered.data[nearest]), size)

        if self.search_system:
            suffixes = _SYSTEM_SUFFIXES[700] if weight >= 600 else _SYSTEM_SUFFIXES[400]
            for base in (family, family.replace(" ", "")):
                for suffix in suffixes:
                    try:
                        return ImageFont.truetype(f"{base}{suffix}.ttf", size)
                    except OSError:
                        continue

        return ImageFont.load_default(size=size)
