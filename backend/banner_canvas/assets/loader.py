"""Asset Loader: decode-once bitmap cache with generation-tagged loads.

Bitmaps are cached by source string, so layers sharing a source share one
decode. Every load and every slot claim (background, profile overlay, a
layer's content) draws a number from one monotonically increasing
generation counter. A decode whose entry was invalidated or superseded
while it was in flight is discarded when it resolves.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

from PIL import Image

from ..enums import AssetStatus
from ..exceptions import AssetDecodeError
from ..models import ReadinessReport
from .decode import decode_source
from .fonts import FontRegistry

logger = logging.getLogger("bannercanvas.assets.loader")

Decoder = Callable[[str], "Image.Image | Awaitable[Image.Image]"]


@dataclass
class AssetEntry:
    """Cache entry for one source string."""
    source: str
    generation: int
    status: AssetStatus = AssetStatus.PENDING
    image: Image.Image | None = None
    error: str | None = None
    task: asyncio.Future | None = None


class AssetLoader:
    """Decode and cache bitmap sources; gate painting on font readiness."""

    def __init__(
        self,
        decoder: Decoder = decode_source,
        fonts: FontRegistry | None = None,
        fonts_ready: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self._decoder = decoder
        self.fonts = fonts or FontRegistry()
        self._fonts_ready = fonts_ready
        self._fonts_primed = False
        self._entries: dict[str, AssetEntry] = {}
        self._slots: dict[str, tuple[int, str | None]] = {}
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    # ------------------------------------------------------------------
    # Cache queries
    # ------------------------------------------------------------------

    def status(self, source: str) -> AssetStatus | None:
        entry = self._entries.get(source)
        return entry.status if entry else None

    def error(self, source: str) -> str | None:
        entry = self._entries.get(source)
        return entry.error if entry else None

    def get(self, source: str) -> Image.Image | None:
        entry = self._entries.get(source)
        if entry is None or entry.status is not AssetStatus.READY:
            return None
        return entry.image

    def bitmaps(self) -> dict[str, Image.Image]:
        """Read-only view of every decoded bitmap, keyed by source."""
        return {
            source: entry.image
            for source, entry in self._entries.items()
            if entry.status is AssetStatus.READY and entry.image is not None
        }

    # ------------------------------------------------------------------
    # Slots and supersession
    # ------------------------------------------------------------------

    def claim(self, slot: str, source: str | None) -> int:
        """Bind ``slot`` to ``source`` and return the claim's generation.

        A slot's previous source is invalidated if nothing else still
        claims it, so an in-flight decode for it can never land.
        """
        previous = self._slots.get(slot)
        generation = self._next_generation()
        self._slots[slot] = (generation, source)
        if previous and previous[1] and previous[1] != source:
            self._release_if_unclaimed(previous[1])
        return generation

    def release(self, slot: str) -> None:
        previous = self._slots.pop(slot, None)
        if previous and previous[1]:
            self._release_if_unclaimed(previous[1])

    def is_current(self, slot: str, generation: int) -> bool:
        claim = self._slots.get(slot)
        return claim is not None and claim[0] == generation

    def _release_if_unclaimed(self, source: str) -> None:
        if any(claimed == source for _, claimed in self._slots.values()):
            return
        entry = self._entries.get(source)
        if entry is not None and entry.status is AssetStatus.PENDING:
            self.invalidate(source)

    def invalidate(self, source: str) -> None:
        """Forget a source; a decode still in flight for it is discarded."""
        entry = self._entries.pop(source, None)
        if entry is not None:
            logger.debug("Invalidated %s (generation %d)", _short(source), entry.generation)

    def retain(self, sources: Iterable[str]) -> None:
        """Drop cache entries that neither the scene nor any slot references."""
        keep = set(sources) | {src for _, src in self._slots.values() if src}
        for source in [s for s in self._entries if s not in keep]:
            self.invalidate(source)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self, source: str) -> AssetEntry:
        """Decode ``source`` once; concurrent callers share the same decode."""
        entry = self._entries.get(source)
        if entry is None:
            entry = self._start(source)
        if entry.status is AssetStatus.PENDING and entry.task is not None:
            await asyncio.shield(entry.task)
        return entry

    def _start(self, source: str) -> AssetEntry:
        generation = self._next_generation()
        entry = AssetEntry(source=source, generation=generation)
        self._entries[source] = entry
        entry.task = asyncio.ensure_future(self._decode(source, generation))
        logger.debug("Decoding %s (generation %d)", _short(source), generation)
        return entry

    async def _decode(self, source: str, generation: int) -> None:
        try:
            if inspect.iscoroutinefunction(self._decoder):
                image = await self._decoder(source)
            else:
                loop = asyncio.get_running_loop()
                image = await loop.run_in_executor(None, self._decoder, source)
        except AssetDecodeError as e:
            self._finish(source, generation, error=str(e))
            return
        except Exception as e:
            # Any failure from a host decoder marks the source broken
            self._finish(source, generation, error=f"{type(e).__name__}: {e}")
            return
        self._finish(source, generation, image=image)

    def _finish(
        self,
        source: str,
        generation: int,
        image: Image.Image | None = None,
        error: str | None = None,
    ) -> None:
        entry = self._entries.get(source)
        if entry is None or entry.generation != generation:
            logger.debug("Discarding stale decode of %s (generation %d)", _short(source), generation)
            return
        if error is not None:
            entry.status = AssetStatus.BROKEN
            entry.error = error
            logger.warning("Asset %s is broken: %s", _short(source), error)
        else:
            entry.status = AssetStatus.READY
            entry.image = image

    async def ensure_fonts(self, families: Iterable[str]) -> None:
        """Wait for font readiness before the first paint and for new families."""
        families = set(families)
        missing = {f for f in families if not self.fonts.is_loaded(f)}
        if self._fonts_primed and not missing:
            return
        if self._fonts_ready is not None:
            await self._fonts_ready()
        await self.fonts.ensure_loaded(missing)
        self._fonts_primed = True

    async def ensure_ready(
        self, sources: Iterable[str], font_families: Iterable[str] = ()
    ) -> ReadinessReport:
        """Wait until every source is decoded or broken, and fonts are loaded.

        Returns:
            Report of ready, still-pending (invalidated mid-wait) and broken
            sources. Broken sources are logged, never raised.
        """
        await self.ensure_fonts(font_families)

        wanted = sorted({s for s in sources if s})
        await asyncio.gather(*(self.load(s) for s in wanted))

        report = ReadinessReport()
        for source in wanted:
            entry = self._entries.get(source)
            if entry is None or entry.status is AssetStatus.PENDING:
                report.pending.add(source)
            elif entry.status is AssetStatus.BROKEN:
                report.broken[source] = entry.error or "decode failed"
            else:
                report.ready.add(source)
        return report


def _short(source: str, limit: int = 48) -> str:
    return source if len(source) <= limit else source[:limit] + "..."
