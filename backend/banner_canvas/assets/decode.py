"""Decode bitmap source strings into Pillow images."""

from __future__ import annotations

import base64
import binascii
import io
import logging
from pathlib import Path
from urllib.error import URLError
from urllib.parse import unquote_to_bytes
from urllib.request import urlopen

from PIL import Image, UnidentifiedImageError

from ..config import Config
from ..constants import DATA_URI_PREFIX, REMOTE_SCHEMES
from ..exceptions import AssetDecodeError

logger = logging.getLogger("bannercanvas.assets.decode")


def decode_source(source: str) -> Image.Image:
    """Decode a data URI, remote URL, or local file path into an RGBA image.

    Args:
        source: The source reference exactly as stored on the layer.

    Returns:
        Fully loaded RGBA image.

    Raises:
        AssetDecodeError: If the source cannot be fetched or decoded.
    """
    if not source:
        raise AssetDecodeError("Empty image source")

    data = _read_bytes(source)
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return img.convert("RGBA")
    except Image.DecompressionBombError as e:
        raise AssetDecodeError(f"Image too large to decode: {e}") from e
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise AssetDecodeError(f"Not a decodable image: {e}") from e


def data_uri_to_bytes(uri: str) -> bytes:
    """Payload of a ``data:`` URI, base64 or percent-encoded."""
    header, sep, payload = uri.partition(",")
    if not sep:
        raise AssetDecodeError("Malformed data URI: missing ','")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=False)
        except (binascii.Error, ValueError) as e:
            raise AssetDecodeError(f"Malformed base64 payload: {e}") from e
    return unquote_to_bytes(payload)


def _read_bytes(source: str) -> bytes:
    if source.startswith(DATA_URI_PREFIX):
        return data_uri_to_bytes(source)

    if source.startswith(REMOTE_SCHEMES):
        logger.debug("Fetching %s", source)
        try:
            with urlopen(source, timeout=Config.FETCH_TIMEOUT) as response:
                return response.read()
        except (URLError, OSError, ValueError) as e:
            raise AssetDecodeError(f"Could not fetch '{source}': {e}") from e

    path = Path(source)
    if not path.is_file():
        raise AssetDecodeError(f"Unknown source: not a data URI, URL, or file: '{source[:80]}'")
    try:
        return path.read_bytes()
    except OSError as e:
        raise AssetDecodeError(f"Could not read '{source}': {e}") from e


def image_to_data_uri(image: Image.Image, fmt: str = "PNG") -> str:
    """Encode an image as a data URI (used by hosts and tests to build sources)."""
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/{fmt.lower()};base64,{encoded}"
