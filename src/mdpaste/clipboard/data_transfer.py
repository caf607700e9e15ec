"""Extract an image from a host paste / drop payload.

Editors that deliver paste events hand over a *data transfer* object keyed by
MIME type instead of raw clipboard access.  The payload is duck-typed: any
object with ``get(mime)`` works, including a plain ``dict``.  An item may be

* an object with ``as_file()`` returning a file with ``name`` and either a
  ``path`` on disk or ``data`` (bytes, a callable, or an awaitable),
* an object with ``value`` (bytes-like, possibly awaitable),
* an object with ``as_string()`` returning a ``data:image/...;base64,`` URL,
* or directly a bytes-like value or a data-URL string.
"""

from __future__ import annotations

import array
import asyncio
import base64
import binascii
import inspect
import re
from pathlib import Path, PurePath
from typing import Any

from mdpaste.models import ImageAsset
from mdpaste.observability import get_logger

log = get_logger("mdpaste.clipboard")

# Tried in order; the first MIME type yielding an image wins.
MIME_CANDIDATES: tuple[tuple[str, str], ...] = (
    ("image/png", "pasted-image.png"),
    ("image/jpeg", "pasted-image.jpg"),
    ("image/jpg", "pasted-image.jpg"),
    ("image/webp", "pasted-image.webp"),
    ("image/gif", "pasted-image.gif"),
)

_BASE64_META_RE = re.compile(r";base64$", re.IGNORECASE)


def normalize_to_bytes(value: Any) -> bytes | None:
    """Convert a binary payload to ``bytes``.

    Accepted shapes: ``bytes``, ``bytearray``, ``memoryview`` and
    ``array.array``.  Anything else, or an empty payload, yields ``None``.
    """
    if isinstance(value, bytes):
        data = value
    elif isinstance(value, (bytearray, memoryview, array.array)):
        data = memoryview(value).tobytes()
    else:
        return None
    return data or None


def parse_image_data_url(text: Any) -> bytes | None:
    """Decode a ``data:image/<type>;base64,<data>`` URL, or return ``None``."""
    if not isinstance(text, str):
        return None
    value = text.strip()
    if not value.startswith("data:image/"):
        return None
    meta, sep, data = value.partition(",")
    if not sep or not _BASE64_META_RE.search(meta):
        return None
    try:
        return base64.b64decode(data) or None
    except (binascii.Error, ValueError):
        return None


async def _resolve(value: Any) -> Any:
    if callable(value):
        value = value()
    if inspect.isawaitable(value):
        value = await value
    return value


async def _read_as_file(item: Any, fallback_filename: str) -> ImageAsset | None:
    as_file = getattr(item, "as_file", None)
    if not callable(as_file):
        return None
    file = await _resolve(as_file)
    if file is None:
        return None

    name = getattr(file, "name", None)
    filename = PurePath(str(name)).name if name else fallback_filename

    path = getattr(file, "path", None)
    if path:
        loop = asyncio.get_running_loop()
        data = await loop.run_in_executor(None, Path(path).read_bytes)
        return ImageAsset(buffer=data, filename=filename)

    data = normalize_to_bytes(await _resolve(getattr(file, "data", None)))
    if data is not None:
        return ImageAsset(buffer=data, filename=filename)
    return None


async def _read_value(item: Any) -> bytes | None:
    # Bare values, as in a plain dict payload.
    if isinstance(item, str):
        return parse_image_data_url(item)
    data = normalize_to_bytes(item)
    if data is not None:
        return data

    if hasattr(item, "value"):
        value = getattr(item, "value")
        if inspect.isawaitable(value):
            value = await value
        data = normalize_to_bytes(value)
        if data is not None:
            return data
        if isinstance(value, str):
            return parse_image_data_url(value)

    as_string = getattr(item, "as_string", None)
    if callable(as_string):
        return parse_image_data_url(await _resolve(as_string))
    return None


async def extract_image_from_data_transfer(data_transfer: Any) -> ImageAsset | None:
    """Return the first image carried by *data_transfer*, or ``None``.

    Errors reading an individual item (e.g. a vanished file) are logged and
    the next MIME type is tried.
    """
    getter = getattr(data_transfer, "get", None)
    if not callable(getter):
        return None

    for mime, fallback_filename in MIME_CANDIDATES:
        item = getter(mime)
        if item is None:
            continue
        try:
            asset = await _read_as_file(item, fallback_filename)
            if asset is not None:
                return asset
            data = await _read_value(item)
        except OSError as exc:
            log.warning(
                "paste payload item unreadable",
                extra={"extra_fields": {"op": "paste", "mime": mime, "error": str(exc)}},
            )
            continue
        if data is not None:
            return ImageAsset(buffer=data, filename=fallback_filename)

    return None
