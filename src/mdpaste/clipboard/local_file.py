"""Local image files referenced by path.

Clipboard text that names an existing image file (as copied from a file
manager or terminal) is accepted as an upload source.  Accepted forms::

    /home/me/shot.png
    "C:\\Users\\me\\shot.png"
    file:///home/me/my%20shot.png
"""

from __future__ import annotations

import re
from pathlib import Path, PurePath
from urllib.parse import unquote, urlparse

import pyperclip

from mdpaste.errors import MdPasteFileError
from mdpaste.models import ImageAsset
from mdpaste.observability import get_logger

log = get_logger("mdpaste.clipboard")

IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".gif", ".webp", ".bmp"})

DEFAULT_FILENAME = "image.png"

_QUOTED_RE = re.compile(r"""^(?P<q>["'])(?P<inner>.*)(?P=q)$""", re.DOTALL)
_WINDOWS_DRIVE_RE = re.compile(r"^/[A-Za-z]:")


def coerce_local_file_path(text: str | None) -> str | None:
    """Normalise clipboard text into a candidate filesystem path.

    Strips whitespace and one pair of matching quotes, and converts
    ``file://`` URLs to plain paths.  Returns ``None`` for blank text.
    Existence is not checked.
    """
    value = (text or "").strip()
    if not value:
        return None

    match = _QUOTED_RE.match(value)
    if match:
        value = match.group("inner")

    if value.startswith("file://"):
        path = unquote(urlparse(value).path)
        if _WINDOWS_DRIVE_RE.match(path):
            path = path[1:]
        return path

    return value


def looks_like_image_file(path: str) -> bool:
    return PurePath(path).suffix.lower() in IMAGE_EXTENSIONS


def read_image_file(path: str | Path, filename: str | None = None) -> ImageAsset:
    """Read *path* from disk into an :class:`ImageAsset`.

    *filename* defaults to the file's basename.

    Raises
    ------
    MdPasteFileError
        If the file does not exist or cannot be read.
    """
    p = Path(path)
    try:
        data = p.read_bytes()
    except OSError as exc:
        raise MdPasteFileError(
            message=f"cannot read image file {str(p)!r}: {exc.strerror or exc}",
            context={"path": str(p)},
            cause=exc,
        ) from exc
    return ImageAsset(buffer=data, filename=filename or p.name or DEFAULT_FILENAME)


def asset_from_clipboard_text(text: str | None) -> ImageAsset | None:
    """Return the image named by *text*, or ``None``.

    The text must name a single existing file with an image extension.
    """
    candidate = coerce_local_file_path(text)
    if not candidate or "\n" in candidate or not looks_like_image_file(candidate):
        return None
    path = Path(candidate).expanduser()
    if not path.is_file():
        return None
    try:
        return read_image_file(path)
    except MdPasteFileError as exc:
        log.warning(
            "clipboard path unreadable",
            extra={"extra_fields": {"op": "clipboard", "path": str(path), "error": str(exc)}},
        )
        return None


def read_clipboard_text() -> str | None:
    """Return the clipboard's plain text, or ``None`` if it cannot be read."""
    try:
        return pyperclip.paste()
    except pyperclip.PyperclipException as exc:
        log.debug(
            "clipboard text unavailable",
            extra={"extra_fields": {"op": "clipboard", "error": str(exc)}},
        )
        return None
