"""Public data models for mdpaste.

Plain dataclasses and enums passed between the pipeline stages.  Nothing
here performs I/O except :meth:`ClipboardEnvironment.detect`, which only
reads process state.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Platform(str, Enum):
    """Operating-system family used to select clipboard strategies."""

    MAC = "mac"
    WINDOWS = "windows"
    POSIX = "posix"
    """Linux and other POSIX desktops (X11 or Wayland)."""


# ---------------------------------------------------------------------------
# Pipeline values
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ImageAsset:
    """An in-memory image payload ready for upload.

    Attributes
    ----------
    buffer:
        Raw image bytes.
    filename:
        Name presented in the multipart request and used to guess the
        content type.  Need not match any real file.
    """

    buffer: bytes
    filename: str

    @property
    def content_type(self) -> str:
        from mdpaste.upload.multipart import guess_content_type

        return guess_content_type(self.filename)

    def __repr__(self) -> str:
        return f"ImageAsset(filename={self.filename!r}, size={len(self.buffer)})"


@dataclass(frozen=True)
class MultipartField:
    """A scalar form field emitted before the file part."""

    name: str
    value: str


@dataclass
class UploadResult:
    """The resolved outcome of one upload.

    Attributes
    ----------
    markdown:
        The markdown (or templated) reference to insert.
    raw_json:
        The parsed JSON response, for callers that need more fields.
    filename:
        The filename that was uploaded.
    """

    markdown: str
    raw_json: Any = None
    filename: str = ""


# ---------------------------------------------------------------------------
# Clipboard
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ClipboardEnvironment:
    """Snapshot of the facts clipboard strategy predicates depend on."""

    platform: Platform
    wayland_display: str | None = None

    @property
    def has_wayland(self) -> bool:
        return bool(self.wayland_display)

    @classmethod
    def detect(cls) -> ClipboardEnvironment:
        if sys.platform == "darwin":
            platform = Platform.MAC
        elif sys.platform == "win32":
            platform = Platform.WINDOWS
        else:
            platform = Platform.POSIX
        return cls(platform=platform, wayland_display=os.environ.get("WAYLAND_DISPLAY"))


@dataclass(frozen=True)
class ClipboardCommand:
    """One external process invocation that materialises the clipboard image.

    Attributes
    ----------
    name:
        Tool name used in logs and errors.
    argv:
        Full argument vector, ``argv[0]`` being the executable.
    capture_stdout:
        ``True`` when the tool writes PNG bytes to stdout (piped into the
        staging file); ``False`` when it writes the staging file itself.
    no_image_exit_codes:
        Exit codes meaning "the clipboard holds no image" rather than a
        tool failure.
    """

    name: str
    argv: tuple[str, ...]
    capture_stdout: bool = True
    no_image_exit_codes: frozenset[int] = field(default_factory=frozenset)
