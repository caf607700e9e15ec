"""Scoped acquisition of the current clipboard image.

:func:`capture_clipboard_image` and :func:`async_capture_clipboard_image`
create a fresh staging directory, run the strategy chain into it, and yield
an :class:`ImageAsset` (or ``None``).  The staging directory is removed
exactly once when the ``with`` block exits, whatever the exit path.

Usage::

    with capture_clipboard_image() as asset:
        if asset is not None:
            client.upload_asset(asset)
"""

from __future__ import annotations

import asyncio
import shutil
import tempfile
import time
from collections.abc import AsyncIterator, Iterator, Sequence
from contextlib import asynccontextmanager, contextmanager
from pathlib import Path
from typing import Any

from mdpaste.models import ClipboardEnvironment, ImageAsset
from mdpaste.observability import get_logger

from .strategies import (
    STRATEGIES,
    ClipboardStrategy,
    async_write_clipboard_image,
    write_clipboard_image,
)

log = get_logger("mdpaste.clipboard")

STAGING_PREFIX = "mdpaste-"


def _staging_file(staging_dir: Path) -> Path:
    return staging_dir / f"clipboard-{int(time.time() * 1000)}.png"


def _load(path: Path) -> ImageAsset:
    return ImageAsset(buffer=path.read_bytes(), filename=path.name)


def _log_io_failure(exc: OSError) -> None:
    log.warning(
        "clipboard capture failed",
        extra={"extra_fields": {"op": "clipboard", "error": str(exc)}},
    )


def _remove(staging_dir: Path | None) -> None:
    if staging_dir is not None:
        shutil.rmtree(staging_dir, ignore_errors=True)


@contextmanager
def capture_clipboard_image(
    env: ClipboardEnvironment | None = None,
    strategies: Sequence[ClipboardStrategy] = STRATEGIES,
    metrics: Any | None = None,
) -> Iterator[ImageAsset | None]:
    """Yield the clipboard image as an :class:`ImageAsset`, or ``None``.

    ``None`` means no image is available (every strategy failed, or a
    staging I/O error occurred); the caller should fall back to its
    default paste behaviour.
    """
    staging_dir: Path | None = None
    asset: ImageAsset | None = None
    try:
        try:
            staging_dir = Path(tempfile.mkdtemp(prefix=STAGING_PREFIX))
            target = _staging_file(staging_dir)
            if write_clipboard_image(target, env, strategies, metrics):
                asset = _load(target)
        except OSError as exc:
            _log_io_failure(exc)
            asset = None
        yield asset
    finally:
        _remove(staging_dir)


@asynccontextmanager
async def async_capture_clipboard_image(
    env: ClipboardEnvironment | None = None,
    strategies: Sequence[ClipboardStrategy] = STRATEGIES,
    metrics: Any | None = None,
) -> AsyncIterator[ImageAsset | None]:
    """Async variant of :func:`capture_clipboard_image`."""
    staging_dir: Path | None = None
    asset: ImageAsset | None = None
    try:
        try:
            staging_dir = Path(tempfile.mkdtemp(prefix=STAGING_PREFIX))
            target = _staging_file(staging_dir)
            if await async_write_clipboard_image(target, env, strategies, metrics):
                loop = asyncio.get_running_loop()
                asset = await loop.run_in_executor(None, _load, target)
        except OSError as exc:
            _log_io_failure(exc)
            asset = None
        yield asset
    finally:
        _remove(staging_dir)
