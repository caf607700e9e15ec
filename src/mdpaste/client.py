"""Synchronous mdpaste client.

:class:`MdPasteClient` runs the whole pipeline for one configuration:
acquire an image, encode it, ``POST`` it, and resolve the markdown
reference from the response.  Each stage completes before the next starts.

Usage::

    from mdpaste import MdPasteClient, MdPasteNoImageError

    with MdPasteClient(base_url="https://img.example.com", token="...") as client:
        try:
            result = client.upload_clipboard()
        except MdPasteNoImageError:
            ...  # fall back to a plain paste
        else:
            print(result.markdown)
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any

from mdpaste.clipboard import (
    asset_from_clipboard_text,
    capture_clipboard_image,
    read_clipboard_text,
    read_image_file,
)
from mdpaste.config import UploadConfig
from mdpaste.errors import MdPasteError
from mdpaste.models import ImageAsset, UploadResult
from mdpaste.observability import resolve_metrics
from mdpaste.pipeline import no_clipboard_image, report_failure, report_success, resolve_for
from mdpaste.upload.multipart import encode_asset
from mdpaste.upload.transport import UploadTransport


class MdPasteClient:
    """Synchronous image upload client.

    Parameters
    ----------
    config:
        A complete :class:`UploadConfig`.  When omitted, *kwargs* are
        forwarded to :class:`UploadConfig`.
    """

    def __init__(self, config: UploadConfig | None = None, **kwargs: Any) -> None:
        self._config = config if config is not None else UploadConfig(**kwargs)
        self._metrics = resolve_metrics(self._config.metrics)
        self._transport = UploadTransport(self._config)

    @property
    def config(self) -> UploadConfig:
        return self._config

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    def upload_asset(self, asset: ImageAsset) -> UploadResult:
        """Upload an in-memory image and return its markdown reference.

        Raises
        ------
        MdPasteTimeoutError, MdPasteNetworkError, MdPasteHTTPStatusError
            From the request.
        MdPasteInvalidJSONError, MdPasteFieldNotFoundError
            From response resolution.
        """
        t0 = time.monotonic()
        body, boundary = encode_asset(self._config, asset)
        try:
            text = self._transport.post(body, boundary)
            result = resolve_for(self._config, text, asset.filename)
        except MdPasteError as exc:
            report_failure(self._metrics, asset, exc)
            raise
        report_success(self._metrics, asset, t0)
        return result

    def upload_file(self, path: str | Path, filename: str | None = None) -> UploadResult:
        """Read an image file from disk and upload it.

        Raises
        ------
        MdPasteFileError
            If the file cannot be read.
        """
        return self.upload_asset(read_image_file(path, filename))

    def upload_clipboard(self, clipboard_text: str | None = None) -> UploadResult:
        """Upload the current clipboard image.

        If no clipboard image is available, clipboard text naming an image
        file is used instead.  *clipboard_text* lets the host pass text it
        has already read; otherwise the system clipboard is queried.

        Raises
        ------
        MdPasteNoImageError
            If neither source yields an image.
        """
        with capture_clipboard_image(metrics=self._metrics) as asset:
            if asset is None:
                text = clipboard_text if clipboard_text is not None else read_clipboard_text()
                asset = asset_from_clipboard_text(text)
            if asset is None:
                raise no_clipboard_image()
            return self.upload_asset(asset)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        self._transport.close()

    def __enter__(self) -> MdPasteClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
