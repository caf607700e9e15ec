"""Asynchronous mdpaste client.

:class:`AsyncMdPasteClient` mirrors :class:`~mdpaste.client.MdPasteClient`
with asyncio subprocesses for clipboard tools and ``httpx.AsyncClient`` for
the request.  It also accepts host paste payloads.

Usage::

    import asyncio
    from mdpaste import AsyncMdPasteClient

    async def main():
        async with AsyncMdPasteClient(base_url="https://img.example.com") as client:
            result = await client.upload_clipboard()
            print(result.markdown)

    asyncio.run(main())
"""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import Any

from mdpaste.clipboard import (
    async_capture_clipboard_image,
    asset_from_clipboard_text,
    extract_image_from_data_transfer,
    read_clipboard_text,
    read_image_file,
)
from mdpaste.config import UploadConfig
from mdpaste.errors import MdPasteError
from mdpaste.models import ImageAsset, UploadResult
from mdpaste.observability import resolve_metrics
from mdpaste.pipeline import no_clipboard_image, report_failure, report_success, resolve_for
from mdpaste.upload.multipart import encode_asset
from mdpaste.upload.transport import AsyncUploadTransport


def _asset_from_text(clipboard_text: str | None) -> ImageAsset | None:
    # Runs in an executor: pyperclip spawns the platform clipboard tool.
    text = clipboard_text if clipboard_text is not None else read_clipboard_text()
    return asset_from_clipboard_text(text)


class AsyncMdPasteClient:
    """Asynchronous image upload client.

    Parameters
    ----------
    config:
        A complete :class:`UploadConfig`.  When omitted, *kwargs* are
        forwarded to :class:`UploadConfig`.
    """

    def __init__(self, config: UploadConfig | None = None, **kwargs: Any) -> None:
        self._config = config if config is not None else UploadConfig(**kwargs)
        self._metrics = resolve_metrics(self._config.metrics)
        self._transport = AsyncUploadTransport(self._config)

    @property
    def config(self) -> UploadConfig:
        return self._config

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    async def upload_asset(self, asset: ImageAsset) -> UploadResult:
        """Upload an in-memory image (async).

        See :meth:`MdPasteClient.upload_asset`.
        """
        t0 = time.monotonic()
        body, boundary = encode_asset(self._config, asset)
        try:
            text = await self._transport.post(body, boundary)
            result = resolve_for(self._config, text, asset.filename)
        except MdPasteError as exc:
            report_failure(self._metrics, asset, exc)
            raise
        report_success(self._metrics, asset, t0)
        return result

    async def upload_file(self, path: str | Path, filename: str | None = None) -> UploadResult:
        """Read an image file from disk and upload it (async).

        The file is read in an executor to avoid blocking the event loop.
        """
        loop = asyncio.get_running_loop()
        asset = await loop.run_in_executor(None, read_image_file, path, filename)
        return await self.upload_asset(asset)

    async def upload_clipboard(self, clipboard_text: str | None = None) -> UploadResult:
        """Upload the current clipboard image (async).

        See :meth:`MdPasteClient.upload_clipboard`.
        """
        async with async_capture_clipboard_image(metrics=self._metrics) as asset:
            if asset is None:
                loop = asyncio.get_running_loop()
                asset = await loop.run_in_executor(None, _asset_from_text, clipboard_text)
            if asset is None:
                raise no_clipboard_image()
            return await self.upload_asset(asset)

    async def upload_data_transfer(self, data_transfer: Any) -> UploadResult | None:
        """Upload the image carried by a host paste payload.

        Returns ``None`` when the payload carries no image, so the host can
        let its default paste proceed.
        """
        asset = await extract_image_from_data_transfer(data_transfer)
        if asset is None:
            return None
        return await self.upload_asset(asset)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        await self._transport.close()

    async def __aenter__(self) -> AsyncMdPasteClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
