"""Pipeline steps shared by the sync and async clients.

Encoding and the request itself live in :mod:`mdpaste.upload`; this module
holds the response step and the per-upload logging / metrics.
"""

from __future__ import annotations

import time
from typing import Any

from mdpaste.config import UploadConfig
from mdpaste.errors import MdPasteError, MdPasteNoImageError
from mdpaste.models import ImageAsset, UploadResult
from mdpaste.observability import get_logger
from mdpaste.upload.resolve import resolve_response

log = get_logger("mdpaste.client")


def resolve_for(config: UploadConfig, text: str, filename: str) -> UploadResult:
    """Resolve *text* using the response paths and template of *config*."""
    return resolve_response(
        text,
        markdown_path=config.response_markdown_path,
        url_path=config.response_url_path,
        template=config.markdown_fallback_template,
        filename=filename,
    )


def report_success(metrics: Any, asset: ImageAsset, t0: float) -> None:
    metrics.increment("mdpaste.upload_success_total")
    log.info(
        "upload complete",
        extra={
            "extra_fields": {
                "op": "upload",
                "filename": asset.filename,
                "bytes": len(asset.buffer),
                "elapsed_ms": round((time.monotonic() - t0) * 1000, 1),
            }
        },
    )


def report_failure(metrics: Any, asset: ImageAsset, exc: MdPasteError) -> None:
    code = getattr(exc.code, "value", exc.code)
    metrics.increment("mdpaste.upload_failure_total", tags={"code": code})
    log.warning(
        "upload failed",
        extra={
            "extra_fields": {
                "op": "upload",
                "filename": asset.filename,
                "code": code,
                "error": exc.message,
            }
        },
    )


def no_clipboard_image() -> MdPasteNoImageError:
    return MdPasteNoImageError(
        message="no image on the clipboard",
        context={"source": "clipboard"},
    )
