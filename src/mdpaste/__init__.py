"""mdpaste: paste clipboard images into markdown via an image-hosting API.

Public re-exports
-----------------

* **Clients:** :class:`MdPasteClient`, :class:`AsyncMdPasteClient`
* **Configuration:** :class:`UploadConfig`
* **Errors:** Every :class:`MdPasteError` subclass and :class:`ErrorCode`
* **Models:** :class:`ImageAsset`, :class:`UploadResult` and friends

Usage::

    from mdpaste import MdPasteClient

    with MdPasteClient(base_url="https://img.example.com", token="...") as client:
        result = client.upload_file("shot.png")
        print(result.markdown)
"""

from __future__ import annotations

from mdpaste.async_client import AsyncMdPasteClient

# ── Clients ────────────────────────────────────────────────────────────
from mdpaste.client import MdPasteClient

# ── Configuration ───────────────────────────────────────────────────────
from mdpaste.config import UploadConfig

# ── Errors ──────────────────────────────────────────────────────────────
from mdpaste.errors import (
    ErrorCode,
    MdPasteClipboardToolError,
    MdPasteError,
    MdPasteFieldNotFoundError,
    MdPasteFileError,
    MdPasteHTTPStatusError,
    MdPasteInvalidJSONError,
    MdPasteNetworkError,
    MdPasteNoImageError,
    MdPasteTimeoutError,
)

# ── Models ──────────────────────────────────────────────────────────────
from mdpaste.models import (
    ClipboardCommand,
    ClipboardEnvironment,
    ImageAsset,
    MultipartField,
    Platform,
    UploadResult,
)

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Clients
    "MdPasteClient",
    "AsyncMdPasteClient",
    # Configuration
    "UploadConfig",
    # Errors
    "MdPasteError",
    "ErrorCode",
    "MdPasteNoImageError",
    "MdPasteClipboardToolError",
    "MdPasteFileError",
    "MdPasteNetworkError",
    "MdPasteTimeoutError",
    "MdPasteHTTPStatusError",
    "MdPasteInvalidJSONError",
    "MdPasteFieldNotFoundError",
    # Models
    "ImageAsset",
    "MultipartField",
    "UploadResult",
    "Platform",
    "ClipboardEnvironment",
    "ClipboardCommand",
]
