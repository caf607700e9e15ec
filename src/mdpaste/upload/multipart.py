"""``multipart/form-data`` body encoding.

The body layout is fixed: every scalar field first, in insertion order, then
exactly one file part, then the closing delimiter::

    --B\\r\\n
    Content-Disposition: form-data; name="strategy_id"\\r\\n
    \\r\\n
    1\\r\\n
    --B\\r\\n
    Content-Disposition: form-data; name="file"; filename="a.png"\\r\\n
    Content-Type: image/png\\r\\n
    \\r\\n
    <bytes>\\r\\n
    --B--\\r\\n

Only double quotes in names and filenames are escaped (as ``\\"``).  Field
values are written verbatim; callers must keep them well formed.
"""

from __future__ import annotations

import secrets
import time
from collections.abc import Iterable
from pathlib import PurePath

from mdpaste.config import UploadConfig
from mdpaste.models import ImageAsset, MultipartField

_CONTENT_TYPES: dict[str, str] = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
}

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def guess_content_type(filename: str) -> str:
    """Best-effort content type from the file extension (no sniffing)."""
    suffix = PurePath(filename).suffix.lower()
    return _CONTENT_TYPES.get(suffix, DEFAULT_CONTENT_TYPE)


def escape_quotes(value: object) -> str:
    return str(value).replace('"', '\\"')


def make_boundary() -> str:
    """Return a boundary token unique to one request.

    Random hex plus a millisecond timestamp; long enough that a collision
    with the body content is not checked for.
    """
    return f"----mdpaste{secrets.token_hex(12)}{int(time.time() * 1000)}"


def build_multipart_body(
    boundary: str,
    fields: Iterable[MultipartField],
    file_field_name: str,
    filename: str,
    content_type: str,
    file_bytes: bytes,
) -> bytes:
    """Encode scalar *fields* and one file part as ``multipart/form-data``.

    Parameters
    ----------
    boundary:
        Delimiter token, without the leading ``--``.
    fields:
        Scalar form fields, emitted in iteration order before the file.
    file_field_name:
        Form field name of the file part.
    filename:
        Filename presented in the file part header.
    content_type:
        ``Content-Type`` of the file part.
    file_bytes:
        Raw file content, written unmodified.

    Returns
    -------
    bytes
        The complete request body.
    """
    chunks: list[bytes] = []

    for f in fields:
        chunks.append(
            (
                f"--{boundary}\r\n"
                f'Content-Disposition: form-data; name="{escape_quotes(f.name)}"\r\n'
                f"\r\n"
                f"{f.value}\r\n"
            ).encode("utf-8")
        )

    chunks.append(
        (
            f"--{boundary}\r\n"
            f'Content-Disposition: form-data; name="{escape_quotes(file_field_name)}"; '
            f'filename="{escape_quotes(filename)}"\r\n'
            f"Content-Type: {content_type}\r\n"
            f"\r\n"
        ).encode("utf-8")
    )
    chunks.append(bytes(file_bytes))
    chunks.append(f"\r\n--{boundary}--\r\n".encode("utf-8"))

    return b"".join(chunks)


def encode_asset(config: UploadConfig, asset: ImageAsset) -> tuple[bytes, str]:
    """Encode *asset* for *config*'s endpoint.

    Returns ``(body, boundary)``.  A non-blank ``strategy_id`` is sent as the
    only scalar field.
    """
    fields: list[MultipartField] = []
    if config.strategy_field is not None:
        fields.append(MultipartField(name="strategy_id", value=config.strategy_field))

    boundary = make_boundary()
    body = build_multipart_body(
        boundary=boundary,
        fields=fields,
        file_field_name=config.file_field_name,
        filename=asset.filename,
        content_type=guess_content_type(asset.filename),
        file_bytes=asset.buffer,
    )
    return body, boundary
