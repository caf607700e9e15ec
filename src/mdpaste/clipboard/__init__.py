"""Clipboard image extraction.

Exports
-------
capture_clipboard_image / async_capture_clipboard_image
    Run the platform strategy chain inside a scoped staging directory.
write_clipboard_image / async_write_clipboard_image
    Run the strategy chain into a given output file.
STRATEGIES / ClipboardStrategy
    The ordered platform strategy table.
extract_image_from_data_transfer
    Pull an image out of a host paste payload.
asset_from_clipboard_text / read_image_file
    Use an image file referenced by path.
"""

from .capture import async_capture_clipboard_image, capture_clipboard_image
from .data_transfer import (
    extract_image_from_data_transfer,
    normalize_to_bytes,
    parse_image_data_url,
)
from .local_file import (
    asset_from_clipboard_text,
    coerce_local_file_path,
    looks_like_image_file,
    read_clipboard_text,
    read_image_file,
)
from .strategies import (
    STRATEGIES,
    ClipboardStrategy,
    applicable_strategies,
    async_write_clipboard_image,
    write_clipboard_image,
)

__all__ = [
    "STRATEGIES",
    "ClipboardStrategy",
    "applicable_strategies",
    "asset_from_clipboard_text",
    "async_capture_clipboard_image",
    "async_write_clipboard_image",
    "capture_clipboard_image",
    "coerce_local_file_path",
    "extract_image_from_data_transfer",
    "looks_like_image_file",
    "normalize_to_bytes",
    "parse_image_data_url",
    "read_clipboard_text",
    "read_image_file",
    "write_clipboard_image",
]
