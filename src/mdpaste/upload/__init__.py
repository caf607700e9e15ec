"""Upload pipeline: multipart encoding, HTTP transport, response resolution.

Exports
-------
build_multipart_body / guess_content_type / make_boundary
    Encode one image and its scalar fields as ``multipart/form-data``.
UploadTransport / AsyncUploadTransport
    Single-shot ``POST`` with timeout and typed errors.
resolve_response / get_by_dot_path / apply_template
    Derive the markdown reference from the JSON response.
"""

from .multipart import build_multipart_body, encode_asset, guess_content_type, make_boundary
from .resolve import MISSING, apply_template, get_by_dot_path, resolve_response
from .transport import AsyncUploadTransport, UploadTransport, build_headers

__all__ = [
    "MISSING",
    "AsyncUploadTransport",
    "UploadTransport",
    "apply_template",
    "build_headers",
    "build_multipart_body",
    "encode_asset",
    "get_by_dot_path",
    "guess_content_type",
    "make_boundary",
    "resolve_response",
]
