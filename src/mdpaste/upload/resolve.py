"""Locate the markdown reference in an image host's JSON response.

Resolution order:

1. ``response_markdown_path`` -- a ready-made markdown string.
2. ``response_url_path`` -- a URL, rendered through the fallback template.
3. Neither -- :class:`MdPasteFieldNotFoundError` naming both paths.
"""

from __future__ import annotations

import json
from typing import Any

from mdpaste.errors import MdPasteFieldNotFoundError, MdPasteInvalidJSONError
from mdpaste.models import UploadResult
from mdpaste.utils.text import truncate

PREVIEW_CHARS = 400


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()
"""Returned by :func:`get_by_dot_path` when a segment does not exist.

Distinct from ``None`` so a JSON ``null`` can still be told apart."""


def get_by_dot_path(tree: Any, dot_path: str | None) -> Any:
    """Walk *tree* one ``.``-separated segment at a time.

    Each segment must be a key of the current dict, or a non-negative
    in-range index of the current list (``data.0.url``).  Empty segments
    are dropped, so ``".a..b."`` is ``a.b``.  A blank path or any missing
    segment yields :data:`MISSING`; this never raises.
    """
    path = str(dot_path or "").strip()
    if not path:
        return MISSING

    current = tree
    for key in (part for part in path.split(".") if part):
        if isinstance(current, dict) and key in current:
            current = current[key]
            continue
        if isinstance(current, list) and key.isdecimal() and int(key) < len(current):
            current = current[int(key)]
            continue
        return MISSING
    return current


def apply_template(template: str | None, variables: dict[str, Any]) -> str:
    """Replace ``{{url}}`` and ``{{filename}}`` in *template*.

    Unknown placeholders are left verbatim; ``None`` or absent values
    render as the empty string.
    """
    rendered = str(template or "")
    for name in ("url", "filename"):
        value = variables.get(name)
        rendered = rendered.replace("{{" + name + "}}", "" if value is None else str(value))
    return rendered


def _usable_string(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def parse_json_response(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as exc:
        raise MdPasteInvalidJSONError(
            message=f"response is not JSON: {truncate(text, PREVIEW_CHARS)}",
            context={"preview": truncate(text, PREVIEW_CHARS)},
            cause=exc,
        ) from exc


def resolve_response(
    text: str,
    markdown_path: str,
    url_path: str,
    template: str,
    filename: str = "",
) -> UploadResult:
    """Turn a raw response body into an :class:`UploadResult`.

    Raises
    ------
    MdPasteInvalidJSONError
        If *text* is not valid JSON.
    MdPasteFieldNotFoundError
        If neither path resolves to a non-blank string.
    """
    data = parse_json_response(text)

    markdown = _usable_string(get_by_dot_path(data, markdown_path))
    if markdown is not None:
        return UploadResult(markdown=markdown, raw_json=data, filename=filename)

    url = _usable_string(get_by_dot_path(data, url_path))
    if url is not None:
        rendered = apply_template(template, {"url": url, "filename": filename})
        return UploadResult(markdown=rendered, raw_json=data, filename=filename)

    raise MdPasteFieldNotFoundError(
        message=(
            f"cannot find markdown/url in response "
            f"(paths: '{markdown_path}', '{url_path}')"
        ),
        context={"markdown_path": markdown_path, "url_path": url_path},
    )
