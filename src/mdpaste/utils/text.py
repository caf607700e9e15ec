"""Text helpers shared by the transport and the response resolver."""

from __future__ import annotations

ELLIPSIS = "…"


def truncate(text: object, limit: int) -> str:
    """Shorten *text* to at most *limit* characters plus a trailing ellipsis.

    Slicing works on code points, so a multi-byte character is never cut in
    half.  ``None`` renders as the empty string.
    """
    s = "" if text is None else str(text)
    if len(s) <= limit:
        return s
    return s[:limit] + ELLIPSIS
