"""Upload configuration for mdpaste.

:class:`UploadConfig` is a frozen dataclass that captures every option of a
single upload call.  The host (editor extension, CLI wrapper, ...) resolves
its own settings and secret storage and hands a complete value in; mdpaste
never reads ambient configuration.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin, urlparse

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_UPLOAD_PATH = "/api/v1/upload"
DEFAULT_FILE_FIELD_NAME = "file"
DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_MARKDOWN_PATH = "data.links.markdown"
DEFAULT_URL_PATH = "data.links.url"
DEFAULT_FALLBACK_TEMPLATE = "![]({{url}})"


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UploadConfig:
    """Complete configuration for one image upload.

    Only ``base_url`` is required; every other parameter has the default
    used by the reference image host (Lsky Pro style API).

    Parameters
    ----------
    base_url:
        Root URL of the image host, e.g. ``https://img.example.com``.
    upload_path:
        Path of the upload endpoint, joined onto ``base_url``.
    token:
        API token.  Never logged.  An empty token sends no
        ``Authorization`` header.
    use_bearer_token:
        Send ``Authorization: Bearer <token>`` when ``True``, the raw
        token otherwise.
    file_field_name:
        Form field name of the file part.
    strategy_id:
        Optional storage strategy identifier, sent as the ``strategy_id``
        form field when non-blank.
    timeout_ms:
        Request timeout in milliseconds.
    response_markdown_path:
        Dot-path of a ready-made markdown string in the JSON response.
    response_url_path:
        Dot-path of the uploaded image URL in the JSON response, used
        when the markdown path does not resolve.
    markdown_fallback_template:
        Template rendered with ``{{url}}`` and ``{{filename}}`` when only
        the URL is available.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    metrics:
        Optional :class:`~mdpaste.observability.MetricsHook` backend.
    debug_dump_payload:
        Write a redacted request/response summary to *stderr*.
    """

    base_url: str

    upload_path: str = DEFAULT_UPLOAD_PATH

    token: str = ""

    use_bearer_token: bool = True

    file_field_name: str = DEFAULT_FILE_FIELD_NAME

    strategy_id: str | int | None = None

    timeout_ms: int = DEFAULT_TIMEOUT_MS

    # ── Response ───────────────────────────────────────────────────────
    response_markdown_path: str = DEFAULT_MARKDOWN_PATH

    response_url_path: str = DEFAULT_URL_PATH

    markdown_fallback_template: str = DEFAULT_FALLBACK_TEMPLATE

    # ── HTTP ────────────────────────────────────────────────────────────
    http_proxy: str | None = None

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    debug_dump_payload: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        parsed = urlparse(self.base_url.strip())
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(
                f"base_url must be an absolute http(s) URL, got {self.base_url!r}"
            )
        if isinstance(self.timeout_ms, bool) or not isinstance(self.timeout_ms, int):
            raise ValueError(f"timeout_ms must be an integer, got {self.timeout_ms!r}")
        if self.timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be > 0, got {self.timeout_ms}")
        if not self.file_field_name:
            raise ValueError("file_field_name must not be empty")

    # -- derived values ----------------------------------------------------

    @property
    def upload_url(self) -> str:
        """Absolute URL of the upload endpoint."""
        return urljoin(self.base_url.strip(), self.upload_path)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    @property
    def strategy_field(self) -> str | None:
        """The ``strategy_id`` form value, or ``None`` when blank."""
        if self.strategy_id is None:
            return None
        value = str(self.strategy_id)
        return value if value.strip() else None

    def with_token(self, setting: str | None, secret: str | None = None) -> UploadConfig:
        """Return a copy whose token is resolved from a setting and a secret.

        A non-blank *setting* wins over the *secret*; both are trimmed.
        """
        token = (setting or "").strip() or (secret or "").strip()
        return dataclasses.replace(self, token=token)

    def __repr__(self) -> str:
        """Mask the token to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "token":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"token='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"UploadConfig({', '.join(parts)})"
