"""Sync and async HTTP transports for the image host upload endpoint.

Each transport performs exactly one request per call:

1. Build headers (content type with boundary, length, ``Accept``, auth).
2. ``POST`` the encoded multipart body to ``config.upload_url``.
3. On ``2xx`` -- return the raw response text, fully buffered.
4. On any other status -- raise :class:`MdPasteHTTPStatusError`.
5. On timeout -- raise :class:`MdPasteTimeoutError`.
6. On any other request failure (connection, protocol, decoding) --
   raise :class:`MdPasteNetworkError`.

Nothing is retried; the caller decides whether to run the whole upload
again.
"""

from __future__ import annotations

import asyncio
import json as _json
import sys
import time
from typing import Any

import httpx

from mdpaste.config import UploadConfig
from mdpaste.errors import (
    MdPasteHTTPStatusError,
    MdPasteNetworkError,
    MdPasteTimeoutError,
)
from mdpaste.observability import get_logger, resolve_metrics
from mdpaste.utils.text import truncate

log = get_logger("mdpaste.transport")

ERROR_BODY_CHARS = 400


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def build_headers(config: UploadConfig, boundary: str, content_length: int) -> dict[str, str]:
    """Return the request headers for one upload."""
    headers = {
        "Content-Type": f"multipart/form-data; boundary={boundary}",
        "Content-Length": str(content_length),
        "Accept": "application/json",
    }
    if config.token:
        headers["Authorization"] = (
            f"Bearer {config.token}" if config.use_bearer_token else config.token
        )
    return headers


def _raise_for_status(response: httpx.Response, url: str) -> None:
    """Raise :class:`MdPasteHTTPStatusError` for any non-2xx response."""
    status = response.status_code
    if 200 <= status < 300:
        return
    reason = response.reason_phrase or ""
    body = truncate(response.text, ERROR_BODY_CHARS)
    raise MdPasteHTTPStatusError(
        message=f"upload failed: HTTP {status} {reason} {body}".strip(),
        context={
            "url": url,
            "status_code": status,
            "reason": reason,
            "body": body,
        },
    )


def _timeout_error(config: UploadConfig, exc: BaseException) -> MdPasteTimeoutError:
    return MdPasteTimeoutError(
        message=f"timeout after {config.timeout_ms}ms",
        context={"url": config.upload_url, "timeout_ms": config.timeout_ms},
        cause=exc if isinstance(exc, Exception) else None,
    )


def _network_error(config: UploadConfig, exc: httpx.RequestError) -> MdPasteNetworkError:
    return MdPasteNetworkError(
        message=str(exc) or type(exc).__name__,
        context={"url": config.upload_url},
        cause=exc,
    )


def _emit_debug_dump(
    config: UploadConfig,
    headers: dict[str, str],
    body_length: int,
    response: httpx.Response,
) -> None:
    """Write a redacted summary of the request/response to stderr if enabled."""
    if not config.debug_dump_payload:
        return
    from mdpaste.utils.redact import redact

    try:
        resp_body: Any = response.json()
    except ValueError:
        resp_body = truncate(response.text, 1000)
    dump = {
        "method": "POST",
        "url": config.upload_url,
        "request_headers": headers,
        "request_body_bytes": body_length,
        "response_status": response.status_code,
        "response_body": resp_body,
    }
    print(
        _json.dumps(redact(dump, config.token), indent=2, default=str),
        file=sys.stderr,
    )


def _record(config: UploadConfig, metrics: Any, response: httpx.Response, elapsed_ms: float) -> None:
    status = str(response.status_code)
    metrics.increment("mdpaste.requests_total", tags={"status": status})
    metrics.timing("mdpaste.request_duration_ms", elapsed_ms, tags={"status": status})
    log.debug(
        "upload request complete",
        extra={
            "extra_fields": {
                "op": "upload",
                "url": config.upload_url,
                "status_code": response.status_code,
                "elapsed_ms": round(elapsed_ms, 1),
            }
        },
    )


def _log_failure(config: UploadConfig, metrics: Any, exc: Exception) -> None:
    metrics.increment("mdpaste.requests_total", tags={"status": "error"})
    log.warning(
        "upload request failed",
        extra={
            "extra_fields": {
                "op": "upload",
                "url": config.upload_url,
                "error": str(exc),
            }
        },
    )


# ---------------------------------------------------------------------------
# Sync transport
# ---------------------------------------------------------------------------

class UploadTransport:
    """Synchronous single-shot upload transport.

    Parameters
    ----------
    config:
        An :class:`UploadConfig` controlling endpoint, auth and timeout.
    """

    def __init__(self, config: UploadConfig) -> None:
        self._config = config
        self._metrics = resolve_metrics(config.metrics)
        self._client = httpx.Client(
            timeout=httpx.Timeout(config.timeout_seconds),
            proxy=config.http_proxy,
        )

    def post(self, body: bytes, boundary: str) -> str:
        """Send *body* to the upload endpoint and return the response text.

        Raises
        ------
        MdPasteHTTPStatusError
            On any non-2xx response.
        MdPasteTimeoutError
            When no response arrives within ``timeout_ms``.
        MdPasteNetworkError
            On connection, protocol or decoding failures.
        """
        config = self._config
        headers = build_headers(config, boundary, len(body))

        t0 = time.monotonic()
        try:
            response = self._client.post(config.upload_url, content=body, headers=headers)
        except httpx.TimeoutException as exc:
            _log_failure(config, self._metrics, exc)
            raise _timeout_error(config, exc) from exc
        except httpx.RequestError as exc:
            _log_failure(config, self._metrics, exc)
            raise _network_error(config, exc) from exc
        elapsed_ms = (time.monotonic() - t0) * 1000

        _record(config, self._metrics, response, elapsed_ms)
        _emit_debug_dump(config, headers, len(body), response)
        _raise_for_status(response, config.upload_url)
        return response.text

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> UploadTransport:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Async transport
# ---------------------------------------------------------------------------

class AsyncUploadTransport:
    """Asynchronous single-shot upload transport.

    Mirrors :class:`UploadTransport` with ``httpx.AsyncClient``.  The whole
    request is additionally bounded by ``timeout_ms`` so a server that
    trickles bytes cannot hold the call open indefinitely.
    """

    def __init__(self, config: UploadConfig) -> None:
        self._config = config
        self._metrics = resolve_metrics(config.metrics)
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout_seconds),
            proxy=config.http_proxy,
        )

    async def post(self, body: bytes, boundary: str) -> str:
        """Send *body* to the upload endpoint (async).

        See :meth:`UploadTransport.post` for the error contract.
        """
        config = self._config
        headers = build_headers(config, boundary, len(body))

        t0 = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.post(config.upload_url, content=body, headers=headers),
                timeout=config.timeout_seconds,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            _log_failure(config, self._metrics, exc)
            raise _timeout_error(config, exc) from exc
        except httpx.RequestError as exc:
            _log_failure(config, self._metrics, exc)
            raise _network_error(config, exc) from exc
        elapsed_ms = (time.monotonic() - t0) * 1000

        _record(config, self._metrics, response, elapsed_ms)
        _emit_debug_dump(config, headers, len(body), response)
        _raise_for_status(response, config.upload_url)
        return response.text

    async def close(self) -> None:
        """Close the underlying async HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncUploadTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
