"""Tests for MdPasteClient (sync) and AsyncMdPasteClient (async).

The image host is mocked with ``httpx.MockTransport`` and clipboard access
is patched out, so these tests run entirely offline.
"""

from __future__ import annotations

import json
import threading
from contextlib import asynccontextmanager, contextmanager

import httpx
import pytest

from mdpaste import (
    AsyncMdPasteClient,
    ErrorCode,
    MdPasteClient,
    MdPasteFieldNotFoundError,
    MdPasteFileError,
    MdPasteHTTPStatusError,
    MdPasteInvalidJSONError,
    MdPasteNetworkError,
    MdPasteNoImageError,
    UploadConfig,
)
from mdpaste import async_client
from mdpaste.models import ImageAsset

PNG_BYTES = b"\x89PNG\r\n\x1a\nclient-test"

LSKY_OK = {
    "status": True,
    "data": {
        "links": {
            "url": "https://img.example.com/i/x.png",
            "markdown": "![shot.png](https://img.example.com/i/x.png)",
        }
    },
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class Host:
    """Fake image host recording every request it receives."""

    def __init__(self, status: int = 200, body: object = LSKY_OK) -> None:
        self.status = status
        self.body = body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.body, str):
            return httpx.Response(self.status, text=self.body)
        return httpx.Response(self.status, json=self.body)


def make_client(host, **overrides) -> MdPasteClient:
    options = dict(base_url="https://img.example.com", token="test_token_1234")
    options.update(overrides)
    client = MdPasteClient(**options)
    client._transport._client.close()
    client._transport._client = httpx.Client(transport=httpx.MockTransport(host))
    return client


async def make_async_client(host, **overrides) -> AsyncMdPasteClient:
    options = dict(base_url="https://img.example.com", token="test_token_1234")
    options.update(overrides)
    client = AsyncMdPasteClient(**options)
    await client._transport._client.aclose()
    client._transport._client = httpx.AsyncClient(transport=httpx.MockTransport(host))
    return client


def fake_capture(asset):
    """Return a replacement for ``capture_clipboard_image`` yielding *asset*."""
    exits = []

    @contextmanager
    def capture(*args, **kwargs):
        try:
            yield asset
        finally:
            exits.append(True)

    capture.exits = exits
    return capture


def fake_async_capture(asset):
    exits = []

    @asynccontextmanager
    async def capture(*args, **kwargs):
        try:
            yield asset
        finally:
            exits.append(True)

    capture.exits = exits
    return capture


# ===========================================================================
# Construction
# ===========================================================================

class TestConstruction:
    def test_from_kwargs(self):
        client = MdPasteClient(base_url="https://img.example.com")
        assert client.config.base_url == "https://img.example.com"
        client.close()

    def test_from_config(self, config):
        with MdPasteClient(config) as client:
            assert client.config is config

    def test_invalid_config(self):
        with pytest.raises(ValueError, match="base_url"):
            MdPasteClient(base_url="img.example.com")


# ===========================================================================
# Sync client
# ===========================================================================

class TestUploadAsset:
    def test_markdown_from_response(self, png_asset):
        host = Host()
        with make_client(host) as client:
            result = client.upload_asset(png_asset)
        assert result.markdown == "![shot.png](https://img.example.com/i/x.png)"
        assert result.raw_json == LSKY_OK
        assert result.filename == "shot.png"
        assert len(host.requests) == 1

    def test_request_shape(self, png_asset):
        host = Host()
        with make_client(host, strategy_id=7) as client:
            client.upload_asset(png_asset)
        request = host.requests[0]
        assert str(request.url) == "https://img.example.com/api/v1/upload"
        assert request.headers["authorization"] == "Bearer test_token_1234"
        assert request.headers["content-type"].startswith("multipart/form-data; boundary=")
        body = request.content
        assert b'Content-Disposition: form-data; name="strategy_id"\r\n\r\n7\r\n' in body
        assert b'name="file"; filename="shot.png"\r\nContent-Type: image/png\r\n\r\n' in body
        assert png_asset.buffer in body
        assert body.index(b'name="strategy_id"') < body.index(b'name="file"')

    def test_custom_file_field(self, png_asset):
        host = Host()
        with make_client(host, file_field_name="image") as client:
            client.upload_asset(png_asset)
        assert b'name="image"; filename="shot.png"' in host.requests[0].content
        assert b'name="strategy_id"' not in host.requests[0].content

    def test_url_fallback_template(self, png_asset):
        host = Host(body={"data": {"links": {"url": "https://e.co/x.png"}}})
        with make_client(host, markdown_fallback_template="![{{filename}}]({{url}})") as client:
            result = client.upload_asset(png_asset)
        assert result.markdown == "![shot.png](https://e.co/x.png)"

    def test_custom_response_paths(self, png_asset):
        host = Host(body={"result": {"src": "https://e.co/y.png"}})
        with make_client(host, response_markdown_path="", response_url_path="result.src") as client:
            result = client.upload_asset(png_asset)
        assert result.markdown == "![](https://e.co/y.png)"

    def test_http_error(self, png_asset, metrics):
        with make_client(Host(status=500, body="boom"), metrics=metrics) as client:
            with pytest.raises(MdPasteHTTPStatusError) as exc_info:
                client.upload_asset(png_asset)
        assert "HTTP 500" in str(exc_info.value)
        assert ("mdpaste.upload_failure_total", 1, {"code": "HTTP_STATUS"}) in metrics.increments
        assert "mdpaste.upload_success_total" not in metrics.names()

    def test_invalid_json(self, png_asset):
        with make_client(Host(body="<html>ok</html>")) as client:
            with pytest.raises(MdPasteInvalidJSONError):
                client.upload_asset(png_asset)

    def test_field_not_found(self, png_asset, metrics):
        with make_client(Host(body={"status": False}), metrics=metrics) as client:
            with pytest.raises(MdPasteFieldNotFoundError):
                client.upload_asset(png_asset)
        assert ("mdpaste.upload_failure_total", 1, {"code": "FIELD_NOT_FOUND"}) in metrics.increments

    def test_network_error(self, png_asset):
        def host(request):
            raise httpx.ConnectError("connection refused", request=request)

        with make_client(host) as client:
            with pytest.raises(MdPasteNetworkError) as exc_info:
                client.upload_asset(png_asset)
        assert exc_info.value.code == ErrorCode.NETWORK_ERROR

    def test_success_metrics(self, png_asset, metrics):
        with make_client(Host(), metrics=metrics) as client:
            client.upload_asset(png_asset)
        assert "mdpaste.upload_success_total" in metrics.names()
        assert ("mdpaste.requests_total", 1, {"status": "200"}) in metrics.increments


class TestUploadFile:
    def test_reads_and_uploads(self, tmp_path):
        image = tmp_path / "diagram.webp"
        image.write_bytes(b"RIFFwebp")
        host = Host()
        with make_client(host) as client:
            client.upload_file(image)
        body = host.requests[0].content
        assert b'filename="diagram.webp"\r\nContent-Type: image/webp' in body

    def test_filename_override(self, tmp_path):
        image = tmp_path / "diagram.png"
        image.write_bytes(PNG_BYTES)
        host = Host()
        with make_client(host) as client:
            result = client.upload_file(image, filename="renamed.png")
        assert result.filename == "renamed.png"

    def test_missing_file_sends_nothing(self, tmp_path):
        host = Host()
        with make_client(host) as client:
            with pytest.raises(MdPasteFileError):
                client.upload_file(tmp_path / "nope.png")
        assert host.requests == []


class TestUploadClipboard:
    def test_clipboard_image(self, monkeypatch, png_asset):
        capture = fake_capture(png_asset)
        monkeypatch.setattr("mdpaste.client.capture_clipboard_image", capture)
        host = Host()
        with make_client(host) as client:
            result = client.upload_clipboard()
        assert result.markdown.startswith("![shot.png]")
        assert capture.exits == [True]

    def test_staging_released_on_failure(self, monkeypatch, png_asset):
        capture = fake_capture(png_asset)
        monkeypatch.setattr("mdpaste.client.capture_clipboard_image", capture)
        with make_client(Host(status=502, body="bad gateway")) as client:
            with pytest.raises(MdPasteHTTPStatusError):
                client.upload_clipboard()
        assert capture.exits == [True]

    def test_falls_back_to_clipboard_path(self, monkeypatch, tmp_path):
        image = tmp_path / "copied.png"
        image.write_bytes(PNG_BYTES)
        monkeypatch.setattr("mdpaste.client.capture_clipboard_image", fake_capture(None))
        monkeypatch.setattr("mdpaste.client.read_clipboard_text", lambda: str(image))
        host = Host()
        with make_client(host) as client:
            result = client.upload_clipboard()
        assert result.filename == "copied.png"

    def test_explicit_clipboard_text(self, monkeypatch, tmp_path):
        image = tmp_path / "given.png"
        image.write_bytes(PNG_BYTES)

        def unexpected():
            raise AssertionError("system clipboard should not be read")

        monkeypatch.setattr("mdpaste.client.capture_clipboard_image", fake_capture(None))
        monkeypatch.setattr("mdpaste.client.read_clipboard_text", unexpected)
        with make_client(Host()) as client:
            result = client.upload_clipboard(clipboard_text=str(image))
        assert result.filename == "given.png"

    def test_no_image(self, monkeypatch):
        monkeypatch.setattr("mdpaste.client.capture_clipboard_image", fake_capture(None))
        monkeypatch.setattr("mdpaste.client.read_clipboard_text", lambda: "plain words")
        host = Host()
        with make_client(host) as client:
            with pytest.raises(MdPasteNoImageError) as exc_info:
                client.upload_clipboard()
        assert exc_info.value.code == ErrorCode.NO_IMAGE
        assert exc_info.value.context == {"source": "clipboard"}
        assert host.requests == []


# ===========================================================================
# Async client
# ===========================================================================

class TestAsyncClient:
    async def test_upload_asset(self, png_asset):
        host = Host()
        client = await make_async_client(host)
        async with client:
            result = await client.upload_asset(png_asset)
        assert result.markdown == "![shot.png](https://img.example.com/i/x.png)"
        assert len(host.requests) == 1

    async def test_upload_file(self, tmp_path):
        image = tmp_path / "a.gif"
        image.write_bytes(b"GIF89a")
        host = Host()
        client = await make_async_client(host)
        async with client:
            await client.upload_file(image)
        assert b"Content-Type: image/gif" in host.requests[0].content

    async def test_http_error(self, png_asset, metrics):
        client = await make_async_client(Host(status=403, body="forbidden"), metrics=metrics)
        async with client:
            with pytest.raises(MdPasteHTTPStatusError) as exc_info:
                await client.upload_asset(png_asset)
        assert exc_info.value.status_code == 403
        assert ("mdpaste.upload_failure_total", 1, {"code": "HTTP_STATUS"}) in metrics.increments

    async def test_upload_clipboard(self, monkeypatch, png_asset):
        capture = fake_async_capture(png_asset)
        monkeypatch.setattr("mdpaste.async_client.async_capture_clipboard_image", capture)
        client = await make_async_client(Host())
        async with client:
            result = await client.upload_clipboard()
        assert result.filename == "shot.png"
        assert capture.exits == [True]

    async def test_upload_clipboard_no_image(self, monkeypatch):
        monkeypatch.setattr(
            "mdpaste.async_client.async_capture_clipboard_image", fake_async_capture(None),
        )
        monkeypatch.setattr("mdpaste.async_client.read_clipboard_text", lambda: None)
        client = await make_async_client(Host())
        async with client:
            with pytest.raises(MdPasteNoImageError):
                await client.upload_clipboard()

    async def test_upload_data_transfer(self):
        host = Host()
        client = await make_async_client(host)
        async with client:
            result = await client.upload_data_transfer({"image/jpeg": b"\xff\xd8jpeg"})
        assert result is not None
        assert result.filename == "pasted-image.jpg"
        assert b'filename="pasted-image.jpg"\r\nContent-Type: image/jpeg' in host.requests[0].content

    async def test_upload_data_transfer_without_image(self):
        host = Host()
        client = await make_async_client(host)
        async with client:
            assert await client.upload_data_transfer({"text/plain": "hi"}) is None
        assert host.requests == []

    async def test_raw_json_preserved(self):
        client = await make_async_client(Host())
        async with client:
            result = await client.upload_asset(ImageAsset(buffer=b"x", filename="x.png"))
        assert json.dumps(result.raw_json, sort_keys=True) == json.dumps(LSKY_OK, sort_keys=True)


def test_config_reused_between_clients(config):
    with MdPasteClient(config) as first, MdPasteClient(config) as second:
        assert first.config is second.config
    assert isinstance(config, UploadConfig)


class TestAsyncClientOffLoop:
    """Blocking file and clipboard reads must run outside the event-loop thread."""

    async def test_upload_file_reads_in_executor(self, monkeypatch, tmp_path):
        image = tmp_path / "a.png"
        image.write_bytes(PNG_BYTES)
        loop_thread = threading.get_ident()
        seen = []
        real_read = async_client.read_image_file

        def read_image_file(path, filename=None):
            seen.append(threading.get_ident())
            return real_read(path, filename)

        monkeypatch.setattr(async_client, "read_image_file", read_image_file)
        client = await make_async_client(Host())
        async with client:
            await client.upload_file(image)
        assert seen and seen[0] != loop_thread

    async def test_clipboard_text_read_in_executor(self, monkeypatch, tmp_path):
        image = tmp_path / "copied.png"
        image.write_bytes(PNG_BYTES)
        loop_thread = threading.get_ident()
        seen = []

        def read_clipboard_text():
            seen.append(threading.get_ident())
            return str(image)

        monkeypatch.setattr(
            "mdpaste.async_client.async_capture_clipboard_image", fake_async_capture(None),
        )
        monkeypatch.setattr(async_client, "read_clipboard_text", read_clipboard_text)
        client = await make_async_client(Host())
        async with client:
            result = await client.upload_clipboard()
        assert result.filename == "copied.png"
        assert seen and seen[0] != loop_thread
