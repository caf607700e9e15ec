"""Shared test fixtures for the mdpaste test suite."""

from __future__ import annotations

import pytest

from mdpaste.config import UploadConfig
from mdpaste.models import ImageAsset

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + bytes(range(256))


class RecordingMetrics:
    """MetricsHook that keeps every data point for assertions."""

    def __init__(self) -> None:
        self.increments: list[tuple[str, int, dict | None]] = []
        self.timings: list[tuple[str, float, dict | None]] = []

    def increment(self, name, value=1, tags=None):
        self.increments.append((name, value, tags))

    def timing(self, name, ms, tags=None):
        self.timings.append((name, ms, tags))

    def names(self) -> list[str]:
        return [name for name, _, _ in self.increments]


@pytest.fixture
def config() -> UploadConfig:
    """Default test configuration with a dummy token."""
    return UploadConfig(base_url="https://img.example.com", token="test_token_1234")


@pytest.fixture
def png_asset() -> ImageAsset:
    return ImageAsset(buffer=PNG_BYTES, filename="shot.png")


@pytest.fixture
def metrics() -> RecordingMetrics:
    return RecordingMetrics()
