"""Metrics hook protocol and no-op default implementation.

mdpaste emits counters and timings around clipboard extraction and upload
requests.  By default a :class:`NoopMetricsHook` is used; hosts can supply
any object satisfying :class:`MetricsHook` to route the data points to
their own backend.

Emitted metric names:

* ``mdpaste.clipboard_strategy_total``  -- counter (tags: tool, outcome)
* ``mdpaste.requests_total``            -- counter (tags: status)
* ``mdpaste.request_duration_ms``       -- timing
* ``mdpaste.upload_success_total``      -- counter
* ``mdpaste.upload_failure_total``      -- counter (tags: code)
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict of string keys and values.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that discards all data points."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass


def resolve_metrics(metrics: object | None) -> MetricsHook:
    """Return *metrics* or a shared no-op hook when it is ``None``."""
    return metrics if metrics is not None else _NOOP  # type: ignore[return-value]


_NOOP = NoopMetricsHook()
