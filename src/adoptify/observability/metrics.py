"""Metrics hook protocol and no-op default implementation.

adoptify emits counters and timings at key points (remote calls, rate
limiter waits, backoff retries, traversed and updated records).  By
default a :class:`NoopMetricsHook` is used so there is zero overhead.
Users can supply their own implementation that satisfies the
:class:`MetricsHook` protocol to route metrics to any backend.

Emitted metric names:

* ``adoptify.requests_total``            -- counter
* ``adoptify.request_duration_ms``       -- timing
* ``adoptify.rate_limit_wait_ms``        -- timing
* ``adoptify.rate_limited_total``        -- counter
* ``adoptify.retries_total``             -- counter
* ``adoptify.records_traversed_total``   -- counter
* ``adoptify.records_updated_total``     -- counter
* ``adoptify.fields_changed_total``      -- counter
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict whose keys and values are
    strings.
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

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to an absolute value."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that silently discards all data points."""

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

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
