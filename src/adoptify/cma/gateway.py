"""The call gateway: every remote read and write goes through here.

:class:`CallGateway` (sync) and :class:`AsyncCallGateway` (async) combine
a sliding-log limiter with bounded exponential backoff on rate-limit
signals.  Calls carry no identity: every operation routed through one
gateway draws from the same budget.

By default clients obtain their gateway from :func:`shared_gateway` /
:func:`shared_async_gateway`.  All shared gateways with the same call
ceiling, sync and async alike, draw from one timestamp log, so concurrent
traversals compete for a single remote quota.
"""

from __future__ import annotations

import asyncio
import threading
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from adoptify.config import AdoptifyConfig
from adoptify.observability import NoopMetricsHook, get_logger, log_fields

from .rate_limit import AsyncSlidingWindowLimiter, CallLog, SlidingWindowLimiter
from .retries import compute_backoff, is_rate_limited, retry_after_of

log = get_logger("adoptify.gateway")

T = TypeVar("T")


class _GatewayBase:
    """Retry policy and instrumentation shared by both gateways."""

    def __init__(
        self,
        *,
        max_retries: int,
        base_delay: float,
        max_delay: float,
        jitter_seconds: float,
        metrics: Any | None,
    ) -> None:
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter_seconds = jitter_seconds
        self._metrics = metrics if metrics is not None else NoopMetricsHook()

    def _record_wait(self, wait: float) -> None:
        if wait > 0:
            self._metrics.timing("adoptify.rate_limit_wait_ms", wait * 1000)

    def _next_delay(self, exc: BaseException, attempt: int, operation: Any) -> float | None:
        """Return the backoff before retrying, or ``None`` to re-raise."""
        if not is_rate_limited(exc) or attempt >= self.max_retries:
            return None

        delay = compute_backoff(
            attempt,
            base=self.base_delay,
            maximum=self.max_delay,
            jitter=self.jitter_seconds,
            retry_after=retry_after_of(exc),
        )
        name = getattr(operation, "__qualname__", repr(operation))
        self._metrics.increment("adoptify.rate_limited_total", tags={"operation": name})
        self._metrics.increment("adoptify.retries_total", tags={"reason": "rate_limited"})
        log.warning(
            "Rate limited, backing off",
            extra=log_fields(
                op="guarded_call",
                operation=name,
                attempt=attempt + 1,
                max_retries=self.max_retries,
                delay_seconds=round(delay, 3),
            ),
        )
        return delay


# ---------------------------------------------------------------------------
# Sync gateway
# ---------------------------------------------------------------------------

class CallGateway(_GatewayBase):
    """Throttle plus rate-limit retry for synchronous remote calls.

    Parameters
    ----------
    limiter:
        The sliding-log limiter providing the call budget.
    max_retries:
        Retries after the first call before the failure is re-raised.
    base_delay / max_delay:
        Exponential backoff base and cap, in seconds.
    jitter_seconds:
        Upper bound of the random delay added to each backoff.
    metrics:
        Optional :class:`~adoptify.observability.MetricsHook`.
    """

    def __init__(
        self,
        limiter: SlidingWindowLimiter | None = None,
        *,
        max_retries: int = 4,
        base_delay: float = 0.3,
        max_delay: float = 30.0,
        jitter_seconds: float = 0.1,
        metrics: Any | None = None,
    ) -> None:
        super().__init__(
            max_retries=max_retries,
            base_delay=base_delay,
            max_delay=max_delay,
            jitter_seconds=jitter_seconds,
            metrics=metrics,
        )
        self.limiter = limiter if limiter is not None else SlidingWindowLimiter()

    @classmethod
    def from_config(cls, config: AdoptifyConfig) -> CallGateway:
        return cls(
            SlidingWindowLimiter(
                config.rate_limit_max_per_second,
                config.rate_limit_window_seconds,
                config.rate_limit_jitter_seconds,
            ),
            **_retry_settings(config),
        )

    def throttle(self) -> float:
        """Block until one more remote call is within budget."""
        wait = self.limiter.acquire()
        self._record_wait(wait)
        return wait

    def guarded_call(self, operation: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run ``operation(*args, **kwargs)`` under throttle and retry.

        Rate-limit failures are retried up to :attr:`max_retries` times;
        the last one is re-raised unchanged.  Any other exception
        propagates immediately.
        """
        attempt = 0
        while True:
            self.throttle()
            try:
                return operation(*args, **kwargs)
            except Exception as exc:
                delay = self._next_delay(exc, attempt, operation)
                if delay is None:
                    raise
            time.sleep(delay)
            attempt += 1


# ---------------------------------------------------------------------------
# Async gateway
# ---------------------------------------------------------------------------

class AsyncCallGateway(_GatewayBase):
    """Async twin of :class:`CallGateway`.

    *operation* must return an awaitable; it is awaited inside the retry
    loop so that a rate-limit failure raised while awaiting is retried.
    """

    def __init__(
        self,
        limiter: AsyncSlidingWindowLimiter | None = None,
        *,
        max_retries: int = 4,
        base_delay: float = 0.3,
        max_delay: float = 30.0,
        jitter_seconds: float = 0.1,
        metrics: Any | None = None,
    ) -> None:
        super().__init__(
            max_retries=max_retries,
            base_delay=base_delay,
            max_delay=max_delay,
            jitter_seconds=jitter_seconds,
            metrics=metrics,
        )
        self.limiter = limiter if limiter is not None else AsyncSlidingWindowLimiter()

    @classmethod
    def from_config(cls, config: AdoptifyConfig) -> AsyncCallGateway:
        return cls(
            AsyncSlidingWindowLimiter(
                config.rate_limit_max_per_second,
                config.rate_limit_window_seconds,
                config.rate_limit_jitter_seconds,
            ),
            **_retry_settings(config),
        )

    async def throttle(self) -> float:
        """Await until one more remote call is within budget."""
        wait = await self.limiter.acquire()
        self._record_wait(wait)
        return wait

    async def guarded_call(
        self,
        operation: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Await ``operation(*args, **kwargs)`` under throttle and retry."""
        attempt = 0
        while True:
            await self.throttle()
            try:
                return await operation(*args, **kwargs)
            except Exception as exc:
                delay = self._next_delay(exc, attempt, operation)
                if delay is None:
                    raise
            await asyncio.sleep(delay)
            attempt += 1


# ---------------------------------------------------------------------------
# Process-wide shared gateways
# ---------------------------------------------------------------------------

_registry_lock = threading.Lock()
_shared_limiters: dict[tuple, tuple[SlidingWindowLimiter, AsyncSlidingWindowLimiter]] = {}
_shared_sync: dict[tuple, CallGateway] = {}
_shared_async: dict[tuple, AsyncCallGateway] = {}


def _ceiling_key(config: AdoptifyConfig) -> tuple:
    return (config.rate_limit_max_per_second, config.rate_limit_window_seconds)


def _retry_key(config: AdoptifyConfig) -> tuple:
    return _ceiling_key(config) + (
        config.retry_max_attempts,
        config.retry_base_delay,
        config.retry_max_delay,
        config.retry_jitter_seconds,
    )


def _retry_settings(config: AdoptifyConfig) -> dict[str, Any]:
    return {
        "max_retries": config.retry_max_attempts,
        "base_delay": config.retry_base_delay,
        "max_delay": config.retry_max_delay,
        "jitter_seconds": config.retry_jitter_seconds,
        "metrics": config.metrics,
    }


def _shared_limiters_for(
    config: AdoptifyConfig,
) -> tuple[SlidingWindowLimiter, AsyncSlidingWindowLimiter]:
    # Caller holds _registry_lock.
    key = _ceiling_key(config)
    pair = _shared_limiters.get(key)
    if pair is None:
        call_log = CallLog()
        args = (
            config.rate_limit_max_per_second,
            config.rate_limit_window_seconds,
            config.rate_limit_jitter_seconds,
        )
        pair = (
            SlidingWindowLimiter(*args, log=call_log),
            AsyncSlidingWindowLimiter(*args, log=call_log),
        )
        _shared_limiters[key] = pair
    return pair


def shared_gateway(config: AdoptifyConfig) -> CallGateway:
    """Return the process-wide sync gateway for *config*'s settings.

    Every shared gateway, sync or async, with the same ceiling
    (``rate_limit_max_per_second`` per ``rate_limit_window_seconds``)
    draws from one call log.  Retry settings only pick the backoff
    policy wrapped around it.  The first caller's metrics hook and limiter
    jitter are the ones kept.
    """
    key = _retry_key(config)
    with _registry_lock:
        gateway = _shared_sync.get(key)
        if gateway is None:
            limiter, _ = _shared_limiters_for(config)
            gateway = CallGateway(limiter, **_retry_settings(config))
            _shared_sync[key] = gateway
        return gateway


def shared_async_gateway(config: AdoptifyConfig) -> AsyncCallGateway:
    """Return the process-wide async gateway for *config*'s settings.

    Shares its call log with :func:`shared_gateway` for the same ceiling.
    """
    key = _retry_key(config)
    with _registry_lock:
        gateway = _shared_async.get(key)
        if gateway is None:
            _, limiter = _shared_limiters_for(config)
            gateway = AsyncCallGateway(limiter, **_retry_settings(config))
            _shared_async[key] = gateway
        return gateway


def gateway_for(config: AdoptifyConfig) -> CallGateway:
    """Pick the sync gateway dictated by ``config.gateway_scope``."""
    if config.gateway_scope == "client":
        return CallGateway.from_config(config)
    return shared_gateway(config)


def async_gateway_for(config: AdoptifyConfig) -> AsyncCallGateway:
    """Pick the async gateway dictated by ``config.gateway_scope``."""
    if config.gateway_scope == "client":
        return AsyncCallGateway.from_config(config)
    return shared_async_gateway(config)


def reset_shared_gateways() -> None:
    """Forget every shared gateway and call log (test isolation)."""
    with _registry_lock:
        _shared_limiters.clear()
        _shared_sync.clear()
        _shared_async.clear()
