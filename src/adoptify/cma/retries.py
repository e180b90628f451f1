"""Rate-limit detection and exponential backoff computation.

Two pure functions used by the call gateway:

* :func:`is_rate_limited` -- decide whether a failure is a rate-limit signal.
* :func:`compute_backoff` -- compute the delay before the next attempt.

Only rate-limit signals are ever retried.  Every other failure (including
version conflicts and server errors) propagates on the first occurrence.
"""

from __future__ import annotations

import random
from typing import Any

from adoptify.errors import AdoptifyRateLimitError

RATE_LIMIT_STATUS = 429

RATE_LIMIT_ERROR_ID = "RateLimitExceeded"


def _status_of(obj: Any) -> Any:
    for attr in ("status", "status_code"):
        value = getattr(obj, attr, None)
        if value is not None:
            return value
    return None


def is_rate_limited(exc: BaseException) -> bool:
    """Return ``True`` if *exc* signals "too many requests".

    Recognised signals:

    * :class:`~adoptify.errors.AdoptifyRateLimitError`,
    * any exception exposing ``status`` or ``status_code`` equal to 429,
    * an ``httpx.HTTPStatusError``-style ``exc.response.status_code`` of 429,
    * a remote error payload ``{"sys": {"id": "RateLimitExceeded"}}``
      exposed as ``exc.sys`` or ``exc.body``.
    """
    if isinstance(exc, AdoptifyRateLimitError):
        return True

    status = _status_of(exc)
    if status is None:
        status = _status_of(getattr(exc, "response", None))
    try:
        if status is not None and int(status) == RATE_LIMIT_STATUS:
            return True
    except (TypeError, ValueError):
        pass

    for attr in ("sys", "body"):
        payload = getattr(exc, attr, None)
        if isinstance(payload, dict):
            sys_block = payload.get("sys", payload)
            if isinstance(sys_block, dict) and sys_block.get("id") == RATE_LIMIT_ERROR_ID:
                return True
    return False


def retry_after_of(exc: BaseException) -> float | None:
    """Return the server-suggested wait carried by *exc*, if any."""
    if isinstance(exc, AdoptifyRateLimitError):
        value = exc.context.get("retry_after_seconds")
        if isinstance(value, (int, float)):
            return float(value)
    return None


def compute_backoff(
    attempt: int,
    base: float = 0.3,
    maximum: float = 30.0,
    jitter: float = 0.1,
    retry_after: float | None = None,
) -> float:
    """Compute the delay before retry number ``attempt + 1``.

    The delay follows exponential backoff (``base * 2^attempt``) capped at
    *maximum*.  A server-provided *retry_after* raises the delay when it is
    longer.  A uniform random jitter in ``[0, jitter]`` is always added.

    Parameters
    ----------
    attempt:
        Number of retries already performed (0 for the first retry).
    base:
        Base delay in seconds.
    maximum:
        Cap on the exponential part, in seconds.
    jitter:
        Upper bound of the added random delay, in seconds.
    retry_after:
        Server hint in seconds, if the failure carried one.

    Returns
    -------
    float
        Delay in seconds.
    """
    delay = min(base * (2 ** attempt), maximum)
    if retry_after is not None:
        delay = max(delay, retry_after)
    if jitter:
        delay += random.uniform(0, jitter)
    return delay
