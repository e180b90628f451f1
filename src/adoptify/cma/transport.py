"""Sync and async HTTP transports for the content management API.

A transport performs exactly one HTTP exchange per :meth:`request` call:

1. Send the request with bearer auth and the management content type.
2. On ``2xx`` -- return the parsed JSON body.
3. On any other status -- raise the matching typed error.
4. On a network failure -- raise :class:`AdoptifyNetworkError`.

Transports never sleep and never retry.  Pacing and rate-limit backoff
belong to the call gateway, which wraps the endpoint wrappers built on top
of a transport.
"""

from __future__ import annotations

import json as _json
import sys
import time
from typing import Any

import httpx

from adoptify.config import AdoptifyConfig
from adoptify.errors import (
    AdoptifyAuthError,
    AdoptifyNetworkError,
    AdoptifyNotFoundError,
    AdoptifyPermissionError,
    AdoptifyRateLimitError,
    AdoptifyServerError,
    AdoptifyValidationError,
    AdoptifyVersionConflictError,
)
from adoptify.observability import NoopMetricsHook, get_logger, log_fields
from adoptify.utils.redact import redact

log = get_logger("adoptify.transport")

CONTENT_TYPE = "application/vnd.contentful.management.v1+json"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse_retry_after(response: httpx.Response) -> float | None:
    """Extract the server's retry hint in seconds, or ``None``."""
    for header in ("x-contentful-ratelimit-reset", "retry-after"):
        raw = response.headers.get(header)
        if raw is None:
            continue
        try:
            return float(raw)
        except (ValueError, TypeError):
            continue
    return None


def _raise_for_status(response: httpx.Response, method: str, path: str) -> None:
    """Raise the :class:`AdoptifyError` subclass matching a non-2xx status."""
    status = response.status_code
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    message = body.get("message") or response.text[:500]
    error_id = (body.get("sys") or {}).get("id", "")
    where = f"{method} {path}"

    if status == 429:
        raise AdoptifyRateLimitError(
            message=f"Rate limited on {where}: {message}",
            context={
                "status_code": status,
                "retry_after_seconds": _parse_retry_after(response),
                "path": path,
            },
        )
    if status in (400, 422):
        raise AdoptifyValidationError(
            message=f"Validation error on {where}: {message}",
            context={"status_code": status, "error_id": error_id, "body": body},
        )
    if status == 401:
        raise AdoptifyAuthError(
            message=f"Authentication failed on {where}: {message}",
            context={"status_code": status, "error_id": error_id},
        )
    if status == 403:
        raise AdoptifyPermissionError(
            message=f"Permission denied on {where}: {message}",
            context={"status_code": status, "error_id": error_id, "operation": where},
        )
    if status == 404:
        raise AdoptifyNotFoundError(
            message=f"Resource not found on {where}: {message}",
            context={"status_code": status, "error_id": error_id, "path": path},
        )
    if status == 409:
        raise AdoptifyVersionConflictError(
            message=f"Version conflict on {where}: {message}",
            context={"status_code": status, "error_id": error_id, "path": path},
        )
    if status >= 500:
        raise AdoptifyServerError(
            message=f"Server error {status} on {where}: {message}",
            context={"status_code": status, "path": path},
        )

    raise AdoptifyValidationError(
        message=f"Client error {status} on {where}: {message}",
        context={"status_code": status, "error_id": error_id, "body": body},
    )


def _emit_debug_dump(
    config: AdoptifyConfig,
    method: str,
    response: httpx.Response,
    json_payload: Any,
) -> None:
    """Write a redacted request/response dump to stderr if enabled."""
    if not config.debug_dump_payload:
        return
    try:
        resp_body: Any = response.json()
    except ValueError:
        resp_body = response.text[:1000]

    dump: dict[str, Any] = {
        "method": method,
        "url": str(response.url),
        "response_status": response.status_code,
        "response_body": resp_body,
    }
    if json_payload is not None:
        dump["request_body"] = json_payload
    print(
        _json.dumps(redact(dump, config.token), indent=2, default=str),
        file=sys.stderr,
    )


def _client_kwargs(config: AdoptifyConfig) -> dict[str, Any]:
    return {
        "base_url": config.base_url,
        "headers": {
            "Authorization": f"Bearer {config.token}",
            "Content-Type": CONTENT_TYPE,
        },
        "timeout": httpx.Timeout(config.timeout_seconds),
        "proxy": config.http_proxy,
    }


class _TransportBase:
    def __init__(self, config: AdoptifyConfig) -> None:
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self.env_prefix = (
            f"/spaces/{config.space_id}/environments/{config.environment_id}"
        )

    def env_path(self, suffix: str) -> str:
        """Scope *suffix* (``/entries/abc``) to the configured environment."""
        return f"{self.env_prefix}{suffix}"

    def _network_error(self, method: str, path: str, exc: Exception) -> AdoptifyNetworkError:
        self._metrics.increment(
            "adoptify.requests_total",
            tags={"method": method, "status": "error"},
        )
        log.warning(
            "Request network error",
            extra=log_fields(op="request", method=method, path=path, error=str(exc)),
        )
        return AdoptifyNetworkError(
            message=f"Network error on {method} {path}: {exc}",
            context={"url": path},
            cause=exc,
        )

    def _handle_response(
        self,
        method: str,
        path: str,
        response: httpx.Response,
        elapsed_ms: float,
        json_payload: Any,
    ) -> dict:
        status = str(response.status_code)
        self._metrics.increment(
            "adoptify.requests_total", tags={"method": method, "status": status},
        )
        self._metrics.timing(
            "adoptify.request_duration_ms", elapsed_ms,
            tags={"method": method, "status": status},
        )
        _emit_debug_dump(self._config, method, response, json_payload)

        if 200 <= response.status_code < 300:
            if response.status_code == 204 or not response.content:
                return {}
            result: dict = response.json()
            return result

        _raise_for_status(response, method, path)
        return {}  # unreachable


# ---------------------------------------------------------------------------
# Sync transport
# ---------------------------------------------------------------------------

class CMATransport(_TransportBase):
    """Synchronous single-shot HTTP transport.

    Parameters
    ----------
    config:
        Supplies the base URL, token, space/environment scope, timeout,
        proxy, metrics hook and debug-dump flag.
    """

    def __init__(self, config: AdoptifyConfig) -> None:
        super().__init__(config)
        self._client = httpx.Client(**_client_kwargs(config))

    def request(self, method: str, path: str, **kwargs: Any) -> dict:
        """Execute one HTTP request.

        Parameters
        ----------
        method:
            HTTP method.
        path:
            Path relative to ``base_url``.
        **kwargs:
            Forwarded to :meth:`httpx.Client.request` (``json=``,
            ``params=``, ``headers=``).

        Returns
        -------
        dict
            Parsed JSON response body (``{}`` for empty bodies).

        Raises
        ------
        AdoptifyRateLimitError
            On 429; the gateway decides whether to retry.
        AdoptifyVersionConflictError
            On 409.
        AdoptifyNetworkError
            On timeouts and connection failures.
        """
        t0 = time.monotonic()
        try:
            response = self._client.request(method, path, **kwargs)
        except (httpx.TimeoutException, httpx.NetworkError) as exc:
            raise self._network_error(method, path, exc) from exc
        elapsed_ms = (time.monotonic() - t0) * 1000
        return self._handle_response(method, path, response, elapsed_ms, kwargs.get("json"))

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> CMATransport:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Async transport
# ---------------------------------------------------------------------------

class AsyncCMATransport(_TransportBase):
    """Asynchronous twin of :class:`CMATransport` over ``httpx.AsyncClient``."""

    def __init__(self, config: AdoptifyConfig) -> None:
        super().__init__(config)
        self._client = httpx.AsyncClient(**_client_kwargs(config))

    async def request(self, method: str, path: str, **kwargs: Any) -> dict:
        """Execute one HTTP request (async).  See :meth:`CMATransport.request`."""
        t0 = time.monotonic()
        try:
            response = await self._client.request(method, path, **kwargs)
        except (httpx.TimeoutException, httpx.NetworkError) as exc:
            raise self._network_error(method, path, exc) from exc
        elapsed_ms = (time.monotonic() - t0) * 1000
        return self._handle_response(method, path, response, elapsed_ms, kwargs.get("json"))

    async def close(self) -> None:
        """Close the underlying async HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncCMATransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
