"""adoptify.cma -- remote collaborator surface and the call gateway.

This sub-package provides:

* :mod:`.rate_limit` -- Sliding-log rate limiters (sync and async).
* :mod:`.retries` -- Rate-limit detection and exponential backoff.
* :mod:`.gateway` -- The call gateway: throttle plus rate-limit retry.
* :mod:`.transport` -- Single-shot HTTP transport with typed errors.
* :mod:`.entries` -- Record read/write wrappers.
* :mod:`.content_types` -- Schema read wrappers.
* :mod:`.assets` -- Asset read wrappers.
* :mod:`.locales` -- Locale list wrappers.
"""

from __future__ import annotations

from .assets import AssetAPI, AsyncAssetAPI
from .content_types import AsyncContentTypeAPI, ContentTypeAPI
from .entries import AsyncEntryAPI, EntryAPI
from .gateway import (
    AsyncCallGateway,
    CallGateway,
    async_gateway_for,
    gateway_for,
    reset_shared_gateways,
    shared_async_gateway,
    shared_gateway,
)
from .locales import AsyncLocaleAPI, LocaleAPI
from .rate_limit import AsyncSlidingWindowLimiter, CallLog, SlidingWindowLimiter
from .retries import compute_backoff, is_rate_limited
from .transport import AsyncCMATransport, CMATransport

__all__ = [
    "AssetAPI",
    "AsyncAssetAPI",
    "AsyncCMATransport",
    "AsyncCallGateway",
    "AsyncContentTypeAPI",
    "AsyncEntryAPI",
    "AsyncLocaleAPI",
    "AsyncSlidingWindowLimiter",
    "CMATransport",
    "CallLog",
    "CallGateway",
    "ContentTypeAPI",
    "EntryAPI",
    "LocaleAPI",
    "SlidingWindowLimiter",
    "async_gateway_for",
    "compute_backoff",
    "gateway_for",
    "is_rate_limited",
    "reset_shared_gateways",
    "shared_async_gateway",
    "shared_gateway",
]
