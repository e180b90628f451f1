"""Locale API wrappers.

The environment's locale list is small (the remote caps it well below the
page size used here), so one page is always the whole list.
"""

from __future__ import annotations

from adoptify.models import Locale

from .transport import AsyncCMATransport, CMATransport

_PAGE = {"limit": 1000}


class LocaleAPI:
    """Synchronous wrapper for ``GET /locales``."""

    def __init__(self, transport: CMATransport) -> None:
        self._transport = transport

    def list(self) -> list[Locale]:
        """Return the configured locales in remote order."""
        payload = self._transport.request(
            "GET", self._transport.env_path("/locales"), params=dict(_PAGE),
        )
        return [Locale.from_payload(item) for item in payload.get("items", [])]


class AsyncLocaleAPI:
    """Asynchronous wrapper for ``GET /locales``."""

    def __init__(self, transport: AsyncCMATransport) -> None:
        self._transport = transport

    async def list(self) -> list[Locale]:
        payload = await self._transport.request(
            "GET", self._transport.env_path("/locales"), params=dict(_PAGE),
        )
        return [Locale.from_payload(item) for item in payload.get("items", [])]
