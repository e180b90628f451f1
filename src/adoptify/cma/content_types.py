"""Content type (schema) API wrappers."""

from __future__ import annotations

from adoptify.models import ContentType

from .transport import AsyncCMATransport, CMATransport


class ContentTypeAPI:
    """Synchronous wrapper for ``GET /content_types/{id}``."""

    def __init__(self, transport: CMATransport) -> None:
        self._transport = transport

    def get(self, content_type_id: str) -> ContentType:
        """Fetch a schema with its field declarations in order."""
        payload = self._transport.request(
            "GET", self._transport.env_path(f"/content_types/{content_type_id}"),
        )
        return ContentType.from_payload(payload)


class AsyncContentTypeAPI:
    """Asynchronous wrapper for ``GET /content_types/{id}``."""

    def __init__(self, transport: AsyncCMATransport) -> None:
        self._transport = transport

    async def get(self, content_type_id: str) -> ContentType:
        payload = await self._transport.request(
            "GET", self._transport.env_path(f"/content_types/{content_type_id}"),
        )
        return ContentType.from_payload(payload)
