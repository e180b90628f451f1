"""Asset API wrappers.

Assets are only read, to resolve image URLs for the diff preview.
"""

from __future__ import annotations

from adoptify.models import Asset

from .transport import AsyncCMATransport, CMATransport


class AssetAPI:
    def __init__(self, transport: CMATransport) -> None:
        self._transport = transport

    def get(self, asset_id: str) -> Asset:
        payload = self._transport.request(
            "GET", self._transport.env_path(f"/assets/{asset_id}"),
        )
        return Asset.from_payload(payload)


class AsyncAssetAPI:
    def __init__(self, transport: AsyncCMATransport) -> None:
        self._transport = transport

    async def get(self, asset_id: str) -> Asset:
        payload = await self._transport.request(
            "GET", self._transport.env_path(f"/assets/{asset_id}"),
        )
        return Asset.from_payload(payload)
