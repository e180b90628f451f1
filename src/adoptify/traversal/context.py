"""Per-invocation traversal state and cached remote reads.

:class:`TraversalContext` holds everything one traversal owns: the locale
pair and field selection, the visited set and the record/schema/asset
caches.  A fresh context is built for every ``adopt`` / ``build_diff_tree``
call and never reused, since "unchanged" in one locale pair says nothing
about another.

:class:`RecordSource` / :class:`AsyncRecordSource` bundle the endpoint
wrappers with the call gateway so that every remote read and write of a
traversal goes through the gateway and, for reads, through the context's
caches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from adoptify.models import Asset, ContentType, Record, TraversalOptions


@dataclass
class TraversalContext:
    """Mutable state scoped to one traversal invocation."""

    options: TraversalOptions
    visited: set[str] = field(default_factory=set)
    records: dict[str, Record] = field(default_factory=dict)
    content_types: dict[str, ContentType] = field(default_factory=dict)
    assets: dict[str, Asset] = field(default_factory=dict)

    def mark_visited(self, record_id: str) -> bool:
        """Add *record_id* to the visited set.

        Returns ``False`` if it was already there.
        """
        if record_id in self.visited:
            return False
        self.visited.add(record_id)
        return True


class RecordSource:
    """Gateway-guarded, context-cached reads plus record writes (sync).

    Parameters
    ----------
    gateway:
        The :class:`~adoptify.cma.CallGateway` every call goes through.
    entries / content_types / assets:
        Endpoint wrappers (or any objects with the same ``get`` /
        ``update`` methods).  *assets* may be ``None`` when image URLs are
        not needed.
    """

    def __init__(
        self,
        gateway: Any,
        entries: Any,
        content_types: Any,
        assets: Any | None = None,
    ) -> None:
        self.gateway = gateway
        self.entries = entries
        self.content_types = content_types
        self.assets = assets

    def record(self, ctx: TraversalContext, record_id: str) -> Record:
        cached = ctx.records.get(record_id)
        if cached is None:
            cached = self.gateway.guarded_call(self.entries.get, record_id)
            ctx.records[record_id] = cached
        return cached

    def content_type(self, ctx: TraversalContext, content_type_id: str) -> ContentType:
        cached = ctx.content_types.get(content_type_id)
        if cached is None:
            cached = self.gateway.guarded_call(self.content_types.get, content_type_id)
            ctx.content_types[content_type_id] = cached
        return cached

    def asset(self, ctx: TraversalContext, asset_id: str | None) -> Asset | None:
        if not asset_id or self.assets is None:
            return None
        cached = ctx.assets.get(asset_id)
        if cached is None:
            cached = self.gateway.guarded_call(self.assets.get, asset_id)
            ctx.assets[asset_id] = cached
        return cached

    def update(self, record: Record, fields: dict[str, Any]) -> Record:
        """Write *fields* back, asserting the version read with *record*."""
        return self.gateway.guarded_call(
            self.entries.update, record.id, record.version, fields,
            metadata=record.metadata,
        )


class AsyncRecordSource:
    """Async twin of :class:`RecordSource`."""

    def __init__(
        self,
        gateway: Any,
        entries: Any,
        content_types: Any,
        assets: Any | None = None,
    ) -> None:
        self.gateway = gateway
        self.entries = entries
        self.content_types = content_types
        self.assets = assets

    async def record(self, ctx: TraversalContext, record_id: str) -> Record:
        cached = ctx.records.get(record_id)
        if cached is None:
            cached = await self.gateway.guarded_call(self.entries.get, record_id)
            ctx.records[record_id] = cached
        return cached

    async def content_type(self, ctx: TraversalContext, content_type_id: str) -> ContentType:
        cached = ctx.content_types.get(content_type_id)
        if cached is None:
            cached = await self.gateway.guarded_call(self.content_types.get, content_type_id)
            ctx.content_types[content_type_id] = cached
        return cached

    async def asset(self, ctx: TraversalContext, asset_id: str | None) -> Asset | None:
        if not asset_id or self.assets is None:
            return None
        cached = ctx.assets.get(asset_id)
        if cached is None:
            cached = await self.gateway.guarded_call(self.assets.get, asset_id)
            ctx.assets[asset_id] = cached
        return cached

    async def update(self, record: Record, fields: dict[str, Any]) -> Record:
        return await self.gateway.guarded_call(
            self.entries.update, record.id, record.version, fields,
            metadata=record.metadata,
        )
