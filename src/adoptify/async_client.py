"""Asynchronous adoptify client.

:class:`AsyncAdoptifyClient` mirrors :class:`AdoptifyClient` but every
I/O method is an ``async def`` coroutine.  It uses the async transport,
endpoint wrappers, gateway and traversals.

Usage::

    import asyncio
    from adoptify import AsyncAdoptifyClient

    async def main():
        async with AsyncAdoptifyClient(token="CFPAT-xxx", space_id="abc") as client:
            summary = await client.adopt("entry-id", "en-US", "en-GB")
            print(summary.to_dict())

    asyncio.run(main())
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from adoptify.client import adoption_targets, build_options
from adoptify.cma.assets import AsyncAssetAPI
from adoptify.cma.content_types import AsyncContentTypeAPI
from adoptify.cma.entries import AsyncEntryAPI
from adoptify.cma.gateway import async_gateway_for
from adoptify.cma.locales import AsyncLocaleAPI
from adoptify.cma.transport import AsyncCMATransport
from adoptify.config import AdoptifyConfig
from adoptify.locales import check_pair, find_default_locale
from adoptify.models import AdoptSummary, DiffTree, Locale
from adoptify.traversal.adopt import AsyncAdoptTraversal
from adoptify.traversal.context import AsyncRecordSource
from adoptify.traversal.diff_tree import AsyncDiffTreeBuilder


class AsyncAdoptifyClient:
    """Asynchronous insert-only locale adoption client.

    Parameters
    ----------
    token:
        Content management access token.  **Required.**
    **kwargs:
        All remaining keyword arguments are forwarded to
        :class:`AdoptifyConfig`.
    """

    def __init__(self, token: str, **kwargs: Any) -> None:
        """Create client.  All kwargs are forwarded to AdoptifyConfig."""
        self._config = AdoptifyConfig(token=token, **kwargs)
        self._transport = AsyncCMATransport(self._config)
        self._entries = AsyncEntryAPI(self._transport)
        self._content_types = AsyncContentTypeAPI(self._transport)
        self._assets = AsyncAssetAPI(self._transport)
        self._locales = AsyncLocaleAPI(self._transport)
        self._gateway = async_gateway_for(self._config)
        self._source = AsyncRecordSource(
            self._gateway, self._entries, self._content_types, self._assets,
        )
        self._default_locale: str | None = None

    @property
    def config(self) -> AdoptifyConfig:
        return self._config

    async def list_locales(self) -> list[Locale]:
        return await self._gateway.guarded_call(self._locales.list)

    async def default_locale(self) -> str:
        if self._default_locale is None:
            self._default_locale = find_default_locale(await self.list_locales()).code
        return self._default_locale

    async def build_diff_tree(
        self,
        entry_id: str,
        source_locale: str,
        target_locale: str,
        *,
        default_locale: str | None = None,
    ) -> DiffTree:
        """Build the comparison tree.  See :meth:`AdoptifyClient.build_diff_tree`."""
        options = build_options(
            source_locale,
            target_locale,
            default_locale or await self.default_locale(),
            None,
            True,
        )
        return await AsyncDiffTreeBuilder(self._source).build(entry_id, options)

    async def adopt(
        self,
        entry_id: str,
        source_locale: str,
        target_locale: str,
        *,
        field_selection: Mapping[str, Iterable[str]] | None = None,
        adopt_all: bool = True,
        default_locale: str | None = None,
    ) -> AdoptSummary:
        """Insert-only adoption.  See :meth:`AdoptifyClient.adopt`."""
        if self._config.enforce_locale_pairing:
            check_pair(source_locale, target_locale, self._config.allowed_locale_bases)
        options = build_options(
            source_locale,
            target_locale,
            default_locale or await self.default_locale(),
            field_selection,
            adopt_all,
        )
        traversal = AsyncAdoptTraversal(
            self._source,
            diff_timeout=self._config.diff_timeout_seconds,
            metrics=self._config.metrics,
        )
        return await traversal.run(entry_id, options)

    async def adopt_many(
        self,
        entry_id: str,
        source_locale: str,
        target_locales: Sequence[str],
        *,
        field_selection: Mapping[str, Iterable[str]] | None = None,
        adopt_all: bool = True,
        default_locale: str | None = None,
    ) -> AdoptSummary:
        """Adopt into several targets sequentially and sum the summaries."""
        default = default_locale or await self.default_locale()
        total = AdoptSummary()
        for target in adoption_targets(self._config, source_locale, target_locales):
            total = total + await self.adopt(
                entry_id,
                source_locale,
                target,
                field_selection=field_selection,
                adopt_all=adopt_all,
                default_locale=default,
            )
        return total

    async def close(self) -> None:
        """Close the underlying async HTTP transport."""
        await self._transport.close()

    async def __aenter__(self) -> AsyncAdoptifyClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
