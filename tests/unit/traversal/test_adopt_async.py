"""Tests for AsyncAdoptTraversal -- mirrors the sync traversal tests."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from adoptify.errors import AdoptifyVersionConflictError
from adoptify.models import TraversalOptions
from adoptify.traversal.adopt import AsyncAdoptTraversal
from adoptify.traversal.context import AsyncRecordSource
from adoptify.utils.canonical import is_subsequence

SRC = "en-US"
TGT = "de-DE"


def link(entry_id: str) -> dict:
    return {"sys": {"type": "Link", "linkType": "Entry", "id": entry_id}}


def options() -> TraversalOptions:
    return TraversalOptions(source_locale=SRC, target_locale=TGT, default_locale=SRC)


@pytest.fixture
def page_store(store):
    store.add_content_type(
        "page",
        {"id": "title", "type": "Text", "localized": True},
        {"id": "next", "type": "Link", "linkType": "Entry", "localized": True},
    )
    return store


class TestAsyncAdoptTraversal:
    @pytest.mark.asyncio
    async def test_adopts_across_links(self, page_store, async_record_source):
        page_store.add_entry("a", "page", {"title": {SRC: "One"}, "next": {SRC: link("b"), TGT: link("b")}})
        page_store.add_entry("b", "page", {"title": {SRC: "Two", TGT: "Zwei"}})
        summary = await AsyncAdoptTraversal(async_record_source).run("a", options())
        assert summary.traversed_records == 2
        assert summary.updated_records == 2
        assert page_store.fields("a")["title"][TGT] == "One"
        merged = page_store.fields("b")["title"][TGT]
        assert is_subsequence("Zwei", merged)
        assert is_subsequence("Two", merged)

    @pytest.mark.asyncio
    async def test_cycle_terminates(self, page_store, async_record_source):
        page_store.add_entry("a", "page", {"next": {SRC: link("b"), TGT: link("b")}})
        page_store.add_entry("b", "page", {"next": {SRC: link("a"), TGT: link("a")}})
        summary = await AsyncAdoptTraversal(async_record_source).run("a", options())
        assert summary.traversed_records == 2
        assert summary.updated_records == 0
        assert page_store.writes == []

    @pytest.mark.asyncio
    async def test_second_run_is_noop(self, page_store, async_record_source):
        page_store.add_entry("a", "page", {"title": {SRC: "Hello world, again.", TGT: "Hello world."}})
        await AsyncAdoptTraversal(async_record_source).run("a", options())
        again = await AsyncAdoptTraversal(async_record_source).run("a", options())
        assert again.changed_fields == 0

    @pytest.mark.asyncio
    async def test_version_conflict_propagates(self, page_store, async_gateway):
        page_store.add_entry("a", "page", {"title": {SRC: "One"}})

        async def get(entry_id):
            return page_store.get_entry(entry_id)

        async def update(entry_id, version, fields, metadata=None):
            page_store.bump_version(entry_id)
            return page_store.update_entry(entry_id, version, fields, metadata)

        async def get_type(ct_id):
            return page_store.get_content_type(ct_id)

        source = AsyncRecordSource(
            async_gateway,
            SimpleNamespace(get=get, update=update),
            SimpleNamespace(get=get_type),
        )
        with pytest.raises(AdoptifyVersionConflictError):
            await AsyncAdoptTraversal(source).run("a", options())

    @pytest.mark.asyncio
    async def test_record_tags_survive_the_write(self, page_store, async_record_source):
        tags = {"tags": [{"sys": {"type": "Link", "linkType": "Tag", "id": "promo"}}]}
        page_store.add_entry("a", "page", {"title": {SRC: "One"}}, metadata=tags)
        await AsyncAdoptTraversal(async_record_source).run("a", options())
        assert page_store.entries["a"]["metadata"] == tags
