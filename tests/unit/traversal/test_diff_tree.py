"""Tests for traversal/diff_tree.py -- the read-only diff tree."""

from __future__ import annotations

import json

import pytest

from adoptify.models import (
    FieldDiff,
    ReferenceListNode,
    ReferenceNode,
    TraversalOptions,
    tree_to_dict,
)
from adoptify.traversal.diff_tree import (
    EMPTY,
    AsyncDiffTreeBuilder,
    DiffTreeBuilder,
    reference_label,
)

SRC = "en-US"
TGT = "en-GB"


def link(entry_id: str, link_type: str = "Entry") -> dict:
    return {"sys": {"type": "Link", "linkType": link_type, "id": entry_id}}


def doc(*texts: str) -> dict:
    return {
        "nodeType": "document",
        "data": {},
        "content": [
            {
                "nodeType": "paragraph",
                "data": {},
                "content": [{"nodeType": "text", "value": t, "marks": [], "data": {}}],
            }
            for t in texts
        ],
    }


def options() -> TraversalOptions:
    return TraversalOptions(source_locale=SRC, target_locale=TGT, default_locale=SRC)


@pytest.fixture
def graph(store):
    store.add_content_type(
        "page",
        {"id": "title", "type": "Symbol", "localized": True},
        {"id": "body", "type": "RichText", "localized": True},
        {"id": "related", "type": "Link", "linkType": "Entry", "localized": True},
        {
            "id": "sections",
            "type": "Array",
            "localized": True,
            "items": {"type": "Link", "linkType": "Entry"},
        },
        {"id": "hero", "type": "Link", "linkType": "Asset", "localized": True},
        {"id": "parent", "type": "Link", "linkType": "Entry", "localized": False},
        {"id": "slug", "type": "Symbol", "localized": False},
        {"id": "location", "type": "Location", "localized": True},
    )
    store.add_entry("a", "page", {
        "title": {SRC: "Hello", TGT: "Hallo"},
        "body": {SRC: doc("One", "Two")},
        "related": {SRC: link("b"), TGT: link("c")},
        "sections": {SRC: [link("b"), link("d")]},
        "hero": {SRC: link("img1", "Asset"), TGT: link("img2", "Asset")},
        "slug": {SRC: "hello"},
    })
    store.add_entry("b", "page", {"title": {SRC: "B", TGT: ""}})
    store.add_entry("c", "page", {})
    store.add_entry("d", "page", {
        "related": {SRC: link("a")},
        "location": {SRC: {"lat": 52.5, "lon": 13.4}},
    })
    store.add_asset("img1", {SRC: "//images.example.com/one.png"})
    store.add_asset("img2", {
        SRC: "//images.example.com/two-us.png",
        TGT: "https://images.example.com/two-gb.png",
    })
    return store


class TestReferenceLabel:
    def test_same_or_single(self):
        assert reference_label("a", "a") == "a"
        assert reference_label("a", None) == "a"
        assert reference_label(None, "b") == "b"

    def test_different_records(self):
        assert reference_label("a", "b") == "a → b"


class TestDiffTreeBuilder:
    def test_plain_fields(self, graph, record_source):
        tree = DiffTreeBuilder(record_source).build("a", options())
        assert tree["title"] == FieldDiff("Hello", "Hallo")
        assert tree["body"] == FieldDiff("One Two", EMPTY)

    def test_fields_in_schema_order_and_absent_fields_skipped(self, graph, record_source):
        tree = DiffTreeBuilder(record_source).build("a", options())
        assert list(tree) == ["title", "body", "related", "sections", "hero"]

    def test_single_link_expands_linked_record(self, graph, record_source):
        tree = DiffTreeBuilder(record_source).build("a", options())
        related = tree["related"]
        assert isinstance(related, ReferenceNode)
        assert related.id == "b → c"
        assert related.link_entry_id == "b"
        assert related.children == {"title": FieldDiff("B", "")}

    def test_reference_list_and_revisits(self, graph, record_source):
        tree = DiffTreeBuilder(record_source).build("a", options())
        sections = tree["sections"]
        assert isinstance(sections, ReferenceListNode)
        assert list(sections.children) == ["b", "d"]

        # b was already expanded under "related"
        assert sections.children["b"].revisited
        assert sections.children["b"].children == {}

        d = sections.children["d"]
        assert not d.revisited
        back = d.children["related"]
        assert back.link_entry_id == "a"
        assert back.revisited

    def test_json_values_are_pretty_printed(self, graph, record_source):
        tree = DiffTreeBuilder(record_source).build("a", options())
        location = tree["sections"].children["d"].children["location"]
        assert json.loads(location.source) == {"lat": 52.5, "lon": 13.4}
        assert location.target == EMPTY

    def test_image_leaf_resolves_urls(self, graph, record_source):
        tree = DiffTreeBuilder(record_source).build("a", options())
        hero = tree["hero"]
        assert hero.is_image
        assert (hero.source, hero.target) == ("img1", "img2")
        assert hero.source_image_url == "https://images.example.com/one.png"
        assert hero.target_image_url == "https://images.example.com/two-gb.png"

    def test_each_record_fetched_once(self, graph, record_source):
        DiffTreeBuilder(record_source).build("a", options())
        fetched = [rid for call, rid in graph.calls if call == "entry.get"]
        assert fetched == ["a", "b", "d"]

    def test_empty_link_fields(self, store, record_source):
        store.add_content_type(
            "holder",
            {"id": "one", "type": "Link", "linkType": "Entry", "localized": True},
            {
                "id": "many",
                "type": "Array",
                "localized": True,
                "items": {"type": "Link", "linkType": "Entry"},
            },
            {"id": "image", "type": "Link", "linkType": "Asset", "localized": True},
        )
        store.add_entry("h", "holder", {"one": {"de-DE": link("x")}, "many": {SRC: []}, "image": {}})
        tree = DiffTreeBuilder(record_source).build("h", options())
        assert tree["one"] == FieldDiff("", EMPTY)
        assert tree["many"] == FieldDiff("", EMPTY)
        assert tree["image"] == FieldDiff("", EMPTY, is_image=True)
        assert store.count("asset.get") == 0

    def test_unlocalized_link_is_expanded(self, store, record_source):
        store.add_content_type(
            "child",
            {"id": "parent", "type": "Link", "linkType": "Entry", "localized": False},
            {"id": "name", "type": "Symbol", "localized": True},
        )
        store.add_entry("kid", "child", {"parent": {SRC: link("mom")}})
        store.add_entry("mom", "child", {"name": {SRC: "Mom", TGT: "Mum"}})
        tree = DiffTreeBuilder(record_source).build("kid", options())
        assert tree["parent"].children == {"name": FieldDiff("Mom", "Mum")}

    def test_serialises_to_plain_dicts(self, graph, record_source):
        tree = DiffTreeBuilder(record_source).build("a", options())
        as_dict = tree_to_dict(tree)
        json.dumps(as_dict)
        assert as_dict["related"]["type"] == "reference"
        assert as_dict["sections"]["type"] == "reference-list"
        assert as_dict["hero"]["is_image"] is True
        assert as_dict["title"] == {"type": "field", "source": "Hello", "target": "Hallo"}

    def test_builder_writes_nothing(self, graph, record_source):
        DiffTreeBuilder(record_source).build("a", options())
        assert graph.writes == []


class TestAsyncDiffTreeBuilder:
    @pytest.mark.asyncio
    async def test_matches_sync_tree(self, graph, record_source, async_record_source):
        sync_tree = DiffTreeBuilder(record_source).build("a", options())
        async_tree = await AsyncDiffTreeBuilder(async_record_source).build("a", options())
        assert tree_to_dict(async_tree) == tree_to_dict(sync_tree)
