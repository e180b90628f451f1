"""Read-only diff tree: source vs. target display values per field.

Walks the same record graph as adoption, but instead of writing it
returns a nested tree mirroring the walk:

* plain fields become :class:`~adoptify.models.FieldDiff` leaves holding
  display strings (documents reduced to their plain text),
* single entry links become :class:`~adoptify.models.ReferenceNode`s
  wrapping the linked record's own tree,
* entry-link arrays become :class:`~adoptify.models.ReferenceListNode`s
  with one reference node per distinct linked id,
* asset links become image leaves with resolved URLs.

Links are followed even when the link field itself is not localized:
what is compared is the linked record's localized content.  A record
reached a second time yields a reference node flagged ``revisited`` with
no children, which keeps cyclic graphs finite.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import NamedTuple

from adoptify.merge.plain_text import stringify_field_value
from adoptify.models import (
    ContentType,
    DiffTree,
    FieldDiff,
    FieldKind,
    Record,
    ReferenceListNode,
    ReferenceNode,
    TraversalOptions,
)
from adoptify.observability import get_logger, log_fields

from .context import AsyncRecordSource, RecordSource, TraversalContext
from .policy import link_id, link_ids, locale_value

log = get_logger("adoptify.diff_tree")

EMPTY = "(empty)"


class ImageLookup(NamedTuple):
    """An image leaf whose URLs still need the assets fetched."""

    leaf: FieldDiff
    source_asset_id: str | None
    target_asset_id: str | None


def reference_label(source_id: str | None, target_id: str | None) -> str:
    """Display id of a single-link reference node."""
    if source_id and target_id and source_id != target_id:
        return f"{source_id} → {target_id}"
    return source_id or target_id or ""


def describe_record(
    record: Record,
    content_type: ContentType,
    options: TraversalOptions,
) -> tuple[DiffTree, list[ReferenceNode], list[ImageLookup]]:
    """Build one record's level of the tree without any I/O.

    Returns
    -------
    tuple
        ``(tree, expansions, images)``: the field nodes in schema order,
        the reference nodes whose records still need expanding (in order)
        and the image leaves still waiting for their assets.
    """
    tree: DiffTree = {}
    expansions: list[ReferenceNode] = []
    images: list[ImageLookup] = []
    src_locale = options.source_locale
    tgt_locale = options.target_locale
    default = options.default_locale

    for fdef in content_type.fields:
        values = record.fields.get(fdef.id)
        if values is None:
            continue
        kind = fdef.kind

        if kind == FieldKind.ENTRY_LINK:
            src_id = link_id(locale_value(fdef, values, src_locale, default))
            tgt_id = link_id(locale_value(fdef, values, tgt_locale, default))
            chosen = src_id or tgt_id
            if chosen is None:
                tree[fdef.id] = FieldDiff("", EMPTY)
                continue
            node = ReferenceNode(reference_label(src_id, tgt_id), chosen)
            tree[fdef.id] = node
            expansions.append(node)

        elif kind == FieldKind.ENTRY_LINK_ARRAY:
            ids = link_ids(
                locale_value(fdef, values, src_locale, default),
                locale_value(fdef, values, tgt_locale, default),
            )
            if not ids:
                tree[fdef.id] = FieldDiff("", EMPTY)
                continue
            listing = ReferenceListNode({rid: ReferenceNode(rid, rid) for rid in ids})
            tree[fdef.id] = listing
            expansions.extend(listing.children.values())

        elif kind == FieldKind.ASSET_LINK:
            src_id = link_id(locale_value(fdef, values, src_locale, default))
            tgt_id = link_id(locale_value(fdef, values, tgt_locale, default))
            leaf = FieldDiff(src_id or "", tgt_id or EMPTY, is_image=True)
            tree[fdef.id] = leaf
            images.append(ImageLookup(leaf, src_id, tgt_id))

        elif fdef.localized and isinstance(values, Mapping):
            source = values.get(src_locale)
            target = values.get(tgt_locale)
            tree[fdef.id] = FieldDiff(
                stringify_field_value(source),
                EMPTY if target is None else stringify_field_value(target),
            )

    return tree, expansions, images


class DiffTreeBuilder:
    """Synchronous diff-tree builder.

    Parameters
    ----------
    source:
        Gateway-guarded record access.  Its ``assets`` wrapper is used to
        resolve image URLs; without one, image URLs stay ``None``.
    """

    def __init__(self, source: RecordSource) -> None:
        self._source = source

    def build(self, root_id: str, options: TraversalOptions) -> DiffTree:
        """Return the diff tree rooted at *root_id*."""
        ctx = TraversalContext(options)
        root = ReferenceNode(root_id, root_id)
        stack = [root]

        while stack:
            node = stack.pop()
            if not ctx.mark_visited(node.link_entry_id):
                node.revisited = True
                continue
            record = self._source.record(ctx, node.link_entry_id)
            content_type = self._source.content_type(ctx, record.content_type_id)
            node.children, expansions, images = describe_record(record, content_type, options)

            for lookup in images:
                lookup.leaf.source_image_url = self._image_url(ctx, lookup.source_asset_id, options.source_locale)
                lookup.leaf.target_image_url = self._image_url(ctx, lookup.target_asset_id, options.target_locale)
            stack.extend(reversed(expansions))

        log.debug(
            "Diff tree built",
            extra=log_fields(op="diff_tree", root_id=root_id, records=len(ctx.visited)),
        )
        return root.children

    def _image_url(self, ctx: TraversalContext, asset_id: str | None, locale: str) -> str | None:
        asset = self._source.asset(ctx, asset_id)
        if asset is None:
            return None
        return asset.file_url(locale, ctx.options.default_locale)


class AsyncDiffTreeBuilder:
    """Async twin of :class:`DiffTreeBuilder`."""

    def __init__(self, source: AsyncRecordSource) -> None:
        self._source = source

    async def build(self, root_id: str, options: TraversalOptions) -> DiffTree:
        ctx = TraversalContext(options)
        root = ReferenceNode(root_id, root_id)
        stack = [root]

        while stack:
            node = stack.pop()
            if not ctx.mark_visited(node.link_entry_id):
                node.revisited = True
                continue
            record = await self._source.record(ctx, node.link_entry_id)
            content_type = await self._source.content_type(ctx, record.content_type_id)
            node.children, expansions, images = describe_record(record, content_type, options)

            for lookup in images:
                lookup.leaf.source_image_url = await self._image_url(ctx, lookup.source_asset_id, options.source_locale)
                lookup.leaf.target_image_url = await self._image_url(ctx, lookup.target_asset_id, options.target_locale)
            stack.extend(reversed(expansions))

        log.debug(
            "Diff tree built",
            extra=log_fields(op="diff_tree", root_id=root_id, records=len(ctx.visited)),
        )
        return root.children

    async def _image_url(self, ctx: TraversalContext, asset_id: str | None, locale: str) -> str | None:
        asset = await self._source.asset(ctx, asset_id)
        if asset is None:
            return None
        return asset.file_url(locale, ctx.options.default_locale)
