"""Insert-only merge of structured (rich-text) documents.

A document is a dict tree::

    {"nodeType": "document", "data": {}, "content": [<block>, ...]}

Blocks are paired by positional index.  Inline-bearing blocks
(paragraphs, headings, blockquotes) are flattened into a plain string plus
a parallel list of :class:`Span` objects, diffed with the same insert-only
plan as plain strings, and rebuilt:

* equal / delete operations copy the covered slice of the target spans,
* insert operations create new spans that inherit marks and hyperlink
  container from the target span at the insertion point (or the span just
  before it at the end of the block), so inserted text always looks native
  to the destination document,
* adjacent spans with identical formatting are coalesced.

Lists recurse item by item.  Every other block kind is atomic: kept when
identical, otherwise the target block is kept and the source block is
appended after it.  Nothing from the target is ever removed.

Malformed input (either side not a document with a ``content`` list) is a
no-op that returns the target unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from adoptify.merge.text import DIFF_INSERT, EditOp, insert_only_ops
from adoptify.utils.canonical import canonical_json, clone, json_equal

# ---------------------------------------------------------------------------
# Node kinds
# ---------------------------------------------------------------------------

INLINE_BLOCK_TYPES: frozenset[str] = frozenset({
    "paragraph",
    "heading-1",
    "heading-2",
    "heading-3",
    "heading-4",
    "heading-5",
    "heading-6",
    "blockquote",
})

LIST_TYPES: frozenset[str] = frozenset({"ordered-list", "unordered-list"})

HYPERLINK_TYPES: frozenset[str] = frozenset({
    "hyperlink",
    "entry-hyperlink",
    "asset-hyperlink",
    "resource-hyperlink",
})

# Stands in for one atomic inline node (e.g. an embedded inline entry)
# inside the flattened text.
OBJECT_REPLACEMENT = "\ufffc"


@dataclass
class Span:
    """A run of characters sharing marks and hyperlink context.

    Attributes
    ----------
    start / end:
        Character range inside the flattened block text.  ``-1`` for
        spans synthesised during reconstruction.
    text:
        The characters of the run.
    marks:
        Sorted, de-duplicated mark types (``"bold"``, ``"italic"`` ...).
    link:
        ``{"nodeType": ..., "data": ...}`` of the enclosing hyperlink
        container, or ``None``.
    node:
        The atomic inline node this span stands for, or ``None`` for text.
    """

    start: int
    end: int
    text: str
    marks: tuple[str, ...] = ()
    link: dict | None = None
    node: dict | None = None

    def same_format(self, other: Span) -> bool:
        return (
            self.node is None
            and other.node is None
            and self.marks == other.marks
            and _link_key(self.link) == _link_key(other.link)
        )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def is_document(value: Any) -> bool:
    """Return ``True`` if *value* is a document with an ordered block list."""
    return (
        isinstance(value, dict)
        and value.get("nodeType") == "document"
        and isinstance(value.get("content"), list)
    )


def merge_rich_text_documents(
    source_doc: Any,
    target_doc: Any,
    *,
    timeout: float = 0.0,
) -> Any:
    """Merge *source_doc* additions into *target_doc*, insert-only.

    Parameters
    ----------
    source_doc:
        The advanced locale's document.
    target_doc:
        The destination locale's document.  Never mutated.
    timeout:
        Diff time budget forwarded to the character diff.

    Returns
    -------
    dict
        A new document, or *target_doc* itself when either side is not a
        well-formed document.
    """
    if not is_document(source_doc) or not is_document(target_doc):
        return target_doc

    merged = clone(target_doc)
    merged["content"] = _merge_blocks(
        source_doc["content"], target_doc["content"], timeout,
    )
    return merged


def merge_inline_block(src_block: dict, tgt_block: dict, *, timeout: float = 0.0) -> dict:
    """Merge two inline-bearing blocks of the same kind.

    Returns a copy of *tgt_block* untouched when the diff inserts nothing.
    """
    src_text, src_spans = flatten_inline_block(src_block)
    tgt_text, tgt_spans = flatten_inline_block(tgt_block)

    ops = insert_only_ops(src_text, tgt_text, timeout)
    if not any(op.kind == DIFF_INSERT for op in ops):
        return clone(tgt_block)

    spans = _rebuild_spans(ops, tgt_spans, src_spans)
    rebuilt = clone(tgt_block)
    rebuilt["data"] = rebuilt.get("data") or {}
    rebuilt["content"] = build_inline_content(spans)
    return rebuilt


# ---------------------------------------------------------------------------
# Block merging
# ---------------------------------------------------------------------------

def _merge_blocks(src_blocks: list, tgt_blocks: list, timeout: float) -> list:
    merged: list = []
    for index in range(max(len(src_blocks), len(tgt_blocks))):
        src = src_blocks[index] if index < len(src_blocks) else None
        tgt = tgt_blocks[index] if index < len(tgt_blocks) else None

        if tgt is None:
            merged.append(clone(src))
        elif src is None:
            merged.append(clone(tgt))
        elif _node_type(src) != _node_type(tgt):
            merged.extend([clone(tgt), clone(src)])
        else:
            merged.extend(_merge_same_kind(src, tgt, timeout))
    return merged


def _merge_same_kind(src: dict, tgt: dict, timeout: float) -> list:
    node_type = _node_type(tgt)

    if node_type in INLINE_BLOCK_TYPES:
        # A blockquote wrapping paragraphs merges child by child.
        if _has_block_children(src) or _has_block_children(tgt):
            return [_merge_container(src, tgt, timeout)]
        return [merge_inline_block(src, tgt, timeout=timeout)]

    if node_type in LIST_TYPES or node_type == "list-item":
        return [_merge_container(src, tgt, timeout)]

    if json_equal(src, tgt):
        return [clone(tgt)]
    return [clone(tgt), clone(src)]


def _merge_container(src: dict, tgt: dict, timeout: float) -> dict:
    out = clone(tgt)
    out["content"] = _merge_blocks(
        src.get("content") or [], tgt.get("content") or [], timeout,
    )
    return out


def _node_type(node: Any) -> str | None:
    return node.get("nodeType") if isinstance(node, dict) else None


def _is_inline_node(node: Any) -> bool:
    node_type = _node_type(node)
    return node_type == "text" or node_type in HYPERLINK_TYPES or (
        node_type is not None and node_type.endswith("-inline")
    )


def _has_block_children(block: dict) -> bool:
    return any(not _is_inline_node(child) for child in block.get("content") or [])


# ---------------------------------------------------------------------------
# Span flatten / rebuild
# ---------------------------------------------------------------------------

def flatten_inline_block(block: dict) -> tuple[str, list[Span]]:
    """Flatten an inline-bearing block into ``(text, spans)``.

    Hyperlink nodes are containers: their children become spans that
    remember the container.  Leaf inline nodes without text become one
    :data:`OBJECT_REPLACEMENT` character carrying the node.
    """
    spans: list[Span] = []
    parts: list[str] = []
    length = 0

    def push(text: str, marks: tuple[str, ...], link: dict | None, node: dict | None) -> None:
        nonlocal length
        if not text:
            return
        spans.append(Span(length, length + len(text), text, marks, link, node))
        parts.append(text)
        length += len(text)

    def walk(nodes: list, link: dict | None) -> None:
        for node in nodes:
            if not isinstance(node, dict):
                continue
            node_type = node.get("nodeType")
            if node_type == "text":
                push(node.get("value") or "", _mark_types(node.get("marks")), link, None)
            elif node_type in HYPERLINK_TYPES:
                container = {"nodeType": node_type, "data": clone(node.get("data") or {})}
                walk(node.get("content") or [], container)
            elif isinstance(node.get("content"), list) and node["content"]:
                walk(node["content"], link)
            else:
                push(OBJECT_REPLACEMENT, (), link, clone(node))

    walk(block.get("content") or [], None)
    return "".join(parts), spans


def build_inline_content(spans: list[Span]) -> list[dict]:
    """Turn spans back into inline nodes.

    Consecutive spans under the same hyperlink share one container node.
    """
    content: list[dict] = []
    container: dict | None = None
    container_key: str | None = None

    for span in spans:
        if span.node is not None:
            leaf = clone(span.node)
        else:
            leaf = {
                "nodeType": "text",
                "value": span.text,
                "marks": [{"type": mark} for mark in span.marks],
                "data": {},
            }

        if span.link is None:
            content.append(leaf)
            container = None
            container_key = None
            continue

        key = _link_key(span.link)
        if container is not None and key == container_key:
            container["content"].append(leaf)
        else:
            container = {
                "nodeType": span.link["nodeType"],
                "data": clone(span.link.get("data") or {}),
                "content": [leaf],
            }
            container_key = key
            content.append(container)

    return content


def _rebuild_spans(ops: list[EditOp], tgt_spans: list[Span], src_spans: list[Span]) -> list[Span]:
    out: list[Span] = []
    cursor = 0

    for op in ops:
        if op.kind == DIFF_INSERT:
            inherit = _span_at(tgt_spans, cursor) or _span_at(tgt_spans, cursor - 1)
            marks = inherit.marks if inherit is not None else ()
            link = clone(inherit.link) if inherit is not None and inherit.link else None
            for piece in _slice_spans(src_spans, op.source_offset, op.source_offset + len(op.text)):
                if piece.node is not None:
                    out.append(Span(-1, -1, piece.text, (), None, piece.node))
                else:
                    out.append(Span(-1, -1, piece.text, marks, clone(link)))
        else:
            # Equal and delete both keep the target text.
            out.extend(_slice_spans(tgt_spans, cursor, cursor + len(op.text)))
            cursor += len(op.text)

    return _coalesce(out)


def _slice_spans(spans: list[Span], start: int, end: int) -> list[Span]:
    if start >= end:
        return []
    out: list[Span] = []
    for span in spans:
        if span.end <= start or span.start >= end:
            continue
        lo = max(start, span.start)
        hi = min(end, span.end)
        out.append(Span(
            lo,
            hi,
            span.text[lo - span.start:hi - span.start],
            span.marks,
            clone(span.link),
            clone(span.node),
        ))
    return out


def _span_at(spans: list[Span], pos: int) -> Span | None:
    if pos < 0:
        return None
    for span in spans:
        if span.start <= pos < span.end:
            return span
    if spans and pos == spans[-1].end:
        return spans[-1]
    return None


def _coalesce(spans: list[Span]) -> list[Span]:
    out: list[Span] = []
    for span in spans:
        if out and out[-1].same_format(span):
            prev = out[-1]
            out[-1] = Span(prev.start, span.end, prev.text + span.text, prev.marks, prev.link)
        else:
            out.append(span)
    return out


def _mark_types(marks: Any) -> tuple[str, ...]:
    types = {m.get("type") for m in marks or [] if isinstance(m, dict) and m.get("type")}
    return tuple(sorted(types))


def _link_key(link: dict | None) -> str:
    return canonical_json(link) if link else ""
