"""Display strings for field values.

Used only by the diff-tree builder to render a source/target pair for a
human reviewer.  Nothing here feeds the merge engines.
"""

from __future__ import annotations

import json
from typing import Any

from adoptify.merge.rich_text import HYPERLINK_TYPES, is_document


def extract_plain_text(node: Any) -> str:
    """Reduce a document (or any node of one) to its plain text.

    Text runs inside one block are concatenated as-is; sibling blocks are
    joined with a single space.

    Examples
    --------
    >>> extract_plain_text({"nodeType": "document", "content": [
    ...     {"nodeType": "paragraph", "content": [
    ...         {"nodeType": "text", "value": "Hello ", "marks": []},
    ...         {"nodeType": "text", "value": "world", "marks": [{"type": "bold"}]}]},
    ...     {"nodeType": "paragraph", "content": [
    ...         {"nodeType": "text", "value": "Bye", "marks": []}]}]})
    'Hello world Bye'
    """
    if not isinstance(node, dict):
        return ""
    if node.get("nodeType") == "text":
        return node.get("value") or ""

    children = node.get("content")
    if not isinstance(children, list):
        return ""

    inline = any(
        isinstance(child, dict)
        and (child.get("nodeType") == "text" or child.get("nodeType") in HYPERLINK_TYPES)
        for child in children
    )
    parts = [extract_plain_text(child) for child in children]
    if inline:
        return "".join(parts)
    return " ".join(part for part in parts if part)


def stringify_field_value(value: Any) -> str:
    """Convert any field value to a display string.

    Strings pass through, documents become their plain text, everything
    else is pretty-printed JSON.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if is_document(value):
        return extract_plain_text(value)
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)
