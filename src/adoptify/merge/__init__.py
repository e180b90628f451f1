"""Insert-only merge engines.

Exports
-------
merge_text_insert_only
    Merge plain strings; never removes target characters.
merge_rich_text_documents
    Merge structured documents block by block, inheriting target formatting.
insert_only_ops
    The shared diff plan both engines rebuild from.
stringify_field_value
    Display string for any field value (diff preview only).
"""

from .plain_text import extract_plain_text, stringify_field_value
from .rich_text import is_document, merge_rich_text_documents
from .text import insert_only_ops, merge_text_insert_only

__all__ = [
    "extract_plain_text",
    "insert_only_ops",
    "is_document",
    "merge_rich_text_documents",
    "merge_text_insert_only",
    "stringify_field_value",
]
