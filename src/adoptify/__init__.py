"""adoptify -- Insert-only locale content adoption across linked records.

Public re-exports
-----------------

* **Clients:** :class:`AdoptifyClient`, :class:`AsyncAdoptifyClient`
* **Configuration:** :class:`AdoptifyConfig`
* **Errors:** Every :class:`AdoptifyError` subclass and :class:`ErrorCode`
* **Models:** Records, schemas, options, summary and diff-tree nodes
* **Merge engines:** :func:`merge_text_insert_only`,
  :func:`merge_rich_text_documents`

Usage::

    from adoptify import AdoptifyClient

    client = AdoptifyClient(token="CFPAT-xxx", space_id="abc123")
    summary = client.adopt("entry-id", source_locale="en-US", target_locale="en-GB")
"""

from __future__ import annotations

from adoptify.async_client import AsyncAdoptifyClient

# ── Clients ────────────────────────────────────────────────────────────
from adoptify.client import AdoptifyClient

# ── Configuration ───────────────────────────────────────────────────────
from adoptify.config import DEFAULT_LOCALE_BASES, AdoptifyConfig

# ── Errors ──────────────────────────────────────────────────────────────
from adoptify.errors import (
    AdoptifyAuthError,
    AdoptifyError,
    AdoptifyLocaleError,
    AdoptifyNetworkError,
    AdoptifyNotFoundError,
    AdoptifyPermissionError,
    AdoptifyRateLimitError,
    AdoptifyServerError,
    AdoptifyValidationError,
    AdoptifyVersionConflictError,
    ErrorCode,
)

# ── Locales ─────────────────────────────────────────────────────────────
from adoptify.locales import find_default_locale, is_pair_allowed

# ── Merge engines ───────────────────────────────────────────────────────
from adoptify.merge import merge_rich_text_documents, merge_text_insert_only

# ── Models ──────────────────────────────────────────────────────────────
from adoptify.models import (
    AdoptSummary,
    Asset,
    ContentType,
    FieldDef,
    FieldDiff,
    FieldKind,
    Locale,
    Record,
    ReferenceListNode,
    ReferenceNode,
    TraversalOptions,
    ValueKind,
    tree_to_dict,
)

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Clients
    "AdoptifyClient",
    "AsyncAdoptifyClient",
    # Configuration
    "AdoptifyConfig",
    "DEFAULT_LOCALE_BASES",
    # Error base + code enum
    "AdoptifyError",
    "ErrorCode",
    # API / transport errors
    "AdoptifyValidationError",
    "AdoptifyAuthError",
    "AdoptifyPermissionError",
    "AdoptifyNotFoundError",
    "AdoptifyRateLimitError",
    "AdoptifyVersionConflictError",
    "AdoptifyServerError",
    "AdoptifyNetworkError",
    # Locale errors
    "AdoptifyLocaleError",
    # Locales
    "find_default_locale",
    "is_pair_allowed",
    # Merge engines
    "merge_text_insert_only",
    "merge_rich_text_documents",
    # Models -- records and schemas
    "Record",
    "Asset",
    "ContentType",
    "FieldDef",
    "Locale",
    # Models -- enums
    "FieldKind",
    "ValueKind",
    # Models -- traversal
    "TraversalOptions",
    "AdoptSummary",
    # Models -- diff tree
    "FieldDiff",
    "ReferenceNode",
    "ReferenceListNode",
    "tree_to_dict",
]
