"""Per-field adoption decisions.

Pure functions, no I/O.  :func:`plan_field` looks at one schema field of
one record and answers three questions: does the target locale's value
change, what is the new value, and which linked records must be visited
next.

Dispatch is by declared :class:`~adoptify.models.FieldKind` first
(entry links are followed, everything else is merged), then by the
runtime :class:`~adoptify.models.ValueKind` of the two locale values:

==================  ==================  =====================================
source              target              outcome
==================  ==================  =====================================
absent              anything            skip
anything            absent              full adopt (copy source)
string              string              insert-only text merge
document            document            insert-only document merge
document            not a document      skip
not a document      document            skip
anything else       anything else       overwrite when not deep-equal
==================  ==================  =====================================
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, NamedTuple

from adoptify.merge.rich_text import is_document, merge_rich_text_documents
from adoptify.merge.text import merge_text_insert_only
from adoptify.models import FieldDef, FieldKind, TraversalOptions, ValueKind
from adoptify.utils.canonical import clone, json_equal


class FieldPlan(NamedTuple):
    """Outcome of :func:`plan_field` for one field of one record."""

    changed: bool
    value: Any = None
    linked_ids: tuple[str, ...] = ()


SKIP = FieldPlan(False)

_UNCHANGED = object()


def classify_value(value: Any) -> ValueKind:
    """Map a raw locale value onto the closed set of value kinds."""
    if value is None:
        return ValueKind.ABSENT
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if is_document(value):
        return ValueKind.DOCUMENT
    if link_id(value) is not None:
        return ValueKind.LINK
    if isinstance(value, list) and value and all(link_id(item) for item in value):
        return ValueKind.LINK_ARRAY
    return ValueKind.JSON


def link_id(value: Any) -> str | None:
    """Return ``value["sys"]["id"]`` for a link object, else ``None``."""
    if not isinstance(value, Mapping):
        return None
    sys = value.get("sys")
    if not isinstance(sys, Mapping):
        return None
    target = sys.get("id")
    return target if isinstance(target, str) and target else None


def link_ids(*values: Any) -> tuple[str, ...]:
    """Collect linked record ids from link and link-array values, de-duplicated."""
    seen: dict[str, None] = {}
    for value in values:
        items = value if isinstance(value, list) else [value]
        for item in items:
            rid = link_id(item)
            if rid is not None:
                seen.setdefault(rid)
    return tuple(seen)


def read_unlocalized(values: Any, default_locale: str | None) -> Any:
    """Read a non-localized field that may still be keyed by locale.

    Order: a bare link or list, the default locale, the first locale.
    """
    if isinstance(values, list) or link_id(values) is not None:
        return values
    if not isinstance(values, Mapping) or not values:
        return None
    if default_locale is not None and values.get(default_locale) is not None:
        return values[default_locale]
    return next(iter(values.values()))


def locale_value(fdef: FieldDef, values: Any, locale: str, default_locale: str | None) -> Any:
    """Return the value shown for *locale*, honouring localization."""
    if not fdef.localized:
        return read_unlocalized(values, default_locale)
    if isinstance(values, Mapping):
        return values.get(locale)
    return None


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------

def plan_field(
    fdef: FieldDef,
    values: Any,
    options: TraversalOptions,
    record_id: str,
    *,
    timeout: float = 0.0,
) -> FieldPlan:
    """Decide what adoption does with one field.

    Parameters
    ----------
    fdef:
        The schema declaration.
    values:
        ``record.fields[fdef.id]``; ``None`` when the record has no value.
    options:
        Locale pair and field selection.
    record_id:
        Owner record, for selection lookups.
    timeout:
        Diff time budget for the merge engines.
    """
    if values is None:
        return SKIP

    selected = options.is_selected(record_id, fdef.id)
    kind = fdef.kind

    if kind in (FieldKind.ENTRY_LINK, FieldKind.ENTRY_LINK_ARRAY):
        return _plan_link_field(fdef, values, options, selected)

    if not fdef.localized or not selected or not isinstance(values, Mapping):
        return SKIP

    source = values.get(options.source_locale)
    target = values.get(options.target_locale)
    merged = merge_values(source, target, timeout=timeout)
    if is_unchanged(merged):
        return SKIP
    return FieldPlan(True, merged)


def _plan_link_field(
    fdef: FieldDef,
    values: Any,
    options: TraversalOptions,
    selected: bool,
) -> FieldPlan:
    if not fdef.localized:
        return FieldPlan(False, linked_ids=link_ids(read_unlocalized(values, options.default_locale)))
    if not isinstance(values, Mapping):
        return SKIP

    source = values.get(options.source_locale)
    target = values.get(options.target_locale)
    linked = link_ids(source, target)
    if not selected or source is None:
        return FieldPlan(False, linked_ids=linked)

    if target is None:
        return FieldPlan(True, clone(source), linked)

    # Whole-value replace when both sides are present and differ.
    is_array = fdef.kind == FieldKind.ENTRY_LINK_ARRAY
    if is_array and not (isinstance(source, list) and isinstance(target, list)):
        return FieldPlan(False, linked_ids=linked)
    if json_equal(source, target):
        return FieldPlan(False, linked_ids=linked)
    return FieldPlan(True, clone(source), linked)


def merge_values(source: Any, target: Any, *, timeout: float = 0.0) -> Any:
    """Insert-only merge of two locale values of a non-link field.

    Returns the new target value, or the module sentinel ``_UNCHANGED``
    when the target keeps its current value.
    """
    src_kind = classify_value(source)
    tgt_kind = classify_value(target)

    if src_kind is ValueKind.ABSENT:
        return _UNCHANGED
    if tgt_kind is ValueKind.ABSENT:
        return clone(source)

    if src_kind is ValueKind.STRING and tgt_kind is ValueKind.STRING:
        merged = merge_text_insert_only(source, target, timeout=timeout)
        return _UNCHANGED if merged == target else merged

    if src_kind is ValueKind.DOCUMENT and tgt_kind is ValueKind.DOCUMENT:
        merged_doc = merge_rich_text_documents(source, target, timeout=timeout)
        return _UNCHANGED if json_equal(merged_doc, target) else merged_doc

    if ValueKind.DOCUMENT in (src_kind, tgt_kind):
        return _UNCHANGED

    if json_equal(source, target):
        return _UNCHANGED
    return clone(source)


def is_unchanged(result: Any) -> bool:
    """``True`` if *result* from :func:`merge_values` means "keep target"."""
    return result is _UNCHANGED
