"""Record-graph traversals: adoption (writes) and diff preview (reads)."""

from __future__ import annotations

from .adopt import AdoptTraversal, AsyncAdoptTraversal, apply_field_plans
from .context import AsyncRecordSource, RecordSource, TraversalContext
from .diff_tree import AsyncDiffTreeBuilder, DiffTreeBuilder, describe_record
from .policy import FieldPlan, classify_value, link_ids, merge_values, plan_field

__all__ = [
    "AdoptTraversal",
    "AsyncAdoptTraversal",
    "AsyncDiffTreeBuilder",
    "AsyncRecordSource",
    "DiffTreeBuilder",
    "FieldPlan",
    "RecordSource",
    "TraversalContext",
    "apply_field_plans",
    "classify_value",
    "describe_record",
    "link_ids",
    "merge_values",
    "plan_field",
]
