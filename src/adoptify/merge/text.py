"""Insert-only merge of plain strings.

The diff runs from *target* (old side) to *source* (new side) with
``diff-match-patch``, followed by its semantic cleanup so that matches are
not fragmented on insignificant boundaries.  Reconstruction walks the
operations left to right:

* ``EQUAL``  -- copied from target verbatim.
* ``INSERT`` -- present in source only; inserted at its diff position.
* ``DELETE`` -- present in target only; **kept**.  Deletions are never
  applied, so the result always contains the whole target in order.

Two refinements keep the merge idempotent:

* a source that is already a subsequence of the target adds nothing, and
* an insertion whose text is a subsequence of the deletion it replaces is
  already present in the kept target text and is dropped.

:func:`insert_only_ops` exposes the operation sequence so the rich-text
engine can rebuild formatted spans from the same diff.
"""

from __future__ import annotations

from typing import NamedTuple

from diff_match_patch import diff_match_patch

from adoptify.utils.canonical import is_subsequence

DIFF_DELETE: int = diff_match_patch.DIFF_DELETE
DIFF_INSERT: int = diff_match_patch.DIFF_INSERT
DIFF_EQUAL: int = diff_match_patch.DIFF_EQUAL


class EditOp(NamedTuple):
    """One operation of an insert-only merge plan.

    Attributes
    ----------
    kind:
        ``DIFF_EQUAL``, ``DIFF_DELETE`` or ``DIFF_INSERT``.
    text:
        Target text for equal/delete operations, source text for inserts.
    source_offset:
        Offset in the source string where the source side of this
        operation starts.  Meaningful for inserts only.
    """

    kind: int
    text: str
    source_offset: int


def compute_diff(old: str, new: str, timeout: float = 0.0) -> list[tuple[int, str]]:
    """Character diff from *old* to *new* with semantic cleanup.

    ``timeout=0`` removes the time budget: the diff is exact and never
    falls back to the line-mode or half-match speedups, so the same inputs
    always give the same operations.
    """
    dmp = diff_match_patch()
    dmp.Diff_Timeout = timeout
    diffs = dmp.diff_main(old, new, False)
    dmp.diff_cleanupSemantic(diffs)
    return diffs


def insert_only_ops(source: str, target: str, timeout: float = 0.0) -> list[EditOp]:
    """Return the merge plan that inserts *source*-only text into *target*."""
    source = source or ""
    target = target or ""

    if is_subsequence(source, target):
        return [EditOp(DIFF_EQUAL, target, 0)] if target else []

    diffs = compute_diff(target, source, timeout)
    ops: list[EditOp] = []
    source_offset = 0
    for index, (kind, text) in enumerate(diffs):
        if kind == DIFF_INSERT and _repeats_adjacent_deletion(diffs, index):
            source_offset += len(text)
            continue
        ops.append(EditOp(kind, text, source_offset))
        if kind != DIFF_DELETE:
            source_offset += len(text)
    return ops


def merge_text_insert_only(source: str, target: str, *, timeout: float = 0.0) -> str:
    """Merge *source* additions into *target* without removing anything.

    Parameters
    ----------
    source:
        The advanced locale's value (new side).
    target:
        The destination locale's value (old side).  Every character of it
        survives, in order.
    timeout:
        Diff time budget, see :func:`compute_diff`.

    Returns
    -------
    str
        The merged string.

    Examples
    --------
    >>> merge_text_insert_only("Hello world, new sentence.", "Hello world.")
    'Hello world, new sentence.'
    >>> merge_text_insert_only("Welcome", "")
    'Welcome'
    """
    return "".join(op.text for op in insert_only_ops(source, target, timeout))


def _repeats_adjacent_deletion(diffs: list[tuple[int, str]], index: int) -> bool:
    text = diffs[index][1]
    for neighbour in (index - 1, index + 1):
        if 0 <= neighbour < len(diffs):
            kind, deleted = diffs[neighbour]
            if kind == DIFF_DELETE and is_subsequence(text, deleted):
                return True
    return False
