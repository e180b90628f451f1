"""Property-based tests for the insert-only merge engines.

These check the algebraic guarantees the traversal relies on: nothing is
ever removed from the target, re-running a merge changes nothing, and the
empty / identical edge cases reduce to full adopt and no-op.
"""

from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st

from adoptify.merge.plain_text import extract_plain_text
from adoptify.merge.rich_text import flatten_inline_block, merge_rich_text_documents
from adoptify.merge.text import merge_text_insert_only
from adoptify.utils.canonical import is_subsequence

# Small alphabet so that source and target share material often.
_text_st = st.text(alphabet="ab c.,Xé", max_size=40)

_marks_st = st.lists(st.sampled_from(["bold", "italic", "underline"]), max_size=2)

_run_st = st.builds(
    lambda value, marks: {
        "nodeType": "text",
        "value": value,
        "marks": [{"type": m} for m in marks],
        "data": {},
    },
    st.text(alphabet="ab c.", min_size=1, max_size=12),
    _marks_st,
)

_paragraph_st = st.builds(
    lambda runs: {"nodeType": "paragraph", "data": {}, "content": runs},
    st.lists(_run_st, max_size=4),
)

_doc_st = st.builds(
    lambda blocks: {"nodeType": "document", "data": {}, "content": blocks},
    st.lists(_paragraph_st, max_size=4),
)


class TestPlainTextProperties:
    @given(source=_text_st, target=_text_st)
    @settings(max_examples=300, deadline=None)
    def test_idempotent(self, source, target):
        once = merge_text_insert_only(source, target)
        assert merge_text_insert_only(source, once) == once

    @given(source=_text_st, target=_text_st)
    @settings(max_examples=300, deadline=None)
    def test_target_survives_in_order(self, source, target):
        assert is_subsequence(target, merge_text_insert_only(source, target))

    @given(source=_text_st, target=_text_st)
    @settings(max_examples=300, deadline=None)
    def test_source_survives_in_order(self, source, target):
        assert is_subsequence(source, merge_text_insert_only(source, target))

    @given(source=_text_st)
    def test_empty_target_is_full_adopt(self, source):
        assert merge_text_insert_only(source, "") == source

    @given(source=_text_st)
    def test_identical_is_noop(self, source):
        assert merge_text_insert_only(source, source) == source


class TestRichTextProperties:
    @given(source=_doc_st, target=_doc_st)
    @settings(max_examples=150, deadline=None)
    def test_idempotent_for_aligned_kinds(self, source, target):
        once = merge_rich_text_documents(source, target)
        assert merge_rich_text_documents(source, once) == once

    @given(source=_doc_st, target=_doc_st)
    @settings(max_examples=150, deadline=None)
    def test_block_count_is_max_for_aligned_kinds(self, source, target):
        merged = merge_rich_text_documents(source, target)
        assert len(merged["content"]) == max(len(source["content"]), len(target["content"]))

    @given(source=_doc_st, target=_doc_st)
    @settings(max_examples=150, deadline=None)
    def test_every_target_paragraph_text_survives(self, source, target):
        merged = merge_rich_text_documents(source, target)
        for tgt_block, out_block in zip(target["content"], merged["content"]):
            tgt_text, _ = flatten_inline_block(tgt_block)
            out_text, _ = flatten_inline_block(out_block)
            assert is_subsequence(tgt_text, out_text)

    @given(target=_doc_st)
    def test_identical_documents_merge_to_target_text(self, target):
        merged = merge_rich_text_documents(target, target)
        assert extract_plain_text(merged) == extract_plain_text(target)
