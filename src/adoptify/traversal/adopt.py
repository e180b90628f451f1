"""Adoption traversal: apply insert-only merges across a record graph.

Starting from a root record, every reachable record is fetched once,
each schema field is planned with :func:`~.policy.plan_field`, and a
record with at least one changed field is written back once, with all
changed fields together and the version read at fetch time.

The walk is depth-first pre-order over an explicit stack: a record's
linked ids are pushed in reverse discovery order, so they are popped in
schema-field order.  A record already in the visited set is skipped when
popped, which both breaks cycles and avoids revisiting shared records.

Failures are not caught.  A version conflict or a remote error aborts
the walk; writes already made stay committed, and because the merges are
idempotent a re-run converges.
"""

from __future__ import annotations

from typing import Any

from adoptify.errors import AdoptifyVersionConflictError
from adoptify.models import AdoptSummary, ContentType, Record, TraversalOptions
from adoptify.observability import NoopMetricsHook, get_logger, log_fields

from .context import AsyncRecordSource, RecordSource, TraversalContext
from .policy import plan_field

log = get_logger("adoptify.adopt")


def apply_field_plans(
    record: Record,
    content_type: ContentType,
    options: TraversalOptions,
    *,
    timeout: float = 0.0,
) -> tuple[dict[str, Any], int, list[str]]:
    """Plan every schema field of *record*.

    Returns
    -------
    tuple
        ``(new_fields, changed_count, linked_ids)``.  *new_fields* is a
        shallow copy of ``record.fields`` with the target locale replaced
        in every changed field; *linked_ids* is de-duplicated in schema
        order.
    """
    new_fields = dict(record.fields)
    changed = 0
    linked: dict[str, None] = {}

    for fdef in content_type.fields:
        values = record.fields.get(fdef.id)
        plan = plan_field(fdef, values, options, record.id, timeout=timeout)
        if plan.changed:
            new_fields[fdef.id] = {**values, options.target_locale: plan.value}
            changed += 1
        for rid in plan.linked_ids:
            linked.setdefault(rid)

    return new_fields, changed, list(linked)


class _AdoptBase:
    def __init__(self, *, diff_timeout: float = 0.0, metrics: Any | None = None) -> None:
        self._timeout = diff_timeout
        self._metrics = metrics if metrics is not None else NoopMetricsHook()

    def _note_traversed(self) -> None:
        self._metrics.increment("adoptify.records_traversed_total")

    def _note_updated(self, record: Record, changed: int, options: TraversalOptions) -> None:
        self._metrics.increment("adoptify.records_updated_total")
        self._metrics.increment("adoptify.fields_changed_total", value=changed)
        log.info(
            "Record adopted",
            extra=log_fields(
                op="adopt",
                record_id=record.id,
                version=record.version,
                changed_fields=changed,
                source_locale=options.source_locale,
                target_locale=options.target_locale,
            ),
        )

    @staticmethod
    def _note_conflict(record: Record, exc: AdoptifyVersionConflictError) -> None:
        log.error(
            "Version conflict while writing record",
            extra=log_fields(op="adopt", record_id=record.id, version=record.version, error=str(exc)),
        )

    @staticmethod
    def _note_done(root_id: str, summary: AdoptSummary) -> None:
        log.info(
            "Adoption complete",
            extra=log_fields(op="adopt", root_id=root_id, **summary.to_dict()),
        )


class AdoptTraversal(_AdoptBase):
    """Synchronous adoption traversal.

    Parameters
    ----------
    source:
        Gateway-guarded record access.
    diff_timeout:
        Time budget for the character diff (``0`` = exact).
    metrics:
        Optional :class:`~adoptify.observability.MetricsHook`.
    """

    def __init__(
        self,
        source: RecordSource,
        *,
        diff_timeout: float = 0.0,
        metrics: Any | None = None,
    ) -> None:
        super().__init__(diff_timeout=diff_timeout, metrics=metrics)
        self._source = source

    def run(self, root_id: str, options: TraversalOptions) -> AdoptSummary:
        """Adopt *options.source_locale* into *options.target_locale*.

        Returns the aggregate :class:`~adoptify.models.AdoptSummary`.
        """
        ctx = TraversalContext(options)
        summary = AdoptSummary()
        stack = [root_id]

        while stack:
            record_id = stack.pop()
            if not record_id or not ctx.mark_visited(record_id):
                continue
            linked = self._adopt_record(ctx, record_id, summary)
            stack.extend(reversed(linked))

        self._note_done(root_id, summary)
        return summary

    def _adopt_record(self, ctx: TraversalContext, record_id: str, summary: AdoptSummary) -> list[str]:
        record = self._source.record(ctx, record_id)
        summary.traversed_records += 1
        self._note_traversed()

        content_type = self._source.content_type(ctx, record.content_type_id)
        new_fields, changed, linked = apply_field_plans(
            record, content_type, ctx.options, timeout=self._timeout,
        )

        if changed:
            try:
                self._source.update(record, new_fields)
            except AdoptifyVersionConflictError as exc:
                self._note_conflict(record, exc)
                raise
            summary.updated_records += 1
            summary.changed_fields += changed
            self._note_updated(record, changed, ctx.options)

        return linked


class AsyncAdoptTraversal(_AdoptBase):
    """Async twin of :class:`AdoptTraversal`."""

    def __init__(
        self,
        source: AsyncRecordSource,
        *,
        diff_timeout: float = 0.0,
        metrics: Any | None = None,
    ) -> None:
        super().__init__(diff_timeout=diff_timeout, metrics=metrics)
        self._source = source

    async def run(self, root_id: str, options: TraversalOptions) -> AdoptSummary:
        ctx = TraversalContext(options)
        summary = AdoptSummary()
        stack = [root_id]

        while stack:
            record_id = stack.pop()
            if not record_id or not ctx.mark_visited(record_id):
                continue
            linked = await self._adopt_record(ctx, record_id, summary)
            stack.extend(reversed(linked))

        self._note_done(root_id, summary)
        return summary

    async def _adopt_record(
        self, ctx: TraversalContext, record_id: str, summary: AdoptSummary,
    ) -> list[str]:
        record = await self._source.record(ctx, record_id)
        summary.traversed_records += 1
        self._note_traversed()

        content_type = await self._source.content_type(ctx, record.content_type_id)
        new_fields, changed, linked = apply_field_plans(
            record, content_type, ctx.options, timeout=self._timeout,
        )

        if changed:
            try:
                await self._source.update(record, new_fields)
            except AdoptifyVersionConflictError as exc:
                self._note_conflict(record, exc)
                raise
            summary.updated_records += 1
            summary.changed_fields += changed
            self._note_updated(record, changed, ctx.options)

        return linked
