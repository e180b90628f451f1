"""Synchronous adoptify client.

:class:`AdoptifyClient` wires the configuration, the HTTP transport, the
endpoint wrappers and the call gateway together and exposes the two
traversal entry points: a read-only diff preview and the insert-only
adoption itself.

Usage::

    from adoptify import AdoptifyClient

    with AdoptifyClient(token="CFPAT-xxx", space_id="abc123") as client:
        tree = client.build_diff_tree("entry-id", "en-US", "en-GB")
        summary = client.adopt("entry-id", "en-US", "en-GB")
        print(summary.to_dict())
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from adoptify.cma.assets import AssetAPI
from adoptify.cma.content_types import ContentTypeAPI
from adoptify.cma.entries import EntryAPI
from adoptify.cma.gateway import gateway_for
from adoptify.cma.locales import LocaleAPI
from adoptify.cma.transport import CMATransport
from adoptify.config import AdoptifyConfig
from adoptify.locales import check_pair, find_default_locale, is_pair_allowed
from adoptify.models import AdoptSummary, DiffTree, Locale, TraversalOptions
from adoptify.observability import get_logger, log_fields
from adoptify.traversal.adopt import AdoptTraversal
from adoptify.traversal.context import RecordSource
from adoptify.traversal.diff_tree import DiffTreeBuilder

log = get_logger("adoptify.client")


def build_options(
    source_locale: str,
    target_locale: str,
    default_locale: str | None,
    field_selection: Mapping[str, Iterable[str]] | None,
    adopt_all: bool,
) -> TraversalOptions:
    """Normalise caller arguments into :class:`TraversalOptions`."""
    selection = {
        record_id: frozenset(field_ids)
        for record_id, field_ids in (field_selection or {}).items()
    }
    return TraversalOptions(
        source_locale=source_locale,
        target_locale=target_locale,
        default_locale=default_locale,
        field_selection=selection,
        adopt_all=adopt_all,
    )


def adoption_targets(
    config: AdoptifyConfig,
    source_locale: str,
    target_locales: Sequence[str],
) -> list[str]:
    """Filter *target_locales* down to those :meth:`adopt_many` visits.

    Drops the source itself, duplicates and, when pairing is enforced,
    pairs the allowlist rejects.
    """
    targets: list[str] = []
    for target in target_locales:
        if target == source_locale or target in targets:
            continue
        if config.enforce_locale_pairing and not is_pair_allowed(
            source_locale, target, config.allowed_locale_bases,
        ):
            log.info(
                "Skipping disallowed locale pair",
                extra=log_fields(op="adopt_many", source_locale=source_locale, target_locale=target),
            )
            continue
        targets.append(target)
    return targets


class AdoptifyClient:
    """Synchronous insert-only locale adoption client.

    Parameters
    ----------
    token:
        Content management access token.  **Required.**
    **kwargs:
        All remaining keyword arguments are forwarded to
        :class:`AdoptifyConfig` (``space_id`` is required there).
    """

    def __init__(self, token: str, **kwargs: Any) -> None:
        """Create client.  All kwargs are forwarded to AdoptifyConfig."""
        self._config = AdoptifyConfig(token=token, **kwargs)
        self._transport = CMATransport(self._config)
        self._entries = EntryAPI(self._transport)
        self._content_types = ContentTypeAPI(self._transport)
        self._assets = AssetAPI(self._transport)
        self._locales = LocaleAPI(self._transport)
        self._gateway = gateway_for(self._config)
        self._source = RecordSource(
            self._gateway, self._entries, self._content_types, self._assets,
        )
        self._default_locale: str | None = None

    @property
    def config(self) -> AdoptifyConfig:
        return self._config

    # ------------------------------------------------------------------
    # Locales
    # ------------------------------------------------------------------

    def list_locales(self) -> list[Locale]:
        """Return the environment's locales in remote order."""
        return self._gateway.guarded_call(self._locales.list)

    def default_locale(self) -> str:
        """Return the default locale code, fetched once per client."""
        if self._default_locale is None:
            self._default_locale = find_default_locale(self.list_locales()).code
        return self._default_locale

    # ------------------------------------------------------------------
    # Traversals
    # ------------------------------------------------------------------

    def build_diff_tree(
        self,
        entry_id: str,
        source_locale: str,
        target_locale: str,
        *,
        default_locale: str | None = None,
    ) -> DiffTree:
        """Build the read-only comparison tree rooted at *entry_id*.

        Parameters
        ----------
        entry_id:
            Root record.
        source_locale / target_locale:
            The locale pair being compared.
        default_locale:
            Read path for non-localized link fields.  Discovered from the
            remote locale list when omitted.

        Returns
        -------
        DiffTree
            ``field_id -> node``; see :func:`adoptify.models.tree_to_dict`
            for a JSON-ready form.
        """
        options = build_options(
            source_locale,
            target_locale,
            default_locale or self.default_locale(),
            None,
            True,
        )
        return DiffTreeBuilder(self._source).build(entry_id, options)

    def adopt(
        self,
        entry_id: str,
        source_locale: str,
        target_locale: str,
        *,
        field_selection: Mapping[str, Iterable[str]] | None = None,
        adopt_all: bool = True,
        default_locale: str | None = None,
    ) -> AdoptSummary:
        """Insert-only adopt *source_locale* into *target_locale*.

        Parameters
        ----------
        entry_id:
            Root record.
        source_locale / target_locale:
            Content flows from source to target; target content is never
            removed (opaque JSON values excepted).
        field_selection:
            ``record_id -> field ids`` eligible for adoption.  Only used
            when *adopt_all* is ``False``.
        adopt_all:
            Treat every field as selected.
        default_locale:
            Read path for non-localized link fields.

        Returns
        -------
        AdoptSummary

        Raises
        ------
        AdoptifyLocaleError
            When pairing is enforced and the pair is not allowed.
        AdoptifyVersionConflictError
            When a record changed remotely between read and write.
        """
        if self._config.enforce_locale_pairing:
            check_pair(source_locale, target_locale, self._config.allowed_locale_bases)
        options = build_options(
            source_locale,
            target_locale,
            default_locale or self.default_locale(),
            field_selection,
            adopt_all,
        )
        traversal = AdoptTraversal(
            self._source,
            diff_timeout=self._config.diff_timeout_seconds,
            metrics=self._config.metrics,
        )
        return traversal.run(entry_id, options)

    def adopt_many(
        self,
        entry_id: str,
        source_locale: str,
        target_locales: Sequence[str],
        *,
        field_selection: Mapping[str, Iterable[str]] | None = None,
        adopt_all: bool = True,
        default_locale: str | None = None,
    ) -> AdoptSummary:
        """Adopt one source locale into several targets, in order.

        Each target gets its own traversal (fresh visited set and caches).
        The returned summary is the sum over all targets.
        """
        default = default_locale or self.default_locale()
        total = AdoptSummary()
        for target in adoption_targets(self._config, source_locale, target_locales):
            total = total + self.adopt(
                entry_id,
                source_locale,
                target,
                field_selection=field_selection,
                adopt_all=adopt_all,
                default_locale=default,
            )
        return total

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the underlying HTTP transport."""
        self._transport.close()

    def __enter__(self) -> AdoptifyClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
