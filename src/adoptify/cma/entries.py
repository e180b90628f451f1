"""Entry (record) API wrappers.

Provides :class:`EntryAPI` (sync) and :class:`AsyncEntryAPI` (async) thin
wrappers around the ``/entries`` endpoints.  HTTP concerns live in the
transport; pacing and retries in the gateway the caller wraps them with.
"""

from __future__ import annotations

from typing import Any

from adoptify.errors import AdoptifyVersionConflictError
from adoptify.models import Record

from .transport import AsyncCMATransport, CMATransport


def _update_request(
    version: int,
    fields: dict[str, Any],
    metadata: dict[str, Any] | None,
) -> dict[str, Any]:
    body: dict[str, Any] = {"fields": fields}
    if metadata:
        body["metadata"] = metadata
    return {
        "headers": {"X-Contentful-Version": str(version)},
        "json": body,
    }


def _conflict(entry_id: str, version: int, exc: AdoptifyVersionConflictError) -> AdoptifyVersionConflictError:
    return AdoptifyVersionConflictError(
        message=f"Record {entry_id} changed since version {version} was read",
        context={**exc.context, "record_id": entry_id, "expected_version": version},
        cause=exc,
    )


class EntryAPI:
    """Synchronous wrapper for the entries endpoints.

    Parameters
    ----------
    transport:
        A configured :class:`CMATransport` instance.
    """

    def __init__(self, transport: CMATransport) -> None:
        self._transport = transport

    def get(self, entry_id: str) -> Record:
        """Fetch one record with its version and all locales' values."""
        payload = self._transport.request(
            "GET", self._transport.env_path(f"/entries/{entry_id}"),
        )
        return Record.from_payload(payload)

    def update(
        self,
        entry_id: str,
        version: int,
        fields: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> Record:
        """Replace the record's fields, asserting it is still at *version*.

        Parameters
        ----------
        entry_id:
            The record to write.
        version:
            The version read at fetch time.
        fields:
            The complete ``field_id -> {locale -> value}`` mapping.
        metadata:
            The record metadata (tags) read at fetch time, sent back
            unchanged.

        Returns
        -------
        Record
            The record as stored, with its new version.

        Raises
        ------
        AdoptifyVersionConflictError
            When the remote copy moved past *version*.
        """
        try:
            payload = self._transport.request(
                "PUT",
                self._transport.env_path(f"/entries/{entry_id}"),
                **_update_request(version, fields, metadata),
            )
        except AdoptifyVersionConflictError as exc:
            raise _conflict(entry_id, version, exc) from exc
        return Record.from_payload(payload)


class AsyncEntryAPI:
    """Asynchronous wrapper for the entries endpoints."""

    def __init__(self, transport: AsyncCMATransport) -> None:
        self._transport = transport

    async def get(self, entry_id: str) -> Record:
        payload = await self._transport.request(
            "GET", self._transport.env_path(f"/entries/{entry_id}"),
        )
        return Record.from_payload(payload)

    async def update(
        self,
        entry_id: str,
        version: int,
        fields: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> Record:
        try:
            payload = await self._transport.request(
                "PUT",
                self._transport.env_path(f"/entries/{entry_id}"),
                **_update_request(version, fields, metadata),
            )
        except AdoptifyVersionConflictError as exc:
            raise _conflict(entry_id, version, exc) from exc
        return Record.from_payload(payload)
