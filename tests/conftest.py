"""Shared test fixtures for the adoptify test suite."""

from __future__ import annotations

import copy
from types import SimpleNamespace
from typing import Any

import pytest

from adoptify.cma.gateway import AsyncCallGateway, CallGateway, reset_shared_gateways
from adoptify.cma.rate_limit import AsyncSlidingWindowLimiter, SlidingWindowLimiter
from adoptify.config import AdoptifyConfig
from adoptify.errors import AdoptifyNotFoundError, AdoptifyVersionConflictError
from adoptify.models import Asset, ContentType, Locale, Record
from adoptify.traversal.context import AsyncRecordSource, RecordSource


class FakeStore:
    """In-memory stand-in for the remote record store.

    Entries, content types and assets are kept as raw API payloads and
    parsed through the same ``from_payload`` constructors the endpoint
    wrappers use.  Every read and write is logged in :attr:`calls`.
    """

    def __init__(self) -> None:
        self.entries: dict[str, dict[str, Any]] = {}
        self.content_types: dict[str, dict[str, Any]] = {}
        self.assets: dict[str, dict[str, Any]] = {}
        self.locales: list[dict[str, Any]] = [
            {"code": "en-US", "name": "English (US)", "default": True},
            {"code": "en-GB", "name": "English (UK)", "default": False},
            {"code": "de-DE", "name": "German", "default": False},
        ]
        self.calls: list[tuple[str, str]] = []
        self.writes: list[tuple[str, int, dict[str, Any]]] = []

    # -- setup -------------------------------------------------------------

    def add_content_type(self, ct_id: str, *fields: dict[str, Any]) -> None:
        self.content_types[ct_id] = {"sys": {"id": ct_id}, "name": ct_id, "fields": list(fields)}

    def add_entry(
        self,
        entry_id: str,
        ct_id: str,
        fields: dict[str, Any],
        version: int = 1,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self.entries[entry_id] = {
            "metadata": copy.deepcopy(metadata or {}),
            "sys": {
                "id": entry_id,
                "version": version,
                "contentType": {"sys": {"id": ct_id}},
            },
            "fields": copy.deepcopy(fields),
        }

    def add_asset(self, asset_id: str, urls: dict[str, str]) -> None:
        self.assets[asset_id] = {
            "sys": {"id": asset_id},
            "fields": {"file": {loc: {"url": url} for loc, url in urls.items()}},
        }

    def bump_version(self, entry_id: str) -> None:
        """Simulate a concurrent edit."""
        self.entries[entry_id]["sys"]["version"] += 1

    def fields(self, entry_id: str) -> dict[str, Any]:
        return self.entries[entry_id]["fields"]

    def count(self, kind: str) -> int:
        return sum(1 for call, _ in self.calls if call == kind)

    # -- remote surface ----------------------------------------------------

    def get_entry(self, entry_id: str) -> Record:
        self.calls.append(("entry.get", entry_id))
        if entry_id not in self.entries:
            raise AdoptifyNotFoundError(f"no entry {entry_id}", context={"path": entry_id})
        return Record.from_payload(copy.deepcopy(self.entries[entry_id]))

    def update_entry(
        self,
        entry_id: str,
        version: int,
        fields: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> Record:
        self.calls.append(("entry.update", entry_id))
        stored = self.entries[entry_id]
        if stored["sys"]["version"] != version:
            raise AdoptifyVersionConflictError(
                f"stale version for {entry_id}",
                context={"record_id": entry_id, "expected_version": version},
            )
        stored["fields"] = copy.deepcopy(fields)
        stored["metadata"] = copy.deepcopy(metadata or {})
        stored["sys"]["version"] += 1
        self.writes.append((entry_id, version, copy.deepcopy(fields)))
        return Record.from_payload(copy.deepcopy(stored))

    def get_content_type(self, ct_id: str) -> ContentType:
        self.calls.append(("content_type.get", ct_id))
        if ct_id not in self.content_types:
            raise AdoptifyNotFoundError(f"no content type {ct_id}")
        return ContentType.from_payload(self.content_types[ct_id])

    def get_asset(self, asset_id: str) -> Asset:
        self.calls.append(("asset.get", asset_id))
        return Asset.from_payload(copy.deepcopy(self.assets[asset_id]))

    def list_locales(self) -> list[Locale]:
        self.calls.append(("locale.list", ""))
        return [Locale.from_payload(item) for item in self.locales]


def _as_coroutine(fn):
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        return fn(*args, **kwargs)

    wrapper.__qualname__ = getattr(fn, "__qualname__", "wrapper")
    return wrapper


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolated_shared_gateways():
    """Each test starts with an empty process-wide gateway registry."""
    reset_shared_gateways()
    yield
    reset_shared_gateways()


@pytest.fixture
def config() -> AdoptifyConfig:
    """Default test configuration with a dummy token."""
    return AdoptifyConfig(token="test_token_1234", space_id="space1")


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def gateway() -> CallGateway:
    """A gateway that never blocks or sleeps in practice."""
    return CallGateway(
        SlidingWindowLimiter(max_calls=10_000, window_seconds=1.0, jitter_seconds=0.0),
        max_retries=2,
        base_delay=0.0,
        max_delay=0.0,
        jitter_seconds=0.0,
    )


@pytest.fixture
def async_gateway() -> AsyncCallGateway:
    return AsyncCallGateway(
        AsyncSlidingWindowLimiter(max_calls=10_000, window_seconds=1.0, jitter_seconds=0.0),
        max_retries=2,
        base_delay=0.0,
        max_delay=0.0,
        jitter_seconds=0.0,
    )


@pytest.fixture
def record_source(store: FakeStore, gateway: CallGateway) -> RecordSource:
    return RecordSource(
        gateway,
        SimpleNamespace(get=store.get_entry, update=store.update_entry),
        SimpleNamespace(get=store.get_content_type),
        SimpleNamespace(get=store.get_asset),
    )


@pytest.fixture
def async_record_source(store: FakeStore, async_gateway: AsyncCallGateway) -> AsyncRecordSource:
    return AsyncRecordSource(
        async_gateway,
        SimpleNamespace(
            get=_as_coroutine(store.get_entry),
            update=_as_coroutine(store.update_entry),
        ),
        SimpleNamespace(get=_as_coroutine(store.get_content_type)),
        SimpleNamespace(get=_as_coroutine(store.get_asset)),
    )


@pytest.fixture
def async_locale_api(store: FakeStore) -> SimpleNamespace:
    return SimpleNamespace(list=_as_coroutine(store.list_locales))
