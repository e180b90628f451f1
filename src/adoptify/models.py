"""Public data models for the adoptify package.

This module contains the remote record/schema/locale types, the field and
value kind enums that drive merge-policy dispatch, the traversal options
and summary, and the node types of the read-only diff tree.  All types
are plain dataclasses; the only behaviour they carry is parsing from the
management API payloads and small lookups.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class FieldKind(str, Enum):
    """Value kind a schema declares for one field."""

    TEXT = "text"
    """``Symbol`` or ``Text`` -- a plain string."""

    NUMBER = "number"
    """``Integer`` or ``Number``."""

    BOOLEAN = "boolean"

    RICH_TEXT = "rich_text"
    """A structured document (block/inline tree)."""

    ENTRY_LINK = "entry_link"
    """A single link to another record."""

    ENTRY_LINK_ARRAY = "entry_link_array"
    """An ordered array of links to other records."""

    ASSET_LINK = "asset_link"
    """A link to a media asset (displayed, never merged)."""

    JSON = "json"
    """Anything else: dates, locations, objects, symbol arrays."""


class ValueKind(str, Enum):
    """Runtime classification of one locale's value of a field."""

    ABSENT = "absent"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DOCUMENT = "document"
    LINK = "link"
    LINK_ARRAY = "link_array"
    JSON = "json"


# ---------------------------------------------------------------------------
# Locales
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Locale:
    """A locale configured on the environment.

    Attributes
    ----------
    code:
        Locale code, e.g. ``"en-US"``.
    name:
        Human-readable name.
    default:
        ``True`` for the single process-wide default locale.
    """

    code: str
    name: str = ""
    default: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Locale:
        return cls(
            code=payload.get("code", ""),
            name=payload.get("name", ""),
            default=bool(payload.get("default", False)),
        )


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldDef:
    """One field declaration of a content type.

    Attributes
    ----------
    id:
        Field identifier, the key under ``record.fields``.
    type:
        Raw declared type (``Symbol``, ``RichText``, ``Link``, ``Array`` ...).
    localized:
        Whether the field holds an independent value per locale.
    link_type:
        ``"Entry"`` or ``"Asset"`` for ``Link`` fields.
    items_type / items_link_type:
        Item declaration for ``Array`` fields.
    """

    id: str
    type: str
    localized: bool = False
    link_type: str | None = None
    items_type: str | None = None
    items_link_type: str | None = None

    @property
    def kind(self) -> FieldKind:
        if self.type in ("Symbol", "Text"):
            return FieldKind.TEXT
        if self.type in ("Integer", "Number"):
            return FieldKind.NUMBER
        if self.type == "Boolean":
            return FieldKind.BOOLEAN
        if self.type == "RichText":
            return FieldKind.RICH_TEXT
        if self.type == "Link":
            if self.link_type == "Entry":
                return FieldKind.ENTRY_LINK
            if self.link_type == "Asset":
                return FieldKind.ASSET_LINK
        if (
            self.type == "Array"
            and self.items_type == "Link"
            and self.items_link_type == "Entry"
        ):
            return FieldKind.ENTRY_LINK_ARRAY
        return FieldKind.JSON

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> FieldDef:
        items = payload.get("items") or {}
        return cls(
            id=payload.get("id", ""),
            type=payload.get("type", ""),
            localized=bool(payload.get("localized", False)),
            link_type=payload.get("linkType"),
            items_type=items.get("type"),
            items_link_type=items.get("linkType"),
        )


@dataclass(frozen=True)
class ContentType:
    """A content type (schema) with its fields in declaration order."""

    id: str
    fields: tuple[FieldDef, ...] = ()
    name: str = ""

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> ContentType:
        sys = payload.get("sys") or {}
        return cls(
            id=sys.get("id", ""),
            fields=tuple(FieldDef.from_payload(f) for f in payload.get("fields") or []),
            name=payload.get("name", ""),
        )


# ---------------------------------------------------------------------------
# Records and assets
# ---------------------------------------------------------------------------

@dataclass
class Record:
    """A versioned, schema-typed content record.

    Attributes
    ----------
    id:
        Opaque record identifier.
    version:
        Version number read with the record.  Must be supplied back on
        update; the remote rejects stale versions.
    content_type_id:
        Identifier of the schema this record conforms to.
    fields:
        ``field_id -> {locale_code -> value}`` mapping.
    metadata:
        Record metadata such as tags, echoed back unchanged on update.
    """

    id: str
    version: int
    content_type_id: str
    fields: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Record:
        sys = payload.get("sys") or {}
        content_type = (sys.get("contentType") or {}).get("sys") or {}
        return cls(
            id=sys.get("id", ""),
            version=int(sys.get("version", 0)),
            content_type_id=content_type.get("id", ""),
            fields=dict(payload.get("fields") or {}),
            metadata=dict(payload.get("metadata") or {}),
        )


@dataclass
class Asset:
    """A media asset.  Only its per-locale file metadata is used."""

    id: str
    fields: dict[str, Any] = field(default_factory=dict)

    def file_url(self, locale: str, default_locale: str | None = None) -> str | None:
        """Return an absolute ``https:`` URL for the file shown in *locale*.

        Falls back to *default_locale*, then to the first file present.
        """
        files = self.fields.get("file")
        if not isinstance(files, dict) or not files:
            return None
        chosen = files.get(locale)
        if chosen is None and default_locale is not None:
            chosen = files.get(default_locale)
        if chosen is None:
            chosen = next(iter(files.values()))
        url = chosen.get("url") if isinstance(chosen, dict) else None
        if not url:
            return None
        return url if url.startswith("http") else f"https:{url}"

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Asset:
        sys = payload.get("sys") or {}
        return cls(id=sys.get("id", ""), fields=dict(payload.get("fields") or {}))


# ---------------------------------------------------------------------------
# Traversal options and results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TraversalOptions:
    """Locale pair and field eligibility for one traversal invocation.

    Attributes
    ----------
    source_locale:
        Locale whose content is adopted.
    target_locale:
        Locale that receives the insert-only merge.
    default_locale:
        Read path for non-localized fields still keyed by locale.
    field_selection:
        ``record_id -> field ids`` eligible for adoption.  Ignored when
        *adopt_all* is ``True``.
    adopt_all:
        Treat every field of every record as selected.
    """

    source_locale: str
    target_locale: str
    default_locale: str | None = None
    field_selection: Mapping[str, frozenset[str]] = field(default_factory=dict)
    adopt_all: bool = True

    def is_selected(self, record_id: str, field_id: str) -> bool:
        if self.adopt_all:
            return True
        return field_id in self.field_selection.get(record_id, ())


@dataclass
class AdoptSummary:
    """Aggregate result of one (or several summed) adoption traversals.

    Attributes
    ----------
    updated_records:
        Records written back because at least one field changed.
    changed_fields:
        Total number of field values changed across all records.
    traversed_records:
        Records fetched and inspected, changed or not.
    """

    updated_records: int = 0
    changed_fields: int = 0
    traversed_records: int = 0

    def __add__(self, other: AdoptSummary) -> AdoptSummary:
        return AdoptSummary(
            updated_records=self.updated_records + other.updated_records,
            changed_fields=self.changed_fields + other.changed_fields,
            traversed_records=self.traversed_records + other.traversed_records,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "updated_records": self.updated_records,
            "changed_fields": self.changed_fields,
            "traversed_records": self.traversed_records,
        }


# ---------------------------------------------------------------------------
# Diff tree
# ---------------------------------------------------------------------------

@dataclass
class FieldDiff:
    """Leaf of the diff tree: display strings for both locales.

    Asset links additionally carry resolved image URLs.
    """

    source: str
    target: str
    is_image: bool = False
    source_image_url: str | None = None
    target_image_url: str | None = None

    type = "field"

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "type": self.type,
            "source": self.source,
            "target": self.target,
        }
        if self.is_image:
            out["is_image"] = True
            out["source_image_url"] = self.source_image_url
            out["target_image_url"] = self.target_image_url
        return out


@dataclass
class ReferenceNode:
    """Wraps the diff tree of one linked record.

    Attributes
    ----------
    id:
        Display id.  ``"<src> → <tgt>"`` when the two locales link
        different records.
    link_entry_id:
        The record that was expanded into *children*.
    children:
        Diff tree of the linked record.
    revisited:
        ``True`` when the record was already expanded elsewhere in the
        same tree; *children* is then empty.
    """

    id: str
    link_entry_id: str
    children: dict[str, DiffNode] = field(default_factory=dict)
    revisited: bool = False

    type = "reference"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "id": self.id,
            "link_entry_id": self.link_entry_id,
            "revisited": self.revisited,
            "children": tree_to_dict(self.children),
        }


@dataclass
class ReferenceListNode:
    """Wraps one :class:`ReferenceNode` per record of a link-array field."""

    children: dict[str, ReferenceNode] = field(default_factory=dict)

    type = "reference-list"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "children": {rid: node.to_dict() for rid, node in self.children.items()},
        }


DiffNode = Union[FieldDiff, ReferenceNode, ReferenceListNode]
DiffTree = dict[str, DiffNode]


def tree_to_dict(tree: Mapping[str, DiffNode]) -> dict[str, Any]:
    """Serialise a diff tree into plain JSON-compatible dicts."""
    return {field_id: node.to_dict() for field_id, node in tree.items()}
