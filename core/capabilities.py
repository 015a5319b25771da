"""
core/capabilities.py
--------------------
Structural capabilities of object kinds and data-type names.

Two lookups drive generic dispatch everywhere else in the planner:

    get_object_capability(type)   – what an object kind can do (store data,
                                    nest, which selectors it accepts, …).
    get_data_type_capability(name) – whether a declared data type is
                                    structured / navigable, derived from the
                                    text of its name.

Design Decision:
    The per-kind table is built once at import and exposed read-only
    (``MappingProxyType`` over frozen dataclasses).  Lookups are a single
    dict access with a conservative fallback, so the functions are total:
    no input, known or not, makes them raise.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterable

from models.object_types import (
    ObjectType,
    SchemaFormat,
    SegmentType,
    SelectorType,
    coerce_object_type,
)


@dataclass(frozen=True)
class ObjectCapability:
    can_store_data: bool
    has_metadata: bool
    supports_nesting: bool
    supported_selectors: frozenset[SelectorType] = frozenset()
    is_streaming: bool = False
    is_stateless: bool = False
    requires_schema: bool = False


@dataclass(frozen=True)
class DataTypeCapability:
    is_structured: bool = False
    is_array: bool = False
    is_navigable: bool = False
    element_type: str = ""
    schema_format: SchemaFormat | None = None


# ---------------------------------------------------------------------------
# Object capability table
# ---------------------------------------------------------------------------
DEFAULT_OBJECT_CAPABILITY = ObjectCapability(
    can_store_data=False, has_metadata=True, supports_nesting=False
)

_S = SelectorType
_TABLE_LIKE = ObjectCapability(True, True, True, frozenset({_S.WILDCARD}))
_DOCUMENT_LIKE = ObjectCapability(True, True, True, frozenset({_S.JSONPATH, _S.WILDCARD, _S.KEY}))
_GRAPH_LIKE = ObjectCapability(True, True, True, frozenset({_S.WILDCARD, _S.KEY}))
_STREAM_LIKE = ObjectCapability(
    True, True, True, frozenset({_S.JSONPATH, _S.XPATH, _S.WILDCARD}),
    is_streaming=True, requires_schema=True,
)
_PARTITION = ObjectCapability(True, True, False, frozenset(), is_streaming=True)
_WEBHOOK_LIKE = ObjectCapability(
    True, True, True, frozenset({_S.JSONPATH, _S.XPATH, _S.WILDCARD}), is_stateless=True
)
_MCP_LIKE = ObjectCapability(True, True, True, frozenset({_S.JSONPATH, _S.WILDCARD, _S.KEY}))

_OBJECT_CAPABILITIES = MappingProxyType({
    ObjectType.TABLE: _TABLE_LIKE,
    ObjectType.VIEW: _TABLE_LIKE,
    ObjectType.MATERIALIZED_VIEW: _TABLE_LIKE,
    ObjectType.TEMPORARY_TABLE: _TABLE_LIKE,
    ObjectType.MEMORY_TABLE: _TABLE_LIKE,
    ObjectType.EXTERNAL_TABLE: _TABLE_LIKE,
    ObjectType.FOREIGN_TABLE: _TABLE_LIKE,
    ObjectType.COLLECTION: _DOCUMENT_LIKE,
    ObjectType.NODE: _GRAPH_LIKE,
    ObjectType.RELATIONSHIP: _GRAPH_LIKE,
    ObjectType.TOPIC: _STREAM_LIKE,
    ObjectType.QUEUE: _STREAM_LIKE,
    ObjectType.STREAM: _STREAM_LIKE,
    ObjectType.PARTITION: _PARTITION,
    ObjectType.ENDPOINT: _WEBHOOK_LIKE,
    ObjectType.REQUEST: _WEBHOOK_LIKE,
    ObjectType.RESPONSE: _WEBHOOK_LIKE,
    ObjectType.RESOURCE: _MCP_LIKE,
    ObjectType.TOOL: _MCP_LIKE,
    ObjectType.PROMPT: _MCP_LIKE,
})


def get_object_capability(object_type: ObjectType | str) -> ObjectCapability:
    """
    Return the capability descriptor for *object_type*.

    Total: unknown kinds (including arbitrary strings) get
    :data:`DEFAULT_OBJECT_CAPABILITY` (no data storage, has metadata, no
    nesting, no selectors).
    """
    return _OBJECT_CAPABILITIES.get(coerce_object_type(object_type), DEFAULT_OBJECT_CAPABILITY)


# ---------------------------------------------------------------------------
# Data type classification
# ---------------------------------------------------------------------------
_JSON = DataTypeCapability(True, False, True, "", SchemaFormat.JSON)
_XML = DataTypeCapability(True, False, True, "", SchemaFormat.XML)
_AVRO = DataTypeCapability(True, False, True, "", SchemaFormat.AVRO)
_PROTOBUF = DataTypeCapability(True, False, True, "", SchemaFormat.PROTOBUF)
_MAP_LIKE = DataTypeCapability(True, False, True)
_OPAQUE = DataTypeCapability(False, False, False)
_SCALAR = DataTypeCapability(False, False, False)

_ELEMENT_PATTERNS = (
    re.compile(r"^(?:array|list)\s*<\s*(.+?)\s*>$"),
    re.compile(r"^(.+?)\s*\[\s*\]$"),
)


def _array_capability(name: str) -> DataTypeCapability:
    element = ""
    for pattern in _ELEMENT_PATTERNS:
        match = pattern.match(name)
        if match:
            element = match.group(1)
            break
    return DataTypeCapability(False, True, True, element, None)


def _is_array(name: str) -> bool:
    return "array" in name or name.endswith("[]") or "list" in name


# Ordered: the first predicate that matches decides.  A name can satisfy
# several (``binary_json`` is both binary and json); the order below is the
# canonical tie-break and must not be rearranged.
_DATA_TYPE_PREDICATES = (
    (lambda n: "json" in n, lambda n: _JSON),
    (lambda n: "xml" in n, lambda n: _XML),
    (_is_array, _array_capability),
    (lambda n: "avro" in n, lambda n: _AVRO),
    (lambda n: "protobuf" in n or "proto" in n, lambda n: _PROTOBUF),
    (lambda n: "map" in n or "dict" in n or "hstore" in n, lambda n: _MAP_LIKE),
    (lambda n: "composite" in n or "struct" in n or "record" in n, lambda n: _MAP_LIKE),
    (lambda n: "blob" in n or "binary" in n or "bytea" in n, lambda n: _OPAQUE),
)


def get_data_type_capability(type_name: str) -> DataTypeCapability:
    """
    Classify a declared data type by the text of its name.

    Examples::

        get_data_type_capability("JSONB").schema_format   →  SchemaFormat.JSON
        get_data_type_capability("int[]").element_type    →  "int"
        get_data_type_capability("bytea").is_navigable    →  False
        get_data_type_capability("binary_json").is_structured  →  True
    """
    name = (type_name or "").strip().lower()
    for matches, build in _DATA_TYPE_PREDICATES:
        if matches(name):
            return build(name)
    return _SCALAR


# ---------------------------------------------------------------------------
# Path and property helpers
# ---------------------------------------------------------------------------
_STORAGE_SEGMENTS = frozenset(
    s.value for s in (
        SegmentType.COLUMN,
        SegmentType.FIELD,
        SegmentType.PROPERTY,
        SegmentType.ELEMENT,
        SegmentType.KEY,
        SegmentType.BODY,
        SegmentType.PARAMETER,
    )
)

_METADATA_PROPERTIES = frozenset({
    "name", "type", "names", "types", "default", "nullable", "required",
    "description", "comment", "schema", "format", "version", "created",
    "updated", "owner", "permissions",
})


def _segment_kind(segment: Any) -> str:
    kind = getattr(segment, "type", segment)
    return str(getattr(kind, "value", kind)).lower()


def can_store_values(object_type: ObjectType | str, path: Iterable[Any] = ()) -> bool:
    """
    Return True if the position named by *object_type* + *path* holds values.

    When the object kind cannot store data the answer is False without
    looking at *path*.  Otherwise only the final segment's kind is checked;
    intermediate segments are not validated.
    """
    if not get_object_capability(object_type).can_store_data:
        return False
    segments = list(path)
    if not segments:
        return True
    return _segment_kind(segments[-1]) in _STORAGE_SEGMENTS


def is_metadata_property(name: str) -> bool:
    """True for descriptive property names (``name``, ``comment``, ``owner`` …)."""
    return (name or "").strip().lower() in _METADATA_PROPERTIES


def supports_selector(object_type: ObjectType | str, selector: SelectorType | str) -> bool:
    try:
        selector_type = SelectorType(getattr(selector, "value", selector))
    except ValueError:
        return False
    return selector_type in get_object_capability(object_type).supported_selectors
