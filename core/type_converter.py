"""
core/type_converter.py
----------------------
Classifies a change of declared data type between two schema versions.

Classifies any old→new type pairing as:
    SAFE   – A widening; existing values survive unchanged
             (e.g. INT → BIGINT, VARCHAR(50) → VARCHAR(255)).
    LOSSY  – A narrowing; values may be truncated or lose precision
             (e.g. DOUBLE → INT, VARCHAR(255) → VARCHAR(50)).
    UNSAFE – Values are unlikely to convert at all
             (e.g. TEXT → INT, JSON → DATE).

Type names from every supported dialect are first folded onto one
vocabulary (``int4`` → ``int``, ``character varying`` → ``varchar``,
``string`` → ``text`` …) so a relational column and a document field can
be compared the same way.

Design Decision:
    Pure functions with no side effects make this module trivially testable.
    The classification table encodes domain knowledge as data (category sets
    + per-category rank tables) rather than a deeply nested if/else tree.
"""
from __future__ import annotations

import re
from enum import Enum


class ConversionSafety(str, Enum):
    SAFE = "safe"
    LOSSY = "lossy"
    UNSAFE = "unsafe"


# ---------------------------------------------------------------------------
# Dialect aliases
# ---------------------------------------------------------------------------
_ALIASES = {
    "int2": "smallint",
    "int4": "int",
    "integer": "int",
    "int8": "bigint",
    "long": "bigint",
    "int32": "int",
    "int64": "bigint",
    "serial": "int",
    "bigserial": "bigint",
    "float4": "real",
    "float8": "double",
    "double precision": "double",
    "number": "decimal",
    "numeric": "decimal",
    "character varying": "varchar",
    "character": "char",
    "nvarchar": "varchar",
    "nchar": "char",
    "varchar2": "varchar",
    "string": "text",
    "clob": "longtext",
    "bool": "boolean",
    "bit": "boolean",
    "timestamptz": "timestamp",
    "timestamp with time zone": "timestamp",
    "timestamp without time zone": "timestamp",
    "datetime2": "datetime",
    "jsonb": "json",
    "object": "json",
    "document": "json",
    "bytea": "blob",
    "varbinary": "blob",
    "binary": "blob",
    "uniqueidentifier": "uuid",
}

# ---------------------------------------------------------------------------
# Type category tables (rank = relative width inside the category)
# ---------------------------------------------------------------------------
_INTEGER_RANK = {"tinyint": 1, "smallint": 2, "mediumint": 3, "int": 4, "bigint": 5}
_APPROX_RANK = {"real": 1, "float": 1, "double": 2}
_EXACT_NUMERIC = frozenset({"decimal"})
_STRING_RANK = {
    "char": 1, "varchar": 2, "tinytext": 3, "text": 4, "mediumtext": 5, "longtext": 6,
}
_DATETIME_TYPES = frozenset({"date", "datetime", "timestamp", "time", "year"})
_BINARY_TYPES = frozenset({"tinyblob", "blob", "mediumblob", "longblob"})
_BOOLEAN_TYPES = frozenset({"boolean"})
_JSON_TYPES = frozenset({"json"})
_UUID_TYPES = frozenset({"uuid"})

_CAT_MAP = (
    ("int",    frozenset(_INTEGER_RANK)),
    ("approx", frozenset(_APPROX_RANK)),
    ("exact",  _EXACT_NUMERIC),
    ("str",    frozenset(_STRING_RANK)),
    ("dt",     _DATETIME_TYPES),
    ("bin",    _BINARY_TYPES),
    ("bool",   _BOOLEAN_TYPES),
    ("json",   _JSON_TYPES),
    ("uuid",   _UUID_TYPES),
)
_NUMERIC_CATS = ("int", "approx", "exact")

_SIZE_RE = re.compile(r"\((\d+)(?:\s*,\s*(\d+))?\)")


def get_base_type(dtype_string: str) -> str:
    """
    Extract the canonical base type keyword from a full type definition.

    Examples::

        get_base_type("VARCHAR(255) NOT NULL")         →  "varchar"
        get_base_type("character varying(40)")         →  "varchar"
        get_base_type("INT UNSIGNED")                  →  "int"
        get_base_type("")                              →  ""
    """
    if not dtype_string:
        return ""
    text = dtype_string.split("(")[0].strip().lower()
    if text in _ALIASES:
        return _ALIASES[text]
    # Multi-word aliases first ("double precision"), then the first keyword.
    for alias, canonical in _ALIASES.items():
        if " " in alias and text.startswith(alias):
            return canonical
    first = text.split()[0] if text.split() else ""
    return _ALIASES.get(first, first)


def _category(base_type: str) -> str:
    for cat, types in _CAT_MAP:
        if base_type in types:
            return cat
    return "other"


def _size(dtype_string: str) -> tuple[int | None, int | None]:
    match = _SIZE_RE.search(dtype_string or "")
    if not match:
        return None, None
    scale = int(match.group(2)) if match.group(2) else None
    return int(match.group(1)), scale


def analyze_type_change(old_type: str, new_type: str) -> tuple[ConversionSafety, str]:
    """
    Classify *old_type* → *new_type* and explain why.

    Returns:
        ``(ConversionSafety, reason)``

    Examples::

        analyze_type_change("INT", "BIGINT")           → (SAFE, "Widening …")
        analyze_type_change("VARCHAR(255)", "VARCHAR(50)")  → (LOSSY, "…")
        analyze_type_change("TEXT", "INT")             → (UNSAFE, "…")
    """
    old_base = get_base_type(old_type)
    new_base = get_base_type(new_type)
    old_cat = _category(old_base)
    new_cat = _category(new_base)

    if old_base == new_base:
        return _same_base(old_type, new_type, old_cat)

    # --- Numeric → Numeric ---
    if old_cat in _NUMERIC_CATS and new_cat in _NUMERIC_CATS:
        return _numeric(old_base, new_base, old_cat, new_cat)

    # --- String → String ---
    if old_cat == "str" and new_cat == "str":
        return _string(old_type, new_type, old_base, new_base)

    # --- DateTime → DateTime ---
    if old_cat == "dt" and new_cat == "dt":
        return _datetime(old_base, new_base)

    # --- Binary → Binary ---
    if old_cat == "bin" and new_cat == "bin":
        return ConversionSafety.SAFE, "Compatible binary types"

    # --- Anything → String ---
    if new_cat == "str":
        if old_cat == "bin":
            return ConversionSafety.LOSSY, "Binary to string may not round-trip"
        if new_base == "char" or new_base == "varchar":
            size, _ = _size(new_type)
            if size is not None and old_cat == "json":
                return ConversionSafety.LOSSY, f"Document serialised into {new_base}({size}) may truncate"
        return ConversionSafety.SAFE, f"{old_base} to string conversion (automatic casting)"

    # --- Boolean ↔ Numeric ---
    if old_cat == "bool" and new_cat in _NUMERIC_CATS:
        return ConversionSafety.SAFE, "Boolean stored as number"
    if old_cat in _NUMERIC_CATS and new_cat == "bool":
        return ConversionSafety.LOSSY, "Number collapsed to boolean"

    # --- * → JSON ---
    if new_cat == "json":
        return ConversionSafety.SAFE, f"{old_base} wrapped as a document value"

    # --- String → Numeric / Date ---
    if old_cat == "str" and new_cat in _NUMERIC_CATS:
        return ConversionSafety.UNSAFE, "String to numeric conversion (may fail on non-numeric data)"
    if old_cat == "str" and new_cat == "dt":
        return ConversionSafety.LOSSY, "String to date conversion (depends on format compatibility)"
    if old_cat == "str" and new_cat == "uuid":
        return ConversionSafety.LOSSY, "String to uuid conversion (requires canonical format)"

    return ConversionSafety.UNSAFE, f"No safe conversion from {old_base or '?'} to {new_base or '?'}"


def classify_conversion(old_type: str, new_type: str) -> ConversionSafety:
    """Return only the :class:`ConversionSafety` part of :func:`analyze_type_change`."""
    return analyze_type_change(old_type, new_type)[0]


def is_same_type(old_type: str, new_type: str) -> bool:
    """True when both definitions name the same canonical type and size."""
    return get_base_type(old_type) == get_base_type(new_type) and _size(old_type) == _size(new_type)


# ---------------------------------------------------------------------------
# Category helpers
# ---------------------------------------------------------------------------

def _same_base(old_type: str, new_type: str, cat: str) -> tuple[ConversionSafety, str]:
    old_size, old_scale = _size(old_type)
    new_size, new_scale = _size(new_type)
    if old_size is None or new_size is None or (old_size, old_scale) == (new_size, new_scale):
        return ConversionSafety.SAFE, "Same data type"
    if new_size < old_size or (new_scale or 0) < (old_scale or 0):
        what = "String size" if cat == "str" else "Precision"
        return ConversionSafety.LOSSY, f"{what} reduced ({old_size} to {new_size}), may truncate"
    return ConversionSafety.SAFE, f"Size increased ({old_size} to {new_size})"


def _numeric(old_base: str, new_base: str, old_cat: str, new_cat: str) -> tuple[ConversionSafety, str]:
    if old_cat == new_cat == "int":
        if _INTEGER_RANK[new_base] >= _INTEGER_RANK[old_base]:
            return ConversionSafety.SAFE, f"Widening conversion ({old_base} to {new_base})"
        return ConversionSafety.LOSSY, f"Narrowing conversion, may truncate ({old_base} to {new_base})"
    if old_cat == new_cat == "approx":
        if _APPROX_RANK[new_base] >= _APPROX_RANK[old_base]:
            return ConversionSafety.SAFE, f"Widening conversion ({old_base} to {new_base})"
        return ConversionSafety.LOSSY, f"Precision loss ({old_base} to {new_base})"
    if new_cat == "int":
        return ConversionSafety.LOSSY, f"Fractional part discarded ({old_base} to {new_base})"
    if new_cat == "approx":
        return ConversionSafety.LOSSY, f"Exactness lost ({old_base} to {new_base})"
    # → exact
    if old_cat == "approx":
        return ConversionSafety.LOSSY, f"Rounding to fixed precision ({old_base} to {new_base})"
    return ConversionSafety.SAFE, f"Integer stored as exact numeric ({old_base} to {new_base})"


def _string(old_type: str, new_type: str, old_base: str, new_base: str) -> tuple[ConversionSafety, str]:
    old_size, _ = _size(old_type)
    new_size, _ = _size(new_type)
    if old_size and new_size:
        if new_size >= old_size:
            return ConversionSafety.SAFE, f"String size increased ({old_size} to {new_size})"
        return ConversionSafety.LOSSY, f"String size reduced ({old_size} to {new_size}), may truncate"
    if _STRING_RANK[new_base] >= _STRING_RANK[old_base] and not new_size:
        return ConversionSafety.SAFE, f"String type widening ({old_base} to {new_base})"
    return ConversionSafety.LOSSY, f"String type narrowing ({old_base} to {new_base}), may truncate"


def _datetime(old_base: str, new_base: str) -> tuple[ConversionSafety, str]:
    if {old_base, new_base} <= {"datetime", "timestamp"}:
        return ConversionSafety.SAFE, "Compatible datetime types"
    if old_base == "date" and new_base in ("datetime", "timestamp"):
        return ConversionSafety.SAFE, "Date to datetime (time set to 00:00:00)"
    if old_base in ("datetime", "timestamp") and new_base in ("date", "time", "year"):
        return ConversionSafety.LOSSY, f"Datetime to {new_base} (part of the value discarded)"
    if old_base == "date" and new_base == "year":
        return ConversionSafety.LOSSY, "Date to year (month and day discarded)"
    return ConversionSafety.UNSAFE, f"Incompatible temporal types ({old_base} to {new_base})"
