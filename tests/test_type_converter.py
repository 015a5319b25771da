"""
tests/test_type_converter.py
-----------------------------
Unit tests for core/type_converter.py.
Run with: python -m pytest tests/
"""
from __future__ import annotations

import pytest

from core.type_converter import (
    ConversionSafety,
    analyze_type_change,
    classify_conversion,
    get_base_type,
    is_same_type,
)


class TestGetBaseType:
    @pytest.mark.parametrize("raw, expected", [
        ("VARCHAR(255) NOT NULL", "varchar"),
        ("character varying(40)", "varchar"),
        ("INT UNSIGNED", "int"),
        ("int4", "int"),
        ("integer", "int"),
        ("double precision", "double"),
        ("jsonb", "json"),
        ("string", "text"),
        ("timestamptz", "timestamp"),
        ("", ""),
    ])
    def test_aliases_fold_to_one_vocabulary(self, raw: str, expected: str) -> None:
        assert get_base_type(raw) == expected


class TestClassifyConversion:
    # --- Identical types (always SAFE) ---
    @pytest.mark.parametrize("type_", ["INT", "VARCHAR(100)", "TEXT", "DATETIME", "jsonb"])
    def test_identical_is_safe(self, type_: str) -> None:
        assert classify_conversion(type_, type_) == ConversionSafety.SAFE

    # --- Integer widenings / narrowings ---
    def test_int_to_bigint_safe(self) -> None:
        assert classify_conversion("INT", "BIGINT") == ConversionSafety.SAFE

    def test_tinyint_to_smallint_safe(self) -> None:
        assert classify_conversion("TINYINT", "SMALLINT") == ConversionSafety.SAFE

    def test_bigint_to_int_lossy(self) -> None:
        assert classify_conversion("BIGINT", "INT") == ConversionSafety.LOSSY

    def test_dialect_aliases_compare_as_same_family(self) -> None:
        assert classify_conversion("int4", "int8") == ConversionSafety.SAFE

    # --- Strings ---
    def test_varchar_shrink_lossy(self) -> None:
        assert classify_conversion("VARCHAR(255)", "VARCHAR(50)") == ConversionSafety.LOSSY

    def test_varchar_grow_safe(self) -> None:
        assert classify_conversion("VARCHAR(50)", "VARCHAR(255)") == ConversionSafety.SAFE

    def test_varchar_to_text_safe(self) -> None:
        assert classify_conversion("VARCHAR(255)", "TEXT") == ConversionSafety.SAFE

    def test_text_to_varchar_lossy(self) -> None:
        assert classify_conversion("TEXT", "VARCHAR(50)") == ConversionSafety.LOSSY

    # --- Cross-category ---
    def test_int_to_varchar_safe(self) -> None:
        assert classify_conversion("INT", "VARCHAR(20)") == ConversionSafety.SAFE

    def test_text_to_int_unsafe(self) -> None:
        assert classify_conversion("TEXT", "INT") == ConversionSafety.UNSAFE

    def test_blob_to_text_lossy(self) -> None:
        assert classify_conversion("BLOB", "TEXT") == ConversionSafety.LOSSY

    def test_anything_to_json_safe(self) -> None:
        assert classify_conversion("INT", "jsonb") == ConversionSafety.SAFE

    def test_json_to_date_unsafe(self) -> None:
        assert classify_conversion("JSON", "DATE") == ConversionSafety.UNSAFE

    def test_string_to_date_lossy(self) -> None:
        assert classify_conversion("VARCHAR(10)", "DATE") == ConversionSafety.LOSSY

    # --- Numerics ---
    def test_double_to_int_lossy(self) -> None:
        assert classify_conversion("DOUBLE", "INT") == ConversionSafety.LOSSY

    def test_int_to_decimal_safe(self) -> None:
        assert classify_conversion("INT", "DECIMAL(12,2)") == ConversionSafety.SAFE

    def test_decimal_scale_reduced_lossy(self) -> None:
        assert classify_conversion("DECIMAL(10,4)", "DECIMAL(10,2)") == ConversionSafety.LOSSY

    # --- Datetime ---
    def test_date_to_datetime_safe(self) -> None:
        assert classify_conversion("DATE", "DATETIME") == ConversionSafety.SAFE

    def test_datetime_to_date_lossy(self) -> None:
        assert classify_conversion("DATETIME", "DATE") == ConversionSafety.LOSSY

    def test_unknown_pairing_unsafe(self) -> None:
        assert classify_conversion("geometry", "INT") == ConversionSafety.UNSAFE


class TestAnalyzeTypeChange:
    def test_reason_mentions_sizes(self) -> None:
        safety, reason = analyze_type_change("VARCHAR(255)", "VARCHAR(50)")
        assert safety == ConversionSafety.LOSSY
        assert "255" in reason and "50" in reason


class TestIsSameType:
    def test_alias_and_case_insensitive(self) -> None:
        assert is_same_type("INTEGER", "int4")

    def test_size_difference_matters(self) -> None:
        assert not is_same_type("VARCHAR(50)", "VARCHAR(100)")
