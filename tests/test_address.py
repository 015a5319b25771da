"""
tests/test_address.py
----------------------
Unit tests for core/address.py.
Run with: python -m pytest tests/
"""
from __future__ import annotations

import pytest

from core.address import format_resource_uri, parse_resource_uri, validate_address, valid_segment_types
from core.errors import InvalidAddressError
from models.object_types import ObjectType, SchemaFormat, SegmentType, SelectorType
from models.resource import PathSegment, Protocol, ResourceAddress, Scope, StreamProvider


def _db_address(*segments: PathSegment, **overrides) -> ResourceAddress:
    values = dict(
        protocol=Protocol.DATABASE,
        scope=Scope.DATA,
        database_id="db1",
        object_type=ObjectType.TABLE,
        object_name="users",
        path_segments=tuple(segments),
    )
    values.update(overrides)
    return ResourceAddress(**values)


class TestParseDatabase:
    def test_column_address(self) -> None:
        address = parse_resource_uri("redb://data/database/db1/table/users/column/email")
        assert address.protocol == Protocol.DATABASE
        assert address.scope == Scope.DATA
        assert address.database_id == "db1"
        assert address.object_type == ObjectType.TABLE
        assert address.object_name == "users"
        assert address.path_segments == (PathSegment(SegmentType.COLUMN, "email"),)
        assert address.selector is None

    def test_jsonpath_selector(self) -> None:
        address = parse_resource_uri("redb://data/database/db1/table/users/column/profile#$.address.city")
        assert address.selector.type == SelectorType.JSONPATH
        assert address.selector.expression == "$.address.city"

    @pytest.mark.parametrize("fragment, kind", [
        ("/root/item", SelectorType.XPATH),
        ("*", SelectorType.WILDCARD),
        ("3", SelectorType.INDEX),
        ("city", SelectorType.KEY),
    ])
    def test_selector_kinds(self, fragment: str, kind: SelectorType) -> None:
        address = parse_resource_uri(f"redb://data/database/db1/collection/c#{fragment}")
        assert address.selector.type == kind

    def test_indexed_element(self) -> None:
        address = parse_resource_uri("redb://data/database/db1/table/t/column/tags/element/items[3]")
        assert address.path_segments[1] == PathSegment(SegmentType.ELEMENT, "items", 3)

    def test_metadata_scope(self) -> None:
        assert parse_resource_uri("redb://metadata/database/db1/view/v").scope == Scope.METADATA

    def test_percent_decoding(self) -> None:
        address = parse_resource_uri("redb://data/database/db1/table/order%20lines")
        assert address.object_name == "order lines"

    def test_unknown_object_type_kept_raw(self) -> None:
        address = parse_resource_uri("redb://data/database/db1/hologram/h")
        assert address.object_type == "hologram"

    @pytest.mark.parametrize("uri, field_path", [
        ("", "uri"),
        ("   ", "uri"),
        ("ftp://x/y", "protocol"),
        ("users/email", "protocol"),
        ("redb://cosmic/database/db1/table/t", "scope"),
        ("redb://data/schema/db1/table/t", "database_id"),
        ("redb://data/database/db1", "database_id"),
        ("redb://data/database/db1/table/t/widget/w", "path_segments[0]"),
    ])
    def test_malformed(self, uri: str, field_path: str) -> None:
        with pytest.raises(InvalidAddressError) as exc_info:
            parse_resource_uri(uri)
        assert exc_info.value.field_path == field_path


class TestParseOtherProtocols:
    def test_stream_with_schema_format(self) -> None:
        address = parse_resource_uri("stream://kafka/connection/c1/topic/orders/schema/avro/field/id")
        assert address.protocol == Protocol.STREAM
        assert address.stream_provider == StreamProvider.KAFKA
        assert address.connection_id == "c1"
        assert address.object_type == ObjectType.TOPIC
        assert address.schema_format == SchemaFormat.AVRO
        assert address.path_segments == (PathSegment(SegmentType.FIELD, "id"),)

    def test_stream_connection_literal_optional(self) -> None:
        address = parse_resource_uri("stream://redis-stream/c1/stream/events")
        assert address.stream_provider == StreamProvider.REDIS_STREAM
        assert address.object_name == "events"

    def test_stream_unknown_provider(self) -> None:
        with pytest.raises(InvalidAddressError) as exc_info:
            parse_resource_uri("stream://carrier-pigeon/c1/topic/t")
        assert exc_info.value.field_path == "stream_provider"

    def test_stream_unknown_schema_format(self) -> None:
        with pytest.raises(InvalidAddressError) as exc_info:
            parse_resource_uri("stream://kafka/c1/topic/t/schema/yaml")
        assert exc_info.value.field_path == "schema_format"

    def test_webhook_body_takes_no_name(self) -> None:
        address = parse_resource_uri("webhook://srv/orders/request/body/field/id")
        assert address.server_id == "srv"
        assert address.connection_id == "orders"
        assert address.object_type == ObjectType.ENDPOINT
        assert address.object_name == "request"
        assert address.path_segments == (
            PathSegment(SegmentType.BODY),
            PathSegment(SegmentType.FIELD, "id"),
        )

    def test_webhook_bad_direction(self) -> None:
        with pytest.raises(InvalidAddressError) as exc_info:
            parse_resource_uri("webhook://srv/orders/callback")
        assert exc_info.value.field_path == "object_name"

    def test_mcp(self) -> None:
        address = parse_resource_uri("mcp://srv/tool/search/parameter/query")
        assert address.server_id == "srv"
        assert address.object_type == ObjectType.TOOL
        assert address.path_segments == (PathSegment(SegmentType.PARAMETER, "query"),)

    def test_mcp_needs_name(self) -> None:
        with pytest.raises(InvalidAddressError):
            parse_resource_uri("mcp://srv/tool")


class TestFormat:
    @pytest.mark.parametrize("uri", [
        "redb://data/database/db1/table/users/column/email",
        "redb://schema/database/db1/collection/c/field/tags/element/items[2]#$.a",
        "stream://kafka/connection/c1/topic/orders/schema/avro/field/id",
        "webhook://srv/orders/response/header/x-id",
        "mcp://srv/resource/docs/field/title",
    ])
    def test_parse_then_format(self, uri: str) -> None:
        assert format_resource_uri(parse_resource_uri(uri)) == uri


class TestValidate:
    def test_valid_address_passes(self) -> None:
        validate_address(_db_address(PathSegment(SegmentType.COLUMN, "email")))

    @pytest.mark.parametrize("overrides, field_path", [
        ({"database_id": ""}, "database_id"),
        ({"object_name": ""}, "object_name"),
        ({"object_type": ObjectType.TOPIC}, "object_type"),
        ({"object_type": "hologram"}, "object_type"),
    ])
    def test_database_rules(self, overrides: dict, field_path: str) -> None:
        with pytest.raises(InvalidAddressError) as exc_info:
            validate_address(_db_address(**overrides))
        assert exc_info.value.field_path == field_path

    def test_segment_kind_checked_per_object_type(self) -> None:
        address = _db_address(PathSegment(SegmentType.HEADER, "h"))
        with pytest.raises(InvalidAddressError) as exc_info:
            validate_address(address)
        assert exc_info.value.field_path == "path_segments[0]"

    def test_negative_index_rejected(self) -> None:
        address = parse_resource_uri("redb://data/database/db1/table/t/column/c/element/x[-1]")
        with pytest.raises(InvalidAddressError) as exc_info:
            validate_address(address)
        assert exc_info.value.field_path == "path_segments[1].index"

    def test_stream_needs_connection(self) -> None:
        address = ResourceAddress(
            protocol=Protocol.STREAM, scope=Scope.DATA, object_type=ObjectType.TOPIC,
            object_name="t", stream_provider=StreamProvider.KAFKA,
        )
        with pytest.raises(InvalidAddressError) as exc_info:
            validate_address(address)
        assert exc_info.value.field_path == "connection_id"

    def test_webhook_direction_checked(self) -> None:
        address = ResourceAddress(
            protocol=Protocol.WEBHOOK, scope=Scope.DATA, object_type=ObjectType.ENDPOINT,
            object_name="callback", server_id="srv",
        )
        with pytest.raises(InvalidAddressError) as exc_info:
            validate_address(address)
        assert exc_info.value.field_path == "object_name"

    def test_unknown_type_allows_every_segment(self) -> None:
        assert valid_segment_types("hologram") == frozenset(SegmentType)
