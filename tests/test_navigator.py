"""
tests/test_navigator.py
------------------------
Unit tests for core/navigator.py.
Run with: python -m pytest tests/
"""
from __future__ import annotations

import pytest

from core.address import parse_resource_uri
from core.errors import InvalidAddressError, NotFoundError, UnsupportedNavigationError
from core.navigator import ResourceNavigator, are_compatible, check_compatibility
from models.object_types import SegmentType
from models.unified_model import CHILD_SEGMENT, UnifiedModel


@pytest.fixture
def model() -> UnifiedModel:
    """One table with a scalar and a JSON column, and one collection."""
    return UnifiedModel.from_dict({
        "database_type": "postgresql",
        "tables": {
            "users": {
                "columns": {
                    "email": {"data_type": "varchar(255)"},
                    "profile": {"data_type": "jsonb"},
                },
            },
        },
        "collections": {"events": {"fields": {"payload": {"type": "object"}}}},
    })


@pytest.fixture
def navigator() -> ResourceNavigator:
    return ResourceNavigator()


def _nav(navigator: ResourceNavigator, uri: str, model: UnifiedModel | None):
    return navigator.navigate(parse_resource_uri(uri), model)


class TestDatabaseNavigation:
    def test_object_only(self, navigator: ResourceNavigator, model: UnifiedModel) -> None:
        location = _nav(navigator, "redb://data/database/db1/table/users", model)
        assert location.target is location.parent is model.tables["users"]
        assert location.target_path == "users"
        assert not location.is_nested

    def test_column(self, navigator: ResourceNavigator, model: UnifiedModel) -> None:
        location = _nav(navigator, "redb://data/database/db1/table/users/column/email", model)
        assert location.target is model.tables["users"].columns["email"]
        assert location.target_path == "users.email"
        assert location.data_type == "varchar(255)"

    def test_nested_below_structured_column(self, navigator: ResourceNavigator, model: UnifiedModel) -> None:
        location = _nav(
            navigator, "redb://data/database/db1/table/users/column/profile/field/address/field/city", model
        )
        assert location.is_nested
        assert [s.name for s in location.nested_path] == ["address", "city"]
        assert location.nested_path[0].type == SegmentType.FIELD

    def test_collection_field(self, navigator: ResourceNavigator, model: UnifiedModel) -> None:
        location = _nav(navigator, "redb://data/database/db1/collection/events/field/payload", model)
        assert location.target_path == "events.payload"

    def test_scalar_column_cannot_nest(self, navigator: ResourceNavigator, model: UnifiedModel) -> None:
        with pytest.raises(UnsupportedNavigationError) as exc_info:
            _nav(navigator, "redb://data/database/db1/table/users/column/email/field/domain", model)
        assert exc_info.value.actual == "varchar(255)"

    def test_wrong_child_kind(self, navigator: ResourceNavigator, model: UnifiedModel) -> None:
        with pytest.raises(UnsupportedNavigationError) as exc_info:
            _nav(navigator, "redb://data/database/db1/table/users/field/email", model)
        assert exc_info.value.expected == "column"

    def test_missing_object(self, navigator: ResourceNavigator, model: UnifiedModel) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            _nav(navigator, "redb://data/database/db1/table/orders", model)
        assert exc_info.value.field_path == "object_name"

    def test_missing_child(self, navigator: ResourceNavigator, model: UnifiedModel) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            _nav(navigator, "redb://data/database/db1/table/users/column/phone", model)
        assert exc_info.value.field_path == "path_segments[0]"

    def test_model_required(self, navigator: ResourceNavigator) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            _nav(navigator, "redb://data/database/db1/table/users", None)
        assert exc_info.value.field_path == "model"

    def test_invalid_address_rejected_first(self, navigator: ResourceNavigator, model: UnifiedModel) -> None:
        with pytest.raises(InvalidAddressError):
            _nav(navigator, "redb://data/database/db1/table/users/header/x", model)


@pytest.fixture
def every_kind() -> UnifiedModel:
    """One container of each kind, each with a single child."""
    columns = {"columns": {"id": {"data_type": "bigint"}}}
    properties = {"properties": {"since": {"type": "date"}}}
    return UnifiedModel.from_dict({
        "database_type": "postgresql",
        "tables": {"users": columns},
        "collections": {"events": {"fields": {"payload": {"type": "object"}}}},
        "views": {"active_users": {"definition": "select id from users", **columns}},
        "materialized_views": {"daily_totals": {"columns": {"total": {"data_type": "numeric(12,2)"}}}},
        "external_tables": {"raw_logs": {"columns": {"line": {"data_type": "text"}}}},
        "foreign_tables": {"remote_users": columns},
        "nodes": {"Person": {"properties": {"name": {"type": "string"}}}},
        "relationships": {"KNOWS": {"from_label": "Person", "to_label": "Person", **properties}},
    })


class TestRoundTrip:
    def test_every_container_and_first_child_resolve(
        self, navigator: ResourceNavigator, every_kind: UnifiedModel
    ) -> None:
        walked = []
        for object_type, name, container in every_kind.iter_containers():
            base = f"redb://data/database/db1/{object_type.value}/{name}"
            location = _nav(navigator, base, every_kind)
            assert location.target is container
            assert location.target_path == name

            child_name, child = next(iter(container.children.items()))
            segment = CHILD_SEGMENT[object_type].value
            location = _nav(navigator, f"{base}/{segment}/{child_name}", every_kind)
            assert location.target is child
            assert location.data_type == child.data_type
            assert location.target_path == f"{name}.{child_name}"
            walked.append(object_type)
        assert len(walked) == len(CHILD_SEGMENT)


class TestStubNavigation:
    def test_stream_address_echoed(self, navigator: ResourceNavigator) -> None:
        location = _nav(navigator, "stream://kafka/connection/c1/topic/orders/field/id", None)
        assert location.target_path == "orders.id"
        assert location.is_streaming
        assert location.target is None

    def test_webhook_is_not_streaming(self, navigator: ResourceNavigator) -> None:
        location = _nav(navigator, "webhook://srv/request/body/field/id", None)
        assert not location.is_streaming
        assert location.is_nested


class TestCompatibility:
    @pytest.mark.parametrize("source_scope, target_scope, expected", [
        ("data", "data", True),
        ("metadata", "data", True),
        ("schema", "schema", True),
        ("schema", "data", False),
        ("data", "metadata", False),
        ("schema", "metadata", False),
    ])
    def test_scope_pairs(self, source_scope: str, target_scope: str, expected: bool) -> None:
        source = parse_resource_uri(f"redb://{source_scope}/database/a/table/t")
        target = parse_resource_uri(f"redb://{target_scope}/database/b/table/t")
        assert are_compatible(source, target) is expected

    def test_database_to_stream_warns(self) -> None:
        source = parse_resource_uri("redb://data/database/a/table/t/column/c")
        target = parse_resource_uri("stream://kafka/c1/topic/t/field/c")
        report = check_compatibility(source, target)
        assert report.compatible
        assert report.requires_transformation
        assert any("continuous synchronization" in w for w in report.warnings)

    def test_deeper_source_warns(self) -> None:
        source = parse_resource_uri("redb://data/database/a/table/t/column/c/field/x")
        target = parse_resource_uri("redb://data/database/b/table/t/column/c")
        report = check_compatibility(source, target)
        assert "source has deeper nesting than target; data may be flattened" in report.warnings

    def test_incompatible_scopes(self) -> None:
        source = parse_resource_uri("redb://schema/database/a/table/t")
        target = parse_resource_uri("redb://data/database/b/table/t")
        report = check_compatibility(source, target)
        assert not report.compatible
        assert report.reason == "incompatible scopes: schema -> data"

    def test_invalid_address_raises(self) -> None:
        source = parse_resource_uri("redb://data/database/a/table/t")
        target = parse_resource_uri("mcp://srv/widget/w")
        with pytest.raises(InvalidAddressError):
            check_compatibility(source, target)


def test_errors_carry_structured_detail(navigator: ResourceNavigator, model: UnifiedModel) -> None:
    with pytest.raises(NotFoundError) as exc_info:
        _nav(navigator, "redb://data/database/db1/table/users/column/phone", model)
    detail = exc_info.value.to_dict()
    assert detail["error"] == "NotFoundError"
    assert detail["field_path"] == "path_segments[0]"
    assert detail["actual"] == "phone"
