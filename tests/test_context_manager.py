"""
tests/test_context_manager.py
------------------------------
Unit tests for core/context_manager.py.
Run with: python -m pytest tests/
"""
from __future__ import annotations

import pytest

from core.context_manager import UserContextManager
from core.conversion_matrix import ConversionMatrixGenerator
from core.errors import IncompatibleContextsError
from models.conversion import ConversionStrategy, ConversionType
from models.object_types import ObjectType
from models.user_context import (
    ContextWarningType,
    ConversionPreferences,
    ConversionRequest,
    UserConversionContext,
    UserConversionRule,
    UserDataTypeMapping,
    UserFieldMapping,
    UserObjectMapping,
    UserRuleAction,
    UserRuleCondition,
    ValidationLevel,
)

_VOLATILE = {"context_id", "updated_at"}


@pytest.fixture
def manager() -> UserContextManager:
    return UserContextManager()


@pytest.fixture
def pg_to_mongo(manager: UserContextManager) -> UserConversionContext:
    """A valid postgresql → mongodb context with one mapping."""
    context = manager.create("alice", "postgresql", "mongodb")
    context.object_mappings["users"] = UserObjectMapping(
        source_object_name="users",
        source_object_type=ObjectType.TABLE,
        target_object_name="people",
        target_object_type=ObjectType.COLLECTION,
    )
    return context


def _ctx(manager: UserContextManager, **fields) -> UserConversionContext:
    context = manager.create(fields.pop("user_id", "u"), "postgresql", "mongodb")
    for name, value in fields.items():
        setattr(context, name, value)
    return context


class TestCreateAndValidate:
    def test_create_defaults(self, manager: UserContextManager) -> None:
        context = manager.create("alice", "postgresql", "mongodb")
        assert context.context_id.startswith("ctx_")
        prefs = context.global_preferences
        assert not prefs.accept_data_loss
        assert prefs.optimize_for_performance and prefs.preserve_relationships
        assert prefs.include_metadata

    def test_ids_are_unique(self, manager: UserContextManager) -> None:
        assert manager.create("a", "x", "y").context_id != manager.create("a", "x", "y").context_id

    def test_valid_context_has_no_findings(
        self, manager: UserContextManager, pg_to_mongo: UserConversionContext
    ) -> None:
        assert manager.validate(pg_to_mongo) == []

    def test_none_is_critical(self, manager: UserContextManager) -> None:
        findings = manager.validate(None)
        assert [(f.level, f.field) for f in findings] == [(ValidationLevel.CRITICAL, "context")]

    def test_every_problem_reported(self, manager: UserContextManager) -> None:
        context = UserConversionContext(
            object_mappings={"orders": UserObjectMapping(source_object_name="")},
            field_mappings={"f": UserFieldMapping(
                source_object_name="orders",
                data_type_mapping=UserDataTypeMapping(source_type="int"),
            )},
            custom_rules=[UserConversionRule()],
        )
        findings = {f.field: f.level for f in manager.validate(context)}
        assert findings == {
            "user_id": ValidationLevel.CRITICAL,
            "source_database": ValidationLevel.CRITICAL,
            "target_database": ValidationLevel.CRITICAL,
            "object_mappings.orders.source_object_name": ValidationLevel.WARNING,
            "object_mappings.orders.source_object_type": ValidationLevel.CRITICAL,
            "object_mappings.orders.target_object_type": ValidationLevel.CRITICAL,
            "field_mappings.f": ValidationLevel.CRITICAL,
            "field_mappings.f.data_type_mapping": ValidationLevel.CRITICAL,
            "custom_rules[0].name": ValidationLevel.WARNING,
            "custom_rules[0].conditions": ValidationLevel.WARNING,
            "custom_rules[0].actions": ValidationLevel.WARNING,
        }


class TestMerge:
    def test_later_wins_and_lists_combine(self, manager: UserContextManager) -> None:
        a = _ctx(manager, user_id="a", description="first", ignored_objects=["logs", "tmp"])
        b = _ctx(manager, user_id="", description="second", ignored_objects=["tmp", "audit"])
        merged = manager.merge(a, b)
        assert merged.user_id == "a"
        assert merged.description == "second"
        assert merged.ignored_objects == ["logs", "tmp", "audit"]
        assert merged.context_id not in (a.context_id, b.context_id)

    def test_ignored_union_independent_of_order(self, manager: UserContextManager) -> None:
        a = _ctx(manager, ignored_objects=["logs", "tmp"])
        b = _ctx(manager, ignored_objects=["tmp", "audit"])
        forward = manager.merge(a, b).ignored_objects
        backward = manager.merge(b, a).ignored_objects
        assert set(forward) == set(backward) == {"logs", "tmp", "audit"}
        assert len(forward) == len(backward) == 3

    def test_earlier_preference_collections_survive(self, manager: UserContextManager) -> None:
        a = _ctx(manager, global_preferences=ConversionPreferences(
            exclude_objects=["audit"], custom_mappings={"users": "people"}))
        b = _ctx(manager, global_preferences=ConversionPreferences(
            optimize_for_storage=True, exclude_objects=["tmp"],
            custom_mappings={"orders": "purchases"}))
        prefs = manager.merge(a, b).global_preferences
        assert prefs.exclude_objects == ["audit", "tmp"]
        assert prefs.custom_mappings == {"users": "people", "orders": "purchases"}
        assert prefs.optimize_for_storage

    def test_later_custom_mapping_wins_per_key(self, manager: UserContextManager) -> None:
        a = _ctx(manager, global_preferences=ConversionPreferences(
            custom_mappings={"users": "people", "orders": "orders"}))
        b = _ctx(manager, global_preferences=ConversionPreferences(
            custom_mappings={"users": "accounts"}))
        prefs = manager.merge(a, b).global_preferences
        assert prefs.custom_mappings == {"users": "accounts", "orders": "orders"}

    def test_preferred_strategy_kept_when_later_has_none(self, manager: UserContextManager) -> None:
        a = _ctx(manager, global_preferences=ConversionPreferences(
            preferred_strategy=ConversionStrategy.DENORMALIZATION))
        b = _ctx(manager, global_preferences=ConversionPreferences(accept_data_loss=True))
        prefs = manager.merge(a, b).global_preferences
        assert prefs.preferred_strategy == ConversionStrategy.DENORMALIZATION
        assert prefs.accept_data_loss

    def test_later_mapping_replaces_earlier(
        self, manager: UserContextManager, pg_to_mongo: UserConversionContext
    ) -> None:
        other = _ctx(manager, object_mappings={"users": UserObjectMapping(
            source_object_name="users", target_object_name="accounts",
        )})
        merged = manager.merge(pg_to_mongo, other)
        assert merged.object_mappings["users"].target_object_name == "accounts"

    def test_associative(self, manager: UserContextManager) -> None:
        rule = UserConversionRule(name="r", conditions=[UserRuleCondition(field="x")])
        a = _ctx(manager, ignored_objects=["a"], custom_rules=[rule])
        b = _ctx(manager, description="b", ignored_objects=["b", "a"],
                 global_preferences=ConversionPreferences(
                     preferred_strategy=ConversionStrategy.HYBRID))
        c = _ctx(manager, ignored_objects=["c"], custom_rules=[rule])
        left = manager.merge(manager.merge(a, b), c)
        right = manager.merge(a, manager.merge(b, c))
        assert left.model_dump(exclude=_VOLATILE) == right.model_dump(exclude=_VOLATILE)

    def test_inputs_not_modified(self, manager: UserContextManager) -> None:
        a = _ctx(manager, ignored_objects=["a"])
        b = _ctx(manager, ignored_objects=["b"])
        before = (a.model_dump(), b.model_dump())
        manager.merge(a, b)
        assert (a.model_dump(), b.model_dump()) == before

    def test_mismatched_pairs_rejected(self, manager: UserContextManager) -> None:
        a = _ctx(manager, ignored_objects=["a"])
        b = manager.create("u", "postgresql", "neo4j")
        before = (a.model_dump(), b.model_dump())
        with pytest.raises(IncompatibleContextsError) as exc_info:
            manager.merge(a, b)
        assert exc_info.value.field_path == "contexts[1]"
        assert exc_info.value.actual == "postgresql → neo4j"
        assert (a.model_dump(), b.model_dump()) == before

    def test_nothing_to_merge(self, manager: UserContextManager) -> None:
        with pytest.raises(ValueError):
            manager.merge()

    def test_single_context_is_copied(self, manager: UserContextManager) -> None:
        a = _ctx(manager, ignored_objects=["a"])
        merged = manager.merge(a)
        merged.ignored_objects.append("z")
        assert a.ignored_objects == ["a"]


class TestApplyToRequest:
    def test_carries_preferences(
        self, manager: UserContextManager, pg_to_mongo: UserConversionContext
    ) -> None:
        pg_to_mongo.ignored_objects = ["logs"]
        request = ConversionRequest(
            source_database="postgresql", target_database="mongodb",
            user_preferences=ConversionPreferences(exclude_objects=["tmp", "logs"]),
        )
        enhanced = manager.apply_to_request(request, pg_to_mongo)
        assert enhanced.user_preferences.custom_mappings == {"users": "people"}
        assert enhanced.user_preferences.exclude_objects == ["logs"]
        assert request.user_preferences.exclude_objects == ["tmp", "logs"]

    def test_no_context_returns_copy(self, manager: UserContextManager) -> None:
        request = ConversionRequest(source_database="x")
        enhanced = manager.apply_to_request(request, None)
        assert enhanced == request and enhanced is not request


class TestApplyToMatrix:
    @pytest.fixture(scope="class")
    def matrix(self):
        return ConversionMatrixGenerator().generate("postgresql", "mongodb")

    def test_mapping_retargets_rule(
        self, manager: UserContextManager, pg_to_mongo: UserConversionContext, matrix
    ) -> None:
        pg_to_mongo.object_mappings["users"].target_object_type = ObjectType.DOCUMENT
        updated, warnings = manager.apply_to_matrix(matrix, pg_to_mongo)
        rule = updated.rule_for(ObjectType.TABLE)
        assert rule.target_objects == (ObjectType.DOCUMENT,)
        assert rule.conversion_type == ConversionType.TRANSFORM
        assert rule.notes == "Mapped by user context (users)"
        assert warnings == []
        assert matrix.rule_for(ObjectType.TABLE).target_objects == (ObjectType.COLLECTION,)

    def test_ignored_type_dropped(
        self, manager: UserContextManager, pg_to_mongo: UserConversionContext, matrix
    ) -> None:
        pg_to_mongo.ignored_objects = ["view", "not-a-type"]
        updated, _ = manager.apply_to_matrix(matrix, pg_to_mongo)
        assert updated.rule_for(ObjectType.VIEW).conversion_type == ConversionType.DROP
        assert "view" in updated.unsupported_features

    def test_preferred_strategy_first(
        self, manager: UserContextManager, pg_to_mongo: UserConversionContext, matrix
    ) -> None:
        pg_to_mongo.global_preferences.preferred_strategy = ConversionStrategy.HYBRID
        updated, _ = manager.apply_to_matrix(matrix, pg_to_mongo)
        assert updated.conversion_strategies[0] == ConversionStrategy.HYBRID
        assert updated.conversion_strategies.count(ConversionStrategy.HYBRID) == 1

    def test_problem_mappings_warn(self, manager: UserContextManager, matrix) -> None:
        context = _ctx(manager, object_mappings={
            "partial": UserObjectMapping(source_object_name="partial"),
            "missing": UserObjectMapping(
                source_object_name="missing",
                source_object_type=ObjectType.NODE,
                target_object_type=ObjectType.DOCUMENT,
            ),
        })
        _, warnings = manager.apply_to_matrix(matrix, context)
        assert [w.type for w in warnings] == [
            ContextWarningType.INVALID_MAPPING, ContextWarningType.OBJECT_NOT_FOUND,
        ]

    def test_pair_mismatch_warns(self, manager: UserContextManager, matrix) -> None:
        context = manager.create("u", "mysql", "mongodb")
        _, warnings = manager.apply_to_matrix(matrix, context)
        assert warnings[0].type == ContextWarningType.INVALID_MAPPING
        assert warnings[0].context == "database_pair"

    def test_rule_warnings(self, manager: UserContextManager, matrix) -> None:
        def rule(name: str, action: str, **params) -> UserConversionRule:
            return UserConversionRule(
                name=name, actions=[UserRuleAction(action_type=action, parameters=params)]
            )

        context = _ctx(manager, custom_rules=[
            rule("one", "set_strategy", strategy="direct"),
            rule("two", "set_strategy", strategy="hybrid"),
            rule("three", "teleport"),
            UserConversionRule(
                name="off", enabled=False, actions=[UserRuleAction(action_type="teleport")]
            ),
        ])
        _, warnings = manager.apply_to_matrix(matrix, context)
        assert [w.type for w in warnings] == [
            ContextWarningType.CONFLICTING_RULES, ContextWarningType.UNSUPPORTED_ACTION,
        ]


class TestTemplatesAndSummary:
    def test_three_templates(self) -> None:
        names = [t.name for t in UserContextManager.templates()]
        assert names == ["Conservative Migration", "Performance Optimized", "Storage Optimized"]

    def test_from_template(self, manager: UserContextManager) -> None:
        template = UserContextManager.templates()[2]
        context = manager.from_template(template, "bob", "mysql", "clickhouse")
        assert context.global_preferences.optimize_for_storage
        assert context.description == template.description
        context.global_preferences.accept_data_loss = False
        assert template.preferences.accept_data_loss

    def test_summary(self, pg_to_mongo: UserConversionContext) -> None:
        text = UserContextManager.summary(pg_to_mongo)
        assert text.startswith("Conversion Context: postgresql → mongodb")
        assert "Object Mappings: 1" in text

    def test_summary_without_context(self) -> None:
        assert UserContextManager.summary(None) == "No user context provided"
