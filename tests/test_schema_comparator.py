"""
tests/test_schema_comparator.py
--------------------------------
Unit tests for core/schema_comparator.py.
Run with: python -m pytest tests/
"""
from __future__ import annotations

import pytest

from core.schema_comparator import SchemaComparator, compare_schemas
from models.comparison import (
    ChangeSeverity,
    ChangeType,
    ComparisonMode,
    ComparisonOptions,
    EnrichmentCategory,
    MigrationComplexity,
)
from models.enrichment import (
    ColumnEnrichment,
    ComplianceFramework,
    RiskLevel,
    UnifiedModelEnrichment,
)
from models.object_types import ObjectType
from models.unified_model import UnifiedModel


def _model(tables: dict | None = None, **containers) -> UnifiedModel:
    return UnifiedModel.from_dict({"database_type": "", "tables": tables or {}, **containers})


def _users(email_type: str = "varchar(255)", **extra_columns) -> dict:
    return {
        "users": {
            "columns": {
                "id": {"data_type": "int", "nullable": False, "is_primary_key": True},
                "email": {"data_type": email_type},
                **extra_columns,
            },
        },
    }


def _email_enrichment(**overrides) -> UnifiedModelEnrichment:
    values = {
        "is_privileged_data": True,
        "privileged_confidence": 0.9,
        "risk_level": RiskLevel.CRITICAL,
        "compliance_impact": [ComplianceFramework.GDPR],
    }
    values.update(overrides)
    return UnifiedModelEnrichment(column_enrichments={"users.email": ColumnEnrichment(**values)})


@pytest.fixture
def comparator() -> SchemaComparator:
    return SchemaComparator()


class TestIdenticalSchemas:
    def test_no_changes_and_full_similarity(self, comparator: SchemaComparator) -> None:
        result = comparator.compare(_model(_users()), _model(_users()))
        assert not result.has_structural_changes
        assert result.structural_similarity == 1.0
        assert result.overall_similarity == 1.0
        assert result.compatibility_score == 1.0
        assert result.migration_complexity == MigrationComplexity.NONE
        assert result.recommendations == ["Schemas are equivalent; no migration needed"]

    def test_empty_models_are_identical(self, comparator: SchemaComparator) -> None:
        result = comparator.compare(UnifiedModel(), UnifiedModel())
        assert result.structural_similarity == 1.0

    def test_names_match_case_insensitively(self, comparator: SchemaComparator) -> None:
        renamed = {"USERS": _users()["users"]}
        result = comparator.compare(_model(_users()), _model(renamed))
        assert not result.has_structural_changes

    def test_case_sensitive_option(self, comparator: SchemaComparator) -> None:
        renamed = {"USERS": _users()["users"]}
        result = comparator.compare(
            _model(_users()), _model(renamed), ComparisonOptions(case_sensitive=True)
        )
        assert [o.object_name for o in result.removed_objects] == ["users"]
        assert [o.object_name for o in result.added_objects] == ["USERS"]


class TestStructuralChanges:
    def test_removed_table_is_critical_and_breaking(self, comparator: SchemaComparator) -> None:
        result = comparator.compare(_model(_users()), _model())
        change = result.structural_changes[0]
        assert change.change_type == ChangeType.REMOVED
        assert change.severity == ChangeSeverity.CRITICAL
        assert change.is_breaking
        assert "table 'users' is removed together with its data" in result.warnings
        assert "Back up data held by removed objects before migrating" in result.recommendations

    def test_added_table_is_minor(self, comparator: SchemaComparator) -> None:
        result = comparator.compare(_model(), _model(_users()))
        assert [c.severity for c in result.structural_changes] == [ChangeSeverity.MINOR]
        assert not result.breaking_changes

    def test_lossy_type_change(self, comparator: SchemaComparator) -> None:
        result = comparator.compare(_model(_users()), _model(_users("varchar(100)")))
        change = result.structural_changes[0]
        assert change.object_path == "users.email"
        assert change.object_type == ObjectType.COLUMN
        assert change.severity == ChangeSeverity.MAJOR and change.is_breaking
        assert result.structural_similarity == 0.5
        assert [o.object_name for o in result.modified_objects] == ["users"]

    def test_widening_counts_as_unchanged(self, comparator: SchemaComparator) -> None:
        result = comparator.compare(_model(_users("varchar(50)")), _model(_users("text")))
        assert result.structural_changes[0].severity == ChangeSeverity.MINOR
        assert result.structural_similarity == 1.0

    def test_unsafe_type_change_is_critical(self, comparator: SchemaComparator) -> None:
        result = comparator.compare(_model(_users("text")), _model(_users("int")))
        assert result.structural_changes[0].severity == ChangeSeverity.CRITICAL

    def test_added_not_null_column_is_breaking(self, comparator: SchemaComparator) -> None:
        target = _model(_users(age={"data_type": "int", "nullable": False}))
        change = comparator.compare(_model(_users()), target).structural_changes[0]
        assert change.change_type == ChangeType.ADDED
        assert change.severity == ChangeSeverity.MAJOR and change.is_breaking

    def test_removed_column(self, comparator: SchemaComparator) -> None:
        target = _model({"users": {"columns": {"id": _users()["users"]["columns"]["id"]}}})
        change = comparator.compare(_model(_users()), target).structural_changes[0]
        assert change.change_type == ChangeType.REMOVED and change.is_breaking

    def test_comments_ignored_by_default(self, comparator: SchemaComparator) -> None:
        old = _model(_users(note={"data_type": "text", "comment": "a"}))
        new = _model(_users(note={"data_type": "text", "comment": "b"}))
        assert not comparator.compare(old, new).has_structural_changes
        result = comparator.compare(old, new, ComparisonOptions(ignore_comments=False))
        assert [c.description for c in result.structural_changes] == ["Comment changed"]

    def test_column_order_only_when_requested(self, comparator: SchemaComparator) -> None:
        cols = _users()["users"]["columns"]
        swapped = _model({"users": {"columns": {"email": cols["email"], "id": cols["id"]}}})
        assert not comparator.compare(_model(_users()), swapped).has_structural_changes
        result = comparator.compare(
            _model(_users()), swapped, ComparisonOptions(ignore_object_order=False)
        )
        assert {c.change_type for c in result.structural_changes} == {ChangeType.MOVED}

    def test_view_definition_whitespace(self, comparator: SchemaComparator) -> None:
        old = _model(views={"v": {"definition": "SELECT  *\nFROM users"}})
        new = _model(views={"v": {"definition": "SELECT * FROM users"}})
        assert not comparator.compare(old, new).has_structural_changes
        result = comparator.compare(old, new, ComparisonOptions(ignore_whitespace=False))
        assert result.structural_changes[0].severity == ChangeSeverity.MAJOR

    def test_removed_view_without_columns_scores_zero(self, comparator: SchemaComparator) -> None:
        result = comparator.compare(_model(views={"v": {"definition": "SELECT 1"}}), _model())
        assert result.structural_changes[0].severity == ChangeSeverity.CRITICAL
        assert result.structural_similarity == 0.0

    def test_added_constraint_is_breaking(self, comparator: SchemaComparator) -> None:
        target = _users()
        target["users"]["constraints"] = {"uq_email": {"type": "unique", "columns": ["email"]}}
        change = comparator.compare(_model(_users()), _model(target)).structural_changes[0]
        assert change.object_type == ObjectType.CONSTRAINT and change.is_breaking

    def test_index_change_is_minor(self, comparator: SchemaComparator) -> None:
        target = _users()
        target["users"]["indexes"] = {"ix_email": {"columns": ["email"]}}
        change = comparator.compare(_model(_users()), _model(target)).structural_changes[0]
        assert change.object_type == ObjectType.INDEX
        assert change.severity == ChangeSeverity.MINOR and not change.is_breaking

    def test_relationship_endpoints(self, comparator: SchemaComparator) -> None:
        old = _model(relationships={"OWNS": {"from_label": "User", "to_label": "Account"}})
        new = _model(relationships={"OWNS": {"from_label": "User", "to_label": "Wallet"}})
        change = comparator.compare(old, new).structural_changes[0]
        assert change.target_value == "User->Wallet"
        assert change.is_breaking

    def test_shard_key_change_is_breaking(self, comparator: SchemaComparator) -> None:
        old = _model(collections={"events": {"shard_key": ["tenant"]}})
        new = _model(collections={"events": {"shard_key": ["user"]}})
        change = comparator.compare(old, new).structural_changes[0]
        assert change.severity == ChangeSeverity.MAJOR and change.is_breaking


class TestFilters:
    def test_exclude_object_types(self, comparator: SchemaComparator) -> None:
        options = ComparisonOptions(exclude_object_types=[ObjectType.TABLE])
        assert not comparator.compare(_model(_users()), _model(), options).has_structural_changes

    def test_include_object_types(self, comparator: SchemaComparator) -> None:
        options = ComparisonOptions(include_object_types=[ObjectType.VIEW])
        assert not comparator.compare(_model(_users()), _model(), options).has_structural_changes

    def test_exclude_object_names(self, comparator: SchemaComparator) -> None:
        options = ComparisonOptions(exclude_object_names=["Users"])
        assert not comparator.compare(_model(_users()), _model(), options).has_structural_changes


class TestEnrichmentGuided:
    def test_privileged_change_escalated(self, comparator: SchemaComparator) -> None:
        doc = _email_enrichment()
        result = comparator.compare(
            _model(_users()), _model(_users("varchar(100)")),
            ComparisonOptions(mode=ComparisonMode.GUIDED), doc, doc,
        )
        change = result.structural_changes[0]
        assert change.raw_severity == ChangeSeverity.MAJOR
        assert change.severity == ChangeSeverity.CRITICAL
        assert any("escalated to critical" in w for w in result.warnings)
        assert result.compliance_issues == [
            "Structural change to 'users.email' affects data under GDPR"
        ]

    def test_structural_mode_ignores_enrichment(self, comparator: SchemaComparator) -> None:
        doc = _email_enrichment()
        result = comparator.compare(_model(_users()), _model(_users("varchar(100)")), None, doc, doc)
        assert result.structural_changes[0].severity == ChangeSeverity.MAJOR
        assert result.enrichment_similarity is None
        assert not result.compliance_issues

    def test_low_confidence_still_escalated(self, comparator: SchemaComparator) -> None:
        doc = _email_enrichment(privileged_confidence=0.2)
        result = comparator.compare(
            _model(_users()), _model(_users("varchar(100)")),
            ComparisonOptions(mode=ComparisonMode.GUIDED), doc, doc,
        )
        assert result.structural_changes[0].severity == ChangeSeverity.CRITICAL

    def test_widening_of_critical_privileged_column(self, comparator: SchemaComparator) -> None:
        doc = UnifiedModelEnrichment(column_enrichments={
            "users.email": ColumnEnrichment(is_privileged_data=True, risk_level=RiskLevel.CRITICAL),
        })
        result = comparator.compare(
            _model(_users("varchar(100)")), _model(_users("varchar(255)")),
            ComparisonOptions.enriched(), doc, doc,
        )
        assert [(c.object_path, c.raw_severity, c.severity) for c in result.structural_changes] == [
            ("users.email", ChangeSeverity.MINOR, ChangeSeverity.CRITICAL)
        ]
        assert result.structural_similarity == 1.0

    def test_non_privileged_risk_not_escalated(self, comparator: SchemaComparator) -> None:
        doc = _email_enrichment(is_privileged_data=False)
        result = comparator.compare(
            _model(_users()), _model(_users("varchar(100)")),
            ComparisonOptions(mode=ComparisonMode.GUIDED), doc, doc,
        )
        assert result.structural_changes[0].severity == ChangeSeverity.MAJOR

    def test_high_risk_lifts_minor_to_major(self, comparator: SchemaComparator) -> None:
        doc = _email_enrichment(risk_level=RiskLevel.HIGH, compliance_impact=[])
        old = _users()
        new = _users()
        new["users"]["columns"]["email"]["default"] = "'n/a'"
        result = comparator.compare(
            _model(old), _model(new), ComparisonOptions(mode=ComparisonMode.GUIDED), doc, doc
        )
        change = result.structural_changes[0]
        assert change.raw_severity == ChangeSeverity.MINOR
        assert change.severity == ChangeSeverity.MAJOR
        # Similarity uses the raw severity.
        assert result.structural_similarity == 1.0

    def test_scores_are_weighted(self, comparator: SchemaComparator) -> None:
        before = UnifiedModelEnrichment(column_enrichments={
            "users.id": ColumnEnrichment(),
            "users.email": ColumnEnrichment(is_privileged_data=True, privileged_confidence=0.9),
        })
        after = UnifiedModelEnrichment(column_enrichments={
            "users.id": ColumnEnrichment(),
            "users.email": ColumnEnrichment(),
        })
        result = comparator.compare(
            _model(_users()), _model(_users()),
            ComparisonOptions(mode=ComparisonMode.GUIDED), before, after,
        )
        assert result.enrichment_similarity == 0.5
        assert result.overall_similarity == pytest.approx(0.85)
        assert result.compatibility_score == pytest.approx(0.85)
        assert result.migration_complexity == MigrationComplexity.MEDIUM

    def test_dangling_keys_ignored(self, comparator: SchemaComparator) -> None:
        doc = UnifiedModelEnrichment(column_enrichments={
            "ghost.col": ColumnEnrichment(is_privileged_data=True, privileged_confidence=1.0),
        })
        result = comparator.compare(
            _model(_users()), _model(_users()), ComparisonOptions.enriched(), None, doc
        )
        assert result.enrichment_similarity == 1.0
        assert not result.enrichment_changes

    def test_object_change_flags_enrichment(self, comparator: SchemaComparator) -> None:
        doc = _email_enrichment()
        result = comparator.compare(
            _model(_users()), _model(), ComparisonOptions(mode=ComparisonMode.GUIDED), doc, None
        )
        assert result.removed_objects[0].has_enrichment


class TestEnrichmentChanges:
    def test_new_compliance_scope_reported(self, comparator: SchemaComparator) -> None:
        before = _email_enrichment(compliance_impact=[])
        after = _email_enrichment()
        result = comparator.compare(
            _model(_users()), _model(_users()), ComparisonOptions.enriched(), before, after
        )
        assert [c.category for c in result.enrichment_changes] == [EnrichmentCategory.COMPLIANCE]
        assert "'users.email' now falls under GDPR" in result.compliance_issues

    def test_privacy_change_reported(self, comparator: SchemaComparator) -> None:
        before = _email_enrichment(is_privileged_data=False, risk_level=RiskLevel.MINIMAL)
        after = _email_enrichment()
        result = comparator.compare(
            _model(_users()), _model(_users()), ComparisonOptions.enriched(), before, after
        )
        assert EnrichmentCategory.PRIVACY in {c.category for c in result.enrichment_changes}

    def test_disabled_category_skipped(self, comparator: SchemaComparator) -> None:
        before = _email_enrichment(compliance_impact=[])
        after = _email_enrichment()
        options = ComparisonOptions.enriched(enrichment_categories=[EnrichmentCategory.PRIVACY])
        result = comparator.compare(_model(_users()), _model(_users()), options, before, after)
        assert not result.enrichment_changes
        assert not result.compliance_issues

    def test_guided_mode_records_no_enrichment_changes(self, comparator: SchemaComparator) -> None:
        before = _email_enrichment(compliance_impact=[])
        after = _email_enrichment()
        result = comparator.compare(
            _model(_users()), _model(_users()),
            ComparisonOptions(mode=ComparisonMode.GUIDED), before, after,
        )
        assert not result.enrichment_changes


class TestMigrationComplexity:
    @pytest.mark.parametrize("score, breaking, expected", [
        (1.0, 0, MigrationComplexity.NONE),
        (0.95, 0, MigrationComplexity.LOW),
        (0.9, 0, MigrationComplexity.LOW),
        (0.9, 1, MigrationComplexity.MEDIUM),
        (0.7, 2, MigrationComplexity.MEDIUM),
        (0.7, 3, MigrationComplexity.HIGH),
        (0.4, 5, MigrationComplexity.HIGH),
        (0.39, 0, MigrationComplexity.EXTREME),
        (0.9, 6, MigrationComplexity.EXTREME),
    ])
    def test_ladder(self, comparator: SchemaComparator, score: float, breaking: int, expected) -> None:
        assert comparator.migration_complexity(score, breaking) == expected

    def test_technology_pair_scales_compatibility(self, comparator: SchemaComparator) -> None:
        old = UnifiedModel.from_dict({"database_type": "postgresql", "tables": _users()})
        new = UnifiedModel.from_dict({"database_type": "mongodb", "tables": _users()})
        result = comparator.compare(old, new)
        assert result.overall_similarity == 1.0
        assert result.compatibility_score < 1.0

    @pytest.mark.parametrize("database", ["postgresql", "mysql"])
    def test_same_technology_snapshots_need_no_migration(
        self, comparator: SchemaComparator, database: str
    ) -> None:
        snapshot = UnifiedModel.from_dict({"database_type": database, "tables": _users()})
        result = comparator.compare(snapshot, snapshot)
        assert result.compatibility_score == 1.0
        assert result.migration_complexity == MigrationComplexity.NONE

    def test_unknown_technology_factor_is_one(self, comparator: SchemaComparator) -> None:
        old = UnifiedModel.from_dict({"database_type": "foxpro", "tables": _users()})
        result = comparator.compare(old, old)
        assert result.compatibility_score == 1.0


class TestComparisonOptions:
    def test_defaults_come_from_config(self) -> None:
        options = ComparisonOptions()
        assert options.privacy_weight_threshold == pytest.approx(0.7)
        assert options.score_tolerance == pytest.approx(0.1)

    def test_enriched_preset(self) -> None:
        options = ComparisonOptions.enriched()
        assert options.mode == ComparisonMode.ENRICHED
        assert options.privacy_weight_threshold == 0.5
        assert not options.category_enabled(EnrichmentCategory.PERFORMANCE)

    def test_threshold_out_of_range(self) -> None:
        with pytest.raises(ValueError):
            ComparisonOptions(privacy_weight_threshold=1.5)


def test_compare_schemas_wrapper() -> None:
    result = compare_schemas(_model(_users()), _model(_users()))
    assert result.to_dict()["migration_complexity"] == "none"
