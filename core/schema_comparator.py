"""
core/schema_comparator.py
-------------------------
Structural and enrichment-aware comparison of two unified models.

The source model is the "old" side, the target model the "new" side:
objects only in the source are REMOVED, objects only in the target ADDED.

Severity ladder for child changes (before enrichment adjustment):

    data type   SAFE → minor, LOSSY → major + breaking, UNSAFE → critical + breaking
    nullability nullable → NOT NULL (or required added) → major + breaking
    primary key any change → major + breaking
    default / auto-increment / comment → minor
    child added → minor (major + breaking when NOT NULL / required)
    child removed → major + breaking

Design Decision:
    Every change keeps its ``raw_severity`` next to the enrichment-adjusted
    ``severity``.  Similarity scores are computed from the raw values so that
    the same structural edit scores the same regardless of the comparison
    mode; only presentation (severity, warnings) reacts to enrichment.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from config import CONFIG, ComparisonConfig
from core.capabilities import get_object_capability
from core.conversion_matrix import ConversionMatrixGenerator
from core.errors import RegistryMissingError
from core.type_converter import ConversionSafety, analyze_type_change, is_same_type
from logger import get_logger
from models.comparison import (
    ChangeSeverity,
    ChangeType,
    ComparisonMode,
    ComparisonOptions,
    ComparisonResult,
    EnrichmentCategory,
    EnrichmentChange,
    EnrichmentImpact,
    MigrationComplexity,
    ObjectChange,
    StructuralChange,
    max_severity,
)
from models.conversion import ConversionComplexity
from models.enrichment import ColumnEnrichment, RiskLevel, TableEnrichment, UnifiedModelEnrichment
from models.object_types import ObjectType
from models.unified_model import (
    CHILD_SEGMENT,
    CONTAINER_ATTRIBUTES,
    Relationship,
    Table,
    UnifiedModel,
)

log = get_logger(__name__)

_MINOR, _MAJOR, _CRITICAL = ChangeSeverity.MINOR, ChangeSeverity.MAJOR, ChangeSeverity.CRITICAL

_TYPE_CHANGE_SEVERITY = {
    ConversionSafety.SAFE: (_MINOR, False),
    ConversionSafety.LOSSY: (_MAJOR, True),
    ConversionSafety.UNSAFE: (_CRITICAL, True),
}

# Factor applied to overall similarity for the declared technology pair.
_COMPLEXITY_FACTOR = {
    ConversionComplexity.TRIVIAL: 1.0,
    ConversionComplexity.SIMPLE: 0.95,
    ConversionComplexity.MODERATE: 0.85,
    ConversionComplexity.COMPLEX: 0.70,
    ConversionComplexity.IMPOSSIBLE: 0.0,
}

_RISK_RANK = {
    RiskLevel.MINIMAL: 0,
    RiskLevel.LOW: 1,
    RiskLevel.MEDIUM: 2,
    RiskLevel.HIGH: 3,
    RiskLevel.CRITICAL: 4,
}

_RISK_IMPACT = {
    RiskLevel.MINIMAL: EnrichmentImpact.LOW,
    RiskLevel.LOW: EnrichmentImpact.LOW,
    RiskLevel.MEDIUM: EnrichmentImpact.MEDIUM,
    RiskLevel.HIGH: EnrichmentImpact.HIGH,
    RiskLevel.CRITICAL: EnrichmentImpact.CRITICAL,
}

_SCORE_DIGITS = 4


def _child_object_type(container_type: ObjectType) -> ObjectType:
    return ObjectType(CHILD_SEGMENT[container_type].value)


def _max_risk(*enrichments: ColumnEnrichment) -> RiskLevel:
    return max((e.risk_level for e in enrichments), key=_RISK_RANK.__getitem__)


def _squash(text: str) -> str:
    return " ".join((text or "").split())


@dataclass
class _Run:
    """Mutable state for one ``compare`` call."""
    options: ComparisonOptions
    source: UnifiedModel
    target: UnifiedModel
    source_enrichment: UnifiedModelEnrichment | None
    target_enrichment: UnifiedModelEnrichment | None
    result: ComparisonResult
    comparable_children: int = 0
    unchanged_children: int = 0
    escalated: list[StructuralChange] = field(default_factory=list)


class SchemaComparator:
    """
    Compares two :class:`UnifiedModel` snapshots.

    Args:
        generator: Conversion-matrix generator used for the compatibility
                   factor; the built-in registry is used when omitted.
        config:    Weights and complexity ladder.
    """

    def __init__(
        self,
        generator: ConversionMatrixGenerator | None = None,
        config: ComparisonConfig = CONFIG.comparison,
    ) -> None:
        self._generator = generator if generator is not None else ConversionMatrixGenerator()
        self._config = config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compare(
        self,
        source: UnifiedModel,
        target: UnifiedModel,
        options: ComparisonOptions | None = None,
        source_enrichment: UnifiedModelEnrichment | None = None,
        target_enrichment: UnifiedModelEnrichment | None = None,
    ) -> ComparisonResult:
        """
        Diff *source* (old) against *target* (new).

        Enrichment documents are consulted only in GUIDED and ENRICHED modes;
        enrichment-change records are produced only in ENRICHED mode.
        """
        options = options or ComparisonOptions()
        if not options.uses_enrichment:
            source_enrichment = target_enrichment = None

        run = _Run(
            options=options,
            source=source,
            target=target,
            source_enrichment=source_enrichment,
            target_enrichment=target_enrichment,
            result=ComparisonResult(
                source_schema=source.database_type,
                target_schema=target.database_type,
                compared_at=datetime.now(timezone.utc),
                mode=options.mode,
            ),
        )

        for object_type, attr, _ in CONTAINER_ATTRIBUTES:
            if self._type_allowed(object_type, options):
                self._compare_collection(run, object_type, getattr(source, attr), getattr(target, attr))

        if options.mode == ComparisonMode.ENRICHED:
            self._compare_enrichment(run)

        self._score(run)
        self._advise(run)

        result = run.result
        log.info(
            "Compared %s → %s (%s): %d structural change(s), %d breaking, "
            "%d enrichment change(s), complexity %s.",
            result.source_schema or "?", result.target_schema or "?", options.mode.value,
            len(result.structural_changes), len(result.breaking_changes),
            len(result.enrichment_changes), result.migration_complexity.value,
        )
        return result

    # ------------------------------------------------------------------
    # Filters and name matching
    # ------------------------------------------------------------------

    @staticmethod
    def _type_allowed(object_type: ObjectType, options: ComparisonOptions) -> bool:
        if options.include_object_types and object_type not in options.include_object_types:
            return False
        return object_type not in options.exclude_object_types

    @staticmethod
    def _name_key(name: str, options: ComparisonOptions) -> str:
        key = name.strip() if options.ignore_whitespace else name
        return key if options.case_sensitive else key.lower()

    def _name_allowed(self, name: str, options: ComparisonOptions) -> bool:
        key = self._name_key(name, options)
        if options.include_object_names and key not in {
            self._name_key(n, options) for n in options.include_object_names
        }:
            return False
        return key not in {self._name_key(n, options) for n in options.exclude_object_names}

    def _match(
        self, old: dict[str, Any], new: dict[str, Any], options: ComparisonOptions
    ) -> tuple[list[tuple[str, str]], list[str], list[str]]:
        """Return (matched name pairs, names only in *old*, names only in *new*)."""
        new_by_key = {self._name_key(n, options): n for n in new}
        matched, removed = [], []
        seen_new: set[str] = set()
        for name in old:
            other = new_by_key.get(self._name_key(name, options))
            if other is None or other in seen_new:
                removed.append(name)
            else:
                matched.append((name, other))
                seen_new.add(other)
        added = [n for n in new if n not in seen_new]
        return matched, removed, added

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    def _compare_collection(
        self, run: _Run, object_type: ObjectType, old: dict[str, Any], new: dict[str, Any]
    ) -> None:
        options = run.options
        old = {n: o for n, o in old.items() if self._name_allowed(n, options)}
        new = {n: o for n, o in new.items() if self._name_allowed(n, options)}
        matched, removed, added = self._match(old, new, options)
        result = run.result

        for name in removed:
            stores_data = get_object_capability(object_type).can_store_data
            change = self._change(
                ChangeType.REMOVED, object_type, name,
                f"{object_type.value} '{name}' removed",
                _CRITICAL if stores_data else _MAJOR, breaking=stores_data,
                source_value=name,
            )
            result.structural_changes.append(change)
            result.removed_objects.append(self._object_change(run, object_type, name, ChangeType.REMOVED, [change]))

        for name in added:
            change = self._change(
                ChangeType.ADDED, object_type, name,
                f"{object_type.value} '{name}' added", _MINOR, target_value=name,
            )
            result.structural_changes.append(change)
            result.added_objects.append(self._object_change(run, object_type, name, ChangeType.ADDED, [change]))

        for old_name, new_name in matched:
            changes = self._compare_container(run, object_type, old_name, old[old_name], new[new_name])
            if changes:
                result.structural_changes.extend(changes)
                result.modified_objects.append(
                    self._object_change(run, object_type, old_name, ChangeType.MODIFIED, changes)
                )

    def _object_change(
        self,
        run: _Run,
        object_type: ObjectType,
        name: str,
        change_type: ChangeType,
        details: list[StructuralChange],
    ) -> ObjectChange:
        prefix = f"{name}."
        has_enrichment = any(
            doc is not None and (
                name in doc.table_enrichments
                or any(k.startswith(prefix) for k in doc.column_enrichments)
            )
            for doc in (run.source_enrichment, run.target_enrichment)
        )
        return ObjectChange(
            object_type=object_type,
            object_name=name,
            change_type=change_type,
            details=list(details),
            has_enrichment=has_enrichment,
        )

    def _compare_container(
        self, run: _Run, object_type: ObjectType, name: str, old: Any, new: Any
    ) -> list[StructuralChange]:
        options = run.options
        changes = self._compare_children(run, object_type, name, old.children, new.children)

        if not options.ignore_comments and _squash(getattr(old, "comment", "")) != _squash(getattr(new, "comment", "")):
            changes.append(self._change(
                ChangeType.MODIFIED, object_type, name, f"Comment on '{name}' changed", _MINOR,
                source_value=old.comment, target_value=new.comment,
            ))

        if hasattr(old, "definition"):
            old_def, new_def = old.definition or "", new.definition or ""
            if options.ignore_whitespace:
                old_def, new_def = _squash(old_def), _squash(new_def)
            if old_def != new_def:
                changes.append(self._change(
                    ChangeType.MODIFIED, object_type, name,
                    f"Definition of '{name}' changed", _MAJOR,
                    source_value=old.definition, target_value=new.definition,
                ))

        if isinstance(old, Relationship):
            if (old.from_label, old.to_label) != (new.from_label, new.to_label):
                changes.append(self._change(
                    ChangeType.MODIFIED, object_type, name,
                    f"Endpoints of '{name}' changed", _MAJOR, breaking=True,
                    source_value=f"{old.from_label}->{old.to_label}",
                    target_value=f"{new.from_label}->{new.to_label}",
                ))

        if object_type == ObjectType.COLLECTION and list(old.shard_key) != list(new.shard_key):
            changes.append(self._change(
                ChangeType.MODIFIED, object_type, name,
                f"Shard key of '{name}' changed", _MAJOR, breaking=True,
                source_value=list(old.shard_key), target_value=list(new.shard_key),
            ))

        if isinstance(old, Table):
            changes.extend(self._compare_indexes(run, name, old.indexes, new.indexes))
            changes.extend(self._compare_constraints(run, name, old.constraints, new.constraints))
        elif hasattr(old, "indexes"):
            changes.extend(self._compare_indexes(run, name, old.indexes, new.indexes))
        return changes

    def _compare_indexes(
        self, run: _Run, container: str, old: dict[str, Any], new: dict[str, Any]
    ) -> list[StructuralChange]:
        changes = []
        matched, removed, added = self._match(old, new, run.options)
        for n in removed:
            changes.append(self._change(
                ChangeType.REMOVED, ObjectType.INDEX, f"{container}.{n}", f"Index '{n}' removed", _MINOR,
            ))
        for n in added:
            changes.append(self._change(
                ChangeType.ADDED, ObjectType.INDEX, f"{container}.{n}", f"Index '{n}' added", _MINOR,
            ))
        for o, n in matched:
            if old[o].to_dict() | {"name": ""} != new[n].to_dict() | {"name": ""}:
                changes.append(self._change(
                    ChangeType.MODIFIED, ObjectType.INDEX, f"{container}.{o}",
                    f"Index '{o}' changed", _MINOR,
                    source_value=old[o].to_dict(), target_value=new[n].to_dict(),
                ))
        return changes

    def _compare_constraints(
        self, run: _Run, container: str, old: dict[str, Any], new: dict[str, Any]
    ) -> list[StructuralChange]:
        changes = []
        matched, removed, added = self._match(old, new, run.options)
        for n in removed:
            changes.append(self._change(
                ChangeType.REMOVED, ObjectType.CONSTRAINT, f"{container}.{n}",
                f"Constraint '{n}' removed", _MINOR,
            ))
        for n in added:
            changes.append(self._change(
                ChangeType.ADDED, ObjectType.CONSTRAINT, f"{container}.{n}",
                f"Constraint '{n}' added; existing rows may violate it", _MAJOR, breaking=True,
            ))
        for o, n in matched:
            if old[o].to_dict() | {"name": ""} != new[n].to_dict() | {"name": ""}:
                changes.append(self._change(
                    ChangeType.MODIFIED, ObjectType.CONSTRAINT, f"{container}.{o}",
                    f"Constraint '{o}' changed", _MAJOR, breaking=True,
                    source_value=old[o].to_dict(), target_value=new[n].to_dict(),
                ))
        return changes

    # ------------------------------------------------------------------
    # Children
    # ------------------------------------------------------------------

    def _compare_children(
        self,
        run: _Run,
        container_type: ObjectType,
        container: str,
        old: dict[str, Any],
        new: dict[str, Any],
    ) -> list[StructuralChange]:
        child_type = _child_object_type(container_type)
        matched, removed, added = self._match(old, new, run.options)
        old_order, new_order = list(old), list(new)
        changes: list[StructuralChange] = []

        for o, n in matched:
            child_changes = self._compare_child(run, child_type, f"{container}.{o}", old[o], new[n])
            if not run.options.ignore_object_order and old_order.index(o) != new_order.index(n):
                child_changes.append(self._change(
                    ChangeType.MOVED, child_type, f"{container}.{o}",
                    f"'{o}' moved from position {old_order.index(o)} to {new_order.index(n)}",
                    _MINOR, source_value=old_order.index(o), target_value=new_order.index(n),
                ))
            self._tally(run, child_changes)
            changes.extend(self._adjust(run, container, o, n, child_changes))

        for o in removed:
            change = self._change(
                ChangeType.REMOVED, child_type, f"{container}.{o}",
                f"{child_type.value} '{o}' removed", _MAJOR, breaking=True,
                source_value=old[o].data_type,
            )
            self._tally(run, [change])
            changes.extend(self._adjust(run, container, o, None, [change]))

        for n in added:
            child = new[n]
            mandatory = not child.nullable
            change = self._change(
                ChangeType.ADDED, child_type, f"{container}.{n}",
                f"{child_type.value} '{n}' added" + (" as NOT NULL" if mandatory else ""),
                _MAJOR if mandatory else _MINOR, breaking=mandatory,
                target_value=child.data_type,
            )
            self._tally(run, [change])
            changes.extend(self._adjust(run, container, None, n, [change]))
        return changes

    def _compare_child(
        self, run: _Run, child_type: ObjectType, path: str, old: Any, new: Any
    ) -> list[StructuralChange]:
        changes = []
        if not is_same_type(old.data_type, new.data_type):
            safety, reason = analyze_type_change(old.data_type, new.data_type)
            severity, breaking = _TYPE_CHANGE_SEVERITY[safety]
            changes.append(self._change(
                ChangeType.MODIFIED, child_type, path,
                f"Type changed from {old.data_type} to {new.data_type}: {reason}",
                severity, breaking=breaking,
                source_value=old.data_type, target_value=new.data_type,
            ))

        if old.nullable and not new.nullable:
            what = "NOT NULL" if child_type == ObjectType.COLUMN else "required"
            changes.append(self._change(
                ChangeType.MODIFIED, child_type, path, f"Became {what}", _MAJOR, breaking=True,
                source_value=True, target_value=False,
            ))
        elif new.nullable and not old.nullable:
            changes.append(self._change(
                ChangeType.MODIFIED, child_type, path, "Became optional", _MINOR,
                source_value=False, target_value=True,
            ))

        if child_type == ObjectType.COLUMN:
            if old.is_primary_key != new.is_primary_key:
                changes.append(self._change(
                    ChangeType.MODIFIED, child_type, path, "Primary key membership changed",
                    _MAJOR, breaking=True,
                    source_value=old.is_primary_key, target_value=new.is_primary_key,
                ))
            if old.default != new.default:
                changes.append(self._change(
                    ChangeType.MODIFIED, child_type, path, "Default value changed", _MINOR,
                    source_value=old.default, target_value=new.default,
                ))
            if old.auto_increment != new.auto_increment:
                changes.append(self._change(
                    ChangeType.MODIFIED, child_type, path, "Auto-increment changed", _MINOR,
                    source_value=old.auto_increment, target_value=new.auto_increment,
                ))

        old_comment, new_comment = getattr(old, "comment", ""), getattr(new, "comment", "")
        if not run.options.ignore_comments and _squash(old_comment) != _squash(new_comment):
            changes.append(self._change(
                ChangeType.MODIFIED, child_type, path, "Comment changed", _MINOR,
                source_value=old_comment, target_value=new_comment,
            ))
        return changes

    @staticmethod
    def _tally(run: _Run, child_changes: list[StructuralChange]) -> None:
        run.comparable_children += 1
        worst = max_severity(*(c.raw_severity for c in child_changes))
        if worst is None or worst == _MINOR:
            run.unchanged_children += 1

    @staticmethod
    def _change(
        change_type: ChangeType,
        object_type: ObjectType,
        path: str,
        description: str,
        severity: ChangeSeverity,
        breaking: bool = False,
        source_value: Any = None,
        target_value: Any = None,
    ) -> StructuralChange:
        return StructuralChange(
            change_type=change_type,
            object_type=object_type,
            object_path=path,
            description=description,
            severity=severity,
            is_breaking=breaking,
            source_value=source_value,
            target_value=target_value,
            raw_severity=severity,
        )

    # ------------------------------------------------------------------
    # Enrichment-guided severity
    # ------------------------------------------------------------------

    def _adjust(
        self,
        run: _Run,
        container: str,
        old_child: str | None,
        new_child: str | None,
        changes: list[StructuralChange],
    ) -> list[StructuralChange]:
        """Escalate or downgrade *changes* from the child's enrichment."""
        if not changes or not run.options.uses_enrichment:
            return changes

        enrichments = [
            e for e in (
                run.source_enrichment.column(container, old_child)
                if run.source_enrichment and old_child else None,
                run.target_enrichment.column(container, new_child)
                if run.target_enrichment and new_child else None,
            )
            if e is not None
        ]
        if not enrichments:
            return changes

        # Confidence gates enrichment-change records only, never escalation.
        privileged = [e for e in enrichments if e.is_privileged_data]
        if privileged:
            risk = _max_risk(*privileged)
            for change in changes:
                if risk == RiskLevel.CRITICAL:
                    change.severity = _CRITICAL
                elif risk == RiskLevel.HIGH:
                    change.severity = max_severity(change.severity, _MAJOR)
                if change.severity != change.raw_severity:
                    run.escalated.append(change)
                    log.debug(
                        "Escalated %s from %s to %s (privileged, %s risk).",
                        change.object_path, change.raw_severity.value,
                        change.severity.value, risk.value,
                    )
            frameworks = sorted({c.value for e in privileged for c in e.compliance_impact})
            if frameworks:
                run.result.compliance_issues.append(
                    f"Structural change to '{changes[0].object_path}' affects data under "
                    f"{', '.join(f.upper() for f in frameworks)}"
                )
            return changes

        benign = all(
            not e.is_privileged_data and e.risk_level == RiskLevel.MINIMAL for e in enrichments
        )
        if benign:
            for change in changes:
                if change.severity == _MAJOR and not change.is_breaking:
                    change.severity = _MINOR
        return changes

    # ------------------------------------------------------------------
    # Enrichment changes (ENRICHED mode)
    # ------------------------------------------------------------------

    @staticmethod
    def _live_keys(model: UnifiedModel) -> tuple[set[str], set[str]]:
        containers, children = set(), set()
        for _, name, obj in model.iter_containers():
            containers.add(name)
            children.update(UnifiedModelEnrichment.column_key(name, c) for c in obj.children)
        return containers, children

    def _compare_enrichment(self, run: _Run) -> None:
        src_doc, tgt_doc = run.source_enrichment, run.target_enrichment
        if src_doc is None and tgt_doc is None:
            return
        src_tables, src_children = self._live_keys(run.source)
        tgt_tables, tgt_children = self._live_keys(run.target)

        src_cols = {k: v for k, v in (src_doc.column_enrichments if src_doc else {}).items() if k in src_children}
        tgt_cols = {k: v for k, v in (tgt_doc.column_enrichments if tgt_doc else {}).items() if k in tgt_children}
        for key in sorted(set(src_cols) | set(tgt_cols)):
            self._column_enrichment_changes(run, key, src_cols.get(key), tgt_cols.get(key))

        src_tabs = {k: v for k, v in (src_doc.table_enrichments if src_doc else {}).items() if k in src_tables}
        tgt_tabs = {k: v for k, v in (tgt_doc.table_enrichments if tgt_doc else {}).items() if k in tgt_tables}
        for key in sorted(set(src_tabs) | set(tgt_tabs)):
            self._table_enrichment_changes(run, key, src_tabs.get(key), tgt_tabs.get(key))

    def _emit(
        self,
        run: _Run,
        change_type: ChangeType,
        category: EnrichmentCategory,
        path: str,
        description: str,
        impact: EnrichmentImpact,
        old: Any,
        new: Any,
    ) -> None:
        if not run.options.category_enabled(category):
            return
        run.result.enrichment_changes.append(EnrichmentChange(
            change_type=change_type,
            category=category,
            object_path=path,
            description=description,
            impact=impact,
            source_enrichment=old.to_dict() if old is not None else None,
            target_enrichment=new.to_dict() if new is not None else None,
        ))

    def _column_enrichment_changes(
        self, run: _Run, key: str, old: ColumnEnrichment | None, new: ColumnEnrichment | None
    ) -> None:
        options = run.options
        if old is None or new is None:
            present = new if old is None else old
            change_type = ChangeType.ADDED if old is None else ChangeType.REMOVED
            category = (
                EnrichmentCategory.PRIVACY if present.is_privileged_data
                else EnrichmentCategory.CLASSIFICATION
            )
            self._emit(
                run, change_type, category, key, f"Enrichment for '{key}' {change_type.value}",
                _RISK_IMPACT[present.risk_level], old, new,
            )
            return

        impact = _RISK_IMPACT[_max_risk(old, new)]
        confidence = max(old.privileged_confidence, new.privileged_confidence)
        privacy_changed = (
            old.is_privileged_data != new.is_privileged_data or old.risk_level != new.risk_level
        )
        if privacy_changed and confidence >= options.privacy_weight_threshold:
            self._emit(
                run, ChangeType.MODIFIED, EnrichmentCategory.PRIVACY, key,
                f"Privacy classification of '{key}' changed "
                f"(privileged {old.is_privileged_data} → {new.is_privileged_data}, "
                f"risk {old.risk_level.value} → {new.risk_level.value})",
                impact, old, new,
            )

        delta = abs(old.privileged_confidence - new.privileged_confidence)
        if old.data_category != new.data_category or delta > options.score_tolerance:
            self._emit(
                run, ChangeType.MODIFIED, EnrichmentCategory.CLASSIFICATION, key,
                f"Data category of '{key}' changed "
                f"({getattr(old.data_category, 'value', None)} → "
                f"{getattr(new.data_category, 'value', None)}, confidence delta {delta:.2f})",
                impact, old, new,
            )

        old_frameworks = {c.value for c in old.compliance_impact}
        new_frameworks = {c.value for c in new.compliance_impact}
        if old_frameworks != new_frameworks:
            added = sorted(new_frameworks - old_frameworks)
            removed = sorted(old_frameworks - new_frameworks)
            self._emit(
                run, ChangeType.MODIFIED, EnrichmentCategory.COMPLIANCE, key,
                f"Compliance scope of '{key}' changed (added {added or '-'}, removed {removed or '-'})",
                impact, old, new,
            )
            if added and run.options.category_enabled(EnrichmentCategory.COMPLIANCE):
                run.result.compliance_issues.append(
                    f"'{key}' now falls under {', '.join(a.upper() for a in added)}"
                )

    def _table_enrichment_changes(
        self, run: _Run, key: str, old: TableEnrichment | None, new: TableEnrichment | None
    ) -> None:
        if old is None or new is None:
            change_type = ChangeType.ADDED if old is None else ChangeType.REMOVED
            self._emit(
                run, change_type, EnrichmentCategory.CLASSIFICATION, key,
                f"Table enrichment for '{key}' {change_type.value}", EnrichmentImpact.LOW, old, new,
            )
            return

        delta = abs(old.classification_confidence - new.classification_confidence)
        if old.primary_category != new.primary_category or delta > run.options.score_tolerance:
            self._emit(
                run, ChangeType.MODIFIED, EnrichmentCategory.CLASSIFICATION, key,
                f"Category of '{key}' changed "
                f"({old.primary_category.value} → {new.primary_category.value})",
                EnrichmentImpact.LOW, old, new,
            )
        if old.access_pattern != new.access_pattern:
            self._emit(
                run, ChangeType.MODIFIED, EnrichmentCategory.PERFORMANCE, key,
                f"Access pattern of '{key}' changed "
                f"({getattr(old.access_pattern, 'value', None)} → "
                f"{getattr(new.access_pattern, 'value', None)})",
                EnrichmentImpact.MEDIUM, old, new,
            )

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    def _enrichment_similarity(self, run: _Run) -> float:
        src_doc, tgt_doc = run.source_enrichment, run.target_enrichment
        _, src_children = self._live_keys(run.source)
        _, tgt_children = self._live_keys(run.target)
        src = {k: v for k, v in (src_doc.column_enrichments if src_doc else {}).items() if k in src_children}
        tgt = {k: v for k, v in (tgt_doc.column_enrichments if tgt_doc else {}).items() if k in tgt_children}
        keys = set(src) | set(tgt)
        if not keys:
            return 1.0

        tolerance = run.options.score_tolerance
        unchanged = 0
        for key in keys:
            old, new = src.get(key), tgt.get(key)
            if old is None or new is None:
                continue
            if (
                old.is_privileged_data == new.is_privileged_data
                and old.risk_level == new.risk_level
                and old.data_category == new.data_category
                and abs(old.privileged_confidence - new.privileged_confidence) <= tolerance
            ):
                unchanged += 1
        return unchanged / len(keys)

    def _compatibility_factor(self, source_db: str, target_db: str) -> float:
        if not source_db or not target_db:
            return 1.0
        try:
            matrix = self._generator.generate(source_db, target_db)
        except RegistryMissingError:
            log.debug("No conversion matrix for %s → %s; compatibility factor 1.0.", source_db, target_db)
            return 1.0
        return _COMPLEXITY_FACTOR[matrix.conversion_complexity]

    def migration_complexity(self, compatibility: float, breaking: int) -> MigrationComplexity:
        """Walk the configured ladder; the first rung satisfied wins."""
        for min_score, max_breaking, value in self._config.complexity_ladder:
            if compatibility >= min_score and breaking <= max_breaking:
                return MigrationComplexity(value)
        return MigrationComplexity.EXTREME

    def _score(self, run: _Run) -> None:
        result = run.result
        object_level = bool(result.added_objects or result.removed_objects or result.modified_objects)
        if run.comparable_children:
            structural = run.unchanged_children / run.comparable_children
        else:
            structural = 0.0 if object_level else 1.0

        overall = structural
        enrichment_given = run.source_enrichment is not None or run.target_enrichment is not None
        if run.options.uses_enrichment:
            result.enrichment_similarity = round(self._enrichment_similarity(run), _SCORE_DIGITS)
            if enrichment_given:
                overall = (
                    self._config.structural_weight * structural
                    + self._config.enrichment_weight * result.enrichment_similarity
                )

        factor = self._compatibility_factor(run.source.database_type, run.target.database_type)
        result.structural_similarity = round(structural, _SCORE_DIGITS)
        result.overall_similarity = round(overall, _SCORE_DIGITS)
        result.compatibility_score = round(overall * factor, _SCORE_DIGITS)
        result.migration_complexity = self.migration_complexity(
            result.compatibility_score, len(result.breaking_changes)
        )

    # ------------------------------------------------------------------
    # Advice
    # ------------------------------------------------------------------

    @staticmethod
    def _advise(run: _Run) -> None:
        result = run.result
        breaking = result.breaking_changes

        for obj in result.removed_objects:
            if get_object_capability(obj.object_type).can_store_data:
                result.warnings.append(
                    f"{obj.object_type.value} '{obj.object_name}' is removed together with its data"
                )
        for change in run.escalated:
            result.warnings.append(
                f"Change to privileged data at '{change.object_path}' escalated to {change.severity.value}"
            )

        if breaking:
            result.recommendations.append(
                f"Review {len(breaking)} breaking change(s) before migrating"
            )
        if any(c.change_type == ChangeType.REMOVED and c.severity == _CRITICAL for c in result.structural_changes):
            result.recommendations.append("Back up data held by removed objects before migrating")
        if any(c.change_type == ChangeType.MODIFIED and "Type changed" in c.description and c.is_breaking
               for c in breaking):
            result.recommendations.append("Validate existing values against the narrowed data types")
        if run.escalated:
            result.recommendations.append(
                "Apply masking or encryption to privileged fields before moving data"
            )
        if result.migration_complexity in (MigrationComplexity.HIGH, MigrationComplexity.EXTREME):
            result.recommendations.append("Plan a staged migration with a rollback point")
        if not result.structural_changes and not result.enrichment_changes:
            result.recommendations.append("Schemas are equivalent; no migration needed")


def compare_schemas(
    source: UnifiedModel,
    target: UnifiedModel,
    options: ComparisonOptions | None = None,
    source_enrichment: UnifiedModelEnrichment | None = None,
    target_enrichment: UnifiedModelEnrichment | None = None,
) -> ComparisonResult:
    """Convenience wrapper using the default comparator."""
    return SchemaComparator().compare(source, target, options, source_enrichment, target_enrichment)
