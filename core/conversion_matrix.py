"""
core/conversion_matrix.py
-------------------------
Derives a ConversionMatrix for a (source, target) technology pair from the
two feature-support records.

Pipeline for one pair:
    1. Look both technologies up (RegistryMissingError when absent).
    2. Classify paradigm compatibility from the declared paradigm sets.
    3. Derive one ObjectConversionRule per object kind the source supports.
    4. Fold the rules into complexity, flags, strategies and estimates.

Design Decision:
    Every table that drives a decision (paradigm bridges, paradigm strategy,
    success-rate factors, duration text) is data at module level.  The
    generator itself only walks records and looks things up, so the same
    inputs always give an identical matrix and results can be cached per
    pair for as long as the registry snapshot is unchanged.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import replace
from typing import Iterable

from core.capabilities import get_object_capability
from core.errors import NotFoundError, RegistryMissingError
from core.feature_registry import FeatureRegistry, RegistryHolder, default_registry
from logger import get_logger
from models.conversion import (
    AutomationLevel,
    ConversionAnalysis,
    ConversionComplexity,
    ConversionMatrix,
    ConversionPath,
    ConversionStep,
    ConversionStrategy,
    ConversionType,
    DecisionType,
    ObjectConversionRule,
    ParadigmCompatibility,
    UserDecision,
    direct_conversion,
    dropped_conversion,
    emulated_conversion,
    split_conversion,
)
from models.features import DatabaseFeatureSupport, ObjectSupport, SupportLevel
from models.object_types import ObjectType, Paradigm, object_type_sort_key
from models.user_context import ConversionRequest, ValidationFinding, ValidationLevel

log = get_logger(__name__)

# ---------------------------------------------------------------------------
# Paradigm tables
# ---------------------------------------------------------------------------
_P = Paradigm


def _both_ways(*pairs: tuple[Paradigm, Paradigm]) -> set[tuple[Paradigm, Paradigm]]:
    return {p for a, b in pairs for p in ((a, b), (b, a))}


# Paradigm pairs whose data models translate without redesign.
KNOWN_BRIDGES = frozenset(
    _both_ways(
        (_P.RELATIONAL, _P.DOCUMENT),
        (_P.RELATIONAL, _P.COLUMNAR),
        (_P.RELATIONAL, _P.WIDE_COLUMN),
        (_P.RELATIONAL, _P.GRAPH),
        (_P.RELATIONAL, _P.KEY_VALUE),
        (_P.DOCUMENT, _P.KEY_VALUE),
        (_P.DOCUMENT, _P.SEARCH_INDEX),
        (_P.DOCUMENT, _P.GRAPH),
        (_P.DOCUMENT, _P.WIDE_COLUMN),
        (_P.COLUMNAR, _P.WIDE_COLUMN),
        (_P.COLUMNAR, _P.TIME_SERIES),
        (_P.KEY_VALUE, _P.WIDE_COLUMN),
        (_P.OBJECT_STORE, _P.DOCUMENT),
        (_P.OBJECT_STORE, _P.COLUMNAR),
    )
    | {
        (_P.VECTOR, _P.SEARCH_INDEX),
        (_P.DOCUMENT, _P.VECTOR),
        (_P.SEARCH_INDEX, _P.VECTOR),
        (_P.RELATIONAL, _P.SEARCH_INDEX),
    }
)

_S = ConversionStrategy
_NORM, _DENORM, _DECOMP, _AGG, _DIRECT = (
    _S.NORMALIZATION, _S.DENORMALIZATION, _S.DECOMPOSITION, _S.AGGREGATION, _S.DIRECT,
)

# Strategy used when an object has to change shape between two paradigms.
_STRATEGY_ROWS = {
    _P.RELATIONAL: {
        _P.DOCUMENT: _DENORM, _P.GRAPH: _DECOMP, _P.KEY_VALUE: _DENORM,
        _P.COLUMNAR: _DENORM, _P.WIDE_COLUMN: _DENORM, _P.SEARCH_INDEX: _DECOMP,
        _P.VECTOR: _DECOMP, _P.TIME_SERIES: _DECOMP, _P.OBJECT_STORE: _AGG,
    },
    _P.DOCUMENT: {
        _P.RELATIONAL: _NORM, _P.GRAPH: _DECOMP, _P.KEY_VALUE: _DIRECT,
        _P.COLUMNAR: _NORM, _P.WIDE_COLUMN: _DENORM, _P.SEARCH_INDEX: _DIRECT,
        _P.VECTOR: _DECOMP, _P.TIME_SERIES: _DECOMP, _P.OBJECT_STORE: _AGG,
    },
    _P.GRAPH: {
        _P.RELATIONAL: _AGG, _P.DOCUMENT: _AGG, _P.KEY_VALUE: _AGG,
        _P.COLUMNAR: _AGG, _P.WIDE_COLUMN: _AGG, _P.SEARCH_INDEX: _DECOMP,
        _P.VECTOR: _DECOMP, _P.TIME_SERIES: _DECOMP, _P.OBJECT_STORE: _AGG,
    },
    _P.KEY_VALUE: {
        _P.RELATIONAL: _NORM, _P.DOCUMENT: _DIRECT, _P.GRAPH: _DECOMP,
        _P.COLUMNAR: _NORM, _P.WIDE_COLUMN: _DIRECT, _P.SEARCH_INDEX: _DIRECT,
        _P.VECTOR: _DECOMP, _P.TIME_SERIES: _DECOMP, _P.OBJECT_STORE: _AGG,
    },
    _P.COLUMNAR: {
        _P.RELATIONAL: _NORM, _P.DOCUMENT: _DENORM, _P.GRAPH: _DECOMP,
        _P.KEY_VALUE: _DENORM, _P.WIDE_COLUMN: _DIRECT, _P.SEARCH_INDEX: _DECOMP,
        _P.VECTOR: _DECOMP, _P.TIME_SERIES: _DIRECT, _P.OBJECT_STORE: _AGG,
    },
    _P.WIDE_COLUMN: {
        _P.RELATIONAL: _NORM, _P.DOCUMENT: _AGG, _P.GRAPH: _DECOMP,
        _P.KEY_VALUE: _DIRECT, _P.COLUMNAR: _DIRECT, _P.SEARCH_INDEX: _DECOMP,
        _P.VECTOR: _DECOMP, _P.TIME_SERIES: _DIRECT, _P.OBJECT_STORE: _AGG,
    },
    _P.SEARCH_INDEX: {
        _P.RELATIONAL: _NORM, _P.DOCUMENT: _DIRECT, _P.GRAPH: _DECOMP,
        _P.KEY_VALUE: _DIRECT, _P.COLUMNAR: _NORM, _P.WIDE_COLUMN: _DENORM,
        _P.VECTOR: _DECOMP, _P.TIME_SERIES: _DECOMP, _P.OBJECT_STORE: _AGG,
    },
    _P.VECTOR: {
        _P.RELATIONAL: _AGG, _P.DOCUMENT: _AGG, _P.GRAPH: _AGG,
        _P.KEY_VALUE: _AGG, _P.COLUMNAR: _AGG, _P.WIDE_COLUMN: _AGG,
        _P.SEARCH_INDEX: _DIRECT, _P.TIME_SERIES: _DECOMP, _P.OBJECT_STORE: _AGG,
    },
    _P.TIME_SERIES: {
        _P.RELATIONAL: _NORM, _P.DOCUMENT: _AGG, _P.GRAPH: _DECOMP,
        _P.KEY_VALUE: _AGG, _P.COLUMNAR: _DIRECT, _P.WIDE_COLUMN: _DIRECT,
        _P.SEARCH_INDEX: _DECOMP, _P.VECTOR: _DECOMP, _P.OBJECT_STORE: _AGG,
    },
    _P.OBJECT_STORE: {
        target: _DECOMP for target in Paradigm
        if target not in (_P.OBJECT_STORE, _P.STREAMING)
    },
}
PARADIGM_STRATEGY = {
    (source, target): strategy
    for source, row in _STRATEGY_ROWS.items()
    for target, strategy in row.items()
}

_PARADIGM_ORDER = {p: i for i, p in enumerate(Paradigm)}
_STRATEGY_ORDER = {s: i for i, s in enumerate(ConversionStrategy)}

# ---------------------------------------------------------------------------
# Complexity and estimate tables
# ---------------------------------------------------------------------------
_C = ConversionComplexity

_COMPLEXITY_BY_PARADIGM = {
    ParadigmCompatibility.IDENTICAL: _C.TRIVIAL,
    ParadigmCompatibility.COMPATIBLE: _C.SIMPLE,
    ParadigmCompatibility.PARTIAL: _C.MODERATE,
    ParadigmCompatibility.INCOMPATIBLE: _C.IMPOSSIBLE,
}

_BASE_SUCCESS_RATE = {
    _C.TRIVIAL: 0.99,
    _C.SIMPLE: 0.95,
    _C.MODERATE: 0.85,
    _C.COMPLEX: 0.70,
    _C.IMPOSSIBLE: 0.10,
}

_PARADIGM_SUCCESS_FACTOR = {
    ParadigmCompatibility.IDENTICAL: 1.0,
    ParadigmCompatibility.COMPATIBLE: 0.95,
    ParadigmCompatibility.PARTIAL: 0.80,
    ParadigmCompatibility.INCOMPATIBLE: 0.60,
}

_LARGE_RULE_SET = 50

_RESHAPING = frozenset({
    ConversionType.TRANSFORM, ConversionType.SPLIT,
    ConversionType.MERGE, ConversionType.EMULATE,
})
_RULE_STRATEGY = {
    ConversionType.DIRECT: _S.DIRECT,
    ConversionType.SPLIT: _S.DECOMPOSITION,
    ConversionType.MERGE: _S.AGGREGATION,
}

# ---------------------------------------------------------------------------
# Required-context tables
# ---------------------------------------------------------------------------
_GRAPH_OBJECTS = frozenset({ObjectType.NODE, ObjectType.RELATIONSHIP, ObjectType.GRAPH})
_VECTOR_OBJECTS = frozenset({ObjectType.VECTOR, ObjectType.VECTOR_INDEX, ObjectType.EMBEDDING})
_PARTITIONED_PARADIGMS = frozenset({Paradigm.KEY_VALUE, Paradigm.WIDE_COLUMN})

CTX_ENTITY_CLASSIFICATION = "enrichment.entity_classification"
CTX_RELATIONSHIPS = "enrichment.relationships"
CTX_EMBEDDING_SOURCE = "enrichment.embedding_source"
CTX_ACCESS_PATTERNS = "enrichment.access_patterns"
ENRICHMENT_PREFIX = "enrichment."


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def classify_paradigms(
    source: Iterable[Paradigm], target: Iterable[Paradigm]
) -> ParadigmCompatibility:
    """
    Compare two declared paradigm sets.

    Examples::

        {relational}            → {relational}  →  IDENTICAL
        {relational}            → {document}    →  COMPATIBLE  (known bridge)
        {relational, graph}     → {relational}  →  COMPATIBLE  (target covered)
        {vector}                → {document}    →  INCOMPATIBLE
    """
    src, tgt = frozenset(source), frozenset(target)
    if src == tgt:
        return ParadigmCompatibility.IDENTICAL
    overlap = src & tgt
    if overlap and (overlap == src or overlap == tgt):
        return ParadigmCompatibility.COMPATIBLE

    def bridged(paradigm: Paradigm) -> bool:
        return any((paradigm, t) in KNOWN_BRIDGES for t in tgt)

    if src and all(p in tgt or bridged(p) for p in src):
        return ParadigmCompatibility.COMPATIBLE
    if overlap or any(bridged(p) for p in src):
        return ParadigmCompatibility.PARTIAL
    return ParadigmCompatibility.INCOMPATIBLE


def paradigm_strategy(
    source: Iterable[Paradigm], target: Iterable[Paradigm]
) -> ConversionStrategy:
    """Strategy for reshaping an object between the two paradigm sets."""
    src = sorted(source, key=_PARADIGM_ORDER.__getitem__)
    tgt = sorted(target, key=_PARADIGM_ORDER.__getitem__)
    for s in src:
        for t in tgt:
            if s != t and (s, t) in PARADIGM_STRATEGY:
                return PARADIGM_STRATEGY[(s, t)]
    if set(src) & set(tgt):
        return ConversionStrategy.DIRECT
    return ConversionStrategy.HYBRID


def combine_complexity(a: ConversionComplexity, b: ConversionComplexity) -> ConversionComplexity:
    """Harder of the two legs, one level up for the extra hop."""
    order = tuple(ConversionComplexity)
    level = min(max(a.rank, b.rank) + 1, len(order) - 1)
    return order[level]


def estimate_success_rate(
    complexity: ConversionComplexity, compatibility: ParadigmCompatibility
) -> float:
    return _BASE_SUCCESS_RATE[complexity] * _PARADIGM_SUCCESS_FACTOR[compatibility]


def estimate_duration(complexity: ConversionComplexity, rule_count: int) -> str:
    if complexity == _C.TRIVIAL:
        return "seconds"
    if complexity == _C.SIMPLE:
        return "minutes"
    if complexity == _C.MODERATE:
        return "hours" if rule_count > _LARGE_RULE_SET else "minutes"
    if complexity == _C.COMPLEX:
        return "hours to days"
    return "not feasible"


def _limitations_note(support: ObjectSupport) -> str:
    parts = []
    if support.limitations:
        parts.append("Limitations: " + ", ".join(support.limitations))
    if support.notes:
        parts.append(support.notes)
    return "; ".join(parts)


def _partition_key_decision(targets: tuple[ObjectType, ...]) -> UserDecision:
    names = ", ".join(t.value for t in targets)
    return UserDecision(
        decision_type=DecisionType.STRUCTURAL,
        question=f"Choose a partition key for the new {names}",
        options=("primary_key", "high_cardinality_column", "composite_key"),
        default_option="primary_key",
        impact="Determines data distribution and which queries stay efficient",
        recommendation="Pick the column most queries filter on",
    )


def _mapping_decision(source: ObjectType, targets: tuple[ObjectType, ...]) -> UserDecision:
    options = tuple(t.value for t in targets)
    return UserDecision(
        decision_type=DecisionType.MAPPING,
        question=f"How should each {source.value} be split across {', '.join(options)}?",
        options=options,
        default_option=options[0],
        impact="Determines how records are distributed across the target objects",
        recommendation=f"Start with {options[0]}",
    )


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------

class ConversionMatrixGenerator:
    """
    Builds conversion matrices from an injected feature registry.

    Args:
        registry: A :class:`FeatureRegistry` snapshot, a
                  :class:`RegistryHolder` (the current snapshot is read on
                  every call), or None for the built-in registry.
    """

    def __init__(self, registry: FeatureRegistry | RegistryHolder | None = None) -> None:
        self._source = registry if registry is not None else default_registry()
        # (registry, matrices built from it), replaced as one reference.
        self._snapshot: tuple[FeatureRegistry | None, dict[tuple[str, str], ConversionMatrix]] = (None, {})

    @property
    def registry(self) -> FeatureRegistry:
        if isinstance(self._source, RegistryHolder):
            return self._source.current()
        return self._source

    # ------------------------------------------------------------------
    # Matrix generation
    # ------------------------------------------------------------------

    def generate(self, source_db: str, target_db: str) -> ConversionMatrix:
        """
        Return the conversion matrix for *source_db* → *target_db*.

        Raises:
            RegistryMissingError: When either technology is not registered.
        """
        registry = self.registry
        cached_registry, cache = self._snapshot
        if cached_registry is not registry:
            cache = {}
            self._snapshot = (registry, cache)

        key = (source_db.strip().lower(), target_db.strip().lower())
        matrix = cache.get(key)
        if matrix is None:
            matrix = self._build(registry, source_db, target_db)
            cache[key] = matrix
        return matrix

    def _build(self, registry: FeatureRegistry, source_db: str, target_db: str) -> ConversionMatrix:
        try:
            source = registry.get(source_db)
            target = registry.get(target_db)
        except RegistryMissingError as exc:
            log.warning("Cannot build conversion matrix %s → %s: %s", source_db, target_db, exc)
            raise

        compatibility = classify_paradigms(source.paradigms, target.paradigms)
        rules = self._derive_rules(source, target)

        complexity = self._aggregate_complexity(compatibility, rules.values())
        unsupported = tuple(
            getattr(obj, "value", obj)
            for obj, rule in rules.items()
            if rule.conversion_type == ConversionType.DROP
        )
        requires_input = any(rule.user_decisions for rule in rules.values())
        requires_enrichment = any(
            key.startswith(ENRICHMENT_PREFIX)
            for rule in rules.values()
            for key in rule.required_context
        )
        strategies = self._select_strategies(rules.values(), source, target)

        matrix = ConversionMatrix(
            source_database=source.database_type,
            target_database=target.database_type,
            conversion_complexity=complexity,
            paradigm_compatibility=compatibility,
            object_conversions=rules,
            requires_user_input=requires_input,
            requires_enrichment=requires_enrichment,
            unsupported_features=unsupported,
            conversion_strategies=strategies,
            estimated_duration=estimate_duration(complexity, len(rules)),
            success_rate=estimate_success_rate(complexity, compatibility),
        )
        log.info(
            "Generated conversion matrix %s → %s: %s (%s), %d rule(s), %d dropped.",
            source.database_type, target.database_type,
            complexity.value, compatibility.value, len(rules), len(unsupported),
        )
        return matrix

    def _derive_rules(
        self, source: DatabaseFeatureSupport, target: DatabaseFeatureSupport
    ) -> dict[ObjectType | str, ObjectConversionRule]:
        supported = [
            obj for obj, support in source.supported_objects.items() if support.supported
        ]
        rules: dict[ObjectType | str, ObjectConversionRule] = {}
        for obj in sorted(supported, key=object_type_sort_key):
            rule = self._rule_for(obj, target)
            log.debug(
                "%s → %s: %s is %s.",
                source.database_type, target.database_type,
                getattr(obj, "value", obj), rule.conversion_type.value,
            )
            rules[obj] = rule
        return rules

    def _rule_for(self, obj: ObjectType | str, target: DatabaseFeatureSupport) -> ObjectConversionRule:
        if not isinstance(obj, ObjectType):
            return dropped_conversion(
                obj, f"Unknown object type '{obj}'; no conversion rule can be derived"
            )

        support = target.support_for(obj)
        if support is None:
            return dropped_conversion(obj, "Object type not supported in target database")

        if support.level == SupportLevel.FULL:
            return direct_conversion(obj, obj)
        if support.level == SupportLevel.PARTIAL:
            return replace(
                direct_conversion(obj, obj),
                automation_level=AutomationLevel.PARTIAL,
                notes=_limitations_note(support),
            )
        if support.level == SupportLevel.EMULATED:
            rule = emulated_conversion(obj, support.alternatives or (obj,), support.notes)
            return self._with_context(rule, target)

        alternatives = support.alternatives
        if not alternatives:
            return dropped_conversion(obj, support.notes or "Not supported in target database")
        if len(alternatives) == 1:
            rule = ObjectConversionRule(
                source_object=obj,
                target_objects=alternatives,
                conversion_type=ConversionType.TRANSFORM,
                automation_level=AutomationLevel.PARTIAL,
                notes=support.notes,
            )
        else:
            rule = split_conversion(
                obj, alternatives, (_mapping_decision(obj, alternatives),), support.notes
            )
        return self._with_context(rule, target)

    @staticmethod
    def _with_context(rule: ObjectConversionRule, target: DatabaseFeatureSupport) -> ObjectConversionRule:
        targets = set(rule.target_objects)
        if targets & _GRAPH_OBJECTS:
            rule = rule.with_required_context(CTX_ENTITY_CLASSIFICATION, CTX_RELATIONSHIPS)
        if targets & _VECTOR_OBJECTS:
            rule = rule.with_required_context(CTX_EMBEDDING_SOURCE)
        partitioned = target.paradigms & _PARTITIONED_PARADIGMS
        stores_data = any(get_object_capability(t).can_store_data for t in rule.target_objects)
        if (
            partitioned
            and stores_data
            and rule.conversion_type in (ConversionType.TRANSFORM, ConversionType.SPLIT)
        ):
            rule = rule.with_user_decision(_partition_key_decision(rule.target_objects))
            rule = rule.with_required_context(CTX_ACCESS_PATTERNS)
        return rule

    @staticmethod
    def _aggregate_complexity(
        compatibility: ParadigmCompatibility, rules: Iterable[ObjectConversionRule]
    ) -> ConversionComplexity:
        rules = list(rules)
        if not rules or all(r.conversion_type == ConversionType.DROP for r in rules):
            return _C.IMPOSSIBLE

        level = _COMPLEXITY_BY_PARADIGM[compatibility]
        # Identical paradigms stay trivial until something drops or needs a decision.
        trivial = compatibility == ParadigmCompatibility.IDENTICAL and not any(
            r.user_decisions or r.conversion_type == ConversionType.DROP for r in rules
        )
        for rule in rules:
            partial = rule.automation_level != AutomationLevel.FULL
            if rule.conversion_type == ConversionType.DROP or (partial and not trivial):
                level = level.at_least(_C.SIMPLE)
            if rule.conversion_type in _RESHAPING:
                level = level.at_least(_C.MODERATE)
            if rule.user_decisions:
                level = level.at_least(_C.COMPLEX)
        return level

    @staticmethod
    def _select_strategies(
        rules: Iterable[ObjectConversionRule],
        source: DatabaseFeatureSupport,
        target: DatabaseFeatureSupport,
    ) -> tuple[ConversionStrategy, ...]:
        reshape = paradigm_strategy(source.paradigms, target.paradigms)
        weights: Counter[ConversionStrategy] = Counter()
        for rule in rules:
            if rule.conversion_type == ConversionType.DROP:
                continue
            weights[_RULE_STRATEGY.get(rule.conversion_type, reshape)] += 1
        if not weights:
            return ()

        ordered = sorted(weights, key=lambda s: (-weights[s], _STRATEGY_ORDER[s]))
        total = sum(weights.values())
        if (
            len(ordered) > 1
            and weights[ordered[0]] * 2 < total
            and ConversionStrategy.HYBRID not in ordered
        ):
            ordered.append(ConversionStrategy.HYBRID)
        return tuple(ordered)

    # ------------------------------------------------------------------
    # Quick analysis and paths
    # ------------------------------------------------------------------

    def is_conversion_possible(self, source_db: str, target_db: str) -> bool:
        """True when both ends are registered, eligible, and not IMPOSSIBLE."""
        registry = self.registry
        source, target = registry.find(source_db), registry.find(target_db)
        if source is None or target is None:
            return False
        if not source.conversion.can_be_source or not target.conversion.can_be_target:
            return False
        return self.generate(source_db, target_db).conversion_complexity != _C.IMPOSSIBLE

    def analyze(self, source_db: str, target_db: str) -> ConversionAnalysis:
        """
        Feasibility summary with recommendations.

        Raises:
            RegistryMissingError: When either technology is not registered.
        """
        matrix = self.generate(source_db, target_db)
        source = self.registry.get(source_db)
        target = self.registry.get(target_db)
        analysis = ConversionAnalysis(
            source_database=matrix.source_database,
            target_database=matrix.target_database,
            source_paradigms=tuple(sorted(source.paradigms, key=_PARADIGM_ORDER.__getitem__)),
            target_paradigms=tuple(sorted(target.paradigms, key=_PARADIGM_ORDER.__getitem__)),
            paradigm_compatibility=matrix.paradigm_compatibility,
            conversion_complexity=matrix.conversion_complexity,
            conversion_supported=self.is_conversion_possible(source_db, target_db),
            requires_user_input=matrix.requires_user_input,
            requires_enrichment=matrix.requires_enrichment,
            unsupported_features=matrix.unsupported_features,
            available_strategies=matrix.conversion_strategies,
        )
        return replace(analysis, recommendations=tuple(_recommendations(analysis)))

    def conversion_path(self, source_db: str, target_db: str) -> ConversionPath:
        """
        Direct path when possible, otherwise one intermediate hop whose legs
        are both at most MODERATE.

        Raises:
            NotFoundError: When no path exists.
        """
        if self.is_conversion_possible(source_db, target_db):
            complexity = self.generate(source_db, target_db).conversion_complexity
            step = ConversionStep(source_db, target_db, complexity, direct=True)
            return ConversionPath((step,), complexity, recommended=True)

        hard = (_C.COMPLEX, _C.IMPOSSIBLE)
        for middle in self.registry.databases():
            if middle in (source_db.lower(), target_db.lower()):
                continue
            if not (
                self.is_conversion_possible(source_db, middle)
                and self.is_conversion_possible(middle, target_db)
            ):
                continue
            first = self.generate(source_db, middle).conversion_complexity
            second = self.generate(middle, target_db).conversion_complexity
            if first in hard or second in hard:
                continue
            total = combine_complexity(first, second)
            return ConversionPath(
                steps=(
                    ConversionStep(source_db, middle, first, False,
                                   "Intermediate step for better compatibility"),
                    ConversionStep(middle, target_db, second, False, "Final conversion step"),
                ),
                total_complexity=total,
                recommended=total != _C.IMPOSSIBLE,
                notes=(
                    f"Using {middle} as intermediate database",
                    "Two-step conversion may preserve more data fidelity",
                ),
            )

        log.warning("No conversion path from %s to %s.", source_db, target_db)
        raise NotFoundError(
            f"No conversion path found from {source_db} to {target_db}",
            field_path="target_database",
            expected="a reachable technology",
            actual=target_db,
        )

    @staticmethod
    def format_conversion_summary(analysis: ConversionAnalysis) -> str:
        lines = [
            f"Conversion from {analysis.source_database} to {analysis.target_database}:",
            f"  Complexity: {analysis.conversion_complexity.value}",
            f"  Paradigm Compatibility: {analysis.paradigm_compatibility.value}",
            f"  Supported: {'yes' if analysis.conversion_supported else 'no'}",
        ]
        if analysis.requires_user_input:
            lines.append("  Requires user input")
        if analysis.requires_enrichment:
            lines.append("  Enrichment data recommended")
        if analysis.unsupported_features:
            lines.append("  Unsupported features:")
            lines.extend(f"     - {f}" for f in analysis.unsupported_features)
        if analysis.recommendations:
            lines.append("  Recommendations:")
            lines.extend(f"     - {r}" for r in analysis.recommendations)
        return "\n".join(lines) + "\n"

    def validate_conversion_request(self, request: ConversionRequest) -> list[ValidationFinding]:
        """Accumulate every problem with *request*; never raises."""
        findings: list[ValidationFinding] = []

        def critical(field_name: str, message: str) -> None:
            findings.append(ValidationFinding(
                level=ValidationLevel.CRITICAL, field=field_name, message=message
            ))

        if request.source_schema is None:
            critical("source_schema", "Source schema is required")
        if not request.source_database:
            critical("source_database", "Source database type is required")
        if not request.target_database:
            critical("target_database", "Target database type is required")
        if (
            request.source_database
            and request.source_database.lower() == request.target_database.lower()
        ):
            critical("target_database", "Source and target databases cannot be the same")

        registry = self.registry
        if request.source_database and request.source_database not in registry:
            critical("source_database", f"Unsupported source database: {request.source_database}")
        if request.target_database and request.target_database not in registry:
            critical("target_database", f"Unsupported target database: {request.target_database}")

        known = request.source_database in registry and request.target_database in registry
        if known and not self.is_conversion_possible(request.source_database, request.target_database):
            findings.append(ValidationFinding(
                level=ValidationLevel.WARNING,
                field="conversion",
                message=(
                    f"Direct conversion from {request.source_database} to "
                    f"{request.target_database} may not be possible"
                ),
                suggestion="Consider using an intermediate database or manual migration",
            ))
        return findings


def _recommendations(analysis: ConversionAnalysis) -> list[str]:
    recs: list[str] = []
    complexity = analysis.conversion_complexity
    if complexity == _C.TRIVIAL:
        recs.append("This conversion is straightforward and can be automated")
    elif complexity == _C.SIMPLE:
        recs.append("This conversion requires minimal configuration")
        if analysis.requires_user_input:
            recs.append("Some user decisions may be needed for optimal results")
    elif complexity == _C.MODERATE:
        recs.append("This cross-paradigm conversion requires careful planning")
        if analysis.requires_enrichment:
            recs.append("Enrichment data will significantly improve conversion quality")
    elif complexity == _C.COMPLEX:
        recs.append("This conversion is complex and requires significant user input")
        recs.append("Consider breaking the conversion into phases")
        if analysis.unsupported_features:
            recs.append("Plan for alternative implementations of unsupported features")
    else:
        recs.append("Direct conversion is not supported")
        recs.append("Consider using an intermediate database or manual migration")

    if analysis.paradigm_compatibility == ParadigmCompatibility.INCOMPATIBLE:
        recs.append("Consider the fundamental differences between paradigms")
        recs.append("Data modeling will need to be completely rethought")
    elif analysis.paradigm_compatibility == ParadigmCompatibility.PARTIAL:
        recs.append("Focus on the compatible aspects first")
        recs.append("Plan for paradigm-specific features separately")
    return recs


# ---------------------------------------------------------------------------
# Module-level conveniences over a shared default generator
# ---------------------------------------------------------------------------
_default_generator: ConversionMatrixGenerator | None = None


def _generator(generator: ConversionMatrixGenerator | None) -> ConversionMatrixGenerator:
    global _default_generator
    if generator is not None:
        return generator
    if _default_generator is None:
        _default_generator = ConversionMatrixGenerator()
    return _default_generator


def is_conversion_possible(
    source_db: str, target_db: str, generator: ConversionMatrixGenerator | None = None
) -> bool:
    return _generator(generator).is_conversion_possible(source_db, target_db)


def requires_user_interaction(
    source_db: str, target_db: str, generator: ConversionMatrixGenerator | None = None
) -> bool:
    return _generator(generator).generate(source_db, target_db).requires_user_input


def get_unsupported_features(
    source_db: str, target_db: str, generator: ConversionMatrixGenerator | None = None
) -> list[str]:
    return list(_generator(generator).generate(source_db, target_db).unsupported_features)


def get_conversion_strategies(
    source_db: str, target_db: str, generator: ConversionMatrixGenerator | None = None
) -> list[ConversionStrategy]:
    return list(_generator(generator).generate(source_db, target_db).conversion_strategies)
