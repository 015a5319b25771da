"""
models/conversion.py
--------------------
Typed records produced by the conversion-matrix generator.

Design Decision:
    Matrices are cached per technology pair and shared between callers, so
    every record here is a frozen dataclass holding tuples (and a read-only
    mapping for the rule table).  "Changing" a matrix, e.g. when a user
    context is applied, always builds a new one with ``dataclasses.replace``.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from models.object_types import ObjectType, Paradigm


class ConversionComplexity(str, Enum):
    """Overall difficulty of converting one technology into another (ordered)."""
    TRIVIAL = "trivial"
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"
    IMPOSSIBLE = "impossible"

    @property
    def rank(self) -> int:
        return _COMPLEXITY_ORDER.index(self)

    def at_least(self, other: "ConversionComplexity") -> "ConversionComplexity":
        """Return whichever of *self* and *other* is harder."""
        return self if self.rank >= other.rank else other


_COMPLEXITY_ORDER = tuple(ConversionComplexity)


class ParadigmCompatibility(str, Enum):
    IDENTICAL = "identical"
    COMPATIBLE = "compatible"
    PARTIAL = "partial"
    INCOMPATIBLE = "incompatible"


class ConversionType(str, Enum):
    DIRECT = "direct"        # 1:1
    SPLIT = "split"          # 1:N
    MERGE = "merge"          # N:1
    TRANSFORM = "transform"  # structural change
    EMULATE = "emulate"      # simulated with other objects
    DROP = "drop"            # cannot convert


class AutomationLevel(str, Enum):
    FULL = "full"
    PARTIAL = "partial"
    MANUAL = "manual"
    IMPOSSIBLE = "impossible"


class DecisionType(str, Enum):
    MAPPING = "mapping"
    STRATEGY = "strategy"
    DATA_LOSS = "data_loss"
    PERFORMANCE = "performance"
    STRUCTURAL = "structural"


class ConversionStrategy(str, Enum):
    DIRECT = "direct"
    NORMALIZATION = "normalization"
    DENORMALIZATION = "denormalization"
    DECOMPOSITION = "decomposition"
    AGGREGATION = "aggregation"
    HYBRID = "hybrid"


@dataclass(frozen=True)
class UserDecision:
    """A choice the planner cannot make on its own."""
    decision_type: DecisionType
    question: str
    options: tuple[str, ...] = ()
    default_option: str = ""
    impact: str = ""
    recommendation: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "decision_type": self.decision_type.value,
            "question": self.question,
            "options": list(self.options),
            "default_option": self.default_option,
            "impact": self.impact,
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class ObjectConversionRule:
    """
    How one source object kind is carried into the target technology.

    Attributes:
        source_object:     Source object kind (raw string for unknown tags).
        target_objects:    Target kinds; empty for dropped objects.
        conversion_type:   Nature of the mapping.
        required_context:  Context keys needed to execute the rule; keys
                           starting with ``enrichment.`` need enrichment data.
        user_decisions:    Choices that must be made before execution.
        automation_level:  How much of the rule can run unattended.
    """
    source_object: ObjectType | str
    target_objects: tuple[ObjectType, ...]
    conversion_type: ConversionType
    automation_level: AutomationLevel
    required_context: tuple[str, ...] = ()
    user_decisions: tuple[UserDecision, ...] = ()
    notes: str = ""

    def with_user_decision(self, decision: UserDecision) -> "ObjectConversionRule":
        """Return a copy carrying *decision*; full automation drops to partial."""
        automation = self.automation_level
        if automation == AutomationLevel.FULL:
            automation = AutomationLevel.PARTIAL
        return replace(
            self,
            user_decisions=self.user_decisions + (decision,),
            automation_level=automation,
        )

    def with_required_context(self, *keys: str) -> "ObjectConversionRule":
        merged = self.required_context + tuple(k for k in keys if k not in self.required_context)
        return replace(self, required_context=merged)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_object": getattr(self.source_object, "value", self.source_object),
            "target_objects": [t.value for t in self.target_objects],
            "conversion_type": self.conversion_type.value,
            "automation_level": self.automation_level.value,
            "required_context": list(self.required_context),
            "user_decisions": [d.to_dict() for d in self.user_decisions],
            "notes": self.notes,
        }


def direct_conversion(source: ObjectType, target: ObjectType) -> ObjectConversionRule:
    return ObjectConversionRule(
        source_object=source,
        target_objects=(target,),
        conversion_type=ConversionType.DIRECT,
        automation_level=AutomationLevel.FULL,
    )


def split_conversion(
    source: ObjectType,
    targets: tuple[ObjectType, ...],
    decisions: tuple[UserDecision, ...] = (),
    notes: str = "",
) -> ObjectConversionRule:
    return ObjectConversionRule(
        source_object=source,
        target_objects=targets,
        conversion_type=ConversionType.SPLIT,
        automation_level=AutomationLevel.PARTIAL if decisions else AutomationLevel.FULL,
        user_decisions=decisions,
        notes=notes,
    )


def emulated_conversion(
    source: ObjectType, targets: tuple[ObjectType, ...], notes: str = ""
) -> ObjectConversionRule:
    return ObjectConversionRule(
        source_object=source,
        target_objects=targets,
        conversion_type=ConversionType.EMULATE,
        automation_level=AutomationLevel.PARTIAL,
        notes=notes,
    )


def dropped_conversion(source: ObjectType | str, reason: str) -> ObjectConversionRule:
    return ObjectConversionRule(
        source_object=source,
        target_objects=(),
        conversion_type=ConversionType.DROP,
        automation_level=AutomationLevel.IMPOSSIBLE,
        notes=reason,
    )


@dataclass(frozen=True)
class ConversionMatrix:
    """Computed conversion plan for one (source, target) technology pair."""
    source_database: str
    target_database: str
    conversion_complexity: ConversionComplexity
    paradigm_compatibility: ParadigmCompatibility
    object_conversions: Mapping[ObjectType | str, ObjectConversionRule] = field(
        default_factory=dict
    )
    requires_user_input: bool = False
    requires_enrichment: bool = False
    unsupported_features: tuple[str, ...] = ()
    conversion_strategies: tuple[ConversionStrategy, ...] = ()
    estimated_duration: str = ""
    success_rate: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "object_conversions", MappingProxyType(dict(self.object_conversions))
        )

    def rule_for(self, object_type: ObjectType | str) -> ObjectConversionRule | None:
        return self.object_conversions.get(object_type)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_database": self.source_database,
            "target_database": self.target_database,
            "conversion_complexity": self.conversion_complexity.value,
            "paradigm_compatibility": self.paradigm_compatibility.value,
            "object_conversions": {
                getattr(k, "value", k): rule.to_dict()
                for k, rule in self.object_conversions.items()
            },
            "requires_user_input": self.requires_user_input,
            "requires_enrichment": self.requires_enrichment,
            "unsupported_features": list(self.unsupported_features),
            "conversion_strategies": [s.value for s in self.conversion_strategies],
            "estimated_duration": self.estimated_duration,
            "success_rate": self.success_rate,
        }


@dataclass(frozen=True)
class ConversionAnalysis:
    """Quick feasibility summary for a technology pair."""
    source_database: str
    target_database: str
    source_paradigms: tuple[Paradigm, ...]
    target_paradigms: tuple[Paradigm, ...]
    paradigm_compatibility: ParadigmCompatibility
    conversion_complexity: ConversionComplexity
    conversion_supported: bool
    requires_user_input: bool
    requires_enrichment: bool
    unsupported_features: tuple[str, ...] = ()
    available_strategies: tuple[ConversionStrategy, ...] = ()
    recommendations: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_database": self.source_database,
            "target_database": self.target_database,
            "source_paradigms": [p.value for p in self.source_paradigms],
            "target_paradigms": [p.value for p in self.target_paradigms],
            "paradigm_compatibility": self.paradigm_compatibility.value,
            "conversion_complexity": self.conversion_complexity.value,
            "conversion_supported": self.conversion_supported,
            "requires_user_input": self.requires_user_input,
            "requires_enrichment": self.requires_enrichment,
            "unsupported_features": list(self.unsupported_features),
            "available_strategies": [s.value for s in self.available_strategies],
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class ConversionStep:
    source: str
    target: str
    complexity: ConversionComplexity
    direct: bool
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.source,
            "to": self.target,
            "complexity": self.complexity.value,
            "direct": self.direct,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class ConversionPath:
    steps: tuple[ConversionStep, ...]
    total_complexity: ConversionComplexity
    recommended: bool
    notes: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "steps": [s.to_dict() for s in self.steps],
            "total_complexity": self.total_complexity.value,
            "recommended": self.recommended,
            "notes": list(self.notes),
        }
