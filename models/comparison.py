"""
models/comparison.py
--------------------
Options and result records for schema comparison.

``ComparisonOptions`` is a pydantic model so the two calibration
thresholds are range-checked when a caller builds it; the result records
are plain dataclasses with ``to_dict`` like the rest of the planner output.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from config import CONFIG
from models.object_types import ObjectType


class ComparisonMode(str, Enum):
    STRUCTURAL = "structural"  # structure only
    GUIDED = "guided"          # structure, severity adjusted by enrichment
    ENRICHED = "enriched"      # guided plus enrichment-change records


class EnrichmentCategory(str, Enum):
    PRIVACY = "privacy"
    CLASSIFICATION = "classification"
    PERFORMANCE = "performance"
    COMPLIANCE = "compliance"
    DATA_QUALITY = "data_quality"
    USAGE = "usage"
    RELATIONSHIPS = "relationships"


class ChangeType(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    RENAMED = "renamed"
    MOVED = "moved"


class ChangeSeverity(str, Enum):
    MINOR = "minor"
    MAJOR = "major"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)


_SEVERITY_ORDER = tuple(ChangeSeverity)


def max_severity(*severities: ChangeSeverity | None) -> ChangeSeverity | None:
    present = [s for s in severities if s is not None]
    if not present:
        return None
    return max(present, key=lambda s: s.rank)


class MigrationComplexity(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EXTREME = "extreme"


class EnrichmentImpact(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ComparisonOptions(BaseModel):
    """Knobs for one comparison run."""
    mode: ComparisonMode = ComparisonMode.STRUCTURAL
    enrichment_categories: List[EnrichmentCategory] = Field(default_factory=list)

    ignore_comments: bool = True
    ignore_whitespace: bool = True
    case_sensitive: bool = False
    ignore_object_order: bool = True

    privacy_weight_threshold: float = Field(
        default_factory=lambda: CONFIG.comparison.privacy_weight_threshold, ge=0.0, le=1.0
    )
    score_tolerance: float = Field(
        default_factory=lambda: CONFIG.comparison.score_tolerance, ge=0.0, le=1.0
    )

    include_object_types: List[ObjectType] = Field(default_factory=list)
    exclude_object_types: List[ObjectType] = Field(default_factory=list)
    include_object_names: List[str] = Field(default_factory=list)
    exclude_object_names: List[str] = Field(default_factory=list)

    @classmethod
    def enriched(cls, **overrides: Any) -> "ComparisonOptions":
        """Preset for enrichment-aware comparison."""
        values: dict[str, Any] = {
            "mode": ComparisonMode.ENRICHED,
            "enrichment_categories": [
                EnrichmentCategory.PRIVACY,
                EnrichmentCategory.CLASSIFICATION,
                EnrichmentCategory.COMPLIANCE,
            ],
            "privacy_weight_threshold": 0.5,
            "score_tolerance": 0.15,
        }
        values.update(overrides)
        return cls(**values)

    @property
    def uses_enrichment(self) -> bool:
        return self.mode != ComparisonMode.STRUCTURAL

    def category_enabled(self, category: EnrichmentCategory) -> bool:
        return not self.enrichment_categories or category in self.enrichment_categories


@dataclass
class StructuralChange:
    """One structural difference between two schemas."""
    change_type: ChangeType
    object_type: ObjectType
    object_path: str
    description: str
    severity: ChangeSeverity
    is_breaking: bool = False
    source_value: Any = None
    target_value: Any = None
    raw_severity: Optional[ChangeSeverity] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "change_type": self.change_type.value,
            "object_type": self.object_type.value,
            "object_path": self.object_path,
            "description": self.description,
            "severity": self.severity.value,
            "raw_severity": (self.raw_severity or self.severity).value,
            "is_breaking": self.is_breaking,
            "source_value": self.source_value,
            "target_value": self.target_value,
        }


@dataclass
class EnrichmentChange:
    """One difference between the enrichment attached to two schemas."""
    change_type: ChangeType
    category: EnrichmentCategory
    object_path: str
    description: str
    impact: EnrichmentImpact
    source_enrichment: Any = None
    target_enrichment: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "change_type": self.change_type.value,
            "category": self.category.value,
            "object_path": self.object_path,
            "description": self.description,
            "impact": self.impact.value,
            "source_enrichment": self.source_enrichment,
            "target_enrichment": self.target_enrichment,
        }


@dataclass
class ObjectChange:
    """Object-level summary: an added, removed or modified container."""
    object_type: ObjectType
    object_name: str
    change_type: ChangeType
    details: list[StructuralChange] = field(default_factory=list)
    has_enrichment: bool = False
    enrichment_impact: Optional[EnrichmentImpact] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "object_type": self.object_type.value,
            "object_name": self.object_name,
            "change_type": self.change_type.value,
            "details": [d.to_dict() for d in self.details],
            "has_enrichment": self.has_enrichment,
            "enrichment_impact": self.enrichment_impact.value if self.enrichment_impact else None,
        }


@dataclass
class ComparisonResult:
    """Full outcome of comparing two unified models."""
    source_schema: str
    target_schema: str
    compared_at: datetime
    mode: ComparisonMode

    structural_changes: list[StructuralChange] = field(default_factory=list)
    added_objects: list[ObjectChange] = field(default_factory=list)
    removed_objects: list[ObjectChange] = field(default_factory=list)
    modified_objects: list[ObjectChange] = field(default_factory=list)
    enrichment_changes: list[EnrichmentChange] = field(default_factory=list)

    structural_similarity: float = 1.0
    enrichment_similarity: Optional[float] = None
    overall_similarity: float = 1.0
    compatibility_score: float = 1.0
    migration_complexity: MigrationComplexity = MigrationComplexity.NONE

    recommendations: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    compliance_issues: list[str] = field(default_factory=list)

    @property
    def has_structural_changes(self) -> bool:
        return bool(self.structural_changes)

    @property
    def has_enrichment_changes(self) -> bool:
        return bool(self.enrichment_changes)

    @property
    def breaking_changes(self) -> list[StructuralChange]:
        return [c for c in self.structural_changes if c.is_breaking]

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_schema": self.source_schema,
            "target_schema": self.target_schema,
            "compared_at": self.compared_at.isoformat(),
            "mode": self.mode.value,
            "has_structural_changes": self.has_structural_changes,
            "structural_changes": [c.to_dict() for c in self.structural_changes],
            "added_objects": [o.to_dict() for o in self.added_objects],
            "removed_objects": [o.to_dict() for o in self.removed_objects],
            "modified_objects": [o.to_dict() for o in self.modified_objects],
            "has_enrichment_changes": self.has_enrichment_changes,
            "enrichment_changes": [c.to_dict() for c in self.enrichment_changes],
            "structural_similarity": self.structural_similarity,
            "enrichment_similarity": self.enrichment_similarity,
            "overall_similarity": self.overall_similarity,
            "compatibility_score": self.compatibility_score,
            "migration_complexity": self.migration_complexity.value,
            "recommendations": list(self.recommendations),
            "warnings": list(self.warnings),
            "compliance_issues": list(self.compliance_issues),
        }
