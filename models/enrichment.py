"""
models/enrichment.py
--------------------
Analysis-derived metadata attached to a unified model by name.

Enrichment is versioned independently of the schema structure: an analysis
collaborator may recompute it at any time without invalidating the model.
Keys reference structural objects by name (``"orders"`` for a container,
``"orders.email"`` for one of its children).  Keys that no longer match
any object are tolerated and simply ignored by consumers.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class RiskLevel(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    MINIMAL = "minimal"


class DataCategory(str, Enum):
    PII = "pii"
    EMAIL = "email"
    PHONE = "phone"
    ADDRESS = "address"
    NAME = "name"
    SSN = "ssn"
    CREDIT_CARD = "credit_card"
    FINANCIAL = "financial"
    HEALTH = "health"
    CREDENTIAL = "credential"
    IDENTIFIER = "identifier"
    TIMESTAMP = "timestamp"
    GENERAL = "general"


class TableCategory(str, Enum):
    TRANSACTIONAL = "transactional"
    REFERENCE = "reference"
    ANALYTICAL = "analytical"
    AUDIT = "audit"
    CONFIGURATION = "configuration"
    STAGING = "staging"
    UNKNOWN = "unknown"


class AccessPattern(str, Enum):
    READ_HEAVY = "read_heavy"
    WRITE_HEAVY = "write_heavy"
    BALANCED = "balanced"
    APPEND_ONLY = "append_only"
    ARCHIVE = "archive"


class ComplianceFramework(str, Enum):
    GDPR = "gdpr"
    HIPAA = "hipaa"
    PCI = "pci"
    SOX = "sox"
    CCPA = "ccpa"
    FERPA = "ferpa"
    ISO27001 = "iso27001"


def _enum_or_none(enum_cls, value):
    if value is None or value == "":
        return None
    return enum_cls(value)


@dataclass
class ColumnEnrichment:
    """Privacy and classification facts about a single child element."""
    is_privileged_data: bool = False
    data_category: DataCategory | None = None
    privileged_confidence: float = 0.0
    risk_level: RiskLevel = RiskLevel.MINIMAL
    compliance_impact: list[ComplianceFramework] = field(default_factory=list)
    should_encrypt: bool = False
    should_mask: bool = False
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_privileged_data": self.is_privileged_data,
            "data_category": self.data_category.value if self.data_category else None,
            "privileged_confidence": self.privileged_confidence,
            "risk_level": self.risk_level.value,
            "compliance_impact": [c.value for c in self.compliance_impact],
            "should_encrypt": self.should_encrypt,
            "should_mask": self.should_mask,
            "description": self.description,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "ColumnEnrichment":
        return ColumnEnrichment(
            is_privileged_data=data.get("is_privileged_data", False),
            data_category=_enum_or_none(DataCategory, data.get("data_category")),
            privileged_confidence=float(data.get("privileged_confidence", 0.0)),
            risk_level=RiskLevel(data.get("risk_level", RiskLevel.MINIMAL.value)),
            compliance_impact=[ComplianceFramework(c) for c in data.get("compliance_impact", [])],
            should_encrypt=data.get("should_encrypt", False),
            should_mask=data.get("should_mask", False),
            description=data.get("description", ""),
        )


@dataclass
class TableEnrichment:
    """Classification and usage facts about a container."""
    primary_category: TableCategory = TableCategory.UNKNOWN
    classification_confidence: float = 0.0
    access_pattern: AccessPattern | None = None
    has_privileged_data: bool = False
    data_sensitivity: RiskLevel = RiskLevel.MINIMAL
    estimated_rows: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "primary_category": self.primary_category.value,
            "classification_confidence": self.classification_confidence,
            "access_pattern": self.access_pattern.value if self.access_pattern else None,
            "has_privileged_data": self.has_privileged_data,
            "data_sensitivity": self.data_sensitivity.value,
            "estimated_rows": self.estimated_rows,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "TableEnrichment":
        return TableEnrichment(
            primary_category=TableCategory(data.get("primary_category", TableCategory.UNKNOWN.value)),
            classification_confidence=float(data.get("classification_confidence", 0.0)),
            access_pattern=_enum_or_none(AccessPattern, data.get("access_pattern")),
            has_privileged_data=data.get("has_privileged_data", False),
            data_sensitivity=RiskLevel(data.get("data_sensitivity", RiskLevel.MINIMAL.value)),
            estimated_rows=data.get("estimated_rows"),
        )


@dataclass
class GraphEnrichment:
    """Entity/relationship hints for graph-shaped objects."""
    is_entity: bool = False
    entity_confidence: float = 0.0
    suggested_label: str = ""
    notes: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_entity": self.is_entity,
            "entity_confidence": self.entity_confidence,
            "suggested_label": self.suggested_label,
            "notes": self.notes,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "GraphEnrichment":
        return GraphEnrichment(
            is_entity=data.get("is_entity", False),
            entity_confidence=float(data.get("entity_confidence", 0.0)),
            suggested_label=data.get("suggested_label", ""),
            notes=data.get("notes", ""),
        )


@dataclass
class UnifiedModelEnrichment:
    """
    Name-keyed enrichment document for one schema.

    Attributes:
        schema_id:           Identifier of the schema this enrichment targets.
        enrichment_version:  Version of the analysis, independent of the
                             schema's own version.
        table_enrichments:   Keyed by container name.
        column_enrichments:  Keyed ``"<container>.<child>"``.
    """
    schema_id: str = ""
    enrichment_version: str = "1"
    generated_at: datetime | None = None
    generated_by: str = ""
    table_enrichments: dict[str, TableEnrichment] = field(default_factory=dict)
    column_enrichments: dict[str, ColumnEnrichment] = field(default_factory=dict)
    node_enrichments: dict[str, GraphEnrichment] = field(default_factory=dict)
    relationship_enrichments: dict[str, GraphEnrichment] = field(default_factory=dict)

    @staticmethod
    def column_key(container: str, child: str) -> str:
        return f"{container}.{child}"

    def column(self, container: str, child: str) -> ColumnEnrichment | None:
        return self.column_enrichments.get(self.column_key(container, child))

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_id": self.schema_id,
            "enrichment_version": self.enrichment_version,
            "generated_at": self.generated_at.isoformat() if self.generated_at else None,
            "generated_by": self.generated_by,
            "table_enrichments": {k: v.to_dict() for k, v in self.table_enrichments.items()},
            "column_enrichments": {k: v.to_dict() for k, v in self.column_enrichments.items()},
            "node_enrichments": {k: v.to_dict() for k, v in self.node_enrichments.items()},
            "relationship_enrichments": {
                k: v.to_dict() for k, v in self.relationship_enrichments.items()
            },
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "UnifiedModelEnrichment":
        generated_at = data.get("generated_at")
        return UnifiedModelEnrichment(
            schema_id=data.get("schema_id", ""),
            enrichment_version=str(data.get("enrichment_version", "1")),
            generated_at=datetime.fromisoformat(generated_at) if generated_at else None,
            generated_by=data.get("generated_by", ""),
            table_enrichments={
                k: TableEnrichment.from_dict(v)
                for k, v in data.get("table_enrichments", {}).items()
            },
            column_enrichments={
                k: ColumnEnrichment.from_dict(v)
                for k, v in data.get("column_enrichments", {}).items()
            },
            node_enrichments={
                k: GraphEnrichment.from_dict(v)
                for k, v in data.get("node_enrichments", {}).items()
            },
            relationship_enrichments={
                k: GraphEnrichment.from_dict(v)
                for k, v in data.get("relationship_enrichments", {}).items()
            },
        )
