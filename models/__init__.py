"""models/__init__.py"""
from models.object_types import ObjectType, Paradigm, SegmentType, SelectorType, SchemaFormat
from models.unified_model import (
    UnifiedModel,
    Table,
    Collection,
    View,
    MaterializedView,
    Node,
    Relationship,
    Column,
    Field,
    Property,
)
from models.enrichment import UnifiedModelEnrichment, ColumnEnrichment, TableEnrichment, RiskLevel
from models.features import DatabaseFeatureSupport, ObjectSupport, SupportLevel, ConversionCapabilities
from models.conversion import (
    ConversionMatrix,
    ObjectConversionRule,
    UserDecision,
    ConversionComplexity,
    ConversionType,
    ParadigmCompatibility,
)
from models.comparison import ComparisonOptions, ComparisonResult, ComparisonMode, ChangeSeverity
from models.user_context import UserConversionContext, ConversionRequest, ConversionPreferences
from models.resource import ResourceAddress, ResourceLocation, PathSegment, Protocol, Scope

__all__ = [
    "ObjectType",
    "Paradigm",
    "SegmentType",
    "SelectorType",
    "SchemaFormat",
    "UnifiedModel",
    "Table",
    "Collection",
    "View",
    "MaterializedView",
    "Node",
    "Relationship",
    "Column",
    "Field",
    "Property",
    "UnifiedModelEnrichment",
    "ColumnEnrichment",
    "TableEnrichment",
    "RiskLevel",
    "DatabaseFeatureSupport",
    "ObjectSupport",
    "SupportLevel",
    "ConversionCapabilities",
    "ConversionMatrix",
    "ObjectConversionRule",
    "UserDecision",
    "ConversionComplexity",
    "ConversionType",
    "ParadigmCompatibility",
    "ComparisonOptions",
    "ComparisonResult",
    "ComparisonMode",
    "ChangeSeverity",
    "UserConversionContext",
    "ConversionRequest",
    "ConversionPreferences",
    "ResourceAddress",
    "ResourceLocation",
    "PathSegment",
    "Protocol",
    "Scope",
]
