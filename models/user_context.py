"""
Per-user conversion preference documents.

These are the documents exchanged with callers (UI, API, persistence
collaborators), so they are pydantic models: they validate on
construction, round-trip through ``model_dump()`` / ``model_validate()``,
and deep-copy with ``model_copy(deep=True)``.
"""
from enum import Enum
from typing import Optional, Dict, Any, List
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from models.conversion import ConversionStrategy, ConversionType
from models.object_types import ObjectType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ValidationLevel(str, Enum):
    """Severity of a context validation finding."""
    CRITICAL = "critical"
    WARNING = "warning"


class TransformRuleType(str, Enum):
    EXPRESSION = "expression"
    FUNCTION = "function"
    LOOKUP = "lookup"
    DEFAULT = "default"
    CONCAT = "concat"
    SPLIT = "split"
    FORMAT = "format"


class ValidationRuleType(str, Enum):
    REQUIRED = "required"
    RANGE = "range"
    PATTERN = "pattern"
    UNIQUE = "unique"
    REFERENCE = "reference"
    CUSTOM = "custom"


class ContextWarningType(str, Enum):
    OBJECT_NOT_FOUND = "object_not_found"
    INVALID_MAPPING = "invalid_mapping"
    CONFLICTING_RULES = "conflicting_rules"
    UNSUPPORTED_ACTION = "unsupported_action"


# ===== Preferences =====

class ConversionPreferences(BaseModel):
    """Global knobs that bias every conversion decision."""
    preferred_strategy: Optional[ConversionStrategy] = None
    accept_data_loss: bool = False
    optimize_for_performance: bool = True
    optimize_for_storage: bool = False
    preserve_relationships: bool = True
    include_metadata: bool = True
    custom_mappings: Dict[str, str] = Field(default_factory=dict)
    exclude_objects: List[str] = Field(default_factory=list)


# ===== Mappings =====

class UserDecisionResponse(BaseModel):
    """A user's answer to a planner decision."""
    decision_id: str = ""
    selected_option: str
    custom_parameters: Dict[str, Any] = Field(default_factory=dict)
    reasoning: str = ""
    apply_to_similar: bool = False


class UserObjectMapping(BaseModel):
    source_object_name: str
    source_object_type: Optional[ObjectType] = None
    target_object_name: str = ""
    target_object_type: Optional[ObjectType] = None
    conversion_type: Optional[ConversionType] = None
    user_decisions: List[UserDecisionResponse] = Field(default_factory=list)
    notes: str = ""


class UserDataTypeMapping(BaseModel):
    source_type: str = ""
    target_type: str = ""
    parameters: Dict[str, Any] = Field(default_factory=dict)
    lossy_conversion: bool = False
    notes: str = ""


class UserTransformRule(BaseModel):
    rule_type: TransformRuleType
    expression: str = ""
    parameters: Dict[str, Any] = Field(default_factory=dict)
    description: str = ""


class UserValidationRule(BaseModel):
    rule_type: ValidationRuleType
    expression: str = ""
    parameters: Dict[str, Any] = Field(default_factory=dict)
    error_level: ValidationLevel = ValidationLevel.WARNING
    message: str = ""
    description: str = ""


class UserFieldMapping(BaseModel):
    source_object_name: str = ""
    source_field_name: str = ""
    target_object_name: str = ""
    target_field_name: str = ""
    data_type_mapping: Optional[UserDataTypeMapping] = None
    transform_rules: List[UserTransformRule] = Field(default_factory=list)
    validation_rules: List[UserValidationRule] = Field(default_factory=list)
    is_required: bool = False


# ===== Custom rules =====

class UserRuleCondition(BaseModel):
    field: str
    operator: str = "equals"
    value: Any = None


class UserRuleAction(BaseModel):
    action_type: str
    parameters: Dict[str, Any] = Field(default_factory=dict)


class UserConversionRule(BaseModel):
    rule_id: str = ""
    name: str = ""
    description: str = ""
    conditions: List[UserRuleCondition] = Field(default_factory=list)
    actions: List[UserRuleAction] = Field(default_factory=list)
    priority: int = 0
    enabled: bool = True


# ===== Context document =====

class UserConversionContext(BaseModel):
    """
    Mutable, single-owner override document for one (source, target) pair.

    Merge and apply operations never modify a context in place; they work on
    deep copies, so two callers holding the same context cannot corrupt each
    other's reads.
    """
    context_id: str = ""
    user_id: str = ""
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    description: str = ""
    source_database: str = ""
    target_database: str = ""
    global_preferences: ConversionPreferences = Field(default_factory=ConversionPreferences)
    object_mappings: Dict[str, UserObjectMapping] = Field(default_factory=dict)
    field_mappings: Dict[str, UserFieldMapping] = Field(default_factory=dict)
    custom_rules: List[UserConversionRule] = Field(default_factory=list)
    ignored_objects: List[str] = Field(default_factory=list)
    required_validations: List[UserValidationRule] = Field(default_factory=list)

    @property
    def database_pair(self) -> tuple:
        return (self.source_database, self.target_database)


class ConversionRequest(BaseModel):
    """Request handed to migration-execution planning."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    request_id: str = ""
    source_schema: Optional[Any] = None
    source_database: str = ""
    target_database: str = ""
    enrichment: Optional[Any] = None
    user_preferences: ConversionPreferences = Field(default_factory=ConversionPreferences)
    conversion_mode: str = "standard"
    requested_by: str = ""
    requested_at: datetime = Field(default_factory=_utcnow)


# ===== Findings and templates =====

class ValidationFinding(BaseModel):
    """One problem found while validating a context or request."""
    level: ValidationLevel
    field: str
    message: str
    suggestion: str = ""


class ContextApplicationWarning(BaseModel):
    type: ContextWarningType
    message: str
    context: str = ""


class UserContextTemplate(BaseModel):
    name: str
    description: str
    preferences: ConversionPreferences
