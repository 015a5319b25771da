"""core/__init__.py"""
from core.errors import (
    PlannerError,
    NotFoundError,
    RegistryMissingError,
    InvalidAddressError,
    UnsupportedNavigationError,
    IncompatibleContextsError,
)
from core.capabilities import (
    get_object_capability,
    get_data_type_capability,
    can_store_values,
    is_metadata_property,
    supports_selector,
)
from core.type_converter import analyze_type_change, classify_conversion, ConversionSafety, get_base_type
from core.feature_registry import FeatureRegistry, RegistryHolder, default_registry
from core.conversion_matrix import (
    ConversionMatrixGenerator,
    is_conversion_possible,
    requires_user_interaction,
    get_unsupported_features,
    get_conversion_strategies,
)
from core.schema_comparator import SchemaComparator, compare_schemas
from core.context_manager import UserContextManager
from core.address import parse_resource_uri, format_resource_uri, validate_address
from core.navigator import ResourceNavigator, are_compatible, check_compatibility

__all__ = [
    "PlannerError",
    "NotFoundError",
    "RegistryMissingError",
    "InvalidAddressError",
    "UnsupportedNavigationError",
    "IncompatibleContextsError",
    "get_object_capability",
    "get_data_type_capability",
    "can_store_values",
    "is_metadata_property",
    "supports_selector",
    "analyze_type_change",
    "classify_conversion",
    "ConversionSafety",
    "get_base_type",
    "FeatureRegistry",
    "RegistryHolder",
    "default_registry",
    "ConversionMatrixGenerator",
    "is_conversion_possible",
    "requires_user_interaction",
    "get_unsupported_features",
    "get_conversion_strategies",
    "SchemaComparator",
    "compare_schemas",
    "UserContextManager",
    "parse_resource_uri",
    "format_resource_uri",
    "validate_address",
    "ResourceNavigator",
    "are_compatible",
    "check_compatibility",
]
