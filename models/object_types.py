"""
models/object_types.py
----------------------
Shared enumerations for the unified schema model.

Design Decision:
    ``ObjectType`` is the primary key of every lookup table in the planner
    (capabilities, feature support, conversion rules).  Keeping all kinds
    in one ``str, Enum`` lets registries loaded from JSON compare equal to
    the enum members without a translation layer.
"""
from __future__ import annotations

from enum import Enum


class ObjectType(str, Enum):
    """Kind of schema object, across every supported paradigm."""
    # Data containers
    TABLE = "table"
    COLLECTION = "collection"
    VIEW = "view"
    MATERIALIZED_VIEW = "materialized_view"
    TEMPORARY_TABLE = "temporary_table"
    MEMORY_TABLE = "memory_table"
    EXTERNAL_TABLE = "external_table"
    FOREIGN_TABLE = "foreign_table"

    # Graph
    NODE = "node"
    RELATIONSHIP = "relationship"
    GRAPH = "graph"

    # Vector
    VECTOR = "vector"
    VECTOR_INDEX = "vector_index"
    EMBEDDING = "embedding"

    # Search
    SEARCH_INDEX = "search_index"
    DOCUMENT = "document"

    # Structural definitions
    COLUMN = "column"
    FIELD = "field"
    PROPERTY = "property"
    TYPE = "type"
    SEQUENCE = "sequence"

    # Integrity and performance
    INDEX = "index"
    CONSTRAINT = "constraint"

    # Executable code
    FUNCTION = "function"
    PROCEDURE = "procedure"
    TRIGGER = "trigger"
    AGGREGATE = "aggregate"
    OPERATOR = "operator"
    PACKAGE = "package"
    RULE = "rule"

    # Security and access control
    USER = "user"
    ROLE = "role"
    GRANT = "grant"
    POLICY = "policy"

    # Physical storage
    TABLESPACE = "tablespace"
    DATAFILE = "datafile"

    # Connectivity and integration
    SERVER = "server"
    CONNECTION = "connection"
    FOREIGN_DATA_WRAPPER = "foreign_data_wrapper"
    USER_MAPPING = "user_mapping"

    # Extensions
    EXTENSION = "extension"
    PLUGIN = "plugin"

    # Streaming
    TOPIC = "topic"
    QUEUE = "queue"
    STREAM = "stream"
    PARTITION = "partition"

    # Webhook
    ENDPOINT = "endpoint"
    REQUEST = "request"
    RESPONSE = "response"

    # MCP
    RESOURCE = "resource"
    TOOL = "tool"
    PROMPT = "prompt"


class Paradigm(str, Enum):
    """Broad data-model family a database technology belongs to."""
    RELATIONAL = "relational"
    DOCUMENT = "document"
    GRAPH = "graph"
    VECTOR = "vector"
    KEY_VALUE = "key_value"
    COLUMNAR = "columnar"
    WIDE_COLUMN = "wide_column"
    SEARCH_INDEX = "search_index"
    TIME_SERIES = "time_series"
    OBJECT_STORE = "object_store"
    STREAMING = "streaming"


class SegmentType(str, Enum):
    """Kind of a path segment inside a resource address."""
    COLUMN = "column"
    FIELD = "field"
    PROPERTY = "property"
    ELEMENT = "element"
    KEY = "key"
    PARTITION = "partition"
    HEADER = "header"
    QUERY = "query"
    PARAMETER = "parameter"
    BODY = "body"
    PATH = "path"
    ATTRIBUTES = "attributes"


class SelectorType(str, Enum):
    """Addressing selector dialects an object may accept."""
    JSONPATH = "jsonpath"
    XPATH = "xpath"
    REGEX = "regex"
    INDEX = "index"
    KEY = "key"
    WILDCARD = "wildcard"


class SchemaFormat(str, Enum):
    """Declared schema format of structured payloads."""
    AVRO = "avro"
    PROTOBUF = "protobuf"
    JSON = "json"
    XML = "xml"
    THRIFT = "thrift"
    CSV = "csv"
    PARQUET = "parquet"


_OBJECT_TYPE_VALUES = {member.value: member for member in ObjectType}
_DECLARATION_ORDER = {member: index for index, member in enumerate(ObjectType)}


def coerce_object_type(value: ObjectType | str) -> ObjectType | str:
    """
    Return the :class:`ObjectType` member for *value*, or the normalised raw
    string when the tag is not part of the enumeration.

    Examples::

        coerce_object_type("Table")     →  ObjectType.TABLE
        coerce_object_type("hologram")  →  "hologram"
    """
    if isinstance(value, ObjectType):
        return value
    tag = str(getattr(value, "value", value)).strip().lower()
    return _OBJECT_TYPE_VALUES.get(tag, tag)


def object_type_sort_key(value: ObjectType | str) -> tuple[int, str]:
    """Sort enum members in declaration order, unknown tags after them."""
    if isinstance(value, ObjectType):
        return (_DECLARATION_ORDER[value], "")
    return (len(_DECLARATION_ORDER), str(value))

