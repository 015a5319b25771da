"""
models/resource.py
------------------
Typed resource locators and their resolved positions.

A :class:`ResourceAddress` identifies a point inside a schema or an external
resource: protocol, scope, object kind, object name and an ordered list of
path segments.  Resolving it against a unified model yields a
:class:`ResourceLocation`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from models.object_types import ObjectType, SchemaFormat, SegmentType, SelectorType


class Protocol(str, Enum):
    DATABASE = "redb"
    STREAM = "stream"
    WEBHOOK = "webhook"
    MCP = "mcp"


class Scope(str, Enum):
    DATA = "data"
    METADATA = "metadata"
    SCHEMA = "schema"


class StreamProvider(str, Enum):
    KAFKA = "kafka"
    MQTT = "mqtt"
    KINESIS = "kinesis"
    RABBITMQ = "rabbitmq"
    PULSAR = "pulsar"
    REDIS_STREAM = "redis-stream"
    NATS = "nats"
    EVENTHUB = "eventhub"
    CLOUDRUN = "cloudrun"


@dataclass(frozen=True)
class PathSegment:
    """One step below the addressed object (``column/email``, ``element/0``)."""
    type: SegmentType
    name: str = ""
    index: int | None = None

    def __str__(self) -> str:
        if self.index is not None:
            return f"{self.type.value}[{self.index}]"
        return f"{self.type.value}/{self.name}"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "name": self.name, "index": self.index}


@dataclass(frozen=True)
class Selector:
    type: SelectorType
    expression: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "expression": self.expression}


@dataclass(frozen=True)
class ResourceAddress:
    """
    Structured locator.

    Attributes:
        protocol:       Addressing family (database, stream, webhook, mcp).
        scope:          data / metadata / schema.
        database_id:    Database identifier (database protocol).
        connection_id:  Connection identifier (stream protocol).
        server_id:      Server identifier (webhook and mcp protocols).
        object_type:    Kind of the addressed top-level object; raw string
                        when the tag is unknown.
        object_name:    Name of the addressed top-level object.
        path_segments:  Ordered steps below the object.
    """
    protocol: Protocol
    scope: Scope
    object_type: ObjectType | str
    object_name: str
    database_id: str = ""
    connection_id: str = ""
    server_id: str = ""
    stream_provider: StreamProvider | None = None
    schema_format: SchemaFormat | None = None
    path_segments: tuple[PathSegment, ...] = ()
    selector: Selector | None = None

    @property
    def path(self) -> str:
        return "/".join(str(s) for s in self.path_segments)

    def to_dict(self) -> dict[str, Any]:
        return {
            "protocol": self.protocol.value,
            "scope": self.scope.value,
            "object_type": getattr(self.object_type, "value", self.object_type),
            "object_name": self.object_name,
            "database_id": self.database_id,
            "connection_id": self.connection_id,
            "server_id": self.server_id,
            "stream_provider": self.stream_provider.value if self.stream_provider else None,
            "schema_format": self.schema_format.value if self.schema_format else None,
            "path_segments": [s.to_dict() for s in self.path_segments],
            "selector": self.selector.to_dict() if self.selector else None,
        }


@dataclass
class ResourceLocation:
    """
    Resolved target of a :class:`ResourceAddress`.

    Attributes:
        parent:       The top-level object the address names.
        target:       The resolved child (``None`` for zero-segment addresses
                      or stub protocols).
        target_path:  Dotted path to the resolved element.
        data_type:    Declared type of the resolved child, if any.
        nested_path:  Segments below the child, recorded verbatim.
    """
    address: ResourceAddress
    parent: Any = None
    target: Any = None
    target_path: str = ""
    data_type: str = ""
    nested_path: list[PathSegment] = field(default_factory=list)
    is_nested: bool = False
    is_streaming: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address.to_dict(),
            "target_path": self.target_path,
            "data_type": self.data_type,
            "nested_path": [s.to_dict() for s in self.nested_path],
            "is_nested": self.is_nested,
            "is_streaming": self.is_streaming,
        }
