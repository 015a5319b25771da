"""
models/unified_model.py
-----------------------
Canonical, paradigm-agnostic snapshot of one database's schema.

A :class:`UnifiedModel` is produced by an external discovery step and is
treated as read-only by every planner component.  It holds named
collections of data containers (tables, collections, views, nodes, …);
each container exposes its children (columns, fields or properties) through
a uniform ``children`` property so comparison and navigation code can walk
any paradigm the same way.

Design Decision:
    The container-kind → collection-attribute table (``CONTAINER_ATTRIBUTES``)
    and the container-kind → child-segment table (``CHILD_SEGMENT``) are data,
    so adding a container kind is one row in each table rather than a new
    branch in every consumer.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Union

from models.object_types import ObjectType, SegmentType


class ConstraintType(str, Enum):
    PRIMARY_KEY = "primary_key"
    FOREIGN_KEY = "foreign_key"
    UNIQUE = "unique"
    CHECK = "check"
    NOT_NULL = "not_null"
    EXCLUSION = "exclusion"
    DEFAULT = "default"


# ---------------------------------------------------------------------------
# Children
# ---------------------------------------------------------------------------

@dataclass
class Column:
    """A relational column."""
    name: str
    data_type: str
    nullable: bool = True
    default: str | None = None
    is_primary_key: bool = False
    auto_increment: bool = False
    comment: str = ""
    collation: str = ""

    @property
    def required(self) -> bool:
        return not self.nullable

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "data_type": self.data_type,
            "nullable": self.nullable,
            "default": self.default,
            "is_primary_key": self.is_primary_key,
            "auto_increment": self.auto_increment,
            "comment": self.comment,
            "collation": self.collation,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Column":
        return Column(
            name=data.get("name", ""),
            data_type=data.get("data_type", data.get("type", "")),
            nullable=data.get("nullable", True),
            default=data.get("default"),
            is_primary_key=data.get("is_primary_key", False),
            auto_increment=data.get("auto_increment", False),
            comment=data.get("comment", ""),
            collation=data.get("collation", ""),
        )


@dataclass
class Field:
    """A document field."""
    name: str
    data_type: str
    required: bool = False
    comment: str = ""

    @property
    def nullable(self) -> bool:
        return not self.required

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.data_type,
            "required": self.required,
            "comment": self.comment,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Field":
        return Field(
            name=data.get("name", ""),
            data_type=data.get("type", data.get("data_type", "")),
            required=data.get("required", False),
            comment=data.get("comment", ""),
        )


@dataclass
class Property:
    """A graph node or relationship property."""
    name: str
    data_type: str
    required: bool = False

    @property
    def nullable(self) -> bool:
        return not self.required

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.data_type, "required": self.required}

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Property":
        return Property(
            name=data.get("name", ""),
            data_type=data.get("type", data.get("data_type", "")),
            required=data.get("required", False),
        )


AnyChild = Union[Column, Field, Property]


@dataclass
class Index:
    name: str
    columns: list[str] = field(default_factory=list)
    unique: bool = False
    index_type: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "columns": list(self.columns),
            "unique": self.unique,
            "type": self.index_type,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Index":
        return Index(
            name=data.get("name", ""),
            columns=list(data.get("columns", data.get("fields", []))),
            unique=data.get("unique", False),
            index_type=data.get("type", ""),
        )


@dataclass
class Constraint:
    name: str
    constraint_type: ConstraintType
    columns: list[str] = field(default_factory=list)
    expression: str = ""
    reference_table: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.constraint_type.value,
            "columns": list(self.columns),
            "expression": self.expression,
            "reference_table": self.reference_table,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Constraint":
        return Constraint(
            name=data.get("name", ""),
            constraint_type=ConstraintType(data.get("type", ConstraintType.CHECK.value)),
            columns=list(data.get("columns", [])),
            expression=data.get("expression", ""),
            reference_table=data.get("reference_table", ""),
        )


def _named(items: dict[str, Any] | list[dict[str, Any]] | None, factory) -> dict[str, Any]:
    """Build a name-keyed dict from either a name → spec dict or a list of specs."""
    if not items:
        return {}
    if isinstance(items, list):
        built = [factory(spec) for spec in items]
        return {obj.name: obj for obj in built}
    result = {}
    for name, spec in items.items():
        result[name] = factory({"name": name, **spec})
    return result


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------

@dataclass
class Table:
    name: str
    columns: dict[str, Column] = field(default_factory=dict)
    indexes: dict[str, Index] = field(default_factory=dict)
    constraints: dict[str, Constraint] = field(default_factory=dict)
    comment: str = ""
    owner: str = ""

    @property
    def children(self) -> dict[str, Column]:
        return self.columns

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "columns": {k: c.to_dict() for k, c in self.columns.items()},
            "indexes": {k: i.to_dict() for k, i in self.indexes.items()},
            "constraints": {k: c.to_dict() for k, c in self.constraints.items()},
            "comment": self.comment,
            "owner": self.owner,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Table":
        return Table(
            name=data.get("name", ""),
            columns=_named(data.get("columns"), Column.from_dict),
            indexes=_named(data.get("indexes"), Index.from_dict),
            constraints=_named(data.get("constraints"), Constraint.from_dict),
            comment=data.get("comment", ""),
            owner=data.get("owner", ""),
        )


@dataclass
class Collection:
    name: str
    fields: dict[str, Field] = field(default_factory=dict)
    indexes: dict[str, Index] = field(default_factory=dict)
    shard_key: list[str] = field(default_factory=list)
    comment: str = ""

    @property
    def children(self) -> dict[str, Field]:
        return self.fields

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "fields": {k: f.to_dict() for k, f in self.fields.items()},
            "indexes": {k: i.to_dict() for k, i in self.indexes.items()},
            "shard_key": list(self.shard_key),
            "comment": self.comment,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Collection":
        return Collection(
            name=data.get("name", ""),
            fields=_named(data.get("fields"), Field.from_dict),
            indexes=_named(data.get("indexes"), Index.from_dict),
            shard_key=list(data.get("shard_key", [])),
            comment=data.get("comment", ""),
        )


@dataclass
class View:
    name: str
    definition: str = ""
    columns: dict[str, Column] = field(default_factory=dict)
    comment: str = ""

    @property
    def children(self) -> dict[str, Column]:
        return self.columns

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "definition": self.definition,
            "columns": {k: c.to_dict() for k, c in self.columns.items()},
            "comment": self.comment,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "View":
        return View(
            name=data.get("name", ""),
            definition=data.get("definition", ""),
            columns=_named(data.get("columns"), Column.from_dict),
            comment=data.get("comment", ""),
        )


@dataclass
class MaterializedView:
    name: str
    definition: str = ""
    columns: dict[str, Column] = field(default_factory=dict)
    refresh_mode: str = ""

    @property
    def children(self) -> dict[str, Column]:
        return self.columns

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "definition": self.definition,
            "columns": {k: c.to_dict() for k, c in self.columns.items()},
            "refresh_mode": self.refresh_mode,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "MaterializedView":
        return MaterializedView(
            name=data.get("name", ""),
            definition=data.get("definition", ""),
            columns=_named(data.get("columns"), Column.from_dict),
            refresh_mode=data.get("refresh_mode", ""),
        )


@dataclass
class ExternalTable:
    name: str
    location: str = ""
    format: str = ""
    columns: dict[str, Column] = field(default_factory=dict)

    @property
    def children(self) -> dict[str, Column]:
        return self.columns

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "location": self.location,
            "format": self.format,
            "columns": {k: c.to_dict() for k, c in self.columns.items()},
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "ExternalTable":
        return ExternalTable(
            name=data.get("name", ""),
            location=data.get("location", ""),
            format=data.get("format", ""),
            columns=_named(data.get("columns"), Column.from_dict),
        )


@dataclass
class ForeignTable:
    name: str
    server: str = ""
    columns: dict[str, Column] = field(default_factory=dict)

    @property
    def children(self) -> dict[str, Column]:
        return self.columns

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "server": self.server,
            "columns": {k: c.to_dict() for k, c in self.columns.items()},
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "ForeignTable":
        return ForeignTable(
            name=data.get("name", ""),
            server=data.get("server", ""),
            columns=_named(data.get("columns"), Column.from_dict),
        )


@dataclass
class Node:
    """A graph node label."""
    label: str
    properties: dict[str, Property] = field(default_factory=dict)
    indexes: dict[str, Index] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.label

    @property
    def children(self) -> dict[str, Property]:
        return self.properties

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "properties": {k: p.to_dict() for k, p in self.properties.items()},
            "indexes": {k: i.to_dict() for k, i in self.indexes.items()},
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Node":
        return Node(
            label=data.get("label", data.get("name", "")),
            properties=_named(data.get("properties"), Property.from_dict),
            indexes=_named(data.get("indexes"), Index.from_dict),
        )


@dataclass
class Relationship:
    """A graph relationship type."""
    type: str
    from_label: str = ""
    to_label: str = ""
    properties: dict[str, Property] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.type

    @property
    def children(self) -> dict[str, Property]:
        return self.properties

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "from_label": self.from_label,
            "to_label": self.to_label,
            "properties": {k: p.to_dict() for k, p in self.properties.items()},
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Relationship":
        return Relationship(
            type=data.get("type", data.get("name", "")),
            from_label=data.get("from_label", ""),
            to_label=data.get("to_label", ""),
            properties=_named(data.get("properties"), Property.from_dict),
        )


AnyContainer = Union[
    Table, Collection, View, MaterializedView, ExternalTable, ForeignTable, Node, Relationship
]

# Walk order for comparison and catalogue iteration.
CONTAINER_ATTRIBUTES: tuple[tuple[ObjectType, str, Any], ...] = (
    (ObjectType.TABLE, "tables", Table),
    (ObjectType.COLLECTION, "collections", Collection),
    (ObjectType.VIEW, "views", View),
    (ObjectType.MATERIALIZED_VIEW, "materialized_views", MaterializedView),
    (ObjectType.EXTERNAL_TABLE, "external_tables", ExternalTable),
    (ObjectType.FOREIGN_TABLE, "foreign_tables", ForeignTable),
    (ObjectType.NODE, "nodes", Node),
    (ObjectType.RELATIONSHIP, "relationships", Relationship),
)

# The only segment kind accepted directly beneath each container kind.
CHILD_SEGMENT: dict[ObjectType, SegmentType] = {
    ObjectType.TABLE: SegmentType.COLUMN,
    ObjectType.VIEW: SegmentType.COLUMN,
    ObjectType.MATERIALIZED_VIEW: SegmentType.COLUMN,
    ObjectType.EXTERNAL_TABLE: SegmentType.COLUMN,
    ObjectType.FOREIGN_TABLE: SegmentType.COLUMN,
    ObjectType.COLLECTION: SegmentType.FIELD,
    ObjectType.NODE: SegmentType.PROPERTY,
    ObjectType.RELATIONSHIP: SegmentType.PROPERTY,
}

_ATTRIBUTE_BY_TYPE = {object_type: attr for object_type, attr, _ in CONTAINER_ATTRIBUTES}


@dataclass
class UnifiedModel:
    """
    Read-mostly schema snapshot for one database technology.

    Attributes:
        database_type: Technology tag (e.g. ``"postgres"``, ``"mongodb"``).
        tables … relationships: Name-keyed container collections.
    """
    database_type: str = ""
    tables: dict[str, Table] = field(default_factory=dict)
    collections: dict[str, Collection] = field(default_factory=dict)
    views: dict[str, View] = field(default_factory=dict)
    materialized_views: dict[str, MaterializedView] = field(default_factory=dict)
    external_tables: dict[str, ExternalTable] = field(default_factory=dict)
    foreign_tables: dict[str, ForeignTable] = field(default_factory=dict)
    nodes: dict[str, Node] = field(default_factory=dict)
    relationships: dict[str, Relationship] = field(default_factory=dict)

    def objects_of(self, object_type: ObjectType | str) -> dict[str, AnyContainer]:
        """Return the name-keyed collection for *object_type* (empty if none)."""
        attr = _ATTRIBUTE_BY_TYPE.get(object_type)  # type: ignore[arg-type]
        if attr is None:
            return {}
        return getattr(self, attr)

    def get_object(self, object_type: ObjectType | str, name: str) -> AnyContainer | None:
        return self.objects_of(object_type).get(name)

    def iter_containers(self) -> Iterator[tuple[ObjectType, str, AnyContainer]]:
        """Yield ``(object_type, name, container)`` in the fixed walk order."""
        for object_type, attr, _ in CONTAINER_ATTRIBUTES:
            for name, obj in getattr(self, attr).items():
                yield object_type, name, obj

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"database_type": self.database_type}
        for _, attr, _ in CONTAINER_ATTRIBUTES:
            data[attr] = {name: obj.to_dict() for name, obj in getattr(self, attr).items()}
        return data

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "UnifiedModel":
        model = UnifiedModel(database_type=data.get("database_type", ""))
        for object_type, attr, cls in CONTAINER_ATTRIBUTES:
            raw = data.get(attr) or {}
            built: dict[str, Any] = {}
            for name, spec in raw.items():
                key = "label" if object_type == ObjectType.NODE else (
                    "type" if object_type == ObjectType.RELATIONSHIP else "name"
                )
                built[name] = cls.from_dict({key: name, **spec})
            setattr(model, attr, built)
        return model
