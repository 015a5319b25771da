"""
core/feature_registry.py
------------------------
Per-technology feature-support catalogue and its publication mechanism.

    FeatureRegistry   – immutable snapshot of DatabaseFeatureSupport records
                        keyed by lower-cased technology tag.
    RegistryHolder    – single reference to the current snapshot; a reload
                        publishes a new snapshot with one swap.
    default_registry()  – the built-in catalogue, built once.

Design Decision:
    Generators receive a registry (or a holder) instead of reading a module
    global.  Snapshots are never edited in place; ``with_record`` and
    ``without`` return new registries, so a reader holding the old snapshot
    keeps a consistent view while a reload is published.
"""
from __future__ import annotations

import threading
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Iterable, Iterator

from core.errors import RegistryMissingError
from logger import get_logger
from models.features import (
    ConversionCapabilities,
    DatabaseFeatureSupport,
    emulated,
    full,
    partial,
    unsupported,
)
from models.object_types import ObjectType as OT, Paradigm

log = get_logger(__name__)


def _key(database_type: str) -> str:
    return str(getattr(database_type, "value", database_type)).strip().lower()


class FeatureRegistry:
    """
    Read-only lookup of :class:`DatabaseFeatureSupport` by technology tag.

    Tags are matched case-insensitively (``"PostgreSQL"`` == ``"postgresql"``).
    """

    def __init__(self, records: Iterable[DatabaseFeatureSupport] = ()) -> None:
        self._records = MappingProxyType({_key(r.database_type): r for r in records})

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, database_type: str) -> DatabaseFeatureSupport:
        """
        Return the record for *database_type*.

        Raises:
            RegistryMissingError: When the technology is not registered.
        """
        record = self._records.get(_key(database_type))
        if record is None:
            raise RegistryMissingError(
                f"No feature-support entry for database '{database_type}'",
                field_path="database_type",
                expected="a registered technology",
                actual=database_type,
            )
        return record

    def find(self, database_type: str) -> DatabaseFeatureSupport | None:
        return self._records.get(_key(database_type))

    def databases(self) -> tuple[str, ...]:
        return tuple(sorted(self._records))

    def __contains__(self, database_type: object) -> bool:
        return isinstance(database_type, str) and _key(database_type) in self._records

    def __iter__(self) -> Iterator[DatabaseFeatureSupport]:
        return iter(self._records[k] for k in sorted(self._records))

    def __len__(self) -> int:
        return len(self._records)

    # ------------------------------------------------------------------
    # Derivation (new snapshots, never in-place edits)
    # ------------------------------------------------------------------

    def with_record(self, record: DatabaseFeatureSupport) -> "FeatureRegistry":
        """Return a new registry with *record* added or replaced."""
        merged = dict(self._records)
        merged[_key(record.database_type)] = record
        return FeatureRegistry(merged.values())

    def without(self, database_type: str) -> "FeatureRegistry":
        return FeatureRegistry(
            r for k, r in self._records.items() if k != _key(database_type)
        )

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {k: self._records[k].to_dict() for k in sorted(self._records)}

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "FeatureRegistry":
        """
        Build a registry from ``{tag: record_dict}``.

        The record's own ``database_type`` defaults to the outer key.
        """
        records = []
        for tag, raw in data.items():
            raw = dict(raw)
            raw.setdefault("database_type", tag)
            records.append(DatabaseFeatureSupport.from_dict(raw))
        return FeatureRegistry(records)


class RegistryHolder:
    """
    Publishes registry snapshots to concurrent readers.

    ``current()`` is a plain attribute read; ``publish()`` replaces the single
    reference under a lock, so a reader sees either the old snapshot or the
    new one, never a mixture.
    """

    def __init__(self, registry: FeatureRegistry | None = None) -> None:
        self._lock = threading.Lock()
        self._registry = registry if registry is not None else default_registry()

    def current(self) -> FeatureRegistry:
        return self._registry

    def publish(self, registry: FeatureRegistry) -> FeatureRegistry:
        """Swap in *registry*; return the snapshot it replaced."""
        with self._lock:
            previous = self._registry
            self._registry = registry
        log.info(
            "Published feature registry: %d technologies (previously %d).",
            len(registry), len(previous),
        )
        return previous


# ---------------------------------------------------------------------------
# Built-in catalogue
# ---------------------------------------------------------------------------

# Objects every SQL engine below handles natively; each record overlays its
# own differences on top.
_RELATIONAL_BASE = {
    OT.TABLE: full(),
    OT.VIEW: full(),
    OT.TEMPORARY_TABLE: full(),
    OT.COLUMN: full(),
    OT.TYPE: full(),
    OT.SEQUENCE: full(),
    OT.INDEX: full(),
    OT.CONSTRAINT: full(),
    OT.FUNCTION: full(),
    OT.PROCEDURE: full(),
    OT.TRIGGER: full(),
    OT.USER: full(),
    OT.ROLE: full(),
    OT.GRANT: full(),
    OT.COLLECTION: unsupported([OT.TABLE], "Use tables instead"),
    OT.NODE: unsupported([OT.TABLE], "Use tables with foreign keys"),
}

_OBJECT_STORE_OBJECTS = {
    OT.TABLE: unsupported(notes="Object storage, not relational"),
    OT.COLLECTION: unsupported(notes="Object storage, not document-based"),
    OT.DOCUMENT: unsupported(notes="Objects are files, not documents"),
    OT.NODE: unsupported(notes="Object storage, not graph-based"),
    OT.VECTOR: unsupported(notes="Object storage, not vector-based"),
}


def _record(
    database_type: str,
    display_name: str,
    paradigms: Iterable[Paradigm],
    objects: dict,
    **conversion: Any,
) -> DatabaseFeatureSupport:
    caps = {k: tuple(v) if isinstance(v, list) else v for k, v in conversion.items()}
    return DatabaseFeatureSupport(
        database_type=database_type,
        display_name=display_name,
        paradigms=frozenset(paradigms),
        supported_objects=objects,
        conversion=ConversionCapabilities(**caps),
    )


def _builtin_records() -> list[DatabaseFeatureSupport]:
    rel = Paradigm.RELATIONAL
    return [
        _record("postgresql", "PostgreSQL", [rel], {
            **_RELATIONAL_BASE,
            OT.MATERIALIZED_VIEW: full(),
            OT.EXTERNAL_TABLE: partial(["foreign data wrappers"], "Via foreign data wrappers"),
            OT.FOREIGN_TABLE: full(),
            OT.VECTOR: partial(["requires pgvector extension"], "Vector support via extension"),
            OT.AGGREGATE: full(),
            OT.OPERATOR: full(),
            OT.PACKAGE: unsupported([OT.FUNCTION], "Use functions and schemas"),
            OT.RULE: full(),
            OT.POLICY: full(),
            OT.TABLESPACE: full(),
            OT.DATAFILE: unsupported([OT.TABLESPACE], "Managed by tablespaces"),
            OT.SERVER: full(),
            OT.CONNECTION: full(),
            OT.FOREIGN_DATA_WRAPPER: full(),
            OT.USER_MAPPING: full(),
            OT.EXTENSION: full(),
            OT.PLUGIN: unsupported([OT.EXTENSION], "Use extensions instead"),
        }, preferred_target_types=["mysql", "cockroachdb"]),

        _record("mysql", "MySQL", [rel], {
            **_RELATIONAL_BASE,
            OT.MATERIALIZED_VIEW: unsupported([OT.VIEW], "Use views instead"),
            OT.EXTERNAL_TABLE: unsupported([OT.TABLE], "Use regular tables"),
            OT.FOREIGN_TABLE: unsupported([OT.TABLE], "Use regular tables"),
            OT.VECTOR: unsupported(notes="Vector operations not supported"),
            OT.TYPE: partial(["limited custom types"], "Basic type support"),
            OT.SEQUENCE: unsupported([OT.COLUMN], "Use AUTO_INCREMENT columns"),
            OT.AGGREGATE: unsupported([OT.FUNCTION], "Use functions instead"),
            OT.OPERATOR: unsupported(notes="Custom operators not supported"),
            OT.PACKAGE: unsupported([OT.FUNCTION], "Use functions and databases"),
            OT.RULE: unsupported([OT.TRIGGER], "Use triggers instead"),
            OT.POLICY: unsupported([OT.GRANT], "Use grants and views"),
            OT.TABLESPACE: unsupported(notes="Uses data directories"),
            OT.DATAFILE: unsupported(notes="Managed by MySQL"),
            OT.SERVER: unsupported(notes="No federated server support"),
            OT.CONNECTION: unsupported(notes="No persistent connections"),
            OT.FOREIGN_DATA_WRAPPER: unsupported(notes="No FDW support"),
            OT.USER_MAPPING: unsupported(notes="No user mapping"),
            OT.EXTENSION: unsupported([OT.PLUGIN], "Server plugins are installed outside the schema"),
        }, preferred_target_types=["postgresql", "mariadb"]),

        _record("mariadb", "MariaDB", [rel], {
            **_RELATIONAL_BASE,
            OT.MATERIALIZED_VIEW: unsupported([OT.VIEW], "Use views instead"),
            OT.SEQUENCE: full(),
            OT.VECTOR: unsupported(notes="Vector operations not supported"),
        }, preferred_target_types=["mysql", "postgresql"]),

        _record("sqlserver", "SQL Server", [rel], {
            **_RELATIONAL_BASE,
            OT.MATERIALIZED_VIEW: partial(["indexed views only"], "Materialized views via indexed views"),
            OT.VECTOR: unsupported(notes="Vector operations not natively supported"),
            OT.POLICY: full(),
        }, preferred_target_types=["postgresql", "mysql"],
            special_requirements=["May require schema name mapping"]),

        _record("oracle", "Oracle", [rel], {
            **_RELATIONAL_BASE,
            OT.MATERIALIZED_VIEW: full(),
            OT.PACKAGE: full(),
            OT.TABLESPACE: full(),
            OT.DATAFILE: full(),
            OT.VECTOR: partial(["Oracle AI Vector Search"], "Vector support in 23c+"),
        }, preferred_target_types=["postgresql", "sqlserver"],
            conversion_limitations=[
                "Complex PL/SQL may not convert directly",
                "Oracle-specific features may be lost",
            ]),

        _record("cockroachdb", "CockroachDB", [rel], {
            **_RELATIONAL_BASE,
            OT.MATERIALIZED_VIEW: unsupported([OT.VIEW], "Use views instead"),
            OT.VECTOR: partial(["vector similarity"], "Vector operations via extensions"),
        }, preferred_target_types=["postgresql", "mysql"]),

        _record("mongodb", "MongoDB", [Paradigm.DOCUMENT], {
            OT.COLLECTION: full(),
            OT.DOCUMENT: full(),
            OT.TABLE: unsupported([OT.COLLECTION], "Use collections instead"),
            OT.VIEW: partial(["read-only views"], "Views are read-only"),
            OT.MATERIALIZED_VIEW: unsupported([OT.VIEW], "Use views instead"),
            OT.TEMPORARY_TABLE: unsupported([OT.COLLECTION], "Use collections with TTL"),
            OT.EXTERNAL_TABLE: unsupported([OT.COLLECTION], "Use collections"),
            OT.FOREIGN_TABLE: unsupported([OT.COLLECTION], "Use collections"),
            OT.NODE: unsupported([OT.DOCUMENT], "Use documents with references"),
            OT.VECTOR: partial(["requires Atlas Vector Search"], "Vector search via Atlas"),
            OT.FIELD: full(),
            OT.COLUMN: unsupported([OT.FIELD], "Schema-less documents"),
            OT.TYPE: unsupported([OT.DOCUMENT], "Dynamic typing"),
            OT.SEQUENCE: unsupported([OT.DOCUMENT], "Use ObjectId or counters"),
            OT.INDEX: full(),
            OT.CONSTRAINT: partial(["schema validation"], "Document validation rules"),
            OT.FUNCTION: partial(["JavaScript functions"], "Server-side JavaScript"),
            OT.PROCEDURE: unsupported([OT.FUNCTION], "Use JavaScript functions"),
            OT.TRIGGER: partial(["change streams"], "Database triggers via change streams"),
            OT.AGGREGATE: full(),
            OT.OPERATOR: partial(["aggregation operators"], "Aggregation pipeline operators"),
            OT.PACKAGE: unsupported(notes="No package concept"),
            OT.RULE: unsupported([OT.CONSTRAINT], "Use validation rules"),
            OT.USER: full(),
            OT.ROLE: full(),
            OT.GRANT: full(),
            OT.POLICY: unsupported([OT.ROLE], "Use role-based access"),
            OT.TABLESPACE: unsupported(notes="Managed by MongoDB"),
            OT.DATAFILE: unsupported(notes="Managed by MongoDB"),
            OT.SERVER: unsupported(notes="No federated servers"),
            OT.CONNECTION: unsupported(notes="Connection pooling handled by drivers"),
            OT.FOREIGN_DATA_WRAPPER: unsupported(notes="No FDW concept"),
            OT.USER_MAPPING: unsupported(notes="No user mapping"),
            OT.EXTENSION: unsupported(notes="No extension system"),
            OT.PLUGIN: unsupported(notes="No plugin system"),
        }, preferred_source_types=["postgresql", "mysql"],
            conversion_limitations=[
                "Foreign key relationships become references or embedded documents",
            ]),

        _record("neo4j", "Neo4j", [Paradigm.GRAPH], {
            OT.NODE: full(),
            OT.RELATIONSHIP: full(),
            OT.GRAPH: full(),
            OT.PROPERTY: full(),
            OT.INDEX: full(),
            OT.CONSTRAINT: full(),
            OT.USER: full(),
            OT.ROLE: full(),
            OT.TABLE: unsupported([OT.NODE, OT.RELATIONSHIP], "Rows become nodes, foreign keys become relationships"),
            OT.COLLECTION: unsupported([OT.NODE], "Use nodes instead"),
            OT.COLUMN: unsupported([OT.PROPERTY], "Columns become node properties"),
            OT.FIELD: unsupported([OT.PROPERTY], "Fields become node properties"),
            OT.VECTOR: partial(["requires APOC or GDS"], "Vector operations via plugins"),
        }, preferred_source_types=["postgresql", "mysql"],
            special_requirements=["Requires enrichment data to identify entities and relationships"]),

        _record("elasticsearch", "Elasticsearch", [Paradigm.SEARCH_INDEX], {
            OT.SEARCH_INDEX: full(),
            OT.DOCUMENT: full(),
            OT.FIELD: full(),
            OT.INDEX: full(),
            OT.TABLE: unsupported([OT.SEARCH_INDEX], "Use indices instead"),
            OT.COLLECTION: unsupported([OT.SEARCH_INDEX], "Use indices instead"),
            OT.COLUMN: unsupported([OT.FIELD], "Columns become mapped fields"),
            OT.VECTOR: partial(["dense_vector mapping required"], "Vectors stored as dense_vector fields"),
        }, preferred_source_types=["mongodb", "postgresql"],
            conversion_limitations=["Optimized for search, not transactional operations"]),

        _record("milvus", "Milvus", [Paradigm.VECTOR], {
            OT.VECTOR: full(),
            OT.VECTOR_INDEX: full(),
            OT.EMBEDDING: full(),
            OT.COLLECTION: partial(["vector collections only"], "Collections store vectors"),
            OT.TABLE: unsupported([OT.COLLECTION], "Use vector collections"),
            OT.DOCUMENT: unsupported([OT.VECTOR], "Use vectors with metadata"),
        }, can_be_source=False, preferred_source_types=["mongodb", "elasticsearch"],
            special_requirements=["Requires vector embeddings to be generated from source data"]),

        _record("pinecone", "Pinecone", [Paradigm.VECTOR], {
            OT.VECTOR: full(),
            OT.VECTOR_INDEX: full(),
            OT.EMBEDDING: full(),
            OT.COLLECTION: unsupported([OT.VECTOR_INDEX], "Use indexes instead"),
            OT.DOCUMENT: unsupported([OT.VECTOR], "Use vectors with metadata"),
            OT.TABLE: unsupported([OT.VECTOR_INDEX, OT.VECTOR], "Rows become vectors in an index"),
            OT.NODE: unsupported([OT.VECTOR], "Use vectors instead"),
        }, can_be_source=False, preferred_source_types=["mongodb", "elasticsearch"],
            special_requirements=["Requires vector embeddings", "Fixed vector dimensions"]),

        _record("redis", "Redis", [Paradigm.KEY_VALUE], {
            OT.TABLE: unsupported(notes="Redis is key-value, not relational"),
            OT.COLLECTION: unsupported(notes="Redis is key-value, not document-based"),
            OT.DOCUMENT: partial(["requires RedisJSON module"], "JSON documents via module"),
            OT.STREAM: full(),
            OT.VECTOR: partial(["requires RedisSearch module"], "Vector search via module"),
        }, conversion_limitations=["Limited schema conversion due to key-value nature"]),

        _record("clickhouse", "ClickHouse", [Paradigm.COLUMNAR], {
            **_RELATIONAL_BASE,
            OT.MATERIALIZED_VIEW: full(),
            OT.SEQUENCE: unsupported(notes="No sequences"),
            OT.PROCEDURE: unsupported([OT.FUNCTION], "Use user-defined functions"),
            OT.TRIGGER: emulated([OT.MATERIALIZED_VIEW], "Insert-time materialized views"),
            OT.CONSTRAINT: partial(["CHECK constraints only"], "No foreign keys"),
            OT.VECTOR: partial(["vector similarity functions"], "Vector operations via functions"),
        }, preferred_source_types=["postgresql", "mysql"],
            conversion_limitations=["Optimized for analytics, not OLTP", "Limited UPDATE/DELETE support"]),

        _record("snowflake", "Snowflake", [Paradigm.COLUMNAR], {
            **_RELATIONAL_BASE,
            OT.MATERIALIZED_VIEW: full(),
            OT.EXTERNAL_TABLE: full(),
            OT.TRIGGER: emulated([OT.STREAM], "Streams and tasks replace triggers"),
            OT.STREAM: full(),
            OT.POLICY: full(),
            OT.VECTOR: partial(["vector functions"], "Vector operations via functions"),
        }, preferred_source_types=["postgresql", "clickhouse"],
            conversion_limitations=["Optimized for analytics workloads", "May require data modeling changes"]),

        _record("cassandra", "Cassandra", [Paradigm.WIDE_COLUMN], {
            OT.TABLE: full(),
            OT.COLUMN: full(),
            OT.INDEX: partial(["secondary indexes are local to a partition"], "Use query tables for lookups"),
            OT.TYPE: full(),
            OT.FUNCTION: full(),
            OT.AGGREGATE: full(),
            OT.USER: full(),
            OT.ROLE: full(),
            OT.GRANT: full(),
            OT.VIEW: emulated([OT.MATERIALIZED_VIEW], "Only materialized views supported"),
            OT.MATERIALIZED_VIEW: full(),
            OT.COLLECTION: unsupported([OT.TABLE], "Use tables (column families)"),
            OT.NODE: unsupported([OT.TABLE], "Use tables with partition keys"),
            OT.CONSTRAINT: unsupported(notes="Only primary keys are enforced"),
            OT.VECTOR: partial(["vector similarity search"], "Vector search via plugins"),
        }, preferred_source_types=["postgresql", "mongodb"],
            conversion_limitations=["Requires denormalization", "Limited JOIN support", "Partition key design critical"]),

        _record("dynamodb", "DynamoDB", [Paradigm.KEY_VALUE, Paradigm.DOCUMENT], {
            OT.TABLE: partial(["NoSQL tables only"], "Tables without fixed schema"),
            OT.COLLECTION: unsupported([OT.TABLE], "Tables store items (documents)"),
            OT.DOCUMENT: full(),
            OT.INDEX: partial(["global and local secondary indexes"], "Index count is limited"),
            OT.VIEW: unsupported(notes="No views in DynamoDB"),
            OT.NODE: unsupported([OT.TABLE], "Use tables with partition keys"),
            OT.VECTOR: unsupported(notes="Vector operations not supported"),
        }, preferred_source_types=["mongodb", "postgresql"],
            conversion_limitations=["No complex queries", "Single-table design preferred", "Partition key design critical"]),

        _record("cosmosdb", "Cosmos DB",
                [Paradigm.DOCUMENT, Paradigm.GRAPH, Paradigm.KEY_VALUE], {
            OT.COLLECTION: full(),
            OT.DOCUMENT: full(),
            OT.NODE: full(),
            OT.RELATIONSHIP: full(),
            OT.INDEX: full(),
            OT.TABLE: unsupported([OT.COLLECTION], "Use collections instead"),
            OT.VIEW: unsupported(notes="No views in CosmosDB"),
            OT.VECTOR: partial(["vector search preview"], "Vector search in preview"),
        }, preferred_source_types=["mongodb", "neo4j", "postgresql"],
            special_requirements=["Choose appropriate API (SQL, MongoDB, Gremlin, Table)"]),

        _record("edgedb", "EdgeDB", [rel, Paradigm.GRAPH], {
            OT.TABLE: partial(["object types instead of tables"], "Uses object types"),
            OT.VIEW: unsupported([OT.TABLE], "Use computed properties"),
            OT.MATERIALIZED_VIEW: unsupported([OT.TABLE], "Use computed properties"),
            OT.COLLECTION: unsupported([OT.TABLE], "Use object types"),
            OT.NODE: full(),
            OT.RELATIONSHIP: full(),
            OT.COLUMN: full(),
            OT.PROPERTY: full(),
            OT.INDEX: full(),
            OT.CONSTRAINT: full(),
            OT.FUNCTION: full(),
            OT.VECTOR: unsupported(notes="Vector operations not supported"),
        }, preferred_source_types=["postgresql", "neo4j"],
            special_requirements=["Requires schema redesign to EdgeDB object model"]),

        _record("s3", "Amazon S3", [Paradigm.OBJECT_STORE], dict(_OBJECT_STORE_OBJECTS),
                conversion_limitations=[
                    "File-based storage only", "No schema enforcement", "No querying capabilities",
                ]),
    ]


@lru_cache(maxsize=1)
def default_registry() -> FeatureRegistry:
    """Return the built-in registry (built on first call, then shared)."""
    registry = FeatureRegistry(_builtin_records())
    log.debug("Built default feature registry with %d technologies.", len(registry))
    return registry
