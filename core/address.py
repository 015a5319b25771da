"""
core/address.py
---------------
Parsing and validation of resource URIs.

Supported forms (an optional ``#selector`` may follow any of them)::

    redb://<scope>/database/<id>/<object_type>/<name>[/<segment>/<name>]...
    stream://<provider>/[connection/]<id>/<object_type>/<name>[/...]
    webhook://<server_id>/[<endpoint>/]<request|response>[/...]
    mcp://<server_id>/<resource|tool|prompt>/<name>[/...]

Segments are ``<kind>/<name>`` pairs; ``name[3]`` carries an element index.
``body`` and ``attributes`` take no name.  A ``schema/<format>`` pair in a
stream address sets the schema format instead of adding a segment.

Design Decision:
    Parsing only checks shape; :func:`validate_address` checks meaning
    (scope, object kind per protocol, segment kind per object kind).  The
    navigator calls the latter first, so hand-built addresses get the same
    checks as parsed ones.
"""
from __future__ import annotations

import re
from dataclasses import replace
from urllib.parse import unquote, urlsplit

from core.errors import InvalidAddressError
from models.object_types import ObjectType, SchemaFormat, SegmentType, SelectorType, coerce_object_type
from models.resource import (
    PathSegment,
    Protocol,
    ResourceAddress,
    Scope,
    Selector,
    StreamProvider,
)

# ---------------------------------------------------------------------------
# Protocol rules
# ---------------------------------------------------------------------------
_DATABASE_OBJECTS = frozenset({
    ObjectType.TABLE, ObjectType.COLLECTION, ObjectType.VIEW, ObjectType.MATERIALIZED_VIEW,
    ObjectType.NODE, ObjectType.RELATIONSHIP, ObjectType.EXTERNAL_TABLE, ObjectType.FOREIGN_TABLE,
})
_STREAM_OBJECTS = frozenset({ObjectType.TOPIC, ObjectType.QUEUE, ObjectType.STREAM, ObjectType.PARTITION})
_WEBHOOK_OBJECTS = frozenset({ObjectType.ENDPOINT, ObjectType.REQUEST, ObjectType.RESPONSE})
_MCP_OBJECTS = frozenset({ObjectType.RESOURCE, ObjectType.TOOL, ObjectType.PROMPT})

PROTOCOL_OBJECT_TYPES = {
    Protocol.DATABASE: _DATABASE_OBJECTS,
    Protocol.STREAM: _STREAM_OBJECTS,
    Protocol.WEBHOOK: _WEBHOOK_OBJECTS,
    Protocol.MCP: _MCP_OBJECTS,
}

_SEG = SegmentType
_TABLE_SEGMENTS = frozenset({_SEG.COLUMN, _SEG.FIELD, _SEG.ELEMENT, _SEG.KEY})
_VALID_SEGMENTS = {
    ObjectType.TABLE: _TABLE_SEGMENTS,
    ObjectType.VIEW: _TABLE_SEGMENTS,
    ObjectType.MATERIALIZED_VIEW: _TABLE_SEGMENTS,
    ObjectType.EXTERNAL_TABLE: _TABLE_SEGMENTS,
    ObjectType.FOREIGN_TABLE: _TABLE_SEGMENTS,
    ObjectType.COLLECTION: frozenset({_SEG.FIELD, _SEG.ELEMENT, _SEG.KEY}),
    ObjectType.NODE: frozenset({_SEG.PROPERTY, _SEG.FIELD, _SEG.ELEMENT, _SEG.KEY}),
    ObjectType.RELATIONSHIP: frozenset({_SEG.PROPERTY, _SEG.FIELD, _SEG.ELEMENT, _SEG.KEY}),
    ObjectType.TOPIC: frozenset({_SEG.FIELD, _SEG.PARTITION, _SEG.KEY, _SEG.ELEMENT}),
    ObjectType.QUEUE: frozenset({_SEG.FIELD, _SEG.PARTITION, _SEG.KEY, _SEG.ELEMENT}),
    ObjectType.STREAM: frozenset({_SEG.FIELD, _SEG.PARTITION, _SEG.KEY, _SEG.ELEMENT}),
    ObjectType.ENDPOINT: frozenset({_SEG.BODY, _SEG.HEADER, _SEG.QUERY, _SEG.PATH, _SEG.FIELD, _SEG.ELEMENT}),
    ObjectType.REQUEST: frozenset({_SEG.BODY, _SEG.HEADER, _SEG.QUERY, _SEG.PATH, _SEG.FIELD, _SEG.ELEMENT}),
    ObjectType.RESPONSE: frozenset({_SEG.BODY, _SEG.HEADER, _SEG.QUERY, _SEG.PATH, _SEG.FIELD, _SEG.ELEMENT}),
    ObjectType.RESOURCE: frozenset({_SEG.FIELD, _SEG.PARAMETER, _SEG.ELEMENT, _SEG.KEY}),
    ObjectType.TOOL: frozenset({_SEG.FIELD, _SEG.PARAMETER, _SEG.ELEMENT, _SEG.KEY}),
    ObjectType.PROMPT: frozenset({_SEG.FIELD, _SEG.PARAMETER, _SEG.ELEMENT, _SEG.KEY}),
}

_NAMELESS_SEGMENTS = frozenset({_SEG.BODY, _SEG.ATTRIBUTES})
_WEBHOOK_DIRECTIONS = ("request", "response")
_INDEX_RE = re.compile(r"^(?P<name>[^\[\]]*)\[(?P<index>-?\d+)\]$")


def valid_segment_types(object_type: ObjectType | str) -> frozenset[SegmentType]:
    """Segment kinds accepted below *object_type* (all kinds for unknown types)."""
    return _VALID_SEGMENTS.get(coerce_object_type(object_type), frozenset(SegmentType))


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _bad(uri: str, reason: str, field_path: str = "", expected=None, actual=None) -> InvalidAddressError:
    return InvalidAddressError(
        f"Invalid resource URI '{uri}': {reason}",
        field_path=field_path, expected=expected, actual=actual,
    )


def _parse_selector(expression: str) -> Selector:
    if expression.startswith(("$.", "$[")):
        kind = SelectorType.JSONPATH
    elif expression.startswith("/"):
        kind = SelectorType.XPATH
    elif expression == "*":
        kind = SelectorType.WILDCARD
    elif expression.lstrip("-").isdigit():
        kind = SelectorType.INDEX
    else:
        kind = SelectorType.KEY
    return Selector(type=kind, expression=expression)


def _parse_segments(uri: str, parts: list[str]) -> tuple[tuple[PathSegment, ...], SchemaFormat | None]:
    segments: list[PathSegment] = []
    schema_format = None
    i = 0
    while i < len(parts):
        token = parts[i]
        if token == "schema":
            if i + 1 >= len(parts):
                raise _bad(uri, "'schema' needs a format", "schema_format")
            try:
                schema_format = SchemaFormat(parts[i + 1].lower())
            except ValueError:
                raise _bad(uri, f"unknown schema format '{parts[i + 1]}'", "schema_format",
                           expected=[f.value for f in SchemaFormat], actual=parts[i + 1]) from None
            i += 2
            continue
        try:
            kind = SegmentType(token.lower())
        except ValueError:
            raise _bad(uri, f"unknown segment kind '{token}'", f"path_segments[{len(segments)}]",
                       expected=[s.value for s in SegmentType], actual=token) from None

        if kind in _NAMELESS_SEGMENTS or i + 1 >= len(parts):
            segments.append(PathSegment(type=kind))
            i += 1
            continue

        name, index = parts[i + 1], None
        match = _INDEX_RE.match(name)
        if match:
            name, index = match.group("name"), int(match.group("index"))
        segments.append(PathSegment(type=kind, name=name, index=index))
        i += 2
    return tuple(segments), schema_format


def _object_type(uri: str, token: str) -> ObjectType | str:
    if not token:
        raise _bad(uri, "object type is missing", "object_type")
    return coerce_object_type(token)


def _parse_database(uri: str, host: str, parts: list[str]) -> ResourceAddress:
    scope_text = host
    if not scope_text and parts:
        scope_text, parts = parts[0], parts[1:]
    try:
        scope = Scope(scope_text.lower())
    except ValueError:
        raise _bad(uri, f"invalid scope '{scope_text}'", "scope",
                   expected=[s.value for s in Scope], actual=scope_text) from None
    if len(parts) < 3 or parts[0] != "database":
        raise _bad(uri, "expected redb://<scope>/database/<id>/<object_type>/<name>", "database_id")
    segments, schema_format = _parse_segments(uri, parts[4:])
    return ResourceAddress(
        protocol=Protocol.DATABASE,
        scope=scope,
        database_id=parts[1],
        object_type=_object_type(uri, parts[2]),
        object_name=parts[3] if len(parts) > 3 else "",
        path_segments=segments,
        schema_format=schema_format,
    )


def _parse_stream(uri: str, host: str, parts: list[str]) -> ResourceAddress:
    try:
        provider = StreamProvider(host.lower())
    except ValueError:
        raise _bad(uri, f"unknown stream provider '{host}'", "stream_provider",
                   expected=[p.value for p in StreamProvider], actual=host) from None
    if parts and parts[0] == "connection":
        parts = parts[1:]
    if len(parts) < 3:
        raise _bad(uri, "expected stream://<provider>/connection/<id>/<object_type>/<name>", "connection_id")
    segments, schema_format = _parse_segments(uri, parts[3:])
    return ResourceAddress(
        protocol=Protocol.STREAM,
        scope=Scope.DATA,
        stream_provider=provider,
        connection_id=parts[0],
        object_type=_object_type(uri, parts[1]),
        object_name=parts[2],
        path_segments=segments,
        schema_format=schema_format,
    )


def _parse_webhook(uri: str, host: str, parts: list[str]) -> ResourceAddress:
    if not host:
        raise _bad(uri, "server id is missing", "server_id")
    endpoint = ""
    if parts and parts[0] not in _WEBHOOK_DIRECTIONS:
        endpoint, parts = parts[0], parts[1:]
    if not parts or parts[0] not in _WEBHOOK_DIRECTIONS:
        raise _bad(uri, "webhook direction must be 'request' or 'response'", "object_name",
                   expected=list(_WEBHOOK_DIRECTIONS), actual=parts[0] if parts else "")
    segments, _ = _parse_segments(uri, parts[1:])
    return ResourceAddress(
        protocol=Protocol.WEBHOOK,
        scope=Scope.DATA,
        server_id=host,
        connection_id=endpoint,
        object_type=ObjectType.ENDPOINT,
        object_name=parts[0],
        path_segments=segments,
    )


def _parse_mcp(uri: str, host: str, parts: list[str]) -> ResourceAddress:
    if not host:
        raise _bad(uri, "server id is missing", "server_id")
    if len(parts) < 2:
        raise _bad(uri, "expected mcp://<server_id>/<resource|tool|prompt>/<name>", "object_name")
    segments, _ = _parse_segments(uri, parts[2:])
    return ResourceAddress(
        protocol=Protocol.MCP,
        scope=Scope.DATA,
        server_id=host,
        object_type=_object_type(uri, parts[0]),
        object_name=parts[1],
        path_segments=segments,
    )


_PARSERS = {
    Protocol.DATABASE: _parse_database,
    Protocol.STREAM: _parse_stream,
    Protocol.WEBHOOK: _parse_webhook,
    Protocol.MCP: _parse_mcp,
}


def parse_resource_uri(uri: str) -> ResourceAddress:
    """
    Parse *uri* into a :class:`ResourceAddress`.

    Examples::

        parse_resource_uri("redb://data/database/db1/table/users/column/email")
        parse_resource_uri("redb://data/database/db1/table/users/column/profile#$.address.city")
        parse_resource_uri("stream://kafka/connection/c1/topic/orders/schema/avro/field/id")

    Raises:
        InvalidAddressError: The URI is empty, names an unknown protocol or
                             does not have the shape its protocol requires.
    """
    if not uri or not uri.strip():
        raise InvalidAddressError("Resource URI is empty", field_path="uri")
    body, _, selector_text = uri.strip().partition("#")
    parts = urlsplit(body)
    if not parts.scheme:
        raise _bad(uri, "protocol scheme is missing", "protocol")
    try:
        protocol = Protocol(parts.scheme.lower())
    except ValueError:
        raise _bad(uri, f"unsupported protocol '{parts.scheme}'", "protocol",
                   expected=[p.value for p in Protocol], actual=parts.scheme) from None

    path = [unquote(p) for p in parts.path.strip("/").split("/") if p]
    address = _PARSERS[protocol](uri, unquote(parts.netloc), path)
    if selector_text:
        address = _with_selector(address, _parse_selector(unquote(selector_text)))
    return address


def _with_selector(address: ResourceAddress, selector: Selector) -> ResourceAddress:
    return replace(address, selector=selector)


def format_resource_uri(address: ResourceAddress) -> str:
    """Inverse of :func:`parse_resource_uri` for well-formed addresses."""
    object_type = getattr(address.object_type, "value", address.object_type)
    if address.protocol == Protocol.DATABASE:
        head = f"redb://{address.scope.value}/database/{address.database_id}/{object_type}/{address.object_name}"
    elif address.protocol == Protocol.STREAM:
        provider = address.stream_provider.value if address.stream_provider else ""
        head = f"stream://{provider}/connection/{address.connection_id}/{object_type}/{address.object_name}"
    elif address.protocol == Protocol.WEBHOOK:
        endpoint = f"{address.connection_id}/" if address.connection_id else ""
        head = f"webhook://{address.server_id}/{endpoint}{address.object_name}"
    else:
        head = f"mcp://{address.server_id}/{object_type}/{address.object_name}"

    tail = []
    if address.schema_format is not None:
        tail += ["schema", address.schema_format.value]
    for segment in address.path_segments:
        tail.append(segment.type.value)
        if segment.name or segment.index is not None:
            tail.append(segment.name + (f"[{segment.index}]" if segment.index is not None else ""))
    uri = "/".join([head] + tail)
    return f"{uri}#{address.selector.expression}" if address.selector else uri


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def validate_address(address: ResourceAddress) -> None:
    """
    Check *address* against its protocol's rules.

    Raises:
        InvalidAddressError: with ``field_path`` naming the offending part.
    """
    protocol = address.protocol
    if protocol == Protocol.DATABASE:
        if not address.database_id:
            raise InvalidAddressError("Database id is required", field_path="database_id")
        if address.scope not in (Scope.DATA, Scope.METADATA, Scope.SCHEMA):
            raise InvalidAddressError(
                f"Invalid scope for database: {address.scope}", field_path="scope",
                expected=[s.value for s in Scope], actual=address.scope,
            )
    elif protocol == Protocol.STREAM:
        if address.stream_provider is None:
            raise InvalidAddressError("Stream provider is required", field_path="stream_provider")
        if not address.connection_id:
            raise InvalidAddressError("Connection id is required", field_path="connection_id")
    elif protocol in (Protocol.WEBHOOK, Protocol.MCP):
        if not address.server_id:
            raise InvalidAddressError("Server id is required", field_path="server_id")

    if not address.object_name:
        raise InvalidAddressError("Object name is required", field_path="object_name")

    allowed = PROTOCOL_OBJECT_TYPES[protocol]
    if coerce_object_type(address.object_type) not in allowed:
        raise InvalidAddressError(
            f"Invalid object type for {protocol.value}: "
            f"{getattr(address.object_type, 'value', address.object_type)}",
            field_path="object_type",
            expected=sorted(t.value for t in allowed),
            actual=getattr(address.object_type, "value", address.object_type),
        )

    if protocol == Protocol.WEBHOOK and address.object_name not in _WEBHOOK_DIRECTIONS:
        raise InvalidAddressError(
            f"Webhook direction must be 'request' or 'response', got: {address.object_name}",
            field_path="object_name", expected=list(_WEBHOOK_DIRECTIONS), actual=address.object_name,
        )

    valid = valid_segment_types(address.object_type)
    for i, segment in enumerate(address.path_segments):
        if segment.type not in valid:
            raise InvalidAddressError(
                f"Segment type '{segment.type.value}' not valid for object type "
                f"'{getattr(address.object_type, 'value', address.object_type)}'",
                field_path=f"path_segments[{i}]",
                expected=sorted(s.value for s in valid),
                actual=segment.type.value,
            )
        if segment.index is not None and segment.index < 0:
            raise InvalidAddressError(
                f"Segment {i} has negative index: {segment.index}",
                field_path=f"path_segments[{i}].index", expected=">= 0", actual=segment.index,
            )
