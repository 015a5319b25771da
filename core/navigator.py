"""
core/navigator.py
-----------------
Resolves a :class:`ResourceAddress` to a position inside a unified model.

Design Decision:
    Only the database protocol resolves against a :class:`UnifiedModel`.
    Stream, webhook and MCP addresses go to small stub navigators that
    echo the address back as a location; their payload schemas live outside
    the planner.  Dispatch is a protocol → navigator table.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from core.address import validate_address
from core.capabilities import get_data_type_capability, get_object_capability
from core.errors import NotFoundError, UnsupportedNavigationError
from logger import get_logger
from models.object_types import SegmentType, coerce_object_type
from models.resource import Protocol, ResourceAddress, ResourceLocation, Scope
from models.unified_model import CHILD_SEGMENT, UnifiedModel

log = get_logger(__name__)

# (source scope, target scope) pairs that may be mapped onto each other.
COMPATIBLE_SCOPES = frozenset({
    (Scope.DATA, Scope.DATA),
    (Scope.METADATA, Scope.DATA),
    (Scope.SCHEMA, Scope.SCHEMA),
})


def are_compatible(source: ResourceAddress, target: ResourceAddress) -> bool:
    """True when data at *source* can be mapped onto *target* by scope."""
    return (source.scope, target.scope) in COMPATIBLE_SCOPES


@dataclass
class CompatibilityReport:
    compatible: bool
    reason: str
    warnings: list[str] = field(default_factory=list)
    requires_transformation: bool = False


def check_compatibility(source: ResourceAddress, target: ResourceAddress) -> CompatibilityReport:
    """
    Scope compatibility plus the caveats of mapping *source* onto *target*.

    Both addresses are validated first (``InvalidAddressError`` propagates).
    """
    validate_address(source)
    validate_address(target)
    if not are_compatible(source, target):
        return CompatibilityReport(
            False, f"incompatible scopes: {source.scope.value} -> {target.scope.value}"
        )

    warnings = []
    if source.protocol == Protocol.DATABASE and target.protocol == Protocol.STREAM:
        warnings.append("mapping from database to stream may require continuous synchronization")
    if (
        source.protocol == target.protocol == Protocol.STREAM
        and source.stream_provider != target.stream_provider
    ):
        warnings.append(
            f"cross-platform streaming: {source.stream_provider.value} -> {target.stream_provider.value}"
        )
    if get_object_capability(source.object_type).is_streaming and not get_object_capability(
        target.object_type
    ).is_streaming:
        warnings.append("source is streaming but target is not; buffering may be needed")
    if source.protocol == Protocol.WEBHOOK:
        warnings.append("webhook sources are stateless; ensure events are captured")
    if len(source.path_segments) > len(target.path_segments):
        warnings.append("source has deeper nesting than target; data may be flattened")
    elif len(source.path_segments) < len(target.path_segments):
        warnings.append("target has deeper nesting than source; defaults may be needed")

    transform = (
        source.scope != target.scope
        or source.protocol != target.protocol
        or len(source.path_segments) != len(target.path_segments)
    )
    return CompatibilityReport(True, "addresses are compatible", warnings, transform)


class _StubNavigator:
    """Echoes non-database addresses back as unresolved locations."""

    def navigate(self, address: ResourceAddress, model: UnifiedModel | None) -> ResourceLocation:
        segments = list(address.path_segments)
        return ResourceLocation(
            address=address,
            target_path=".".join([address.object_name] + [s.name for s in segments if s.name]),
            nested_path=segments,
            is_nested=bool(segments),
            is_streaming=get_object_capability(address.object_type).is_streaming,
        )


class ResourceNavigator:
    """Entry point: validates an address, then dispatches by protocol."""

    def __init__(self) -> None:
        stub = _StubNavigator()
        self._navigators = {
            Protocol.STREAM: stub,
            Protocol.WEBHOOK: stub,
            Protocol.MCP: stub,
        }

    def navigate(self, address: ResourceAddress, model: UnifiedModel | None = None) -> ResourceLocation:
        """
        Resolve *address*.

        Raises:
            InvalidAddressError:         The address breaks its protocol's rules.
            NotFoundError:               The object or child does not exist.
            UnsupportedNavigationError:  Wrong child kind, or nesting below a
                                         data type that cannot be navigated.
        """
        validate_address(address)
        if address.protocol != Protocol.DATABASE:
            return self._navigators[address.protocol].navigate(address, model)
        if model is None:
            raise NotFoundError(
                "A unified model is required to resolve database addresses",
                field_path="model",
            )
        return self._navigate_database(address, model)

    # ------------------------------------------------------------------

    @staticmethod
    def _navigate_database(address: ResourceAddress, model: UnifiedModel) -> ResourceLocation:
        object_type = coerce_object_type(address.object_type)
        parent = model.get_object(object_type, address.object_name)
        if parent is None:
            log.warning("No %s named '%s' in the model.", getattr(object_type, "value", object_type),
                        address.object_name)
            raise NotFoundError(
                f"{getattr(object_type, 'value', object_type)} '{address.object_name}' not found",
                field_path="object_name",
                actual=address.object_name,
            )

        segments = list(address.path_segments)
        if not segments:
            return ResourceLocation(address=address, parent=parent, target=parent,
                                    target_path=address.object_name)

        first, rest = segments[0], segments[1:]
        expected: SegmentType = CHILD_SEGMENT[object_type]  # type: ignore[index]
        if first.type != expected:
            raise UnsupportedNavigationError(
                f"'{first.type.value}' cannot be addressed below a {object_type.value}; "
                f"expected '{expected.value}'",
                field_path="path_segments[0]",
                expected=expected.value,
                actual=first.type.value,
            )

        child = parent.children.get(first.name)
        if child is None:
            raise NotFoundError(
                f"{expected.value} '{first.name}' not found in '{address.object_name}'",
                field_path="path_segments[0]",
                actual=first.name,
            )

        if rest and not get_data_type_capability(child.data_type).is_navigable:
            raise UnsupportedNavigationError(
                f"Data type '{child.data_type}' of '{address.object_name}.{first.name}' "
                f"cannot be navigated",
                field_path="path_segments[1]",
                expected="navigable data type",
                actual=child.data_type,
            )

        log.debug("Resolved %s.%s (%s), %d nested segment(s).",
                  address.object_name, first.name, child.data_type, len(rest))
        return ResourceLocation(
            address=address,
            parent=parent,
            target=child,
            target_path=f"{address.object_name}.{first.name}",
            data_type=child.data_type,
            nested_path=rest,
            is_nested=bool(rest),
        )
