"""
models/features.py
------------------
Per-technology feature-support records.

A :class:`DatabaseFeatureSupport` says, for every object kind, how well a
database technology supports it and what to use instead when it does not.
Records are frozen: registries built from them are shared between callers
without locking, so nothing may change a record after construction.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from models.object_types import ObjectType, Paradigm, coerce_object_type


class SupportLevel(str, Enum):
    FULL = "full"
    PARTIAL = "partial"
    EMULATED = "emulated"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class ObjectSupport:
    """
    Support of one object kind by one technology.

    Attributes:
        level:         How the kind is supported.
        alternatives:  Object kinds to use instead (unsupported/emulated).
        limitations:   Caveats that apply even when supported.
        notes:         Free-text explanation.
    """
    level: SupportLevel
    alternatives: tuple[ObjectType, ...] = ()
    limitations: tuple[str, ...] = ()
    notes: str = ""

    @property
    def supported(self) -> bool:
        return self.level != SupportLevel.UNSUPPORTED

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level.value,
            "alternatives": [a.value for a in self.alternatives],
            "limitations": list(self.limitations),
            "notes": self.notes,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "ObjectSupport":
        return ObjectSupport(
            level=SupportLevel(data.get("level", SupportLevel.UNSUPPORTED.value)),
            alternatives=tuple(ObjectType(a) for a in data.get("alternatives", [])),
            limitations=tuple(data.get("limitations", [])),
            notes=data.get("notes", ""),
        )


def full() -> ObjectSupport:
    return ObjectSupport(SupportLevel.FULL)


def partial(limitations: list[str], notes: str = "") -> ObjectSupport:
    return ObjectSupport(SupportLevel.PARTIAL, limitations=tuple(limitations), notes=notes)


def emulated(alternatives: list[ObjectType], notes: str = "") -> ObjectSupport:
    return ObjectSupport(SupportLevel.EMULATED, alternatives=tuple(alternatives), notes=notes)


def unsupported(alternatives: list[ObjectType] | None = None, notes: str = "") -> ObjectSupport:
    return ObjectSupport(
        SupportLevel.UNSUPPORTED, alternatives=tuple(alternatives or ()), notes=notes
    )


@dataclass(frozen=True)
class ConversionCapabilities:
    can_be_source: bool = True
    can_be_target: bool = True
    preferred_source_types: tuple[str, ...] = ()
    preferred_target_types: tuple[str, ...] = ()
    conversion_limitations: tuple[str, ...] = ()
    special_requirements: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "can_be_source": self.can_be_source,
            "can_be_target": self.can_be_target,
            "preferred_source_types": list(self.preferred_source_types),
            "preferred_target_types": list(self.preferred_target_types),
            "conversion_limitations": list(self.conversion_limitations),
            "special_requirements": list(self.special_requirements),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "ConversionCapabilities":
        return ConversionCapabilities(
            can_be_source=data.get("can_be_source", True),
            can_be_target=data.get("can_be_target", True),
            preferred_source_types=tuple(data.get("preferred_source_types", [])),
            preferred_target_types=tuple(data.get("preferred_target_types", [])),
            conversion_limitations=tuple(data.get("conversion_limitations", [])),
            special_requirements=tuple(data.get("special_requirements", [])),
        )


@dataclass(frozen=True)
class DatabaseFeatureSupport:
    """
    Feature-support record for one database technology.

    ``supported_objects`` keys are :class:`ObjectType` members; tags loaded
    from external data that are not part of the enumeration are kept as
    plain strings so generation can report them instead of failing.
    """
    database_type: str
    paradigms: frozenset[Paradigm]
    supported_objects: Mapping[ObjectType | str, ObjectSupport] = field(
        default_factory=dict
    )
    conversion: ConversionCapabilities = field(default_factory=ConversionCapabilities)
    display_name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "paradigms", frozenset(self.paradigms))
        object.__setattr__(
            self, "supported_objects", MappingProxyType(dict(self.supported_objects))
        )

    def support_for(self, object_type: ObjectType | str) -> ObjectSupport | None:
        return self.supported_objects.get(object_type)

    def to_dict(self) -> dict[str, Any]:
        return {
            "database_type": self.database_type,
            "display_name": self.display_name,
            "paradigms": sorted(p.value for p in self.paradigms),
            "supported_objects": {
                getattr(k, "value", k): v.to_dict() for k, v in self.supported_objects.items()
            },
            "conversion": self.conversion.to_dict(),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "DatabaseFeatureSupport":
        return DatabaseFeatureSupport(
            database_type=data["database_type"],
            display_name=data.get("display_name", ""),
            paradigms=frozenset(Paradigm(p) for p in data.get("paradigms", [])),
            supported_objects={
                coerce_object_type(k): ObjectSupport.from_dict(v)
                for k, v in data.get("supported_objects", {}).items()
            },
            conversion=ConversionCapabilities.from_dict(data.get("conversion", {})),
        )
