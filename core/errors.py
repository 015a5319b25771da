"""
core/errors.py
--------------
Exception taxonomy shared by the planner components.

Every error carries structured detail (which field, what was expected, what
was found) so a caller can build a precise user-facing message without
parsing the exception text.  Nothing in the planner performs I/O, so none
of these is ever retried internally.
"""
from __future__ import annotations

from typing import Any


class PlannerError(Exception):
    """Base class for all planner errors."""

    def __init__(
        self,
        message: str,
        *,
        field_path: str = "",
        expected: Any = None,
        actual: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field_path = field_path
        self.expected = expected
        self.actual = actual

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "field_path": self.field_path,
            "expected": self.expected,
            "actual": self.actual,
        }


class NotFoundError(PlannerError):
    """A named object, address target or registry entry is absent."""


class RegistryMissingError(NotFoundError):
    """A technology has no feature-support entry; the pair is unconvertible."""


class InvalidAddressError(PlannerError):
    """A resource address is malformed or inconsistent with its protocol."""


class UnsupportedNavigationError(PlannerError):
    """A segment kind or data type forbids traversal."""


class IncompatibleContextsError(PlannerError):
    """Contexts for different (source, target) pairs cannot be merged."""
