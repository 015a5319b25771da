"""
core/context_manager.py
-----------------------
Creation, validation, merging and application of user conversion contexts.

A :class:`UserConversionContext` lets a user override what the planner
would otherwise decide for one (source, target) technology pair: a
preferred strategy, explicit object/field mappings, objects to skip, extra
validation rules.

Design Decision:
    Contexts are single-owner pydantic documents.  ``merge`` and the two
    ``apply_*`` operations work on ``model_copy(deep=True)`` copies so the
    caller's inputs are never touched, even when the operation fails half
    way (an incompatible pair is detected before anything is copied).
"""
from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable

from core.errors import IncompatibleContextsError
from logger import get_logger
from models.conversion import (
    AutomationLevel,
    ConversionMatrix,
    ConversionType,
    ObjectConversionRule,
    dropped_conversion,
)
from models.object_types import ObjectType, coerce_object_type
from models.user_context import (
    ContextApplicationWarning,
    ContextWarningType,
    ConversionPreferences,
    ConversionRequest,
    UserContextTemplate,
    UserConversionContext,
    ValidationFinding,
    ValidationLevel,
)

log = get_logger(__name__)

# Actions a custom rule may carry that the planner knows how to apply.
SUPPORTED_RULE_ACTIONS = frozenset({
    "set_strategy", "map_object", "map_type", "exclude", "require_validation", "annotate",
})

# Preference flags where the later context of a merge wins.
_SCALAR_PREFERENCES = (
    "accept_data_loss", "optimize_for_performance", "optimize_for_storage",
    "preserve_relationships", "include_metadata",
)


def _unique(items: Iterable[str]) -> list[str]:
    """De-duplicate, keeping first-seen order."""
    seen: set[str] = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def _critical(field: str, message: str, suggestion: str = "") -> ValidationFinding:
    return ValidationFinding(
        level=ValidationLevel.CRITICAL, field=field, message=message, suggestion=suggestion
    )


def _warning(field: str, message: str, suggestion: str = "") -> ValidationFinding:
    return ValidationFinding(
        level=ValidationLevel.WARNING, field=field, message=message, suggestion=suggestion
    )


class UserContextManager:
    """Stateless operations over :class:`UserConversionContext` documents."""

    # ------------------------------------------------------------------
    # Create / validate
    # ------------------------------------------------------------------

    def create(self, user_id: str, source_database: str, target_database: str) -> UserConversionContext:
        """
        Return a fresh context with default preferences.

        Defaults: data loss rejected, optimised for performance,
        relationships preserved, metadata included.
        """
        context = UserConversionContext(
            context_id=f"ctx_{uuid.uuid4().hex}",
            user_id=user_id,
            source_database=source_database,
            target_database=target_database,
            global_preferences=ConversionPreferences(),
        )
        log.debug("Created context %s for %s (%s → %s).",
                  context.context_id, user_id, source_database, target_database)
        return context

    def validate(self, context: UserConversionContext | None) -> list[ValidationFinding]:
        """
        Collect every problem in *context*; never stops at the first.

        Critical: missing user / technologies, object mappings without source
        or target object type, field mappings without source names or data
        types.  Warning: unnamed custom rules, rules without conditions or
        actions, object mappings without a source object name.
        """
        if context is None:
            return [_critical("context", "User context cannot be empty")]

        findings: list[ValidationFinding] = []
        if not context.user_id:
            findings.append(_critical("user_id", "User ID is required"))
        if not context.source_database:
            findings.append(_critical("source_database", "Source database is required"))
        if not context.target_database:
            findings.append(_critical("target_database", "Target database is required"))

        for key, mapping in context.object_mappings.items():
            path = f"object_mappings.{key}"
            if not mapping.source_object_name:
                findings.append(_warning(
                    f"{path}.source_object_name", "Source object name should not be empty",
                    suggestion=f"Set it to '{key}'",
                ))
            if mapping.source_object_type is None:
                findings.append(_critical(f"{path}.source_object_type", "Source object type is required"))
            if mapping.target_object_type is None:
                findings.append(_critical(f"{path}.target_object_type", "Target object type is required"))

        for key, mapping in context.field_mappings.items():
            path = f"field_mappings.{key}"
            if not mapping.source_object_name or not mapping.source_field_name:
                findings.append(_critical(path, "Source object name and field name are required"))
            types = mapping.data_type_mapping
            if types is None or not types.source_type or not types.target_type:
                findings.append(_critical(
                    f"{path}.data_type_mapping", "Source and target data types are required",
                ))

        for i, rule in enumerate(context.custom_rules):
            path = f"custom_rules[{i}]"
            if not rule.name:
                findings.append(_warning(f"{path}.name", "Custom rule name should not be empty"))
            if not rule.conditions:
                findings.append(_warning(
                    f"{path}.conditions", "Custom rule should have at least one condition",
                ))
            if not rule.actions:
                findings.append(_warning(f"{path}.actions", "Custom rule should have at least one action"))

        if findings:
            log.debug("Context %s: %d validation finding(s).", context.context_id or "?", len(findings))
        return findings

    # ------------------------------------------------------------------
    # Merge
    # ------------------------------------------------------------------

    def merge(self, *contexts: UserConversionContext) -> UserConversionContext:
        """
        Combine contexts for one technology pair; later contexts win.

        Raises:
            ValueError:                 No context given.
            IncompatibleContextsError:  The contexts name different pairs.
                                        Nothing is copied or modified.
        """
        if not contexts:
            raise ValueError("At least one context is required to merge")

        pair = contexts[0].database_pair
        for i, context in enumerate(contexts[1:], start=1):
            if context.database_pair != pair:
                log.warning(
                    "Refused to merge contexts for %s → %s and %s → %s.",
                    pair[0], pair[1], *context.database_pair,
                )
                raise IncompatibleContextsError(
                    f"Cannot merge contexts for different database pairs: "
                    f"{pair[0]} → {pair[1]} vs {context.source_database} → {context.target_database}",
                    field_path=f"contexts[{i}]",
                    expected=f"{pair[0]} → {pair[1]}",
                    actual=f"{context.source_database} → {context.target_database}",
                )

        merged = contexts[0].model_copy(deep=True)
        for context in contexts[1:]:
            other = context.model_copy(deep=True)
            if other.user_id:
                merged.user_id = other.user_id
            if other.description:
                merged.description = other.description

            prefs, incoming = merged.global_preferences, other.global_preferences
            if incoming.preferred_strategy is not None:
                prefs.preferred_strategy = incoming.preferred_strategy
            for name in _SCALAR_PREFERENCES:
                setattr(prefs, name, getattr(incoming, name))
            prefs.custom_mappings.update(incoming.custom_mappings)
            prefs.exclude_objects = _unique(prefs.exclude_objects + incoming.exclude_objects)

            merged.object_mappings.update(other.object_mappings)
            merged.field_mappings.update(other.field_mappings)
            merged.custom_rules.extend(other.custom_rules)
            merged.required_validations.extend(other.required_validations)
            merged.ignored_objects = _unique(merged.ignored_objects + other.ignored_objects)

        merged.context_id = f"ctx_{uuid.uuid4().hex}"
        merged.updated_at = datetime.now(timezone.utc)
        log.info("Merged %d context(s) for %s → %s.", len(contexts), *pair)
        return merged

    # ------------------------------------------------------------------
    # Apply
    # ------------------------------------------------------------------

    def apply_to_request(
        self, request: ConversionRequest, context: UserConversionContext | None
    ) -> ConversionRequest:
        """Return a copy of *request* carrying the context's preferences."""
        enhanced = request.model_copy(deep=True)
        if context is None:
            return enhanced

        preferences = context.global_preferences.model_copy(deep=True)
        for name, mapping in context.object_mappings.items():
            if mapping.target_object_name:
                preferences.custom_mappings[name] = mapping.target_object_name
        preferences.exclude_objects = _unique(preferences.exclude_objects + context.ignored_objects)
        enhanced.user_preferences = preferences
        return enhanced

    def apply_to_matrix(
        self, matrix: ConversionMatrix, context: UserConversionContext
    ) -> tuple[ConversionMatrix, list[ContextApplicationWarning]]:
        """
        Return a new matrix with the context's overrides applied.

        - An object mapping with both object types re-targets the rule for
          its source type; a mapping for a type absent from the matrix is a
          warning.
        - An ignored entry that names an object type turns its rule into a
          drop.
        - The preferred strategy, when set, is moved to the front.
        - Enabled custom rules with actions the planner cannot apply, and
          pairs of rules contradicting each other's strategy, are warnings.
        """
        warnings: list[ContextApplicationWarning] = []
        if context.database_pair != (matrix.source_database, matrix.target_database):
            warnings.append(ContextApplicationWarning(
                type=ContextWarningType.INVALID_MAPPING,
                message=(
                    f"Context is for {context.source_database} → {context.target_database}, "
                    f"matrix is for {matrix.source_database} → {matrix.target_database}"
                ),
                context="database_pair",
            ))

        rules: dict[ObjectType | str, ObjectConversionRule] = dict(matrix.object_conversions)

        for name, mapping in context.object_mappings.items():
            if mapping.source_object_type is None or mapping.target_object_type is None:
                warnings.append(ContextApplicationWarning(
                    type=ContextWarningType.INVALID_MAPPING,
                    message=f"Object mapping '{name}' needs both source and target object types",
                    context=f"object_mappings.{name}",
                ))
                continue
            current = rules.get(mapping.source_object_type)
            if current is None:
                warnings.append(ContextApplicationWarning(
                    type=ContextWarningType.OBJECT_NOT_FOUND,
                    message=f"No conversion rule for {mapping.source_object_type.value}",
                    context=f"object_mappings.{name}",
                ))
                continue
            same = mapping.target_object_type == mapping.source_object_type
            rules[mapping.source_object_type] = replace(
                current,
                target_objects=(mapping.target_object_type,),
                conversion_type=mapping.conversion_type or (
                    ConversionType.DIRECT if same else ConversionType.TRANSFORM
                ),
                automation_level=(
                    current.automation_level
                    if current.automation_level != AutomationLevel.IMPOSSIBLE
                    else AutomationLevel.MANUAL
                ),
                user_decisions=(),
                notes=f"Mapped by user context ({name})",
            )

        for entry in context.ignored_objects:
            object_type = coerce_object_type(entry)
            if object_type in rules:
                rules[object_type] = dropped_conversion(object_type, "Ignored by user context")

        strategies = matrix.conversion_strategies
        preferred = context.global_preferences.preferred_strategy
        if preferred is not None:
            strategies = (preferred,) + tuple(s for s in strategies if s != preferred)

        warnings.extend(self._rule_warnings(context))

        dropped = tuple(
            getattr(k, "value", k) for k, r in rules.items() if r.conversion_type == ConversionType.DROP
        )
        updated = replace(
            matrix,
            object_conversions=rules,
            requires_user_input=any(r.user_decisions for r in rules.values()),
            unsupported_features=dropped,
            conversion_strategies=strategies,
        )
        log.info(
            "Applied context %s to %s → %s matrix (%d warning(s)).",
            context.context_id or "?", matrix.source_database, matrix.target_database, len(warnings),
        )
        return updated, warnings

    @staticmethod
    def _rule_warnings(context: UserConversionContext) -> list[ContextApplicationWarning]:
        warnings = []
        strategies: dict[str, str] = {}
        for i, rule in enumerate(context.custom_rules):
            if not rule.enabled:
                continue
            label = rule.name or f"custom_rules[{i}]"
            for action in rule.actions:
                if action.action_type not in SUPPORTED_RULE_ACTIONS:
                    warnings.append(ContextApplicationWarning(
                        type=ContextWarningType.UNSUPPORTED_ACTION,
                        message=f"Rule '{label}' uses unsupported action '{action.action_type}'",
                        context=f"custom_rules[{i}]",
                    ))
                elif action.action_type == "set_strategy":
                    value = str(action.parameters.get("strategy", ""))
                    for other, other_value in strategies.items():
                        if other_value != value:
                            warnings.append(ContextApplicationWarning(
                                type=ContextWarningType.CONFLICTING_RULES,
                                message=f"Rules '{other}' and '{label}' set different strategies",
                                context=f"custom_rules[{i}]",
                            ))
                    strategies[label] = value
        return warnings

    # ------------------------------------------------------------------
    # Templates and summary
    # ------------------------------------------------------------------

    @staticmethod
    def templates() -> list[UserContextTemplate]:
        return [
            UserContextTemplate(
                name="Conservative Migration",
                description="Prioritizes data integrity and minimal data loss",
                preferences=ConversionPreferences(
                    accept_data_loss=False,
                    optimize_for_performance=False,
                    optimize_for_storage=False,
                    preserve_relationships=True,
                    include_metadata=True,
                ),
            ),
            UserContextTemplate(
                name="Performance Optimized",
                description="Optimizes for query performance in the target database",
                preferences=ConversionPreferences(
                    accept_data_loss=True,
                    optimize_for_performance=True,
                    optimize_for_storage=False,
                    preserve_relationships=False,
                    include_metadata=False,
                ),
            ),
            UserContextTemplate(
                name="Storage Optimized",
                description="Minimizes storage requirements in the target database",
                preferences=ConversionPreferences(
                    accept_data_loss=True,
                    optimize_for_performance=False,
                    optimize_for_storage=True,
                    preserve_relationships=False,
                    include_metadata=False,
                ),
            ),
        ]

    def from_template(
        self, template: UserContextTemplate, user_id: str, source_database: str, target_database: str
    ) -> UserConversionContext:
        context = self.create(user_id, source_database, target_database)
        context.global_preferences = template.preferences.model_copy(deep=True)
        context.description = template.description
        return context

    @staticmethod
    def summary(context: UserConversionContext | None) -> str:
        if context is None:
            return "No user context provided"
        prefs = context.global_preferences
        lines = [
            f"Conversion Context: {context.source_database} → {context.target_database}",
            f"User: {context.user_id}, Created: {context.created_at:%Y-%m-%d %H:%M:%S}",
        ]
        if context.description:
            lines.append(f"Description: {context.description}")
        lines += [
            f"Object Mappings: {len(context.object_mappings)}",
            f"Field Mappings: {len(context.field_mappings)}",
            f"Custom Rules: {len(context.custom_rules)}",
            f"Ignored Objects: {len(context.ignored_objects)}",
            "Preferences:",
        ]
        if prefs.preferred_strategy is not None:
            lines.append(f"  - Preferred Strategy: {prefs.preferred_strategy.value}")
        lines += [
            f"  - Accept Data Loss: {prefs.accept_data_loss}",
            f"  - Optimize for Performance: {prefs.optimize_for_performance}",
            f"  - Preserve Relationships: {prefs.preserve_relationships}",
        ]
        return "\n".join(lines) + "\n"
