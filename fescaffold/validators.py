# File: fescaffold/validators.py
"""
fescaffold - Metadata & Configuration Validators
==================================================
A pure-function validation pipeline over the merged entity metadata and
the scaffold configuration.

The scanner and the merge step are tolerant and never reject input. This
module decides whether what they produced is safe to scaffold: identifier
validity, name clashes between entities and between generated
feature folders, primary-key coverage and configuration sanity.

Usage:
    from fescaffold.validators import validate_full
    result = validate_full(entities, config)
    if not result.is_valid:
        ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Set

from fescaffold.models import EntityMetadata, ScaffoldConfig
from fescaffold.utils import is_valid_identifier, is_valid_namespace, to_plural

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("fescaffold.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True, slots=True)
class Finding:
    """One validation finding; ``context`` names the entity/property involved."""

    severity: Severity
    code: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"[{self.severity.value.upper()}] {self.code}: {self.message}"


@dataclass(slots=True)
class ValidationResult:
    """Findings produced by the pipeline, in the order they were raised."""

    findings: List[Finding] = field(default_factory=list)

    def _add(
        self,
        severity: Severity,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]],
    ) -> None:
        self.findings.append(Finding(severity, code, message, dict(context or {})))

    def add_error(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._add(Severity.ERROR, code, message, context)

    def add_warning(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._add(Severity.WARNING, code, message, context)

    def add_info(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._add(Severity.INFO, code, message, context)

    def merge(self, other: ValidationResult) -> None:
        self.findings.extend(other.findings)

    def _of(self, severity: Severity) -> List[Finding]:
        return [f for f in self.findings if f.severity is severity]

    @property
    def errors(self) -> List[Finding]:
        return self._of(Severity.ERROR)

    @property
    def warnings(self) -> List[Finding]:
        return self._of(Severity.WARNING)

    @property
    def notes(self) -> List[Finding]:
        return self._of(Severity.INFO)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        return (
            f"Validation: {len(self.errors)} error(s), "
            f"{len(self.warnings)} warning(s), "
            f"{len(self.findings)} total item(s)."
        )

    def __bool__(self) -> bool:
        """Truthy when there are NO errors."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self.findings)


# ---------------------------------------------------------------------------
# Individual validation functions
# ---------------------------------------------------------------------------


def validate_entity_names(entities: Sequence[EntityMetadata]) -> ValidationResult:
    """
    Entity names must be valid identifiers, unique, and must not collapse
    into the same feature folder once pluralised.
    """
    result: ValidationResult = ValidationResult()
    seen: Dict[str, EntityMetadata] = {}
    folders: Dict[str, str] = {}

    for entity in entities:
        name: str = entity.entity_name
        ctx: Dict[str, Any] = {"entity": name}
        if entity.source_file:
            ctx["file"] = entity.source_file

        if not is_valid_identifier(name):
            result.add_error(
                "INVALID_ENTITY_NAME",
                f"Entity name '{name}' is not a valid identifier.",
                ctx,
            )
            continue

        if name in seen:
            result.add_error(
                "DUPLICATE_ENTITY_NAME",
                f"Entity '{name}' is declared more than once.",
                {**ctx, "first_file": seen[name].source_file},
            )
            continue
        seen[name] = entity

        folder: str = to_plural(name).lower()
        if folder in folders:
            result.add_error(
                "FEATURE_FOLDER_CLASH",
                f"Entities '{folders[folder]}' and '{name}' both scaffold "
                f"into '{to_plural(name)}'.",
                ctx,
            )
        else:
            folders[folder] = name

    return result


def validate_property_names(entities: Sequence[EntityMetadata]) -> ValidationResult:
    """Property names: valid identifiers, unique per entity, not the entity name."""
    result: ValidationResult = ValidationResult()

    for entity in entities:
        seen: Set[str] = set()
        for prop in entity.properties:
            ctx: Dict[str, Any] = {"entity": entity.entity_name, "property": prop.name}

            if prop.name in seen:
                result.add_error(
                    "DUPLICATE_PROPERTY_NAME",
                    f"'{entity.entity_name}.{prop.name}' is declared more than once.",
                    ctx,
                )
            seen.add(prop.name)

            if not is_valid_identifier(prop.name):
                result.add_error(
                    "INVALID_PROPERTY_NAME",
                    f"'{entity.entity_name}.{prop.name}' is not a valid identifier.",
                    ctx,
                )
            elif prop.name == entity.entity_name:
                result.add_error(
                    "PROPERTY_NAMED_AFTER_ENTITY",
                    f"Property '{prop.name}' has the same name as its entity; "
                    f"generated contracts would not compile.",
                    ctx,
                )

    return result


def validate_primary_keys(entities: Sequence[EntityMetadata]) -> ValidationResult:
    """
    Entities without a configured key get a warning: the ``{id}`` routes
    and mappers then fall back to a property named ``Id``, if any.
    """
    result: ValidationResult = ValidationResult()

    for entity in entities:
        if entity.primary_keys:
            if len(entity.primary_keys) > 1:
                result.add_info(
                    "COMPOSITE_PRIMARY_KEY",
                    f"Entity '{entity.entity_name}' has a composite key: "
                    + ", ".join(p.name for p in entity.primary_keys),
                    {"entity": entity.entity_name},
                )
            continue

        if entity.get_property("Id") is not None:
            continue
        result.add_warning(
            "NO_PRIMARY_KEY",
            f"Entity '{entity.entity_name}' has no configured key and no "
            f"'Id' property; id routes will not bind to a field.",
            {"entity": entity.entity_name},
        )

    return result


def validate_empty_entities(entities: Sequence[EntityMetadata]) -> ValidationResult:
    """Zero eligible properties is valid but worth reporting."""
    result: ValidationResult = ValidationResult()
    for entity in entities:
        if not entity.properties:
            result.add_info(
                "EMPTY_ENTITY",
                f"Entity '{entity.entity_name}' has no eligible properties.",
                {"entity": entity.entity_name},
            )
    return result


def validate_scaffold_config(config: ScaffoldConfig) -> ValidationResult:
    """Namespace and output settings."""
    result: ValidationResult = ValidationResult()

    if not is_valid_namespace(config.base_namespace):
        result.add_error(
            "INVALID_NAMESPACE",
            f"Base namespace '{config.base_namespace}' is not a valid "
            f"dotted identifier.",
            {"base_namespace": config.base_namespace},
        )

    if not config.feature_kinds:
        result.add_warning(
            "NO_FEATURES",
            "No feature kinds are enabled; only shared files will be written.",
        )

    if not any((
        config.run_sdk,
        config.generate_contracts,
        config.generate_mappers,
        config.generate_validators,
        config.generate_paging,
    )):
        result.add_warning(
            "NOTHING_TO_GENERATE",
            "Every generation step is disabled.",
        )

    for label, value in (
        ("models_dir", config.models_dir),
        ("features_dir", config.features_dir),
    ):
        if value.startswith(("/", "\\")) or ".." in value.replace("\\", "/").split("/"):
            result.add_error(
                "PATH_OUTSIDE_ROOT",
                f"'{label}' must stay inside the project root: {value}",
                {label: value},
            )

    return result


def validate_full(
    entities: Sequence[EntityMetadata],
    config: ScaffoldConfig,
) -> ValidationResult:
    """
    **Master validation entry point.**

    Runs every entity and configuration check; called by the orchestrator
    and the CLI before anything is generated.
    """
    logger.info("Starting validation of %d entities.", len(entities))

    result: ValidationResult = ValidationResult()
    result.merge(validate_entity_names(entities))
    result.merge(validate_property_names(entities))
    result.merge(validate_primary_keys(entities))
    result.merge(validate_empty_entities(entities))
    result.merge(validate_scaffold_config(config))

    if not entities:
        result.add_warning(
            "NO_ENTITIES",
            "No entity classes were found; nothing will be scaffolded.",
        )

    if not result.is_valid:
        logger.error(
            "Validation FAILED with %d error(s). %s",
            len(result.errors),
            result.summary(),
        )
    else:
        logger.info("Validation PASSED. %s", result.summary())

    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "Severity",
    "Finding",
    "ValidationResult",
    "validate_entity_names",
    "validate_property_names",
    "validate_primary_keys",
    "validate_empty_entities",
    "validate_scaffold_config",
    "validate_full",
]

logger.debug("fescaffold.validators loaded - %d public symbols.", len(__all__))
