# File: fescaffold/models.py
"""
fescaffold - Core Data Models
==============================
Pydantic V2 models representing the normalized entity metadata extracted
from a data-access project and the settings that drive scaffolding.

These models form the single contract of the whole pipeline:
Source Scan → Fluent Extraction → Merge → Validation → Scaffolding.
Every record is built fresh on each invocation and discarded afterwards.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("fescaffold.models")

# Entity name → (property name → ordered raw rule tokens).
FluentRuleMap = Dict[str, Dict[str, List[str]]]

# Rule token recorded for key declarations.
HAS_KEY_TOKEN: str = "HasKey"


# ---------------------------------------------------------------------------
# Enums - fixed sets used across the entire project
# ---------------------------------------------------------------------------


class FeatureKind(str, Enum):
    """Endpoint features scaffolded for every entity."""

    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"
    GET_ALL = "GetAll"
    GET_BY_ID = "GetById"
    GET_PAGED = "GetPaged"


class NullabilityPolicy(str, Enum):
    """
    How ``is_nullable`` is set for kept types outside the scalar allow-list.

    ``preserve`` marks them nullable; ``strict`` marks them nullable only
    when spelled ``T?`` or ``Nullable<T>``.
    """

    PRESERVE = "preserve"
    STRICT = "strict"


class ToolStatus(str, Enum):
    """Result of probing the external SDK and its template pack."""

    INSTALLED = "installed"
    NOT_INSTALLED = "not_installed"
    TOOL_UNAVAILABLE = "tool_unavailable"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=False,
    frozen=False,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Entity metadata
# ---------------------------------------------------------------------------


class EntityProperty(BaseModel):
    """
    A single data column of an entity.

    ``attributes`` holds raw tokens in order: declared annotations first,
    then fluent-configuration rule tokens appended by the merge step.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Property identifier.")
    type: str = Field(..., min_length=1, description="Declared type text.")
    attributes: List[str] = Field(
        default_factory=list,
        description="Raw annotation and rule tokens, in order.",
    )
    is_primary_key: bool = Field(
        default=False,
        description="Set only from a HasKey fluent configuration rule.",
    )
    is_nullable: bool = Field(
        default=False, description="Derived from type classification."
    )

    def __repr__(self) -> str:
        flags: str = " PK" if self.is_primary_key else ""
        return f"<EntityProperty {self.type} {self.name}{flags}>"


class EntityMetadata(BaseModel):
    """
    A parsed entity class and its ordered, eligible properties.

    An entity with zero eligible properties is still valid.
    """

    model_config = _SHARED_CONFIG

    entity_name: str = Field(..., min_length=1, description="Class name.")
    properties: List[EntityProperty] = Field(
        default_factory=list,
        description="Properties in source declaration order.",
    )
    source_file: Optional[str] = Field(
        default=None, description="File the class was read from."
    )
    namespace: Optional[str] = Field(
        default=None, description="Namespace the class is declared in."
    )

    @property
    def primary_keys(self) -> List[EntityProperty]:
        return [p for p in self.properties if p.is_primary_key]

    @property
    def property_names(self) -> List[str]:
        return [p.name for p in self.properties]

    def get_property(self, name: str) -> Optional[EntityProperty]:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    def __repr__(self) -> str:
        return (
            f"<EntityMetadata {self.entity_name}: "
            f"{len(self.properties)} properties>"
        )


# ---------------------------------------------------------------------------
# Scaffolding
# ---------------------------------------------------------------------------


class FeatureSpec(BaseModel):
    """One endpoint feature to generate for one entity."""

    model_config = _SHARED_CONFIG

    entity_name: str = Field(..., description="Entity the feature serves.")
    plural_name: str = Field(..., description="Pluralized entity name.")
    kind: FeatureKind = Field(..., description="Feature kind.")
    namespace: str = Field(..., description="Namespace of the feature.")
    http_method: str = Field(..., description="Lower-case HTTP verb.")
    route: str = Field(..., description="Route path without leading slash.")
    output_dir: str = Field(..., description="Output folder, root-relative.")

    def sdk_arguments(self) -> List[str]:
        """Arguments for the ``new feat`` template command."""
        return [
            "new", "feat",
            "-n", self.namespace,
            "-m", self.http_method,
            "-r", self.route,
            "-o", self.output_dir,
        ]


class ScaffoldConfig(BaseModel):
    """
    Master configuration that controls parsing and scaffolding.

    Loaded from an optional ``fescaffold.yaml`` in the project root and
    overridden by command-line flags.
    """

    model_config = _SHARED_CONFIG

    # -- Project ------------------------------------------------------------
    base_namespace: str = Field(
        default="MyProject",
        min_length=1,
        description="Root namespace of generated features.",
    )

    # -- Parsing ------------------------------------------------------------
    base_entity: str = Field(
        default="BaseEntity",
        min_length=1,
        description="Classes whose base list mentions this type are skipped.",
    )
    models_dir: str = Field(
        default="Models", description="Entity folder, root-relative."
    )
    configurations_dir: str = Field(
        default="Data/Configurations",
        description="Fluent configuration folder, root-relative.",
    )
    builder_name: str = Field(
        default="builder",
        min_length=1,
        description="Name of the builder root in Configure method chains.",
    )
    nullability_policy: NullabilityPolicy = Field(
        default=NullabilityPolicy.PRESERVE,
        description="Nullability of kept types outside the scalar allow-list.",
    )

    # -- Scaffolding --------------------------------------------------------
    features_dir: str = Field(
        default="Features", description="Output folder, root-relative."
    )
    route_prefix: str = Field(default="api", description="Route prefix.")
    feature_kinds: List[FeatureKind] = Field(
        default_factory=lambda: list(FeatureKind),
        description="Features generated per entity.",
    )
    generate_contracts: bool = Field(
        default=True, description="Write request/response contracts."
    )
    generate_mappers: bool = Field(
        default=True, description="Write entity/contract mappers."
    )
    generate_validators: bool = Field(
        default=True, description="Write request validators."
    )
    generate_paging: bool = Field(
        default=True, description="Write shared paging types."
    )
    overwrite_existing: bool = Field(
        default=False, description="Overwrite files that already exist."
    )

    # -- External SDK -------------------------------------------------------
    run_sdk: bool = Field(
        default=True, description="Invoke the SDK feature template."
    )
    sdk_command: str = Field(
        default="dotnet", min_length=1, description="SDK executable."
    )
    template_pack: str = Field(
        default="FastEndpoints.TemplatePack",
        min_length=1,
        description="Template pack providing the feature template.",
    )
    command_timeout: Optional[float] = Field(
        default=None, gt=0, description="Per-command timeout in seconds."
    )

    @field_validator("route_prefix")
    @classmethod
    def _strip_route_slashes(cls, v: str) -> str:
        return v.strip("/")

    @field_validator("feature_kinds")
    @classmethod
    def _unique_feature_kinds(cls, v: List[FeatureKind]) -> List[FeatureKind]:
        seen: List[FeatureKind] = []
        for kind in v:
            if kind not in seen:
                seen.append(kind)
        return seen


__all__: List[str] = [
    "FluentRuleMap",
    "HAS_KEY_TOKEN",
    "FeatureKind",
    "NullabilityPolicy",
    "ToolStatus",
    "EntityProperty",
    "EntityMetadata",
    "FeatureSpec",
    "ScaffoldConfig",
]

logger.debug("fescaffold.models loaded.")
