# File: fescaffold/__init__.py
"""
fescaffold - FastEndpoints Scaffolding from Entity Framework Models
=====================================================================

Reads the entity classes and fluent ``IEntityTypeConfiguration<T>`` classes
of a C# data-access project, builds a normalized entity model, and
scaffolds FastEndpoints features plus their contracts, mappers, validators
and paging types.

Architecture overview::

    ┌──────────────┐     ┌──────────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│ ScaffoldGenerator │────▶│ TemplateGenerator│
    │   (cli.py)   │     │  (generator.py)   │     │  (templates.py)  │
    └──────────────┘     └────────┬─────────┘     └──────────────────┘
                                  │
           ┌──────────────┬───────┼────────┬──────────────┐
           ▼              ▼       ▼        ▼              ▼
      ┌─────────┐   ┌─────────┐ ┌─────┐ ┌──────────┐ ┌───────────┐
      │ scanner │   │ fluent  │ │merge│ │validators│ │ exporters │
      │ syntax  │   │         │ │     │ │          │ │ toolchain │
      └─────────┘   └─────────┘ └─────┘ └──────────┘ └───────────┘

Usage::

    # As a library
    from fescaffold import parse_project_entities
    entities = parse_project_entities(Path("./src/MyApi"))

    # From the command line
    fescaffold scaffold ./src/MyApi --namespace MyApi

Public API:
    - parse_project_entities - Scan, extract and merge
    - ScaffoldGenerator      - Master orchestrator
    - ScaffoldConfig         - Settings model
    - EntityMetadata         - Entity model
    - check_toolchain        - SDK / template pack probe
"""

from __future__ import annotations

__version__: str = "1.0.0"
__license__: str = "MIT"

from fescaffold.models import (
    EntityMetadata,
    EntityProperty,
    FeatureKind,
    FeatureSpec,
    FluentRuleMap,
    NullabilityPolicy,
    ScaffoldConfig,
    ToolStatus,
)
from fescaffold.classifier import TypeVerdict, classify_nullable, classify_type
from fescaffold.scanner import ModelsDirectoryNotFoundError, scan_entities
from fescaffold.fluent import extract_fluent_rules, extract_lambda_member
from fescaffold.merge import merge_fluent_rules
from fescaffold.validators import ValidationResult, validate_full
from fescaffold.templates import TemplateGenerator
from fescaffold.exporters import ExportResult, FeatureExporter
from fescaffold.toolchain import check_toolchain, install_template_pack, run_command
from fescaffold.generator import (
    ScaffoldGenerator,
    ScaffoldReport,
    build_config,
    parse_project_entities,
    plan_features,
)
from fescaffold.utils import Timer, to_plural

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__license__",
    # Models
    "EntityMetadata",
    "EntityProperty",
    "FeatureKind",
    "FeatureSpec",
    "FluentRuleMap",
    "NullabilityPolicy",
    "ScaffoldConfig",
    "ToolStatus",
    # Extraction
    "TypeVerdict",
    "classify_type",
    "classify_nullable",
    "ModelsDirectoryNotFoundError",
    "scan_entities",
    "extract_fluent_rules",
    "extract_lambda_member",
    "merge_fluent_rules",
    "parse_project_entities",
    # Validation
    "validate_full",
    "ValidationResult",
    # Scaffolding
    "ScaffoldGenerator",
    "ScaffoldReport",
    "build_config",
    "plan_features",
    "TemplateGenerator",
    "FeatureExporter",
    "ExportResult",
    # Toolchain
    "check_toolchain",
    "install_template_pack",
    "run_command",
    # Utilities
    "Timer",
    "to_plural",
]
