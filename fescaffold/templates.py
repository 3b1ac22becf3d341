# File: fescaffold/templates.py
"""
fescaffold - C# Template Engine
=================================
Turns merged ``EntityMetadata`` into the C# support files that sit next to
the endpoint features produced by ``dotnet new feat``:

    1. Request/response contracts  (``<Entity>Contracts.cs``)
    2. A bidirectional mapper      (``<Entity>Mapper.cs``)
    3. Request validators          (``Validators/*RequestValidator.cs``)
    4. Shared paging types         (``Common/PagedRequest.cs`` ...)

Validators only carry required and max-length rules, read from the
``Required``, ``IsRequired()``, ``MaxLength(n)``, ``StringLength(n)`` and
``HasMaxLength(n)`` tokens of each property.

All string assembly uses the ``List[str]`` + ``"\\n".join()`` pattern and
every ``generate_*`` method returns a complete file.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from fescaffold.models import EntityMetadata, EntityProperty, ScaffoldConfig
from fescaffold.utils import indent_lines, to_plural

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("fescaffold.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_FILE_HEADER: str = "// <auto-generated> by fescaffold </auto-generated>"
COMMON_FOLDER: str = "Common"
VALIDATORS_FOLDER: str = "Validators"

_LENGTH_TOKEN_RE: re.Pattern[str] = re.compile(
    r"^(?:MaxLength|StringLength|HasMaxLength)\s*\(\s*(\d+)"
)
_REQUIRED_TOKEN_RE: re.Pattern[str] = re.compile(
    r"^(?:Required(?:Attribute)?(?:\s*\(.*\))?|IsRequired\s*\(\s*(?:true)?\s*\))$",
    re.DOTALL,
)
_NOT_REQUIRED_TOKEN_RE: re.Pattern[str] = re.compile(
    r"^IsRequired\s*\(\s*false\s*\)$"
)


# ---------------------------------------------------------------------------
# Validation rules
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class FieldRules:
    """Validation rules derived from one property's tokens."""

    required: bool = False
    max_length: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return not self.required and self.max_length is None


def extract_field_rules(prop: EntityProperty) -> FieldRules:
    """
    Read required and max-length rules from *prop*'s tokens.

    Tokens are applied in order, so a fluent ``HasMaxLength`` overrides an
    annotation and ``IsRequired(false)`` cancels an earlier ``Required``.

    Examples:
        >>> extract_field_rules(EntityProperty(
        ...     name="Name", type="string",
        ...     attributes=["Required", "StringLength(80, MinimumLength = 2)"]))
        FieldRules(required=True, max_length=80)
    """
    rules: FieldRules = FieldRules()
    for token in prop.attributes:
        token = token.strip()
        if _NOT_REQUIRED_TOKEN_RE.match(token):
            rules.required = False
            continue
        if _REQUIRED_TOKEN_RE.match(token):
            rules.required = True
            continue
        length: Optional[re.Match] = _LENGTH_TOKEN_RE.match(token)
        if length:
            rules.max_length = int(length.group(1))
    return rules


def key_properties(entity: EntityMetadata) -> List[EntityProperty]:
    """Configured keys, else a property named ``Id``, else nothing."""
    if entity.primary_keys:
        return entity.primary_keys
    fallback: Optional[EntityProperty] = entity.get_property("Id")
    return [fallback] if fallback is not None else []


def _is_string(type_name: str) -> bool:
    return type_name in ("string", "String", "System.String")


# ---------------------------------------------------------------------------
# Template generator
# ---------------------------------------------------------------------------


class TemplateGenerator:
    """
    Stateless C# file generator.

    Each ``generate_*`` method returns file content; ``generate_for_entity``
    and ``generate_shared`` return ``relative path → content`` mappings
    rooted at the project directory.
    """

    def __init__(self, config: ScaffoldConfig) -> None:
        self._config: ScaffoldConfig = config
        self._features_dir: str = config.features_dir.strip("/")
        logger.debug(
            "TemplateGenerator initialised (namespace=%s).", config.base_namespace
        )

    # -- Naming -------------------------------------------------------------

    def feature_namespace(self, entity: EntityMetadata) -> str:
        return f"{self._config.base_namespace}.{to_plural(entity.entity_name)}"

    def common_namespace(self) -> str:
        return f"{self._config.base_namespace}.{COMMON_FOLDER}"

    def entity_folder(self, entity: EntityMetadata) -> str:
        return f"{self._features_dir}/{to_plural(entity.entity_name)}"

    def _header(self, usings: List[str], namespace: str) -> List[str]:
        lines: List[str] = [_FILE_HEADER, ""]
        for using in sorted(set(usings)):
            lines.append(f"using {using};")
        if usings:
            lines.append("")
        lines.append(f"namespace {namespace};")
        lines.append("")
        return lines

    @staticmethod
    def _property_line(prop: EntityProperty) -> str:
        line: str = f"public {prop.type} {prop.name} {{ get; set; }}"
        if _is_string(prop.type):
            line += " = string.Empty;"
        return line

    # ===================================================================
    # 1. Contracts
    # ===================================================================

    def create_request_properties(self, entity: EntityMetadata) -> List[EntityProperty]:
        """All properties except the key."""
        keys: List[str] = [p.name for p in key_properties(entity)]
        return [p for p in entity.properties if p.name not in keys]

    def generate_contracts(self, entity: EntityMetadata) -> str:
        """Create/update requests and the response of one entity."""
        name: str = entity.entity_name
        lines: List[str] = self._header([], self.feature_namespace(entity))

        sections = (
            (f"Create{name}Request", self.create_request_properties(entity)),
            (f"Update{name}Request", list(entity.properties)),
            (f"{name}Response", list(entity.properties)),
        )
        for index, (class_name, props) in enumerate(sections):
            if index:
                lines.append("")
            lines.append(f"public sealed class {class_name}")
            lines.append("{")
            lines.extend(indent_lines([self._property_line(p) for p in props]))
            lines.append("}")

        lines.append("")
        return "\n".join(lines)

    # ===================================================================
    # 2. Mapper
    # ===================================================================

    def generate_mapper(self, entity: EntityMetadata) -> str:
        """Static extension methods mapping between entity and contracts."""
        name: str = entity.entity_name
        usings: List[str] = []
        if entity.namespace and entity.namespace != self.feature_namespace(entity):
            usings.append(entity.namespace)
        lines: List[str] = self._header(usings, self.feature_namespace(entity))

        create_props: List[EntityProperty] = self.create_request_properties(entity)
        key_names: List[str] = [p.name for p in key_properties(entity)]
        update_props: List[EntityProperty] = [
            p for p in entity.properties if p.name not in key_names
        ]

        body: List[str] = []

        body.append(f"public static {name} ToEntity(this Create{name}Request request)")
        body.append("{")
        body.append(f"    return new {name}")
        body.append("    {")
        body.extend(indent_lines([f"{p.name} = request.{p.name}," for p in create_props], 2))
        body.append("    };")
        body.append("}")
        body.append("")

        body.append(
            f"public static void ApplyTo(this Update{name}Request request, {name} entity)"
        )
        body.append("{")
        body.extend(indent_lines(
            [f"entity.{p.name} = request.{p.name};" for p in update_props]
        ))
        body.append("}")
        body.append("")

        body.append(f"public static {name}Response ToResponse(this {name} entity)")
        body.append("{")
        body.append(f"    return new {name}Response")
        body.append("    {")
        body.extend(indent_lines(
            [f"{p.name} = entity.{p.name}," for p in entity.properties], 2
        ))
        body.append("    };")
        body.append("}")

        lines.append(f"public static class {name}Mapper")
        lines.append("{")
        lines.extend(indent_lines(body))
        lines.append("}")
        lines.append("")
        return "\n".join(lines)

    # ===================================================================
    # 3. Validators
    # ===================================================================

    def generate_validator(
        self,
        entity: EntityMetadata,
        request_class: str,
        props: List[EntityProperty],
    ) -> str:
        """FastEndpoints ``Validator<T>`` for one request contract."""
        namespace: str = f"{self.feature_namespace(entity)}.{VALIDATORS_FOLDER}"
        lines: List[str] = self._header(
            ["FastEndpoints", "FluentValidation", self.feature_namespace(entity)],
            namespace,
        )

        rules: List[str] = []
        for prop in props:
            field_rules: FieldRules = extract_field_rules(prop)
            if field_rules.is_empty:
                continue
            chain: List[str] = []
            if field_rules.required:
                chain.append(".NotEmpty()")
            if field_rules.max_length is not None and _is_string(prop.type.rstrip("?")):
                chain.append(f".MaximumLength({field_rules.max_length})")
            if not chain:
                continue
            rules.append(f"RuleFor(x => x.{prop.name}){''.join(chain)};")

        lines.append(f"public sealed class {request_class}Validator : Validator<{request_class}>")
        lines.append("{")
        lines.append(f"    public {request_class}Validator()")
        lines.append("    {")
        lines.extend(indent_lines(rules, 2))
        lines.append("    }")
        lines.append("}")
        lines.append("")
        return "\n".join(lines)

    # ===================================================================
    # 4. Paging
    # ===================================================================

    def generate_paged_request(self) -> str:
        lines: List[str] = self._header([], self.common_namespace())
        lines.extend([
            "public class PagedRequest",
            "{",
            "    public int Page { get; set; } = 1;",
            "    public int PageSize { get; set; } = 20;",
            "",
            "    public int Skip => (Page < 1 ? 0 : Page - 1) * PageSize;",
            "}",
            "",
        ])
        return "\n".join(lines)

    def generate_paged_response(self) -> str:
        lines: List[str] = self._header([], self.common_namespace())
        lines.extend([
            "public class PagedResponse<T>",
            "{",
            "    public IReadOnlyList<T> Items { get; set; } = new List<T>();",
            "    public int Page { get; set; }",
            "    public int PageSize { get; set; }",
            "    public int TotalCount { get; set; }",
            "",
            "    public int TotalPages => PageSize <= 0",
            "        ? 0",
            "        : (int)Math.Ceiling(TotalCount / (double)PageSize);",
            "}",
            "",
        ])
        return "\n".join(lines)

    # ===================================================================
    # Aggregate generation
    # ===================================================================

    def generate_for_entity(self, entity: EntityMetadata) -> Dict[str, str]:
        """All enabled files for one entity, keyed by root-relative path."""
        name: str = entity.entity_name
        folder: str = self.entity_folder(entity)
        result: Dict[str, str] = {}

        if self._config.generate_contracts:
            result[f"{folder}/{name}Contracts.cs"] = self.generate_contracts(entity)
        if self._config.generate_mappers:
            result[f"{folder}/{name}Mapper.cs"] = self.generate_mapper(entity)
        if self._config.generate_validators:
            for request_class, props in (
                (f"Create{name}Request", self.create_request_properties(entity)),
                (f"Update{name}Request", list(entity.properties)),
            ):
                path: str = f"{folder}/{VALIDATORS_FOLDER}/{request_class}Validator.cs"
                result[path] = self.generate_validator(entity, request_class, props)

        logger.debug("Generated %d file(s) for %s.", len(result), name)
        return result

    def generate_shared(self) -> Dict[str, str]:
        """Files shared by all entities."""
        result: Dict[str, str] = {}
        if self._config.generate_paging:
            common: str = f"{self._features_dir}/{COMMON_FOLDER}"
            result[f"{common}/PagedRequest.cs"] = self.generate_paged_request()
            result[f"{common}/PagedResponse.cs"] = self.generate_paged_response()
        return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "COMMON_FOLDER",
    "VALIDATORS_FOLDER",
    "FieldRules",
    "extract_field_rules",
    "key_properties",
    "TemplateGenerator",
]

logger.debug("fescaffold.templates loaded.")
