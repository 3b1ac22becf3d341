# File: fescaffold/fluent.py
"""
fescaffold - Fluent Configuration Extractor
=============================================
Reads ``IEntityTypeConfiguration<T>`` classes and collects, per entity and
per property, the raw rule tokens of the ``Configure`` method's builder
chains::

    builder.HasKey(x => x.Id);                          # Id    → ["HasKey"]
    builder.Property(x => x.Total).HasMaxLength(10);    # Total → ["HasMaxLength(10)"]

Only chains rooted at the builder are read. Anything that does not fit the
expected shapes (missing class, missing ``Configure``, a non-lambda
argument) is skipped without error.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from fescaffold.models import HAS_KEY_TOKEN, FluentRuleMap
from fescaffold.scanner import read_source
from fescaffold.syntax import (
    ChainSegment,
    ClassDeclaration,
    SourceTree,
    find_member_chains,
    find_method_body,
    parse_classes,
    parse_source,
)

logger: logging.Logger = logging.getLogger("fescaffold.fluent")

CONFIGURATION_INTERFACE: str = "IEntityTypeConfiguration"
CONFIGURE_METHOD: str = "Configure"
KEY_ENTRY_POINT: str = "HasKey"
PROPERTY_ENTRY_POINT: str = "Property"

_LAMBDA_RE: re.Pattern[str] = re.compile(
    r"^\s*(?:\(\s*(?P<pparam>[A-Za-z_]\w*)\s*\)|(?P<param>[A-Za-z_]\w*))"
    r"\s*=>\s*(?P<body>.*?)\s*$",
    re.DOTALL,
)
_ANONYMOUS_OBJECT_RE: re.Pattern[str] = re.compile(
    r"^new\s*\{(?P<members>.*)\}$", re.DOTALL
)
_GENERIC_BASE_RE: re.Pattern[str] = re.compile(
    r"^(?:[\w.]+\.)?(?P<name>\w+)\s*<(?P<args>.*)>$", re.DOTALL
)


# ---------------------------------------------------------------------------
# Lambda member extraction
# ---------------------------------------------------------------------------


def _lambda_parts(expression: str) -> Optional[Tuple[str, str]]:
    match: Optional[re.Match] = _LAMBDA_RE.match(expression or "")
    if not match:
        return None
    param: str = match.group("pparam") or match.group("param")
    return param, match.group("body")


def _member_of(param: str, access: str) -> Optional[str]:
    """``x.Name`` → ``Name`` when rooted at *param*, else ``None``."""
    member: Optional[re.Match] = re.fullmatch(
        re.escape(param) + r"\s*\.\s*(@?[A-Za-z_]\w*)", access.strip()
    )
    return member.group(1) if member else None


def extract_lambda_member(expression: str) -> Optional[str]:
    """
    The member referenced by an ``x => x.Member`` lambda.

    Returns ``None`` for any other shape.

    Examples:
        >>> extract_lambda_member("x => x.Total")
        'Total'
        >>> extract_lambda_member("e => e.Customer.Name") is None
        True
    """
    parts = _lambda_parts(expression)
    if parts is None:
        return None
    param, body = parts
    return _member_of(param, body)


def extract_lambda_members(expression: str) -> List[str]:
    """
    Members referenced by a key lambda, single or composite.

    ``x => x.Id`` gives ``["Id"]``; ``x => new { x.OrderId, x.LineNo }``
    gives ``["OrderId", "LineNo"]``. Any malformed part yields ``[]``.
    """
    parts = _lambda_parts(expression)
    if parts is None:
        return []
    param, body = parts

    single: Optional[str] = _member_of(param, body)
    if single is not None:
        return [single]

    anonymous: Optional[re.Match] = _ANONYMOUS_OBJECT_RE.match(body)
    if not anonymous:
        return []
    members: List[str] = []
    for access in anonymous.group("members").split(","):
        if not access.strip():
            continue
        member: Optional[str] = _member_of(param, access)
        if member is None:
            return []
        members.append(member)
    return members


# ---------------------------------------------------------------------------
# Configuration classes
# ---------------------------------------------------------------------------


def configured_entity_name(decl: ClassDeclaration) -> Optional[str]:
    """``T`` of the ``IEntityTypeConfiguration<T>`` base type, if any."""
    for base in decl.base_types:
        match: Optional[re.Match] = _GENERIC_BASE_RE.match(base.strip())
        if not match or match.group("name") != CONFIGURATION_INTERFACE:
            continue
        argument: str = match.group("args").split(",")[0].strip()
        return argument or None
    return None


def parse_configuration_source(
    source: str,
    builder_name: str = "builder",
) -> Optional[Tuple[str, Dict[str, List[str]]]]:
    """
    Parse one configuration file.

    Returns ``(entity_name, rules)`` or ``None`` when the file configures
    nothing. ``rules`` maps property name → raw tokens in call order.
    """
    tree: SourceTree = parse_source(source)
    classes: List[ClassDeclaration] = parse_classes(tree)
    if not classes:
        return None

    decl: ClassDeclaration = classes[0]
    entity_name: Optional[str] = configured_entity_name(decl)
    if entity_name is None:
        return None

    body = find_method_body(tree, decl, CONFIGURE_METHOD)
    if body is None:
        logger.debug("%s configuration has no %s method.", entity_name, CONFIGURE_METHOD)
        return None

    rules: Dict[str, List[str]] = {}
    for chain in find_member_chains(tree, body, builder_name):
        entry: ChainSegment = chain[0]
        first_argument: str = entry.arguments[0] if entry.arguments else ""

        if entry.name == KEY_ENTRY_POINT:
            for name in extract_lambda_members(first_argument):
                rules.setdefault(name, []).append(HAS_KEY_TOKEN)
        elif entry.name == PROPERTY_ENTRY_POINT:
            name = extract_lambda_member(first_argument)
            if name is None:
                logger.debug("Unrecognised property selector: %r", first_argument)
                continue
            rules.setdefault(name, []).extend(segment.text for segment in chain[1:])

    return entity_name, rules


def extract_fluent_rules(
    files: Sequence[Path],
    builder_name: str = "builder",
) -> FluentRuleMap:
    """
    Rule map for all configuration *files*.

    A later file configuring an entity already seen replaces its rules.
    """
    result: FluentRuleMap = {}
    for path in files:
        source: Optional[str] = read_source(path)
        if source is None:
            continue
        parsed = parse_configuration_source(source, builder_name)
        if parsed is None:
            continue
        entity_name, rules = parsed
        if entity_name in result:
            logger.info(
                "%s configured again in %s; earlier rules replaced.",
                entity_name, path.name,
            )
        result[entity_name] = rules
    return result


__all__: List[str] = [
    "CONFIGURATION_INTERFACE",
    "CONFIGURE_METHOD",
    "extract_lambda_member",
    "extract_lambda_members",
    "configured_entity_name",
    "parse_configuration_source",
    "extract_fluent_rules",
]
