# File: fescaffold/syntax.py
"""
fescaffold - C# Syntax Extraction
===================================
Thin layer over the ``tree-sitter`` C# grammar. It reports class
declarations, property declarations, methods by name and fluent method
chains as plain dataclasses, so the rest of the package never touches
tree-sitter nodes directly. No type resolution is performed.

tree-sitter builds a concrete syntax tree with error recovery: a malformed
region becomes an ``ERROR`` node and the declarations around it are still
reported. Declarations that do not fit the expected shapes are simply
skipped, and nothing here raises on bad input.

Usage:
    from fescaffold.syntax import parse_source, parse_classes

    tree = parse_source(text)
    for decl in parse_classes(tree):
        print(decl.name, parse_properties(tree, decl))
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

import tree_sitter_c_sharp
from tree_sitter import Language, Node, Parser

logger: logging.Logger = logging.getLogger("fescaffold.syntax")

# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

CSHARP_LANGUAGE: Language = Language(tree_sitter_c_sharp.language())

_PARSER: Parser = Parser(CSHARP_LANGUAGE)

_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"@?[A-Za-z_]\w*")

_NAMESPACE_NODES: Tuple[str, ...] = (
    "namespace_declaration",
    "file_scoped_namespace_declaration",
)
_CHAIN_NODES: Tuple[str, ...] = ("invocation_expression", "member_access_expression")
_METHOD_BODY_NODES: Tuple[str, ...] = ("block", "arrow_expression_clause")


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class SourceTree:
    """A parsed source file: the UTF-8 bytes and the syntax tree root."""

    source: bytes
    root: Node

    def text(self, node: Optional[Node]) -> str:
        if node is None:
            return ""
        return self.source[node.start_byte:node.end_byte].decode(
            "utf-8", errors="replace"
        ).strip()


@dataclass(slots=True)
class PropertyDeclaration:
    """A property as written in source; nothing is interpreted."""

    name: str
    type: str
    modifiers: List[str] = field(default_factory=list)
    attributes: List[str] = field(default_factory=list)

    @property
    def is_public(self) -> bool:
        return "public" in self.modifiers


@dataclass(slots=True)
class ClassDeclaration:
    """A class header plus the syntax node of its body."""

    name: str
    modifiers: List[str] = field(default_factory=list)
    base_types: List[str] = field(default_factory=list)
    namespace: Optional[str] = None
    body: Optional[Node] = field(default=None, repr=False, compare=False)

    @property
    def is_abstract(self) -> bool:
        return "abstract" in self.modifiers


@dataclass(slots=True)
class ChainSegment:
    """
    One member access of a fluent chain.

    ``text`` is the raw source from the member name through the closing
    parenthesis, e.g. ``HasMaxLength(50)``. ``arguments`` is ``None`` when
    the member is not called.
    """

    name: str
    text: str
    arguments: Optional[List[str]] = None


# ---------------------------------------------------------------------------
# Tree helpers
# ---------------------------------------------------------------------------


def parse_source(text: str) -> SourceTree:
    """Parse C# *text* into a ``SourceTree``. Never raises on bad syntax."""
    source: bytes = text.encode("utf-8")
    tree = _PARSER.parse(source)
    if tree.root_node.has_error:
        logger.debug("Source contains syntax errors; parsing what is recoverable.")
    return SourceTree(source=source, root=tree.root_node)


def walk_nodes(node: Node, *node_types: str) -> Iterator[Node]:
    """All descendants of *node* (itself included) of the given types, preorder."""
    if node.type in node_types:
        yield node
    for child in node.children:
        yield from walk_nodes(child, *node_types)


def _members(container: Node) -> Iterator[Node]:
    """Direct members of a declaration list, looking through error nodes."""
    for child in container.children:
        if child.type == "ERROR":
            yield from _members(child)
        else:
            yield child


def _modifiers(tree: SourceTree, node: Node) -> List[str]:
    return [tree.text(c) for c in node.children if c.type == "modifier"]


def _same_node(a: Optional[Node], b: Node) -> bool:
    return a is not None and a.id == b.id


def identifier_of(text: str) -> str:
    """Leading identifier of *text*: ``Property<string>`` → ``Property``."""
    ident: Optional[re.Match] = _IDENTIFIER_RE.match(text.strip())
    return ident.group(0) if ident else ""


# ---------------------------------------------------------------------------
# Classes
# ---------------------------------------------------------------------------


def find_namespace(tree: SourceTree, node: Node) -> Optional[str]:
    """Innermost namespace enclosing *node*, else the file-scoped one."""
    parent: Optional[Node] = node.parent
    while parent is not None:
        if parent.type in _NAMESPACE_NODES:
            return tree.text(parent.child_by_field_name("name")) or None
        parent = parent.parent
    for ns in walk_nodes(tree.root, "file_scoped_namespace_declaration"):
        return tree.text(ns.child_by_field_name("name")) or None
    return None


def _base_types(tree: SourceTree, class_node: Node) -> List[str]:
    for child in class_node.children:
        if child.type == "base_list":
            return [
                tree.text(base)
                for base in child.named_children
                if base.type != "comment"
            ]
    return []


def parse_classes(tree: SourceTree) -> List[ClassDeclaration]:
    """
    All class declarations in document order, nested classes included.

    Records are a different declaration kind and never reported. Classes
    without a body are skipped.
    """
    classes: List[ClassDeclaration] = []
    for node in walk_nodes(tree.root, "class_declaration"):
        name: str = tree.text(node.child_by_field_name("name"))
        body: Optional[Node] = node.child_by_field_name("body")
        if not name or body is None:
            logger.debug("Class %r has no name or body; skipped.", name)
            continue
        classes.append(ClassDeclaration(
            name=name,
            modifiers=_modifiers(tree, node),
            base_types=_base_types(tree, node),
            namespace=find_namespace(tree, node),
            body=body,
        ))
    return classes


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


def _attributes(tree: SourceTree, node: Node) -> List[str]:
    """One raw token per attribute, without brackets or target specifier."""
    tokens: List[str] = []
    for child in node.children:
        if child.type != "attribute_list":
            continue
        for attribute in child.named_children:
            if attribute.type == "attribute":
                tokens.append(tree.text(attribute))
    return tokens


def parse_properties(tree: SourceTree, decl: ClassDeclaration) -> List[PropertyDeclaration]:
    """
    Properties declared directly in *decl*, in source order.

    Nested types are not descended into. Any access level is reported;
    callers filter on ``is_public``.
    """
    if decl.body is None:
        return []

    properties: List[PropertyDeclaration] = []
    for member in _members(decl.body):
        if member.type != "property_declaration":
            continue
        type_node: Optional[Node] = member.child_by_field_name("type")
        name_node: Optional[Node] = member.child_by_field_name("name")
        if type_node is None or name_node is None:
            continue
        properties.append(PropertyDeclaration(
            name=tree.text(name_node),
            type=tree.text(type_node),
            modifiers=_modifiers(tree, member),
            attributes=_attributes(tree, member),
        ))
    return properties


# ---------------------------------------------------------------------------
# Methods & call chains
# ---------------------------------------------------------------------------


def find_method_body(
    tree: SourceTree,
    decl: ClassDeclaration,
    name: str,
) -> Optional[Node]:
    """
    Body of the first method of *decl* called *name*.

    Returns the ``block`` or the ``=>`` expression clause, ``None`` when the
    method is missing or has no body.
    """
    if decl.body is None:
        return None
    for member in _members(decl.body):
        if member.type != "method_declaration":
            continue
        if tree.text(member.child_by_field_name("name")) != name:
            continue
        for child in member.children:
            if child.type in _METHOD_BODY_NODES:
                return child
    return None


def _arguments(tree: SourceTree, argument_list: Optional[Node]) -> List[str]:
    if argument_list is None:
        return []
    return [
        tree.text(arg)
        for arg in argument_list.named_children
        if arg.type == "argument"
    ]


def _is_chain_link(node: Node) -> bool:
    """True when *node* is the receiver of a longer chain."""
    parent: Optional[Node] = node.parent
    if parent is None:
        return False
    if parent.type == "member_access_expression":
        return _same_node(parent.child_by_field_name("expression"), node)
    if parent.type == "invocation_expression":
        return _same_node(parent.child_by_field_name("function"), node)
    return False


def _unroll_chain(tree: SourceTree, node: Node, root: str) -> Optional[List[ChainSegment]]:
    """Segments of the chain ending at *node*, or ``None`` if not rooted at *root*."""
    segments: List[ChainSegment] = []
    current: Optional[Node] = node
    while current is not None:
        if current.type == "invocation_expression":
            function: Optional[Node] = current.child_by_field_name("function")
            if function is None or function.type != "member_access_expression":
                return None
            member: Optional[Node] = function.child_by_field_name("name")
            if member is None:
                return None
            text: str = tree.source[member.start_byte:current.end_byte].decode(
                "utf-8", errors="replace"
            ).strip()
            segments.append(ChainSegment(
                name=identifier_of(tree.text(member)),
                text=text,
                arguments=_arguments(tree, current.child_by_field_name("arguments")),
            ))
            current = function.child_by_field_name("expression")
        elif current.type == "member_access_expression":
            member = current.child_by_field_name("name")
            if member is None:
                return None
            segments.append(ChainSegment(
                name=identifier_of(tree.text(member)), text=tree.text(member)
            ))
            current = current.child_by_field_name("expression")
        elif current.type == "identifier" and tree.text(current) == root:
            segments.reverse()
            return segments
        else:
            return None
    return None


def find_member_chains(
    tree: SourceTree,
    scope: Node,
    root: str,
) -> List[List[ChainSegment]]:
    """
    Member-access chains under *scope* rooted at the identifier *root*.

    ``builder.Property(x => x.Name).HasMaxLength(50)`` yields the segments
    ``Property(x => x.Name)`` and ``HasMaxLength(50)``; the root itself is
    not included. Chains are returned in source order.
    """
    chains: List[List[ChainSegment]] = []
    for node in walk_nodes(scope, *_CHAIN_NODES):
        if _is_chain_link(node):
            continue
        segments: Optional[List[ChainSegment]] = _unroll_chain(tree, node, root)
        if segments:
            chains.append(segments)
    return chains


__all__: List[str] = [
    "CSHARP_LANGUAGE",
    "SourceTree",
    "PropertyDeclaration",
    "ClassDeclaration",
    "ChainSegment",
    "parse_source",
    "walk_nodes",
    "identifier_of",
    "find_namespace",
    "parse_classes",
    "parse_properties",
    "find_method_body",
    "find_member_chains",
]
