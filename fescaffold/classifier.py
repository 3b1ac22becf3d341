# File: fescaffold/classifier.py
"""
fescaffold - Property Type Classification
===========================================
Decides from the declared type text alone whether a property is a data
column or a navigation reference, and whether it is nullable.

The heuristic is purely textual:

- Types starting with a known collection prefix are navigation collections.
- PascalCase, non-generic types outside the scalar allow-list are assumed
  to be references to other entities.

The second rule misclassifies any scalar value type spelled with an
uppercase identifier that is not in the allow-list (``DateTimeOffset``,
``DateTime?``, enums). Callers that need different behaviour pass their own
classifier to the scanner.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, FrozenSet, List, Tuple

from fescaffold.models import NullabilityPolicy

logger: logging.Logger = logging.getLogger("fescaffold.classifier")

# Scalar type names kept as columns even though some start uppercase.
KNOWN_SCALAR_TYPES: FrozenSet[str] = frozenset({
    "int", "string", "decimal", "float", "double", "bool", "DateTime",
    "Guid", "byte", "short", "long", "uint", "ushort", "ulong", "char",
    "object", "TimeSpan",
})

# Generic containers treated as relationship collections.
COLLECTION_PREFIXES: Tuple[str, ...] = (
    "ICollection<",
    "List<",
    "HashSet<",
    "IEnumerable<",
)

# Spellings of a nullable value type other than the `?` suffix.
NULLABLE_WRAPPERS: Tuple[str, ...] = ("Nullable<", "System.Nullable<")


class TypeVerdict(str, Enum):
    """Outcome of classifying a declared property type."""

    SCALAR = "scalar"
    NAVIGATION = "navigation"
    COLLECTION = "collection"

    @property
    def is_column(self) -> bool:
        return self is TypeVerdict.SCALAR


# Signature of a pluggable classifier.
TypeClassifier = Callable[[str, FrozenSet[str], Tuple[str, ...]], TypeVerdict]


def is_generic_type(type_name: str) -> bool:
    """True for ``Name<...>`` shaped types."""
    return "<" in type_name


def classify_type(
    type_name: str,
    allow_list: FrozenSet[str] = KNOWN_SCALAR_TYPES,
    collection_prefixes: Tuple[str, ...] = COLLECTION_PREFIXES,
) -> TypeVerdict:
    """
    Classify a declared type as a column or a navigation property.

    Examples:
        >>> classify_type("int")
        <TypeVerdict.SCALAR: 'scalar'>
        >>> classify_type("Customer")
        <TypeVerdict.NAVIGATION: 'navigation'>
        >>> classify_type("ICollection<OrderLine>")
        <TypeVerdict.COLLECTION: 'collection'>
    """
    if type_name.startswith(collection_prefixes):
        return TypeVerdict.COLLECTION

    if (
        type_name
        and type_name[0].isupper()
        and not is_generic_type(type_name)
        and type_name not in allow_list
    ):
        return TypeVerdict.NAVIGATION

    return TypeVerdict.SCALAR


def is_nullable_type(type_name: str) -> bool:
    """True for ``T?`` and ``Nullable<T>`` spellings."""
    stripped: str = type_name.strip()
    return stripped.endswith("?") or stripped.startswith(NULLABLE_WRAPPERS)


def classify_nullable(
    type_name: str,
    policy: NullabilityPolicy = NullabilityPolicy.PRESERVE,
    allow_list: FrozenSet[str] = KNOWN_SCALAR_TYPES,
) -> bool:
    """
    Nullability of a kept property.

    Allow-listed scalars (``string`` included) are nullable under both
    policies. ``preserve``, the default, marks every other kept type
    nullable too. ``strict`` marks the rest nullable only when spelled
    ``T?`` or ``Nullable<T>``, so ``byte[]`` and ``Dictionary<K, V>`` are not.
    """
    if type_name in allow_list:
        return True
    if policy == NullabilityPolicy.PRESERVE:
        return True
    return is_nullable_type(type_name)


__all__: List[str] = [
    "KNOWN_SCALAR_TYPES",
    "COLLECTION_PREFIXES",
    "TypeVerdict",
    "TypeClassifier",
    "NULLABLE_WRAPPERS",
    "is_generic_type",
    "is_nullable_type",
    "classify_type",
    "classify_nullable",
]
