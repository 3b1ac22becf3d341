# File: fescaffold/merge.py
"""
fescaffold - Metadata Merge
=============================
Folds the fluent rule map into the scanned entities.

For every entity with a same-named rule map, each configured property gets
its rule tokens appended after its declared annotations, and becomes a
primary key when one of those tokens is ``HasKey``. Nothing else changes.

The merge builds new objects; its inputs are never mutated.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from fescaffold.models import (
    HAS_KEY_TOKEN,
    EntityMetadata,
    EntityProperty,
    FluentRuleMap,
)

logger: logging.Logger = logging.getLogger("fescaffold.merge")


def apply_rules(
    entity: EntityMetadata,
    rules: Dict[str, List[str]],
) -> EntityMetadata:
    """Copy of *entity* with *rules* (property → tokens) applied."""
    merged: EntityMetadata = entity.model_copy(deep=True)

    for prop_name, tokens in rules.items():
        prop: Optional[EntityProperty] = merged.get_property(prop_name)
        if prop is None:
            logger.debug(
                "%s: configured property %s is not a scanned column.",
                entity.entity_name, prop_name,
            )
            continue
        prop.attributes = [*prop.attributes, *tokens]
        if HAS_KEY_TOKEN in tokens:
            prop.is_primary_key = True

    return merged


def merge_fluent_rules(
    entities: Sequence[EntityMetadata],
    rules: FluentRuleMap,
) -> List[EntityMetadata]:
    """
    Merge the fluent rule map into every matching entity.

    Args:
        entities: Scanned entities, in scan order.
        rules:    Entity name → (property name → raw tokens).

    Returns:
        New entity records in the same order. Entities without a rule map
        are returned as unchanged copies.

    Merging an already merged entity appends the tokens a second time.
    """
    merged: List[EntityMetadata] = []
    matched: int = 0

    for entity in entities:
        entity_rules: Optional[Dict[str, List[str]]] = rules.get(entity.entity_name)
        if entity_rules is None:
            merged.append(entity.model_copy(deep=True))
            continue
        matched += 1
        merged.append(apply_rules(entity, entity_rules))

    unmatched: List[str] = sorted(
        set(rules) - {e.entity_name for e in entities}
    )
    if unmatched:
        logger.info(
            "Configurations without a scanned entity: %s", ", ".join(unmatched)
        )
    logger.debug("Merged fluent rules into %d/%d entities.", matched, len(entities))
    return merged


__all__: List[str] = [
    "apply_rules",
    "merge_fluent_rules",
]
