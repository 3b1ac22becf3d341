# File: fescaffold/scanner.py
"""
fescaffold - Entity Source Scanner
====================================
Walks ``<root>/Models`` and turns every eligible entity class into an
``EntityMetadata`` record.

A class is an entity when it is not abstract and none of its base types
mentions the configured base-entity marker. Its public properties become
columns unless the type classifier says they are navigation properties.

Error handling strategy:
    - A missing models directory is fatal (``ModelsDirectoryNotFoundError``).
    - A file that cannot be read at all is logged and skipped.
    - Files are decoded by byte-order mark (UTF-8 without one); invalid
      bytes are replaced, so a badly encoded file still yields its classes.
    - Malformed declarations inside a file are treated as absent.
"""

from __future__ import annotations

import codecs
import logging
from pathlib import Path
from typing import FrozenSet, List, Optional, Sequence, Set, Tuple

from fescaffold.classifier import (
    COLLECTION_PREFIXES,
    KNOWN_SCALAR_TYPES,
    TypeClassifier,
    classify_nullable,
    classify_type,
)
from fescaffold.models import (
    EntityMetadata,
    EntityProperty,
    NullabilityPolicy,
)
from fescaffold.syntax import (
    ClassDeclaration,
    PropertyDeclaration,
    SourceTree,
    parse_classes,
    parse_properties,
    parse_source,
)

logger: logging.Logger = logging.getLogger("fescaffold.scanner")

SOURCE_PATTERN: str = "*.cs"

# UTF-32 marks first: the UTF-16 LE mark is a prefix of the UTF-32 LE one.
_BYTE_ORDER_MARKS: Tuple[Tuple[bytes, str], ...] = (
    (codecs.BOM_UTF32_LE, "utf-32"),
    (codecs.BOM_UTF32_BE, "utf-32"),
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)


class ModelsDirectoryNotFoundError(FileNotFoundError):
    """The project root has no models directory."""


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------


def find_source_files(directory: Path, pattern: str = SOURCE_PATTERN) -> List[Path]:
    """All files under *directory* matching *pattern*, sorted by path."""
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.rglob(pattern) if p.is_file())


def detect_encoding(data: bytes) -> str:
    """Codec named by the byte-order mark of *data*; UTF-8 without one."""
    for mark, encoding in _BYTE_ORDER_MARKS:
        if data.startswith(mark):
            return encoding
    return "utf-8"


def decode_source(data: bytes, name: str = "<source>") -> str:
    """
    Decode source bytes the way the compiler reads them.

    Invalid byte sequences become U+FFFD instead of failing the file.
    """
    encoding: str = detect_encoding(data)
    try:
        return data.decode(encoding)
    except UnicodeDecodeError as exc:
        logger.warning(
            "%s is not valid %s (%s); invalid bytes replaced.", name, encoding, exc.reason
        )
        return data.decode(encoding, errors="replace")


def read_source(path: Path) -> Optional[str]:
    """Read a source file; ``None`` (logged) when it cannot be read."""
    try:
        data: bytes = path.read_bytes()
    except OSError as exc:
        logger.warning("Skipping unreadable source file %s: %s", path, exc)
        return None
    return decode_source(data, path.name)


# ---------------------------------------------------------------------------
# Entity model builder
# ---------------------------------------------------------------------------


def is_entity_class(decl: ClassDeclaration, base_entity: str) -> bool:
    """Non-abstract and not derived from the base-entity marker."""
    if decl.is_abstract:
        return False
    return not any(base_entity in base for base in decl.base_types)


def build_entity(
    decl: ClassDeclaration,
    declarations: Sequence[PropertyDeclaration],
    *,
    classifier: TypeClassifier = classify_type,
    allow_list: FrozenSet[str] = KNOWN_SCALAR_TYPES,
    nullability_policy: NullabilityPolicy = NullabilityPolicy.PRESERVE,
    source_file: Optional[str] = None,
) -> EntityMetadata:
    """
    Build the normalized metadata of one class from its raw properties.

    Non-public properties and navigation properties are dropped. When a
    name repeats the first declaration wins.
    """
    entity: EntityMetadata = EntityMetadata(
        entity_name=decl.name,
        source_file=source_file,
        namespace=decl.namespace,
    )
    seen: Set[str] = set()

    for prop in declarations:
        if not prop.is_public:
            continue

        verdict = classifier(prop.type, allow_list, COLLECTION_PREFIXES)
        if not verdict.is_column:
            logger.debug(
                "%s.%s skipped as %s property (%s).",
                decl.name, prop.name, verdict.value, prop.type,
            )
            continue

        if prop.name in seen:
            logger.debug(
                "%s.%s declared more than once; keeping the first.",
                decl.name, prop.name,
            )
            continue
        seen.add(prop.name)

        entity.properties.append(EntityProperty(
            name=prop.name,
            type=prop.type,
            attributes=list(prop.attributes),
            is_nullable=classify_nullable(
                prop.type, nullability_policy, allow_list
            ),
        ))

    return entity


def parse_entity_source(
    source: str,
    *,
    base_entity: str = "BaseEntity",
    classifier: TypeClassifier = classify_type,
    nullability_policy: NullabilityPolicy = NullabilityPolicy.PRESERVE,
    source_file: Optional[str] = None,
) -> List[EntityMetadata]:
    """Entities declared in one source text, in document order."""
    tree: SourceTree = parse_source(source)
    entities: List[EntityMetadata] = []

    for decl in parse_classes(tree):
        if not is_entity_class(decl, base_entity):
            logger.debug(
                "Class %s skipped (abstract or derives from %s).",
                decl.name, base_entity,
            )
            continue
        declarations: List[PropertyDeclaration] = parse_properties(tree, decl)
        entities.append(build_entity(
            decl,
            declarations,
            classifier=classifier,
            nullability_policy=nullability_policy,
            source_file=source_file,
        ))

    return entities


# ---------------------------------------------------------------------------
# Directory scan
# ---------------------------------------------------------------------------


def scan_entities(
    models_dir: Path,
    *,
    base_entity: str = "BaseEntity",
    classifier: TypeClassifier = classify_type,
    nullability_policy: NullabilityPolicy = NullabilityPolicy.PRESERVE,
) -> List[EntityMetadata]:
    """
    Scan every source file under *models_dir* for entity classes.

    Raises:
        ModelsDirectoryNotFoundError: If *models_dir* does not exist.
    """
    if not models_dir.is_dir():
        raise ModelsDirectoryNotFoundError(
            f"Models folder not found: {models_dir}"
        )

    files: List[Path] = find_source_files(models_dir)
    logger.info("Scanning %d model file(s) under %s.", len(files), models_dir)

    entities: List[EntityMetadata] = []
    for path in files:
        source: Optional[str] = read_source(path)
        if source is None:
            continue
        found: List[EntityMetadata] = parse_entity_source(
            source,
            base_entity=base_entity,
            classifier=classifier,
            nullability_policy=nullability_policy,
            source_file=str(path),
        )
        logger.debug("%s: %d entit(ies).", path.name, len(found))
        entities.extend(found)

    return entities


__all__: List[str] = [
    "SOURCE_PATTERN",
    "ModelsDirectoryNotFoundError",
    "find_source_files",
    "detect_encoding",
    "decode_source",
    "read_source",
    "is_entity_class",
    "build_entity",
    "parse_entity_source",
    "scan_entities",
]
