# File: fescaffold/utils.py
"""
fescaffold - Utility Functions & Helpers
==========================================
Naming transformations, file I/O and timing helpers used throughout the
scaffolding pipeline.

- String conversions are cached with ``@lru_cache(maxsize=None)``; the same
  entity and property names are converted many times per run.
- File writes are atomic (temporary file + rename).
"""

from __future__ import annotations

import functools
import hashlib
import logging
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("fescaffold.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

# Last PascalCase word: "OrderLine" → "Line", "HTTPStatus" → "Status".
_LAST_WORD_RE: re.Pattern[str] = re.compile(r"(?:[A-Z][a-z0-9]*|[a-z0-9]+)$")
_CSHARP_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^@?[A-Za-z_][A-Za-z0-9_]*$")

# Reserved C# keywords; usable as identifiers only with an ``@`` prefix.
CSHARP_KEYWORDS: FrozenSet[str] = frozenset({
    "abstract", "as", "base", "bool", "break", "byte", "case", "catch",
    "char", "checked", "class", "const", "continue", "decimal", "default",
    "delegate", "do", "double", "else", "enum", "event", "explicit",
    "extern", "false", "finally", "fixed", "float", "for", "foreach",
    "goto", "if", "implicit", "in", "int", "interface", "internal", "is",
    "lock", "long", "namespace", "new", "null", "object", "operator",
    "out", "override", "params", "private", "protected", "public",
    "readonly", "ref", "return", "sbyte", "sealed", "short", "sizeof",
    "stackalloc", "static", "string", "struct", "switch", "this", "throw",
    "true", "try", "typeof", "uint", "ulong", "unchecked", "unsafe",
    "ushort", "using", "virtual", "void", "volatile", "while",
})

# ---------------------------------------------------------------------------
# Pluralisation tables
# ---------------------------------------------------------------------------

_IRREGULAR_PLURALS: Dict[str, str] = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "goose": "geese",
    "tooth": "teeth",
    "foot": "feet",
    "ox": "oxen",
    "datum": "data",
    "medium": "media",
    "criterion": "criteria",
    "index": "indices",
    "matrix": "matrices",
    "vertex": "vertices",
    "axis": "axes",
    "crisis": "crises",
    "analysis": "analyses",
    "thesis": "theses",
    "status": "statuses",
    "address": "addresses",
    "quiz": "quizzes",
}

_INVARIANT_NOUNS: FrozenSet[str] = frozenset({
    "sheep", "fish", "deer", "moose", "series", "species", "news",
    "equipment", "information", "data", "rice", "money", "aircraft",
    "software", "hardware", "feedback", "metadata", "staff", "media",
    "people", "police",
})

_O_ES_NOUNS: FrozenSet[str] = frozenset({
    "hero", "potato", "tomato", "echo", "volcano", "buffalo", "torpedo",
    "veto", "embargo",
})

_F_VES_NOUNS: FrozenSet[str] = frozenset({
    "leaf", "loaf", "half", "shelf", "self", "wolf", "calf", "elf",
    "thief", "sheaf",
})


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


def _match_case(word: str, replacement: str) -> str:
    if word.isupper() and len(word) > 1:
        return replacement.upper()
    if word[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


@functools.lru_cache(maxsize=None)
def pluralize_word(word: str) -> str:
    """
    English plural of a single word.

    Examples:
        >>> pluralize_word("Category")
        'Categories'
        >>> pluralize_word("Person")
        'People'
        >>> pluralize_word("Series")
        'Series'
    """
    if not word:
        return ""

    lower: str = word.lower()

    if lower in _INVARIANT_NOUNS:
        return word
    if lower in _IRREGULAR_PLURALS:
        return _match_case(word, _IRREGULAR_PLURALS[lower])

    # Rules ordered by specificity
    if lower.endswith(("s", "sh", "ch", "x", "z")):
        return word + "es"
    if lower.endswith("y") and len(word) > 1 and lower[-2] not in "aeiou":
        return word[:-1] + "ies"
    if lower.endswith("fe") and len(word) > 2:
        return word[:-2] + "ves"
    if lower in _F_VES_NOUNS:
        return word[:-1] + "ves"
    if lower in _O_ES_NOUNS:
        return word + "es"

    return word + "s"


@functools.lru_cache(maxsize=None)
def to_plural(name: str) -> str:
    """
    Pluralise an identifier by its last PascalCase word.

    Examples:
        >>> to_plural("Order")
        'Orders'
        >>> to_plural("OrderCategory")
        'OrderCategories'
        >>> to_plural("SalesPerson")
        'SalesPeople'
    """
    if not name:
        return ""
    match: Optional[re.Match] = _LAST_WORD_RE.search(name)
    if not match:
        return pluralize_word(name)
    head: str = name[:match.start()]
    return head + pluralize_word(match.group(0))


@functools.lru_cache(maxsize=None)
def is_valid_identifier(name: str) -> bool:
    """True for a C# identifier that is not a bare reserved keyword."""
    if not _CSHARP_IDENTIFIER_RE.match(name):
        return False
    return name.startswith("@") or name not in CSHARP_KEYWORDS


def is_valid_namespace(namespace: str) -> bool:
    """True for a dotted sequence of valid identifiers."""
    if not namespace:
        return False
    return all(is_valid_identifier(part) for part in namespace.split("."))


# ---------------------------------------------------------------------------
# Indentation helper
# ---------------------------------------------------------------------------


def indent_lines(lines: List[str], level: int = 1, size: int = 4) -> List[str]:
    """Indent a list of lines, returning a new list."""
    prefix: str = " " * (level * size)
    return [prefix + line if line.strip() else line for line in lines]


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)


def write_file(path: Path, content: str) -> int:
    """
    Atomically write *content* to *path* as UTF-8.

    Writes to a temporary sibling first and renames it into place, so an
    interrupted run never leaves a partial file. Returns the byte count.
    """
    ensure_directory(path.parent)
    encoded: bytes = content.encode("utf-8")

    fd, tmp_path = tempfile.mkstemp(
        dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(encoded)
        os.replace(tmp_path, path)
    except OSError:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    """Count the number of lines in a string."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Context-manager timer for pipeline steps.

    Usage:
        with Timer("scan models") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "CSHARP_KEYWORDS",
    "pluralize_word",
    "to_plural",
    "is_valid_identifier",
    "is_valid_namespace",
    "indent_lines",
    "ensure_directory",
    "write_file",
    "sha256_hex",
    "count_lines",
    "Timer",
]

logger.debug("fescaffold.utils loaded - %d public symbols.", len(__all__))
