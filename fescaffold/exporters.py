# File: fescaffold/exporters.py
"""
fescaffold - Feature File Exporter
====================================
Writes rendered C# files under the project root.

    1. Every file is written atomically (temp file + rename).
    2. Existing files are left alone unless overwriting is enabled, so
       hand-edited contracts and validators survive a re-run.
    3. A failed write is recorded and the batch continues; files already
       written stay in place.
    4. In dry-run mode nothing touches the disk, but the result still lists
       what would have been written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple

from fescaffold.utils import Timer, count_lines, sha256_hex, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("fescaffold.exporters")


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single exported file."""

    relative_path: str
    absolute_path: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=True, slots=True)
class ExportResult:
    """Final result returned by ``FeatureExporter.export()``."""

    success: bool
    written: Tuple[FileRecord, ...]
    skipped: Tuple[str, ...]
    errors: Tuple[str, ...]
    dry_run: bool = False
    elapsed_seconds: float = 0.0

    @property
    def total_bytes(self) -> int:
        return sum(r.size_bytes for r in self.written)


# ---------------------------------------------------------------------------
# FeatureExporter class
# ---------------------------------------------------------------------------


class FeatureExporter:
    """
    Writes generated files below a project root.

    Usage::

        exporter = FeatureExporter(Path("./MyApi"))
        result = exporter.export({"Features/Orders/OrderMapper.cs": "..."})

    Not thread-safe. Use one exporter per run.
    """

    def __init__(
        self,
        project_root: Path,
        *,
        overwrite: bool = False,
        dry_run: bool = False,
    ) -> None:
        self._root: Path = project_root.resolve()
        self._overwrite: bool = overwrite
        self._dry_run: bool = dry_run

        self._written: List[FileRecord] = []
        self._skipped: List[str] = []
        self._errors: List[str] = []

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def export(self, generated_files: Dict[str, str]) -> ExportResult:
        """
        Write every ``relative path → content`` entry.

        Returns:
            ExportResult listing written, skipped and failed files.
        """
        with Timer("export") as timer:
            for rel_path in sorted(generated_files):
                self._export_one(rel_path, generated_files[rel_path])

        result: ExportResult = ExportResult(
            success=not self._errors,
            written=tuple(self._written),
            skipped=tuple(self._skipped),
            errors=tuple(self._errors),
            dry_run=self._dry_run,
            elapsed_seconds=timer.elapsed,
        )

        if result.success:
            logger.info(
                "Export %s: %d written, %d skipped, %.3fs.",
                "simulated" if self._dry_run else "completed",
                len(result.written),
                len(result.skipped),
                timer.elapsed,
            )
        else:
            logger.error(
                "Export completed with %d error(s) in %.3fs.",
                len(self._errors),
                timer.elapsed,
            )
        return result

    # -----------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------

    def _resolve(self, rel_path: str) -> Path:
        """Absolute target of *rel_path*; refuses paths leaving the root."""
        target: Path = (self._root / rel_path).resolve()
        if target != self._root and self._root not in target.parents:
            raise ValueError(f"Path escapes the project root: {rel_path}")
        return target

    def _export_one(self, rel_path: str, content: str) -> None:
        try:
            target: Path = self._resolve(rel_path)
        except ValueError as exc:
            self._errors.append(str(exc))
            logger.error(str(exc))
            return

        if target.exists() and not self._overwrite:
            self._skipped.append(rel_path)
            logger.info("Skipping existing file: %s", rel_path)
            return

        if self._dry_run:
            size: int = len(content.encode("utf-8"))
            logger.info("[dry-run] Would write %s (%d bytes).", rel_path, size)
        else:
            try:
                size = write_file(target, content)
            except OSError as exc:
                error_msg: str = f"Failed to write {rel_path}: {type(exc).__name__}: {exc}"
                self._errors.append(error_msg)
                logger.error(error_msg)
                return

        self._written.append(FileRecord(
            relative_path=rel_path,
            absolute_path=str(target),
            size_bytes=size,
            line_count=count_lines(content),
            sha256=sha256_hex(content),
        ))


__all__: List[str] = [
    "FileRecord",
    "ExportResult",
    "FeatureExporter",
]

logger.debug("fescaffold.exporters loaded.")
