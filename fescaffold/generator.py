# File: fescaffold/generator.py
"""
fescaffold - Scaffolding Pipeline (Orchestrator)
==================================================
Connects every phase together:

    Models scan + Configuration scan → Merge → Validation
        → SDK feature templates → C# support files → File export

Workflow::

    1. Resolve ``ScaffoldConfig`` (defaults ← config file ← CLI overrides).
    2. Scan ``<root>/Models`` for entity classes (scanner.py).
    3. Read ``<root>/Data/Configurations`` fluent rules (fluent.py).
    4. Merge rules into the entities (merge.py).
    5. Validate entities and configuration (validators.py).
    6. Plan one ``FeatureSpec`` per entity and feature kind.
    7. Run ``dotnet new feat`` per feature (toolchain.py).
    8. Render contracts, mappers, validators and paging (templates.py).
    9. Write them under ``<root>/Features`` (exporters.py).
   10. Return a ``ScaffoldReport`` with metrics and status.

Error handling strategy:
    - A missing models directory aborts the run before anything else.
    - Validation errors abort in strict mode; otherwise they are reported.
    - SDK failures are recorded and templating still runs.
    - Export errors are recorded per file.
"""

from __future__ import annotations

import json
import logging
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import yaml
from pydantic import ValidationError as PydanticValidationError

from fescaffold.exporters import ExportResult, FeatureExporter
from fescaffold.fluent import extract_fluent_rules
from fescaffold.merge import merge_fluent_rules
from fescaffold.models import (
    EntityMetadata,
    FeatureKind,
    FeatureSpec,
    FluentRuleMap,
    ScaffoldConfig,
    ToolStatus,
)
from fescaffold.scanner import find_source_files, scan_entities
from fescaffold.templates import TemplateGenerator
from fescaffold.toolchain import (
    CommandRunner,
    check_toolchain,
    run_command,
    run_feature_template,
)
from fescaffold.utils import Timer, count_lines, to_plural
from fescaffold.validators import ValidationResult, validate_full

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("fescaffold.generator")

CONFIG_FILE_NAMES: Tuple[str, ...] = (
    "fescaffold.yaml",
    "fescaffold.yml",
    "fescaffold.json",
)

# Feature kind → (HTTP verb, route suffix after the plural segment).
FEATURE_ROUTES: Dict[FeatureKind, Tuple[str, str]] = {
    FeatureKind.CREATE: ("post", ""),
    FeatureKind.UPDATE: ("put", ""),
    FeatureKind.DELETE: ("delete", "/{id}"),
    FeatureKind.GET_ALL: ("get", ""),
    FeatureKind.GET_BY_ID: ("get", "/{id}"),
    FeatureKind.GET_PAGED: ("get", "/paged"),
}


# ---------------------------------------------------------------------------
# Scaffold report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class ScaffoldStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class ScaffoldReport:
    """Everything ``ScaffoldGenerator.scaffold()`` did, and how long it took."""

    success: bool = False
    project_root: str = ""
    dry_run: bool = False

    # Metrics
    entities_processed: int = 0
    features_planned: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    total_elapsed_seconds: float = 0.0

    # Sub-reports
    step_metrics: List[ScaffoldStepMetric] = field(default_factory=list)
    features: List[FeatureSpec] = field(default_factory=list)
    sdk_outputs: List[Tuple[str, str]] = field(default_factory=list)
    files_written: List[str] = field(default_factory=list)
    files_skipped: List[str] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)
    sdk_errors: List[str] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)
    export_errors: List[str] = field(default_factory=list)

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        if self.dry_run:
            status += " (dry run)"
        lines.append(f"{'='*60}")
        lines.append("  fescaffold - Scaffold Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:           {status}")
        lines.append(f"  Project root:     {self.project_root}")
        lines.append(f"  Entities:         {self.entities_processed}")
        lines.append(f"  Features planned: {self.features_planned}")
        lines.append(f"  Files written:    {len(self.files_written)}")
        lines.append(f"  Files skipped:    {len(self.files_skipped)}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─'*60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        sections = (
            ("Validation Errors", "✗", self.validation_errors),
            ("Validation Warnings", "⚠", self.validation_warnings),
            ("SDK Errors", "✗", self.sdk_errors),
            ("Generation Errors", "✗", self.generation_errors),
            ("Export Errors", "✗", self.export_errors),
            ("Skipped Files", "⊘", self.files_skipped),
        )
        for title, icon, items in sections:
            if not items:
                continue
            lines.append(f"{'─'*60}")
            lines.append(f"  {title} ({len(items)}):")
            for item in items:
                lines.append(f"    {icon} {item}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Configuration loading
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file. Raises ValueError on parse errors."""
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a JSON object at top level, got {type(data).__name__}."
        )
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. Raises ValueError on parse errors."""
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}."
        )
    return data


def load_config_file(path: Path) -> Dict[str, Any]:
    """
    Load a configuration file (JSON or YAML), dispatching on extension.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Config path is not a file: {path}")

    if path.suffix.lower() == ".json":
        return _load_json_file(path)
    return _load_yaml_file(path)


def find_config_file(project_root: Path) -> Optional[Path]:
    """First ``fescaffold.{yaml,yml,json}`` present in *project_root*."""
    for name in CONFIG_FILE_NAMES:
        candidate: Path = project_root / name
        if candidate.is_file():
            return candidate
    return None


def build_config(
    project_root: Path,
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ScaffoldConfig:
    """
    Resolve the effective configuration.

    Precedence: defaults ← config file (explicit *config_path*, else one
    found in *project_root*) ← *overrides*. ``None`` overrides are ignored.

    Raises:
        ValueError: If the file or the merged values are invalid.
    """
    raw: Dict[str, Any] = {}
    path: Optional[Path] = config_path or find_config_file(project_root)
    if path is not None:
        try:
            raw = load_config_file(path)
        except FileNotFoundError as exc:
            raise ValueError(str(exc)) from exc
        logger.info("Loaded config file %s (%d keys).", path, len(raw))

    for key, value in (overrides or {}).items():
        if value is not None:
            raw[key] = value

    try:
        return ScaffoldConfig.model_validate(raw)
    except PydanticValidationError as exc:
        raise ValueError(f"Config validation failed: {exc}") from exc


# ---------------------------------------------------------------------------
# Project parsing
# ---------------------------------------------------------------------------


def extract_project_rules(
    project_root: Path,
    config: Optional[ScaffoldConfig] = None,
) -> FluentRuleMap:
    """Fluent rules of ``<root>/<configurations_dir>``; empty when absent."""
    config = config or ScaffoldConfig()
    config_dir: Path = project_root / config.configurations_dir
    files: List[Path] = find_source_files(config_dir)
    if not files:
        logger.info("No configuration files under %s.", config_dir)
        return {}
    logger.info("Reading %d configuration file(s) under %s.", len(files), config_dir)
    return extract_fluent_rules(files, config.builder_name)


def parse_project_entities(
    project_root: Path,
    config: Optional[ScaffoldConfig] = None,
) -> List[EntityMetadata]:
    """
    Full extraction: scan entities, read fluent rules, merge.

    Raises:
        ModelsDirectoryNotFoundError: If ``<root>/<models_dir>`` is missing.
    """
    config = config or ScaffoldConfig()
    entities: List[EntityMetadata] = scan_entities(
        project_root / config.models_dir,
        base_entity=config.base_entity,
        nullability_policy=config.nullability_policy,
    )
    rules: FluentRuleMap = extract_project_rules(project_root, config)
    return merge_fluent_rules(entities, rules)


# ---------------------------------------------------------------------------
# Feature planning
# ---------------------------------------------------------------------------


def plan_features(
    entity: EntityMetadata,
    config: Optional[ScaffoldConfig] = None,
) -> List[FeatureSpec]:
    """
    One ``FeatureSpec`` per enabled feature kind of *entity*.

    Examples:
        >>> [f.route for f in plan_features(EntityMetadata(entity_name="Category"))][:3]
        ['api/categories', 'api/categories', 'api/categories/{id}']
    """
    config = config or ScaffoldConfig()
    plural: str = to_plural(entity.entity_name)
    base_route: str = "/".join(p for p in (config.route_prefix, plural.lower()) if p)
    output_dir: str = f"{config.features_dir.strip('/')}/{plural}"

    specs: List[FeatureSpec] = []
    for kind in config.feature_kinds:
        verb, suffix = FEATURE_ROUTES[kind]
        specs.append(FeatureSpec(
            entity_name=entity.entity_name,
            plural_name=plural,
            kind=kind,
            namespace=f"{config.base_namespace}.{plural}.{kind.value}",
            http_method=verb,
            route=f"{base_route}{suffix}",
            output_dir=output_dir,
        ))
    return specs


# ---------------------------------------------------------------------------
# ScaffoldGenerator - Master orchestrator
# ---------------------------------------------------------------------------


class ScaffoldGenerator:
    """
    Master pipeline orchestrator.

    Usage::

        generator = ScaffoldGenerator(config)
        report = generator.scaffold(Path("./MyApi"))
        print(report.summary())

    ``command_runner`` replaces the subprocess call used for the SDK and
    ``echo`` receives every SDK output as it arrives.
    """

    def __init__(
        self,
        config: Optional[ScaffoldConfig] = None,
        *,
        strict_validation: bool = True,
        dry_run: bool = False,
        command_runner: CommandRunner = run_command,
        echo: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._config: ScaffoldConfig = config or ScaffoldConfig()
        self._strict_validation: bool = strict_validation
        self._dry_run: bool = dry_run
        self._runner: CommandRunner = command_runner
        self._echo: Optional[Callable[[str], None]] = echo

        logger.debug(
            "ScaffoldGenerator initialised: strict=%s, dry_run=%s, sdk=%s.",
            strict_validation,
            dry_run,
            self._config.run_sdk,
        )

    @property
    def config(self) -> ScaffoldConfig:
        return self._config

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def scaffold(self, project_root: Path) -> ScaffoldReport:
        """
        Run the full pipeline against *project_root*.

        Raises:
            ModelsDirectoryNotFoundError: If the models folder is missing.
        """
        report: ScaffoldReport = ScaffoldReport(
            project_root=str(project_root.resolve()),
            dry_run=self._dry_run,
        )
        pipeline_start: float = time.perf_counter()

        entities: List[EntityMetadata] = self._step_parse(project_root, report)

        if not self._step_validate(entities, report) and self._strict_validation:
            return self._finalise_report(report, time.perf_counter() - pipeline_start)

        features: List[FeatureSpec] = []
        for entity in entities:
            features.extend(plan_features(entity, self._config))
        report.features = features
        report.features_planned = len(features)

        if self._config.run_sdk:
            self._step_sdk(features, project_root, report)

        generated_files: Dict[str, str] = self._step_render(entities, report)
        if generated_files:
            self._step_export(generated_files, project_root, report)

        return self._finalise_report(report, time.perf_counter() - pipeline_start)

    # -----------------------------------------------------------------
    # Pipeline step: Parse
    # -----------------------------------------------------------------

    def _step_parse(
        self,
        project_root: Path,
        report: ScaffoldReport,
    ) -> List[EntityMetadata]:
        with Timer("parse") as t:
            entities: List[EntityMetadata] = parse_project_entities(
                project_root, self._config
            )
        report.entities_processed = len(entities)
        report.step_metrics.append(ScaffoldStepMetric(
            step_name="Parse Entities",
            success=True,
            elapsed_seconds=t.elapsed,
            detail=f"{len(entities)} entities",
        ))
        logger.info("Parsed %d entities in %.3fs.", len(entities), t.elapsed)
        return entities

    # -----------------------------------------------------------------
    # Pipeline step: Validation
    # -----------------------------------------------------------------

    def _step_validate(
        self,
        entities: Sequence[EntityMetadata],
        report: ScaffoldReport,
    ) -> bool:
        """Returns True if validation passed."""
        with Timer("validation") as t:
            result: ValidationResult = validate_full(entities, self._config)

        report.validation_errors.extend(str(e) for e in result.errors)
        report.validation_warnings.extend(str(w) for w in result.warnings)

        if result.errors:
            detail: str = f"{len(result.errors)} error(s)"
        elif result.warnings:
            detail = f"{len(result.warnings)} warning(s)"
        else:
            detail = "all checks passed"

        report.step_metrics.append(ScaffoldStepMetric(
            step_name="Validate Metadata",
            success=result.is_valid,
            elapsed_seconds=t.elapsed,
            detail=detail,
        ))

        for note in result.notes:
            logger.info("  ℹ %s", note)
        for warn in result.warnings:
            logger.warning("  ⚠ %s", warn)
        if not result.is_valid:
            for err in result.errors:
                logger.error("  ✗ %s", err)
        return result.is_valid

    # -----------------------------------------------------------------
    # Pipeline step: SDK feature templates
    # -----------------------------------------------------------------

    def _emit(self, text: str) -> None:
        if self._echo is not None and text:
            self._echo(text)

    def _step_sdk(
        self,
        features: Sequence[FeatureSpec],
        project_root: Path,
        report: ScaffoldReport,
    ) -> None:
        """Run ``new feat`` per feature; failures never stop templating."""
        sdk: str = self._config.sdk_command
        ran: int = 0

        with Timer("sdk") as t:
            if self._dry_run:
                for feature in features:
                    command: str = " ".join([sdk, *feature.sdk_arguments()])
                    report.sdk_outputs.append((feature.namespace, f"[dry-run] {command}"))
                    logger.info("[dry-run] Would run: %s", command)
            else:
                status: ToolStatus = check_toolchain(
                    sdk, self._config.template_pack, runner=self._runner
                )
                if status is ToolStatus.TOOL_UNAVAILABLE:
                    report.sdk_errors.append(f"{sdk} is not installed or not in PATH.")
                elif status is ToolStatus.NOT_INSTALLED:
                    report.sdk_errors.append(
                        f"{self._config.template_pack} is not installed; "
                        f"run 'fescaffold check' first."
                    )
                else:
                    ran = self._run_features(features, project_root, report)

        report.step_metrics.append(ScaffoldStepMetric(
            step_name="SDK Feature Templates",
            success=not report.sdk_errors,
            elapsed_seconds=t.elapsed,
            detail="dry run" if self._dry_run else f"{ran}/{len(features)} features",
        ))

    def _run_features(
        self,
        features: Sequence[FeatureSpec],
        project_root: Path,
        report: ScaffoldReport,
    ) -> int:
        ran: int = 0
        for feature in features:
            logger.info("Generating %s (%s %s).", feature.namespace,
                        feature.http_method, feature.route)
            try:
                output: str = run_feature_template(
                    feature,
                    project_root,
                    sdk_command=self._config.sdk_command,
                    runner=self._runner,
                    timeout=self._config.command_timeout,
                )
            except FileNotFoundError as exc:
                report.sdk_errors.append(f"{self._config.sdk_command} not found: {exc}")
                break
            except (OSError, subprocess.TimeoutExpired) as exc:
                report.sdk_errors.append(f"{feature.namespace}: {exc}")
                continue
            ran += 1
            report.sdk_outputs.append((feature.namespace, output))
            self._emit(output)
        return ran

    # -----------------------------------------------------------------
    # Pipeline step: Rendering
    # -----------------------------------------------------------------

    def _step_render(
        self,
        entities: List[EntityMetadata],
        report: ScaffoldReport,
    ) -> Dict[str, str]:
        generated_files: Dict[str, str] = {}
        with Timer("render") as t:
            template_gen: TemplateGenerator = TemplateGenerator(self._config)
            generated_files.update(template_gen.generate_shared())
            for entity in entities:
                try:
                    generated_files.update(template_gen.generate_for_entity(entity))
                except (ValueError, KeyError) as exc:
                    error_msg: str = f"{entity.entity_name}: {type(exc).__name__}: {exc}"
                    report.generation_errors.append(error_msg)
                    logger.error(error_msg)

        report.total_lines = sum(count_lines(c) for c in generated_files.values())
        report.step_metrics.append(ScaffoldStepMetric(
            step_name="Render Support Files",
            success=not report.generation_errors,
            elapsed_seconds=t.elapsed,
            detail=f"{len(generated_files)} files, ~{report.total_lines:,} lines",
        ))
        return generated_files

    # -----------------------------------------------------------------
    # Pipeline step: Export
    # -----------------------------------------------------------------

    def _step_export(
        self,
        generated_files: Dict[str, str],
        project_root: Path,
        report: ScaffoldReport,
    ) -> None:
        with Timer("export") as t:
            exporter: FeatureExporter = FeatureExporter(
                project_root,
                overwrite=self._config.overwrite_existing,
                dry_run=self._dry_run,
            )
            result: ExportResult = exporter.export(generated_files)

        report.files_written.extend(r.relative_path for r in result.written)
        report.files_skipped.extend(result.skipped)
        report.export_errors.extend(result.errors)
        report.total_bytes = result.total_bytes

        report.step_metrics.append(ScaffoldStepMetric(
            step_name="Export to Filesystem",
            success=result.success,
            elapsed_seconds=t.elapsed,
            detail=f"{len(result.written)} files, {result.total_bytes:,} bytes",
        ))

    # -----------------------------------------------------------------
    # Internal: finalise report
    # -----------------------------------------------------------------

    def _finalise_report(
        self,
        report: ScaffoldReport,
        total_elapsed: float,
    ) -> ScaffoldReport:
        report.total_elapsed_seconds = total_elapsed
        report.success = not (
            (report.validation_errors and self._strict_validation)
            or report.sdk_errors
            or report.generation_errors
            or report.export_errors
        )
        return report


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "CONFIG_FILE_NAMES",
    "FEATURE_ROUTES",
    "ScaffoldStepMetric",
    "ScaffoldReport",
    "load_config_file",
    "find_config_file",
    "build_config",
    "extract_project_rules",
    "parse_project_entities",
    "plan_features",
    "ScaffoldGenerator",
]

logger.debug("fescaffold.generator loaded.")
