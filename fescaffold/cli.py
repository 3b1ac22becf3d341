# File: fescaffold/cli.py
"""
fescaffold - Command-Line Interface
=====================================

CLI built with the standard-library ``argparse`` module.

Usage examples::

    # Verify the SDK and the FastEndpoints template pack
    fescaffold check

    # Print the entity metadata of a project
    fescaffold parse ./src/MyApi
    fescaffold parse ./src/MyApi --format json

    # Generate features, contracts, mappers and validators
    fescaffold scaffold ./src/MyApi --namespace MyApi
    fescaffold -v scaffold --dry-run --only Create GetById

Exit codes:
    0: success
    1: validation error
    2: toolchain / generation error
    3: export error
    4: input/argument error
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

import yaml

from fescaffold.generator import (
    ScaffoldGenerator,
    ScaffoldReport,
    build_config,
    parse_project_entities,
)
from fescaffold.models import EntityMetadata, FeatureKind, ScaffoldConfig, ToolStatus
from fescaffold.scanner import ModelsDirectoryNotFoundError
from fescaffold.toolchain import check_toolchain, install_template_pack

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("fescaffold")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the fescaffold logger based on verbosity level.

    Args:
        verbosity: -1 = ERROR, 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    elif verbosity == 0:
        level = logging.WARNING
    else:
        level = logging.ERROR

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    formatter: logging.Formatter = logging.Formatter(fmt, datefmt="%H:%M:%S")
    handler.setFormatter(formatter)

    root_logger: logging.Logger = logging.getLogger("fescaffold")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _add_folder_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "folder",
        nargs="?",
        default=None,
        metavar="FOLDER",
        help=(
            "Project root containing Models/ and Data/Configurations/ "
            "(defaults to the current directory)."
        ),
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from fescaffold import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="fescaffold",
        description=(
            "fescaffold - FastEndpoints scaffolding from Entity Framework "
            "entity classes."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s check\n"
            "  %(prog)s parse ./src/MyApi --format yaml\n"
            "  %(prog)s scaffold ./src/MyApi --namespace MyApi --dry-run\n"
        ),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"fescaffold v{__version__}",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="Configuration file (YAML or JSON). Defaults to fescaffold.yaml "
             "in the project root, if present.",
    )

    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all log output except errors.",
    )

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True

    # --- check ---
    check = commands.add_parser(
        "check",
        help="Check that the SDK and the template pack are installed.",
    )
    check.add_argument(
        "-y", "--yes",
        action="store_true",
        default=False,
        help="Install a missing template pack without asking.",
    )
    check.add_argument(
        "--sdk",
        type=str,
        default=None,
        metavar="CMD",
        help="SDK executable (default: dotnet).",
    )
    check.add_argument(
        "--template-pack",
        type=str,
        default=None,
        metavar="NAME",
        help="Template pack to look for (default: FastEndpoints.TemplatePack).",
    )

    # --- parse ---
    parse = commands.add_parser(
        "parse",
        help="Parse entity classes and print the extracted metadata.",
    )
    _add_folder_argument(parse)
    parse.add_argument(
        "--format",
        dest="output_format",
        choices=["text", "json", "yaml"],
        default="text",
        help="Output format (default: text).",
    )

    # --- scaffold ---
    scaffold = commands.add_parser(
        "scaffold",
        help="Generate FastEndpoints features for all parsed entities.",
    )
    _add_folder_argument(scaffold)
    scaffold.add_argument(
        "--namespace",
        type=str,
        default=None,
        metavar="NS",
        help="Base namespace of generated features (default: MyProject).",
    )
    scaffold.add_argument(
        "--only",
        nargs="+",
        default=None,
        choices=[kind.value for kind in FeatureKind],
        metavar="FEATURE",
        help="Generate only these features: "
             + ", ".join(kind.value for kind in FeatureKind) + ".",
    )
    scaffold.add_argument(
        "--no-sdk",
        action="store_true",
        default=False,
        help="Do not invoke 'dotnet new feat'; only write support files.",
    )
    scaffold.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Show what would be done without running commands or writing files.",
    )
    scaffold.add_argument(
        "--overwrite",
        action="store_true",
        default=False,
        help="Overwrite support files that already exist.",
    )
    scaffold.add_argument(
        "--no-strict",
        action="store_true",
        default=False,
        help="Continue even if validation reports errors.",
    )

    return parser


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _project_root(args: argparse.Namespace) -> Path:
    folder: Optional[str] = getattr(args, "folder", None)
    if not folder or not folder.strip():
        return Path.cwd()
    return Path(folder)


def _config_path(args: argparse.Namespace) -> Optional[Path]:
    return Path(args.config) if args.config else None


def _print_error(message: object) -> None:
    print(f"❌ Error: {message}", file=sys.stderr)


def _build_scaffold_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Config overrides from scaffold flags; ``None`` means not given."""
    overrides: Dict[str, Any] = {
        "base_namespace": args.namespace,
        "feature_kinds": args.only,
    }
    if args.no_sdk:
        overrides["run_sdk"] = False
    if args.overwrite:
        overrides["overwrite_existing"] = True
    return overrides


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------


def _confirm(prompt: str) -> bool:
    try:
        answer: str = input(prompt)
    except EOFError:
        return False
    return answer.strip().lower() == "y"


def _run_check(args: argparse.Namespace) -> int:
    """Toolchain presence check with an optional template pack install."""
    try:
        config: ScaffoldConfig = build_config(Path.cwd(), _config_path(args))
    except ValueError as exc:
        _print_error(exc)
        return EXIT_INPUT_ERROR

    sdk: str = args.sdk or config.sdk_command
    pack: str = args.template_pack or config.template_pack

    status: ToolStatus = check_toolchain(sdk, pack)
    logger.info("Toolchain status: %s", status.value)

    if status is ToolStatus.TOOL_UNAVAILABLE:
        print(f"❌ {sdk} SDK is not installed or not in PATH.")
        return EXIT_GENERATION_ERROR

    print(f"✅ {sdk} is installed.")

    if status is ToolStatus.INSTALLED:
        print(f"✅ {pack} is already installed.")
        return EXIT_SUCCESS

    print(f"⚠️ {pack} is not installed.")
    if not (args.yes or _confirm("Do you want to install it now? [y/N]: ")):
        print("🚫 Skipping installation.")
        return EXIT_SUCCESS

    print(f"🔧 Installing {pack}...")
    try:
        output: str = install_template_pack(sdk, pack)
    except OSError as exc:
        _print_error(exc)
        return EXIT_GENERATION_ERROR
    if output.strip():
        print(output.rstrip())
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# parse
# ---------------------------------------------------------------------------


def format_entities_text(entities: Sequence[EntityMetadata]) -> str:
    """One block per entity, one line per property."""
    lines: List[str] = []
    for entity in entities:
        lines.append("")
        lines.append(f"📦 Entity: {entity.entity_name}")
        for prop in entity.properties:
            lines.append(
                f"  └─ {prop.type} {prop.name} "
                f"[Attributes: {', '.join(prop.attributes)}]"
            )
    return "\n".join(lines)


def _entities_payload(entities: Sequence[EntityMetadata]) -> List[Dict[str, Any]]:
    return [entity.model_dump(mode="json") for entity in entities]


def _run_parse(args: argparse.Namespace) -> int:
    root: Path = _project_root(args)
    try:
        config: ScaffoldConfig = build_config(root, _config_path(args))
    except ValueError as exc:
        _print_error(exc)
        return EXIT_INPUT_ERROR

    if args.output_format == "text":
        print(f"🔍 Scanning project at: {root}")

    try:
        entities: List[EntityMetadata] = parse_project_entities(root, config)
    except ModelsDirectoryNotFoundError as exc:
        _print_error(exc)
        return EXIT_INPUT_ERROR

    if args.output_format == "json":
        print(json.dumps(_entities_payload(entities), indent=2, ensure_ascii=False))
    elif args.output_format == "yaml":
        print(yaml.safe_dump(
            _entities_payload(entities), sort_keys=False, allow_unicode=True
        ).rstrip())
    else:
        print(format_entities_text(entities))
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# scaffold
# ---------------------------------------------------------------------------


def _exit_code_for(report: ScaffoldReport, strict: bool) -> int:
    if report.success:
        return EXIT_SUCCESS
    if report.validation_errors and strict:
        return EXIT_VALIDATION_ERROR
    if report.sdk_errors or report.generation_errors:
        return EXIT_GENERATION_ERROR
    if report.export_errors:
        return EXIT_EXPORT_ERROR
    return EXIT_GENERATION_ERROR


def _run_scaffold(args: argparse.Namespace) -> int:
    root: Path = _project_root(args)
    try:
        config: ScaffoldConfig = build_config(
            root, _config_path(args), _build_scaffold_overrides(args)
        )
    except ValueError as exc:
        _print_error(exc)
        return EXIT_INPUT_ERROR

    strict: bool = not args.no_strict
    generator: ScaffoldGenerator = ScaffoldGenerator(
        config,
        strict_validation=strict,
        dry_run=args.dry_run,
        echo=print,
    )

    if args.dry_run:
        logger.info("Dry-run mode: no commands are run and no files are written.")

    try:
        report: ScaffoldReport = generator.scaffold(root)
    except ModelsDirectoryNotFoundError as exc:
        _print_error(exc)
        return EXIT_INPUT_ERROR

    print(report.summary())
    return _exit_code_for(report, strict)


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

_COMMANDS = {
    "check": _run_check,
    "parse": _run_parse,
    "scaffold": _run_scaffold,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Parse *argv*, run the selected command and return its exit code.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    _setup_logging(-1 if args.quiet else args.verbose)

    exit_code: int = _COMMANDS[args.command](args)
    if exit_code == EXIT_SUCCESS:
        logger.info("%s completed successfully.", args.command)
    else:
        logger.error("%s failed with exit code %d.", args.command, exit_code)
    return exit_code


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """Console-script entry point."""
    sys.exit(main(argv))


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "main",
    "cli_main",
    "format_entities_text",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("fescaffold.cli loaded.")
