# File: fescaffold/toolchain.py
"""
fescaffold - External SDK Toolchain
=====================================
Thin wrappers around the ``dotnet`` command line: presence check, template
pack detection and installation, and the per-feature ``new feat`` call.

Command output is combined stdout + stderr text. Exit codes are logged but
not interpreted, so a failing command is only visible through its output.
A missing executable raises ``FileNotFoundError``.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from fescaffold.models import FeatureSpec, ToolStatus

logger: logging.Logger = logging.getLogger("fescaffold.toolchain")

DEFAULT_SDK_COMMAND: str = "dotnet"
DEFAULT_TEMPLATE_PACK: str = "FastEndpoints.TemplatePack"

# Signature shared by ``run_command`` and test doubles.
CommandRunner = Callable[..., str]


def run_command(
    args: Sequence[str],
    cwd: Optional[Path] = None,
    timeout: Optional[float] = None,
) -> str:
    """
    Run *args* and return its combined stdout and stderr.

    Raises:
        FileNotFoundError: The executable is not on ``PATH``.
        subprocess.TimeoutExpired: *timeout* elapsed.
    """
    logger.debug("Running: %s (cwd=%s)", " ".join(args), cwd or os.getcwd())
    p = subprocess.run(
        list(args),
        cwd=str(cwd) if cwd else None,
        capture_output=True,
        text=True,
        encoding="utf-8",
        errors="replace",
        timeout=timeout,
    )
    logger.debug("%s exited with %d.", args[0], p.returncode)
    return (p.stdout or "") + (p.stderr or "")


# ---------------------------------------------------------------------------
# Capability checks
# ---------------------------------------------------------------------------


def is_tool_installed(
    sdk_command: str = DEFAULT_SDK_COMMAND,
    runner: CommandRunner = run_command,
) -> bool:
    """True when ``<sdk> --version`` runs and prints something."""
    try:
        output: str = runner([sdk_command, "--version"])
    except OSError as exc:
        logger.debug("%s is not runnable: %s", sdk_command, exc)
        return False
    return bool(output.strip())


def check_toolchain(
    sdk_command: str = DEFAULT_SDK_COMMAND,
    template_pack: str = DEFAULT_TEMPLATE_PACK,
    runner: CommandRunner = run_command,
) -> ToolStatus:
    """
    Probe the SDK and its template pack.

    The result is computed on every call; nothing is cached.

    Returns:
        ``TOOL_UNAVAILABLE`` when the SDK cannot be run, otherwise
        ``INSTALLED`` or ``NOT_INSTALLED`` for the template pack.
    """
    if not is_tool_installed(sdk_command, runner):
        return ToolStatus.TOOL_UNAVAILABLE

    # Without arguments "new uninstall" lists the installed template packages.
    try:
        listing: str = runner([sdk_command, "new", "uninstall"])
    except OSError as exc:
        logger.warning("Could not list installed template packages: %s", exc)
        return ToolStatus.TOOL_UNAVAILABLE

    if template_pack.lower() in listing.lower():
        return ToolStatus.INSTALLED
    return ToolStatus.NOT_INSTALLED


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


def install_template_pack(
    sdk_command: str = DEFAULT_SDK_COMMAND,
    template_pack: str = DEFAULT_TEMPLATE_PACK,
    runner: CommandRunner = run_command,
) -> str:
    """Install *template_pack*; returns the command output."""
    logger.info("Installing template pack %s.", template_pack)
    return runner([sdk_command, "new", "install", template_pack])


def run_feature_template(
    feature: FeatureSpec,
    project_root: Path,
    sdk_command: str = DEFAULT_SDK_COMMAND,
    runner: CommandRunner = run_command,
    timeout: Optional[float] = None,
) -> str:
    """Run ``<sdk> new feat`` for one feature inside *project_root*."""
    args: List[str] = [sdk_command, *feature.sdk_arguments()]
    return runner(args, cwd=project_root, timeout=timeout)


__all__: List[str] = [
    "DEFAULT_SDK_COMMAND",
    "DEFAULT_TEMPLATE_PACK",
    "CommandRunner",
    "run_command",
    "is_tool_installed",
    "check_toolchain",
    "install_template_pack",
    "run_feature_template",
]
