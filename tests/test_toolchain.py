"""
tests/test_toolchain.py
Tests for fescaffold.toolchain. No real SDK is started: ``subprocess.run``
is monkeypatched or a ``FakeRunner`` is passed in.

Tests cover:
    - run_command: combined output, working directory, errors
    - check_toolchain tri-state
    - install_template_pack and run_feature_template arguments
"""

from __future__ import annotations

import pathlib
import subprocess
from typing import Any, Dict

import pytest

from fescaffold import toolchain
from fescaffold.models import FeatureKind, FeatureSpec, ToolStatus
from fescaffold.toolchain import (
    check_toolchain,
    install_template_pack,
    is_tool_installed,
    run_command,
    run_feature_template,
)


# ==========================================================================
# run_command
# ==========================================================================


class TestRunCommand:
    """The subprocess boundary."""

    def test_combined_output_and_exit_code_ignored(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: pathlib.Path
    ) -> None:
        captured: Dict[str, Any] = {}

        def fake_run(args, **kwargs):
            captured["args"] = args
            captured.update(kwargs)
            return subprocess.CompletedProcess(args, 3, stdout="out\n", stderr="err\n")

        monkeypatch.setattr(toolchain.subprocess, "run", fake_run)
        output = run_command(("dotnet", "--version"), cwd=tmp_path, timeout=5)

        assert output == "out\nerr\n"
        assert captured["args"] == ["dotnet", "--version"]
        assert captured["cwd"] == str(tmp_path)
        assert captured["timeout"] == 5
        assert captured["capture_output"] is True
        assert captured["text"] is True

    def test_none_streams(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            toolchain.subprocess,
            "run",
            lambda args, **kw: subprocess.CompletedProcess(args, 0, stdout=None, stderr=None),
        )
        assert run_command(["dotnet"]) == ""

    def test_missing_executable_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_run(args, **kwargs):
            raise FileNotFoundError(2, "No such file or directory", args[0])

        monkeypatch.setattr(toolchain.subprocess, "run", fake_run)
        with pytest.raises(FileNotFoundError):
            run_command(["dotnet", "--version"])


# ==========================================================================
# Capability checks
# ==========================================================================


class TestCheckToolchain:
    """Presence of the SDK and the template pack."""

    def test_installed(self, fake_runner) -> None:
        assert check_toolchain(runner=fake_runner) is ToolStatus.INSTALLED
        assert [args for args, _ in fake_runner.calls] == [
            ["dotnet", "--version"],
            ["dotnet", "new", "uninstall"],
        ]

    def test_pack_detection_is_case_insensitive(self, runner_factory) -> None:
        runner = runner_factory(listing="fastendpoints.templatepack\n")
        assert check_toolchain(runner=runner) is ToolStatus.INSTALLED

    def test_not_installed(self, runner_factory) -> None:
        runner = runner_factory(listing="Microsoft.DotNet.Web.ProjectTemplates.8.0\n")
        assert check_toolchain(runner=runner) is ToolStatus.NOT_INSTALLED

    def test_missing_sdk(self, runner_factory) -> None:
        runner = runner_factory(missing=True)
        assert not is_tool_installed(runner=runner)
        assert check_toolchain(runner=runner) is ToolStatus.TOOL_UNAVAILABLE

    def test_blank_version_output(self, runner_factory) -> None:
        runner = runner_factory(version="  \n")
        assert check_toolchain(runner=runner) is ToolStatus.TOOL_UNAVAILABLE

    def test_custom_sdk_and_pack(self, runner_factory) -> None:
        runner = runner_factory(listing="My.Pack\n")
        assert check_toolchain("dn", "My.Pack", runner=runner) is ToolStatus.INSTALLED
        assert runner.calls[0][0] == ["dn", "--version"]

    def test_never_cached(self, runner_factory) -> None:
        runner = runner_factory(listing="")
        assert check_toolchain(runner=runner) is ToolStatus.NOT_INSTALLED
        runner.listing = "FastEndpoints.TemplatePack"
        assert check_toolchain(runner=runner) is ToolStatus.INSTALLED


# ==========================================================================
# Actions
# ==========================================================================


class TestActions:
    """Install and feature template commands."""

    def test_install_template_pack(self, fake_runner) -> None:
        install_template_pack(runner=fake_runner)
        assert fake_runner.calls[-1][0] == [
            "dotnet", "new", "install", "FastEndpoints.TemplatePack",
        ]

    def test_run_feature_template(self, fake_runner, tmp_path: pathlib.Path) -> None:
        feature = FeatureSpec(
            entity_name="Order",
            plural_name="Orders",
            kind=FeatureKind.CREATE,
            namespace="Shop.Orders.Create",
            http_method="post",
            route="api/orders",
            output_dir="Features/Orders",
        )
        output = run_feature_template(feature, tmp_path, runner=fake_runner)
        assert "created successfully" in output
        args, cwd = fake_runner.calls[-1]
        assert args == [
            "dotnet", "new", "feat",
            "-n", "Shop.Orders.Create",
            "-m", "post",
            "-r", "api/orders",
            "-o", "Features/Orders",
        ]
        assert cwd == tmp_path
