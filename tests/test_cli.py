"""
tests/test_cli.py
Tests for the fescaffold command-line interface (fescaffold.cli.main).

The toolchain functions imported by the CLI are monkeypatched, so no SDK is
ever started.

Tests cover:
    - parse: text, JSON and YAML output; missing Models folder
    - scaffold: files written, exit codes, dry-run, config errors
    - check: every toolchain state and the install prompt
    - global options
"""

from __future__ import annotations

import json
import pathlib
from typing import List

import pytest
import yaml

from fescaffold import cli, toolchain
from fescaffold.cli import (
    EXIT_GENERATION_ERROR,
    EXIT_INPUT_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
    format_entities_text,
    main,
)
from fescaffold.models import EntityMetadata, ToolStatus


# ==========================================================================
# parse
# ==========================================================================


class TestParseCommand:
    """fescaffold parse."""

    def test_text_output(self, sample_project: pathlib.Path, capsys: pytest.CaptureFixture) -> None:
        assert main(["parse", str(sample_project)]) == EXIT_SUCCESS
        out = capsys.readouterr().out
        assert f"🔍 Scanning project at: {sample_project}" in out
        assert "📦 Entity: Order" in out
        assert "  └─ int Id [Attributes: HasKey]" in out
        assert "  └─ string Reference [Attributes: Required, MaxLength(200), IsRequired()]" in out
        assert "Customer" not in out.split("📦 Entity: Order")[1]

    def test_json_output(self, sample_project: pathlib.Path, capsys: pytest.CaptureFixture) -> None:
        assert main(["parse", str(sample_project), "--format", "json"]) == EXIT_SUCCESS
        data = json.loads(capsys.readouterr().out)
        order = next(e for e in data if e["entity_name"] == "Order")
        assert [p["name"] for p in order["properties"]] == ["Id", "Reference", "Total"]
        assert order["properties"][0]["is_primary_key"] is True

    def test_yaml_output(self, sample_project: pathlib.Path, capsys: pytest.CaptureFixture) -> None:
        assert main(["parse", str(sample_project), "--format", "yaml"]) == EXIT_SUCCESS
        data = yaml.safe_load(capsys.readouterr().out)
        assert {e["entity_name"] for e in data} == {"Order", "Product"}

    def test_defaults_to_current_directory(
        self,
        sample_project: pathlib.Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture,
    ) -> None:
        monkeypatch.chdir(sample_project)
        assert main(["parse"]) == EXIT_SUCCESS
        assert "📦 Entity: Product" in capsys.readouterr().out

    def test_missing_models(self, tmp_path: pathlib.Path, capsys: pytest.CaptureFixture) -> None:
        assert main(["parse", str(tmp_path)]) == EXIT_INPUT_ERROR
        assert "❌ Error: Models folder not found" in capsys.readouterr().err

    def test_format_entities_text(self) -> None:
        text = format_entities_text([EntityMetadata(entity_name="Marker")])
        assert text == "\n📦 Entity: Marker"


# ==========================================================================
# scaffold
# ==========================================================================


class TestScaffoldCommand:
    """fescaffold scaffold (SDK disabled or simulated)."""

    def test_writes_files(self, sample_project: pathlib.Path, capsys: pytest.CaptureFixture) -> None:
        code = main(["scaffold", str(sample_project), "--no-sdk", "--namespace", "Shop"])
        assert code == EXIT_SUCCESS
        contracts = (sample_project / "Features/Orders/OrderContracts.cs").read_text(encoding="utf-8")
        assert "namespace Shop.Orders;" in contracts
        assert "Scaffold Report" in capsys.readouterr().out

    def test_dry_run(self, sample_project: pathlib.Path, capsys: pytest.CaptureFixture) -> None:
        assert main(["scaffold", str(sample_project), "--dry-run"]) == EXIT_SUCCESS
        assert not (sample_project / "Features").exists()
        assert "(dry run)" in capsys.readouterr().out

    def test_only(self, sample_project: pathlib.Path, capsys: pytest.CaptureFixture) -> None:
        assert main(
            ["scaffold", str(sample_project), "--dry-run", "--only", "Create", "GetById"]
        ) == EXIT_SUCCESS
        assert "Features planned: 4" in capsys.readouterr().out

    def test_unknown_feature_rejected(self, sample_project: pathlib.Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["scaffold", str(sample_project), "--only", "Patch"])
        assert exc_info.value.code == 2

    def test_validation_error_exit_code(
        self, sample_project: pathlib.Path, write_cs, capsys: pytest.CaptureFixture
    ) -> None:
        write_cs(sample_project, "Models/Note.cs", "public class Note { public int Note { get; set; } }")
        assert main(["scaffold", str(sample_project), "--no-sdk"]) == EXIT_VALIDATION_ERROR
        assert main(["scaffold", str(sample_project), "--no-sdk", "--no-strict"]) == EXIT_SUCCESS

    def test_sdk_error_exit_code(
        self, sample_project: pathlib.Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def no_sdk(args, **kwargs):
            raise FileNotFoundError(2, "No such file or directory", args[0])

        monkeypatch.setattr(toolchain.subprocess, "run", no_sdk)
        assert main(["scaffold", str(sample_project)]) == EXIT_GENERATION_ERROR
        assert (sample_project / "Features/Orders/OrderMapper.cs").is_file()

    def test_invalid_config_file(
        self, sample_project: pathlib.Path, capsys: pytest.CaptureFixture
    ) -> None:
        (sample_project / "fescaffold.yaml").write_text("base_namespace: [", encoding="utf-8")
        assert main(["scaffold", str(sample_project), "--no-sdk"]) == EXIT_INPUT_ERROR
        assert "❌ Error:" in capsys.readouterr().err

    def test_explicit_config(
        self, sample_project: pathlib.Path, tmp_path: pathlib.Path
    ) -> None:
        config = tmp_path / "custom.json"
        config.write_text(json.dumps({"base_namespace": "Store", "run_sdk": False}), encoding="utf-8")
        assert main(["--config", str(config), "scaffold", str(sample_project)]) == EXIT_SUCCESS
        mapper = (sample_project / "Features/Orders/OrderMapper.cs").read_text(encoding="utf-8")
        assert "namespace Store.Orders;" in mapper

    def test_missing_models(self, tmp_path: pathlib.Path) -> None:
        assert main(["scaffold", str(tmp_path), "--no-sdk"]) == EXIT_INPUT_ERROR


# ==========================================================================
# check
# ==========================================================================


class TestCheckCommand:
    """fescaffold check with a stubbed toolchain."""

    @pytest.fixture(autouse=True)
    def _isolated_cwd(self, tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)

    @pytest.fixture()
    def installs(self, monkeypatch: pytest.MonkeyPatch) -> List[tuple]:
        calls: List[tuple] = []

        def fake_install(sdk, pack):
            calls.append((sdk, pack))
            return "Success: installed\n"

        monkeypatch.setattr(cli, "install_template_pack", fake_install)
        return calls

    def _status(self, monkeypatch: pytest.MonkeyPatch, status: ToolStatus) -> None:
        monkeypatch.setattr(cli, "check_toolchain", lambda sdk, pack: status)

    def test_sdk_missing(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
        self._status(monkeypatch, ToolStatus.TOOL_UNAVAILABLE)
        assert main(["check"]) == EXIT_GENERATION_ERROR
        assert "❌ dotnet SDK is not installed or not in PATH." in capsys.readouterr().out

    def test_already_installed(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture, installs
    ) -> None:
        self._status(monkeypatch, ToolStatus.INSTALLED)
        assert main(["check"]) == EXIT_SUCCESS
        out = capsys.readouterr().out
        assert "✅ dotnet is installed." in out
        assert "✅ FastEndpoints.TemplatePack is already installed." in out
        assert installs == []

    def test_install_accepted(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture, installs
    ) -> None:
        self._status(monkeypatch, ToolStatus.NOT_INSTALLED)
        monkeypatch.setattr("builtins.input", lambda prompt: "y")
        assert main(["check"]) == EXIT_SUCCESS
        out = capsys.readouterr().out
        assert "⚠️ FastEndpoints.TemplatePack is not installed." in out
        assert "🔧 Installing FastEndpoints.TemplatePack..." in out
        assert "Success: installed" in out
        assert installs == [("dotnet", "FastEndpoints.TemplatePack")]

    @pytest.mark.parametrize("answer", ["", "n", "no", "yes please"])
    def test_install_declined(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture,
        installs,
        answer: str,
    ) -> None:
        self._status(monkeypatch, ToolStatus.NOT_INSTALLED)
        monkeypatch.setattr("builtins.input", lambda prompt: answer)
        assert main(["check"]) == EXIT_SUCCESS
        assert "🚫 Skipping installation." in capsys.readouterr().out
        assert installs == []

    def test_eof_declines(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture, installs
    ) -> None:
        self._status(monkeypatch, ToolStatus.NOT_INSTALLED)

        def eof(prompt):
            raise EOFError

        monkeypatch.setattr("builtins.input", eof)
        assert main(["check"]) == EXIT_SUCCESS
        assert installs == []

    def test_yes_flag_and_custom_names(
        self, monkeypatch: pytest.MonkeyPatch, installs
    ) -> None:
        seen = {}

        def fake_check(sdk, pack):
            seen.update(sdk=sdk, pack=pack)
            return ToolStatus.NOT_INSTALLED

        monkeypatch.setattr(cli, "check_toolchain", fake_check)
        assert main(["check", "--yes", "--sdk", "dn", "--template-pack", "My.Pack"]) == EXIT_SUCCESS
        assert seen == {"sdk": "dn", "pack": "My.Pack"}
        assert installs == [("dn", "My.Pack")]


# ==========================================================================
# Global options
# ==========================================================================


class TestGlobalOptions:
    """Version and command selection."""

    def test_version(self, capsys: pytest.CaptureFixture) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert "fescaffold v" in capsys.readouterr().out

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 2

    def test_cli_main_exits_with_code(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.cli_main(["parse", str(tmp_path)])
        assert exc_info.value.code == EXIT_INPUT_ERROR

    def test_module_entry_point(
        self,
        sample_project: pathlib.Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture,
    ) -> None:
        from fescaffold.__main__ import main as module_main

        monkeypatch.setattr("sys.argv", ["fescaffold", "parse", str(sample_project)])
        with pytest.raises(SystemExit) as exc_info:
            module_main()
        assert exc_info.value.code == EXIT_SUCCESS
        assert "📦 Entity: Order" in capsys.readouterr().out
