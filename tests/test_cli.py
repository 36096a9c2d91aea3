from __future__ import annotations

import json
from pathlib import Path

import pytest
from lsprotocol import types
from typer.testing import CliRunner

from marauder import cli
from marauder.lsp_client import LspClientError, ProbeResult


def _invoke(runner: CliRunner, args: list[str]):
    return runner.invoke(cli.app, args)


def test_cli_help_lists_subcommands() -> None:
    result = _invoke(CliRunner(), ["--help"])
    assert result.exit_code == 0
    for name in ("variants", "materialize", "command", "probe"):
        assert name in result.output


def test_variants_lists_bundled_servers() -> None:
    result = _invoke(CliRunner(), ["variants"])
    assert result.exit_code == 0
    assert "laravel-php\tPHP\tlaravel-lsp.php" in result.output
    assert "laravel-blade\tBlade\tlaravel-blade-lsp.php" in result.output


def test_materialize_writes_script(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    result = _invoke(CliRunner(), ["materialize", "laravel-blade"])
    assert result.exit_code == 0
    path = Path(result.output.strip())
    assert path == tmp_path.resolve() / "laravel-blade-lsp.php"
    assert path.read_bytes().startswith(b"#!/usr/bin/env php")


def test_command_json_uses_config(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "marauder.toml").write_text(
        '[launcher]\ninterpreter = "php8.3"\ninterpreter_args = ["-n"]\n',
        encoding="utf-8",
    )
    result = _invoke(CliRunner(), ["command", "--json"])
    assert result.exit_code == 0
    payload = json.loads(result.output)
    script = str(tmp_path.resolve() / "laravel-lsp.php")
    assert payload == {
        "executable": "/usr/bin/env",
        "args": ["php8.3", "-n", script],
        "env": {},
    }


def test_command_shell_form_prefixes_env(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "marauder.toml").write_text(
        '[launcher.env]\nAPP_ENV = "local dev"\n', encoding="utf-8"
    )
    result = _invoke(CliRunner(), ["command"])
    assert result.exit_code == 0
    assert result.output.startswith("APP_ENV='local dev' /usr/bin/env php ")


def test_unknown_variant_exits_2(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    result = _invoke(CliRunner(), ["command", "laravel-vue"])
    assert result.exit_code == 2
    assert "Unknown language server" in result.output


def test_invalid_config_exits_1(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "marauder.toml").write_text(
        '[launcher]\ninterpreter_args = "-n"\n', encoding="utf-8"
    )
    result = _invoke(CliRunner(), ["command"])
    assert result.exit_code == 1
    assert "Invalid launcher settings" in result.output


def test_materialize_failure_exits_1(tmp_path: Path, monkeypatch) -> None:
    doomed = tmp_path / "doomed"
    doomed.mkdir()
    monkeypatch.chdir(doomed)
    doomed.rmdir()
    result = _invoke(CliRunner(), ["materialize"])
    assert result.exit_code == 1
    assert "Failed to get current directory" in result.output


def test_invalid_log_level_is_rejected() -> None:
    result = _invoke(CliRunner(), ["--log-level", "chatty", "variants"])
    assert result.exit_code == 2


def test_probe_reports_capabilities(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    seen: dict = {}

    def _fake_probe(command, *, root, timeout_ns):
        seen["argv"] = command.argv()
        seen["timeout_ns"] = timeout_ns
        return ProbeResult(
            initialize_result=types.InitializeResult(
                capabilities=types.ServerCapabilities(definition_provider=True),
                server_info=types.ServerInfo(name="laravel-marauder", version="0.1.0"),
            ),
            exit_code=0,
        )

    monkeypatch.setattr(cli, "probe_server", _fake_probe)
    result = _invoke(CliRunner(), ["probe", "--timeout", "1500ms"])
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["server_id"] == "laravel-php"
    assert payload["server_info"] == {"name": "laravel-marauder", "version": "0.1.0"}
    assert payload["capabilities"]["definitionProvider"] is True
    assert seen["timeout_ns"] == 1_500_000_000
    assert seen["argv"][-1] == str(tmp_path.resolve() / "laravel-lsp.php")


def test_probe_failure_exits_1(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    def _failing_probe(command, *, root, timeout_ns):
        raise LspClientError("LSP response timed out")

    monkeypatch.setattr(cli, "probe_server", _failing_probe)
    result = _invoke(CliRunner(), ["probe"])
    assert result.exit_code == 1
    assert "timed out" in result.output


@pytest.mark.parametrize("timeout", ["", "soon", "0s"])
def test_probe_rejects_bad_timeouts(timeout: str) -> None:
    result = _invoke(CliRunner(), ["probe", "--timeout", timeout])
    assert result.exit_code == 2
