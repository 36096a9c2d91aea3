from __future__ import annotations

import json
import shlex
from pathlib import Path
from typing import Optional

import typer

from marauder.config import launcher_settings
from marauder.exceptions import BootstrapError, ConfigError, UnknownLanguageServer
from marauder.extension import MarauderExtension
from marauder.lsp_client import LspClientError, probe_server
from marauder.runtime.env_policy import default_log_level, parse_duration_to_ns
from marauder.schema import CommandDTO, ProbeResponseDTO, ServerInfoDTO
from marauder.telemetry import configure_logging
from marauder.variants import DEFAULT_SERVER_ID, VARIANTS, LanguageServerVariant, get_variant

app = typer.Typer(add_completion=False)

_SERVER_ID_ARG = typer.Argument(DEFAULT_SERVER_ID, help="Language server variant id.")


@app.callback()
def _configure(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level (default: $MARAUDER_LOG_LEVEL or WARNING)."
    ),
) -> None:
    try:
        configure_logging(log_level or default_log_level())
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--log-level") from exc


def _fail(message: str, *, code: int = 1) -> typer.Exit:
    typer.secho(message, err=True, fg=typer.colors.RED)
    return typer.Exit(code=code)


def _variant(server_id: str) -> LanguageServerVariant:
    try:
        return get_variant(server_id)
    except UnknownLanguageServer as exc:
        raise _fail(str(exc), code=2) from exc


def _extension(
    variant: LanguageServerVariant,
    *,
    root: Path | None,
    config: Path | None,
) -> MarauderExtension:
    try:
        settings = launcher_settings(variant.server_id, root=root, config_path=config)
    except ConfigError as exc:
        raise _fail(str(exc)) from exc
    return MarauderExtension({variant.server_id: settings})


@app.command("variants")
def list_variants() -> None:
    """List the bundled language-server variants."""
    for variant in VARIANTS.values():
        typer.echo(f"{variant.server_id}\t{variant.language}\t{variant.target_filename}")


@app.command()
def materialize(server_id: str = _SERVER_ID_ARG) -> None:
    """Write the variant's script into the working directory and print its path."""
    variant = _variant(server_id)
    try:
        path = variant.bootstrapper().ensure_materialized()
    except BootstrapError as exc:
        raise _fail(str(exc)) from exc
    typer.echo(path)


@app.command()
def command(
    server_id: str = _SERVER_ID_ARG,
    json_output: bool = typer.Option(False, "--json", help="Print the command as JSON."),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
) -> None:
    """Print the command that launches the variant's language server."""
    variant = _variant(server_id)
    extension = _extension(variant, root=root, config=config)
    try:
        launch = extension.language_server_command(variant.server_id)
    except BootstrapError as exc:
        raise _fail(str(exc)) from exc
    if json_output:
        payload = CommandDTO.model_validate(launch.to_payload()).model_dump()
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        return
    prefix = " ".join(f"{key}={shlex.quote(value)}" for key, value in launch.env.items())
    argv = shlex.join(launch.argv())
    typer.echo(f"{prefix} {argv}" if prefix else argv)


@app.command()
def probe(
    server_id: str = _SERVER_ID_ARG,
    timeout: str = typer.Option("10s", "--timeout", help="Handshake timeout, e.g. 500ms, 10s, 1m."),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
) -> None:
    """Launch the language server, run the LSP handshake and report its capabilities."""
    try:
        timeout_ns = parse_duration_to_ns(timeout)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--timeout") from exc
    variant = _variant(server_id)
    extension = _extension(variant, root=root, config=config)
    try:
        launch = extension.language_server_command(variant.server_id)
        result = probe_server(launch, root=root, timeout_ns=timeout_ns)
    except (BootstrapError, LspClientError) as exc:
        raise _fail(str(exc)) from exc
    info = result.server_info
    response = ProbeResponseDTO(
        server_id=variant.server_id,
        command=CommandDTO.model_validate(launch.to_payload()),
        server_info=(
            ServerInfoDTO(name=info.name, version=info.version) if info is not None else None
        ),
        capabilities=result.capabilities_payload(),
        exit_code=result.exit_code,
    )
    typer.echo(json.dumps(response.model_dump(), indent=2, sort_keys=True))


def main() -> None:
    app()
