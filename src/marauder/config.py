from __future__ import annotations

from datetime import date, datetime, time
from pathlib import Path
from typing import TypeAlias
import tomllib

from pydantic import ValidationError

from marauder.exceptions import ConfigError
from marauder.runtime.env_policy import interpreter_override
from marauder.schema import LauncherSettings

DEFAULT_CONFIG_NAME = "marauder.toml"

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError:
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def _section(data: TomlTable, name: str) -> TomlTable:
    section = data.get(name, {})
    return section if isinstance(section, dict) else {}


def settings_from_table(
    data: TomlTable, server_id: str, *, apply_env: bool = True
) -> LauncherSettings:
    """Merge ``[launcher]`` with ``[variants.<server_id>]`` and validate.

    ``env`` tables merge key by key; every other key in the variant table
    replaces the launcher value. ``MARAUDER_PHP`` wins over both.
    """
    base = dict(_section(data, "launcher"))
    override = _section(_section(data, "variants"), server_id)
    merged: TomlTable = {**base, **override}
    base_env = base.get("env")
    override_env = override.get("env")
    if isinstance(base_env, dict) and isinstance(override_env, dict):
        merged["env"] = {**base_env, **override_env}
    if apply_env:
        interpreter = interpreter_override()
        if interpreter is not None:
            merged["interpreter"] = interpreter
    try:
        return LauncherSettings.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(
            f"Invalid launcher settings for {server_id!r}: {exc}"
        ) from exc


def launcher_settings(
    server_id: str,
    root: Path | None = None,
    config_path: Path | None = None,
) -> LauncherSettings:
    data = load_config(root=root, config_path=config_path)
    return settings_from_table(data, server_id)
