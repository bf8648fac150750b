"""Configuration loading helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .adb import Adb, ADBClient
from .command import DEFAULT_EXECUTABLE
from .envs import AdbEnvs
from .errors import ParseError
from .global_option import GlobalOptions


@dataclass(slots=True, frozen=True)
class Settings:
    executable: str = DEFAULT_EXECUTABLE
    working_directory: Path | None = None
    command_timeout: float = 15.0
    global_options: GlobalOptions = field(default_factory=GlobalOptions)
    envs: AdbEnvs = field(default_factory=AdbEnvs)

    def adb(self) -> Adb:
        return Adb(
            executable=self.executable,
            working_directory=self.working_directory,
            envs=self.envs,
            global_options=self.global_options,
        )

    def client(self) -> ADBClient:
        return ADBClient(adb=self.adb(), command_timeout=self.command_timeout)


def load_settings(path: Path) -> Settings:
    """Load configuration from a YAML document.

    Everything lives under an ``adb:`` mapping; a missing section yields the
    defaults. Values are validated here so a bad file fails at start-up.
    """

    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError("Configuration root must be a mapping")
    adb_raw = raw.get("adb") or {}
    if not isinstance(adb_raw, dict):
        raise ValueError("Field 'adb' must be a mapping")

    executable = DEFAULT_EXECUTABLE
    if "executable" in adb_raw:
        executable = _require_str(adb_raw, "executable")

    working_directory = None
    if adb_raw.get("working_directory") is not None:
        working_directory = Path(_require_str(adb_raw, "working_directory")).expanduser()
        if not working_directory.is_absolute():
            working_directory = path.parent / working_directory
        if not working_directory.is_dir():
            raise ValueError(f"Field 'working_directory' must be an existing directory: {working_directory}")

    timeout = 15.0
    if "command_timeout_seconds" in adb_raw:
        timeout = _require_float(adb_raw, "command_timeout_seconds")
    if timeout <= 0:
        raise ValueError("adb.command_timeout_seconds must be > 0")

    return Settings(
        executable=executable,
        working_directory=working_directory,
        command_timeout=timeout,
        global_options=_parse_global_options(adb_raw),
        envs=_parse_environment(adb_raw),
    )


def _parse_global_options(source: dict[str, Any]) -> GlobalOptions:
    values = source.get("global_options") or []
    if not isinstance(values, list) or not all(isinstance(item, str) for item in values):
        raise ValueError("Field 'global_options' must be a list of strings")
    try:
        return GlobalOptions.parse(values)
    except ParseError as exc:
        raise ValueError(f"Field 'global_options' is invalid: {exc}") from exc


def _parse_environment(source: dict[str, Any]) -> AdbEnvs:
    values = source.get("environment") or {}
    if not isinstance(values, dict):
        raise ValueError("Field 'environment' must be a mapping")
    try:
        return AdbEnvs.from_strings({str(name): str(value) for name, value in values.items()})
    except ParseError as exc:
        raise ValueError(f"Field 'environment' is invalid: {exc}") from exc


def _require_str(source: dict[str, Any], key: str) -> str:
    value = source.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Field '{key}' must be a non-empty string")
    return value.strip()


def _require_float(source: dict[str, Any], key: str) -> float:
    value = source.get(key)
    if value is None:
        raise ValueError(f"Field '{key}' must be provided")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Field '{key}' must be numeric") from exc
