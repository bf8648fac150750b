from __future__ import annotations

from pathlib import Path

import pytest

from adbr.adb import ADBClient
from adbr.config import Settings, load_settings
from adbr.envs import AdbEnvs, TraceTag
from adbr.global_option import GlobalOption, GlobalOptions


def _write_config(tmp_path: Path, yaml_text: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(yaml_text, encoding="utf-8")
    return path


def test_load_settings_parses_adb_section(tmp_path: Path) -> None:
    (tmp_path / "platform-tools").mkdir()
    yaml_text = """
    adb:
      executable: adb
      working_directory: platform-tools
      command_timeout_seconds: 5
      global_options:
        - -s emulator-5554
        - -d
        - -P 5038
      environment:
        ADB_TRACE: adb,usb
        ANDROID_SERIAL: emulator-5554
    """
    config_path = _write_config(tmp_path, yaml_text)

    settings = load_settings(config_path)

    assert isinstance(settings, Settings)
    assert settings.executable == "adb"
    assert settings.working_directory == tmp_path / "platform-tools"
    assert settings.command_timeout == 5
    assert settings.global_options == GlobalOptions(
        [GlobalOption.serial("emulator-5554"), GlobalOption.usb(), GlobalOption.port(5038)]
    )
    assert settings.envs == AdbEnvs(adb_trace=(TraceTag.ADB, TraceTag.USB), android_serial="emulator-5554")


def test_load_settings_defaults_when_section_missing(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, "other: true\n")

    settings = load_settings(config_path)

    assert settings.executable == "adb"
    assert settings.working_directory is None
    assert settings.command_timeout == 15
    assert len(settings.global_options) == 0
    assert settings.envs == AdbEnvs()


def test_settings_build_a_configured_client(tmp_path: Path) -> None:
    yaml_text = """
    adb:
      command_timeout_seconds: 2.5
      global_options: ["-e"]
    """
    settings = load_settings(_write_config(tmp_path, yaml_text))

    client = settings.client()

    assert isinstance(client, ADBClient)
    assert client.command_timeout == 2.5
    assert client.adb.devices().build().argv == ("adb", "-e", "devices")


@pytest.mark.parametrize(
    ("yaml_text", "message"),
    [
        ("adb:\n  command_timeout_seconds: 0\n", "command_timeout_seconds"),
        ("adb:\n  command_timeout_seconds: soon\n", "command_timeout_seconds"),
        ("adb:\n  executable: ''\n", "executable"),
        ("adb:\n  working_directory: missing\n", "working_directory"),
        ("adb:\n  global_options: -d\n", "global_options"),
        ("adb:\n  global_options: ['-q']\n", "global_options"),
        ("adb:\n  environment: [ADB_TRACE]\n", "environment"),
        ("adb:\n  environment:\n    ADB_LIBUSB: maybe\n", "environment"),
        ("adb:\n  environment:\n    HOME: /root\n", "environment"),
        ("adb: [1, 2]\n", "adb"),
    ],
)
def test_load_settings_rejects_invalid_fields(tmp_path: Path, yaml_text: str, message: str) -> None:
    config_path = _write_config(tmp_path, yaml_text)

    with pytest.raises(ValueError, match=message):
        load_settings(config_path)
