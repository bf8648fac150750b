"""Environment variables understood by the adb client.

``AdbEnvs`` is read once from a mapping (``os.environ`` by default) and then
applied to the environment of every child process. A variable left as
``None`` is removed from the child's environment.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Callable, Mapping, MutableMapping

from .errors import InvalidValue
from .sockets import U16_MAX


class TraceTag(Enum):
    ALL = "all"
    ADB = "adb"
    SOCKETS = "sockets"
    PACKETS = "packets"
    RWX = "rwx"
    USB = "usb"
    SYNC = "sync"
    SYSDEPS = "sysdeps"
    TRANSPORT = "transport"
    JDWP = "jdwp"
    SERVICES = "services"
    AUTH = "auth"
    FDEVENT = "fdevent"
    SHELL = "shell"
    INCREMENTAL = "incremental"
    MDNS = "mdns"


def _parse_trace(raw: str) -> tuple[TraceTag, ...]:
    tags: list[TraceTag] = []
    for token in re.split(r"[ ,]", raw):
        if not token:
            continue
        try:
            tags.append(TraceTag(token))
        except ValueError as exc:
            raise InvalidValue(token, "ADB_TRACE", "unknown adb trace tag") from exc
    return tuple(tags)


def _parse_port(raw: str) -> int:
    if not (raw.isascii() and raw.isdigit()) or int(raw) > U16_MAX:
        raise InvalidValue(raw, "ADB_LOCAL_TRANSPORT_MAX_PORT", "invalid port")
    return int(raw)


def _parse_libusb(raw: str) -> bool:
    if raw not in ("0", "1"):
        raise InvalidValue(raw, "ADB_LIBUSB", "expected `0` or `1`")
    return raw == "1"


def _flag(value: bool) -> str:
    return "1" if value else "0"


_CODECS: dict[str, tuple[str, Callable[[str], Any], Callable[[Any], str]]] = {
    "adb_trace": ("ADB_TRACE", _parse_trace, lambda tags: ",".join(tag.value for tag in tags)),
    "adb_vendor_keys": ("ADB_VENDOR_KEYS", lambda raw: tuple(raw.split(":")), ":".join),
    "android_serial": ("ANDROID_SERIAL", str, str),
    "android_log_tags": ("ANDROID_LOG_TAGS", str, str),
    "adb_local_transport_max_port": ("ADB_LOCAL_TRANSPORT_MAX_PORT", _parse_port, str),
    "adb_mdns_auto_connect": (
        "ADB_MDNS_AUTO_CONNECT",
        lambda raw: tuple(raw.split(",")),
        ",".join,
    ),
    "adb_mdns_openscreen": ("ADB_MDNS_OPENSCREEN", lambda raw: raw == "1", _flag),
    "adb_libusb": ("ADB_LIBUSB", _parse_libusb, _flag),
}

VARIABLE_NAMES: tuple[str, ...] = tuple(name for name, _, _ in _CODECS.values())


@dataclass(slots=True, frozen=True)
class AdbEnvs:
    """Values of the adb environment variables passed to child processes."""

    adb_trace: tuple[TraceTag, ...] | None = None
    adb_vendor_keys: tuple[str, ...] | None = None
    android_serial: str | None = None
    android_log_tags: str | None = None
    adb_local_transport_max_port: int | None = None
    adb_mdns_auto_connect: tuple[str, ...] | None = None
    adb_mdns_openscreen: bool | None = None
    adb_libusb: bool | None = None

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> AdbEnvs:
        """Read every adb variable present in ``environ`` (``os.environ`` if omitted)."""

        source = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for attribute, (name, parse, _) in _CODECS.items():
            raw = source.get(name)
            if raw is not None:
                values[attribute] = parse(raw)
        return cls(**values)

    @classmethod
    def from_strings(cls, variables: Mapping[str, str]) -> AdbEnvs:
        unknown = sorted(set(variables) - set(VARIABLE_NAMES))
        if unknown:
            raise InvalidValue(", ".join(unknown), "AdbEnvs", "unknown adb environment variable")
        return cls.from_environ(variables)

    def with_values(self, **changes: Any) -> AdbEnvs:
        return replace(self, **changes)

    def to_strings(self) -> dict[str, str | None]:
        """Rendered value of every variable; ``None`` marks a variable to remove."""

        rendered: dict[str, str | None] = {}
        for item in fields(self):
            name, _, render = _CODECS[item.name]
            value = getattr(self, item.name)
            rendered[name] = None if value is None else render(value)
        return rendered

    def apply(self, env: MutableMapping[str, str]) -> None:
        for name, value in self.to_strings().items():
            if value is None:
                env.pop(name, None)
            else:
                env[name] = value
