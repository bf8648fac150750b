"""Parsing of ``adb devices [-l]`` output."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

ONLINE_STATE = "device"

_ATTRIBUTE = re.compile(r"([A-Za-z_]+):(\S*)")


@dataclass(slots=True)
class Device:
    serial: str
    state: str
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def online(self) -> bool:
        return self.state == ONLINE_STATE

    @property
    def model(self) -> str | None:
        return self.attributes.get("model")

    @property
    def transport_id(self) -> str | None:
        return self.attributes.get("transport_id")


def parse_devices(output: str) -> list[Device]:
    """Turn the table printed by ``adb devices`` into ``Device`` records.

    The header line and daemon start-up chatter (``* daemon started *``) are
    skipped. With ``-l`` every ``key:value`` column lands in ``attributes``;
    other columns such as ``usb:1-1`` are kept under their prefix too.
    """

    devices: list[Device] = []
    for line in output.splitlines():
        line = line.strip()
        if not line or line.startswith("List of devices") or line.startswith("*"):
            continue
        serial, *rest = line.split()
        if not rest:
            continue
        state, *columns = rest
        if state == "no" and columns[:1] == ["permissions"]:
            state = "no permissions"
        attributes: dict[str, str] = {}
        for column in columns:
            match = _ATTRIBUTE.fullmatch(column)
            if match:
                attributes[match.group(1)] = match.group(2)
        devices.append(Device(serial=serial, state=state, attributes=attributes))
    return devices
