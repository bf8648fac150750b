"""Scripting commands: wait-for, get-state, remount, reboot, sideload, root and friends."""

from __future__ import annotations

import os
from enum import Enum

from .command import AdbCommand, CommandBuilder, FixedCommand
from .errors import InvalidValue
from .file_transfer import PathArg
from .sockets import U16_MAX


class WaitForState(Enum):
    DEVICE = "device"
    RECOVERY = "recovery"
    RESCUE = "rescue"
    SIDELOAD = "sideload"
    BOOTLOADER = "bootloader"
    DISCONNECT = "disconnect"


class WaitForTransport(Enum):
    USB = "usb"
    LOCAL = "local"
    ANY = "any"


class RebootTarget(Enum):
    BOOTLOADER = "bootloader"
    RECOVERY = "recovery"
    SIDELOAD = "sideload"
    SIDELOAD_AUTO_REBOOT = "sideload-auto-reboot"


class WaitFor(AdbCommand):
    """``wait-for[-TRANSPORT]-STATE``: wait for the device to be in the given state."""

    def __init__(
        self,
        builder: CommandBuilder,
        state: WaitForState | str,
        transport: WaitForTransport | str | None = None,
    ) -> None:
        super().__init__(builder)
        self._state = WaitForState(state)
        self._transport = None if transport is None else WaitForTransport(transport)

    def state(self, state: WaitForState | str) -> WaitFor:
        self._state = WaitForState(state)
        return self

    def transport(self, transport: WaitForTransport | str) -> WaitFor:
        self._transport = WaitForTransport(transport)
        return self

    def arguments(self) -> list[str]:
        parts = ["wait-for"]
        if self._transport is not None:
            parts.append(self._transport.value)
        parts.append(self._state.value)
        return ["-".join(parts)]


class GetState(FixedCommand):
    """``get-state``: print offline | bootloader | device."""

    ARGUMENTS = ("get-state",)


class GetSerialNo(FixedCommand):
    ARGUMENTS = ("get-serialno",)


class GetDevPath(FixedCommand):
    ARGUMENTS = ("get-devpath",)


class Remount(AdbCommand):
    """``remount [-R]``: remount partitions read-write, ``-R`` reboots automatically."""

    def __init__(self, builder: CommandBuilder) -> None:
        super().__init__(builder)
        self._reboot = False

    def reboot(self, value: bool = True) -> Remount:
        self._reboot = value
        return self

    def arguments(self) -> list[str]:
        return ["remount", "-R"] if self._reboot else ["remount"]


class Reboot(AdbCommand):
    """``reboot [bootloader|recovery|sideload|sideload-auto-reboot]``"""

    def __init__(self, builder: CommandBuilder, target: RebootTarget | str | None = None) -> None:
        super().__init__(builder)
        self._target = None if target is None else RebootTarget(target)

    def target(self, target: RebootTarget | str) -> Reboot:
        self._target = RebootTarget(target)
        return self

    def arguments(self) -> list[str]:
        if self._target is None:
            return ["reboot"]
        return ["reboot", self._target.value]


class Sideload(AdbCommand):
    """``sideload [OTAPACKAGE]``: start sideload mode, or sideload the given OTA package."""

    def __init__(self, builder: CommandBuilder, ota_package: PathArg | None = None) -> None:
        super().__init__(builder)
        self.ota_package = None if ota_package is None else os.fspath(ota_package)

    def arguments(self) -> list[str]:
        if self.ota_package is None:
            return ["sideload"]
        return ["sideload", self.ota_package]


class SideloadAutoReboot(FixedCommand):
    ARGUMENTS = ("sideload-auto-reboot",)


class Root(FixedCommand):
    """``root``: restart adbd with root permissions."""

    ARGUMENTS = ("root",)


class Unroot(FixedCommand):
    ARGUMENTS = ("unroot",)


class RestartUsb(FixedCommand):
    """``usb``: restart adbd listening on USB."""

    ARGUMENTS = ("usb",)


class RestartTcpIp(AdbCommand):
    """``tcpip PORT``: restart adbd listening on TCP on PORT."""

    def __init__(self, builder: CommandBuilder, port: int) -> None:
        super().__init__(builder)
        if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= U16_MAX:
            raise InvalidValue(repr(port), "port (u16)", "port must be in 0..65535")
        self.port = port

    def arguments(self) -> list[str]:
        return ["tcpip", str(self.port)]
