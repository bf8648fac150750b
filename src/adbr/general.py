"""General, server, debugging, security and USB commands."""

from __future__ import annotations

import os

from .command import AdbCommand, CommandBuilder, FixedCommand
from .file_transfer import PathArg


class Devices(AdbCommand):
    """``devices [-l]``: list connected devices, ``-l`` for long output."""

    def __init__(self, builder: CommandBuilder) -> None:
        super().__init__(builder)
        self._long = False

    def long(self) -> Devices:
        self._long = True
        return self

    def arguments(self) -> list[str]:
        return ["devices", "-l"] if self._long else ["devices"]


class Help(FixedCommand):
    ARGUMENTS = ("help",)


class Version(FixedCommand):
    ARGUMENTS = ("version",)


class StartServer(FixedCommand):
    ARGUMENTS = ("start-server",)


class KillServer(FixedCommand):
    ARGUMENTS = ("kill-server",)


class Reconnect(AdbCommand):
    """``reconnect [device|offline]``: kick the connection from host or device side."""

    def __init__(self, builder: CommandBuilder) -> None:
        super().__init__(builder)
        self._side: str | None = None

    def device(self) -> Reconnect:
        """Kick the connection from the device side to force a reconnect."""

        self._side = "device"
        return self

    def offline(self) -> Reconnect:
        """Reset offline/unauthorized devices to force a reconnect."""

        self._side = "offline"
        return self

    def arguments(self) -> list[str]:
        if self._side is None:
            return ["reconnect"]
        return ["reconnect", self._side]


class HostFeatures(FixedCommand):
    ARGUMENTS = ("host-features",)


class Features(FixedCommand):
    ARGUMENTS = ("features",)


class BugReport(AdbCommand):
    """``bugreport [PATH]``: write a bugreport to PATH (default ``bugreport.zip``)."""

    def __init__(self, builder: CommandBuilder, path: PathArg | None = None) -> None:
        super().__init__(builder)
        self.path = None if path is None else os.fspath(path)

    def arguments(self) -> list[str]:
        return ["bugreport"] if self.path is None else ["bugreport", self.path]


class JdwpList(FixedCommand):
    """``jdwp``: list pids of processes hosting a JDWP transport."""

    ARGUMENTS = ("jdwp",)


class Logcat(AdbCommand):
    """``logcat``: show device log; extra arguments are passed through."""

    def __init__(self, builder: CommandBuilder, *args: str) -> None:
        super().__init__(builder)
        self.args = list(args)

    def arguments(self) -> list[str]:
        return ["logcat", *self.args]


class DisableVerity(FixedCommand):
    ARGUMENTS = ("disable-verity",)


class EnableVerity(FixedCommand):
    ARGUMENTS = ("enable-verity",)


class Keygen(AdbCommand):
    """``keygen FILE``: generate adb public/private key; the private key goes to FILE."""

    def __init__(self, builder: CommandBuilder, file: PathArg) -> None:
        super().__init__(builder)
        self.file = os.fspath(file)

    def arguments(self) -> list[str]:
        return ["keygen", self.file]


class Attach(AdbCommand):
    """``attach SERIAL``: attach a detached USB device."""

    def __init__(self, builder: CommandBuilder, serial: str) -> None:
        super().__init__(builder)
        self.serial = serial

    def arguments(self) -> list[str]:
        return ["attach", self.serial]


class Detach(Attach):
    """``detach SERIAL``: detach from a USB device to allow use by other processes."""

    def arguments(self) -> list[str]:
        return ["detach", self.serial]
