"""App installation commands.

- ``install [-lrtsdg] [--instant] PACKAGE``
- ``install-multiple [-lrtsdpg] [--instant] PACKAGE...``
- ``install-multi-package [-lrtsdpg] [--instant] PACKAGE...``
- ``uninstall [-k] APPLICATION_ID``
"""

from __future__ import annotations

import os
from typing import Iterable

from .command import AdbCommand, CommandBuilder
from .file_transfer import PathArg, path_args

# Flag spellings as adb expects them; a few still use a single dash.
_SHORT_SWITCHES = {
    "forward_lock": "-l",
    "replace": "-r",
    "allow_test": "-t",
    "sdcard": "-s",
    "downgrade": "-d",
    "partial": "-p",
    "grant_permissions": "-g",
}
_LONG_SWITCHES = {
    "instant": "--instant",
    "no_streaming": "--no-streaming",
    "streaming": "--streaming",
    "fastdeploy": "--fastdeploy",
    "no_fastdeploy": "-no-fastdeploy",
    "force_agent": "-force-agent",
    "date_check_agent": "-date-check-agent",
    "version_check_agent": "--version-check-agent",
    "local_agent": "--local-agent",
}


class _Installer(AdbCommand):
    SUBCOMMAND = ""

    def __init__(self, builder: CommandBuilder, packages: PathArg | Iterable[PathArg]) -> None:
        super().__init__(builder)
        self.packages = path_args(packages)
        self._switches: set[str] = set()
        self._abi: str | None = None

    def _switch(self, name: str) -> _Installer:
        self._switches.add(name)
        return self

    def forward_lock(self) -> _Installer:
        """``-l``: forward lock application."""
        return self._switch("forward_lock")

    def replace(self) -> _Installer:
        """``-r``: replace existing application."""
        return self._switch("replace")

    def allow_test(self) -> _Installer:
        """``-t``: allow test packages."""
        return self._switch("allow_test")

    def sdcard(self) -> _Installer:
        """``-s``: install application on sdcard."""
        return self._switch("sdcard")

    def downgrade(self) -> _Installer:
        """``-d``: allow version code downgrade (debuggable packages only)."""
        return self._switch("downgrade")

    def grant_permissions(self) -> _Installer:
        """``-g``: grant all runtime permissions."""
        return self._switch("grant_permissions")

    def abi(self, abi: str) -> _Installer:
        """``--abi ABI``: override platform's default ABI."""
        self._abi = abi
        return self

    def instant(self) -> _Installer:
        return self._switch("instant")

    def no_streaming(self) -> _Installer:
        self._switches.discard("streaming")
        return self._switch("no_streaming")

    def streaming(self) -> _Installer:
        self._switches.discard("no_streaming")
        return self._switch("streaming")

    def fastdeploy(self) -> _Installer:
        self._switches.discard("no_fastdeploy")
        return self._switch("fastdeploy")

    def no_fastdeploy(self) -> _Installer:
        self._switches.discard("fastdeploy")
        return self._switch("no_fastdeploy")

    def force_agent(self) -> _Installer:
        return self._switch("force_agent")

    def date_check_agent(self) -> _Installer:
        return self._switch("date_check_agent")

    def version_check_agent(self) -> _Installer:
        return self._switch("version_check_agent")

    def local_agent(self) -> _Installer:
        return self._switch("local_agent")

    def arguments(self) -> list[str]:
        args = [self.SUBCOMMAND]
        args.extend(flag for name, flag in _SHORT_SWITCHES.items() if name in self._switches)
        if self._abi is not None:
            args.extend(["--abi", self._abi])
        args.extend(flag for name, flag in _LONG_SWITCHES.items() if name in self._switches)
        args.extend(self.packages)
        return args


class Install(_Installer):
    """``install``: push a single package to the device and install it."""

    SUBCOMMAND = "install"

    def __init__(self, builder: CommandBuilder, package: PathArg) -> None:
        super().__init__(builder, os.fspath(package))


class InstallMultiple(_Installer):
    """``install-multiple``: push multiple APKs for a single package and install them."""

    SUBCOMMAND = "install-multiple"

    def partial(self) -> InstallMultiple:
        """``-p``: partial application install."""
        self._switch("partial")
        return self


class InstallMultiPackage(InstallMultiple):
    """``install-multi-package``: install multiple packages atomically."""

    SUBCOMMAND = "install-multi-package"


class Uninstall(AdbCommand):
    """``uninstall [-k] APPLICATION_ID``: remove the app from the device."""

    def __init__(self, builder: CommandBuilder, application_id: str) -> None:
        super().__init__(builder)
        self.application_id = application_id
        self._keep_data = False

    def keep_data(self) -> Uninstall:
        """``-k``: keep the data and cache directories."""
        self._keep_data = True
        return self

    def arguments(self) -> list[str]:
        args = ["uninstall"]
        if self._keep_data:
            args.append("-k")
        args.append(self.application_id)
        return args
