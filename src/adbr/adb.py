"""The ``Adb`` entry point and an asynchronous runner for the commands it builds."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

from . import app_installation, file_transfer, general, networking, scripting, shell
from .command import (
    DEFAULT_EXECUTABLE,
    AdbCommand,
    CommandBuilder,
    GlobalOptionSetters,
    Invocation,
    resolve_working_directory,
)
from .devices import Device, parse_devices
from .envs import AdbEnvs
from .file_transfer import PathArg
from .global_option import GlobalOption, GlobalOptions
from .logs import log_event
from .sockets import SocketEndpoint


class ADBError(RuntimeError):
    """Raised when adb cannot be started, times out or returns a non-zero status."""


class Commands:
    """Factories for every supported subcommand; subclasses supply ``_builder``."""

    def _builder(self) -> CommandBuilder:
        raise NotImplementedError

    # general
    def devices(self) -> general.Devices:
        return general.Devices(self._builder())

    def help(self) -> general.Help:
        return general.Help(self._builder())

    def version(self) -> general.Version:
        return general.Version(self._builder())

    def start_server(self) -> general.StartServer:
        return general.StartServer(self._builder())

    def kill_server(self) -> general.KillServer:
        return general.KillServer(self._builder())

    def reconnect(self) -> general.Reconnect:
        return general.Reconnect(self._builder())

    def host_features(self) -> general.HostFeatures:
        return general.HostFeatures(self._builder())

    def features(self) -> general.Features:
        return general.Features(self._builder())

    def bugreport(self, path: PathArg | None = None) -> general.BugReport:
        return general.BugReport(self._builder(), path)

    def jdwp(self) -> general.JdwpList:
        return general.JdwpList(self._builder())

    def logcat(self, *args: str) -> general.Logcat:
        return general.Logcat(self._builder(), *args)

    def disable_verity(self) -> general.DisableVerity:
        return general.DisableVerity(self._builder())

    def enable_verity(self) -> general.EnableVerity:
        return general.EnableVerity(self._builder())

    def keygen(self, file: PathArg) -> general.Keygen:
        return general.Keygen(self._builder(), file)

    def attach(self, serial: str) -> general.Attach:
        return general.Attach(self._builder(), serial)

    def detach(self, serial: str) -> general.Detach:
        return general.Detach(self._builder(), serial)

    # networking
    def connect(self, host: str, port: int | None = None) -> networking.Connect:
        return networking.Connect(self._builder(), host, port)

    def disconnect(self, host: str | None = None, port: int | None = None) -> networking.Disconnect:
        return networking.Disconnect(self._builder(), host, port)

    def pair(
        self,
        host: str,
        port: int | None = None,
        pairing_code: str | None = None,
    ) -> networking.Pair:
        return networking.Pair(self._builder(), host, port, pairing_code)

    def forward(self, local: SocketEndpoint | str, remote: SocketEndpoint | str) -> networking.Forward:
        return networking.Forward(self._builder(), local, remote)

    def forward_list(self) -> networking.ForwardList:
        return networking.ForwardList(self._builder())

    def forward_remove(self, local: SocketEndpoint | str) -> networking.ForwardRemove:
        return networking.ForwardRemove(self._builder(), local)

    def forward_remove_all(self) -> networking.ForwardRemoveAll:
        return networking.ForwardRemoveAll(self._builder())

    def reverse(self, remote: SocketEndpoint | str, local: SocketEndpoint | str) -> networking.Reverse:
        return networking.Reverse(self._builder(), remote, local)

    def reverse_list(self) -> networking.ReverseList:
        return networking.ReverseList(self._builder())

    def reverse_remove(self, remote: SocketEndpoint | str) -> networking.ReverseRemove:
        return networking.ReverseRemove(self._builder(), remote)

    def reverse_remove_all(self) -> networking.ReverseRemoveAll:
        return networking.ReverseRemoveAll(self._builder())

    def mdns_check(self) -> networking.MdnsCheck:
        return networking.MdnsCheck(self._builder())

    def mdns_services(self) -> networking.MdnsServices:
        return networking.MdnsServices(self._builder())

    # file transfer
    def push(self, local: PathArg | Iterable[PathArg], remote: PathArg) -> file_transfer.Push:
        return file_transfer.Push(self._builder(), local, remote)

    def pull(self, remote: PathArg | Iterable[PathArg], local: PathArg) -> file_transfer.Pull:
        return file_transfer.Pull(self._builder(), remote, local)

    def sync(self, target: file_transfer.SyncTarget | str | None = None) -> file_transfer.Sync:
        return file_transfer.Sync(self._builder(), target)

    # app installation
    def install(self, package: PathArg) -> app_installation.Install:
        return app_installation.Install(self._builder(), package)

    def install_multiple(self, *packages: PathArg) -> app_installation.InstallMultiple:
        return app_installation.InstallMultiple(self._builder(), packages)

    def install_multi_package(self, *packages: PathArg) -> app_installation.InstallMultiPackage:
        return app_installation.InstallMultiPackage(self._builder(), packages)

    def uninstall(self, application_id: str) -> app_installation.Uninstall:
        return app_installation.Uninstall(self._builder(), application_id)

    # shell
    def shell(self, *command: str) -> shell.Shell:
        return shell.Shell(self._builder(), *command)

    def emu(self, *command: str) -> shell.Emu:
        return shell.Emu(self._builder(), *command)

    # scripting
    def wait_for(
        self,
        state: scripting.WaitForState | str,
        transport: scripting.WaitForTransport | str | None = None,
    ) -> scripting.WaitFor:
        return scripting.WaitFor(self._builder(), state, transport)

    def get_state(self) -> scripting.GetState:
        return scripting.GetState(self._builder())

    def get_serialno(self) -> scripting.GetSerialNo:
        return scripting.GetSerialNo(self._builder())

    def get_devpath(self) -> scripting.GetDevPath:
        return scripting.GetDevPath(self._builder())

    def remount(self) -> scripting.Remount:
        return scripting.Remount(self._builder())

    def reboot(self, target: scripting.RebootTarget | str | None = None) -> scripting.Reboot:
        return scripting.Reboot(self._builder(), target)

    def sideload(self, ota_package: PathArg | None = None) -> scripting.Sideload:
        return scripting.Sideload(self._builder(), ota_package)

    def sideload_auto_reboot(self) -> scripting.SideloadAutoReboot:
        return scripting.SideloadAutoReboot(self._builder())

    def root(self) -> scripting.Root:
        return scripting.Root(self._builder())

    def unroot(self) -> scripting.Unroot:
        return scripting.Unroot(self._builder())

    def restart_usb(self) -> scripting.RestartUsb:
        return scripting.RestartUsb(self._builder())

    def restart_tcpip(self, port: int) -> scripting.RestartTcpIp:
        return scripting.RestartTcpIp(self._builder(), port)


class AdbCommandBuilder(CommandBuilder, Commands):
    """A builder carrying global options that can produce any subcommand."""


class Adb(GlobalOptionSetters, Commands):
    """Where adb lives and which environment it runs with.

    Every global option setter and command factory starts a fresh
    ``AdbCommandBuilder`` seeded with ``global_options``, so one ``Adb`` can be
    shared freely::

        adb = Adb()
        adb.serial("emulator-5554").forward("tcp:8080", "tcp:80").no_rebind().build()
    """

    def __init__(
        self,
        *,
        executable: str = DEFAULT_EXECUTABLE,
        working_directory: str | os.PathLike[str] | None = None,
        envs: AdbEnvs | None = None,
        environ: Mapping[str, str] | None = None,
        global_options: Iterable[GlobalOption] = (),
    ) -> None:
        self.executable = executable
        self.global_options = GlobalOptions(global_options)
        self.working_directory: Path | None = None
        if working_directory is not None:
            self.working_directory = resolve_working_directory(working_directory)
        self.envs = envs if envs is not None else AdbEnvs.from_environ(environ)

    def command(self) -> AdbCommandBuilder:
        return AdbCommandBuilder(
            executable=self.executable,
            working_directory=self.working_directory,
            envs=self.envs,
            global_options=self.global_options,
        )

    def _builder(self) -> CommandBuilder:
        return self.command()

    def __repr__(self) -> str:
        return (
            f"Adb(executable={self.executable!r}, "
            f"working_directory={self.working_directory!r}, envs={self.envs!r}, "
            f"global_options={self.global_options!r})"
        )


@dataclass(slots=True, frozen=True)
class CommandResult:
    stdout: str
    stderr: str
    returncode: int


@dataclass(slots=True)
class ADBClient:
    """Asynchronous helper for running adb commands."""

    adb: Adb = field(default_factory=Adb)
    command_timeout: float | None = 15.0

    async def run(self, command: AdbCommand, *, check: bool = True) -> CommandResult:
        return await self.execute(command.build(), check=check)

    async def execute(self, invocation: Invocation, *, check: bool = True) -> CommandResult:
        rendered = str(invocation)
        log_event("adb.exec", level=logging.DEBUG, command=rendered)
        try:
            process = await asyncio.create_subprocess_exec(
                *invocation.argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=invocation.environment(os.environ),
                cwd=invocation.cwd,
            )
        except OSError as exc:
            log_event("adb.failed", level=logging.WARNING, command=rendered, reason=str(exc))
            raise ADBError(f"{rendered} could not be started: {exc}") from exc
        try:
            if self.command_timeout is None:
                stdout_bytes, stderr_bytes = await process.communicate()
            else:
                stdout_bytes, stderr_bytes = await asyncio.wait_for(
                    process.communicate(),
                    timeout=self.command_timeout,
                )
        except asyncio.TimeoutError as exc:
            process.kill()
            await process.wait()
            log_event("adb.timeout", level=logging.WARNING, command=rendered, timeout=self.command_timeout)
            raise ADBError(f"{rendered} timed out after {self.command_timeout}s") from exc
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
            log_event("adb.cancelled", level=logging.WARNING, command=rendered)
            raise
        stdout = stdout_bytes.decode("utf-8", errors="replace")
        stderr = stderr_bytes.decode("utf-8", errors="replace")
        returncode = int(process.returncode or 0)
        if check and returncode != 0:
            details = stderr.strip() or "no stderr output"
            log_event("adb.failed", level=logging.WARNING, command=rendered, returncode=returncode)
            raise ADBError(f"{rendered} exited with {returncode}: {details}")
        return CommandResult(stdout=stdout, stderr=stderr, returncode=returncode)

    async def list_devices(self) -> list[Device]:
        result = await self.run(self.adb.devices().long())
        return parse_devices(result.stdout)

    async def shell(self, serial: str, command: str, *, check: bool = True) -> str:
        result = await self.run(self.adb.serial(serial).shell(command), check=check)
        return result.stdout

    async def pull(self, serial: str, remote: str, local: str, *, check: bool = True) -> None:
        await self.run(self.adb.serial(serial).pull(remote, local), check=check)

    async def forward(
        self,
        serial: str,
        local: SocketEndpoint | str,
        remote: SocketEndpoint | str,
        *,
        no_rebind: bool = False,
    ) -> str:
        command = self.adb.serial(serial).forward(local, remote)
        if no_rebind:
            command.no_rebind()
        result = await self.run(command)
        return result.stdout.strip()

    async def forward_list(self, serial: str | None = None) -> list[tuple[str, str, str]]:
        builder = self.adb.serial(serial) if serial else self.adb.command()
        result = await self.run(builder.forward_list())
        forwards: list[tuple[str, str, str]] = []
        for line in result.stdout.splitlines():
            parts = line.split()
            if len(parts) == 3:
                forwards.append((parts[0], parts[1], parts[2]))
        return forwards

    async def forward_remove(self, serial: str, local: SocketEndpoint | str) -> None:
        await self.run(self.adb.serial(serial).forward_remove(local))
