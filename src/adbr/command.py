"""Materialised adb invocations and the builder that owns their global state."""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

from .envs import AdbEnvs
from .global_option import GlobalOption, GlobalOptions
from .sockets import IPAddress, Tcp, resolve_ip

DEFAULT_EXECUTABLE = "adb"


@dataclass(slots=True, frozen=True)
class Invocation:
    """Everything needed to spawn one adb process."""

    argv: tuple[str, ...]
    overrides: Mapping[str, str | None] = field(default_factory=dict)
    cwd: Path | None = None

    def environment(self, base: Mapping[str, str]) -> dict[str, str]:
        env = dict(base)
        for name, value in self.overrides.items():
            if value is None:
                env.pop(name, None)
            else:
                env[name] = value
        return env

    def __str__(self) -> str:
        return shlex.join(self.argv)


def resolve_working_directory(path: str | Path) -> Path:
    directory = Path(path).expanduser().resolve(strict=True)
    if not directory.is_dir():
        raise NotADirectoryError(f"not a directory: {directory}")
    return directory


class GlobalOptionSetters:
    """Fluent setters for the global options; subclasses supply ``_builder``."""

    def _builder(self) -> CommandBuilder:
        raise NotImplementedError

    def option(self, option: GlobalOption) -> CommandBuilder:
        builder = self._builder()
        builder.global_options.add(option)
        return builder

    def listen_all(self) -> CommandBuilder:
        return self.option(GlobalOption.listen_all())

    def usb(self) -> CommandBuilder:
        return self.option(GlobalOption.usb())

    def tcp_ip(self) -> CommandBuilder:
        return self.option(GlobalOption.tcp_ip())

    def serial(self, serial: str) -> CommandBuilder:
        return self.option(GlobalOption.serial(serial))

    def transport_id(self, transport_id: str | int) -> CommandBuilder:
        return self.option(GlobalOption.transport_id(transport_id))

    def host(self, host: IPAddress | str) -> CommandBuilder:
        return self.option(GlobalOption.host(host))

    def host_resolved(self, host: str) -> CommandBuilder:
        """``-H`` with ``host`` resolved to an address. Blocks on the resolver."""

        return self.option(GlobalOption.host(resolve_ip(host)))

    def port(self, port: int) -> CommandBuilder:
        return self.option(GlobalOption.port(port))

    def listen(self, socket: Tcp | str) -> CommandBuilder:
        return self.option(GlobalOption.listen(socket))

    def listen_resolved(self, socket: str) -> CommandBuilder:
        """``-L`` accepting a hostname. Blocks on the resolver."""

        return self.option(GlobalOption.listen(Tcp.from_host(socket)))

    def one_device(self, device: str) -> CommandBuilder:
        return self.option(GlobalOption.one_device(device))

    def exit_on_write_error(self) -> CommandBuilder:
        return self.option(GlobalOption.exit_on_write_error())


class CommandBuilder(GlobalOptionSetters):
    """Collects the global options, environment and location of one adb command line."""

    def __init__(
        self,
        *,
        executable: str = DEFAULT_EXECUTABLE,
        working_directory: Path | None = None,
        envs: AdbEnvs | None = None,
        global_options: Iterable[GlobalOption] = (),
    ) -> None:
        self.executable = executable
        self.working_directory = working_directory
        self.envs = envs if envs is not None else AdbEnvs()
        self.global_options = GlobalOptions(global_options)

    def _builder(self) -> CommandBuilder:
        return self

    def invocation(self, arguments: Iterable[str]) -> Invocation:
        program = self.executable
        if self.working_directory is not None:
            program = str(self.working_directory / self.executable)
        argv = (program, *self.global_options.to_args(), *arguments)
        return Invocation(argv=argv, overrides=self.envs.to_strings(), cwd=self.working_directory)


class AdbCommand:
    """Base class of every subcommand builder."""

    def __init__(self, builder: CommandBuilder) -> None:
        self._builder = builder

    def arguments(self) -> list[str]:
        raise NotImplementedError

    def build(self) -> Invocation:
        return self._builder.invocation(self.arguments())

    def __str__(self) -> str:
        return str(self.build())


class FixedCommand(AdbCommand):
    """A subcommand that takes no options of its own."""

    ARGUMENTS: tuple[str, ...] = ()

    def arguments(self) -> list[str]:
        return list(self.ARGUMENTS)
