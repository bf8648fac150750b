"""Shell commands: ``shell`` and ``emu``."""

from __future__ import annotations

from enum import Enum

from .command import AdbCommand, CommandBuilder
from .errors import InvalidValue


class PtyAllocation(Enum):
    DISABLE = "-T"
    ENABLE = "-t"
    FORCE = "-tt"


class Shell(AdbCommand):
    """``shell [-e ESCAPE] [-n] [-Tt] [-x] [COMMAND...]``

    Runs a remote shell command, or an interactive shell when no command is given.
    """

    def __init__(self, builder: CommandBuilder, *command: str) -> None:
        super().__init__(builder)
        self.command = list(command)
        self._escape: str | None = None
        self._no_stdin = False
        self._pty: PtyAllocation | None = None
        self._no_remote_errors = False

    def escape(self, char: str) -> Shell:
        """``-e``: escape character, or ``none``; default ``~``."""

        if char != "none" and len(char) != 1:
            raise InvalidValue(char, "escape character", "expected a single character or `none`")
        self._escape = char
        return self

    def no_stdin(self) -> Shell:
        """``-n``: don't read from stdin."""

        self._no_stdin = True
        return self

    def pty(self, allocation: PtyAllocation) -> Shell:
        self._pty = allocation
        return self

    def disable_pty(self) -> Shell:
        return self.pty(PtyAllocation.DISABLE)

    def enable_pty(self) -> Shell:
        return self.pty(PtyAllocation.ENABLE)

    def force_pty(self) -> Shell:
        return self.pty(PtyAllocation.FORCE)

    def no_remote_errors(self) -> Shell:
        """``-x``: disable remote exit codes and stdout/stderr separation."""

        self._no_remote_errors = True
        return self

    def arg(self, argument: str) -> Shell:
        self.command.append(argument)
        return self

    def args(self, *arguments: str) -> Shell:
        self.command.extend(arguments)
        return self

    def arguments(self) -> list[str]:
        args = ["shell"]
        if self._escape is not None:
            args.extend(["-e", self._escape])
        if self._no_stdin:
            args.append("-n")
        if self._pty is not None:
            args.append(self._pty.value)
        if self._no_remote_errors:
            args.append("-x")
        args.extend(self.command)
        return args


class Emu(AdbCommand):
    """``emu COMMAND``: run an emulator console command."""

    def __init__(self, builder: CommandBuilder, *command: str) -> None:
        super().__init__(builder)
        self.command = list(command)

    def arguments(self) -> list[str]:
        return ["emu", *self.command]
