"""Networking commands: connect, disconnect, pair, forward, reverse and mdns."""

from __future__ import annotations

from .command import AdbCommand, CommandBuilder, FixedCommand
from .errors import InvalidValue
from .sockets import U16_MAX, SocketEndpoint, coerce_socket


def _host_and_port(host: str, port: int | None) -> str:
    if port is None:
        return host
    if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= U16_MAX:
        raise InvalidValue(repr(port), "port (u16)", "port must be in 0..65535")
    return f"{host}:{port}"


class Connect(AdbCommand):
    """``connect HOST[:PORT]``: connect to a device via TCP/IP (default port 5555)."""

    def __init__(self, builder: CommandBuilder, host: str, port: int | None = None) -> None:
        super().__init__(builder)
        self.host = host
        self._port = port

    def port(self, port: int) -> Connect:
        self._port = port
        return self

    def arguments(self) -> list[str]:
        return ["connect", _host_and_port(self.host, self._port)]


class Disconnect(AdbCommand):
    """``disconnect [HOST[:PORT]]``: disconnect from the given device, or all of them."""

    def __init__(self, builder: CommandBuilder, host: str | None = None, port: int | None = None) -> None:
        super().__init__(builder)
        self.host = host
        self._port = port

    def port(self, port: int) -> Disconnect:
        self._port = port
        return self

    def arguments(self) -> list[str]:
        if self.host is None:
            return ["disconnect"]
        return ["disconnect", _host_and_port(self.host, self._port)]


class Pair(AdbCommand):
    """``pair HOST[:PORT] [PAIRING_CODE]``: pair with a device for secure TCP/IP."""

    def __init__(
        self,
        builder: CommandBuilder,
        host: str,
        port: int | None = None,
        pairing_code: str | None = None,
    ) -> None:
        super().__init__(builder)
        self.host = host
        self._port = port
        self._pairing_code = pairing_code

    def port(self, port: int) -> Pair:
        self._port = port
        return self

    def pairing_code(self, code: str) -> Pair:
        self._pairing_code = code
        return self

    def arguments(self) -> list[str]:
        args = ["pair", _host_and_port(self.host, self._port)]
        if self._pairing_code is not None:
            args.append(self._pairing_code)
        return args


class _Tunnel(AdbCommand):
    SUBCOMMAND = ""

    def __init__(
        self,
        builder: CommandBuilder,
        first: SocketEndpoint | str,
        second: SocketEndpoint | str,
    ) -> None:
        super().__init__(builder)
        self._first = coerce_socket(first)
        self._second = coerce_socket(second)
        self._no_rebind = False

    def no_rebind(self) -> _Tunnel:
        self._no_rebind = True
        return self

    def arguments(self) -> list[str]:
        args = [self.SUBCOMMAND]
        if self._no_rebind:
            args.append("--no-rebind")
        args.extend([str(self._first), str(self._second)])
        return args


class Forward(_Tunnel):
    """``forward [--no-rebind] LOCAL REMOTE``: forward socket connections."""

    SUBCOMMAND = "forward"

    @property
    def local(self) -> SocketEndpoint:
        return self._first

    @property
    def remote(self) -> SocketEndpoint:
        return self._second


class Reverse(_Tunnel):
    """``reverse [--no-rebind] REMOTE LOCAL``: reverse socket connections."""

    SUBCOMMAND = "reverse"

    @property
    def remote(self) -> SocketEndpoint:
        return self._first

    @property
    def local(self) -> SocketEndpoint:
        return self._second


class _TunnelRemove(AdbCommand):
    SUBCOMMAND = ""

    def __init__(self, builder: CommandBuilder, endpoint: SocketEndpoint | str) -> None:
        super().__init__(builder)
        self.endpoint = coerce_socket(endpoint)

    def arguments(self) -> list[str]:
        return [self.SUBCOMMAND, "--remove", str(self.endpoint)]


class ForwardRemove(_TunnelRemove):
    """``forward --remove LOCAL``"""

    SUBCOMMAND = "forward"


class ReverseRemove(_TunnelRemove):
    """``reverse --remove REMOTE``"""

    SUBCOMMAND = "reverse"


class ForwardList(FixedCommand):
    ARGUMENTS = ("forward", "--list")


class ForwardRemoveAll(FixedCommand):
    ARGUMENTS = ("forward", "--remove-all")


class ReverseList(FixedCommand):
    ARGUMENTS = ("reverse", "--list")


class ReverseRemoveAll(FixedCommand):
    ARGUMENTS = ("reverse", "--remove-all")


class MdnsCheck(FixedCommand):
    """``mdns check``: check mdns availability."""

    ARGUMENTS = ("mdns", "check")


class MdnsServices(FixedCommand):
    """``mdns services``: list all discovered services."""

    ARGUMENTS = ("mdns", "services")
