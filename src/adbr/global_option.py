"""Global options accepted in front of every adb subcommand.

======================  ===================================================
``-a``                  listen on all network interfaces, not just localhost
``-d``                  use USB device (error if multiple devices connected)
``-e``                  use TCP/IP device (error if multiple TCP/IP devices)
``-s SERIAL``           use device with given serial (overrides $ANDROID_SERIAL)
``-t ID``               use device with given transport id
``-H HOST``             name of adb server host (default: localhost)
``-P PORT``             smart socket port of adb server (default: 5037)
``-L SOCKET``           listen on given socket for adb server (default: tcp:localhost:5037)
``--one-device SERIAL`` server only connects to one USB device
``--exit-on-write-error`` exit if stdout is closed
======================  ===================================================
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Union

from .errors import InvalidValue, MissingValue, UnknownOption
from .sockets import U16_MAX, IPAddress, Tcp, resolve_ip


class OptionKind(Enum):
    LISTEN_ALL = "-a"
    USB = "-d"
    TCP_IP = "-e"
    SERIAL = "-s"
    TRANSPORT_ID = "-t"
    HOST = "-H"
    PORT = "-P"
    LISTEN = "-L"
    ONE_DEVICE = "--one-device"
    EXIT_ON_WRITE_ERROR = "--exit-on-write-error"

    @property
    def flag(self) -> str:
        return self.value

    @property
    def takes_value(self) -> bool:
        return self not in FLAG_KINDS


FLAG_KINDS = frozenset(
    {OptionKind.LISTEN_ALL, OptionKind.USB, OptionKind.TCP_IP, OptionKind.EXIT_ON_WRITE_ERROR}
)
_STRING_KINDS = frozenset({OptionKind.SERIAL, OptionKind.TRANSPORT_ID, OptionKind.ONE_DEVICE})
_KINDS_BY_FLAG = {kind.flag: kind for kind in OptionKind}

OptionValue = Union[str, int, IPAddress, Tcp, None]


@dataclass(slots=True, frozen=True)
class GlobalOption:
    """One global option: its kind plus the payload the kind requires."""

    kind: OptionKind
    value: OptionValue = None

    def __post_init__(self) -> None:
        kind, value = self.kind, self.value
        if kind in FLAG_KINDS:
            if value is not None:
                raise InvalidValue(str(value), kind.name, f"{kind.flag} takes no value")
        elif kind in _STRING_KINDS:
            if not isinstance(value, str) or not value:
                raise InvalidValue(repr(value), kind.name, f"{kind.flag} requires a non-empty string")
        elif kind is OptionKind.HOST:
            if not isinstance(value, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
                raise InvalidValue(repr(value), "IPAddress", "-H requires an ip address")
        elif kind is OptionKind.PORT:
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= U16_MAX:
                raise InvalidValue(repr(value), "port (u16)", "-P requires a port in 0..65535")
        elif kind is OptionKind.LISTEN:
            if not isinstance(value, Tcp):
                raise InvalidValue(repr(value), "Tcp", "-L requires a tcp socket")

    @classmethod
    def listen_all(cls) -> GlobalOption:
        return cls(OptionKind.LISTEN_ALL)

    @classmethod
    def usb(cls) -> GlobalOption:
        return cls(OptionKind.USB)

    @classmethod
    def tcp_ip(cls) -> GlobalOption:
        return cls(OptionKind.TCP_IP)

    @classmethod
    def serial(cls, serial: str) -> GlobalOption:
        return cls(OptionKind.SERIAL, serial)

    @classmethod
    def transport_id(cls, transport_id: str | int) -> GlobalOption:
        return cls(OptionKind.TRANSPORT_ID, str(transport_id))

    @classmethod
    def host(cls, host: IPAddress | str) -> GlobalOption:
        if isinstance(host, str):
            host = _parse_ip(host)
        return cls(OptionKind.HOST, host)

    @classmethod
    def port(cls, port: int) -> GlobalOption:
        return cls(OptionKind.PORT, port)

    @classmethod
    def listen(cls, socket: Tcp | str) -> GlobalOption:
        if isinstance(socket, str):
            socket = Tcp.parse(socket)
        return cls(OptionKind.LISTEN, socket)

    @classmethod
    def one_device(cls, device: str) -> GlobalOption:
        return cls(OptionKind.ONE_DEVICE, device)

    @classmethod
    def exit_on_write_error(cls) -> GlobalOption:
        return cls(OptionKind.EXIT_ON_WRITE_ERROR)

    @classmethod
    def parse(cls, text: str) -> GlobalOption:
        """Parse ``"-flag[ value]"``. Never performs name resolution."""

        return _parse(text, resolve=False)

    @classmethod
    def parse_resolving(cls, text: str) -> GlobalOption:
        """Parse ``"-flag[ value]"``, resolving hostnames given to ``-H`` and ``-L``.

        This may block while the platform resolver runs.
        """

        return _parse(text, resolve=True)

    def to_args(self) -> list[str]:
        if self.value is None:
            return [self.kind.flag]
        return [self.kind.flag, str(self.value)]

    def __str__(self) -> str:
        return " ".join(self.to_args())


def _parse_ip(text: str) -> IPAddress:
    try:
        return ipaddress.ip_address(text)
    except ValueError as exc:
        raise InvalidValue(text, "IPAddress", "invalid ip address") from exc


def _parse(text: str, *, resolve: bool) -> GlobalOption:
    trimmed = text.strip()
    kind = _KINDS_BY_FLAG.get(trimmed)
    if kind in FLAG_KINDS:
        return GlobalOption(kind)

    parts = trimmed.split(None, 1)
    if len(parts) < 2:
        if kind is not None or not trimmed:
            raise MissingValue(text, "GlobalOption", "missing value")
        raise UnknownOption(trimmed, "GlobalOption", "unknown option")

    flag, value = parts[0], parts[1].strip()
    kind = _KINDS_BY_FLAG.get(flag)
    if kind is None or kind in FLAG_KINDS:
        raise UnknownOption(flag, "GlobalOption", "unknown option")

    if kind in _STRING_KINDS:
        return GlobalOption(kind, value)
    if kind is OptionKind.HOST:
        if not resolve:
            return GlobalOption(kind, _parse_ip(value))
        if value.startswith("[") and value.endswith("]"):
            value = value[1:-1]
        return GlobalOption(kind, resolve_ip(value))
    if kind is OptionKind.PORT:
        port = int(value) if value.isascii() and value.isdigit() else -1
        if not 0 <= port <= U16_MAX:
            raise InvalidValue(value, "port (u16)", "invalid port")
        return GlobalOption(kind, port)
    # OptionKind.LISTEN
    return GlobalOption(kind, Tcp.from_host(value) if resolve else Tcp.parse(value))


class GlobalOptions:
    """The global options of one command line, holding at most one option per kind.

    Adding an option whose kind is already present replaces the old value;
    valueless flags are only ever stored once.
    """

    __slots__ = ("_options",)

    def __init__(self, options: Iterable[GlobalOption] = ()) -> None:
        self._options: dict[OptionKind, GlobalOption] = {}
        for option in options:
            self.add(option)

    @classmethod
    def parse(cls, texts: Iterable[str], *, resolve: bool = False) -> GlobalOptions:
        parser = GlobalOption.parse_resolving if resolve else GlobalOption.parse
        return cls(parser(text) for text in texts)

    def add(self, option: GlobalOption) -> None:
        if option.kind in FLAG_KINDS:
            if option.kind not in self._options:
                self._options[option.kind] = option
            return
        self._options.pop(option.kind, None)
        self._options[option.kind] = option

    def discard(self, kind: OptionKind) -> None:
        self._options.pop(kind, None)

    def get(self, kind: OptionKind) -> GlobalOption | None:
        return self._options.get(kind)

    def copy(self) -> GlobalOptions:
        return GlobalOptions(self._options.values())

    def to_args(self) -> list[str]:
        args: list[str] = []
        for option in self._options.values():
            args.extend(option.to_args())
        return args

    def __contains__(self, item: object) -> bool:
        if isinstance(item, OptionKind):
            return item in self._options
        if isinstance(item, GlobalOption):
            return self._options.get(item.kind) == item
        return False

    def __iter__(self) -> Iterator[GlobalOption]:
        return iter(list(self._options.values()))

    def __len__(self) -> int:
        return len(self._options)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GlobalOptions):
            return NotImplemented
        return set(self._options.values()) == set(other._options.values())

    def __repr__(self) -> str:
        rendered = ", ".join(repr(str(option)) for option in self._options.values())
        return f"GlobalOptions([{rendered}])"
