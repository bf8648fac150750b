"""Socket specifications accepted by ``adb forward``, ``adb reverse`` and friends.

Every endpoint renders as ``<family>:<payload>``::

    tcp:5555                tcp:127.0.0.1:5555      tcp:[::1]:5555
    localabstract:<name>    localreserved:<name>    localfilesystem:<name>
    dev:<name>              dev-raw:<name>          jdwp:<pid>
    vsock:<cid>:<port>      acceptfd:<fd>

``parse_socket`` never touches the network. Hostnames are only accepted by
``Tcp.from_host`` which blocks on the platform resolver.
"""

from __future__ import annotations

import ipaddress
import re
import socket
from dataclasses import dataclass
from ipaddress import IPv4Address, IPv6Address
from typing import ClassVar, Union

from .errors import InvalidFormat, InvalidValue, ResolutionFailed

IPAddress = Union[IPv4Address, IPv6Address]

U16_MAX = 0xFFFF
U32_MAX = 0xFFFFFFFF

_DECIMAL = re.compile(r"[0-9]+")


def _parse_uint(text: str, maximum: int) -> int | None:
    if not _DECIMAL.fullmatch(text):
        return None
    value = int(text)
    if value > maximum:
        return None
    return value


def _require_uint(text: str, maximum: int, target: str, description: str) -> int:
    value = _parse_uint(text, maximum)
    if value is None:
        raise InvalidFormat(text, target, description)
    return value


def _strip_family(text: str, family: str, target: str, expected: str) -> str:
    tag, separator, remainder = text.partition(":")
    if tag != family or not separator:
        raise InvalidFormat(text, target, f"invalid syntax, expected `{expected}`")
    if not remainder:
        raise InvalidFormat(text, target, f"missing value, expected `{expected}`")
    return remainder


def _check_range(value: int, maximum: int, target: str, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= maximum:
        raise InvalidValue(str(value), target, f"{name} must be an integer in 0..{maximum}")


def resolve_ip(host: str) -> IPAddress:
    """Resolve ``host`` to an IP address, preferring the first IPv4 result.

    IP literals are returned without a lookup. Anything else goes through
    ``socket.getaddrinfo`` and may block.
    """

    try:
        return ipaddress.ip_address(host)
    except ValueError:
        pass
    try:
        infos = socket.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    except (OSError, UnicodeError) as exc:
        raise ResolutionFailed(host, "IPAddress", "name resolution failed") from exc

    addresses: list[IPAddress] = []
    for family, _, _, _, sockaddr in infos:
        if family not in (socket.AF_INET, socket.AF_INET6):
            continue
        try:
            addresses.append(ipaddress.ip_address(sockaddr[0]))
        except ValueError:
            continue
    if not addresses:
        raise ResolutionFailed(host, "IPAddress", "no socket addresses found")
    for address in addresses:
        if address.version == 4:
            return address
    return addresses[0]


@dataclass(slots=True, frozen=True)
class Tcp:
    """A TCP socket, ``tcp:[host:[port]]``.

    At least one of ``ip`` and ``port`` must be set. IPv6 hosts are always
    written inside square brackets.
    """

    FAMILY: ClassVar[str] = "tcp"

    ip: IPAddress | None = None
    port: int | None = None

    def __post_init__(self) -> None:
        if self.ip is None and self.port is None:
            raise InvalidValue("tcp:", "Tcp", "at least one of ip or port is required")
        if self.ip is not None and not isinstance(self.ip, (IPv4Address, IPv6Address)):
            raise InvalidValue(str(self.ip), "Tcp", "ip must be an IPv4Address or IPv6Address")
        if self.port is not None:
            _check_range(self.port, U16_MAX, "Tcp", "port")

    @classmethod
    def with_ip(cls, ip: IPAddress | str) -> Tcp:
        if isinstance(ip, str):
            try:
                ip = ipaddress.ip_address(ip)
            except ValueError as exc:
                raise InvalidValue(ip, "Tcp", "invalid ip address") from exc
        return cls(ip=ip)

    @classmethod
    def with_ipv4(cls, ip: IPv4Address) -> Tcp:
        return cls(ip=IPv4Address(ip))

    @classmethod
    def with_ipv6(cls, ip: IPv6Address) -> Tcp:
        return cls(ip=IPv6Address(ip))

    @classmethod
    def with_port(cls, port: int) -> Tcp:
        return cls(port=port)

    @classmethod
    def parse(cls, text: str) -> Tcp:
        remainder = _strip_family(text, cls.FAMILY, "Tcp", "tcp:[host:[port]]")

        port = _parse_uint(remainder, U16_MAX)
        if port is not None:
            return cls(port=port)

        if remainder.startswith("["):
            closing = remainder.find("]")
            if closing == -1:
                raise InvalidFormat(remainder, "Tcp", "unterminated ipv6 address")
            ip = _parse_ipv6(remainder[1:closing])
            rest = remainder[closing + 1 :]
            if not rest:
                return cls(ip=ip)
            if not rest.startswith(":"):
                raise InvalidFormat(remainder, "Tcp", "unexpected text after ipv6 address")
            return cls(ip=ip, port=_require_uint(rest[1:], U16_MAX, "port (u16)", "invalid port"))

        if remainder.count(":") > 1:
            raise InvalidFormat(remainder, "Tcp", "ipv6 address must be enclosed in square brackets")
        host, separator, port_text = remainder.partition(":")
        try:
            ip = IPv4Address(host)
        except ValueError as exc:
            raise InvalidFormat(remainder, "Tcp", "invalid ipv4 address") from exc
        if not separator:
            return cls(ip=ip)
        return cls(ip=ip, port=_require_uint(port_text, U16_MAX, "port (u16)", "invalid port"))

    @classmethod
    def from_host(cls, text: str) -> Tcp:
        """Like ``parse`` but also accepts hostnames, resolving them on the spot.

        ``text`` may omit the ``tcp:`` prefix. The first IPv4 address is
        preferred when the name maps to both families. This call blocks while
        the platform resolver runs.
        """

        try:
            return cls.parse(text)
        except InvalidFormat:
            pass

        remainder = text[len("tcp:") :] if text.startswith("tcp:") else text
        try:
            return cls(ip=ipaddress.ip_address(remainder))
        except ValueError:
            pass
        host, port = _split_host_port(remainder)
        return cls(ip=resolve_ip(host), port=port)

    def __str__(self) -> str:
        if self.ip is None:
            return f"tcp:{self.port}"
        host = f"[{self.ip}]" if self.ip.version == 6 else str(self.ip)
        if self.port is None:
            return f"tcp:{host}"
        return f"tcp:{host}:{self.port}"


def _parse_ipv6(text: str) -> IPv6Address:
    try:
        return IPv6Address(text)
    except ValueError as exc:
        raise InvalidFormat(f"[{text}]", "IPv6Address", "invalid ipv6 address") from exc


def _split_host_port(text: str) -> tuple[str, int | None]:
    if not text:
        raise InvalidFormat(text, "Tcp", "missing host")
    if text.startswith("["):
        closing = text.find("]")
        if closing == -1:
            raise InvalidFormat(text, "Tcp", "unterminated ipv6 address")
        host, rest = text[1:closing], text[closing + 1 :]
        if not rest:
            return host, None
        if not rest.startswith(":"):
            raise InvalidFormat(text, "Tcp", "unexpected text after ipv6 address")
        return host, _require_uint(rest[1:], U16_MAX, "port (u16)", "invalid port")

    if text.count(":") > 1:
        raise InvalidFormat(text, "Tcp", "ipv6 address must be enclosed in square brackets")
    host, separator, port_text = text.partition(":")
    if not host:
        raise InvalidFormat(text, "Tcp", "missing host")
    if not separator:
        return host, None
    return host, _require_uint(port_text, U16_MAX, "port (u16)", "invalid port")


@dataclass(slots=True, frozen=True)
class _NamedSocket:
    FAMILY: ClassVar[str] = ""
    VALUE_NAME: ClassVar[str] = ""

    name: str

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise InvalidValue(repr(self.name), type(self).__name__, f"missing {self.VALUE_NAME}")

    @classmethod
    def parse(cls, text: str):
        expected = f"{cls.FAMILY}:<{cls.VALUE_NAME}>"
        return cls(_strip_family(text, cls.FAMILY, cls.__name__, expected))

    def __str__(self) -> str:
        return f"{self.FAMILY}:{self.name}"


@dataclass(slots=True, frozen=True)
class LocalAbstract(_NamedSocket):
    """A Unix domain socket in the abstract namespace."""

    FAMILY: ClassVar[str] = "localabstract"
    VALUE_NAME: ClassVar[str] = "unix domain socket name"


@dataclass(slots=True, frozen=True)
class LocalReserved(_NamedSocket):
    """A Unix domain socket in the reserved namespace."""

    FAMILY: ClassVar[str] = "localreserved"
    VALUE_NAME: ClassVar[str] = "unix domain socket name"


@dataclass(slots=True, frozen=True)
class LocalFileSystem(_NamedSocket):
    """A Unix domain socket in the file system."""

    FAMILY: ClassVar[str] = "localfilesystem"
    VALUE_NAME: ClassVar[str] = "unix domain socket name"


@dataclass(slots=True, frozen=True)
class Dev(_NamedSocket):
    """A character device."""

    FAMILY: ClassVar[str] = "dev"
    VALUE_NAME: ClassVar[str] = "character device name"


@dataclass(slots=True, frozen=True)
class DevRaw(_NamedSocket):
    """A character device opened in raw mode."""

    FAMILY: ClassVar[str] = "dev-raw"
    VALUE_NAME: ClassVar[str] = "character device name"


@dataclass(slots=True, frozen=True)
class Jdwp:
    """The JDWP transport of the process with the given pid."""

    FAMILY: ClassVar[str] = "jdwp"

    pid: int

    def __post_init__(self) -> None:
        _check_range(self.pid, U32_MAX, "Jdwp", "pid")

    @classmethod
    def parse(cls, text: str) -> Jdwp:
        remainder = _strip_family(text, cls.FAMILY, "Jdwp", "jdwp:<process pid>")
        return cls(_require_uint(remainder, U32_MAX, "process pid (u32)", "invalid pid"))

    def __str__(self) -> str:
        return f"jdwp:{self.pid}"


@dataclass(slots=True, frozen=True)
class Vsock:
    """A VSOCK address, ``vsock:<cid>:<port>``."""

    FAMILY: ClassVar[str] = "vsock"

    cid: int
    port: int

    def __post_init__(self) -> None:
        _check_range(self.cid, U32_MAX, "Vsock", "cid")
        _check_range(self.port, U32_MAX, "Vsock", "port")

    @classmethod
    def parse(cls, text: str) -> Vsock:
        remainder = _strip_family(text, cls.FAMILY, "Vsock", "vsock:<cid>:<port>")
        cid, separator, port = remainder.partition(":")
        if not separator:
            raise InvalidFormat(remainder, "Vsock", "missing port")
        return cls(
            cid=_require_uint(cid, U32_MAX, "cid (u32)", "invalid cid"),
            port=_require_uint(port, U32_MAX, "port (u32)", "invalid port"),
        )

    def __str__(self) -> str:
        return f"vsock:{self.cid}:{self.port}"


@dataclass(slots=True, frozen=True)
class AcceptFd:
    """An already-listening socket passed in by file descriptor."""

    FAMILY: ClassVar[str] = "acceptfd"

    fd: int

    def __post_init__(self) -> None:
        _check_range(self.fd, U32_MAX, "AcceptFd", "fd")

    @classmethod
    def parse(cls, text: str) -> AcceptFd:
        remainder = _strip_family(text, cls.FAMILY, "AcceptFd", "acceptfd:<fd>")
        return cls(_require_uint(remainder, U32_MAX, "fd (u32)", "invalid fd"))

    def __str__(self) -> str:
        return f"acceptfd:{self.fd}"


SocketEndpoint = Union[
    Tcp,
    LocalAbstract,
    LocalReserved,
    LocalFileSystem,
    Dev,
    DevRaw,
    Jdwp,
    Vsock,
    AcceptFd,
]

FAMILIES: dict[str, type] = {
    family.FAMILY: family
    for family in (
        Tcp,
        LocalAbstract,
        LocalReserved,
        LocalFileSystem,
        Dev,
        DevRaw,
        Jdwp,
        Vsock,
        AcceptFd,
    )
}


def parse_socket(text: str) -> SocketEndpoint:
    """Parse any adb socket spec. Raises ``InvalidFormat`` on failure."""

    tag, separator, _ = text.partition(":")
    family = FAMILIES.get(tag) if separator else None
    if family is None:
        raise InvalidFormat(text, "SocketEndpoint", "unknown socket family")
    return family.parse(text)


def format_socket(endpoint: SocketEndpoint) -> str:
    return str(endpoint)


def coerce_socket(value: SocketEndpoint | str) -> SocketEndpoint:
    """Accept an endpoint or its textual form, validating the latter."""

    if isinstance(value, str):
        return parse_socket(value)
    if not isinstance(value, tuple(FAMILIES.values())):
        raise InvalidValue(repr(value), "SocketEndpoint", "unsupported endpoint type")
    return value
