"""TCP and Unix socket end points and their conversion to socket addresses."""

from __future__ import annotations

import ipaddress
import socket
from dataclasses import dataclass
from typing import Optional, Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

_IPV4_ZERO = ipaddress.IPv4Address(0)
_IPV6_ZERO = ipaddress.IPv6Address(0)

_TCP_NETWORKS = ("tcp", "tcp4", "tcp6")
_UNIX_TYPES = {
    "unix": socket.SOCK_STREAM,
    "unixgram": socket.SOCK_DGRAM,
    "unixpacket": socket.SOCK_SEQPACKET,
}


class AddrError(ValueError):
    """An address that cannot be used the way it was asked for."""

    def __init__(self, err: str, addr: str = "") -> None:
        self.err = err
        self.addr = addr
        super().__init__(f"address {addr}: {err}" if addr else err)


class UnknownNetworkError(ValueError):
    """A network name that is not supported."""

    def __init__(self, network: str) -> None:
        self.network = network
        super().__init__(f"unknown network {network}")


def _to4(ip: Optional[IPAddress]) -> Optional[ipaddress.IPv4Address]:
    if isinstance(ip, ipaddress.IPv4Address):
        return ip
    if isinstance(ip, ipaddress.IPv6Address):
        return ip.ipv4_mapped
    return None


def _ip_text(ip: Optional[IPAddress]) -> str:
    if ip is None:
        return "<nil>"
    return str(_to4(ip) or ip)


@dataclass(frozen=True)
class TCPAddr:
    """The address of a TCP end point; ``ip`` is ``None`` for an unset host."""

    ip: Optional[IPAddress] = None
    port: int = 0
    zone: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.ip, (str, bytes, int)):
            object.__setattr__(self, "ip", ipaddress.ip_address(self.ip))

    @property
    def network(self) -> str:
        return "tcp"

    def __str__(self) -> str:
        host = "" if self.ip is None else _ip_text(self.ip)
        if self.zone:
            host += "%" + self.zone
        if ":" in host:
            host = f"[{host}]"
        return f"{host}:{self.port}"

    def is_wildcard(self) -> bool:
        if self.ip is None:
            return True
        return (_to4(self.ip) or self.ip).is_unspecified

    def family(self) -> int:
        if self.ip is None or _to4(self.ip) is not None:
            return socket.AF_INET
        return socket.AF_INET6

    def sockaddr(self, family: int) -> tuple:
        return ip_to_sockaddr(family, self.ip, self.port, self.zone)

    def to_local(self, network: str) -> "TCPAddr":
        """The same port on the loopback address of ``network``."""
        return TCPAddr(loopback_ip(network), self.port, self.zone)


@dataclass(frozen=True)
class UnixAddr:
    """The address of a Unix domain socket end point."""

    name: str = ""
    net: str = "unix"

    @property
    def network(self) -> str:
        return self.net

    def __str__(self) -> str:
        return self.name

    def is_wildcard(self) -> bool:
        return self.name == ""

    def family(self) -> int:
        return socket.AF_UNIX

    def sockaddr(self, family: int) -> str:
        return self.name

    def to_local(self, network: str) -> "UnixAddr":
        """A Unix path is already local: the same end point."""
        return UnixAddr(self.name, self.net)


Sockaddr = Union[TCPAddr, UnixAddr]


def loopback_ip(network: str) -> IPAddress:
    if network.endswith("6"):
        return ipaddress.IPv6Address("::1")
    return ipaddress.IPv4Address("127.0.0.1")


def ip_to_sockaddr(family: int, ip: Optional[IPAddress], port: int, zone: str = "") -> tuple:
    """The address tuple a socket of ``family`` takes for ``ip`` and ``port``."""
    if family == socket.AF_INET:
        ip4 = _IPV4_ZERO if ip is None else _to4(ip)
        if ip4 is None:
            raise AddrError("non-IPv4 address", _ip_text(ip))
        return (str(ip4), port)
    if family == socket.AF_INET6:
        if ip is None or _to4(ip) == _IPV4_ZERO:
            ip6 = _IPV6_ZERO
        elif isinstance(ip, ipaddress.IPv4Address):
            ip6 = ipaddress.IPv6Address(b"\x00" * 10 + b"\xff\xff" + ip.packed)
        else:
            ip6 = ip
        return (str(ip6), port, 0, 0)
    raise AddrError("invalid address family", _ip_text(ip))


def favorite_addr_family(
    network: str, laddr: Optional[Sockaddr], raddr: Optional[Sockaddr]
) -> tuple[int, bool]:
    """The address family to use and whether the socket is IPv6 only."""
    if network.endswith("4"):
        return socket.AF_INET, False
    if network.endswith("6"):
        return socket.AF_INET6, True
    if (laddr is None or laddr.family() == socket.AF_INET) and (
        raddr is None or raddr.family() == socket.AF_INET
    ):
        return socket.AF_INET, False
    return socket.AF_INET6, False


def unix_socket_type(
    network: str, mode: str, laddr: Optional[UnixAddr], raddr: Optional[UnixAddr]
) -> tuple[int, Optional[UnixAddr], Optional[UnixAddr]]:
    """Check a Unix socket request; return its socket type and the addresses to use."""
    try:
        sotype = _UNIX_TYPES[network]
    except KeyError:
        raise UnknownNetworkError(network) from None
    if mode == "dial":
        if laddr is not None and laddr.is_wildcard():
            laddr = None
        if raddr is not None and raddr.is_wildcard():
            raddr = None
        if raddr is None and (sotype != socket.SOCK_DGRAM or laddr is None):
            raise ValueError("missing address")
    elif mode != "listen":
        raise ValueError("unknown mode: " + mode)
    return sotype, laddr, raddr


def _split_host_port(address: str) -> tuple[str, str]:
    if address.startswith("["):
        end = address.find("]")
        if end < 0:
            raise AddrError("missing ']' in address", address)
        host, rest = address[1:end], address[end + 1 :]
        if not rest.startswith(":"):
            raise AddrError("missing port in address", address)
        return host, rest[1:]
    host, sep, port = address.rpartition(":")
    if not sep:
        raise AddrError("missing port in address", address)
    if ":" in host:
        raise AddrError("too many colons in address", address)
    return host, port


def _lookup_port(port: str) -> int:
    if port.isdigit():
        number = int(port)
    else:
        try:
            number = socket.getservbyname(port, "tcp")
        except OSError:
            raise AddrError("unknown port", port) from None
    if not 0 <= number <= 0xFFFF:
        raise AddrError("invalid port", port)
    return number


def resolve_tcp_addr(network: str, address: str) -> TCPAddr:
    """Parse ``host:port``, looking the host up when it is not a literal address."""
    if network not in _TCP_NETWORKS:
        raise UnknownNetworkError(network)
    host, port_text = _split_host_port(address)
    port = _lookup_port(port_text)
    if not host:
        return TCPAddr(None, port)
    literal, _, zone = host.partition("%")
    try:
        return TCPAddr(ipaddress.ip_address(literal), port, zone)
    except ValueError:
        pass
    family = {"tcp4": socket.AF_INET, "tcp6": socket.AF_INET6}.get(network, socket.AF_UNSPEC)
    infos = socket.getaddrinfo(host, None, family, socket.SOCK_STREAM)
    ips = [ipaddress.ip_address(info[4][0].partition("%")[0]) for info in infos]
    if not ips:
        raise OSError(f"lookup {host}: no such host")
    chosen = next((ip for ip in ips if ip.version == 4), ips[0])
    return TCPAddr(chosen, port)


def resolve_unix_addr(network: str, address: str) -> UnixAddr:
    if network not in _UNIX_TYPES:
        raise UnknownNetworkError(network)
    return UnixAddr(address, network)


def sockaddr_to_addr(family: int, sockaddr) -> Optional[Sockaddr]:
    """Turn an address as returned by a socket into an end point, or ``None``."""
    if family == socket.AF_INET:
        host, port = sockaddr[:2]
        return TCPAddr(host, port)
    if family == socket.AF_INET6:
        host, port = sockaddr[:2]
        scope = sockaddr[3] if len(sockaddr) > 3 else 0
        zone = ""
        if scope:
            try:
                zone = socket.if_indextoname(scope)
            except OSError:
                zone = ""
        return TCPAddr(host.partition("%")[0], port, zone)
    if family == socket.AF_UNIX:
        if isinstance(sockaddr, bytes):
            if sockaddr.startswith(b"\x00"):
                sockaddr = b"@" + sockaddr[1:]
            sockaddr = sockaddr.decode("utf-8", "surrogateescape")
        return UnixAddr(sockaddr or "", "unix")
    return None