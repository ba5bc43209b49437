"""Non-blocking listeners and the raw descriptors of accepted connections."""

from __future__ import annotations

import os
import socket
import threading
from dataclasses import dataclass, field
from typing import Any, Optional

from netloom.addr import (
    Sockaddr,
    UnknownNetworkError,
    ip_to_sockaddr,
    resolve_tcp_addr,
    sockaddr_to_addr,
)
from netloom.errors import Errno, NetpollError

_STREAM_FAMILIES = (socket.AF_INET, socket.AF_INET6)


@dataclass(eq=False)
class NetFD:
    """A connected socket descriptor read and written without buffering."""

    fd: int
    network: str = ""
    local_addr: Optional[Sockaddr] = None
    remote_addr: Optional[Sockaddr] = None
    detaching: bool = False
    _closed: bool = field(default=False, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def fileno(self) -> int:
        return self.fd

    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes; ``b""`` when nothing is ready."""
        try:
            return os.read(self.fd, size)
        except (BlockingIOError, InterruptedError):
            return b""

    def write(self, data: bytes) -> int:
        """Write what the socket takes now and return how much that was."""
        try:
            return os.write(self.fd, data)
        except BlockingIOError:
            return 0

    def close(self) -> None:
        """Close the descriptor once; a detaching descriptor is left open."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        if not self.detaching and self.fd > 2:
            os.close(self.fd)

    def set_deadline(self, when: Any) -> None:
        raise NetpollError(Errno.UNSUPPORTED, "SetDeadline")

    def set_read_deadline(self, when: Any) -> None:
        raise NetpollError(Errno.UNSUPPORTED, "SetReadDeadline")

    def set_write_deadline(self, when: Any) -> None:
        raise NetpollError(Errno.UNSUPPORTED, "SetWriteDeadline")

    def __enter__(self) -> "NetFD":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class Listener:
    """A non-blocking listener whose ``accept`` never waits."""

    def __init__(
        self,
        sock: socket.socket,
        addr: Optional[Sockaddr],
        *,
        origin: Optional[socket.socket] = None,
        packet: bool = False,
        unlink_path: Optional[str] = None,
    ) -> None:
        self._sock = sock
        self._addr = addr
        self._origin = origin
        self._packet = packet
        self._unlink_path = unlink_path
        self._closed = False

    def accept(self) -> Optional[NetFD]:
        """Accept one pending connection, or return ``None`` if there is none."""
        if self._packet:
            return self.udp_accept()
        try:
            conn, peer = self._sock.accept()
        except (BlockingIOError, InterruptedError):
            return None
        family = conn.family
        fd = conn.detach()
        network = self._addr.network if self._addr is not None else ""
        return NetFD(
            fd=fd,
            network=network,
            local_addr=self._addr,
            remote_addr=sockaddr_to_addr(family, peer),
        )

    def udp_accept(self) -> Optional[NetFD]:
        raise NetpollError(Errno.UNSUPPORTED, "UDP")

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._sock.close()
        if self._origin is not None:
            self._origin.close()
        if self._unlink_path:
            try:
                os.unlink(self._unlink_path)
            except FileNotFoundError:
                pass

    def addr(self) -> Optional[Sockaddr]:
        return self._addr

    def fileno(self) -> int:
        return self._sock.fileno()

    def __enter__(self) -> "Listener":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def _inet_socket(network: str, address: str, sotype: int) -> socket.socket:
    addr = resolve_tcp_addr("tcp" + network[3:], address)
    dual = False
    if addr.ip is None:
        if network.endswith("6"):
            family = socket.AF_INET6
        elif network.endswith("4") or not socket.has_dualstack_ipv6():
            family = socket.AF_INET
        else:
            family, dual = socket.AF_INET6, True
    else:
        family = socket.AF_INET6 if network.endswith("6") else addr.family()
        dual = family == socket.AF_INET6 and not network.endswith("6")
    sock = socket.socket(family, sotype)
    try:
        if sotype == socket.SOCK_STREAM:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        if family == socket.AF_INET6:
            sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 0 if dual else 1)
        sock.bind(ip_to_sockaddr(family, addr.ip, addr.port, addr.zone))
        if sotype == socket.SOCK_STREAM:
            sock.listen(socket.SOMAXCONN)
    except BaseException:
        sock.close()
        raise
    return sock


def _udp_listener(network: str, address: str) -> Listener:
    sock = _inet_socket(network, address, socket.SOCK_DGRAM)
    dup = sock.dup()
    dup.setblocking(False)
    return Listener(
        dup, sockaddr_to_addr(sock.family, sock.getsockname()), origin=sock, packet=True
    )


def create_listener(network: str, address: str) -> Listener:
    """Listen on ``address``; tcp, tcp4, tcp6, unix and unixpacket are served."""
    if network in ("udp", "udp4", "udp6"):
        return _udp_listener(network, address)
    if network in ("tcp", "tcp4", "tcp6"):
        return convert_listener(_inet_socket(network, address, socket.SOCK_STREAM))
    if network in ("unix", "unixpacket"):
        sotype = socket.SOCK_STREAM if network == "unix" else socket.SOCK_SEQPACKET
        sock = socket.socket(socket.AF_UNIX, sotype)
        try:
            sock.bind(address)
            sock.listen(socket.SOMAXCONN)
        except BaseException:
            sock.close()
            raise
        listener = convert_listener(sock)
        listener._unlink_path = address
        return listener
    raise UnknownNetworkError(network)


def convert_listener(sock: Any) -> Listener:
    """Wrap a listening TCP or Unix socket; the result owns the socket."""
    if isinstance(sock, Listener):
        return sock
    stream = sock.type == socket.SOCK_STREAM
    supported = (sock.family in _STREAM_FAMILIES and stream) or (
        sock.family == socket.AF_UNIX and (stream or sock.type == socket.SOCK_SEQPACKET)
    )
    if not supported:
        raise ValueError("listener type can't support")
    dup = sock.dup()
    dup.setblocking(False)
    return Listener(dup, sockaddr_to_addr(sock.family, sock.getsockname()), origin=sock)