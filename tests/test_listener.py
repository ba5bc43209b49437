import os
import socket
import time

import pytest

from netloom.addr import TCPAddr, UnixAddr, UnknownNetworkError, sockaddr_to_addr
from netloom.errors import Errno, NetpollError
from netloom.listener import Listener, NetFD, convert_listener, create_listener


def _accept(ln, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        conn = ln.accept()
        if conn is not None:
            return conn
        time.sleep(0.01)
    raise AssertionError("no connection accepted")


def _read(nfd, size, timeout=5.0):
    deadline = time.monotonic() + timeout
    data = b""
    while len(data) < size and time.monotonic() < deadline:
        data += nfd.read(size - len(data))
        time.sleep(0.001)
    return data


@pytest.fixture
def tcp_listener():
    ln = create_listener("tcp", "127.0.0.1:0")
    yield ln
    ln.close()


def test_listener_is_nonblocking(tcp_listener):
    assert os.get_blocking(tcp_listener.fileno()) is False
    assert tcp_listener.accept() is None


def test_accept_and_exchange(tcp_listener):
    port = tcp_listener.addr().port
    msg = b"0123456789"
    with socket.create_connection(("127.0.0.1", port)) as client:
        with _accept(tcp_listener) as nfd:
            assert nfd.network == "tcp"
            assert nfd.local_addr == tcp_listener.addr()
            assert nfd.remote_addr == sockaddr_to_addr(socket.AF_INET, client.getsockname())
            os.set_blocking(nfd.fileno(), False)
            assert nfd.read(10) == b""
            client.sendall(msg)
            assert _read(nfd, len(msg)) == msg
            assert nfd.write(msg) == len(msg)
            assert client.recv(len(msg), socket.MSG_WAITALL) == msg


def test_listener_addr(tcp_listener):
    addr = tcp_listener.addr()
    assert isinstance(addr, TCPAddr)
    assert str(addr).startswith("127.0.0.1:")
    assert addr.port > 0


def test_netfd_close_once():
    left, right = socket.socketpair()
    right.close()
    nfd = NetFD(fd=left.detach())
    nfd.close()
    with pytest.raises(OSError):
        os.fstat(nfd.fileno())
    nfd.close()
    assert nfd._closed is True


def test_netfd_detaching_keeps_fd_open():
    left, right = socket.socketpair()
    right.close()
    fd = left.detach()
    nfd = NetFD(fd=fd, detaching=True)
    nfd.close()
    assert os.fstat(fd).st_size >= 0
    os.close(fd)


def test_netfd_deadlines_unsupported():
    nfd = NetFD(fd=-1)
    for method, name in [
        (nfd.set_deadline, "SetDeadline"),
        (nfd.set_read_deadline, "SetReadDeadline"),
        (nfd.set_write_deadline, "SetWriteDeadline"),
    ]:
        with pytest.raises(NetpollError) as info:
            method(None)
        assert info.value.matches(Errno.UNSUPPORTED)
        assert str(info.value) == "netpoll does not support " + name


def test_convert_unix_listener(tmp_path):
    path = str(tmp_path / "m.sock")
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    sock.bind(path)
    sock.listen()
    ln = convert_listener(sock)
    assert ln.addr() == UnixAddr(path, "unix")
    assert convert_listener(ln) is ln
    ln.close()
    assert sock.fileno() == -1
    assert ln.fileno() == -1


def test_convert_rejects_datagram():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        with pytest.raises(ValueError, match="listener type can't support"):
            convert_listener(sock)
    finally:
        sock.close()


def test_unix_listener_accepts_and_unlinks(tmp_path):
    path = str(tmp_path / "t.sock")
    ln = create_listener("unix", path)
    assert str(ln.addr()) == path
    with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as client:
        client.connect(path)
        with _accept(ln) as nfd:
            assert nfd.network == "unix"
            assert isinstance(nfd.remote_addr, UnixAddr)
    ln.close()
    assert not os.path.exists(path)


def test_udp_accept_unsupported():
    with create_listener("udp", "127.0.0.1:0") as ln:
        assert isinstance(ln, Listener)
        with pytest.raises(NetpollError, match="netpoll does not support UDP"):
            ln.accept()


def test_unknown_network():
    with pytest.raises(UnknownNetworkError):
        create_listener("bogus", "127.0.0.1:0")