"""Connection error codes and the exception that carries them."""

from __future__ import annotations

import enum
import errno as _errno
import os

ERRNO_MASK = 0xFF


class Errno(enum.IntEnum):
    """Error codes of the connection layer, kept apart from system errnos (0x100-0x1FF)."""

    CONN_CLOSED = 0x101
    READ_TIMEOUT = 0x102
    DIAL_TIMEOUT = 0x103
    DIAL_NO_DEADLINE = 0x104
    UNSUPPORTED = 0x105
    EOF = 0x106
    WRITE_TIMEOUT = 0x107
    CONCURRENT_ACCESS = 0x108


_MESSAGES = {
    Errno.CONN_CLOSED & ERRNO_MASK: "connection has been closed",
    Errno.READ_TIMEOUT & ERRNO_MASK: "connection read timeout",
    Errno.DIAL_TIMEOUT & ERRNO_MASK: "dial wait timeout",
    Errno.DIAL_NO_DEADLINE & ERRNO_MASK: "dial no deadline",
    Errno.UNSUPPORTED & ERRNO_MASK: "netpoll does not support",
    Errno.EOF & ERRNO_MASK: "EOF",
    Errno.WRITE_TIMEOUT & ERRNO_MASK: "connection write timeout",
    Errno.CONCURRENT_ACCESS & ERRNO_MASK: "concurrent connection access",
}

_OWN_TIMEOUTS = frozenset({Errno.DIAL_TIMEOUT, Errno.READ_TIMEOUT, Errno.WRITE_TIMEOUT})
_SYSTEM_TIMEOUTS = frozenset({_errno.EAGAIN, _errno.EWOULDBLOCK, _errno.ETIMEDOUT})
_SYSTEM_TEMPORARY = frozenset({_errno.EINTR, _errno.EMFILE, _errno.ENFILE})
_ERROR_CLASSES = {
    PermissionError: frozenset({_errno.EACCES, _errno.EPERM}),
    FileExistsError: frozenset({_errno.EEXIST, _errno.ENOTEMPTY}),
    FileNotFoundError: frozenset({_errno.ENOENT}),
}


def _system_message(no: int) -> str:
    text = os.strerror(no)
    return text[:1].lower() + text[1:]


class NetpollError(Exception):
    """An error code together with a short note on where it happened."""

    def __init__(self, no: int, suffix: str = "") -> None:
        try:
            self.no: int = Errno(no)
        except ValueError:
            self.no = int(no)
        self.suffix = suffix
        super().__init__(self._describe())

    def _describe(self) -> str:
        text = ""
        if self.no & 0x100:
            text = _MESSAGES.get(self.no & ERRNO_MASK, "")
        if not text:
            text = _system_message(self.no)
        if self.suffix:
            text += " " + self.suffix
        return text

    @property
    def errno(self) -> int:
        return self.no

    def __str__(self) -> str:
        return self.args[0]

    def matches(self, target: object) -> bool:
        """Tell whether this error stands for ``target``: a code, an error class or itself."""
        if target is self:
            return True
        if isinstance(target, type):
            return self.no in _ERROR_CLASSES.get(target, frozenset())
        if isinstance(target, int) and not isinstance(target, bool):
            if self.no == target:
                return True
            # a closed connection also covers a read that hit EOF
            return self.no == Errno.EOF and target == Errno.CONN_CLOSED
        return False

    def timeout(self) -> bool:
        return self.no in _OWN_TIMEOUTS or self.no in _SYSTEM_TIMEOUTS

    def temporary(self) -> bool:
        return self.no in _SYSTEM_TEMPORARY or self.no in _SYSTEM_TIMEOUTS


def wrap_error(err: BaseException | int, suffix: str = "") -> BaseException:
    """Attach ``suffix`` to an error; error codes become :class:`NetpollError`."""
    if isinstance(err, int) and not isinstance(err, bool):
        return NetpollError(err, suffix)
    if isinstance(err, OSError) and not isinstance(err, NetpollError) and err.errno is not None:
        wrapped = NetpollError(err.errno, suffix)
        wrapped.__cause__ = err
        return wrapped
    if not suffix:
        return err
    wrapped = RuntimeError(f"{err} {suffix}")
    wrapped.__cause__ = err
    return wrapped