"""Descriptor operators handed to a poller, and a reusable cache of them."""

from __future__ import annotations

import enum
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol

_UNUSED = 0
_INUSE = 1
_DOING = 2

_BLOCK = 32


class PollEvent(enum.Enum):
    """Changes an operator can ask of its poller."""

    READABLE = enum.auto()
    WRITABLE = enum.auto()
    DETACH = enum.auto()
    R2RW = enum.auto()
    RW2R = enum.auto()


class Poll(Protocol):
    def control(self, operator: "FDOperator", event: PollEvent) -> Any: ...

    def free(self, operator: "FDOperator") -> Any: ...


@dataclass(eq=False)
class FDOperator:
    """The callbacks a poller fires for one file descriptor."""

    fd: int = 0
    on_read: Optional[Callable[[Any], Any]] = None
    on_write: Optional[Callable[[Any], Any]] = None
    on_hup: Optional[Callable[[Any], Any]] = None
    inputs: Optional[Callable[[list], list]] = None
    input_ack: Optional[Callable[[int], Any]] = None
    outputs: Optional[Callable[[list], tuple]] = None
    output_ack: Optional[Callable[[int], Any]] = None
    poll: Optional[Poll] = None
    index: int = field(default=0, repr=False)
    _detached: int = field(default=0, init=False, repr=False)
    _state: int = field(default=_UNUSED, init=False, repr=False)
    _cond: threading.Condition = field(
        default_factory=threading.Condition, init=False, repr=False
    )

    def control(self, event: PollEvent) -> Any:
        """Pass ``event`` to the poller; a second detach is ignored."""
        if event is PollEvent.DETACH:
            with self._cond:
                self._detached += 1
                if self._detached > 1:
                    return None
        return self.poll.control(self, event)

    def free(self) -> Any:
        return self.poll.free(self)

    def do(self) -> bool:
        with self._cond:
            if self._state != _INUSE:
                return False
            self._state = _DOING
            return True

    def done(self) -> None:
        with self._cond:
            self._state = _INUSE
            self._cond.notify_all()

    def inuse(self) -> None:
        with self._cond:
            self._cond.wait_for(lambda: self._state != _DOING)
            self._state = _INUSE
            self._cond.notify_all()

    def unused(self) -> None:
        with self._cond:
            self._cond.wait_for(lambda: self._state != _DOING)
            self._state = _UNUSED
            self._cond.notify_all()

    def is_unused(self) -> bool:
        return self._state == _UNUSED

    def reset(self) -> None:
        self.fd = 0
        self.on_read = self.on_write = self.on_hup = None
        self.inputs = self.input_ack = None
        self.outputs = self.output_ack = None
        self.poll = None
        with self._cond:
            self._detached = 0


class OperatorCache:
    """Hands out operators and takes them back once the poller frees them."""

    def __init__(self) -> None:
        self.cache: list[FDOperator] = []
        self.freelist: list[int] = []
        self._available: list[FDOperator] = []
        self._lock = threading.Lock()
        self._free_lock = threading.Lock()

    def alloc(self) -> FDOperator:
        with self._lock:
            if not self._available:
                start = len(self.cache)
                block = [FDOperator(index=start + offset) for offset in range(_BLOCK)]
                self.cache.extend(block)
                self._available.extend(block)
            return self._available.pop()

    def freeable(self, op: FDOperator) -> None:
        """Reset ``op`` and queue it; it becomes available after :meth:`free`."""
        op.unused()
        op.reset()
        with self._free_lock:
            self.freelist.append(op.index)

    def free(self) -> None:
        with self._free_lock:
            if not self.freelist:
                return
            with self._lock:
                self._available.extend(self.cache[index] for index in self.freelist)
            self.freelist.clear()