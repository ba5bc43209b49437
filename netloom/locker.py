"""Per-connection state keys that can be locked, stopped or closed by a party."""

from __future__ import annotations

import enum
import threading

UNLOCKED = 0
LOCKED = 1
STOPPED = 2


class Who(enum.IntEnum):
    """The party that closed a connection."""

    NONE = 0
    USER = 1
    POLLER = 2


class Key(enum.IntEnum):
    """The state slots a connection keeps."""

    CLOSING = 0
    CONNECTING = 1
    PROCESSING = 2
    FLUSHING = 3


class Locker:
    """A set of compare-and-swap slots, one per :class:`Key`."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._keychain = dict.fromkeys(Key, UNLOCKED)

    def _swap(self, key: Key, old: int, new: int) -> bool:
        with self._cond:
            if self._keychain[key] != old:
                return False
            self._keychain[key] = new
            self._cond.notify_all()
            return True

    def close_by(self, who: Who) -> bool:
        return self._swap(Key.CLOSING, Who.NONE, int(who))

    def is_close_by(self, who: Who) -> bool:
        return self._keychain[Key.CLOSING] == who

    def status(self, key: Key) -> int:
        return self._keychain[key]

    def force(self, key: Key, value: int) -> None:
        with self._cond:
            self._keychain[key] = int(value)
            self._cond.notify_all()

    def lock(self, key: Key) -> bool:
        return self._swap(key, UNLOCKED, LOCKED)

    def unlock(self, key: Key) -> None:
        self.force(key, UNLOCKED)

    def stop(self, key: Key) -> None:
        """Wait until ``key`` is free, then mark it stopped for good."""
        with self._cond:
            self._cond.wait_for(lambda: self._keychain[key] in (UNLOCKED, STOPPED))
            self._keychain[key] = STOPPED
            self._cond.notify_all()

    def is_unlock(self, key: Key) -> bool:
        return self._keychain[key] == UNLOCKED