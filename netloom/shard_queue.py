"""A sharded queue that merges outgoing buffers and flushes them on one connection."""

from __future__ import annotations

import enum
import itertools
import os
import threading
from collections import deque
from typing import Any, Callable, Optional, Protocol

# A getter returns the buffer to send, or ``None`` when it has nothing to send.
WriterGetter = Callable[[], Optional[Any]]

SHARD_SIZE = os.cpu_count() or 1


class _State(enum.IntEnum):
    ACTIVE = 0
    CLOSING = 1
    CLOSED = 2


class QueueConnection(Protocol):
    def append(self, buf: Any) -> Any: ...

    def flush(self) -> Any: ...

    def close(self) -> Any: ...


class ShardQueue:
    """Collects buffers added from many threads and sends them in merged batches.

    Sending starts by itself as soon as data is added. If appending or flushing
    fails, the connection is closed.
    """

    def __init__(self, size: int, conn: QueueConnection) -> None:
        if size <= 0:
            raise ValueError("shard queue size must be positive")
        self._conn = conn
        self._size = size
        self._counter = itertools.count(1)
        self._getters: list[list[WriterGetter]] = [[] for _ in range(size)]
        self._pending: deque[int] = deque()
        self._running = False
        self._state = _State.ACTIVE
        self._cond = threading.Condition()

    @property
    def closed(self) -> bool:
        return self._state == _State.CLOSED

    def add(self, *getters: WriterGetter) -> None:
        """Queue ``getters``; their buffers are sent on the next flush."""
        with self._cond:
            if self._state != _State.ACTIVE:
                return
            shard = next(self._counter) % self._size
            trigger = not self._getters[shard]
            self._getters[shard].extend(getters)
            start = False
            if trigger:
                self._pending.append(shard)
                if not self._running:
                    self._running = True
                    start = True
        if start:
            threading.Thread(target=self._run, daemon=True).start()

    def close(self) -> None:
        """Stop taking data and wait until everything queued has been sent."""
        with self._cond:
            if self._state != _State.ACTIVE:
                raise RuntimeError("shardQueue has been closed")
            self._state = _State.CLOSING
            self._cond.wait_for(lambda: not self._running and not self._pending)
            self._state = _State.CLOSED
            self._cond.notify_all()

    def __enter__(self) -> "ShardQueue":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if self._state == _State.ACTIVE:
            self.close()

    def _batches(self):
        while True:
            with self._cond:
                if not self._pending:
                    return
                shard = self._pending.popleft()
                batch, self._getters[shard] = self._getters[shard], []
            yield batch

    def _run(self) -> None:
        while True:
            for batch in self._batches():
                self._deal(batch)
            self._flush()
            with self._cond:
                if self._pending:
                    continue
                self._running = False
                if self._state == _State.CLOSING:
                    self._state = _State.CLOSED
                self._cond.notify_all()
                return

    def _deal(self, getters: list[WriterGetter]) -> None:
        for getter in getters:
            buf = getter()
            if buf is None:
                continue
            try:
                self._conn.append(buf)
            except Exception:
                self._conn.close()
                return

    def _flush(self) -> None:
        try:
            self._conn.flush()
        except Exception:
            self._conn.close()