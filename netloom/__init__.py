"""Error codes, state locks, poller operators, options, addresses, listeners and a sharded write queue."""

__version__ = "0.1.0"
__all__ = [
    "addr",
    "errors",
    "listener",
    "locker",
    "operator",
    "options",
    "shard_queue",
]