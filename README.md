# netloom

Building blocks for a non-blocking network connection layer on POSIX
systems. The package has no third-party dependencies.

## Installation

    pip install .

## Modules

- `netloom.errors`: the `Errno` codes (`CONN_CLOSED`, `READ_TIMEOUT`,
  `DIAL_TIMEOUT`, `DIAL_NO_DEADLINE`, `UNSUPPORTED`, `EOF`, `WRITE_TIMEOUT`,
  `CONCURRENT_ACCESS`) and the `NetpollError` exception that carries one of
  them, or a system errno, together with a short suffix.
  `wrap_error(err, suffix)` turns an error code or an `OSError` into a
  `NetpollError`. Any other exception is returned unchanged when the suffix
  is empty, and is otherwise wrapped in a `RuntimeError` whose message has
  the suffix added. `NetpollError.matches(target)` tells whether the error
  stands for a code, for an error class such as `PermissionError`, or is
  the target itself. An `EOF` error also matches `CONN_CLOSED`. The
  `timeout()` and `temporary()` methods classify the error.
- `netloom.locker`: `Locker` holds one state slot for each `Key`
  (`CLOSING`, `CONNECTING`, `PROCESSING`, `FLUSHING`). Its methods are:
  - `lock` and `unlock`, a compare-and-set pair.
  - `stop`, which waits until the slot is free and then marks it stopped.
  - `force` and `status`, which set and read a slot directly.
  - `close_by` and `is_close_by`, which record and check the `Who`
    (`USER` or `POLLER`) that closed the connection.
- `netloom.operator`: `FDOperator`, the set of callbacks a poller fires for
  one descriptor, and `PollEvent`. `FDOperator.control(event)` passes the
  event to the poll object in the operator's `poll` field, and a second
  `DETACH` is ignored. `OperatorCache` hands operators out in blocks. An
  operator given to `freeable` is reset and becomes available again after
  `free`.
- `netloom.options`: `Options`, which holds the prepare, connect, disconnect
  and request callbacks and the read, write and idle timeouts in seconds.
  The option builders are `with_on_prepare`, `with_on_connect`,
  `with_on_disconnect`, `with_read_timeout`, `with_write_timeout` and
  `with_idle_timeout`. `build_options(on_request, *options)` combines a
  request callback with any of them.
- `netloom.addr`: the frozen `TCPAddr` and `UnixAddr` end points and these
  helpers:
  - `loopback_ip`
  - `ip_to_sockaddr`, which raises `AddrError` for an address that does not
    fit the family.
  - `favorite_addr_family`
  - `unix_socket_type`, which checks a Unix dial or listen request.
  - `resolve_tcp_addr`
  - `resolve_unix_addr`
  - `sockaddr_to_addr`

  An unknown network name raises `UnknownNetworkError`.
- `netloom.listener`: `create_listener(network, address)` for `tcp`,
  `tcp4`, `tcp6`, `unix` and `unixpacket`, and `convert_listener(sock)`,
  which wraps an existing listening socket. `Listener.accept()` never waits.
  It returns a `NetFD` for a pending connection, or `None` when there is
  none. `NetFD` reads and writes the raw descriptor, and its `close()` acts
  only once. Its deadline setters raise `NetpollError` with `UNSUPPORTED`.
  A `udp` listener can be created, but accepting on it raises `UNSUPPORTED`.
- `netloom.shard_queue`: `ShardQueue(size, conn)` collects buffer getters
  from many threads into `size` shards. It hands each buffer to
  `conn.append` and then calls `conn.flush()` on a background thread. A
  getter that returns `None` is skipped. If appending or flushing fails,
  the queue calls `conn.close()`. `close()` waits until everything queued
  has been sent, and raises `RuntimeError` if the queue was already closed.

## Examples

```python
from netloom.errors import Errno, wrap_error

err = wrap_error(Errno.CONN_CLOSED, "when next")
assert str(err) == "connection has been closed when next"
assert err.matches(Errno.CONN_CLOSED)
```

```python
from netloom.listener import create_listener

with create_listener("tcp", "127.0.0.1:0") as ln:
    conn = ln.accept()  # None when no connection is pending
```

## What this package does not do

The package contains no poller, no event loop or server, no dialer and no
buffered connection object. `FDOperator` forwards its events to a poll
object that you supply. Nothing in the package calls the callbacks kept in
`Options`. `ShardQueue` needs a connection object with `append`, `flush` and
`close` methods that you supply.

## Tests

    pip install .[test]
    pytest