"""Callback types and options of an event loop and its connections."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

# The context passed between callbacks is any object the application chooses.
OnPrepare = Callable[[Any], Any]
OnConnect = Callable[[Any, Any], Any]
OnDisconnect = Callable[[Any, Any], None]
OnRequest = Callable[[Any, Any], Any]
CloseCallback = Callable[[Any], Any]
Option = Callable[["Options"], None]


@dataclass
class Options:
    """Callbacks and timeouts (in seconds) given to every accepted connection."""

    on_prepare: Optional[OnPrepare] = None
    on_connect: Optional[OnConnect] = None
    on_disconnect: Optional[OnDisconnect] = None
    on_request: Optional[OnRequest] = None
    read_timeout: float = 0.0
    write_timeout: float = 0.0
    idle_timeout: float = 0.0

    def apply(self, *options: Option) -> "Options":
        for option in options:
            option(self)
        return self


def _setting(name: str, value: Any) -> Option:
    def option(opts: Options) -> None:
        setattr(opts, name, value)

    return option


def with_on_prepare(on_prepare: OnPrepare) -> Option:
    return _setting("on_prepare", on_prepare)


def with_on_connect(on_connect: OnConnect) -> Option:
    return _setting("on_connect", on_connect)


def with_on_disconnect(on_disconnect: OnDisconnect) -> Option:
    return _setting("on_disconnect", on_disconnect)


def with_read_timeout(timeout: float) -> Option:
    return _setting("read_timeout", timeout)


def with_write_timeout(timeout: float) -> Option:
    return _setting("write_timeout", timeout)


def with_idle_timeout(timeout: float) -> Option:
    return _setting("idle_timeout", timeout)


def build_options(on_request: Optional[OnRequest], *options: Option) -> Options:
    """Options for an event loop that handles requests with ``on_request``."""
    return Options(on_request=on_request).apply(*options)