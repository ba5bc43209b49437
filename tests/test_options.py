from netloom.options import (
    Options,
    build_options,
    with_idle_timeout,
    with_on_connect,
    with_on_disconnect,
    with_on_prepare,
    with_read_timeout,
    with_write_timeout,
)


def on_request(ctx, conn):
    return None


def on_prepare(conn):
    return {"prepared": True}


def on_connect(ctx, conn):
    return ctx


def on_disconnect(ctx, conn):
    return None


def test_defaults_are_empty():
    opts = Options()
    assert opts.on_request is None
    assert opts.on_connect is None
    assert opts.read_timeout == 0
    assert opts.write_timeout == 0
    assert opts.idle_timeout == 0


def test_build_options_sets_everything():
    opts = build_options(
        on_request,
        with_on_prepare(on_prepare),
        with_on_connect(on_connect),
        with_on_disconnect(on_disconnect),
        with_read_timeout(1.5),
        with_write_timeout(2.5),
        with_idle_timeout(30.0),
    )
    assert opts.on_request is on_request
    assert opts.on_prepare is on_prepare
    assert opts.on_connect is on_connect
    assert opts.on_disconnect is on_disconnect
    assert opts.read_timeout == 1.5
    assert opts.write_timeout == 2.5
    assert opts.idle_timeout == 30.0


def test_later_option_wins():
    opts = build_options(None, with_read_timeout(1.0), with_read_timeout(4.0))
    assert opts.read_timeout == 4.0
    assert opts.on_request is None


def test_apply_returns_same_instance():
    opts = Options()
    result = opts.apply(with_idle_timeout(9.0))
    assert result is opts
    assert opts.idle_timeout == 9.0


def test_option_touches_only_its_field():
    opts = build_options(on_request, with_on_connect(on_connect))
    assert opts == Options(on_request=on_request, on_connect=on_connect)