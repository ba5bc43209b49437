import threading

from netloom.operator import FDOperator, OperatorCache, PollEvent


class RecordingPoll:
    def __init__(self):
        self.events = []
        self.freed = []

    def control(self, operator, event):
        self.events.append((operator, event))
        return "ok"

    def free(self, operator):
        self.freed.append(operator)


def test_persist_fd_operator():
    cache = OperatorCache()
    size = 2048
    ops = []
    for i in range(size):
        op = cache.alloc()
        op.fd = i
        ops.append(op)
    assert len(cache.freelist) == 0
    assert [op.fd for op in ops] == list(range(size))
    lengths = []
    for op in ops:
        cache.freeable(op)
        lengths.append(len(cache.freelist))
    assert lengths == list(range(1, size + 1))
    assert len(cache.freelist) == size
    cache.free()
    assert len(cache.freelist) == 0
    assert len(cache.cache) >= size


def test_allocated_operators_are_distinct():
    cache = OperatorCache()
    ops = [cache.alloc() for _ in range(100)]
    assert len({id(op) for op in ops}) == 100
    assert sorted(op.index for op in ops) == sorted({op.index for op in ops})


def test_freed_operator_reused_only_after_free():
    cache = OperatorCache()
    first = cache.alloc()
    cache.freeable(first)
    second = cache.alloc()
    assert second is not first
    assert len(cache.freelist) == 1
    cache.free()
    assert cache.alloc() is first


def test_freeable_resets_operator():
    cache = OperatorCache()
    op = cache.alloc()
    op.fd = 7
    op.poll = RecordingPoll()
    op.on_read = lambda poll: None
    op.inuse()
    cache.freeable(op)
    assert op.fd == 0
    assert op.poll is None
    assert op.on_read is None
    assert op.is_unused()


def test_control_detaches_once():
    poll = RecordingPoll()
    op = FDOperator(fd=3, poll=poll)
    assert op.control(PollEvent.READABLE) == "ok"
    assert op.control(PollEvent.DETACH) == "ok"
    assert op.control(PollEvent.DETACH) is None
    assert [event for _, event in poll.events] == [PollEvent.READABLE, PollEvent.DETACH]


def test_reset_allows_detach_again():
    op = FDOperator(poll=RecordingPoll())
    op.control(PollEvent.DETACH)
    op.reset()
    poll = RecordingPoll()
    op.poll = poll
    op.control(PollEvent.DETACH)
    assert poll.events == [(op, PollEvent.DETACH)]


def test_free_goes_to_poll():
    poll = RecordingPoll()
    op = FDOperator(poll=poll)
    op.free()
    assert poll.freed == [op]


def test_do_done_cycle():
    op = FDOperator()
    assert op.is_unused()
    assert not op.do()
    op.inuse()
    assert op.do()
    assert not op.do()
    op.done()
    assert op.do()
    op.done()
    op.unused()
    assert op.is_unused()


def test_unused_waits_for_done():
    op = FDOperator()
    op.inuse()
    assert op.do()
    worker = threading.Thread(target=op.unused)
    worker.start()
    worker.join(0.05)
    assert worker.is_alive()
    assert not op.is_unused()
    op.done()
    worker.join(2)
    assert not worker.is_alive()
    assert op.is_unused()