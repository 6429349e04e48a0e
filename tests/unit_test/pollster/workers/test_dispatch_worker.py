import time
from queue import Queue
from unittest.mock import MagicMock

import pytest

from pollster.workers.base_worker import BaseWorker
from pollster.workers.dispatch_worker import DispatchWorker


def wait_for(condition, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.005)
    return False


def make_pollster():
    pollster = MagicMock()
    pollster.completions = Queue()
    return pollster


def test_applies_completions_and_stops_on_sentinel():
    pollster = make_pollster()
    worker = DispatchWorker(pollster, tick_seconds=60)
    worker.start()

    pollster.completions.put("completion")
    pollster.completions.put(None)
    worker.join(timeout=2)

    assert not worker.is_alive()
    pollster.handle_completion.assert_called_once_with("completion")


def test_ticks_on_interval():
    pollster = make_pollster()
    worker = DispatchWorker(pollster, tick_seconds=0.01)
    worker.start()
    try:
        assert wait_for(lambda: pollster.tick.call_count >= 3)  # noqa: PLR2004
    finally:
        pollster.completions.put(None)
        worker.join(timeout=2)


def test_survives_failing_completion_and_tick():
    pollster = make_pollster()
    pollster.handle_completion.side_effect = RuntimeError("bad completion")
    pollster.tick.side_effect = RuntimeError("bad tick")
    worker = DispatchWorker(pollster, tick_seconds=0.01)
    worker.start()
    try:
        pollster.completions.put("completion")
        assert wait_for(lambda: pollster.tick.call_count >= 2)  # noqa: PLR2004
        assert worker.is_alive()
    finally:
        pollster.completions.put(None)
        worker.join(timeout=2)
    assert pollster.completions.unfinished_tasks == 0


def test_base_worker_process_not_implemented():
    with pytest.raises(NotImplementedError):
        BaseWorker(Queue()).process("item")
