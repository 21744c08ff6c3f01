"""
Unit tests for the worker pool.
"""

import threading

import pytest

from minihttp.core.thread_pool import ThreadPool


@pytest.fixture
def pool():
    pool = ThreadPool(min_workers=2, max_workers=4, queue_size=10, idle_timeout=0.1)
    pool.start()
    yield pool
    pool.shutdown(wait=False)


def test_runs_tasks(pool: ThreadPool):
    done = threading.Event()
    results = []

    def task(value):
        results.append(value)
        done.set()

    assert pool.submit(task, args=(42,)) is True
    assert done.wait(timeout=5.0)
    assert results == [42]


def test_kwargs(pool: ThreadPool):
    done = threading.Event()
    seen = {}

    def task(a, b=None):
        seen.update(a=a, b=b)
        done.set()

    pool.submit(task, args=(1,), kwargs={"b": 2})
    assert done.wait(timeout=5.0)
    assert seen == {"a": 1, "b": 2}


def test_failing_task_does_not_kill_worker(pool: ThreadPool):
    done = threading.Event()

    def boom():
        raise RuntimeError("boom")

    pool.submit(boom)
    pool.submit(done.set)

    assert done.wait(timeout=5.0)


def test_full_queue_rejects_nonblocking():
    pool = ThreadPool(min_workers=1, max_workers=1, queue_size=1, idle_timeout=0.1)
    pool.start()
    release = threading.Event()
    started = threading.Event()

    def blocker():
        started.set()
        release.wait(timeout=5.0)

    try:
        assert pool.submit(blocker) is True
        assert started.wait(timeout=5.0)

        assert pool.submit(release.wait, block=False) is True   # fills the queue
        assert pool.submit(release.wait, block=False) is False  # no room
    finally:
        release.set()
        pool.shutdown(wait=True, timeout=5.0)


def test_scales_up_to_max():
    pool = ThreadPool(min_workers=1, max_workers=3, queue_size=10, idle_timeout=0.1)
    pool.start()
    release = threading.Event()

    try:
        for _ in range(6):
            pool.submit(release.wait, args=(5.0,))
        assert 1 <= pool.worker_count <= 3
    finally:
        release.set()
        pool.shutdown(wait=True, timeout=5.0)


def test_shutdown_waits_for_tasks():
    pool = ThreadPool(min_workers=2, max_workers=2, queue_size=10, idle_timeout=0.1)
    pool.start()
    finished = []

    for i in range(5):
        pool.submit(finished.append, args=(i,))

    pool.shutdown(wait=True, timeout=5.0)

    assert sorted(finished) == [0, 1, 2, 3, 4]
    assert pool.is_running is False
    assert pool.worker_count == 0


def test_submit_requires_start():
    with pytest.raises(RuntimeError):
        ThreadPool().submit(print)


def test_submit_after_shutdown():
    pool = ThreadPool(min_workers=1, max_workers=1, idle_timeout=0.1)
    pool.start()
    pool.shutdown()

    with pytest.raises(RuntimeError):
        pool.submit(print)


def test_invalid_bounds():
    with pytest.raises(ValueError):
        ThreadPool(min_workers=0)
    with pytest.raises(ValueError):
        ThreadPool(min_workers=4, max_workers=2)


def test_stats(pool: ThreadPool):
    stats = pool.stats

    assert stats["workers"]["total"] == 2
    assert stats["tasks"]["queued"] == 0
