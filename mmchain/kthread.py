"""Thread helpers: a work-stealing parallel for loop and an ordered pipeline."""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional


class _Counter:
    """A shared integer with atomic fetch-and-add."""

    __slots__ = ("value",)

    def __init__(self, value: int) -> None:
        self.value = value


def kt_for(n_threads: int, func: Callable[[int, int], Any], n: int) -> None:
    """Call ``func(i, tid)`` for every ``i`` in ``range(n)`` using ``n_threads`` threads.

    Each thread starts at its own id and strides by ``n_threads``; idle threads
    then steal from the slowest one. Exceptions from ``func`` are re-raised.
    """
    if n_threads <= 1:
        for i in range(n):
            func(i, 0)
        return

    lock = threading.Lock()
    counters = [_Counter(tid) for tid in range(n_threads)]
    errors: list[BaseException] = []

    def fetch_add(c: _Counter) -> int:
        with lock:
            v = c.value
            c.value += n_threads
            return v

    def steal() -> int:
        with lock:
            victim = min(counters, key=lambda c: c.value)
            k = victim.value
            victim.value += n_threads
        return -1 if k >= n else k

    def worker(tid: int) -> None:
        try:
            while True:
                i = fetch_add(counters[tid])
                if i >= n:
                    break
                func(i, tid)
            while (i := steal()) >= 0:
                func(i, tid)
        except BaseException as exc:  # noqa: BLE001 - re-raised in the caller
            with lock:
                errors.append(exc)
                for c in counters:
                    c.value = n  # stop everyone

    threads = [threading.Thread(target=worker, args=(tid,)) for tid in range(n_threads)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()
    if errors:
        raise errors[0]


class _Worker:
    __slots__ = ("index", "step", "data")

    def __init__(self, index: int) -> None:
        self.index = index
        self.step = 0
        self.data: Any = None


def kt_pipeline(n_threads: int, func: Callable[[Any, int, Any], Any], shared: Any, n_steps: int) -> None:
    """Run a multi-step pipeline over batches with ``n_threads`` workers.

    ``func(shared, step, data)`` is called for each step; step 0 receives
    ``None`` and returns a batch, or ``None`` when there is no more input.
    Every step is performed on batches in the order they were created.
    """
    n_threads = max(n_threads, 1)
    cv = threading.Condition()
    workers = [_Worker(i) for i in range(n_threads)]
    next_index = [n_threads]
    errors: list[BaseException] = []

    def blocked(w: _Worker) -> bool:
        return any(o is not w and o.step <= w.step and o.index < w.index for o in workers)

    def run(w: _Worker) -> None:
        while w.step < n_steps:
            with cv:
                while not errors and blocked(w):
                    cv.wait()
                if errors:
                    return
            try:
                w.data = func(shared, w.step, w.data if w.step else None)
            except BaseException as exc:  # noqa: BLE001 - re-raised in the caller
                with cv:
                    errors.append(exc)
                    w.step = n_steps
                    cv.notify_all()
                return
            with cv:
                if w.step == n_steps - 1 or w.data is not None:
                    w.step = (w.step + 1) % n_steps
                else:
                    w.step = n_steps
                if w.step == 0:
                    w.index = next_index[0]
                    next_index[0] += 1
                cv.notify_all()

    threads = [threading.Thread(target=run, args=(w,)) for w in workers]
    for th in threads:
        th.start()
    for th in threads:
        th.join()
    if errors:
        raise errors[0]