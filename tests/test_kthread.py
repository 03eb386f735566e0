import threading
import time

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from mmchain.kthread import kt_for, kt_pipeline


def test_kt_for_single_thread_in_order():
    seen = []
    kt_for(1, lambda i, tid: seen.append((i, tid)), 5)
    assert seen == [(i, 0) for i in range(5)]


@settings(max_examples=25, deadline=None)
@given(n_threads=st.integers(min_value=1, max_value=6), n=st.integers(min_value=0, max_value=60))
def test_kt_for_visits_each_index_once(n_threads, n):
    lock = threading.Lock()
    seen = []
    tids = set()

    def work(i, tid):
        with lock:
            seen.append(i)
            tids.add(tid)

    kt_for(n_threads, work, n)
    assert sorted(seen) == list(range(n))
    assert all(0 <= t < max(n_threads, 1) for t in tids)


def test_kt_for_propagates_errors():
    def work(i, tid):
        if i == 3:
            raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        kt_for(4, work, 10)


class _Shared:
    def __init__(self, batches):
        self.source = iter(batches)
        self.lock = threading.Lock()
        self.out = []


def _step(shared, step, data):
    if step == 0:
        with shared.lock:
            return next(shared.source, None)
    if step == 1:
        time.sleep(0.001 * (len(data) % 3))
        return [x * 2 for x in data]
    shared.out.append(data)
    return None


@pytest.mark.parametrize("n_threads", [1, 2, 3, 5])
def test_pipeline_preserves_batch_order(n_threads):
    batches = [[i, i + 1] for i in range(0, 40, 2)]
    shared = _Shared(batches)
    kt_pipeline(n_threads, _step, shared, 3)
    assert shared.out == [[x * 2 for x in b] for b in batches]


def test_pipeline_first_step_gets_none():
    inputs = []
    shared = _Shared([[1]])

    def func(s, step, data):
        if step == 0:
            inputs.append(data)
        return _step(s, step, data)

    kt_pipeline(2, func, shared, 3)
    assert set(inputs) == {None}
    assert shared.out == [[2]]


def test_pipeline_propagates_errors():
    shared = _Shared([[1], [2], [3]])

    def func(s, step, data):
        if step == 1 and data == [2]:
            raise ValueError("bad batch")
        return _step(s, step, data)

    with pytest.raises(ValueError, match="bad batch"):
        kt_pipeline(3, func, shared, 3)