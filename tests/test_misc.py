import time

from hypothesis import given, strategies as st

from mmchain.misc import Anchor, cputime, peakrss, realtime, sort_anchors


def test_sort_anchors_by_x():
    anchors = [Anchor(3, 0), Anchor(1, 1), Anchor(2, 2)]
    assert [a.x for a in sort_anchors(anchors)] == [1, 2, 3]


def test_sort_anchors_is_stable():
    anchors = [Anchor(5, 0), Anchor(1, 1), Anchor(5, 2), Anchor(1, 3)]
    assert sort_anchors(anchors) == [Anchor(1, 1), Anchor(1, 3), Anchor(5, 0), Anchor(5, 2)]


@given(st.lists(st.tuples(st.integers(0, 2**64 - 1), st.integers(0, 2**64 - 1))))
def test_sort_anchors_invariants(pairs):
    anchors = [Anchor(x, y) for x, y in pairs]
    out = sort_anchors(anchors)
    assert len(out) == len(anchors)
    assert all(a.x <= b.x for a, b in zip(out, out[1:]))
    assert sorted((a.x, a.y) for a in out) == sorted(pairs)


def test_realtime_tracks_wall_clock():
    before = time.time()
    now = realtime()
    after = time.time()
    assert before <= now <= after


def test_cputime_monotonic():
    first = cputime()
    sum(i * i for i in range(200000))
    second = cputime()
    assert first >= 0.0
    assert second >= first


def test_peakrss_nonnegative():
    assert peakrss() >= 0


def test_anchor_equality():
    assert Anchor(1, 2) == Anchor(1, 2)
    assert Anchor(1, 2) != Anchor(2, 1)