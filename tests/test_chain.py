import pytest
from hypothesis import given, settings, strategies as st

from mmchain.chain import (
    ChainResult,
    chain_backtrack,
    chain_dp,
    chain_rmq,
    compute_score,
    compute_score_simple,
)
from mmchain.misc import Anchor, sort_anchors

SPAN = 15
GAP = 0.8 * 0.01 * SPAN


def anchor(tpos, qpos, span=SPAN, rid=0, rev=0, seg=0):
    return Anchor(rev << 63 | rid << 32 | tpos, seg << 48 | span << 32 | qpos)


def diagonal(n, step=10, start=100, rid=0):
    return [anchor(start + k * step, start + k * step, rid=rid) for k in range(n)]


def run_dp(anchors, min_cnt=3, min_sc=20):
    return chain_dp(anchors, 5000, 5000, 500, 25, 5000, min_cnt, min_sc, GAP, 0.0, False, 1)


def run_rmq(anchors, min_cnt=3, min_sc=20):
    return chain_rmq(anchors, 5000, 1000, 500, 25, 100000, min_cnt, min_sc, GAP, 0.0)


def test_compute_score_rejects_non_increasing_query():
    a = anchor(200, 100)
    b = anchor(100, 100)
    assert compute_score(a, b, 5000, 5000, 500, GAP, 0.0, False, 1) is None


def test_compute_score_rejects_wide_band():
    a = anchor(2000, 110)
    b = anchor(100, 100)
    assert compute_score(a, b, 5000, 5000, 500, GAP, 0.0, False, 1) is None


def test_compute_score_diagonal_is_gap_length():
    a = anchor(110, 110)
    b = anchor(100, 100)
    assert compute_score(a, b, 5000, 5000, 500, GAP, 0.0, False, 1) == 10


def test_compute_score_penalises_indels():
    b = anchor(100, 100)
    straight = compute_score(anchor(130, 130), b, 5000, 5000, 500, GAP, 0.0, False, 1)
    shifted = compute_score(anchor(150, 130), b, 5000, 5000, 500, GAP, 0.0, False, 1)
    assert shifted < straight


def test_compute_score_simple_exact_on_diagonal():
    sc, exact, width = compute_score_simple(anchor(110, 110), anchor(100, 100), GAP, 0.0)
    assert exact is True
    assert width == 0
    assert sc == compute_score(anchor(110, 110), anchor(100, 100), 5000, 5000, 500, GAP, 0.0, False, 1)


def test_compute_score_simple_width_matches_offset():
    _, exact, width = compute_score_simple(anchor(150, 130), anchor(100, 100), GAP, 0.0)
    assert exact is False
    assert width == 20


def test_backtrack_single_chain():
    assert chain_backtrack([10, 20, 30], [-1, 0, 1], 1, 0, 100) == [(30, [0, 1, 2])]


def test_backtrack_min_score_filters_everything():
    assert chain_backtrack([10, 20, 30], [-1, 0, 1], 1, 1000, 100) == []


def test_backtrack_min_count_filters():
    assert chain_backtrack([10, 20, 30], [-1, 0, 1], 4, 0, 100) == []


def test_chain_dp_empty():
    assert run_dp([]) == []
    assert run_rmq([]) == []


def test_chain_dp_diagonal_single_chain():
    anchors = diagonal(10)
    chains = run_dp(anchors)
    assert len(chains) == 1
    assert chains[0].anchors == anchors
    assert chains[0].score == SPAN + 9 * 10


def test_chain_rmq_matches_dp_on_diagonal():
    anchors = diagonal(10)
    dp = run_dp(anchors)
    rmq = run_rmq(anchors)
    assert [(c.score, c.anchors) for c in rmq] == [(c.score, c.anchors) for c in dp]


def test_chains_on_separate_targets_are_sorted_by_target():
    anchors = sort_anchors(diagonal(6, rid=1) + diagonal(6, rid=0))
    chains = run_dp(anchors)
    assert len(chains) == 2
    assert chains[0].anchors[0].x < chains[1].anchors[0].x
    assert {c.anchors[0].x >> 32 for c in chains} == {0, 1}


def test_min_cnt_larger_than_input_gives_nothing():
    assert run_dp(diagonal(5), min_cnt=6) == []
    assert run_rmq(diagonal(5), min_cnt=6) == []


def test_chain_result_length():
    chains = run_dp(diagonal(7))
    assert isinstance(chains[0], ChainResult)
    assert len(chains[0]) == 7


positions = st.lists(
    st.tuples(st.integers(0, 3000), st.integers(0, 3000)), min_size=0, max_size=40
)


def _check_chains(chains, anchors, min_cnt, min_sc):
    seen = set()
    for c in chains:
        assert len(c.anchors) >= min_cnt
        assert c.score >= min_sc
        for a in c.anchors:
            key = (a.x, a.y)
            assert key not in seen or anchors.count(a) > 1
            seen.add(key)
        for prev, cur in zip(c.anchors, c.anchors[1:]):
            assert cur.x > prev.x
            assert (cur.y & 0xFFFFFFFF) > (prev.y & 0xFFFFFFFF)
    firsts = [c.anchors[0].x for c in chains]
    assert firsts == sorted(firsts)


@settings(max_examples=60, deadline=None)
@given(positions)
def test_chain_dp_invariants(pos):
    anchors = sort_anchors(anchor(t, q) for t, q in pos)
    chains = run_dp(anchors, min_cnt=2, min_sc=20)
    _check_chains(chains, anchors, 2, 20)


@settings(max_examples=60, deadline=None)
@given(positions)
def test_chain_rmq_invariants(pos):
    anchors = sort_anchors(anchor(t, q) for t, q in pos)
    chains = run_rmq(anchors, min_cnt=2, min_sc=20)
    _check_chains(chains, anchors, 2, 20)


@pytest.mark.parametrize("n", [3, 5, 12])
def test_diagonal_chain_uses_all_anchors(n):
    chains = run_rmq(diagonal(n))
    assert sum(len(c) for c in chains) == n