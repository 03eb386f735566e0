"""Colinear chaining of anchors by dynamic programming or range-minimum queries.

Anchors follow the seed layout used throughout the package:

* ``x = rev << 63 | target_id << 32 | target_pos``
* ``y = flags << 40 | q_span << 32 | query_pos``

where the segment id occupies the bits selected by ``SEED_SEG_MASK``.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Optional, Sequence

from mmchain.misc import Anchor
from mmchain.rmq import RMQTree

SEED_SEG_SHIFT = 48
SEED_SEG_MASK = 0xFF << SEED_SEG_SHIFT

INT32_MAX = (1 << 31) - 1
INT32_MIN = -(1 << 31)
_MASK32 = 0xFFFFFFFF
_MASK64 = (1 << 64) - 1


@dataclass(slots=True)
class ChainResult:
    """One chain: its score and its anchors in ascending order."""

    score: int
    anchors: list[Anchor] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.anchors)


def _i32(v: int) -> int:
    v &= _MASK32
    return v - (1 << 32) if v & 0x80000000 else v


def _f32(v: float) -> float:
    return struct.unpack("<f", struct.pack("<f", v))[0]


def _log2(x: float) -> float:
    """Fast approximate log2, valid for ``x >= 2``."""
    bits = struct.unpack("<I", struct.pack("<f", x))[0]
    result = float(((bits >> 23) & 255) - 128)
    bits &= ~(255 << 23) & _MASK32
    bits += 127 << 23
    z = struct.unpack("<f", struct.pack("<I", bits))[0]
    result += (-0.34484843 * z + 2.02466578) * z - 0.67487759
    return _f32(result)


def _seg(a: Anchor) -> int:
    return (a.y & SEED_SEG_MASK) >> SEED_SEG_SHIFT


def _span(a: Anchor) -> int:
    return a.y >> 32 & 0xFF


def compute_score(ai: Anchor, aj: Anchor, max_dist_x: int, max_dist_y: int, bw: int,
                  chn_pen_gap: float, chn_pen_skip: float, is_cdna: bool, n_seg: int) -> Optional[int]:
    """Score of extending a chain ending at ``aj`` with ``ai``; None if they cannot chain."""
    dq = _i32(_i32(ai.y) - _i32(aj.y))
    sidi, sidj = _seg(ai), _seg(aj)
    if dq <= 0 or dq > max_dist_x:
        return None
    dr = _i32(ai.x - aj.x)
    same = sidi == sidj
    if same and (dr == 0 or dq > max_dist_y):
        return None
    dd = abs(dr - dq)
    if same and dd > bw:
        return None
    if n_seg > 1 and not is_cdna and same and dr > max_dist_y:
        return None
    dg = min(dr, dq)
    q_span = _span(aj)
    sc = min(q_span, dg)
    if dd or dg > q_span:
        lin_pen = _f32(chn_pen_gap * dd + chn_pen_skip * dg)
        log_pen = _log2(dd + 1) if dd >= 1 else 0.0
        if is_cdna or not same:
            if not same and dr == 0:
                sc += 1  # likely overlapping paired ends
            elif dr > dq or not same:
                sc -= int(min(lin_pen, log_pen))
            else:
                sc -= int(_f32(lin_pen + 0.5 * log_pen))
        else:
            sc -= int(_f32(lin_pen + 0.5 * log_pen))
    return sc


def compute_score_simple(ai: Anchor, aj: Anchor, chn_pen_gap: float,
                         chn_pen_skip: float) -> tuple[int, bool, int]:
    """Return ``(score, exact, width)`` for chaining ``aj`` to ``ai`` without range checks."""
    dq = _i32(_i32(ai.y) - _i32(aj.y))
    dr = _i32(ai.x - aj.x)
    dd = abs(dr - dq)
    dg = min(dr, dq)
    q_span = _span(aj)
    sc = min(q_span, dg)
    exact = dd == 0 and dg <= q_span
    if dd or dq > q_span:
        lin_pen = _f32(chn_pen_gap * dd + chn_pen_skip * dg)
        log_pen = _log2(dd + 1) if dd >= 1 else 0.0
        sc -= int(_f32(lin_pen + 0.5 * log_pen))
    return sc, exact, dd


def _backtrack_end(max_drop: int, start: int, score: int, f: Sequence[int],
                   p: Sequence[int], t: list[int]) -> int:
    i = start
    if i < 0 or t[i] != 0:
        return i
    end_i, max_i, max_s = -1, i, 0
    while True:
        t[i] = 2
        end_i = i = p[i]
        s = score if i < 0 else score - f[i]
        if s > max_s:
            max_s, max_i = s, i
        elif max_s - s > max_drop:
            break
        if i < 0 or t[i] != 0:
            break
    i = start
    while i >= 0 and i != end_i:  # reset marks left by the scan
        t[i] = 0
        i = p[i]
    return max_i


def chain_backtrack(f: Sequence[int], p: Sequence[int], min_cnt: int, min_sc: int,
                    max_drop: int) -> list[tuple[int, list[int]]]:
    """Extract chains from scores ``f`` and predecessors ``p``.

    Returns ``(score, indices)`` pairs, highest-ending scores first, with each
    chain's indices in ascending order.
    """
    n = len(f)
    ends = sorted((i for i in range(n) if f[i] >= min_sc), key=lambda i: f[i] & _MASK64)
    t = [0] * n
    chains: list[tuple[int, list[int]]] = []
    for k in reversed(ends):
        if t[k] != 0:
            continue
        score = f[k]
        end_i = _backtrack_end(max_drop, k, score, f, p, t)
        idx: list[int] = []
        i = k
        while i != end_i:
            idx.append(i)
            t[i] = 1
            i = p[i]
        sc = score if i < 0 else score - f[i]
        if sc >= min_sc and idx and len(idx) >= min_cnt:
            idx.reverse()
            chains.append((sc, idx))
    return chains


def _compact(anchors: Sequence[Anchor], chains: list[tuple[int, list[int]]]) -> list[ChainResult]:
    results = [ChainResult(sc, [anchors[i] for i in idx]) for sc, idx in chains]
    results.sort(key=lambda c: c.anchors[0].x)
    return results


def chain_dp(anchors: Sequence[Anchor], max_dist_x: int, max_dist_y: int, bw: int, max_skip: int,
             max_iter: int, min_cnt: int, min_sc: int, chn_pen_gap: float, chn_pen_skip: float,
             is_cdna: bool = False, n_seg: int = 1) -> list[ChainResult]:
    """Chain anchors sorted by ``x`` with the quadratic-time DP, bounded by ``max_iter``.

    Chains are returned ordered by the target position of their first anchor.
    """
    a = list(anchors)
    n = len(a)
    if n == 0:
        return []
    max_dist_x = max(max_dist_x, bw)
    if max_dist_y < bw and not is_cdna:
        max_dist_y = bw
    max_drop = INT32_MAX if is_cdna else bw
    f = [0] * n
    p = [-1] * n
    t = [0] * n
    st = 0
    max_ii = -1

    def score(i: int, j: int) -> Optional[int]:
        return compute_score(a[i], a[j], max_dist_x, max_dist_y, bw, chn_pen_gap, chn_pen_skip, is_cdna, n_seg)

    for i in range(n):
        ai = a[i]
        max_j = -1
        max_f = _span(ai)
        n_skip = 0
        while st < i and (ai.x >> 32 != a[st].x >> 32 or ai.x > a[st].x + max_dist_x):
            st += 1
        if i - st > max_iter:
            st = i - max_iter
        j = i - 1
        while j >= st:
            sc = score(i, j)
            if sc is not None:
                sc += f[j]
                if sc > max_f:
                    max_f, max_j = sc, j
                    if n_skip > 0:
                        n_skip -= 1
                elif t[j] == i:
                    n_skip += 1
                    if n_skip > max_skip:
                        break
                if p[j] >= 0:
                    t[p[j]] = i
            j -= 1
        end_j = j
        if max_ii < 0 or ((ai.x - a[max_ii].x) & _MASK64) > max_dist_x:
            best = INT32_MIN
            max_ii = -1
            for j in range(i - 1, st - 1, -1):
                if best < f[j]:
                    best, max_ii = f[j], j
        if 0 <= max_ii < end_j:
            tmp = score(i, max_ii)
            if tmp is not None and max_f < tmp + f[max_ii]:
                max_f, max_j = tmp + f[max_ii], max_ii
        f[i], p[i] = max_f, max_j
        if max_ii < 0 or (((ai.x - a[max_ii].x) & _MASK64) <= max_dist_x and f[max_ii] < f[i]):
            max_ii = i

    return _compact(a, chain_backtrack(f, p, min_cnt, min_sc, max_drop))


@dataclass(slots=True)
class _Elem:
    y: int
    i: int
    pri: float


def _new_tree() -> RMQTree[_Elem]:
    return RMQTree(key=lambda e: (e.y, e.i), priority=lambda e: e.pri)


def chain_rmq(anchors: Sequence[Anchor], max_dist: int, max_dist_inner: int, bw: int, max_chn_skip: int,
              cap_rmq_size: int, min_cnt: int, min_sc: int, chn_pen_gap: float,
              chn_pen_skip: float) -> list[ChainResult]:
    """Chain anchors sorted by ``x`` using range-minimum queries over query positions.

    Chains are returned ordered by the target position of their first anchor.
    """
    a = list(anchors)
    n = len(a)
    if n == 0:
        return []
    max_dist = max(max_dist, bw)
    if max_dist_inner <= 0 or max_dist_inner >= max_dist:
        max_dist_inner = 0
    max_drop = bw
    f = [0] * n
    p = [-1] * n
    t = [0] * n
    tree = _new_tree()
    inner = _new_tree()
    i0 = st = st_inner = 0

    for i in range(n):
        ai = a[i]
        yi = _i32(ai.y)
        max_j = -1
        max_f = _span(ai)
        if i0 < i and a[i0].x != ai.x:  # add anchors now strictly behind on the target
            for j in range(i0, i):
                pri = -(f[j] + 0.5 * chn_pen_gap * (_i32(a[j].x) + _i32(a[j].y)))
                tree.insert(_Elem(_i32(a[j].y), j, pri))
                if max_dist_inner > 0:
                    inner.insert(_Elem(_i32(a[j].y), j, pri))
            i0 = i
        while st < i and (ai.x >> 32 != a[st].x >> 32 or ai.x > a[st].x + max_dist
                          or len(tree) > cap_rmq_size):
            tree.erase((_i32(a[st].y), st))
            st += 1
        if max_dist_inner > 0:
            while st_inner < i and (ai.x >> 32 != a[st_inner].x >> 32 or ai.x > a[st_inner].x + max_dist_inner
                                    or len(inner) > cap_rmq_size):
                inner.erase((_i32(a[st_inner].y), st_inner))
                st_inner += 1
        best = tree.rmq((_i32(yi - max_dist), INT32_MAX), (yi, 0))
        if best is not None:
            n_skip = 0
            j = best.i
            sc_add, exact, width = compute_score_simple(ai, a[j], chn_pen_gap, chn_pen_skip)
            sc = f[j] + sc_add
            if width <= bw and sc > max_f:
                max_f, max_j = sc, j
            if not exact and len(inner) > 0 and yi > 0:
                lower, _ = inner.interval((yi - 1, n))
                if lower is not None:
                    for q in inner.iter_from((lower.y, lower.i), reverse=True):
                        if q.y < yi - max_dist_inner:
                            break
                        j = q.i
                        sc_add, _, width = compute_score_simple(ai, a[j], chn_pen_gap, chn_pen_skip)
                        sc = f[j] + sc_add
                        if width <= bw:
                            if sc > max_f:
                                max_f, max_j = sc, j
                                if n_skip > 0:
                                    n_skip -= 1
                            elif t[j] == i:
                                n_skip += 1
                                if n_skip > max_chn_skip:
                                    break
                            if p[j] >= 0:
                                t[p[j]] = i
        f[i], p[i] = max_f, max_j

    return _compact(a, chain_backtrack(f, p, min_cnt, min_sc, max_drop))