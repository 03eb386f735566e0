"""Seed collection: turning query minimizers into index hits."""

from __future__ import annotations

import heapq
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Sequence

from mmchain.misc import Anchor

MAX_MAX_HIGH_OCC = 128

Lookup = Callable[[int], Sequence[int]]


@dataclass(slots=True)
class Seed:
    """A query minimizer together with its hits in the index."""

    q_pos: int
    q_span: int
    cr: Sequence[int]
    seg_id: int = 0
    is_tandem: bool = False
    flt: bool = False

    @property
    def n(self) -> int:
        """Number of hits in the index."""
        return len(self.cr)


@dataclass(slots=True)
class MatchResult:
    """Seeds kept after filtering, with summary counts."""

    seeds: list[Seed] = field(default_factory=list)
    n_a: int = 0
    rep_len: int = 0
    mini_pos: list[int] = field(default_factory=list)


def filter_query_occurrences(minimizers: Sequence[Anchor], q_occ_max: int, q_occ_frac: float) -> list[Anchor]:
    """Drop minimizers that occur too often in the query itself."""
    n = len(minimizers)
    if n <= q_occ_max or q_occ_frac <= 0.0 or q_occ_max <= 0:
        return list(minimizers)
    counts = Counter(m.x for m in minimizers)
    too_many = {x for x, cnt in counts.items() if cnt > q_occ_max and cnt > n * q_occ_frac}
    return [m for m in minimizers if m.x not in too_many]


def collect_all(lookup: Lookup, minimizers: Sequence[Anchor]) -> list[Seed]:
    """Look every minimizer up and return seeds for those with hits."""
    seeds: list[Seed] = []
    keys = [m.x >> 8 for m in minimizers]
    last = len(minimizers) - 1
    for i, m in enumerate(minimizers):
        hits = lookup(keys[i])
        if not hits:
            continue
        tandem = (i > 0 and keys[i] == keys[i - 1]) or (i < last and keys[i] == keys[i + 1])
        seeds.append(Seed(
            q_pos=m.y & 0xFFFFFFFF,
            q_span=m.x & 0xFF,
            cr=hits,
            seg_id=m.y >> 32,
            is_tandem=tandem,
        ))
    return seeds


def select_seeds(seeds: list[Seed], qlen: int, max_occ: int, max_max_occ: int, dist: int) -> None:
    """Mark high-occurrence seeds as filtered, keeping the rarest in each streak.

    Within a streak of seeds with more than ``max_occ`` hits, about one seed per
    ``dist`` query bases is kept; seeds above ``max_max_occ`` are always dropped.
    """
    n = len(seeds)
    if n <= 1:
        return
    if not any(s.n > max_occ for s in seeds):
        return
    last0 = -1
    for i in range(n + 1):
        if i < n and seeds[i].n > max_occ:
            continue
        if i - last0 > 1:
            ps = 0 if last0 < 0 else seeds[last0].q_pos >> 1
            pe = qlen if i == n else seeds[i].q_pos >> 1
            st, en = last0 + 1, i
            max_high_occ = int((pe - ps) / dist + 0.499)
            if max_high_occ > 0:
                max_high_occ = min(max_high_occ, MAX_MAX_HIGH_OCC)
                # max-heap on (n, index) keeping the rarest seeds
                heap = [(-seeds[j].n, -j) for j in range(st, min(en, st + max_high_occ))]
                heapq.heapify(heap)
                for j in range(st + len(heap), en):
                    if seeds[j].n < -heap[0][0]:
                        heapq.heapreplace(heap, (-seeds[j].n, -j))
                for _, neg_j in heap:
                    seeds[-neg_j].flt = True
            for j in range(st, en):
                seeds[j].flt = not seeds[j].flt
                if seeds[j].n > max_max_occ:
                    seeds[j].flt = True
        last0 = i


def collect_matches(lookup: Lookup, minimizers: Sequence[Anchor], qlen: int, max_occ: int,
                    max_max_occ: int, dist: int) -> MatchResult:
    """Collect seeds, filter repetitive ones and measure the repetitive length."""
    seeds = collect_all(lookup, minimizers)
    if dist > 0 and max_max_occ > max_occ:
        select_seeds(seeds, qlen, max_occ, max_max_occ, dist)
    else:
        for s in seeds:
            if s.n > max_occ:
                s.flt = True
    result = MatchResult()
    rep_st = rep_en = 0
    for s in seeds:
        if s.flt:
            en = (s.q_pos >> 1) + 1
            st = en - s.q_span
            if st > rep_en:
                result.rep_len += rep_en - rep_st
                rep_st, rep_en = st, en
            else:
                rep_en = en
        else:
            result.n_a += s.n
            result.mini_pos.append(s.q_span << 32 | s.q_pos >> 1)
            result.seeds.append(s)
    result.rep_len += rep_en - rep_st
    return result