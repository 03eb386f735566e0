"""Symmetric (w,k)-minimizer sketching of DNA sequences."""

from __future__ import annotations

from collections import deque
from itertools import chain
from typing import Union

from mmchain.misc import Anchor

_U64_MAX = (1 << 64) - 1
_U32 = 0xFFFFFFFF

_NT4 = bytes(
    {ord("A"): 0, ord("C"): 1, ord("G"): 2, ord("T"): 3, ord("U"): 3,
     ord("a"): 0, ord("c"): 1, ord("g"): 2, ord("t"): 3, ord("u"): 3}.get(i, 4)
    for i in range(256)
)


def _codes(seq: Union[str, bytes, bytearray]) -> list[int]:
    if isinstance(seq, str):
        return [_NT4[o] if o < 256 else 4 for o in map(ord, seq)]
    return [_NT4[b] for b in seq]


def hash64(key: int, mask: int) -> int:
    """Invertible integer hash of ``key`` restricted to the bits of ``mask``."""
    key = (~key + (key << 21)) & mask
    key ^= key >> 24
    key = ((key + (key << 3)) + (key << 8)) & mask
    key ^= key >> 14
    key = ((key + (key << 2)) + (key << 4)) & mask
    key ^= key >> 28
    key = (key + (key << 31)) & mask
    return key


def sketch(seq: Union[str, bytes, bytearray], w: int, k: int, rid: int = 0, is_hpc: bool = False) -> list[Anchor]:
    """Return the symmetric (w,k)-minimizers of ``seq``.

    Each result has ``x = hash << 8 | span`` and
    ``y = rid << 32 | last_pos << 1 | strand``.
    """
    n = len(seq)
    if n <= 0:
        raise ValueError("sequence must not be empty")
    if not 0 < w < 256:
        raise ValueError("w must be in [1, 255]")
    if not 0 < k <= 28:
        raise ValueError("k must be in [1, 28]")
    codes = _codes(seq)
    shift1 = 2 * (k - 1)
    mask = (1 << 2 * k) - 1
    fwd = rev = 0
    empty = (_U64_MAX, _U64_MAX)
    buf: list[tuple[int, int]] = [empty] * w
    mn = empty
    out: list[tuple[int, int]] = []
    runs: deque[int] = deque()
    l = buf_pos = min_pos = kmer_span = 0

    i = 0
    while i < n:
        c = codes[i]
        info = empty
        if c < 4:
            if is_hpc:
                skip = 1
                if i + 1 < n and codes[i + 1] == c:
                    skip = 2
                    while i + skip < n and codes[i + skip] == c:
                        skip += 1
                    i += skip - 1  # end of the homopolymer run
                runs.append(skip)
                kmer_span += skip
                if len(runs) > k:
                    kmer_span -= runs.popleft()
            else:
                kmer_span = l + 1 if l + 1 < k else k
            fwd = (fwd << 2 | c) & mask
            rev = (rev >> 2) | (3 ^ c) << shift1
            if fwd == rev:  # symmetric k-mer: strand unknown
                i += 1
                continue
            z = 0 if fwd < rev else 1
            l += 1
            if l >= k and kmer_span < 256:
                kmer = fwd if z == 0 else rev
                info = (hash64(kmer, mask) << 8 | kmer_span,
                        rid << 32 | ((i & _U32) << 1) & _U32 | z)
        else:
            l = 0
            runs.clear()
            kmer_span = 0
        buf[buf_pos] = info
        if l == w + k - 1 and mn[0] != _U64_MAX:  # first full window
            for j in chain(range(buf_pos + 1, w), range(buf_pos)):
                if mn[0] == buf[j][0] and buf[j][1] != mn[1]:
                    out.append(buf[j])
        if info[0] <= mn[0]:
            if l >= w + k and mn[0] != _U64_MAX:
                out.append(mn)
            mn, min_pos = info, buf_pos
        elif buf_pos == min_pos:  # old minimum left the window
            if l >= w + k - 1 and mn[0] != _U64_MAX:
                out.append(mn)
            mn = (_U64_MAX, mn[1])
            for j in chain(range(buf_pos + 1, w), range(buf_pos + 1)):
                if mn[0] >= buf[j][0]:
                    mn, min_pos = buf[j], j
            if l >= w + k - 1 and mn[0] != _U64_MAX:
                for j in chain(range(buf_pos + 1, w), range(buf_pos + 1)):
                    if mn[0] == buf[j][0] and mn[1] != buf[j][1]:
                        out.append(buf[j])
        buf_pos += 1
        if buf_pos == w:
            buf_pos = 0
        i += 1
    if mn[0] != _U64_MAX:
        out.append(mn)
    return [Anchor(x, y) for x, y in out]