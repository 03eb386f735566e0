"""Symmetric DUST: find low-complexity regions in DNA sequences."""

from __future__ import annotations

import getopt
import gzip
import sys
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from typing import IO, Iterable, Iterator, Sequence, Union

_WLEN = 3
_WTOT = 1 << (_WLEN << 1)
_WMSK = _WTOT - 1

_NT4 = bytes(
    {ord("A"): 0, ord("C"): 1, ord("G"): 2, ord("T"): 3,
     ord("a"): 0, ord("c"): 1, ord("g"): 2, ord("t"): 3}.get(i, 4)
    for i in range(256)
)


def _codes(seq: Union[str, bytes, bytearray]) -> list[int]:
    if isinstance(seq, str):
        return [_NT4[o] if o < 256 else 4 for o in map(ord, seq)]
    return [_NT4[b] for b in seq]


@dataclass(slots=True)
class _Perfect:
    start: int
    finish: int
    r: int
    l: int


class _Dust:
    """Running state of one SDUST scan."""

    def __init__(self, threshold: int, window: int) -> None:
        self.T = threshold
        self.W = window
        self.w: deque[int] = deque()
        # perfect intervals, sorted by descending start then ascending finish
        self.P: list[_Perfect] = []
        self.res: list[tuple[int, int]] = []
        self.L = 0
        self.rw = 0
        self.rv = 0
        self.cw = [0] * _WTOT
        self.cv = [0] * _WTOT

    def shift_window(self, t: int) -> None:
        w, cw, cv = self.w, self.cw, self.cv
        if len(w) >= self.W - _WLEN + 1:
            s = w.popleft()
            cw[s] -= 1
            self.rw -= cw[s]
            if self.L > len(w):
                self.L -= 1
                cv[s] -= 1
                self.rv -= cv[s]
        w.append(t)
        self.L += 1
        self.rw += cw[t]
        cw[t] += 1
        self.rv += cv[t]
        cv[t] += 1
        if cv[t] * 10 > self.T << 1:
            while True:
                s = w[len(w) - self.L]
                cv[s] -= 1
                self.rv -= cv[s]
                self.L -= 1
                if s == t:
                    break

    def save_masked_regions(self, start: int) -> None:
        P, res = self.P, self.res
        if not P or P[-1].start >= start:
            return
        p = P[-1]
        saved = False
        if res:
            s, f = res[-1]
            if p.start <= f:  # overlapping with or adjacent to the previous interval
                saved = True
                res[-1] = (s, max(f, p.finish))
        if not saved:
            res.append((p.start, p.finish))
        while P and P[-1].start < start:  # drop intervals that fell out of the window
            P.pop()

    def find_perfect(self, start: int) -> None:
        w, P, T = self.w, self.P, self.T
        c = list(self.cv)
        r = self.rv
        max_r = max_l = 0
        size = len(w)
        for i in range(size - self.L - 1, -1, -1):
            t = w[i]
            r += c[t]
            c[t] += 1
            new_r, new_l = r, size - i - 1
            if new_r * 10 > T * new_l:
                j = 0
                while j < len(P) and P[j].start >= i + start:
                    p = P[j]
                    if max_r == 0 or p.r * max_l > max_r * p.l:
                        max_r, max_l = p.r, p.l
                    j += 1
                if max_r == 0 or new_r * max_l >= max_r * new_l:
                    max_r, max_l = new_r, new_l
                    P.insert(j, _Perfect(i + start, size + (_WLEN - 1) + start, new_r, new_l))


def sdust(seq: Union[str, bytes, bytearray], threshold: int = 20, window: int = 64) -> list[tuple[int, int]]:
    """Return low-complexity intervals of ``seq`` as sorted ``(start, end)`` pairs.

    ``threshold`` is the DUST score threshold and ``window`` the window length.
    """
    if window < _WLEN:
        raise ValueError(f"window must be at least {_WLEN}")
    codes = _codes(seq)
    n = len(codes)
    st = _Dust(threshold, window)
    l = 0
    t = 0
    for i in range(n + 1):
        b = codes[i] if i < n else 4
        if b < 4:
            l += 1
            t = (t << 2 | b) & _WMSK
            if l >= _WLEN:
                start = max(l - window, 0) + (i + 1 - l)
                st.save_masked_regions(start)
                st.shift_window(t)
                if st.rw * 10 > st.L * threshold:
                    st.find_perfect(start)
        else:
            # N or end of sequence: flush pending perfect intervals
            start = max(l - window + 1, 0) + (i + 1 - l)
            while st.P:
                st.save_masked_regions(start)
                start += 1
            l = t = 0
    return st.res


def _header_name(line: str) -> str:
    fields = line[1:].split(None, 1)
    return fields[0] if fields else ""


def read_fasta(stream: Iterable[str]) -> Iterator[tuple[str, str]]:
    """Yield ``(name, sequence)`` records from FASTA or FASTQ text lines."""
    it = iter(stream)
    name: str | None = None
    parts: list[str] = []
    is_fastq = False
    for raw in it:
        line = raw.rstrip("\r\n")
        if name is None:
            if line[:1] in (">", "@") and line:
                name = _header_name(line)
                is_fastq = line[0] == "@"
                parts = []
            continue
        if line[:1] in (">", "@") and line:
            yield name, "".join(parts)
            name = _header_name(line)
            is_fastq = line[0] == "@"
            parts = []
        elif is_fastq and line.startswith("+"):
            seq = "".join(parts)
            qual_len = 0
            if seq:
                for qline in it:
                    qual_len += len(qline.rstrip("\r\n"))
                    if qual_len >= len(seq):
                        break
            yield name, seq
            name = None
        else:
            parts.append(line.strip())
    if name is not None:
        yield name, "".join(parts)


@contextmanager
def _open_input(path: str) -> Iterator[IO[str]]:
    if path == "-":
        yield sys.stdin
        return
    with open(path, "rb") as probe:
        magic = probe.read(2)
    if magic == b"\x1f\x8b":
        with gzip.open(path, "rt") as fh:
            yield fh
    else:
        with open(path, "r") as fh:
            yield fh


def main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry: print masked intervals of each input sequence."""
    args = list(sys.argv[1:] if argv is None else argv)
    window, threshold = 64, 20
    try:
        opts, rest = getopt.gnu_getopt(args, "w:t:")
        for opt, val in opts:
            if opt == "-w":
                window = int(val)
            elif opt == "-t":
                threshold = int(val)
    except (getopt.GetoptError, ValueError) as err:
        print(f"[ERROR] {err}", file=sys.stderr)
        return 1
    if not rest:
        print(f"Usage: sdust [-w {window}] [-t {threshold}] <in.fa>", file=sys.stderr)
        return 1
    try:
        with _open_input(rest[0]) as fh:
            for name, seq in read_fasta(fh):
                for start, end in sdust(seq, threshold, window):
                    print(f"{name}\t{start}\t{end}")
    except (OSError, ValueError) as err:
        print(f"[ERROR] {err}", file=sys.stderr)
        return 1
    return 0