"""Timing, memory and anchor-sorting utilities."""

from __future__ import annotations

import os
import sys
import time
from dataclasses import dataclass
from typing import Iterable

try:
    import resource
except ImportError:  # not available on Windows
    resource = None  # type: ignore[assignment]


@dataclass(slots=True)
class Anchor:
    """A pair of 64-bit words describing a seed or minimizer."""

    x: int
    y: int


def cputime() -> float:
    """Return user plus system CPU time of this process, in seconds."""
    t = os.times()
    return t.user + t.system


def realtime() -> float:
    """Return wall-clock time in seconds since the epoch."""
    return time.time()


def peakrss() -> int:
    """Return the peak resident set size in bytes (0 where unavailable)."""
    if resource is None:
        return 0
    maxrss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    if sys.platform.startswith("linux"):
        return maxrss * 1024
    return maxrss


def sort_anchors(anchors: Iterable[Anchor]) -> list[Anchor]:
    """Return anchors stably sorted by ``x``."""
    return sorted(anchors, key=lambda a: a.x)