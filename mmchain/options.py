"""Indexing and mapping options, presets and consistency checks."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, fields
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)

INT_MAX = (1 << 31) - 1

_DEFAULT_MIN_CHAIN_SCORE = 40
_DEFAULT_MATCH_SCORE = 2


class MapFlag(enum.IntFlag):
    """Bit flags controlling mapping behaviour."""

    NONE = 0
    NO_DIAG = 0x001
    NO_DUAL = 0x002
    CIGAR = 0x004
    OUT_SAM = 0x008
    NO_QUAL = 0x010
    OUT_CG = 0x020
    OUT_CS = 0x040
    SPLICE = 0x080
    SPLICE_FOR = 0x100
    SPLICE_REV = 0x200
    NO_LJOIN = 0x400
    OUT_CS_LONG = 0x800
    SR = 0x1000
    FRAG_MODE = 0x2000
    NO_PRINT_2ND = 0x4000
    TWO_IO_THREADS = 0x8000
    LONG_CIGAR = 0x10000
    INDEPEND_SEG = 0x20000
    SPLICE_FLANK = 0x40000
    SOFTCLIP = 0x80000
    FOR_ONLY = 0x100000
    REV_ONLY = 0x200000
    HEAP_SORT = 0x400000
    ALL_CHAINS = 0x800000
    OUT_MD = 0x1000000
    COPY_COMMENT = 0x2000000
    EQX = 0x4000000
    PAF_NO_HIT = 0x8000000
    NO_END_FLT = 0x10000000
    HARD_MLEVEL = 0x20000000
    SAM_HIT_ONLY = 0x40000000
    RMQ = 0x80000000
    QSTRAND = 0x100000000
    NO_INV = 0x200000000
    NO_HASH_NAME = 0x400000000


class IndexFlag(enum.IntFlag):
    """Bit flags controlling index construction."""

    NONE = 0
    HPC = 0x1
    NO_SEQ = 0x2
    NO_NAME = 0x4


class OptionError(ValueError):
    """Raised for an unknown preset or an inconsistent set of options."""

    def __init__(self, message: str, code: int = -1) -> None:
        super().__init__(message)
        self.code = code


@dataclass
class IndexOptions:
    """Options for building a minimizer index."""

    k: int = 15
    w: int = 10
    flag: IndexFlag = IndexFlag.NONE
    bucket_bits: int = 14
    mini_batch_size: int = 50_000_000
    batch_size: int = 4_000_000_000


@dataclass
class MapOptions:
    """Options for seeding, chaining and alignment."""

    flag: MapFlag = MapFlag.NONE
    seed: int = 11
    sdust_thres: int = 0  # no SDUST masking

    mid_occ_frac: float = 2e-4
    min_mid_occ: int = 10
    max_mid_occ: int = 1_000_000
    mid_occ: int = 0
    max_occ: int = 0
    q_occ_frac: float = 0.01
    max_max_occ: int = 4095
    occ_dist: int = 500

    min_cnt: int = 3
    min_chain_score: int = _DEFAULT_MIN_CHAIN_SCORE
    bw: int = 500
    bw_long: int = 20000
    max_gap: int = 5000
    max_gap_ref: int = -1
    max_frag_len: int = 0
    max_chain_skip: int = 25
    max_chain_iter: int = 5000
    rmq_inner_dist: int = 1000
    rmq_size_cap: int = 100000
    rmq_rescue_size: int = 1000
    rmq_rescue_ratio: float = 0.1
    chain_gap_scale: float = 0.8
    chain_skip_scale: float = 0.0

    mask_level: float = 0.5
    mask_len: int = INT_MAX
    pri_ratio: float = 0.8
    best_n: int = 5
    alt_drop: float = 0.15

    a: int = _DEFAULT_MATCH_SCORE
    b: int = 4
    q: int = 4
    e: int = 2
    q2: int = 24
    e2: int = 1
    sc_ambi: int = 1
    noncan: int = 0
    junc_bonus: int = 0
    zdrop: int = 400
    zdrop_inv: int = 200
    end_bonus: int = -1
    min_dp_max: int = _DEFAULT_MIN_CHAIN_SCORE * _DEFAULT_MATCH_SCORE
    min_ksw_len: int = 200
    anchor_ext_len: int = 20
    anchor_ext_shift: int = 6
    max_clip_ratio: float = 1.0

    rank_min_len: int = 500
    rank_frac: float = 0.9

    pe_ori: int = 0  # FF
    pe_bonus: int = 33

    mini_batch_size: int = 500_000_000
    max_sw_mat: int = 100_000_000
    cap_kalloc: int = 1_000_000_000
    max_qlen: int = 0
    split_prefix: Optional[str] = None

    def set_max_intron_len(self, max_intron_len: int) -> None:
        """In splice mode, use ``max_intron_len`` as reference gap and bandwidths."""
        if (self.flag & MapFlag.SPLICE) and max_intron_len > 0:
            self.max_gap_ref = self.bw = self.bw_long = max_intron_len

    def update(self, estimated_mid_occ: Union[int, Callable[[float], int]]) -> None:
        """Finalise options once the index is known.

        ``estimated_mid_occ`` is the occurrence threshold computed from the
        index, or a callable mapping ``mid_occ_frac`` to it.
        """
        if self.flag & (MapFlag.SPLICE_FOR | MapFlag.SPLICE_REV):
            self.flag |= MapFlag.SPLICE
        if self.mid_occ <= 0:
            if callable(estimated_mid_occ):
                mid = int(estimated_mid_occ(self.mid_occ_frac))
            else:
                mid = int(estimated_mid_occ)
            if mid < self.min_mid_occ:
                mid = self.min_mid_occ
            if self.max_mid_occ > self.min_mid_occ and mid > self.max_mid_occ:
                mid = self.max_mid_occ
            self.mid_occ = mid
        if self.bw_long < self.bw:
            self.bw_long = self.bw
        logger.info("mid_occ = %d", self.mid_occ)


def default_options() -> tuple[IndexOptions, MapOptions]:
    """Return fresh default indexing and mapping options."""
    return IndexOptions(), MapOptions()


def _reset(target: object, fresh: object) -> None:
    for f in fields(fresh):  # type: ignore[arg-type]
        setattr(target, f.name, getattr(fresh, f.name))


def apply_preset(preset: Optional[str], idx_opt: IndexOptions, map_opt: MapOptions) -> None:
    """Apply a named preset in place; ``None`` resets both to the defaults."""
    io, mo = idx_opt, map_opt
    if preset is None:
        _reset(io, IndexOptions())
        _reset(mo, MapOptions())
    elif preset == "map-ont":
        pass  # same as the default
    elif preset == "ava-ont":
        io.flag, io.k, io.w = IndexFlag.NONE, 15, 5
        mo.flag |= MapFlag.ALL_CHAINS | MapFlag.NO_DIAG | MapFlag.NO_DUAL | MapFlag.NO_LJOIN
        mo.min_chain_score, mo.pri_ratio, mo.max_chain_skip = 100, 0.0, 25
        mo.bw = mo.bw_long = 2000
        mo.occ_dist = 0
    elif preset in ("map10k", "map-pb"):
        io.flag |= IndexFlag.HPC
        io.k = 19
    elif preset == "ava-pb":
        io.flag |= IndexFlag.HPC
        io.k, io.w = 19, 5
        mo.flag |= MapFlag.ALL_CHAINS | MapFlag.NO_DIAG | MapFlag.NO_DUAL | MapFlag.NO_LJOIN
        mo.min_chain_score, mo.pri_ratio, mo.max_chain_skip = 100, 0.0, 25
        mo.bw_long = mo.bw
        mo.occ_dist = 0
    elif preset in ("map-hifi", "map-ccs"):
        io.flag, io.k, io.w = IndexFlag.NONE, 19, 19
        mo.max_gap = 10000
        mo.a, mo.b, mo.q, mo.q2, mo.e, mo.e2 = 1, 4, 6, 26, 2, 1
        mo.occ_dist = 500
        mo.min_mid_occ, mo.max_mid_occ = 50, 500
        mo.min_dp_max = 200
    elif preset.startswith("asm"):
        io.flag, io.k, io.w = IndexFlag.NONE, 19, 19
        mo.bw, mo.bw_long = 1000, 100000
        mo.max_gap = 10000
        mo.flag |= MapFlag.RMQ
        mo.min_mid_occ, mo.max_mid_occ = 50, 500
        mo.min_dp_max = 200
        mo.best_n = 50
        if preset == "asm5":
            mo.a, mo.b, mo.q, mo.q2, mo.e, mo.e2 = 1, 19, 39, 81, 3, 1
            mo.zdrop = mo.zdrop_inv = 200
        elif preset == "asm10":
            mo.a, mo.b, mo.q, mo.q2, mo.e, mo.e2 = 1, 9, 16, 41, 2, 1
            mo.zdrop = mo.zdrop_inv = 200
        elif preset == "asm20":
            mo.a, mo.b, mo.q, mo.q2, mo.e, mo.e2 = 1, 4, 6, 26, 2, 1
            mo.zdrop = mo.zdrop_inv = 200
            io.w = 10
        else:
            raise OptionError(f"unknown preset '{preset}'")
    elif preset in ("short", "sr"):
        io.flag, io.k, io.w = IndexFlag.NONE, 21, 11
        mo.flag |= (MapFlag.SR | MapFlag.FRAG_MODE | MapFlag.NO_PRINT_2ND
                    | MapFlag.TWO_IO_THREADS | MapFlag.HEAP_SORT)
        mo.pe_ori = 0 << 1 | 1  # FR
        mo.a, mo.b, mo.q, mo.e, mo.q2, mo.e2 = 2, 8, 12, 2, 24, 1
        mo.zdrop = mo.zdrop_inv = 100
        mo.end_bonus = 10
        mo.max_frag_len = 800
        mo.max_gap = 100
        mo.bw = mo.bw_long = 100
        mo.pri_ratio = 0.5
        mo.min_cnt = 2
        mo.min_chain_score = 25
        mo.min_dp_max = 40
        mo.best_n = 20
        mo.mid_occ = 1000
        mo.max_occ = 5000
        mo.mini_batch_size = 50_000_000
    elif preset.startswith("splice") or preset == "cdna":
        io.flag, io.k, io.w = IndexFlag.NONE, 15, 5
        mo.flag |= MapFlag.SPLICE | MapFlag.SPLICE_FOR | MapFlag.SPLICE_REV | MapFlag.SPLICE_FLANK
        mo.max_sw_mat = 0
        mo.max_gap = 2000
        mo.max_gap_ref = mo.bw = mo.bw_long = 200000
        mo.a, mo.b, mo.q, mo.e, mo.q2, mo.e2 = 1, 2, 2, 1, 32, 0
        mo.noncan = 9
        mo.junc_bonus = 9
        mo.zdrop, mo.zdrop_inv = 200, 100  # because the match score is halved
        if preset == "splice:hq":
            mo.junc_bonus, mo.b, mo.q, mo.q2 = 5, 4, 6, 24
    else:
        raise OptionError(f"unknown preset '{preset}'")


def check_options(idx_opt: IndexOptions, map_opt: MapOptions) -> None:
    """Raise :class:`OptionError` if the options are inconsistent."""
    io, mo = idx_opt, map_opt
    if mo.bw > mo.bw_long:
        raise OptionError(
            f"with '-rNUM1,NUM2', NUM1 ({mo.bw}) can't be larger than NUM2 ({mo.bw_long})", -8)
    if (mo.flag & MapFlag.RMQ) and (mo.flag & (MapFlag.SR | MapFlag.SPLICE)):
        raise OptionError("--rmq doesn't work with --sr or --splice", -7)
    if mo.split_prefix and (mo.flag & (MapFlag.OUT_CS | MapFlag.OUT_MD)):
        raise OptionError("--cs or --MD doesn't work with --split-prefix", -6)
    if io.k <= 0 or io.w <= 0:
        raise OptionError("-k and -w must be positive", -5)
    if mo.best_n < 0:
        raise OptionError("-N must be no less than 0", -4)
    if mo.best_n == 0:
        logger.warning("'-N 0' reduces mapping accuracy. Please use '--secondary=no' instead.")
    if mo.pri_ratio < 0.0 or mo.pri_ratio > 1.0:
        raise OptionError("-p must be within 0 and 1 (including 0 and 1)", -4)
    if (mo.flag & MapFlag.FOR_ONLY) and (mo.flag & MapFlag.REV_ONLY):
        raise OptionError("--for-only and --rev-only can't be applied at the same time", -3)
    if mo.e <= 0 or mo.q <= 0:
        raise OptionError("-O and -E must be positive", -1)
    if (mo.q != mo.q2 or mo.e != mo.e2) and not (mo.e > mo.e2 and mo.q + mo.e < mo.q2 + mo.e2):
        raise OptionError("dual gap penalties violating E1>E2 and O1+E1<O2+E2", -2)
    if (mo.q + mo.e) + (mo.q2 + mo.e2) > 127:
        raise OptionError("scoring system violating ({-O}+{-E})+({-O2}+{-E2}) <= 127", -1)
    if mo.zdrop < mo.zdrop_inv:
        raise OptionError("Z-drop should not be less than inversion-Z-drop", -5)
    if (mo.flag & MapFlag.NO_PRINT_2ND) and (mo.flag & MapFlag.ALL_CHAINS):
        raise OptionError("-X/-P and --secondary=no can't be applied at the same time", -5)
    if (mo.flag & MapFlag.QSTRAND) and (
            (mo.flag & (MapFlag.OUT_SAM | MapFlag.SPLICE | MapFlag.FRAG_MODE)) or (io.flag & IndexFlag.HPC)):
        raise OptionError("--qstrand doesn't work with -a, -H, --frag or --splice", -5)