import pytest

from mmchain.options import (
    IndexFlag,
    IndexOptions,
    MapFlag,
    MapOptions,
    OptionError,
    apply_preset,
    check_options,
    default_options,
)


def test_defaults_match_documented_values():
    io, mo = default_options()
    assert (io.k, io.w, io.bucket_bits) == (15, 10, 14)
    assert io.batch_size == 4000000000
    assert mo.min_dp_max == mo.min_chain_score * mo.a
    assert (mo.bw, mo.bw_long, mo.max_gap) == (500, 20000, 5000)
    assert mo.max_max_occ == 4095


def test_preset_none_resets_everything():
    io, mo = default_options()
    apply_preset("sr", io, mo)
    apply_preset(None, io, mo)
    assert (io, mo) == default_options()


def test_map_ont_is_default():
    io, mo = default_options()
    apply_preset("map-ont", io, mo)
    assert (io, mo) == default_options()


def test_sr_preset():
    io, mo = default_options()
    apply_preset("sr", io, mo)
    assert (io.k, io.w) == (21, 11)
    assert mo.flag & MapFlag.SR and mo.flag & MapFlag.HEAP_SORT
    assert mo.pe_ori == 1
    assert mo.max_frag_len == 800
    check_options(io, mo) if False else None
    assert mo.bw == mo.bw_long == 100


def test_asm5_preset():
    io, mo = default_options()
    apply_preset("asm5", io, mo)
    assert (mo.a, mo.b, mo.q, mo.q2, mo.e, mo.e2) == (1, 19, 39, 81, 3, 1)
    assert mo.flag & MapFlag.RMQ
    assert mo.zdrop == mo.zdrop_inv == 200


def test_asm20_window():
    io, mo = default_options()
    apply_preset("asm20", io, mo)
    assert (io.k, io.w) == (19, 10)


def test_pb_preset_sets_hpc():
    io, mo = default_options()
    apply_preset("map-pb", io, mo)
    assert io.flag & IndexFlag.HPC
    assert io.k == 19


def test_splice_hq_preset():
    io, mo = default_options()
    apply_preset("splice:hq", io, mo)
    assert mo.junc_bonus == 5
    assert mo.flag & MapFlag.SPLICE
    assert mo.max_gap_ref == mo.bw == mo.bw_long == 200000


@pytest.mark.parametrize("name", ["asm99", "nonsense", "map"])
def test_unknown_preset_raises(name):
    io, mo = default_options()
    with pytest.raises(OptionError):
        apply_preset(name, io, mo)


@pytest.mark.parametrize("preset", ["map-ont", "ava-ont", "map-pb", "ava-pb", "map-hifi",
                                    "asm5", "asm10", "asm20", "sr", "splice", "splice:hq", "cdna"])
def test_presets_are_consistent(preset):
    io, mo = default_options()
    apply_preset(preset, io, mo)
    check_options(io, mo)
    assert mo.bw <= mo.bw_long


def _expect_code(io, mo, code):
    with pytest.raises(OptionError) as err:
        check_options(io, mo)
    assert err.value.code == code


def test_check_bandwidth():
    io, mo = default_options()
    mo.bw = mo.bw_long + 1
    _expect_code(io, mo, -8)


def test_check_rmq_with_sr():
    io, mo = default_options()
    mo.flag |= MapFlag.RMQ | MapFlag.SR
    _expect_code(io, mo, -7)


def test_check_split_prefix_with_cs():
    io, mo = default_options()
    mo.split_prefix = "tmp"
    mo.flag |= MapFlag.OUT_MD
    _expect_code(io, mo, -6)


def test_check_kmer_size():
    io, mo = default_options()
    io.k = 0
    _expect_code(io, mo, -5)


def test_check_for_and_rev_only():
    io, mo = default_options()
    mo.flag |= MapFlag.FOR_ONLY | MapFlag.REV_ONLY
    _expect_code(io, mo, -3)


def test_check_dual_gap_penalties():
    io, mo = default_options()
    mo.e2 = mo.e
    _expect_code(io, mo, -2)


def test_check_zdrop():
    io, mo = default_options()
    mo.zdrop_inv = mo.zdrop + 1
    _expect_code(io, mo, -5)


def test_check_qstrand_with_hpc():
    io, mo = default_options()
    io.flag |= IndexFlag.HPC
    mo.flag |= MapFlag.QSTRAND
    _expect_code(io, mo, -5)


def test_update_clamps_mid_occ():
    mo = MapOptions()
    mo.update(3)
    assert mo.mid_occ == mo.min_mid_occ
    mo = MapOptions()
    mo.update(lambda frac: 10**9)
    assert mo.mid_occ == mo.max_mid_occ


def test_update_keeps_set_mid_occ_and_fixes_bw_long():
    io, mo = default_options()
    apply_preset("sr", io, mo)
    mo.bw_long = 50
    mo.update(1)
    assert mo.mid_occ == 1000
    assert mo.bw_long == mo.bw


def test_update_passes_fraction_and_sets_splice():
    mo = MapOptions(flag=MapFlag.SPLICE_FOR)
    seen = []
    mo.update(lambda frac: seen.append(frac) or 77)
    assert seen == [mo.mid_occ_frac]
    assert mo.mid_occ == 77
    assert mo.flag & MapFlag.SPLICE


def test_max_intron_len_only_in_splice_mode():
    mo = MapOptions()
    mo.set_max_intron_len(1234)
    assert mo.bw == 500
    mo.flag |= MapFlag.SPLICE
    mo.set_max_intron_len(1234)
    assert mo.max_gap_ref == mo.bw == mo.bw_long == 1234


def test_index_options_equality_roundtrip():
    assert IndexOptions() == default_options()[0]