# mmchain

Building blocks of a minimizer-based DNA sequence mapper, in pure Python with
no dependencies outside the standard library:

- **Minimizer sketching** (`mmchain.sketch`): `sketch(seq, w, k, rid, is_hpc)`
  returns the symmetric (w,k)-minimizers of a sequence as `Anchor` objects,
  optionally over homopolymer-compressed k-mers. `hash64(key, mask)` is the
  invertible k-mer hash it uses.
- **Low-complexity masking** (`mmchain.sdust`): `sdust(seq, threshold, window)`
  runs the symmetric DUST algorithm and returns the masked intervals as sorted
  `(start, end)` pairs. `read_fasta(stream)` yields `(name, sequence)` records
  from FASTA or FASTQ text.
- **Seed collection** (`mmchain.seed`): turns query minimizers into seeds using
  a lookup function you supply (minimizer hash to a sequence of index hits).
  `filter_query_occurrences` drops minimizers repeated too often within the
  query, `select_seeds` keeps the rarest high-occurrence seeds spread along the
  query, and `collect_matches` returns a `MatchResult` with the kept `Seed`s,
  the total hit count, the repetitive query length and the minimizer positions.
- **Anchor chaining** (`mmchain.chain`): colinear chaining by dynamic
  programming (`chain_dp`) or with range-minimum queries (`chain_rmq`), plus
  the pairwise scores `compute_score` and `compute_score_simple` and the chain
  extraction step `chain_backtrack`.
- **Options** (`mmchain.options`): `IndexOptions` and `MapOptions` dataclasses
  with their defaults, the `MapFlag` and `IndexFlag` bit flags, named presets
  and a consistency check.
- **Supporting pieces**: an AVL tree answering range-minimum queries over item
  priorities (`mmchain.rmq.RMQTree`), thread helpers (`mmchain.kthread`), and
  timing and sorting utilities (`mmchain.misc`: `Anchor`, `sort_anchors`,
  `cputime`, `realtime`, `peakrss`).

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Command line

The package installs `mmchain-sdust`. It masks low-complexity regions in a
FASTA or FASTQ file (plain or gzip-compressed) and prints one tab-separated
line per masked interval: sequence name, start and end.

```
mmchain-sdust [-w WINDOW] [-t THRESHOLD] input.fa
```

`-w` sets the window size (default 64) and `-t` the score threshold
(default 20). Give `-` as the file name to read standard input.

## Library use

### Sketching and masking

```python
from mmchain.sketch import sketch
from mmchain.sdust import sdust

seq = "ACGTACGTTTGACCATGACGATCGATCGGATCAGCTAGCATCGACT"
minimizers = sketch(seq, w=5, k=11, rid=0, is_hpc=False)
masked = sdust(seq, threshold=20, window=64)
```

Each minimizer has `x = hash << 8 | span` and
`y = rid << 32 | last_pos << 1 | strand`.

### Options and presets

```python
from mmchain.options import default_options, apply_preset, check_options, OptionError

idx_opt, map_opt = default_options()
apply_preset("map-hifi", idx_opt, map_opt)
try:
    check_options(idx_opt, map_opt)
except OptionError as err:
    print(f"bad options ({err.code}): {err}")
```

The presets are `map-ont`, `map-pb`, `map10k`, `map-hifi`, `map-ccs`, `ava-ont`,
`ava-pb`, `asm5`, `asm10`, `asm20`, `sr`, `short`, `splice`, `splice:hq` and
`cdna`; `None` resets both option objects to the defaults. Any other name
raises `OptionError`. `MapOptions.update(estimated_mid_occ)` finalises the
occurrence threshold once it is known, and `MapOptions.set_max_intron_len`
adjusts gap and bandwidth limits in splice mode.

### Chaining

`chain_dp` and `chain_rmq` take anchors sorted by `x` (see
`mmchain.misc.sort_anchors`) with
`x = rev << 63 | target_id << 32 | target_pos` and
`y = flags << 40 | q_span << 32 | query_pos`. They return a list of
`ChainResult` objects, each with a `score` and its `anchors` in ascending
order; the list is ordered by the target position of each chain's first
anchor.

### Range-minimum tree

```python
from mmchain.rmq import RMQTree

tree = RMQTree(key=lambda item: item[0], priority=lambda item: item[1])
for item in [(5, 3.0), (1, 7.0), (9, -2.0), (4, 0.5)]:
    tree.insert(item)
lowest = tree.rmq(2, 9)   # (9, -2.0): smallest priority among keys 2..9
```

The tree also offers `find`, `interval`, `erase`, `erase_first`, `iter_from`,
`len()` and in-order iteration.

### Threads

`kt_for(n_threads, func, n)` calls `func(i, tid)` for every `i` in `range(n)`
with work stealing between threads. `kt_pipeline(n_threads, func, shared,
n_steps)` runs `func(shared, step, data)` step by step over batches, keeping
each step in batch order; step 0 returns `None` when the input is exhausted.

## What the package does not do

There is no index: building, storing or loading a minimizer index is left to
the caller, who passes seed collection a lookup function. There is no base-level
alignment, no SAM or PAF output and no mapping command; the only command is
`mmchain-sdust`.