"""
⚠️ DRAFT — requires crypto review before production use

Majority-vote consensus gadgets.

Per alignment column, every nucleotide is counted across reads and compared
against a build-time threshold (strictly greater wins). Three encodings are
provided:

- ``check``: the consensus is a private input and is asserted to follow the
  majority rule (canonical).
- ``compute``: the consensus is derived as sum(code * ok), valid because at
  most one base may clear the threshold, which is asserted.
- ``argmax``: running best over gap, A, C, G, T with strict comparison, so
  ties keep the lower code; no exclusivity requirement.
"""

from __future__ import annotations

from typing import List, Sequence

from ..config import BASE_CODES, NUCLEOTIDE_CODES
from ..r1cs.constraint_system import ConstraintSystem, LinearCombination, Signal, as_lc
from .field_ops import greater_than, select


def comparator_bits(n_reads: int, threshold: int) -> int:
    """Width that holds every possible count and the threshold."""
    return max(n_reads, threshold, 1).bit_length()


def base_counts(
    cs: ConstraintSystem,
    decoded_column: Sequence[Sequence[Signal]],
    label: str = "counts",
) -> List[LinearCombination]:
    """
    Count of each nucleotide in one column.

    ``decoded_column[r]`` is the one-hot decoding (BASE_CODES order) of read
    r's symbol in this column.
    """
    counts = []
    with cs.scope(label):
        for code in NUCLEOTIDE_CODES:
            flag_index = BASE_CODES.index(code)
            total = sum((as_lc(flags[flag_index]) for flags in decoded_column), LinearCombination())
            counts.append(cs.materialize(total, f"count[{code}]"))
    return counts


def majority_check(
    cs: ConstraintSystem, count: Signal, threshold: int, n_bits: int, label: str = "majority"
) -> LinearCombination:
    """ok = count > threshold (strict)."""
    return greater_than(cs, n_bits, count, threshold, label)


def assert_at_most_one(cs: ConstraintSystem, oks: Sequence[Signal], label: str = "at_most_one") -> LinearCombination:
    """Assert that at most one of the bits in ``oks`` is set; returns their sum."""
    total = sum((as_lc(ok) for ok in oks), LinearCombination())
    cs.assert_bool(total, label)
    return total


def check_consensus_column(
    cs: ConstraintSystem,
    consensus_flags: Sequence[Signal],
    oks: Sequence[Signal],
    label: str = "check",
) -> None:
    """
    Assert a claimed (one-hot decoded) consensus symbol follows the majority rule.

    isGap + sum_b [consensus = b] * ok_b = 1, and isGap * sum_b ok_b = 0 so a
    gap cannot be claimed where a base has majority support.
    """
    with cs.scope(label):
        any_ok = assert_at_most_one(cs, oks)
        is_gap = as_lc(consensus_flags[BASE_CODES.index(0)])
        supported = LinearCombination()
        for code, ok in zip(NUCLEOTIDE_CODES, oks):
            claimed = consensus_flags[BASE_CODES.index(code)]
            supported = supported + cs.mul(claimed, ok, f"supported[{code}]")
        cs.assert_equal(is_gap + supported, 1, "majority_rule")
        cs.enforce(is_gap, any_ok, 0, "no_gap_over_majority")


def compute_consensus_column(
    cs: ConstraintSystem, oks: Sequence[Signal], label: str = "compute"
) -> LinearCombination:
    """sum_b code_b * ok_b (gap when no base qualifies)."""
    with cs.scope(label):
        assert_at_most_one(cs, oks)
        out = LinearCombination()
        for code, ok in zip(NUCLEOTIDE_CODES, oks):
            out = out + as_lc(ok) * code
    return out


def argmax_consensus_column(
    cs: ConstraintSystem,
    counts: Sequence[Signal],
    threshold: int,
    n_bits: int,
    label: str = "argmax",
) -> LinearCombination:
    """
    Best base by running strict-greater comparison, gated by the threshold.

    The running best starts at (count 0, gap); a later base replaces it only
    on a strictly greater count, so ties resolve to the lower code.
    """
    with cs.scope(label):
        best_count: Signal = LinearCombination()
        best_base: Signal = LinearCombination()
        for code, count in zip(NUCLEOTIDE_CODES, counts):
            beats = greater_than(cs, n_bits, count, best_count, f"beats[{code}]")
            best_count = select(cs, beats, count, best_count, f"best_count[{code}]")
            best_base = select(cs, beats, code, best_base, f"best_base[{code}]")
        ok = majority_check(cs, best_count, threshold, n_bits, "majority")
        return cs.mul(ok, best_base, "winner")
