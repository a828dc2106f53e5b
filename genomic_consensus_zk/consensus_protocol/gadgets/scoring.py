"""
Pairwise MSA scoring gadgets.

Column score: +1 for an aligned match of two bases, 0 for gap against gap,
-1 otherwise (mismatch or base against gap). The MSA score is the sum over
all unordered pairs of reads and all columns.
"""

from __future__ import annotations

from itertools import combinations
from typing import Sequence, Tuple

from ..config import FIELD_MODULUS
from ..r1cs.constraint_system import ConstraintSystem, LinearCombination, Signal, as_lc
from .field_ops import is_equal


def scoring_system(
    cs: ConstraintSystem,
    a: Signal,
    b: Signal,
    gap_a: Signal,
    gap_b: Signal,
    label: str = "score",
) -> Tuple[LinearCombination, LinearCombination, LinearCombination]:
    """
    (realMatch, bothGaps, isMismatch) for one column; exactly one is 1.

    gap_a / gap_b are the already-constrained gap indicators of a and b.
    """
    with cs.scope(label):
        eq = is_equal(cs, a, b, "eq")
        both_gaps = cs.mul(gap_a, gap_b, "both_gaps")
        real_match = cs.mul(eq, 1 - as_lc(gap_a), "real_match")
        mismatch = cs.hint(
            lambda r, g: (1 - r - g) % FIELD_MODULUS, real_match, both_gaps, label="mismatch"
        )
        cs.assert_bool(mismatch, "mismatch_bool")
        cs.assert_equal(real_match + both_gaps + mismatch, 1, "exclusive")
    return real_match, both_gaps, mismatch


def column_score(
    cs: ConstraintSystem,
    a: Signal,
    b: Signal,
    gap_a: Signal,
    gap_b: Signal,
    label: str = "score",
) -> LinearCombination:
    real_match, _, mismatch = scoring_system(cs, a, b, gap_a, gap_b, label)
    return real_match - mismatch


def pair_score(
    cs: ConstraintSystem,
    aln_a: Sequence[Signal],
    aln_b: Sequence[Signal],
    gaps_a: Sequence[Signal],
    gaps_b: Sequence[Signal],
    label: str = "pair",
) -> LinearCombination:
    """Score of two alignments over every column, as one signal."""
    with cs.scope(label):
        total = LinearCombination()
        for c in range(len(aln_a)):
            total = total + column_score(
                cs, aln_a[c], aln_b[c], gaps_a[c], gaps_b[c], f"col[{c}]"
            )
        return cs.materialize(total, "total")


def pairwise_scoring_validator(
    cs: ConstraintSystem,
    alignments: Sequence[Sequence[Signal]],
    gaps: Sequence[Sequence[Signal]],
    expected_score: Signal,
    label: str = "scoring",
) -> LinearCombination:
    """
    Assert the sum of pair scores over all i < j equals ``expected_score``.

    The accumulation is an explicit chain of running-total signals, one per
    pair, in (i, j) lexicographic order. Returns the final total.
    """
    with cs.scope(label):
        total: Signal = 0
        for k, (i, j) in enumerate(combinations(range(len(alignments)), 2)):
            score = pair_score(
                cs, alignments[i], alignments[j], gaps[i], gaps[j], f"pair[{i}][{j}]"
            )
            total = cs.materialize(score + total, f"running[{k}]")
        cs.assert_equal(total, expected_score, "expected_score")
    return as_lc(total)
