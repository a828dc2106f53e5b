"""
⚠️ DRAFT — requires crypto review before production use

Alignment consistency gadgets.

Proves that a private gapped alignment is a rendering of the (strand
corrected) public read: stripping gaps from both yields the same sequence.

Two validators exist:

- ``dp_alignment_validator`` (canonical): order- and content-preserving
  dynamic programming check, O(maxSeqLen * maxAlnLen) constraints per read.
- ``length_only_validator`` (deprecated): compares the number of non-gap
  symbols with the read length only. It accepts alignments whose bases
  differ from the read and is kept solely so that weakness stays documented
  and regression tested.
"""

from __future__ import annotations

import logging
import math
import warnings
from typing import List, Sequence

from ..config import FIELD_MODULUS
from ..exceptions import CircuitStructureError
from ..r1cs.constraint_system import ConstraintSystem, LinearCombination, Signal, as_lc
from .field_ops import is_equal, is_zero

logger = logging.getLogger(__name__)


def max_dp_dimension() -> int:
    """
    Largest maxSeqLen + maxAlnLen for which DP path counts cannot wrap.

    A cell counts monotone lattice paths with three move types, bounded by
    3^(n+m); the count must stay below the modulus so a reachable cell can
    never be congruent to 0.
    """
    return int((FIELD_MODULUS.bit_length() - 1) / math.log2(3))


def read_well_formed(
    cs: ConstraintSystem,
    read_gaps: Sequence[Signal],
    length: Signal,
    label: str = "well_formed",
) -> None:
    """
    Bind ``length`` to a right-padded read.

    Once a position is a gap every later position is a gap, and the number
    of non-gap positions equals ``length`` (which also bounds it by the
    array size).
    """
    with cs.scope(label):
        for i in range(len(read_gaps) - 1):
            cs.enforce(read_gaps[i], 1 - as_lc(read_gaps[i + 1]), 0, f"padding[{i}]")
        bases = sum((1 - as_lc(g) for g in read_gaps), LinearCombination())
        cs.assert_equal(bases, length, "length")


def length_only_validator(
    cs: ConstraintSystem,
    aln_gaps: Sequence[Signal],
    length: Signal,
    label: str = "length_only",
) -> LinearCombination:
    """
    Deprecated: non-gap count of the alignment equals ``length``.

    Does not check order or content of the bases.
    """
    warnings.warn(
        "length_only_validator proves cardinality only; use dp_alignment_validator",
        DeprecationWarning,
        stacklevel=2,
    )
    logger.warning("building length-only alignment check (%s)", label)
    with cs.scope(label):
        count: Signal = 0
        for j, gap in enumerate(aln_gaps):
            count = cs.materialize(as_lc(count) + 1 - as_lc(gap), f"count[{j}]")
        cs.assert_equal(count, length, "length")
    return as_lc(count)


def dp_alignment_validator(
    cs: ConstraintSystem,
    read: Sequence[Signal],
    read_gaps: Sequence[Signal],
    aln: Sequence[Signal],
    aln_gaps: Sequence[Signal],
    label: str = "dp",
) -> LinearCombination:
    """
    Assert that degap(aln) == degap(read) in order.

    cell[i][j] counts the ways to consume read[:i] and aln[:j] with moves

    - horizontal: aln[j-1] is a gap,
    - diagonal: aln[j-1] equals read[i-1],
    - vertical: read[i-1] is a gap (padding of the processed read, which
      sits at the front after reverse-complementing).

    Unreachable cells are exactly 0. Trailing alignment gaps flow into the
    terminal cell through horizontal moves, so acceptance is
    cell[n][m] != 0, asserted via IsZero.

    Returns the acceptance bit (always constrained to 1).
    """
    n, m = len(read), len(aln)
    if n + m > max_dp_dimension():
        raise CircuitStructureError(
            f"DP table {n}x{m} too large for the field (n + m <= {max_dp_dimension()})"
        )

    with cs.scope(label):
        prev: List[LinearCombination] = []
        for i in range(n + 1):
            row: List[LinearCombination] = []
            for j in range(m + 1):
                if i == 0 and j == 0:
                    row.append(LinearCombination.constant(1))
                    continue
                cell = LinearCombination()
                if j > 0:
                    cell = cell + cs.mul(row[j - 1], aln_gaps[j - 1], f"h[{i}][{j}]")
                if i > 0 and j > 0:
                    eq = is_equal(cs, aln[j - 1], read[i - 1], f"eq[{i}][{j}]")
                    cell = cell + cs.mul(prev[j - 1], eq, f"d[{i}][{j}]")
                if i > 0:
                    cell = cell + cs.mul(prev[j], read_gaps[i - 1], f"v[{i}][{j}]")
                row.append(cell)
            prev = row

        accept = 1 - is_zero(cs, prev[m], "terminal")
        cs.assert_equal(accept, 1, "accept")
    return accept
