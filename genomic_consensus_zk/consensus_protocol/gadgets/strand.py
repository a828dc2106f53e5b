"""
Strand orientation gadgets.

A read sequenced from the opposite strand is compared against its alignment
after reverse-complementing. Orientation is a private bit, so both forms are
built and one is selected per position.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from ..config import BASE_CODES, COMPLEMENT
from ..r1cs.constraint_system import ConstraintSystem, LinearCombination, Signal
from .field_ops import is_equal, select


def reverse_complement_base(
    cs: ConstraintSystem, base: Signal, label: str = "revcomp"
) -> LinearCombination:
    """
    Complement of a base code via equality selection over the code set.

    0 -> 0, A <-> T, C <-> G. Values outside the code set map to 0. The gap
    term has coefficient 0 and is skipped.
    """
    out = LinearCombination()
    with cs.scope(label):
        for code in BASE_CODES:
            if COMPLEMENT[code] == 0:
                continue
            out = out + is_equal(cs, base, code, f"eq[{code}]") * COMPLEMENT[code]
    return out


def complement_from_one_hot(flags: Sequence[Signal]) -> LinearCombination:
    """Complement of a base already decoded into BASE_CODES indicators (free)."""
    out = LinearCombination()
    for code, flag in zip(BASE_CODES, flags):
        out = out + flag * COMPLEMENT[code]
    return out


def reverse_complement_seq(
    cs: ConstraintSystem, seq: Sequence[Signal], label: str = "revcomp_seq"
) -> List[LinearCombination]:
    """Complement of every element, taken in reversed index order."""
    with cs.scope(label):
        return [
            reverse_complement_base(cs, base, f"[{i}]")
            for i, base in enumerate(reversed(seq))
        ]


def orient_select(
    cs: ConstraintSystem,
    flag: Signal,
    seq: Sequence[Signal],
    rev_seq: Sequence[Signal],
    label: str = "orient",
) -> List[LinearCombination]:
    """rev_seq where flag = 1, seq where flag = 0; flag must be boolean."""
    with cs.scope(label):
        return [
            select(cs, flag, r, s, f"[{i}]")
            for i, (s, r) in enumerate(zip(seq, rev_seq))
        ]


def orient_read(
    cs: ConstraintSystem,
    read: Sequence[Signal],
    flag: Signal,
    decoded: Optional[Sequence[Sequence[Signal]]] = None,
    label: str = "strand",
) -> List[LinearCombination]:
    """
    Strand-corrected read: asserts the flag is a bit, then selects.

    ``decoded`` may carry the one-hot decoding of ``read`` when the caller has
    already range-checked it, which makes the complement free.
    """
    with cs.scope(label):
        cs.assert_bool(flag, "is_reversed")
        if decoded is None:
            rev = reverse_complement_seq(cs, read)
        else:
            rev = [complement_from_one_hot(flags) for flags in reversed(decoded)]
        return orient_select(cs, flag, read, rev)
