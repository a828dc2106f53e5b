"""One-hot decoding of base codes (doubles as the {0..4} range check)."""

from __future__ import annotations

from typing import List, Sequence

from ..config import BASE_CODES, GAP
from ..r1cs.constraint_system import ConstraintSystem, LinearCombination, Signal
from .field_ops import one_hot

# Index of each code inside a decoded flag list
GAP_FLAG = BASE_CODES.index(GAP)


def decode_base(
    cs: ConstraintSystem, base: Signal, label: str = "decode"
) -> List[LinearCombination]:
    """Indicators [base == code] for every code in BASE_CODES."""
    return one_hot(cs, base, BASE_CODES, label)


def decode_sequence(
    cs: ConstraintSystem, seq: Sequence[Signal], label: str = "decode"
) -> List[List[LinearCombination]]:
    with cs.scope(label):
        return [decode_base(cs, base, f"[{i}]") for i, base in enumerate(seq)]


def gap_flags(decoded: Sequence[Sequence[Signal]]) -> List[Signal]:
    return [flags[GAP_FLAG] for flags in decoded]
