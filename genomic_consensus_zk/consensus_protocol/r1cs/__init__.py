"""R1CS builder over the BN254 scalar field."""

from .constraint_system import (
    CircuitStats,
    Constraint,
    ConstraintSystem,
    LinearCombination,
    Signal,
    as_lc,
)
from .field import inverse, to_field, to_signed

__all__ = [
    "CircuitStats",
    "Constraint",
    "ConstraintSystem",
    "LinearCombination",
    "Signal",
    "as_lc",
    "inverse",
    "to_field",
    "to_signed",
]
