"""
Primitive gadgets over the prime field.

Everything else in the circuit is composed from these. Outputs documented as
bits are constrained to {0, 1} by construction; inputs documented as bits
must already be constrained by the caller.
"""

from __future__ import annotations

from functools import reduce
from typing import Iterable, List

from ..config import FIELD_MODULUS, MAX_COMPARATOR_BITS
from ..exceptions import CircuitStructureError
from ..r1cs.constraint_system import ConstraintSystem, LinearCombination, Signal, as_lc
from ..r1cs.field import inverse


def is_zero(cs: ConstraintSystem, a: Signal, label: str = "is_zero") -> LinearCombination:
    """
    1 iff a = 0.

    Witnesses inv = a^-1 (0 when a = 0) and enforces
    a * inv = 1 - out and a * out = 0.
    """
    a = as_lc(a)
    if a.is_constant():
        return LinearCombination.constant(int(a.constant_value() == 0))
    with cs.scope(label):
        inv = cs.hint(inverse, a, label="inv")
        out = cs.hint(
            lambda av, iv: (1 - av * iv) % FIELD_MODULUS, a, inv, label="out"
        )
        cs.enforce(a, inv, 1 - out, "inverse")
        cs.enforce(a, out, 0, "zero")
    return out


def is_equal(
    cs: ConstraintSystem, a: Signal, b: Signal, label: str = "is_equal"
) -> LinearCombination:
    """1 iff a = b."""
    return is_zero(cs, as_lc(a) - as_lc(b), label)


def num_to_bits(
    cs: ConstraintSystem, a: Signal, n_bits: int, label: str = "num_to_bits"
) -> List[LinearCombination]:
    """
    Little-endian bit decomposition of ``a`` into ``n_bits`` booleans.

    Unsatisfiable when a >= 2^n_bits.
    """
    if not 0 < n_bits < FIELD_MODULUS.bit_length():
        raise CircuitStructureError(f"invalid bit width {n_bits}")
    a = as_lc(a)
    bits: List[LinearCombination] = []
    with cs.scope(label):
        for i in range(n_bits):
            bit = cs.hint(lambda av, _i=i: (av >> _i) & 1, a, label=f"bit[{i}]")
            cs.assert_bool(bit, f"bit[{i}]")
            bits.append(bit)
        recomposed = sum((bit * (1 << i) for i, bit in enumerate(bits)), LinearCombination())
        cs.assert_equal(recomposed, a, "recompose")
    return bits


def range_check(
    cs: ConstraintSystem, a: Signal, n_bits: int, label: str = "range_check"
) -> None:
    """Constrain 0 <= a < 2^n_bits."""
    num_to_bits(cs, a, n_bits, label)


def _check_comparator_width(n_bits: int) -> None:
    if not 0 < n_bits <= MAX_COMPARATOR_BITS:
        raise CircuitStructureError(
            f"comparator width must be in 1..{MAX_COMPARATOR_BITS}, got {n_bits}"
        )


def less_than(
    cs: ConstraintSystem, n_bits: int, a: Signal, b: Signal, label: str = "less_than"
) -> LinearCombination:
    """
    1 iff a < b.

    Only meaningful when both a and b are already known to be < 2^n_bits;
    the gadget does not check that itself.
    """
    _check_comparator_width(n_bits)
    shifted = as_lc(a) + (1 << n_bits) - as_lc(b)
    if shifted.is_constant():
        value = shifted.constant_value()
        return LinearCombination.constant(1 - ((value >> n_bits) & 1))
    bits = num_to_bits(cs, shifted, n_bits + 1, label)
    return 1 - bits[n_bits]


def greater_than(
    cs: ConstraintSystem, n_bits: int, a: Signal, b: Signal, label: str = "greater_than"
) -> LinearCombination:
    """1 iff a > b (same range precondition as less_than)."""
    return less_than(cs, n_bits, b, a, label)


def less_equal(
    cs: ConstraintSystem, n_bits: int, a: Signal, b: Signal, label: str = "less_equal"
) -> LinearCombination:
    """1 iff a <= b."""
    return less_than(cs, n_bits, a, as_lc(b) + 1, label)


def select(
    cs: ConstraintSystem, cond: Signal, x: Signal, y: Signal, label: str = "select"
) -> LinearCombination:
    """cond * x + (1 - cond) * y for a boolean ``cond``."""
    x, y = as_lc(x), as_lc(y)
    return cs.mul(cond, x - y, label) + y


def logical_and(
    cs: ConstraintSystem, a: Signal, b: Signal, label: str = "and"
) -> LinearCombination:
    return cs.mul(a, b, label)


def logical_or(
    cs: ConstraintSystem, a: Signal, b: Signal, label: str = "or"
) -> LinearCombination:
    a, b = as_lc(a), as_lc(b)
    return a + b - cs.mul(a, b, label)


def assert_in_set(
    cs: ConstraintSystem, x: Signal, values: Iterable[int], label: str = "in_set"
) -> None:
    """Constrain x to the given constants: prod(x - v) = 0."""
    x = as_lc(x)
    factors = [x - v for v in values]
    if not factors:
        raise CircuitStructureError("assert_in_set needs at least one value")
    with cs.scope(label):
        product = reduce(lambda acc, f: cs.mul(acc, f, "product"), factors[1:], factors[0])
        cs.assert_zero(product, "member")


def one_hot(
    cs: ConstraintSystem, x: Signal, values: Iterable[int], label: str = "one_hot"
) -> List[LinearCombination]:
    """
    Equality indicators of x against every value, asserted to sum to 1.

    The sum constraint doubles as a range check of x against ``values``.
    """
    values = list(values)
    with cs.scope(label):
        flags = [is_equal(cs, x, v, f"eq[{v}]") for v in values]
        cs.assert_equal(sum(flags, LinearCombination()), 1, "exactly_one")
    return flags
