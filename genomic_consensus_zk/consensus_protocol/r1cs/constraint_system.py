"""
⚠️ DRAFT — requires crypto review before production use

Rank-1 constraint system builder.

Every signal is a linear combination of witness wires. Wire 0 is the
constant ONE. A constraint is a triple of linear combinations (a, b, c)
with <a, w> * <b, w> = <c, w>. Wires are single-assignment: each one is
created together with the function that computes its value from earlier
wires (or from the named input arrays), so witness generation is a single
pass in declaration order.

Constant operands are folded into linear combinations at build time, so
only genuinely quadratic steps cost a constraint.
"""

from __future__ import annotations

import hashlib
import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import trio

from ..config import CONSTRAINT_CHECK_CHUNK_SIZE, FIELD_MODULUS
from ..exceptions import CircuitStructureError, UnsatisfiedConstraintError

logger = logging.getLogger(__name__)

ONE_WIRE = 0

Evaluator = Callable[[List[int], Mapping[str, List[int]]], int]


class LinearCombination:
    """Sparse linear combination of wires: {wire_index: coefficient}."""

    __slots__ = ("terms",)

    def __init__(self, terms: Optional[Dict[int, int]] = None) -> None:
        self.terms: Dict[int, int] = terms if terms is not None else {}

    @classmethod
    def constant(cls, value: int) -> "LinearCombination":
        value %= FIELD_MODULUS
        return cls({ONE_WIRE: value} if value else {})

    @classmethod
    def wire(cls, index: int) -> "LinearCombination":
        return cls({index: 1})

    def is_constant(self) -> bool:
        return self.terms.keys() <= {ONE_WIRE}

    def constant_value(self) -> int:
        if not self.is_constant():
            raise ValueError("linear combination is not constant")
        return self.terms.get(ONE_WIRE, 0)

    def evaluate(self, values: Sequence[int]) -> int:
        return sum(values[w] * k for w, k in self.terms.items()) % FIELD_MODULUS

    def _combine(self, other: "Signal", sign: int) -> "LinearCombination":
        other = as_lc(other)
        terms = dict(self.terms)
        for w, k in other.terms.items():
            v = (terms.get(w, 0) + sign * k) % FIELD_MODULUS
            if v:
                terms[w] = v
            else:
                terms.pop(w, None)
        return LinearCombination(terms)

    def __add__(self, other: "Signal") -> "LinearCombination":
        return self._combine(other, 1)

    def __radd__(self, other: "Signal") -> "LinearCombination":
        return self._combine(other, 1)

    def __sub__(self, other: "Signal") -> "LinearCombination":
        return self._combine(other, -1)

    def __rsub__(self, other: "Signal") -> "LinearCombination":
        return as_lc(other)._combine(self, -1)

    def __neg__(self) -> "LinearCombination":
        return LinearCombination({w: (-k) % FIELD_MODULUS for w, k in self.terms.items()})

    def __mul__(self, scalar: int) -> "LinearCombination":
        if isinstance(scalar, LinearCombination):
            raise TypeError("use ConstraintSystem.mul for signal products")
        scalar %= FIELD_MODULUS
        if not scalar:
            return LinearCombination()
        return LinearCombination(
            {w: k * scalar % FIELD_MODULUS for w, k in self.terms.items()}
        )

    __rmul__ = __mul__

    def __repr__(self) -> str:
        return f"LinearCombination({self.terms!r})"


Signal = Union[LinearCombination, int]


def as_lc(value: Signal) -> LinearCombination:
    if isinstance(value, LinearCombination):
        return value
    if isinstance(value, (int, np.integer)) and not isinstance(value, bool):
        return LinearCombination.constant(int(value))
    raise TypeError(f"cannot use {type(value).__name__} as a signal")


@dataclass(frozen=True)
class Constraint:
    a: LinearCombination
    b: LinearCombination
    c: LinearCombination
    label: str

    def is_satisfied(self, values: Sequence[int]) -> bool:
        return (
            self.a.evaluate(values) * self.b.evaluate(values) - self.c.evaluate(values)
        ) % FIELD_MODULUS == 0

    def is_linear(self) -> bool:
        return self.a.is_constant() or self.b.is_constant()


@dataclass(frozen=True)
class CircuitStats:
    constraints: int
    nonlinear_constraints: int
    linear_constraints: int
    wires: int
    public_inputs: int
    public_outputs: int
    private_inputs: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "constraints": self.constraints,
            "nonlinear_constraints": self.nonlinear_constraints,
            "linear_constraints": self.linear_constraints,
            "wires": self.wires,
            "public_inputs": self.public_inputs,
            "public_outputs": self.public_outputs,
            "private_inputs": self.private_inputs,
        }


@dataclass(frozen=True)
class _InputSpec:
    name: str
    shape: Tuple[int, ...]
    public: bool
    first_wire: int


class ConstraintSystem:
    """
    Incrementally built R1CS with an attached witness program.

    Example:
        >>> cs = ConstraintSystem("square")
        >>> x = cs.private_input("x")
        >>> y = cs.public_input("y")
        >>> cs.assert_equal(cs.mul(x, x), y, "square")
        >>> cs.finalize()
        >>> w = cs.generate_witness({"x": 3, "y": 9})
        >>> cs.check_witness(w)
    """

    def __init__(self, name: str = "circuit") -> None:
        self.name = name
        self._wire_labels: List[str] = ["ONE"]
        self._evaluators: List[Evaluator] = [lambda values, args: 1]
        self._constraints: List[Constraint] = []
        self._inputs: Dict[str, _InputSpec] = {}
        self._public_input_wires: List[int] = []
        self._public_output_wires: List[int] = []
        self._public_names: List[str] = []
        self._output_names: List[str] = []
        self._private_input_wires: List[int] = []
        self._scopes: List[str] = []
        self._finalized = False

    # ------------------------------------------------------------------
    # scoping / bookkeeping
    # ------------------------------------------------------------------

    @contextmanager
    def scope(self, label: str) -> Iterator[None]:
        """Prefix labels of everything built inside with ``label``."""
        self._scopes.append(label)
        try:
            yield
        finally:
            self._scopes.pop()

    def _label(self, label: str) -> str:
        return "/".join([*self._scopes, label]) if label else "/".join(self._scopes)

    def _require_open(self) -> None:
        if self._finalized:
            raise CircuitStructureError(f"{self.name} is finalized")

    @property
    def finalized(self) -> bool:
        return self._finalized

    @property
    def num_wires(self) -> int:
        return len(self._evaluators)

    @property
    def num_constraints(self) -> int:
        return len(self._constraints)

    @property
    def constraints(self) -> Tuple[Constraint, ...]:
        return tuple(self._constraints)

    def input_shape(self, name: str) -> Tuple[int, ...]:
        return self._inputs[name].shape

    def input_names(self, public: Optional[bool] = None) -> List[str]:
        return [
            inp.name
            for inp in self._inputs.values()
            if public is None or inp.public == public
        ]

    @property
    def public_signal_names(self) -> List[str]:
        return list(self._public_names)

    @property
    def output_names(self) -> List[str]:
        return list(self._output_names)

    # ------------------------------------------------------------------
    # wires
    # ------------------------------------------------------------------

    def _new_wire(self, evaluator: Evaluator, label: str) -> LinearCombination:
        self._require_open()
        index = len(self._evaluators)
        self._evaluators.append(evaluator)
        self._wire_labels.append(self._label(label))
        return LinearCombination.wire(index)

    def _declare_input(
        self, name: str, shape: Tuple[int, ...], public: bool
    ) -> Any:
        self._require_open()
        if name in self._inputs:
            raise CircuitStructureError(f"input {name!r} declared twice")
        if any(d <= 0 for d in shape):
            raise CircuitStructureError(f"input {name!r} has empty shape {shape}")
        inp = _InputSpec(name, tuple(shape), public, len(self._evaluators))
        self._inputs[name] = inp

        size = int(np.prod(shape)) if shape else 1
        flat: List[LinearCombination] = []
        for offset in range(size):
            index = np.unravel_index(offset, shape) if shape else ()
            element = name + "".join(f"[{i}]" for i in index)
            lc = self._new_wire(
                lambda values, args, _n=name, _o=offset: args[_n][_o], element
            )
            wire = len(self._evaluators) - 1
            if public:
                self._public_input_wires.append(wire)
                self._public_names.append(element)
            else:
                self._private_input_wires.append(wire)
            flat.append(lc)

        if not shape:
            return flat[0]
        return np.array(flat, dtype=object).reshape(shape).tolist()

    def public_input(self, name: str, shape: Tuple[int, ...] = ()) -> Any:
        """Declare a public input array; returns nested lists of signals."""
        return self._declare_input(name, shape, public=True)

    def private_input(self, name: str, shape: Tuple[int, ...] = ()) -> Any:
        """Declare a private input array; returns nested lists of signals."""
        return self._declare_input(name, shape, public=False)

    def hint(
        self, fn: Callable[..., int], *deps: Signal, label: str = "hint"
    ) -> LinearCombination:
        """
        Witnessed wire computed by ``fn`` from the values of ``deps``.

        The wire is unconstrained until the caller constrains it.
        """
        dep_lcs = [as_lc(d) for d in deps]
        return self._new_wire(
            lambda values, args: fn(*(d.evaluate(values) for d in dep_lcs)), label
        )

    def materialize(self, value: Signal, label: str = "signal") -> LinearCombination:
        """Give a linear combination its own wire (one linear constraint)."""
        lc = as_lc(value)
        out = self._new_wire(lambda values, args: lc.evaluate(values), label)
        self.enforce(lc, 1, out, label)
        return out

    def public_output(self, name: str, value: Signal) -> LinearCombination:
        out = self.materialize(value, name)
        self._public_output_wires.append(len(self._evaluators) - 1)
        self._public_names.append(name)
        self._output_names.append(name)
        return out

    # ------------------------------------------------------------------
    # constraints
    # ------------------------------------------------------------------

    def enforce(self, a: Signal, b: Signal, c: Signal, label: str = "constraint") -> None:
        """Add the constraint a * b = c."""
        self._require_open()
        a, b, c = as_lc(a), as_lc(b), as_lc(c)
        full_label = self._label(label)
        if a.is_constant() and b.is_constant() and c.is_constant():
            if (a.constant_value() * b.constant_value() - c.constant_value()) % FIELD_MODULUS:
                raise CircuitStructureError(
                    f"constant constraint can never hold: {full_label}"
                )
            return
        self._constraints.append(Constraint(a, b, c, full_label))

    def mul(self, a: Signal, b: Signal, label: str = "mul") -> LinearCombination:
        a, b = as_lc(a), as_lc(b)
        if a.is_constant():
            return b * a.constant_value()
        if b.is_constant():
            return a * b.constant_value()
        out = self._new_wire(
            lambda values, args: a.evaluate(values) * b.evaluate(values) % FIELD_MODULUS,
            label,
        )
        self.enforce(a, b, out, label)
        return out

    def assert_equal(self, a: Signal, b: Signal, label: str = "assert_equal") -> None:
        self.enforce(as_lc(a) - as_lc(b), 1, 0, label)

    def assert_zero(self, a: Signal, label: str = "assert_zero") -> None:
        self.enforce(a, 1, 0, label)

    def assert_bool(self, x: Signal, label: str = "assert_bool") -> None:
        x = as_lc(x)
        self.enforce(x, x - 1, 0, label)

    def finalize(self) -> "ConstraintSystem":
        if not self._finalized:
            self._finalized = True
            logger.info(
                "%s finalized: %d constraints, %d wires, %d public signals",
                self.name,
                self.num_constraints,
                self.num_wires,
                len(self._public_names),
            )
        return self

    # ------------------------------------------------------------------
    # witness
    # ------------------------------------------------------------------

    def _normalize_args(self, args: Mapping[str, Any]) -> Dict[str, List[int]]:
        if not isinstance(args, Mapping):
            raise CircuitStructureError("circuit inputs must be a mapping")
        normalized: Dict[str, List[int]] = {}
        for name, inp in self._inputs.items():
            if name not in args:
                raise CircuitStructureError(f"missing input {name!r}")
            try:
                array = np.asarray(args[name], dtype=object)
            except ValueError as exc:
                raise CircuitStructureError(f"input {name!r} is ragged") from exc
            if array.shape != inp.shape:
                raise CircuitStructureError(
                    f"input {name!r} has shape {array.shape}, expected {inp.shape}"
                )
            flat = []
            for value in array.reshape(-1):
                if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                    raise CircuitStructureError(
                        f"input {name!r} contains non-integer {value!r}"
                    )
                flat.append(int(value) % FIELD_MODULUS)
            normalized[name] = flat
        unknown = set(args) - set(self._inputs)
        if unknown:
            logger.debug("ignoring undeclared inputs: %s", sorted(unknown))
        return normalized

    def generate_witness(self, args: Mapping[str, Any]) -> List[int]:
        """
        Evaluate every wire in declaration order.

        Sequential: every evaluator may read any earlier wire.
        """
        normalized = self._normalize_args(args)
        values: List[int] = []
        for evaluator in self._evaluators:
            values.append(evaluator(values, normalized) % FIELD_MODULUS)
        return values

    def _first_failure(self, values: Sequence[int], start: int, stop: int) -> Optional[int]:
        for index in range(start, stop):
            if not self._constraints[index].is_satisfied(values):
                return index
        return None

    async def _check_concurrently(self, values: Sequence[int]) -> Optional[int]:
        limiter = trio.CapacityLimiter(os.cpu_count() or 1)
        failures: List[int] = []

        async def check_chunk(start: int, stop: int) -> None:
            result = await trio.to_thread.run_sync(
                self._first_failure, values, start, stop, limiter=limiter
            )
            if result is not None:
                failures.append(result)

        async with trio.open_nursery() as nursery:
            for start in range(0, self.num_constraints, CONSTRAINT_CHECK_CHUNK_SIZE):
                stop = min(start + CONSTRAINT_CHECK_CHUNK_SIZE, self.num_constraints)
                nursery.start_soon(check_chunk, start, stop)

        return min(failures) if failures else None

    def check_witness(self, values: Sequence[int]) -> None:
        """
        Check every constraint against a witness.

        Systems above CONSTRAINT_CHECK_CHUNK_SIZE constraints are split into
        chunks checked from worker threads in a trio nursery. The checks are
        pure Python, so the GIL serializes them: this bounds and structures
        the work but gives no CPU parallelism. The result matches a serial
        scan.

        Raises:
            CircuitStructureError: If the witness has the wrong length
            UnsatisfiedConstraintError: For the lowest-index failing constraint
        """
        if len(values) != self.num_wires:
            raise CircuitStructureError(
                f"witness has {len(values)} values, expected {self.num_wires}"
            )
        if values[ONE_WIRE] != 1:
            raise CircuitStructureError("witness wire 0 must be 1")

        if self.num_constraints <= CONSTRAINT_CHECK_CHUNK_SIZE:
            failed = self._first_failure(values, 0, self.num_constraints)
        else:
            failed = trio.run(self._check_concurrently, values)

        if failed is not None:
            label = self._constraints[failed].label
            logger.debug("%s: unsatisfied constraint %s", self.name, label)
            raise UnsatisfiedConstraintError(label, failed)

    def is_satisfied(self, values: Sequence[int]) -> bool:
        try:
            self.check_witness(values)
        except UnsatisfiedConstraintError:
            return False
        return True

    def public_signals(self, values: Sequence[int]) -> List[int]:
        """Public vector: inputs in declaration order, then outputs."""
        return [values[w] for w in self._public_input_wires + self._public_output_wires]

    # ------------------------------------------------------------------
    # reporting
    # ------------------------------------------------------------------

    def stats(self) -> CircuitStats:
        linear = sum(1 for c in self._constraints if c.is_linear())
        return CircuitStats(
            constraints=self.num_constraints,
            nonlinear_constraints=self.num_constraints - linear,
            linear_constraints=linear,
            wires=self.num_wires,
            public_inputs=len(self._public_input_wires),
            public_outputs=len(self._public_output_wires),
            private_inputs=len(self._private_input_wires),
        )

    def digest(self) -> bytes:
        """SHA-256 identifying this exact constraint system."""
        h = hashlib.sha256()
        h.update(self.name.encode("utf-8"))
        h.update(self.num_wires.to_bytes(8, "big"))
        for wire in self._public_input_wires + self._public_output_wires:
            h.update(wire.to_bytes(8, "big"))
        for constraint in self._constraints:
            for lc in (constraint.a, constraint.b, constraint.c):
                for wire, coeff in sorted(lc.terms.items()):
                    h.update(wire.to_bytes(8, "big"))
                    h.update(coeff.to_bytes(32, "big"))
                h.update(b"|")
            h.update(b";")
        return h.digest()
