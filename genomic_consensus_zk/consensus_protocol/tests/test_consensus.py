"""Unit tests for majority-vote consensus gadgets."""

import pytest

from genomic_consensus_zk.consensus_protocol.exceptions import UnsatisfiedConstraintError
from genomic_consensus_zk.consensus_protocol.gadgets.bases import decode_base, decode_sequence
from genomic_consensus_zk.consensus_protocol.gadgets.consensus import (
    argmax_consensus_column,
    base_counts,
    check_consensus_column,
    comparator_bits,
    compute_consensus_column,
    majority_check,
)
from genomic_consensus_zk.consensus_protocol.r1cs.constraint_system import ConstraintSystem

_CODE = {"-": 0, "A": 1, "C": 2, "G": 3, "T": 4}


def _column_circuit(n_reads, threshold, mode):
    cs = ConstraintSystem(f"column_{mode}")
    column = cs.private_input("column", (n_reads,))
    decoded = decode_sequence(cs, column)
    counts = base_counts(cs, decoded)
    n_bits = comparator_bits(n_reads, threshold)
    out = None
    if mode == "argmax":
        out = argmax_consensus_column(cs, counts, threshold, n_bits)
    else:
        oks = [majority_check(cs, c, threshold, n_bits, f"ok[{i}]") for i, c in enumerate(counts)]
        if mode == "check":
            claim = cs.private_input("claim")
            check_consensus_column(cs, decode_base(cs, claim), oks)
        else:
            out = compute_consensus_column(cs, oks)
    return cs.finalize(), counts, out


def _args(column, claim=None):
    args = {"column": [_CODE[ch] for ch in column]}
    if claim is not None:
        args["claim"] = _CODE[claim]
    return args


def test_comparator_bits():
    assert comparator_bits(10, 5) == 4
    assert comparator_bits(3, 1) == 2
    assert comparator_bits(1, 0) == 1


def test_base_counts():
    cs, counts, _ = _column_circuit(5, 1, "compute")
    values = cs.generate_witness(_args("AAC-T"))
    assert [c.evaluate(values) for c in counts] == [2, 1, 0, 1]


class TestCheckMode:
    def test_majority_base(self):
        cs, _, _ = _column_circuit(3, 1, "check")
        cs.check_witness(cs.generate_witness(_args("AAC", "A")))

    def test_unsupported_base_rejected(self):
        cs, _, _ = _column_circuit(3, 1, "check")
        values = cs.generate_witness(_args("AAC", "C"))
        with pytest.raises(UnsatisfiedConstraintError, match="majority_rule"):
            cs.check_witness(values)

    def test_gap_over_majority_rejected(self):
        cs, _, _ = _column_circuit(3, 1, "check")
        values = cs.generate_witness(_args("AAC", "-"))
        with pytest.raises(UnsatisfiedConstraintError, match="no_gap_over_majority"):
            cs.check_witness(values)

    def test_gap_without_majority(self):
        cs, _, _ = _column_circuit(3, 1, "check")
        cs.check_witness(cs.generate_witness(_args("ACG", "-")))
        values = cs.generate_witness(_args("ACG", "A"))
        assert not cs.is_satisfied(values)

    def test_two_majorities_unprovable(self):
        cs, _, _ = _column_circuit(2, 0, "check")
        values = cs.generate_witness(_args("AC", "A"))
        with pytest.raises(UnsatisfiedConstraintError, match="at_most_one"):
            cs.check_witness(values)


class TestComputeMode:
    @pytest.mark.parametrize("column,expected", [("AAC", 1), ("GGG", 3), ("ACG", 0), ("T--", 0)])
    def test_compute(self, column, expected):
        cs, _, out = _column_circuit(3, 1, "compute")
        values = cs.generate_witness(_args(column))
        cs.check_witness(values)
        assert out.evaluate(values) == expected


class TestArgmaxMode:
    def test_tie_resolves_to_lower_code(self):
        cs, _, out = _column_circuit(6, 1, "argmax")
        values = cs.generate_witness(_args("AAACCC"))
        cs.check_witness(values)
        assert out.evaluate(values) == _CODE["A"]

    def test_tie_order_independent(self):
        cs, _, out = _column_circuit(6, 1, "argmax")
        values = cs.generate_witness(_args("CCCAAA"))
        cs.check_witness(values)
        assert out.evaluate(values) == _CODE["A"]

    def test_threshold_gates_winner(self):
        cs, _, out = _column_circuit(6, 3, "argmax")
        values = cs.generate_witness(_args("AAACCC"))
        cs.check_witness(values)
        assert out.evaluate(values) == 0

    def test_all_gaps(self):
        cs, _, out = _column_circuit(3, 0, "argmax")
        values = cs.generate_witness(_args("---"))
        cs.check_witness(values)
        assert out.evaluate(values) == 0
