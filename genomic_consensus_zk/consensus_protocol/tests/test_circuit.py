"""
⚠️ DRAFT — requires crypto review before production use

Unit tests for the consensus circuit orchestrator.
"""

import pytest

from genomic_consensus_zk.consensus_protocol.circuit import (
    ConsensusCircuit,
    build_consensus_circuit,
)
from genomic_consensus_zk.consensus_protocol.exceptions import (
    CircuitStructureError,
    UnsatisfiedConstraintError,
)
from genomic_consensus_zk.consensus_protocol.params import CircuitParams
from genomic_consensus_zk.consensus_protocol.r1cs.field import to_signed
from genomic_consensus_zk.consensus_protocol.types import CircuitInputs

_CODE = {"-": 0, "A": 1, "C": 2, "G": 3, "T": 4}


def _codes(text, length):
    return [_CODE[ch] for ch in text.ljust(length, "-")]


def _inputs(params, reads, aligned, score, consensus=None, reversed_flags=None):
    return CircuitInputs(
        reads=[_codes(r, params.max_seq_len) for r in reads],
        read_lens=[len(r) for r in reads],
        expected_score=score,
        aligned_reads=[_codes(a, params.max_aln_len) for a in aligned],
        is_reversed=reversed_flags or [0] * len(reads),
        start_pos=[0] * len(reads),
        consensus=_codes(consensus, params.max_aln_len) if consensus is not None else None,
    )


SMALL = CircuitParams(n_reads=3, max_seq_len=4, max_aln_len=4, threshold=1)
READS = ["ACGT", "ACGT", "ACGA"]


def test_build_is_memoised():
    assert build_consensus_circuit(SMALL) is build_consensus_circuit(
        CircuitParams(n_reads=3, max_seq_len=4, max_aln_len=4, threshold=1)
    )
    assert build_consensus_circuit(SMALL).cs.finalized


def test_public_inputs_and_private_inputs():
    cs = build_consensus_circuit(SMALL).cs
    assert cs.input_names(public=True) == ["reads", "readLens", "expectedScore"]
    assert cs.input_names(public=False) == ["alignedReads", "isReversed", "startPos", "consensus"]
    assert cs.output_names == []


def test_witness_and_public_signals():
    circuit = build_consensus_circuit(SMALL)
    witness = circuit.witness(_inputs(SMALL, READS, READS, 8, "ACGT"))
    assert len(witness.public_signals) == SMALL.public_signal_count
    statement = circuit.decode_public_signals(witness.public_signals)
    assert statement.reads == READS
    assert statement.read_lens == [4, 4, 4]
    assert statement.expected_score == 8
    assert statement.consensus is None


def test_is_satisfied():
    circuit = build_consensus_circuit(SMALL)
    assert circuit.is_satisfied(_inputs(SMALL, READS, READS, 8, "ACGT"))
    assert not circuit.is_satisfied(_inputs(SMALL, READS, READS, 7, "ACGT"))


def test_accepts_input_mapping():
    circuit = build_consensus_circuit(SMALL)
    data = _inputs(SMALL, READS, READS, 8, "ACGT").to_input_json()
    assert circuit.is_satisfied(data)


def test_rejects_other_input_types():
    with pytest.raises(CircuitStructureError):
        build_consensus_circuit(SMALL).witness([1, 2, 3])


def test_structural_errors_are_not_unsatisfiability():
    circuit = build_consensus_circuit(SMALL)
    inputs = _inputs(SMALL, READS, READS, 8, "ACGT")
    inputs.reads[0] = inputs.reads[0] + [1]
    with pytest.raises(CircuitStructureError):
        circuit.is_satisfied(inputs)


def test_failure_names_stage():
    circuit = build_consensus_circuit(SMALL)
    aligned = ["ACGT", "ACGT", "ACGT"]
    with pytest.raises(UnsatisfiedConstraintError, match=r"read\[2\]/dp/accept"):
        circuit.witness(_inputs(SMALL, READS, aligned, 12, "ACGT"))


def test_reversed_read():
    params = CircuitParams(n_reads=2, max_seq_len=4, max_aln_len=5, threshold=1)
    circuit = build_consensus_circuit(params)
    aligned = ["AACG-", "AACG-"]
    # Read 1 was sequenced from the opposite strand: CGTT = revcomp(AACG)
    good = _inputs(params, ["AACG", "CGTT"], aligned, 4, "AACG-", [0, 1])
    circuit.witness(good)

    bad = _inputs(params, ["AACG", "CGTT"], aligned, 4, "AACG-", [0, 0])
    with pytest.raises(UnsatisfiedConstraintError, match=r"read\[1\]/dp"):
        circuit.witness(bad)


def test_reversed_short_read():
    params = CircuitParams(n_reads=2, max_seq_len=4, max_aln_len=5, threshold=1)
    circuit = build_consensus_circuit(params)
    aligned = ["-ACG-", "-ACG-"]
    inputs = _inputs(params, ["ACG", "CGT"], aligned, 3, "-ACG-", [0, 1])
    circuit.witness(inputs)


def test_compute_mode_outputs_consensus():
    params = CircuitParams(3, 4, 4, 1, consensus_mode="compute", expose_score=True)
    circuit = build_consensus_circuit(params)
    assert circuit.cs.output_names == [
        "consensus[0]",
        "consensus[1]",
        "consensus[2]",
        "consensus[3]",
        "alignmentScore",
    ]
    witness = circuit.witness(_inputs(params, READS, READS, 8))
    statement = circuit.decode_public_signals(witness.public_signals)
    assert statement.consensus == "ACGT"
    assert statement.alignment_score == 8


def test_argmax_mode_with_valid_output():
    params = CircuitParams(2, 2, 2, 0, consensus_mode="argmax", expose_valid=True)
    circuit = build_consensus_circuit(params)
    witness = circuit.witness(_inputs(params, ["AC", "AG"], ["AC", "AG"], 0))
    statement = circuit.decode_public_signals(witness.public_signals)
    assert statement.valid is True
    # C and G tie with one vote each; the lower code wins
    assert statement.consensus == "AC"


def test_negative_score_round_trip():
    params = CircuitParams(2, 2, 2, 1, consensus_mode="compute", expose_score=True)
    circuit = build_consensus_circuit(params)
    witness = circuit.witness(_inputs(params, ["AC", "GT"], ["AC", "GT"], -2))
    assert to_signed(witness.public_signals[2 * 2 + 2]) == -2
    assert circuit.decode_public_signals(witness.public_signals).alignment_score == -2


def test_length_only_variant_warns():
    params = CircuitParams(2, 2, 2, 1, alignment_check="length")
    with pytest.warns(DeprecationWarning):
        ConsensusCircuit(params)


def test_decode_rejects_wrong_length():
    with pytest.raises(CircuitStructureError):
        build_consensus_circuit(SMALL).decode_public_signals([0, 1])


def test_stats_and_digest():
    circuit = build_consensus_circuit(SMALL)
    stats = circuit.stats()
    assert stats.public_inputs == SMALL.public_signal_count
    assert stats.public_outputs == 0
    assert stats.nonlinear_constraints > 0
    assert circuit.digest() != build_consensus_circuit(
        CircuitParams(3, 4, 4, 2)
    ).digest()
