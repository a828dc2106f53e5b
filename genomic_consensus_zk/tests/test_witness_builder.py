"""Unit tests for host-side input preparation."""

import numpy as np
import pytest

from genomic_consensus_zk.consensus_protocol.exceptions import CircuitStructureError
from genomic_consensus_zk.consensus_protocol.params import CircuitParams
from genomic_consensus_zk.witness_builder import (
    base_counts,
    decode_sequence,
    encode_sequence,
    majority_consensus,
    msa_score,
    pairwise_score,
    prepare_inputs,
    reverse_complement,
)


class TestEncoding:
    def test_encode(self):
        assert encode_sequence("A-cgT") == [1, 0, 2, 3, 4]

    def test_encode_rejects_unknown(self):
        with pytest.raises(ValueError, match="invalid base 'N'"):
            encode_sequence("ACN")

    def test_decode(self):
        assert decode_sequence([1, 0, 2, 3, 4]) == "A-CGT"
        assert decode_sequence(np.array([4, 4])) == "TT"
        with pytest.raises(ValueError):
            decode_sequence([5])

    def test_reverse_complement(self):
        assert decode_sequence(reverse_complement(encode_sequence("AACG"))) == "CGTT"


class TestScoring:
    def test_pairwise_score(self):
        assert pairwise_score(encode_sequence("A-C"), encode_sequence("AGC")) == 1
        assert pairwise_score(encode_sequence("--"), encode_sequence("--")) == 0
        assert pairwise_score(encode_sequence("AC"), encode_sequence("GT")) == -2

    def test_pairwise_score_length_mismatch(self):
        with pytest.raises(ValueError):
            pairwise_score([1, 2], [1])

    def test_msa_score_matches_pair_sum(self):
        rows = [encode_sequence(s) for s in ("A-TGAC--", "AG-GAC--", "ATGAAC--", "--------")]
        expected = sum(
            pairwise_score(rows[i], rows[j])
            for i in range(len(rows))
            for j in range(i + 1, len(rows))
        )
        assert msa_score(rows) == expected

    def test_msa_score_example(self):
        rows = [encode_sequence(s) for s in ("ACGT", "ACGT", "ACGA")]
        assert msa_score(rows) == 8

    def test_msa_score_single_row(self):
        assert msa_score([[1, 2, 3]]) == 0


class TestConsensus:
    def test_base_counts(self):
        counts = base_counts([encode_sequence(s) for s in ("AC", "AG", "-G")])
        assert counts[:, 0].tolist() == [2, 0, 0, 0]
        assert counts[:, 1].tolist() == [0, 1, 2, 0]

    def test_check_mode(self):
        rows = [encode_sequence(s) for s in ("ACGT", "ACGT", "ACGA")]
        assert majority_consensus(rows, 1) == encode_sequence("ACGT")
        assert majority_consensus(rows, 2) == encode_sequence("ACG-")
        assert majority_consensus(rows, 3) == encode_sequence("----")

    def test_ambiguous_column(self):
        rows = [encode_sequence(s) for s in ("A", "C")]
        with pytest.raises(ValueError, match="column 0"):
            majority_consensus(rows, 0, "compute")

    def test_argmax_tie_goes_to_lower_code(self):
        rows = [encode_sequence(s) for s in ("C", "C", "C", "A", "A", "A")]
        assert majority_consensus(rows, 1, "argmax") == [1]
        assert majority_consensus(rows, 3, "argmax") == [0]

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            majority_consensus([[1]], 0, "plurality")


class TestPrepareInputs:
    PARAMS = CircuitParams(n_reads=4, max_seq_len=4, max_aln_len=5, threshold=1)

    def test_pads_reads_and_dummies(self):
        inputs = prepare_inputs(["A-CG", "ACG"], self.PARAMS)
        assert inputs.aligned_reads[0] == [1, 0, 2, 3, 0]
        assert inputs.reads[0] == [1, 2, 3, 0]
        assert inputs.read_lens == [3, 3, 0, 0]
        assert inputs.aligned_reads[3] == [0] * 5
        assert inputs.is_reversed == [0, 0, 0, 0]
        assert inputs.start_pos == [0, 0, 0, 0]
        # Dummy rows take part in the score like any other row
        rows = inputs.aligned_reads
        assert inputs.expected_score == msa_score(rows)
        assert inputs.consensus == [1, 0, 0, 0, 0]

    def test_reversed_read_is_reverse_complemented(self):
        inputs = prepare_inputs(["AACG", "AACG"], self.PARAMS, is_reversed=[0, 1])
        assert decode_sequence(inputs.reads[1]) == "CGTT"
        assert inputs.is_reversed == [0, 1, 0, 0]

    def test_start_pos(self):
        inputs = prepare_inputs(["-ACG"], self.PARAMS, start_pos=[1])
        assert inputs.start_pos == [1, 0, 0, 0]

    def test_no_consensus_outside_check_mode(self):
        params = CircuitParams(2, 4, 5, 1, consensus_mode="argmax")
        assert prepare_inputs(["ACG"], params).consensus is None

    @pytest.mark.parametrize(
        "aligned,kwargs",
        [
            (["A"] * 5, {}),
            (["ACGTAC"], {}),
            (["A-C-G-T-A"], {"is_reversed": None}),
            (["ACG"], {"is_reversed": [0, 1]}),
            (["ACG"], {"is_reversed": [2]}),
            (["ACG"], {"start_pos": [0, 0]}),
        ],
    )
    def test_structural_errors(self, aligned, kwargs):
        with pytest.raises(CircuitStructureError):
            prepare_inputs(aligned, self.PARAMS, **kwargs)

    def test_read_longer_than_max_seq_len(self):
        params = CircuitParams(2, 3, 5, 1)
        with pytest.raises(CircuitStructureError, match="longer than 3"):
            prepare_inputs(["AC-GT"], params)
