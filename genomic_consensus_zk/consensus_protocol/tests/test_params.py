"""Unit tests for circuit parameters."""

import dataclasses

import pytest

from genomic_consensus_zk.consensus_protocol.exceptions import (
    CircuitStructureError,
    ConfigurationError,
)
from genomic_consensus_zk.consensus_protocol.params import CircuitParams


def test_defaults():
    params = CircuitParams()
    assert (params.n_reads, params.max_seq_len, params.max_aln_len, params.threshold) == (
        10,
        20,
        30,
        5,
    )
    assert params.alignment_check == "dp"
    assert params.consensus_mode == "check"
    assert params.n_pairs == 45


def test_frozen_and_hashable():
    params = CircuitParams(3, 4, 4, 1)
    with pytest.raises(dataclasses.FrozenInstanceError):
        params.threshold = 2
    assert hash(params) == hash(CircuitParams(3, 4, 4, 1))


@pytest.mark.parametrize(
    "kwargs",
    [
        {"n_reads": 0},
        {"max_seq_len": 0},
        {"max_seq_len": 5, "max_aln_len": 4},
        {"threshold": -1},
        {"n_reads": 2.5},
        {"threshold": True},
        {"alignment_check": "smith-waterman"},
        {"consensus_mode": "plurality"},
    ],
)
def test_invalid_params(kwargs):
    with pytest.raises(CircuitStructureError):
        CircuitParams(**kwargs)


def test_dp_dimension_limit():
    with pytest.raises(CircuitStructureError, match="DP"):
        CircuitParams(n_reads=2, max_seq_len=80, max_aln_len=80)
    # The length-only validator has no table to overflow
    CircuitParams(n_reads=2, max_seq_len=80, max_aln_len=80, alignment_check="length")


def test_public_signal_count():
    assert CircuitParams(3, 4, 4, 1).public_signal_count == 3 * 4 + 3 + 1
    params = CircuitParams(
        3, 4, 5, 1, consensus_mode="compute", expose_valid=True, expose_score=True
    )
    assert params.public_signal_count == 3 * 4 + 3 + 1 + 1 + 5 + 1


def test_score_bound():
    assert CircuitParams(3, 4, 4, 1).score_bound == 36


class TestFromMapping:
    def test_camel_case_keys(self):
        params = CircuitParams.from_mapping(
            {"nReads": 3, "maxSeqLen": 4, "maxAlnLen": 6, "threshold": 1, "consensusMode": "argmax"}
        )
        assert params == CircuitParams(3, 4, 6, 1, consensus_mode="argmax")

    def test_snake_case_keys(self):
        params = CircuitParams.from_mapping({"n_reads": 3, "max_seq_len": 4, "max_aln_len": 4})
        assert params.n_reads == 3

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError, match="Unknown"):
            CircuitParams.from_mapping({"nReads": 3, "depth": 2})

    def test_not_a_mapping(self):
        with pytest.raises(ConfigurationError):
            CircuitParams.from_mapping([("nReads", 3)])

    def test_to_dict_round_trip(self):
        params = CircuitParams(3, 4, 4, 1, expose_score=True)
        assert CircuitParams.from_mapping(params.to_dict()) == params


class TestFromYaml:
    def test_circuit_section(self, tmp_path):
        path = tmp_path / "circuit.yaml"
        path.write_text(
            "circuit:\n  nReads: 4\n  maxSeqLen: 5\n  maxAlnLen: 7\n  threshold: 2\n"
        )
        assert CircuitParams.from_yaml(path) == CircuitParams(4, 5, 7, 2)

    def test_top_level(self, tmp_path):
        path = tmp_path / "circuit.yaml"
        path.write_text("alignmentCheck: length\n")
        assert CircuitParams.from_yaml(path).alignment_check == "length"

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert CircuitParams.from_yaml(path) == CircuitParams()

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("circuit: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            CircuitParams.from_yaml(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            CircuitParams.from_yaml(tmp_path / "missing.yaml")
