"""
⚠️ DRAFT — requires crypto review before production use

Unit tests for circuit input and proof envelope types.
"""

import cbor2
import pytest

from genomic_consensus_zk.consensus_protocol.config import FIELD_MODULUS, PROOF_VERSION
from genomic_consensus_zk.consensus_protocol.exceptions import (
    CircuitStructureError,
    SerializationError,
)
from genomic_consensus_zk.consensus_protocol.params import CircuitParams
from genomic_consensus_zk.consensus_protocol.types import CircuitInputs, ConsensusProof

PARAMS = CircuitParams(n_reads=2, max_seq_len=3, max_aln_len=4, threshold=1)


def _inputs(**overrides):
    data = dict(
        reads=[[1, 2, 0], [1, 2, 0]],
        read_lens=[2, 2],
        expected_score=2,
        aligned_reads=[[1, 0, 2, 0], [1, 0, 2, 0]],
        is_reversed=[0, 0],
        start_pos=[0, 0],
        consensus=[1, 0, 2, 0],
    )
    data.update(overrides)
    return CircuitInputs(**data)


class TestCircuitInputs:
    def test_valid(self):
        _inputs().validate(PARAMS)

    def test_read_longer_than_max(self):
        with pytest.raises(CircuitStructureError, match="longer than"):
            _inputs(reads=[[1, 2, 3, 4], [1, 2, 0]]).validate(PARAMS)

    def test_unpadded_read(self):
        with pytest.raises(CircuitStructureError, match="pad with gaps"):
            _inputs(reads=[[1, 2], [1, 2, 0]]).validate(PARAMS)

    def test_wrong_read_count(self):
        with pytest.raises(CircuitStructureError):
            _inputs(read_lens=[2]).validate(PARAMS)

    def test_read_len_out_of_range(self):
        with pytest.raises(CircuitStructureError, match="readLens"):
            _inputs(read_lens=[4, 2]).validate(PARAMS)

    def test_score_beyond_reachable_range_is_well_formed(self):
        _inputs(expected_score=PARAMS.score_bound + 1).validate(PARAMS)
        _inputs(expected_score=-PARAMS.score_bound - 1).validate(PARAMS)

    def test_score_must_be_signed_field_element(self):
        with pytest.raises(CircuitStructureError, match="signed field element"):
            _inputs(expected_score=FIELD_MODULUS // 2 + 1).validate(PARAMS)
        with pytest.raises(CircuitStructureError, match="signed field element"):
            _inputs(expected_score=FIELD_MODULUS + 8).validate(PARAMS)

    def test_consensus_required_in_check_mode(self):
        with pytest.raises(CircuitStructureError, match="consensus"):
            _inputs(consensus=None).validate(PARAMS)

    def test_consensus_ignored_in_compute_mode(self):
        params = CircuitParams(2, 3, 4, 1, consensus_mode="compute")
        args = _inputs(consensus=None).to_circuit_args(params)
        assert "consensus" not in args

    def test_circuit_args_embed_negative_score(self):
        args = _inputs(expected_score=-3).to_circuit_args(PARAMS)
        assert args["expectedScore"] == FIELD_MODULUS - 3

    def test_default_start_pos(self):
        args = _inputs(start_pos=[]).to_circuit_args(PARAMS)
        assert args["startPos"] == [0, 0]

    def test_json_round_trip(self, tmp_path):
        path = _inputs(expected_score=-1).write_json(tmp_path / "input.json")
        assert CircuitInputs.read_json(path) == _inputs(expected_score=-1)

    def test_from_mapping_accepts_numeric_strings(self):
        data = _inputs().to_input_json()
        data["expectedScore"] = "2"
        assert CircuitInputs.from_mapping(data).expected_score == 2

    def test_from_mapping_missing_field(self):
        data = _inputs().to_input_json()
        del data["alignedReads"]
        with pytest.raises(CircuitStructureError, match="alignedReads"):
            CircuitInputs.from_mapping(data)

    def test_read_json_invalid(self, tmp_path):
        path = tmp_path / "input.json"
        path.write_text("[1, 2]")
        with pytest.raises(CircuitStructureError):
            CircuitInputs.read_json(path)
        path.write_text("{not json")
        with pytest.raises(CircuitStructureError):
            CircuitInputs.read_json(path)


class TestConsensusProof:
    def _proof(self):
        return ConsensusProof(
            backend="mock",
            circuit_digest=b"\x11" * 32,
            public_signals=[1, 2, FIELD_MODULUS - 1],
            proof=b"\x22" * 32,
            timestamp=1700000000.0,
        )

    def test_serialize_deserialize(self):
        proof = self._proof()
        restored = ConsensusProof.deserialize(proof.serialize())
        assert restored == proof

    def test_rejects_garbage(self):
        with pytest.raises(SerializationError):
            ConsensusProof.deserialize(b"\xff\x00garbage")

    def test_rejects_other_version(self):
        data = cbor2.dumps(
            {"v": PROOF_VERSION + 1, "b": "mock", "d": b"", "s": [], "p": b""}
        )
        with pytest.raises(SerializationError, match="version"):
            ConsensusProof.deserialize(data)

    def test_rejects_missing_fields(self):
        data = cbor2.dumps({"v": PROOF_VERSION, "b": "mock"})
        with pytest.raises(SerializationError, match="missing"):
            ConsensusProof.deserialize(data)

    def test_rejects_non_int_signals(self):
        data = cbor2.dumps(
            {"v": PROOF_VERSION, "b": "mock", "d": b"", "s": ["1"], "p": b""}
        )
        with pytest.raises(SerializationError, match="ints"):
            ConsensusProof.deserialize(data)

    def test_to_dict(self):
        data = self._proof().to_dict()
        assert data["public_signals"][2] == str(FIELD_MODULUS - 1)
        assert data["circuit_digest"] == "11" * 32
