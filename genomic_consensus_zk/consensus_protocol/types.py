"""
⚠️ DRAFT — requires crypto review before production use

Common types for the genomic consensus circuit.

This module provides:
1. CircuitInputs - the public/private input arrays of one proof instance
2. ConsensusProof - proof envelope with CBOR serialization
"""

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

try:
    import cbor2
except ImportError:
    raise ImportError(
        "cbor2 is required for proof serialization. "
        "Install with: pip install cbor2"
    )

from .config import FIELD_MODULUS, MAX_PROOF_SIZE_BYTES, PROOF_VERSION
from .exceptions import CircuitStructureError, SerializationError
from .params import CircuitParams
from .r1cs.field import to_field

# ============================================================================
# CIRCUIT INPUTS
# ============================================================================


def _check_matrix(name: str, value: Any, rows: int, cols: int) -> None:
    if not isinstance(value, (list, tuple)) or len(value) != rows:
        raise CircuitStructureError(f"{name} must have {rows} rows")
    for r, row in enumerate(value):
        if not isinstance(row, (list, tuple)):
            raise CircuitStructureError(f"{name}[{r}] must be a list")
        if len(row) > cols:
            raise CircuitStructureError(
                f"{name}[{r}] has length {len(row)}, longer than {cols}"
            )
        if len(row) != cols:
            raise CircuitStructureError(
                f"{name}[{r}] has length {len(row)}, expected {cols} (pad with gaps)"
            )


def _check_vector(name: str, value: Any, size: int) -> None:
    if not isinstance(value, (list, tuple)) or len(value) != size:
        raise CircuitStructureError(f"{name} must have {size} entries")


@dataclass
class CircuitInputs:
    """
    Inputs of one consensus proof instance.

    Public: reads, read_lens, expected_score.
    Private: aligned_reads, is_reversed, start_pos (advisory only, never
    constrained) and consensus (required in ``check`` mode).

    Example:
        >>> inputs = CircuitInputs(
        ...     reads=[[1, 2]], read_lens=[2], expected_score=0,
        ...     aligned_reads=[[1, 2, 0]], is_reversed=[0], start_pos=[0],
        ...     consensus=[1, 2, 0],
        ... )
        >>> inputs.to_input_json()["readLens"]
        [2]
    """

    reads: List[List[int]]
    read_lens: List[int]
    expected_score: int
    aligned_reads: List[List[int]]
    is_reversed: List[int]
    start_pos: List[int] = field(default_factory=list)
    consensus: Optional[List[int]] = None

    def validate(self, params: CircuitParams) -> None:
        """
        Structural validation against a circuit shape.

        Raises:
            CircuitStructureError: If any array does not fit the parameters
        """
        _check_matrix("reads", self.reads, params.n_reads, params.max_seq_len)
        _check_vector("readLens", self.read_lens, params.n_reads)
        _check_matrix(
            "alignedReads", self.aligned_reads, params.n_reads, params.max_aln_len
        )
        _check_vector("isReversed", self.is_reversed, params.n_reads)
        if self.start_pos:
            _check_vector("startPos", self.start_pos, params.n_reads)
        for r, length in enumerate(self.read_lens):
            if isinstance(length, bool) or not isinstance(length, int):
                raise CircuitStructureError(f"readLens[{r}] must be int")
            if not 0 <= length <= params.max_seq_len:
                raise CircuitStructureError(
                    f"readLens[{r}] = {length} outside 0..{params.max_seq_len}"
                )
        if isinstance(self.expected_score, bool) or not isinstance(self.expected_score, int):
            raise CircuitStructureError("expectedScore must be int")
        if abs(self.expected_score) > FIELD_MODULUS // 2:
            raise CircuitStructureError(
                f"expectedScore {self.expected_score} is not a signed field element"
            )
        if params.consensus_mode == "check":
            if self.consensus is None:
                raise CircuitStructureError("consensus is required in check mode")
            _check_vector("consensus", self.consensus, params.max_aln_len)

    def to_circuit_args(self, params: CircuitParams) -> Dict[str, Any]:
        """Named input arrays for ConstraintSystem.generate_witness."""
        self.validate(params)
        args: Dict[str, Any] = {
            "reads": self.reads,
            "readLens": self.read_lens,
            "expectedScore": to_field(self.expected_score),
            "alignedReads": self.aligned_reads,
            "isReversed": self.is_reversed,
            "startPos": self.start_pos or [0] * params.n_reads,
        }
        if params.consensus_mode == "check":
            args["consensus"] = self.consensus
        return args

    def to_input_json(self) -> Dict[str, Any]:
        """``input.json`` mapping in the circom key convention."""
        data: Dict[str, Any] = {
            "reads": [list(r) for r in self.reads],
            "readLens": list(self.read_lens),
            "expectedScore": self.expected_score,
            "alignedReads": [list(r) for r in self.aligned_reads],
            "isReversed": list(self.is_reversed),
            "startPos": list(self.start_pos) or [0] * len(self.reads),
        }
        if self.consensus is not None:
            data["consensus"] = list(self.consensus)
        return data

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "CircuitInputs":
        """Inverse of to_input_json; numeric strings are accepted."""
        required = ("reads", "readLens", "expectedScore", "alignedReads", "isReversed")
        for key in required:
            if key not in data:
                raise CircuitStructureError(f"Missing required field '{key}'")

        def ints(values: Any) -> List[int]:
            return [int(v) for v in values]

        consensus = data.get("consensus")
        return cls(
            reads=[ints(r) for r in data["reads"]],
            read_lens=ints(data["readLens"]),
            expected_score=int(data["expectedScore"]),
            aligned_reads=[ints(r) for r in data["alignedReads"]],
            is_reversed=ints(data["isReversed"]),
            start_pos=ints(data.get("startPos", [])),
            consensus=ints(consensus) if consensus is not None else None,
        )

    def write_json(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.write_text(json.dumps(self.to_input_json(), indent=2), encoding="utf-8")
        return path

    @classmethod
    def read_json(cls, path: Union[str, Path]) -> "CircuitInputs":
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise CircuitStructureError(f"Unable to read inputs from {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise CircuitStructureError("input file must contain a JSON object")
        return cls.from_mapping(data)


# ============================================================================
# PROOF ENVELOPE
# ============================================================================


@dataclass
class ConsensusProof:
    """
    Proof envelope produced by a ProofBackend.

    Attributes:
        backend: Name of the backend that produced the proof
        circuit_digest: ConstraintSystem.digest() of the proven circuit
        public_signals: Public vector (field elements, circuit order)
        proof: Backend-specific proof bytes
        timestamp: Proof generation time

    Example:
        >>> proof = ConsensusProof(
        ...     backend="mock", circuit_digest=b"\\x00" * 32,
        ...     public_signals=[1, 2], proof=b"\\x01",
        ... )
        >>> restored = ConsensusProof.deserialize(proof.serialize())
        >>> restored.public_signals
        [1, 2]
    """

    backend: str
    circuit_digest: bytes
    public_signals: List[int]
    proof: bytes
    timestamp: float = field(default_factory=time.time)

    def serialize(self) -> bytes:
        """
        Serialize proof to bytes using CBOR.

        Raises:
            SerializationError: If serialization fails or the result is too large
        """
        try:
            data = cbor2.dumps(
                {
                    "v": PROOF_VERSION,
                    "b": self.backend,
                    "d": self.circuit_digest,
                    "s": list(self.public_signals),
                    "p": self.proof,
                    "ts": self.timestamp,
                }
            )
        except Exception as e:
            raise SerializationError(f"Failed to serialize proof: {e}")
        if len(data) > MAX_PROOF_SIZE_BYTES:
            raise SerializationError(
                f"Serialized proof is {len(data)} bytes (max {MAX_PROOF_SIZE_BYTES})"
            )
        return data

    @classmethod
    def deserialize(cls, data: bytes) -> "ConsensusProof":
        """
        Deserialize proof from CBOR bytes.

        Raises:
            SerializationError: If data is malformed, too large or of another version
        """
        if len(data) > MAX_PROOF_SIZE_BYTES:
            raise SerializationError("Serialized proof exceeds size limit")
        try:
            obj = cbor2.loads(data)
        except Exception as e:
            raise SerializationError(f"Failed to deserialize proof: {e}")

        if not isinstance(obj, dict):
            raise SerializationError("Invalid proof format: expected a map")

        version = obj.get("v")
        if version != PROOF_VERSION:
            raise SerializationError(
                f"Unsupported proof version: {version} (expected {PROOF_VERSION})"
            )

        for key in ("b", "d", "s", "p"):
            if key not in obj:
                raise SerializationError("Invalid proof format: missing required fields")
        if not isinstance(obj["d"], bytes) or not isinstance(obj["p"], bytes):
            raise SerializationError("Invalid proof format: digest/proof must be bytes")
        if not isinstance(obj["s"], list) or not all(
            isinstance(s, int) for s in obj["s"]
        ):
            raise SerializationError("Invalid proof format: public signals must be ints")

        return cls(
            backend=obj["b"],
            circuit_digest=obj["d"],
            public_signals=obj["s"],
            proof=obj["p"],
            timestamp=obj.get("ts", time.time()),
        )

    def to_dict(self) -> dict:
        """JSON-compatible view; field elements as decimal strings like snarkjs."""
        return {
            "backend": self.backend,
            "circuit_digest": self.circuit_digest.hex(),
            "public_signals": [str(s) for s in self.public_signals],
            "proof": self.proof.hex(),
            "timestamp": self.timestamp,
        }
