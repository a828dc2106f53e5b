from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from typing import Any, Dict, List, Mapping, Tuple, Union

import cbor2

from ..circuit import ConsensusCircuit
from ..exceptions import ProofGenerationError, UnsatisfiedConstraintError
from ..interfaces import ProofBackend, ProvingKey, VerificationKey
from ..types import CircuitInputs, ConsensusProof

logger = logging.getLogger(__name__)


class MockGroth16Backend(ProofBackend):
    """
    Test backend that stands in for a Groth16 prover.

    Notes:
    - Proving runs full witness generation and constraint checking, so an
      unsatisfiable instance fails exactly where a real prover would.
    - The "proof" is an HMAC over the circuit digest and public signals, keyed
      by a per-setup secret shared by both keys.
    - It does NOT provide zero-knowledge or soundness against anyone who holds
      the key.
    """

    _BACKEND_NAME = "mock"
    _BACKEND_VERSION = "0.1.0"
    _KEY_LEN = 32
    _MAC_LEN = 32

    @property
    def backend_name(self) -> str:
        return self._BACKEND_NAME

    @property
    def backend_version(self) -> str:
        return self._BACKEND_VERSION

    def setup(self, circuit: ConsensusCircuit) -> Tuple[ProvingKey, VerificationKey]:
        if not isinstance(circuit, ConsensusCircuit):
            raise TypeError("circuit must be ConsensusCircuit")
        digest = circuit.digest()
        key = secrets.token_bytes(self._KEY_LEN)
        logger.debug("mock setup for circuit %s", digest.hex()[:16])
        return (
            ProvingKey(self._BACKEND_NAME, digest, key),
            VerificationKey(self._BACKEND_NAME, digest, key),
        )

    def prove(
        self,
        pk: ProvingKey,
        circuit: ConsensusCircuit,
        inputs: Union[CircuitInputs, Mapping[str, Any]],
    ) -> ConsensusProof:
        if not isinstance(pk, ProvingKey):
            raise TypeError("pk must be ProvingKey")
        if not isinstance(circuit, ConsensusCircuit):
            raise TypeError("circuit must be ConsensusCircuit")
        if pk.backend != self._BACKEND_NAME:
            raise ProofGenerationError(f"proving key belongs to backend {pk.backend!r}")

        digest = circuit.digest()
        if not hmac.compare_digest(pk.circuit_digest, digest):
            raise ProofGenerationError("proving key was generated for another circuit")

        try:
            witness = circuit.witness(inputs)
        except UnsatisfiedConstraintError as exc:
            raise ProofGenerationError(
                f"Witness does not satisfy the circuit at {exc.label}"
            ) from exc

        return ConsensusProof(
            backend=self._BACKEND_NAME,
            circuit_digest=digest,
            public_signals=witness.public_signals,
            proof=self._mac(pk.data, digest, witness.public_signals),
        )

    def verify(
        self,
        vk: VerificationKey,
        public_signals: List[int],
        proof: ConsensusProof,
    ) -> bool:
        try:
            if not isinstance(vk, VerificationKey):
                return False
            if not isinstance(proof, ConsensusProof):
                return False
            if proof.backend != self._BACKEND_NAME or vk.backend != self._BACKEND_NAME:
                return False
            if not isinstance(proof.proof, bytes) or len(proof.proof) != self._MAC_LEN:
                return False
            if proof.circuit_digest != vk.circuit_digest:
                return False
            if list(public_signals) != list(proof.public_signals):
                return False

            expected = self._mac(vk.data, vk.circuit_digest, list(public_signals))
            return hmac.compare_digest(expected, proof.proof)
        except Exception:
            return False

    def get_backend_info(self) -> Dict[str, Any]:
        return {
            "name": self.backend_name,
            "version": self.backend_version,
            "proof_system": "groth16 (simulated)",
            "features": ["witness_check", "public_signal_binding"],
            "security": "mock_only",
        }

    @staticmethod
    def _mac(key: bytes, digest: bytes, public_signals: List[int]) -> bytes:
        message = cbor2.dumps([digest, [int(s) for s in public_signals]])
        return hmac.new(key, message, hashlib.sha256).digest()
