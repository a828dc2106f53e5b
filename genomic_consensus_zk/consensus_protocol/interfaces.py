"""
⚠️ DRAFT — requires crypto review before production use

Abstract interface for consensus proof backends.

A backend turns a finalized ConsensusCircuit into setup artifacts, proves
CircuitInputs against it and verifies a proof against a public vector. All
backends must implement this interface so the CLI and tests can swap them
through the factory.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Tuple, Union

import cbor2

from .exceptions import SerializationError
from .types import CircuitInputs, ConsensusProof

if TYPE_CHECKING:
    from .circuit import ConsensusCircuit


@dataclass(frozen=True)
class _SetupKey:
    backend: str
    circuit_digest: bytes
    data: bytes = field(repr=False)

    def serialize(self) -> bytes:
        return cbor2.dumps({"b": self.backend, "d": self.circuit_digest, "k": self.data})

    @classmethod
    def deserialize(cls, data: bytes):
        try:
            obj = cbor2.loads(data)
        except Exception as e:
            raise SerializationError(f"Failed to deserialize key: {e}")
        if not isinstance(obj, dict) or not {"b", "d", "k"} <= set(obj):
            raise SerializationError("Invalid key format: missing required fields")
        if not isinstance(obj["d"], bytes) or not isinstance(obj["k"], bytes):
            raise SerializationError("Invalid key format: digest/key must be bytes")
        return cls(backend=obj["b"], circuit_digest=obj["d"], data=obj["k"])


class ProvingKey(_SetupKey):
    """Prover-side setup artifact bound to one circuit digest."""


class VerificationKey(_SetupKey):
    """Verifier-side setup artifact bound to one circuit digest."""


class ProofBackend(ABC):
    """
    Proof system for consensus circuits.

    Error contract:
    - setup/prove raise ProofGenerationError on backend failure and
      UnsatisfiedConstraintError never leaks out of prove.
    - verify returns False for any proof that does not check; it raises only
      for programming errors (wrong argument types).
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Short registry name, e.g. ``mock``."""

    @property
    @abstractmethod
    def backend_version(self) -> str:
        """Implementation version string."""

    @abstractmethod
    def setup(self, circuit: "ConsensusCircuit") -> Tuple[ProvingKey, VerificationKey]:
        """Produce proving and verification keys for ``circuit``."""

    @abstractmethod
    def prove(
        self,
        pk: ProvingKey,
        circuit: "ConsensusCircuit",
        inputs: Union[CircuitInputs, Mapping[str, Any]],
    ) -> ConsensusProof:
        """Prove that ``inputs`` satisfy ``circuit``."""

    @abstractmethod
    def verify(
        self,
        vk: VerificationKey,
        public_signals: List[int],
        proof: ConsensusProof,
    ) -> bool:
        """Check ``proof`` against the given public vector."""

    @abstractmethod
    def get_backend_info(self) -> Dict[str, Any]:
        """Metadata: name, version, proof system, security level."""
