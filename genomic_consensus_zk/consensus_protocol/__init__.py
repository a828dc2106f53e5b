"""Public API for consensus_protocol.

Circuit construction (``build_consensus_circuit``), input and proof types, and
backend selection. Backends are imported lazily.
"""
from __future__ import annotations

from importlib import import_module

from .circuit import ConsensusCircuit, PublicStatement, Witness, build_consensus_circuit
from .exceptions import (
    CircuitStructureError,
    ConfigurationError,
    ConsensusZKError,
    ProofGenerationError,
    SerializationError,
    UnsatisfiedConstraintError,
)
from .factory import get_zk_backend
from .interfaces import ProofBackend, ProvingKey, VerificationKey
from .params import CircuitParams
from .types import CircuitInputs, ConsensusProof

__all__ = [
    "build_consensus_circuit",
    "ConsensusCircuit",
    "PublicStatement",
    "Witness",
    "CircuitParams",
    "CircuitInputs",
    "ConsensusProof",
    "get_zk_backend",
    "ProofBackend",
    "ProvingKey",
    "VerificationKey",
    "ConsensusZKError",
    "ConfigurationError",
    "CircuitStructureError",
    "UnsatisfiedConstraintError",
    "ProofGenerationError",
    "SerializationError",
    "MockGroth16Backend",
]

_LAZY_EXPORTS = {
    "MockGroth16Backend": "adapters.mock_adapter",
}


def __getattr__(name: str):
    if name in _LAZY_EXPORTS:
        module = import_module(f"{__name__}.{_LAZY_EXPORTS[name]}")
        value = getattr(module, name)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
