"""
⚠️ DRAFT — requires crypto review before production use

Custom exceptions for the genomic consensus circuit.

These exceptions separate build-time (structural) failures from prove-time
(unsatisfiable witness) failures.
"""

from typing import Optional


class ConsensusZKError(Exception):
    """Base exception for genomic consensus circuit errors."""

    pass


class ConfigurationError(ConsensusZKError):
    """Configuration or parameter file error."""

    pass


class CircuitStructureError(ConsensusZKError):
    """Inputs or parameters do not match the declared circuit shape."""

    pass


class UnsatisfiedConstraintError(ConsensusZKError):
    """
    A witness violates a constraint.

    Raised on the prover side only. ``label`` names the gadget path of the
    first failing constraint so the prover can tell which stage rejected the
    witness; witness values are never included.
    """

    def __init__(self, label: str, index: Optional[int] = None) -> None:
        self.label = label
        self.index = index
        where = f" (constraint #{index})" if index is not None else ""
        super().__init__(f"Constraint not satisfied: {label}{where}")


class ProofGenerationError(ConsensusZKError):
    """Error during proof generation."""

    pass


class SerializationError(ConsensusZKError):
    """Proof envelope could not be encoded or decoded."""

    pass
