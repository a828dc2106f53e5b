"""
Build-time circuit parameters.

A ``CircuitParams`` value fixes the shape of the constraint system; two
different parameter sets are two different circuits (and need separate
backend setup artifacts).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from .config import (
    ALIGNMENT_CHECK_MODES,
    CONSENSUS_MODES,
    DEFAULT_ALIGNMENT_CHECK,
    DEFAULT_CONSENSUS_MODE,
    DEFAULT_MAX_ALN_LEN,
    DEFAULT_MAX_SEQ_LEN,
    DEFAULT_N_READS,
    DEFAULT_THRESHOLD,
    FIELD_MODULUS,
)
from .exceptions import CircuitStructureError, ConfigurationError
from .gadgets.alignment import max_dp_dimension

# File / JSON keys as used by the circom inputs, mapped to field names
_KEY_ALIASES = {
    "nReads": "n_reads",
    "maxSeqLen": "max_seq_len",
    "maxAlnLen": "max_aln_len",
    "threshold": "threshold",
    "alignmentCheck": "alignment_check",
    "consensusMode": "consensus_mode",
    "exposeValid": "expose_valid",
    "exposeScore": "expose_score",
}


@dataclass(frozen=True)
class CircuitParams:
    """
    Shape and variant of a consensus circuit.

    Attributes:
        n_reads: Number of reads (rows of the MSA)
        max_seq_len: Padded length of each raw read
        max_aln_len: Length of each gapped alignment (>= max_seq_len)
        threshold: A base is consensus only with count strictly above this
        alignment_check: "dp" (canonical) or "length" (deprecated, weak)
        consensus_mode: "check", "compute" or "argmax"
        expose_valid: Add a public ``valid`` output constrained to 1
        expose_score: Add a public ``alignmentScore`` output
    """

    n_reads: int = DEFAULT_N_READS
    max_seq_len: int = DEFAULT_MAX_SEQ_LEN
    max_aln_len: int = DEFAULT_MAX_ALN_LEN
    threshold: int = DEFAULT_THRESHOLD
    alignment_check: str = DEFAULT_ALIGNMENT_CHECK
    consensus_mode: str = DEFAULT_CONSENSUS_MODE
    expose_valid: bool = False
    expose_score: bool = False

    def __post_init__(self) -> None:
        for name in ("n_reads", "max_seq_len", "max_aln_len", "threshold"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise CircuitStructureError(f"{name} must be int, got {value!r}")
        if self.n_reads < 1:
            raise CircuitStructureError("n_reads must be at least 1")
        if self.max_seq_len < 1:
            raise CircuitStructureError("max_seq_len must be at least 1")
        if self.max_aln_len < self.max_seq_len:
            raise CircuitStructureError(
                f"max_aln_len ({self.max_aln_len}) must be >= max_seq_len "
                f"({self.max_seq_len})"
            )
        if self.threshold < 0:
            raise CircuitStructureError("threshold must be non-negative")
        if self.alignment_check not in ALIGNMENT_CHECK_MODES:
            raise CircuitStructureError(
                f"Invalid alignment_check: {self.alignment_check!r}. "
                f"Valid options: {', '.join(ALIGNMENT_CHECK_MODES)}"
            )
        if self.consensus_mode not in CONSENSUS_MODES:
            raise CircuitStructureError(
                f"Invalid consensus_mode: {self.consensus_mode!r}. "
                f"Valid options: {', '.join(CONSENSUS_MODES)}"
            )
        if (
            self.alignment_check == "dp"
            and self.max_seq_len + self.max_aln_len > max_dp_dimension()
        ):
            raise CircuitStructureError(
                f"max_seq_len + max_aln_len must be <= {max_dp_dimension()} "
                "for the DP alignment check"
            )
        if 2 * self.score_bound >= FIELD_MODULUS:
            raise CircuitStructureError("score bound exceeds the signed field range")

    @property
    def n_pairs(self) -> int:
        return self.n_reads * (self.n_reads - 1) // 2

    @property
    def score_bound(self) -> int:
        """|expectedScore| never exceeds nReads^2 * maxAlnLen."""
        return self.n_reads * self.n_reads * self.max_aln_len

    @property
    def public_signal_count(self) -> int:
        outputs = int(self.expose_valid) + int(self.expose_score)
        if self.consensus_mode != "check":
            outputs += self.max_aln_len
        return self.n_reads * self.max_seq_len + self.n_reads + 1 + outputs

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CircuitParams":
        """
        Build from a mapping using either snake_case or circom-style keys.

        Raises:
            ConfigurationError: On unknown keys or a non-mapping value
            CircuitStructureError: On invalid values
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError("circuit parameters must be a mapping")
        kwargs: Dict[str, Any] = {}
        fields = set(cls.__dataclass_fields__)
        for key, value in data.items():
            name = _KEY_ALIASES.get(key, key)
            if name not in fields:
                raise ConfigurationError(f"Unknown circuit parameter: {key!r}")
            kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "CircuitParams":
        """Load parameters from a YAML file (optionally under a ``circuit`` key)."""
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh)
        except OSError as exc:
            raise ConfigurationError(f"Unable to read {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
        if isinstance(data, Mapping) and "circuit" in data:
            data = data["circuit"]
        if data is None:
            data = {}
        return cls.from_mapping(data)
