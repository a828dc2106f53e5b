"""
⚠️ DRAFT — requires crypto review before production use

Genomic consensus circuit.

Proves that private alignments of public reads

1. degap to the strand-corrected reads,
2. produce the public pairwise MSA score, and
3. support the consensus by strict majority,

without revealing the alignments, orientations or (in ``check`` mode) the
consensus itself.

Public vector: reads (row-major), readLens, expectedScore, then outputs
(``valid``, ``consensus[c]`` in compute/argmax modes, ``alignmentScore``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional, Union

from .config import BASE_ALPHABET
from .exceptions import CircuitStructureError, UnsatisfiedConstraintError
from .gadgets.alignment import dp_alignment_validator, length_only_validator, read_well_formed
from .gadgets.bases import decode_sequence, gap_flags
from .gadgets.consensus import (
    argmax_consensus_column,
    base_counts,
    check_consensus_column,
    comparator_bits,
    compute_consensus_column,
    majority_check,
)
from .gadgets.field_ops import select
from .gadgets.scoring import pairwise_scoring_validator
from .gadgets.strand import orient_read
from .params import CircuitParams
from .r1cs.constraint_system import CircuitStats, ConstraintSystem
from .r1cs.field import to_signed
from .types import CircuitInputs

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Witness:
    """Full assignment plus the public vector derived from it."""

    values: List[int]
    public_signals: List[int]


@dataclass(frozen=True)
class PublicStatement:
    """Domain view of a public signal vector."""

    reads: List[str]
    read_lens: List[int]
    expected_score: int
    valid: Optional[bool] = None
    consensus: Optional[str] = None
    alignment_score: Optional[int] = None


class ConsensusCircuit:
    """
    Constraint system for one CircuitParams instantiation.

    Use ``build_consensus_circuit`` to obtain a shared, finalized instance.

    Example:
        >>> circuit = build_consensus_circuit(CircuitParams(3, 4, 4, 1))
        >>> circuit.is_satisfied(inputs)
        True
    """

    def __init__(self, params: CircuitParams) -> None:
        self.params = params
        self.cs = ConstraintSystem(
            f"GenomicConsensus_{params.n_reads}_{params.max_seq_len}_"
            f"{params.max_aln_len}_{params.threshold}"
        )
        self._build()
        self.cs.finalize()

    # ------------------------------------------------------------------
    # construction
    # ------------------------------------------------------------------

    def _build(self) -> None:
        p = self.params
        cs = self.cs
        logger.debug("building consensus circuit for %s", p)

        reads = cs.public_input("reads", (p.n_reads, p.max_seq_len))
        read_lens = cs.public_input("readLens", (p.n_reads,))
        expected_score = cs.public_input("expectedScore")
        aligned = cs.private_input("alignedReads", (p.n_reads, p.max_aln_len))
        is_reversed = cs.private_input("isReversed", (p.n_reads,))
        # Advisory only: declared so witnesses carry it, never constrained
        cs.private_input("startPos", (p.n_reads,))
        consensus_in = None
        if p.consensus_mode == "check":
            consensus_in = cs.private_input("consensus", (p.max_aln_len,))

        # Decode every alignment symbol once; reused by all validators
        aln_decoded = []
        with cs.scope("alignedReads"):
            for r in range(p.n_reads):
                aln_decoded.append(decode_sequence(cs, aligned[r], f"[{r}]"))
        aln_gaps = [gap_flags(d) for d in aln_decoded]

        for r in range(p.n_reads):
            with cs.scope(f"read[{r}]"):
                read_decoded = decode_sequence(cs, reads[r], "decode")
                read_gaps = gap_flags(read_decoded)
                read_well_formed(cs, read_gaps, read_lens[r])

                if p.alignment_check == "length":
                    cs.assert_bool(is_reversed[r], "is_reversed")
                    length_only_validator(cs, aln_gaps[r], read_lens[r])
                    continue

                processed = orient_read(cs, reads[r], is_reversed[r], read_decoded)
                # Complementing keeps gap-ness, so the processed gap flags are
                # the raw ones, reversed when the flag is set.
                processed_gaps = [
                    select(cs, is_reversed[r], g_rev, g, f"gap[{i}]")
                    for i, (g, g_rev) in enumerate(zip(read_gaps, reversed(read_gaps)))
                ]
                dp_alignment_validator(
                    cs, processed, processed_gaps, aligned[r], aln_gaps[r]
                )

        total_score = pairwise_scoring_validator(cs, aligned, aln_gaps, expected_score)

        n_bits = comparator_bits(p.n_reads, p.threshold)
        consensus_out = []
        with cs.scope("consensus"):
            consensus_decoded = (
                decode_sequence(cs, consensus_in, "decode")
                if consensus_in is not None
                else None
            )
            for c in range(p.max_aln_len):
                with cs.scope(f"col[{c}]"):
                    counts = base_counts(cs, [aln_decoded[r][c] for r in range(p.n_reads)])
                    if p.consensus_mode == "argmax":
                        consensus_out.append(
                            argmax_consensus_column(cs, counts, p.threshold, n_bits)
                        )
                        continue
                    oks = [
                        majority_check(cs, count, p.threshold, n_bits, f"ok[{b}]")
                        for b, count in enumerate(counts, start=1)
                    ]
                    if p.consensus_mode == "check":
                        check_consensus_column(cs, consensus_decoded[c], oks)
                    else:
                        consensus_out.append(compute_consensus_column(cs, oks))

        if p.expose_valid:
            valid = cs.public_output("valid", 1)
            cs.assert_equal(valid, 1, "valid")
        for c, value in enumerate(consensus_out):
            cs.public_output(f"consensus[{c}]", value)
        if p.expose_score:
            cs.public_output("alignmentScore", total_score)

    # ------------------------------------------------------------------
    # witness
    # ------------------------------------------------------------------

    def _args(self, inputs: Union[CircuitInputs, Mapping[str, Any]]) -> Dict[str, Any]:
        if isinstance(inputs, CircuitInputs):
            return inputs.to_circuit_args(self.params)
        if isinstance(inputs, Mapping):
            return CircuitInputs.from_mapping(dict(inputs)).to_circuit_args(self.params)
        raise CircuitStructureError(
            f"inputs must be CircuitInputs or a mapping, got {type(inputs).__name__}"
        )

    def witness(self, inputs: Union[CircuitInputs, Mapping[str, Any]]) -> Witness:
        """
        Generate and check a witness.

        Raises:
            CircuitStructureError: If the inputs do not fit the circuit shape
            UnsatisfiedConstraintError: If any stage rejects the inputs
        """
        values = self.cs.generate_witness(self._args(inputs))
        self.cs.check_witness(values)
        return Witness(values=values, public_signals=self.cs.public_signals(values))

    def is_satisfied(self, inputs: Union[CircuitInputs, Mapping[str, Any]]) -> bool:
        """
        True iff the inputs satisfy every constraint.

        A claimed score outside the reachable range is an unsatisfied
        statement, not a malformed one. Inputs of the wrong shape still
        raise CircuitStructureError.
        """
        try:
            self.witness(inputs)
        except UnsatisfiedConstraintError as exc:
            logger.debug("witness rejected at %s", exc.label)
            return False
        return True

    # ------------------------------------------------------------------
    # public vector
    # ------------------------------------------------------------------

    def decode_public_signals(self, signals: List[int]) -> PublicStatement:
        """Reconstruct domain values (letters, signed score) from the public vector."""
        p = self.params
        if len(signals) != p.public_signal_count:
            raise CircuitStructureError(
                f"expected {p.public_signal_count} public signals, got {len(signals)}"
            )

        def letters(codes: List[int]) -> str:
            out = []
            for code in codes:
                if not 0 <= code < len(BASE_ALPHABET):
                    raise CircuitStructureError(f"invalid base code {code}")
                out.append(BASE_ALPHABET[code])
            return "".join(out)

        pos = 0
        reads = []
        for _ in range(p.n_reads):
            reads.append(letters(signals[pos:pos + p.max_seq_len]))
            pos += p.max_seq_len
        read_lens = [int(v) for v in signals[pos:pos + p.n_reads]]
        pos += p.n_reads
        expected_score = to_signed(signals[pos])
        pos += 1

        valid = None
        if p.expose_valid:
            valid = signals[pos] == 1
            pos += 1
        consensus = None
        if p.consensus_mode != "check":
            consensus = letters(signals[pos:pos + p.max_aln_len])
            pos += p.max_aln_len
        alignment_score = None
        if p.expose_score:
            alignment_score = to_signed(signals[pos])

        return PublicStatement(
            reads=[r.rstrip("-") for r in reads],
            read_lens=read_lens,
            expected_score=expected_score,
            valid=valid,
            consensus=consensus,
            alignment_score=alignment_score,
        )

    def stats(self) -> CircuitStats:
        return self.cs.stats()

    def digest(self) -> bytes:
        return self.cs.digest()


@lru_cache(maxsize=16)
def build_consensus_circuit(params: CircuitParams) -> ConsensusCircuit:
    """Build (once per parameter set) and finalize a consensus circuit."""
    circuit = ConsensusCircuit(params)
    stats = circuit.stats()
    logger.info(
        "consensus circuit n=%d seq=%d aln=%d t=%d: %d constraints (%d non-linear)",
        params.n_reads,
        params.max_seq_len,
        params.max_aln_len,
        params.threshold,
        stats.constraints,
        stats.nonlinear_constraints,
    )
    return circuit
