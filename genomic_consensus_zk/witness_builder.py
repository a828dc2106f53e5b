"""
Host-side preparation of consensus circuit inputs.

Turns a set of aligned sequences (strings over ``-ACGT``) into the padded
arrays the circuit expects, computing the reference MSA score and consensus
with the same rules the circuit enforces.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np

from .consensus_protocol.config import (
    BASE_ALPHABET,
    COMPLEMENT,
    GAP,
    NUCLEOTIDE_CODES,
)
from .consensus_protocol.exceptions import CircuitStructureError
from .consensus_protocol.params import CircuitParams
from .consensus_protocol.types import CircuitInputs

logger = logging.getLogger(__name__)

_CODE_OF = {ch: code for code, ch in enumerate(BASE_ALPHABET)}


def encode_sequence(seq: str) -> List[int]:
    """Letters to base codes ('-' is the gap, case-insensitive)."""
    codes = []
    for i, ch in enumerate(seq.upper()):
        if ch not in _CODE_OF:
            raise ValueError(f"invalid base {ch!r} at position {i}")
        codes.append(_CODE_OF[ch])
    return codes


def decode_sequence(codes: Sequence[int]) -> str:
    out = []
    for code in codes:
        code = int(code)
        if not 0 <= code < len(BASE_ALPHABET):
            raise ValueError(f"invalid base code {code}")
        out.append(BASE_ALPHABET[code])
    return "".join(out)


def reverse_complement(codes: Sequence[int]) -> List[int]:
    return [COMPLEMENT[int(c)] for c in reversed(codes)]


def degap(codes: Sequence[int]) -> List[int]:
    return [int(c) for c in codes if int(c) != GAP]


def pairwise_score(a: Sequence[int], b: Sequence[int]) -> int:
    """+1 per aligned base match, 0 per gap/gap column, -1 otherwise."""
    a = np.asarray(a)
    b = np.asarray(b)
    if a.shape != b.shape:
        raise ValueError("alignments must have equal length")
    both_gaps = (a == GAP) & (b == GAP)
    match = (a == b) & (a != GAP)
    return int(match.sum()) - int((~(match | both_gaps)).sum())


def msa_score(alignments: Sequence[Sequence[int]]) -> int:
    """Sum of pairwise_score over all unordered pairs of rows."""
    aln = np.asarray(alignments, dtype=np.int64)
    if aln.ndim != 2:
        raise ValueError("alignments must be a rectangular 2-D array")
    if aln.shape[0] < 2:
        return 0

    x = aln[:, None, :]
    y = aln[None, :, :]
    both_gaps = (x == GAP) & (y == GAP)
    match = (x == y) & (x != GAP)
    per_pair = match.sum(axis=2) - (~(match | both_gaps)).sum(axis=2)
    upper = np.triu_indices(aln.shape[0], k=1)
    return int(per_pair[upper].sum())


def base_counts(alignments: Sequence[Sequence[int]]) -> np.ndarray:
    """Counts per (nucleotide, column), rows in NUCLEOTIDE_CODES order."""
    aln = np.asarray(alignments, dtype=np.int64)
    return np.stack([(aln == code).sum(axis=0) for code in NUCLEOTIDE_CODES])


def majority_consensus(
    alignments: Sequence[Sequence[int]], threshold: int, mode: str = "check"
) -> List[int]:
    """
    Consensus codes per column under the circuit's majority rule.

    ``check`` / ``compute``: the unique base with count > threshold, else gap.
    Raises ValueError if two bases clear the threshold in one column, since
    no consensus is provable there.

    ``argmax``: the most frequent base (lowest code on ties) when its count
    is > threshold, else gap.
    """
    counts = base_counts(alignments)
    codes = np.asarray(NUCLEOTIDE_CODES)

    if mode == "argmax":
        best = counts.argmax(axis=0)
        best_count = counts.max(axis=0)
        return np.where(best_count > threshold, codes[best], GAP).astype(int).tolist()

    if mode not in ("check", "compute"):
        raise ValueError(f"unknown consensus mode {mode!r}")
    ok = counts > threshold
    ambiguous = np.flatnonzero(ok.sum(axis=0) > 1)
    if ambiguous.size:
        raise ValueError(
            f"more than one base exceeds threshold {threshold} in column "
            f"{int(ambiguous[0])}"
        )
    return (codes[:, None] * ok).sum(axis=0).astype(int).tolist()


def prepare_inputs(
    aligned: Sequence[str],
    params: CircuitParams,
    is_reversed: Optional[Sequence[int]] = None,
    start_pos: Optional[Sequence[int]] = None,
) -> CircuitInputs:
    """
    Build CircuitInputs from aligned sequences.

    Each aligned string is padded with gaps to ``max_aln_len``. The public
    read is the degapped alignment, reverse-complemented when the read is
    marked reversed, padded to ``max_seq_len``. Missing rows up to
    ``n_reads`` become all-gap dummy reads of length 0, which take part in
    the score like any other row.

    Raises:
        CircuitStructureError: If a sequence does not fit the parameters
        ValueError: On invalid letters, or no provable consensus
    """
    n = len(aligned)
    if n > params.n_reads:
        raise CircuitStructureError(f"{n} reads given, circuit holds {params.n_reads}")
    flags = [0] * n if is_reversed is None else [int(f) for f in is_reversed]
    if len(flags) != n:
        raise CircuitStructureError("is_reversed must have one entry per read")
    if any(f not in (0, 1) for f in flags):
        raise CircuitStructureError("is_reversed entries must be 0 or 1")

    aligned_rows: List[List[int]] = []
    reads: List[List[int]] = []
    read_lens: List[int] = []
    for r, (seq, flag) in enumerate(zip(aligned, flags)):
        codes = encode_sequence(seq)
        if len(codes) > params.max_aln_len:
            raise CircuitStructureError(
                f"alignment {r} has length {len(codes)}, longer than "
                f"{params.max_aln_len}"
            )
        raw = degap(codes)
        if flag:
            raw = reverse_complement(raw)
        if len(raw) > params.max_seq_len:
            raise CircuitStructureError(
                f"read {r} has {len(raw)} bases, longer than {params.max_seq_len}"
            )
        aligned_rows.append(codes + [GAP] * (params.max_aln_len - len(codes)))
        reads.append(raw + [GAP] * (params.max_seq_len - len(raw)))
        read_lens.append(len(raw))

    dummies = params.n_reads - n
    aligned_rows.extend([[GAP] * params.max_aln_len for _ in range(dummies)])
    reads.extend([[GAP] * params.max_seq_len for _ in range(dummies)])
    read_lens.extend([0] * dummies)
    flags.extend([0] * dummies)

    positions = [0] * params.n_reads
    if start_pos is not None:
        if len(start_pos) != n:
            raise CircuitStructureError("start_pos must have one entry per read")
        positions[:n] = [int(p) for p in start_pos]

    score = msa_score(aligned_rows)
    consensus = None
    if params.consensus_mode == "check":
        consensus = majority_consensus(aligned_rows, params.threshold, "check")
    logger.debug(
        "prepared %d reads (+%d dummy): expected score %d", n, dummies, score
    )

    return CircuitInputs(
        reads=reads,
        read_lens=read_lens,
        expected_score=score,
        aligned_reads=aligned_rows,
        is_reversed=flags,
        start_pos=positions,
        consensus=consensus,
    )
