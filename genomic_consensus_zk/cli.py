"""
Command-Line Interface for the genomic consensus circuit

Provides commands to inspect circuit sizes, prepare inputs from aligned
reads, check satisfiability, and produce / verify (mock) proofs.
"""

import functools
import json
import logging
import sys
from pathlib import Path

import click

from genomic_consensus_zk import __version__
from genomic_consensus_zk.consensus_protocol import (
    CircuitInputs,
    CircuitParams,
    ConsensusProof,
    ConsensusZKError,
    UnsatisfiedConstraintError,
    VerificationKey,
    build_consensus_circuit,
    get_zk_backend,
)
from genomic_consensus_zk.consensus_protocol.config import (
    ALIGNMENT_CHECK_MODES,
    CONSENSUS_MODES,
)
from genomic_consensus_zk.witness_builder import prepare_inputs

logger = logging.getLogger(__name__)

_PARAM_OPTIONS = (
    "n_reads",
    "max_seq_len",
    "max_aln_len",
    "threshold",
    "alignment_check",
    "consensus_mode",
)


def _fail(message: str) -> None:
    click.echo(click.style(f"✗ {message}", fg="red"), err=True)
    sys.exit(1)


def circuit_options(func):
    """Options selecting the circuit shape (YAML file, overridden per flag)."""

    @click.option(
        "--params",
        "params_file",
        type=click.Path(exists=True, dir_okay=False),
        help="YAML file with circuit parameters",
    )
    @click.option("--n-reads", type=int, help="Number of reads")
    @click.option("--max-seq-len", type=int, help="Padded raw read length")
    @click.option("--max-aln-len", type=int, help="Alignment length")
    @click.option("--threshold", type=int, help="Majority threshold (strict)")
    @click.option(
        "--alignment-check",
        type=click.Choice(ALIGNMENT_CHECK_MODES),
        help="Alignment validator (default: dp)",
    )
    @click.option(
        "--consensus-mode",
        type=click.Choice(CONSENSUS_MODES),
        help="Consensus encoding (default: check)",
    )
    @click.option("--expose-valid", is_flag=True, help="Add a public 'valid' output")
    @click.option(
        "--expose-score", is_flag=True, help="Add a public 'alignmentScore' output"
    )
    @functools.wraps(func)
    def wrapper(params_file, expose_valid, expose_score, **kwargs):
        data = {}
        try:
            if params_file:
                data.update(CircuitParams.from_yaml(params_file).to_dict())
            for name in _PARAM_OPTIONS:
                if kwargs.get(name) is not None:
                    data[name] = kwargs[name]
            if expose_valid:
                data["expose_valid"] = True
            if expose_score:
                data["expose_score"] = True
            params = CircuitParams.from_mapping(data)
        except ConsensusZKError as e:
            _fail(str(e))
        for name in _PARAM_OPTIONS:
            kwargs.pop(name, None)
        return func(params=params, **kwargs)

    return wrapper


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", is_flag=True, help="Enable debug logging")
def main(verbose):
    """
    Genomic Consensus ZK - Proof of Concept

    Proves that private alignments of public reads are consistent, score as
    claimed and support a majority consensus.

    ⚠️  PROOF OF CONCEPT - MOCK BACKEND ONLY
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@circuit_options
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["console", "json"], case_sensitive=False),
    default="console",
    help="Output format",
)
def stats(params, output_format):
    """Show constraint counts for a circuit shape."""
    try:
        circuit = build_consensus_circuit(params)
    except ConsensusZKError as e:
        _fail(str(e))
    info = circuit.stats().to_dict()

    if output_format == "json":
        click.echo(
            json.dumps(
                {
                    "params": params.to_dict(),
                    "stats": info,
                    "digest": circuit.digest().hex(),
                },
                indent=2,
            )
        )
        return

    click.echo(click.style("GenomicConsensus circuit", fg="cyan", bold=True))
    for key, value in params.to_dict().items():
        click.echo(f"  {key}: {value}")
    click.echo("")
    for key, value in info.items():
        click.echo(f"  {key}: {value}")
    click.echo(f"  digest: {circuit.digest().hex()}")


@main.command()
@circuit_options
@click.argument("aligned_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--reversed",
    "reversed_rows",
    type=int,
    multiple=True,
    help="Index of a read sequenced from the reverse strand (repeatable)",
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False),
    default="input.json",
    show_default=True,
    help="Where to write the circuit inputs",
)
def prepare(params, aligned_file, reversed_rows, output):
    """
    Build circuit inputs from aligned reads.

    ALIGNED_FILE holds one aligned sequence per line over '-ACGT'; blank
    lines and lines starting with '#' are ignored.
    """
    lines = Path(aligned_file).read_text(encoding="utf-8").splitlines()
    aligned = [ln.strip() for ln in lines if ln.strip() and not ln.startswith("#")]
    flags = [0] * len(aligned)
    for index in reversed_rows:
        if not 0 <= index < len(aligned):
            _fail(f"--reversed {index} is out of range")
        flags[index] = 1

    try:
        inputs = prepare_inputs(aligned, params, is_reversed=flags)
    except (ConsensusZKError, ValueError) as e:
        _fail(str(e))

    inputs.write_json(output)
    click.echo(click.style(f"✓ Wrote {output}", fg="green"))
    click.echo(f"  reads: {len(aligned)} (+{params.n_reads - len(aligned)} dummy)")
    click.echo(f"  expectedScore: {inputs.expected_score}")


@main.command()
@circuit_options
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
def check(params, input_file):
    """Check that INPUT_FILE satisfies the circuit."""
    try:
        circuit = build_consensus_circuit(params)
        witness = circuit.witness(CircuitInputs.read_json(input_file))
    except UnsatisfiedConstraintError as e:
        _fail(f"Not satisfied: {e.label}")
    except ConsensusZKError as e:
        _fail(str(e))

    statement = circuit.decode_public_signals(witness.public_signals)
    click.echo(click.style("✓ Witness satisfies all constraints", fg="green"))
    click.echo(f"  expectedScore: {statement.expected_score}")
    if statement.consensus is not None:
        click.echo(f"  consensus: {statement.consensus}")


@main.command()
@circuit_options
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--proof-out",
    type=click.Path(dir_okay=False),
    default="proof.cbor",
    show_default=True,
)
@click.option(
    "--vk-out",
    type=click.Path(dir_okay=False),
    default="verification_key.cbor",
    show_default=True,
)
@click.option("--backend", type=str, default=None, help="Proof backend name")
def prove(params, input_file, proof_out, vk_out, backend):
    """Run setup and prove INPUT_FILE; writes the proof and verification key."""
    try:
        zk = get_zk_backend(prefer=backend)
    except (ValueError, ImportError, TypeError) as e:
        _fail(str(e))

    try:
        circuit = build_consensus_circuit(params)
        pk, vk = zk.setup(circuit)
        proof = zk.prove(pk, circuit, CircuitInputs.read_json(input_file))
        Path(proof_out).write_bytes(proof.serialize())
        Path(vk_out).write_bytes(vk.serialize())
    except ConsensusZKError as e:
        _fail(str(e))

    click.echo(click.style(f"✓ Proof written to {proof_out}", fg="green"))
    click.echo(f"  verification key: {vk_out}")
    click.echo(f"  public signals: {len(proof.public_signals)}")


@main.command()
@circuit_options
@click.argument("proof_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("vk_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--backend", type=str, default=None, help="Proof backend name")
def verify(params, proof_file, vk_file, backend):
    """Verify PROOF_FILE against VK_FILE and show the public statement."""
    try:
        zk = get_zk_backend(prefer=backend)
        proof = ConsensusProof.deserialize(Path(proof_file).read_bytes())
        vk = VerificationKey.deserialize(Path(vk_file).read_bytes())
        circuit = build_consensus_circuit(params)
    except (ConsensusZKError, ValueError, ImportError, TypeError) as e:
        _fail(str(e))

    if vk.circuit_digest != circuit.digest():
        _fail("Verification key does not match the circuit parameters")
    if not zk.verify(vk, proof.public_signals, proof):
        _fail("Proof rejected")

    statement = circuit.decode_public_signals(proof.public_signals)
    click.echo(click.style("✓ Proof verified", fg="green"))
    click.echo(f"  reads: {', '.join(statement.reads)}")
    click.echo(f"  expectedScore: {statement.expected_score}")
    if statement.consensus is not None:
        click.echo(f"  consensus: {statement.consensus}")


if __name__ == "__main__":
    main()
