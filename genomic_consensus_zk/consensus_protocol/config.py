"""
⚠️ DRAFT — requires crypto review before production use

Field and circuit configuration for the genomic consensus circuit.

This is a PROTOTYPE implementation for testing and validation.
DO NOT use in production without security audit.

The constraint system is defined over the BN254 (alt_bn128) scalar field so
that it can be handed to a Groth16 backend such as snarkjs unchanged.
"""

# ============================================================================
# CURVE / FIELD SELECTION
# ============================================================================

# IMPLEMENTATION: BN254 scalar field
# - Pairing friendly, supported by every mainstream Groth16 toolchain
# - ~254-bit prime, so comparators are limited to 252-bit operands

CURVE_NAME = "bn128"
PROOF_SYSTEM = "groth16"

if CURVE_NAME == "bn128":
    FIELD_MODULUS = (
        21888242871839275222246405745257275088548364400416034343698204186575808495617
    )
    FIELD_BITS = 254

# BLS12-381 scalar field (for reference - not used)
elif CURVE_NAME == "bls12_381":
    FIELD_MODULUS = (
        0x73EDA753299D7D483339D80809A1D80553BDA402FFFE5BFEFFFFFFFF00000001
    )
    FIELD_BITS = 255

# LessThan decomposes a + 2^n - b into n + 1 bits; that value must stay
# below the modulus for the comparison to be unique.
MAX_COMPARATOR_BITS = FIELD_BITS - 2

# ============================================================================
# BASE ENCODING
# ============================================================================

GAP = 0
BASE_A = 1
BASE_C = 2
BASE_G = 3
BASE_T = 4

BASE_CODES = (GAP, BASE_A, BASE_C, BASE_G, BASE_T)
NUCLEOTIDE_CODES = (BASE_A, BASE_C, BASE_G, BASE_T)

# Index i of the alphabet is the character for base code i
BASE_ALPHABET = "-ACGT"

# Watson-Crick pairing on codes (A<->T, C<->G, gap fixed)
COMPLEMENT = {
    GAP: GAP,
    BASE_A: BASE_T,
    BASE_C: BASE_G,
    BASE_G: BASE_C,
    BASE_T: BASE_A,
}

# ============================================================================
# DEFAULT CIRCUIT SHAPE
# ============================================================================

# Shape of the deployed GenomicConsensus circuit (~13k non-linear constraints
# in the circom build)
DEFAULT_N_READS = 10
DEFAULT_MAX_SEQ_LEN = 20
DEFAULT_MAX_ALN_LEN = 30
DEFAULT_THRESHOLD = 5

ALIGNMENT_CHECK_MODES = ("dp", "length")
CONSENSUS_MODES = ("check", "compute", "argmax")

DEFAULT_ALIGNMENT_CHECK = "dp"
DEFAULT_CONSENSUS_MODE = "check"

# ============================================================================
# PROOF SERIALIZATION
# ============================================================================

SERIALIZATION_FORMAT = "CBOR"
PROOF_VERSION = 1

MAX_PROOF_SIZE_BYTES = 1024 * 1024  # public signals scale with nReads*maxSeqLen

# ============================================================================
# WITNESS CHECKING
# ============================================================================

# Constraints per worker task when checking a witness (threads share the GIL)
CONSTRAINT_CHECK_CHUNK_SIZE = 4096

# ============================================================================
# VALIDATION
# ============================================================================


def validate_config() -> bool:
    """
    Validate configuration parameters.

    Returns:
        True if configuration is valid

    Raises:
        AssertionError: If configuration is invalid
    """
    assert CURVE_NAME in ["bn128", "bls12_381"], "Invalid curve"
    assert PROOF_SYSTEM == "groth16", "Only Groth16 backends are supported"
    assert FIELD_MODULUS.bit_length() == FIELD_BITS, "Field size mismatch"
    assert MAX_COMPARATOR_BITS + 1 < FIELD_BITS, "Comparator width too large"
    assert BASE_ALPHABET[GAP] == "-", "Gap must be code 0"
    assert len(BASE_ALPHABET) == len(BASE_CODES), "Alphabet/code mismatch"
    assert all(COMPLEMENT[COMPLEMENT[b]] == b for b in BASE_CODES), (
        "Complement must be an involution"
    )
    assert DEFAULT_MAX_ALN_LEN >= DEFAULT_MAX_SEQ_LEN, (
        "Alignments must be at least as long as reads"
    )
    assert DEFAULT_ALIGNMENT_CHECK in ALIGNMENT_CHECK_MODES
    assert DEFAULT_CONSENSUS_MODE in CONSENSUS_MODES

    return True


# Auto-validate on import
validate_config()
