"""Zero-knowledge proofs of genomic read alignment and consensus."""

__version__ = "0.1.0"
