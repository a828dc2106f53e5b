"""Reusable constraint gadgets for the consensus circuit."""
