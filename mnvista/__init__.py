"""Detection of multi-nucleotide variants from nearby SNVs that share reads."""

__version__ = "0.1.0"