"""
Pangenome preparation utilities.

fastixe renames FASTA headers to PanSN-style tags, optionally upper-cases
sequence, and writes per-genome or merged (optionally BGZF + faidx) output.
"""

__version__ = "0.1.0"
__author__ = "panutils developers"
