"""
parse_protein_fasta.py

Reads a protein FASTA file with pysam and hands out one record at a time.

Functions:
- validate_fasta: Checks the input exists, is readable and looks like FASTA.
- read_fasta: Lazily yields SequenceRecord tuples numbered from 1 in file order.

Dependencies:
- pysam: FastxFile streams plain or gzipped FASTA without building a .fai index.
"""

import gzip
import os
from collections import namedtuple

import pysam

SequenceRecord = namedtuple("SequenceRecord", ["ordinal", "header", "residues"])


def validate_fasta(fasta_path):
    """
    Check that fasta_path points to a readable FASTA file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file cannot be read or does not start with a '>' header.
    """
    if not os.path.isfile(fasta_path):
        raise FileNotFoundError(f"{fasta_path} not found!")

    opener = gzip.open if str(fasta_path).endswith(".gz") else open
    try:
        with opener(fasta_path, "rt") as f:
            for line in f:
                if line.strip():
                    if not line.startswith(">"):
                        raise ValueError(
                            f"{fasta_path} is not a FASTA file: first record does not start with '>'"
                        )
                    return
    except (OSError, UnicodeDecodeError) as e:
        raise ValueError(f"Could not read {fasta_path}: {e}") from e

    raise ValueError(f"{fasta_path} contains no FASTA records")


def read_fasta(fasta_path):
    """
    Stream the records of a FASTA file.

    The ordinal is the 1-based position of the record in the file, so two
    passes over the same file number the proteins identically.

    Args:
        fasta_path (str): Path to the FASTA file.

    Yields:
        SequenceRecord: (ordinal, header, residues) where header is the identifier
                        followed by the description, if any.
    """
    with pysam.FastxFile(str(fasta_path)) as fasta:
        for ordinal, entry in enumerate(fasta, start=1):
            header = entry.name
            if entry.comment:
                header = f"{entry.name} {entry.comment}"
            yield SequenceRecord(ordinal, header, entry.sequence or "")
