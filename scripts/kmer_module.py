"""
kmer_module.py

K-mer decomposition of protein sequences and the global index that ties each
k-mer back to its protein and position.

Functions:
- split_sequence: Yields every (kmer, offset) pair of a sequence, sliding by one residue.
- encode_global_index / decode_global_index: Fold (protein_number, offset) into one integer and back.
- check_sequence_length: Raises SequenceTooLongError when a sequence's offsets would not fit the encoding.

The global index is protein_number * GLOBAL_INDEX_MULTIPLIER + offset, so
offsets must stay below GLOBAL_INDEX_MULTIPLIER.
"""

GLOBAL_INDEX_MULTIPLIER = 1_000_000


class SequenceTooLongError(ValueError):
    """A sequence has k-mer offsets that cannot be encoded into a global index."""


def split_sequence(seq, k):
    """
    Split a sequence into k-mers with a window step of 1.

    Args:
        seq (str): Residue string.
        k (int): Window size, must be positive.

    Yields:
        tuple: (kmer, offset) in ascending offset order. Nothing is yielded
               when the sequence is shorter than k.
    """
    if k < 1:
        raise ValueError(f"k must be a positive integer, got {k}")
    offset = 0
    while offset + k <= len(seq):
        yield seq[offset : offset + k], offset
        offset += 1


def kmer_count(seq_len, k):
    """Number of k-mers split_sequence yields for a sequence of seq_len residues."""
    if seq_len < k:
        return 0
    return seq_len - k + 1


def encode_global_index(protein_number, offset):
    if protein_number < 1:
        raise ValueError(f"protein_number must be >= 1, got {protein_number}")
    if not 0 <= offset < GLOBAL_INDEX_MULTIPLIER:
        raise ValueError(
            f"offset {offset} outside [0, {GLOBAL_INDEX_MULTIPLIER}) for protein {protein_number}"
        )
    return protein_number * GLOBAL_INDEX_MULTIPLIER + offset


def decode_global_index(global_index):
    """Return (protein_number, offset) for an index built by encode_global_index."""
    return divmod(global_index, GLOBAL_INDEX_MULTIPLIER)


def check_sequence_length(protein_number, seq_len, k):
    """
    Make sure every k-mer offset of a sequence can be encoded.

    Raises:
        SequenceTooLongError: If the last k-mer would start at or beyond GLOBAL_INDEX_MULTIPLIER.
    """
    if kmer_count(seq_len, k) and seq_len - k >= GLOBAL_INDEX_MULTIPLIER:
        raise SequenceTooLongError(
            f"Protein {protein_number} has {seq_len} residues; k-mer offsets for k={k} "
            f"must stay below {GLOBAL_INDEX_MULTIPLIER}"
        )


def indexed_kmers(seq, k, protein_number):
    """Yield (kmer, global_index) rows for one protein, ready for storage."""
    for kmer, offset in split_sequence(seq, k):
        yield kmer, encode_global_index(protein_number, offset)
