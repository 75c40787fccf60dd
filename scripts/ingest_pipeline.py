"""
ingest_pipeline.py

Drives a FASTA file through header extraction and k-mer splitting into the
DuckDB store.

Ingestion runs in two passes over the file:
1. scan_fasta reads every record, extracts header metadata and checks that
   each sequence fits the global index encoding. Nothing is written, so a bad
   input aborts the run with an empty database.
2. ingest_fasta writes the metadata in one transaction, then streams the
   file again and commits each protein's k-mers on their own.

A failure during pass 2 leaves the proteins committed before it in place;
rerun with a clean database to recover.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field

import kmer_db_module
from kmer_module import check_sequence_length, indexed_kmers, kmer_count
from parse_protein_fasta import read_fasta, validate_fasta
from protein_header_module import extract_header_metadata, missing_header_fields

PROGRESS_EVERY = 10_000


@dataclass
class IngestStats:
    proteins: int = 0
    kmers: int = 0
    short_sequences: int = 0
    missing_fields: Counter = field(default_factory=Counter)


def scan_fasta(fasta_path, k, stats=None):
    """
    First pass: collect one metadata row per record.

    Args:
        fasta_path (str): Input FASTA file.
        k (int): K-mer size the file will be split with.
        stats (IngestStats): Optional accumulator for counts.

    Returns:
        list: Metadata dictionaries in file order, each with its protein_number.

    Raises:
        FileNotFoundError, ValueError: Invalid input file.
        SequenceTooLongError: A sequence's k-mer offsets exceed the encoding limit.
    """
    if stats is None:
        stats = IngestStats()
    validate_fasta(fasta_path)
    logging.info(f"Scanning {fasta_path} (k={k})")

    rows = []
    for record in read_fasta(fasta_path):
        check_sequence_length(record.ordinal, len(record.residues), k)
        row = {"protein_number": record.ordinal}
        row.update(extract_header_metadata(record.header))
        rows.append(row)

        stats.missing_fields.update(missing_header_fields(record.header))
        n_kmers = kmer_count(len(record.residues), k)
        if n_kmers == 0:
            stats.short_sequences += 1
        stats.kmers += n_kmers

    stats.proteins = len(rows)
    logging.info(f"Scanned {stats.proteins} proteins, {stats.kmers} k-mers expected")
    for field_name, count in sorted(stats.missing_fields.items()):
        logging.info(f"{count} headers without {field_name}, stored with default value")
    if stats.short_sequences:
        logging.warning(f"[WARN] {stats.short_sequences} sequences shorter than k={k} produce no k-mers")
    return rows


def load_kmers(con, fasta_path, k):
    """
    Second pass: write every protein's k-mers, one transaction per protein.

    Returns:
        int: Total number of k-mer rows written.
    """
    total = 0
    with kmer_db_module.bulk_load(con):
        for record in read_fasta(fasta_path):
            total += kmer_db_module.write_kmers(
                con, indexed_kmers(record.residues, k, record.ordinal), record.ordinal
            )
            if record.ordinal % PROGRESS_EVERY == 0:
                logging.debug(f"Wrote k-mers for {record.ordinal} proteins ({total} rows)")
    return total


def ingest_fasta(
    con, fasta_path, k, metadata_rows=None, stats=None, overwrite=False, build_index=True
):
    """
    Load a FASTA file into the metadata and kmers tables.

    Args:
        con (duckdb.DuckDBPyConnection): Open connection.
        fasta_path (str): Input FASTA file.
        k (int): K-mer size.
        metadata_rows (list): Result of an earlier scan_fasta call; the file is scanned here if omitted.
        stats (IngestStats): Accumulator filled by that earlier scan_fasta call.
        overwrite (bool): Drop existing tables first instead of appending.
        build_index (bool): Build lookup indices after loading.

    Returns:
        IngestStats: Counts for the run.
    """
    if stats is None:
        stats = IngestStats()
    if metadata_rows is None:
        metadata_rows = scan_fasta(fasta_path, k, stats)
    stats.proteins = len(metadata_rows)

    if overwrite:
        kmer_db_module.drop_schema(con)
    kmer_db_module.create_schema(con)

    kmer_db_module.write_metadata(con, metadata_rows)
    logging.info(f"Wrote {len(metadata_rows)} metadata rows")

    stats.kmers = load_kmers(con, fasta_path, k)
    logging.info(f"Wrote {stats.kmers} k-mer rows")

    if build_index:
        kmer_db_module.build_indices(con)
    return stats
