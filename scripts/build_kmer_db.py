#!/usr/bin/env python3
"""
build_kmer_db.py

Builds a DuckDB k-mer index from a protein FASTA file.

For every sequence in the input the header metadata (accession, protein name,
species, taxon id, gene, PE level, sequence version) goes to the metadata
table and every k-mer goes to the kmers table together with its global index
(protein_number * 1,000,000 + offset).

Command-line arguments:
- --input_fasta: Protein FASTA file (UniProt-style headers).
- --k: K-mer size, positive integer.
- --db: DuckDB database file (default: kmer_index.duckdb in the working directory).
- --overwrite: Drop existing tables instead of appending to them.
- --metadata_tsv: Also export the metadata table to TSV + Parquet.
- --no_index: Skip building the lookup indices after loading.
- --log_file / --log_level: Logging options.

Rerunning against an existing database appends a second copy of the data
unless --overwrite is given.
"""

import argparse
import logging
import os
import sys
import time

import duckdb

import kmer_db_module
from export_metadata import export_metadata
from ingest_pipeline import IngestStats, ingest_fasta, scan_fasta


def setup_logger(log_path=None, level="INFO"):
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_path:
        handlers.append(logging.FileHandler(log_path))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
    )


def positive_int(value):
    try:
        k = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"k must be an integer, got {value!r}")
    if k < 1:
        raise argparse.ArgumentTypeError(f"k must be a positive integer, got {k}")
    return k


def build_parser():
    p = argparse.ArgumentParser(
        description="Split protein sequences into k-mers and store them with header metadata in DuckDB."
    )
    p.add_argument("--input_fasta", required=True, help="Path to the protein FASTA file")
    p.add_argument("--k", type=positive_int, required=True, help="K-mer size")
    p.add_argument(
        "--db",
        default=kmer_db_module.DEFAULT_DB_PATH,
        help=f'DuckDB database file. Defaults to "{kmer_db_module.DEFAULT_DB_PATH}".',
    )
    p.add_argument(
        "--overwrite",
        action="store_true",
        help="Drop existing metadata and kmers tables before loading (default: append)",
    )
    p.add_argument("--metadata_tsv", help="Optional TSV export of the metadata table (Parquet is also written)")
    p.add_argument("--no_index", action="store_true", help="Do not build lookup indices after loading")
    p.add_argument("--log_file", help="Also write the log to this file")
    p.add_argument("--log_level", default="INFO", help="Logging level (default: INFO)")
    return p


def write_run_summary(start_time, end_time, db_path, stats):
    elapsed_time = end_time - start_time
    minutes, seconds = divmod(int(elapsed_time), 60)

    runtime_message = (
        f"Indexed {stats.proteins} proteins into {stats.kmers} k-mers in {minutes} min {seconds} sec.\n"
        f"Database: {db_path}\n"
    )
    if stats.short_sequences:
        runtime_message += f"Sequences shorter than k (no k-mers): {stats.short_sequences}\n"
    for field_name, count in sorted(stats.missing_fields.items()):
        runtime_message += f"Headers without {field_name}: {count}\n"

    summary_file = os.path.join(
        os.path.dirname(os.path.abspath(db_path)), "kmer_index_summary.txt"
    )

    mode = "a" if os.path.exists(summary_file) else "w"
    with open(summary_file, mode) as f:
        if mode == "w":
            f.write("K-mer Index Summary\n")
            f.write("===================\n\n")
        f.write(runtime_message)

    return runtime_message.strip()


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logger(args.log_file, args.log_level)

    start_time = time.time()
    stats = IngestStats()

    # Scan the whole input before touching the database
    try:
        metadata_rows = scan_fasta(args.input_fasta, args.k, stats)
    except (OSError, ValueError) as e:
        raise SystemExit(f"[ERROR] {e}")

    con = None
    try:
        con = kmer_db_module.connect(args.db)
        ingest_fasta(
            con,
            args.input_fasta,
            args.k,
            metadata_rows=metadata_rows,
            stats=stats,
            overwrite=args.overwrite,
            build_index=not args.no_index,
        )
        if args.metadata_tsv:
            export_metadata(con, args.metadata_tsv)
    except (duckdb.Error, OSError, ValueError) as e:
        logging.error(f"Ingestion of {args.input_fasta} failed: {e}")
        raise SystemExit(f"[ERROR] {e}")
    finally:
        if con is not None:
            con.close()

    end_time = time.time()
    print(f"[OK] {write_run_summary(start_time, end_time, args.db, stats)}")
    return stats


if __name__ == "__main__":
    main()
