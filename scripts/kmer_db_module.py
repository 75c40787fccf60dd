"""
kmer_db_module.py

DuckDB storage for protein metadata and k-mers.

Tables:
- metadata: one row per protein, looked up by protein_number.
- kmers: one row per k-mer, idx holds the encoded global index (see kmer_module).

Rows are written in scoped transactions: the metadata batch of a run commits
as one unit, and each protein's k-mers commit as one unit. Indices are built
once after loading.
"""

import logging
from contextlib import contextmanager

import duckdb
import pandas as pd

from kmer_module import GLOBAL_INDEX_MULTIPLIER
from protein_header_module import METADATA_COLUMNS

DEFAULT_DB_PATH = "kmer_index.duckdb"
KMER_COLUMNS = ["kmer", "idx"]


def connect(db_path=DEFAULT_DB_PATH):
    """Open (and create if needed) the DuckDB database file."""
    return duckdb.connect(str(db_path))


def create_schema(con):
    """Create the metadata and kmers tables if they do not exist yet."""
    con.execute(
        """
    CREATE TABLE IF NOT EXISTS metadata (
        protein_number INTEGER,
        protein_id TEXT,
        protein_name TEXT,
        species TEXT,
        taxon_id INTEGER,
        gene TEXT,
        pe_level INTEGER,
        sequence_version INTEGER
    )
    """
    )
    con.execute(
        """
    CREATE TABLE IF NOT EXISTS kmers (
        kmer TEXT,
        idx BIGINT
    )
    """
    )


def drop_schema(con):
    """Remove both tables and their indices."""
    con.execute("DROP INDEX IF EXISTS kmers_kmer_idx")
    con.execute("DROP INDEX IF EXISTS metadata_protein_number_idx")
    con.execute("DROP TABLE IF EXISTS kmers")
    con.execute("DROP TABLE IF EXISTS metadata")
    logging.info("Dropped existing metadata and kmers tables")


@contextmanager
def transaction(con):
    """Run the enclosed writes as one transaction, rolling back on any error."""
    con.execute("BEGIN TRANSACTION")
    try:
        yield con
    except BaseException:
        con.execute("ROLLBACK")
        raise
    con.execute("COMMIT")


def _insert_frame(con, table, df, columns):
    view_name = f"{table}_batch"
    con.register(view_name, df)
    try:
        cols = ", ".join(columns)
        con.execute(f"INSERT INTO {table} ({cols}) SELECT {cols} FROM {view_name}")
    finally:
        con.unregister(view_name)


def write_metadata(con, rows):
    """
    Append metadata rows in a single all-or-nothing transaction.

    Args:
        con (duckdb.DuckDBPyConnection): Open connection.
        rows (list): Dictionaries with the METADATA_COLUMNS keys.

    Returns:
        int: Number of rows written.
    """
    if not rows:
        return 0
    df = pd.DataFrame.from_records(rows, columns=METADATA_COLUMNS)
    with transaction(con):
        _insert_frame(con, "metadata", df, METADATA_COLUMNS)
    return len(df)


def write_kmers(con, rows, protein_number):
    """
    Append all k-mers of one protein in their own transaction.

    Args:
        con (duckdb.DuckDBPyConnection): Open connection.
        rows (iterable): (kmer, global_index) pairs for this protein.
        protein_number (int): The protein the rows belong to.

    Returns:
        int: Number of rows written.

    Raises:
        ValueError: If a global index does not belong to protein_number.
    """
    df = pd.DataFrame.from_records(list(rows), columns=KMER_COLUMNS)
    if df.empty:
        return 0
    if (df["idx"] // GLOBAL_INDEX_MULTIPLIER != protein_number).any():
        raise ValueError(f"k-mer batch contains indices not owned by protein {protein_number}")
    with transaction(con):
        _insert_frame(con, "kmers", df, KMER_COLUMNS)
    return len(df)


def build_indices(con):
    """Index kmers on kmer and metadata on protein_number. Run once after loading."""
    con.execute("CREATE INDEX IF NOT EXISTS kmers_kmer_idx ON kmers (kmer)")
    con.execute(
        "CREATE INDEX IF NOT EXISTS metadata_protein_number_idx ON metadata (protein_number)"
    )
    logging.info("Built indices on kmers(kmer) and metadata(protein_number)")


@contextmanager
def bulk_load(con, checkpoint_threshold="1GB"):
    """
    Relax WAL checkpointing while loading, then restore the default and checkpoint.

    A crash during the load can lose the uncheckpointed tail; the load is
    rerun from the FASTA file in that case.
    """
    con.execute(f"SET checkpoint_threshold = '{checkpoint_threshold}'")
    try:
        yield con
    except BaseException:
        # keep the load error, not a follow-up failure on the same connection
        try:
            _restore_checkpointing(con)
        except duckdb.Error as e:
            logging.error(f"Could not restore checkpoint settings after failed load: {e}")
        raise
    _restore_checkpointing(con)


def _restore_checkpointing(con):
    con.execute("RESET checkpoint_threshold")
    con.execute("CHECKPOINT")


def count_rows(con):
    """Return (metadata_rows, kmer_rows)."""
    n_metadata = con.execute("SELECT COUNT(*) FROM metadata").fetchone()[0]
    n_kmers = con.execute("SELECT COUNT(*) FROM kmers").fetchone()[0]
    return n_metadata, n_kmers


def proteins_with_kmer(con, kmer):
    """List the protein numbers whose sequence contains kmer, ascending."""
    result = con.execute(
        f"""
        SELECT DISTINCT idx // {GLOBAL_INDEX_MULTIPLIER} AS protein_number
        FROM kmers
        WHERE kmer = ?
        ORDER BY protein_number
        """,
        [kmer],
    ).fetchall()
    return [row[0] for row in result]


def get_protein_metadata(con, protein_number):
    """Return the metadata rows stored for protein_number as a DataFrame."""
    return con.execute(
        "SELECT * FROM metadata WHERE protein_number = ?", [protein_number]
    ).fetchdf()
