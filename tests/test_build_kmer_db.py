"""
Tests for the build_kmer_db command line.
"""
import os

import pandas as pd
import pytest

import kmer_db_module
from build_kmer_db import main
from conftest import UNIPROT_HEADER
from export_metadata import export_metadata
from ingest_pipeline import ingest_fasta


def test_cli_builds_database(tmp_path, write_fasta):
    fasta = write_fasta([(UNIPROT_HEADER, "MKVLA"), ("pep", "YLLDLHSYL")])
    db_path = tmp_path / "out.duckdb"
    tsv = tmp_path / "meta" / "metadata.tsv"

    stats = main(
        [
            "--input_fasta", str(fasta),
            "--k", "3",
            "--db", str(db_path),
            "--metadata_tsv", str(tsv),
        ]
    )

    assert stats.proteins == 2
    assert stats.kmers == 10
    assert tsv.exists()
    assert (tmp_path / "meta" / "metadata.parquet").exists()
    assert (tmp_path / "kmer_index_summary.txt").exists()

    con = kmer_db_module.connect(db_path)
    try:
        assert kmer_db_module.count_rows(con) == (2, 10)
    finally:
        con.close()


@pytest.mark.parametrize("k", ["three", "0", "-2"])
def test_cli_rejects_bad_k_before_any_io(tmp_path, write_fasta, k):
    fasta = write_fasta([(UNIPROT_HEADER, "MKV")])
    db_path = tmp_path / "never.duckdb"

    with pytest.raises(SystemExit) as excinfo:
        main(["--input_fasta", str(fasta), "--k", k, "--db", str(db_path)])

    assert excinfo.value.code == 2
    assert not db_path.exists()


def test_cli_missing_input_exits_without_database(tmp_path):
    db_path = tmp_path / "never.duckdb"

    with pytest.raises(SystemExit) as excinfo:
        main(["--input_fasta", str(tmp_path / "missing.fa"), "--k", "3", "--db", str(db_path)])

    assert str(excinfo.value.code).startswith("[ERROR]")
    assert not db_path.exists()


def test_cli_overwrite(tmp_path, write_fasta):
    fasta = write_fasta([(UNIPROT_HEADER, "MKVLA")])
    db_path = tmp_path / "out.duckdb"
    args = ["--input_fasta", str(fasta), "--k", "2", "--db", str(db_path)]

    main(args)
    main(args)
    main(args + ["--overwrite", "--no_index"])

    con = kmer_db_module.connect(db_path)
    try:
        assert kmer_db_module.count_rows(con) == (1, 4)
    finally:
        con.close()


def test_export_metadata(con, tmp_path, write_fasta):
    fasta = write_fasta([(UNIPROT_HEADER, "MKV"), ("bare_id", "MK")])
    ingest_fasta(con, fasta, 2)

    tsv, parquet = export_metadata(con, str(tmp_path / "metadata.tsv"))

    df = pd.read_csv(tsv, sep="\t", keep_default_na=False)
    assert list(df["protein_id"]) == ["P1", "bare_id"]
    assert list(df["taxon_id"]) == [9606, 0]
    assert list(df["gene"]) == ["ABC", ""]
    assert os.path.exists(parquet)
    assert len(pd.read_parquet(parquet)) == 2


def test_cli_unopenable_database_exits_with_error(tmp_path, write_fasta):
    fasta = write_fasta([(UNIPROT_HEADER, "MKV")])
    db_path = tmp_path / "no_such_dir" / "out.duckdb"

    with pytest.raises(SystemExit) as excinfo:
        main(["--input_fasta", str(fasta), "--k", "2", "--db", str(db_path)])

    assert str(excinfo.value.code).startswith("[ERROR]")


def test_run_summary_reports_header_gaps(tmp_path, write_fasta):
    fasta = write_fasta([(UNIPROT_HEADER, "MKV"), ("bare_id", "M")])
    db_path = tmp_path / "out.duckdb"

    main(["--input_fasta", str(fasta), "--k", "2", "--db", str(db_path)])

    summary = (tmp_path / "kmer_index_summary.txt").read_text()
    assert "Indexed 2 proteins into 2 k-mers" in summary
    assert "Sequences shorter than k (no k-mers): 1" in summary
    assert "Headers without gene: 1" in summary
