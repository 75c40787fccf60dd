import pytest

import kmer_db_module

UNIPROT_HEADER = "sp|P1|NAME_HUMAN Some Name OS=Homo sapiens OX=9606 GN=ABC PE=1 SV=2"


@pytest.fixture
def write_fasta(tmp_path):
    """Write (header, sequence) pairs to a FASTA file and return its path."""

    def _write(records, name="input.fa"):
        path = tmp_path / name
        with open(path, "w") as f:
            for header, seq in records:
                f.write(f">{header}\n")
                for i in range(0, len(seq), 60):
                    f.write(seq[i : i + 60] + "\n")
        return path

    return _write


@pytest.fixture
def con(tmp_path):
    connection = kmer_db_module.connect(tmp_path / "test.duckdb")
    yield connection
    connection.close()
