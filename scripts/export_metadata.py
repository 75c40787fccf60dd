import os

from protein_header_module import METADATA_COLUMNS


def export_metadata(con, output_tsv):
    """
    Write the metadata table to a TSV file and a Parquet file next to it.

    Args:
        con (duckdb.DuckDBPyConnection): Connection holding the metadata table.
        output_tsv (str): Path to output TSV file (Parquet is also created).

    Returns:
        tuple: (tsv_path, parquet_path)
    """
    cols = ", ".join(METADATA_COLUMNS)
    df = con.execute(
        f"SELECT {cols} FROM metadata ORDER BY protein_number"
    ).fetchdf()

    out_dir = os.path.dirname(output_tsv)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)

    df.to_csv(output_tsv, sep="\t", index=False)
    print(f"Metadata TSV written to: {output_tsv}")

    # Parquet
    parquet_file = os.path.splitext(output_tsv)[0] + ".parquet"
    df.to_parquet(parquet_file, index=False)
    print(f"Metadata Parquet written to: {parquet_file}")

    return output_tsv, parquet_file
