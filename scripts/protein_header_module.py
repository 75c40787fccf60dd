"""
protein_header_module.py

This module extracts structured metadata from UniProt-style FASTA headers.

Functions:
- extract_header_metadata: Parses one header line into a metadata dictionary.
- missing_header_fields: Lists the recognized fields that are absent from a header.

Each field is matched on its own, so a header that lacks e.g. GN= or OX=
still yields every other field. Absent fields fall back to the defaults in
HEADER_FIELDS.

Input Header Format:
    >sp|<accession>|<entry_name> <protein name> OS=<species> OX=<taxon_id> GN=<gene> PE=<level> SV=<version>
"""

import re

# Free text running up to the next "XX=" marker or the end of the line.
_TEXT_VALUE = r"(.*?)(?=\s+[A-Z]{2}=|\s*$)"

# Upper bound of the INTEGER columns of the metadata table.
MAX_INT_FIELD = 2**31 - 1


def _bounded_int(value):
    number = int(value)
    if number > MAX_INT_FIELD:
        return None
    return number


# field name -> (pattern, converter, default)
# A converter returning None marks the value as unusable; the default is stored instead.
HEADER_FIELDS = {
    "protein_id": (re.compile(r"^[^|\s]*\|([^|\s]+)\|"), str, None),
    "protein_name": (re.compile(r"^\S+\s+(.*?)\s*OS="), str, ""),
    "species": (re.compile(r"\bOS=" + _TEXT_VALUE), str, ""),
    "taxon_id": (re.compile(r"\bOX=(\d+)"), _bounded_int, 0),
    "gene": (re.compile(r"\bGN=" + _TEXT_VALUE), str, ""),
    "pe_level": (re.compile(r"\bPE=(\d+)"), _bounded_int, 0),
    "sequence_version": (re.compile(r"\bSV=(\d+)(?=\s|$)"), _bounded_int, 0),
}

METADATA_COLUMNS = ["protein_number"] + list(HEADER_FIELDS)


def _identifier(header):
    tokens = header.lstrip(">").split(maxsplit=1)
    return tokens[0] if tokens else ""


def _field_value(field, header):
    pattern, convert, _ = HEADER_FIELDS[field]
    # protein_id only ever comes from the identifier token
    text = _identifier(header) if field == "protein_id" else header
    match = pattern.search(text)
    if match is None:
        return None
    value = match.group(1).strip()
    if not value:
        return None
    return convert(value)


def extract_header_metadata(header):
    """
    Parse a FASTA header into its metadata fields.

    Args:
        header (str): Identifier plus optional description, with or without the leading '>'.

    Returns:
        dict: protein_id, protein_name, species, taxon_id, gene, pe_level and
              sequence_version. Fields not present in the header, or numbers too
              large to store, take their default; protein_id falls back to the
              bare identifier token.
    """
    header = header.lstrip(">").strip()
    metadata = {}
    for field, (_, _, default) in HEADER_FIELDS.items():
        value = _field_value(field, header)
        if value is not None:
            metadata[field] = value
        elif field == "protein_id":
            metadata[field] = _identifier(header)
        else:
            metadata[field] = default
    return metadata


def missing_header_fields(header):
    """Return the names of recognized fields that are absent from *header* or unusable."""
    header = header.lstrip(">").strip()
    return [field for field in HEADER_FIELDS if _field_value(field, header) is None]
