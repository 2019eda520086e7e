"""sheet-merge — Compare spreadsheet headers and merge rows into one workbook."""

__version__ = "0.2.0"

PROVENANCE_HEADER: str = "source file"
"""Header of the synthetic trailing column naming each row's source file."""

MERGED_SHEET_NAME: str = "Merged Data"
