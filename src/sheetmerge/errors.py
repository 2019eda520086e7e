"""Exception types raised by the readers and the merge/compare engines."""

from __future__ import annotations


class SheetMergeError(Exception):
    """Base class for every error raised by sheet-merge."""


# ── Per-file (collected, never fatal on their own) ───────────────


class FileReadError(SheetMergeError):
    """A single input file could not supply the requested sheet/header row."""


class SheetNotFound(FileReadError):
    def __init__(self, sheet_index: int, sheet_count: int) -> None:
        self.sheet_index = sheet_index
        self.sheet_count = sheet_count
        super().__init__(f"Sheet {sheet_index + 1} does not exist")


class HeaderRowOutOfRange(FileReadError):
    def __init__(self, header_row_index: int, last_row_index: int) -> None:
        self.header_row_index = header_row_index
        self.last_row_index = last_row_index
        super().__init__(f"Header row {header_row_index + 1} is out of range")


class ReadFailure(FileReadError):
    """The file is missing, unsupported, or not parseable as a spreadsheet."""

    def __init__(self, cause: object) -> None:
        self.cause = cause
        super().__init__(f"Failed to read file: {cause}")


# ── Call-level ───────────────────────────────────────────────────


class NoValidFiles(SheetMergeError):
    """Every input file failed to read."""


class NoDataAfterMerge(SheetMergeError):
    """Inputs were readable but contributed no non-empty data rows."""


class OutputWriteError(SheetMergeError):
    """The merged workbook could not be serialized."""
