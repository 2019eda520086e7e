"""Merge engine — concatenate data rows from many sheets into one grid.

Columns are aligned by position, not by header name: every copied cell keeps
its source column index, and the longest header row seen is used as the label
row of the output. Rows keep file order, then top-to-bottom order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from sheetmerge import PROVENANCE_HEADER
from sheetmerge.errors import NoDataAfterMerge, NoValidFiles, OutputWriteError
from sheetmerge.formula import rewrite_formula
from sheetmerge.io import read_regions
from sheetmerge.models import CellValue, FileError, MergedGrid, MergeResult, SheetData
from sheetmerge.storage import FileStore, resolve_sources
from sheetmerge.utils import merged_filename
from sheetmerge.writer import DEFAULT_COLUMN_WIDTH, write_workbook

logger = logging.getLogger(__name__)

NO_FILES_MESSAGE = "No spreadsheet files found"
NO_VALID_FILES_MESSAGE = "No valid files to merge"
NO_DATA_MESSAGE = "No data rows after merge"


def header_cells(sheet: SheetData, header_row_index: int) -> list[CellValue]:
    """Header row cells across the sheet's own column range, blanks included."""
    return [sheet.cell(header_row_index, col) for col in sheet.range.columns]


def select_template(headers: Iterable[list[CellValue]]) -> list[CellValue]:
    """Return the first header row with the strictly greatest length."""
    template: list[CellValue] | None = None
    for header in headers:
        if template is None or len(header) > len(template):
            template = header
    return template or []


def start_grid(template: Sequence[CellValue]) -> MergedGrid:
    grid = MergedGrid(template_length=len(template))
    for col, cell in enumerate(template):
        # Header labels are written as text, like the stringified header row.
        grid.cells[(0, col)] = CellValue.string(cell.as_text()) if not cell.is_empty else cell
    grid.cells[(0, len(template))] = CellValue.string(PROVENANCE_HEADER)
    return grid


def append_sheet(grid: MergedGrid, sheet: SheetData, header_row_index: int) -> int:
    """Copy the non-empty rows below the header row into *grid*.

    Formula rows are shifted to their new position. Returns the number of rows
    appended.
    """
    appended = 0
    for src_row in range(header_row_index + 1, sheet.range.max_row + 1):
        dest_row = grid.next_row
        row_offset = dest_row - src_row
        copied = False
        for col in sheet.range.columns:
            cell = sheet.cells.get((src_row, col))
            if cell is None:
                continue
            if cell.is_formula:
                cell = CellValue.formula(rewrite_formula(cell.value, row_offset, 0))
            grid.cells[(dest_row, col)] = cell
            copied = True
        if not copied:
            continue
        grid.cells[(dest_row, grid.template_length)] = CellValue.string(sheet.file)
        grid.next_row += 1
        appended += 1
    return appended


def output_column_widths(first: SheetData, template_length: int) -> dict[int, float]:
    """Widths from the first sheet, padded up to the provenance column."""
    if not first.column_widths:
        return {}
    widths = dict(first.column_widths)
    for col in range(template_length + 1):
        widths.setdefault(col, DEFAULT_COLUMN_WIDTH)
    return widths


def build_merged_grid(sheets: Sequence[SheetData], header_row_index: int) -> MergedGrid:
    """Fold *sheets*, in order, into a single grid.

    Raises
    ------
    NoValidFiles
        If *sheets* is empty.
    NoDataAfterMerge
        If no sheet contributed a non-empty data row.
    """
    if not sheets:
        raise NoValidFiles(NO_VALID_FILES_MESSAGE)

    template = select_template(header_cells(s, header_row_index) for s in sheets)
    grid = start_grid(template)
    for sheet in sheets:
        appended = append_sheet(grid, sheet, header_row_index)
        logger.debug("Appended %d rows from %s", appended, sheet.file)

    if grid.rows_written == 0:
        raise NoDataAfterMerge(NO_DATA_MESSAGE)

    grid.column_widths = output_column_widths(sheets[0], grid.template_length)
    return grid


def merge_files(
    files: Sequence[str | Path],
    sheet_index: int,
    header_row_index: int,
    *,
    store: FileStore,
    workers: int = 1,
) -> MergeResult:
    """Merge the given sheet of every file into a new workbook inside *store*.

    Unreadable files are skipped and reported in ``errors``; the call fails only
    when nothing could be merged or the output could not be written.
    """
    if not files:
        return MergeResult(success=False, message=NO_FILES_MESSAGE)

    sheets: list[SheetData] = []
    errors: list[FileError] = []
    for item in read_regions(
        resolve_sources(files, store), sheet_index, header_row_index, workers=workers
    ):
        if isinstance(item, FileError):
            errors.append(item)
        else:
            sheets.append(item)

    try:
        grid = build_merged_grid(sheets, header_row_index)
    except (NoValidFiles, NoDataAfterMerge) as exc:
        logger.warning("Merge failed: %s", exc)
        return MergeResult(success=False, errors=errors, message=str(exc))

    filename = merged_filename()
    try:
        write_workbook(grid, store.path_for(filename))
    except OutputWriteError as exc:
        logger.error("Merge output failed: %s", exc)
        return MergeResult(
            success=False,
            errors=errors,
            message=f"Error while merging spreadsheets: {exc}",
        )

    return MergeResult(
        success=True,
        file_path=filename,
        errors=errors,
        rows_written=grid.rows_written,
        files_merged=len(sheets),
    )
