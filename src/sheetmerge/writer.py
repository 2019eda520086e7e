"""Workbook writer — serializes a merged grid to a single-sheet .xlsx."""

from __future__ import annotations

import logging
from pathlib import Path

from openpyxl import Workbook
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import IllegalCharacterError
from openpyxl.worksheet.worksheet import Worksheet

from sheetmerge import MERGED_SHEET_NAME
from sheetmerge.errors import OutputWriteError
from sheetmerge.models import CellKind, CellValue, MergedGrid

logger = logging.getLogger(__name__)

DEFAULT_COLUMN_WIDTH = 10


def _write_cell(ws: Worksheet, row: int, col: int, cell: CellValue) -> None:
    target = ws.cell(row=row + 1, column=col + 1)
    if cell.kind is CellKind.EMPTY:
        return
    target.value = cell.value
    if cell.kind is CellKind.STRING:
        # openpyxl would otherwise store "=..." text as a formula.
        target.data_type = "s"


def _apply_column_widths(ws: Worksheet, widths: dict[int, float]) -> None:
    for col, width in sorted(widths.items()):
        ws.column_dimensions[get_column_letter(col + 1)].width = width


def grid_to_workbook(grid: MergedGrid, sheet_name: str = MERGED_SHEET_NAME) -> Workbook:
    """Build the output workbook; cells outside the grid's range are not written."""
    wb = Workbook()
    ws = wb.active
    if ws is None:
        ws = wb.create_sheet()
    ws.title = sheet_name

    bounds = grid.range
    for (row, col), cell in sorted(grid.cells.items()):
        if row > bounds.max_row or col > bounds.max_col:
            continue
        _write_cell(ws, row, col, cell)
    _apply_column_widths(ws, grid.column_widths)
    return wb


def write_workbook(grid: MergedGrid, path: Path) -> Path:
    """Save *grid* to *path* via a temp file so readers never see a partial file.

    Raises
    ------
    OutputWriteError
        If the workbook cannot be written.
    """
    path = Path(path)
    tmp_path = path.with_name(f"{path.stem}.tmp{path.suffix}")
    try:
        wb = grid_to_workbook(grid)
        wb.save(tmp_path)
        tmp_path.replace(path)
    except (OSError, ValueError, IllegalCharacterError) as exc:
        tmp_path.unlink(missing_ok=True)
        raise OutputWriteError(f"Could not write {path.name}: {exc}") from exc
    logger.info("Wrote %d data rows to %s", grid.rows_written, path)
    return path
