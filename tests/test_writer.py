from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest
from openpyxl import load_workbook

from sheetmerge import MERGED_SHEET_NAME
from sheetmerge.errors import OutputWriteError
from sheetmerge.models import CellValue, MergedGrid
from sheetmerge.writer import grid_to_workbook, write_workbook


def _grid() -> MergedGrid:
    grid = MergedGrid(template_length=2, next_row=2)
    grid.cells.update(
        {
            (0, 0): CellValue.string("when"),
            (0, 1): CellValue.string("flag"),
            (0, 2): CellValue.string("source file"),
            (1, 0): CellValue.from_python(datetime(2024, 5, 6, 7, 8)),
            (1, 1): CellValue.from_python(True),
            (1, 2): CellValue.string("a.xlsx"),
        }
    )
    return grid


def test_write_workbook_round_trips_typed_values(tmp_path: Path) -> None:
    path = write_workbook(_grid(), tmp_path / "out.xlsx")

    wb = load_workbook(path)
    assert wb.sheetnames == [MERGED_SHEET_NAME]
    ws = wb[MERGED_SHEET_NAME]
    assert ws.dimensions == "A1:C2"
    assert ws["A2"].value == datetime(2024, 5, 6, 7, 8)
    assert ws["B2"].value is True
    assert not (tmp_path / "out.tmp.xlsx").exists()


def test_cells_outside_declared_range_are_dropped() -> None:
    grid = _grid()
    grid.cells[(1, 5)] = CellValue.string("stray")
    grid.cells[(4, 0)] = CellValue.string("stray")

    ws = grid_to_workbook(grid).active

    assert ws is not None
    assert ws.max_column == 3
    assert ws.max_row == 2


def test_column_widths_are_applied() -> None:
    grid = _grid()
    grid.column_widths = {0: 18.0, 2: 10}

    ws = grid_to_workbook(grid).active

    assert ws is not None
    assert ws.column_dimensions["A"].width == 18.0
    assert ws.column_dimensions["C"].width == 10


def test_write_workbook_wraps_os_errors(tmp_path: Path) -> None:
    with pytest.raises(OutputWriteError, match="out.xlsx"):
        write_workbook(_grid(), tmp_path / "no_such_dir" / "out.xlsx")


def test_values_openpyxl_rejects_become_output_write_errors(tmp_path: Path) -> None:
    grid = _grid()
    grid.cells[(1, 1)] = CellValue.string("x\x01y")

    with pytest.raises(OutputWriteError, match="out.xlsx"):
        write_workbook(grid, tmp_path / "out.xlsx")

    assert not (tmp_path / "out.xlsx").exists()
    assert not (tmp_path / "out.tmp.xlsx").exists()
