"""I/O helpers — load one sheet from a workbook, write JSON artifacts."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl import load_workbook
from openpyxl.worksheet.formula import ArrayFormula
from openpyxl.worksheet.worksheet import Worksheet

from sheetmerge.errors import FileReadError, HeaderRowOutOfRange, ReadFailure, SheetNotFound
from sheetmerge.models import CellValue, FileError, SheetData, SheetRange

logger = logging.getLogger(__name__)

OPENPYXL_SUFFIXES = (".xlsx", ".xlsm", ".xltx", ".xltm")
XLRD_SUFFIXES = (".xls",)
SUPPORTED_SUFFIXES = OPENPYXL_SUFFIXES + XLRD_SUFFIXES

# ── Loading ──────────────────────────────────────────────────────


def _openpyxl_cell(cell: Any) -> CellValue:
    value = cell.value
    if cell.data_type == "f":
        if isinstance(value, ArrayFormula):
            value = value.text
        if isinstance(value, str):
            return CellValue.formula(value)
    if cell.data_type == "s" and isinstance(value, str):
        # Text that merely looks like a formula stays text.
        return CellValue.string(value) if value else CellValue.empty()
    return CellValue.from_python(value)


def _column_widths(ws: Worksheet) -> dict[int, float]:
    widths: dict[int, float] = {}
    for dim in ws.column_dimensions.values():
        if not dim.width:
            continue
        dim.reindex()
        for col in range(dim.min, dim.max + 1):
            widths[col - 1] = float(dim.width)
    return widths


def _load_openpyxl(path: Path, sheet_index: int, label: str) -> SheetData:
    try:
        wb = load_workbook(path, data_only=False)
    except Exception as exc:
        raise ReadFailure(exc) from exc

    try:
        names = wb.sheetnames
        if sheet_index >= len(names):
            raise SheetNotFound(sheet_index, len(names))
        ws = wb[names[sheet_index]]

        cells: dict[tuple[int, int], CellValue] = {}
        for row in ws.iter_rows(
            min_row=ws.min_row, max_row=ws.max_row,
            min_col=ws.min_column, max_col=ws.max_column,
        ):
            for cell in row:
                tagged = _openpyxl_cell(cell)
                if not tagged.is_empty:
                    cells[(cell.row - 1, cell.column - 1)] = tagged

        sheet_range = SheetRange(
            min_row=ws.min_row - 1,
            max_row=ws.max_row - 1,
            min_col=ws.min_column - 1,
            max_col=ws.max_column - 1,
        )
        return SheetData(
            file=label,
            sheet_name=ws.title,
            range=sheet_range,
            cells=cells,
            column_widths=_column_widths(ws),
        )
    finally:
        wb.close()


def _load_xlrd(path: Path, sheet_index: int, label: str) -> SheetData:
    try:
        book = pd.ExcelFile(path, engine="xlrd")
    except ImportError as exc:
        raise ReadFailure(
            "Unsupported .xls input unless 'xlrd' is installed. "
            "Either convert to .xlsx or add dependency: pip install xlrd"
        ) from exc
    except Exception as exc:
        raise ReadFailure(exc) from exc

    with book:
        names = [str(name) for name in book.sheet_names]
        if sheet_index >= len(names):
            raise SheetNotFound(sheet_index, len(names))
        try:
            frame = book.parse(names[sheet_index], header=None)
        except Exception as exc:
            raise ReadFailure(exc) from exc

    cells: dict[tuple[int, int], CellValue] = {}
    for r_idx, row_vals in enumerate(frame.itertuples(index=False, name=None)):
        for c_idx, val in enumerate(row_vals):
            tagged = CellValue.from_python(val)
            if not tagged.is_empty:
                cells[(r_idx, c_idx)] = tagged

    n_rows, n_cols = frame.shape
    sheet_range = SheetRange(0, max(n_rows - 1, 0), 0, max(n_cols - 1, 0))
    return SheetData(file=label, sheet_name=names[sheet_index], range=sheet_range, cells=cells)


def load_sheet(path: Path, sheet_index: int, *, label: str | None = None) -> SheetData:
    """Load the zero-based *sheet_index* of the workbook at *path*.

    Raises
    ------
    SheetNotFound
        If the workbook has fewer sheets than requested.
    ReadFailure
        If *path* is missing, not a file, of an unsupported type, or unparseable.
    """
    path = Path(path)
    label = label if label is not None else path.name
    if not path.exists():
        raise ReadFailure(f"Input file not found: {path}")
    if not path.is_file():
        raise ReadFailure(f"Input path is not a file: {path}")

    suffix = path.suffix.lower()
    logger.debug("Loading sheet %d of %s", sheet_index, path)
    if suffix in OPENPYXL_SUFFIXES:
        return _load_openpyxl(path, sheet_index, label)
    if suffix in XLRD_SUFFIXES:
        return _load_xlrd(path, sheet_index, label)
    raise ReadFailure(f"Unsupported file type: {suffix!r}. Use .xlsx or .xls")


def _check_header_row(sheet: SheetData, header_row_index: int) -> None:
    if not sheet.cells or header_row_index > sheet.range.max_row:
        last = sheet.range.max_row if sheet.cells else -1
        raise HeaderRowOutOfRange(header_row_index, last)


def read_data_region(
    path: Path, sheet_index: int, header_row_index: int, *, label: str | None = None
) -> SheetData:
    """Load a sheet for merging, checking that *header_row_index* lies inside it."""
    sheet = load_sheet(path, sheet_index, label=label)
    _check_header_row(sheet, header_row_index)
    return sheet


def read_headers(path: Path, sheet_index: int, header_row_index: int) -> list[str]:
    """Return the header row as strings, one per column of the sheet's range."""
    sheet = read_data_region(path, sheet_index, header_row_index)
    return sheet.row_text(header_row_index)


def try_read_headers(
    path: Path, sheet_index: int, header_row_index: int
) -> tuple[list[str], str | None]:
    """Like :func:`read_headers` but returns ``([], message)`` instead of raising."""
    try:
        return read_headers(path, sheet_index, header_row_index), None
    except FileReadError as exc:
        return [], str(exc)


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    tmp_path.replace(path)
    return path


# ── Batches ──────────────────────────────────────────────────────


def _read_one(
    source: tuple[str, Path], sheet_index: int, header_row_index: int
) -> SheetData | FileError:
    name, path = source
    try:
        return read_data_region(path, sheet_index, header_row_index, label=name)
    except FileReadError as exc:
        logger.info("Skipping %s: %s", name, exc)
        return FileError(file=name, error=str(exc))


def read_regions(
    sources: Sequence[tuple[str, Path]],
    sheet_index: int,
    header_row_index: int,
    *,
    workers: int = 1,
) -> list[SheetData | FileError]:
    """Read every ``(name, path)`` in *sources*, keeping input order.

    Per-file failures come back as :class:`FileError` entries in place of the
    sheet. With ``workers > 1`` files are parsed on a thread pool; results are
    still returned in input order.
    """
    def read(source: tuple[str, Path]) -> SheetData | FileError:
        return _read_one(source, sheet_index, header_row_index)

    if workers <= 1 or len(sources) <= 1:
        return [read(source) for source in sources]
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(read, sources))
