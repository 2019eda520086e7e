from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest
from openpyxl import Workbook

from sheetmerge.storage import FileStore

XlsxFactory = Callable[..., Path]


def _write_xlsx(
    path: Path,
    rows: Sequence[Sequence[Any]],
    *,
    title: str = "Sheet1",
    extra_sheets: int = 0,
    widths: dict[str, float] | None = None,
    text_cells: Sequence[tuple[int, int]] = (),
) -> Path:
    wb = Workbook()
    ws = wb.active
    assert ws is not None
    ws.title = title
    for r_idx, row in enumerate(rows, 1):
        for c_idx, value in enumerate(row, 1):
            if value is not None:
                ws.cell(row=r_idx, column=c_idx, value=value)
    for row, col in text_cells:
        ws.cell(row=row, column=col).data_type = "s"
    for letter, width in (widths or {}).items():
        ws.column_dimensions[letter].width = width
    for idx in range(extra_sheets):
        wb.create_sheet(f"Extra{idx + 1}")
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path


@pytest.fixture
def store(tmp_path: Path) -> FileStore:
    return FileStore(tmp_path / "uploads")


@pytest.fixture
def make_xlsx(store: FileStore) -> XlsxFactory:
    """Write a workbook into the store; rows use None for blank cells."""

    def _make(name: str, rows: Sequence[Sequence[Any]], **kwargs: Any) -> Path:
        return _write_xlsx(store.path_for(name), rows, **kwargs)

    return _make
