"""Data models shared by the readers, engines and CLI."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from numbers import Integral, Real
from typing import Any

import pandas as pd


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


# ── Cells ────────────────────────────────────────────────────────


class CellKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    FORMULA = "formula"
    EMPTY = "empty"


@dataclass(frozen=True)
class CellValue:
    """A typed spreadsheet cell.

    ``FORMULA`` cells hold the formula text, leading ``=`` included.
    """

    kind: CellKind
    value: Any = None

    @classmethod
    def empty(cls) -> CellValue:
        return cls(CellKind.EMPTY)

    @classmethod
    def string(cls, text: str) -> CellValue:
        return cls(CellKind.STRING, text)

    @classmethod
    def formula(cls, text: str) -> CellValue:
        return cls(CellKind.FORMULA, text)

    @classmethod
    def from_python(cls, value: Any) -> CellValue:
        """Tag a plain Python value as read from a workbook (no formula detection)."""
        if value is None:
            return cls.empty()
        try:
            if pd.isna(value):
                return cls.empty()
        except (TypeError, ValueError):
            pass
        if pd.api.types.is_bool(value):
            return cls(CellKind.BOOLEAN, bool(value))
        if isinstance(value, pd.Timestamp):
            return cls(CellKind.DATE, value.to_pydatetime())
        if isinstance(value, (datetime, date, time)):
            return cls(CellKind.DATE, value)
        if isinstance(value, Real):
            item = getattr(value, "item", None)
            return cls(CellKind.NUMBER, item() if callable(item) else value)
        if isinstance(value, str):
            return cls.string(value) if value != "" else cls.empty()
        return cls.string(str(value))

    @property
    def is_empty(self) -> bool:
        return self.kind is CellKind.EMPTY

    @property
    def is_formula(self) -> bool:
        return self.kind is CellKind.FORMULA

    def as_text(self) -> str:
        if self.kind is CellKind.EMPTY:
            return ""
        if self.kind is CellKind.NUMBER and isinstance(self.value, float):
            if self.value.is_integer():
                return str(int(self.value))
        if self.kind is CellKind.BOOLEAN:
            return "true" if self.value else "false"
        return str(self.value)


# ── Sheets ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class SheetRange:
    """Zero-based, inclusive bounds of a sheet's populated rectangle."""

    min_row: int = 0
    max_row: int = 0
    min_col: int = 0
    max_col: int = 0

    def __post_init__(self) -> None:
        for name in ("min_row", "max_row", "min_col", "max_col"):
            _to_non_negative_int(getattr(self, name), name)
        if self.max_row < self.min_row:
            raise ValueError("max_row must be >= min_row")
        if self.max_col < self.min_col:
            raise ValueError("max_col must be >= min_col")

    @property
    def columns(self) -> range:
        return range(self.min_col, self.max_col + 1)


@dataclass
class SheetData:
    """One sheet's populated cells, addressed by zero-based ``(row, col)``."""

    file: str
    sheet_name: str
    range: SheetRange
    cells: dict[tuple[int, int], CellValue] = field(default_factory=dict)
    column_widths: dict[int, float] = field(default_factory=dict)

    def cell(self, row: int, col: int) -> CellValue:
        return self.cells.get((row, col), CellValue.empty())

    def row_text(self, row: int) -> list[str]:
        """Return the string form of every column in the sheet's range at *row*."""
        return [self.cell(row, col).as_text() for col in self.range.columns]


# ── Results ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class FileError:
    file: str
    error: str

    def to_dict(self) -> dict[str, str]:
        return {"file": self.file, "error": self.error}


@dataclass
class HeaderSet:
    file: str
    headers: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.headers = _to_string_list(self.headers, "headers")


@dataclass
class ComparisonRow:
    file: str
    presence: dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"file": self.file, "headers": dict(self.presence)}


@dataclass
class ComparisonResult:
    success: bool
    all_headers: list[str] = field(default_factory=list)
    comparison: list[ComparisonRow] = field(default_factory=list)
    errors: list[FileError] = field(default_factory=list)
    message: str = ""

    def __post_init__(self) -> None:
        self.all_headers = _to_string_list(self.all_headers, "all_headers")

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "allHeaders": list(self.all_headers),
            "comparison": [row.to_dict() for row in self.comparison],
            "errors": [err.to_dict() for err in self.errors],
        }
        if self.message:
            payload["message"] = self.message
        return payload

    def to_frame(self) -> pd.DataFrame:
        """Presence matrix: one row per file, one boolean column per header."""
        frame = pd.DataFrame(
            [[row.presence.get(h, False) for h in self.all_headers] for row in self.comparison],
            columns=pd.Index(self.all_headers, dtype="object"),
            index=pd.Index([row.file for row in self.comparison], name="file"),
            dtype="bool",
        )
        return frame


@dataclass
class MergedGrid:
    """In-progress output sheet; row 0 is the header row."""

    cells: dict[tuple[int, int], CellValue] = field(default_factory=dict)
    template_length: int = 0
    next_row: int = 1
    column_widths: dict[int, float] = field(default_factory=dict)

    @property
    def rows_written(self) -> int:
        return self.next_row - 1

    @property
    def range(self) -> SheetRange:
        return SheetRange(0, self.next_row - 1, 0, self.template_length)

    def header_row(self) -> list[str]:
        return [self.cells.get((0, c), CellValue.empty()).as_text() for c in self.range.columns]


@dataclass
class MergeResult:
    success: bool
    file_path: str = ""
    errors: list[FileError] = field(default_factory=list)
    message: str = ""
    rows_written: int = 0
    files_merged: int = 0

    def __post_init__(self) -> None:
        self.rows_written = _to_non_negative_int(self.rows_written, "rows_written")
        self.files_merged = _to_non_negative_int(self.files_merged, "files_merged")

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "filePath": self.file_path,
            "errors": [err.to_dict() for err in self.errors],
            "rowsWritten": self.rows_written,
            "filesMerged": self.files_merged,
        }
        if self.message:
            payload["message"] = self.message
        return payload
