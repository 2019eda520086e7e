from __future__ import annotations

import pytest

from sheetmerge.compare import NO_VALID_FILES_MESSAGE, build_comparison, compare_headers
from sheetmerge.models import HeaderSet
from sheetmerge.storage import FileStore


def test_universal_headers_are_sorted_and_unique(make_xlsx, store: FileStore) -> None:  # type: ignore[no-untyped-def]
    make_xlsx("a.xlsx", [["Name", "Age", "Name"]])
    make_xlsx("b.xlsx", [["City", "Age", "age"]])

    result = compare_headers(["a.xlsx", "b.xlsx"], 0, 0, store=store)

    assert result.success
    assert result.all_headers == ["Age", "City", "Name", "age"]
    assert result.all_headers == sorted(set(result.all_headers))


def test_presence_is_position_independent(make_xlsx, store: FileStore) -> None:  # type: ignore[no-untyped-def]
    make_xlsx("a.xlsx", [["x", "y"]])
    make_xlsx("b.xlsx", [["y", "z"]])

    result = compare_headers(["a.xlsx", "b.xlsx"], 0, 0, store=store)

    rows = {row.file: row.presence for row in result.comparison}
    assert rows["a.xlsx"] == {"x": True, "y": True, "z": False}
    assert rows["b.xlsx"] == {"x": False, "y": True, "z": True}


def test_failures_are_reported_and_skipped(make_xlsx, store: FileStore) -> None:  # type: ignore[no-untyped-def]
    make_xlsx("ok.xlsx", [["a"], [1]])
    make_xlsx("short.xlsx", [["a"]])
    make_xlsx("one_sheet.xlsx", [["a"], [1], [2]])

    result = compare_headers(
        ["ok.xlsx", "short.xlsx", "missing.xlsx", "one_sheet.xlsx"], 0, 1, store=store
    )

    assert result.success
    assert [row.file for row in result.comparison] == ["ok.xlsx", "one_sheet.xlsx"]
    assert [err.file for err in result.errors] == ["short.xlsx", "missing.xlsx"]
    assert result.errors[0].error == "Header row 2 is out of range"
    assert result.errors[1].error.startswith("Failed to read file")


def test_all_files_failing_is_a_call_level_failure(make_xlsx, store: FileStore) -> None:  # type: ignore[no-untyped-def]
    make_xlsx("a.xlsx", [["a"]])

    result = compare_headers(["a.xlsx", "b.xlsx"], 3, 0, store=store)

    assert not result.success
    assert result.message == NO_VALID_FILES_MESSAGE
    assert result.comparison == []
    assert len(result.errors) == 2
    assert result.errors[0].error == "Sheet 4 does not exist"


def test_blank_header_cells_take_part_as_empty_strings(make_xlsx, store: FileStore) -> None:  # type: ignore[no-untyped-def]
    make_xlsx("a.xlsx", [["a", None, "c"]])

    result = compare_headers(["a.xlsx"], 0, 0, store=store)

    assert result.all_headers == ["", "a", "c"]


@pytest.mark.parametrize("workers", [1, 4])
def test_compare_is_idempotent(make_xlsx, store: FileStore, workers: int) -> None:  # type: ignore[no-untyped-def]
    make_xlsx("a.xlsx", [["b", "a"]])
    make_xlsx("b.xlsx", [["c", "a"]])
    files = ["b.xlsx", "a.xlsx"]

    first = compare_headers(files, 0, 0, store=store, workers=workers)
    second = compare_headers(files, 0, 0, store=store, workers=workers)

    assert first.to_dict() == second.to_dict()
    assert [row.file for row in first.comparison] == files


def test_compare_without_store_takes_paths(make_xlsx) -> None:  # type: ignore[no-untyped-def]
    path = make_xlsx("a.xlsx", [["h"]])

    result = compare_headers([path], 0, 0)

    assert result.comparison[0].file == "a.xlsx"


def test_build_comparison_on_header_sets() -> None:
    headers, rows = build_comparison([HeaderSet("f", ["b", "a"]), HeaderSet("g", [])])

    assert headers == ["a", "b"]
    assert rows[1].presence == {"a": False, "b": False}
