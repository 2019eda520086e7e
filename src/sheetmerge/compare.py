"""Header comparison across files. Read-only and deterministic."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from sheetmerge.io import read_regions
from sheetmerge.models import ComparisonResult, ComparisonRow, FileError, HeaderSet, SheetData
from sheetmerge.storage import FileStore, resolve_sources

logger = logging.getLogger(__name__)

NO_VALID_FILES_MESSAGE = "None of the files could be read at the requested sheet"


def build_comparison(header_sets: Sequence[HeaderSet]) -> tuple[list[str], list[ComparisonRow]]:
    """Return the sorted universal header list and one presence row per file."""
    universe: set[str] = set()
    for header_set in header_sets:
        universe.update(header_set.headers)
    all_headers = sorted(universe)

    rows: list[ComparisonRow] = []
    for header_set in header_sets:
        present = set(header_set.headers)
        rows.append(
            ComparisonRow(
                file=header_set.file,
                presence={header: header in present for header in all_headers},
            )
        )
    return all_headers, rows


def compare_headers(
    files: Sequence[str | Path],
    sheet_index: int,
    header_row_index: int,
    *,
    store: FileStore | None = None,
    workers: int = 1,
) -> ComparisonResult:
    """Compare the header row of every file against the union of all headers.

    Files that cannot be read are reported in ``errors`` and left out of the
    matrix. Fails only when no file could be read.
    """
    sources = resolve_sources(files, store)
    header_sets: list[HeaderSet] = []
    errors: list[FileError] = []
    for item in read_regions(sources, sheet_index, header_row_index, workers=workers):
        if isinstance(item, FileError):
            errors.append(item)
            continue
        header_sets.append(_header_set(item, header_row_index))

    if not header_sets:
        logger.warning("Compare failed: %d of %d files unreadable", len(errors), len(sources))
        return ComparisonResult(success=False, errors=errors, message=NO_VALID_FILES_MESSAGE)

    all_headers, rows = build_comparison(header_sets)
    logger.debug("Compared %d files over %d distinct headers", len(rows), len(all_headers))
    return ComparisonResult(
        success=True,
        all_headers=all_headers,
        comparison=rows,
        errors=errors,
    )


def _header_set(sheet: SheetData, header_row_index: int) -> HeaderSet:
    return HeaderSet(file=sheet.file, headers=sheet.row_text(header_row_index))
