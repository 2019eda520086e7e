"""CLI entry point for sheet-merge."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table as RichTable

from sheetmerge import __version__
from sheetmerge.compare import compare_headers
from sheetmerge.io import try_read_headers, write_json
from sheetmerge.merge import NO_FILES_MESSAGE, merge_files
from sheetmerge.models import ComparisonResult, FileError
from sheetmerge.storage import FileStore

app = typer.Typer(
    name="sheetmerge",
    help="sheet-merge — Compare spreadsheet headers and merge rows into one workbook.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()

STORE_ENVVAR = "SHEETMERGE_STORE"


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"sheet-merge v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _store_option() -> Path:
    return typer.Option(
        Path("uploads"), "--store", "-s",
        help="Storage directory holding the uploaded spreadsheets.",
        envvar=STORE_ENVVAR,
    )


def _sheet_option() -> int:
    return typer.Option(1, "--sheet", min=1, help="Sheet number (1 = first sheet).")


def _header_row_option() -> int:
    return typer.Option(1, "--header-row", min=1, help="Header row number (1 = first row).")


def _workers_option() -> int:
    return typer.Option(1, "--workers", "-w", min=1, help="Files to read in parallel.")


def _quiet_option() -> bool:
    return typer.Option(False, "--quiet", "-q", help="Suppress informational output.")


def _select_files(store: FileStore, files: list[str] | None) -> list[str]:
    selected = list(files) if files else store.list_files()
    if not selected:
        _err(f"{NO_FILES_MESSAGE} in {store.root}")
        raise typer.Exit(code=2)
    return selected


def _print_file_errors(errors: list[FileError]) -> None:
    if not errors:
        return
    tbl = RichTable(title="Skipped files", show_lines=False)
    tbl.add_column("File", style="bold")
    tbl.add_column("Error", style="yellow")
    for item in errors:
        tbl.add_row(item.file, item.error)
    console.print(tbl)


def _comparison_table(result: ComparisonResult) -> RichTable:
    tbl = RichTable(title="Header Comparison", show_lines=True)
    tbl.add_column("File", style="bold")
    for header in result.all_headers:
        tbl.add_column(header or "[dim](blank)[/dim]", justify="center")
    for row in result.comparison:
        marks = [
            "[green]✓[/green]" if row.presence[h] else "[red]✗[/red]"
            for h in result.all_headers
        ]
        tbl.add_row(row.file, *marks)
    return tbl


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """sheet-merge CLI."""
    _configure_logging(verbose)


# ── Store commands ───────────────────────────────────────────────


@app.command()
def add(
    sources: list[Path] = typer.Argument(..., help="Spreadsheet files to upload."),
    store_dir: Path = _store_option(),
    quiet: bool = _quiet_option(),
) -> None:
    """Copy spreadsheets into the store under sanitized names."""
    echo = _printer(quiet)
    store = FileStore(store_dir)
    failed = 0
    for source in sources:
        try:
            stored = store.add(source)
        except (FileNotFoundError, ValueError, OSError) as exc:
            _err(str(exc))
            failed += 1
            continue
        echo(f"  {source.name} -> {stored}")
    if failed:
        raise typer.Exit(code=2)


@app.command("files")
def list_files(store_dir: Path = _store_option()) -> None:
    """List the spreadsheets in the store."""
    store = FileStore(store_dir)
    names = store.list_files()
    if not names:
        console.print(f"[dim]No spreadsheet files in {store.root}[/dim]")
        return
    for name in names:
        console.print(name)


@app.command()
def delete(
    name: str = typer.Argument(..., help="Stored file name to remove."),
    store_dir: Path = _store_option(),
) -> None:
    """Remove one file from the store."""
    store = FileStore(store_dir)
    if not store.exists(name):
        _err(f"File {name} not found")
        raise typer.Exit(code=1)
    store.delete(name)
    console.print(f"File {name} has been deleted")


@app.command()
def headers(
    name: str = typer.Argument(..., help="Stored file name to inspect."),
    store_dir: Path = _store_option(),
    sheet: int = _sheet_option(),
    header_row: int = _header_row_option(),
) -> None:
    """Print one file's header row, one cell per line."""
    store = FileStore(store_dir)
    row, error = try_read_headers(store.path_for(name), sheet - 1, header_row - 1)
    if error is not None:
        _err(f"{name}: {error}")
        raise typer.Exit(code=2)
    for position, header in enumerate(row, 1):
        typer.echo(f"{position}\t{header}")


# ── compare command ──────────────────────────────────────────────


@app.command()
def compare(
    files: list[str] | None = typer.Argument(
        None, help="Stored file names to compare (default: every stored file)."
    ),
    store_dir: Path = _store_option(),
    sheet: int = _sheet_option(),
    header_row: int = _header_row_option(),
    json_out: Path | None = typer.Option(None, "--json", help="Write the result as JSON."),
    csv_out: Path | None = typer.Option(
        None, "--csv", help="Write the presence matrix as CSV."
    ),
    workers: int = _workers_option(),
    quiet: bool = _quiet_option(),
) -> None:
    """Compare the header row of each file against every header seen."""
    echo = _printer(quiet)
    store = FileStore(store_dir)
    selected = _select_files(store, files)
    try:
        result = compare_headers(
            selected, sheet - 1, header_row - 1, store=store, workers=workers
        )
        if json_out:
            write_json(json_out, result.to_dict())
        if csv_out and result.success:
            csv_out.parent.mkdir(parents=True, exist_ok=True)
            result.to_frame().to_csv(csv_out)
    except Exception as exc:
        _err(f"Unexpected internal error: {exc}")
        raise typer.Exit(code=1)

    if not quiet:
        _print_file_errors(result.errors)
    if not result.success:
        _err(result.message)
        raise typer.Exit(code=2)
    if not quiet:
        console.print(_comparison_table(result))
    if json_out:
        echo(f"  JSON -> {json_out}")
    if csv_out:
        echo(f"  CSV  -> {csv_out}")


# ── merge command ────────────────────────────────────────────────


@app.command()
def merge(
    files: list[str] | None = typer.Argument(
        None, help="Stored file names to merge, in order (default: every stored file)."
    ),
    store_dir: Path = _store_option(),
    sheet: int = _sheet_option(),
    header_row: int = _header_row_option(),
    json_out: Path | None = typer.Option(None, "--json", help="Write the result as JSON."),
    workers: int = _workers_option(),
    quiet: bool = _quiet_option(),
) -> None:
    """Merge the data rows of each file into a new workbook in the store."""
    echo = _printer(quiet)
    store = FileStore(store_dir)
    selected = _select_files(store, files)

    if not quiet:
        console.print(Panel(
            f"[bold]sheet-merge[/bold] v{__version__}\n"
            f"Files: {len(selected)}  Sheet: {sheet}  Header row: {header_row}\n"
            f"Store: {store.root}",
            title="Merge Start", border_style="blue",
        ))

    echo("[blue]>[/blue] Merging …")
    try:
        result = merge_files(
            selected, sheet - 1, header_row - 1, store=store, workers=workers
        )
        if json_out:
            write_json(json_out, result.to_dict())
    except Exception as exc:
        _err(f"Unexpected internal error: {exc}")
        raise typer.Exit(code=1)

    if not quiet:
        _print_file_errors(result.errors)
    if not result.success:
        _err(result.message)
        raise typer.Exit(code=2)

    output = store.path_for(result.file_path)
    if not quiet:
        console.print(Panel(
            f"[green]Done[/green] — {result.rows_written} rows from "
            f"{result.files_merged} files -> {output}",
            title="Merge Complete", border_style="green",
        ))
    else:
        console.print(result.file_path)
    if json_out:
        echo(f"  JSON -> {json_out}")
