"""Storage directory holding uploaded spreadsheets and merge outputs."""

from __future__ import annotations

import logging
import re
import shutil
from collections.abc import Sequence
from pathlib import Path

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS: tuple[str, ...] = (".xls", ".xlsx")

_UNSAFE_CHARS_RE = re.compile(r'[\\/*?:"<>|]')


def is_spreadsheet(name: str) -> bool:
    return Path(name).suffix.lower() in ALLOWED_EXTENSIONS


def safe_filename(name: str) -> str:
    """Replace path and shell metacharacters, trim spaces and edge dots."""
    cleaned = _UNSAFE_CHARS_RE.sub("_", name)
    cleaned = cleaned.strip().strip(".")
    return cleaned or "unnamed_file"


class FileStore:
    """A flat directory of spreadsheets addressed by file name.

    Names are trusted to be already sanitized; :meth:`add` is the only entry
    point that sanitizes.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def __repr__(self) -> str:
        return f"FileStore({str(self.root)!r})"

    def path_for(self, name: str) -> Path:
        return self.root / name

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def list_files(self) -> list[str]:
        """Sorted names of every spreadsheet in the store."""
        return sorted(
            p.name for p in self.root.iterdir() if p.is_file() and is_spreadsheet(p.name)
        )

    def add(self, source: Path | str, name: str | None = None) -> str:
        """Copy *source* into the store and return the stored name.

        Raises
        ------
        FileNotFoundError
            If *source* is not an existing file.
        ValueError
            If the file type is not one of :data:`ALLOWED_EXTENSIONS`.
        """
        source = Path(source)
        original = name or source.name
        if not is_spreadsheet(original):
            raise ValueError(
                f"Invalid file type: {original!r}. Only .xls and .xlsx files are allowed."
            )
        if not source.is_file():
            raise FileNotFoundError(f"Input file not found: {source}")

        stored = safe_filename(original)
        dest = self.path_for(stored)
        if source.resolve() != dest.resolve():
            shutil.copyfile(source, dest)
        logger.info("Stored %s as %s", source, stored)
        return stored

    def delete(self, name: str) -> bool:
        path = self.path_for(name)
        if not path.is_file():
            return False
        path.unlink()
        logger.info("Deleted %s", path)
        return True


def resolve_sources(
    files: Sequence[str | Path], store: FileStore | None = None
) -> list[tuple[str, Path]]:
    """Pair each caller-supplied file with the path to read it from.

    With a *store*, entries are names inside it; otherwise they are paths and
    are labelled by their file name.
    """
    if store is not None:
        return [(str(name), store.path_for(str(name))) for name in files]
    return [(Path(f).name, Path(f)) for f in files]
