"""Utility helpers for locating files in a dated archive."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, Tuple

DEFAULT_ARCHIVE_PREFIX = "server-descriptors"


def archive_file_path(
    root: Path, year: int, month: int, *, prefix: str = DEFAULT_ARCHIVE_PREFIX
) -> Path:
    """Map a year and month to the archive file holding that month's documents."""
    return Path(root) / f"{prefix}-{year:04d}-{month:02d}"


def previous_month(year: int, month: int) -> Tuple[int, int]:
    """Return the (year, month) pair immediately before the given one."""
    if month == 1:
        return year - 1, 12
    return year, month - 1


def iter_document_paths(inputs: Iterable[Path]) -> Iterator[Path]:
    """Yield document files from input paths, descending into directories."""
    for item in inputs:
        if item.is_dir():
            yield from iter_document_paths(sorted(child for child in item.iterdir()))
        elif item.is_file() and not item.name.startswith("."):
            yield item
