"""Locate archived server descriptors by digest and approximate date.

Archives are split into one file per month, and a descriptor published near
the end of a month may only show up in that month's file even though it is
referenced by documents from the following month. A lookup therefore tries
the reference date's month first and then exactly one month earlier.
"""

from __future__ import annotations

import logging
from datetime import date
from functools import partial
from pathlib import Path
from typing import Callable, List, Optional

from relaydocs.config import AppConfig
from relaydocs.errors import ArchiveReadError, DescriptorNotFoundError
from relaydocs.models import Descriptor
from relaydocs.parsing.loader import parse_descriptor_file
from relaydocs.utils.encoding import fingerprints_equal
from relaydocs.utils.files import archive_file_path, previous_month

LOGGER = logging.getLogger(__name__)

PathMapper = Callable[[Path, int, int], Path]


def _search_file(path: Path, digest: str, config: AppConfig) -> Optional[Descriptor]:
    """Return the descriptor matching ``digest`` in ``path``, if any."""
    try:
        records = parse_descriptor_file(path, config)
    except (FileNotFoundError, NotADirectoryError):
        LOGGER.debug("Archive file %s does not exist", path)
        return None
    except OSError as exc:
        raise ArchiveReadError(path, exc) from exc

    with records:
        try:
            for record in records:
                if not record.ok:
                    LOGGER.debug("Skipping record %d in %s: %s", record.index, path, record.error)
                    continue
                if fingerprints_equal(record.value.fingerprint, digest):
                    return record.value
        except OSError as exc:
            raise ArchiveReadError(path, exc) from exc

    LOGGER.debug("Digest %s not found in %s", digest, path)
    return None


def _is_empty_root(archive_root) -> bool:
    # Path("") collapses to Path("."), so an empty root must be caught before
    # it is used as the working directory.
    return archive_root in ("", Path(""))


class DescriptorResolver:
    """Resolve descriptor digests against a month-partitioned archive."""

    def __init__(
        self,
        archive_root: Path,
        *,
        config: Optional[AppConfig] = None,
        path_for: Optional[PathMapper] = None,
    ) -> None:
        self.config = config or AppConfig(archive_root=Path(archive_root))
        self.archive_root = archive_root
        self.path_for = path_for or partial(archive_file_path, prefix=self.config.archive_prefix)

    def candidates(self, reference_date: date) -> List[Path]:
        """Archive files searched for ``reference_date``, in search order."""
        year, month = reference_date.year, reference_date.month
        prev_year, prev_month = previous_month(year, month)
        root = Path(self.archive_root)
        return [
            self.path_for(root, year, month),
            self.path_for(root, prev_year, prev_month),
        ]

    def resolve(self, digest: str, reference_date: date) -> Descriptor:
        """Find the descriptor whose fingerprint equals ``digest``.

        Raises:
            DescriptorNotFoundError: neither archive file holds the digest.
            ArchiveReadError: an archive file exists but cannot be read.
            ValidationError: an archive file holds another document type.
        """
        if _is_empty_root(self.archive_root):
            raise DescriptorNotFoundError(digest)

        searched: List[Path] = []
        for path in self.candidates(reference_date):
            searched.append(path)
            descriptor = _search_file(path, digest, self.config)
            if descriptor is not None:
                LOGGER.info("Found descriptor %s in %s", digest, path)
                return descriptor

        raise DescriptorNotFoundError(digest, searched)


def load_descriptor_from_digest(
    archive_root: Path,
    digest: str,
    reference_date: date,
    *,
    config: Optional[AppConfig] = None,
    path_for: Optional[PathMapper] = None,
) -> Descriptor:
    """Load the descriptor identified by ``digest`` from a dated archive."""
    resolver = DescriptorResolver(archive_root, config=config, path_for=path_for)
    return resolver.resolve(digest, reference_date)
