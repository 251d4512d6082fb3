"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from relaydocs.annotation import Annotation, parse_annotation
from relaydocs.utils.files import DEFAULT_ARCHIVE_PREFIX

DESCRIPTOR_ANNOTATIONS: Tuple[Annotation, ...] = (
    parse_annotation("@type server-descriptor 1.0"),
)

CONSENSUS_ANNOTATIONS: Tuple[Annotation, ...] = (
    parse_annotation("@type network-status-consensus-3 1.0"),
)


def _get_default_archive_root() -> Path:
    """Get the default archive root based on the execution context."""
    # Prefer a local checkout of the archive when running from source
    local_root = Path("data/collector")
    if local_root.exists():
        return local_root

    return Path.home() / "Documents" / "relaydocs" / "collector"


@dataclass(slots=True)
class AppConfig:
    archive_root: Path | None = None
    archive_prefix: str = DEFAULT_ARCHIVE_PREFIX
    descriptor_annotations: Tuple[Annotation, ...] = DESCRIPTOR_ANNOTATIONS
    consensus_annotations: Tuple[Annotation, ...] = CONSENSUS_ANNOTATIONS

    def __post_init__(self) -> None:
        if self.archive_root is None:
            self.archive_root = _get_default_archive_root()

    def resolve_archive_root(self, base_dir: Path | None = None) -> Path:
        if self.archive_root is None:
            self.archive_root = _get_default_archive_root()
        if Path(self.archive_root).is_absolute() or base_dir is None:
            return Path(self.archive_root)
        return base_dir / self.archive_root
