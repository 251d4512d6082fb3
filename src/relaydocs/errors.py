"""Exception hierarchy for annotation checks, record parsing and archive lookups.

Callers can catch :class:`RelayDocsError` for anything raised by the library,
or react to the individual categories. Most of them also derive from the
built-in exception a plain Python caller would expect (``ValueError`` for
malformed input, ``OSError`` for storage trouble, ``LookupError`` for a missing
descriptor).
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

__all__ = [
    "RelayDocsError",
    "FormatError",
    "ValidationError",
    "DecodeError",
    "FieldError",
    "StructuralError",
    "ArchiveReadError",
    "DescriptorNotFoundError",
]


class RelayDocsError(Exception):
    """Base exception for every failure raised by relaydocs."""


class FormatError(RelayDocsError, ValueError):
    """Raised when a type annotation line does not follow the ``@type`` grammar."""


class ValidationError(RelayDocsError, ValueError):
    """Raised when a well-formed annotation is not in the accepted set."""

    def __init__(self, message: str, *, annotation=None, accepted: Sequence = ()) -> None:
        super().__init__(message)
        self.annotation = annotation
        self.accepted = tuple(accepted)


class DecodeError(RelayDocsError, ValueError):
    """Raised when encoded identity material (base64) is malformed."""


class FieldError(RelayDocsError, ValueError):
    """Raised by field decoders when a single record's body is malformed.

    The grammar parser attaches these to the failing record instead of
    aborting the whole sequence.
    """

    def __init__(self, message: str, *, keyword: Optional[str] = None) -> None:
        super().__init__(message)
        self.keyword = keyword


class StructuralError(RelayDocsError):
    """Raised when the record framing of a document body is broken."""

    def __init__(self, message: str, *, line_number: Optional[int] = None) -> None:
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


class ArchiveReadError(RelayDocsError, OSError):
    """Raised when an archive file exists but cannot be opened or read."""

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"Cannot read archive file {path}: {cause}")
        self.path = Path(path)
        self.cause = cause


class DescriptorNotFoundError(RelayDocsError, LookupError):
    """Raised when a digest is absent from every searched archive file."""

    def __init__(self, digest: str, searched: Sequence[Path] = ()) -> None:
        self.digest = digest
        self.searched = tuple(Path(path) for path in searched)
        where = ", ".join(str(path) for path in self.searched) or "no archive files"
        super().__init__(f"Could not find descriptor {digest} in {where}")
