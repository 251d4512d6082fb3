"""Type annotations that open every archived directory document.

Each archive file starts with a single line such as::

    @type server-descriptor 1.0

naming the document type and the version of its grammar. Nothing else in a
file may be parsed before this line has been read and accepted.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import IO, AnyStr, Iterable, Tuple

from relaydocs.errors import FormatError, ValidationError

LOGGER = logging.getLogger(__name__)

# Upper bound for the first line, so a stream without newlines can't be read forever.
MAX_ANNOTATION_LENGTH = 1024

_ANNOTATION_RE = re.compile(r"@type ([A-Za-z0-9-]+) ([0-9]+)\.([0-9]+)")


@dataclass(frozen=True, slots=True)
class Annotation:
    """Document type and grammar version taken from an ``@type`` line.

    Versions are kept as the literal strings found in the line, so ``1.0`` and
    ``01.0`` are different annotations.
    """

    type: str
    major: str
    minor: str

    def __str__(self) -> str:
        return f"@type {self.type} {self.major}.{self.minor}"

    def equals(self, other: "Annotation") -> bool:
        return self == other


def parse_annotation(line: str) -> Annotation:
    """Parse a single annotation line without its terminator."""
    match = _ANNOTATION_RE.fullmatch(line)
    if match is None:
        raise FormatError(f"Malformed type annotation: {line!r}")
    doc_type, major, minor = match.groups()
    return Annotation(doc_type, major, minor)


def read_annotation(stream: IO[AnyStr]) -> Tuple[Annotation, IO[AnyStr]]:
    """Read the first line of ``stream`` and parse it as an annotation.

    Returns the annotation together with the stream itself, which is left
    positioned right after the line terminator so the remainder can be handed
    to a record parser untouched.
    """
    raw = stream.readline(MAX_ANNOTATION_LENGTH)
    if isinstance(raw, bytes):
        try:
            line = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise FormatError(f"Type annotation is not valid UTF-8: {exc}") from exc
    else:
        line = raw

    if len(raw) >= MAX_ANNOTATION_LENGTH and not line.endswith("\n"):
        raise FormatError(f"Type annotation exceeds {MAX_ANNOTATION_LENGTH} bytes")

    if line.endswith("\r\n"):
        line = line[:-2]
    elif line.endswith("\n"):
        line = line[:-1]

    return parse_annotation(line), stream


def get_annotation(path: Path) -> Annotation:
    """Return the annotation of the document stored at ``path``."""
    with Path(path).open("rb") as handle:
        annotation, _ = read_annotation(handle)
    LOGGER.debug("%s is annotated as %s", path, annotation)
    return annotation


def check_annotation(stream: IO[AnyStr], accepted: Iterable[Annotation]) -> Annotation:
    """Read the stream's annotation and make sure it is one of ``accepted``.

    Raises:
        FormatError: the first line is not an annotation at all.
        ValidationError: the annotation is well formed but not accepted.
    """
    annotation, _ = read_annotation(stream)
    accepted = tuple(accepted)
    if annotation not in accepted:
        names = ", ".join(str(item) for item in accepted) or "nothing"
        raise ValidationError(
            f"Unexpected annotation {annotation}, expected one of: {names}",
            annotation=annotation,
            accepted=accepted,
        )
    return annotation
