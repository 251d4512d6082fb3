"""Keyword-line grammar parser producing records lazily.

Directory document bodies are line oriented. Every line starts with a keyword
and an entry runs from its start keyword up to the next start keyword (or the
footer, or the end of the stream)::

    router moria1 128.31.0.34 9101 0 9131      <- start of entry 1
    platform Tor 0.2.5.10 on Linux
    fingerprint 9695 DFC3 5FFE B861 329B 9F1A B04C 4639 7020 CE31
    router-signature
    -----BEGIN SIGNATURE-----                  <- object, never a keyword
    ...
    -----END SIGNATURE-----
    router tor26 86.59.21.38 443 0 80          <- start of entry 2

This module only cuts the body into entry spans and drives iteration; turning
a span into a record is left to a field decoder.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import IO, Generic, Iterable, Iterator, List, Optional, Tuple, TypeVar, Union

from relaydocs.errors import FieldError, StructuralError
from relaydocs.models import ParsedRecord
from relaydocs.parsing.decoders import FieldDecoder

LOGGER = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")

OBJECT_BEGIN = "-----BEGIN "
OBJECT_END = "-----END "


@dataclass(frozen=True, slots=True)
class Grammar:
    """Framing rules for the entries of one document type."""

    start_keyword: str
    preamble: bool = False
    footer_keywords: Tuple[str, ...] = ()


SERVER_DESCRIPTOR_GRAMMAR = Grammar(start_keyword="router")
CONSENSUS_GRAMMAR = Grammar(
    start_keyword="r",
    preamble=True,
    footer_keywords=("directory-footer", "directory-signature"),
)


def keyword_of(line: str) -> str:
    """Return the keyword of a line, skipping the legacy ``opt`` prefix."""
    parts = line.split(None, 2)
    if not parts:
        return ""
    if parts[0] == "opt" and len(parts) > 1:
        return parts[1]
    return parts[0]


def _as_text(raw: Union[str, bytes]) -> str:
    if isinstance(raw, bytes):
        # Undecodable bytes survive as surrogates so signed content can be re-encoded.
        raw = raw.decode("utf-8", errors="surrogateescape")
    return raw.rstrip("\r\n")


def iter_spans(
    lines: Iterable[Union[str, bytes]],
    grammar: Grammar,
    *,
    preamble: Optional[List[str]] = None,
    footer: Optional[List[str]] = None,
) -> Iterator[Tuple[str, ...]]:
    """Split lines into entry spans according to ``grammar``.

    Header lines are appended to ``preamble`` and footer lines to ``footer``
    when those lists are given. Lines starting with ``@`` between keywords are
    annotations and are skipped, as are blank lines.

    Raises:
        StructuralError: a keyword other than the start keyword opens a body
            that has no preamble, or an object block is still open when the
            lines run out.
    """
    preamble = preamble if preamble is not None else []
    footer = footer if footer is not None else []

    span: Optional[List[str]] = None
    target: Optional[List[str]] = None
    in_footer = False
    object_opened_at: Optional[int] = None

    for number, raw in enumerate(lines, start=1):
        line = _as_text(raw)

        if object_opened_at is not None:
            target.append(line)
            if line.startswith(OBJECT_END):
                object_opened_at = None
            continue

        if not line.strip():
            continue

        if line.startswith(OBJECT_BEGIN):
            if target is None:
                raise StructuralError("object block outside of any entry", line_number=number)
            target.append(line)
            object_opened_at = number
            continue

        if in_footer:
            footer.append(line)
            continue

        if line.startswith("@"):
            continue

        keyword = keyword_of(line)

        if keyword in grammar.footer_keywords:
            if span is not None:
                yield tuple(span)
                span = None
            in_footer = True
            target = footer
            footer.append(line)
            continue

        if keyword == grammar.start_keyword:
            if span is not None:
                yield tuple(span)
            span = [line]
            target = span
            continue

        if target is None:
            if not grammar.preamble:
                raise StructuralError(
                    f"expected {grammar.start_keyword!r} entry, found {keyword!r}",
                    line_number=number,
                )
            target = preamble

        target.append(line)

    if object_opened_at is not None:
        raise StructuralError("object block never closed", line_number=object_opened_at)

    if span is not None:
        yield tuple(span)


class RecordStream(Generic[RecordT]):
    """Single-pass sequence of parsed records read lazily from a stream.

    Each pull reads just enough lines to complete one entry. The stream is
    closed once the sequence is exhausted, aborted by a structural error,
    closed explicitly or left through a ``with`` block.
    """

    def __init__(
        self,
        stream: IO,
        decoder: FieldDecoder,
        grammar: Grammar,
        *,
        close_stream: bool = True,
    ) -> None:
        self.name = str(getattr(stream, "name", "<stream>"))
        self.grammar = grammar
        self.preamble: List[str] = []
        self.footer: List[str] = []
        self._stream = stream
        self._decoder = decoder
        self._close_stream = close_stream
        self._spans = iter_spans(stream, grammar, preamble=self.preamble, footer=self.footer)
        self._index = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> "RecordStream[RecordT]":
        return self

    def __next__(self) -> ParsedRecord[RecordT]:
        if self._closed:
            raise StopIteration

        try:
            lines = next(self._spans)
        except StopIteration:
            self.close()
            raise
        except StructuralError as exc:
            LOGGER.error("Aborting %s after %d records: %s", self.name, self._index, exc)
            self.close()
            raise

        record: ParsedRecord[RecordT] = ParsedRecord(index=self._index, lines=lines)
        self._index += 1
        try:
            record.value = self._decoder.decode(lines)
        except FieldError as exc:
            LOGGER.debug("Record %d in %s is malformed: %s", record.index, self.name, exc)
            record.error = exc
        except Exception:
            self.close()
            raise
        return record

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._spans.close()
        if self._close_stream:
            self._stream.close()

    def __enter__(self) -> "RecordStream[RecordT]":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __del__(self) -> None:
        if not getattr(self, "_closed", True):
            self.close()


def iter_records(records: RecordStream[RecordT]) -> Iterator[RecordT]:
    """Yield only successfully decoded values, logging the skipped entries."""
    try:
        for record in records:
            if record.ok:
                yield record.value
            else:
                LOGGER.warning(
                    "Skipping malformed record %d in %s: %s",
                    record.index,
                    records.name,
                    record.error,
                )
    finally:
        records.close()
