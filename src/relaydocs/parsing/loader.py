"""Open archived documents and stream their records.

A document is only handed to the grammar parser once its type annotation has
been checked against the acceptance set of the expected document kind.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from relaydocs.annotation import Annotation, check_annotation
from relaydocs.config import AppConfig
from relaydocs.models import Descriptor, RouterStatus
from relaydocs.parsing.decoders import FieldDecoder, RouterStatusDecoder, ServerDescriptorDecoder
from relaydocs.parsing.grammar import (
    CONSENSUS_GRAMMAR,
    SERVER_DESCRIPTOR_GRAMMAR,
    Grammar,
    RecordStream,
)

LOGGER = logging.getLogger(__name__)


def open_document(
    path: Path,
    accepted: Iterable[Annotation],
    decoder: FieldDecoder,
    grammar: Grammar,
) -> RecordStream:
    """Check the annotation of ``path`` and return a stream over its records.

    The returned stream owns the file handle. If the annotation check fails the
    handle is closed before the error propagates.
    """
    handle = Path(path).open("rb")
    try:
        annotation = check_annotation(handle, accepted)
    except Exception:
        handle.close()
        raise
    LOGGER.debug("Opened %s (%s)", path, annotation)
    return RecordStream(handle, decoder, grammar)


def parse_descriptor_file(
    path: Path, config: Optional[AppConfig] = None
) -> RecordStream[Descriptor]:
    """Stream the server descriptors stored in ``path``."""
    config = config or AppConfig()
    return open_document(
        path,
        config.descriptor_annotations,
        ServerDescriptorDecoder(),
        SERVER_DESCRIPTOR_GRAMMAR,
    )


def parse_consensus_file(
    path: Path, config: Optional[AppConfig] = None
) -> RecordStream[RouterStatus]:
    """Stream the router status entries of the consensus stored in ``path``."""
    config = config or AppConfig()
    return open_document(
        path,
        config.consensus_annotations,
        RouterStatusDecoder(),
        CONSENSUS_GRAMMAR,
    )
