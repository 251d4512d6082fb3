"""Parsing and archive lookup for relay directory documents."""

from relaydocs.annotation import (
    Annotation,
    check_annotation,
    get_annotation,
    parse_annotation,
    read_annotation,
)
from relaydocs.archive.resolver import DescriptorResolver, load_descriptor_from_digest
from relaydocs.parsing.loader import parse_consensus_file, parse_descriptor_file

__all__ = [
    "Annotation",
    "DescriptorResolver",
    "check_annotation",
    "get_annotation",
    "load_descriptor_from_digest",
    "parse_annotation",
    "parse_consensus_file",
    "parse_descriptor_file",
    "read_annotation",
]
