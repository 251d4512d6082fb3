"""Core relaydocs data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, Generic, Optional, Tuple, TypeVar

from relaydocs.errors import FieldError

RecordT = TypeVar("RecordT")


@dataclass(frozen=True, slots=True)
class Descriptor:
    """Server descriptor published by a single relay."""

    fingerprint: str
    nickname: str
    address: str
    or_port: int
    dir_port: int
    published: Optional[datetime] = None
    platform: Optional[str] = None
    digest: Optional[str] = None
    lines: Tuple[str, ...] = field(default=(), repr=False, compare=False)


@dataclass(frozen=True, slots=True)
class RouterStatus:
    """Router status entry of a consensus document."""

    fingerprint: str
    nickname: str
    digest: str
    published: datetime
    address: str
    or_port: int
    dir_port: int
    flags: FrozenSet[str] = frozenset()
    version: Optional[str] = None
    bandwidth: Optional[int] = None
    lines: Tuple[str, ...] = field(default=(), repr=False, compare=False)


@dataclass(slots=True)
class ParsedRecord(Generic[RecordT]):
    """One entry of a record stream: the decoded value or the decoding error."""

    index: int
    lines: Tuple[str, ...]
    value: Optional[RecordT] = None
    error: Optional[FieldError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def keyword_line(self) -> Optional[str]:
        return self.lines[0] if self.lines else None
