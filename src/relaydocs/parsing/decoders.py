"""Field decoders turning an isolated entry span into a record.

The grammar parser accepts any object with a ``decode(lines)`` method, so
callers needing more of a document's fields can bring their own decoder. The
decoders below read only the fields required to identify and reach a relay.
"""

from __future__ import annotations

import hashlib
import re
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Sequence, TypeVar

from relaydocs.errors import DecodeError, FieldError
from relaydocs.models import Descriptor, RouterStatus
from relaydocs.utils.encoding import base64_to_string, sanitise_fingerprint, string_to_port

RecordT = TypeVar("RecordT", covariant=True)

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_HEX_FINGERPRINT_RE = re.compile(r"[0-9A-F]{40}")


class FieldDecoder(Protocol[RecordT]):
    """Anything able to turn the lines of one entry into a record."""

    def decode(self, lines: Sequence[str]) -> RecordT:
        """Return the decoded record or raise :class:`FieldError`."""
        ...


def _split_keywords(lines: Sequence[str]) -> Dict[str, List[str]]:
    # First occurrence wins; objects and their contents are not keywords.
    fields: Dict[str, List[str]] = {}
    in_object = False
    for line in lines:
        if in_object:
            in_object = not line.startswith("-----END ")
            continue
        if line.startswith("-----BEGIN "):
            in_object = True
            continue
        parts = line.split()
        if parts and parts[0] == "opt":
            parts = parts[1:]
        if parts:
            fields.setdefault(parts[0], parts[1:])
    return fields


def _parse_time(keyword: str, values: Sequence[str]) -> datetime:
    text = " ".join(values)
    try:
        return datetime.strptime(text, TIME_FORMAT)
    except ValueError as exc:
        raise FieldError(f"Invalid {keyword} time {text!r}", keyword=keyword) from exc


def _printable(text: str) -> str:
    return text.encode("utf-8", errors="surrogateescape").decode("utf-8", errors="replace")


def _parse_port(keyword: str, text: str) -> int:
    port = string_to_port(text)
    if port == 0 and text != "0":
        raise FieldError(f"Invalid port {text!r} in {keyword} line", keyword=keyword)
    return port


class ServerDescriptorDecoder:
    """Decode the identifying fields of a server descriptor."""

    def decode(self, lines: Sequence[str]) -> Descriptor:
        fields = _split_keywords(lines)

        router = fields.get("router")
        if router is None:
            raise FieldError("Descriptor has no router line", keyword="router")
        if len(router) != 5:
            raise FieldError(f"Router line has {len(router)} values, expected 5", keyword="router")
        nickname, address, or_port, _socks_port, dir_port = router

        if "fingerprint" not in fields:
            raise FieldError("Descriptor has no fingerprint line", keyword="fingerprint")
        fingerprint = sanitise_fingerprint("".join(fields["fingerprint"]))
        if not _HEX_FINGERPRINT_RE.fullmatch(fingerprint):
            raise FieldError(f"Invalid fingerprint {fingerprint!r}", keyword="fingerprint")

        published = None
        if "published" in fields:
            published = _parse_time("published", fields["published"])

        platform = _printable(" ".join(fields["platform"])) if "platform" in fields else None

        return Descriptor(
            fingerprint=fingerprint,
            nickname=_printable(nickname),
            address=_printable(address),
            or_port=_parse_port("router", or_port),
            dir_port=_parse_port("router", dir_port),
            published=published,
            platform=platform,
            digest=self._digest(lines),
            lines=tuple(lines),
        )

    @staticmethod
    def _digest(lines: Sequence[str]) -> Optional[str]:
        """SHA-1 over the text from ``router`` through ``router-signature``.

        Lines are rejoined with ``\\n``, which reproduces the signed bytes for
        documents using the newline terminators the protocol mandates. CRLF
        input yields a digest that differs from the published one.
        """
        signed: List[str] = []
        for line in lines:
            signed.append(line)
            if line.split()[:1] == ["router-signature"]:
                content = "\n".join(signed) + "\n"
                return hashlib.sha1(content.encode("utf-8", errors="surrogateescape")).hexdigest()
        return None


class RouterStatusDecoder:
    """Decode a consensus router status entry (``r``, ``s``, ``v`` and ``w`` lines)."""

    def decode(self, lines: Sequence[str]) -> RouterStatus:
        fields = _split_keywords(lines)

        values = fields.get("r")
        if values is None or len(values) != 8:
            raise FieldError(f"Malformed r line in entry: {lines[:1]!r}", keyword="r")
        nickname, identity, digest, day, clock, address, or_port, dir_port = values

        try:
            fingerprint = sanitise_fingerprint(base64_to_string(identity))
            descriptor_digest = base64_to_string(digest)
        except DecodeError as exc:
            raise FieldError(str(exc), keyword="r") from exc
        if len(fingerprint) != 40:
            raise FieldError(f"Identity {identity!r} is not 20 bytes long", keyword="r")

        bandwidth = None
        for item in fields.get("w", []):
            name, _, value = item.partition("=")
            if name != "Bandwidth":
                continue
            if not (value.isascii() and value.isdigit()):
                raise FieldError(f"Invalid bandwidth {value!r}", keyword="w")
            bandwidth = int(value)

        version = _printable(" ".join(fields["v"])) if "v" in fields else None

        return RouterStatus(
            fingerprint=fingerprint,
            nickname=_printable(nickname),
            digest=descriptor_digest,
            published=_parse_time("r", [day, clock]),
            address=_printable(address),
            or_port=_parse_port("r", or_port),
            dir_port=_parse_port("r", dir_port),
            flags=frozenset(fields.get("s", [])),
            version=version,
            bandwidth=bandwidth,
            lines=tuple(lines),
        )
