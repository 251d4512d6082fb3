"""Helpers normalising relay identity material and port numbers."""

from __future__ import annotations

import base64
import binascii

from relaydocs.errors import DecodeError


def base64_to_string(encoded: str) -> str:
    """Decode base64 (padding optional) and return the bytes as lowercase hex.

    Directory documents drop the trailing ``=`` from base64 digests, so the
    input is padded to a multiple of four before decoding.
    """
    padded = encoded + "=" * (-len(encoded) % 4)
    try:
        raw = base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"Invalid base64 data {encoded!r}: {exc}") from exc
    return raw.hex()


def string_to_port(text: str) -> int:
    """Convert text to a port number, returning 0 for anything invalid.

    0 doubles as "unset" in descriptors, which is why it is also used for
    values that are not numbers or exceed 65535.
    """
    if not text or not text.isascii() or not text.isdigit():
        return 0
    port = int(text)
    if port > 65535:
        return 0
    return port


def sanitise_fingerprint(fingerprint: str) -> str:
    """Strip surrounding whitespace and uppercase a hex fingerprint."""
    return fingerprint.strip().upper()


def fingerprints_equal(left: str, right: str) -> bool:
    """Compare two fingerprints ignoring case and surrounding whitespace."""
    return sanitise_fingerprint(left) == sanitise_fingerprint(right)
