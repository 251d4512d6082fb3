"""Shared sample documents for the test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

DESCRIPTOR_ANNOTATION_LINE = "@type server-descriptor 1.0\n"
CONSENSUS_ANNOTATION_LINE = "@type network-status-consensus-3 1.0\n"

FINGERPRINT_A = "7BD84CB63845E0D61C1CFA83914A1B8C968482B1"
FINGERPRINT_B = "9695DFC35FFEB861329B9F1AB04C46397020CE31"
FINGERPRINT_C = "3954B216F50200A352629CFC64F02B30BA9FD03B"


def make_descriptor(
    nickname: str,
    fingerprint: str,
    *,
    address: str = "10.0.0.1",
    or_port: int = 9001,
    dir_port: int = 0,
    published: str = "2014-12-01 12:00:00",
) -> str:
    """Build the text of a minimal server descriptor."""
    groups = " ".join(fingerprint[i : i + 4] for i in range(0, 40, 4))
    return (
        f"router {nickname} {address} {or_port} 0 {dir_port}\n"
        "platform Tor 0.2.5.10 on Linux\n"
        f"published {published}\n"
        f"fingerprint {groups}\n"
        "uptime 3600\n"
        "router-signature\n"
        "-----BEGIN SIGNATURE-----\n"
        "c2lnbmF0dXJl\n"
        "-----END SIGNATURE-----\n"
    )


CONSENSUS_BODY = (
    "network-status-version 3\n"
    "vote-status consensus\n"
    "valid-after 2014-12-08 00:00:00\n"
    "known-flags Authority Exit Fast Guard Running Stable Valid\n"
    "r moria1 OVSyFvUCAKNSYpz8ZPArMLqf0Ds AAAAAAAAAAAAAAAAAAAAAAAAAAA 2014-12-07 21:13:22 128.31.0.34 9101 9131\n"
    "s Authority Fast Running Stable Valid\n"
    "v Tor 0.2.5.10\n"
    "w Bandwidth=20\n"
    "r broken !!!notbase64!!! AAAAAAAAAAAAAAAAAAAAAAAAAAA 2014-12-07 21:13:22 10.0.0.2 9001 0\n"
    "s Running\n"
    "r tor26 //////////////////////////8 AAAAAAAAAAAAAAAAAAAAAAAAAAA 2014-12-07 20:01:01 86.59.21.38 443 80\n"
    "s Authority Exit Fast Guard Running Stable Valid\n"
    "w Bandwidth=3000 Unmeasured=1\n"
    "directory-footer\n"
    "bandwidth-weights Wbd=0 Wbe=0\n"
    "directory-signature 0232AF901C31A04EE9848595AF9BB7620D4C5B2E 0000\n"
    "-----BEGIN SIGNATURE-----\n"
    "c2lnbmF0dXJl\n"
    "-----END SIGNATURE-----\n"
)


@pytest.fixture
def descriptor_text() -> str:
    """Three descriptors, the second one without a fingerprint line."""
    broken = make_descriptor("broken", FINGERPRINT_B).replace(
        "fingerprint " + " ".join(FINGERPRINT_B[i : i + 4] for i in range(0, 40, 4)) + "\n", ""
    )
    return (
        DESCRIPTOR_ANNOTATION_LINE
        + make_descriptor("relayA", FINGERPRINT_A)
        + broken
        + make_descriptor("relayC", FINGERPRINT_C, or_port=443, dir_port=80)
    )


@pytest.fixture
def descriptor_file(tmp_path: Path, descriptor_text: str) -> Path:
    path = tmp_path / "server-descriptors"
    path.write_text(descriptor_text)
    return path


@pytest.fixture
def consensus_file(tmp_path: Path) -> Path:
    path = tmp_path / "consensus"
    path.write_text(CONSENSUS_ANNOTATION_LINE + CONSENSUS_BODY)
    return path


@pytest.fixture
def write_archive(tmp_path: Path) -> Callable[..., Path]:
    """Return a helper writing a month's descriptor archive under ``tmp_path``."""
    root = tmp_path / "collector"
    root.mkdir()

    def _write(year: int, month: int, *descriptors: str, annotation: str = DESCRIPTOR_ANNOTATION_LINE) -> Path:
        path = root / f"server-descriptors-{year:04d}-{month:02d}"
        path.write_text(annotation + "".join(descriptors))
        return path

    _write.root = root
    return _write
