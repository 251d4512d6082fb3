"""Tests for the type annotation protocol."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from relaydocs.annotation import (
    MAX_ANNOTATION_LENGTH,
    Annotation,
    check_annotation,
    get_annotation,
    parse_annotation,
    read_annotation,
)
from relaydocs.config import CONSENSUS_ANNOTATIONS, DESCRIPTOR_ANNOTATIONS
from relaydocs.errors import FormatError, ValidationError


class TestAnnotation:
    """Test the Annotation value type."""

    def test_string(self) -> None:
        """Should render the canonical annotation line."""
        assert str(Annotation("foobar", "0", "0")) == "@type foobar 0.0"

    def test_equals(self) -> None:
        """Should compare all three fields."""
        a = Annotation("a", "b", "c")
        b = Annotation("a", "b", "c")
        z = Annotation("x", "y", "z")

        assert a.equals(b) and b.equals(a)
        assert a == b
        assert not a.equals(z) and not z.equals(a)
        assert not b.equals(z) and not z.equals(b)

    def test_versions_compare_as_strings(self) -> None:
        """Should treat 1.0 and 01.0 as different annotations."""
        assert parse_annotation("@type test 1.0") != parse_annotation("@type test 01.0")

    def test_hashable(self) -> None:
        """Should be usable in sets."""
        items = {Annotation("foobar", "0", "0"), Annotation("foobar", "0", "0")}

        assert len(items) == 1

    def test_immutable(self) -> None:
        """Should refuse attribute assignment."""
        annotation = Annotation("foobar", "0", "0")

        with pytest.raises(AttributeError):
            annotation.type = "other"  # type: ignore[misc]


class TestParseAnnotation:
    """Test parse_annotation function."""

    @pytest.mark.parametrize(
        "line, expected",
        [
            ("@type server-descriptor 1.0", Annotation("server-descriptor", "1", "0")),
            ("@type server-descriptor 1.2", Annotation("server-descriptor", "1", "2")),
            ("@type server-descriptor 2.0", Annotation("server-descriptor", "2", "0")),
            ("@type extra-info 2.0", Annotation("extra-info", "2", "0")),
            ("@type CASE 1.0", Annotation("CASE", "1", "0")),
        ],
    )
    def test_valid_lines(self, line: str, expected: Annotation) -> None:
        """Should parse well-formed annotations."""
        annotation = parse_annotation(line)

        assert annotation == expected
        assert str(annotation) == line

    @pytest.mark.parametrize(
        "line",
        [
            "",
            "@type test",
            "@type 1.0",
            "@type test 1",
            "@type test 1.",
            "@type test .0",
            "@type test 1.0 more",
            "@type test 1.0 ",
            "@type  test 1.0",
            "@type test a.0",
            "@type test 1.0.1",
            "@TYPE test 1.0",
            "@typo test 1.0",
            "type test 1.0",
        ],
    )
    def test_invalid_lines(self, line: str) -> None:
        """Should reject anything deviating from the grammar."""
        with pytest.raises(FormatError):
            parse_annotation(line)


class TestReadAnnotation:
    """Test read_annotation function."""

    def test_remainder_is_untouched(self) -> None:
        """Should leave the stream positioned right after the first line."""
        expected = b"12345678\n"
        stream = io.BytesIO(b"@type test 1.0\n" + expected)

        annotation, remainder = read_annotation(stream)

        assert annotation == Annotation("test", "1", "0")
        assert remainder.read() == expected

    def test_crlf_terminator(self) -> None:
        """Should accept a CRLF line terminator."""
        stream = io.BytesIO(b"@type test 1.0\r\nbody\r\n")

        annotation, remainder = read_annotation(stream)

        assert annotation == Annotation("test", "1", "0")
        assert remainder.read() == b"body\r\n"

    def test_text_stream(self) -> None:
        """Should work with text streams too."""
        annotation, remainder = read_annotation(io.StringIO("@type test 1.0\nrest"))

        assert annotation == Annotation("test", "1", "0")
        assert remainder.read() == "rest"

    def test_bad_first_line(self) -> None:
        """Should raise FormatError for a bad first line."""
        with pytest.raises(FormatError):
            read_annotation(io.BytesIO(b"bad first line\nmore data\n"))

    def test_overlong_first_line(self) -> None:
        """Should give up once the size limit is reached."""
        stream = io.BytesIO(b"\x00" * (MAX_ANNOTATION_LENGTH * 4))

        with pytest.raises(FormatError):
            read_annotation(stream)

        assert stream.tell() == MAX_ANNOTATION_LENGTH

    def test_invalid_utf8(self) -> None:
        """Should raise FormatError for undecodable bytes."""
        with pytest.raises(FormatError):
            read_annotation(io.BytesIO(b"@type \xff 1.0\n"))


class TestGetAnnotation:
    """Test get_annotation function."""

    def test_descriptor_file(self, descriptor_file: Path) -> None:
        """Should read the annotation of a descriptor file."""
        assert get_annotation(descriptor_file) == Annotation("server-descriptor", "1", "0")

    def test_consensus_file(self, consensus_file: Path) -> None:
        """Should read the annotation of a consensus file."""
        assert get_annotation(consensus_file) == Annotation(
            "network-status-consensus-3", "1", "0"
        )

    def test_missing_file(self, tmp_path: Path) -> None:
        """Should propagate the OSError for missing files."""
        with pytest.raises(FileNotFoundError):
            get_annotation(tmp_path / "missing")

    def test_bogus_file(self, tmp_path: Path) -> None:
        """Should raise FormatError for a file without annotation."""
        path = tmp_path / "zeros"
        path.write_bytes(b"\x00" * 4096)

        with pytest.raises(FormatError):
            get_annotation(path)

    @pytest.mark.skipif(not Path("/dev/zero").exists(), reason="requires /dev/zero")
    def test_dev_zero(self) -> None:
        """Should not hang on an endless stream without newlines."""
        with pytest.raises(FormatError):
            get_annotation(Path("/dev/zero"))


class TestCheckAnnotation:
    """Test check_annotation function."""

    def test_descriptor_accepted(self, descriptor_file: Path) -> None:
        """Should accept a descriptor and reject it as a consensus after rewinding."""
        with descriptor_file.open("rb") as handle:
            annotation = check_annotation(handle, DESCRIPTOR_ANNOTATIONS)
            assert annotation == DESCRIPTOR_ANNOTATIONS[0]

            handle.seek(0)
            with pytest.raises(ValidationError) as excinfo:
                check_annotation(handle, CONSENSUS_ANNOTATIONS)

        assert excinfo.value.annotation == annotation
        assert excinfo.value.accepted == CONSENSUS_ANNOTATIONS

    def test_consensus_accepted(self, consensus_file: Path) -> None:
        """Should accept a consensus and reject it as a descriptor after rewinding."""
        with consensus_file.open("rb") as handle:
            check_annotation(handle, CONSENSUS_ANNOTATIONS)

            handle.seek(0)
            with pytest.raises(ValidationError):
                check_annotation(handle, DESCRIPTOR_ANNOTATIONS)

    def test_repeatable_after_rewind(self, descriptor_file: Path) -> None:
        """Should give the same result when checked twice from the start."""
        with descriptor_file.open("rb") as handle:
            first = check_annotation(handle, DESCRIPTOR_ANNOTATIONS)
            handle.seek(0)
            second = check_annotation(handle, DESCRIPTOR_ANNOTATIONS)

        assert first == second

    def test_empty_acceptance_set(self) -> None:
        """Should reject everything when nothing is accepted."""
        with pytest.raises(ValidationError):
            check_annotation(io.BytesIO(b"@type server-descriptor 1.0\n"), ())

    def test_malformed_annotation(self) -> None:
        """Should raise FormatError rather than ValidationError for garbage."""
        with pytest.raises(FormatError):
            check_annotation(io.BytesIO(b"\x00" * 2048), DESCRIPTOR_ANNOTATIONS)

    @pytest.mark.skipif(not Path("/dev/zero").exists(), reason="requires /dev/zero")
    def test_dev_zero_stream(self) -> None:
        """Should reject an endless stream without reading it to the end."""
        with open("/dev/zero", "rb") as handle:
            with pytest.raises(FormatError):
                check_annotation(handle, DESCRIPTOR_ANNOTATIONS)
