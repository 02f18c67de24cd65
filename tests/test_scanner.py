from pathlib import Path

import pytest

from loglat.core.scanner import LineScanner


def test_scanner_strips_terminators_in_file_order(tmp_path: Path) -> None:
    path = tmp_path / "mixed.log"
    path.write_bytes(b"first\r\nsecond\n\nlast without newline")
    with LineScanner(path) as scanner:
        assert list(scanner) == ["first", "second", "", "last without newline"]
    assert scanner.error is None


def test_scanner_accepts_lines_at_the_limit(tmp_path: Path) -> None:
    path = tmp_path / "limit.log"
    path.write_bytes(b"x" * 10 + b"\r\n" + b"y" * 10)
    with LineScanner(path, max_line_length=10) as scanner:
        assert list(scanner) == ["x" * 10, "y" * 10]
    assert scanner.error is None


def test_scanner_stops_early_on_overlong_line(tmp_path: Path) -> None:
    path = tmp_path / "long.log"
    path.write_bytes(b"short\n" + b"z" * 50 + b"\nafter\n")
    with LineScanner(path, max_line_length=10) as scanner:
        lines = list(scanner)
    assert lines == ["short"]
    assert scanner.error is not None
    assert "10" in scanner.error


def test_scanner_replaces_undecodable_bytes(tmp_path: Path) -> None:
    path = tmp_path / "binary.log"
    path.write_bytes(b"GET \xff\xfe 0.5\n")
    with LineScanner(path) as scanner:
        (line,) = list(scanner)
    assert line.startswith("GET ")
    assert line.endswith(" 0.5")


def test_scanner_missing_file_raises_oserror(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        with LineScanner(tmp_path / "missing.log"):
            pass


def test_scanner_requires_context(tmp_path: Path) -> None:
    path = tmp_path / "a.log"
    path.write_text("a\n")
    with pytest.raises(RuntimeError):
        list(LineScanner(path))


def test_scanner_is_forward_only(tmp_path: Path) -> None:
    path = tmp_path / "a.log"
    path.write_text("a\nb\n")
    with LineScanner(path) as scanner:
        assert list(scanner) == ["a", "b"]
        assert list(scanner) == []
