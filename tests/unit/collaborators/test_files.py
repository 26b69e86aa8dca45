# tests/unit/collaborators/test_files.py
"""Tests for read-only file access helpers."""

import hashlib
from pathlib import Path

import pytest

from relaycheck.collaborators.files import (
    FileRecordReader,
    FileStats,
    count_newlines,
    file_stats,
    md5_digest,
    read_record_file,
    split_records,
)


class TestSplitRecords:
    @pytest.mark.parametrize(
        ("data", "expected"),
        [
            (b"", []),
            (b"a", [b"a"]),
            (b"a\n", [b"a"]),
            (b"a\nb", [b"a", b"b"]),
            (b"a\r\nb\r\n", [b"a", b"b"]),
            (b"a\n\nb\n", [b"a", b"", b"b"]),
            (b"\n", [b""]),
            (b"a\rb\n", [b"a\rb"]),
        ],
    )
    def test_split(self, data: bytes, expected: list[bytes]) -> None:
        assert split_records(data) == expected


class TestCountNewlines:
    def test_counts_terminators_only(self) -> None:
        assert count_newlines(b"") == 0
        assert count_newlines(b"a") == 0
        assert count_newlines(b"a\nb") == 1
        assert count_newlines(b"a\r\nb\r\n") == 2


def test_md5_digest_matches_hashlib() -> None:
    assert md5_digest(b"relay") == hashlib.md5(b"relay").hexdigest()


class TestReadRecordFile:
    def test_reads_bytes_and_records(self, tmp_path: Path) -> None:
        path = tmp_path / "source.log"
        path.write_bytes(b"one\ntwo\n")

        record_file = read_record_file(path)

        assert record_file.path == path
        assert record_file.data == b"one\ntwo\n"
        assert record_file.lines == [b"one", b"two"]
        assert record_file.size == 8

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="File not found"):
            read_record_file(tmp_path / "absent.log")

    def test_file_stats(self, tmp_path: Path) -> None:
        path = tmp_path / "target.log"
        path.write_bytes(b"one\ntwo")
        assert file_stats(path) == FileStats(bytes=7, lines=2)


class TestFileRecordReader:
    @pytest.mark.asyncio
    async def test_read_accepts_string_paths(self, tmp_path: Path) -> None:
        path = tmp_path / "target.log"
        path.write_bytes(b"x\n")

        record_file = await FileRecordReader().read(str(path))  # type: ignore[arg-type]

        assert record_file.lines == [b"x"]
        assert record_file.path == path
