# src/relaycheck/collaborators/files.py
"""Read-only file access for validation.

Validation never mutates pipeline output; everything here opens files for
reading only. Blocking reads are pushed to a worker thread so independent
files for one validation step can be read concurrently.
"""

from __future__ import annotations

import asyncio
import hashlib
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

_RECORD_TERMINATOR = re.compile(rb"\r?\n")


@dataclass(frozen=True, slots=True)
class RecordFile:
    """Raw bytes of a file plus its record-split view."""

    path: Path
    data: bytes
    lines: list[bytes]

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class FileStats:
    """Byte size and record count of a file."""

    bytes: int
    lines: int


class RecordReader(Protocol):
    """Reads a file as raw bytes and as a list of records."""

    async def read(self, path: Path) -> RecordFile: ...


def split_records(data: bytes) -> list[bytes]:
    """Split content into records on ``\\n`` or ``\\r\\n``.

    Interior blank records are kept. Content ending in a terminator does not
    produce a trailing empty record, and empty content yields no records.
    """
    lines = _RECORD_TERMINATOR.split(data)
    if lines[-1] == b"":
        lines.pop()
    return lines


def count_newlines(data: bytes) -> int:
    """Number of ``\\n`` bytes, i.e. complete records in the buffer."""
    return data.count(b"\n")


def md5_digest(data: bytes) -> str:
    """Hex MD5 of a buffer, for fingerprinting artifacts in logs."""
    return hashlib.md5(data, usedforsecurity=False).hexdigest()


def read_record_file(path: Path) -> RecordFile:
    """Blocking read of ``path`` into a RecordFile.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
    """
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    data = path.read_bytes()
    return RecordFile(path=path, data=data, lines=split_records(data))


def file_stats(path: Path) -> FileStats:
    """Byte size and record count of ``path``."""
    record_file = read_record_file(path)
    return FileStats(bytes=record_file.size, lines=len(record_file.lines))


class FileRecordReader:
    """RecordReader over the local filesystem."""

    async def read(self, path: Path) -> RecordFile:
        return await asyncio.to_thread(read_record_file, Path(path))
