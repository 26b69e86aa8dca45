"""Concrete file readers and size probes consumed by the verification core."""

from relaycheck.collaborators.files import (
    FileRecordReader,
    FileStats,
    RecordFile,
    RecordReader,
    count_newlines,
    file_stats,
    md5_digest,
    read_record_file,
    split_records,
)
from relaycheck.collaborators.probes import ComposeFileSizeProbe, FileSizeProbe

__all__ = [
    "ComposeFileSizeProbe",
    "FileRecordReader",
    "FileSizeProbe",
    "FileStats",
    "RecordFile",
    "RecordReader",
    "count_newlines",
    "file_stats",
    "md5_digest",
    "read_record_file",
    "split_records",
]
