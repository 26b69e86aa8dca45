# src/relaycheck/verification/records.py
"""Record-level transfer audit.

Complements the byte ledger, which is blind to record identity. Checks:

- empty sink records, a sign of truncated or split writes;
- records missing from the sinks, or present in the sinks but not the source
  (record multiset diff, duplicates respected);
- records that look like JSON (``{...}`` / ``[...]``) must parse.

Findings are collected rather than raised one at a time so a large scenario
reports everything wrong with it in a single run.
"""

from __future__ import annotations

import asyncio
import json
from collections import Counter
from collections.abc import Sequence
from pathlib import Path

from relaycheck.collaborators.files import FileRecordReader, RecordReader
from relaycheck.contracts.counts import sink_name
from relaycheck.contracts.enums import AuditIssueKind
from relaycheck.contracts.errors import AuditIssue, RecordAuditFailure
from relaycheck.core.logging import get_logger

logger = get_logger(__name__)

_PREVIEW_CHARS = 50


def _preview(record: bytes) -> str:
    text = record.decode("utf-8", errors="replace")
    if len(text) > _PREVIEW_CHARS:
        return f"{text[:_PREVIEW_CHARS]}..."
    return text


def _looks_like_json(record: bytes) -> bool:
    trimmed = record.strip()
    return (trimmed.startswith(b"{") and trimmed.endswith(b"}")) or (
        trimmed.startswith(b"[") and trimmed.endswith(b"]")
    )


def _empty_record_issues(sink_lines: Sequence[Sequence[bytes]]) -> list[AuditIssue]:
    return [
        AuditIssue(
            kind=AuditIssueKind.EMPTY_RECORD,
            detail="Empty line (potential truncation)",
            sink=sink_name(index),
            line_number=line_number,
        )
        for index, lines in enumerate(sink_lines)
        for line_number, line in enumerate(lines, start=1)
        if not line
    ]


def _multiset_issues(source_lines: Sequence[bytes], sink_lines: Sequence[Sequence[bytes]]) -> list[AuditIssue]:
    expected = Counter(source_lines)
    observed: Counter[bytes] = Counter()
    for lines in sink_lines:
        observed.update(lines)

    issues = [
        AuditIssue(
            kind=AuditIssueKind.MISSING_RECORD,
            detail=f'Event missing {count} occurrence(s) in targets: "{_preview(record)}"',
        )
        for record, count in (expected - observed).items()
    ]
    issues.extend(
        AuditIssue(
            kind=AuditIssueKind.EXTRA_RECORD,
            detail=f'Extra event with {count} occurrence(s) not in source: "{_preview(record)}"',
        )
        for record, count in (observed - expected).items()
    )
    return issues


def _json_issues(sink_lines: Sequence[Sequence[bytes]]) -> list[AuditIssue]:
    issues: list[AuditIssue] = []
    for index, lines in enumerate(sink_lines):
        for line_number, line in enumerate(lines, start=1):
            if not _looks_like_json(line):
                continue
            try:
                json.loads(line)
            except (json.JSONDecodeError, UnicodeDecodeError):
                issues.append(
                    AuditIssue(
                        kind=AuditIssueKind.INVALID_JSON,
                        detail="Invalid JSON format",
                        sink=sink_name(index),
                        line_number=line_number,
                    )
                )
    return issues


def audit_records(
    source_lines: Sequence[bytes],
    sink_lines: Sequence[Sequence[bytes]],
    *,
    allow_empty: bool = False,
    check_json: bool = True,
) -> list[AuditIssue]:
    """Collect record-level findings for one source and its sinks.

    Args:
        source_lines: Source records.
        sink_lines: Records per sink, in sink order.
        allow_empty: Scenario may legitimately produce no output; when every
            sink is empty the empty-record check is skipped.
        check_json: Validate records that look like JSON.
    """
    issues: list[AuditIssue] = []
    if not allow_empty or any(sink_lines):
        issues.extend(_empty_record_issues(sink_lines))
    issues.extend(_multiset_issues(source_lines, sink_lines))
    if check_json:
        issues.extend(_json_issues(sink_lines))

    if issues:
        logger.warning("Record audit found issues", issue_count=len(issues))
    else:
        logger.info("Record audit passed", source_records=len(source_lines))
    return issues


def assert_records_clean(
    source_lines: Sequence[bytes],
    sink_lines: Sequence[Sequence[bytes]],
    *,
    allow_empty: bool = False,
    check_json: bool = True,
) -> None:
    """Like audit_records, but raise on any finding.

    Raises:
        RecordAuditFailure: Listing the first findings in its message.
    """
    issues = audit_records(source_lines, sink_lines, allow_empty=allow_empty, check_json=check_json)
    if issues:
        raise RecordAuditFailure(issues)


async def audit_files(
    source_path: Path,
    sink_paths: Sequence[Path],
    *,
    reader: RecordReader | None = None,
    allow_empty: bool = False,
    check_json: bool = True,
) -> list[AuditIssue]:
    """Read the files and run audit_records over them."""
    file_reader = reader if reader is not None else FileRecordReader()
    source, *sinks = await asyncio.gather(
        file_reader.read(Path(source_path)),
        *(file_reader.read(Path(path)) for path in sink_paths),
    )
    return audit_records(
        source.lines,
        [sink.lines for sink in sinks],
        allow_empty=allow_empty,
        check_json=check_json,
    )
