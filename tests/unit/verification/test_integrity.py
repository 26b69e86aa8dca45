# tests/unit/verification/test_integrity.py
"""Tests for integrity validation (count conservation + byte reconciliation)."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from relaycheck.collaborators.files import FileRecordReader, RecordFile
from relaycheck.contracts.counts import LineCounts
from relaycheck.contracts.errors import LineCountMismatch, MultisetReconciliationFailure
from relaycheck.verification.frequency import FrequencyLedger
from relaycheck.verification.integrity import IntegrityValidator, validate_integrity
from tests.fixtures.relay import RelayFiles

WriteRelay = Callable[..., RelayFiles]


class CountingReader:
    """RecordReader that records which paths were read."""

    def __init__(self) -> None:
        self._inner = FileRecordReader()
        self.paths: list[Path] = []

    async def read(self, path: Path) -> RecordFile:
        self.paths.append(path)
        return await self._inner.read(path)


class TestValidateIntegrity:
    """End-to-end reconciliation over files on disk."""

    @pytest.mark.asyncio
    async def test_returns_line_counts_when_data_matches(self, relay_files: WriteRelay) -> None:
        files = relay_files(b"line-1\nline-2\n", b"line-1\n", b"line-2\n")

        counts = await validate_integrity(files.source, files.sinks)

        assert counts == LineCounts.of(2, 1, 1)
        assert counts.as_dict() == {"source": 2, "target1": 1, "target2": 1, "total": 2}
        assert counts.order_preserved is True

    @pytest.mark.asyncio
    async def test_shuffled_lines_pass_with_ordering_warning(self, relay_files: WriteRelay) -> None:
        files = relay_files(b"line-1\nline-2\n", b"line-2\n", b"line-1\n")

        with capture_logs() as logs:
            counts = await validate_integrity(files.source, files.sinks)

        assert counts.total == 2
        assert counts.order_preserved is False
        warnings = [entry for entry in logs if entry["log_level"] == "warning"]
        assert any("ordering" in entry["event"] for entry in warnings)

    @pytest.mark.asyncio
    async def test_reconciliation_detects_data_loss(self, relay_files: WriteRelay) -> None:
        files = relay_files(b"line-1\nline-2\n", b"line-1\n", b"line-x\n")

        with pytest.raises(MultisetReconciliationFailure, match="Byte frequency reconciliation failed") as exc_info:
            await validate_integrity(files.source, files.sinks)

        error = exc_info.value
        assert error.sink == "target2"
        assert error.discrepancy.missing == {ord("2"): 1}
        assert error.discrepancy.unexpected == {ord("x"): 1}

    @pytest.mark.asyncio
    async def test_leftover_source_bytes_fail_after_all_sinks(self, relay_files: WriteRelay) -> None:
        """Same line count, sinks shorter than source: every subtraction succeeds."""
        files = relay_files(b"line-10\nline-2\n", b"line-1\n", b"line-2\n")

        with pytest.raises(MultisetReconciliationFailure, match="after all sinks") as exc_info:
            await validate_integrity(files.source, files.sinks)

        assert exc_info.value.sink is None
        assert exc_info.value.discrepancy.missing == {ord("0"): 1}

    @pytest.mark.asyncio
    async def test_line_count_mismatch_runs_before_reconciliation(
        self, relay_files: WriteRelay, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        files = relay_files(b"line-1\nline-2\n", b"line-1\n", b"line-2\nline-3\n")

        def _fail_build(*args: object, **kwargs: object) -> FrequencyLedger:
            raise AssertionError("reconciliation must not run after a count mismatch")

        monkeypatch.setattr(FrequencyLedger, "build", _fail_build)

        with pytest.raises(LineCountMismatch, match="Line count mismatch") as exc_info:
            await validate_integrity(files.source, files.sinks)

        assert exc_info.value.source_lines == 2
        assert exc_info.value.sink_lines == 3

    @pytest.mark.asyncio
    async def test_empty_source_yields_zero_counts_without_subtraction(
        self, relay_files: WriteRelay, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        files = relay_files(b"", b"", b"")

        def _fail_subtract(self: FrequencyLedger, tokens: object) -> bool:
            raise AssertionError("subtract must not be called for an empty source")

        monkeypatch.setattr(FrequencyLedger, "subtract", _fail_subtract)

        counts = await validate_integrity(files.source, files.sinks)

        assert counts.as_dict() == {"source": 0, "target1": 0, "target2": 0, "total": 0}

    @pytest.mark.asyncio
    async def test_blank_lines_count_as_lines(self, relay_files: WriteRelay) -> None:
        files = relay_files(b"a\n\nb\n", b"a\n\n", b"b\n")

        counts = await validate_integrity(files.source, files.sinks)

        assert counts == LineCounts.of(3, 2, 1)

    @pytest.mark.asyncio
    async def test_crlf_records_reconcile(self, relay_files: WriteRelay) -> None:
        files = relay_files(b"a\r\nb\r\n", b"b\r\n", b"a\r\n")

        counts = await validate_integrity(files.source, files.sinks)

        assert counts == LineCounts.of(2, 1, 1)

    @pytest.mark.asyncio
    async def test_same_count_different_content_is_caught(self, relay_files: WriteRelay) -> None:
        files = relay_files(b"alpha\nbeta\n", b"alpha\n", b"betb\n")

        with pytest.raises(MultisetReconciliationFailure):
            await validate_integrity(files.source, files.sinks)

    @pytest.mark.asyncio
    async def test_duplicated_record_is_caught(self, relay_files: WriteRelay) -> None:
        files = relay_files(b"a\nb\n", b"a\n", b"a\n")

        with pytest.raises(MultisetReconciliationFailure) as exc_info:
            await validate_integrity(files.source, files.sinks)

        assert exc_info.value.sink == "target2"

    @pytest.mark.asyncio
    async def test_counts_come_from_newlines_in_raw_buffers(self, relay_files: WriteRelay) -> None:
        """A final record without a terminator is a line but not a newline."""
        files = relay_files(b"a\nb", b"a\n", b"b")

        counts = await validate_integrity(files.source, files.sinks)

        assert counts == LineCounts.of(1, 1, 0)

    @pytest.mark.asyncio
    async def test_supports_more_than_two_sinks(self, relay_files: WriteRelay) -> None:
        files = relay_files(b"1\n2\n3\n", b"2\n", b"3\n", b"1\n")

        counts = await validate_integrity(files.source, files.sinks)

        assert counts.targets == (1, 1, 1)
        assert counts.as_dict() == {"source": 3, "target1": 1, "target2": 1, "target3": 1, "total": 3}

    @pytest.mark.asyncio
    async def test_requires_a_sink(self, relay_files: WriteRelay) -> None:
        files = relay_files(b"a\n")
        with pytest.raises(ValueError, match="At least one sink"):
            await validate_integrity(files.source, [])

    @pytest.mark.asyncio
    async def test_missing_sink_file_raises(self, relay_files: WriteRelay, tmp_path: Path) -> None:
        files = relay_files(b"a\n", b"a\n")
        with pytest.raises(FileNotFoundError, match="File not found"):
            await validate_integrity(files.source, [files.sinks[0], tmp_path / "absent.log"])

    @pytest.mark.asyncio
    async def test_reads_each_file_once_through_injected_reader(self, relay_files: WriteRelay) -> None:
        files = relay_files(b"a\nb\n", b"a\n", b"b\n")
        reader = CountingReader()

        await IntegrityValidator(reader).validate(files.source, files.sinks)

        assert sorted(reader.paths) == sorted([files.source, *files.sinks])

    @pytest.mark.asyncio
    async def test_does_not_modify_inputs(self, relay_files: WriteRelay) -> None:
        files = relay_files(b"a\nb\n", b"a\n", b"b\n")
        before = [path.read_bytes() for path in (files.source, *files.sinks)]

        await validate_integrity(files.source, files.sinks)

        assert [path.read_bytes() for path in (files.source, *files.sinks)] == before
