# src/relaycheck/verification/integrity.py
"""Integrity validation: prove the sinks hold exactly the source's data.

Steps, each fatal on failure and ordered cheapest first:

1. Read the source and every sink (concurrently; raw bytes + record view).
2. Conservation of record count. Cheap and easy to diagnose.
3. Ordering signal: do the sinks, concatenated in order, replay the source?
   Informational only, since the splitter may legitimately reorder.
4. Byte multiset reconciliation via FrequencyLedger. Authoritative: it also
   catches same-count, different-content corruption.
5. Report counts from newline occurrences in the raw buffers.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from itertools import chain
from pathlib import Path

from relaycheck.collaborators.files import FileRecordReader, RecordFile, RecordReader, count_newlines, md5_digest
from relaycheck.contracts.counts import LineCounts, sink_name
from relaycheck.contracts.errors import LineCountMismatch, MultisetReconciliationFailure
from relaycheck.core.logging import get_logger
from relaycheck.verification.frequency import FrequencyLedger

logger = get_logger(__name__)


class IntegrityValidator:
    """Reconciles one source against the union of its sinks."""

    def __init__(self, reader: RecordReader | None = None) -> None:
        self._reader = reader if reader is not None else FileRecordReader()

    async def validate(self, source_path: Path, sink_paths: Sequence[Path]) -> LineCounts:
        """Run the full reconciliation pass.

        Raises:
            ValueError: If no sink paths are given.
            LineCountMismatch: If source and sinks hold different record counts.
            MultisetReconciliationFailure: If the sinks' bytes differ from the source's.
        """
        if not sink_paths:
            raise ValueError("At least one sink path is required for integrity validation")

        logger.info("Data integrity validation (byte-level)", source=str(source_path), sinks=len(sink_paths))

        source, *sinks = await asyncio.gather(
            self._reader.read(Path(source_path)),
            *(self._reader.read(Path(path)) for path in sink_paths),
        )
        logger.info(
            "Read validation inputs",
            source_bytes=source.size,
            source_md5=md5_digest(source.data),
            sink_bytes={sink_name(index): sink.size for index, sink in enumerate(sinks)},
        )

        self._check_line_counts(source, sinks)
        order_preserved = self._ordering_preserved(source, sinks)

        # Past the count check, an empty source implies empty sinks.
        if source.size == 0:
            logger.info("Empty source; nothing to reconcile")
        else:
            self._reconcile(source, sinks)

        if not order_preserved:
            logger.warning(
                "Line ordering mismatch between source and targets; reconciliation succeeded but ordering changed"
            )
        logger.info("Integrity check passed (byte multiset and line counts match)")

        return LineCounts(
            source=count_newlines(source.data),
            targets=tuple(count_newlines(sink.data) for sink in sinks),
            order_preserved=order_preserved,
        )

    @staticmethod
    def _check_line_counts(source: RecordFile, sinks: Sequence[RecordFile]) -> None:
        source_lines = len(source.lines)
        sink_lines = sum(len(sink.lines) for sink in sinks)
        if source_lines != sink_lines:
            logger.error("Line count mismatch", source_lines=source_lines, sink_lines=sink_lines)
            raise LineCountMismatch(source_lines, sink_lines)

    @staticmethod
    def _ordering_preserved(source: RecordFile, sinks: Sequence[RecordFile]) -> bool:
        # Counts already match, so an element-wise walk covers both sequences.
        combined = chain.from_iterable(sink.lines for sink in sinks)
        return all(expected == actual for expected, actual in zip(source.lines, combined, strict=True))

    @staticmethod
    def _reconcile(source: RecordFile, sinks: Sequence[RecordFile]) -> None:
        logger.info("Performing byte multiset reconciliation")
        ledger = FrequencyLedger.build(source.data)
        baseline = ledger.snapshot()

        for index, sink in enumerate(sinks):
            if not ledger.subtract(sink.data):
                raise _reconciliation_failure(baseline, sinks, sink_name(index))

        if not ledger.is_empty:
            raise _reconciliation_failure(baseline, sinks, None)


def _reconciliation_failure(
    baseline: FrequencyLedger,
    sinks: Sequence[RecordFile],
    failed_sink: str | None,
) -> MultisetReconciliationFailure:
    discrepancy = baseline.discrepancy(chain.from_iterable(sink.data for sink in sinks))
    logger.error(
        "Byte frequency reconciliation failed",
        failed_sink=failed_sink,
        missing_tokens=len(discrepancy.missing),
        unexpected_tokens=len(discrepancy.unexpected),
    )
    return MultisetReconciliationFailure(failed_sink, discrepancy)


async def validate_integrity(
    source_path: Path,
    sink_paths: Sequence[Path],
    *,
    reader: RecordReader | None = None,
) -> LineCounts:
    """Prove byte-for-byte multiset equivalence of a source and its sinks.

    Returns:
        LineCounts with ``order_preserved`` set.

    Raises:
        LineCountMismatch: Conservation-of-count failed.
        MultisetReconciliationFailure: Byte content differs.
    """
    return await IntegrityValidator(reader).validate(source_path, sink_paths)
