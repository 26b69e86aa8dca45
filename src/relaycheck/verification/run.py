# src/relaycheck/verification/run.py
"""One-call verification of a finished relay transfer.

Runs the checks in the order a scenario needs them: confirm the sinks have
stopped writing, prove integrity, prove fairness, then audit records. Each
step raises on failure and nothing is retried; re-running a scenario is the
caller's decision.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from relaycheck.collaborators.files import FileRecordReader, RecordFile, RecordReader
from relaycheck.contracts.counts import DistributionReport, LineCounts
from relaycheck.contracts.errors import DistributionViolation
from relaycheck.contracts.targets import CompletionResult, WaitTarget
from relaycheck.core.clock import Clock, Delay
from relaycheck.core.config import RelaycheckSettings
from relaycheck.core.logging import get_logger
from relaycheck.verification.completion import CompletionDetector
from relaycheck.verification.distribution import validate_distribution
from relaycheck.verification.integrity import IntegrityValidator
from relaycheck.verification.records import assert_records_clean

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class TransferVerdict:
    """Everything a passing verification established."""

    counts: LineCounts
    completion: CompletionResult | None = None
    distribution: DistributionReport | None = None
    records_audited: bool = False


class _MemoizingReader:
    """Reads each path once per run so the record audit reuses integrity's reads."""

    def __init__(self, inner: RecordReader) -> None:
        self._inner = inner
        self._files: dict[Path, RecordFile] = {}

    async def read(self, path: Path) -> RecordFile:
        cached = self._files.get(path)
        if cached is None:
            cached = await self._inner.read(path)
            self._files[path] = cached
        return cached


async def verify_transfer(
    source_path: Path,
    sink_paths: Sequence[Path],
    *,
    targets: Sequence[WaitTarget] | None = None,
    settings: RelaycheckSettings | None = None,
    allow_empty: bool = False,
    reader: RecordReader | None = None,
    clock: Clock | None = None,
    sleep: Delay | None = None,
) -> TransferVerdict:
    """Verify a completed (or completing) transfer end to end.

    Args:
        source_path: Producer input.
        sink_paths: Sink outputs, in sink order.
        targets: Endpoints to watch for completion first; None skips the wait.
        settings: Timing and audit switches (defaults if None).
        allow_empty: The scenario's source is expected to be empty.
        reader: Record reader (local files if None).
        clock: Clock for the completion deadline.
        sleep: Delay between completion polls.

    Raises:
        CompletionTimeout: Sinks never settled.
        LineCountMismatch: Record counts differ.
        MultisetReconciliationFailure: Byte content differs.
        DistributionViolation: Nothing processed, or a sink was starved.
        RecordAuditFailure: Record-level findings.
    """
    resolved = settings if settings is not None else RelaycheckSettings()
    memoizing = _MemoizingReader(reader if reader is not None else FileRecordReader())
    sources = [Path(source_path), *(Path(path) for path in sink_paths)]

    completion: CompletionResult | None = None
    if targets is not None:
        detector = CompletionDetector(resolved.completion, clock=clock, sleep=sleep)
        completion = await detector.wait(targets)

    counts = await IntegrityValidator(memoizing).validate(sources[0], sources[1:])

    distribution: DistributionReport | None = None
    if allow_empty and counts.source == 0:
        logger.info("Empty scenario; distribution check not applicable", counts=counts.as_dict())
    elif counts.total == 0:
        raise DistributionViolation(None, counts)
    else:
        distribution = validate_distribution(counts)

    audit = resolved.record_audit
    if audit.enabled:
        source, *sinks = [await memoizing.read(path) for path in sources]
        assert_records_clean(
            source.lines,
            [sink.lines for sink in sinks],
            allow_empty=allow_empty,
            check_json=audit.check_json,
        )

    logger.info("Transfer verified", counts=counts.as_dict(), order_preserved=counts.order_preserved)
    return TransferVerdict(
        counts=counts,
        completion=completion,
        distribution=distribution,
        records_audited=audit.enabled,
    )
