"""Shared contracts: count records, watch targets, enums and errors.

Leaf package: imports nothing else from relaycheck.
"""

from relaycheck.contracts.counts import DistributionReport, LineCounts, SinkShare, sink_name
from relaycheck.contracts.enums import AuditIssueKind, CompletionState
from relaycheck.contracts.errors import (
    AuditIssue,
    CompletionTimeout,
    DistributionViolation,
    InsufficientTargets,
    LedgerDiscrepancy,
    LineCountMismatch,
    MultisetReconciliationFailure,
    ProbeFailure,
    RecordAuditFailure,
    VerificationError,
)
from relaycheck.contracts.targets import CompletionResult, SizeProbe, WaitTarget

__all__ = [
    "AuditIssue",
    "AuditIssueKind",
    "CompletionResult",
    "CompletionState",
    "CompletionTimeout",
    "DistributionReport",
    "DistributionViolation",
    "InsufficientTargets",
    "LedgerDiscrepancy",
    "LineCountMismatch",
    "LineCounts",
    "MultisetReconciliationFailure",
    "ProbeFailure",
    "RecordAuditFailure",
    "SinkShare",
    "SizeProbe",
    "VerificationError",
    "WaitTarget",
    "sink_name",
]
