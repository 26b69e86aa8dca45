"""Verification engine: completion, integrity, distribution and record audit."""

from relaycheck.verification.completion import CompletionDetector, StabilityTracker, detect_completion
from relaycheck.verification.distribution import validate_distribution
from relaycheck.verification.frequency import FrequencyLedger
from relaycheck.verification.integrity import IntegrityValidator, validate_integrity
from relaycheck.verification.records import assert_records_clean, audit_files, audit_records
from relaycheck.verification.run import TransferVerdict, verify_transfer

__all__ = [
    "CompletionDetector",
    "FrequencyLedger",
    "IntegrityValidator",
    "StabilityTracker",
    "TransferVerdict",
    "assert_records_clean",
    "audit_files",
    "audit_records",
    "detect_completion",
    "validate_distribution",
    "validate_integrity",
    "verify_transfer",
]
