"""Verification error taxonomy and diagnostic payloads.

Every failure carries enough data to diagnose without re-running the
scenario: counts, target identities, last observed sizes, and the tokens
that failed to reconcile. None of these are retried by the library.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from relaycheck.contracts.enums import AuditIssueKind

if TYPE_CHECKING:
    from relaycheck.contracts.counts import LineCounts

# Number of distinct tokens / issues rendered into an exception message.
# The full data stays on the exception's attributes.
_MESSAGE_PREVIEW_LIMIT = 10


# =============================================================================
# Diagnostic payloads
# =============================================================================


@dataclass(frozen=True, slots=True)
class LedgerDiscrepancy:
    """Difference between an expected token multiset and an observed one.

    Attributes:
        missing: token -> how many more occurrences were expected.
        unexpected: token -> how many occurrences had no counterpart.
    """

    missing: Mapping[int, int] = field(default_factory=dict)
    unexpected: Mapping[int, int] = field(default_factory=dict)

    @property
    def is_clean(self) -> bool:
        return not self.missing and not self.unexpected

    def describe(self, limit: int = _MESSAGE_PREVIEW_LIMIT) -> str:
        parts: list[str] = []
        if self.missing:
            parts.append(f"missing {_render_tokens(self.missing, limit)}")
        if self.unexpected:
            parts.append(f"unexpected {_render_tokens(self.unexpected, limit)}")
        return "; ".join(parts) if parts else "no token-level difference"


@dataclass(frozen=True, slots=True)
class AuditIssue:
    """One record-level finding from the record audit."""

    kind: AuditIssueKind
    detail: str
    sink: str | None = None
    line_number: int | None = None

    def __str__(self) -> str:
        if self.sink is not None and self.line_number is not None:
            return f"{self.sink}:{self.line_number} - {self.detail}"
        return self.detail


def _render_token(token: int) -> str:
    return repr(bytes([token]))


def _render_tokens(tokens: Mapping[int, int], limit: int) -> str:
    ordered = sorted(tokens.items(), key=lambda item: (-item[1], item[0]))
    rendered = ", ".join(f"{_render_token(token)}x{count}" for token, count in ordered[:limit])
    if len(ordered) > limit:
        rendered += f", ... ({len(ordered) - limit} more)"
    return rendered


# =============================================================================
# Exceptions
# =============================================================================


class VerificationError(Exception):
    """Base class for every verification failure."""


class InsufficientTargets(VerificationError):
    """Completion detection was invoked with no targets to watch."""

    def __init__(self) -> None:
        super().__init__("At least one target must be provided to wait for completion.")


class CompletionTimeout(VerificationError):
    """Sizes never held still for the stabilization window before the deadline.

    Attributes:
        timeout_ms: Configured deadline.
        last_sizes: Size vector from the final poll.
        stable_polls: Consecutive stable polls reached when time ran out.
        required_polls: Stable polls needed for completion.
    """

    def __init__(
        self,
        timeout_ms: int,
        last_sizes: Mapping[str, int],
        *,
        stable_polls: int = 0,
        required_polls: int = 0,
    ) -> None:
        self.timeout_ms = timeout_ms
        self.last_sizes = dict(last_sizes)
        self.stable_polls = stable_polls
        self.required_polls = required_polls
        super().__init__(
            f"Timeout: transfer did not complete within {timeout_ms / 1000:g} seconds "
            f"(last sizes={self.last_sizes}, stable polls {stable_polls}/{required_polls})"
        )


class ProbeFailure(VerificationError):
    """A single size read failed. Non-fatal to completion detection."""

    def __init__(self, identity: str, reason: str) -> None:
        self.identity = identity
        self.reason = reason
        super().__init__(f"Failed to read file size from {identity}: {reason}")


class LineCountMismatch(VerificationError):
    """Source and sinks hold a different number of records."""

    def __init__(self, source_lines: int, sink_lines: int) -> None:
        self.source_lines = source_lines
        self.sink_lines = sink_lines
        super().__init__(f"Line count mismatch (source={source_lines} vs targets={sink_lines}).")


class MultisetReconciliationFailure(VerificationError):
    """The sinks' bytes are not exactly the source's bytes.

    Attributes:
        sink: Sink whose subtraction failed, or None when every subtraction
            succeeded but source bytes were left over.
        discrepancy: Token-level diff computed from a pre-subtraction snapshot.
    """

    def __init__(self, sink: str | None, discrepancy: LedgerDiscrepancy) -> None:
        self.sink = sink
        self.discrepancy = discrepancy
        where = f"subtracting {sink}" if sink is not None else "after all sinks"
        super().__init__(
            "Byte frequency reconciliation failed: possible data loss or duplication "
            f"({where}; {discrepancy.describe()})."
        )


class DistributionViolation(VerificationError):
    """Fan-out was degenerate: nothing processed, or a sink was starved.

    Attributes:
        sink: Starved sink name, or None when no sink received anything.
        counts: The counts that failed the check.
    """

    def __init__(self, sink: str | None, counts: LineCounts) -> None:
        self.sink = sink
        self.counts = counts
        if sink is None:
            message = f"No data was processed by any target (counts={counts.as_dict()})"
        else:
            message = f"{sink} received no data (counts={counts.as_dict()})"
        super().__init__(message)


class RecordAuditFailure(VerificationError):
    """Record-level audit found missing, extra, empty or malformed records."""

    def __init__(self, issues: Sequence[AuditIssue]) -> None:
        self.issues = tuple(issues)
        shown = "\n".join(f"  - {issue}" for issue in self.issues[:_MESSAGE_PREVIEW_LIMIT])
        hidden = len(self.issues) - _MESSAGE_PREVIEW_LIMIT
        suffix = f"\n  ... and {hidden} more" if hidden > 0 else ""
        super().__init__(f"Found {len(self.issues)} record issue(s):\n{shown}{suffix}")
