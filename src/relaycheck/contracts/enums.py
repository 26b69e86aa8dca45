"""Status values used across verification boundaries."""

from enum import StrEnum


class CompletionState(StrEnum):
    """State of the completion detector's stability machine.

    Transitions are strictly forward (GROWING -> STABLE -> DONE) except the
    STABLE -> GROWING reset when any watched size changes or drops below
    its minimum. TIMED_OUT is terminal and reachable from any live state.
    """

    GROWING = "growing"
    STABLE = "stable"
    DONE = "done"
    TIMED_OUT = "timed_out"

    @property
    def is_terminal(self) -> bool:
        return self in (CompletionState.DONE, CompletionState.TIMED_OUT)


class AuditIssueKind(StrEnum):
    """Category of a record-level audit finding."""

    EMPTY_RECORD = "empty_record"
    MISSING_RECORD = "missing_record"
    EXTRA_RECORD = "extra_record"
    INVALID_JSON = "invalid_json"
