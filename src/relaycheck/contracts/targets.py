"""Watch targets and result types for completion detection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@runtime_checkable
class SizeProbe(Protocol):
    """Reads the current byte size of one endpoint.

    Implementations return 0 for conditions that are expected while a
    pipeline warms up (e.g. the output file does not exist yet). Transient
    read failures raise ProbeFailure; the detector logs those and counts the
    target as 0 bytes for that tick. Anything else is fatal and propagates.
    """

    async def read_size(self) -> int:
        """Return the current size in bytes."""
        ...


@dataclass(frozen=True, slots=True)
class WaitTarget:
    """One size-observable endpoint the detector watches.

    Attributes:
        identity: Name the size is reported under (e.g. "target_1").
        probe: Size reader for this endpoint.
        minimum_bytes: Size the endpoint must reach before it can count as
            stable. Defaults to 1; pass 0 for endpoints allowed to stay empty.
    """

    identity: str
    probe: SizeProbe
    minimum_bytes: int = 1

    def __post_init__(self) -> None:
        if self.minimum_bytes < 0:
            raise ValueError(f"minimum_bytes must be non-negative, got {self.minimum_bytes}")


@dataclass(frozen=True, slots=True)
class CompletionResult:
    """Size vector at the moment stability was confirmed."""

    sizes: dict[str, int]
    polls: int = 0
    elapsed_seconds: float = field(default=0.0, compare=False)
