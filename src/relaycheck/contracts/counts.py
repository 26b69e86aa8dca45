"""Count records produced by integrity validation.

LineCounts is created once per validation pass and handed by value to the
distribution check. It is frozen; nothing downstream can alter it.
"""

from __future__ import annotations

from dataclasses import dataclass, field


def sink_name(index: int) -> str:
    """Return the reporting name of the sink at zero-based ``index``."""
    return f"target{index + 1}"


@dataclass(frozen=True, slots=True)
class LineCounts:
    """Line totals for one source and its sinks.

    ``targets`` holds one count per sink in the order the sinks were given.
    The two-sink view (``target1``, ``target2``) is what the relay pipeline
    reports; it is derived, so ``total`` always equals the sum of sinks.

    Attributes:
        source: Lines in the source.
        targets: Lines per sink, in sink order.
        order_preserved: Whether concatenating sinks in order reproduced the
            source sequence. Informational only; excluded from equality.
    """

    source: int
    targets: tuple[int, ...]
    order_preserved: bool | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.source < 0:
            raise ValueError(f"source count must be non-negative, got {self.source}")
        for index, count in enumerate(self.targets):
            if count < 0:
                raise ValueError(f"{sink_name(index)} count must be non-negative, got {count}")

    @classmethod
    def of(cls, source: int, *targets: int) -> LineCounts:
        """Shorthand: ``LineCounts.of(4, 2, 2)``."""
        return cls(source=source, targets=tuple(targets))

    @property
    def total(self) -> int:
        return sum(self.targets)

    @property
    def target1(self) -> int:
        return self._target(0)

    @property
    def target2(self) -> int:
        return self._target(1)

    def _target(self, index: int) -> int:
        if index < len(self.targets):
            return self.targets[index]
        return 0

    def by_sink(self) -> dict[str, int]:
        """Map sink names to their counts."""
        return {sink_name(index): count for index, count in enumerate(self.targets)}

    def as_dict(self) -> dict[str, int]:
        """Render as ``{"source", "target1", ..., "total"}``."""
        return {"source": self.source, **self.by_sink(), "total": self.total}


@dataclass(frozen=True, slots=True)
class SinkShare:
    """One sink's slice of the distributed records."""

    sink: str
    lines: int
    percentage: float


@dataclass(frozen=True, slots=True)
class DistributionReport:
    """Advisory percentage split produced by a passing distribution check."""

    total: int
    shares: tuple[SinkShare, ...]

    def percentage_of(self, sink: str) -> float:
        for share in self.shares:
            if share.sink == sink:
                return share.percentage
        raise KeyError(sink)
