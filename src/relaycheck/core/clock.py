# src/relaycheck/core/clock.py
"""Clock and delay abstractions for the completion detector.

The detector enforces an absolute wall-clock deadline and suspends between
polls. Both are injected so tests can drive the poll loop on simulated time:
MockClock.sleep advances the clock instead of waiting.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Protocol

# async sleep(seconds); asyncio.sleep is the production implementation.
Delay = Callable[[float], Awaitable[None]]


class Clock(Protocol):
    """Monotonic time source for deadline arithmetic."""

    def monotonic(self) -> float:
        """Return monotonic time in seconds (never goes backwards)."""
        ...


class SystemClock:
    """Production clock backed by time.monotonic()."""

    def monotonic(self) -> float:
        return time.monotonic()


class MockClock:
    """Controllable clock for deterministic poll-loop tests.

    Example:
        clock = MockClock()
        result = await detect_completion(
            targets, clock=clock, sleep=clock.sleep, poll_interval_ms=100
        )
        assert clock.monotonic() == pytest.approx(0.3)
    """

    def __init__(self, start: float = 0.0) -> None:
        self._current = start
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self._current

    def advance(self, seconds: float) -> None:
        """Advance time.

        Raises:
            ValueError: If seconds is negative.
        """
        if seconds < 0:
            raise ValueError(f"Cannot advance time by negative amount: {seconds}")
        self._current += seconds

    def set(self, value: float) -> None:
        """Set time to an absolute value (may move backwards; tests only)."""
        self._current = value

    async def sleep(self, seconds: float) -> None:
        """Record the requested delay and advance simulated time by it."""
        self.sleeps.append(seconds)
        self.advance(seconds)
        # Still yield to the loop so concurrent tasks interleave as they would.
        await asyncio.sleep(0)


DEFAULT_CLOCK: Clock = SystemClock()
DEFAULT_DELAY: Delay = asyncio.sleep
