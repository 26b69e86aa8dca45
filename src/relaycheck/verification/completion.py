# src/relaycheck/verification/completion.py
"""Completion detection by size stability.

The pipeline under test never announces that it has finished writing, so the
detector infers it: every watched endpoint must report the same size (at or
above its minimum) for a run of consecutive polls spanning the stabilization
window. This tolerates bursty, buffered and independently scheduled writers,
at the price of a worst-case detection latency equal to the window.

Usage:
    targets = [
        WaitTarget("target_1", ComposeFileSizeProbe("target_1", "events.log"), minimum_bytes=0),
        WaitTarget("target_2", ComposeFileSizeProbe("target_2", "events.log"), minimum_bytes=0),
    ]
    result = await detect_completion(targets, stabilization_ms=10_000)
    result.sizes  # {"target_1": 4096, "target_2": 4011}
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence

from relaycheck.contracts.enums import CompletionState
from relaycheck.contracts.errors import CompletionTimeout, InsufficientTargets, ProbeFailure
from relaycheck.contracts.targets import CompletionResult, WaitTarget
from relaycheck.core.clock import DEFAULT_CLOCK, DEFAULT_DELAY, Clock, Delay
from relaycheck.core.config import CompletionSettings
from relaycheck.core.logging import get_logger

logger = get_logger(__name__)


class StabilityTracker:
    """Explicit state machine over successive size vectors.

    States: GROWING, STABLE (with ``consecutive_stable`` = n), DONE, TIMED_OUT.
    Each observation either extends the stable run or resets it to zero;
    the run reaching ``required_polls`` moves the machine to DONE. The first
    observation is a baseline and can never be stable on its own.
    """

    def __init__(self, required_polls: int) -> None:
        if required_polls < 1:
            raise ValueError(f"required_polls must be >= 1, got {required_polls}")
        self._required_polls = required_polls
        self._state = CompletionState.GROWING
        self._consecutive_stable = 0
        self._observations = 0
        self._previous: dict[str, int] | None = None

    @property
    def state(self) -> CompletionState:
        return self._state

    @property
    def consecutive_stable(self) -> int:
        return self._consecutive_stable

    @property
    def required_polls(self) -> int:
        return self._required_polls

    @property
    def observations(self) -> int:
        return self._observations

    def observe(self, sizes: Mapping[str, int], minimums: Mapping[str, int]) -> CompletionState:
        """Feed one poll's sizes and return the resulting state.

        Raises:
            RuntimeError: If the machine is already DONE or TIMED_OUT.
        """
        if self._state.is_terminal:
            raise RuntimeError(f"Cannot observe sizes in terminal state {self._state}")

        previous = self._previous
        stable = previous is not None and all(
            identity in previous and previous[identity] == size and size >= minimums[identity]
            for identity, size in sizes.items()
        )
        self._previous = dict(sizes)
        self._observations += 1

        if stable:
            self._consecutive_stable += 1
            if self._consecutive_stable >= self._required_polls:
                self._state = CompletionState.DONE
            else:
                self._state = CompletionState.STABLE
        else:
            self._consecutive_stable = 0
            self._state = CompletionState.GROWING
        return self._state

    def expire(self) -> None:
        """Deadline passed before DONE."""
        if self._state is CompletionState.DONE:
            raise RuntimeError("Cannot expire a completed wait")
        self._state = CompletionState.TIMED_OUT


class CompletionDetector:
    """Polls size probes until they hold still or the deadline passes.

    Polls are strictly sequential: the next one starts only after every read
    of the previous one has finished. Reads within one poll run concurrently
    and are cancelled together if the deadline passes while they are pending.
    """

    def __init__(
        self,
        settings: CompletionSettings | None = None,
        *,
        clock: Clock | None = None,
        sleep: Delay | None = None,
    ) -> None:
        self._settings = settings if settings is not None else CompletionSettings()
        self._clock = clock if clock is not None else DEFAULT_CLOCK
        self._sleep = sleep if sleep is not None else DEFAULT_DELAY

    @property
    def settings(self) -> CompletionSettings:
        return self._settings

    async def wait(self, targets: Sequence[WaitTarget]) -> CompletionResult:
        """Block until every target is stable.

        Raises:
            InsufficientTargets: If ``targets`` is empty.
            ValueError: If two targets share an identity.
            CompletionTimeout: If the deadline passes first.
        """
        if not targets:
            raise InsufficientTargets()
        identities = [target.identity for target in targets]
        if len(set(identities)) != len(identities):
            raise ValueError(f"Target identities must be unique, got {identities}")

        settings = self._settings
        minimums = {target.identity: target.minimum_bytes for target in targets}
        tracker = StabilityTracker(settings.required_stable_polls)
        poll_interval = settings.poll_interval_ms / 1000
        started = self._clock.monotonic()
        deadline = started + settings.timeout_ms / 1000

        logger.info(
            "Waiting for data transfer to complete",
            targets=identities,
            timeout_ms=settings.timeout_ms,
            poll_interval_ms=settings.poll_interval_ms,
            required_stable_polls=tracker.required_polls,
        )

        sizes: dict[str, int] = {}
        while True:
            remaining = deadline - self._clock.monotonic()
            if remaining <= 0:
                raise self._timed_out(tracker, sizes)
            # Reads are bounded by what the clock says is left, so a hung probe
            # cannot outlive the deadline.
            poll_deadline = asyncio.timeout(remaining)
            try:
                async with poll_deadline:
                    sizes = await self._observe(targets)
            except TimeoutError:
                if not poll_deadline.expired():
                    raise
                raise self._timed_out(tracker, sizes) from None
            state = tracker.observe(sizes, minimums)

            if state is CompletionState.STABLE:
                logger.info(
                    "Sizes stable",
                    stable_polls=tracker.consecutive_stable,
                    required_stable_polls=tracker.required_polls,
                )
            elif state is CompletionState.DONE:
                elapsed = self._clock.monotonic() - started
                logger.info("Data transfer completed", sizes=sizes, polls=tracker.observations, elapsed_s=elapsed)
                return CompletionResult(sizes=sizes, polls=tracker.observations, elapsed_seconds=elapsed)

            if self._clock.monotonic() >= deadline:
                raise self._timed_out(tracker, sizes)

            await self._sleep(poll_interval)

    def _timed_out(self, tracker: StabilityTracker, last_sizes: dict[str, int]) -> CompletionTimeout:
        tracker.expire()
        timeout_ms = self._settings.timeout_ms
        logger.error("Data transfer did not complete", last_sizes=last_sizes, timeout_ms=timeout_ms)
        return CompletionTimeout(
            timeout_ms,
            last_sizes,
            stable_polls=tracker.consecutive_stable,
            required_polls=tracker.required_polls,
        )

    async def _observe(self, targets: Sequence[WaitTarget]) -> dict[str, int]:
        # TaskGroup cancels sibling reads when one fails or the poll times out.
        try:
            async with asyncio.TaskGroup() as group:
                tasks = [group.create_task(self._read(target)) for target in targets]
        except ExceptionGroup as failures:
            # _read absorbs non-fatal failures; whatever is left ends the wait.
            raise failures.exceptions[0] from None
        sizes = {target.identity: task.result() for target, task in zip(targets, tasks, strict=True)}
        for identity, size in sizes.items():
            logger.debug("Observed size", identity=identity, size=size)
        return sizes

    async def _read(self, target: WaitTarget) -> int:
        try:
            return await target.probe.read_size()
        except (ProbeFailure, OSError) as exc:
            logger.error("Failed to read file size", identity=target.identity, error=str(exc))
            return 0


async def detect_completion(
    targets: Sequence[WaitTarget],
    *,
    timeout_ms: int | None = None,
    poll_interval_ms: int | None = None,
    stabilization_ms: int | None = None,
    settings: CompletionSettings | None = None,
    clock: Clock | None = None,
    sleep: Delay | None = None,
) -> CompletionResult:
    """Wait for ``targets`` to stop growing.

    Keyword timings override the corresponding fields of ``settings``
    (or of the defaults when ``settings`` is None).

    Raises:
        InsufficientTargets: If ``targets`` is empty.
        CompletionTimeout: If stability is not reached before the deadline.
    """
    base = settings if settings is not None else CompletionSettings()
    overrides = {
        key: value
        for key, value in (
            ("timeout_ms", timeout_ms),
            ("poll_interval_ms", poll_interval_ms),
            ("stabilization_ms", stabilization_ms),
        )
        if value is not None
    }
    effective = CompletionSettings(**{**base.model_dump(), **overrides}) if overrides else base
    return await CompletionDetector(effective, clock=clock, sleep=sleep).wait(targets)
