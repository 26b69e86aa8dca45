# tests/conftest.py
"""Shared test fixtures and Hypothesis configuration.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import os
from collections.abc import Callable
from pathlib import Path

import pytest
from hypothesis import Phase, Verbosity, settings

from relaycheck.core.clock import MockClock
from relaycheck.core.logging import configure_logging
from tests.fixtures.relay import RelayFiles

# =============================================================================
# Hypothesis Profiles
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # File I/O and event loops make per-example timing noisy
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging() -> None:
    """Console logging at DEBUG so failures show the poll-by-poll trail."""
    configure_logging(json_output=False, level="DEBUG")


@pytest.fixture
def mock_clock() -> MockClock:
    """Simulated clock starting at t=0; pass ``sleep=mock_clock.sleep`` too."""
    return MockClock()


@pytest.fixture
def relay_files(tmp_path: Path) -> Callable[..., RelayFiles]:
    """Factory writing a source and sinks under tmp_path."""

    def _write(source: bytes, *sinks: bytes) -> RelayFiles:
        return RelayFiles.write(tmp_path, source=source, sinks=list(sinks))

    return _write
