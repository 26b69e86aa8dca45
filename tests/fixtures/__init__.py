# tests/fixtures/__init__.py
"""Shared test doubles for relaycheck tests.

Available helpers:
- ScriptedProbe / GrowingProbe / HangingProbe: size probes with scripted behaviour
- RelayFiles: writes a source and its sink files into a directory
"""

from tests.fixtures.relay import (
    GrowingProbe,
    HangingProbe,
    RelayFiles,
    ScriptedProbe,
    join_records,
    partition_records,
)

__all__ = [
    "GrowingProbe",
    "HangingProbe",
    "RelayFiles",
    "ScriptedProbe",
    "join_records",
    "partition_records",
]
