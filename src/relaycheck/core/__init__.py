"""Ambient infrastructure: settings, logging and clocks."""

from relaycheck.core.clock import DEFAULT_CLOCK, DEFAULT_DELAY, Clock, Delay, MockClock, SystemClock
from relaycheck.core.config import (
    CompletionSettings,
    LoggingSettings,
    RecordAuditSettings,
    RelaycheckSettings,
    deep_merge,
    list_presets,
    load_preset,
    load_settings,
)
from relaycheck.core.logging import configure_logging, get_logger

__all__ = [
    "DEFAULT_CLOCK",
    "DEFAULT_DELAY",
    "Clock",
    "CompletionSettings",
    "Delay",
    "LoggingSettings",
    "MockClock",
    "RecordAuditSettings",
    "RelaycheckSettings",
    "SystemClock",
    "configure_logging",
    "deep_merge",
    "get_logger",
    "list_presets",
    "load_preset",
    "load_settings",
]
