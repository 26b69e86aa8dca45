"""
relaycheck: Mechanical proof of lossless fan-out for data relay pipelines.

Verifies that every record a producer emits lands in exactly one sink,
that the sinks have finished writing, and that the fan-out is not degenerate.
"""

__version__ = "0.1.0"
