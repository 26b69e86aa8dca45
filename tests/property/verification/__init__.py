# tests/property/verification/__init__.py
"""Property tests for the verification engine.

Any partition of the source records across sinks must reconcile; any
single-byte corruption, drop or duplication must not.
"""
