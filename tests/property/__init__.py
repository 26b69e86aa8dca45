# tests/property/__init__.py
"""Property-based tests for relaycheck.

Property-based testing validates invariants that must hold for ALL inputs,
not just the specific examples we think of. For a verifier the two halves
matter equally: a lossless transfer must always pass, and a lossy one must
never pass.

Test categories:
- verification/: Reconciliation soundness, ledger algebra, stability detection
"""
