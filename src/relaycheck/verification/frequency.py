# src/relaycheck/verification/frequency.py
"""Token frequency ledger for multiset reconciliation.

The ledger counts individual bytes rather than whole records, so a record
with a single transposed or substituted byte no longer matches the source
multiset even though a record-level count would. The cost is that record
identity is lost: two unrelated records that share bytes are
indistinguishable from one record holding those bytes twice. The record
audit in ``relaycheck.verification.records`` covers the record-level view.

A ledger is owned by exactly one validation call. ``subtract`` mutates it in
place and does not roll back on failure, so anything that wants to explain a
failure must work from a ``snapshot()`` taken before subtracting.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from relaycheck.contracts.errors import LedgerDiscrepancy


class FrequencyLedger:
    """Multiset of tokens with their remaining multiplicity.

    Entries whose count reaches zero are removed, so an empty ledger means
    every token was accounted for exactly once.
    """

    __slots__ = ("_counts",)

    def __init__(self, counts: Counter[int] | None = None) -> None:
        self._counts: Counter[int] = counts if counts is not None else Counter()

    @classmethod
    def build(cls, tokens: Iterable[int]) -> FrequencyLedger:
        """Count each distinct token in ``tokens``.

        ``tokens`` is typically a ``bytes`` payload, iterated byte by byte.
        """
        return cls(Counter(tokens))

    def subtract(self, tokens: Iterable[int]) -> bool:
        """Remove one occurrence per token in ``tokens``.

        Returns False as soon as a token is absent or exhausted, leaving the
        failing token untouched. Decrements already applied are not rolled
        back, so a False result is terminal for the reconciliation.
        """
        counts = self._counts
        for token, needed in Counter(tokens).items():
            available = counts.get(token, 0)
            if needed > available:
                return False
            if needed == available:
                del counts[token]
            else:
                counts[token] = available - needed
        return True

    def snapshot(self) -> FrequencyLedger:
        """Independent copy for non-destructive diagnostics."""
        return FrequencyLedger(Counter(self._counts))

    def discrepancy(self, tokens: Iterable[int]) -> LedgerDiscrepancy:
        """Diff this ledger against ``tokens`` without mutating either.

        ``missing`` holds tokens the ledger has more of than ``tokens``;
        ``unexpected`` holds tokens that appear in ``tokens`` beyond what the
        ledger holds.
        """
        observed = Counter(tokens)
        return LedgerDiscrepancy(
            missing=dict(self._counts - observed),
            unexpected=dict(observed - self._counts),
        )

    def remaining(self) -> dict[int, int]:
        """Tokens still outstanding, with their counts."""
        return dict(self._counts)

    @property
    def is_empty(self) -> bool:
        return not self._counts

    def __len__(self) -> int:
        """Number of distinct tokens still outstanding."""
        return len(self._counts)

    def __contains__(self, token: object) -> bool:
        return token in self._counts

    def __repr__(self) -> str:
        return f"FrequencyLedger(distinct={len(self._counts)}, total={self._counts.total()})"
