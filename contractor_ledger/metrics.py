"""
metrics.py - Company-wide rollup of contractor liabilities

Totals are summed straight from the snapshot, independent of the
per-contractor grouping in liability.py. verify_net_liability() checks that
the two routes agree, the ledger's equivalent of a double-entry check.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List

from .core import ContractorLiability, LedgerSnapshot, TotalMetrics, ZERO, ledger_context
from .liability import compute_all_liabilities
from .store import LedgerStore


def compute_totals(snapshot: LedgerSnapshot) -> TotalMetrics:
    """Sum every claim, completed withdrawal and pending withdrawal."""
    with ledger_context():
        total_claimed = sum((c.amount for c in snapshot.claims), ZERO)
        total_cashed_out = sum(
            (w.amount for w in snapshot.withdrawals if w.is_completed), ZERO
        )
        total_processing = sum(
            (w.amount for w in snapshot.withdrawals if w.is_pending), ZERO
        )
    return TotalMetrics(
        total_claimed=total_claimed,
        total_cashed_out=total_cashed_out,
        total_processing=total_processing,
    )


def verify_net_liability(
    snapshot: LedgerSnapshot,
    tolerance: Decimal = ZERO,
) -> Dict[str, Any]:
    """
    Check that net liability equals the sum of per-contractor liabilities.

    Both sides are computed from the same snapshot.

    Returns:
        Dict with keys:
        - 'valid': bool - True if the two sums agree within tolerance
        - 'net_liability': Decimal - from compute_totals()
        - 'sum_of_contractors': Decimal - Σ (total_claimed - total_cashed_out)
        - 'difference': Decimal - absolute difference

    Example:
        result = verify_net_liability(store.snapshot())
        assert result['valid'], result
    """
    net_liability = compute_totals(snapshot).net_liability
    liabilities = compute_all_liabilities(snapshot)
    with ledger_context():
        sum_of_contractors = sum(
            (liability.outstanding for liability in liabilities), ZERO
        )
        difference = abs(net_liability - sum_of_contractors)
    return {
        'valid': difference <= tolerance,
        'net_liability': net_liability,
        'sum_of_contractors': sum_of_contractors,
        'difference': difference,
    }


@dataclass(frozen=True)
class MetricsReport:
    """Answer to the metrics query: totals plus every known contractor."""
    totals: TotalMetrics
    contractors: List[ContractorLiability] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalMetrics": self.totals.to_dict(),
            "contractors": [c.to_dict() for c in self.contractors],
        }


class MetricsAggregator:
    """Company-wide metrics against a live store."""

    def __init__(self, store: LedgerStore):
        self.store = store

    def totals(self) -> TotalMetrics:
        return compute_totals(self.store.snapshot())

    def report(self) -> MetricsReport:
        # One snapshot for both halves so they describe the same moment
        snapshot = self.store.snapshot()
        return MetricsReport(
            totals=compute_totals(snapshot),
            contractors=compute_all_liabilities(snapshot),
        )

    def verify(self) -> Dict[str, Any]:
        return verify_net_liability(self.store.snapshot())
