"""
liability.py - Per-contractor liability, derived from the ledger log

compute_liability() and compute_all_liabilities() are pure functions over a
LedgerSnapshot. LiabilityCalculator binds them to a store for callers that
just want "the current answer". Neither has any way to mutate the store.
"""

from __future__ import annotations
from decimal import Decimal
from typing import List

from .core import ContractorLiability, LedgerSnapshot, ZERO, ledger_context
from .store import LedgerStore


def compute_liability(snapshot: LedgerSnapshot, contractor_id: str) -> ContractorLiability:
    """
    Sum one contractor's claims and withdrawals.

    O(n) over the snapshot. An id never seen in either collection yields the
    zero-valued liability.
    """
    total_claimed = ZERO
    total_cashed_out = ZERO
    total_processing = ZERO
    with ledger_context():
        for claim in snapshot.claims:
            if claim.contractor_id == contractor_id:
                total_claimed += claim.amount

        for withdrawal in snapshot.withdrawals:
            if withdrawal.contractor_id != contractor_id:
                continue
            if withdrawal.is_completed:
                total_cashed_out += withdrawal.amount
            else:
                total_processing += withdrawal.amount

    return ContractorLiability(
        contractor_id=contractor_id,
        total_claimed=total_claimed,
        total_cashed_out=total_cashed_out,
        total_processing=total_processing,
    )


def compute_all_liabilities(snapshot: LedgerSnapshot) -> List[ContractorLiability]:
    """One liability per contractor seen in the snapshot, sorted by id."""
    return [compute_liability(snapshot, cid) for cid in snapshot.contractor_ids()]


def available_to_withdraw(snapshot: LedgerSnapshot, contractor_id: str) -> Decimal:
    return compute_liability(snapshot, contractor_id).available_to_withdraw


class LiabilityCalculator:
    """Read-only liability queries against a live store."""

    def __init__(self, store: LedgerStore):
        self.store = store

    def liability_of(self, contractor_id: str) -> ContractorLiability:
        return compute_liability(self.store.snapshot(), contractor_id)

    def all_liabilities(self) -> List[ContractorLiability]:
        return compute_all_liabilities(self.store.snapshot())
