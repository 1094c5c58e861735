"""
store.py - Append-only store of claims and withdrawals

LedgerStore is the only object that owns ledger state. Processors write to it
through a handful of atomic primitives; calculators read it through
snapshot(). No balance is ever stored: balances are recomputed from the two
collections on demand, so they are always reproducible from the log.

Thread Safety:
    Every mutation runs under one re-entrant lock, i.e. writes are globally
    serialized. admission() exposes that lock so a processor can perform
    "read balance, validate, append" as a single critical section.
"""

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from threading import RLock
from typing import Dict, Iterator, List, Optional
import logging

from .clock import Clock, SystemClock
from .core import (
    Claim, Withdrawal, WithdrawalStatus, LedgerSnapshot,
    CLAIM_ID_PREFIX, WITHDRAWAL_ID_PREFIX,
)

logger = logging.getLogger("contractor_ledger.store")


class LedgerStore:
    """
    Append-only ledger of claims and withdrawals.

    Construct one per ledger; instances share nothing, so tests can run any
    number of isolated ledgers side by side.

    Example:
        store = LedgerStore("main")
        claim = store.append_claim("a@example.com", Decimal("1500.00"))
        w = store.append_withdrawal("a@example.com", Decimal("1000.00"))
        store.mark_withdrawal_completed(w.id)
    """

    def __init__(self, name: str = "main", clock: Optional[Clock] = None):
        self.name = name
        self.clock: Clock = clock or SystemClock()
        self._claims: List[Claim] = []
        self._withdrawals: List[Withdrawal] = []
        # withdrawal id -> position in _withdrawals
        self._withdrawal_index: Dict[str, int] = {}
        # Shared by claims and withdrawals so no two records ever share an id
        self._next_sequence: int = 1
        self._lock = RLock()

    # ========================================================================
    # CONCURRENCY
    # ========================================================================

    @contextmanager
    def admission(self) -> Iterator["LedgerStore"]:
        """
        Hold the write lock for the duration of the block.

        The lock is re-entrant, so the append primitives may be called from
        inside the block.
        """
        with self._lock:
            yield self

    # ========================================================================
    # MUTATION
    # ========================================================================

    def _candidate_id(self, prefix: str) -> str:
        # Only consumed once the record is built and appended
        return f"{prefix}_{self._next_sequence:06d}"

    def append_claim(
        self,
        contractor_id: str,
        amount: Decimal,
        requester_ref: Optional[str] = None,
    ) -> Claim:
        """
        Append a claim and return it.

        The record is built before it is appended, so a record that fails its
        own invariants leaves the store untouched.
        """
        with self._lock:
            claim = Claim(
                id=self._candidate_id(CLAIM_ID_PREFIX),
                contractor_id=contractor_id,
                amount=amount,
                created_at=self.clock.now(),
                requester_ref=requester_ref,
            )
            self._next_sequence += 1
            self._claims.append(claim)
        logger.debug("%s: appended %s for %s (%s)", self.name, claim.id, contractor_id, amount)
        return claim

    def append_withdrawal(self, contractor_id: str, amount: Decimal) -> Withdrawal:
        """Append a PENDING withdrawal and return it."""
        with self._lock:
            withdrawal = Withdrawal(
                id=self._candidate_id(WITHDRAWAL_ID_PREFIX),
                contractor_id=contractor_id,
                amount=amount,
                status=WithdrawalStatus.PENDING,
                created_at=self.clock.now(),
            )
            self._next_sequence += 1
            self._withdrawal_index[withdrawal.id] = len(self._withdrawals)
            self._withdrawals.append(withdrawal)
        logger.debug("%s: appended %s for %s (%s)", self.name, withdrawal.id, contractor_id, amount)
        return withdrawal

    def mark_withdrawal_completed(
        self,
        withdrawal_id: str,
        completed_at: Optional[datetime] = None,
    ) -> bool:
        """
        Transition a withdrawal from PENDING to COMPLETED.

        Completion is best effort, at most once: an unknown id or an already
        completed withdrawal is a no-op.

        Returns:
            True if this call completed the withdrawal, False otherwise.
        """
        with self._lock:
            position = self._withdrawal_index.get(withdrawal_id)
            if position is None:
                logger.debug("%s: completion of unknown withdrawal %s ignored", self.name, withdrawal_id)
                return False
            current = self._withdrawals[position]
            if current.is_completed:
                logger.debug("%s: %s already completed", self.name, withdrawal_id)
                return False
            self._withdrawals[position] = replace(
                current,
                status=WithdrawalStatus.COMPLETED,
                completed_at=completed_at or self.clock.now(),
            )
        return True

    # ========================================================================
    # READS
    # ========================================================================

    def snapshot(self) -> LedgerSnapshot:
        """Return an immutable copy of both collections."""
        with self._lock:
            return LedgerSnapshot(
                claims=tuple(self._claims),
                withdrawals=tuple(self._withdrawals),
            )

    def get_withdrawal(self, withdrawal_id: str) -> Optional[Withdrawal]:
        with self._lock:
            position = self._withdrawal_index.get(withdrawal_id)
            return self._withdrawals[position] if position is not None else None

    def list_withdrawals(self, status: Optional[WithdrawalStatus] = None) -> List[Withdrawal]:
        with self._lock:
            return [w for w in self._withdrawals if status is None or w.status is status]

    def list_claims(self, contractor_id: Optional[str] = None) -> List[Claim]:
        with self._lock:
            return [
                c for c in self._claims
                if contractor_id is None or c.contractor_id == contractor_id
            ]

    def is_empty(self) -> bool:
        with self._lock:
            return not self._claims and not self._withdrawals

    def __len__(self) -> int:
        with self._lock:
            return len(self._claims) + len(self._withdrawals)

    def __repr__(self) -> str:
        return f"LedgerStore({self.name!r}, records={len(self)})"
