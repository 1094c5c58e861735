"""
withdrawals.py - Withdrawal admission and settlement

A withdrawal moves through one transition only:

    pending --(settlement delay elapses, or explicit completion)--> completed

Admission is the part that must be right under concurrency. The balance
check and the append of the pending record run inside store.admission(), so
two withdrawals for the same contractor can never both be admitted against
the same available balance.
"""

from __future__ import annotations
from datetime import datetime, timedelta
from typing import Any, List, Optional
import logging

from .core import (
    Withdrawal, InsufficientBalance, LedgerError, SETTLEMENT_DELAY,
    validate_amount, validate_contractor_id,
)
from .liability import available_to_withdraw
from .settlement import SettlementScheduler, SettlementTask, settlement_task_id
from .store import LedgerStore

logger = logging.getLogger("contractor_ledger.withdrawals")


class WithdrawalProcessor:
    """
    Admits withdrawals and drives them to completion.

    Args:
        store: Ledger store to admit into
        scheduler: Settlement queue (a private one is created if omitted)
        settlement_delay: Time from admission to scheduled completion
    """

    def __init__(
        self,
        store: LedgerStore,
        scheduler: Optional[SettlementScheduler] = None,
        settlement_delay: timedelta = SETTLEMENT_DELAY,
    ):
        if settlement_delay < timedelta(0):
            raise ValueError(f"settlement_delay cannot be negative, got {settlement_delay}")
        self.store = store
        self.scheduler = scheduler or SettlementScheduler()
        self.settlement_delay = settlement_delay

    @property
    def clock(self):
        return self.store.clock

    def submit_withdrawal(self, contractor_id: Any, amount: Any) -> Withdrawal:
        """
        Admit a withdrawal and schedule its settlement.

        Steps:
        1. Validate contractor_id and amount (no ceiling besides balance)
        2. Under the store's admission lock, compute available_to_withdraw
        3. Reject if amount exceeds it
        4. Append a pending withdrawal
        5. Schedule completion at now + settlement_delay

        Raises:
            ValidationError: Missing or malformed field
            InsufficientBalance: Amount above the available balance
        """
        try:
            contractor_id = validate_contractor_id(contractor_id)
            value = validate_amount(amount)
        except LedgerError as e:
            logger.warning("withdrawal rejected for %r: %s", contractor_id, e)
            raise

        with self.store.admission():
            available = available_to_withdraw(self.store.snapshot(), contractor_id)
            if value > available:
                logger.warning(
                    "withdrawal rejected for %s: requested %s, available %s",
                    contractor_id, value, available,
                )
                raise InsufficientBalance(available, value)
            withdrawal = self.store.append_withdrawal(contractor_id, value)

        due_time = withdrawal.created_at + self.settlement_delay
        self.scheduler.schedule(withdrawal.id, due_time)
        logger.info(
            "withdrawal %s admitted: %s cashing out %s, settles at %s",
            withdrawal.id, contractor_id, value, due_time.isoformat(),
        )
        return withdrawal

    def complete_withdrawal(self, withdrawal_id: str) -> bool:
        """
        Complete a withdrawal now.

        Safe to call repeatedly and alongside the scheduler; only the first
        call has any effect.
        """
        completed = self.store.mark_withdrawal_completed(withdrawal_id)
        if completed:
            logger.info("withdrawal %s completed", withdrawal_id)
        return completed

    def _settle(self, task: SettlementTask) -> bool:
        return self.complete_withdrawal(task.withdrawal_id)

    def process_settlements(self, as_of: Optional[datetime] = None) -> List[str]:
        """
        Complete every withdrawal whose settlement is due.

        Args:
            as_of: Cut-off time (default: the store clock's now)

        Returns:
            Ids of withdrawals completed by this call
        """
        as_of = as_of or self.clock.now()
        return self.scheduler.step(as_of, self._settle)

    def cancel_settlement(self, withdrawal_id: str) -> bool:
        """
        Drop the scheduled settlement of a withdrawal.

        The withdrawal stays pending until complete_withdrawal() is called.
        """
        return self.scheduler.cancel(settlement_task_id(withdrawal_id))
