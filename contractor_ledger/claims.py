"""
claims.py - Claim admission

A claim records pay a contractor has earned. Claims are accrual-only: they
are validated, appended and immediately visible to the next liability read.
Nothing is settled.
"""

from __future__ import annotations
from decimal import Decimal
from typing import Any, Optional
import logging

from .core import (
    Claim, MAX_CLAIM_AMOUNT, PolicyLimitExceeded, LedgerError,
    validate_amount, validate_contractor_id,
)
from .store import LedgerStore

logger = logging.getLogger("contractor_ledger.claims")


class ClaimProcessor:
    """Validates claims and appends them to a store."""

    def __init__(self, store: LedgerStore, max_claim_amount: Decimal = MAX_CLAIM_AMOUNT):
        if max_claim_amount <= 0:
            raise ValueError(f"max_claim_amount must be positive, got {max_claim_amount}")
        self.store = store
        self.max_claim_amount = max_claim_amount

    def submit_claim(
        self,
        contractor_id: Any,
        amount: Any,
        requester_ref: Optional[str] = None,
    ) -> Claim:
        """
        Admit a claim.

        Checks, in order: contractor_id is a non-empty string; amount is a
        finite positive number; amount is within max_claim_amount. The first
        failing check raises and nothing is written.

        Raises:
            ValidationError: Missing or malformed field
            PolicyLimitExceeded: Amount above the per-claim ceiling
        """
        try:
            contractor_id = validate_contractor_id(contractor_id)
            value = validate_amount(amount)
            if value > self.max_claim_amount:
                raise PolicyLimitExceeded(self.max_claim_amount, value)
        except LedgerError as e:
            logger.warning("claim rejected for %r: %s", contractor_id, e)
            raise

        claim = self.store.append_claim(contractor_id, value, requester_ref)
        logger.info("claim %s accepted: %s claimed %s", claim.id, contractor_id, value)
        return claim
