"""
Core types and pure functions for the contractor liability ledger.

This module provides the foundational data structures for the ledger:
1. Immutable records: Claim, Withdrawal
2. Derived views: ContractorLiability, TotalMetrics, LedgerSnapshot
3. Exceptions: LedgerError and domain-specific error types
4. Amount handling: to_amount() and format_amount() for exact cent arithmetic
5. Field validation: validate_contractor_id(), validate_amount()

All functions in this module are pure. Nothing here can mutate ledger state;
mutation is the job of LedgerStore.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Context, Decimal, InvalidOperation, ROUND_HALF_EVEN, localcontext
from enum import Enum
from typing import Any, Dict, Optional, Tuple


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# Money is held as Decimal quantized to cents. Repeated sums of claims and
# withdrawals must never drift from exact cent values.
#
# Decimal contexts are per thread. Ledger arithmetic uses this one explicitly,
# whichever thread it runs on.
#
_LEDGER_DECIMAL_CONTEXT = Context(prec=50, rounding=ROUND_HALF_EVEN)


def ledger_context():
    """Context manager running Decimal arithmetic in the ledger's context."""
    return localcontext(_LEDGER_DECIMAL_CONTEXT)


# ============================================================================
# CONSTANTS
# ============================================================================

# Smallest unit of account (USD-equivalent cents).
CENT = Decimal("0.01")

ZERO = Decimal("0.00")

# Per-claim ceiling, in the ledger's unit of account.
MAX_CLAIM_AMOUNT = Decimal("5000")

# Modeled delay between admitting a withdrawal and its off-ramp settlement.
SETTLEMENT_DELAY = timedelta(seconds=3)

CLAIM_ID_PREFIX = "claim"
WITHDRAWAL_ID_PREFIX = "withdrawal"


# ============================================================================
# ENUMS
# ============================================================================

class WithdrawalStatus(Enum):
    """
    Lifecycle state of a withdrawal.

    PENDING: Admitted and counted against the contractor's balance, waiting
             for settlement.
    COMPLETED: Settled. Terminal; the record never changes again.
    """
    PENDING = "pending"
    COMPLETED = "completed"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class ValidationError(LedgerError):
    """Raised when a request field is missing, malformed or out of range."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class PolicyLimitExceeded(ValidationError):
    """Raised when a claim is above the configured per-claim ceiling."""

    def __init__(self, limit: Decimal, amount: Decimal):
        super().__init__(
            "amount",
            f"Amount exceeds maximum claim limit of ${format_amount(limit)}",
        )
        self.limit = limit
        self.amount = amount


class InsufficientBalance(LedgerError):
    """
    Raised when a withdrawal asks for more than the contractor can withdraw.

    Carries the current available amount so callers can present it.
    """

    def __init__(self, available: Decimal, requested: Decimal):
        super().__init__(
            f"Insufficient available balance. You have "
            f"${format_amount(available)} available to withdraw."
        )
        self.available = available
        self.requested = requested


class InternalLedgerError(LedgerError):
    """Raised for unexpected failures, distinct from rejected requests."""
    pass


# ============================================================================
# AMOUNT HANDLING
# ============================================================================

def to_amount(value: Any, field: str = "amount") -> Decimal:
    """
    Convert a caller-supplied monetary value to a Decimal in cents.

    Accepts Decimal, int, float and numeric strings. Floats go through str()
    so 0.1 becomes Decimal("0.1") rather than its binary expansion. Values
    with more than two decimal places are rejected, never rounded, so the
    amount that is checked is exactly the amount the caller sent.

    Raises:
        ValidationError: If the value is missing, not numeric, not finite,
            finer than a cent, or too large to hold in cents.
    """
    if value is None:
        raise ValidationError(field, f"{field} is required and must be a positive number")
    # bool is an int subclass; True is not an amount
    if isinstance(value, bool):
        raise ValidationError(field, f"{field} is required and must be a positive number")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            raise ValidationError(field, f"{field} must be a number, got {value!r}")
    else:
        raise ValidationError(field, f"{field} must be a number, got {type(value).__name__}")

    if amount.is_nan() or amount.is_infinite():
        raise ValidationError(field, f"{field} must be finite, got {value}")
    try:
        cents = amount.quantize(CENT, context=_LEDGER_DECIMAL_CONTEXT)
    except InvalidOperation:
        # Too many digits to represent in cents at the ledger precision
        raise ValidationError(field, f"{field} is out of range, got {value}")
    if cents != amount:
        raise ValidationError(field, f"{field} must have at most 2 decimal places, got {value}")
    return cents


def format_amount(amount: Decimal) -> str:
    """Render an amount with two-decimal display precision."""
    return f"{amount.quantize(CENT, context=_LEDGER_DECIMAL_CONTEXT):.2f}"


# ============================================================================
# FIELD VALIDATION
# ============================================================================

def validate_contractor_id(contractor_id: Any) -> str:
    """Return the contractor id or raise ValidationError if it is unusable."""
    if not isinstance(contractor_id, str) or not contractor_id.strip():
        raise ValidationError(
            "contractorId", "contractorId is required and must be a string"
        )
    return contractor_id


def validate_amount(value: Any) -> Decimal:
    """Parse a monetary amount and require it to be strictly positive."""
    amount = to_amount(value)
    if amount <= ZERO:
        raise ValidationError(
            "amount", "amount is required and must be a positive number"
        )
    return amount


# ============================================================================
# RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Claim:
    """
    Immutable record of an accrual event.

    Attributes:
        id: Unique identifier assigned by the store, never reused.
        contractor_id: Opaque identifier (e-mail or account id) of the claimant.
        amount: Positive amount in cents precision.
        created_at: Creation time from the store's clock.
        requester_ref: Optional opaque reference supplied by the caller.
    """
    id: str
    contractor_id: str
    amount: Decimal
    created_at: datetime
    requester_ref: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            raise ValueError(f"Claim amount must be Decimal, got {type(self.amount)}")
        if self.amount <= ZERO:
            raise ValueError(f"Claim amount must be positive, got {self.amount}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "contractorId": self.contractor_id,
            "requesterRef": self.requester_ref,
            "amount": format_amount(self.amount),
            "createdAt": self.created_at.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class Withdrawal:
    """
    Record of a requested cash-out.

    A withdrawal is created PENDING and replaced exactly once by a COMPLETED
    copy carrying completed_at. completed_at is set if and only if the status
    is COMPLETED.
    """
    id: str
    contractor_id: str
    amount: Decimal
    status: WithdrawalStatus
    created_at: datetime
    completed_at: Optional[datetime] = None

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            raise ValueError(f"Withdrawal amount must be Decimal, got {type(self.amount)}")
        if self.amount <= ZERO:
            raise ValueError(f"Withdrawal amount must be positive, got {self.amount}")
        if (self.completed_at is not None) != (self.status is WithdrawalStatus.COMPLETED):
            raise ValueError(
                f"Withdrawal {self.id}: completed_at must be set iff status is completed"
            )

    @property
    def is_pending(self) -> bool:
        return self.status is WithdrawalStatus.PENDING

    @property
    def is_completed(self) -> bool:
        return self.status is WithdrawalStatus.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "contractorId": self.contractor_id,
            "amount": format_amount(self.amount),
            "status": self.status.value,
            "createdAt": self.created_at.isoformat(),
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
        }


# ============================================================================
# DERIVED VIEWS
# ============================================================================

@dataclass(frozen=True, slots=True)
class ContractorLiability:
    """
    The company's position towards one contractor, derived from the log.

    Attributes:
        contractor_id: Contractor this liability belongs to.
        total_claimed: Sum of the contractor's claims.
        total_cashed_out: Sum of the contractor's COMPLETED withdrawals.
        total_processing: Sum of the contractor's PENDING withdrawals.

    available_to_withdraw counts pending withdrawals as already spent, so a
    second cash-out cannot draw on money that is still settling.
    """
    contractor_id: str
    total_claimed: Decimal = ZERO
    total_cashed_out: Decimal = ZERO
    total_processing: Decimal = ZERO

    @property
    def available_to_withdraw(self) -> Decimal:
        with ledger_context():
            return self.total_claimed - self.total_cashed_out - self.total_processing

    @property
    def outstanding(self) -> Decimal:
        """What the company still owes, including money in flight."""
        with ledger_context():
            return self.total_claimed - self.total_cashed_out

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contractorId": self.contractor_id,
            "totalClaimed": format_amount(self.total_claimed),
            "totalCashedOut": format_amount(self.total_cashed_out),
            "totalProcessing": format_amount(self.total_processing),
            "availableToWithdraw": format_amount(self.available_to_withdraw),
        }


@dataclass(frozen=True, slots=True)
class TotalMetrics:
    """Company-wide sums over the whole ledger."""
    total_claimed: Decimal = ZERO
    total_cashed_out: Decimal = ZERO
    total_processing: Decimal = ZERO

    @property
    def net_liability(self) -> Decimal:
        with ledger_context():
            return self.total_claimed - self.total_cashed_out

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalClaimed": format_amount(self.total_claimed),
            "totalCashedOut": format_amount(self.total_cashed_out),
            "totalProcessing": format_amount(self.total_processing),
            "netLiability": format_amount(self.net_liability),
        }


@dataclass(frozen=True, slots=True)
class LedgerSnapshot:
    """
    Consistent read-only copy of the store's collections.

    Calculators take a snapshot instead of the store, so they cannot mutate
    anything and never observe a half-written record.
    """
    claims: Tuple[Claim, ...] = ()
    withdrawals: Tuple[Withdrawal, ...] = ()

    def contractor_ids(self) -> Tuple[str, ...]:
        """Distinct contractor ids seen in claims or withdrawals, sorted."""
        ids = {c.contractor_id for c in self.claims}
        ids.update(w.contractor_id for w in self.withdrawals)
        return tuple(sorted(ids))
