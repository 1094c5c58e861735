"""
Tests for core.py - amounts, field validation and record invariants

Tests:
- to_amount() parsing and cent quantization
- validate_contractor_id() / validate_amount()
- Claim and Withdrawal invariants enforced in __post_init__
- ContractorLiability / TotalMetrics derived fields
- JSON-ready to_dict() rendering
"""

import pytest
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from decimal import Decimal

from contractor_ledger import (
    Claim, Withdrawal, WithdrawalStatus,
    ContractorLiability, TotalMetrics, LedgerSnapshot,
    ValidationError, PolicyLimitExceeded, InsufficientBalance, LedgerError,
    to_amount, format_amount,
)
from contractor_ledger.core import validate_amount, validate_contractor_id


T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)


# ============================================================================
# to_amount Tests
# ============================================================================

class TestToAmount:

    def test_int_becomes_cents(self):
        assert to_amount(1500) == Decimal("1500.00")

    def test_float_goes_through_str(self):
        """0.1 is parsed as the decimal 0.1, not its binary expansion."""
        assert to_amount(0.1) == Decimal("0.10")

    def test_numeric_string(self):
        assert to_amount(" 12.34 ") == Decimal("12.34")

    def test_decimal_passthrough(self):
        assert to_amount(Decimal("99.99")) == Decimal("99.99")

    def test_trailing_zeros_are_not_sub_cent(self):
        assert to_amount("12.3400") == Decimal("12.34")

    @pytest.mark.parametrize("value", [Decimal("0.125"), "5000.004", 0.001])
    def test_sub_cent_rejected(self, value):
        with pytest.raises(ValidationError, match="2 decimal places"):
            to_amount(value)

    @pytest.mark.parametrize("value", [None, True, False, [], {}, object()])
    def test_non_numeric_rejected(self, value):
        with pytest.raises(ValidationError) as exc:
            to_amount(value)
        assert exc.value.field == "amount"

    def test_garbage_string_rejected(self):
        with pytest.raises(ValidationError):
            to_amount("ten dollars")

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), "-Infinity", Decimal("NaN")])
    def test_non_finite_rejected(self, value):
        with pytest.raises(ValidationError):
            to_amount(value)

    def test_out_of_range_rejected(self):
        with pytest.raises(ValidationError, match="out of range"):
            to_amount("1e100")

    def test_same_result_on_every_thread(self):
        """Worker threads parse with the ledger precision, not their own default."""
        values = ["1e30", "12345678901234567890123456789.99", "1e100"]

        def parse(value):
            try:
                return to_amount(value)
            except ValidationError:
                return "rejected"

        on_main = [parse(v) for v in values]
        with ThreadPoolExecutor(max_workers=2) as pool:
            on_worker = list(pool.map(parse, values))

        assert on_worker == on_main
        assert on_main[0] == Decimal("1e30")
        assert on_main[2] == "rejected"

    def test_custom_field_name(self):
        with pytest.raises(ValidationError) as exc:
            to_amount(None, field="limit")
        assert exc.value.field == "limit"


class TestFormatAmount:

    def test_two_decimals(self):
        assert format_amount(Decimal("1500")) == "1500.00"
        assert format_amount(Decimal("0.5")) == "0.50"


# ============================================================================
# Field validation Tests
# ============================================================================

class TestFieldValidation:

    @pytest.mark.parametrize("value", [None, "", "   ", 42])
    def test_bad_contractor_id(self, value):
        with pytest.raises(ValidationError) as exc:
            validate_contractor_id(value)
        assert exc.value.field == "contractorId"

    def test_good_contractor_id(self):
        assert validate_contractor_id("a@example.com") == "a@example.com"

    @pytest.mark.parametrize("value", [0, -1, "-0.01", Decimal("0.004")])
    def test_non_positive_amount(self, value):
        with pytest.raises(ValidationError):
            validate_amount(value)

    def test_positive_amount(self):
        assert validate_amount("0.01") == Decimal("0.01")


# ============================================================================
# Record invariants
# ============================================================================

class TestClaim:

    def test_claim_is_frozen(self):
        claim = Claim("claim_000001", "a", Decimal("10.00"), T0)
        with pytest.raises(Exception):
            claim.amount = Decimal("20.00")

    def test_claim_requires_positive_decimal(self):
        with pytest.raises(ValueError):
            Claim("claim_000001", "a", Decimal("0"), T0)
        with pytest.raises(ValueError):
            Claim("claim_000001", "a", 10, T0)

    def test_to_dict(self):
        claim = Claim("claim_000001", "a", Decimal("10.00"), T0, requester_ref="req-7")
        assert claim.to_dict() == {
            "id": "claim_000001",
            "contractorId": "a",
            "requesterRef": "req-7",
            "amount": "10.00",
            "createdAt": T0.isoformat(),
        }


class TestWithdrawal:

    def test_pending_has_no_completed_at(self):
        w = Withdrawal("withdrawal_000001", "a", Decimal("5.00"), WithdrawalStatus.PENDING, T0)
        assert w.is_pending
        assert w.completed_at is None

    def test_pending_with_completed_at_rejected(self):
        with pytest.raises(ValueError):
            Withdrawal("withdrawal_000001", "a", Decimal("5.00"), WithdrawalStatus.PENDING, T0, T0)

    def test_completed_without_completed_at_rejected(self):
        with pytest.raises(ValueError):
            Withdrawal("withdrawal_000001", "a", Decimal("5.00"), WithdrawalStatus.COMPLETED, T0)

    def test_completed_to_dict(self):
        w = Withdrawal("withdrawal_000001", "a", Decimal("5"), WithdrawalStatus.COMPLETED, T0, T0)
        d = w.to_dict()
        assert d["status"] == "completed"
        assert d["completedAt"] == T0.isoformat()
        assert d["amount"] == "5.00"


# ============================================================================
# Derived views
# ============================================================================

class TestDerivedViews:

    def test_liability_defaults_to_zero(self):
        liability = ContractorLiability("nobody")
        assert liability.total_claimed == 0
        assert liability.total_cashed_out == 0
        assert liability.available_to_withdraw == 0

    def test_pending_counts_as_spent(self):
        liability = ContractorLiability(
            "a",
            total_claimed=Decimal("2300.00"),
            total_cashed_out=Decimal("0.00"),
            total_processing=Decimal("1000.00"),
        )
        assert liability.available_to_withdraw == Decimal("1300.00")
        assert liability.outstanding == Decimal("2300.00")

    def test_liability_to_dict(self):
        liability = ContractorLiability("a", Decimal("1500"), Decimal("0"), Decimal("0"))
        assert liability.to_dict() == {
            "contractorId": "a",
            "totalClaimed": "1500.00",
            "totalCashedOut": "0.00",
            "totalProcessing": "0.00",
            "availableToWithdraw": "1500.00",
        }

    def test_net_liability(self):
        totals = TotalMetrics(Decimal("6300"), Decimal("2500"), Decimal("100"))
        assert totals.net_liability == Decimal("3800")
        assert totals.to_dict()["netLiability"] == "3800.00"

    def test_snapshot_contractor_ids_cover_both_collections(self):
        snapshot = LedgerSnapshot(
            claims=(Claim("claim_000001", "b", Decimal("1"), T0),),
            withdrawals=(
                Withdrawal("withdrawal_000002", "a", Decimal("1"), WithdrawalStatus.PENDING, T0),
            ),
        )
        assert snapshot.contractor_ids() == ("a", "b")


# ============================================================================
# Exceptions
# ============================================================================

class TestExceptions:

    def test_policy_limit_is_a_validation_error(self):
        e = PolicyLimitExceeded(Decimal("5000"), Decimal("6000"))
        assert isinstance(e, ValidationError)
        assert e.field == "amount"
        assert "5000.00" in str(e)

    def test_insufficient_balance_carries_available(self):
        e = InsufficientBalance(Decimal("100.00"), Decimal("5000.00"))
        assert isinstance(e, LedgerError)
        assert e.available == Decimal("100.00")
        assert "$100.00" in str(e)
