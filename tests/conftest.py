"""
conftest.py - Shared pytest fixtures for contractor ledger tests

Provides common fixtures used across unit, conformance and functional tests:
- A virtual clock pinned to a fixed start time
- Isolated stores, processors and services (one per test)
- Helpers for settling withdrawals without sleeping
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from contractor_ledger import (
    ManualClock,
    LedgerStore,
    LedgerConfig,
    LedgerService,
    ClaimProcessor,
    WithdrawalProcessor,
    SettlementScheduler,
    LiabilityCalculator,
    MetricsAggregator,
    SETTLEMENT_DELAY,
)


T0 = datetime(2025, 1, 1, 9, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# BASIC FIXTURES
# =============================================================================

@pytest.fixture
def clock():
    """Virtual clock starting at T0."""
    return ManualClock(T0)


@pytest.fixture
def store(clock):
    """Empty store on the virtual clock."""
    return LedgerStore("test", clock=clock)


@pytest.fixture
def scheduler():
    return SettlementScheduler()


@pytest.fixture
def claims(store):
    return ClaimProcessor(store)


@pytest.fixture
def withdrawals(store, scheduler):
    return WithdrawalProcessor(store, scheduler=scheduler)


@pytest.fixture
def calculator(store):
    return LiabilityCalculator(store)


@pytest.fixture
def metrics(store):
    return MetricsAggregator(store)


# =============================================================================
# SERVICE FIXTURES
# =============================================================================

@pytest.fixture
def service(clock):
    """Empty service on the virtual clock with default policy."""
    return LedgerService.from_config(LedgerConfig(), clock=clock, name="test")


@pytest.fixture
def seeded_service(clock):
    """Service preloaded with the sample data set."""
    return LedgerService.from_config(
        LedgerConfig(seed_sample_data=True), clock=clock, name="seeded"
    )


# =============================================================================
# HELPER FIXTURES
# =============================================================================

@pytest.fixture
def settle(clock, withdrawals):
    """Advance the clock past the settlement delay and drain the scheduler."""
    def _settle(delay: timedelta = SETTLEMENT_DELAY):
        clock.advance(delay)
        return withdrawals.process_settlements()
    return _settle


@pytest.fixture
def fund(claims):
    """Claim `total` for a contractor in chunks no larger than the ceiling."""
    def _fund(contractor_id: str, total: Decimal, chunk: Decimal = Decimal("5000")):
        remaining = Decimal(total)
        while remaining > 0:
            amount = min(remaining, chunk)
            claims.submit_claim(contractor_id, amount)
            remaining -= amount
    return _fund
