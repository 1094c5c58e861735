"""
contractor_ledger - Contractor Liability Ledger

Tracks what a company owes its contractors: claims accrue pay, withdrawals
cash it out after a modeled settlement delay, and liabilities are derived
from the log on demand.

Usage:
    from contractor_ledger import LedgerService, LedgerConfig, ManualClock

    clock = ManualClock()
    service = LedgerService.from_config(LedgerConfig(), clock=clock)

    service.submit_claim({"contractorId": "alice@example.com", "amount": 1500})
    service.submit_withdrawal({"contractorId": "alice@example.com", "amount": 1000})

    # Settle everything due after the 3 second delay
    clock.advance(timedelta(seconds=3))
    service.process_settlements()

    service.get_metrics().body["totalMetrics"]
"""

# Core types
from .core import (
    Claim,
    Withdrawal,
    WithdrawalStatus,
    ContractorLiability,
    TotalMetrics,
    LedgerSnapshot,
    LedgerError,
    ValidationError,
    PolicyLimitExceeded,
    InsufficientBalance,
    InternalLedgerError,
    to_amount,
    format_amount,
    CENT,
    MAX_CLAIM_AMOUNT,
    SETTLEMENT_DELAY,
)

# Time
from .clock import Clock, SystemClock, ManualClock

# Configuration
from .config import LedgerConfig, load_config, config_from_dict

# Store
from .store import LedgerStore

# Processors
from .claims import ClaimProcessor
from .withdrawals import WithdrawalProcessor

# Settlement
from .settlement import SettlementTask, SettlementScheduler, SettlementWorker

# Derived views
from .liability import (
    LiabilityCalculator,
    compute_liability,
    compute_all_liabilities,
    available_to_withdraw,
)
from .metrics import (
    MetricsAggregator,
    MetricsReport,
    compute_totals,
    verify_net_liability,
)

# Service boundary
from .service import LedgerService, ServiceResponse

__all__ = [
    # Core
    'Claim', 'Withdrawal', 'WithdrawalStatus',
    'ContractorLiability', 'TotalMetrics', 'LedgerSnapshot',
    'LedgerError', 'ValidationError', 'PolicyLimitExceeded',
    'InsufficientBalance', 'InternalLedgerError',
    'to_amount', 'format_amount',
    'CENT', 'MAX_CLAIM_AMOUNT', 'SETTLEMENT_DELAY',
    # Time
    'Clock', 'SystemClock', 'ManualClock',
    # Configuration
    'LedgerConfig', 'load_config', 'config_from_dict',
    # Store
    'LedgerStore',
    # Processors
    'ClaimProcessor', 'WithdrawalProcessor',
    # Settlement
    'SettlementTask', 'SettlementScheduler', 'SettlementWorker',
    # Derived views
    'LiabilityCalculator', 'compute_liability', 'compute_all_liabilities', 'available_to_withdraw',
    'MetricsAggregator', 'MetricsReport', 'compute_totals', 'verify_net_liability',
    # Service
    'LedgerService', 'ServiceResponse',
]

__version__ = '1.0.0'
