"""
service.py - Request/response boundary of the ledger

LedgerService wires a store, both processors and both calculators together,
and exposes the four operations callers use:

    submit_claim(payload)        -> 201 {'success', 'claim', 'liability'}
    submit_withdrawal(payload)   -> 201 {'success', 'withdrawal', 'liability'}
    get_liability(contractor_id) -> 200 {'success', 'liability'}
    get_metrics()                -> 200 {'success', 'totalMetrics', 'contractors'}

Payloads and response bodies are plain JSON-ready dicts. Domain errors become
400 responses with a 'kind' the caller can branch on; anything unexpected is
logged and becomes a 500 that says nothing about internals.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Dict, Optional
import logging

from .claims import ClaimProcessor
from .clock import Clock
from .config import LedgerConfig
from .core import (
    LedgerError, ValidationError, PolicyLimitExceeded, InsufficientBalance,
    InternalLedgerError, format_amount, validate_contractor_id,
)
from .liability import LiabilityCalculator
from .metrics import MetricsAggregator
from .settlement import SettlementScheduler, SettlementWorker
from .store import LedgerStore
from .withdrawals import WithdrawalProcessor

logger = logging.getLogger("contractor_ledger.service")


ERROR_VALIDATION = "validation_error"
ERROR_POLICY_LIMIT = "policy_limit_exceeded"
ERROR_INSUFFICIENT_BALANCE = "insufficient_balance"
ERROR_INTERNAL = "internal_error"


@dataclass(frozen=True)
class ServiceResponse:
    """HTTP-style status plus a JSON-ready body."""
    status: int
    body: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def _error_response(error: Exception) -> ServiceResponse:
    if isinstance(error, PolicyLimitExceeded):
        return ServiceResponse(400, {
            "error": str(error),
            "kind": ERROR_POLICY_LIMIT,
            "field": error.field,
            "limit": format_amount(error.limit),
        })
    if isinstance(error, ValidationError):
        return ServiceResponse(400, {
            "error": str(error),
            "kind": ERROR_VALIDATION,
            "field": error.field,
        })
    if isinstance(error, InsufficientBalance):
        return ServiceResponse(400, {
            "error": str(error),
            "kind": ERROR_INSUFFICIENT_BALANCE,
            "availableToWithdraw": format_amount(error.available),
        })
    return ServiceResponse(500, {"error": "Internal server error", "kind": ERROR_INTERNAL})


def _require_object(payload: Any) -> None:
    if not isinstance(payload, dict):
        raise ValidationError("body", "request body must be a JSON object")


class LedgerService:
    """
    The ledger's public contract.

    Every collaborator is injected, so tests can build as many isolated
    services as they like. from_config() builds the usual object graph.

    Example:
        service = LedgerService.from_config(LedgerConfig())
        service.submit_claim({"contractorId": "a@example.com", "amount": 1500})
        service.get_liability("a@example.com").body["liability"]
    """

    def __init__(
        self,
        store: LedgerStore,
        claims: ClaimProcessor,
        withdrawals: WithdrawalProcessor,
        liabilities: LiabilityCalculator,
        metrics: MetricsAggregator,
        poll_interval: float = 0.25,
    ):
        self.store = store
        self.claims = claims
        self.withdrawals = withdrawals
        self.liabilities = liabilities
        self.metrics = metrics
        self.poll_interval = poll_interval

    @classmethod
    def from_config(
        cls,
        config: Optional[LedgerConfig] = None,
        clock: Optional[Clock] = None,
        name: str = "main",
    ) -> 'LedgerService':
        config = config or LedgerConfig()
        store = LedgerStore(name, clock=clock)
        liabilities = LiabilityCalculator(store)
        service = cls(
            store=store,
            claims=ClaimProcessor(store, max_claim_amount=config.max_claim_amount),
            withdrawals=WithdrawalProcessor(
                store,
                scheduler=SettlementScheduler(),
                settlement_delay=config.settlement_delay,
            ),
            liabilities=liabilities,
            metrics=MetricsAggregator(store),
            poll_interval=config.poll_interval,
        )
        if config.seed_sample_data:
            service.seed_sample_data()
        return service

    # ========================================================================
    # OPERATIONS
    # ========================================================================

    def _handle(self, operation: str, action: Callable[[], ServiceResponse]) -> ServiceResponse:
        try:
            return action()
        except LedgerError as e:
            return _error_response(e)
        except Exception as e:
            logger.exception("error processing %s", operation)
            return _error_response(InternalLedgerError(str(e)))

    def submit_claim(self, payload: Dict[str, Any]) -> ServiceResponse:
        """Record a claim and return it with the contractor's new liability."""
        def action() -> ServiceResponse:
            _require_object(payload)
            claim = self.claims.submit_claim(
                payload.get("contractorId"),
                payload.get("amount"),
                payload.get("requesterRef"),
            )
            liability = self.liabilities.liability_of(claim.contractor_id)
            return ServiceResponse(201, {
                "success": True,
                "claim": claim.to_dict(),
                "liability": liability.to_dict(),
            })
        return self._handle("claim", action)

    def submit_withdrawal(self, payload: Dict[str, Any]) -> ServiceResponse:
        """Admit a withdrawal and return it (pending) with the new liability."""
        def action() -> ServiceResponse:
            _require_object(payload)
            withdrawal = self.withdrawals.submit_withdrawal(
                payload.get("contractorId"),
                payload.get("amount"),
            )
            liability = self.liabilities.liability_of(withdrawal.contractor_id)
            return ServiceResponse(201, {
                "success": True,
                "withdrawal": withdrawal.to_dict(),
                "liability": liability.to_dict(),
            })
        return self._handle("withdrawal", action)

    def get_liability(self, contractor_id: Optional[str]) -> ServiceResponse:
        def action() -> ServiceResponse:
            liability = self.liabilities.liability_of(validate_contractor_id(contractor_id))
            return ServiceResponse(200, {"success": True, "liability": liability.to_dict()})
        return self._handle("liability", action)

    def get_metrics(self) -> ServiceResponse:
        def action() -> ServiceResponse:
            report = self.metrics.report()
            return ServiceResponse(200, {"success": True, **report.to_dict()})
        return self._handle("metrics", action)

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    def process_settlements(self):
        """Complete every withdrawal whose settlement is due now."""
        return self.withdrawals.process_settlements()

    def settlement_worker(self) -> SettlementWorker:
        """Background worker that settles withdrawals on this service's clock."""
        return SettlementWorker(self.withdrawals, poll_interval=self.poll_interval)

    def seed_sample_data(self) -> bool:
        """
        Load the demo data set into an empty ledger.

        Returns False and does nothing if the ledger already has records.
        """
        if not self.store.is_empty():
            return False
        self.claims.submit_claim("contractor1@example.com", Decimal("1500"))
        self.claims.submit_claim("contractor2@example.com", Decimal("2000"))
        self.claims.submit_claim("contractor3@example.com", Decimal("1200"))
        self.claims.submit_claim("contractor1@example.com", Decimal("800"))

        w1 = self.withdrawals.submit_withdrawal("contractor1@example.com", Decimal("1000"))
        self.withdrawals.complete_withdrawal(w1.id)
        w2 = self.withdrawals.submit_withdrawal("contractor2@example.com", Decimal("1500"))
        self.withdrawals.complete_withdrawal(w2.id)
        logger.info("%s: seeded sample data", self.store.name)
        return True
