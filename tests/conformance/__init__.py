"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the contractor ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. balance_non_negative.py - No contractor is ever paid more than claimed
2. net_liability.py - Company totals agree with per-contractor sums
3. claim_monotonicity.py - Claims only ever add liability
4. completion_idempotency.py - Settlement happens at most once
5. admission_concurrency.py - Concurrent withdrawals cannot overdraw

These tests use hypothesis for property-based testing.
"""
