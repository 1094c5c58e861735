#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn the Contractor Ledger Step by Step

A walkthrough of how the company tracks what it owes its contractors. Each
step builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:  Foundation   - The empty ledger, claims, derived liabilities
  4-6:  Withdrawals  - Admission, rejections, settlement on a virtual clock
  7-8:  Company View - Metrics, the net liability check
  9:    Real Time    - A background settlement worker on the system clock

Run:
    python demo.py                        # Interactive mode
    python demo.py --quick                # Run all steps without pausing
    python demo.py --config ledger.yaml   # Use a policy from a YAML file
    python demo.py --verbose              # Show the ledger's own log output
"""

from datetime import datetime, timedelta, timezone
import argparse
import logging
import time

from contractor_ledger import (
    LedgerService, LedgerConfig, ManualClock,
    load_config, verify_net_liability, format_amount,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

START_TIME = datetime(2025, 1, 1, 9, 0, 0, tzinfo=timezone.utc)
ALICE = "alice@example.com"
BOB = "bob@example.com"

QUICK_MODE = False


def wait_for_enter():
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def show_response(response):
    print(f"    status: {response.status}")
    for key, value in response.body.items():
        print(f"    {key}: {value}")


def show_liability(service: LedgerService, contractor_id: str):
    liability = service.get_liability(contractor_id).body["liability"]
    print(f"  {contractor_id}")
    print(f"    claimed:     {liability['totalClaimed']:>10}")
    print(f"    cashed out:  {liability['totalCashedOut']:>10}")
    print(f"    processing:  {liability['totalProcessing']:>10}")
    print(f"    available:   {liability['availableToWithdraw']:>10}")


# ============================================================================
# STEPS
# ============================================================================

def step_01_empty_ledger(config: LedgerConfig):
    step_header(1, "The Empty Ledger", "Build a service on a virtual clock")
    print(">>> clock = ManualClock(datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc))")
    print(">>> service = LedgerService.from_config(config, clock=clock)\n")

    clock = ManualClock(START_TIME)
    service = LedgerService.from_config(config, clock=clock, name="tutorial")

    print(f"Store:            {service.store!r}")
    print(f"Claim ceiling:    {format_amount(service.claims.max_claim_amount)}")
    print(f"Settlement delay: {service.withdrawals.settlement_delay}")
    print("""
The ledger is two append-only lists: claims and withdrawals. Nothing else
is stored. Every balance you will see is computed from those lists.
""")
    wait_for_enter()
    return service, clock


def step_02_first_claim(service: LedgerService):
    step_header(2, "First Claim", "Record pay owed to a contractor")
    print(f'>>> service.submit_claim({{"contractorId": "{ALICE}", "amount": 1500}})')
    show_response(service.submit_claim({"contractorId": ALICE, "amount": 1500}))
    print("""
The claim gets an id from a counter shared by every record kind, so ids
are unique and sort in creation order.
""")
    wait_for_enter()


def step_03_liability(service: LedgerService):
    step_header(3, "Derived Liability", "See that balances come from the log")
    service.submit_claim({"contractorId": ALICE, "amount": 800})
    print(">>> service.submit_claim(... 800)")
    show_liability(service, ALICE)
    show_liability(service, BOB)
    print("""
Bob has never claimed anything, so his liability is all zeros rather than
an error.
""")
    wait_for_enter()


def step_04_withdrawal(service: LedgerService):
    step_header(4, "Withdrawal Admission", "Reserve balance for a payout")
    print(f'>>> service.submit_withdrawal({{"contractorId": "{ALICE}", "amount": 1000}})')
    response = service.submit_withdrawal({"contractorId": ALICE, "amount": 1000})
    show_response(response)
    print()
    show_liability(service, ALICE)
    print("""
The withdrawal is pending. It is not cashed out yet, but it already counts
against the available balance so it cannot be spent twice.
""")
    wait_for_enter()
    return response.body["withdrawal"]["id"]


def step_05_rejections(service: LedgerService):
    step_header(5, "Rejections", "Watch the ledger refuse bad requests")
    print(">>> # Over the available balance")
    show_response(service.submit_withdrawal({"contractorId": ALICE, "amount": 5000}))
    print("\n>>> # Over the per-claim ceiling")
    show_response(service.submit_claim({"contractorId": BOB, "amount": 6000}))
    print("\n>>> # Not a number")
    show_response(service.submit_claim({"contractorId": BOB, "amount": "lots"}))
    print(f"\nRecords in the ledger: {len(service.store)} (unchanged by rejections)")
    wait_for_enter()


def step_06_settlement(service: LedgerService, clock: ManualClock, withdrawal_id: str):
    step_header(6, "Settlement", "Advance virtual time until the payout clears")
    print(">>> service.process_settlements()  # too early")
    print(f"    completed: {service.process_settlements()}")

    delay = service.withdrawals.settlement_delay
    print(f"\n>>> clock.advance({delay!r})")
    clock.advance(delay)
    print(">>> service.process_settlements()")
    print(f"    completed: {service.process_settlements()}")

    print(f"\n>>> service.withdrawals.complete_withdrawal('{withdrawal_id}')  # again")
    print(f"    {service.withdrawals.complete_withdrawal(withdrawal_id)}")
    print()
    show_liability(service, ALICE)
    print("""
Completion moves the amount from processing to cashed out. Available does
not change; it was reserved at admission. Completing twice does nothing.
""")
    wait_for_enter()


def step_07_metrics(service: LedgerService):
    step_header(7, "Company Metrics", "Total what the company owes")
    service.submit_claim({"contractorId": BOB, "amount": 2000})
    service.submit_withdrawal({"contractorId": BOB, "amount": 500})
    body = service.get_metrics().body
    for key, value in body["totalMetrics"].items():
        print(f"  {key:<16} {value:>10}")
    print()
    for contractor in body["contractors"]:
        print(f"  {contractor['contractorId']:<22} available {contractor['availableToWithdraw']:>10}")
    wait_for_enter()


def step_08_net_liability(service: LedgerService):
    step_header(8, "Net Liability Check", "Prove totals agree with contractor sums")
    result = verify_net_liability(service.store.snapshot())
    print(f"  net liability:      {result['net_liability']}")
    print(f"  sum of contractors: {result['sum_of_contractors']}")
    print(f"  difference:         {result['difference']}")
    print(f"  valid:              {result['valid']}")
    wait_for_enter()


def step_09_worker(config: LedgerConfig):
    step_header(9, "Background Settlement", "Let a worker thread settle on real time")
    fast = LedgerConfig(
        max_claim_amount=config.max_claim_amount,
        settlement_delay=timedelta(seconds=1),
        poll_interval=0.1,
    )
    service = LedgerService.from_config(fast, name="realtime")
    service.submit_claim({"contractorId": ALICE, "amount": 300})
    withdrawal_id = service.submit_withdrawal({"contractorId": ALICE, "amount": 200}).body["withdrawal"]["id"]

    with service.settlement_worker():
        for _ in range(20):
            status = service.store.get_withdrawal(withdrawal_id).status.value
            print(f"  {withdrawal_id}: {status}")
            if status == "completed":
                break
            time.sleep(0.25)
    print()
    show_liability(service, ALICE)
    wait_for_enter()


# ============================================================================
# MAIN
# ============================================================================

def main():
    global QUICK_MODE
    parser = argparse.ArgumentParser(description="Contractor ledger tutorial")
    parser.add_argument("--quick", action="store_true", help="run without pausing")
    parser.add_argument("--config", help="YAML policy file")
    parser.add_argument("--verbose", action="store_true", help="show ledger log output")
    args = parser.parse_args()

    QUICK_MODE = args.quick
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = load_config(args.config) if args.config else LedgerConfig()

    service, clock = step_01_empty_ledger(config)
    step_02_first_claim(service)
    step_03_liability(service)
    withdrawal_id = step_04_withdrawal(service)
    step_05_rejections(service)
    step_06_settlement(service, clock, withdrawal_id)
    step_07_metrics(service)
    step_08_net_liability(service)
    step_09_worker(config)

    print(f"\n{'='*70}")
    print("TUTORIAL COMPLETE")
    print(f"{'='*70}")
    print("""
    - Claims add to what is owed; withdrawals reserve and then cash out
    - Balances are always derived from the append-only log
    - Admission is atomic, completion is idempotent

    Next steps:
      - See ledger.example.yaml for the configurable policy
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
