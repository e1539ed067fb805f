"""
Payment services for the escrow ledger.

This module provides:
- SplitCalculator: Split rule lookup, share calculation and the rule store
- EscrowLedger: Escrow creation, lookup, transitions and earnings
- CheckoutOrchestrator: Opens gateway orders and records their escrow

Usage:
    from payments.services import CheckoutOrchestrator, EscrowLedger, SplitCalculator

    calculator = SplitCalculator()
    ledger = EscrowLedger(calculator)
    checkout = CheckoutOrchestrator(ledger, calculator)

    result = checkout.initiate_checkout(
        amount=500,
        booking_id="BKG-1",
        store_id="store-7",
        freelancer_id="fl-3",
        service_id="haircut-basic",
        gateway="razorpay",
    )
"""

from payments.services.checkout_orchestrator import CheckoutOrchestrator, CheckoutResult
from payments.services.escrow_ledger import EarningsSummary, EscrowLedger, TransitionOutcome
from payments.services.split_calculator import (
    SplitAmounts,
    SplitCalculator,
    SplitPercentages,
    SplitResult,
    compute_shares,
)

__all__ = [
    "CheckoutOrchestrator",
    "CheckoutResult",
    "EarningsSummary",
    "EscrowLedger",
    "SplitAmounts",
    "SplitCalculator",
    "SplitPercentages",
    "SplitResult",
    "TransitionOutcome",
    "compute_shares",
]
