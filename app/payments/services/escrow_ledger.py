"""
Escrow ledger: the only writer of EscrowRecord rows.

Creates one escrow per booking with its computed split, looks records
up by booking or gateway reference, and moves them through the status
machine. Every status change happens inside a transaction holding a
row lock on the record, re-reading the stored status first, so two
deliveries of the same webhook cannot both apply.

Transition table:
    created  -> captured
    captured -> refunded
    created  -> failed

Re-applying the current status is a no-op (replayed webhooks). Any
other move raises InvalidTransitionError and leaves the row untouched.

Usage:
    from payments.services import EscrowLedger, SplitCalculator

    ledger = EscrowLedger(SplitCalculator())
    record = ledger.create_escrow(
        booking_id="BKG-1",
        store_id="store-7",
        freelancer_id="fl-3",
        service_id="haircut-basic",
        amount=500,
        method="razorpay",
        gateway_ref="order_Nx1",
    )
    outcome = ledger.transition(record, EscrowStatus.CAPTURED)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Q, Sum

from core.exceptions import ConflictError
from core.services import BaseService

from payments.exceptions import (
    DuplicateBookingError,
    InvalidTransitionError,
    PaymentValidationError,
)
from payments.models import EscrowRecord
from payments.state_machines import ESCROW_TRANSITIONS, EarningsParty, EscrowStatus, Gateway, GatewayMode

if TYPE_CHECKING:
    from typing import Any

    from payments.services.split_calculator import SplitCalculator, SplitResult


# Target status -> EscrowRecord transition method
TRANSITION_METHODS: dict[str, str] = {
    EscrowStatus.CAPTURED: "capture",
    EscrowStatus.REFUNDED: "refund",
    EscrowStatus.FAILED: "fail",
}


# =============================================================================
# Result Types
# =============================================================================


@dataclass(frozen=True)
class TransitionOutcome:
    """
    Result of EscrowLedger.transition.

    Attributes:
        record: The record as stored after the call
        previous_status: Status before the call
        status: Status after the call
        applied: False when the record was already in the target status
    """

    record: EscrowRecord
    previous_status: str
    status: str
    applied: bool


@dataclass(frozen=True)
class EarningsSummary:
    """
    Totals of one party's shares, in the smallest currency unit.

    pending: escrows still waiting for capture
    captured: captured and not refunded
    refunded: shares lost to refunds
    """

    party: str
    party_id: str
    currency: str
    booking_count: int
    pending_amount: int
    captured_amount: int
    refunded_amount: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "party": self.party,
            "party_id": self.party_id,
            "currency": self.currency,
            "booking_count": self.booking_count,
            "pending_amount": self.pending_amount,
            "captured_amount": self.captured_amount,
            "refunded_amount": self.refunded_amount,
        }


# =============================================================================
# Escrow Ledger Service
# =============================================================================


class EscrowLedger(BaseService):
    """
    Persistent ledger of per-booking escrow records.

    Args:
        split_calculator: Used to compute the split when create_escrow is
            not handed one already computed
    """

    def __init__(self, split_calculator: SplitCalculator):
        self.split_calculator = split_calculator

    # =========================================================================
    # Creation
    # =========================================================================

    def create_escrow(
        self,
        booking_id: str,
        store_id: str,
        freelancer_id: str,
        service_id: str | None,
        amount: int,
        method: str,
        gateway_ref: str,
        mode: str = GatewayMode.SANDBOX,
        currency: str | None = None,
        split: SplitResult | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> EscrowRecord:
        """
        Record a new escrow in status created.

        Args:
            booking_id: Marketplace booking id, unique across escrows
            store_id: Store receiving the store share
            freelancer_id: Freelancer receiving the freelancer share
            service_id: Service booked (selects the split rule)
            amount: Positive integer in the smallest currency unit
            method: Gateway name ("razorpay" or "stripe")
            gateway_ref: Order / payment intent id returned by the gateway
            mode: Gateway mode the order was created in
            currency: ISO 4217 code (default PAYMENT_DEFAULT_CURRENCY)
            split: Split already computed for this amount; computed here
                when omitted
            metadata: Extra JSON stored on the record

        Returns:
            The created EscrowRecord

        Raises:
            DuplicateBookingError: An escrow already exists for booking_id
            ConflictError: gateway_ref is already used by another escrow
            PaymentValidationError: Missing identifiers or bad amount
            InvalidRuleError: The active split rule is invalid
        """
        logger = self.get_logger()

        self._require(booking_id=booking_id, store_id=store_id, freelancer_id=freelancer_id)
        self._require(gateway_ref=gateway_ref)
        if method not in Gateway.values:
            raise PaymentValidationError(
                f"Unsupported gateway: {method}",
                details={"gateway": method},
            )
        if mode not in GatewayMode.values:
            raise PaymentValidationError(
                f"Unsupported gateway mode: {mode}",
                details={"mode": mode},
            )

        if EscrowRecord.objects.filter(booking_id=booking_id).exists():
            raise DuplicateBookingError(
                f"Escrow already exists for booking {booking_id}",
                details={"booking_id": booking_id},
            )

        if split is None:
            split = self.split_calculator.calculate_split(amount, service_id)
        elif split.amounts.total != amount:
            raise PaymentValidationError(
                "Split does not add up to the amount",
                details={"amount": amount, **split.as_dict()},
            )

        try:
            with transaction.atomic():
                record = EscrowRecord.objects.create(
                    booking_id=booking_id,
                    store_id=store_id,
                    freelancer_id=freelancer_id,
                    service_id=service_id or "",
                    gateway=method,
                    mode=mode,
                    gateway_ref=gateway_ref,
                    amount=amount,
                    currency=(currency or settings.PAYMENT_DEFAULT_CURRENCY).upper(),
                    metadata=metadata or {},
                    **split.as_dict(),
                )
        except IntegrityError as e:
            # Lost a race with a concurrent checkout for the same booking
            if EscrowRecord.objects.filter(booking_id=booking_id).exists():
                raise DuplicateBookingError(
                    f"Escrow already exists for booking {booking_id}",
                    details={"booking_id": booking_id},
                ) from e
            raise ConflictError(
                f"Gateway reference {gateway_ref} is already recorded",
                error_code="DUPLICATE_GATEWAY_REF",
                details={"gateway": method, "gateway_ref": gateway_ref},
            ) from e

        logger.info(
            "Created escrow",
            extra={
                "booking_id": booking_id,
                "gateway": method,
                "gateway_ref": gateway_ref,
                "amount": amount,
                **split.as_dict(),
            },
        )
        return record

    # =========================================================================
    # Lookup
    # =========================================================================

    def find_by_gateway_ref(self, gateway: str, ref: str) -> EscrowRecord | None:
        """
        Find the escrow a gateway reference belongs to.

        Matches the order / intent id, and also the captured payment id
        so Razorpay refunds (which only carry pay_xxx) correlate.
        """
        if not ref:
            return None
        return (
            EscrowRecord.objects.filter(gateway=gateway)
            .filter(Q(gateway_ref=ref) | Q(gateway_payment_id=ref))
            .first()
        )

    def find_by_booking_id(self, booking_id: str) -> EscrowRecord | None:
        return EscrowRecord.objects.filter(booking_id=booking_id).first()

    # =========================================================================
    # Transitions
    # =========================================================================

    def transition(
        self,
        record: EscrowRecord,
        new_status: str,
        payment_id: str | None = None,
        reason: str | None = None,
    ) -> TransitionOutcome:
        """
        Move an escrow to new_status.

        The stored row is locked and re-read, so the decision is made on
        the current status rather than on the (possibly stale) instance
        passed in.

        Args:
            record: Escrow to transition
            new_status: Target EscrowStatus value
            payment_id: Gateway payment id recorded on capture
            reason: Failure reason recorded on fail

        Returns:
            TransitionOutcome; applied is False for a same-status replay

        Raises:
            InvalidTransitionError: The move is not in the transition table
            PaymentValidationError: new_status is not a known status
        """
        logger = self.get_logger()

        if new_status not in EscrowStatus.values:
            raise PaymentValidationError(
                f"Unknown escrow status: {new_status}",
                details={"status": new_status},
            )
        target = EscrowStatus(new_status)

        with self.atomic():
            locked = EscrowRecord.objects.select_for_update().get(pk=record.pk)
            previous = locked.status

            if previous == target:
                logger.info(
                    "Escrow already in target status, nothing to do",
                    extra={"booking_id": locked.booking_id, "status": previous},
                )
                return TransitionOutcome(
                    record=locked,
                    previous_status=previous,
                    status=previous,
                    applied=False,
                )

            if previous not in ESCROW_TRANSITIONS.get(target, ()):
                raise InvalidTransitionError(
                    f"Cannot move escrow from '{previous}' to '{target}'",
                    details={
                        "booking_id": locked.booking_id,
                        "current_status": previous,
                        "target_status": str(target),
                    },
                )

            method = getattr(locked, TRANSITION_METHODS[target])
            if target == EscrowStatus.CAPTURED:
                method(payment_id=payment_id)
            elif target == EscrowStatus.FAILED:
                method(reason=reason)
            else:
                method()

            locked.save()

        logger.info(
            "Escrow status changed",
            extra={
                "booking_id": locked.booking_id,
                "gateway_ref": locked.gateway_ref,
                "from_status": previous,
                "to_status": locked.status,
            },
        )
        return TransitionOutcome(
            record=locked,
            previous_status=previous,
            status=locked.status,
            applied=True,
        )

    # =========================================================================
    # Reporting
    # =========================================================================

    def earnings_summary(
        self,
        party: str,
        party_id: str,
        currency: str | None = None,
    ) -> EarningsSummary:
        """
        Total one store's or freelancer's shares by escrow status.

        Args:
            party: "store" or "freelancer"
            party_id: The store or freelancer id
            currency: Only count escrows in this currency
                (default PAYMENT_DEFAULT_CURRENCY)
        """
        if party not in EarningsParty.values:
            raise PaymentValidationError(
                f"Unknown earnings party: {party}",
                details={"party": party},
            )
        currency = (currency or settings.PAYMENT_DEFAULT_CURRENCY).upper()
        share_field = f"{party}_amount"

        records = EscrowRecord.objects.filter(
            **{f"{party}_id": party_id},
            currency=currency,
        )
        totals = {
            row["status"]: row["total"] or 0
            for row in records.order_by().values("status").annotate(total=Sum(share_field))
        }

        return EarningsSummary(
            party=party,
            party_id=party_id,
            currency=currency,
            booking_count=records.exclude(status=EscrowStatus.FAILED).count(),
            pending_amount=totals.get(EscrowStatus.CREATED, 0),
            captured_amount=totals.get(EscrowStatus.CAPTURED, 0),
            refunded_amount=totals.get(EscrowStatus.REFUNDED, 0),
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _require(**fields: Any) -> None:
        missing = [name for name, value in fields.items() if not value]
        if missing:
            raise PaymentValidationError(
                f"Missing required fields: {', '.join(missing)}",
                details={"missing": missing},
            )
