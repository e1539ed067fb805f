"""
Checkout orchestrator: opens a gateway order and records its escrow.

The orchestrator is the entry point for paying a booking. It:
- Validates the request and rejects bookings that already have an escrow
- Computes the split first, so a bad rule fails before any network call
- Opens a Razorpay order or Stripe payment intent through the gateway client
- Records the escrow only after the gateway accepted the order

A gateway failure propagates as GatewayError and leaves the ledger
untouched.

Usage:
    from payments.services import CheckoutOrchestrator

    orchestrator = CheckoutOrchestrator(ledger, split_calculator)
    result = orchestrator.initiate_checkout(
        amount=500,
        booking_id="BKG-1",
        store_id="store-7",
        freelancer_id="fl-3",
        service_id="haircut-basic",
        gateway="razorpay",
        mode="sandbox",
    )
    result.order_id  # order_xxx, handed to Razorpay Checkout
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from django.conf import settings

from core.services import BaseService

from payments.adapters import CreateOrderParams, get_gateway_client
from payments.exceptions import DuplicateBookingError, PaymentValidationError
from payments.services.split_calculator import validate_amount
from payments.state_machines import Gateway, GatewayMode

if TYPE_CHECKING:
    from typing import Any

    from payments.adapters import GatewayClient
    from payments.models import EscrowRecord
    from payments.services.escrow_ledger import EscrowLedger
    from payments.services.split_calculator import SplitCalculator, SplitResult


# =============================================================================
# Result Type
# =============================================================================


@dataclass(frozen=True)
class CheckoutResult:
    """
    Result of a successful checkout.

    Attributes:
        gateway: Gateway the order was opened with
        order_id: Razorpay order id or Stripe payment intent id
        status: Gateway-reported order status
        amount: Amount in smallest currency unit
        currency: ISO 4217 code
        split: Split recorded on the escrow
        client_secret: Stripe client secret (None for Razorpay)
        escrow: The created escrow record
    """

    gateway: str
    order_id: str
    status: str
    amount: int
    currency: str
    split: SplitResult
    client_secret: str | None
    escrow: EscrowRecord

    def as_response(self) -> dict[str, Any]:
        """Body returned to the checkout page."""
        id_key = "paymentIntentId" if self.gateway == Gateway.STRIPE else "orderId"
        body: dict[str, Any] = {
            id_key: self.order_id,
            "status": self.status,
            "gateway": self.gateway,
            "amount": self.amount,
            "currency": self.currency,
            "bookingId": self.escrow.booking_id,
            "split": {
                "storePct": self.split.rule.store_pct,
                "freelancerPct": self.split.rule.freelancer_pct,
                "platformPct": self.split.rule.platform_pct,
                "storeAmount": self.split.amounts.store_amount,
                "freelancerAmount": self.split.amounts.freelancer_amount,
                "platformAmount": self.split.amounts.platform_amount,
            },
        }
        if self.client_secret:
            body["clientSecret"] = self.client_secret
        return body


# =============================================================================
# Checkout Orchestrator
# =============================================================================


class CheckoutOrchestrator(BaseService):
    """
    Coordinates split calculation, the gateway call and escrow creation.

    Args:
        ledger: EscrowLedger that records the escrow
        split_calculator: SplitCalculator for the booking's service
        gateway_factory: Builds a GatewayClient for (gateway, mode);
            tests pass a fake
    """

    def __init__(
        self,
        ledger: EscrowLedger,
        split_calculator: SplitCalculator,
        gateway_factory: Callable[[str, str], GatewayClient] = get_gateway_client,
    ):
        self.ledger = ledger
        self.split_calculator = split_calculator
        self.gateway_factory = gateway_factory

    def initiate_checkout(
        self,
        amount: int,
        booking_id: str,
        store_id: str,
        freelancer_id: str,
        service_id: str | None = None,
        gateway: str | None = None,
        mode: str | None = None,
        currency: str | None = None,
    ) -> CheckoutResult:
        """
        Open a gateway order for a booking and record its escrow.

        Args:
            amount: Positive integer in the smallest currency unit
            booking_id: Marketplace booking id
            store_id: Store receiving the store share
            freelancer_id: Freelancer receiving the freelancer share
            service_id: Service booked (selects the split rule)
            gateway: "razorpay" or "stripe" (default PAYMENT_DEFAULT_GATEWAY)
            mode: "sandbox" or "live" (default PAYMENT_MODE)
            currency: ISO 4217 code (default PAYMENT_DEFAULT_CURRENCY)

        Returns:
            CheckoutResult for the checkout page

        Raises:
            PaymentValidationError: Bad amount, ids, gateway or mode
            InvalidRuleError: The split rule for the service is invalid
            DuplicateBookingError: The booking already has an escrow
            GatewayError: The gateway did not open the order
        """
        logger = self.get_logger()

        gateway = gateway or settings.PAYMENT_DEFAULT_GATEWAY
        mode = mode or settings.PAYMENT_MODE
        currency = (currency or settings.PAYMENT_DEFAULT_CURRENCY).upper()

        validate_amount(amount)
        self._validate(booking_id, store_id, freelancer_id, gateway, mode)

        if self.ledger.find_by_booking_id(booking_id) is not None:
            raise DuplicateBookingError(
                f"Escrow already exists for booking {booking_id}",
                details={"booking_id": booking_id},
            )

        split = self.split_calculator.calculate_split(amount, service_id)

        log_context = {
            "booking_id": booking_id,
            "gateway": gateway,
            "mode": mode,
            "amount": amount,
            "currency": currency,
        }
        logger.info("Initiating checkout", extra=log_context)

        client = self.gateway_factory(gateway, mode)
        order = client.create_order(
            CreateOrderParams(
                amount=amount,
                currency=currency,
                receipt=booking_id,
                notes={
                    "booking_id": booking_id,
                    "store_id": store_id,
                    "freelancer_id": freelancer_id,
                    "service_id": service_id or "",
                },
                idempotency_key=f"checkout-{booking_id}",
            )
        )

        escrow = self.ledger.create_escrow(
            booking_id=booking_id,
            store_id=store_id,
            freelancer_id=freelancer_id,
            service_id=service_id,
            amount=amount,
            method=gateway,
            gateway_ref=order.order_id,
            mode=mode,
            currency=currency,
            split=split,
        )

        logger.info(
            "Checkout initiated",
            extra={**log_context, "gateway_ref": order.order_id, "status": order.status},
        )

        return CheckoutResult(
            gateway=gateway,
            order_id=order.order_id,
            status=order.status,
            amount=amount,
            currency=currency,
            split=split,
            client_secret=order.client_secret,
            escrow=escrow,
        )

    @staticmethod
    def _validate(booking_id: str, store_id: str, freelancer_id: str, gateway: str, mode: str) -> None:
        missing = [
            name
            for name, value in (
                ("booking_id", booking_id),
                ("store_id", store_id),
                ("freelancer_id", freelancer_id),
            )
            if not value
        ]
        if missing:
            raise PaymentValidationError(
                f"Missing required fields: {', '.join(missing)}",
                details={"missing": missing},
            )
        if gateway not in Gateway.values:
            raise PaymentValidationError(
                f"Unsupported gateway: {gateway}",
                details={"gateway": gateway},
            )
        if mode not in GatewayMode.values:
            raise PaymentValidationError(
                f"Unsupported gateway mode: {mode}",
                details={"mode": mode},
            )
