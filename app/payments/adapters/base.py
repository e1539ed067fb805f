"""
Gateway client contract shared by the Razorpay and Stripe adapters.

The checkout orchestrator only talks to a GatewayClient; which concrete
client it gets is decided by get_gateway_client() from the gateway name
and mode, so tests can hand the orchestrator a fake factory instead.

Usage:
    from payments.adapters import CreateOrderParams, get_gateway_client

    client = get_gateway_client("razorpay", "sandbox")
    result = client.create_order(
        CreateOrderParams(amount=50000, currency="INR", receipt="BKG-1")
    )
    result.order_id  # "order_Nx1..."
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from django.conf import settings

from payments.exceptions import GatewayRequestError, PaymentValidationError
from payments.state_machines import Gateway, GatewayMode

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class CreateOrderParams:
    """
    Parameters for opening a gateway order / payment intent.

    Attributes:
        amount: Amount in smallest currency unit
        currency: ISO 4217 currency code
        receipt: Our reference for the order (the booking id)
        notes: Key-value pairs attached to the order (Razorpay notes,
            Stripe metadata)
        idempotency_key: Optional key for gateways that support it
    """

    amount: int
    currency: str
    receipt: str
    notes: dict[str, str] = field(default_factory=dict)
    idempotency_key: str | None = None

    def __post_init__(self) -> None:
        """Validate parameters after initialization."""
        if self.amount <= 0:
            raise ValueError("amount must be positive")
        if not self.currency:
            raise ValueError("currency is required")
        if not self.receipt:
            raise ValueError("receipt is required")


@dataclass
class GatewayOrderResult:
    """
    Result of a successful create_order call.

    Attributes:
        gateway: Gateway that created the order
        order_id: Razorpay order id (order_xxx) or Stripe intent id (pi_xxx)
        status: Gateway-reported status ("created", "requires_payment_method", ...)
        amount: Amount the gateway recorded
        currency: Currency the gateway recorded
        client_secret: Stripe client secret for front-end confirmation
        raw_response: Full gateway response (for debugging)
    """

    gateway: str
    order_id: str
    status: str
    amount: int
    currency: str
    client_secret: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Protocol
# =============================================================================


@runtime_checkable
class GatewayClient(Protocol):
    """
    Protocol for payment gateway clients.

    Implementations must bound every network call with a timeout and
    translate failures into GatewayError subclasses.

    Example:
        class FakeGateway:
            gateway = "razorpay"

            def create_order(self, params):
                return GatewayOrderResult("razorpay", "order_1", "created",
                                          params.amount, params.currency)
    """

    gateway: str

    def create_order(self, params: CreateOrderParams) -> GatewayOrderResult:
        """
        Open an order (Razorpay) or payment intent (Stripe).

        Raises:
            GatewayError: Any failure, with the upstream message
        """
        ...


# =============================================================================
# Factory
# =============================================================================


def get_gateway_client(gateway: str, mode: str = GatewayMode.SANDBOX) -> GatewayClient:
    """
    Build the client for a gateway/mode pair from settings.

    Live mode uses the *_LIVE_* credentials, sandbox the regular ones.

    Raises:
        PaymentValidationError: Unknown gateway or mode
        GatewayRequestError: Credentials for the pair are not configured
    """
    from payments.adapters.razorpay_adapter import RazorpayAdapter
    from payments.adapters.stripe_adapter import StripeAdapter

    if mode not in GatewayMode.values:
        raise PaymentValidationError(
            f"Unsupported gateway mode: {mode}",
            details={"mode": mode},
        )
    live = mode == GatewayMode.LIVE

    if gateway == Gateway.RAZORPAY:
        key_id = settings.RAZORPAY_LIVE_KEY_ID if live else settings.RAZORPAY_KEY_ID
        key_secret = settings.RAZORPAY_LIVE_KEY_SECRET if live else settings.RAZORPAY_KEY_SECRET
        if not key_id or not key_secret:
            raise GatewayRequestError(
                "Razorpay credentials are not configured",
                gateway=gateway,
                details={"mode": mode},
            )
        return RazorpayAdapter(
            key_id=key_id,
            key_secret=key_secret,
            base_url=settings.RAZORPAY_API_BASE_URL,
            timeout=settings.RAZORPAY_API_TIMEOUT_SECONDS,
        )

    if gateway == Gateway.STRIPE:
        api_key = settings.STRIPE_LIVE_SECRET_KEY if live else settings.STRIPE_SECRET_KEY
        if not api_key:
            raise GatewayRequestError(
                "Stripe secret key is not configured",
                gateway=gateway,
                details={"mode": mode},
            )
        return StripeAdapter(
            api_key=api_key,
            timeout=settings.STRIPE_API_TIMEOUT_SECONDS,
            max_retries=settings.STRIPE_MAX_RETRIES,
        )

    raise PaymentValidationError(
        f"Unsupported gateway: {gateway}",
        details={"gateway": gateway},
    )
