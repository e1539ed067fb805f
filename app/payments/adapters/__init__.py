"""
Payment gateway adapters.

All gateway API calls go through these adapters so that timeouts,
error translation and logging are consistent.

Usage:
    from payments.adapters import CreateOrderParams, get_gateway_client

    client = get_gateway_client("stripe", "sandbox")
    result = client.create_order(
        CreateOrderParams(amount=50000, currency="INR", receipt="BKG-1")
    )
"""

from payments.adapters.base import (
    CreateOrderParams,
    GatewayClient,
    GatewayOrderResult,
    get_gateway_client,
)
from payments.adapters.razorpay_adapter import RazorpayAdapter
from payments.adapters.stripe_adapter import StripeAdapter

__all__ = [
    "CreateOrderParams",
    "GatewayClient",
    "GatewayOrderResult",
    "RazorpayAdapter",
    "StripeAdapter",
    "get_gateway_client",
]
