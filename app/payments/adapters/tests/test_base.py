"""
Tests for the gateway client contract and factory.
"""

import pytest
from django.test import override_settings

from payments.adapters import (
    CreateOrderParams,
    GatewayClient,
    RazorpayAdapter,
    StripeAdapter,
    get_gateway_client,
)
from payments.exceptions import GatewayRequestError, PaymentValidationError


class TestCreateOrderParams:
    """Tests for CreateOrderParams validation."""

    def test_valid_params(self):
        params = CreateOrderParams(amount=500, currency="INR", receipt="BKG-1")

        assert params.notes == {}
        assert params.idempotency_key is None

    @pytest.mark.parametrize("amount", [0, -100])
    def test_amount_must_be_positive(self, amount):
        with pytest.raises(ValueError, match="amount must be positive"):
            CreateOrderParams(amount=amount, currency="INR", receipt="BKG-1")

    def test_currency_required(self):
        with pytest.raises(ValueError, match="currency is required"):
            CreateOrderParams(amount=500, currency="", receipt="BKG-1")

    def test_receipt_required(self):
        with pytest.raises(ValueError, match="receipt is required"):
            CreateOrderParams(amount=500, currency="INR", receipt="")


class TestGetGatewayClient:
    """Tests for get_gateway_client."""

    @pytest.fixture(autouse=True)
    def gateway_keys(self):
        with override_settings(
            RAZORPAY_KEY_ID="rzp_test_key",
            RAZORPAY_KEY_SECRET="rzp_test_secret",
            RAZORPAY_LIVE_KEY_ID="rzp_live_key",
            RAZORPAY_LIVE_KEY_SECRET="rzp_live_secret",
            STRIPE_SECRET_KEY="sk_test_123",
            STRIPE_LIVE_SECRET_KEY="",
        ):
            yield

    def test_razorpay_sandbox(self):
        client = get_gateway_client("razorpay", "sandbox")

        assert isinstance(client, RazorpayAdapter)
        assert isinstance(client, GatewayClient)
        assert client.key_id == "rzp_test_key"

    def test_razorpay_live_uses_live_keys(self):
        client = get_gateway_client("razorpay", "live")

        assert client.key_id == "rzp_live_key"
        assert client.key_secret == "rzp_live_secret"

    def test_stripe_sandbox(self):
        client = get_gateway_client("stripe")

        assert isinstance(client, StripeAdapter)
        assert client.api_key == "sk_test_123"

    def test_missing_credentials(self):
        """Should refuse to build a client with no key for the mode."""
        with pytest.raises(GatewayRequestError, match="not configured"):
            get_gateway_client("stripe", "live")

    def test_unknown_gateway(self):
        with pytest.raises(PaymentValidationError, match="Unsupported gateway"):
            get_gateway_client("paypal", "sandbox")

    def test_unknown_mode(self):
        with pytest.raises(PaymentValidationError, match="Unsupported gateway mode"):
            get_gateway_client("razorpay", "production")
