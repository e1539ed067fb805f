"""
Tests for the Stripe adapter.

Tests cover:
- Successful PaymentIntent creation and the call made
- Error translation for each exception type
- Timeout detection through the exception chain
"""

import pytest
import requests

from payments.adapters import StripeAdapter
from payments.adapters.stripe_adapter import _caused_by_timeout
from payments.exceptions import (
    GatewayRequestError,
    GatewayTimeoutError,
    GatewayUnavailableError,
)


@pytest.fixture
def adapter():
    return StripeAdapter(api_key="sk_test_123", timeout=5, max_retries=0)


# =============================================================================
# Success
# =============================================================================


class TestStripeCreateOrder:
    """Tests for StripeAdapter.create_order."""

    def test_success(self, adapter, order_params, mock_stripe_payment_intent):
        """Should return the PaymentIntent id and client secret."""
        result = adapter.create_order(order_params)

        assert result.gateway == "stripe"
        assert result.order_id == "pi_test123456"
        assert result.status == "requires_payment_method"
        assert result.amount == 500
        assert result.currency == "INR"
        assert result.client_secret == "pi_test123456_secret_abc123"
        assert result.raw_response["object"] == "payment_intent"

    def test_call_shape(self, adapter, order_params, mock_stripe_payment_intent):
        """Should pass the key per request, lower-case currency and idempotency key."""
        adapter.create_order(order_params)

        kwargs = mock_stripe_payment_intent.create.call_args.kwargs
        assert kwargs["api_key"] == "sk_test_123"
        assert kwargs["amount"] == 500
        assert kwargs["currency"] == "inr"
        assert kwargs["idempotency_key"] == "checkout-BKG-1"
        assert kwargs["metadata"]["booking_id"] == "BKG-1"
        assert kwargs["metadata"]["store_id"] == "store-7"


# =============================================================================
# Error Translation
# =============================================================================


class TestStripeAdapterErrorTranslation:
    """Tests for Stripe error translation to gateway exceptions."""

    def test_card_error(self, adapter, order_params, mock_stripe_payment_intent, card_error):
        """Should keep Stripe's message for the checkout page."""
        mock_stripe_payment_intent.create.side_effect = card_error

        with pytest.raises(GatewayRequestError) as exc_info:
            adapter.create_order(order_params)

        assert exc_info.value.message == "Your card was declined."
        assert exc_info.value.gateway_code == "card_declined"
        assert exc_info.value.is_retryable is False

    def test_invalid_request_error(self, adapter, order_params, mock_stripe_payment_intent, invalid_request_error):
        mock_stripe_payment_intent.create.side_effect = invalid_request_error

        with pytest.raises(GatewayRequestError, match="Invalid currency"):
            adapter.create_order(order_params)

    def test_authentication_error(self, adapter, order_params, mock_stripe_payment_intent, authentication_error):
        """Should not leak the key in the message."""
        mock_stripe_payment_intent.create.side_effect = authentication_error

        with pytest.raises(GatewayRequestError) as exc_info:
            adapter.create_order(order_params)

        assert exc_info.value.message == "Stripe authentication failed"
        assert exc_info.value.gateway_code == "authentication_error"

    def test_rate_limit_error(self, adapter, order_params, mock_stripe_payment_intent, rate_limit_error):
        mock_stripe_payment_intent.create.side_effect = rate_limit_error

        with pytest.raises(GatewayUnavailableError) as exc_info:
            adapter.create_order(order_params)

        assert exc_info.value.is_retryable is True
        assert exc_info.value.gateway_code == "rate_limit"

    def test_api_connection_error(self, adapter, order_params, mock_stripe_payment_intent, api_connection_error):
        mock_stripe_payment_intent.create.side_effect = api_connection_error

        with pytest.raises(GatewayUnavailableError, match="Could not connect"):
            adapter.create_order(order_params)

    def test_timeout(self, adapter, order_params, mock_stripe_payment_intent, timeout_error):
        """Should report a timeout when a requests timeout caused the connection error."""
        mock_stripe_payment_intent.create.side_effect = timeout_error

        with pytest.raises(GatewayTimeoutError) as exc_info:
            adapter.create_order(order_params)

        assert exc_info.value.is_retryable is True
        assert "5s" in exc_info.value.message

    def test_api_error(self, adapter, order_params, mock_stripe_payment_intent, api_error):
        mock_stripe_payment_intent.create.side_effect = api_error

        with pytest.raises(GatewayUnavailableError) as exc_info:
            adapter.create_order(order_params)

        assert exc_info.value.gateway_code == "api_error"


class TestCausedByTimeout:
    """Tests for _caused_by_timeout."""

    def test_direct(self):
        assert _caused_by_timeout(requests.Timeout())

    def test_chained_context(self):
        try:
            try:
                raise requests.ReadTimeout()
            except requests.ReadTimeout:
                raise RuntimeError("wrapped")
        except RuntimeError as e:
            assert _caused_by_timeout(e)

    def test_unrelated(self):
        assert not _caused_by_timeout(ValueError("nope"))
