"""
Pytest fixtures for gateway adapter tests.

Sections:
    - Razorpay HTTP Response Fixtures
    - Mock Stripe Response Fixtures
    - Mock Stripe Error Fixtures
"""

import json
from dataclasses import dataclass
from typing import Any
from unittest.mock import patch

import pytest
import requests
import stripe

from payments.adapters import CreateOrderParams


@pytest.fixture
def order_params():
    """Order for booking BKG-1 worth 500 paise."""
    return CreateOrderParams(
        amount=500,
        currency="INR",
        receipt="BKG-1",
        notes={"booking_id": "BKG-1", "store_id": "store-7", "freelancer_id": "fl-3"},
        idempotency_key="checkout-BKG-1",
    )


# =============================================================================
# Razorpay HTTP Response Fixtures
# =============================================================================


@pytest.fixture
def razorpay_response():
    """Build a requests.Response as returned by the Razorpay API."""

    def _create(status_code: int = 200, body: Any = None) -> requests.Response:
        response = requests.Response()
        response.status_code = status_code
        response._content = b"" if body is None else json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
        return response

    return _create


@pytest.fixture
def razorpay_order_body():
    """Body of a successful POST /v1/orders."""

    def _create(order_id: str = "order_Nx1TestOrder", amount: int = 500) -> dict[str, Any]:
        return {
            "id": order_id,
            "entity": "order",
            "amount": amount,
            "amount_paid": 0,
            "amount_due": amount,
            "currency": "INR",
            "receipt": "BKG-1",
            "status": "created",
            "attempts": 0,
            "notes": {"booking_id": "BKG-1"},
            "created_at": 1700000000,
        }

    return _create


@pytest.fixture
def mock_requests_post():
    """Patch the HTTP call made by the Razorpay adapter."""
    with patch("payments.adapters.razorpay_adapter.requests.post") as mock:
        yield mock


# =============================================================================
# Mock Stripe Response Fixtures
# =============================================================================


@dataclass
class MockStripeObject:
    """Mock Stripe API object with to_dict support."""

    data: dict[str, Any]

    def __getattr__(self, name: str) -> Any:
        if name == "data":
            return self.__dict__["data"]
        return self.data.get(name)

    def to_dict(self) -> dict[str, Any]:
        return self.data


@pytest.fixture
def mock_payment_intent():
    """Create a mock PaymentIntent response."""

    def _create(
        id: str = "pi_test123456",
        status: str = "requires_payment_method",
        amount: int = 500,
        currency: str = "inr",
        client_secret: str = "pi_test123456_secret_abc123",
        metadata: dict | None = None,
    ) -> MockStripeObject:
        return MockStripeObject(
            {
                "id": id,
                "object": "payment_intent",
                "status": status,
                "amount": amount,
                "currency": currency,
                "client_secret": client_secret,
                "metadata": metadata or {},
            }
        )

    return _create


@pytest.fixture
def mock_stripe_payment_intent(mock_payment_intent):
    """Mock stripe.PaymentIntent API."""
    with patch("stripe.PaymentIntent") as mock:
        mock.create.return_value = mock_payment_intent()
        yield mock


# =============================================================================
# Mock Stripe Error Fixtures
# =============================================================================


@pytest.fixture
def card_error():
    """Create a Stripe CardError."""
    return stripe.CardError(
        message="Your card was declined.",
        param=None,
        code="card_declined",
    )


@pytest.fixture
def invalid_request_error():
    """Create a Stripe InvalidRequestError."""
    return stripe.InvalidRequestError(
        message="Invalid currency: xyz",
        param="currency",
        code="parameter_invalid_string",
    )


@pytest.fixture
def authentication_error():
    """Create a Stripe AuthenticationError."""
    return stripe.AuthenticationError(message="Invalid API Key provided: sk_test_***")


@pytest.fixture
def rate_limit_error():
    """Create a Stripe RateLimitError."""
    return stripe.RateLimitError(message="Too many requests hit the API too quickly.")


@pytest.fixture
def api_connection_error():
    """Create a Stripe APIConnectionError."""
    return stripe.APIConnectionError(message="Could not connect to Stripe.")


@pytest.fixture
def timeout_error():
    """Create a Stripe APIConnectionError raised from a requests timeout."""
    error = stripe.APIConnectionError(message="Request to Stripe timed out.")
    error.__cause__ = requests.Timeout("Read timed out.")
    return error


@pytest.fixture
def api_error():
    """Create a Stripe APIError."""
    return stripe.APIError(message="Something went wrong on Stripe's end.")
