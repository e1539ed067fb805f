"""
Tests for CheckoutOrchestrator.

Tests cover:
- Razorpay and Stripe checkout: order opened, escrow recorded with the split
- Settings defaults for gateway, mode and currency
- Validation, duplicate bookings and invalid rules fail before any gateway call
- Gateway failures leave the ledger untouched
"""

import pytest
from django.test import override_settings

from payments.exceptions import (
    DuplicateBookingError,
    GatewayRequestError,
    GatewayTimeoutError,
    InvalidRuleError,
    PaymentValidationError,
)
from payments.models import EscrowRecord
from payments.services import CheckoutOrchestrator, SplitCalculator, SplitPercentages
from payments.state_machines import EscrowStatus
from payments.tests.factories import EscrowRecordFactory, SplitRuleFactory
from payments.tests.fakes import FakeGateway


@pytest.fixture
def gateways():
    """Fake clients keyed by gateway; the factory records (gateway, mode) calls."""
    clients = {
        "razorpay": FakeGateway("razorpay"),
        "stripe": FakeGateway("stripe", client_secret="pi_secret_abc"),
    }
    clients["calls"] = []
    return clients


@pytest.fixture
def orchestrator(ledger, split_calculator, gateways):
    def factory(gateway, mode):
        gateways["calls"].append((gateway, mode))
        return gateways[gateway]

    return CheckoutOrchestrator(ledger, split_calculator, gateway_factory=factory)


def _checkout(orchestrator, **overrides):
    params = {
        "amount": 500,
        "booking_id": "BKG-1",
        "store_id": "store-7",
        "freelancer_id": "fl-3",
        "service_id": "haircut-basic",
        "gateway": "razorpay",
        "mode": "sandbox",
    }
    params.update(overrides)
    return orchestrator.initiate_checkout(**params)


# =============================================================================
# Success
# =============================================================================


class TestInitiateCheckout:
    """Successful checkouts."""

    def test_razorpay_checkout(self, db, orchestrator, gateways):
        """Should open an order and record a CREATED escrow against it."""
        result = _checkout(orchestrator)

        assert result.order_id == "order_BKG-1"
        assert result.status == "created"
        assert result.client_secret is None

        escrow = EscrowRecord.objects.get(booking_id="BKG-1")
        assert escrow.status == EscrowStatus.CREATED
        assert escrow.gateway == "razorpay"
        assert escrow.gateway_ref == "order_BKG-1"
        assert escrow.mode == "sandbox"
        assert (escrow.store_amount, escrow.freelancer_amount, escrow.platform_amount) == (300, 125, 75)

        params = gateways["razorpay"].orders[0]
        assert params.amount == 500
        assert params.receipt == "BKG-1"
        assert params.idempotency_key == "checkout-BKG-1"
        assert params.notes["store_id"] == "store-7"

    def test_stripe_checkout(self, db, orchestrator, gateways):
        result = _checkout(orchestrator, gateway="stripe", currency="usd")

        assert result.order_id == "pi_BKG-1"
        assert result.client_secret == "pi_secret_abc"
        assert result.currency == "USD"
        assert EscrowRecord.objects.get(booking_id="BKG-1").currency == "USD"

    def test_uses_service_override(self, db, orchestrator):
        SplitRuleFactory(service_id="bridal", store_pct=40, freelancer_pct=40, platform_pct=20)

        result = _checkout(orchestrator, amount=799, service_id="bridal")

        assert result.split.is_override is True
        escrow = result.escrow
        assert (escrow.store_amount, escrow.freelancer_amount, escrow.platform_amount) == (320, 320, 159)

    def test_live_mode_passed_to_factory(self, db, orchestrator, gateways):
        _checkout(orchestrator, mode="live")

        assert gateways["calls"] == [("razorpay", "live")]
        assert EscrowRecord.objects.get().mode == "live"

    @override_settings(PAYMENT_DEFAULT_GATEWAY="stripe", PAYMENT_MODE="sandbox", PAYMENT_DEFAULT_CURRENCY="eur")
    def test_settings_defaults(self, db, orchestrator, gateways):
        result = _checkout(orchestrator, gateway=None, mode=None)

        assert gateways["calls"] == [("stripe", "sandbox")]
        assert result.currency == "EUR"

    def test_without_service_id(self, db, orchestrator, gateways):
        result = _checkout(orchestrator, service_id=None)

        assert result.escrow.service_id == ""
        assert gateways["razorpay"].orders[0].notes["service_id"] == ""


class TestCheckoutResponse:
    """Tests for CheckoutResult.as_response."""

    def test_razorpay_body(self, db, orchestrator):
        body = _checkout(orchestrator).as_response()

        assert body == {
            "orderId": "order_BKG-1",
            "status": "created",
            "gateway": "razorpay",
            "amount": 500,
            "currency": "INR",
            "bookingId": "BKG-1",
            "split": {
                "storePct": 60,
                "freelancerPct": 25,
                "platformPct": 15,
                "storeAmount": 300,
                "freelancerAmount": 125,
                "platformAmount": 75,
            },
        }

    def test_stripe_body(self, db, orchestrator):
        body = _checkout(orchestrator, gateway="stripe").as_response()

        assert body["paymentIntentId"] == "pi_BKG-1"
        assert body["clientSecret"] == "pi_secret_abc"
        assert "orderId" not in body


# =============================================================================
# Failures
# =============================================================================


class TestCheckoutFailures:
    """Failures that must not leave an escrow behind."""

    def test_duplicate_booking_rejected_before_gateway(self, db, orchestrator, gateways):
        EscrowRecordFactory(booking_id="BKG-1")

        with pytest.raises(DuplicateBookingError):
            _checkout(orchestrator)

        assert gateways["calls"] == []
        assert EscrowRecord.objects.count() == 1

    def test_invalid_rule_fails_before_gateway(self, db, ledger, gateways):
        calculator = SplitCalculator(default_rule=SplitPercentages(50, 50, 50))
        orchestrator = CheckoutOrchestrator(ledger, calculator, gateway_factory=lambda g, m: gateways[g])

        with pytest.raises(InvalidRuleError):
            _checkout(orchestrator)

        assert gateways["razorpay"].orders == []
        assert not EscrowRecord.objects.exists()

    @pytest.mark.parametrize("amount", [0, -1, 10.5, "500"])
    def test_invalid_amount(self, db, orchestrator, gateways, amount):
        with pytest.raises(PaymentValidationError):
            _checkout(orchestrator, amount=amount)

        assert gateways["calls"] == []

    @pytest.mark.parametrize("field", ["booking_id", "store_id", "freelancer_id"])
    def test_missing_field(self, db, orchestrator, field):
        with pytest.raises(PaymentValidationError, match=field):
            _checkout(orchestrator, **{field: ""})

    def test_unknown_gateway(self, db, orchestrator):
        with pytest.raises(PaymentValidationError, match="Unsupported gateway"):
            _checkout(orchestrator, gateway="paypal")

    def test_unknown_mode(self, db, orchestrator):
        with pytest.raises(PaymentValidationError, match="mode"):
            _checkout(orchestrator, mode="production")

    @pytest.mark.parametrize(
        "error",
        [
            GatewayRequestError("Order amount less than minimum amount allowed", gateway="razorpay"),
            GatewayTimeoutError("Razorpay did not respond within 10s", gateway="razorpay"),
        ],
    )
    def test_gateway_error_creates_nothing(self, db, orchestrator, gateways, error):
        """Should propagate the gateway error and record no escrow."""
        gateways["razorpay"].error = error

        with pytest.raises(type(error)) as exc_info:
            _checkout(orchestrator)

        assert exc_info.value.message == error.message
        assert not EscrowRecord.objects.exists()

    def test_retry_after_gateway_error(self, db, orchestrator, gateways):
        """A failed checkout leaves the booking free to try again."""
        gateways["razorpay"].error = GatewayTimeoutError("timeout", gateway="razorpay")
        with pytest.raises(GatewayTimeoutError):
            _checkout(orchestrator)

        gateways["razorpay"].error = None
        result = _checkout(orchestrator)

        assert result.escrow.booking_id == "BKG-1"
