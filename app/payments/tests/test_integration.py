"""
End-to-end payment flows through the HTTP API.

Each test starts checkout over the REST endpoint, then delivers signed
gateway webhooks to the webhook endpoint and checks the escrow the
success page would show.
"""

import pytest
from django.apps import apps
from rest_framework.test import APIClient

from payments.models import EscrowRecord, WebhookLog
from payments.state_machines import EscrowStatus
from payments.tests.fakes import FakeGateway
from payments.webhooks.tests.payloads import (
    encode,
    razorpay_payment_event,
    razorpay_refund_event,
    razorpay_signature,
    stripe_intent_event,
    stripe_refund_event,
    stripe_signature,
)


CHECKOUT_URL = "/api/v1/payments/checkout/"
WEBHOOK_URL = "/api/v1/payments/webhooks/"


@pytest.fixture
def api(payment_settings, mocker):
    clients = {"razorpay": FakeGateway("razorpay"), "stripe": FakeGateway("stripe", client_secret="secret")}
    mocker.patch.object(
        apps.get_app_config("payments").checkout,
        "gateway_factory",
        lambda gateway, mode: clients[gateway],
    )
    return APIClient()


def post_razorpay(client, payload):
    body = encode(payload)
    return client.generic(
        "POST",
        WEBHOOK_URL,
        body,
        content_type="application/json",
        HTTP_X_RAZORPAY_SIGNATURE=razorpay_signature(body),
    )


def post_stripe(client, payload):
    body = encode(payload)
    return client.generic(
        "POST",
        WEBHOOK_URL,
        body,
        content_type="application/json",
        HTTP_STRIPE_SIGNATURE=stripe_signature(body),
    )


def escrow_status(client, booking_id):
    return client.get(f"/api/v1/payments/escrows/{booking_id}/").data["status"]


@pytest.mark.django_db
class TestRazorpayFlow:
    """Booking paid through Razorpay."""

    def test_checkout_capture_refund(self, api):
        """BKG-1 for 500: checkout, captured webhook, then refund by payment id."""
        checkout = api.post(
            CHECKOUT_URL,
            {"amount": 500, "bookingId": "BKG-1", "storeId": "store-7", "freelancerId": "fl-3", "gateway": "razorpay"},
            format="json",
        )
        order_id = checkout.data["orderId"]
        assert escrow_status(api, "BKG-1") == EscrowStatus.CREATED

        captured = post_razorpay(api, razorpay_payment_event(order_id=order_id, payment_id="pay_BKG1"))

        assert captured.status_code == 200
        detail = api.get("/api/v1/payments/escrows/BKG-1/").data
        assert detail["status"] == EscrowStatus.CAPTURED
        assert detail["gatewayPaymentId"] == "pay_BKG1"
        assert detail["split"]["storeAmount"] == 300
        assert detail["platformShare"] == 75

        refunded = post_razorpay(api, razorpay_refund_event(payment_id="pay_BKG1"))

        assert refunded.status_code == 200
        assert escrow_status(api, "BKG-1") == EscrowStatus.REFUNDED
        assert WebhookLog.objects.filter(signature_valid=True).count() == 2

    def test_replayed_capture(self, api):
        """A redelivered capture is acknowledged and changes nothing."""
        checkout = api.post(
            CHECKOUT_URL,
            {"amount": 500, "bookingId": "BKG-2", "storeId": "store-7", "freelancerId": "fl-3", "gateway": "razorpay"},
            format="json",
        )
        event = razorpay_payment_event(order_id=checkout.data["orderId"])

        post_razorpay(api, event)
        version = EscrowRecord.objects.get(booking_id="BKG-2").version
        replay = post_razorpay(api, event)

        assert replay.status_code == 200
        assert EscrowRecord.objects.get(booking_id="BKG-2").version == version
        assert WebhookLog.objects.count() == 2

    def test_failed_payment_then_late_capture(self, api):
        checkout = api.post(
            CHECKOUT_URL,
            {"amount": 500, "bookingId": "BKG-3", "storeId": "store-7", "freelancerId": "fl-3", "gateway": "razorpay"},
            format="json",
        )
        order_id = checkout.data["orderId"]

        post_razorpay(api, razorpay_payment_event(event="payment.failed", order_id=order_id))
        late = post_razorpay(api, razorpay_payment_event(order_id=order_id))

        assert late.status_code == 200
        assert escrow_status(api, "BKG-3") == EscrowStatus.FAILED

    def test_forged_capture(self, api):
        """An unsigned capture is rejected and logged."""
        checkout = api.post(
            CHECKOUT_URL,
            {"amount": 500, "bookingId": "BKG-4", "storeId": "store-7", "freelancerId": "fl-3", "gateway": "razorpay"},
            format="json",
        )

        response = api.generic(
            "POST",
            WEBHOOK_URL,
            encode(razorpay_payment_event(order_id=checkout.data["orderId"])),
            content_type="application/json",
            HTTP_X_RAZORPAY_SIGNATURE="f" * 64,
        )

        assert response.status_code == 400
        assert escrow_status(api, "BKG-4") == EscrowStatus.CREATED
        assert WebhookLog.objects.get().signature_valid is False


@pytest.mark.django_db
class TestStripeFlow:
    """Booking paid through Stripe."""

    def test_checkout_capture_refund(self, api):
        checkout = api.post(
            CHECKOUT_URL,
            {
                "amount": 2500,
                "currency": "usd",
                "bookingId": "BKG-10",
                "storeId": "store-7",
                "freelancerId": "fl-3",
                "gateway": "stripe",
            },
            format="json",
        )
        intent_id = checkout.data["paymentIntentId"]
        assert checkout.data["clientSecret"] == "secret"

        post_stripe(api, stripe_intent_event(intent_id=intent_id))
        assert escrow_status(api, "BKG-10") == EscrowStatus.CAPTURED

        post_stripe(api, stripe_refund_event(intent_id=intent_id))
        assert escrow_status(api, "BKG-10") == EscrowStatus.REFUNDED

    def test_refund_before_capture_ignored(self, api):
        checkout = api.post(
            CHECKOUT_URL,
            {"amount": 2500, "bookingId": "BKG-11", "storeId": "store-7", "freelancerId": "fl-3", "gateway": "stripe"},
            format="json",
        )

        response = post_stripe(api, stripe_refund_event(intent_id=checkout.data["paymentIntentId"]))

        assert response.status_code == 200
        assert escrow_status(api, "BKG-11") == EscrowStatus.CREATED
