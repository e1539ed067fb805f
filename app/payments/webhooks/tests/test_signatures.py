"""
Tests for webhook signature verification.
"""

import time

import pytest
from django.test import override_settings

from payments.webhooks.signatures import (
    verify_razorpay_signature,
    verify_signature,
    verify_stripe_signature,
    webhook_secret_for,
)
from payments.webhooks.tests.payloads import (
    RAZORPAY_TEST_SECRET,
    STRIPE_TEST_SECRET,
    encode,
    razorpay_payment_event,
    razorpay_signature,
    stripe_intent_event,
    stripe_signature,
)


class TestRazorpaySignature:
    """Tests for verify_razorpay_signature."""

    def test_valid(self):
        body = encode(razorpay_payment_event())

        assert verify_razorpay_signature(body, razorpay_signature(body), RAZORPAY_TEST_SECRET)

    def test_tampered_body(self):
        """Should reject a signature computed over a different body."""
        body = encode(razorpay_payment_event())
        signature = razorpay_signature(body)

        tampered = encode(razorpay_payment_event(order_id="order_other"))

        assert not verify_razorpay_signature(tampered, signature, RAZORPAY_TEST_SECRET)

    def test_wrong_secret(self):
        body = encode(razorpay_payment_event())

        assert not verify_razorpay_signature(body, razorpay_signature(body, "other"), RAZORPAY_TEST_SECRET)

    def test_surrounding_whitespace_ignored(self):
        body = encode(razorpay_payment_event())

        assert verify_razorpay_signature(body, f" {razorpay_signature(body)}\n", RAZORPAY_TEST_SECRET)

    @pytest.mark.parametrize("signature", [None, ""])
    def test_missing_header(self, signature):
        assert not verify_razorpay_signature(b"{}", signature, RAZORPAY_TEST_SECRET)

    @pytest.mark.parametrize("secret", [None, ""])
    def test_missing_secret_fails_closed(self, secret):
        """Should never accept when no secret is configured."""
        body = b"{}"

        assert not verify_razorpay_signature(body, razorpay_signature(body, ""), secret)


class TestStripeSignature:
    """Tests for verify_stripe_signature."""

    def test_valid(self):
        body = encode(stripe_intent_event())

        assert verify_stripe_signature(body, stripe_signature(body), STRIPE_TEST_SECRET, tolerance=300)

    def test_tampered_body(self):
        body = encode(stripe_intent_event())
        signature = stripe_signature(body)

        tampered = encode(stripe_intent_event(intent_id="pi_other"))

        assert not verify_stripe_signature(tampered, signature, STRIPE_TEST_SECRET, tolerance=300)

    def test_expired_timestamp(self):
        """Should reject signatures older than the tolerance window."""
        body = encode(stripe_intent_event())
        signature = stripe_signature(body, timestamp=int(time.time()) - 3600)

        assert not verify_stripe_signature(body, signature, STRIPE_TEST_SECRET, tolerance=300)

    @override_settings(STRIPE_WEBHOOK_TOLERANCE_SECONDS=60)
    def test_tolerance_from_settings(self):
        body = encode(stripe_intent_event())
        signature = stripe_signature(body, timestamp=int(time.time()) - 120)

        assert not verify_stripe_signature(body, signature, STRIPE_TEST_SECRET)

    def test_malformed_header(self):
        body = encode(stripe_intent_event())

        assert not verify_stripe_signature(body, "not-a-signature", STRIPE_TEST_SECRET, tolerance=300)

    def test_non_utf8_body(self):
        assert not verify_stripe_signature(b"\xff\xfe", stripe_signature(b"x"), STRIPE_TEST_SECRET, tolerance=300)

    def test_missing_secret_fails_closed(self):
        body = encode(stripe_intent_event())

        assert not verify_stripe_signature(body, stripe_signature(body), "", tolerance=300)


class TestVerifySignature:
    """Tests for gateway dispatch."""

    def test_razorpay(self):
        body = encode(razorpay_payment_event())

        assert verify_signature("razorpay", body, razorpay_signature(body), RAZORPAY_TEST_SECRET)

    def test_stripe(self):
        body = encode(stripe_intent_event())

        assert verify_signature("stripe", body, stripe_signature(body), STRIPE_TEST_SECRET)

    def test_cross_gateway_signature_rejected(self):
        """A Razorpay-style signature is not a valid Stripe header."""
        body = encode(stripe_intent_event())

        assert not verify_signature("stripe", body, razorpay_signature(body, STRIPE_TEST_SECRET), STRIPE_TEST_SECRET)

    def test_unknown_gateway(self):
        body = b"{}"

        assert not verify_signature("paypal", body, razorpay_signature(body), RAZORPAY_TEST_SECRET)


class TestWebhookSecretFor:
    """Tests for webhook_secret_for."""

    @override_settings(RAZORPAY_WEBHOOK_SECRET="rzp", STRIPE_WEBHOOK_SECRET="str")
    def test_reads_settings(self):
        assert webhook_secret_for("razorpay") == "rzp"
        assert webhook_secret_for("stripe") == "str"
        assert webhook_secret_for("paypal") == ""
