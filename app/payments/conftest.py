"""
Pytest fixtures shared by all payment tests.

Fixtures provide escrows in each status (reached through the real
transitions, never by assigning status) and the service objects wired
the same way PaymentsConfig.ready() wires them.

Usage:
    def test_refund(ledger, captured_escrow):
        outcome = ledger.transition(captured_escrow, EscrowStatus.REFUNDED)
        assert outcome.applied
"""

import pytest
from django.test import override_settings

from payments.services import EscrowLedger, SplitCalculator
from payments.tests.factories import EscrowRecordFactory
from payments.webhooks import WebhookReconciler
from payments.webhooks.tests.payloads import RAZORPAY_TEST_SECRET, STRIPE_TEST_SECRET


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture
def payment_settings():
    """Known webhook secrets and admin key for the duration of a test."""
    with override_settings(
        RAZORPAY_WEBHOOK_SECRET=RAZORPAY_TEST_SECRET,
        STRIPE_WEBHOOK_SECRET=STRIPE_TEST_SECRET,
        PAYMENT_ADMIN_API_KEY="admin-key-123",
        RAZORPAY_KEY_ID="rzp_test_key",
        RAZORPAY_KEY_SECRET="rzp_test_secret",
        STRIPE_SECRET_KEY="sk_test_123",
    ):
        yield


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def split_calculator():
    return SplitCalculator()


@pytest.fixture
def ledger(split_calculator):
    return EscrowLedger(split_calculator)


@pytest.fixture
def reconciler(ledger):
    return WebhookReconciler(ledger)


# =============================================================================
# Escrow State Fixtures
# =============================================================================


@pytest.fixture
def created_escrow(db):
    """Create an escrow in CREATED status."""
    return EscrowRecordFactory()


@pytest.fixture
def captured_escrow(db):
    """Create an escrow in CAPTURED status with a Razorpay payment id."""
    record = EscrowRecordFactory()
    record.capture(payment_id="pay_test000001")
    record.save()
    return record


@pytest.fixture
def refunded_escrow(db):
    """Create an escrow in REFUNDED status."""
    record = EscrowRecordFactory()
    record.capture(payment_id="pay_test000002")
    record.save()
    record.refund()
    record.save()
    return record


@pytest.fixture
def failed_escrow(db):
    """Create an escrow in FAILED status."""
    record = EscrowRecordFactory()
    record.fail(reason="Card declined")
    record.save()
    return record
