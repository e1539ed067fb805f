"""
Webhook signature verification for Razorpay and Stripe.

Both gateways sign the raw request body with HMAC-SHA256 and a shared
webhook secret:

- Razorpay sends the hex digest of the body in X-Razorpay-Signature.
- Stripe sends "t=<timestamp>,v1=<hex digest of '<t>.<body>'>" in
  Stripe-Signature; the timestamp must be within the tolerance window.

Verification fails closed: a missing secret, missing header or unknown
gateway is treated as an invalid signature.

Usage:
    from payments.webhooks.signatures import verify_signature

    valid = verify_signature("razorpay", request.body,
                             request.headers.get("X-Razorpay-Signature"),
                             settings.RAZORPAY_WEBHOOK_SECRET)
"""

from __future__ import annotations

import hashlib
import hmac
import logging

import stripe
from django.conf import settings

from payments.state_machines import Gateway


logger = logging.getLogger(__name__)


def verify_razorpay_signature(raw_body: bytes, signature_header: str | None, secret: str | None) -> bool:
    """Check a Razorpay webhook signature (hex HMAC-SHA256 of the body)."""
    if not secret or not signature_header:
        return False
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(digest, signature_header.strip())


def verify_stripe_signature(
    raw_body: bytes,
    signature_header: str | None,
    secret: str | None,
    tolerance: int | None = None,
) -> bool:
    """
    Check a Stripe webhook signature.

    Delegates to stripe.WebhookSignature.verify_header, which checks the
    v1 HMAC over "<timestamp>.<body>" and rejects timestamps older than
    tolerance seconds.
    """
    if not secret or not signature_header:
        return False
    if tolerance is None:
        tolerance = settings.STRIPE_WEBHOOK_TOLERANCE_SECONDS
    try:
        stripe.WebhookSignature.verify_header(
            raw_body.decode("utf-8"),
            signature_header,
            secret,
            tolerance=tolerance,
        )
    except stripe.SignatureVerificationError as e:
        logger.debug("Stripe signature rejected: %s", e)
        return False
    except UnicodeDecodeError:
        return False
    return True


def verify_signature(
    gateway: str,
    raw_body: bytes,
    signature_header: str | None,
    secret: str | None,
) -> bool:
    """
    Verify an inbound webhook for the given gateway.

    Args:
        gateway: "razorpay" or "stripe"
        raw_body: Request body exactly as received
        signature_header: Value of the gateway's signature header
        secret: Configured webhook secret for the gateway

    Returns:
        True only if the signature checks out
    """
    if gateway == Gateway.RAZORPAY:
        return verify_razorpay_signature(raw_body, signature_header, secret)
    if gateway == Gateway.STRIPE:
        return verify_stripe_signature(raw_body, signature_header, secret)
    return False


def webhook_secret_for(gateway: str) -> str:
    """Configured webhook secret for a gateway ("" if none)."""
    if gateway == Gateway.RAZORPAY:
        return settings.RAZORPAY_WEBHOOK_SECRET
    if gateway == Gateway.STRIPE:
        return settings.STRIPE_WEBHOOK_SECRET
    return ""
