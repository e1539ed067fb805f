"""
Webhook endpoint views for Razorpay and Stripe.

One endpoint receives both gateways; the gateway is told apart by its
signature header (X-Razorpay-Signature or Stripe-Signature). The
gateway-specific aliases skip detection and treat a missing header as
an invalid signature.

Responses are plain text, as gateways expect:
- 200 "ok": authenticated event, whether or not it matched an escrow
- 400: invalid signature or unrecognised gateway
- 405: anything but POST
- 500: unexpected failure while parsing or reconciling

Usage:
    # In urls.py
    from payments.webhooks.views import payment_webhook

    urlpatterns = [
        path("webhooks/", payment_webhook, name="payment_webhook"),
    ]
"""

from __future__ import annotations

import logging

from django.apps import apps
from django.http import HttpRequest, HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from payments.state_machines import Gateway


logger = logging.getLogger(__name__)


SIGNATURE_HEADERS: dict[str, str] = {
    Gateway.RAZORPAY: "X-Razorpay-Signature",
    Gateway.STRIPE: "Stripe-Signature",
}


def detect_gateway(request: HttpRequest) -> str | None:
    """Gateway whose signature header is present on the request."""
    for gateway, header in SIGNATURE_HEADERS.items():
        if header in request.headers:
            return gateway
    return None


def _receive(request: HttpRequest, gateway: str) -> HttpResponse:
    reconciler = apps.get_app_config("payments").reconciler
    signature = request.headers.get(SIGNATURE_HEADERS[gateway])

    try:
        result = reconciler.receive_webhook(
            gateway,
            request.body,
            signature,
            event_id=request.headers.get("X-Razorpay-Event-Id"),
        )
    except Exception as e:
        logger.error(
            f"Webhook processing failed: {type(e).__name__}",
            extra={"gateway": gateway},
            exc_info=True,
        )
        return HttpResponse(str(e), status=500, content_type="text/plain")

    if not result:
        return HttpResponse("invalid signature", status=400, content_type="text/plain")

    return HttpResponse("ok", status=200, content_type="text/plain")


@csrf_exempt
@require_POST
def payment_webhook(request: HttpRequest) -> HttpResponse:
    """
    Receive a webhook from either gateway.

    Example headers:
        X-Razorpay-Signature: 5d41402abc4b2a76b9719d911017c592...
        Stripe-Signature: t=1614556800,v1=xxx,v0=yyy
    """
    gateway = detect_gateway(request)
    if gateway is None:
        logger.warning("Webhook received without a known signature header")
        return HttpResponse("unknown webhook", status=400, content_type="text/plain")
    return _receive(request, gateway)


@csrf_exempt
@require_POST
def razorpay_webhook(request: HttpRequest) -> HttpResponse:
    return _receive(request, Gateway.RAZORPAY)


@csrf_exempt
@require_POST
def stripe_webhook(request: HttpRequest) -> HttpResponse:
    return _receive(request, Gateway.STRIPE)
