"""
Webhook handling for payment events from Razorpay and Stripe.

Webhooks are verified, logged to WebhookLog and reconciled against the
escrow ledger synchronously, inside the request.

Usage:
    # In urls.py
    from payments.webhooks.views import payment_webhook

    urlpatterns = [
        path("webhooks/", payment_webhook, name="payment_webhook"),
    ]
"""

from payments.webhooks.handlers import ReconcileResult, WebhookReconciler, register_handler

__all__ = [
    "ReconcileResult",
    "WebhookReconciler",
    "register_handler",
]
