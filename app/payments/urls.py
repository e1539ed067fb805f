"""
URL configuration for the payments app.

Routes:
    - POST /webhooks/ - Webhook endpoint (gateway detected from headers)
    - POST /webhooks/razorpay/, /webhooks/stripe/ - Gateway-specific aliases
    - POST /checkout/ - Start checkout
    - GET /escrows/<booking_id>/ - Escrow for a booking
    - /split-rules/default/, /split-rules/<service_id>/ - Payment settings
    - GET /earnings/<party>/<party_id>/ - Earnings summary

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.
"""

from django.urls import path

from payments.views import (
    CheckoutView,
    DefaultSplitRuleView,
    EarningsView,
    EscrowDetailView,
    ServiceSplitRuleView,
)
from payments.webhooks.views import payment_webhook, razorpay_webhook, stripe_webhook

app_name = "payments"

urlpatterns = [
    # Webhook endpoints
    path("webhooks/", payment_webhook, name="payment_webhook"),
    path("webhooks/razorpay/", razorpay_webhook, name="razorpay_webhook"),
    path("webhooks/stripe/", stripe_webhook, name="stripe_webhook"),
    # Checkout
    path("checkout/", CheckoutView.as_view(), name="checkout"),
    path("escrows/<str:booking_id>/", EscrowDetailView.as_view(), name="escrow_detail"),
    # Payment settings ("default" must precede the service route)
    path("split-rules/default/", DefaultSplitRuleView.as_view(), name="split_rule_default"),
    path("split-rules/<str:service_id>/", ServiceSplitRuleView.as_view(), name="split_rule_service"),
    path("earnings/<str:party>/<str:party_id>/", EarningsView.as_view(), name="earnings"),
]
