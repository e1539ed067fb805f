"""
URL configuration for the payments service.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/payments/              - Payment endpoints
        webhooks/                  - Webhook endpoint, gateway from headers (POST)
        webhooks/razorpay/         - Razorpay webhook endpoint (POST)
        webhooks/stripe/           - Stripe webhook endpoint (POST)
        checkout/                  - Start checkout (POST)
        escrows/{booking_id}/      - Escrow for a booking (GET)
        split-rules/default/       - Default split rule (GET, PUT)
        split-rules/{service_id}/  - Service split rule (GET, PUT, DELETE)
        earnings/{party}/{id}/     - Store / freelancer earnings (GET)

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    path("payments/", include("payments.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Marketplace Payments Admin"
admin.site.site_title = "Payments Admin"
admin.site.index_title = "Escrow ledger and payment settings"
