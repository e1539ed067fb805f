"""
DRF serializers for the payments API.

The checkout page and payment settings screen speak camelCase JSON, so
fields are declared in camelCase and mapped onto the snake_case service
arguments with source=.

Related files:
    - views.py: Payment API views
    - services/: CheckoutOrchestrator, EscrowLedger, SplitCalculator

Usage:
    serializer = CheckoutRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    result = checkout.initiate_checkout(**serializer.validated_data)
"""

from __future__ import annotations

from rest_framework import serializers

from payments.state_machines import Gateway, GatewayMode


# =============================================================================
# Checkout
# =============================================================================


class CheckoutRequestSerializer(serializers.Serializer):
    """
    Checkout request from the booking page.

    Fields:
        amount: Amount in smallest currency unit (paise / cents)
        currency: ISO 4217 code (default PAYMENT_DEFAULT_CURRENCY)
        bookingId: Marketplace booking id
        storeId: Store receiving the store share
        freelancerId: Freelancer receiving the freelancer share
        serviceId: Service booked; selects the split rule
        gateway: "razorpay" or "stripe" (default PAYMENT_DEFAULT_GATEWAY)
        mode: "sandbox" or "live" (default PAYMENT_MODE)
    """

    amount = serializers.IntegerField(min_value=1)
    currency = serializers.CharField(max_length=3, min_length=3, required=False)
    bookingId = serializers.CharField(source="booking_id", max_length=64)
    storeId = serializers.CharField(source="store_id", max_length=64)
    freelancerId = serializers.CharField(source="freelancer_id", max_length=64)
    serviceId = serializers.CharField(
        source="service_id",
        max_length=64,
        required=False,
        allow_blank=True,
        allow_null=True,
    )
    gateway = serializers.ChoiceField(choices=Gateway.choices, required=False)
    mode = serializers.ChoiceField(choices=GatewayMode.choices, required=False)


class SplitSerializer(serializers.Serializer):
    storePct = serializers.IntegerField(source="store_pct")
    freelancerPct = serializers.IntegerField(source="freelancer_pct")
    platformPct = serializers.IntegerField(source="platform_pct")
    storeAmount = serializers.IntegerField(source="store_amount")
    freelancerAmount = serializers.IntegerField(source="freelancer_amount")
    platformAmount = serializers.IntegerField(source="platform_amount")


class CheckoutResponseSerializer(serializers.Serializer):
    """Documents CheckoutResult.as_response(); orderId is paymentIntentId for Stripe."""

    orderId = serializers.CharField(required=False)
    paymentIntentId = serializers.CharField(required=False)
    status = serializers.CharField()
    gateway = serializers.CharField()
    amount = serializers.IntegerField()
    currency = serializers.CharField()
    bookingId = serializers.CharField()
    split = SplitSerializer()
    clientSecret = serializers.CharField(required=False)


# =============================================================================
# Escrow
# =============================================================================


class EscrowRecordSerializer(serializers.Serializer):
    """
    Escrow record for the payment success page.

    platformShare is always amount minus the store and freelancer
    shares, whatever rounding the split applied.
    """

    bookingId = serializers.CharField(source="booking_id", read_only=True)
    storeId = serializers.CharField(source="store_id", read_only=True)
    freelancerId = serializers.CharField(source="freelancer_id", read_only=True)
    serviceId = serializers.CharField(source="service_id", read_only=True)
    gateway = serializers.CharField(read_only=True)
    mode = serializers.CharField(read_only=True)
    gatewayRef = serializers.CharField(source="gateway_ref", read_only=True)
    gatewayPaymentId = serializers.CharField(source="gateway_payment_id", read_only=True, allow_null=True)
    amount = serializers.IntegerField(read_only=True)
    currency = serializers.CharField(read_only=True)
    status = serializers.CharField(read_only=True)
    split = serializers.SerializerMethodField()
    platformShare = serializers.SerializerMethodField()
    capturedAt = serializers.DateTimeField(source="captured_at", read_only=True, allow_null=True)
    refundedAt = serializers.DateTimeField(source="refunded_at", read_only=True, allow_null=True)
    failedAt = serializers.DateTimeField(source="failed_at", read_only=True, allow_null=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    def get_split(self, obj) -> dict:
        return SplitSerializer(obj).data

    def get_platformShare(self, obj) -> int:
        return obj.amount - obj.store_amount - obj.freelancer_amount


# =============================================================================
# Split Rules
# =============================================================================


class SplitRuleSerializer(serializers.Serializer):
    """
    A split rule as edited on the payment settings screen.

    Range checks only; the sum-to-100 rule is enforced by SplitCalculator
    so the API and the checkout path reject the same rules.
    """

    storePct = serializers.IntegerField(source="store_pct", min_value=0, max_value=100)
    freelancerPct = serializers.IntegerField(source="freelancer_pct", min_value=0, max_value=100)
    platformPct = serializers.IntegerField(source="platform_pct", min_value=0, max_value=100)


class SplitRuleResponseSerializer(SplitRuleSerializer):
    serviceId = serializers.CharField(source="service_id", allow_null=True, read_only=True)
    isOverride = serializers.BooleanField(source="is_override", read_only=True)


# =============================================================================
# Earnings
# =============================================================================


class EarningsSummarySerializer(serializers.Serializer):
    party = serializers.CharField()
    partyId = serializers.CharField(source="party_id")
    currency = serializers.CharField()
    bookingCount = serializers.IntegerField(source="booking_count")
    pendingAmount = serializers.IntegerField(source="pending_amount")
    capturedAmount = serializers.IntegerField(source="captured_amount")
    refundedAmount = serializers.IntegerField(source="refunded_amount")
