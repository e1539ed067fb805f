"""
DRF views for the payments API.

This module provides API views for:
- Checkout (opening a gateway order for a booking)
- Escrow lookup for the payment success page
- Payment settings: default and per-service split rules
- Store / freelancer earnings

Related files:
    - services/: CheckoutOrchestrator, EscrowLedger, SplitCalculator
    - serializers.py: Request/response serializers
    - webhooks/views.py: Gateway webhook endpoint

Endpoints:
    POST   /api/v1/payments/checkout/                     - Start checkout
    GET    /api/v1/payments/escrows/{booking_id}/         - Escrow for a booking
    GET    /api/v1/payments/split-rules/default/          - Default split rule
    PUT    /api/v1/payments/split-rules/default/          - Replace default rule
    GET    /api/v1/payments/split-rules/{service_id}/     - Effective rule for a service
    PUT    /api/v1/payments/split-rules/{service_id}/     - Set service override
    DELETE /api/v1/payments/split-rules/{service_id}/     - Remove service override
    GET    /api/v1/payments/earnings/{party}/{party_id}/  - Earnings summary

Security:
    - Checkout and escrow lookup are public (called from the booking flow)
    - Split rules and earnings require the X-Admin-Key header
"""

from __future__ import annotations

import logging

from django.apps import apps
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import ConflictError

from payments.exceptions import (
    GatewayError,
    PaymentNotFoundError,
    PaymentValidationError,
)
from payments.permissions import HasAdminKey
from payments.serializers import (
    CheckoutRequestSerializer,
    CheckoutResponseSerializer,
    EarningsSummarySerializer,
    EscrowRecordSerializer,
    SplitRuleResponseSerializer,
    SplitRuleSerializer,
)
from payments.services import SplitPercentages

logger = logging.getLogger(__name__)


def payments_app():
    """The payments AppConfig, which holds the service instances."""
    return apps.get_app_config("payments")


def _rule_response(rule: SplitPercentages, service_id: str | None, is_override: bool) -> dict:
    return SplitRuleResponseSerializer(
        {**rule.as_dict(), "service_id": service_id, "is_override": is_override}
    ).data


# =============================================================================
# Checkout
# =============================================================================


class CheckoutView(APIView):
    """
    Open a gateway order for a booking.

    POST /api/v1/payments/checkout/

    Payload:
        amount, currency, bookingId, storeId, freelancerId, serviceId,
        gateway, mode

    Returns:
        201 with orderId (Razorpay) or paymentIntentId + clientSecret (Stripe)
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="create_checkout",
        summary="Start checkout",
        description=(
            "Computes the booking's split, opens a Razorpay order or Stripe payment "
            "intent and records the escrow. Nothing is recorded if the gateway fails."
        ),
        request=CheckoutRequestSerializer,
        responses={
            201: OpenApiResponse(response=CheckoutResponseSerializer, description="Checkout started"),
            400: OpenApiResponse(description="Invalid request or split rule"),
            409: OpenApiResponse(description="Booking already has an escrow"),
            502: OpenApiResponse(description="Gateway error"),
        },
        tags=["Payments - Checkout"],
    )
    def post(self, request):
        serializer = CheckoutRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = payments_app().checkout.initiate_checkout(**serializer.validated_data)
        except PaymentValidationError as e:
            return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)
        except ConflictError as e:
            return Response(e.to_dict(), status=status.HTTP_409_CONFLICT)
        except GatewayError as e:
            logger.warning(
                "Checkout failed at gateway",
                extra={
                    "booking_id": serializer.validated_data["booking_id"],
                    "error_code": e.error_code,
                    "is_retryable": e.is_retryable,
                },
            )
            return Response(e.to_dict(), status=status.HTTP_502_BAD_GATEWAY)

        return Response(result.as_response(), status=status.HTTP_201_CREATED)


# =============================================================================
# Escrow
# =============================================================================


class EscrowDetailView(APIView):
    """
    Escrow record for a booking.

    GET /api/v1/payments/escrows/{booking_id}/
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="get_escrow",
        summary="Get escrow for a booking",
        responses={
            200: OpenApiResponse(response=EscrowRecordSerializer, description="Escrow record"),
            404: OpenApiResponse(description="No escrow for this booking"),
        },
        tags=["Payments - Escrow"],
    )
    def get(self, request, booking_id: str):
        record = payments_app().ledger.find_by_booking_id(booking_id)
        if record is None:
            error = PaymentNotFoundError(
                f"No escrow for booking {booking_id}",
                details={"booking_id": booking_id},
            )
            return Response(error.to_dict(), status=status.HTTP_404_NOT_FOUND)
        return Response(EscrowRecordSerializer(record).data)


# =============================================================================
# Split Rules
# =============================================================================


class DefaultSplitRuleView(APIView):
    """
    Default split rule, applied to services without an override.

    GET /api/v1/payments/split-rules/default/
    PUT /api/v1/payments/split-rules/default/
    """

    authentication_classes = []
    permission_classes = [HasAdminKey]

    @extend_schema(
        operation_id="get_default_split_rule",
        summary="Get default split rule",
        responses={200: SplitRuleResponseSerializer},
        tags=["Payments - Settings"],
    )
    def get(self, request):
        rule, _ = payments_app().split_calculator.get_rule(None)
        return Response(_rule_response(rule, None, False))

    @extend_schema(
        operation_id="set_default_split_rule",
        summary="Replace default split rule",
        request=SplitRuleSerializer,
        responses={
            200: SplitRuleResponseSerializer,
            400: OpenApiResponse(description="Percentages do not sum to 100"),
        },
        tags=["Payments - Settings"],
    )
    def put(self, request):
        serializer = SplitRuleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        rule = SplitPercentages(**serializer.validated_data)

        try:
            payments_app().split_calculator.set_default_rule(rule)
        except PaymentValidationError as e:
            return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)

        return Response(_rule_response(rule, None, False))


class ServiceSplitRuleView(APIView):
    """
    Per-service split rule override.

    GET    /api/v1/payments/split-rules/{service_id}/  - effective rule
    PUT    /api/v1/payments/split-rules/{service_id}/  - set override
    DELETE /api/v1/payments/split-rules/{service_id}/  - remove override
    """

    authentication_classes = []
    permission_classes = [HasAdminKey]

    @extend_schema(
        operation_id="get_service_split_rule",
        summary="Get effective split rule for a service",
        description="Returns the override if one exists, otherwise the default rule.",
        responses={200: SplitRuleResponseSerializer},
        tags=["Payments - Settings"],
    )
    def get(self, request, service_id: str):
        rule, is_override = payments_app().split_calculator.get_rule(service_id)
        return Response(_rule_response(rule, service_id, is_override))

    @extend_schema(
        operation_id="set_service_split_rule",
        summary="Set split rule override for a service",
        request=SplitRuleSerializer,
        responses={
            200: SplitRuleResponseSerializer,
            400: OpenApiResponse(description="Percentages do not sum to 100"),
        },
        tags=["Payments - Settings"],
    )
    def put(self, request, service_id: str):
        serializer = SplitRuleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        rule = SplitPercentages(**serializer.validated_data)

        try:
            payments_app().split_calculator.set_service_rule(service_id, rule)
        except PaymentValidationError as e:
            return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)

        return Response(_rule_response(rule, service_id, True))

    @extend_schema(
        operation_id="delete_service_split_rule",
        summary="Remove split rule override for a service",
        responses={
            204: OpenApiResponse(description="Override removed"),
            404: OpenApiResponse(description="No override for this service"),
        },
        tags=["Payments - Settings"],
    )
    def delete(self, request, service_id: str):
        if not payments_app().split_calculator.clear_service_rule(service_id):
            error = PaymentNotFoundError(
                f"No split rule override for service {service_id}",
                details={"service_id": service_id},
            )
            return Response(error.to_dict(), status=status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Earnings
# =============================================================================


class EarningsView(APIView):
    """
    Earnings of a store or freelancer.

    GET /api/v1/payments/earnings/{party}/{party_id}/?currency=INR
    """

    authentication_classes = []
    permission_classes = [HasAdminKey]

    @extend_schema(
        operation_id="get_earnings",
        summary="Get earnings summary",
        parameters=[
            OpenApiParameter(
                name="currency",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                description="ISO 4217 code (default PAYMENT_DEFAULT_CURRENCY)",
                required=False,
            ),
        ],
        responses={
            200: EarningsSummarySerializer,
            400: OpenApiResponse(description="Unknown party"),
        },
        tags=["Payments - Settings"],
    )
    def get(self, request, party: str, party_id: str):
        try:
            summary = payments_app().ledger.earnings_summary(
                party,
                party_id,
                currency=request.query_params.get("currency"),
            )
        except PaymentValidationError as e:
            return Response(e.to_dict(), status=status.HTTP_400_BAD_REQUEST)
        return Response(EarningsSummarySerializer(summary.as_dict()).data)
