"""
Stripe API adapter for checkout payment intents.

All Stripe calls made by checkout go through this adapter so they share
timeouts, error translation and timing logs.

Features:
- Configurable timeout on every API call
- Automatic error translation to GatewayError subclasses
- Structured logging with timing metrics
- Idempotency key support

Configuration (via settings, see payments.adapters.base):
- STRIPE_SECRET_KEY / STRIPE_LIVE_SECRET_KEY: API secret keys
- STRIPE_API_TIMEOUT_SECONDS: API call timeout (default: 10)
- STRIPE_MAX_RETRIES: Network retries done by the SDK (default: 0)

Usage:
    adapter = StripeAdapter(api_key="sk_test_...", timeout=10)
    result = adapter.create_order(
        CreateOrderParams(amount=50000, currency="INR", receipt="BKG-1")
    )
    result.order_id       # "pi_..."
    result.client_secret  # handed to Stripe.js
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

import requests
import stripe

from payments.adapters.base import CreateOrderParams, GatewayOrderResult
from payments.exceptions import (
    GatewayRequestError,
    GatewayTimeoutError,
    GatewayUnavailableError,
)
from payments.state_machines import Gateway

if TYPE_CHECKING:
    from typing import Any


class StripeAdapter:
    """
    Adapter for Stripe PaymentIntent creation.

    The API key is passed per request rather than set globally, so
    sandbox and live adapters can coexist in one process.

    Args:
        api_key: Stripe secret key for the selected mode
        timeout: Seconds to wait for Stripe before giving up
        max_retries: Network retries performed by the Stripe SDK
    """

    gateway = Gateway.STRIPE

    def __init__(self, api_key: str, timeout: float = 10, max_retries: int = 0):
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries

    # =========================================================================
    # Configuration
    # =========================================================================

    def _configure_stripe(self) -> None:
        """Configure the Stripe HTTP client timeout and retries."""
        stripe.default_http_client = stripe.RequestsClient(timeout=self.timeout)
        stripe.max_network_retries = self.max_retries

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Core Operations
    # =========================================================================

    def create_order(self, params: CreateOrderParams) -> GatewayOrderResult:
        """
        Create a Stripe PaymentIntent for a booking.

        Args:
            params: Amount, currency and receipt (booking id)

        Returns:
            GatewayOrderResult whose order_id is the PaymentIntent id

        Raises:
            GatewayRequestError: Invalid parameters, card or auth errors
            GatewayUnavailableError: Stripe unavailable or rate limited
            GatewayTimeoutError: Request timed out
        """
        self._configure_stripe()
        logger = self.get_logger()

        log_context = {
            "operation": "create_payment_intent",
            "gateway": self.gateway,
            "amount": params.amount,
            "currency": params.currency,
            "receipt": params.receipt,
            "idempotency_key": params.idempotency_key,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.api_key,
                amount=params.amount,
                currency=params.currency.lower(),
                metadata={"booking_id": params.receipt, **params.notes},
                automatic_payment_methods={"enabled": True},
                idempotency_key=params.idempotency_key,
            )
        except stripe.StripeError as e:
            duration_ms = (time.time() - start_time) * 1000
            self._handle_stripe_error(e, log_context, duration_ms)
            raise  # Never reached, but satisfies type checker

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Stripe operation completed",
            extra={
                **log_context,
                "payment_intent_id": intent.id,
                "status": intent.status,
                "duration_ms": duration_ms,
            },
        )

        return GatewayOrderResult(
            gateway=self.gateway,
            order_id=intent.id,
            status=intent.status,
            amount=intent.amount,
            currency=intent.currency.upper(),
            client_secret=intent.client_secret,
            raw_response=intent.to_dict(),
        )

    # =========================================================================
    # Error Handling
    # =========================================================================

    def _handle_stripe_error(
        self,
        error: stripe.StripeError,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate Stripe exceptions to gateway exceptions.

        Raises:
            GatewayRequestError: Card, request or authentication errors
            GatewayUnavailableError: Rate limiting, connection or API errors
            GatewayTimeoutError: The HTTP request timed out
        """
        logger = self.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}
        message = error.user_message or str(error)

        if isinstance(error, (stripe.CardError, stripe.InvalidRequestError)):
            logger.warning(
                "Stripe rejected request",
                extra={**log_context, "stripe_code": error.code},
            )
            raise GatewayRequestError(message, gateway=self.gateway, gateway_code=error.code) from error

        if isinstance(error, stripe.AuthenticationError):
            logger.critical(
                "Stripe authentication failed - check API key",
                extra=log_context,
            )
            raise GatewayRequestError(
                "Stripe authentication failed",
                gateway=self.gateway,
                gateway_code="authentication_error",
            ) from error

        if isinstance(error, stripe.RateLimitError):
            logger.warning("Rate limited by Stripe", extra=log_context)
            raise GatewayUnavailableError(
                "Stripe rate limit exceeded. Please retry.",
                gateway=self.gateway,
                gateway_code="rate_limit",
            ) from error

        if isinstance(error, stripe.APIConnectionError):
            if _caused_by_timeout(error):
                logger.error("Stripe request timed out", extra=log_context)
                raise GatewayTimeoutError(
                    f"Stripe did not respond within {self.timeout}s",
                    gateway=self.gateway,
                ) from error
            logger.error("Connection error to Stripe", extra=log_context, exc_info=True)
            raise GatewayUnavailableError(
                "Could not connect to Stripe. Please retry.",
                gateway=self.gateway,
                gateway_code="api_connection_error",
            ) from error

        logger.error(
            f"Stripe API error: {type(error).__name__}",
            extra=log_context,
            exc_info=True,
        )
        raise GatewayUnavailableError(
            "Stripe service error. Please retry.",
            gateway=self.gateway,
            gateway_code=getattr(error, "code", None) or "api_error",
        ) from error


def _caused_by_timeout(error: BaseException) -> bool:
    """True if a requests timeout sits anywhere in the exception chain."""
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        if isinstance(current, requests.Timeout):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False
