"""
Razorpay Orders API adapter.

Opens Razorpay orders over the REST API with HTTP basic auth (key id /
key secret). Every call carries a timeout; failures are translated to
GatewayError subclasses with Razorpay's own error description so the
checkout page can show it.

Configuration (via settings, see payments.adapters.base):
- RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET (sandbox)
- RAZORPAY_LIVE_KEY_ID / RAZORPAY_LIVE_KEY_SECRET (live)
- RAZORPAY_API_BASE_URL (default: https://api.razorpay.com/v1)
- RAZORPAY_API_TIMEOUT_SECONDS (default: 10)
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

import requests

from payments.adapters.base import CreateOrderParams, GatewayOrderResult
from payments.exceptions import (
    GatewayRequestError,
    GatewayTimeoutError,
    GatewayUnavailableError,
)
from payments.state_machines import Gateway

if TYPE_CHECKING:
    from typing import Any


class RazorpayAdapter:
    """
    Client for the Razorpay Orders API.

    Args:
        key_id: Razorpay key id (rzp_test_xxx / rzp_live_xxx)
        key_secret: Matching key secret
        base_url: API root, without trailing slash
        timeout: Seconds to wait for Razorpay before giving up
    """

    gateway = Gateway.RAZORPAY

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        timeout: float = 10,
    ):
        self.key_id = key_id
        self.key_secret = key_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    def create_order(self, params: CreateOrderParams) -> GatewayOrderResult:
        """
        Create a Razorpay order.

        Args:
            params: Amount, currency and receipt (booking id)

        Returns:
            GatewayOrderResult whose order_id is the Razorpay order id

        Raises:
            GatewayTimeoutError: No answer within the timeout
            GatewayUnavailableError: Connection failure or 5xx
            GatewayRequestError: Razorpay rejected the request (4xx)
        """
        logger = self.get_logger()
        log_context = {
            "operation": "create_order",
            "gateway": self.gateway,
            "amount": params.amount,
            "currency": params.currency,
            "receipt": params.receipt,
        }

        start_time = time.time()
        logger.info("Starting Razorpay operation", extra=log_context)

        try:
            response = requests.post(
                f"{self.base_url}/orders",
                auth=(self.key_id, self.key_secret),
                json={
                    "amount": params.amount,
                    "currency": params.currency.upper(),
                    "receipt": params.receipt,
                    "notes": params.notes,
                },
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            self._log_failure("Razorpay request timed out", log_context, start_time)
            raise GatewayTimeoutError(
                f"Razorpay did not respond within {self.timeout}s",
                gateway=self.gateway,
            ) from e
        except requests.RequestException as e:
            self._log_failure("Connection error to Razorpay", log_context, start_time)
            raise GatewayUnavailableError(
                "Could not connect to Razorpay. Please retry.",
                gateway=self.gateway,
                details={"error": str(e)},
            ) from e

        body = self._json(response)
        duration_ms = (time.time() - start_time) * 1000

        if response.status_code >= 500:
            logger.error(
                "Razorpay server error",
                extra={**log_context, "status_code": response.status_code, "duration_ms": duration_ms},
            )
            raise GatewayUnavailableError(
                "Razorpay service error. Please retry.",
                gateway=self.gateway,
                details={"status_code": response.status_code},
            )

        if response.status_code >= 400:
            error = body.get("error") or {}
            message = error.get("description") or f"Razorpay rejected the order (HTTP {response.status_code})"
            logger.warning(
                "Razorpay rejected request",
                extra={
                    **log_context,
                    "status_code": response.status_code,
                    "gateway_code": error.get("code"),
                    "duration_ms": duration_ms,
                },
            )
            raise GatewayRequestError(
                message,
                gateway=self.gateway,
                gateway_code=error.get("code"),
                details={"status_code": response.status_code},
            )

        order_id = body.get("id")
        if not order_id:
            logger.error("Razorpay response missing order id", extra=log_context)
            raise GatewayUnavailableError(
                "Razorpay returned an order without an id",
                gateway=self.gateway,
            )

        logger.info(
            "Razorpay operation completed",
            extra={**log_context, "order_id": order_id, "duration_ms": duration_ms},
        )
        return GatewayOrderResult(
            gateway=self.gateway,
            order_id=order_id,
            status=body.get("status", "created"),
            amount=body.get("amount", params.amount),
            currency=body.get("currency", params.currency.upper()),
            raw_response=body,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _json(response: requests.Response) -> dict[str, Any]:
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    def _log_failure(self, message: str, log_context: dict[str, Any], start_time: float) -> None:
        duration_ms = (time.time() - start_time) * 1000
        self.get_logger().error(
            message,
            extra={**log_context, "duration_ms": duration_ms},
            exc_info=True,
        )
