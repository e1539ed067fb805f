"""
Payment-specific exceptions for escrow, split and gateway operations.

Exception Hierarchy:
    PaymentError (base for payment domain)
    ├── PaymentNotFoundError - Escrow lookup failures
    ├── PaymentValidationError - Payment input validation failures
    │   └── InvalidRuleError - Split percentages do not sum to 100
    ├── SignatureInvalidError - Webhook signature rejected
    └── PaymentProcessingError - Payment processing failures
        └── GatewayError - Base for all gateway (Razorpay/Stripe) errors
            ├── GatewayRequestError - Rejected by the gateway (permanent)
            ├── GatewayUnavailableError - Network / 5xx (transient, retry)
            └── GatewayTimeoutError - Request timed out (transient, retry)

    DuplicateBookingError - Escrow already exists (inherits ConflictError)
    InvalidTransitionError - Escrow status change not allowed (inherits ConflictError)

Usage:
    from payments.exceptions import GatewayError, InvalidTransitionError

    try:
        ledger.transition(record, EscrowStatus.REFUNDED)
    except InvalidTransitionError as e:
        logger.warning("Ignoring stale webhook", extra=e.details)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, ConflictError

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """Base exception for all payment operations."""

    default_error_code: str = "PAYMENT_ERROR"


class PaymentNotFoundError(PaymentError):
    """
    Raised when an escrow record cannot be found.

    Example:
        record = ledger.find_by_booking_id(booking_id)
        if record is None:
            raise PaymentNotFoundError(
                f"No escrow for booking {booking_id}",
                details={"booking_id": booking_id},
            )
    """

    default_error_code: str = "PAYMENT_NOT_FOUND"


class PaymentValidationError(PaymentError):
    """
    Raised when payment input validation fails.

    Use for:
    - Non-positive or non-integer amounts
    - Unknown gateway or mode
    - Missing booking/store/freelancer identifiers
    """

    default_error_code: str = "PAYMENT_VALIDATION_ERROR"


class InvalidRuleError(PaymentValidationError):
    """
    Raised when a split rule's percentages do not sum to 100.

    Raised both when an admin tries to persist such a rule and when the
    calculator re-checks the active rule before computing shares.

    Example:
        raise InvalidRuleError(
            "Split percentages must sum to 100, got 105",
            details={"store_pct": 60, "freelancer_pct": 30, "platform_pct": 15},
        )
    """

    default_error_code: str = "INVALID_SPLIT_RULE"


class SignatureInvalidError(PaymentError):
    """
    Raised when an inbound webhook fails signature verification.

    The webhook is still written to the audit log before this is
    surfaced; the HTTP layer answers 400.
    """

    default_error_code: str = "SIGNATURE_INVALID"


class PaymentProcessingError(PaymentError):
    """Raised when payment processing fails."""

    default_error_code: str = "PAYMENT_PROCESSING_ERROR"


# =============================================================================
# Gateway Exceptions
# =============================================================================


class GatewayError(PaymentProcessingError):
    """
    Base exception for payment gateway failures.

    Carries the upstream message so it can be shown to the user, plus the
    gateway name and (where available) the gateway's own error code.

    Use is_retryable to determine retry behavior:
    - True: Transient error, safe to retry with backoff
    - False: Permanent error, do not retry

    Example:
        try:
            orchestrator.initiate_checkout(...)
        except GatewayError as e:
            return Response(e.to_dict(), status=502)
    """

    default_error_code: str = "GATEWAY_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        gateway: str | None = None,
        gateway_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if gateway:
            details["gateway"] = gateway
        if gateway_code:
            details["gateway_code"] = gateway_code
        super().__init__(message, error_code=error_code, details=details)
        self.gateway = gateway
        self.gateway_code = gateway_code


class GatewayRequestError(GatewayError):
    """
    The gateway rejected the request (bad parameters, bad credentials).

    Permanent: retrying the same request will fail the same way.
    """

    default_error_code: str = "GATEWAY_REQUEST_REJECTED"
    is_retryable: bool = False


class GatewayUnavailableError(GatewayError):
    """
    The gateway could not be reached or answered with a server error.

    Covers connection failures, DNS errors and 5xx responses.
    """

    default_error_code: str = "GATEWAY_UNAVAILABLE"
    is_retryable: bool = True


class GatewayTimeoutError(GatewayError):
    """
    The gateway call did not answer within the configured timeout.

    IMPORTANT: the order may have been created on the gateway's side.
    Nothing is recorded locally, so a retry creates a fresh order and
    the orphaned one simply expires at the gateway.
    """

    default_error_code: str = "GATEWAY_TIMEOUT"
    is_retryable: bool = True


# =============================================================================
# State Conflict Exceptions
# =============================================================================


class DuplicateBookingError(ConflictError):
    """
    Raised when an escrow already exists for a booking id.

    Example:
        raise DuplicateBookingError(
            "Escrow already exists for booking BKG-1",
            details={"booking_id": "BKG-1"},
        )
    """

    default_error_code: str = "DUPLICATE_BOOKING"


class InvalidTransitionError(ConflictError):
    """
    Raised when an escrow status transition is not allowed.

    Wraps django-fsm's TransitionNotAllowed with our standard error
    format. The record is left untouched when this is raised.

    Attributes:
        details: Contains booking_id, current_status and target_status
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Payment domain
    "PaymentError",
    "PaymentNotFoundError",
    "PaymentValidationError",
    "PaymentProcessingError",
    "InvalidRuleError",
    "SignatureInvalidError",
    # Gateway
    "GatewayError",
    "GatewayRequestError",
    "GatewayUnavailableError",
    "GatewayTimeoutError",
    # State conflicts
    "DuplicateBookingError",
    "InvalidTransitionError",
]
