"""
Webhook reconciliation: applies verified gateway events to the escrow ledger.

The receiving pipeline is:

1. Verify the signature against the gateway's webhook secret
2. Parse the JSON body
3. Append a WebhookLog row (always, valid or not, before any mutation)
4. If the signature is valid, parse the body into a typed event and
   dispatch it to the handler registered for that event class

Handlers look up the escrow by the event's correlation id and move it
through EscrowLedger.transition. Unmatched references, unknown events
and stale replays are acknowledged without mutation, because gateways
retry anything that is not a 2xx.

Usage:
    from payments.webhooks.handlers import WebhookReconciler

    reconciler = WebhookReconciler(ledger)
    result = reconciler.receive_webhook("razorpay", request.body, signature)
    if not result:
        return HttpResponse("invalid signature", status=400)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from core.services import BaseService, ServiceResult

from payments.exceptions import (
    InvalidTransitionError,
    PaymentValidationError,
    SignatureInvalidError,
)
from payments.models import WebhookLog
from payments.state_machines import EscrowStatus
from payments.webhooks.events import (
    PaymentCaptured,
    PaymentFailed,
    PaymentRefunded,
    UnknownEvent,
    event_id_of,
    event_type_of,
    parse_event,
)
from payments.webhooks.signatures import verify_signature, webhook_secret_for

if TYPE_CHECKING:
    from typing import Any

    from payments.models import EscrowRecord
    from payments.services.escrow_ledger import EscrowLedger, TransitionOutcome
    from payments.webhooks.events import GatewayEvent


logger = logging.getLogger(__name__)


# =============================================================================
# Handler Registry
# =============================================================================


EventHandler = Callable[["EscrowLedger", "EscrowRecord", "GatewayEvent"], "TransitionOutcome"]

# Maps event variant classes to handler functions
WEBHOOK_HANDLERS: dict[type, EventHandler] = {}


def register_handler(event_class: type) -> Callable[[EventHandler], EventHandler]:
    """
    Decorator to register the handler for an event variant.

    Usage:
        @register_handler(PaymentCaptured)
        def handle_payment_captured(ledger, record, event):
            return ledger.transition(record, EscrowStatus.CAPTURED)
    """

    def decorator(func: EventHandler) -> EventHandler:
        WEBHOOK_HANDLERS[event_class] = func
        logger.debug(f"Registered webhook handler for {event_class.__name__}")
        return func

    return decorator


@register_handler(PaymentCaptured)
def handle_payment_captured(ledger: EscrowLedger, record: EscrowRecord, event: PaymentCaptured) -> TransitionOutcome:
    """Mark the escrow captured and remember the gateway payment id."""
    return ledger.transition(record, EscrowStatus.CAPTURED, payment_id=event.payment_id)


@register_handler(PaymentFailed)
def handle_payment_failed(ledger: EscrowLedger, record: EscrowRecord, event: PaymentFailed) -> TransitionOutcome:
    return ledger.transition(record, EscrowStatus.FAILED, reason=event.reason)


@register_handler(PaymentRefunded)
def handle_payment_refunded(ledger: EscrowLedger, record: EscrowRecord, event: PaymentRefunded) -> TransitionOutcome:
    return ledger.transition(record, EscrowStatus.REFUNDED)


# =============================================================================
# Result Type
# =============================================================================


@dataclass(frozen=True)
class ReconcileResult:
    """
    What reconciling one webhook did.

    Attributes:
        action: Event variant name ("PaymentCaptured", ..., "UnknownEvent")
        reference: Correlation id taken from the payload
        matched: Whether an escrow record was found for the reference
        applied: Whether the escrow status actually changed
        status: Escrow status after reconciliation (None if unmatched)
        ignored_reason: Why nothing was applied, when nothing was
    """

    action: str
    reference: str | None = None
    matched: bool = False
    applied: bool = False
    status: str | None = None
    ignored_reason: str | None = None


# =============================================================================
# Reconciler
# =============================================================================


class WebhookReconciler(BaseService):
    """
    Applies gateway webhooks to the escrow ledger.

    Args:
        ledger: EscrowLedger used for lookups and transitions
    """

    def __init__(self, ledger: EscrowLedger):
        self.ledger = ledger

    def reconcile(self, gateway: str, event_type: str, payload: Any) -> ReconcileResult:
        """
        Apply one authenticated webhook to the ledger.

        Args:
            gateway: "razorpay" or "stripe"
            event_type: Event type from the payload
            payload: Decoded JSON body

        Returns:
            ReconcileResult; never raises for unmatched references,
            unknown events or stale replays
        """
        logger = self.get_logger()
        event = parse_event(gateway, payload, event_type)
        action = type(event).__name__

        if isinstance(event, UnknownEvent):
            logger.info(
                f"Ignoring webhook: {event.reason}",
                extra={"gateway": gateway, "event_type": event.event_type},
            )
            return ReconcileResult(action=action, ignored_reason=event.reason)

        handler = WEBHOOK_HANDLERS.get(type(event))
        if handler is None:
            logger.info(
                f"No handler registered for {action}",
                extra={"gateway": gateway, "event_type": event.event_type},
            )
            return ReconcileResult(
                action=action,
                reference=event.reference,
                ignored_reason="no handler",
            )

        record = self.ledger.find_by_gateway_ref(gateway, event.reference)
        if record is None:
            logger.info(
                "No escrow matches webhook reference",
                extra={
                    "gateway": gateway,
                    "event_type": event.event_type,
                    "gateway_ref": event.reference,
                },
            )
            return ReconcileResult(
                action=action,
                reference=event.reference,
                ignored_reason="no matching escrow",
            )

        try:
            outcome = handler(self.ledger, record, event)
        except InvalidTransitionError as e:
            logger.warning(
                "Ignoring webhook that would make an invalid transition",
                extra={
                    "gateway": gateway,
                    "event_type": event.event_type,
                    "gateway_ref": event.reference,
                    **e.details,
                },
            )
            return ReconcileResult(
                action=action,
                reference=event.reference,
                matched=True,
                status=e.details.get("current_status"),
                ignored_reason="invalid transition",
            )

        return ReconcileResult(
            action=action,
            reference=event.reference,
            matched=True,
            applied=outcome.applied,
            status=outcome.status,
            ignored_reason=None if outcome.applied else "already in target status",
        )

    def receive_webhook(
        self,
        gateway: str,
        raw_body: bytes,
        signature_header: str | None,
        secret: str | None = None,
        event_id: str | None = None,
    ) -> ServiceResult[ReconcileResult]:
        """
        Verify, log and reconcile one inbound webhook.

        Args:
            gateway: "razorpay" or "stripe"
            raw_body: Request body exactly as received
            signature_header: Value of the gateway's signature header
            secret: Webhook secret (default: from settings)
            event_id: Gateway event id sent outside the body
                (Razorpay's X-Razorpay-Event-Id)

        Returns:
            ServiceResult with the ReconcileResult, or a SIGNATURE_INVALID
            failure when verification fails

        Raises:
            PaymentValidationError: Authenticated body is not a JSON object
        """
        logger = self.get_logger()
        if secret is None:
            secret = webhook_secret_for(gateway)

        signature_valid = verify_signature(gateway, raw_body, signature_header, secret)
        payload = _decode(raw_body)
        event_type = event_type_of(gateway, payload)

        WebhookLog.objects.create(
            gateway=gateway,
            event_type=_clip(event_type, "event_type"),
            event_id=_clip(event_id or event_id_of(gateway, payload), "event_id"),
            signature=signature_header or "",
            signature_valid=signature_valid,
            raw_payload=raw_body.decode("utf-8", errors="replace"),
            payload=payload,
        )

        if not signature_valid:
            logger.warning(
                "Webhook signature verification failed",
                extra={"gateway": gateway, "event_type": event_type},
            )
            return ServiceResult.from_exception(
                SignatureInvalidError(
                    "Invalid webhook signature",
                    details={"gateway": gateway},
                )
            )

        if not isinstance(payload, dict):
            raise PaymentValidationError(
                "Webhook body is not a JSON object",
                details={"gateway": gateway},
            )

        logger.info(
            f"Received {gateway} webhook: {event_type}",
            extra={"gateway": gateway, "event_type": event_type},
        )
        return ServiceResult.ok(self.reconcile(gateway, event_type, payload))


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant {name}")


def _decode(raw_body: bytes) -> Any:
    """Parsed JSON body, or None when the body is not strict JSON (NaN and Infinity included)."""
    try:
        return json.loads(raw_body, parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError):
        return None


def _clip(value: str, field_name: str) -> str:
    """Truncate a sender-supplied value to the WebhookLog column width."""
    return value[: WebhookLog._meta.get_field(field_name).max_length]
