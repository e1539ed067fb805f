"""
Typed webhook events parsed from Razorpay and Stripe payloads.

Gateway payloads are turned into one of four variants at the boundary:

    PaymentCaptured  - money was captured for an order / payment intent
    PaymentFailed    - the payment attempt failed
    PaymentRefunded  - a refund was issued against a captured payment
    UnknownEvent     - anything else (ignored and acknowledged)

Which variant a payload becomes, and where its correlation id lives, is
described by EVENT_PATTERNS. A pattern that matches but whose id is
missing yields UnknownEvent rather than a half-filled variant.

Usage:
    from payments.webhooks.events import parse_event

    event = parse_event("razorpay", payload)
    if isinstance(event, PaymentCaptured):
        ...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Union

from payments.state_machines import EscrowStatus, Gateway

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Event Variants
# =============================================================================


@dataclass(frozen=True)
class PaymentCaptured:
    gateway: str
    event_type: str
    reference: str
    payment_id: str | None = None

    target_status = EscrowStatus.CAPTURED


@dataclass(frozen=True)
class PaymentFailed:
    gateway: str
    event_type: str
    reference: str
    reason: str | None = None

    target_status = EscrowStatus.FAILED


@dataclass(frozen=True)
class PaymentRefunded:
    gateway: str
    event_type: str
    reference: str

    target_status = EscrowStatus.REFUNDED


@dataclass(frozen=True)
class UnknownEvent:
    gateway: str
    event_type: str
    reason: str = "unrecognized event type"


GatewayEvent = Union[PaymentCaptured, PaymentFailed, PaymentRefunded, UnknownEvent]


# =============================================================================
# Payload Helpers
# =============================================================================


def dig(payload: Any, path: tuple[str, ...]) -> Any:
    """Follow a key path through nested dicts; None if any step is missing."""
    current = payload
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def event_type_of(gateway: str, payload: Any) -> str:
    """Razorpay puts the type in "event", Stripe in "type"."""
    key = "event" if gateway == Gateway.RAZORPAY else "type"
    return _text(dig(payload, (key,))) or ""


def event_id_of(gateway: str, payload: Any) -> str:
    """Stripe events carry an id (evt_xxx); Razorpay bodies do not."""
    if gateway == Gateway.STRIPE:
        return _text(dig(payload, ("id",))) or ""
    return ""


# =============================================================================
# Pattern Table
# =============================================================================


@dataclass(frozen=True)
class EventPattern:
    """
    One row of the dispatch table.

    Attributes:
        gateway: Gateway the pattern applies to
        pattern: Event type, or prefix when prefix is True
        prefix: Match any event type starting with pattern
        reference_path: Where the correlation id lives in the payload
        build: Builds the variant from (gateway, event_type, reference,
            payload); None means "recognized but deliberately ignored"
    """

    gateway: str
    pattern: str
    prefix: bool
    reference_path: tuple[str, ...]
    build: Callable[[str, str, str, Any], GatewayEvent] | None

    def matches(self, gateway: str, event_type: str) -> bool:
        if gateway != self.gateway:
            return False
        if self.prefix:
            return event_type.startswith(self.pattern)
        return event_type == self.pattern


def _captured(payment_id_path: tuple[str, ...] | None = None):
    def build(gateway, event_type, reference, payload):
        payment_id = _text(dig(payload, payment_id_path)) if payment_id_path else None
        return PaymentCaptured(gateway, event_type, reference, payment_id)

    return build


def _failed(reason_path: tuple[str, ...]):
    def build(gateway, event_type, reference, payload):
        return PaymentFailed(gateway, event_type, reference, _text(dig(payload, reason_path)))

    return build


def _refunded(gateway, event_type, reference, payload):
    return PaymentRefunded(gateway, event_type, reference)


# First match wins, so exact exclusions go before the prefixes they carve out of.
EVENT_PATTERNS: tuple[EventPattern, ...] = (
    # Razorpay
    EventPattern(
        Gateway.RAZORPAY,
        "payment.captured",
        False,
        ("payload", "payment", "entity", "order_id"),
        _captured(("payload", "payment", "entity", "id")),
    ),
    EventPattern(
        Gateway.RAZORPAY,
        "payment.failed",
        False,
        ("payload", "payment", "entity", "order_id"),
        _failed(("payload", "payment", "entity", "error_description")),
    ),
    EventPattern(
        Gateway.RAZORPAY,
        "refund.failed",
        False,
        ("payload", "refund", "entity", "payment_id"),
        None,
    ),
    EventPattern(
        Gateway.RAZORPAY,
        "refund.",
        True,
        ("payload", "refund", "entity", "payment_id"),
        _refunded,
    ),
    # Stripe
    EventPattern(
        Gateway.STRIPE,
        "payment_intent.succeeded",
        False,
        ("data", "object", "id"),
        _captured(),
    ),
    EventPattern(
        Gateway.STRIPE,
        "payment_intent.payment_failed",
        False,
        ("data", "object", "id"),
        _failed(("data", "object", "last_payment_error", "message")),
    ),
    EventPattern(
        Gateway.STRIPE,
        "charge.refund",
        True,
        ("data", "object", "payment_intent"),
        _refunded,
    ),
)


def parse_event(gateway: str, payload: Any, event_type: str | None = None) -> GatewayEvent:
    """
    Parse a decoded webhook body into a typed event.

    Args:
        gateway: "razorpay" or "stripe"
        payload: Decoded JSON body
        event_type: Event type when already known; read from payload otherwise

    Returns:
        A PaymentCaptured / PaymentFailed / PaymentRefunded, or
        UnknownEvent when the type is unrecognized or the correlation id
        is missing
    """
    event_type = event_type or event_type_of(gateway, payload)
    if not event_type:
        return UnknownEvent(gateway, "", reason="missing event type")

    for pattern in EVENT_PATTERNS:
        if not pattern.matches(gateway, event_type):
            continue
        if pattern.build is None:
            return UnknownEvent(gateway, event_type, reason="ignored event type")
        reference = _text(dig(payload, pattern.reference_path))
        if reference is None:
            return UnknownEvent(
                gateway,
                event_type,
                reason=f"missing {'.'.join(pattern.reference_path)}",
            )
        return pattern.build(gateway, event_type, reference, payload)

    return UnknownEvent(gateway, event_type)
