"""
State and choice enums for payment models.

These are Django TextChoices for database storage and admin integration.

EscrowRecord States:
    created → captured → refunded
    created → failed
"""

from django.db import models


class EscrowStatus(models.TextChoices):
    """
    States for the EscrowRecord lifecycle.

    Terminal states: REFUNDED, FAILED

    State Flow:
        CREATED → CAPTURED   (payment captured / intent succeeded)
        CAPTURED → REFUNDED  (refund webhook)
        CREATED → FAILED     (payment failed webhook)

    Re-applying the current state is a no-op, so replayed webhooks are
    harmless. Every other move is rejected.
    """

    CREATED = "created", "Created"
    CAPTURED = "captured", "Captured"
    REFUNDED = "refunded", "Refunded"
    FAILED = "failed", "Failed"


# Target status -> statuses it may be reached from.
ESCROW_TRANSITIONS: dict[str, tuple[str, ...]] = {
    EscrowStatus.CAPTURED: (EscrowStatus.CREATED,),
    EscrowStatus.REFUNDED: (EscrowStatus.CAPTURED,),
    EscrowStatus.FAILED: (EscrowStatus.CREATED,),
}


class Gateway(models.TextChoices):
    """Payment gateways the marketplace can take money through."""

    RAZORPAY = "razorpay", "Razorpay"
    STRIPE = "stripe", "Stripe"


class GatewayMode(models.TextChoices):
    """Which credentials a gateway call uses."""

    SANDBOX = "sandbox", "Sandbox"
    LIVE = "live", "Live"


class EarningsParty(models.TextChoices):
    """Split recipients that can query their earnings."""

    STORE = "store", "Store"
    FREELANCER = "freelancer", "Freelancer"
