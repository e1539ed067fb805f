"""
EscrowRecord model for booking payment bookkeeping.

One EscrowRecord exists per booking. It remembers which gateway order
(or payment intent) was opened for the booking, the split computed at
checkout time, and where the payment is in its lifecycle.

Usage:
    from payments.models import EscrowRecord
    from payments.state_machines import EscrowStatus

    record = EscrowRecord.objects.create(
        booking_id="BKG-1",
        store_id="store-7",
        freelancer_id="fl-3",
        gateway="razorpay",
        gateway_ref="order_Nx1",
        amount=50000,
        store_pct=60, freelancer_pct=25, platform_pct=15,
        store_amount=30000, freelancer_amount=12500, platform_amount=7500,
    )

    # State transitions using django-fsm (normally via EscrowLedger.transition)
    record.capture(payment_id="pay_Nx1")
    record.save()
"""

from __future__ import annotations

from django.core.validators import MaxValueValidator
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import ESCROW_TRANSITIONS, EscrowStatus, Gateway, GatewayMode


class EscrowRecord(UUIDPrimaryKeyMixin, BaseModel):
    """
    Bookkeeping entry for funds notionally held for a booking.

    Uses django-fsm for the status machine and a version field that is
    incremented on every save.

    State Flow:
        CREATED -> CAPTURED -> REFUNDED
        CREATED -> FAILED

    Fields:
        booking_id: Marketplace booking this payment belongs to (unique)
        store_id / freelancer_id / service_id: Parties and service booked
        gateway / mode: Which gateway and credential set opened the order
        gateway_ref: Order id (Razorpay) or PaymentIntent id (Stripe)
        gateway_payment_id: Razorpay payment id, recorded on capture
        amount: Total in smallest currency unit
        *_pct / *_amount: Split percentages and the computed shares
        status: Current FSM state
        version: Save counter for concurrency diagnostics

    Note:
        status is protected. Change it only through the transition
        methods (EscrowLedger.transition in practice), never by
        assignment, and never refresh_from_db() the whole instance.
    """

    # ==========================================================================
    # Booking Parties
    # ==========================================================================

    booking_id = models.CharField(
        max_length=64,
        unique=True,
        help_text="Marketplace booking id (one escrow per booking)",
    )

    store_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Store receiving the store share",
    )

    freelancer_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Freelancer receiving the freelancer share",
    )

    service_id = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Service booked; selects the per-service split rule",
    )

    # ==========================================================================
    # Gateway
    # ==========================================================================

    gateway = models.CharField(
        max_length=20,
        choices=Gateway.choices,
        help_text="Gateway the order was opened with",
    )

    mode = models.CharField(
        max_length=10,
        choices=GatewayMode.choices,
        default=GatewayMode.SANDBOX,
        help_text="Credential set used for the gateway order",
    )

    gateway_ref = models.CharField(
        max_length=255,
        help_text="Gateway order id (order_xxx) or payment intent id (pi_xxx)",
    )

    gateway_payment_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        db_index=True,
        help_text="Gateway payment id (pay_xxx) recorded when captured",
    )

    # ==========================================================================
    # Amount & Split
    # ==========================================================================

    amount = models.PositiveBigIntegerField(
        help_text="Payment amount in smallest currency unit (e.g., paise)",
    )

    currency = models.CharField(
        max_length=3,
        default="INR",
        help_text="ISO 4217 currency code",
    )

    store_pct = models.PositiveSmallIntegerField(validators=[MaxValueValidator(100)])
    freelancer_pct = models.PositiveSmallIntegerField(validators=[MaxValueValidator(100)])
    platform_pct = models.PositiveSmallIntegerField(validators=[MaxValueValidator(100)])

    store_amount = models.PositiveBigIntegerField()
    freelancer_amount = models.PositiveBigIntegerField()
    platform_amount = models.PositiveBigIntegerField()

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=EscrowStatus.CREATED,
        choices=EscrowStatus.choices,
        db_index=True,
        protected=True,  # Prevent direct assignment outside transitions
        help_text="Current payment status (managed by FSM)",
    )

    version = models.PositiveIntegerField(
        default=1,
        help_text="Incremented on each save",
    )

    captured_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)

    failure_reason = models.TextField(
        null=True,
        blank=True,
        help_text="Gateway-reported reason if the payment failed",
    )

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Arbitrary JSON metadata (e.g. raw gateway order status)",
    )

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Escrow Record"
        verbose_name_plural = "Escrow Records"
        indexes = [
            models.Index(fields=["store_id", "status"], name="payments_es_store_i_5c1f0e_idx"),
            models.Index(fields=["freelancer_id", "status"], name="payments_es_freelan_8a2d47_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["gateway", "gateway_ref"],
                name="escrow_gateway_ref_unique",
            ),
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="escrow_amount_positive",
            ),
            models.CheckConstraint(
                condition=Q(store_pct=100 - F("freelancer_pct") - F("platform_pct")),
                name="escrow_split_pct_sums_to_100",
            ),
            models.CheckConstraint(
                condition=Q(
                    amount=F("store_amount") + F("freelancer_amount") + F("platform_amount")
                ),
                name="escrow_split_amounts_sum_to_amount",
            ),
        ]

    def __str__(self) -> str:
        return f"EscrowRecord({self.booking_id}, {self.gateway}:{self.gateway_ref}, {self.status})"

    def save(self, *args, **kwargs):
        """
        Save with version auto-increment.

        On update (not force_insert), atomically increments the version
        field in the database.
        """
        is_update = not self._state.adding and not kwargs.get("force_insert", False)
        if is_update:
            self.version = F("version") + 1
        super().save(*args, **kwargs)
        if is_update:
            self.refresh_from_db(fields=["version"])

    @property
    def split(self) -> dict[str, int]:
        """Split percentages as stored at checkout time."""
        return {
            "store_pct": self.store_pct,
            "freelancer_pct": self.freelancer_pct,
            "platform_pct": self.platform_pct,
        }

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=ESCROW_TRANSITIONS[EscrowStatus.CAPTURED],
        target=EscrowStatus.CAPTURED,
    )
    def capture(self, payment_id: str | None = None):
        """
        Mark the payment as captured by the gateway.

        Transition: CREATED -> CAPTURED

        Args:
            payment_id: Gateway payment id, kept so refund events that
                only carry the payment id can find this record
        """
        self.captured_at = timezone.now()
        if payment_id:
            self.gateway_payment_id = payment_id

    @transition(
        field=status,
        source=ESCROW_TRANSITIONS[EscrowStatus.REFUNDED],
        target=EscrowStatus.REFUNDED,
    )
    def refund(self):
        """
        Mark the captured payment as refunded.

        Transition: CAPTURED -> REFUNDED
        """
        self.refunded_at = timezone.now()

    @transition(
        field=status,
        source=ESCROW_TRANSITIONS[EscrowStatus.FAILED],
        target=EscrowStatus.FAILED,
    )
    def fail(self, reason: str | None = None):
        """
        Mark the payment as failed.

        Transition: CREATED -> FAILED
        """
        self.failed_at = timezone.now()
        if reason:
            self.failure_reason = reason
