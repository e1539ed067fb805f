"""
WebhookLog model: append-only audit trail of inbound gateway webhooks.

Every webhook that reaches the endpoint is stored here before any escrow
record is touched, including ones whose signature failed. Rows are
never updated; reconciliation is driven by the verified request, not by
this table.

Usage:
    from payments.models import WebhookLog

    WebhookLog.objects.filter(gateway="razorpay", signature_valid=False)
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import Gateway


class WebhookLog(UUIDPrimaryKeyMixin, BaseModel):
    """
    One received webhook, verified or not.

    Fields:
        gateway: Gateway the webhook claims to come from
        event_type: Razorpay "event" / Stripe "type" (blank if unparseable)
        event_id: Gateway event id when the payload carries one
        signature: Signature header exactly as received
        signature_valid: Result of signature verification
        raw_payload: Request body as received
        payload: Parsed JSON body, NULL if the body was not valid JSON
    """

    gateway = models.CharField(
        max_length=20,
        choices=Gateway.choices,
        db_index=True,
        help_text="Gateway the webhook claims to come from",
    )

    event_type = models.CharField(
        max_length=100,
        blank=True,
        default="",
        db_index=True,
        help_text="Event type, e.g. payment.captured or payment_intent.succeeded",
    )

    event_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Gateway event id (evt_xxx) when present",
    )

    signature = models.TextField(
        blank=True,
        default="",
        help_text="Signature header as received",
    )

    signature_valid = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether the signature verified against the configured secret",
    )

    raw_payload = models.TextField(
        blank=True,
        default="",
        help_text="Raw request body",
    )

    payload = models.JSONField(
        null=True,
        blank=True,
        help_text="Parsed JSON body (NULL when the body was not valid JSON)",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Webhook Log"
        verbose_name_plural = "Webhook Logs"
        indexes = [
            models.Index(fields=["gateway", "event_type"], name="payments_we_gateway_3e9b71_idx"),
        ]

    def __str__(self) -> str:
        verdict = "valid" if self.signature_valid else "invalid"
        return f"WebhookLog({self.gateway}, {self.event_type or '?'}, {verdict})"

    def save(self, *args, **kwargs):
        """Insert only; existing log rows are immutable."""
        if not self._state.adding:
            raise ValueError("WebhookLog entries are append-only")
        super().save(*args, **kwargs)
