"""
Payment admin configuration.

Registers the escrow ledger, split rules and webhook log with the
Django admin. Escrow status and amounts only change through
EscrowLedger, and webhook logs are an audit trail, so both are
read-only here.
"""

from django.contrib import admin

from payments.models import EscrowRecord, SplitRule, WebhookLog

__all__ = [
    "EscrowRecordAdmin",
    "SplitRuleAdmin",
    "WebhookLogAdmin",
]


@admin.register(EscrowRecord)
class EscrowRecordAdmin(admin.ModelAdmin):
    """
    Admin configuration for EscrowRecord.

    Provides visibility into escrow status and split per booking.
    """

    list_display = [
        "booking_id",
        "gateway",
        "mode",
        "gateway_ref",
        "amount",
        "currency",
        "status",
        "created_at",
    ]
    list_filter = ["status", "gateway", "mode", "currency"]
    search_fields = ["booking_id", "gateway_ref", "gateway_payment_id", "store_id", "freelancer_id"]
    readonly_fields = [
        "id",
        "booking_id",
        "gateway",
        "mode",
        "gateway_ref",
        "gateway_payment_id",
        "amount",
        "currency",
        "store_pct",
        "freelancer_pct",
        "platform_pct",
        "store_amount",
        "freelancer_amount",
        "platform_amount",
        "status",
        "version",
        "captured_at",
        "refunded_at",
        "failed_at",
        "failure_reason",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "booking_id", "status", "version"),
            },
        ),
        (
            "Parties",
            {
                "fields": ("store_id", "freelancer_id", "service_id"),
            },
        ),
        (
            "Gateway",
            {
                "fields": ("gateway", "mode", "gateway_ref", "gateway_payment_id"),
            },
        ),
        (
            "Split",
            {
                "fields": (
                    ("amount", "currency"),
                    ("store_pct", "store_amount"),
                    ("freelancer_pct", "freelancer_amount"),
                    ("platform_pct", "platform_amount"),
                ),
            },
        ),
        (
            "Lifecycle",
            {
                "fields": ("captured_at", "refunded_at", "failed_at", "failure_reason"),
            },
        ),
        (
            "Metadata",
            {
                "fields": ("metadata",),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    def has_add_permission(self, request) -> bool:
        """Escrows are only created by checkout."""
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(SplitRule)
class SplitRuleAdmin(admin.ModelAdmin):
    """Admin configuration for SplitRule (blank service id = default rule)."""

    list_display = ["service_id", "store_pct", "freelancer_pct", "platform_pct", "updated_at"]
    search_fields = ["service_id"]
    readonly_fields = ["created_at", "updated_at"]
    ordering = ["service_id"]


@admin.register(WebhookLog)
class WebhookLogAdmin(admin.ModelAdmin):
    """
    Admin configuration for WebhookLog.

    Webhook logs are immutable once received.
    """

    list_display = [
        "id",
        "gateway",
        "event_type",
        "event_id",
        "signature_valid",
        "created_at",
    ]
    list_filter = ["gateway", "signature_valid", "event_type", "created_at"]
    search_fields = ["id", "event_id", "event_type"]
    readonly_fields = [
        "id",
        "gateway",
        "event_type",
        "event_id",
        "signature",
        "signature_valid",
        "raw_payload",
        "payload",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def has_add_permission(self, request) -> bool:
        return False

    def has_change_permission(self, request, obj=None) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for webhook logs (audit trail)."""
        return False
