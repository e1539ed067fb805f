"""
Payment domain models.

This module contains all payment-related models:
- EscrowRecord: Per-booking payment entry with split and lifecycle status
- SplitRule: Default and per-service split percentages
- WebhookLog: Append-only audit trail of inbound gateway webhooks
"""

from payments.models.escrow_record import EscrowRecord
from payments.models.split_rule import SplitRule
from payments.models.webhook_log import WebhookLog

__all__ = [
    "EscrowRecord",
    "SplitRule",
    "WebhookLog",
]
