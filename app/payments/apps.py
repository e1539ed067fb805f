"""
Payments app configuration.

The payment services are built once here and hung off the app config,
so views reach them through apps.get_app_config("payments") and tests
can build their own with fakes.
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"

    def ready(self):
        from payments.services import CheckoutOrchestrator, EscrowLedger, SplitCalculator
        from payments.webhooks import WebhookReconciler

        self.split_calculator = SplitCalculator()
        self.ledger = EscrowLedger(self.split_calculator)
        self.reconciler = WebhookReconciler(self.ledger)
        self.checkout = CheckoutOrchestrator(self.ledger, self.split_calculator)
