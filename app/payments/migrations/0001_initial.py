import uuid

import django.core.validators
import django.db.models.functions.comparison
import django_fsm
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="EscrowRecord",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "booking_id",
                    models.CharField(
                        help_text="Marketplace booking id (one escrow per booking)",
                        max_length=64,
                        unique=True,
                    ),
                ),
                (
                    "store_id",
                    models.CharField(
                        db_index=True,
                        help_text="Store receiving the store share",
                        max_length=64,
                    ),
                ),
                (
                    "freelancer_id",
                    models.CharField(
                        db_index=True,
                        help_text="Freelancer receiving the freelancer share",
                        max_length=64,
                    ),
                ),
                (
                    "service_id",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Service booked; selects the per-service split rule",
                        max_length=64,
                    ),
                ),
                (
                    "gateway",
                    models.CharField(
                        choices=[("razorpay", "Razorpay"), ("stripe", "Stripe")],
                        help_text="Gateway the order was opened with",
                        max_length=20,
                    ),
                ),
                (
                    "mode",
                    models.CharField(
                        choices=[("sandbox", "Sandbox"), ("live", "Live")],
                        default="sandbox",
                        help_text="Credential set used for the gateway order",
                        max_length=10,
                    ),
                ),
                (
                    "gateway_ref",
                    models.CharField(
                        help_text="Gateway order id (order_xxx) or payment intent id (pi_xxx)",
                        max_length=255,
                    ),
                ),
                (
                    "gateway_payment_id",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="Gateway payment id (pay_xxx) recorded when captured",
                        max_length=255,
                        null=True,
                    ),
                ),
                (
                    "amount",
                    models.PositiveBigIntegerField(
                        help_text="Payment amount in smallest currency unit (e.g., paise)",
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default="INR",
                        help_text="ISO 4217 currency code",
                        max_length=3,
                    ),
                ),
                (
                    "store_pct",
                    models.PositiveSmallIntegerField(
                        validators=[django.core.validators.MaxValueValidator(100)],
                    ),
                ),
                (
                    "freelancer_pct",
                    models.PositiveSmallIntegerField(
                        validators=[django.core.validators.MaxValueValidator(100)],
                    ),
                ),
                (
                    "platform_pct",
                    models.PositiveSmallIntegerField(
                        validators=[django.core.validators.MaxValueValidator(100)],
                    ),
                ),
                ("store_amount", models.PositiveBigIntegerField()),
                ("freelancer_amount", models.PositiveBigIntegerField()),
                ("platform_amount", models.PositiveBigIntegerField()),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("created", "Created"),
                            ("captured", "Captured"),
                            ("refunded", "Refunded"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="created",
                        help_text="Current payment status (managed by FSM)",
                        max_length=50,
                        protected=True,
                    ),
                ),
                (
                    "version",
                    models.PositiveIntegerField(
                        default=1,
                        help_text="Incremented on each save",
                    ),
                ),
                ("captured_at", models.DateTimeField(blank=True, null=True)),
                ("refunded_at", models.DateTimeField(blank=True, null=True)),
                ("failed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "failure_reason",
                    models.TextField(
                        blank=True,
                        help_text="Gateway-reported reason if the payment failed",
                        null=True,
                    ),
                ),
                (
                    "metadata",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Arbitrary JSON metadata (e.g. raw gateway order status)",
                    ),
                ),
            ],
            options={
                "verbose_name": "Escrow Record",
                "verbose_name_plural": "Escrow Records",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["store_id", "status"],
                        name="payments_es_store_i_5c1f0e_idx",
                    ),
                    models.Index(
                        fields=["freelancer_id", "status"],
                        name="payments_es_freelan_8a2d47_idx",
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("gateway", "gateway_ref"),
                        name="escrow_gateway_ref_unique",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="escrow_amount_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            (
                                "store_pct",
                                models.CombinedExpression(
                                    models.CombinedExpression(
                                        models.Value(100),
                                        "-",
                                        models.F("freelancer_pct"),
                                    ),
                                    "-",
                                    models.F("platform_pct"),
                                ),
                            )
                        ),
                        name="escrow_split_pct_sums_to_100",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            (
                                "amount",
                                models.CombinedExpression(
                                    models.CombinedExpression(
                                        models.F("store_amount"),
                                        "+",
                                        models.F("freelancer_amount"),
                                    ),
                                    "+",
                                    models.F("platform_amount"),
                                ),
                            )
                        ),
                        name="escrow_split_amounts_sum_to_amount",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="SplitRule",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "service_id",
                    models.CharField(
                        blank=True,
                        help_text="Service this rule applies to; empty for the global default",
                        max_length=64,
                        null=True,
                        unique=True,
                    ),
                ),
                (
                    "store_pct",
                    models.PositiveSmallIntegerField(
                        help_text="Percentage paid to the store",
                        validators=[django.core.validators.MaxValueValidator(100)],
                    ),
                ),
                (
                    "freelancer_pct",
                    models.PositiveSmallIntegerField(
                        help_text="Percentage paid to the freelancer",
                        validators=[django.core.validators.MaxValueValidator(100)],
                    ),
                ),
                (
                    "platform_pct",
                    models.PositiveSmallIntegerField(
                        help_text="Percentage kept by the platform",
                        validators=[django.core.validators.MaxValueValidator(100)],
                    ),
                ),
            ],
            options={
                "verbose_name": "Split Rule",
                "verbose_name_plural": "Split Rules",
                "ordering": ["service_id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            (
                                "store_pct",
                                models.CombinedExpression(
                                    models.CombinedExpression(
                                        models.Value(100),
                                        "-",
                                        models.F("freelancer_pct"),
                                    ),
                                    "-",
                                    models.F("platform_pct"),
                                ),
                            )
                        ),
                        name="split_rule_pct_sums_to_100",
                    ),
                    models.UniqueConstraint(
                        django.db.models.functions.comparison.Coalesce(
                            "service_id", models.Value("")
                        ),
                        name="split_rule_single_default",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="WebhookLog",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "gateway",
                    models.CharField(
                        choices=[("razorpay", "Razorpay"), ("stripe", "Stripe")],
                        db_index=True,
                        help_text="Gateway the webhook claims to come from",
                        max_length=20,
                    ),
                ),
                (
                    "event_type",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        default="",
                        help_text="Event type, e.g. payment.captured or payment_intent.succeeded",
                        max_length=100,
                    ),
                ),
                (
                    "event_id",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Gateway event id (evt_xxx) when present",
                        max_length=255,
                    ),
                ),
                (
                    "signature",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Signature header as received",
                    ),
                ),
                (
                    "signature_valid",
                    models.BooleanField(
                        db_index=True,
                        default=False,
                        help_text="Whether the signature verified against the configured secret",
                    ),
                ),
                (
                    "raw_payload",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Raw request body",
                    ),
                ),
                (
                    "payload",
                    models.JSONField(
                        blank=True,
                        help_text="Parsed JSON body (NULL when the body was not valid JSON)",
                        null=True,
                    ),
                ),
            ],
            options={
                "verbose_name": "Webhook Log",
                "verbose_name_plural": "Webhook Logs",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["gateway", "event_type"],
                        name="payments_we_gateway_3e9b71_idx",
                    ),
                ],
            },
        ),
    ]
