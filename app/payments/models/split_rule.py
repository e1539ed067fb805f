"""
SplitRule model for store/freelancer/platform revenue percentages.

The row with service_id NULL is the global default; rows with a
service_id override it for that service. Percentages always sum to 100.

Usage:
    from payments.models import SplitRule

    SplitRule.objects.update_or_create(
        service_id="haircut-basic",
        defaults={"store_pct": 50, "freelancer_pct": 35, "platform_pct": 15},
    )
"""

from __future__ import annotations

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import MaxValueValidator
from django.db import models
from django.db.models import F, Q, Value
from django.db.models.functions import Coalesce

from core.models import BaseModel


class SplitRule(BaseModel):
    """
    Percentage allocation of a payment among store, freelancer and platform.

    Fields:
        service_id: Service this rule overrides, NULL for the global default
        store_pct / freelancer_pct / platform_pct: Whole percentages

    Note:
        The sum-to-100 invariant is enforced three times: clean() for
        admin forms, SplitCalculator before writing, and a database
        check constraint.
    """

    service_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        unique=True,
        help_text="Service this rule applies to; empty for the global default",
    )

    store_pct = models.PositiveSmallIntegerField(
        validators=[MaxValueValidator(100)],
        help_text="Percentage paid to the store",
    )
    freelancer_pct = models.PositiveSmallIntegerField(
        validators=[MaxValueValidator(100)],
        help_text="Percentage paid to the freelancer",
    )
    platform_pct = models.PositiveSmallIntegerField(
        validators=[MaxValueValidator(100)],
        help_text="Percentage kept by the platform",
    )

    class Meta:
        ordering = ["service_id"]
        verbose_name = "Split Rule"
        verbose_name_plural = "Split Rules"
        constraints = [
            models.CheckConstraint(
                condition=Q(store_pct=100 - F("freelancer_pct") - F("platform_pct")),
                name="split_rule_pct_sums_to_100",
            ),
            # NULLs never collide under a plain unique index, so the single
            # global default row needs an expression constraint.
            models.UniqueConstraint(
                Coalesce("service_id", Value("")),
                name="split_rule_single_default",
            ),
        ]

    def __str__(self) -> str:
        scope = self.service_id or "default"
        return f"SplitRule({scope}: {self.store_pct}/{self.freelancer_pct}/{self.platform_pct})"

    @property
    def is_default(self) -> bool:
        return self.service_id is None

    def clean(self) -> None:
        super().clean()
        total = (self.store_pct or 0) + (self.freelancer_pct or 0) + (self.platform_pct or 0)
        if total != 100:
            raise DjangoValidationError(
                f"Split percentages must sum to 100, got {total}",
                code="split_sum",
            )
