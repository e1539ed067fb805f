"""
Split calculator: turns a booking amount into store/freelancer/platform shares.

The effective rule for a booking is the per-service override if one
exists, else the global default rule row, else the defaults configured
in settings (SPLIT_DEFAULT_STORE_PCT and friends).

Shares are rounded half up for the store and the freelancer; the
platform receives the remainder, so the three shares always add up to
the amount exactly.

Usage:
    from payments.services import SplitCalculator

    calculator = SplitCalculator()
    result = calculator.calculate_split(799, service_id="haircut-basic")
    result.amounts.store_amount       # 320 with a 40/40/20 rule
    result.amounts.platform_amount    # 159
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import IntegrityError

from core.services import BaseService

from payments.exceptions import InvalidRuleError, PaymentValidationError
from payments.models import SplitRule

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Data Types
# =============================================================================


@dataclass(frozen=True)
class SplitPercentages:
    """
    A split rule as plain values.

    Attributes:
        store_pct: Percentage paid to the store
        freelancer_pct: Percentage paid to the freelancer
        platform_pct: Percentage kept by the platform
    """

    store_pct: int
    freelancer_pct: int
    platform_pct: int

    @property
    def total(self) -> int:
        return self.store_pct + self.freelancer_pct + self.platform_pct

    def validate(self) -> None:
        """
        Raise InvalidRuleError unless this is a usable rule.

        Every percentage must be a whole number between 0 and 100 and
        the three must sum to exactly 100.
        """
        values = self.as_dict()
        for name, value in values.items():
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidRuleError(
                    f"{name} must be a whole number",
                    details=values,
                )
            if not 0 <= value <= 100:
                raise InvalidRuleError(
                    f"{name} must be between 0 and 100, got {value}",
                    details=values,
                )
        if self.total != 100:
            raise InvalidRuleError(
                f"Split percentages must sum to 100, got {self.total}",
                details=values,
            )

    def as_dict(self) -> dict[str, int]:
        return asdict(self)

    @classmethod
    def from_model(cls, rule: SplitRule) -> SplitPercentages:
        return cls(
            store_pct=rule.store_pct,
            freelancer_pct=rule.freelancer_pct,
            platform_pct=rule.platform_pct,
        )


@dataclass(frozen=True)
class SplitAmounts:
    """Computed shares in the smallest currency unit."""

    store_amount: int
    freelancer_amount: int
    platform_amount: int

    @property
    def total(self) -> int:
        return self.store_amount + self.freelancer_amount + self.platform_amount

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class SplitResult:
    """
    Result of calculate_split.

    Attributes:
        rule: The rule that was applied
        amounts: Shares computed from it
        service_id: Service the split was computed for
        is_override: True when a per-service rule was used
    """

    rule: SplitPercentages
    amounts: SplitAmounts
    service_id: str | None = None
    is_override: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {**self.rule.as_dict(), **self.amounts.as_dict()}


# =============================================================================
# Pure Helpers
# =============================================================================


def _share(amount: int, pct: int) -> int:
    """round(amount * pct / 100), halves rounded up."""
    exact = Decimal(amount) * Decimal(pct) / Decimal(100)
    return int(exact.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def compute_shares(amount: int, rule: SplitPercentages) -> SplitAmounts:
    """
    Split amount according to rule.

    The platform share is the remainder rather than its own rounded
    percentage, which keeps the sum equal to amount.

    Example:
        compute_shares(799, SplitPercentages(40, 40, 20))
        # SplitAmounts(store_amount=320, freelancer_amount=320, platform_amount=159)
    """
    rule.validate()
    store = _share(amount, rule.store_pct)
    # Two halves rounded up can overshoot when platform_pct is 0
    freelancer = min(_share(amount, rule.freelancer_pct), amount - store)
    return SplitAmounts(
        store_amount=store,
        freelancer_amount=freelancer,
        platform_amount=amount - store - freelancer,
    )


def settings_default_rule() -> SplitPercentages:
    """Default rule from settings, used until an admin saves one."""
    return SplitPercentages(
        store_pct=settings.SPLIT_DEFAULT_STORE_PCT,
        freelancer_pct=settings.SPLIT_DEFAULT_FREELANCER_PCT,
        platform_pct=settings.SPLIT_DEFAULT_PLATFORM_PCT,
    )


def validate_amount(amount: Any) -> int:
    """Return amount if it is a positive integer, else raise."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise PaymentValidationError(
            "Amount must be a positive integer in the smallest currency unit",
            details={"amount": amount},
        )
    return amount


# =============================================================================
# Split Calculator Service
# =============================================================================


class SplitCalculator(BaseService):
    """
    Looks up split rules and computes shares.

    Also owns writes to the rule store (the admin payment settings page),
    so every persisted rule passes the same validation as the one applied
    at checkout.

    Args:
        default_rule: Fallback when no default rule row exists. Defaults
            to the rule configured in settings.
    """

    def __init__(self, default_rule: SplitPercentages | None = None):
        self._fallback_rule = default_rule

    @property
    def fallback_rule(self) -> SplitPercentages:
        return self._fallback_rule or settings_default_rule()

    # =========================================================================
    # Lookup & Calculation
    # =========================================================================

    def get_rule(self, service_id: str | None = None) -> tuple[SplitPercentages, bool]:
        """
        Resolve the effective rule for a service.

        Returns:
            (rule, is_override) where is_override is True when a
            per-service rule row was found
        """
        if service_id:
            override = SplitRule.objects.filter(service_id=service_id).first()
            if override is not None:
                return SplitPercentages.from_model(override), True

        default = SplitRule.objects.filter(service_id__isnull=True).first()
        if default is not None:
            return SplitPercentages.from_model(default), False
        return self.fallback_rule, False

    def calculate_split(self, amount: int, service_id: str | None = None) -> SplitResult:
        """
        Compute the split of amount for a service.

        Args:
            amount: Positive integer in the smallest currency unit
            service_id: Service booked (None or blank uses the default rule)

        Returns:
            SplitResult with the applied rule and the computed shares

        Raises:
            PaymentValidationError: amount is not a positive integer
            InvalidRuleError: the active rule does not sum to 100
        """
        validate_amount(amount)
        rule, is_override = self.get_rule(service_id)
        amounts = compute_shares(amount, rule)
        return SplitResult(
            rule=rule,
            amounts=amounts,
            service_id=service_id or None,
            is_override=is_override,
        )

    # =========================================================================
    # Rule Store
    # =========================================================================

    def set_default_rule(self, rule: SplitPercentages) -> SplitRule:
        """Persist the global default rule. Raises InvalidRuleError."""
        return self._save_rule(None, rule)

    def set_service_rule(self, service_id: str, rule: SplitPercentages) -> SplitRule:
        """Persist a per-service override. Raises InvalidRuleError."""
        if not service_id:
            raise PaymentValidationError("service_id is required for an override")
        return self._save_rule(service_id, rule)

    def clear_service_rule(self, service_id: str) -> bool:
        """
        Remove a per-service override.

        Returns:
            True if an override existed
        """
        deleted, _ = SplitRule.objects.filter(service_id=service_id).delete()
        if deleted:
            self.get_logger().info(
                "Cleared split rule override",
                extra={"service_id": service_id},
            )
        return bool(deleted)

    def _save_rule(self, service_id: str | None, rule: SplitPercentages) -> SplitRule:
        rule.validate()
        try:
            with self.atomic():
                obj, _ = SplitRule.objects.update_or_create(
                    service_id=service_id,
                    defaults=rule.as_dict(),
                )
        except IntegrityError as e:
            raise InvalidRuleError(
                "Split rule rejected by the database",
                details={**rule.as_dict(), "service_id": service_id, "error": str(e)},
            ) from e

        self.get_logger().info(
            "Saved split rule",
            extra={"service_id": service_id, **rule.as_dict()},
        )
        return obj
