# backend/classbook/services/cancellation_policy_engine.py
"""Cancellation charge evaluation against a teacher's policy."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Optional, Union

from ..core.clock import Clock
from ..core.config import settings
from ..core.enums import RoleName
from ..core.timezone_utils import ensure_utc

if TYPE_CHECKING:
    from ..models.cancellation_policy import CancellationPolicy

CENTS = Decimal("0.01")

# Reason codes
TEACHER_CANCELLATION = "teacher_cancellation"
NO_FINANCIAL_MODULE = "no_financial_module"
WITHIN_FREE_WINDOW = "within_free_window"
ZERO_CHARGE_POLICY = "zero_charge_policy"
LATE_CANCELLATION = "late_cancellation"


@dataclass(frozen=True)
class PolicyTerms:
    hours_before_class: int
    charge_percentage: Decimal
    allow_amnesty: bool
    is_default: bool = False

    @classmethod
    def default(cls) -> "PolicyTerms":
        return cls(
            hours_before_class=settings.default_cancellation_hours,
            charge_percentage=Decimal(settings.default_charge_percentage),
            allow_amnesty=settings.default_allow_amnesty,
            is_default=True,
        )

    @classmethod
    def from_policy(cls, policy: Union["CancellationPolicy", "PolicyTerms", None]) -> "PolicyTerms":
        if policy is None:
            return cls.default()
        if isinstance(policy, PolicyTerms):
            return policy
        return cls(
            hours_before_class=int(policy.hours_before_class),
            charge_percentage=Decimal(str(policy.charge_percentage)),
            allow_amnesty=bool(policy.allow_amnesty),
        )


@dataclass(frozen=True)
class ChargeDecision:
    is_chargeable: bool
    amount: Decimal
    hours_until: float
    hours_before_class: int
    charge_percentage: Decimal
    allow_amnesty: bool
    reason: str
    policy_is_default: bool = False


def evaluate_cancellation(
    occurrence_start: datetime,
    role: Union[RoleName, str],
    policy: Union["CancellationPolicy", PolicyTerms, None],
    has_financial_module: bool,
    service_price: Optional[Decimal] = None,
    *,
    clock: Clock,
) -> ChargeDecision:
    """
    Decide whether cancelling the occurrence now is free or chargeable.

    Teachers never pay. Charges only exist for teachers on the financial
    module. A student cancelling at least ``hours_before_class`` before the
    start is free; later cancellations cost ``charge_percentage`` of the
    service price (or the configured default price for unpriced classes).
    Amnesty is not considered here.
    """
    role = RoleName(role)
    terms = PolicyTerms.from_policy(policy)
    raw_hours = (ensure_utc(occurrence_start) - clock.now()).total_seconds() / 3600

    def decide(chargeable: bool, reason: str, amount: Decimal = Decimal("0.00")) -> ChargeDecision:
        return ChargeDecision(
            is_chargeable=chargeable,
            amount=amount,
            hours_until=max(0.0, raw_hours),
            hours_before_class=terms.hours_before_class,
            charge_percentage=terms.charge_percentage,
            allow_amnesty=terms.allow_amnesty,
            reason=reason,
            policy_is_default=terms.is_default,
        )

    if role is RoleName.TEACHER:
        return decide(False, TEACHER_CANCELLATION)
    if not has_financial_module:
        return decide(False, NO_FINANCIAL_MODULE)
    if raw_hours >= terms.hours_before_class:
        return decide(False, WITHIN_FREE_WINDOW)
    if terms.charge_percentage <= 0:
        return decide(False, ZERO_CHARGE_POLICY)

    base_price = Decimal(str(service_price)) if service_price is not None else Decimal(0)
    if base_price <= 0:
        # Unpriced and zero-priced classes charge against the default price
        base_price = settings.default_class_price
    amount = (base_price * terms.charge_percentage / Decimal(100)).quantize(CENTS, rounding=ROUND_HALF_UP)
    return decide(True, LATE_CANCELLATION, amount)
