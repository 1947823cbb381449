# backend/classbook/schemas/cancellation.py
"""Schemas for cancellation previews, cancellations and amnesty."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from ..services.cancellation_policy_engine import ChargeDecision
from ._strict_base import StrictModel, StrictRequestModel
from .occurrence import OccurrenceRefPayload


class CancellationPreviewRequest(StrictRequestModel):
    occurrence: OccurrenceRefPayload


class CancellationRequest(StrictRequestModel):
    occurrence: OccurrenceRefPayload
    reason: Optional[str] = Field(default=None, max_length=1000)


class ChargeDecisionResponse(StrictModel):
    is_chargeable: bool
    amount: Decimal
    hours_until: float
    hours_before_class: int
    charge_percentage: Decimal
    allow_amnesty: bool
    reason: str
    policy_is_default: bool

    @classmethod
    def from_decision(cls, decision: ChargeDecision) -> "ChargeDecisionResponse":
        return cls(
            is_chargeable=decision.is_chargeable,
            amount=decision.amount,
            hours_until=round(decision.hours_until, 2),
            hours_before_class=decision.hours_before_class,
            charge_percentage=decision.charge_percentage,
            allow_amnesty=decision.allow_amnesty,
            reason=decision.reason,
            policy_is_default=decision.policy_is_default,
        )


class CancellationResponse(StrictModel):
    class_id: str
    class_status: str
    class_cancelled: bool
    cancelled_student_ids: List[str]
    decision: ChargeDecisionResponse
    materialization_outcome: Optional[str] = None


class AmnestyResponse(StrictModel):
    class_id: str
    student_id: str
    amnesty_granted: bool
    amnesty_granted_by_id: Optional[str] = None
    amnesty_granted_at: Optional[datetime] = None
    charge_applied: bool
