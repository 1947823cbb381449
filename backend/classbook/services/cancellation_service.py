# backend/classbook/services/cancellation_service.py
"""
Cancellation Service for classbook

Previews and records cancellations of class occurrences, virtual or
materialized, and lets teachers waive late-cancellation charges.

Virtual occurrences are materialized (trigger ``cancellation``) before any
write so the cancellation lands on the durable record. The charge itself
comes from the pure policy evaluator.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.enums import (
    ACTIVE_PARTICIPANT_STATUSES,
    INACTIVE_CLASS_STATUSES,
    ClassStatus,
    ParticipantStatus,
    RoleName,
    TriggerReason,
)
from ..core.exceptions import (
    AmnestyNotAllowed,
    ClassNotCancellable,
    ClassNotFound,
    NotAParticipant,
    NotFoundException,
    NotOwner,
)
from ..domain.occurrence import ClassRef, OccurrenceKey, OccurrenceRef
from ..models.class_service import ClassService
from ..models.materialized_class import MaterializedClass, MaterializedParticipant
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .cancellation_policy_engine import ChargeDecision, PolicyTerms, evaluate_cancellation
from .materialization_service import MaterializationService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CancellationResult:
    materialized_class: MaterializedClass
    decision: ChargeDecision
    cancelled_student_ids: Tuple[str, ...]
    class_cancelled: bool
    materialization_outcome: Optional[str] = None


@dataclass(frozen=True)
class _Target:
    """What a cancellation acts on, before any write."""

    start: datetime
    teacher_id: str
    service_id: Optional[str]
    class_id: Optional[str]
    status: str
    participant_status: Optional[str]


class CancellationService(BaseService):
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        materialization_service: Optional[MaterializationService] = None,
    ):
        super().__init__(db, clock)
        self.materialization_service = materialization_service or MaterializationService(db, self.clock)
        self.class_repository = RepositoryFactory.create_materialized_class_repository(db)
        self.policy_repository = RepositoryFactory.create_cancellation_policy_repository(db)
        self.user_repository = RepositoryFactory.create_base_repository(db, User)
        self.service_repository = RepositoryFactory.create_base_repository(db, ClassService)

    # Lookups

    def get_class(self, class_id: str) -> MaterializedClass:
        row = self.class_repository.get_by_id(class_id)
        if row is None:
            raise ClassNotFound(class_id)
        return row

    def resolve_policy(self, teacher_id: str) -> PolicyTerms:
        """Active policy of the teacher, or the configured default."""
        return PolicyTerms.from_policy(self.policy_repository.get_active_for_teacher(teacher_id))

    def _service_price(self, service_id: Optional[str]) -> Optional[Decimal]:
        """Price of the class's service; missing or zero prices count as unpriced."""
        if not service_id:
            return None
        service = self.service_repository.get_by_id(service_id)
        if service is None or not service.price:
            return None
        price = Decimal(str(service.price))
        return price if price > 0 else None

    def _has_financial_module(self, teacher_id: str) -> bool:
        teacher = self.user_repository.get_by_id(teacher_id)
        return bool(teacher is not None and teacher.has_financial_module)

    # Authorization

    def authorize_class(self, row: MaterializedClass, caller: User) -> None:
        if caller.role == RoleName.STUDENT.value:
            if self.class_repository.get_participant(row.id, caller.id) is not None:
                return
            self._deny("not_a_participant", row.id, caller)
            raise NotAParticipant(row.template_id or row.id, caller.id)
        if caller.role == RoleName.TEACHER.value and row.teacher_id == caller.id:
            return
        self._deny("not_owner", row.id, caller)
        raise NotOwner(row.id, caller.id)

    def _deny(self, reason: str, class_id: str, caller: User) -> None:
        prometheus_metrics.inc_authorization_denied(reason)
        self.log_security_event(
            "cancellation_denied", reason=reason, class_id=class_id, user_id=caller.id
        )

    # Targets

    def _target_for_class(self, row: MaterializedClass, caller: User) -> _Target:
        participant_status = None
        if caller.role == RoleName.STUDENT.value:
            participant = self.class_repository.get_participant(row.id, caller.id)
            participant_status = participant.status if participant is not None else None
        return _Target(
            start=row.occurrence_start,
            teacher_id=row.teacher_id,
            service_id=row.service_id,
            class_id=row.id,
            status=row.status,
            participant_status=participant_status,
        )

    def _target(self, ref: OccurrenceRef, caller: User) -> _Target:
        if isinstance(ref, ClassRef):
            row = self.get_class(ref.class_id)
            self.authorize_class(row, caller)
            return self._target_for_class(row, caller)

        template = self.materialization_service.get_template(ref.template_id)
        self.materialization_service.authorize(template, caller)
        occurrence = self.materialization_service.resolve_occurrence(template, ref.start)
        existing = self.class_repository.find_by_occurrence(template.id, occurrence.start)
        if existing is not None:
            return self._target_for_class(existing, caller)

        participant_status = None
        if caller.role == RoleName.STUDENT.value:
            participant_status = next(
                (p.status for p in occurrence.participants if p.student_id == caller.id), None
            )
        return _Target(
            start=occurrence.start,
            teacher_id=occurrence.teacher_id,
            service_id=occurrence.service_id,
            class_id=None,
            status=occurrence.status,
            participant_status=participant_status,
        )

    @staticmethod
    def _ensure_cancellable(target: _Target, reference: str) -> None:
        if target.status in INACTIVE_CLASS_STATUSES:
            raise ClassNotCancellable(reference, target.status)
        if target.participant_status is not None and (
            target.participant_status not in ACTIVE_PARTICIPANT_STATUSES
        ):
            raise ClassNotCancellable(reference, target.participant_status)

    def _evaluate(self, target: _Target, caller: User) -> ChargeDecision:
        decision = evaluate_cancellation(
            target.start,
            caller.role,
            self.resolve_policy(target.teacher_id),
            self._has_financial_module(target.teacher_id),
            self._service_price(target.service_id),
            clock=self.clock,
        )
        prometheus_metrics.inc_cancellation_decision(caller.role, decision.is_chargeable)
        return decision

    # Operations

    @BaseService.measure_operation("preview_cancellation")
    def preview(self, ref: OccurrenceRef, caller: User) -> ChargeDecision:
        """Charge decision for ``caller`` cancelling now; nothing is written."""
        target = self._target(ref, caller)
        self._ensure_cancellable(target, target.class_id or _ref_label(ref))
        return self._evaluate(target, caller)

    @BaseService.measure_operation("cancel")
    def cancel(self, ref: OccurrenceRef, caller: User, reason: Optional[str] = None) -> CancellationResult:
        """
        Cancel an occurrence for ``caller``.

        A teacher cancels the whole class for everyone at no charge. A
        student cancels their own participation and carries the charge the
        policy decides; the class is cancelled once nobody active remains.
        """
        outcome: Optional[str] = None
        if isinstance(ref, OccurrenceKey):
            # Validate before materializing so rejected requests leave no row behind
            self._ensure_cancellable(self._target(ref, caller), _ref_label(ref))
            result = self.materialization_service.materialize(
                ref.template_id, ref.start, caller, TriggerReason.CANCELLATION
            )
            row, outcome = result.materialized_class, result.outcome
        else:
            row = self.get_class(ref.class_id)
        self.authorize_class(row, caller)

        target = self._target_for_class(row, caller)
        self._ensure_cancellable(target, row.id)
        decision = self._evaluate(target, caller)
        now = self.clock.now()

        with self.transaction():
            if caller.role == RoleName.TEACHER.value:
                cancelled = self._cancel_whole_class(row, caller, reason, now)
            else:
                cancelled = self._cancel_participation(row, caller, reason, decision, now)
            self.class_repository.flush()

        class_cancelled = row.status == ClassStatus.CANCELLED.value
        self.log_operation(
            "cancel",
            class_id=row.id,
            user_id=caller.id,
            role=caller.role,
            chargeable=decision.is_chargeable,
            amount=str(decision.amount),
            class_cancelled=class_cancelled,
        )
        return CancellationResult(
            materialized_class=row,
            decision=decision,
            cancelled_student_ids=cancelled,
            class_cancelled=class_cancelled,
            materialization_outcome=outcome,
        )

    def _cancel_whole_class(
        self, row: MaterializedClass, caller: User, reason: Optional[str], now: datetime
    ) -> Tuple[str, ...]:
        cancelled = []
        for participant in row.participants:
            if participant.status in ACTIVE_PARTICIPANT_STATUSES:
                participant.status = ParticipantStatus.CANCELLED.value
                participant.cancelled_at = now
                cancelled.append(participant.student_id)
        self._mark_class_cancelled(row, caller, reason, now)
        return tuple(cancelled)

    def _cancel_participation(
        self,
        row: MaterializedClass,
        caller: User,
        reason: Optional[str],
        decision: ChargeDecision,
        now: datetime,
    ) -> Tuple[str, ...]:
        participant = next(p for p in row.participants if p.student_id == caller.id)
        participant.status = ParticipantStatus.CANCELLED.value
        participant.cancelled_at = now
        participant.charge_applied = decision.is_chargeable
        participant.charge_amount = decision.amount if decision.is_chargeable else None

        if row.active_participant_count == 0:
            self._mark_class_cancelled(row, caller, reason, now)
        _sync_class_charge(row)
        return (caller.id,)

    @staticmethod
    def _mark_class_cancelled(
        row: MaterializedClass, caller: User, reason: Optional[str], now: datetime
    ) -> None:
        row.status = ClassStatus.CANCELLED.value
        row.cancelled_at = now
        row.cancelled_by_id = caller.id
        row.cancellation_reason = reason

    @BaseService.measure_operation("grant_amnesty")
    def grant_amnesty(self, class_id: str, student_id: str, teacher: User) -> MaterializedParticipant:
        """Waive a student's late-cancellation charge; owner only."""
        row = self.get_class(class_id)
        if teacher.role != RoleName.TEACHER.value or row.teacher_id != teacher.id:
            self._deny("not_owner", row.id, teacher)
            raise NotOwner(row.id, teacher.id)

        participant = self.class_repository.get_participant(class_id, student_id)
        if participant is None:
            raise NotFoundException(
                message="This student is not part of the class",
                code="PARTICIPANT_NOT_FOUND",
                details={"class_id": class_id, "student_id": student_id},
            )
        if participant.amnesty_granted:
            raise AmnestyNotAllowed(class_id, "already_granted")
        if not self.resolve_policy(row.teacher_id).allow_amnesty:
            raise AmnestyNotAllowed(class_id, "policy_disallows_amnesty")
        if not participant.charge_applied:
            raise AmnestyNotAllowed(class_id, "no_charge_applied")

        with self.transaction():
            participant.amnesty_granted = True
            participant.amnesty_granted_by_id = teacher.id
            participant.amnesty_granted_at = self.clock.now()
            participant.charge_applied = False
            participant.charge_amount = None
            _sync_class_charge(row)
            self.class_repository.flush()

        self.log_operation("grant_amnesty", class_id=class_id, student_id=student_id, teacher_id=teacher.id)
        return participant


def _sync_class_charge(row: MaterializedClass) -> None:
    charged = [p.charge_amount for p in row.participants if p.charge_applied and p.charge_amount is not None]
    row.charge_applied = bool(charged)
    row.charge_amount = sum(charged, Decimal("0.00")) if charged else None


def _ref_label(ref: OccurrenceRef) -> str:
    if isinstance(ref, ClassRef):
        return ref.class_id
    return f"{ref.template_id}@{ref.start.isoformat()}"
