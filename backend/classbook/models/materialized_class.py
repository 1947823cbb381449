# backend/classbook/models/materialized_class.py
"""
Durable class records.

A row here is either a one-off class or an occurrence of a template that
was materialized the first time a business action needed it. Participants
are copied from the template, never referenced, so the record survives
later template edits.

Invariant: at most one row per (template_id, occurrence_start), enforced
by ``uq_classes_template_occurrence``.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import ACTIVE_PARTICIPANT_STATUSES, ClassStatus, ParticipantStatus
from ..database import Base
from .types import TimestampMixin, UTCDateTime

OCCURRENCE_UNIQUE_CONSTRAINT = "uq_classes_template_occurrence"


class MaterializedClass(TimestampMixin, Base):
    __tablename__ = "classes"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    teacher_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(String(26), ForeignKey("class_services.id"), nullable=True)

    # Back-reference to the originating template (null for one-off classes)
    template_id = Column(String(26), ForeignKey("class_templates.id"), nullable=True)
    occurrence_start = Column(UTCDateTime(), nullable=False)
    occurrence_end = Column(UTCDateTime(), nullable=False)
    duration_minutes = Column(Integer, nullable=False)

    is_group_class = Column(Boolean, nullable=False, default=False)
    is_experimental = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=ClassStatus.PENDING.value, index=True)

    # Materialization audit
    trigger_reason = Column(String(32), nullable=True)
    materialized_by_id = Column(String(26), ForeignKey("users.id"), nullable=True)

    # Cancellation tracking
    cancelled_at = Column(UTCDateTime(), nullable=True)
    cancelled_by_id = Column(String(26), ForeignKey("users.id"), nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    charge_applied = Column(Boolean, nullable=False, default=False)
    charge_amount = Column(Numeric(10, 2), nullable=True)

    template = relationship("ClassTemplate")
    service = relationship("ClassService")
    participants = relationship(
        "MaterializedParticipant",
        back_populates="materialized_class",
        cascade="all, delete-orphan",
        order_by="MaterializedParticipant.student_id",
    )

    __table_args__ = (
        UniqueConstraint("template_id", "occurrence_start", name=OCCURRENCE_UNIQUE_CONSTRAINT),
        Index("ix_classes_teacher_start", "teacher_id", "occurrence_start"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled', 'completed')",
            name="ck_classes_status",
        ),
        CheckConstraint("occurrence_end > occurrence_start", name="ck_classes_interval"),
    )

    @property
    def active_participant_count(self) -> int:
        return sum(1 for p in self.participants if p.status in ACTIVE_PARTICIPANT_STATUSES)

    def __repr__(self) -> str:
        return f"<MaterializedClass {self.id} {self.occurrence_start} {self.status}>"


class MaterializedParticipant(Base):
    """Participant row copied 1:1 from the template at materialization time."""

    __tablename__ = "class_participants"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    class_id = Column(
        String(26), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=ParticipantStatus.PENDING.value)

    cancelled_at = Column(UTCDateTime(), nullable=True)
    charge_applied = Column(Boolean, nullable=False, default=False)
    charge_amount = Column(Numeric(10, 2), nullable=True)
    amnesty_granted = Column(Boolean, nullable=False, default=False)
    amnesty_granted_by_id = Column(String(26), ForeignKey("users.id"), nullable=True)
    amnesty_granted_at = Column(UTCDateTime(), nullable=True)

    materialized_class = relationship("MaterializedClass", back_populates="participants")

    __table_args__ = (
        UniqueConstraint("class_id", "student_id", name="uq_class_participants_student"),
    )
