# backend/classbook/models/class_template.py
"""
Recurring class template and its participants.

A template stands for an indefinitely repeating class without persisting
its future occurrences. Occurrences are projected on demand by the template
expander and only become rows in ``classes`` when an action needs them to
be durable.
"""

from datetime import timedelta

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import ClassStatus, ParticipantStatus
from ..database import Base
from ..domain.recurrence import RecurrenceRule
from .types import TimestampMixin, UTCDateTime


class ClassTemplate(TimestampMixin, Base):
    """
    Recurrence definition plus the attributes every occurrence inherits.

    Exactly one termination mode is set: ``recurrence_end``,
    ``occurrence_count`` or ``is_infinite``.
    """

    __tablename__ = "class_templates"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    teacher_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(String(26), ForeignKey("class_services.id"), nullable=True)

    anchor_start = Column(UTCDateTime(), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    timezone = Column(String(64), nullable=False, default="UTC")

    # Recurrence rule
    frequency = Column(String(20), nullable=False)
    recurrence_end = Column(UTCDateTime(), nullable=True)
    occurrence_count = Column(Integer, nullable=True)
    is_infinite = Column(Boolean, nullable=False, default=False)

    is_group_class = Column(Boolean, nullable=False, default=False)
    is_experimental = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=ClassStatus.CONFIRMED.value)

    teacher = relationship("User", back_populates="templates", foreign_keys=[teacher_id])
    service = relationship("ClassService")
    participants = relationship(
        "TemplateParticipant",
        back_populates="template",
        cascade="all, delete-orphan",
        order_by="TemplateParticipant.student_id",
    )

    __table_args__ = (
        CheckConstraint(
            "frequency IN ('weekly', 'biweekly', 'monthly')",
            name="ck_class_templates_frequency",
        ),
        CheckConstraint(
            "(CASE WHEN recurrence_end IS NOT NULL THEN 1 ELSE 0 END)"
            " + (CASE WHEN occurrence_count IS NOT NULL THEN 1 ELSE 0 END)"
            " + (CASE WHEN is_infinite THEN 1 ELSE 0 END) = 1",
            name="ck_class_templates_single_termination",
        ),
        CheckConstraint("duration_minutes > 0", name="ck_class_templates_duration"),
        CheckConstraint(
            "occurrence_count IS NULL OR occurrence_count > 0",
            name="ck_class_templates_count",
        ),
    )

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.duration_minutes)

    @property
    def recurrence_rule(self) -> RecurrenceRule:
        return RecurrenceRule(
            frequency=self.frequency,
            end=self.recurrence_end,
            count=self.occurrence_count,
            is_infinite=bool(self.is_infinite),
        )

    def __repr__(self) -> str:
        return f"<ClassTemplate {self.id} {self.frequency} from {self.anchor_start}>"


class TemplateParticipant(Base):
    """A student attached to a template with their own status."""

    __tablename__ = "template_participants"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    template_id = Column(
        String(26), ForeignKey("class_templates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=ParticipantStatus.PENDING.value)

    template = relationship("ClassTemplate", back_populates="participants")
    student = relationship("User")

    __table_args__ = (
        UniqueConstraint("template_id", "student_id", name="uq_template_participants_student"),
    )
