# backend/classbook/models/cancellation_policy.py
"""Per-teacher cancellation policy."""

from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, Numeric, String
import ulid

from ..database import Base
from .types import TimestampMixin


class CancellationPolicy(TimestampMixin, Base):
    """
    Free-cancellation threshold and late-cancellation charge.

    At most one row per teacher has ``is_active`` set; when none exists the
    configured default policy applies.
    """

    __tablename__ = "cancellation_policies"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    teacher_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    hours_before_class = Column(Integer, nullable=False, default=24)
    charge_percentage = Column(Numeric(5, 2), nullable=False, default=50)
    allow_amnesty = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (Index("ix_cancellation_policies_teacher_active", "teacher_id", "is_active"),)
