# backend/classbook/models/availability.py
"""
Availability models.

Classes:
    WorkingHours: Recurring weekly working window for a teacher
    AvailabilityBlock: One-off blocked interval (vacation, appointment)
"""

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Index, Integer, String, Time
import ulid

from ..core.config import settings
from ..database import Base
from .types import TimestampMixin, UTCDateTime


class WorkingHours(TimestampMixin, Base):
    """Weekly working window; day_of_week follows Python's weekday() (0=Monday)."""

    __tablename__ = "working_hours"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    teacher_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    _table_constraints: list = [
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_working_hours_day"),
        Index("ix_working_hours_teacher_day", "teacher_id", "day_of_week"),
    ]

    # An end of 00:00 closes the window at midnight; SQLite stores TIME as text
    if not settings.is_sqlite:
        _table_constraints.append(
            CheckConstraint(
                "CASE "
                "WHEN end_time = '00:00:00' AND start_time <> '00:00:00' THEN TRUE "
                "ELSE start_time < end_time "
                "END",
                name="ck_working_hours_range",
            )
        )

    __table_args__ = tuple(_table_constraints)


class AvailabilityBlock(TimestampMixin, Base):
    """Teacher block-out interval, half-open [start, end)."""

    __tablename__ = "availability_blocks"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    teacher_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    start = Column(UTCDateTime(), nullable=False)
    end = Column(UTCDateTime(), nullable=False)
    title = Column(String(255), nullable=True)

    __table_args__ = (
        CheckConstraint('"end" > start', name="ck_availability_blocks_range"),
        Index("ix_availability_blocks_teacher_range", "teacher_id", "start", "end"),
    )

    def __repr__(self) -> str:
        return f"<AvailabilityBlock {self.start} - {self.end} {self.title or ''}>"
