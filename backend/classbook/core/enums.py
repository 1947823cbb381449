# backend/classbook/core/enums.py
"""
Core enums for the classbook scheduling engine.

Values are stored as plain strings in the database so the enums
compare equal to raw column values.
"""

from enum import Enum


class RoleName(str, Enum):
    """Roles a caller can act in."""

    TEACHER = "teacher"
    STUDENT = "student"


class ClassStatus(str, Enum):
    """Lifecycle of a class (template or materialized occurrence)."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class ParticipantStatus(str, Enum):
    """Lifecycle of one student's attendance in a class."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class RecurrenceFrequency(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class TriggerReason(str, Enum):
    """Business action that first required an occurrence to become durable."""

    CANCELLATION = "cancellation"
    REPORT = "report"
    ATTENDANCE = "attendance"
    STATUS_CHANGE = "status_change"


# Statuses that no longer hold a slot on the teacher's calendar
INACTIVE_CLASS_STATUSES = frozenset({ClassStatus.CANCELLED.value, ClassStatus.COMPLETED.value})
ACTIVE_PARTICIPANT_STATUSES = frozenset(
    {ParticipantStatus.PENDING.value, ParticipantStatus.CONFIRMED.value}
)
