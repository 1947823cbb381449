"""
Database models for the classbook scheduling engine.

- User: teachers and students
- ClassService: priced services
- ClassTemplate / TemplateParticipant: recurring class definitions
- MaterializedClass / MaterializedParticipant: durable class records
- WorkingHours / AvailabilityBlock: teacher availability inputs
- CancellationPolicy: per-teacher cancellation terms
"""

from .availability import AvailabilityBlock, WorkingHours
from .cancellation_policy import CancellationPolicy
from .class_service import ClassService
from .class_template import ClassTemplate, TemplateParticipant
from .materialized_class import (
    OCCURRENCE_UNIQUE_CONSTRAINT,
    MaterializedClass,
    MaterializedParticipant,
)
from .user import User

__all__ = [
    "AvailabilityBlock",
    "CancellationPolicy",
    "ClassService",
    "ClassTemplate",
    "MaterializedClass",
    "MaterializedParticipant",
    "OCCURRENCE_UNIQUE_CONSTRAINT",
    "TemplateParticipant",
    "User",
    "WorkingHours",
]
