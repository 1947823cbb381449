# backend/classbook/repositories/__init__.py
"""
Repository Pattern Implementation for classbook

Key Components:
- BaseRepository: Foundation for all repositories with generic CRUD operations
- RepositoryFactory: Factory for creating repository instances
- ClassTemplateRepository: Templates with eager-loaded participants
- MaterializedClassRepository: Occurrence lookups and participant copies
- AvailabilityRepository: Working hours and block-out intervals
- CancellationPolicyRepository: Active policy per teacher

Usage:
    from classbook.repositories import RepositoryFactory

    repository = RepositoryFactory.create_materialized_class_repository(db)
    existing = repository.find_by_occurrence(template_id, start)
"""

from .availability_repository import AvailabilityRepository
from .base_repository import BaseRepository
from .cancellation_policy_repository import CancellationPolicyRepository
from .class_template_repository import ClassTemplateRepository
from .factory import RepositoryFactory
from .materialized_class_repository import MaterializedClassRepository

__all__ = [
    "AvailabilityRepository",
    "BaseRepository",
    "CancellationPolicyRepository",
    "ClassTemplateRepository",
    "MaterializedClassRepository",
    "RepositoryFactory",
]
