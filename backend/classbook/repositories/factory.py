# backend/classbook/repositories/factory.py
"""
Repository Factory for classbook

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from .base_repository import BaseRepository

# Avoid circular imports
if TYPE_CHECKING:
    from .availability_repository import AvailabilityRepository
    from .cancellation_policy_repository import CancellationPolicyRepository
    from .class_template_repository import ClassTemplateRepository
    from .materialized_class_repository import MaterializedClassRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.
    """

    @staticmethod
    def create_base_repository(db: Session, model) -> BaseRepository:
        """
        Create a generic base repository for any model.

        Args:
            db: Database session
            model: SQLAlchemy model class

        Returns:
            BaseRepository instance
        """
        return BaseRepository(db, model)

    @staticmethod
    def create_class_template_repository(db: Session) -> "ClassTemplateRepository":
        from .class_template_repository import ClassTemplateRepository

        return ClassTemplateRepository(db)

    @staticmethod
    def create_materialized_class_repository(db: Session) -> "MaterializedClassRepository":
        from .materialized_class_repository import MaterializedClassRepository

        return MaterializedClassRepository(db)

    @staticmethod
    def create_availability_repository(db: Session) -> "AvailabilityRepository":
        """Create repository for working hours and blocks."""
        from .availability_repository import AvailabilityRepository

        return AvailabilityRepository(db)

    @staticmethod
    def create_cancellation_policy_repository(db: Session) -> "CancellationPolicyRepository":
        from .cancellation_policy_repository import CancellationPolicyRepository

        return CancellationPolicyRepository(db)
