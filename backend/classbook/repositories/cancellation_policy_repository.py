# backend/classbook/repositories/cancellation_policy_repository.py
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.cancellation_policy import CancellationPolicy
from .base_repository import BaseRepository


class CancellationPolicyRepository(BaseRepository[CancellationPolicy]):
    def __init__(self, db: Session):
        super().__init__(db, CancellationPolicy)

    def get_active_for_teacher(self, teacher_id: str) -> Optional[CancellationPolicy]:
        """Most recent active policy; None means the default policy applies."""
        try:
            return (
                self.db.query(CancellationPolicy)
                .filter(
                    CancellationPolicy.teacher_id == teacher_id,
                    CancellationPolicy.is_active.is_(True),
                )
                .order_by(CancellationPolicy.created_at.desc())
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading cancellation policy for {teacher_id}: {str(e)}")
            raise RepositoryException("Failed to load cancellation policy") from e
