# backend/classbook/repositories/availability_repository.py
"""Working hours and block-out intervals for teachers."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.availability import AvailabilityBlock, WorkingHours
from .base_repository import BaseRepository


class AvailabilityRepository(BaseRepository[WorkingHours]):
    def __init__(self, db: Session):
        super().__init__(db, WorkingHours)

    def get_working_hours(self, teacher_id: str) -> List[WorkingHours]:
        query = (
            self.db.query(WorkingHours)
            .filter(WorkingHours.teacher_id == teacher_id)
            .order_by(WorkingHours.day_of_week, WorkingHours.start_time)
        )
        return self._execute_query(query)

    def get_blocks_overlapping(
        self, teacher_id: str, start: datetime, end: Optional[datetime]
    ) -> List[AvailabilityBlock]:
        """Blocks intersecting ``[start, end)``; touching blocks are excluded."""
        query = self.db.query(AvailabilityBlock).filter(
            AvailabilityBlock.teacher_id == teacher_id,
            AvailabilityBlock.end > start,
        )
        if end is not None:
            query = query.filter(AvailabilityBlock.start < end)
        return self._execute_query(query.order_by(AvailabilityBlock.start))
