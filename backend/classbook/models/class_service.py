# backend/classbook/models/class_service.py
"""
Priced service a teacher offers (e.g. "60 min conversation class").

Late-cancellation charges are a percentage of the service price.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship
import ulid

from ..database import Base
from .types import TimestampMixin


class ClassService(TimestampMixin, Base):
    __tablename__ = "class_services"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    teacher_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=60)
    is_active = Column(Boolean, nullable=False, default=True)

    teacher = relationship("User", back_populates="services")

    def __repr__(self) -> str:
        return f"<ClassService {self.name} {self.price}>"
