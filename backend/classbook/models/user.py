# backend/classbook/models/user.py
"""
User model for the classbook scheduling engine.

Teachers and students share one table, differentiated by ``role``.
Authentication happens upstream; this row is the durable identity that
authorization checks are re-verified against.
"""

import logging

from sqlalchemy import Boolean, CheckConstraint, Column, String
from sqlalchemy.orm import relationship
import ulid

from ..database import Base
from .types import TimestampMixin

logger = logging.getLogger(__name__)


class User(TimestampMixin, Base):
    """
    A teacher or a student.

    Attributes:
        id: ULID primary key
        email: Unique email address
        full_name: Display name
        role: "teacher" or "student"
        timezone: IANA timezone used for working hours and wall-clock display
        has_financial_module: Teacher plan entitlement enabling cancellation charges
    """

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, index=True)
    timezone = Column(String(64), nullable=False, default="UTC")
    has_financial_module = Column(Boolean, nullable=False, default=False)

    templates = relationship(
        "ClassTemplate", back_populates="teacher", foreign_keys="ClassTemplate.teacher_id"
    )
    services = relationship("ClassService", back_populates="teacher")

    __table_args__ = (CheckConstraint("role IN ('teacher', 'student')", name="ck_users_role"),)

    @property
    def is_teacher(self) -> bool:
        return self.role == "teacher"

    @property
    def is_student(self) -> bool:
        return self.role == "student"

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"
