# backend/classbook/api/dependencies/__init__.py
"""
Central export point for all dependencies.
"""

from .auth import get_current_user
from .database import get_db
from .services import (
    get_availability_service,
    get_calendar_service,
    get_cancellation_service,
    get_clock,
    get_materialization_service,
    get_template_service,
)

__all__ = [
    # Auth
    "get_current_user",
    # Database
    "get_db",
    # Services
    "get_availability_service",
    "get_calendar_service",
    "get_cancellation_service",
    "get_clock",
    "get_materialization_service",
    "get_template_service",
]
