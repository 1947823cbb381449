# backend/classbook/routes/v1/common.py
"""Helpers shared by the v1 routers."""

import logging
from typing import NoReturn

from fastapi import HTTPException, status

from ...core.exceptions import DomainException

logger = logging.getLogger(__name__)


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if exc.status_code >= 500:
        logger.error(f"Service failure {exc.code}: {exc.message}", exc_info=exc)
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
