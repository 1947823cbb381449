# backend/classbook/api/dependencies/auth.py
"""
Caller identity.

Authentication happens upstream; the gateway forwards the authenticated
user id in the ``X-User-Id`` header. The id is resolved against the users
table on every request so role and ownership checks see durable state.
"""

import logging
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from ...core.exceptions import UnauthorizedException
from ...models.user import User
from ...repositories.factory import RepositoryFactory
from .database import get_db

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"


def get_current_user(
    x_user_id: Optional[str] = Header(default=None, alias=USER_ID_HEADER),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the calling user.

    Raises:
        HTTPException: 401 when the header is missing or names no user
    """
    if not x_user_id:
        raise UnauthorizedException(
            message="Authentication required", code="AUTHENTICATION_REQUIRED"
        ).to_http_exception()

    user = RepositoryFactory.create_base_repository(db, User).get_by_id(x_user_id)
    if user is None:
        logger.warning("Unknown user id in identity header", extra={"user_id": x_user_id})
        raise UnauthorizedException(
            message="Authentication required", code="UNKNOWN_USER"
        ).to_http_exception()
    return user
