"""
API dependencies
"""

import uuid
from typing import Optional

from fastapi import Depends, Request, Security
from fastapi.security import OAuth2PasswordBearer
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from push_engine.core.database import get_db
from push_engine.core.exceptions import UnauthenticatedError
from push_engine.core.security import decode_token
from push_engine.domains.notifications import NotificationsFacade
from push_engine.domains.notifications.channels import PushClients
from push_engine.models import User

oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


async def get_current_user_optional(
    token: Optional[str] = Security(oauth2_scheme_optional),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """
    Get current user from JWT token, returns None if not authenticated

    Args:
        token: JWT access token (optional)
        db: Database session

    Returns:
        Current user or None if not authenticated
    """
    if token is None:
        return None

    payload = decode_token(token)
    if payload is None:
        return None

    user_id = payload.get("sub")
    if user_id is None:
        return None

    try:
        parsed_id = uuid.UUID(str(user_id))
    except ValueError:
        logger.debug(f"Token subject is not a user id: {user_id}")
        return None

    result = await db.execute(select(User).where(User.id == parsed_id))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        return None
    return user


async def get_current_user(
    user: Optional[User] = Depends(get_current_user_optional),
) -> User:
    """Same as ``get_current_user_optional`` but rejects anonymous callers."""
    if user is None:
        raise UnauthenticatedError("Could not validate credentials")
    return user


def get_push_clients(request: Request) -> PushClients:
    """Provider clients built once at application startup."""
    return request.app.state.push_clients


def get_notifications_facade(
    db: AsyncSession = Depends(get_db),
    clients: PushClients = Depends(get_push_clients),
) -> NotificationsFacade:
    """
    Provide NotificationsFacade instance for request-scoped operations.
    """
    return NotificationsFacade(db, clients=clients)
