"""Resolve an MCP caller from the access token passed as a tool argument."""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.token_auth import verify_access_token
from app.config import get_settings
from app.crud import crud_user

logger = logging.getLogger(__name__)


class AuthError(Exception):
    pass


async def resolve_user_id(db: AsyncSession, access_token: Optional[str]) -> int:
    """Return the verified, active caller's id or raise AuthError."""
    if not access_token:
        raise AuthError("access_token is required")
    user_id = verify_access_token(get_settings().AUTH_SECRET, access_token)
    if user_id is None:
        raise AuthError("Invalid or expired access token")
    user = await crud_user.get_active(db, user_id)
    if user is None:
        logger.info("MCP call with token for unknown or inactive user %d", user_id)
        raise AuthError("Unknown or inactive user")
    return user.id
