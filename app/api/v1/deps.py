"""FastAPI dependencies."""

from typing import Annotated, Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.token_auth import parse_bearer, verify_access_token
from app.config import get_settings
from app.crud import crud_user
from app.database import get_db
from app.exceptions import AuthenticationError


async def get_current_user_id(
    db: Annotated[AsyncSession, Depends(get_db)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> int:
    """Resolve the caller from a verified bearer token; never from the request body."""
    token = parse_bearer(authorization)
    if token is None:
        raise AuthenticationError("No authorization header")
    user_id = verify_access_token(get_settings().AUTH_SECRET, token)
    if user_id is None:
        raise AuthenticationError("Invalid or expired token")
    user = await crud_user.get_active(db, user_id)
    if user is None:
        raise AuthenticationError("Unknown or inactive user")
    return user.id


CurrentUserId = Annotated[int, Depends(get_current_user_id)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
