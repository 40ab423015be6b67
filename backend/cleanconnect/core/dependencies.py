"""
backend/cleanconnect/core/dependencies.py

Who is calling?

Access tokens are issued by the identity service. This module only verifies
them: signature and expiry (python-jose), revocation (Redis, see
core/blacklist.py), then loads the active User. Role guards sit on top of
`get_current_user` and answer 403.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Annotated
from uuid import UUID

from fastapi import Cookie, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cleanconnect.core.blacklist import is_token_blacklisted
from cleanconnect.core.config import settings
from cleanconnect.database.enums import UserRole
from cleanconnect.database.models import User
from cleanconnect.database.session import get_db

logger = logging.getLogger(__name__)

# Header is optional: browsers send the token as the access_token cookie instead
bearer_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


class TokenPayload(BaseModel):
    sub: UUID
    exp: int
    jti: str | None = None


def unauthorized(challenge: bool = False) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"} if challenge else None,
    )


def decode_access_token(token: str) -> TokenPayload:
    """Verify signature and expiry; raises 401 on any defect."""
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return TokenPayload(**claims)
    except (JWTError, ValueError) as e:
        logger.warning(f"[AUTH] Rejected token: {e}")
        raise unauthorized()


async def get_current_user(
    token_header: Annotated[str | None, Depends(bearer_scheme)] = None,
    token_cookie: Annotated[str | None, Cookie(alias="access_token")] = None,
    db: AsyncSession = Depends(get_db),
) -> User:
    token = token_header or token_cookie
    if token is None:
        raise unauthorized(challenge=True)

    payload = decode_access_token(token)
    if payload.jti and await is_token_blacklisted(payload.jti):
        logger.warning(f"[AUTH] Revoked token used: jti={payload.jti}")
        raise unauthorized()

    result = await db.execute(select(User).where(User.id == payload.sub))
    user = result.unique().scalar_one_or_none()
    if user is None or not user.is_active:
        logger.warning(f"[AUTH] Token subject {payload.sub} is unknown or inactive")
        raise unauthorized()
    return user


# ---------------------------------------------------
# Role guards
# ---------------------------------------------------
def require_roles(*roles: UserRole) -> Callable[..., Awaitable[User]]:
    """Dependency admitting only callers whose role is one of `roles`."""

    async def guard(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            logger.warning(
                f"[RBAC] User {user.id} ({user.role.value}) denied, needs one of "
                f"{[r.value for r in roles]}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied for role: {user.role.value}",
            )
        return user

    return guard


def get_current_user_with_role(role: UserRole) -> Callable[..., Awaitable[User]]:
    return require_roles(role)
