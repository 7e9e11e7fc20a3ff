# tasks_api/auth.py

"""
Bearer-token identity for the task API.

Tokens are issued by the identity provider and signed with the shared
``JWT_SECRET``. The API trusts a verified, unexpired token and reads the
caller's id from the ``id`` claim (``sub`` is accepted as well) and the role
from ``role``.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError

from tasks_api.config import Settings, get_settings
from tasks_api.schemas import CurrentUser, UserRole

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def create_access_token(
    user_id: str,
    settings: Settings,
    role: UserRole = UserRole.USER,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create JWT access token"""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode = {
        "id": user_id,
        "role": UserRole(role).value,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> CurrentUser:
    """Decode and validate JWT token"""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        user_id = payload.get("id") or payload.get("sub")
        if not user_id:
            raise JWTError("token carries no user id")
        return CurrentUser(id=str(user_id), role=payload.get("role") or UserRole.USER)
    except (JWTError, ValidationError) as e:
        logger.warning("Auth error: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized: token invalid",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    """
    FastAPI dependency resolving the caller from the Authorization header
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized: token missing",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return decode_token(credentials.credentials, settings)


async def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if current_user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied: admins only",
        )
    return current_user
