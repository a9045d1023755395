"""
Authentication dependencies for routes that need a logged-in user
"""
import logging
from typing import Optional
from fastapi import Depends, HTTPException, status, Request
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import User, UserRole
from ..services.auth import InvalidSessionToken, decode_session_token
from ..services.user_service import UserService

logger = logging.getLogger(__name__)


def extract_token(request: Request) -> Optional[str]:
    """
    Read the session token from `Authorization: Bearer <jwt>`, or from the
    bare `token` header sent by the web client.
    """
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    token = request.headers.get("token")
    return token.strip() if token else None


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Resolve the calling user from the session token.

    Raises:
        HTTPException: 401 if the token is missing, invalid, expired or
            points at a deleted user; 403 if the account is not active
    """
    token = extract_token(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication token"
        )

    try:
        claims = decode_session_token(token)
    except InvalidSessionToken as e:
        logger.debug(f"[Auth] Rejected session token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token"
        )

    user = UserService.get(db, claims.user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token"
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is not active"
        )
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    """Dependency to require the admin role"""
    if user.role != UserRole.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required"
        )
    return user
