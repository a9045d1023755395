"""
Session token issuance and verification.

Tokens are stateless HS256 JWTs; holding a valid, unexpired, correctly
signed token is all a client needs for authenticated requests.
"""
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from jose import JWTError

from ...core.security import create_access_token, decode_access_token
from ...models import User


@dataclass(frozen=True)
class SessionClaims:
    user_id: int
    mobile_number: str
    role: str


class InvalidSessionToken(Exception):
    """Token is malformed, tampered with, expired or missing required claims."""


def create_session_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a session token bound to the user's id, mobile number and role.

    Args:
        user: Persisted user (id must be assigned)
        expires_delta: Optional lifetime; defaults to JWT_EXPIRES_IN (7 days)
    """
    return create_access_token(
        str(user.id),
        claims={
            "user_id": user.id,
            "mobile_number": user.mobile_number,
            "role": user.role,
        },
        expires_delta=expires_delta,
    )


def decode_session_token(token: str) -> SessionClaims:
    """
    Verify a session token and return its claims.

    Raises:
        InvalidSessionToken: If verification fails for any reason
    """
    try:
        payload = decode_access_token(token)
    except JWTError as e:
        raise InvalidSessionToken(str(e)) from e

    user_id = payload.get("user_id")
    mobile_number = payload.get("mobile_number")
    role = payload.get("role")
    if user_id is None or not mobile_number or not role:
        raise InvalidSessionToken("Missing session claims")

    return SessionClaims(user_id=int(user_id), mobile_number=mobile_number, role=role)
