from datetime import datetime, timedelta, timezone
from typing import Optional, Any, Dict
from jose import jwt
from passlib.context import CryptContext
from .config import settings

# Use PBKDF2-SHA256 (no 72-byte limit like bcrypt)
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def create_access_token(
    subject: str,
    claims: Optional[Dict[str, Any]] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed JWT access token.

    Args:
        subject: Value for the sub claim (user id as string)
        claims: Extra claims merged into the payload
        expires_delta: Token lifetime; defaults to JWT_EXPIRES_IN
    """
    if expires_delta is None:
        expires_delta = settings.session_token_lifetime
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = dict(claims or {})
    payload.update({
        "sub": subject,
        "iat": now,
        "exp": now + expires_delta,
    })
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify signature and expiry of a JWT and return its claims.

    Raises:
        jwt.ExpiredSignatureError: If token is expired
        jwt.JWTError: If token is invalid
    """
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.ALGORITHM])
