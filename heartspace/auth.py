"""
Authentication utilities for JWT tokens and password hashing.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from .database import get_db
from .errors import InvalidTokenError, MissingTokenError
from .models.user import User
from .config import get_settings

settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/signin", auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password for storage."""
    return pwd_context.hash(password)


def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token for a user.

    The lifetime is absolute from issuance; there is no refresh flow.
    """
    if expires_delta is None:
        expires_delta = settings.access_token_lifetime
    to_encode = {
        "sub": str(user_id),  # JWT sub claim must be a string
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_token(token: str) -> Optional[int]:
    """Return the user id carried by a token, or None if it is unusable."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None

    try:
        return int(payload.get("sub"))
    except (ValueError, TypeError):
        return None


def get_required_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to a user.

    No token is a 401; a bad, expired or orphaned token is a 403.
    """
    if not token:
        raise MissingTokenError()

    user_id = decode_token(token)
    if user_id is None:
        raise InvalidTokenError()

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise InvalidTokenError()
    return user
