"""
Authentication routes for sign-up, sign-in and the current user.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import create_access_token, get_password_hash, get_required_user, verify_password
from ..config import get_settings
from ..database import atomic, get_db
from ..errors import ConflictError, ErrorCode, ValidationError
from ..limiter import limiter
from ..logging_config import api_logger
from ..models.user import User
from ..schemas.auth import UserCreate, UserLogin

settings = get_settings()

router = APIRouter(prefix="/api/auth", tags=["auth"])


def user_to_dict(user: User) -> dict:
    """Public view of a user; never includes the password hash."""
    return {
        "id": user.id,
        "email": user.email,
        "name": user.display_name,
        "createdAt": user.created_at.isoformat() if user.created_at else None,
    }


@router.post("/signup", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.signup_rate_limit)
def signup(request: Request, user_data: UserCreate, db: Session = Depends(get_db)):
    """Register a new account and return a token for it."""
    email = user_data.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("User already exists")

    with atomic(db, "signup"):
        user = User(
            email=email,
            hashed_password=get_password_hash(user_data.password),
            display_name=user_data.name.strip(),
        )
        db.add(user)
        try:
            db.flush()
        except IntegrityError as e:
            raise ConflictError("User already exists") from e

    db.refresh(user)
    api_logger.info("User signed up", user_id=user.id)
    return {"token": create_access_token(user.id), "user": user_to_dict(user)}


@router.post("/signin")
@limiter.limit(settings.signin_rate_limit)
def signin(request: Request, credentials: UserLogin, db: Session = Depends(get_db)):
    """Exchange email and password for a token."""
    user = db.query(User).filter(User.email == credentials.email.lower()).first()
    if not user or not verify_password(credentials.password, user.hashed_password):
        raise ValidationError("Invalid credentials", code=ErrorCode.INVALID_CREDENTIALS)

    return {"token": create_access_token(user.id), "user": user_to_dict(user)}


@router.get("/me")
def get_me(current_user: User = Depends(get_required_user)):
    """Get current authenticated user."""
    return user_to_dict(current_user)
