"""
Existence and ownership checks shared by every owned resource.
"""
from typing import Type, TypeVar

from sqlalchemy.orm import Session

from ..database import INT32_MAX
from ..errors import AuthorizationError, NotFoundError
from ..models.user import User

T = TypeVar("T")


def is_storable_id(resource_id: int) -> bool:
    """Ids outside the INTEGER range cannot exist and would overflow the driver."""
    return 0 < resource_id <= INT32_MAX


def get_or_404(db: Session, model: Type[T], resource_id: int, resource: str) -> T:
    """Load a row by primary key or raise NotFoundError."""
    if not is_storable_id(resource_id):
        raise NotFoundError(resource)
    instance = db.get(model, resource_id)
    if instance is None:
        raise NotFoundError(resource)
    return instance


def ensure_owner(instance, user: User, action: str = "delete", resource: str = "resource") -> None:
    """Raise AuthorizationError unless ``user`` created ``instance``.

    Call only after existence is confirmed so non-owners see 403, not 404.
    """
    if instance.user_id != user.id:
        raise AuthorizationError(f"Not authorized to {action} this {resource}")
