from .auth import UserCreate, UserLogin
from .sessions import SessionCreate
from .content import CommentCreate, PostCreate, ProgressUpdate

__all__ = [
    "UserCreate", "UserLogin",
    "SessionCreate",
    "CommentCreate", "PostCreate", "ProgressUpdate",
]
