from .user import User
from .session import Session, SessionAttendee
from .artwork import Artwork, Like, Comment
from .post import Post
from .module import Module, Progress

__all__ = [
    "User",
    "Session",
    "SessionAttendee",
    "Artwork",
    "Like",
    "Comment",
    "Post",
    "Module",
    "Progress",
]
