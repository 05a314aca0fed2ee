from .auth import router as auth_router
from .sessions import router as sessions_router
from .artworks import router as artworks_router
from .posts import router as posts_router
from .modules import router as modules_router
from .health import router as health_router

__all__ = [
    "auth_router",
    "sessions_router",
    "artworks_router",
    "posts_router",
    "modules_router",
    "health_router",
]
