"""
HeartSpace API - FastAPI application entry point.
"""
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .config import get_settings
from .database import engine, Base
from .limiter import limiter
from .logging_config import api_logger
from .middleware import SecurityHeadersMiddleware, RequestLoggingMiddleware
from .responses import register_exception_handlers
from .routes import (
    auth_router,
    sessions_router,
    artworks_router,
    posts_router,
    modules_router,
    health_router,
)
from . import models  # noqa: F401  (registers every table on Base.metadata)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup (use migrations in production)."""
    Base.metadata.create_all(bind=engine)
    api_logger.info("HeartSpace API started", environment=settings.environment)
    yield
    api_logger.info("HeartSpace API stopped")


app = FastAPI(
    title="HeartSpace API",
    description="Community backend: artworks, posts, learning modules and bookable sessions",
    version="1.0.0",
    docs_url="/api/docs" if settings.debug else None,
    redoc_url="/api/redoc" if settings.debug else None,
    lifespan=lifespan,
)

app.state.limiter = limiter
register_exception_handlers(app)

# Request logging wraps everything below it, so its id is set first
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
    max_age=3600,
)

# Routes
app.include_router(auth_router)
app.include_router(sessions_router)
app.include_router(artworks_router)
app.include_router(posts_router)
app.include_router(modules_router)
app.include_router(health_router)

# Uploaded artwork images
Path(settings.media_root).mkdir(parents=True, exist_ok=True)
app.mount(settings.media_url, StaticFiles(directory=settings.media_root), name="media")


@app.get("/")
def root():
    """Root endpoint points at the API docs."""
    return {
        "message": "HeartSpace API",
        "docs": "/api/docs" if settings.debug else "Disabled in production",
    }
