"""
Content-addressable object store for uploaded images.

Bytes go in, a retrieval URL comes out. Files are named by the SHA-256 of
their content so identical uploads share one object.
"""
import hashlib
import os
from functools import lru_cache
from pathlib import Path

from .config import get_settings
from .errors import StorageError
from .logging_config import get_logger

logger = get_logger("storage")

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}


class LocalObjectStore:
    """Stores objects on the local filesystem under ``root``."""

    def __init__(self, root: str, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def put(self, data: bytes, filename: str = "") -> str:
        """Store bytes and return the URL they can be fetched from."""
        extension = Path(filename).suffix.lower()
        if extension not in ALLOWED_EXTENSIONS:
            extension = ".bin"

        digest = hashlib.sha256(data).hexdigest()
        name = f"{digest}{extension}"
        path = self.root / name

        try:
            self.root.mkdir(parents=True, exist_ok=True)
            if not path.exists():
                tmp_path = path.with_suffix(path.suffix + ".tmp")
                tmp_path.write_bytes(data)
                os.replace(tmp_path, path)
        except OSError as e:
            logger.error("Object store write failed", error=e, path=str(path))
            raise StorageError("Failed to store upload") from e

        logger.info("Stored object", name=name, size=len(data))
        return f"{self.base_url}/{name}"


@lru_cache()
def get_object_store() -> LocalObjectStore:
    """FastAPI dependency returning the configured store."""
    settings = get_settings()
    return LocalObjectStore(settings.media_root, settings.media_url)
