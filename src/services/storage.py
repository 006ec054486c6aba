"""Photo storage backed by a local directory served under /storage/photos."""

import logging
import time
from pathlib import Path
from urllib.parse import urlparse

from src.config import get_settings

logger = logging.getLogger(__name__)

PHOTOS_SEGMENT = "/photos/"

ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "webp", "heic", "heif", "gif"}


class StorageError(Exception):
    """Raised when a photo cannot be stored or removed."""


def key_from_url(photo_url: str) -> str:
    """Derive the storage key from a public photo URL.

    "https://host/storage/photos/12/1700000000000.jpg" -> "12/1700000000000.jpg".
    Returns an empty string when the URL does not point into the photo bucket.
    """
    try:
        path = urlparse(photo_url).path
    except ValueError:
        logger.warning(f"Failed to parse photo URL: {photo_url}")
        return ""
    _, sep, key = path.partition(PHOTOS_SEGMENT)
    if not sep or not key:
        logger.warning(f"Invalid photo URL format: {photo_url}")
        return ""
    return key


class PhotoStorage:
    """Stores bottle photos under `{user_id}/{timestamp}.{ext}` keys."""

    def __init__(self, root: str | Path | None = None, public_url: str | None = None) -> None:
        settings = get_settings()
        self.root = Path(root or settings.photo_storage_dir)
        self.public_url = (public_url or settings.photos_public_url).rstrip("/")

    @staticmethod
    def build_key(user_id: int, filename: str | None) -> str:
        """Build a storage key from the uploader and the original file name."""
        ext = (filename or "").rsplit(".", 1)[-1].lower() if filename and "." in filename else ""
        if ext not in ALLOWED_EXTENSIONS:
            ext = "jpg"
        return f"{user_id}/{int(time.time() * 1000)}.{ext}"

    def get_public_url(self, key: str) -> str:
        """Public URL for a stored key."""
        return f"{self.public_url}/{key}"

    def _path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root.resolve()):
            raise StorageError(f"Invalid storage key: {key}")
        return path

    def upload(self, user_id: int, data: bytes, filename: str | None = None) -> str:
        """Store photo bytes and return their public URL."""
        key = self.build_key(user_id, filename)
        path = self._path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            logger.error(f"Failed to store photo {key}: {e}")
            raise StorageError(f"Failed to store photo: {e}") from e
        logger.info(f"Stored photo {key} ({len(data)} bytes)")
        return self.get_public_url(key)

    def remove(self, key: str) -> None:
        """Delete a stored photo. Missing files are not an error."""
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove photo {key}: {e}") from e
