"""Best-effort cleanup tasks.

These run after the user-visible mutation has committed. Failures are logged
and never propagate back to the request that scheduled them.
"""

import logging

from src.celery_app import app as celery_app
from src.services.storage import PhotoStorage, StorageError, key_from_url

logger = logging.getLogger(__name__)


@celery_app.task(name="tasks.delete_photo")
def delete_photo(photo_url: str) -> dict:
    """Remove a photo that is no longer referenced by any entry.

    Args:
        photo_url: Public URL of the photo

    Returns:
        Dict describing what was removed
    """
    storage_key = key_from_url(photo_url)
    if not storage_key:
        return {"deleted": False, "reason": "invalid_url"}

    try:
        PhotoStorage().remove(storage_key)
    except StorageError as e:
        # Leaves an orphan file behind; the entry itself is already updated
        logger.warning(f"Failed to delete photo (orphan file may remain) {storage_key}: {e}")
        return {"deleted": False, "reason": str(e)}

    logger.info(f"Deleted photo {storage_key}")
    return {"deleted": True, "key": storage_key}


def schedule_photo_deletion(photo_url: str | None) -> None:
    """Queue deletion of a photo without blocking the caller."""
    if not photo_url:
        return
    try:
        delete_photo.delay(photo_url)
    except Exception as e:
        # Don't fail the request if the broker is unavailable
        logger.warning(f"Failed to schedule photo deletion for {photo_url}: {e}")
