"""Best-effort blob cleanup shared by every delete/replace flow."""
import logging
import warnings
from typing import Optional

from .blob_store import BlobStore
from .exceptions import StorageCleanupWarning
from .models import Post

logger = logging.getLogger(__name__)


async def discard_image(blobs: BlobStore, image_url: Optional[str]) -> bool:
    """
    Delete the blob behind ``image_url``.

    Never raises: a failure is logged and emitted as
    :class:`StorageCleanupWarning`, and ``False`` is returned.
    """
    if not image_url:
        return True
    try:
        path = blobs.path_from_url(image_url)
        await blobs.delete(path)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Error deleting image %s: %s", image_url, exc)
        warnings.warn(
            f"Could not delete image {image_url}: {exc}",
            StorageCleanupWarning,
            stacklevel=2,
        )
        return False
    return True


async def purge_post(blobs: BlobStore, post: Post) -> None:
    """Delete a post's image (best-effort), then its record."""
    await discard_image(blobs, post.image_url)
    await Post.delete_by_id(post.id)
    logger.debug("Purged post %s", post.id)
