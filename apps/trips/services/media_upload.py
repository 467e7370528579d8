"""
Media upload gateway.

Stores image bytes through Django's default storage (local filesystem in
development, any configured backend in production) and hands back a URL
that can be stored on the record.
"""

import logging
from urllib.parse import urljoin

from django.conf import settings
from django.core.exceptions import SuspiciousFileOperation
from django.core.files.storage import default_storage
from django.utils import timezone
from django.utils.text import get_valid_filename

from .exceptions import UploadFailedError

logger = logging.getLogger(__name__)


def build_upload_name(*, folder: str, prefix: str, original_name: str) -> str:
    """
    Build a storage path like ``screenshots/contribution_<trip>_<ms>-<name>``.

    Whitespace in the original file name becomes underscores and anything a
    storage backend could misread as a path is stripped.
    """
    timestamp_ms = int(timezone.now().timestamp() * 1000)
    try:
        safe_name = get_valid_filename(original_name or 'upload')
    except SuspiciousFileOperation:
        safe_name = 'upload'
    return f"{folder}/{prefix}_{timestamp_ms}-{safe_name}"


def public_url(url: str) -> str:
    """Prefix storage-relative URLs with MEDIA_PUBLIC_BASE_URL when configured."""
    base = settings.MEDIA_PUBLIC_BASE_URL
    if base and url.startswith('/'):
        return urljoin(base.rstrip('/') + '/', url.lstrip('/'))
    return url


def upload_image(*, file, name: str) -> str:
    """
    Save an uploaded image and return its URL.

    Args:
        file: Django ``File``/``UploadedFile`` with the image bytes
        name: Suggested storage name (see ``build_upload_name``)

    Returns:
        Public URL of the stored image

    Raises:
        UploadFailedError: If the storage backend fails for any reason
    """
    try:
        if hasattr(file, 'seek'):
            file.seek(0)
        saved_name = default_storage.save(name, file)
        url = default_storage.url(saved_name)
    except Exception as e:
        # Storage backends raise their own exception types (OSError, boto, ...)
        logger.exception("Image upload failed for %s", name)
        raise UploadFailedError(f"Failed to upload image: {e}")

    if not url:
        raise UploadFailedError("Failed to upload image: storage returned no URL.")

    logger.info("Uploaded image %s", saved_name)
    return public_url(url)
