'''
    Image lifecycle for image materials.

    A material's `image_path` names a blob it owns exclusively. ImageStore sits
    between that field and a Django Storage backend (default_storage, i.e.
    MEDIA_ROOT on disk in development; any Storage works, S3 included):

        store(upload)  -> validates size/extension, writes under a fresh unique
                          name, returns that name. Never overwrites.
        release(path)  -> best-effort delete. Missing blobs and backend errors
                          are logged, not raised, so calling it twice is safe.

    Replacing an image is always store-new-then-release-old (see services.py),
    so a failed upload can never leave a material without its previous image.
'''

import logging
import os
import uuid

from django.conf import settings
from django.core.files.storage import default_storage

from .errors import BlobWriteFailed, UploadRejected

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 5 * 1024 * 1024  # 5 MiB
ALLOWED_IMAGE_EXTENSIONS = frozenset({'jpg', 'jpeg', 'png', 'gif', 'webp'})


def image_extension(filename):
    """Lowercased extension without the dot ('' when there is none)."""
    ext = os.path.splitext(filename or '')[1]
    return ext[1:].lower()


def upload_size(upload):
    """
    Byte size of an upload, or None when it cannot be told.

    Django Files carry .size; a bare file object is measured by seeking to
    its end and back to the start.
    """
    size = getattr(upload, 'size', None)
    if size is not None:
        return size
    if not (hasattr(upload, 'seek') and hasattr(upload, 'tell')):
        return None
    upload.seek(0, os.SEEK_END)
    size = upload.tell()
    upload.seek(0)
    return size


class ImageStore:

    def __init__(self, storage=None, upload_dir=None):
        self.storage = storage or default_storage
        if upload_dir is None:
            upload_dir = getattr(settings, 'MATERIALS', {}).get('IMAGE_UPLOAD_DIR', 'images')
        self.upload_dir = upload_dir

    def check(self, upload):
        """Raise UploadRejected if the upload can't be stored. Writes nothing."""
        name = getattr(upload, 'name', '') or ''
        size = upload_size(upload)
        if size is None:
            logger.warning("Rejected image upload %r: size unknown", name)
            raise UploadRejected(UploadRejected.UNREADABLE)
        if size > MAX_IMAGE_BYTES:
            logger.warning("Rejected image upload %r: %s bytes exceeds limit", name, size)
            raise UploadRejected(UploadRejected.TOO_LARGE)
        if image_extension(name) not in ALLOWED_IMAGE_EXTENSIONS:
            logger.warning("Rejected image upload %r: extension not allowed", name)
            raise UploadRejected(UploadRejected.BAD_EXTENSION)
        return image_extension(name)

    def store(self, upload):
        """
        Persist an uploaded image and return its blob name.

        `upload` is a Django File (UploadedFile from request.FILES in the views,
        SimpleUploadedFile/ContentFile in tests) or any named file object
        that upload_size() can measure.
        """
        ext = self.check(upload)
        size = upload_size(upload)
        blob_name = self._unique_name(ext)
        try:
            saved_name = self.storage.save(blob_name, upload)
        except Exception as exc:
            logger.exception("Writing image blob %s failed", blob_name)
            raise BlobWriteFailed() from exc
        logger.info("Stored image %s (%s bytes)", saved_name, size)
        return saved_name

    def release(self, path):
        if not path:
            return
        try:
            if self.storage.exists(path):
                self.storage.delete(path)
                logger.info("Released image %s", path)
        except Exception as exc:
            # a stale blob is not the user's problem
            logger.warning("Could not release image %s: %s", path, exc)

    def url(self, path):
        if not path:
            return None
        return self.storage.url(path)

    def _unique_name(self, ext):
        # uuid4 makes collisions practically impossible; the exists() loop
        # guarantees we never hand Storage a name that is already taken.
        while True:
            name = f"img_{uuid.uuid4().hex}.{ext}"
            if self.upload_dir:
                name = f"{self.upload_dir}/{name}"
            if not self.storage.exists(name):
                return name
