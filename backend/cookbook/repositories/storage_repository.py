"""
Storage repository: recipe image uploads and deletions.
"""

import logging
import re
import uuid
from pathlib import PurePosixPath
from typing import List, Optional

from cookbook.config import settings
from cookbook.repositories.base import guarded, run_blocking
from cookbook.result import Error, Result, Success
from cookbook.services.object_storage import ObjectStorage, StoragePathError

logger = logging.getLogger(__name__)

_SEGMENT = re.compile(r"^[A-Za-z0-9_-]+$")


class StorageRepository:
    def __init__(self, storage: ObjectStorage, max_size: Optional[int] = None):
        self.storage = storage
        self.max_size = settings.MAX_UPLOAD_SIZE if max_size is None else max_size

    @staticmethod
    def image_path(user_id: str, file_name: str) -> str:
        return f"{settings.RECIPE_IMAGES_PATH}/{user_id}/{file_name}.jpg"

    async def upload_recipe_image(
        self, data: bytes, user_id: str, recipe_id: Optional[str] = None
    ) -> Result[str]:
        """
        Upload an image and return its public URL.

        Args:
            data: Image bytes
            user_id: Uploader id, namespaces the path
            recipe_id: Recipe the image belongs to; a random name is used when None
        """
        file_name = recipe_id or uuid.uuid4().hex
        for segment in (user_id, file_name):
            if not _SEGMENT.match(segment or ""):
                return Error.of(f"Invalid storage path segment: {segment!r}")
        if not data:
            return Error.of("Image is empty")
        if len(data) > self.max_size:
            return Error.of(
                f"Image too large. Max size: {self.max_size / 1024 / 1024:.1f} MB"
            )

        path = self.image_path(user_id, file_name)

        async def _upload():
            await run_blocking(self.storage.put, path, data)
            return self.storage.url_for(path)

        return await guarded(logger, f"Uploading {path}", _upload)

    def is_owned_by(self, image_url: str, user_id: str) -> bool:
        """True when image_url addresses a blob in user_id's image folder."""
        try:
            path = PurePosixPath(self.storage.path_from_url(image_url))
        except StoragePathError:
            return False
        return path.parent == PurePosixPath(settings.RECIPE_IMAGES_PATH, user_id)

    async def delete_recipe_image(
        self, image_url: str, owner_id: Optional[str] = None
    ) -> Result[None]:
        """
        Delete an image by URL.

        When owner_id is given, images outside that user's folder are left
        alone. Failures are reported as success: a stale image must never
        block deleting or editing the recipe that pointed at it.
        """
        if not image_url:
            return Success(None)
        if owner_id is not None and not self.is_owned_by(image_url, owner_id):
            logger.warning(f"Not deleting {image_url}: outside the images of {owner_id}")
            return Success(None)
        try:
            path = self.storage.path_from_url(image_url)
            await run_blocking(self.storage.delete, path)
        except Exception as e:
            logger.warning(f"Ignoring failed image deletion for {image_url}: {e}")
        return Success(None)

    async def delete_recipe_images(self, image_urls: List[str]) -> Result[None]:
        """Delete several images, continuing past individual failures."""
        for image_url in image_urls:
            await self.delete_recipe_image(image_url)
        return Success(None)
