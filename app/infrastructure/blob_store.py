"""Blob store gateways for catalog images.

Provides a common interface over the external image store plus two
implementations: Cloudinary for production and an in-memory store for
development and tests.
"""

import asyncio
import io
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

import cloudinary
import cloudinary.uploader
import structlog

from app.domain.value_objects import ImageRef, ImageUpload
from app.infrastructure.config import Settings, settings

logger = structlog.get_logger()


class BlobStoreError(Exception):
    """Error from a blob store call."""

    def __init__(self, operation: str, message: str) -> None:
        self.operation = operation
        self.message = message
        super().__init__(f"[{operation}] {message}")


# ============================================================================
# Interface
# ============================================================================


class BlobStore(ABC):
    """Abstract gateway to an external image store."""

    @abstractmethod
    async def upload(self, image: ImageUpload) -> ImageRef:
        """Upload an image.

        Args:
            image: Image payload.

        Returns:
            Reference with the store id and a retrievable URL.

        Raises:
            BlobStoreError: If the store rejects the upload.
        """

    @abstractmethod
    async def delete(self, store_id: str) -> None:
        """Delete an image.

        Args:
            store_id: Identifier returned by ``upload``.

        Raises:
            BlobStoreError: If the store fails to delete the image.
        """


# ============================================================================
# Cloudinary
# ============================================================================


class CloudinaryBlobStore(BlobStore):
    """Cloudinary implementation of the blob store.

    The Cloudinary SDK is blocking, so every call runs in a worker thread.
    """

    def __init__(self, config: Settings) -> None:
        """Initialize and configure the Cloudinary SDK.

        Args:
            config: Settings with Cloudinary credentials.
        """
        self.folder = config.cloudinary_folder
        cloudinary.config(
            cloud_name=config.cloudinary_cloud_name,
            api_key=config.cloudinary_api_key,
            api_secret=config.cloudinary_api_secret,
            secure=True,
        )

    async def upload(self, image: ImageUpload) -> ImageRef:
        """Upload image bytes to Cloudinary."""
        if image.is_empty:
            raise BlobStoreError("upload", "Image payload is empty")

        try:
            result: dict[str, Any] = await asyncio.to_thread(
                cloudinary.uploader.upload,
                io.BytesIO(image.content),
                folder=self.folder,
                resource_type="image",
                unique_filename=True,
                overwrite=False,
            )
        except Exception as e:
            logger.error(
                "Cloudinary upload failed",
                filename=image.filename,
                error=str(e),
            )
            raise BlobStoreError("upload", str(e)) from e

        public_id = result.get("public_id")
        url = result.get("secure_url") or result.get("url")
        if not public_id or not url:
            raise BlobStoreError("upload", "Cloudinary response is missing public_id or url")

        logger.info("Image uploaded", store_id=public_id, filename=image.filename)
        return ImageRef(store_id=public_id, url=url)

    async def delete(self, store_id: str) -> None:
        """Destroy an image on Cloudinary."""
        try:
            result: dict[str, Any] = await asyncio.to_thread(
                cloudinary.uploader.destroy,
                store_id,
                resource_type="image",
            )
        except Exception as e:
            raise BlobStoreError("delete", str(e)) from e

        if result.get("result") != "ok":
            raise BlobStoreError("delete", f"Cloudinary returned '{result.get('result')}'")

        logger.info("Image deleted", store_id=store_id)


# ============================================================================
# In-Memory
# ============================================================================


@dataclass
class InMemoryBlobStore(BlobStore):
    """Blob store that keeps images in a dict.

    ``fail_uploads`` and ``fail_deletes`` inject gateway failures so the
    compensation paths can be exercised without a real store.
    """

    folder: str = "pos-catalog"
    fail_uploads: bool = False
    fail_deletes: bool = False
    blobs: dict[str, bytes] = field(default_factory=dict)
    deleted: list[str] = field(default_factory=list)

    async def upload(self, image: ImageUpload) -> ImageRef:
        """Store image bytes under a fresh id."""
        if self.fail_uploads:
            raise BlobStoreError("upload", "Upload rejected by blob store")
        if image.is_empty:
            raise BlobStoreError("upload", "Image payload is empty")

        store_id = f"{self.folder}/{uuid4().hex}"
        self.blobs[store_id] = image.content
        return ImageRef(store_id=store_id, url=f"memory://{store_id}")

    async def delete(self, store_id: str) -> None:
        """Drop stored bytes."""
        if self.fail_deletes:
            raise BlobStoreError("delete", "Delete rejected by blob store")
        if self.blobs.pop(store_id, None) is None:
            raise BlobStoreError("delete", f"Unknown image: {store_id}")
        self.deleted.append(store_id)


# ============================================================================
# Factory
# ============================================================================


_blob_store: BlobStore | None = None


def get_blob_store() -> BlobStore:
    """Get the configured blob store singleton.

    Returns:
        BlobStore for the configured backend.
    """
    global _blob_store
    if _blob_store is None:
        if settings.blob_backend == "cloudinary":
            _blob_store = CloudinaryBlobStore(settings)
        else:
            _blob_store = InMemoryBlobStore(folder=settings.cloudinary_folder)
    return _blob_store


def reset_blob_store(store: BlobStore | None = None) -> None:
    """Replace the blob store singleton (for testing).

    Args:
        store: Store to install; None rebuilds from settings on next use.
    """
    global _blob_store
    _blob_store = store
