"""Owned-image lifecycle.

Uploads are part of the primary write and abort it on failure. Releasing
an image is a compensating action: its failure is logged and recorded,
never raised.
"""

from dataclasses import dataclass
from enum import Enum

import structlog

from app.domain.exceptions import UploadError, ValidationError
from app.domain.value_objects import ImageRef, ImageUpload
from app.infrastructure.blob_store import BlobStore, BlobStoreError

logger = structlog.get_logger()


class CleanupStatus(str, Enum):
    """Outcome of a compensating image release."""

    SUCCEEDED = "succeeded"
    FAILED_IGNORED = "failed_ignored"


class ReleaseReason(str, Enum):
    """Why an image is being released."""

    REPLACED = "replaced"
    DELETED = "deleted"
    ROLLBACK = "rollback"


@dataclass(frozen=True)
class CleanupOutcome:
    """Recorded result of releasing one image.

    Attributes:
        store_id: Blob store identifier of the image.
        reason: Why the image was released.
        status: Whether the blob store confirmed the delete.
        error: Blob store error when the release failed.
    """

    store_id: str
    reason: ReleaseReason
    status: CleanupStatus
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        """Check whether the image was removed."""
        return self.status == CleanupStatus.SUCCEEDED


class ImageLifecycle:
    """Drives uploads and compensating releases against a blob store."""

    def __init__(self, blob_store: BlobStore, request_id: str | None = None) -> None:
        """Initialize lifecycle.

        Args:
            blob_store: Gateway to the external image store.
            request_id: Request ID for correlation.
        """
        self.blob_store = blob_store
        self.request_id = request_id

    async def upload(self, image: ImageUpload) -> ImageRef:
        """Upload an image as part of a write.

        Args:
            image: Image payload.

        Returns:
            Reference to the stored image.

        Raises:
            ValidationError: If the payload is empty.
            UploadError: If the blob store rejects the upload.
        """
        if image.is_empty:
            raise ValidationError("Image file is empty", field="image")

        try:
            ref = await self.blob_store.upload(image)
        except BlobStoreError as e:
            logger.error(
                "Image upload failed",
                filename=image.filename,
                error=e.message,
                request_id=self.request_id,
            )
            raise UploadError(e.message) from e

        logger.info(
            "Image uploaded",
            store_id=ref.store_id,
            filename=image.filename,
            request_id=self.request_id,
        )
        return ref

    async def release(self, image: ImageRef, reason: ReleaseReason) -> CleanupOutcome:
        """Delete an image, recording rather than raising failures.

        Args:
            image: Image to delete.
            reason: Why the image is released.

        Returns:
            Recorded outcome of the delete.
        """
        try:
            await self.blob_store.delete(image.store_id)
        except BlobStoreError as e:
            logger.warning(
                "Image release failed, blob left orphaned",
                store_id=image.store_id,
                reason=reason.value,
                error=e.message,
                request_id=self.request_id,
            )
            return CleanupOutcome(
                store_id=image.store_id,
                reason=reason,
                status=CleanupStatus.FAILED_IGNORED,
                error=e.message,
            )

        logger.info(
            "Image released",
            store_id=image.store_id,
            reason=reason.value,
            request_id=self.request_id,
        )
        return CleanupOutcome(
            store_id=image.store_id,
            reason=reason,
            status=CleanupStatus.SUCCEEDED,
        )
