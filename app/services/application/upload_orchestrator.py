"""
Application service: transactional photo upload and deletion.
"""
import logging
from datetime import datetime
from typing import Any, Callable, List, Optional

from app.config import settings
from app.domain.exceptions import NotFoundError, StorageError, ValidationError
from app.domain.models import (
    DeletedPhoto,
    ImageUpload,
    PhotoUploadResult,
    StageUploadResult,
)
from app.infrastructure.object_store_client import ObjectStoreClient
from app.infrastructure.queries import PhotoQueries, PlantQueries
from app.infrastructure.relational_gateway import RelationalGateway, format_sql_datetime
from app.services.domain.image_metadata import ImageMetadataExtractor
from app.utils.json_fields import strip_public_url
from app.utils.storage_keys import build_upload_key

logger = logging.getLogger(__name__)


class UploadOrchestrator:
    """
    Adds and removes plant photos together with their backing blobs.

    Upload runs Validating -> Uploading -> DatingImage -> Persisting ->
    Committed. The blob is stored before the transaction opens, so a failed
    insert rolls back every row but leaves the blob in the bucket.

    Deletion is database first: the blob is only removed once the row that
    referenced it is gone, and a failed blob delete is logged, not raised.
    """

    def __init__(
        self,
        gateway: RelationalGateway,
        object_store: ObjectStoreClient,
        metadata_extractor: ImageMetadataExtractor,
        max_upload_bytes: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the orchestrator with dependencies.

        Args:
            gateway: Relational store gateway
            object_store: Object store client
            metadata_extractor: Capture-date extractor
            max_upload_bytes: Largest accepted image payload
            clock: Source of the upload timestamp
        """
        self.gateway = gateway
        self.object_store = object_store
        self.metadata_extractor = metadata_extractor
        self.max_upload_bytes = max_upload_bytes or settings.max_upload_bytes
        self.clock = clock or datetime.now

    def _validate(self, image: Optional[ImageUpload], required: dict) -> ImageUpload:
        missing: List[str] = []
        if image is None or not image.data:
            missing.append("image")
        missing.extend(
            name for name, value in required.items()
            if value is None or (isinstance(value, str) and not value.strip())
        )
        if missing:
            raise ValidationError(
                "Missing required fields", f"Missing: {', '.join(missing)}"
            )

        if not image.content_type.startswith("image/"):
            raise ValidationError(
                "Not an image! Please upload an image.",
                f"Unsupported content type '{image.content_type}'",
            )
        if len(image.data) > self.max_upload_bytes:
            raise ValidationError(
                "Image too large",
                f"Image is {len(image.data)} bytes, limit is {self.max_upload_bytes}",
            )
        return image

    async def _ensure_plant(self, plant_id: Any, user_id: Optional[Any]) -> None:
        plant = await self.gateway.fetch_one(
            PlantQueries.EXISTS, {"plant_id": plant_id, "user_id": user_id}
        )
        if plant is None:
            raise NotFoundError("Plant not found", f"No plant {plant_id}")

    async def _store_blob(self, image: ImageUpload, plant_id: Any, user_id: Optional[Any]) -> str:
        key = build_upload_key(plant_id, image.filename, user_id)
        await self.object_store.put(key, image.data, image.content_type)
        return key

    def _resolve_capture_date(self, image: ImageUpload, date_taken: Optional[datetime]) -> datetime:
        if date_taken is not None:
            return date_taken
        return self.metadata_extractor.extract_capture_date(image.data)

    async def upload_stage_photo(
        self,
        image: Optional[ImageUpload],
        plant_id: Optional[int],
        status: Optional[str],
        user_id: Optional[Any] = None,
        date_taken: Optional[datetime] = None,
    ) -> StageUploadResult:
        """
        Record a growth stage with its image.

        Inserts a plant_stage row and a photo row pointing at it in one
        transaction.

        Args:
            image: Uploaded image
            plant_id: Owning plant
            status: Stage status label, e.g. 'germinated'
            user_id: Owner, used to scope the object key
            date_taken: Caller-supplied capture date; EXIF is used when absent

        Returns:
            StageUploadResult with the new identifiers

        Raises:
            ValidationError: If image, plant id or status is missing
            NotFoundError: If the plant does not exist or belongs to someone else
            StorageError: If the blob upload fails (nothing written)
            PersistenceError: If the insert fails (rolled back, blob kept)
        """
        image = self._validate(image, {"plantId": plant_id, "status": status})
        await self._ensure_plant(plant_id, user_id)
        key = await self._store_blob(image, plant_id, user_id)
        captured = self._resolve_capture_date(image, date_taken)

        async with self.gateway.transaction() as tx:
            stage_id = await tx.insert(PhotoQueries.INSERT_PLANT_STAGE, {
                "plant_id": plant_id,
                "status": status.strip(),
                "date": format_sql_datetime(captured),
            })
            photo_id = await tx.insert(PhotoQueries.INSERT_PHOTO, {
                "key": key,
                "plant_id": plant_id,
                "plant_stage_id": stage_id,
                "stage_id": None,
                "date_taken": format_sql_datetime(captured),
                "date_uploaded": format_sql_datetime(self.clock()),
            })

        logger.info(f"Plant {plant_id}: stage {stage_id} '{status}' with photo {photo_id}")
        return StageUploadResult(
            stage_id=stage_id, photo_id=photo_id, key=key, date_taken=captured
        )

    async def upload_plant_photo(
        self,
        image: Optional[ImageUpload],
        plant_id: Optional[int],
        user_id: Optional[Any] = None,
        date_taken: Optional[datetime] = None,
        stage_id: Optional[int] = None,
    ) -> PhotoUploadResult:
        """
        Add a photo to a plant, optionally tagged with a stage.

        Raises:
            ValidationError: If image or plant id is missing
            NotFoundError: If the plant does not exist or belongs to someone else
            StorageError: If the blob upload fails (nothing written)
            PersistenceError: If the insert fails (rolled back, blob kept)
        """
        image = self._validate(image, {"plantId": plant_id})
        await self._ensure_plant(plant_id, user_id)
        key = await self._store_blob(image, plant_id, user_id)
        captured = self._resolve_capture_date(image, date_taken)

        async with self.gateway.transaction() as tx:
            photo_id = await tx.insert(PhotoQueries.INSERT_PHOTO, {
                "key": key,
                "plant_id": plant_id,
                "plant_stage_id": None,
                "stage_id": stage_id,
                "date_taken": format_sql_datetime(captured),
                "date_uploaded": format_sql_datetime(self.clock()),
            })

        logger.info(f"Plant {plant_id}: photo {photo_id} stored as {key}")
        return PhotoUploadResult(photo_id=photo_id, key=key, date_taken=captured)

    async def delete_photo(
        self,
        plant_id: int,
        photo_id: int,
        user_id: Optional[Any] = None,
    ) -> DeletedPhoto:
        """
        Delete a photo row, then its blob.

        Args:
            plant_id: Plant the photo must belong to
            photo_id: Photo to delete
            user_id: Owner the plant must belong to, when given

        Returns:
            DeletedPhoto describing what was removed

        Raises:
            NotFoundError: If no photo matches the plant/user (blob untouched)
            PersistenceError: If the delete fails (rolled back, blob untouched)
        """
        async with self.gateway.transaction() as tx:
            row = await tx.fetch_one(PhotoQueries.SELECT_OWNED, {
                "photo_id": photo_id,
                "plant_id": plant_id,
                "user_id": user_id,
            })
            if row is None:
                raise NotFoundError(
                    "Photo not found",
                    f"No photo {photo_id} for plant {plant_id}",
                )
            # A concurrent delete may have removed the row since the SELECT
            if not await tx.execute(PhotoQueries.DELETE_BY_ID, {"photo_id": photo_id}):
                raise NotFoundError(
                    "Photo not found",
                    f"Photo {photo_id} was already deleted",
                )

        key = strip_public_url(row.get("storage_photo_id"))
        if not key:
            return DeletedPhoto(photo_id=photo_id, key=None, blob_deleted=False)

        try:
            await self.object_store.delete(key)
        except StorageError as e:
            # Row is gone; a dangling blob is left for cleanup
            logger.warning(f"Photo {photo_id} deleted but blob {key} remains: {e.error}")
            return DeletedPhoto(photo_id=photo_id, key=key, blob_deleted=False)

        return DeletedPhoto(photo_id=photo_id, key=key, blob_deleted=True)
