"""
API router for photo and growth-stage upload endpoints.
"""
from datetime import datetime
from fastapi import APIRouter, File, Form, Path, Query, Request, UploadFile, status
from typing import Annotated, List, Optional

from app.api.dependencies import ObjectStoreDep, PhotoServiceDep, UploadOrchestratorDep
from app.api.v1.models.requests import PhotoUpdateRequest
from app.api.v1.models.responses import (
    ErrorResponse,
    MessageResponse,
    PhotoDeletedResponse,
    PhotoResponse,
    PhotoUploadResponse,
    StageUploadResponse,
)
from app.api.v1.presenters import present_photos
from app.config import settings
from app.domain.exceptions import ValidationError
from app.domain.models import ImageUpload
from app.middleware.rate_limit import limiter


router = APIRouter(
    tags=["photos"],
)

UPLOAD_RESPONSES = {
    400: {
        "model": ErrorResponse,
        "description": "Missing field, non-image file, or image too large",
    },
    429: {"description": "Too many uploads"},
    500: {
        "model": ErrorResponse,
        "description": "Storage or database failure",
    },
}


async def _read_image(image: Optional[UploadFile], max_bytes: int) -> Optional[ImageUpload]:
    """
    Buffer an upload, reading no more than one byte past `max_bytes`.

    The spooled size is checked first when the parser reports it; the
    bounded read leaves the final size check to the orchestrator.
    """
    if image is None:
        return None
    if image.size is not None and image.size > max_bytes:
        raise ValidationError(
            "Image too large", f"Image is {image.size} bytes, limit is {max_bytes}"
        )
    return ImageUpload(
        filename=image.filename or "",
        content_type=image.content_type or "",
        data=await image.read(max_bytes + 1),
    )


@router.post(
    "/plant-stages/upload",
    response_model=StageUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a growth stage with an image",
    description="""
    Upload an image for a plant and record a new growth stage.

    This endpoint:
    1. Validates that `image`, `plantId` and `status` are present
    2. Stores the image in the bucket under a fresh key
    3. Takes the capture date from `dateTaken`, else from EXIF, else now
    4. Inserts the stage and photo rows in one transaction

    If the database step fails the rows are rolled back; the stored image
    is not removed.
    """,
    responses=UPLOAD_RESPONSES,
)
@limiter.limit(settings.upload_rate_limit)
async def upload_plant_stage(
    request: Request,
    orchestrator: UploadOrchestratorDep,
    object_store: ObjectStoreDep,
    image: Annotated[Optional[UploadFile], File(description="Image file")] = None,
    plantId: Annotated[Optional[int], Form(description="Owning plant")] = None,
    stage_status: Annotated[Optional[str], Form(alias="status", description="Stage label, e.g. 'germinated'")] = None,
    userId: Annotated[Optional[str], Form(description="Owner, scopes the storage key")] = None,
    dateTaken: Annotated[Optional[datetime], Form(description="Overrides the EXIF capture date")] = None,
) -> StageUploadResponse:
    """
    Upload a stage image.

    Args:
        request: Incoming request (used by the rate limiter)
        orchestrator: Upload orchestrator (injected)
        object_store: Object store client, for the image URL (injected)
        image: Multipart image
        plantId: Owning plant
        stage_status: Stage label
        userId: Optional owner
        dateTaken: Optional capture date

    Returns:
        StageUploadResponse with the new stage and photo ids
    """
    result = await orchestrator.upload_stage_photo(
        await _read_image(image, orchestrator.max_upload_bytes),
        plant_id=plantId,
        status=stage_status,
        user_id=userId,
        date_taken=dateTaken,
    )
    return StageUploadResponse(
        stageId=result.stage_id,
        photoId=result.photo_id,
        filename=result.key,
        imageUrl=object_store.build_public_url(result.key),
        dateTaken=result.date_taken,
    )


@router.get(
    "/plants/{plant_id}/photos",
    response_model=List[PhotoResponse],
    summary="List a plant's photos",
)
async def list_photos(
    plant_id: Annotated[int, Path(description="Plant identifier")],
    photo_service: PhotoServiceDep,
    object_store: ObjectStoreDep,
) -> List[PhotoResponse]:
    photos = await photo_service.list_photos(plant_id)
    return present_photos(photos, object_store)


@router.post(
    "/plants/{plant_id}/photos",
    response_model=PhotoUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a photo to a plant",
    responses=UPLOAD_RESPONSES,
)
@limiter.limit(settings.upload_rate_limit)
async def upload_plant_photo(
    request: Request,
    plant_id: Annotated[int, Path(description="Plant identifier")],
    orchestrator: UploadOrchestratorDep,
    object_store: ObjectStoreDep,
    image: Annotated[Optional[UploadFile], File(description="Image file")] = None,
    userId: Annotated[Optional[str], Form(description="Owner, scopes the storage key")] = None,
    dateTaken: Annotated[Optional[datetime], Form(description="Overrides the EXIF capture date")] = None,
    stageId: Annotated[Optional[int], Form(description="Stage shown in the photo")] = None,
) -> PhotoUploadResponse:
    result = await orchestrator.upload_plant_photo(
        await _read_image(image, orchestrator.max_upload_bytes),
        plant_id=plant_id,
        user_id=userId,
        date_taken=dateTaken,
        stage_id=stageId,
    )
    return PhotoUploadResponse(
        photoId=result.photo_id,
        filename=result.key,
        imageUrl=object_store.build_public_url(result.key),
        dateTaken=result.date_taken,
    )


@router.patch(
    "/plants/{plant_id}/photos/{photo_id}",
    response_model=MessageResponse,
    summary="Edit a photo's capture date or stage",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse, "description": "Photo not found"},
    },
)
async def update_photo(
    plant_id: Annotated[int, Path(description="Plant identifier")],
    photo_id: Annotated[int, Path(description="Photo identifier")],
    body: PhotoUpdateRequest,
    photo_service: PhotoServiceDep,
) -> MessageResponse:
    await photo_service.update_photo(
        plant_id,
        photo_id,
        date_taken=body.date_taken,
        stage_id=body.stage_id,
        user_id=body.user_id,
    )
    return MessageResponse(message="Photo updated")


@router.delete(
    "/plants/{plant_id}/photos/{photo_id}",
    response_model=PhotoDeletedResponse,
    summary="Delete a photo",
    description="""
    Delete the photo row, then its image.

    Nothing is removed from storage unless the row existed and belonged to
    the plant (and user, when `userId` is given).
    """,
    responses={
        404: {"model": ErrorResponse, "description": "Photo not found"},
        500: {"model": ErrorResponse, "description": "Database failure"},
    },
)
async def delete_photo(
    plant_id: Annotated[int, Path(description="Plant identifier")],
    photo_id: Annotated[int, Path(description="Photo identifier")],
    orchestrator: UploadOrchestratorDep,
    userId: Annotated[Optional[str], Query(description="Owner the plant must belong to")] = None,
) -> PhotoDeletedResponse:
    deleted = await orchestrator.delete_photo(plant_id, photo_id, user_id=userId)
    return PhotoDeletedResponse(photoId=deleted.photo_id, blobDeleted=deleted.blob_deleted)
