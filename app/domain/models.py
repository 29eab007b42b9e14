"""
Domain models for plants, photos and notes.

These models represent the core domain entities and should be independent
of any infrastructure concerns (object store, database, etc.).
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class StageWarning(BaseModel):
    """Temperature tolerance bounds of the plant's current stage."""
    cold_tolerance: Optional[float] = None
    heat_tolerance: Optional[float] = None


class PhotoRecord(BaseModel):
    """
    Canonical photo sub-document. `filename` is a bare object key, never a URL.

    `stage` references the stage table; `plant_stage_id` is the growth-stage
    record created by a legacy stage upload.
    """
    id: Optional[int] = None
    filename: Optional[str] = None
    date_taken: Optional[str] = None
    date_uploaded: Optional[str] = None
    stage: Optional[Any] = None
    plant_stage_id: Optional[int] = None


class PlantAggregate(BaseModel):
    """API-facing view of a plant together with its related sub-documents."""
    plant_obj_id: Optional[int] = None
    user_id: Optional[Any] = None
    plant_name: Optional[str] = None
    variety: Dict[str, Any] = Field(default_factory=dict)
    stage: Dict[str, Any] = Field(default_factory=dict)
    location: Dict[str, Any] = Field(default_factory=dict)
    photos: List[PhotoRecord] = Field(default_factory=list)
    notes: List[Dict[str, Any]] = Field(default_factory=list)
    warning: StageWarning = Field(default_factory=StageWarning)
    projections: List[Dict[str, Any]] = Field(default_factory=list)
    sensitivities: List[str] = Field(default_factory=list)
    date_updated: Optional[str] = Field(
        default=None,
        description="Calendar date, YYYY-MM-DD"
    )
    date_planted: Optional[str] = Field(
        default=None,
        description="Calendar date, YYYY-MM-DD"
    )
    is_transplant: Optional[bool] = None
    status: Optional[str] = None
    current_temp: Optional[float] = None


class ImageUpload(BaseModel):
    """An image received from a multipart request, held in memory."""
    filename: str = ""
    content_type: str = ""
    data: bytes = b""


class StageUploadResult(BaseModel):
    """Identifiers created by a legacy stage upload."""
    stage_id: int
    photo_id: int
    key: str
    date_taken: datetime


class PhotoUploadResult(BaseModel):
    """Identifiers created by a photo upload."""
    photo_id: int
    key: str
    date_taken: datetime


class DeletedPhoto(BaseModel):
    """Outcome of a photo deletion."""
    photo_id: int
    key: Optional[str] = None
    blob_deleted: bool = False


class Note(BaseModel):
    """A note attached to a plant by a user."""
    note_id: int
    plant_obj_id: int
    user_id: Optional[Any] = None
    content: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
