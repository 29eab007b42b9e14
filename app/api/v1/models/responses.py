"""
API response models using Pydantic.

Public image URLs exist only here: stored records carry bare object keys
and the routers attach URLs while building these models.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from app.domain.models import PhotoRecord, PlantAggregate


class ErrorResponse(BaseModel):
    """Body of every failed request."""
    message: str = Field(description="What went wrong, for display")
    error: str = Field(description="Human-readable cause")

    class Config:
        json_schema_extra = {
            "example": {
                "message": "Missing required fields",
                "error": "Missing: image",
            }
        }


class MessageResponse(BaseModel):
    """Plain acknowledgement."""
    message: str


class PhotoResponse(PhotoRecord):
    """Photo sub-document with its public URL."""
    url: Optional[str] = Field(
        default=None,
        description="Public URL of the image"
    )


class PlantResponse(PlantAggregate):
    """Plant aggregate with public photo URLs."""
    photos: List[PhotoResponse] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "plant_obj_id": 42,
                "user_id": 7,
                "plant_name": "Cherry tomato",
                "variety": {"id": 3, "name": "Sungold"},
                "stage": {"id": 2, "name": "Seedling", "stage_order": 2},
                "location": {"id": 1, "name": "Greenhouse", "sun_exposure": "full"},
                "photos": [{
                    "id": 10,
                    "filename": "plants/42/0b7e...-tomato.jpg",
                    "date_taken": "2024-03-01T09:30:00",
                    "date_uploaded": "2024-03-02T18:11:05",
                    "stage": 2,
                    "plant_stage_id": None,
                    "url": "https://bloom-photos.nyc3.digitaloceanspaces.com/plants/42/0b7e...-tomato.jpg",
                }],
                "notes": [],
                "warning": {"cold_tolerance": 10.0, "heat_tolerance": 32.0},
                "projections": [],
                "sensitivities": ["frost"],
                "date_updated": "2024-03-02",
                "date_planted": "2024-02-10",
                "is_transplant": False,
                "status": "active",
                "current_temp": None,
            }
        }


class StageUploadResponse(BaseModel):
    """Identifiers created by a stage upload."""
    success: bool = True
    message: str = "Stage recorded"
    stageId: int
    photoId: int
    filename: str = Field(description="Object key of the stored image")
    imageUrl: str
    dateTaken: datetime


class PhotoUploadResponse(BaseModel):
    """Identifiers created by a photo upload."""
    success: bool = True
    message: str = "Photo uploaded"
    photoId: int
    filename: str = Field(description="Object key of the stored image")
    imageUrl: str
    dateTaken: datetime


class PhotoDeletedResponse(BaseModel):
    """Outcome of a photo deletion."""
    message: str = "Photo deleted"
    photoId: int
    blobDeleted: bool = Field(
        description="False when the image could not be removed from storage"
    )


class PlantCreatedResponse(BaseModel):
    message: str = "Plant created"
    plantId: int

