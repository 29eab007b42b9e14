"""
API request models using Pydantic.

Clients send camelCase keys; snake_case is accepted as well.
"""
from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class PlantCreateRequest(BaseModel):
    """Body of POST /plants."""
    user_id: str = Field(alias="userId")
    plant_name: str = Field(alias="plantName", min_length=1)
    variety_id: Optional[int] = Field(default=None, alias="varietyId")
    location_id: Optional[int] = Field(default=None, alias="locationId")
    stage_id: Optional[int] = Field(default=None, alias="stageId")
    date_planted: Optional[date] = Field(default=None, alias="datePlanted")
    is_transplant: Optional[bool] = Field(default=None, alias="isTransplant")
    status: Optional[str] = None
    sensitivities: Optional[List[str]] = None

    class Config:
        populate_by_name = True


class PlantUpdateRequest(BaseModel):
    """Body of PUT /plants/{plant_id}. Omitted fields are left unchanged."""
    user_id: Optional[str] = Field(default=None, alias="userId")
    plant_name: Optional[str] = Field(default=None, alias="plantName")
    variety_id: Optional[int] = Field(default=None, alias="varietyId")
    location_id: Optional[int] = Field(default=None, alias="locationId")
    stage_id: Optional[int] = Field(default=None, alias="stageId")
    date_planted: Optional[date] = Field(default=None, alias="datePlanted")
    is_transplant: Optional[bool] = Field(default=None, alias="isTransplant")
    status: Optional[str] = None
    sensitivities: Optional[List[str]] = None

    class Config:
        populate_by_name = True


class PhotoUpdateRequest(BaseModel):
    """Body of PATCH /plants/{plant_id}/photos/{photo_id}."""
    user_id: Optional[str] = Field(default=None, alias="userId")
    date_taken: Optional[datetime] = Field(default=None, alias="dateTaken")
    stage_id: Optional[int] = Field(default=None, alias="stageId")

    class Config:
        populate_by_name = True


class NoteCreateRequest(BaseModel):
    """Body of POST /plants/{plant_id}/notes."""
    user_id: str = Field(alias="userId")
    content: str

    class Config:
        populate_by_name = True


class NoteUpdateRequest(BaseModel):
    """Body of PUT /notes/{note_id}."""
    user_id: Optional[str] = Field(default=None, alias="userId")
    content: str

    class Config:
        populate_by_name = True
