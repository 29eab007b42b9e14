"""
Boundary helpers that attach public image URLs to outgoing models.
"""
from typing import List

from app.api.v1.models.responses import PhotoResponse, PlantResponse
from app.domain.models import PhotoRecord, PlantAggregate
from app.infrastructure.object_store_client import ObjectStoreClient


def present_photo(photo: PhotoRecord, object_store: ObjectStoreClient) -> PhotoResponse:
    url = object_store.build_public_url(photo.filename) if photo.filename else None
    return PhotoResponse(**photo.model_dump(), url=url)


def present_photos(photos: List[PhotoRecord], object_store: ObjectStoreClient) -> List[PhotoResponse]:
    return [present_photo(photo, object_store) for photo in photos]


def present_plant(aggregate: PlantAggregate, object_store: ObjectStoreClient) -> PlantResponse:
    """Copy an aggregate into its response model, adding photo URLs."""
    data = aggregate.model_dump(exclude={"photos"})
    return PlantResponse(**data, photos=present_photos(aggregate.photos, object_store))
