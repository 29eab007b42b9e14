"""
Dependency injection for FastAPI.

The gateway and object store client are built once in the application
lifespan and kept on `app.state`; services are cheap and built per request.
"""
from typing import Annotated
from fastapi import Depends, Request

from app.infrastructure.object_store_client import ObjectStoreClient
from app.infrastructure.relational_gateway import RelationalGateway
from app.services.application.note_service import NoteService
from app.services.application.photo_service import PhotoService
from app.services.application.plant_service import PlantService
from app.services.application.upload_orchestrator import UploadOrchestrator
from app.services.domain.image_metadata import ImageMetadataExtractor
from app.services.domain.plant_aggregate_assembler import PlantAggregateAssembler


def get_relational_gateway(request: Request) -> RelationalGateway:
    """
    Process-wide relational gateway.

    Returns:
        RelationalGateway created at startup
    """
    return request.app.state.relational_gateway


def get_object_store_client(request: Request) -> ObjectStoreClient:
    """
    Process-wide object store client.

    Returns:
        ObjectStoreClient created at startup
    """
    return request.app.state.object_store_client


def get_plant_aggregate_assembler() -> PlantAggregateAssembler:
    return PlantAggregateAssembler()


def get_image_metadata_extractor() -> ImageMetadataExtractor:
    return ImageMetadataExtractor()


def get_plant_service(
    gateway: Annotated[RelationalGateway, Depends(get_relational_gateway)],
    assembler: Annotated[PlantAggregateAssembler, Depends(get_plant_aggregate_assembler)],
) -> PlantService:
    """
    Dependency factory for PlantService.

    Args:
        gateway: Relational gateway (injected)
        assembler: Aggregate assembler (injected)

    Returns:
        PlantService instance
    """
    return PlantService(gateway=gateway, assembler=assembler)


def get_photo_service(
    gateway: Annotated[RelationalGateway, Depends(get_relational_gateway)],
    assembler: Annotated[PlantAggregateAssembler, Depends(get_plant_aggregate_assembler)],
) -> PhotoService:
    return PhotoService(gateway=gateway, assembler=assembler)


def get_note_service(
    gateway: Annotated[RelationalGateway, Depends(get_relational_gateway)],
) -> NoteService:
    return NoteService(gateway=gateway)


def get_upload_orchestrator(
    gateway: Annotated[RelationalGateway, Depends(get_relational_gateway)],
    object_store: Annotated[ObjectStoreClient, Depends(get_object_store_client)],
    extractor: Annotated[ImageMetadataExtractor, Depends(get_image_metadata_extractor)],
) -> UploadOrchestrator:
    """
    Dependency factory for UploadOrchestrator.

    Args:
        gateway: Relational gateway (injected)
        object_store: Object store client (injected)
        extractor: Image metadata extractor (injected)

    Returns:
        UploadOrchestrator instance
    """
    return UploadOrchestrator(
        gateway=gateway,
        object_store=object_store,
        metadata_extractor=extractor,
    )


# Type aliases for cleaner route signatures
PlantServiceDep = Annotated[PlantService, Depends(get_plant_service)]
PhotoServiceDep = Annotated[PhotoService, Depends(get_photo_service)]
NoteServiceDep = Annotated[NoteService, Depends(get_note_service)]
UploadOrchestratorDep = Annotated[UploadOrchestrator, Depends(get_upload_orchestrator)]
ObjectStoreDep = Annotated[ObjectStoreClient, Depends(get_object_store_client)]
