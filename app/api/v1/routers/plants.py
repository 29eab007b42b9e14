"""
API router for plant endpoints.
"""
from fastapi import APIRouter, Path, Query, status
from typing import Annotated, Any, Dict, List, Optional

from app.api.dependencies import ObjectStoreDep, PlantServiceDep
from app.api.v1.models.requests import PlantCreateRequest, PlantUpdateRequest
from app.api.v1.models.responses import (
    ErrorResponse,
    MessageResponse,
    PlantCreatedResponse,
    PlantResponse,
)
from app.api.v1.presenters import present_plant


router = APIRouter(
    tags=["plants"],
)

ERROR_RESPONSES = {
    404: {"model": ErrorResponse, "description": "Plant not found"},
    500: {"model": ErrorResponse, "description": "Database or storage failure"},
}


@router.get(
    "/plants",
    response_model=List[PlantResponse],
    summary="List plants",
    description="""
    Return every plant with its variety, stage, location, photos, notes,
    stage warning and projections.

    Results come from the `GetPlantsWithStagesAndLocations` stored procedure.
    A plant whose sub-documents are malformed is still returned, with those
    sub-documents set to their empty defaults.
    """,
    responses={500: ERROR_RESPONSES[500]},
)
async def list_plants(
    plant_service: PlantServiceDep,
    object_store: ObjectStoreDep,
    userId: Annotated[Optional[str], Query(description="Only plants owned by this user")] = None,
    plant_status: Annotated[Optional[str], Query(alias="status", description="Only plants with this status")] = None,
) -> List[PlantResponse]:
    """
    List plant aggregates.

    Args:
        plant_service: Plant service (injected)
        object_store: Object store client, for photo URLs (injected)
        userId: Optional owner filter
        plant_status: Optional status filter

    Returns:
        Plant aggregates in procedure order
    """
    plants = await plant_service.list_plants(user_id=userId, status=plant_status)
    return [present_plant(plant, object_store) for plant in plants]


@router.get(
    "/plants/{plant_id}",
    response_model=PlantResponse,
    summary="Get one plant",
    responses=ERROR_RESPONSES,
)
async def get_plant(
    plant_id: Annotated[int, Path(description="Plant identifier")],
    plant_service: PlantServiceDep,
    object_store: ObjectStoreDep,
    userId: Annotated[Optional[str], Query(description="Owner the plant must belong to")] = None,
) -> PlantResponse:
    plant = await plant_service.get_plant(plant_id, user_id=userId)
    return present_plant(plant, object_store)


@router.post(
    "/plants",
    response_model=PlantCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a plant",
    responses={400: {"model": ErrorResponse}, 500: ERROR_RESPONSES[500]},
)
async def create_plant(
    body: PlantCreateRequest,
    plant_service: PlantServiceDep,
) -> PlantCreatedResponse:
    plant_id = await plant_service.create_plant(
        body.user_id, body.model_dump(exclude={"user_id"}, exclude_none=True)
    )
    return PlantCreatedResponse(plantId=plant_id)


@router.put(
    "/plants/{plant_id}",
    response_model=MessageResponse,
    summary="Edit a plant",
    description="Update the supplied fields. Concurrent edits are last-write-wins.",
    responses={400: {"model": ErrorResponse}, **ERROR_RESPONSES},
)
async def update_plant(
    plant_id: Annotated[int, Path(description="Plant identifier")],
    body: PlantUpdateRequest,
    plant_service: PlantServiceDep,
) -> MessageResponse:
    await plant_service.update_plant(
        plant_id,
        body.model_dump(exclude={"user_id"}, exclude_unset=True, exclude_none=True),
        user_id=body.user_id,
    )
    return MessageResponse(message="Plant updated")


@router.get("/stages", summary="List growth stages", tags=["reference"])
async def list_stages(plant_service: PlantServiceDep) -> List[Dict[str, Any]]:
    return await plant_service.list_stages()


@router.get("/locations", summary="List locations", tags=["reference"])
async def list_locations(plant_service: PlantServiceDep) -> List[Dict[str, Any]]:
    return await plant_service.list_locations()


@router.get("/varieties", summary="List varieties", tags=["reference"])
async def list_varieties(plant_service: PlantServiceDep) -> List[Dict[str, Any]]:
    return await plant_service.list_varieties()
