"""
API router for plant notes.
"""
from fastapi import APIRouter, Path, Query, status
from typing import Annotated, List, Optional

from app.api.dependencies import NoteServiceDep
from app.api.v1.models.requests import NoteCreateRequest, NoteUpdateRequest
from app.api.v1.models.responses import ErrorResponse, MessageResponse
from app.domain.models import Note


router = APIRouter(
    tags=["notes"],
)

NOT_FOUND = {404: {"model": ErrorResponse, "description": "Note or plant not found"}}


@router.get("/plants/{plant_id}/notes", response_model=List[Note], summary="List notes")
async def list_notes(
    plant_id: Annotated[int, Path(description="Plant identifier")],
    note_service: NoteServiceDep,
    userId: Annotated[Optional[str], Query(description="Only notes by this user")] = None,
) -> List[Note]:
    return await note_service.list_notes(plant_id, user_id=userId)


@router.post(
    "/plants/{plant_id}/notes",
    response_model=Note,
    status_code=status.HTTP_201_CREATED,
    summary="Add a note",
    responses={400: {"model": ErrorResponse}, **NOT_FOUND},
)
async def create_note(
    plant_id: Annotated[int, Path(description="Plant identifier")],
    body: NoteCreateRequest,
    note_service: NoteServiceDep,
) -> Note:
    return await note_service.create_note(plant_id, body.user_id, body.content)


@router.put(
    "/notes/{note_id}",
    response_model=Note,
    summary="Edit a note",
    responses={400: {"model": ErrorResponse}, **NOT_FOUND},
)
async def update_note(
    note_id: Annotated[int, Path(description="Note identifier")],
    body: NoteUpdateRequest,
    note_service: NoteServiceDep,
) -> Note:
    return await note_service.update_note(note_id, body.content, user_id=body.user_id)


@router.delete(
    "/notes/{note_id}",
    response_model=MessageResponse,
    summary="Delete a note",
    responses=NOT_FOUND,
)
async def delete_note(
    note_id: Annotated[int, Path(description="Note identifier")],
    note_service: NoteServiceDep,
    userId: Annotated[Optional[str], Query(description="Author the note must belong to")] = None,
) -> MessageResponse:
    await note_service.delete_note(note_id, user_id=userId)
    return MessageResponse(message="Note deleted")
