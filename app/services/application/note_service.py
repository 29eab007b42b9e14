"""
Application service: plant notes.
"""
from datetime import datetime
from typing import Any, Callable, List, Optional

from app.domain.exceptions import NotFoundError, ValidationError
from app.domain.models import Note
from app.infrastructure.queries import NoteQueries, PlantQueries
from app.infrastructure.relational_gateway import RelationalGateway, format_sql_datetime
from app.utils.json_fields import to_timestamp_string


def _to_note(row) -> Note:
    return Note(
        note_id=row["note_id"],
        plant_obj_id=row["plant_obj_id"],
        user_id=row.get("user_id"),
        content=row.get("content") or "",
        created_at=to_timestamp_string(row.get("created_at")),
        updated_at=to_timestamp_string(row.get("updated_at")),
    )


def _require_content(content: Optional[str]) -> str:
    if content is None or not content.strip():
        raise ValidationError("Missing required fields", "Missing: content")
    return content.strip()


class NoteService:
    """CRUD for notes; every note belongs to one plant and one user."""

    def __init__(
        self,
        gateway: RelationalGateway,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.gateway = gateway
        self.clock = clock or datetime.now

    async def list_notes(self, plant_id: int, user_id: Optional[Any] = None) -> List[Note]:
        rows = await self.gateway.fetch_all(
            NoteQueries.SELECT_FOR_PLANT, {"plant_id": plant_id, "user_id": user_id}
        )
        return [_to_note(row) for row in rows]

    async def create_note(self, plant_id: int, user_id: Any, content: Optional[str]) -> Note:
        """
        Attach a note to a plant.

        Raises:
            ValidationError: If content or user is missing
            NotFoundError: If the plant does not exist or belongs to someone else
        """
        content = _require_content(content)
        if user_id is None or str(user_id).strip() == "":
            raise ValidationError("Missing required fields", "Missing: userId")

        created_at = format_sql_datetime(self.clock())
        async with self.gateway.transaction() as tx:
            plant = await tx.fetch_one(
                PlantQueries.EXISTS, {"plant_id": plant_id, "user_id": user_id}
            )
            if plant is None:
                raise NotFoundError("Plant not found", f"No plant {plant_id}")
            note_id = await tx.insert(NoteQueries.INSERT, {
                "plant_id": plant_id,
                "user_id": user_id,
                "content": content,
                "created_at": created_at,
            })

        return Note(
            note_id=note_id,
            plant_obj_id=plant_id,
            user_id=user_id,
            content=content,
            created_at=created_at,
            updated_at=created_at,
        )

    async def update_note(self, note_id: int, content: Optional[str], user_id: Optional[Any] = None) -> Note:
        """
        Raises:
            ValidationError: If content is missing
            NotFoundError: If the note does not exist or belongs to someone else
        """
        content = _require_content(content)
        async with self.gateway.transaction() as tx:
            matched = await tx.execute(NoteQueries.UPDATE, {
                "note_id": note_id,
                "user_id": user_id,
                "content": content,
                "updated_at": format_sql_datetime(self.clock()),
            })
            if not matched:
                raise NotFoundError("Note not found", f"No note {note_id}")
            row = await tx.fetch_one(NoteQueries.SELECT_BY_ID, {"note_id": note_id})
        return _to_note(row)

    async def delete_note(self, note_id: int, user_id: Optional[Any] = None) -> None:
        """
        Raises:
            NotFoundError: If the note does not exist or belongs to someone else
        """
        async with self.gateway.transaction() as tx:
            deleted = await tx.execute(
                NoteQueries.DELETE, {"note_id": note_id, "user_id": user_id}
            )
        if not deleted:
            raise NotFoundError("Note not found", f"No note {note_id}")
