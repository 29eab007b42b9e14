"""
Application service: photo listing and metadata edits.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.domain.exceptions import NotFoundError, ValidationError
from app.domain.models import PhotoRecord
from app.infrastructure.queries import PhotoQueries
from app.infrastructure.relational_gateway import RelationalGateway, format_sql_datetime
from app.services.domain.plant_aggregate_assembler import PlantAggregateAssembler


class PhotoService:
    """Reads photos and edits their date_taken / stage."""

    def __init__(self, gateway: RelationalGateway, assembler: PlantAggregateAssembler):
        self.gateway = gateway
        self.assembler = assembler

    async def list_photos(self, plant_id: int) -> List[PhotoRecord]:
        """Photos of a plant in canonical shape, oldest capture first."""
        rows = await self.gateway.fetch_all(PhotoQueries.SELECT_FOR_PLANT, {"plant_id": plant_id})
        return self.assembler.assemble({"plant_obj_id": plant_id, "photos": rows}).photos

    async def update_photo(
        self,
        plant_id: int,
        photo_id: int,
        date_taken: Optional[datetime] = None,
        stage_id: Optional[int] = None,
        user_id: Optional[Any] = None,
    ) -> None:
        """
        Change a photo's capture date and/or stage.

        Raises:
            ValidationError: If neither field is supplied
            NotFoundError: If the photo does not belong to the plant/user
        """
        changes: Dict[str, Any] = {}
        if date_taken is not None:
            changes["date_taken"] = format_sql_datetime(date_taken)
        if stage_id is not None:
            changes["stage_id"] = stage_id
        if not changes:
            raise ValidationError("Nothing to update", "Supply dateTaken and/or stageId")

        assignments = ", ".join(f"{column} = :{column}" for column in changes)
        async with self.gateway.transaction() as tx:
            owned = await tx.fetch_one(PhotoQueries.SELECT_OWNED, {
                "photo_id": photo_id,
                "plant_id": plant_id,
                "user_id": user_id,
            })
            if owned is None:
                raise NotFoundError("Photo not found", f"No photo {photo_id} for plant {plant_id}")
            await tx.execute(
                PhotoQueries.UPDATE_TEMPLATE.format(assignments=assignments),
                {**changes, "photo_id": photo_id},
            )
