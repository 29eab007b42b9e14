"""
Application service: plant read path and plant edits.
"""
import json
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from app.domain.exceptions import NotFoundError, ValidationError
from app.domain.models import PlantAggregate
from app.infrastructure.queries import (
    NoteQueries,
    PhotoQueries,
    PlantQueries,
    ReferenceQueries,
    StoredProcedures,
)
from app.infrastructure.relational_gateway import RelationalGateway, format_sql_datetime
from app.services.domain.plant_aggregate_assembler import PlantAggregateAssembler
from app.utils.json_fields import to_plain_number

# Request field -> plant column, for partial updates
EDITABLE_COLUMNS = {
    "plant_name": "plant_name",
    "variety_id": "variety_id",
    "location_id": "location_id",
    "stage_id": "stage_id",
    "date_planted": "date_planted",
    "is_transplant": "is_transplant",
    "status": "status",
    "sensitivities": "sensitivities",
}


def _plain_row(row: Dict[str, Any]) -> Dict[str, Any]:
    return {key: to_plain_number(value) for key, value in row.items()}


def _encode_column(column: str, value: Any) -> Any:
    if column == "sensitivities" and value is not None:
        return json.dumps(list(value))
    if isinstance(value, datetime):
        return format_sql_datetime(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


class PlantService:
    """
    Application service for plant aggregates.

    The list view goes through the GetPlantsWithStagesAndLocations procedure;
    the single-plant view is composed from ad-hoc joins. Both feed the same
    assembler, so they return the same shape.
    """

    def __init__(
        self,
        gateway: RelationalGateway,
        assembler: PlantAggregateAssembler,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the service with dependencies.

        Args:
            gateway: Relational store gateway
            assembler: Aggregate assembler
            clock: Source of 'date_updated' timestamps
        """
        self.gateway = gateway
        self.assembler = assembler
        self.clock = clock or datetime.now

    async def list_plants(
        self,
        user_id: Optional[Any] = None,
        status: Optional[str] = None,
    ) -> List[PlantAggregate]:
        """
        Get every plant, optionally filtered by owner and status.

        Args:
            user_id: Owner filter
            status: Plant status filter

        Returns:
            Aggregates in the order the procedure returned them
        """
        rows = await self.gateway.call_procedure(
            StoredProcedures.PLANTS_WITH_STAGES_AND_LOCATIONS,
            [user_id, status],
        )
        return self.assembler.assemble_many(rows)

    async def get_plant(self, plant_id: int, user_id: Optional[Any] = None) -> PlantAggregate:
        """
        Get one plant with its photos and notes.

        Args:
            plant_id: Plant identifier
            user_id: Owner the plant must belong to, when given

        Returns:
            PlantAggregate

        Raises:
            NotFoundError: If the plant does not exist or belongs to someone else
        """
        params = {"plant_id": plant_id, "user_id": user_id}
        row = await self.gateway.fetch_one(PlantQueries.SELECT_BY_ID, params)
        if row is None:
            raise NotFoundError("Plant not found", f"No plant {plant_id}")
        row = _plain_row(row)

        photos = await self.gateway.fetch_all(PhotoQueries.SELECT_FOR_PLANT, {"plant_id": plant_id})
        notes = await self.gateway.fetch_all(NoteQueries.SELECT_FOR_PLANT, params)

        raw = {
            "plant_obj_id": row["plant_obj_id"],
            "user_id": row.get("user_id"),
            "plant_name": row.get("plant_name"),
            "date_planted": row.get("date_planted"),
            "date_updated": row.get("date_updated"),
            "is_transplant": row.get("is_transplant"),
            "status": row.get("status"),
            "sensitivities": row.get("sensitivities"),
            "photos": photos,
            "notes": [_plain_row(note) for note in notes],
        }
        if row.get("variety_id") is not None:
            raw["variety"] = {"id": row["variety_id"], "name": row.get("variety_name")}
        if row.get("location_id") is not None:
            raw["location"] = {
                "id": row["location_id"],
                "name": row.get("location_name"),
                "sun_exposure": row.get("sun_exposure"),
            }
        if row.get("stage_id") is not None:
            raw["stage"] = {
                "id": row["stage_id"],
                "name": row.get("stage_name"),
                "description": row.get("stage_description"),
                "stage_order": row.get("stage_order"),
            }
            raw["warning"] = {
                "cold_tolerance": row.get("cold_tolerance"),
                "heat_tolerance": row.get("heat_tolerance"),
            }
        return self.assembler.assemble(raw)

    async def create_plant(self, user_id: Any, fields: Dict[str, Any]) -> int:
        """
        Create a plant.

        Args:
            user_id: Owner
            fields: Column values keyed by EDITABLE_COLUMNS names

        Returns:
            New plant id

        Raises:
            ValidationError: If the plant name is missing
        """
        if user_id is None or str(user_id).strip() == "":
            raise ValidationError("Missing required fields", "Missing: userId")
        if not (fields.get("plant_name") or "").strip():
            raise ValidationError("Missing required fields", "Missing: plantName")

        values = {column: None for column in EDITABLE_COLUMNS.values()}
        for name, value in fields.items():
            if name in EDITABLE_COLUMNS:
                values[EDITABLE_COLUMNS[name]] = _encode_column(EDITABLE_COLUMNS[name], value)
        values["user_id"] = user_id
        values["date_updated"] = format_sql_datetime(self.clock())
        if values["sensitivities"] is None:
            values["sensitivities"] = "[]"

        async with self.gateway.transaction() as tx:
            return await tx.insert(PlantQueries.INSERT, values)

    async def update_plant(
        self,
        plant_id: int,
        fields: Dict[str, Any],
        user_id: Optional[Any] = None,
    ) -> None:
        """
        Apply a partial update. Concurrent edits are last-write-wins.

        Raises:
            ValidationError: If no editable field was supplied
            NotFoundError: If no plant matched
        """
        changes = {
            EDITABLE_COLUMNS[name]: _encode_column(EDITABLE_COLUMNS[name], value)
            for name, value in fields.items()
            if name in EDITABLE_COLUMNS
        }
        if not changes:
            raise ValidationError("Nothing to update", "No editable fields supplied")
        changes["date_updated"] = format_sql_datetime(self.clock())

        assignments = ", ".join(f"{column} = :{column}" for column in changes)
        statement = PlantQueries.UPDATE_TEMPLATE.format(assignments=assignments)

        async with self.gateway.transaction() as tx:
            matched = await tx.execute(
                statement, {**changes, "plant_id": plant_id, "user_id": user_id}
            )
        if not matched:
            raise NotFoundError("Plant not found", f"No plant {plant_id}")

    async def ensure_plant(self, plant_id: int, user_id: Optional[Any] = None) -> None:
        """
        Raises:
            NotFoundError: If the plant does not exist or belongs to someone else
        """
        row = await self.gateway.fetch_one(
            PlantQueries.EXISTS, {"plant_id": plant_id, "user_id": user_id}
        )
        if row is None:
            raise NotFoundError("Plant not found", f"No plant {plant_id}")

    async def list_stages(self) -> List[Dict[str, Any]]:
        return [_plain_row(row) for row in await self.gateway.fetch_all(ReferenceQueries.STAGES)]

    async def list_locations(self) -> List[Dict[str, Any]]:
        return await self.gateway.fetch_all(ReferenceQueries.LOCATIONS)

    async def list_varieties(self) -> List[Dict[str, Any]]:
        return await self.gateway.fetch_all(ReferenceQueries.VARIETIES)
