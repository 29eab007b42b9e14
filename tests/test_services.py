"""
Tests for the plant, photo and note application services.
"""
import pytest
from datetime import date, datetime
from unittest.mock import AsyncMock

from app.domain.exceptions import NotFoundError, ValidationError
from app.infrastructure.queries import StoredProcedures
from app.infrastructure.relational_gateway import RelationalGateway
from app.services.application.note_service import NoteService
from app.services.application.photo_service import PhotoService
from app.services.application.plant_service import PlantService
from app.services.domain.plant_aggregate_assembler import PlantAggregateAssembler


NOW = datetime(2024, 4, 1, 10, 0, 0)


@pytest.fixture
def plant_service(gateway) -> PlantService:
    return PlantService(gateway, PlantAggregateAssembler(), clock=lambda: NOW)


@pytest.fixture
def photo_service(gateway) -> PhotoService:
    return PhotoService(gateway, PlantAggregateAssembler())


@pytest.fixture
def note_service(gateway) -> NoteService:
    return NoteService(gateway, clock=lambda: NOW)


async def add_photo(gateway, plant_id: int, key: str, date_taken: str, stage_id=None) -> int:
    async with gateway.transaction() as tx:
        return await tx.insert(
            """INSERT INTO photo (storage_photo_id, plant_obj_id, stage_id, date_taken, date_uploaded)
               VALUES (:k, :p, :s, :d, :d)""",
            {"k": key, "p": plant_id, "s": stage_id, "d": date_taken},
        )


# ============================================================
# Plant Service Tests
# ============================================================

class TestPlantServiceList:
    """Tests for the procedure-backed list view."""

    @pytest.mark.asyncio
    async def test_list_plants_calls_procedure(self, procedure_rows):
        gateway = AsyncMock(spec=RelationalGateway)
        gateway.call_procedure.return_value = procedure_rows
        service = PlantService(gateway, PlantAggregateAssembler())

        plants = await service.list_plants(user_id="7", status="active")

        gateway.call_procedure.assert_awaited_once_with(
            StoredProcedures.PLANTS_WITH_STAGES_AND_LOCATIONS, ["7", "active"]
        )
        assert [plant.plant_obj_id for plant in plants] == [42, 43]
        assert plants[0].photos[0].filename == "plants/42/a-leaf.jpg"

    @pytest.mark.asyncio
    async def test_list_plants_empty(self):
        gateway = AsyncMock(spec=RelationalGateway)
        gateway.call_procedure.return_value = []

        assert await PlantService(gateway, PlantAggregateAssembler()).list_plants() == []


class TestPlantServiceGet:
    """Tests for the single-plant view."""

    @pytest.mark.asyncio
    async def test_get_plant(self, plant_service):
        plant = await plant_service.get_plant(42)

        assert plant.plant_name == "Cherry tomato"
        assert plant.variety == {"id": 3, "name": "Sungold"}
        assert plant.location == {"id": 1, "name": "Greenhouse", "sun_exposure": "full"}
        assert plant.stage["name"] == "Seedling"
        assert plant.stage["stage_order"] == 2
        assert plant.warning.cold_tolerance == 10.0
        assert plant.warning.heat_tolerance == 32.0
        assert plant.sensitivities == ["frost", "overwatering"]
        assert plant.date_planted == "2024-02-10"
        assert plant.date_updated == "2024-02-20"
        assert plant.is_transplant is False
        assert plant.photos == []

    @pytest.mark.asyncio
    async def test_plant_without_references_has_empty_sub_documents(self, plant_service):
        plant = await plant_service.get_plant(43)

        assert plant.variety == {}
        assert plant.stage == {}
        assert plant.location == {}
        assert plant.warning.cold_tolerance is None
        assert plant.date_planted == "2024-01-05"

    @pytest.mark.asyncio
    async def test_photos_in_capture_order(self, plant_service, gateway):
        later = await add_photo(gateway, 42, "plants/42/b.jpg", "2024-03-05 10:00:00", stage_id=2)
        earlier = await add_photo(gateway, 42, "plants/42/a.jpg", "2024-03-01 09:00:00")

        plant = await plant_service.get_plant(42)

        assert [photo.id for photo in plant.photos] == [earlier, later]
        assert plant.photos[1].stage == 2

    @pytest.mark.asyncio
    async def test_unknown_plant(self, plant_service):
        with pytest.raises(NotFoundError):
            await plant_service.get_plant(999)

    @pytest.mark.asyncio
    async def test_foreign_plant(self, plant_service):
        with pytest.raises(NotFoundError):
            await plant_service.get_plant(42, user_id=8)

    @pytest.mark.asyncio
    async def test_ensure_plant(self, plant_service):
        await plant_service.ensure_plant(42, user_id=7)
        with pytest.raises(NotFoundError):
            await plant_service.ensure_plant(42, user_id=8)


class TestPlantServiceWrite:
    """Tests for creating and editing plants."""

    @pytest.mark.asyncio
    async def test_create_plant(self, plant_service):
        plant_id = await plant_service.create_plant("7", {
            "plant_name": "Thai basil",
            "variety_id": 3,
            "date_planted": date(2024, 3, 20),
            "sensitivities": ["heat"],
        })

        plant = await plant_service.get_plant(plant_id)
        assert plant.plant_name == "Thai basil"
        assert plant.variety["name"] == "Sungold"
        assert plant.date_planted == "2024-03-20"
        assert plant.date_updated == "2024-04-01"
        assert plant.sensitivities == ["heat"]

    @pytest.mark.asyncio
    async def test_create_plant_defaults_sensitivities(self, plant_service):
        plant_id = await plant_service.create_plant("7", {"plant_name": "Mint"})

        assert (await plant_service.get_plant(plant_id)).sensitivities == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id,fields", [
        (None, {"plant_name": "Mint"}),
        ("7", {"plant_name": "   "}),
        ("7", {}),
    ])
    async def test_create_plant_requires_owner_and_name(self, plant_service, user_id, fields):
        with pytest.raises(ValidationError):
            await plant_service.create_plant(user_id, fields)

    @pytest.mark.asyncio
    async def test_update_plant(self, plant_service):
        await plant_service.update_plant(42, {"status": "harvested", "is_transplant": True}, user_id=7)

        plant = await plant_service.get_plant(42)
        assert plant.status == "harvested"
        assert plant.is_transplant is True
        assert plant.date_updated == "2024-04-01"

    @pytest.mark.asyncio
    async def test_update_without_editable_fields(self, plant_service):
        with pytest.raises(ValidationError):
            await plant_service.update_plant(42, {"user_id": 99})

    @pytest.mark.asyncio
    async def test_update_foreign_plant(self, plant_service):
        with pytest.raises(NotFoundError):
            await plant_service.update_plant(42, {"status": "harvested"}, user_id=8)

    @pytest.mark.asyncio
    async def test_reference_data(self, plant_service):
        stages = await plant_service.list_stages()
        locations = await plant_service.list_locations()
        varieties = await plant_service.list_varieties()

        assert [stage["stage_name"] for stage in stages] == ["Germination", "Seedling"]
        assert locations[0]["location_name"] == "Greenhouse"
        assert varieties == [{"variety_id": 3, "variety_name": "Sungold"}]


# ============================================================
# Photo Service Tests
# ============================================================

class TestPhotoService:
    """Tests for photo listing and edits."""

    @pytest.mark.asyncio
    async def test_list_photos(self, photo_service, gateway):
        photo_id = await add_photo(gateway, 42, "plants/42/a.jpg", "2024-03-01 09:00:00")

        photos = await photo_service.list_photos(42)

        assert [photo.id for photo in photos] == [photo_id]
        assert photos[0].filename == "plants/42/a.jpg"

    @pytest.mark.asyncio
    async def test_list_photos_none(self, photo_service):
        assert await photo_service.list_photos(43) == []

    @pytest.mark.asyncio
    async def test_update_photo(self, photo_service, gateway):
        photo_id = await add_photo(gateway, 42, "plants/42/a.jpg", "2024-03-01 09:00:00")

        await photo_service.update_photo(
            42, photo_id, date_taken=datetime(2024, 2, 28, 7, 45), stage_id=1, user_id=7
        )

        row = await gateway.fetch_one(
            "SELECT date_taken, stage_id FROM photo WHERE photo_id = :id", {"id": photo_id}
        )
        assert row == {"date_taken": "2024-02-28 07:45:00", "stage_id": 1}

    @pytest.mark.asyncio
    async def test_update_photo_requires_a_change(self, photo_service):
        with pytest.raises(ValidationError):
            await photo_service.update_photo(42, 1)

    @pytest.mark.asyncio
    async def test_update_foreign_photo(self, photo_service, gateway):
        photo_id = await add_photo(gateway, 42, "plants/42/a.jpg", "2024-03-01 09:00:00")

        with pytest.raises(NotFoundError):
            await photo_service.update_photo(42, photo_id, stage_id=1, user_id=8)


# ============================================================
# Note Service Tests
# ============================================================

class TestNoteService:
    """Tests for note CRUD."""

    @pytest.mark.asyncio
    async def test_create_and_list(self, note_service):
        note = await note_service.create_note(42, 7, "  First true leaves today  ")

        assert note.content == "First true leaves today"
        assert note.created_at == note.updated_at == "2024-04-01 10:00:00"

        notes = await note_service.list_notes(42)
        assert [n.note_id for n in notes] == [note.note_id]

    @pytest.mark.asyncio
    async def test_list_filters_by_user(self, note_service):
        await note_service.create_note(42, 7, "Mine")

        assert await note_service.list_notes(42, user_id=8) == []

    @pytest.mark.asyncio
    async def test_create_on_foreign_plant(self, note_service, count_rows):
        with pytest.raises(NotFoundError):
            await note_service.create_note(42, 8, "Not my plant")

        assert await count_rows("note") == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id,content", [(7, ""), (7, None), (None, "Hello")])
    async def test_create_requires_fields(self, note_service, user_id, content):
        with pytest.raises(ValidationError):
            await note_service.create_note(42, user_id, content)

    @pytest.mark.asyncio
    async def test_update(self, gateway):
        times = iter([datetime(2024, 4, 1, 10, 0), datetime(2024, 4, 2, 11, 30)])
        service = NoteService(gateway, clock=lambda: next(times))
        note = await service.create_note(42, 7, "Draft")

        updated = await service.update_note(note.note_id, "Final", user_id=7)

        assert updated.content == "Final"
        assert updated.created_at == "2024-04-01 10:00:00"
        assert updated.updated_at == "2024-04-02 11:30:00"

    @pytest.mark.asyncio
    async def test_update_by_other_user(self, note_service):
        note = await note_service.create_note(42, 7, "Draft")

        with pytest.raises(NotFoundError):
            await note_service.update_note(note.note_id, "Hijacked", user_id=8)

    @pytest.mark.asyncio
    async def test_delete(self, note_service, count_rows):
        note = await note_service.create_note(42, 7, "Temporary")

        await note_service.delete_note(note.note_id, user_id=7)

        assert await count_rows("note") == 0

    @pytest.mark.asyncio
    async def test_delete_unknown(self, note_service):
        with pytest.raises(NotFoundError):
            await note_service.delete_note(12345)
