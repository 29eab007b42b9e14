"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- A throwaway SQLite database behind a real RelationalGateway
- Object store clients backed by a mock boto3 client
- JPEG payloads with and without EXIF capture dates
- Sample stored-procedure rows
- FastAPI test clients
"""
import io
import pytest
import pytest_asyncio
from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import create_async_engine

from app.main import app
from app.infrastructure.object_store_client import ObjectStoreClient
from app.infrastructure.relational_gateway import RelationalGateway
from app.services.domain.image_metadata import DATE_TIME_ORIGINAL


SCHEMA = [
    """CREATE TABLE variety (
        variety_id INTEGER PRIMARY KEY AUTOINCREMENT,
        variety_name TEXT NOT NULL
    )""",
    """CREATE TABLE location (
        location_id INTEGER PRIMARY KEY AUTOINCREMENT,
        location_name TEXT NOT NULL,
        sun_exposure TEXT
    )""",
    """CREATE TABLE stage (
        stage_id INTEGER PRIMARY KEY AUTOINCREMENT,
        stage_name TEXT NOT NULL,
        description TEXT,
        stage_order INTEGER,
        cold_tolerance REAL,
        heat_tolerance REAL
    )""",
    """CREATE TABLE plant (
        plant_obj_id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER,
        plant_name TEXT,
        variety_id INTEGER,
        location_id INTEGER,
        stage_id INTEGER,
        date_planted TEXT,
        date_updated TEXT,
        is_transplant INTEGER,
        status TEXT,
        sensitivities TEXT
    )""",
    """CREATE TABLE plant_stage (
        plant_stage_id INTEGER PRIMARY KEY AUTOINCREMENT,
        plant_obj_id INTEGER NOT NULL,
        status TEXT NOT NULL,
        date TEXT
    )""",
    """CREATE TABLE photo (
        photo_id INTEGER PRIMARY KEY AUTOINCREMENT,
        storage_photo_id TEXT NOT NULL,
        plant_obj_id INTEGER NOT NULL,
        plant_stage_id INTEGER,
        stage_id INTEGER,
        date_taken TEXT,
        date_uploaded TEXT
    )""",
    """CREATE TABLE note (
        note_id INTEGER PRIMARY KEY AUTOINCREMENT,
        plant_obj_id INTEGER NOT NULL,
        user_id INTEGER,
        content TEXT NOT NULL,
        created_at TEXT,
        updated_at TEXT
    )""",
]

SEED = [
    "INSERT INTO variety (variety_id, variety_name) VALUES (3, 'Sungold')",
    "INSERT INTO location (location_id, location_name, sun_exposure) VALUES (1, 'Greenhouse', 'full')",
    """INSERT INTO stage (stage_id, stage_name, description, stage_order, cold_tolerance, heat_tolerance)
       VALUES (2, 'Seedling', 'First true leaves', 2, 10.0, 32.0)""",
    """INSERT INTO stage (stage_id, stage_name, description, stage_order, cold_tolerance, heat_tolerance)
       VALUES (1, 'Germination', 'Seed sprouts', 1, 15.0, 30.0)""",
    """INSERT INTO plant (plant_obj_id, user_id, plant_name, variety_id, location_id, stage_id,
                          date_planted, date_updated, is_transplant, status, sensitivities)
       VALUES (42, 7, 'Cherry tomato', 3, 1, 2, '2024-02-10 00:00:00', '2024-02-20 08:15:00',
               0, 'active', '["frost", "overwatering"]')""",
    """INSERT INTO plant (plant_obj_id, user_id, plant_name, date_planted, status)
       VALUES (43, 8, 'Basil', '2024-01-05', 'active')""",
]


# ============================================================
# Database Fixtures
# ============================================================

@pytest_asyncio.fixture
async def sqlite_engine(tmp_path):
    """Create a file-backed SQLite engine with the schema and seed rows."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bloom.db'}")
    async with engine.begin() as conn:
        for statement in SCHEMA + SEED:
            await conn.exec_driver_sql(statement)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def gateway(sqlite_engine) -> RelationalGateway:
    """Real gateway over the SQLite engine."""
    return RelationalGateway(sqlite_engine, call_timeout=5.0)


@pytest.fixture
def count_rows(gateway):
    """Count rows in a table, optionally filtered by equality conditions."""
    async def _count(table: str, **where) -> int:
        clause = " AND ".join(f"{column} = :{column}" for column in where) or "1 = 1"
        row = await gateway.fetch_one(f"SELECT COUNT(*) AS n FROM {table} WHERE {clause}", where)
        return row["n"]
    return _count


# ============================================================
# Object Store Fixtures
# ============================================================

@pytest.fixture
def mock_s3_client() -> MagicMock:
    """Mock boto3 S3 client that accepts every call."""
    client = MagicMock()
    client.put_object.return_value = {"ETag": '"abc"'}
    client.delete_object.return_value = {}
    client.list_objects_v2.return_value = {"Contents": [], "IsTruncated": False}
    return client


@pytest.fixture
def object_store(mock_s3_client) -> ObjectStoreClient:
    """Object store client over the mock boto3 client, retrying without waits."""
    return ObjectStoreClient(
        s3_client=mock_s3_client,
        bucket="bloom-test",
        endpoint="nyc3.digitaloceanspaces.com",
        timeout=2.0,
        max_attempts=2,
        retry_min_wait=0,
        retry_max_wait=0,
    )


@pytest.fixture
def mock_object_store() -> AsyncMock:
    """Fully mocked object store client."""
    store = AsyncMock(spec=ObjectStoreClient)
    store.build_public_url.side_effect = (
        lambda key: f"https://bloom-test.nyc3.digitaloceanspaces.com/{key}"
    )
    return store


# ============================================================
# Image Fixtures
# ============================================================

def make_jpeg(date_time_original: Optional[str] = None, size=(64, 48)) -> bytes:
    """Encode a small JPEG, optionally carrying an EXIF DateTimeOriginal."""
    img = Image.new("RGB", size, color=(34, 139, 34))
    buffer = io.BytesIO()
    if date_time_original is None:
        img.save(buffer, format="JPEG")
    else:
        exif = Image.Exif()
        exif[DATE_TIME_ORIGINAL] = date_time_original
        img.save(buffer, format="JPEG", exif=exif)
    return buffer.getvalue()


@pytest.fixture
def jpeg_factory():
    """Factory for JPEGs with an arbitrary DateTimeOriginal."""
    return make_jpeg


@pytest.fixture
def jpeg_with_exif() -> bytes:
    """JPEG taken on 2024-03-01 according to EXIF."""
    return make_jpeg("2024:03:01 09:30:00")


@pytest.fixture
def jpeg_without_exif() -> bytes:
    """JPEG with no metadata."""
    return make_jpeg()


# ============================================================
# Stored Procedure Rows
# ============================================================

@pytest.fixture
def procedure_rows() -> list[dict]:
    """Rows as GetPlantsWithStagesAndLocations returns them, mixing encodings."""
    return [
        {
            "plant_obj_id": 42,
            "user_id": 7,
            "plant_name": "Cherry tomato",
            "variety": '{"id": 3, "name": "Sungold"}',
            "stage": {"id": 2, "name": "Seedling", "stage_order": 2},
            "location": '{"id": 1, "name": "Greenhouse", "sun_exposure": "full"}',
            "photos": '[{"photo_id": 10, "storage_photo_id": "plants/42/a-leaf.jpg", '
                      '"date_taken": "2024-03-01 09:30:00", "date_uploaded": "2024-03-02 18:11:05", '
                      '"stage_id": 2}]',
            "notes": [{"note_id": 1, "content": "Repotted"}],
            "warning": '{"cold_tolerance": 10, "heat_tolerance": 32}',
            "projections": '[{"stage_id": 3, "expected_start": "2024-04-01", "expected_end": "2024-04-20"}]',
            "sensitivities": '["frost"]',
            "date_updated": "2024-02-20T08:15:00.000Z",
            "date_planted": "2024-02-10 00:00:00",
            "is_transplant": 0,
            "status": "active",
            "current_temp": 21.5,
        },
        {
            "plant_obj_id": 43,
            "user_id": 7,
            "plant_name": "Basil",
            "variety": None,
            "stage": None,
            "location": None,
            "photos": None,
            "notes": None,
            "warning": None,
            "projections": None,
            "date_updated": None,
            "date_planted": None,
            "is_transplant": 1,
            "status": "active",
            "current_temp": None,
        },
    ]


# ============================================================
# FastAPI Test Client Fixtures
# ============================================================

@pytest.fixture
def test_client() -> TestClient:
    """Create a synchronous test client for FastAPI."""
    return TestClient(app)


@pytest_asyncio.fixture
async def async_test_client() -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client for FastAPI."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    """Leave no dependency overrides behind between tests."""
    yield
    app.dependency_overrides.clear()
