"""Global test configuration and fixtures for the PlantScan API."""

from collections.abc import AsyncGenerator
from uuid import uuid4

import httpx
import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.core.context import AuthenticatedCaller
from src.database.models import Base
from src.modules.plants.infrastructure.plant_id_client import (
    PlantIdClient,
    build_plant_api_http_client,
)
from src.utils.object_storage import ChunkedUploader
from src.utils.settings.plant_api import PlantApiSettings
from src.utils.settings.storage import StorageSettings
from tests.factories import PlantFactory
from tests.utils.fakes import (
    FakeS3Client,
    FakeS3Session,
    InMemoryPlantStore,
    RecognitionStub,
)

TEST_PART_SIZE = 16


@pytest.fixture
def plant_factory():
    return PlantFactory


@pytest.fixture(autouse=True)
def sleeps(monkeypatch) -> list[float]:
    """Record backoff delays instead of waiting them out."""
    recorded: list[float] = []

    async def _record(seconds: float) -> None:
        recorded.append(seconds)

    monkeypatch.setattr("src.utils.http.retry._sleep", _record)
    monkeypatch.setattr("src.utils.object_storage._sleep", _record)
    return recorded


@pytest.fixture
def caller() -> AuthenticatedCaller:
    return AuthenticatedCaller(user_id=uuid4(), email="grower@example.com")


@pytest.fixture
def storage_settings() -> StorageSettings:
    return StorageSettings(
        S3_ENDPOINT="https://storage.test",
        S3_BUCKET="test-bucket",
        UPLOAD_PART_SIZE=TEST_PART_SIZE,
        UPLOAD_MAX_RETRIES=3,
        SIGNED_URL_EXPIRY_SECONDS=600,
    )


@pytest.fixture
def fake_s3() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def uploader(storage_settings, fake_s3) -> ChunkedUploader:
    return ChunkedUploader(storage_settings, session=FakeS3Session(fake_s3))


@pytest.fixture
def plant_api_settings() -> PlantApiSettings:
    return PlantApiSettings(
        PLANT_API_URL="https://plant.test/api/v3/",
        PLANT_API_KEY="test-plant-key",
        PLANT_API_MAX_RETRIES=3,
        PLANT_API_RETRY_BASE_DELAY=1.0,
    )


@pytest.fixture
def recognition() -> RecognitionStub:
    return RecognitionStub()


@pytest_asyncio.fixture
async def plant_api(
    plant_api_settings, recognition
) -> AsyncGenerator[PlantIdClient, None]:
    http = build_plant_api_http_client(
        plant_api_settings, transport=httpx.MockTransport(recognition)
    )
    yield PlantIdClient(http, plant_api_settings)
    await http.aclose()


@pytest.fixture
def store() -> InMemoryPlantStore:
    return InMemoryPlantStore()


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """In-memory SQLite session with the plant tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def app() -> AsyncGenerator[FastAPI, None]:
    """FastAPI application with its lifespan running."""
    from src.main import app

    async with LifespanManager(app):
        yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def api_client(
    app: FastAPI, plant_api, uploader, store, caller
) -> AsyncGenerator[AsyncClient, None]:
    """Client for the plant endpoints with external collaborators replaced."""
    from src.api.core.dependencies import (
        get_current_caller,
        get_plant_id_client,
        get_plant_repository,
        get_uploader,
    )

    app.dependency_overrides[get_plant_id_client] = lambda: plant_api
    app.dependency_overrides[get_uploader] = lambda: uploader
    app.dependency_overrides[get_plant_repository] = lambda: store
    app.dependency_overrides[get_current_caller] = lambda: caller

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test-plantscan-api",
    ) as client:
        yield client
