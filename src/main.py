import uvicorn
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.core.exceptions.base import register_exception_handlers
from src.api.core.middleware.logging import logging_middleware
from src.api.core.middleware.security import (
    PayloadSizeMiddleware,
    SecurityHeadersMiddleware,
)
from src.api.router import api_router
from src.database.connection import AsyncSessionLocal
from src.modules.plants.infrastructure.plant_id_client import (
    PlantIdClient,
    build_plant_api_http_client,
)
from src.utils.logger import setup_logging
from src.utils.object_storage import ChunkedUploader
from src.utils.settings.app import AppSettings
from src.utils.settings.plant_api import PlantApiSettings
from src.utils.settings.storage import StorageSettings

app_settings = AppSettings()
is_production = app_settings.is_production


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger = setup_logging(is_production, debug=app_settings.DEBUG)
    logger.info("Starting PlantScan API...")
    app_settings.validate_prod()

    app.state.session_factory = AsyncSessionLocal
    logger.info("Database session factory added to app state")

    plant_api_settings = PlantApiSettings()
    http_client = build_plant_api_http_client(plant_api_settings)
    app.state.plant_id_client = PlantIdClient(http_client, plant_api_settings)
    app.state.uploader = ChunkedUploader(StorageSettings())
    logger.info(
        "External clients configured",
        plant_api_url=plant_api_settings.PLANT_API_URL,
        bucket=app.state.uploader.settings.S3_BUCKET,
    )

    yield

    # Shutdown
    logger.info("Shutting down PlantScan API...")
    await http_client.aclose()


app = FastAPI(
    title="PlantScan API",
    description="Plant identification and health assessment from images",
    version=app_settings.API_VERSION,
    lifespan=lifespan,
    docs_url=None if is_production else "/docs",
    redoc_url=None if is_production else "/redoc",
    openapi_url=None if is_production else "/openapi.json",
)

# Register global exception handlers
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware, is_production=is_production)
app.add_middleware(PayloadSizeMiddleware, max_request_size=app_settings.MAX_REQUEST_SIZE)
app.middleware("http")(logging_middleware)

app.include_router(api_router)


def run_dev_server():
    """Run development server with auto-reload."""
    uvicorn.run(
        "src.main:app", host="0.0.0.0", port=8010, reload=True, access_log=False
    )


def run_prod_server():
    """Run production server."""
    uvicorn.run(
        "src.main:app", host="0.0.0.0", port=8010, reload=False, access_log=False
    )
