"""
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.infrastructure.object_store_client import ObjectStoreClient
from app.infrastructure.relational_gateway import RelationalGateway, create_engine_from_settings
from app.middleware.error_handler import ErrorHandlerMiddleware, validation_exception_handler
from app.middleware.rate_limit import limiter
from app.api.v1.routers import notes, photos, plants

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Builds the pooled database gateway and the object store client once,
    and releases both on shutdown.
    """
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Database: {settings.db_host}:{settings.db_port}/{settings.db_database} "
                f"(pool={settings.db_pool_size}, call_timeout={settings.db_call_timeout}s)")
    logger.info(f"Object store: {settings.do_spaces_bucket}.{settings.do_spaces_endpoint}")
    logger.info(f"Upload rate limit: {settings.upload_rate_limit}")

    app.state.relational_gateway = RelationalGateway(create_engine_from_settings())
    app.state.object_store_client = ObjectStoreClient()

    yield

    # Shutdown
    logger.info("Shutting down application...")
    await app.state.relational_gateway.dispose()
    app.state.object_store_client.close()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Backend for the Bloom plant-growth tracker

    Stores plants, growth stages, photos and notes in MySQL and keeps plant
    images in a DigitalOcean Spaces bucket.

    ## Features

    - **Plant aggregates**: each plant with its variety, stage, location,
      photos, notes, stage warning and growth projections
    - **Photo uploads**: images are stored under unique keys, dated from
      their EXIF capture time and recorded transactionally
    - **Notes**: per-user notes on each plant
    - **Rate Limiting**: protects the upload endpoints from abuse

    ## Errors

    Failures return `{"message": ..., "error": ...}` with status 400 for
    invalid input, 404 for unknown or foreign records, and 500 for storage
    or database failures.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Request validation failures use the same {message, error} body as domain errors
app.add_exception_handler(RequestValidationError, validation_exception_handler)

# Add CORS middleware with configurable origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add global error handling middleware
app.add_middleware(ErrorHandlerMiddleware)

# Include routers
app.include_router(plants.router, prefix="/api")
app.include_router(photos.router, prefix="/api")
app.include_router(notes.router, prefix="/api")


@app.get("/", tags=["health"])
async def root():
    """
    Root endpoint for health check.

    Returns:
        Status message
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
    }


@app.get("/health", tags=["health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        Health status
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
    }
