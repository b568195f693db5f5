"""
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.config import settings
from app.infrastructure.brigade_client import BrigadeClient
from app.infrastructure.data_store_client import DataStoreClient
from app.infrastructure.identity_client import IdentityClient
from app.middleware.error_handler import ErrorHandlerMiddleware
from app.middleware.rate_limit import limiter
from app.api.v1.routers import geodesy, survey

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

    Creates the outbound clients on startup and closes them on shutdown.
    """
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Survey flags: auth_enabled={settings.auth_enabled}, "
                f"record_timestamps={settings.record_timestamps}, "
                f"persist_conglomerate_summaries={settings.persist_conglomerate_summaries}, "
                f"non_positive_diameter_policy={settings.non_positive_diameter_policy}")
    logger.info(f"Rate limit: {settings.rate_limit_requests} requests/minute")

    app.state.data_store = DataStoreClient()
    app.state.brigade_client = BrigadeClient()
    app.state.identity_client = IdentityClient()

    yield

    # Shutdown
    logger.info("Shutting down application...")
    await app.state.data_store.close()
    await app.state.brigade_client.close()
    await app.state.identity_client.close()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Forest Inventory Survey API

    This API lets field survey applications register, query and summarize
    tree detections gathered during forest inventory fieldwork.

    ## Features

    - **Detection records**: Register, list, update and delete trees per subparcel
    - **Summaries**: Counts by condition, diameter and height averages, species
      count and diameter size-class histogram per conglomerate or subparcel
    - **Data-quality validation**: Missing and inconsistent field counts
    - **Satellite detection (simulated)**: Synthetic detections placed around the
      plot centre with their distance and azimuth
    - **Geodesy**: Haversine distance and initial bearing between coordinates
    - **Rate Limiting**: Protects the API from abuse
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# Add CORS middleware with configurable origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# Add global error handling middleware
app.add_middleware(ErrorHandlerMiddleware)

# Include routers
app.include_router(survey.router, prefix="/api/v1")
app.include_router(geodesy.router, prefix="/api/v1")


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
