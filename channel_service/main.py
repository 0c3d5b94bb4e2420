"""Main application for Channel Service."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from . import __version__
from .config import settings
from .database import close_db, create_tables, init_db
from .errors import ChannelServiceError, http_status_for
from .middleware import AuthMiddleware
from .routers import (
    announcements,
    channels,
    health,
    integrations,
    invites,
    members,
    messages,
    moderation,
    organization,
    polls,
    presence,
    scheduled,
    threads,
)
from .services.cache import channel_cache
from .services.kafka_producer import kafka_producer

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    logger.info("Starting Channel Service...")

    # Initialize database
    init_db(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )
    if settings.create_tables:
        await create_tables()
    logger.info("Database initialized")

    # Redis is optional; the cache disables itself when unreachable
    await channel_cache.init_redis()

    # Start Kafka producer
    try:
        await kafka_producer.start()
    except Exception as e:
        logger.error(f"Failed to start Kafka producer: {e}")
        logger.warning("Continuing without Kafka - events will not be published")

    logger.info("Channel Service started successfully")

    yield

    # Shutdown
    logger.info("Shutting down Channel Service...")

    await kafka_producer.stop()
    await channel_cache.close_redis()
    await close_db()

    logger.info("Channel Service shut down successfully")


# Create FastAPI app
app = FastAPI(
    title="Channel Service",
    description="Microservice for channels, memberships, moderation and channel-scoped features",
    version=__version__,
    lifespan=lifespan,
    swagger_ui_parameters={
        "persistAuthorization": True,
    },
)

# Expose Prometheus metrics at /metrics
Instrumentator().instrument(app).expose(app)
logger.info("Prometheus metrics exposed at /metrics")


@app.exception_handler(ChannelServiceError)
async def channel_service_error_handler(request: Request, exc: ChannelServiceError):
    """Translate domain errors into JSON responses."""
    return JSONResponse(status_code=http_status_for(exc), content=exc.to_dict())


def custom_openapi():
    """Customize OpenAPI schema to add security."""
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )

    # Add security scheme
    if "components" not in openapi_schema:
        openapi_schema["components"] = {}
    if "securitySchemes" not in openapi_schema["components"]:
        openapi_schema["components"]["securitySchemes"] = {}

    openapi_schema["components"]["securitySchemes"]["HTTPBearer"] = {
        "type": "http",
        "scheme": "bearer",
        "bearerFormat": "JWT",
    }

    # Apply security globally to all endpoints except health and root
    for path, path_item in openapi_schema["paths"].items():
        if path.startswith("/health") or path in ("/", "/metrics"):
            continue
        for operation in path_item.values():
            if isinstance(operation, dict):
                operation["security"] = [{"HTTPBearer": []}]

    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi  # type: ignore

# Add authentication middleware FIRST (middleware runs in reverse order)
app.add_middleware(AuthMiddleware)

# Add CORS middleware (runs first due to reverse order)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(channels.router, prefix=API_PREFIX, tags=["Channels"])
app.include_router(members.router, prefix=API_PREFIX, tags=["Members"])
app.include_router(invites.router, prefix=API_PREFIX, tags=["Invites"])
app.include_router(moderation.router, prefix=API_PREFIX, tags=["Moderation"])
app.include_router(messages.router, prefix=API_PREFIX, tags=["Messages"])
app.include_router(announcements.router, prefix=API_PREFIX, tags=["Announcements"])
app.include_router(threads.router, prefix=API_PREFIX, tags=["Threads"])
app.include_router(polls.router, prefix=API_PREFIX, tags=["Polls"])
app.include_router(integrations.router, prefix=API_PREFIX, tags=["Integrations"])
app.include_router(organization.router, prefix=API_PREFIX, tags=["Organization"])
app.include_router(scheduled.router, prefix=API_PREFIX, tags=["Scheduled Messages"])
app.include_router(presence.router, prefix=API_PREFIX, tags=["Presence"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "channel",
        "version": __version__,
        "status": "running",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "channel_service.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.is_development,
    )
