"""Health check endpoints for Channel Service."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import get_db
from ..services.cache import channel_cache
from ..services.kafka_producer import kafka_producer

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": settings.service_name}


@router.get("/health/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    """Readiness check with database connectivity test.

    Cache and Kafka are reported but never make the service unready.
    """
    cache_state = "connected" if channel_cache.redis_client else "disabled"
    kafka_state = "connected" if kafka_producer.producer else "disabled"
    try:
        # Test database connection
        await db.execute(text("SELECT 1"))
        return {
            "status": "ready",
            "service": settings.service_name,
            "database": "connected",
            "cache": cache_state,
            "kafka": kafka_state,
        }
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "status": "not_ready",
            "service": settings.service_name,
            "database": "disconnected",
            "error": str(e),
        }
