# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints."""

import logging
import time
from datetime import datetime, timezone
from typing import Any

import redis.asyncio as aioredis
from fastapi import APIRouter
from pydantic import BaseModel, Field
from redis.exceptions import RedisError

from src import __version__
from src.core.config import get_settings
from src.infrastructure.background.broker import get_broker_manager
from src.infrastructure.database.connection import check_database_connection

logger = logging.getLogger(__name__)

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()


class ComponentHealth(BaseModel):
    """Individual component health status."""

    status: str = Field(description="Component status")
    latency_ms: float | None = Field(None, description="Response latency in ms")
    message: str | None = Field(None, description="Additional status message")


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = Field(description="Overall health status")
    timestamp: datetime = Field(description="Current server timestamp")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")
    components: dict[str, ComponentHealth] = Field(default_factory=dict)
    queues: dict[str, Any] = Field(default_factory=dict, description="Job queue statistics")


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    ready: bool = Field(description="Whether the service is ready")
    checks: dict[str, Any] = Field(description="Individual check results")


async def check_database() -> ComponentHealth:
    """Check PostgreSQL database connection."""
    start = time.time()
    if not await check_database_connection():
        return ComponentHealth(status="unhealthy", message="Database unreachable")
    latency = (time.time() - start) * 1000
    return ComponentHealth(status="healthy", latency_ms=round(latency, 2))


async def check_redis() -> ComponentHealth:
    """Check Redis connection."""
    start = time.time()
    client = aioredis.from_url(get_settings().redis.url)
    try:
        await client.ping()
    except RedisError as e:
        logger.error("Redis health check failed: %s", e)
        return ComponentHealth(status="unhealthy", message=str(e))
    finally:
        await client.aclose()

    latency = (time.time() - start) * 1000
    return ComponentHealth(status="healthy", latency_ms=round(latency, 2))


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Report overall health with component details and queue depth."""
    settings = get_settings()

    components = {
        "database": await check_database(),
        "redis": await check_redis(),
    }

    statuses = [c.status for c in components.values()]
    overall_status = "healthy" if all(s == "healthy" for s in statuses) else "unhealthy"

    return HealthResponse(
        status=overall_status,
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        environment=settings.environment,
        uptime_seconds=int(time.time() - _server_start_time),
        components=components,
        queues=get_broker_manager().get_queue_stats(),
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check() -> ReadinessResponse:
    """Check if the API is ready to accept traffic."""
    db_health = await check_database()
    redis_health = await check_redis()

    checks = {
        "database": {"status": db_health.status, "latency_ms": db_health.latency_ms},
        "redis": {"status": redis_health.status, "latency_ms": redis_health.latency_ms},
    }
    ready = db_health.status == "healthy" and redis_health.status == "healthy"

    return ReadinessResponse(ready=ready, checks=checks)


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    """Liveness probe; the process is up if it can answer."""
    return {"status": "alive"}
