# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints.

This module provides health and readiness endpoints for the API.
"""

import logging
import time
from datetime import datetime
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from src.core.config import get_settings
from src.infrastructure.cache import get_redis_or_none
from src.infrastructure.database.connection import check_database_connection
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()

API_VERSION = "1.0.0"

# Track server start time for uptime calculation
_server_start_time = time.time()


class ComponentHealth(BaseModel):
    """Individual component health status."""

    status: str = Field(description="Component status")
    latency_ms: float | None = Field(None, description="Response latency in ms")


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = Field(description="Overall health status")
    timestamp: datetime = Field(description="Current server timestamp")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    ready: bool = Field(description="Whether the service is ready")
    checks: dict[str, Any] = Field(description="Individual check results")


async def check_database() -> ComponentHealth:
    """Check the database connection."""
    start = time.perf_counter()
    healthy = await check_database_connection()
    if not healthy:
        logger.error("Database health check failed")
        return ComponentHealth(status="unhealthy")
    return ComponentHealth(
        status="healthy",
        latency_ms=round((time.perf_counter() - start) * 1000, 2),
    )


async def check_redis() -> ComponentHealth:
    """Check the Redis connection.

    Redis only backs the advisory cache, so a missing client is reported
    as disabled rather than unhealthy.
    """
    client = get_redis_or_none()
    if client is None:
        return ComponentHealth(status="disabled")

    start = time.perf_counter()
    if not await client.ping():
        logger.warning("Redis health check failed")
        return ComponentHealth(status="unhealthy")
    return ComponentHealth(
        status="healthy",
        latency_ms=round((time.perf_counter() - start) * 1000, 2),
    )


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness probe. Does not touch any backing service."""
    settings = get_settings()
    return HealthResponse(
        status="healthy",
        timestamp=utc_now(),
        version=API_VERSION,
        environment=settings.environment,
        uptime_seconds=int(time.time() - _server_start_time),
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check() -> JSONResponse:
    """Check if the API is ready to accept traffic.

    Ready means the database answers; Redis status is reported but does
    not gate readiness.

    Returns:
        200 with the check results when ready, 503 otherwise.
    """
    db_health = await check_database()
    redis_health = await check_redis()

    ready = db_health.status == "healthy"
    body = ReadinessResponse(
        ready=ready,
        checks={
            "database": db_health.model_dump(),
            "redis": redis_health.model_dump(),
        },
    )
    return JSONResponse(status_code=200 if ready else 503, content=body.model_dump())
