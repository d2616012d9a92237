# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints.

This module provides the health endpoint for the API.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from classroom_hub import __version__
from classroom_hub.core.config import get_settings
from classroom_hub.infrastructure.background import get_broker_manager
from classroom_hub.infrastructure.database import check_database_connection

logger = logging.getLogger(__name__)

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()


class ComponentHealth(BaseModel):
    """Individual component health status."""
    status: str = Field(description="Component status")
    latency_ms: float | None = Field(None, description="Response latency in ms")
    details: dict[str, Any] | None = Field(None, description="Component details")


class ComponentsHealth(BaseModel):
    """All components health status."""
    database: ComponentHealth
    broker: ComponentHealth


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(description="Overall health status")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")
    checked_at: datetime = Field(description="When health was checked")
    components: ComponentsHealth


async def check_database() -> ComponentHealth:
    """Check the application database connection."""
    start = time.time()
    healthy = await check_database_connection()
    if not healthy:
        logger.error("Database health check failed")
        return ComponentHealth(status="unhealthy")

    latency = (time.time() - start) * 1000
    return ComponentHealth(status="healthy", latency_ms=round(latency, 2))


def check_broker() -> ComponentHealth:
    """Report the Dramatiq broker status and queue sizes."""
    stats = get_broker_manager().get_queue_stats()
    if stats["status"] != "healthy":
        return ComponentHealth(status="unavailable")
    return ComponentHealth(status="healthy", details=stats)


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check if the API is healthy with component details.

    The service is unhealthy when the database is unreachable and
    degraded when only the broker is missing.

    Returns:
        HealthResponse with detailed status.
    """
    settings = get_settings()
    db_health = await check_database()
    broker_health = check_broker()

    if db_health.status != "healthy":
        overall_status = "unhealthy"
    elif broker_health.status != "healthy":
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    return HealthResponse(
        status=overall_status,
        version=__version__,
        environment=settings.environment,
        uptime_seconds=int(time.time() - _server_start_time),
        checked_at=datetime.now(timezone.utc),
        components=ComponentsHealth(database=db_health, broker=broker_health),
    )
