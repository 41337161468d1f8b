"""
Root & Health Endpoints
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.database import get_db
from app.schemas import HealthResponse
from app.services import orders
from app.services.notifications import BaseNotificationService, get_notification_service
from app.services.rate_limit import BaseRateLimiter, get_rate_limiter

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    settings = get_settings()
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    response: Response,
    db: AsyncSession = Depends(get_db),
    limiter: BaseRateLimiter = Depends(get_rate_limiter),
    notifier: BaseNotificationService = Depends(get_notification_service),
) -> HealthResponse:
    """Verify the database, rate limiter and email provider are reachable."""
    settings = get_settings()

    database = "connected"
    order_count = 0
    try:
        order_count = await orders.count_orders(db)
    except SQLAlchemyError as e:
        database = "disconnected"
        logger.error(f"Database health check failed: {e}")

    rate_limiter = "healthy" if await limiter.health_check() else "unhealthy"
    email = "healthy" if await notifier.health_check() else "unhealthy"

    overall = "healthy" if database == "connected" else "unhealthy"
    if overall != "healthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status=overall,
        database=database,
        order_count=order_count,
        timestamp=datetime.now(timezone.utc),
        version=settings.app_version,
        environment=settings.env_mode.value,
        rate_limiter=rate_limiter,
        email=email,
    )
