"""Health check endpoint."""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

router = APIRouter(tags=["health"])

SERVICE_NAME = "xendit-gateway"


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Liveness probe for load balancers and API Gateway."""
    return {
        "status": "OK",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": SERVICE_NAME,
    }
