import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from schemas.rooms import HealthResponse, ServiceInfoResponse
from constants import SERVICE_NAME, SERVICE_VERSION

health_router = APIRouter(tags=["health"])


@health_router.get("/api/health", response_model=HealthResponse)
async def health(request: Request):
    return HealthResponse(
        status="ok",
        rooms=request.app.state.registry.room_count(),
        uptime=round(time.monotonic() - request.app.state.started_at, 3),
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    )


@health_router.get("/", response_model=ServiceInfoResponse)
async def service_info():
    return ServiceInfoResponse(
        name=SERVICE_NAME,
        version=SERVICE_VERSION,
        status="running",
        endpoints={
            "health": "/api/health",
            "createRoom": "POST /api/rooms/create",
            "checkRoom": "GET /api/rooms/:roomCode",
            "signaling": "WS /ws",
        },
    )
