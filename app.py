from contextlib import asynccontextmanager
import time
import uuid
from typing import Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from backend import RoomRegistry
from constants import (
    ALLOWED_ORIGINS,
    LOG_FILE,
    LOG_LEVEL,
    REAPER_INTERVAL_SECONDS,
    SERVICE_NAME,
    SERVICE_VERSION,
    STALE_ROOM_THRESHOLD_SECONDS,
)
from logging_config import get_logger, setup_logging
from reaper import StaleRoomReaper
from routers.health import health_router
from routers.rooms import rooms_router
from signaling import SignalingCoordinator

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


async def websocket_endpoint(websocket: WebSocket):
    """Persistent signaling channel; one coordinator session per socket.

    Every exit path (client close, network error, keep-alive timeout) goes
    through coordinator.disconnect exactly once.
    """
    coordinator: SignalingCoordinator = websocket.app.state.coordinator
    connection_id = str(uuid.uuid4())
    client_host = websocket.client.host if websocket.client else "unknown"

    await websocket.accept()
    coordinator.connect(connection_id, websocket)
    logger.info(f"[Connected] {connection_id} from {client_host}")

    try:
        while True:
            try:
                data = await websocket.receive_text()
            except WebSocketDisconnect as e:
                logger.info(f"[Disconnected] {connection_id} (code={e.code})")
                break
            except KeyError:
                # binary frame, there is no "text" to read
                logger.warning(f"Dropping binary frame from {connection_id}")
                continue
            await coordinator.handle_message(connection_id, data)
    except Exception as e:
        logger.error(f"WebSocket error for connection {connection_id}: {e}", exc_info=True)
    finally:
        await coordinator.disconnect(connection_id)


def create_app(
    registry: Optional[RoomRegistry] = None,
    reaper_interval: float = REAPER_INTERVAL_SECONDS,
    stale_threshold: float = STALE_ROOM_THRESHOLD_SECONDS,
) -> FastAPI:
    registry = registry or RoomRegistry()
    reaper = StaleRoomReaper(registry, interval_seconds=reaper_interval, threshold_seconds=stale_threshold)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        reaper.start()
        try:
            yield
        finally:
            await reaper.stop()

    app = FastAPI(title=SERVICE_NAME, version=SERVICE_VERSION, lifespan=lifespan)
    app.state.registry = registry
    app.state.coordinator = SignalingCoordinator(registry)
    app.state.reaper = reaper
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(rooms_router)
    app.add_api_websocket_route("/ws", websocket_endpoint)

    logger.info(f"FastAPI application initialized (allowed origins: {ALLOWED_ORIGINS})")
    return app


app = create_app()
