from fastapi import APIRouter, Request
from schemas.rooms import CreateRoomResponse, RoomStatusResponse
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/api/rooms", tags=["rooms"])


@rooms_router.post("/create", response_model=CreateRoomResponse)
async def create_room(request: Request):
    # Response 200: { "success": true, "roomCode": "AB12-CD34" }
    registry = request.app.state.registry
    room_code = registry.create_room()
    client_host = request.client.host if request.client else "unknown"
    logger.info(f"[Room Created] Code: {room_code} (requested by {client_host})")
    return CreateRoomResponse(room_code=room_code)


@rooms_router.get("/{room_code}", response_model=RoomStatusResponse, response_model_exclude_none=True)
async def get_room_status(room_code: str, request: Request):
    """
    Check whether a room exists before joining it.

    Returns:
    - exists: false when the code is unknown
    - participantCount / isFull: only when the room exists
    """
    room = request.app.state.registry.get_room(room_code)
    if not room:
        logger.debug(f"Room status: {room_code} not found")
        return RoomStatusResponse(exists=False)

    logger.debug(f"Room status: {room.code} has {room.participant_count} participant(s)")
    return RoomStatusResponse(
        exists=True,
        participant_count=room.participant_count,
        is_full=room.is_full,
    )
