from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateRoomResponse(CamelModel):
    success: bool = True
    room_code: str

class RoomStatusResponse(CamelModel):
    exists: bool
    participant_count: Optional[int] = None
    is_full: Optional[bool] = None

class HealthResponse(BaseModel):
    status: str
    rooms: int
    uptime: float
    timestamp: str

class ServiceInfoResponse(BaseModel):
    name: str
    version: str
    status: str
    endpoints: dict[str, str]
