from pydantic import Field
from typing import Any, Optional

from schemas.rooms import CamelModel


class JoinRoomPayload(CamelModel):
    room_code: str = Field(min_length=1)
    user_name: Optional[str] = None

class SessionDescriptionPayload(CamelModel):
    """offer / answer: the description itself is opaque to the server."""
    sdp: Any
    to: str

class IceCandidatePayload(CamelModel):
    candidate: Any
    to: str

class TogglePayload(CamelModel):
    state: Any

class ChatMessagePayload(CamelModel):
    text: str
