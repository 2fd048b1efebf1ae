"""
Signaling coordinator: pairs two connections under a room code and forwards
their handshake and presence messages to each other.

Frames in both directions are JSON objects of the form {"type": <event>, ...fields}.
"""
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import WebSocket
from pydantic import ValidationError

import events
from backend import RoomFullError, RoomRegistry, normalize_code
from constants import DEFAULT_USER_NAME, MAX_PARTICIPANTS
from logging_config import get_logger
from schemas.events import (
    ChatMessagePayload,
    IceCandidatePayload,
    JoinRoomPayload,
    SessionDescriptionPayload,
    TogglePayload,
)

logger = get_logger(__name__)

PAYLOAD_MODELS = {
    events.JOIN_ROOM: JoinRoomPayload,
    events.LEAVE_ROOM: None,
    events.OFFER: SessionDescriptionPayload,
    events.ANSWER: SessionDescriptionPayload,
    events.ICE_CANDIDATE: IceCandidatePayload,
    events.TOGGLE_AUDIO: TogglePayload,
    events.TOGGLE_VIDEO: TogglePayload,
    events.TOGGLE_SCREEN_SHARE: TogglePayload,
    events.CHAT_MESSAGE: ChatMessagePayload,
}


@dataclass
class ConnectionSession:
    connection_id: str
    room_code: Optional[str] = None
    user_name: str = DEFAULT_USER_NAME


def clean_user_name(user_name: Optional[str]) -> str:
    if user_name and user_name.strip():
        return user_name.strip()
    return DEFAULT_USER_NAME


def chat_timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime("%H:%M")


class SignalingCoordinator:
    def __init__(self, registry: RoomRegistry):
        self.registry = registry
        # connection_id -> session / socket, both owned here and dropped on disconnect
        self.sessions: Dict[str, ConnectionSession] = {}
        self.connections: Dict[str, WebSocket] = {}

    def connect(self, connection_id: str, websocket: WebSocket) -> ConnectionSession:
        session = ConnectionSession(connection_id=connection_id)
        self.sessions[connection_id] = session
        self.connections[connection_id] = websocket
        logger.info(f"Connection {connection_id} opened ({len(self.connections)} live)")
        return session

    async def disconnect(self, connection_id: str):
        """Run the leave path and forget the connection. Safe to call twice."""
        await self.leave(connection_id)
        self.sessions.pop(connection_id, None)
        self.connections.pop(connection_id, None)
        logger.info(f"Connection {connection_id} closed ({len(self.connections)} live)")

    async def send(self, connection_id: str, event: str, payload: Dict[str, Any]) -> bool:
        websocket = self.connections.get(connection_id)
        if websocket is None:
            logger.debug(f"Dropping {event} for {connection_id}: connection is gone")
            return False
        try:
            await websocket.send_text(json.dumps({"type": event, **payload}))
            return True
        except Exception as e:
            logger.debug(f"Could not deliver {event} to {connection_id}: {e}")
            return False

    async def handle_message(self, connection_id: str, data: str):
        """Decode one inbound frame and dispatch it. Bad frames are logged and dropped."""
        try:
            message = json.loads(data)
        except json.JSONDecodeError:
            logger.warning(f"Dropping non-JSON frame from {connection_id}")
            return
        if not isinstance(message, dict) or not isinstance(message.get("type"), str):
            logger.warning(f"Dropping frame without a type from {connection_id}")
            return

        event = message["type"]
        if event not in PAYLOAD_MODELS:
            logger.warning(f"Dropping unknown event {event!r} from {connection_id}")
            return

        model = PAYLOAD_MODELS[event]
        try:
            payload = model.model_validate(message) if model else None
        except ValidationError as e:
            logger.warning(f"Dropping malformed {event} from {connection_id}: {e.error_count()} error(s)")
            return

        try:
            if event == events.JOIN_ROOM:
                await self.join(connection_id, payload.room_code, payload.user_name)
            elif event == events.LEAVE_ROOM:
                await self.leave(connection_id)
            elif event in events.RELAY_FIELDS:
                body = payload.sdp if event != events.ICE_CANDIDATE else payload.candidate
                await self.relay(connection_id, event, body, payload.to)
            elif event in events.TOGGLE_EVENTS:
                await self.toggle(connection_id, event, payload.state)
            elif event == events.CHAT_MESSAGE:
                await self.chat(connection_id, payload.text)
        except Exception as e:
            logger.error(f"Error handling {event} from {connection_id}: {e}", exc_info=True)

    async def join(self, connection_id: str, room_code: str, user_name: Optional[str] = None):
        session = self.sessions.get(connection_id)
        if session is None:
            logger.debug(f"join from unknown connection {connection_id}")
            return

        code = normalize_code(room_code)
        if not code:
            logger.warning(f"Dropping join with a blank room code from {connection_id}")
            return
        previous_code = session.room_code
        rejoin = previous_code == code

        name = clean_user_name(user_name)
        try:
            result = self.registry.add_participant(code, connection_id, name)
        except RoomFullError:
            # the requester keeps whatever room it was already in
            logger.info(f"Join rejected: room {code} is full ({connection_id})")
            await self.send(connection_id, events.ROOM_FULL, {"message": events.ROOM_FULL_MESSAGE})
            return

        # point the session at the new room before any await so a disconnect cleans that one up
        session.room_code = code
        if previous_code and not rejoin:
            await self._vacate(session, previous_code)
        if not rejoin:
            session.user_name = name
        logger.info(f"[Joined Room] {session.user_name} joined {code}. Participants: {result.participant_count}")

        await self.send(connection_id, events.ROOM_JOINED, {
            "roomCode": code,
            "participantCount": result.participant_count,
            "isInitiator": result.is_initiator,
        })

        if rejoin or result.participant_count != MAX_PARTICIPANTS:
            return

        # The occupant who was already waiting creates the offer; the joiner waits for it.
        for peer in result.peers:
            await self.send(peer.connection_id, events.USER_JOINED, {
                "connectionId": connection_id,
                "userName": session.user_name,
            })
            await self.send(connection_id, events.EXISTING_USER, {
                "connectionId": peer.connection_id,
                "userName": peer.user_name,
            })

    def _peer_ids(self, session: Optional[ConnectionSession]):
        if session is None or not session.room_code:
            return None
        room = self.registry.get_room(session.room_code)
        if room is None:
            return None
        return [p.connection_id for p in room.participants if p.connection_id != session.connection_id]

    async def relay(self, connection_id: str, kind: str, body: Any, to: str):
        """Forward an offer / answer / ice-candidate to one peer in the sender's room."""
        session = self.sessions.get(connection_id)
        peer_ids = self._peer_ids(session)
        if peer_ids is None:
            logger.debug(f"Ignoring {kind} from {connection_id}: not in a room")
            return
        if to not in peer_ids:
            logger.debug(f"Ignoring {kind} from {connection_id}: {to} is not in room {session.room_code}")
            return

        payload = {events.RELAY_FIELDS[kind]: body, "from": connection_id}
        if kind == events.OFFER:
            payload["userName"] = session.user_name
        logger.debug(f"[{kind}] from {connection_id} to {to}")
        await self.send(to, kind, payload)

    async def toggle(self, connection_id: str, kind: str, state: Any):
        peer_ids = self._peer_ids(self.sessions.get(connection_id))
        if not peer_ids:
            return
        for peer_id in peer_ids:
            await self.send(peer_id, events.TOGGLE_EVENTS[kind], {"connectionId": connection_id, "state": state})

    async def chat(self, connection_id: str, text: str):
        session = self.sessions.get(connection_id)
        peer_ids = self._peer_ids(session)
        if not peer_ids:
            return
        payload = {"text": text, "userName": session.user_name, "time": chat_timestamp()}
        for peer_id in peer_ids:
            await self.send(peer_id, events.CHAT_MESSAGE, payload)

    async def leave(self, connection_id: str):
        session = self.sessions.get(connection_id)
        if session is None or not session.room_code:
            return

        code = session.room_code
        # cleared before any await so a concurrent disconnect cannot leave twice
        session.room_code = None
        await self._vacate(session, code)

    async def _vacate(self, session: ConnectionSession, code: str):
        remaining = self.registry.remove_participant(code, session.connection_id)
        logger.info(f"[Left Room] {session.user_name} left {code}")

        for peer in remaining:
            await self.send(peer.connection_id, events.USER_LEFT, {
                "connectionId": session.connection_id,
                "userName": session.user_name,
            })
