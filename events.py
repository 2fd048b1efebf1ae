# Client -> server
JOIN_ROOM = "join-room"
LEAVE_ROOM = "leave-room"
OFFER = "offer"
ANSWER = "answer"
ICE_CANDIDATE = "ice-candidate"
TOGGLE_AUDIO = "toggle-audio"
TOGGLE_VIDEO = "toggle-video"
TOGGLE_SCREEN_SHARE = "toggle-screen-share"
CHAT_MESSAGE = "chat-message"  # both directions

# Server -> client
ROOM_JOINED = "room-joined"
ROOM_FULL = "room-full"
USER_JOINED = "user-joined"
EXISTING_USER = "existing-user"
USER_LEFT = "user-left"
PEER_AUDIO_TOGGLE = "peer-audio-toggle"
PEER_VIDEO_TOGGLE = "peer-video-toggle"
PEER_SCREEN_SHARE = "peer-screen-share"

# Handshake messages forwarded point-to-point, with the payload field each one carries
RELAY_FIELDS = {
    OFFER: "sdp",
    ANSWER: "sdp",
    ICE_CANDIDATE: "candidate",
}

# State toggles and the event the peer receives for each
TOGGLE_EVENTS = {
    TOGGLE_AUDIO: PEER_AUDIO_TOGGLE,
    TOGGLE_VIDEO: PEER_VIDEO_TOGGLE,
    TOGGLE_SCREEN_SHARE: PEER_SCREEN_SHARE,
}

ROOM_FULL_MESSAGE = "Room is full. Only 2 participants allowed."
