import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3001))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

SERVICE_NAME = os.getenv("SERVICE_NAME", "MeetFlow Signaling Server")
SERVICE_VERSION = os.getenv("SERVICE_VERSION", "1.0.0")

# Comma separated; any origin is accepted when unset
ALLOWED_ORIGINS = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "").split(",") if o.strip()] or ["*"]

# Rooms are strictly one-to-one
MAX_PARTICIPANTS = 2
DEFAULT_USER_NAME = "Anonymous"

ROOM_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
ROOM_CODE_GROUP_LENGTH = 4

STALE_ROOM_THRESHOLD_SECONDS = int(os.getenv("STALE_ROOM_THRESHOLD_SECONDS", 30 * 60))
REAPER_INTERVAL_SECONDS = int(os.getenv("REAPER_INTERVAL_SECONDS", 30 * 60))

# Keep-alive for the persistent channel, handed to uvicorn
WS_PING_INTERVAL = float(os.getenv("WS_PING_INTERVAL", 25))
WS_PING_TIMEOUT = float(os.getenv("WS_PING_TIMEOUT", 60))
