import json

import pytest

from backend import RoomRegistry
from signaling import SignalingCoordinator


class FakeSocket:
    """Stands in for a WebSocket; records every frame sent to it."""

    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    async def send_text(self, data: str):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(data))

    def of_type(self, event: str):
        return [m for m in self.sent if m["type"] == event]


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
def coordinator(registry):
    return SignalingCoordinator(registry)


@pytest.fixture
def connect(coordinator):
    def _connect(connection_id: str, fail: bool = False) -> FakeSocket:
        socket = FakeSocket(fail=fail)
        coordinator.connect(connection_id, socket)
        return socket
    return _connect
