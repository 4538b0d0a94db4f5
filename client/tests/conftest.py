import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LIVEKIT_URL", "wss://assistant.test")
    monkeypatch.setenv("LIVEKIT_JWT", "test-token")
    monkeypatch.setenv("ROOM_BACKEND", "local")
    monkeypatch.delenv("CONNECT_TIMEOUT_SEC", raising=False)


@pytest.fixture
def room():
    from voice_client.room.base import LocalRoomCollaborator

    return LocalRoomCollaborator()


@pytest.fixture
def controller(room):
    from voice_client.session.controller import ConnectionController

    return ConnectionController(room, assistant_name="Assistant", session_id="s-test")


@pytest.fixture
def credentials():
    from voice_client.session.models import Credentials

    return Credentials(server_url="wss://x", token="abc")
