import asyncio
from dataclasses import dataclass

import pytest

from core.state import SessionStatus
from voice_client.protocol.decoder import encode_event
from voice_client.room.livekit_room import LiveKitRoomCollaborator
from voice_client.session.controller import ConnectionController
from voice_client.session.models import Credentials


@dataclass
class FakeParticipant:
    identity: str


@dataclass
class FakePacket:
    data: bytes
    participant: FakeParticipant | None = None


class FakeLiveKitRoom:
    def __init__(self, participants=(), fail_with=None):
        self.handlers: dict[str, list] = {}
        self.remote_participants = {p: FakeParticipant(identity=p) for p in participants}
        self.fail_with = fail_with
        self.connected_with = None
        self.disconnected = False

    def on(self, event, handler):
        self.handlers.setdefault(event, []).append(handler)
        return handler

    def off(self, event, handler):
        self.handlers[event].remove(handler)

    def emit(self, event, *args):
        for handler in list(self.handlers.get(event, [])):
            handler(*args)

    async def connect(self, url, token, options=None):
        await asyncio.sleep(0)
        if self.fail_with is not None:
            raise self.fail_with
        self.connected_with = (url, token, options)

    async def disconnect(self):
        self.disconnected = True


def _build(**room_kwargs):
    rooms = []

    def _factory(loop=None):
        room = FakeLiveKitRoom(**room_kwargs)
        rooms.append(room)
        return room

    adapter = LiveKitRoomCollaborator(room_factory=_factory)
    controller = ConnectionController(adapter, assistant_name="Assistant")
    return adapter, controller, rooms


async def _drain(adapter):
    await asyncio.gather(*list(adapter.tasks), return_exceptions=True)


@pytest.mark.asyncio
async def test_connect_reports_ready_and_roster():
    adapter, controller, rooms = _build(participants=["agent-1"])

    controller.request_connect(Credentials(server_url="wss://x", token="abc"))
    assert controller.current_state().status == SessionStatus.CONNECTING
    await _drain(adapter)

    assert rooms[0].connected_with[:2] == ("wss://x", "abc")
    assert controller.current_state().status == SessionStatus.CONNECTED
    assert [e.text for e in controller.transcript_snapshot()] == [
        "Connected to Assistant! Start speaking...",
        "Assistant agent-1 is in the room",
    ]


@pytest.mark.asyncio
async def test_data_packets_become_transcript_entries():
    adapter, controller, rooms = _build()
    controller.request_connect(Credentials(server_url="wss://x", token="abc"))
    await _drain(adapter)

    rooms[0].emit(
        "data_received",
        FakePacket(data=encode_event("transcription", text="hi there"), participant=FakeParticipant("agent-1")),
    )
    rooms[0].emit("data_received", FakePacket(data=encode_event("transcription", text="me")))

    entries = controller.transcript_snapshot()
    assert (entries[-2].speaker, entries[-2].is_local_user) == ("agent-1", False)
    assert (entries[-1].display_speaker, entries[-1].is_local_user) == ("You", True)


@pytest.mark.asyncio
async def test_participant_events_update_roster():
    adapter, controller, rooms = _build()
    controller.request_connect(Credentials(server_url="wss://x", token="abc"))
    await _drain(adapter)

    rooms[0].remote_participants["agent-9"] = FakeParticipant("agent-9")
    rooms[0].emit("participant_connected", FakeParticipant("agent-9"))

    assert controller.current_state().remote_participant_count == 1
    assert controller.transcript_snapshot()[-1].text == "Assistant agent-9 is in the room"


@pytest.mark.asyncio
async def test_connect_error_fails_session():
    adapter, controller, rooms = _build(fail_with=RuntimeError("invalid token"))

    controller.request_connect(Credentials(server_url="wss://x", token="abc"))
    await _drain(adapter)

    state = controller.current_state()
    assert state.status == SessionStatus.FAILED
    assert state.failure_reason == "invalid token"
    assert rooms[0].handlers == {event: [] for event in rooms[0].handlers}


@pytest.mark.asyncio
async def test_disconnect_while_connecting_cancels_attempt():
    adapter, controller, rooms = _build(participants=["agent-1"])

    controller.request_connect(Credentials(server_url="wss://x", token="abc"))
    controller.request_disconnect()
    await _drain(adapter)

    assert controller.current_state().status == SessionStatus.IDLE
    assert controller.transcript_snapshot() == ()
    assert rooms[0].disconnected is True
    assert rooms[0].connected_with is None


@pytest.mark.asyncio
async def test_remote_disconnect_is_session_failure():
    adapter, controller, rooms = _build()
    controller.request_connect(Credentials(server_url="wss://x", token="abc"))
    await _drain(adapter)

    rooms[0].emit("disconnected", "server_shutdown")

    state = controller.current_state()
    assert state.status == SessionStatus.FAILED
    assert state.failure_reason == "server_shutdown"


@pytest.mark.asyncio
async def test_user_disconnect_is_not_reported_as_failure():
    adapter, controller, rooms = _build()
    controller.request_connect(Credentials(server_url="wss://x", token="abc"))
    await _drain(adapter)

    controller.request_disconnect()
    rooms[0].emit("disconnected", "client_initiated")
    await adapter.aclose()

    assert controller.current_state().status == SessionStatus.IDLE
    assert rooms[0].disconnected is True
    assert adapter.tasks == []


@pytest.mark.asyncio
async def test_aclose_while_connected_still_disconnects_room():
    adapter, controller, rooms = _build(participants=["agent-1"])
    controller.request_connect(Credentials(server_url="wss://x", token="abc"))
    await _drain(adapter)

    await adapter.aclose()

    assert rooms[0].disconnected is True
    assert rooms[0].handlers == {event: [] for event in rooms[0].handlers}
    assert adapter.tasks == []
