from __future__ import annotations

from dataclasses import dataclass
import os
from threading import Lock
from typing import Protocol, Sequence

from voice_client.subscription import Subscription


@dataclass(frozen=True)
class Participant:
    identity: str


@dataclass
class ConnectOptions:
    auto_subscribe: bool = True
    audio: bool = True
    video: bool = False
    adaptive_stream: bool = True


class RoomListener(Protocol):
    def on_connected(self) -> None:
        ...

    def on_roster_changed(self, participants: Sequence[Participant]) -> None:
        ...

    def on_data_received(self, payload: bytes, sender_identity: str | None = None) -> None:
        ...

    def on_session_failed(self, reason: str) -> None:
        ...


class RoomCollaborator(Protocol):
    def connect(self, server_url: str, token: str, options: ConnectOptions | None = None) -> None:
        ...

    def disconnect(self) -> None:
        ...

    def subscribe(self, listener: RoomListener) -> Subscription:
        ...


class ListenerSet:
    """Thread-safe listener registry shared by the room implementations."""

    def __init__(self):
        self._lock = Lock()
        self._listeners: list[RoomListener] = []

    def add(self, listener: RoomListener) -> Subscription:
        with self._lock:
            self._listeners.append(listener)

        def _release() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return Subscription(_release)

    def current(self) -> list[RoomListener]:
        with self._lock:
            return list(self._listeners)

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)

    def dispatch(self, method: str, *args) -> None:
        for listener in self.current():
            getattr(listener, method)(*args)


class LocalRoomCollaborator:
    """
    In-process room. Records the commands it receives and lets the caller
    push notifications to subscribers with the emit_* helpers.
    """

    def __init__(self):
        self.commands: list[tuple] = []
        self.connected = False
        self._listeners = ListenerSet()

    def connect(self, server_url: str, token: str, options: ConnectOptions | None = None) -> None:
        self.commands.append(("connect", server_url, token, options or ConnectOptions()))
        self.connected = True

    def disconnect(self) -> None:
        self.commands.append(("disconnect",))
        self.connected = False

    def subscribe(self, listener: RoomListener) -> Subscription:
        return self._listeners.add(listener)

    @property
    def listeners(self) -> list[RoomListener]:
        return self._listeners.current()

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners)

    def emit_connected(self) -> None:
        self._listeners.dispatch("on_connected")

    def emit_roster(self, identities: Sequence[str | Participant]) -> None:
        participants = [
            item if isinstance(item, Participant) else Participant(identity=str(item))
            for item in identities or []
        ]
        self._listeners.dispatch("on_roster_changed", participants)

    def emit_data(self, payload: bytes, sender_identity: str | None = None) -> None:
        self._listeners.dispatch("on_data_received", payload, sender_identity)

    def emit_failure(self, reason: str) -> None:
        self.connected = False
        self._listeners.dispatch("on_session_failed", reason)


def build_room_collaborator() -> RoomCollaborator:
    backend = str(os.getenv("ROOM_BACKEND", "livekit")).strip().lower()
    if backend == "local":
        return LocalRoomCollaborator()
    if backend != "livekit":
        raise RuntimeError(f"Unknown ROOM_BACKEND={backend!r}; expected 'livekit' or 'local'")

    from voice_client.room.livekit_room import LiveKitRoomCollaborator

    return LiveKitRoomCollaborator()
