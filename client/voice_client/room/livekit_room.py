"""
LiveKit adapter for the room boundary.

Wraps a livekit.rtc.Room and translates its events into RoomListener
notifications. Commands are fire-and-forget: connect() and disconnect()
schedule coroutines on the adapter's event loop and return immediately.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from livekit import rtc

from voice_client.room.base import ConnectOptions, ListenerSet, Participant, RoomListener
from voice_client.subscription import Subscription


logger = logging.getLogger("livekit_room")

def _reason_label(reason) -> str:
    if reason is None:
        return "disconnected"
    name = getattr(reason, "name", None)
    if name:
        return str(name).lower()
    if isinstance(reason, int):
        try:
            return str(rtc.DisconnectReason.Name(reason)).lower()
        except Exception:
            return f"disconnected:{reason}"
    return str(reason) or "disconnected"


class LiveKitRoomCollaborator:
    def __init__(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        room_factory: Optional[Callable[..., rtc.Room]] = None,
    ):
        self._loop = loop
        self._room_factory = room_factory or rtc.Room
        self._room: Optional[rtc.Room] = None
        self._handlers: dict[str, Callable] = {}
        self._connect_task: Optional[asyncio.Future] = None
        self._listeners = ListenerSet()
        self._disconnect_tasks: list[asyncio.Future] = []
        self.tasks: list[asyncio.Future] = []

    # -------------------------
    # COMMANDS
    # -------------------------

    def connect(self, server_url: str, token: str, options: ConnectOptions | None = None) -> None:
        if self._room is not None:
            self.disconnect()

        options = options or ConnectOptions()
        loop = self._resolve_loop()
        room = self._room_factory(loop=loop)
        self._room = room
        self._attach(room)
        self._connect_task = self._schedule(self._connect(room, server_url, token, options))

    def disconnect(self) -> None:
        room, self._room = self._room, None
        task, self._connect_task = self._connect_task, None
        if task is not None and not task.done():
            self._call_soon(task.cancel)
        if room is None:
            return
        # detach first so the resulting "disconnected" event is not reported as a failure
        self._detach(room)
        self._disconnect_tasks.append(self._schedule(room.disconnect()))

    def subscribe(self, listener: RoomListener) -> Subscription:
        return self._listeners.add(listener)

    async def aclose(self) -> None:
        self.disconnect()
        # pending room.disconnect() calls must run to completion
        for task in self.tasks:
            if task not in self._disconnect_tasks:
                task.cancel()
        await asyncio.gather(*[asyncio.wrap_future(t) for t in self.tasks], return_exceptions=True)
        self.tasks.clear()
        self._disconnect_tasks.clear()

    # -------------------------
    # LOOP PLUMBING
    # -------------------------

    def _resolve_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def _in_loop_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def _call_soon(self, fn: Callable[[], object]) -> None:
        if self._in_loop_thread():
            fn()
        else:
            self._resolve_loop().call_soon_threadsafe(fn)

    def _schedule(self, coro) -> asyncio.Future:
        loop = self._resolve_loop()
        if self._in_loop_thread():
            task = loop.create_task(coro)
        else:
            task = asyncio.run_coroutine_threadsafe(coro, loop)
        self.tasks = [t for t in self.tasks if not t.done()]
        self._disconnect_tasks = [t for t in self._disconnect_tasks if not t.done()]
        self.tasks.append(task)
        return task

    # -------------------------
    # ROOM EVENTS
    # -------------------------

    def _attach(self, room: rtc.Room) -> None:
        self._handlers = {
            "participant_connected": lambda participant: self._on_roster_event(room),
            "participant_disconnected": lambda participant: self._on_roster_event(room),
            "data_received": lambda packet: self._on_data_packet(room, packet),
            "disconnected": lambda reason=None: self._on_disconnected(room, reason),
        }
        for event, handler in self._handlers.items():
            room.on(event, handler)

    def _detach(self, room: rtc.Room) -> None:
        for event, handler in self._handlers.items():
            try:
                room.off(event, handler)
            except Exception as exc:
                logger.debug(f"room.off({event}) failed: {exc}")
        self._handlers = {}

    @staticmethod
    def _roster(room: rtc.Room) -> list[Participant]:
        return [
            Participant(identity=str(p.identity))
            for p in dict(room.remote_participants or {}).values()
        ]

    def _on_roster_event(self, room: rtc.Room) -> None:
        if room is not self._room:
            return
        self._listeners.dispatch("on_roster_changed", self._roster(room))

    def _on_data_packet(self, room: rtc.Room, packet) -> None:
        if room is not self._room:
            return
        participant = getattr(packet, "participant", None)
        identity = str(getattr(participant, "identity", "") or "") or None
        self._listeners.dispatch("on_data_received", bytes(packet.data), identity)

    def _on_disconnected(self, room: rtc.Room, reason) -> None:
        if room is not self._room:
            return
        self._room = None
        self._detach(room)
        self._listeners.dispatch("on_session_failed", _reason_label(reason))

    async def _connect(self, room: rtc.Room, server_url: str, token: str, options: ConnectOptions) -> None:
        try:
            await room.connect(
                server_url,
                token,
                options=rtc.RoomOptions(auto_subscribe=bool(options.auto_subscribe)),
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning(f"LiveKit connect failed: {exc}")
            if room is self._room:
                self._room = None
                self._detach(room)
                self._listeners.dispatch("on_session_failed", str(exc) or type(exc).__name__)
            return

        if room is not self._room:
            # superseded while the handshake was in flight
            await room.disconnect()
            return

        self._listeners.dispatch("on_connected")
        roster = self._roster(room)
        if roster:
            self._listeners.dispatch("on_roster_changed", roster)
