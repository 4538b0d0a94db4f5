from __future__ import annotations

import logging
from threading import RLock
from typing import Callable, Optional, Sequence
import uuid

from core.config import ASSISTANT_NAME
from core.logger import log_event
from core.state import SessionStatus
from voice_client.errors import MissingServerUrl, MissingToken, SessionError, SessionFailed
from voice_client.protocol.decoder import decode
from voice_client.room.base import ConnectOptions, Participant, RoomCollaborator
from voice_client.session.models import ACTIVE_STATUSES, ControllerSnapshot, Credentials, SessionState
from voice_client.subscription import Subscription
from voice_client.transcript.log import TranscriptLog
from voice_client.transcript.models import SYSTEM_SPEAKER, TranscriptEntry


logger = logging.getLogger("session_controller")

COMPONENT = "connection_controller"
CONNECTED_NOTICE = "Connected to {name}! Start speaking..."
PARTICIPANT_NOTICE = "Assistant {identity} is in the room"
LOCAL_IDENTITY = "user"
DEFAULT_REMOTE_SPEAKER = "User"
CONNECT_TIMEOUT_REASON = "connect-timeout"

SnapshotListener = Callable[[ControllerSnapshot], None]


class _AttemptListener:
    """Routes room notifications for one connect attempt back to the controller."""

    def __init__(self, controller: "ConnectionController", attempt: int):
        self._controller = controller
        self.attempt = attempt

    def on_connected(self) -> None:
        self._controller._handle_ready(self.attempt)

    def on_roster_changed(self, participants: Sequence[Participant]) -> None:
        self._controller._handle_roster(self.attempt, participants)

    def on_data_received(self, payload: bytes, sender_identity: str | None = None) -> None:
        self._controller._handle_data(self.attempt, payload, sender_identity)

    def on_session_failed(self, reason: str) -> None:
        self._controller._handle_failure(self.attempt, reason)


def _identity(participant) -> str:
    if isinstance(participant, str):
        return participant
    return str(getattr(participant, "identity", "") or "")


class ConnectionController:
    """
    Single authority over the voice session.

    Owns SessionState, is the only writer to the TranscriptLog, and the only
    caller of the room's connect/disconnect. Every command and notification
    runs under one re-entrant lock, so notifications delivered from another
    thread are applied one at a time in arrival order.
    """

    def __init__(
        self,
        room: RoomCollaborator,
        transcript: Optional[TranscriptLog] = None,
        *,
        assistant_name: str = ASSISTANT_NAME,
        connect_options: Optional[ConnectOptions] = None,
        session_id: Optional[str] = None,
    ):
        self.session_id = session_id or str(uuid.uuid4())
        self.assistant_name = str(assistant_name or "Assistant")
        self._room = room
        self._transcript = transcript if transcript is not None else TranscriptLog()
        self._connect_options = connect_options or ConnectOptions()
        self._lock = RLock()

        self._status = SessionStatus.IDLE
        self._failure_reason: Optional[str] = None
        self._error: Optional[SessionError] = None
        self._remote_participant_count = 0
        self._attempt = 0
        self._credentials: Optional[Credentials] = None
        self._room_subscription: Optional[Subscription] = None
        self._observers: list[SnapshotListener] = []

    # -------------------------
    # READ CONTRACT
    # -------------------------

    def current_state(self) -> SessionState:
        with self._lock:
            return self._state_locked()

    def transcript_snapshot(self) -> tuple[TranscriptEntry, ...]:
        return self._transcript.snapshot()

    def snapshot(self) -> ControllerSnapshot:
        with self._lock:
            return ControllerSnapshot(state=self._state_locked(), entries=self._transcript.snapshot())

    def subscribe(self, listener: SnapshotListener) -> Subscription:
        with self._lock:
            self._observers.append(listener)

        def _release() -> None:
            with self._lock:
                if listener in self._observers:
                    self._observers.remove(listener)

        return Subscription(_release)

    # -------------------------
    # USER COMMANDS
    # -------------------------

    def request_connect(self, credentials: Credentials) -> SessionState:
        server_url = str(getattr(credentials, "server_url", "") or "").strip()
        token = str(getattr(credentials, "token", "") or "").strip()

        with self._lock:
            if not server_url:
                return self._reject(MissingServerUrl())
            if not token:
                return self._reject(MissingToken())

            if self._status in ACTIVE_STATUSES:
                log_event(COMPONENT, "attempt_superseded", self.session_id, attempt=self._attempt)
                self._end_attempt(issue_disconnect=True)

            self._attempt += 1
            self._credentials = Credentials(server_url=server_url, token=token)
            self._error = None
            self._failure_reason = None
            self._remote_participant_count = 0
            self._status = SessionStatus.CONNECTING
            # subscribe before connecting so no early notification is lost
            self._room_subscription = self._room.subscribe(_AttemptListener(self, self._attempt))

            log_event(COMPONENT, "connect_requested", self.session_id, attempt=self._attempt, server_url=server_url)
            try:
                self._room.connect(server_url, token, self._connect_options)
            except Exception as exc:
                logger.warning(f"Room connect command failed: {exc}")
                self._fail_locked(str(exc) or type(exc).__name__)

            self._publish_locked()
            return self._state_locked()

    def request_disconnect(self) -> SessionState:
        with self._lock:
            if self._status == SessionStatus.IDLE:
                return self._state_locked()

            if self._status in ACTIVE_STATUSES:
                self._end_attempt(issue_disconnect=True)

            log_event(COMPONENT, "disconnected", self.session_id, attempt=self._attempt, previous=self._status.value)
            self._status = SessionStatus.IDLE
            self._failure_reason = None
            self._remote_participant_count = 0
            self._publish_locked()
            return self._state_locked()

    def clear_transcript(self) -> None:
        with self._lock:
            self._transcript.clear()
            log_event(COMPONENT, "transcript_cleared", self.session_id)
            self._publish_locked()

    def expire_attempt(self, attempt: int) -> bool:
        """Fail a connect attempt that is still waiting for readiness."""
        with self._lock:
            if attempt != self._attempt or self._status != SessionStatus.CONNECTING:
                return False
            self._end_attempt(issue_disconnect=True)
            self._fail_locked(CONNECT_TIMEOUT_REASON)
            self._publish_locked()
            return True

    # -------------------------
    # ROOM NOTIFICATIONS
    # -------------------------

    def _handle_ready(self, attempt: int) -> None:
        with self._lock:
            if not self._is_current(attempt, "connected"):
                return
            if self._mark_connected():
                self._publish_locked()

    def _handle_roster(self, attempt: int, participants: Sequence[Participant]) -> None:
        with self._lock:
            if not self._is_current(attempt, "roster_changed"):
                return

            identities = [_identity(p) for p in list(participants or [])]
            self._remote_participant_count = len(identities)
            self._mark_connected()

            if identities:
                logger.info(f"Connected with {len(identities)} participant(s)")
            for identity in identities:
                self._transcript.append(PARTICIPANT_NOTICE.format(identity=identity), SYSTEM_SPEAKER, False)

            self._publish_locked()

    def _handle_data(self, attempt: int, payload: bytes, sender_identity: str | None) -> None:
        with self._lock:
            if not self._is_current(attempt, "data_received"):
                return

            result = decode(payload)
            if not result.ok:
                log_event(
                    COMPONENT,
                    "data_message_dropped",
                    self.session_id,
                    level=logging.WARNING,
                    error=result.error.value,
                    detail=result.detail,
                )
                return

            event = result.event
            if not event.is_transcription:
                log_event(COMPONENT, "data_message_ignored", self.session_id, type=event.type)
                return
            if event.text is None:
                log_event(
                    COMPONENT,
                    "data_message_dropped",
                    self.session_id,
                    level=logging.WARNING,
                    error="missing_text",
                    type=event.type,
                )
                return

            sender = sender_identity or event.sender_identity or None
            is_local_user = sender is None or sender == LOCAL_IDENTITY
            entry = self._transcript.append(event.text, sender or DEFAULT_REMOTE_SPEAKER, is_local_user)
            log_event(
                COMPONENT,
                "transcript_appended",
                self.session_id,
                entry_id=entry.id,
                speaker=entry.speaker,
                is_local_user=entry.is_local_user,
                text=entry.text,
            )
            self._publish_locked()

    def _handle_failure(self, attempt: int, reason: str) -> None:
        with self._lock:
            if not self._is_current(attempt, "session_failed"):
                return
            self._end_attempt(issue_disconnect=False)
            self._fail_locked(reason)
            self._publish_locked()

    # -------------------------
    # INTERNALS (lock held)
    # -------------------------

    def _state_locked(self) -> SessionState:
        return SessionState(
            status=self._status,
            failure_reason=self._failure_reason,
            error=self._error,
            remote_participant_count=self._remote_participant_count,
            attempt=self._attempt,
        )

    def _reject(self, error: SessionError) -> SessionState:
        self._error = error
        log_event(COMPONENT, "connect_rejected", self.session_id, level=logging.WARNING, code=error.code)
        self._publish_locked()
        return self._state_locked()

    def _is_current(self, attempt: int, notification: str) -> bool:
        if attempt == self._attempt and self._status in ACTIVE_STATUSES:
            return True
        log_event(
            COMPONENT,
            "stale_notification_dropped",
            self.session_id,
            notification=notification,
            attempt=attempt,
            current_attempt=self._attempt,
            status=self._status.value,
        )
        return False

    def _mark_connected(self) -> bool:
        if self._status != SessionStatus.CONNECTING:
            return False
        self._status = SessionStatus.CONNECTED
        self._transcript.append(CONNECTED_NOTICE.format(name=self.assistant_name), SYSTEM_SPEAKER, False)
        log_event(COMPONENT, "connected", self.session_id, attempt=self._attempt)
        return True

    def _fail_locked(self, reason: str) -> None:
        reason = str(reason or "unknown")
        self._release_subscription()
        self._status = SessionStatus.FAILED
        self._failure_reason = reason
        self._error = SessionFailed(reason)
        self._remote_participant_count = 0
        log_event(COMPONENT, "session_failed", self.session_id, level=logging.WARNING, attempt=self._attempt, reason=reason)

    def _end_attempt(self, issue_disconnect: bool) -> None:
        self._release_subscription()
        if not issue_disconnect:
            return
        try:
            self._room.disconnect()
        except Exception as exc:
            logger.warning(f"Room disconnect command failed: {exc}")

    def _release_subscription(self) -> None:
        subscription, self._room_subscription = self._room_subscription, None
        if subscription is not None:
            subscription.close()

    def _publish_locked(self) -> None:
        if not self._observers:
            return
        snapshot = ControllerSnapshot(state=self._state_locked(), entries=self._transcript.snapshot())
        for listener in list(self._observers):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener failed")
