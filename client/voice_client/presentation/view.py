from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from core.state import SessionStatus
from voice_client.session.models import ControllerSnapshot
from voice_client.transcript.models import TranscriptEntry


TITLE = "Voice Assistant"
EMPTY_TRANSCRIPT_TEXT = "Conversation will appear here as you speak..."

_STATUS_LABELS = {
    SessionStatus.IDLE: "Disconnected",
    SessionStatus.CONNECTING: "Connecting...",
    SessionStatus.CONNECTED: "Live",
    SessionStatus.FAILED: "Failed",
}

_SUBTITLES = {
    SessionStatus.IDLE: "Tap to connect and start talking with the AI assistant",
    SessionStatus.CONNECTING: "Joining the room...",
    SessionStatus.CONNECTED: "Connected - Speak to interact with the assistant",
    SessionStatus.FAILED: "Connection lost - connect again to resume",
}


@dataclass(frozen=True)
class MessageView:
    id: str
    speaker: str
    text: str
    time_label: str
    is_local_user: bool


@dataclass(frozen=True)
class SessionView:
    title: str
    subtitle: str
    status_label: str
    participant_count: int
    messages: tuple[MessageView, ...] = field(default_factory=tuple)
    error_text: Optional[str] = None
    can_connect: bool = True
    can_disconnect: bool = False
    can_clear: bool = False
    empty_text: Optional[str] = None


def _message_view(entry: TranscriptEntry) -> MessageView:
    return MessageView(
        id=entry.id,
        speaker=entry.display_speaker,
        text=entry.text,
        time_label=datetime.fromtimestamp(entry.timestamp).strftime("%H:%M:%S"),
        is_local_user=entry.is_local_user,
    )


def build_view(snapshot: ControllerSnapshot, audio_error: Optional[str] = None) -> SessionView:
    state = snapshot.state
    messages = tuple(_message_view(entry) for entry in snapshot.entries)

    error_message = state.error.message if state.error else audio_error
    return SessionView(
        title=TITLE,
        subtitle=_SUBTITLES[state.status],
        status_label=_STATUS_LABELS[state.status],
        # the local user is always in the room alongside the remote roster
        participant_count=state.remote_participant_count + 1,
        messages=messages,
        error_text=f"Error: {error_message}" if error_message else None,
        can_connect=not state.is_active,
        can_disconnect=state.is_active,
        can_clear=bool(messages),
        empty_text=None if messages else EMPTY_TRANSCRIPT_TEXT,
    )


def render_text(view: SessionView) -> str:
    lines = [view.title, view.subtitle, ""]
    if view.error_text:
        lines.append(view.error_text)
    lines.append(f"Status: {view.status_label} | Participants: {view.participant_count}")
    lines.append("-" * 40)
    if view.empty_text:
        lines.append(view.empty_text)
    for message in view.messages:
        lines.append(f"[{message.time_label}] {message.speaker}: {message.text}")
    return "\n".join(lines)
