from __future__ import annotations

from dataclasses import dataclass, field
import os
from typing import Optional

from core.state import SessionStatus
from voice_client.errors import SessionError
from voice_client.transcript.models import TranscriptEntry


ACTIVE_STATUSES = frozenset({SessionStatus.CONNECTING, SessionStatus.CONNECTED})


@dataclass(frozen=True)
class Credentials:
    server_url: str = ""
    token: str = field(default="", repr=False)

    @classmethod
    def from_env(cls) -> "Credentials":
        return cls(
            server_url=str(os.getenv("LIVEKIT_URL") or "").strip(),
            token=str(os.getenv("LIVEKIT_JWT") or "").strip(),
        )


@dataclass(frozen=True)
class SessionState:
    status: SessionStatus = SessionStatus.IDLE
    failure_reason: Optional[str] = None
    error: Optional[SessionError] = None
    remote_participant_count: int = 0
    attempt: int = 0

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "failure_reason": self.failure_reason,
            "error": self.error.to_dict() if self.error else None,
            "remote_participant_count": self.remote_participant_count,
            "attempt": self.attempt,
        }


@dataclass(frozen=True)
class ControllerSnapshot:
    state: SessionState
    entries: tuple[TranscriptEntry, ...] = ()
