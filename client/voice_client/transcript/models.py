from dataclasses import dataclass, field
import uuid


SYSTEM_SPEAKER = "System"
LOCAL_DISPLAY_NAME = "You"


@dataclass(frozen=True)
class TranscriptEntry:
    """
    One line of the conversation.
    Created only by TranscriptLog.append, never mutated afterwards.
    """
    text: str = ""
    speaker: str = SYSTEM_SPEAKER
    timestamp: float = 0.0
    is_local_user: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def display_speaker(self) -> str:
        return LOCAL_DISPLAY_NAME if self.is_local_user else self.speaker

    @property
    def is_system(self) -> bool:
        return self.speaker == SYSTEM_SPEAKER and not self.is_local_user

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "speaker": self.speaker,
            "timestamp": self.timestamp,
            "is_local_user": self.is_local_user,
        }
