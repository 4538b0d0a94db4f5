from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


TRANSCRIPTION = "transcription"


class DecodeError(str, Enum):
    MALFORMED_PAYLOAD = "malformed_payload"
    MISSING_TYPE = "missing_type"


@dataclass(frozen=True)
class InboundDataEvent:
    """
    One structured message received on the data channel.
    Ephemeral: folded into a transcript entry or dropped.
    """
    type: str
    text: Optional[str] = None
    sender_identity: Optional[str] = None
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    @property
    def is_transcription(self) -> bool:
        return self.type == TRANSCRIPTION


@dataclass(frozen=True)
class DecodeResult:
    event: Optional[InboundDataEvent] = None
    error: Optional[DecodeError] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None and self.event is not None

    @classmethod
    def success(cls, event: InboundDataEvent) -> "DecodeResult":
        return cls(event=event)

    @classmethod
    def failure(cls, error: DecodeError, detail: str = "") -> "DecodeResult":
        return cls(error=error, detail=str(detail or error.value))


def _optional_str(value) -> Optional[str]:
    return value if isinstance(value, str) else None


def decode(payload: bytes) -> DecodeResult:
    try:
        text = bytes(payload).decode("utf-8")
    except (TypeError, UnicodeDecodeError) as exc:
        return DecodeResult.failure(DecodeError.MALFORMED_PAYLOAD, f"invalid utf-8: {exc}")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        return DecodeResult.failure(DecodeError.MALFORMED_PAYLOAD, f"invalid json: {exc.msg}")
    except RecursionError:
        return DecodeResult.failure(DecodeError.MALFORMED_PAYLOAD, "json nested too deeply")
    except ValueError as exc:
        return DecodeResult.failure(DecodeError.MALFORMED_PAYLOAD, f"invalid json: {exc}")

    if not isinstance(data, dict):
        return DecodeResult.failure(
            DecodeError.MALFORMED_PAYLOAD,
            f"expected object, got {type(data).__name__}",
        )

    if "type" not in data:
        return DecodeResult.failure(DecodeError.MISSING_TYPE, "object has no 'type'")

    event_type = data.get("type")
    if not isinstance(event_type, str):
        return DecodeResult.failure(DecodeError.MALFORMED_PAYLOAD, "'type' must be a string")

    sender = _optional_str(data.get("senderIdentity"))
    if sender is None:
        sender = _optional_str(data.get("participant"))

    return DecodeResult.success(
        InboundDataEvent(
            type=event_type,
            text=_optional_str(data.get("text")),
            sender_identity=sender,
            raw=dict(data),
        )
    )


def encode_event(event_type: str, text: str | None = None, sender_identity: str | None = None, **extra) -> bytes:
    payload = {"type": str(event_type)}
    if text is not None:
        payload["text"] = text
    if sender_identity is not None:
        payload["senderIdentity"] = sender_identity
    payload.update(extra)
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
