import json
import logging
from typing import Any

from core.config import LOG_TRANSCRIPT_TEXT

logger = logging.getLogger("voice_client")

_TEXT_KEYS = {"text", "transcript", "transcript_text", "payload"}
_SECRET_KEYS = {"token", "jwt", "credentials"}


def _sanitize_value(key: str, value: Any) -> Any:
	normalized_key = str(key or "").lower()
	if normalized_key in _SECRET_KEYS:
		return {
			"redacted": True,
			"length": len(str(value or "")),
		}
	if normalized_key in _TEXT_KEYS and not LOG_TRANSCRIPT_TEXT:
		if isinstance(value, (bytes, bytearray)):
			return {
				"redacted": True,
				"length": len(value),
			}
		text = str(value or "")
		return {
			"redacted": True,
			"length": len(text),
		}
	if isinstance(value, (str, int, float, bool)) or value is None:
		return value
	if isinstance(value, dict):
		return {str(k): _sanitize_value(str(k), v) for k, v in value.items()}
	if isinstance(value, (list, tuple, set)):
		return [_sanitize_value(normalized_key, item) for item in value]
	return str(value)


def log_event(component: str, event: str, session_id: str, level: int = logging.INFO, **kwargs) -> None:
	payload = {
		"component": str(component or "voice_client"),
		"event": str(event or "unknown"),
		"session_id": str(session_id or ""),
	}
	payload.update({str(k): _sanitize_value(str(k), v) for k, v in kwargs.items()})
	logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))
