from voice_client.errors import MissingServerUrl, MissingToken, SessionError, SessionFailed, ValidationError
from voice_client.session.controller import ConnectionController
from voice_client.session.models import ControllerSnapshot, Credentials, SessionState
from voice_client.transcript.log import TranscriptLog
from voice_client.transcript.models import TranscriptEntry

__all__ = [
    "ConnectionController",
    "ControllerSnapshot",
    "Credentials",
    "MissingServerUrl",
    "MissingToken",
    "SessionError",
    "SessionFailed",
    "SessionState",
    "TranscriptEntry",
    "TranscriptLog",
    "ValidationError",
]
