from __future__ import annotations


class SessionError(Exception):
    """Base class for errors the controller surfaces through SessionState."""

    code = "session_error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = str(message or self.__class__.__name__)

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SessionError):
            return NotImplemented
        return type(self) is type(other) and self.message == other.message

    def __hash__(self) -> int:
        return hash((type(self), self.message))


class ValidationError(SessionError):
    code = "validation_error"


class MissingServerUrl(ValidationError):
    code = "missing_server_url"

    def __init__(self, message: str = "LIVEKIT_URL is not configured"):
        super().__init__(message)


class MissingToken(ValidationError):
    code = "missing_token"

    def __init__(
        self,
        message: str = "LIVEKIT_JWT is not configured. Please add your JWT token to the .env file.",
    ):
        super().__init__(message)


class SessionFailed(SessionError):
    code = "session_failed"

    def __init__(self, reason: str):
        self.reason = str(reason or "unknown")
        super().__init__(self.reason)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["reason"] = self.reason
        return data
