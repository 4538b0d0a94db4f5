from voice_client.session.controller import ConnectionController
from voice_client.session.models import ControllerSnapshot, Credentials, SessionState

__all__ = ["ConnectionController", "ControllerSnapshot", "Credentials", "SessionState"]
