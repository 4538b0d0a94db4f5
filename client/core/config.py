import os
from pathlib import Path
from dotenv import load_dotenv

_CLIENT_ROOT = Path(__file__).resolve().parents[1]
_CLIENT_ENV_PATH = _CLIENT_ROOT / ".env"
load_dotenv(dotenv_path=_CLIENT_ENV_PATH, override=False)

LIVEKIT_URL = str(os.getenv("LIVEKIT_URL") or "").strip()
LIVEKIT_JWT = str(os.getenv("LIVEKIT_JWT") or "").strip()
ASSISTANT_NAME = str(os.getenv("ASSISTANT_NAME") or "Assistant").strip() or "Assistant"
CONNECT_TIMEOUT_SEC = max(0.0, float(os.getenv("CONNECT_TIMEOUT_SEC") or 0.0))  # 0 disables the watchdog
LOG_LEVEL = str(os.getenv("LOG_LEVEL") or "INFO").strip().upper()
LOG_TRANSCRIPT_TEXT = os.getenv("LOG_TRANSCRIPT_TEXT", "false").lower() == "true"