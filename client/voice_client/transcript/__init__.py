from voice_client.transcript.log import TranscriptLog
from voice_client.transcript.models import LOCAL_DISPLAY_NAME, SYSTEM_SPEAKER, TranscriptEntry

__all__ = ["LOCAL_DISPLAY_NAME", "SYSTEM_SPEAKER", "TranscriptEntry", "TranscriptLog"]
