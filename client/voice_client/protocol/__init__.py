from voice_client.protocol.decoder import (
    TRANSCRIPTION,
    DecodeError,
    DecodeResult,
    InboundDataEvent,
    decode,
    encode_event,
)

__all__ = [
    "TRANSCRIPTION",
    "DecodeError",
    "DecodeResult",
    "InboundDataEvent",
    "decode",
    "encode_event",
]
