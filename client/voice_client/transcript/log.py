from __future__ import annotations

import time
from threading import Lock
from typing import Callable

from .models import TranscriptEntry


class TranscriptLog:
    """
    Append-only conversation log for ONE session.

    Entries keep insertion order. The only removal is clear(), which
    empties the log in one step. Timestamps never go backward: a clock
    that jumps back is clamped to the previous entry's timestamp.
    """

    def __init__(self, clock: Callable[[], float] | None = None):
        self._clock = clock or time.time
        self._lock = Lock()
        self._entries: list[TranscriptEntry] = []
        self._last_ts: float = 0.0

    def append(self, text: str, speaker: str, is_local_user: bool) -> TranscriptEntry:
        with self._lock:
            now_ts = float(self._clock())
            ts = max(now_ts, self._last_ts)
            entry = TranscriptEntry(
                text=str(text if text is not None else ""),
                speaker=str(speaker or ""),
                timestamp=ts,
                is_local_user=bool(is_local_user),
            )
            self._entries.append(entry)
            self._last_ts = ts
            return entry

    def clear(self) -> None:
        # _last_ts survives a clear so a cleared log never restarts earlier
        with self._lock:
            self._entries = []

    def snapshot(self) -> tuple[TranscriptEntry, ...]:
        with self._lock:
            return tuple(self._entries)

    def last(self) -> TranscriptEntry | None:
        with self._lock:
            return self._entries[-1] if self._entries else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
