from __future__ import annotations

from threading import Lock
from typing import Callable


class Subscription:
    """Handle returned by subscribe(); close() detaches the listener exactly once."""

    def __init__(self, release_fn: Callable[[], None]):
        self._release_fn = release_fn
        self._lock = Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._release_fn()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
