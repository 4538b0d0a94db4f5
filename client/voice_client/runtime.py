from __future__ import annotations

import asyncio
import logging
from threading import Lock
from typing import Optional, Protocol

from core.config import LOG_LEVEL
from core.logger import log_event


logger = logging.getLogger("runtime")

AUDIO_START_ERROR = "Failed to initialize audio session"

_init_lock = Lock()
_initialized = False


def ensure_initialized() -> bool:
    """One-time process setup. Returns True only for the call that did the work."""
    global _initialized
    with _init_lock:
        if _initialized:
            return False
        logging.basicConfig(
            format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
            level=getattr(logging, LOG_LEVEL, logging.INFO),
        )
        _initialized = True
        return True


class AudioSessionLifecycle(Protocol):
    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...


class NullAudioSession:
    def start(self) -> None:
        return

    def stop(self) -> None:
        return


class AudioSessionGuard:
    """
    Starts the audio session once per activation and stops it on teardown
    whenever a start was attempted.
    A failed start becomes a user-visible error; it never touches SessionState.
    """

    def __init__(self, audio_session: Optional[AudioSessionLifecycle] = None):
        self._audio = audio_session or NullAudioSession()
        self._started = False
        self._attempted = False
        self.error: Optional[str] = None

    @property
    def active(self) -> bool:
        return self._started

    def activate(self) -> bool:
        if self._started:
            return True
        self._attempted = True
        try:
            self._audio.start()
        except Exception as exc:
            logger.error(f"Error starting audio session: {exc}")
            self.error = AUDIO_START_ERROR
            return False
        self._started = True
        self.error = None
        return True

    def deactivate(self) -> None:
        # stop whenever a start was tried, including a failed one
        if not self._attempted:
            return
        self._attempted = False
        self._started = False
        try:
            self._audio.stop()
        except Exception as exc:
            logger.warning(f"Error stopping audio session: {exc}")

    def __enter__(self) -> "AudioSessionGuard":
        self.activate()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.deactivate()


class ConnectWatchdog:
    """Fails a connect attempt that has not become ready within timeout_sec."""

    def __init__(self, controller, timeout_sec: float):
        self.controller = controller
        self.timeout_sec = max(0.0, float(timeout_sec or 0.0))
        self.tasks: list[asyncio.Task] = []

    @property
    def enabled(self) -> bool:
        return self.timeout_sec > 0

    def arm(self, attempt: int) -> Optional[asyncio.Task]:
        if not self.enabled:
            return None
        self.tasks = [t for t in self.tasks if not t.done()]
        task = asyncio.create_task(self._watch(attempt))
        self.tasks.append(task)
        return task

    async def _watch(self, attempt: int) -> bool:
        await asyncio.sleep(self.timeout_sec)
        expired = self.controller.expire_attempt(attempt)
        if expired:
            log_event("connect_watchdog", "attempt_expired", self.controller.session_id, attempt=attempt, timeout_sec=self.timeout_sec)
        return expired

    async def stop(self) -> None:
        for task in self.tasks:
            task.cancel()
        await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks.clear()
