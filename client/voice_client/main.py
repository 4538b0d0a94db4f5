import argparse
import asyncio
import logging
import signal

from core.config import ASSISTANT_NAME, CONNECT_TIMEOUT_SEC
from voice_client.presentation.view import build_view, render_text
from voice_client.room.base import build_room_collaborator
from voice_client.runtime import AudioSessionGuard, ConnectWatchdog, ensure_initialized
from voice_client.session.controller import ConnectionController
from voice_client.session.models import Credentials


logger = logging.getLogger("voice_client.main")


async def run(credentials: Credentials, timeout_sec: float) -> int:
    audio = AudioSessionGuard()
    room = build_room_collaborator()
    controller = ConnectionController(room, assistant_name=ASSISTANT_NAME)
    watchdog = ConnectWatchdog(controller, timeout_sec)
    stop_event = asyncio.Event()

    def _render(snapshot) -> None:
        print("\033[2J\033[H" + render_text(build_view(snapshot, audio_error=audio.error)), flush=True)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            pass

    with audio, controller.subscribe(_render):
        state = controller.request_connect(credentials)
        if state.error is not None:
            _render(controller.snapshot())
            return 2
        watchdog.arm(state.attempt)

        await stop_event.wait()

        controller.request_disconnect()
        await watchdog.stop()
        aclose = getattr(room, "aclose", None)
        if aclose is not None:
            await aclose()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Talk to the voice assistant from a terminal")
    parser.add_argument("--url", default=None, help="room server URL (defaults to LIVEKIT_URL)")
    parser.add_argument("--token", default=None, help="room access token (defaults to LIVEKIT_JWT)")
    parser.add_argument("--timeout", type=float, default=CONNECT_TIMEOUT_SEC, help="connect timeout in seconds, 0 disables")
    args = parser.parse_args(argv)

    ensure_initialized()
    env_credentials = Credentials.from_env()
    credentials = Credentials(
        server_url=args.url if args.url is not None else env_credentials.server_url,
        token=args.token if args.token is not None else env_credentials.token,
    )
    try:
        return asyncio.run(run(credentials, args.timeout))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
