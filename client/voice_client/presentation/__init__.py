from voice_client.presentation.view import MessageView, SessionView, build_view, render_text

__all__ = ["MessageView", "SessionView", "build_view", "render_text"]
