from coach.providers.backend import ChatBackend, ChatTransportError

__all__ = ["ChatBackend", "ChatTransportError"]
