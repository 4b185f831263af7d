from __future__ import annotations


class ChatError(RuntimeError):
    """Base class for chat service errors."""


class ConfigError(ChatError):
    """Raised when configuration cannot be loaded or is invalid."""


class FrameError(ChatError):
    """Raised when an inbound frame cannot be decoded into a known message."""


class NameTakenError(ChatError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Username {name!r} is already taken")
        self.name = name


class AlreadyRegisteredError(ChatError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Connection is already registered as {name!r}")
        self.name = name


class SendError(ChatError):
    """Raised when a write to a single connection fails or times out."""


class ServiceStoppedError(ChatError):
    """Raised when a connection arrives after the dispatcher was stopped."""
