"""Realtime channel and edit coordinator exceptions."""


class RealtimeError(Exception):
    """Base realtime exception."""

    pass


class ConnectionClosedError(RealtimeError):
    """Connection used before open() or after close()."""

    pass


class PublishError(RealtimeError):
    """Adapter failed to deliver a message."""

    def __init__(self, message: str, channel: str | None = None):
        super().__init__(message)
        self.channel = channel


class MessageFormatError(RealtimeError):
    """Unknown message name or payload that does not validate."""

    pass


class InvalidTransitionError(RealtimeError):
    """Edit cell asked to move to a state it cannot reach."""

    def __init__(self, message: str, cell=None, state=None):
        super().__init__(message)
        self.cell = cell
        self.state = state
