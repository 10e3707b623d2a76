class TrackerError(Exception):
    """Base class for webcam-tracker failures."""


class MonitorStartError(TrackerError):
    """The log stream process could not be spawned or attached."""


class SessionNotFoundError(TrackerError):
    pass


class CommandError(TrackerError):
    """Failure reported to the UI layer as a plain message."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
