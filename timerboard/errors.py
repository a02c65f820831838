"""Exception types raised by the timerboard core."""


class TimerboardError(Exception):
    """Base class for timerboard errors."""


class InvalidIdError(TimerboardError, ValueError):
    """A stored Discord id could not be parsed into a snowflake."""

    def __init__(self, kind: str, value):
        self.kind = kind
        self.value = value
        super().__init__(f"Invalid {kind}: {value!r}")


class NotFoundError(TimerboardError):
    """A record the operation depends on does not exist."""


class MessagingUnavailableError(TimerboardError):
    """The Discord bot is not configured or not connected."""
