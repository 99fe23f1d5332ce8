"""
Exceptions raised by watch-queue.
"""


class WatchQueueError(Exception):
    """Base class for watch-queue errors."""


class ConfigError(WatchQueueError):
    """Configuration file is missing or invalid."""


class UnknownActionError(WatchQueueError):
    """
    A control action with an unrecognized kind reached the dispatcher.

    This is a producer/consumer contract violation and ends the process.
    """

    def __init__(self, kind):
        self.kind = kind
        super().__init__(f"Unknown action: {kind!r}")
