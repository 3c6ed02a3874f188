# errors.py
# Failures a refresh cycle can report. Both are retryable: the scheduler keeps
# the last published data and tries again on the next tick.


class MonitorError(Exception):
    """Base class for pipeline errors."""

    retryable = True


class FetchError(MonitorError):
    """Network or HTTP failure while downloading a feed."""

    def __init__(self, message: str, url: str | None = None, status: int | None = None):
        super().__init__(message)
        self.url = url
        self.status = status


class MalformedFeedError(MonitorError):
    """The feed payload does not have the expected event/geometry structure."""
