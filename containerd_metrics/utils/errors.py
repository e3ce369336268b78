# containerd_metrics/utils/errors.py


class MetricsError(RuntimeError):
    """Base class for everything this package raises on purpose."""


class IngestError(MetricsError):
    """
    The event subscription itself failed (ctr could not be started,
    exited non-zero, socket unreachable).

    Fatal: propagates out of the event loop.
    """


class MalformedEventError(MetricsError):
    """
    A single event line/payload could not be decoded.
    Recoverable: the loop logs a warning and skips the event.
    """

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class UserInputError(MetricsError):
    """
    Raised for invalid user-provided config (paths, sockets, ttl values).
    Should NOT print traceback.
    """
