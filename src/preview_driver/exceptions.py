"""Exceptions raised by the preview driver."""


class DriverError(RuntimeError):
    """Base class for preview driver failures."""


class SessionError(DriverError):
    """Playwright, browser or context could not be started."""


class SessionNotStartedError(DriverError):
    """A page interaction was attempted without a live page."""


class NavigationError(DriverError):
    """Navigation did not reach the readiness state in time."""

    def __init__(self, url: str, reason: str):
        self.url = url
        super().__init__(f"Navigation to {url} failed: {reason}")


class BranchConfigError(DriverError):
    """Branch/revision config could not be refreshed."""


class UnsupportedOperationError(DriverError):
    """The operation is disabled by the active driver profile."""
