from __future__ import annotations


class FrictionError(Exception):
    """Base class for failures surfaced to the user as a status message."""


class InvalidTokenError(FrictionError):
    pass


class NoSessionError(FrictionError):
    pass


class SessionExpiredError(NoSessionError):
    """The remote service rejected the stored token; the session was cleared."""


class RateLimitedError(FrictionError):
    pass


class EmptyCaptureError(FrictionError):
    pass


class CaptureFailedError(FrictionError):
    pass


class InvalidTransitionError(FrictionError):
    pass
